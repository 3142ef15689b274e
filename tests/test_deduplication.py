import pytest

from arabic_search.search.deduplication import (
    calculate_text_similarity,
    deduplicate_results,
    generate_location_hash,
    generate_text_hash,
)
from arabic_search.search.models import RankedDocument
from conftest import make_candidate

HASH_ONLY = {'hash_prefix_chars': 100, 'similarity_phase_enabled': False, 'similarity_threshold': 0.85}
WITH_SIMILARITY = dict(HASH_ONLY, similarity_phase_enabled=True)


def ranked(doc_id, text, score, file_id="1", page_index=0):
    return RankedDocument(make_candidate(doc_id, text, file_id, page_index), re_rank_score=score)


class TestHashes:
    def test_text_hash_normalizes(self):
        assert generate_text_hash("مدرسة  جميلة") == generate_text_hash("مدرسه جميله")

    def test_text_hash_includes_length(self):
        text = "ا" * 150
        assert generate_text_hash(text) == "ا" * 100 + "_150"

    def test_empty_text(self):
        assert generate_text_hash("") == ""

    def test_location_hash(self):
        assert generate_location_hash(ranked(1, "نص", 0.5, "7", 3)) == "7_3"


class TestDeduplicate:
    def test_same_location_and_text_keeps_higher(self):
        low = ranked(1, "الصبر مفتاح الفرج", 0.4)
        high = ranked(2, "الصبر مفتاح الفرج", 0.9)

        for order in ([low, high], [high, low]):
            result = deduplicate_results(order, HASH_ONLY)
            assert result == [high]

    def test_same_text_different_location(self):
        first = ranked(1, "الصبر مفتاح الفرج", 0.8, "1", 0)
        second = ranked(2, "الصبر مفتاح الفرج", 0.6, "2", 5)
        assert deduplicate_results([first, second], HASH_ONLY) == [first]

    def test_replacement_carries_content_key(self):
        low = ranked(1, "الصبر مفتاح الفرج", 0.5, "1", 0)
        high = ranked(2, "الصبر مفتاح الفرج", 0.9, "1", 0)
        elsewhere = ranked(3, "الصبر مفتاح الفرج", 0.7, "2", 5)

        assert deduplicate_results([low, high, elsewhere], HASH_ONLY) == [high]

    def test_same_location_different_text_kept(self):
        first = ranked(1, "الصبر مفتاح الفرج", 0.8)
        second = ranked(2, "العلم نور", 0.6)
        assert deduplicate_results([first, second], HASH_ONLY) == [first, second]

    def test_output_sorted(self):
        docs = [ranked(1, "نص اول", 0.3, "1", 0), ranked(2, "نص ثاني", 0.9, "1", 1)]
        result = deduplicate_results(docs, HASH_ONLY)
        assert [d.id for d in result] == [2, 1]

    def test_empty(self):
        assert deduplicate_results([], HASH_ONLY) == []

    def test_similarity_phase(self):
        base = "الصبر مفتاح الفرج وهو خلق عظيم عند الشدائد والمحن"
        near = base + " كلها"
        docs = [ranked(1, base, 0.9, "1", 0), ranked(2, near, 0.7, "2", 0)]

        assert len(deduplicate_results(docs, HASH_ONLY)) == 2
        assert [d.id for d in deduplicate_results(docs, WITH_SIMILARITY)] == [1]


class TestTextSimilarity:
    def test_identical(self):
        assert calculate_text_similarity("مدرسة", "مدرسه") == 1.0

    def test_length_gate(self):
        assert calculate_text_similarity("نص قصير", "نص " * 40) == 0.0

    def test_partial_overlap(self):
        score = calculate_text_similarity("الصبر مفتاح الفرج", "الصبر مفتاح النصر")
        assert 0.0 < score < 1.0

    def test_empty(self):
        assert calculate_text_similarity("", "نص") == 0.0
