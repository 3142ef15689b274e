import itertools
import threading

from arabic_search.search.term_ranker import (
    TermRanker,
    TermRankingCache,
    build_term_metadata,
    rank_term_quality,
    rank_terms,
)
from arabic_search.search.models import TermMetadata


def meta(term, original=True, is_root=False):
    return TermMetadata(
        term=term,
        length=len(term),
        has_prefix=term.startswith("ال"),
        is_root=is_root,
        is_original_query_term=original,
        original_term=term,
    )


class TestBuildTermMetadata:
    def test_derived_terms(self):
        metadata = build_term_metadata(["المدرسة"])
        terms = {m.term: m for m in metadata}

        assert terms["المدرسه"].is_original_query_term
        assert terms["المدرسه"].has_prefix
        assert terms["مدرس"].is_root
        assert not terms["مدرس"].is_original_query_term
        assert "مدرسه" in terms

    def test_short_terms_skipped(self):
        assert build_term_metadata(["و", ""]) == []

    def test_duplicates_collapse(self):
        metadata = build_term_metadata(["علم", "علم"])
        assert [m.term for m in metadata] == ["علم"]


class TestQuality:
    def test_original_long_term(self):
        assert rank_term_quality(meta("مدرسه")) == 100 + 10 + 5 + 3 + 4

    def test_common_short_word_penalized(self):
        assert rank_term_quality(meta("في")) == 100 + 1 + 5 + 3 - 20

    def test_root_ranks_below_original(self):
        assert rank_term_quality(meta("مدرس", original=False, is_root=True)) < rank_term_quality(meta("مدرس"))

    def test_sorted_best_first(self):
        ranked = rank_terms([meta("في"), meta("كتاب"), meta("مدرس", original=False, is_root=True)])
        assert [t.term for t in ranked] == ["كتاب", "في", "مدرس"]
        scores = [t.quality_score for t in ranked]
        assert scores == sorted(scores, reverse=True)


class TestTermRankingCache:
    def test_order_independent_key(self):
        assert TermRankingCache.make_key(["ب", "ا"]) == TermRankingCache.make_key(["ا", "ب"])

    def test_cached_ranking_matches_fresh_for_permutations(self):
        terms = ["الصبر", "الشكر", "العلم"]
        ranker = TermRanker(TermRankingCache())
        fresh = rank_terms(build_term_metadata(terms))

        first = ranker.rank(build_term_metadata(terms))
        assert first == fresh

        for permutation in itertools.permutations(terms):
            assert ranker.rank(build_term_metadata(list(permutation))) == fresh

        assert ranker.cache.stats()['misses'] == 1
        assert ranker.cache.stats()['hits'] == 6

    def test_fifo_eviction(self):
        cache = TermRankingCache(max_size=2)
        cache.set(["a"], [])
        cache.set(["b"], [])
        cache.get(["a"])
        cache.set(["c"], [])

        assert len(cache) == 2
        assert cache.get(["a"]) is None
        assert cache.get(["b"]) == []
        assert cache.get(["c"]) == []

    def test_overwrite_does_not_evict(self):
        cache = TermRankingCache(max_size=2)
        cache.set(["a"], [])
        cache.set(["b"], [])
        cache.set(["a"], [])
        assert len(cache) == 2

    def test_clear(self):
        cache = TermRankingCache()
        cache.set(["a"], [])
        cache.get(["a"])
        cache.clear()
        assert cache.stats() == {'size': 0, 'max_size': 1000, 'hits': 0, 'misses': 0}

    def test_concurrent_access(self):
        cache = TermRankingCache(max_size=50)
        ranker = TermRanker(cache)
        errors = []

        def worker(offset):
            try:
                for i in range(100):
                    ranker.rank(build_term_metadata([f"كلمه{(i + offset) % 80}"]))
            except Exception as e:  # pragma: no cover
                errors.append(e)

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert not errors
        assert len(cache) <= 50
