import random

import pytest

from arabic_search.common.text_normalizer import (
    normalize,
    normalize_lower,
    edit_distance,
    fuzzy_score,
    phonetic_distance,
    are_phonetically_similar,
    fuzzy_variants,
    fuzzy_match,
    word_root,
    TextNormalizer,
    MAX_FUZZY_VARIANTS,
    PHONETIC_CUTOFF,
)

ALPHABET = "ابتثجحخدذرزسشصضطظعغفقكلمنهوي" + "إأآٱىئةؤکپچژگ" + "ًَِّْ abc"


def random_text(rng, max_length=12):
    return ''.join(rng.choice(ALPHABET) for _ in range(rng.randint(0, max_length)))


class TestNormalize:
    def test_alef_variants(self):
        assert normalize("إأآٱا") == "ااااا"

    def test_yeh_and_teh_marbuta(self):
        assert normalize("مستشفى") == "مستشفي"
        assert normalize("مدرسة") == "مدرسه"
        assert normalize("مسائل") == "مسايل"

    def test_persian_letters(self):
        assert normalize("پچژگک") == "بجزكك"

    def test_diacritics_removed(self):
        assert normalize("الصَّبْرُ") == "الصبر"
        assert normalize("هٰذا") == "هذا"

    def test_none_and_empty(self):
        assert normalize(None) == ""
        assert normalize("") == ""

    def test_idempotent(self):
        rng = random.Random(7)
        for _ in range(300):
            text = random_text(rng)
            once = normalize(text)
            assert normalize(once) == once

    def test_normalize_lower(self):
        assert normalize_lower("ABC أحمد") == "abc احمد"


class TestEditDistance:
    def test_known_values(self):
        assert edit_distance("كتاب", "كتب") == 1
        assert edit_distance("", "علم") == 3
        assert edit_distance("علم", "") == 3

    def test_zero_on_normalized_equality(self):
        assert edit_distance("أحمد", "احمد") == 0
        assert edit_distance("مدرسة", "مدرسه") == 0

    def test_metric_properties(self):
        rng = random.Random(11)
        for _ in range(150):
            a, b, c = random_text(rng), random_text(rng), random_text(rng)
            assert edit_distance(a, b) == edit_distance(b, a)
            assert (edit_distance(a, b) == 0) == (normalize(a) == normalize(b))
            assert edit_distance(a, c) <= edit_distance(a, b) + edit_distance(b, c)

    def test_fuzzy_score_range(self):
        assert fuzzy_score("", "") == 1.0
        assert fuzzy_score("علم", "علم") == 1.0
        assert 0.0 <= fuzzy_score("علم", "قلم") < 1.0


class TestPhonetics:
    def test_similarity_is_directional(self):
        assert are_phonetically_similar("ت", "ط")
        assert are_phonetically_similar("س", "ص")
        assert not are_phonetically_similar("ي", "ب")

    def test_identical_words(self):
        assert phonetic_distance("صبر", "صبر") == 0

    def test_confusable_letter_costs_half(self):
        assert phonetic_distance("سبر", "صبر") == 0.5

    def test_unrelated_letter_costs_two(self):
        assert phonetic_distance("جبر", "صبر") == 2

    def test_length_difference_cutoff(self):
        assert phonetic_distance("ab", "abcdefg") == PHONETIC_CUTOFF

    def test_length_difference_charged(self):
        assert phonetic_distance("صبر", "صبرا") == 2 + 2


class TestFuzzyVariants:
    def test_short_words_unchanged(self):
        assert fuzzy_variants("في") == ["في"]

    def test_word_first_and_bounded(self):
        variants = fuzzy_variants("المدرسة")
        assert variants[0] == "المدرسة"
        assert len(variants) <= MAX_FUZZY_VARIANTS
        assert len(set(variants)) == len(variants)

    def test_transposition_and_prefix_toggle(self):
        variants = fuzzy_variants("كتاب")
        assert "تكاب" in variants
        assert "الكتاب" in variants

    def test_prefix_removed(self):
        assert "كتاب" in fuzzy_variants("الكتاب")


class TestFuzzyMatch:
    def test_exact_token(self):
        matches = fuzzy_match("الصبر", "ان الصبر مفتاح الفرج")
        assert matches[0].match == "الصبر"
        assert matches[0].score == 1.0
        assert matches[0].match_type == "exact"
        assert matches[0].position == 1

    def test_fuzzy_token_sorted(self):
        matches = fuzzy_match("مدرسه", "ذهبت الى المدرسة ثم مدرسي", threshold=0.5)
        assert matches
        scores = [m.score for m in matches]
        assert scores == sorted(scores, reverse=True)

    def test_empty_inputs(self):
        assert fuzzy_match("", "نص") == []
        assert fuzzy_match("كلمة", "") == []


class TestWordRoot:
    @pytest.mark.parametrize("word, root", [
        ("الصبر", "صبر"),
        ("والكتاب", "الكت"),
        ("مدرسة", "مدرس"),
        ("بيت", "بيت"),
        ("في", "في"),
    ])
    def test_roots(self, word, root):
        assert word_root(word) == root


class TestTextNormalizer:
    def test_clean_strips_html(self):
        normalizer = TextNormalizer()
        raw = "<p>الصبر &amp; الشكر</p><script>x()</script><!-- c -->  نص"
        assert normalizer.clean(raw) == "الصبر & الشكر نص"

    def test_processed_text(self):
        assert TextNormalizer().processed_text("<b>مدرسة</b> A") == "مدرسه a"
