import pytest

from arabic_search.search.domain_detectors import (
    detect_causality_indicators,
    detect_definition_indicators,
    detect_method_indicators,
    detect_quotes_and_impressions,
)
from arabic_search.search.models import QueryAnalysis
from arabic_search.search.query_analyzer import analyze_question


class TestQuotes:
    def test_reported_speech(self):
        result = detect_quotes_and_impressions("فقال الرجل: «الصبر مفتاح الفرج»")
        assert result.has_quotes
        assert result.strong_quote_count >= 2
        assert 0.0 < result.quote_score <= 1.0

    def test_impressions(self):
        result = detect_quotes_and_impressions("وصف الناس انطباع الزائر")
        assert result.impression_score == pytest.approx(0.5)

    def test_plain_text(self):
        result = detect_quotes_and_impressions("الماء بارد")
        assert not result.has_quotes
        assert result.quote_score == 0.0

    def test_empty(self):
        assert detect_quotes_and_impressions("").quote_score == 0.0


class TestCausality:
    def test_requires_need(self):
        assert detect_causality_indicators("صام لأنه مريض", QueryAnalysis()) == 0.0

    def test_strong_indicators(self):
        analysis = QueryAnalysis(needs_causality=True)
        # "لانه", "لأنه", "لان" and "لأن" each count; the first two are strong
        assert detect_causality_indicators("صام لأنه مريض", analysis) == pytest.approx(0.7)

    def test_strong_and_plain_counts(self):
        analysis = QueryAnalysis(needs_causality=True)
        text = "شرع الصوم بسبب التقوى"
        # "بسبب" and "سبب" match, "بسبب" is strong
        assert detect_causality_indicators(text, analysis) == pytest.approx(0.3 + 2 * 0.15)

    def test_why_question_wording(self):
        analysis = analyze_question("لماذا فعل ذلك")
        assert analysis.needs_causality
        assert detect_causality_indicators("فعل ذلك لانه خاف", analysis) == pytest.approx(0.7)

    def test_subject_proximity_bonus(self):
        analysis = analyze_question("ما سبب الصيام")
        with_subject = detect_causality_indicators("شرع الصيام بسبب التقوى", analysis)
        without_subject = detect_causality_indicators("شرع الحج بسبب التقوى", analysis)
        assert with_subject > without_subject

    def test_capped(self):
        analysis = QueryAnalysis(needs_causality=True)
        text = "لأنه بسبب السبب لذلك لهذا نتيجة"
        assert detect_causality_indicators(text, analysis) == pytest.approx(0.7)


class TestMethod:
    def test_requires_need(self):
        assert detect_method_indicators("يستدل بالبرهان", QueryAnalysis()) == 0.0

    def test_method_and_sequence(self):
        analysis = QueryAnalysis(needs_method=True)
        score = detect_method_indicators("طريقة الاستدلال اولا ثم الخطوة التالية", analysis)
        assert score > 0.3
        assert score <= 0.8

    def test_verb_near_concept(self):
        analysis = analyze_question("كيف يستدل على وجود الخالق")
        near = detect_method_indicators("يستدل العالم على وجود الخالق بالبرهان", analysis)
        absent = detect_method_indicators("الطقس جميل اليوم", analysis)
        assert near > 0.5
        assert absent == 0.0


class TestDefinition:
    def test_requires_need(self):
        assert detect_definition_indicators("الصبر عبارة عن حبس النفس", QueryAnalysis()) == 0.0

    def test_definitional_sentence(self):
        analysis = analyze_question("ما هو الصبر")
        assert detect_definition_indicators("الصبر عبارة عن حبس النفس", analysis) == pytest.approx(0.9)

    def test_mention_without_pattern(self):
        analysis = analyze_question("ما هو الصبر")
        assert detect_definition_indicators("ذكر الصبر في كتاب قديم", analysis) == 0.0

    def test_pattern_far_from_term(self):
        analysis = analyze_question("ما هو الصبر")
        filler = " ".join(["كلمه"] * 20)
        far = detect_definition_indicators(f"الصبر {filler} والمعنى واضح", analysis)
        near = detect_definition_indicators("الصبر والمعنى واضح", analysis)
        assert 0.0 < far < near
