import pytest

from arabic_search.search.query_analyzer import (
    QueryAnalyzer,
    analyze_question,
    detect_question_type,
    detect_query_intent,
    extract_concepts,
    process_query,
)


class TestQuestionType:
    @pytest.mark.parametrize("query, expected", [
        ("من هو النبي", "who"),
        ("ما هو الصبر", "what"),
        ("متي وقعت الحادثه", "when"),
        ("اين تقع المدينه", "where"),
        ("كيف يستدل على وجود الله", "how"),
        ("سبب الصيام", "why"),
        ("اي كتاب افضل", "which"),
        ("الصبر والشكر", None),
    ])
    def test_detection(self, query, expected):
        assert detect_question_type(query) == expected

    def test_first_listed_type_wins(self):
        # "ما سبب" carries both "ما" (what) and "سبب" (why)
        assert detect_question_type("ما سبب الصيام") == "what"


class TestAnalyzeQuestion:
    def test_definition_question(self):
        analysis = analyze_question("ما هو الصبر؟")
        assert analysis.question_type == "what"
        assert analysis.is_question
        assert analysis.needs_definition
        assert not analysis.needs_causality
        assert analysis.definition_term == "الصبر"
        assert analysis.concepts == ("الصبر", "صبر")

    def test_causality_question(self):
        analysis = analyze_question("ما سبب نزول الايه")
        assert analysis.needs_causality
        assert not analysis.needs_definition
        assert analysis.main_subject == "نزول الايه"

    def test_method_question(self):
        analysis = analyze_question("كيف يستدل على وجود الخالق")
        assert analysis.question_type == "how"
        assert analysis.needs_method
        assert analysis.main_verb == "يستدل"
        assert analysis.main_subject == "وجود الخالق"

    def test_method_verb_from_question_word(self):
        analysis = analyze_question("كيف يتعلم الطفل")
        assert analysis.main_verb == "يتعلم"

    def test_hamza_triggers_match(self):
        analysis = analyze_question("متى ولد")
        assert analysis.question_type == "when"

    def test_quote_intent(self):
        assert analyze_question("ماذا قال الشيخ").needs_quotes
        assert not analyze_question("الصبر").needs_quotes

    def test_plain_query(self):
        analysis = analyze_question("الصبر والشكر")
        assert analysis.question_type is None
        assert not analysis.is_question


class TestConcepts:
    def test_stop_words_and_article(self):
        assert extract_concepts("ما هو الصبر في الاسلام") == ["الصبر", "صبر", "الاسلام", "اسلام"]

    def test_short_tokens_dropped(self):
        assert extract_concepts("و ب كتاب") == ["كتاب"]


class TestQueryIntent:
    def test_intents(self):
        intent = detect_query_intent("عدد الفرق بين الصبر والشكر باختصار")
        assert intent.wants_list
        assert intent.wants_comparison
        assert intent.wants_summary
        assert not intent.wants_quotes

    def test_labels(self):
        intent = detect_query_intent("عدد الفرق بين الصبر والشكر")
        assert intent.labels() == ["comparison", "list"]
        assert detect_query_intent("الصبر").labels() == []


class TestProcessQuery:
    def test_words_and_key_terms(self):
        processed = process_query("ما هو الصبر؟")
        assert processed.words == ("صبر",)
        assert processed.normalized == "ما هو الصبر"
        assert processed.key_terms == ("صبر", "الصبر")
        assert processed.original == "ما هو الصبر؟"

    def test_only_stop_words(self):
        processed = process_query("في من")
        assert processed.words == ()
        assert not processed.has_content()

    def test_hamza_stop_words(self):
        assert process_query("الصبر على البلاء إلى الموت").words == ("صبر", "بلاء", "موت")

    def test_empty(self):
        assert not process_query("").has_content()

    def test_short_article_word_kept(self):
        assert process_query("الف").words == ("الف",)

    def test_carries_intent(self):
        processed = process_query("الفرق بين الصبر والشكر باختصار")
        assert processed.intent.wants_comparison
        assert processed.intent.wants_summary
        assert not processed.intent.wants_list
        assert not process_query("").intent.wants_comparison


class TestQueryAnalyzer:
    def test_rejects_long_query(self):
        with pytest.raises(ValueError):
            QueryAnalyzer().process("ا" * 1001)

    def test_strips_control_characters(self):
        processed = QueryAnalyzer().process("الصبر\x00\x07")
        assert processed.words == ("صبر",)

    def test_non_string(self):
        assert not QueryAnalyzer().process(None).has_content()
