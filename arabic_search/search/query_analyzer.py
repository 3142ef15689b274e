"""
Query analysis for Arabic questions.

Classifies a query into a question type, extracts meaningful concept terms
and detects what kind of answer the user is after:
- definition ("ما هو ...")
- causality ("لماذا", "ما سبب ...")
- method ("كيف يستدل ...")
- quotes, summaries, comparisons and lists

Security:
- Query length limit enforced
- Null bytes and control characters stripped
"""

import re
from typing import List, Optional
import logging

from ..common.text_normalizer import (
    normalize,
    normalize_lower,
)
from .lexicon import (
    QUERY_PUNCTUATION,
    TOKEN_PUNCTUATION,
    DEFINITE_ARTICLE,
    ANALYSIS_STOP_WORDS,
    PROCESSING_STOP_WORDS,
    QUESTION_PATTERNS,
    CAUSALITY_TRIGGERS,
    METHOD_TRIGGERS,
    DEFINITION_TRIGGERS,
    DEFINITION_QUESTION_MARKERS,
    CAUSALITY_SUBJECT_MARKER,
    METHOD_SUBJECT_MARKER,
    METHOD_QUESTION_WORD,
    VERB_PREFIX,
    METHOD_VERBS,
    QUOTE_INTENT_TRIGGERS,
    SUMMARY_INTENT_TRIGGERS,
    COMPARISON_INTENT_TRIGGERS,
    LIST_INTENT_TRIGGERS,
    SUBJECT_MAX_WORDS,
    DEFINITION_TERM_MAX_WORDS,
    normalized_terms,
)
from .models import QueryAnalysis, QueryIntent, ProcessedQuery

logger = logging.getLogger('search')


_QUESTION_PATTERNS = tuple(
    (question_type, normalized_terms(patterns))
    for question_type, patterns in QUESTION_PATTERNS
)
_CAUSALITY_TRIGGERS = normalized_terms(CAUSALITY_TRIGGERS)
_METHOD_TRIGGERS = normalized_terms(METHOD_TRIGGERS)
_ANALYSIS_STOP_WORDS = frozenset(normalized_terms(ANALYSIS_STOP_WORDS))
_PROCESSING_STOP_WORDS = frozenset(normalized_terms(PROCESSING_STOP_WORDS))
_DEFINITION_TRIGGERS = normalized_terms(DEFINITION_TRIGGERS)
_DEFINITION_MARKERS = normalized_terms(DEFINITION_QUESTION_MARKERS)
_DEFINITION_SPLIT = re.compile('|'.join(re.escape(m) for m in _DEFINITION_MARKERS))
_METHOD_VERBS = normalized_terms(METHOD_VERBS)
_METHOD_SUBJECT_MARKER = normalize_lower(METHOD_SUBJECT_MARKER)

_QUOTE_INTENT = normalized_terms(QUOTE_INTENT_TRIGGERS)
_SUMMARY_INTENT = normalized_terms(SUMMARY_INTENT_TRIGGERS)
_COMPARISON_INTENT = normalized_terms(COMPARISON_INTENT_TRIGGERS)
_LIST_INTENT = normalized_terms(LIST_INTENT_TRIGGERS)

_QUERY_PUNCTUATION_TABLE = {ord(char): ' ' for char in QUERY_PUNCTUATION}
_TOKEN_PUNCTUATION_TABLE = {ord(char): None for char in TOKEN_PUNCTUATION}
_SUBJECT_PUNCTUATION_TABLE = {ord(char): None for char in '؟?،,'}


def _strip_query_punctuation(query: str) -> str:
    return query.translate(_QUERY_PUNCTUATION_TABLE)


def _contains_any(text: str, needles) -> bool:
    return any(needle in text for needle in needles)


def _unique(items) -> List[str]:
    return list(dict.fromkeys(items))


def _leading_words(text: Optional[str], count: int) -> Optional[str]:
    """First `count` words of a text, minus question punctuation."""
    if not text:
        return None
    words = ' '.join(text.split()[:count])
    return words.translate(_SUBJECT_PUNCTUATION_TABLE).strip() or None


def _text_after(text: str, marker: str) -> Optional[str]:
    """Text between the first and second occurrence of a marker."""
    parts = text.split(marker)
    if len(parts) > 1:
        return parts[1]
    return None


def detect_question_type(normalized: str) -> Optional[str]:
    """First question type whose trigger phrase occurs in the query."""
    for question_type, patterns in _QUESTION_PATTERNS:
        if _contains_any(normalized, patterns):
            return question_type
    return None


def extract_concepts(normalized: str) -> List[str]:
    """
    Extract meaningful concept terms from a normalized query.

    Every token of at least 2 characters outside the analysis stop word list
    is a concept. Tokens carrying the definite article (longer than 3
    characters) also contribute their stripped form.

    Args:
        normalized: Normalized, punctuation-free query

    Returns:
        Unique concepts in order of first occurrence
    """
    concepts = []
    for word in normalized.split():
        word = word.translate(_TOKEN_PUNCTUATION_TABLE)

        if len(word) < 2 or word in _ANALYSIS_STOP_WORDS:
            continue

        concepts.append(word)
        if word.startswith(DEFINITE_ARTICLE) and len(word) > 3:
            concepts.append(word[len(DEFINITE_ARTICLE):])

    return _unique(concepts)


def detect_query_intent(query: str) -> QueryIntent:
    """Detect presentation intents (quotes, summary, comparison, list)."""
    normalized = normalize_lower(query)

    return QueryIntent(
        wants_quotes=_contains_any(normalized, _QUOTE_INTENT),
        wants_summary=_contains_any(normalized, _SUMMARY_INTENT),
        wants_comparison=_contains_any(normalized, _COMPARISON_INTENT),
        wants_list=_contains_any(normalized, _LIST_INTENT),
    )


def analyze_question(query: str) -> QueryAnalysis:
    """
    Classify a query and extract its semantic needs.

    Args:
        query: Raw query string

    Returns:
        Immutable QueryAnalysis
    """
    cleaned = _strip_query_punctuation(query or '').strip()
    normalized = normalize_lower(cleaned)

    question_type = detect_question_type(normalized)

    needs_causality = _contains_any(normalized, _CAUSALITY_TRIGGERS) or question_type == 'why'
    needs_method = _contains_any(normalized, _METHOD_TRIGGERS) or question_type == 'how'
    needs_definition = (
        _contains_any(normalized, _DEFINITION_TRIGGERS)
        or (question_type == 'what' and not needs_causality)
    )

    # The method subject (text after "على") overrides the causal one
    main_subject = None
    if needs_causality:
        main_subject = _leading_words(
            _text_after(normalized, CAUSALITY_SUBJECT_MARKER), SUBJECT_MAX_WORDS
        )
    if needs_method:
        after_marker = _text_after(normalized, _METHOD_SUBJECT_MARKER)
        if after_marker is not None:
            main_subject = _leading_words(after_marker, SUBJECT_MAX_WORDS)

    definition_term = None
    if needs_definition and _contains_any(normalized, _DEFINITION_MARKERS):
        parts = _DEFINITION_SPLIT.split(normalized)
        if len(parts) > 1:
            definition_term = _leading_words(parts[1], DEFINITION_TERM_MAX_WORDS)

    main_verb = None
    if needs_method:
        # Last listed verb present wins
        for verb in _METHOD_VERBS:
            if verb in normalized:
                main_verb = verb

        if main_verb is None and METHOD_QUESTION_WORD in normalized:
            after_question = _text_after(normalized, METHOD_QUESTION_WORD)
            words = after_question.split() if after_question else []
            if words and words[0].startswith(VERB_PREFIX):
                main_verb = words[0]

    return QueryAnalysis(
        question_type=question_type,
        concepts=tuple(extract_concepts(normalized)),
        is_question=question_type is not None,
        needs_causality=needs_causality,
        needs_method=needs_method,
        needs_definition=needs_definition,
        needs_quotes=detect_query_intent(cleaned).wants_quotes,
        definition_term=definition_term,
        main_subject=main_subject,
        main_verb=main_verb,
    )


def process_query(query: str) -> ProcessedQuery:
    """
    Turn a raw query into search words, key terms and analysis.

    Search words are the normalized tokens outside the processing stop word
    list, with the definite article stripped from tokens longer than 3
    characters. Key terms merge the search words with the analysis concepts.
    The presentation intent rides along for callers that format answers.

    Args:
        query: Raw query string

    Returns:
        ProcessedQuery (empty words when nothing meaningful remains)
    """
    if not query:
        return ProcessedQuery((), '', query or '', (), QueryAnalysis())

    cleaned_query = _strip_query_punctuation(query)
    normalized = ' '.join(normalize(cleaned_query).split())

    words = []
    for word in normalized.split(' '):
        if not word or word in _PROCESSING_STOP_WORDS:
            continue
        if word.startswith(DEFINITE_ARTICLE) and len(word) > 3:
            word = word[len(DEFINITE_ARTICLE):]
        words.append(word)

    analysis = analyze_question(cleaned_query)
    key_terms = _unique(words + list(analysis.concepts))

    return ProcessedQuery(
        words=tuple(words),
        normalized=normalized,
        original=query,
        key_terms=tuple(key_terms),
        analysis=analysis,
        intent=detect_query_intent(cleaned_query),
    )


class QueryAnalyzer:
    """
    Validating front end to process_query().

    Rejects oversized queries and strips characters that must never reach
    the datastore before analysis runs.
    """

    # Maximum accepted query length
    MAX_QUERY_LENGTH = 1000

    CONTROL_CHARS = re.compile(r'[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]')

    def process(self, query: str) -> ProcessedQuery:
        """
        Validate and process a query.

        Args:
            query: Raw query string from user

        Returns:
            ProcessedQuery

        Raises:
            ValueError: If query is too long
        """
        if not query or not isinstance(query, str):
            return process_query('')

        if len(query) > self.MAX_QUERY_LENGTH:
            raise ValueError(f"Query too long (max {self.MAX_QUERY_LENGTH} characters)")

        query = self._sanitize_value(query).strip()
        logger.debug(f"Processing query: {query}")

        return process_query(query)

    def _sanitize_value(self, value: str) -> str:
        """Remove null bytes and other control characters."""
        return self.CONTROL_CHARS.sub('', value)
