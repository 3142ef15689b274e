"""
Domain pattern detectors for question-answering snippets.

Each detector matches fixed Arabic indicator lists against the normalized
document, weighting "strong" indicators higher and rewarding indicators
that occur near the query's subject, verb or definition term.

Detectors run only for queries whose analysis sets the matching need flag
(quotes are always analysed):

    detect_quotes_and_impressions   quote_score / impression_score in [0, 1]
    detect_causality_indicators     [0, 0.7]
    detect_method_indicators        [0, 0.8]
    detect_definition_indicators    [0, 0.9]
"""

from dataclasses import dataclass
from typing import List, Sequence

from ..common.text_normalizer import normalize_lower, word_root
from .lexicon import (
    STRONG_QUOTE_INDICATORS,
    IMPRESSION_INDICATORS,
    QUOTE_MARKERS,
    CAUSALITY_INDICATORS,
    STRONG_CAUSALITY_INDICATORS,
    METHOD_INDICATORS,
    STRONG_METHOD_INDICATORS,
    SEQUENTIAL_INDICATORS,
    DEFINITIVE_METHOD_INDICATORS,
    TESTIMONY_MARKERS,
    DEFINITION_PATTERNS,
    STRONG_DEFINITION_PATTERNS,
    EXPLANATORY_CONNECTORS,
    normalized_entries,
    normalized_terms,
)
from .models import QueryAnalysis

_STRONG_QUOTES = normalized_entries(STRONG_QUOTE_INDICATORS)
_IMPRESSIONS = normalized_entries(IMPRESSION_INDICATORS)
_QUOTE_MARKERS = normalized_entries(QUOTE_MARKERS)

_CAUSALITY = normalized_entries(CAUSALITY_INDICATORS)
_STRONG_CAUSALITY = frozenset(normalized_terms(STRONG_CAUSALITY_INDICATORS))

_METHOD = normalized_entries(METHOD_INDICATORS)
_STRONG_METHOD = frozenset(normalized_terms(STRONG_METHOD_INDICATORS))
_SEQUENTIAL = normalized_entries(SEQUENTIAL_INDICATORS)
_DEFINITIVE = normalized_entries(DEFINITIVE_METHOD_INDICATORS)
_TESTIMONY = normalized_terms(TESTIMONY_MARKERS)

_DEFINITION = normalized_entries(DEFINITION_PATTERNS)
_STRONG_DEFINITION = normalized_entries(STRONG_DEFINITION_PATTERNS)
_EXPLANATORY = normalized_entries(EXPLANATORY_CONNECTORS)

CAUSALITY_WINDOW = 10
METHOD_VERB_WINDOW = 20
METHOD_SUBJECT_WINDOW = 15
DEFINITION_WINDOW = 8
DIRECT_DEFINITION_CHARS = 50


@dataclass(frozen=True)
class QuoteAnalysis:
    """Quote and impression signals of a document."""
    has_quotes: bool = False
    quote_score: float = 0.0
    impression_score: float = 0.0
    strong_quote_count: int = 0


def _count_present(text: str, indicators: Sequence[str]) -> int:
    return sum(1 for indicator in indicators if indicator in text)


def _indicator_near(words: List[str], index: int, window: int, indicators: Sequence[str]) -> bool:
    """Whether any word in [index - window, index + window) contains an indicator."""
    for neighbour in words[max(0, index - window):min(len(words), index + window)]:
        if any(indicator in neighbour for indicator in indicators):
            return True
    return False


def detect_quotes_and_impressions(document_text: str) -> QuoteAnalysis:
    """
    Detect reported speech and impressions.

    Strong quote indicators count every occurrence (0.3 each), quote markers
    every occurrence (0.1 each); impression indicators count once each.
    """
    if not document_text:
        return QuoteAnalysis()

    normalized = normalize_lower(document_text)

    strong_quote_count = sum(normalized.count(indicator) for indicator in _STRONG_QUOTES)
    impression_count = _count_present(normalized, _IMPRESSIONS)
    quote_marker_count = sum(normalized.count(marker) for marker in _QUOTE_MARKERS)

    return QuoteAnalysis(
        has_quotes=strong_quote_count > 0 or quote_marker_count >= 2,
        quote_score=min(1.0, strong_quote_count * 0.3 + quote_marker_count * 0.1),
        impression_score=min(1.0, impression_count * 0.25),
        strong_quote_count=strong_quote_count,
    )


def detect_causality_indicators(document_text: str, analysis: QueryAnalysis) -> float:
    """
    Score causal explanations ("لانه", "بسبب", ...).

    Args:
        document_text: Document snippet
        analysis: Query analysis (needs_causality must be set)

    Returns:
        Score in [0, 0.7]
    """
    if not document_text or not analysis.needs_causality:
        return 0.0

    normalized = normalize_lower(document_text)

    causality_count = 0
    strong_count = 0
    for indicator in _CAUSALITY:
        if indicator in normalized:
            causality_count += 1
            if indicator in _STRONG_CAUSALITY:
                strong_count += 1

    proximity_bonus = 0.0
    if analysis.main_subject and causality_count > 0:
        subject = normalize_lower(analysis.main_subject)
        words = normalized.split()
        for index, word in enumerate(words):
            if subject in word and _indicator_near(words, index, CAUSALITY_WINDOW, _CAUSALITY):
                proximity_bonus = 0.3
                break

    return min(0.7, strong_count * 0.3 + causality_count * 0.15 + proximity_bonus)


def _verb_match_bonus(normalized: str, words: List[str], analysis: QueryAnalysis):
    """
    Bonus for the question's main verb appearing near its concepts.

    Returns:
        (bonus, contextual_match) tuple
    """
    if not analysis.main_verb or not analysis.concepts:
        return 0.0, False

    verb = normalize_lower(analysis.main_verb)
    verb_root = word_root(verb)

    verb_positions = [
        index for index, word in enumerate(words)
        if verb in word
        or any(marker in word for marker in _TESTIMONY)
        or (verb_root and verb_root in word)
    ]

    contextual_match = False
    if verb_positions:
        for concept in analysis.concepts:
            concept_norm = normalize_lower(concept)
            for index, word in enumerate(words):
                if concept_norm in word or word in concept_norm:
                    if any(abs(index - pos) <= METHOD_VERB_WINDOW for pos in verb_positions):
                        contextual_match = True
                        break
            if contextual_match:
                break

    if contextual_match:
        if verb in normalized:
            return 0.5, True
        if any(marker in normalized for marker in _TESTIMONY):
            return 0.45, True
        return 0.3, True

    if verb in normalized or (verb_root and verb_root in normalized):
        return 0.1, False
    return 0.0, False


def detect_method_indicators(document_text: str, analysis: QueryAnalysis) -> float:
    """
    Score descriptions of a method or line of reasoning.

    Combines method, sequential and definitive indicators with a bonus for
    the question's verb near its concepts (window 20) and for method
    indicators near the main subject (window 15).

    Args:
        document_text: Document snippet
        analysis: Query analysis (needs_method must be set)

    Returns:
        Score in [0, 0.8]
    """
    if not document_text or not analysis.needs_method:
        return 0.0

    normalized = normalize_lower(document_text)
    words = normalized.split()

    method_count = 0
    strong_count = 0
    for indicator in _METHOD:
        if indicator in normalized:
            method_count += 1
            if indicator in _STRONG_METHOD:
                strong_count += 1

    sequential_count = _count_present(normalized, _SEQUENTIAL)
    definitive_count = _count_present(normalized, _DEFINITIVE)

    verb_bonus, contextual_verb_match = _verb_match_bonus(normalized, words, analysis)

    proximity_bonus = 0.0
    if analysis.main_subject and method_count > 0:
        subject = normalize_lower(analysis.main_subject)
        for index, word in enumerate(words):
            if (subject in word or word in subject) and \
                    _indicator_near(words, index, METHOD_SUBJECT_WINDOW, _METHOD):
                proximity_bonus = 0.25
                break

    score = (
        strong_count * 0.15
        + method_count * 0.08
        + sequential_count * 0.15
        + definitive_count * 0.2
        + verb_bonus
        + proximity_bonus
    )

    if definitive_count > 0 and sequential_count > 0:
        score += 0.2

    if contextual_verb_match and sequential_count > 0:
        score += 0.15

    return min(0.8, score)


def _pattern_at(words: List[str], index: int, pattern: str) -> bool:
    """Whether a (possibly multi-word) pattern starts within word `index`."""
    if pattern in words[index]:
        return True
    span = len(pattern.split())
    return pattern in ' '.join(words[index:index + span])


def detect_definition_indicators(document_text: str, analysis: QueryAnalysis) -> float:
    """
    Score definitional statements ("عبارة عن", "المراد من", ...).

    A definition pattern within 8 words of the definition term adds up to
    0.6 (strong) or 0.4, minus 0.05 per word of distance. A strong pattern
    within 50 characters of the term adds 0.4 more.

    Args:
        document_text: Document snippet
        analysis: Query analysis (needs_definition must be set)

    Returns:
        Score in [0, 0.9]
    """
    if not document_text or not analysis.needs_definition:
        return 0.0

    normalized = normalize_lower(document_text)

    definition_count = _count_present(normalized, _DEFINITION)
    strong_count = _count_present(normalized, _STRONG_DEFINITION)
    explanatory_count = _count_present(normalized, _EXPLANATORY)

    term_proximity = 0.0
    direct_bonus = 0.0

    if analysis.definition_term:
        term = normalize_lower(analysis.definition_term)
        words = normalized.split()

        term_positions = [
            index for index, word in enumerate(words)
            if term in word or word in term
        ]

        if term_positions:
            for pattern in _DEFINITION:
                is_strong = any(strong in pattern for strong in _STRONG_DEFINITION)
                base = 0.6 if is_strong else 0.4

                for index in range(len(words)):
                    if not _pattern_at(words, index, pattern):
                        continue
                    for term_pos in term_positions:
                        distance = abs(index - term_pos)
                        if distance <= DEFINITION_WINDOW:
                            term_proximity = max(term_proximity, base - distance * 0.05)

        term_index = normalized.find(term)
        if term_index != -1:
            for pattern in _STRONG_DEFINITION:
                pattern_index = normalized.find(pattern)
                if pattern_index != -1 and abs(pattern_index - term_index) <= DIRECT_DEFINITION_CHARS:
                    direct_bonus = 0.4
                    break

    score = (
        strong_count * 0.2
        + definition_count * 0.1
        + explanatory_count * 0.05
        + term_proximity
        + direct_bonus
    )

    if strong_count > 0 and term_proximity > 0.3:
        score += 0.2

    return min(0.9, score)
