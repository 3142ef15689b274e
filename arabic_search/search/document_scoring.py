"""
Generic per-document relevance signals.

Each function scores one document snippet against the processed query and
returns a value in a fixed, capped range:

    keyword_score_with_fuzzy   [0, 1]
    phrase_proximity           {0, 0.03, 0.08, 0.15, 0.25}
    phrase_matches             [0, 0.4]
    contextual_relevance       [0, 0.35]
    validate_answer_type       [0, 0.3]
    detect_negation_context    [0, 0.4]
    concept_bonus              [0, 0.35]
"""

import re
from typing import List, Dict, Optional, Sequence, Any
import logging

from ..common.text_normalizer import (
    normalize_lower,
    word_root,
    fuzzy_variants,
    fuzzy_match,
)
from .lexicon import (
    ANSWER_TYPE_INDICATORS,
    NEGATION_WORDS,
    NEGATION_WINDOW,
    SENTENCE_DELIMITERS,
    normalized_entries,
)
from .domain_detectors import (
    detect_causality_indicators,
    detect_definition_indicators,
    detect_method_indicators,
)
from .models import QueryAnalysis, SearchContext
from config.search_config import FUZZY_CONFIG

logger = logging.getLogger('search')

_SENTENCE_SPLIT = re.compile(f"[{re.escape(SENTENCE_DELIMITERS)}]")

_ANSWER_TYPE_INDICATORS = {
    question_type: (normalized_entries(indicators), increment, cap)
    for question_type, (indicators, increment, cap) in ANSWER_TYPE_INDICATORS.items()
}

# (max word gap, score), checked in order
PROXIMITY_BANDS = ((5, 0.25), (10, 0.15), (20, 0.08), (40, 0.03))


def _fuzzy_credit(
    words: Sequence[str],
    normalized_doc: str,
    document_text: str,
    fuzzy_config: Dict[str, Any]
) -> float:
    """Fractional credit for long query words only matched approximately."""
    credit = 0.0

    for word in words:
        normalized_word = normalize_lower(word)

        if normalized_word in normalized_doc:
            continue
        root = word_root(normalized_word)
        if root and root in normalized_doc:
            continue

        if any(variant in normalized_doc for variant in fuzzy_variants(normalized_word)):
            credit += 0.85
            continue

        matches = fuzzy_match(normalized_word, document_text, fuzzy_config['match_threshold'])
        if matches:
            credit += matches[0].score * 0.9

    return credit


def keyword_score_with_fuzzy(
    query_words: Sequence[str],
    key_terms: Sequence[str],
    document_text: str,
    analysis: QueryAnalysis,
    fuzzy_config: Optional[Dict[str, Any]] = None,
    context: Optional[SearchContext] = None
) -> float:
    """
    Keyword overlap between query and document, with fuzzy fallback.

    Exact substring hits count 1 per query word and root hits 0.7. When
    the exact ratio falls below fuzzy_config['min_exact_score'], up to
    'max_terms' long query words get approximate credit. Concepts add
    1.0 per contained concept and 0.5 per root hit.

    Args:
        query_words: Search words of the processed query
        key_terms: Key terms of the processed query
        document_text: Document snippet
        analysis: Query analysis
        fuzzy_config: Fuzzy matching settings (defaults to FUZZY_CONFIG)
        context: Per-request context, used to log fuzzy matching once

    Returns:
        Score in [0, 1]
    """
    if not document_text or not query_words:
        return 0.0

    fuzzy_config = fuzzy_config or FUZZY_CONFIG
    normalized_doc = normalize_lower(document_text)
    key_term_set = set(key_terms)

    exact_matches = 0
    root_matches = 0.0
    concept_matches = 0.0
    fuzzy_matches = 0.0
    single_word_frequency = 0

    for word in query_words:
        normalized_word = normalize_lower(word)

        if normalized_word in normalized_doc:
            exact_matches += 1
            if len(query_words) == 1:
                single_word_frequency = normalized_doc.count(normalized_word) or 1
            if normalized_word in key_term_set:
                concept_matches += 0.5
        else:
            root = word_root(normalized_word)
            if root and root in normalized_doc:
                root_matches += 0.7

    initial_score = exact_matches + root_matches * 0.7
    exact_ratio = initial_score / len(query_words)

    if fuzzy_config['enabled'] and exact_ratio < fuzzy_config['min_exact_score']:
        eligible = [
            word for word in query_words
            if len(word) >= fuzzy_config['min_word_length']
        ][:fuzzy_config['max_terms']]

        if eligible:
            if context is not None and not context.fuzzy_logged:
                context.fuzzy_logged = True
                logger.debug(
                    f"[{context.request_id}] Fuzzy matching engaged for: {', '.join(eligible)}"
                )
            fuzzy_matches = _fuzzy_credit(eligible, normalized_doc, document_text, fuzzy_config)

    found_concepts = set()
    for concept in analysis.concepts:
        normalized_concept = normalize_lower(concept)
        if normalized_concept in normalized_doc:
            found_concepts.add(concept)
            concept_matches += 1.0
        else:
            root = word_root(normalized_concept)
            if root and root in normalized_doc:
                concept_matches += 0.5

    total_matches = exact_matches + fuzzy_matches + root_matches + concept_matches
    max_possible = len(query_words) + len(analysis.concepts)
    score = total_matches / max_possible

    if len(query_words) == 1 and exact_matches >= 1:
        score = max(score, 0.95)
        if single_word_frequency > 1:
            score = min(1.0, score + min(0.05, single_word_frequency * 0.005))

    if len(found_concepts) >= 2:
        score *= 1.3

    if fuzzy_matches > 0:
        score *= 1.1

    return max(0.0, min(1.0, score))


def phrase_proximity(document_text: str, key_terms: Sequence[str]) -> float:
    """
    Score the smallest word gap between two different key terms.

    A word matches a term when either contains the other.

    Returns:
        0.25 / 0.15 / 0.08 / 0.03 for gaps up to 5 / 10 / 20 / 40, else 0
    """
    if not document_text or len(key_terms) < 2:
        return 0.0

    words = normalize_lower(document_text).split()

    positions: Dict[str, List[int]] = {}
    for term in key_terms:
        normalized_term = normalize_lower(term)
        found = [i for i, word in enumerate(words) if normalized_term in word or word in normalized_term]
        if found:
            positions[term] = found

    if len(positions) < 2:
        return 0.0

    found_terms = list(positions)
    min_distance = min(
        abs(pos1 - pos2)
        for i, term1 in enumerate(found_terms)
        for term2 in found_terms[i + 1:]
        for pos1 in positions[term1]
        for pos2 in positions[term2]
    )

    for max_gap, score in PROXIMITY_BANDS:
        if min_distance <= max_gap:
            return score
    return 0.0


def phrase_matches(document_text: str, query: str) -> float:
    """
    Reward query n-grams (n = 2..5) contained in the document.

    Each contained phrase longer than 5 characters adds min(0.15, n * 0.08).

    Returns:
        Score in [0, 0.4]
    """
    if not document_text or not query:
        return 0.0

    query_words = [w for w in normalize_lower(query).split() if len(w) > 1]
    normalized_doc = normalize_lower(document_text)

    score = 0.0
    for n in range(2, min(5, len(query_words)) + 1):
        for i in range(len(query_words) - n + 1):
            phrase = ' '.join(query_words[i:i + n])
            if len(phrase) > 5 and phrase in normalized_doc:
                score += min(0.15, n * 0.08)

    return min(0.4, score)


def contextual_relevance(document_text: str, key_terms: Sequence[str]) -> float:
    """
    Score how densely key terms cluster within single sentences.

    Sentences shorter than 10 characters are ignored. The best sentence's
    fraction of terms (or their roots) found is weighted 0.20; two or more
    sentences holding at least two terms each add 0.10.

    Returns:
        Score in [0, 0.35]
    """
    if not document_text or not key_terms:
        return 0.0

    normalized_doc = normalize_lower(document_text)
    term_forms = []
    for term in key_terms:
        normalized_term = normalize_lower(term)
        term_forms.append((normalized_term, word_root(normalized_term)))

    max_sentence_score = 0.0
    multi_term_sentences = 0

    for sentence in _SENTENCE_SPLIT.split(normalized_doc):
        if len(sentence.strip()) < 10:
            continue

        terms_found = sum(
            1 for term, root in term_forms
            if term in sentence or (root and root in sentence)
        )

        if terms_found >= 2:
            multi_term_sentences += 1

        max_sentence_score = max(max_sentence_score, terms_found / len(term_forms))

    bonus = 0.10 if multi_term_sentences >= 2 else 0.0
    return min(0.35, max_sentence_score * 0.20 + bonus)


def validate_answer_type(document_text: str, analysis: QueryAnalysis) -> float:
    """Score indicators of the answer type the question asks for."""
    if not document_text or not analysis.question_type:
        return 0.0

    entry = _ANSWER_TYPE_INDICATORS.get(analysis.question_type)
    if entry is None:
        return 0.0

    indicators, increment, cap = entry
    normalized_doc = normalize_lower(document_text)
    matches = sum(1 for indicator in indicators if indicator in normalized_doc)

    return min(cap, matches * increment)


def detect_negation_context(document_text: str, key_terms: Sequence[str]) -> float:
    """
    Penalize key terms preceded by a negation word.

    Every negation word within NEGATION_WINDOW words before a term
    occurrence adds 0.15.

    Returns:
        Penalty in [0, 0.4]
    """
    if not document_text or not key_terms:
        return 0.0

    words = normalize_lower(document_text).split()
    penalty = 0.0

    for term in key_terms:
        normalized_term = normalize_lower(term)
        for index, word in enumerate(words):
            if normalized_term in word or word in normalized_term:
                for preceding in words[max(0, index - NEGATION_WINDOW):index]:
                    if preceding in NEGATION_WORDS:
                        penalty += 0.15

    return min(0.4, penalty)


def concept_bonus(document_text: str, analysis: QueryAnalysis) -> float:
    """
    Bonus for questions whose concepts and answer patterns appear.

    Only questions score: 0.05 per contained concept, 0.05 more for two or
    more, plus 0.20 / 0.15 / 0.15 of the definition / causality / method
    detector scores for the needs the question has.

    Returns:
        Score in [0, 0.35]
    """
    if not document_text or not analysis.is_question:
        return 0.0

    normalized_doc = normalize_lower(document_text)
    concepts_found = sum(
        1 for concept in analysis.concepts
        if normalize_lower(concept) in normalized_doc
    )

    bonus = concepts_found * 0.05
    if concepts_found >= 2:
        bonus += 0.05

    if analysis.needs_definition:
        bonus += detect_definition_indicators(document_text, analysis) * 0.20
    if analysis.needs_causality:
        bonus += detect_causality_indicators(document_text, analysis) * 0.15
    if analysis.needs_method:
        bonus += detect_method_indicators(document_text, analysis) * 0.15

    return min(0.35, bonus)
