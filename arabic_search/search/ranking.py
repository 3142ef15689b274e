"""
Score combination and the re-rank pass.

combine_scores() merges the per-document signals into one combined score
in [0, 1.5]. re_rank_top_results() recomputes the contextual signals for the
best candidates and stretches scores around the acceptance threshold so
acceptable results separate from marginal ones.
"""

from dataclasses import dataclass
from typing import List, Dict, Optional, Sequence, Any
import logging

from .document_scoring import (
    contextual_relevance,
    phrase_matches,
    validate_answer_type,
    detect_negation_context,
)
from .models import QueryAnalysis, ScoredDocument, RankedDocument
from config.search_config import SCORING_CONFIG, RERANKING_CONFIG

logger = logging.getLogger('search')


@dataclass(frozen=True)
class ScoreWeights:
    """Weights of the four base signals in the combined score."""
    tfidf: float
    keyword: float
    proximity: float
    phrase: float


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def select_weights(
    word_count: int,
    is_question: bool,
    config: Optional[Dict[str, Any]] = None
) -> ScoreWeights:
    """
    Pick the weight profile for the query shape.

    Short queries (up to 2 search words) lean on keyword overlap, longer
    questions and plain queries on TF-IDF similarity.
    """
    config = config or SCORING_CONFIG

    if word_count <= config['short_query_max_words']:
        return ScoreWeights(*config['short_query_weights'])
    if is_question:
        return ScoreWeights(*config['question_weights'])
    return ScoreWeights(*config['default_weights'])


def tfidf_multiplier(tfidf_similarity: float, config: Optional[Dict[str, Any]] = None) -> float:
    """Confidence in [0, 1] scaling the pattern bonuses."""
    config = config or SCORING_CONFIG
    return _clamp(tfidf_similarity / config['min_tfidf_for_full_bonus'], 0.0, 1.0)


def combine_scores(
    doc: ScoredDocument,
    analysis: QueryAnalysis,
    word_count: int,
    config: Optional[Dict[str, Any]] = None
) -> float:
    """
    Combine a document's signals into one score.

    Definition, method and causality bonuses are scaled by the TF-IDF
    multiplier so pattern matches alone cannot lift an irrelevant document.
    Sets doc.tfidf_multiplier as a side effect.

    Args:
        doc: Document with every signal filled in
        analysis: Query analysis
        word_count: Number of search words in the processed query
        config: Scoring settings (defaults to SCORING_CONFIG)

    Returns:
        Combined score in [0, max_combined_score]
    """
    config = config or SCORING_CONFIG
    weights = select_weights(word_count, analysis.is_question, config)

    score = (
        _clamp(doc.tfidf_similarity, 0.0, 1.0) * weights.tfidf
        + _clamp(doc.keyword_score, 0.0, 1.0) * weights.keyword
        + _clamp(doc.proximity_score, 0.0, 1.0) * weights.proximity
        + _clamp(doc.phrase_score, 0.0, 1.0) * weights.phrase
    )

    multiplier = tfidf_multiplier(doc.tfidf_similarity, config)
    doc.tfidf_multiplier = multiplier

    if analysis.needs_definition and doc.definition_score > 0:
        score += doc.definition_score * config['definition_bonus_weight'] * multiplier
    if analysis.needs_method and doc.method_score > 0:
        score += doc.method_score * config['method_bonus_weight'] * multiplier
    if analysis.needs_causality and doc.causality_score > 0:
        score += doc.causality_score * config['causality_bonus_weight'] * multiplier
    if analysis.needs_quotes and doc.quote_score > 0:
        score += doc.quote_score * config['quote_bonus_weight']

    score += doc.context_score * config['context_weight']
    score += doc.answer_type_score * config['answer_type_weight']
    score += doc.concept_bonus * config['concept_bonus_weight']

    return _clamp(score, 0.0, config['max_combined_score'])


def stretch_score(score: float, config: Optional[Dict[str, Any]] = None) -> float:
    """
    Nonlinear stretch around the acceptance threshold, clamped to [0, 1].

    Scores above the upper threshold are pushed up by a fixed offset and a
    steeper slope; scores between the thresholds are multiplied.
    """
    config = config or RERANKING_CONFIG

    upper = config['stretch_upper_threshold']
    if score > upper:
        score = upper + (score - upper) * config['stretch_upper_slope'] + config['stretch_upper_offset']
    elif score > config['stretch_lower_threshold']:
        score = score * config['stretch_lower_multiplier']

    return _clamp(score, 0.0, 1.0)


def re_rank_top_results(
    top_results: Sequence[ScoredDocument],
    query: str,
    analysis: QueryAnalysis,
    expanded_terms: Sequence[str],
    key_terms: Sequence[str],
    config: Optional[Dict[str, Any]] = None
) -> List[RankedDocument]:
    """
    Re-rank the best candidates with contextual signals.

    Args:
        top_results: Candidates sorted by combined score
        query: Normalized query (for phrase matching)
        analysis: Query analysis
        expanded_terms: Ranked terms used for contextual relevance
        key_terms: Key terms checked for negation
        config: Re-ranking settings (defaults to RERANKING_CONFIG)

    Returns:
        Ranked documents sorted by re_rank_score, best first
    """
    config = config or RERANKING_CONFIG
    ranked = []

    for result in top_results:
        doc = RankedDocument.from_scored(result)

        doc.context_score = contextual_relevance(doc.text_snippet, expanded_terms)
        doc.phrase_score = phrase_matches(doc.text_snippet, query)
        doc.answer_type_score = validate_answer_type(doc.text_snippet, analysis)
        doc.negation_penalty = detect_negation_context(doc.text_snippet, key_terms)

        score = (
            _clamp(doc.combined_score, 0.0, SCORING_CONFIG['max_combined_score']) * config['combined_weight']
            + doc.context_score * config['context_weight']
            + doc.phrase_score * config['phrase_weight']
            + doc.answer_type_score * config['answer_type_weight']
            - doc.negation_penalty * config['negation_weight']
        )

        doc.re_rank_score = stretch_score(score, config)
        ranked.append(doc)

    ranked.sort(key=lambda d: d.re_rank_score, reverse=True)
    return ranked
