"""
Semantic ranking engine for Arabic document snippets.

SearchEngine.rank() runs the whole request pipeline:
query analysis -> term ranking (cached) -> candidate fetch -> TF-IDF ->
per-document signals -> combined score -> re-rank -> dedup -> final filter.
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from typing import List, Dict, Optional, Any, Sequence
import logging

from ..common.text_normalizer import normalize
from .models import (
    CandidateDocument,
    CandidateSource,
    ProcessedQuery,
    ScoredDocument,
    SearchContext,
    SearchOutcome,
    SearchStatus,
    TermStatisticsSource,
)
from .query_analyzer import QueryAnalyzer
from .term_ranker import TermRanker, TermRankingCache, build_term_metadata
from .search_metadata import SearchMetadata, DocumentCountCache
from .tfidf import build_vocabulary, vectorize, cosine_similarity
from .document_scoring import (
    keyword_score_with_fuzzy,
    phrase_proximity,
    phrase_matches,
    contextual_relevance,
    validate_answer_type,
    concept_bonus,
)
from .domain_detectors import (
    detect_quotes_and_impressions,
    detect_causality_indicators,
    detect_method_indicators,
    detect_definition_indicators,
)
from .ranking import combine_scores, re_rank_top_results
from .deduplication import deduplicate_results
from config.search_config import (
    SEARCH_CONFIG,
    FUZZY_CONFIG,
    SCORING_CONFIG,
    RERANKING_CONFIG,
    DEDUP_CONFIG,
    CACHE_CONFIG,
)

logger = logging.getLogger('search')


class SearchError(Exception):
    """Raised when the ranking pipeline fails unexpectedly."""


class SearchEngine:
    """
    Thread-safe ranking engine.

    Features:
    - Arabic-aware query analysis and term ranking
    - TF-IDF plus keyword, proximity, phrase and domain pattern signals
    - Re-rank pass and hash-based deduplication
    - Shared term ranking and document count caches

    One instance is meant to live for the whole process; its caches are
    shared across overlapping requests.
    """

    def __init__(
        self,
        candidate_source: CandidateSource,
        term_statistics: TermStatisticsSource,
        term_ranker: Optional[TermRanker] = None,
        metadata: Optional[SearchMetadata] = None,
        scoring_workers: Optional[int] = None
    ):
        """
        Initialize search engine.

        Args:
            candidate_source: Store returning candidate documents
            term_statistics: Store holding document frequencies
            term_ranker: Term ranker (a fresh cache is created if omitted)
            metadata: Corpus statistics wrapper (built over term_statistics if omitted)
            scoring_workers: Threads for per-document scoring (1 = sequential)
        """
        self.candidate_source = candidate_source
        self.term_statistics = term_statistics
        self.term_ranker = term_ranker or TermRanker(TermRankingCache(CACHE_CONFIG['max_size']))
        self.metadata = metadata or SearchMetadata(
            term_statistics,
            DocumentCountCache(CACHE_CONFIG['refresh_interval_seconds'])
        )
        self.query_analyzer = QueryAnalyzer()
        self.scoring_workers = scoring_workers or SCORING_CONFIG['parallel_workers']
        self.fuzzy_config = FUZZY_CONFIG
        self.rw_lock = threading.RLock()

        self._scoring_pool: Optional[ThreadPoolExecutor] = None
        if self.scoring_workers > 1:
            self._scoring_pool = ThreadPoolExecutor(
                max_workers=self.scoring_workers,
                thread_name_prefix="scoring"
            )

    @classmethod
    def from_database(cls, db_path: Optional[str] = None, **kwargs) -> 'SearchEngine':
        """Build an engine over the SQLite document store."""
        from ..ingestion.candidate_source import SQLiteDocumentStore

        store = SQLiteDocumentStore(db_path)
        store.db.initialize_schema()
        return cls(store, store, **kwargs)

    def rank(self, query: str, limit: Optional[int] = None) -> SearchOutcome:
        """
        Rank documents against a query.

        Args:
            query: Raw query string
            limit: Maximum results (defaults to SEARCH_CONFIG['max_final_results'])

        Returns:
            SearchOutcome; status NO_TERMS when the query has no meaningful
            words, NO_MATCHES when no candidate was found

        Raises:
            ValueError: If the query is too long
            SearchError: If scoring fails
        """
        context = SearchContext()
        limit = limit or SEARCH_CONFIG['max_final_results']

        processed = self.query_analyzer.process(query)
        context.mark('query_processed')

        if not processed.has_content():
            logger.info(f"[{context.request_id}] No meaningful terms in query: '{query}'")
            return self._empty_outcome(SearchStatus.NO_TERMS, processed, context)

        logger.info(
            f"[{context.request_id}] Executing search: query='{query}', "
            f"words={list(processed.words)}, question_type={processed.analysis.question_type}"
        )

        try:
            return self._run_pipeline(query, processed, limit, context)
        except SearchError:
            raise
        except Exception as e:
            logger.error(f"[{context.request_id}] Search failed: {e}", exc_info=True)
            raise SearchError(f"Search failed: {e}") from e

    def _run_pipeline(
        self,
        query: str,
        processed: ProcessedQuery,
        limit: int,
        context: SearchContext
    ) -> SearchOutcome:
        analysis = processed.analysis

        ranked_terms = self.term_ranker.rank(
            build_term_metadata(list(analysis.concepts) + list(processed.words))
        )
        core_terms = [t.term for t in ranked_terms if t.is_original_query_term]
        scoring_terms = [t.term for t in ranked_terms]
        context.mark('terms_ranked')

        if not core_terms:
            return self._empty_outcome(SearchStatus.NO_TERMS, processed, context)

        search_terms = list(dict.fromkeys(
            core_terms
            + [normalize(concept) for concept in analysis.concepts]
            + [normalize(word) for word in processed.words]
        ))
        search_terms = [term for term in search_terms if len(term) > 1]
        important_terms = [t.term for t in ranked_terms[:SEARCH_CONFIG['important_terms']]]

        candidates = self.candidate_source.fetch_candidates(
            important_terms=important_terms,
            expanded_terms=search_terms,
            fallback_terms=list(processed.words[:SEARCH_CONFIG['fallback_terms']]),
            limit=SEARCH_CONFIG['max_initial_candidates'],
            query_word_count=len(query.split())
        )
        context.mark('candidates_fetched')

        if not candidates:
            logger.info(f"[{context.request_id}] No candidates for query: '{query}'")
            return self._empty_outcome(SearchStatus.NO_MATCHES, processed, context)

        total_docs = self.metadata.total_documents()
        vocabulary = build_vocabulary(c.text_snippet for c in candidates)
        context.mark('vocabulary_built')

        idf = self.metadata.batch_idf(list(vocabulary), total_docs)
        query_vector = vectorize(processed.normalized, vocabulary, idf, total_docs)
        context.mark('idf_loaded')

        def score(candidate: CandidateDocument) -> ScoredDocument:
            return self._score_candidate(
                candidate, processed, scoring_terms,
                vocabulary, idf, total_docs, query_vector, context
            )

        if self._scoring_pool is not None:
            scored = list(self._scoring_pool.map(score, candidates))
        else:
            scored = [score(candidate) for candidate in candidates]

        scored.sort(key=lambda d: d.combined_score, reverse=True)
        context.mark('scoring_completed')

        reranked = re_rank_top_results(
            scored[:RERANKING_CONFIG['top_n']],
            processed.normalized,
            analysis,
            scoring_terms,
            processed.key_terms
        )
        context.mark('rerank_completed')

        unique = deduplicate_results(reranked, DEDUP_CONFIG)
        context.mark('dedup_completed')

        results = [
            doc for doc in unique
            if doc.re_rank_score >= SEARCH_CONFIG['min_rerank_score']
        ][:limit]

        query_time_ms = round(context.elapsed_ms(), 2)
        logger.debug(f"[{context.request_id}] Timings (ms): {context.marks}")
        logger.info(
            f"[{context.request_id}] Search completed: {len(results)} results returned, "
            f"{len(candidates)} candidates, {len(reranked) - len(unique)} duplicates removed, "
            f"{query_time_ms}ms"
        )

        return SearchOutcome(
            status=SearchStatus.OK,
            results=results,
            candidate_count=len(candidates),
            duplicates_removed=len(reranked) - len(unique),
            query_time_ms=query_time_ms,
            query=processed,
        )

    def _score_candidate(
        self,
        candidate: CandidateDocument,
        processed: ProcessedQuery,
        scoring_terms: Sequence[str],
        vocabulary: Dict[str, int],
        idf: Dict[str, float],
        total_docs: int,
        query_vector: List[float],
        context: SearchContext
    ) -> ScoredDocument:
        """Compute every signal and the combined score of one candidate."""
        analysis = processed.analysis
        text = candidate.text_snippet or ''
        doc = ScoredDocument(candidate)

        doc.tfidf_similarity = cosine_similarity(
            query_vector, vectorize(text, vocabulary, idf, total_docs)
        )
        doc.proximity_score = phrase_proximity(text, processed.key_terms)
        doc.keyword_score = keyword_score_with_fuzzy(
            processed.words, processed.key_terms, text, analysis,
            self.fuzzy_config, context
        )
        doc.concept_bonus = concept_bonus(text, analysis)

        if analysis.needs_causality:
            doc.causality_score = detect_causality_indicators(text, analysis)
        if analysis.needs_method:
            doc.method_score = detect_method_indicators(text, analysis)
        if analysis.needs_definition:
            doc.definition_score = detect_definition_indicators(text, analysis)

        doc.phrase_score = phrase_matches(text, processed.normalized)
        doc.context_score = contextual_relevance(text, scoring_terms)
        doc.answer_type_score = validate_answer_type(text, analysis)

        quotes = detect_quotes_and_impressions(text)
        doc.quote_score = quotes.quote_score
        doc.has_quotes = quotes.has_quotes

        doc.combined_score = combine_scores(doc, analysis, len(processed.words))
        return doc

    def _empty_outcome(
        self,
        status: SearchStatus,
        processed: ProcessedQuery,
        context: SearchContext
    ) -> SearchOutcome:
        return SearchOutcome(
            status=status,
            query_time_ms=round(context.elapsed_ms(), 2),
            query=processed,
        )

    def get_stats(self) -> Dict[str, Any]:
        """
        Get corpus and cache statistics.

        Returns:
            Dictionary with statistics
        """
        stats: Dict[str, Any] = {
            'total_documents': self.metadata.total_documents(),
            'term_cache': self.term_ranker.cache.stats(),
            'document_count_cache': self.metadata.count_cache.stats(),
        }

        store_stats = getattr(self.candidate_source, 'get_stats', None)
        if callable(store_stats):
            stats['store'] = store_stats()

        return stats

    def close(self):
        """Close connections and cleanup."""
        with self.rw_lock:
            if self._scoring_pool is not None:
                self._scoring_pool.shutdown(wait=True)
                self._scoring_pool = None

            close_source = getattr(self.candidate_source, 'close', None)
            if callable(close_source):
                close_source()

        logger.info("Search engine closed")
