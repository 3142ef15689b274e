"""
Term quality ranking with a bounded, thread-safe cache.

Query concepts, their roots and their article-stripped forms are scored by
how discriminative they are likely to be. The top terms drive the
full-text candidate query.
"""

import threading
from collections import OrderedDict
from typing import List, Dict, Optional, Iterable
import logging

from ..common.text_normalizer import normalize, word_root
from .lexicon import DEFINITE_ARTICLE, VERY_COMMON_SHORT_WORDS
from .models import TermMetadata, RankedTerm

logger = logging.getLogger('search')


def build_term_metadata(terms: Iterable[str]) -> List[TermMetadata]:
    """
    Derive candidate search terms from query concepts and words.

    For every term whose normalized form has at least 2 characters:
    - the normalized term itself (original query term)
    - its root, if different and at least 3 characters
    - its article-stripped form, if prefixed and longer than 4 characters

    Args:
        terms: Concepts followed by search words

    Returns:
        Unique metadata entries in discovery order
    """
    metadata: Dict[str, TermMetadata] = {}

    for term in terms:
        normalized = normalize(term)
        if len(normalized) < 2:
            continue

        metadata.setdefault(normalized, TermMetadata(
            term=normalized,
            length=len(normalized),
            has_prefix=normalized.startswith(DEFINITE_ARTICLE),
            is_root=False,
            is_original_query_term=True,
            original_term=term,
        ))

        root = word_root(normalized)
        if root and root != normalized and len(root) >= 3:
            metadata.setdefault(root, TermMetadata(
                term=root,
                length=len(root),
                has_prefix=False,
                is_root=True,
                is_original_query_term=False,
                original_term=term,
            ))

        if normalized.startswith(DEFINITE_ARTICLE) and len(normalized) > 4:
            stripped = normalized[len(DEFINITE_ARTICLE):]
            metadata.setdefault(stripped, TermMetadata(
                term=stripped,
                length=len(stripped),
                has_prefix=False,
                is_root=False,
                is_original_query_term=False,
                original_term=term,
            ))

    return list(metadata.values())


def rank_term_quality(meta: TermMetadata) -> int:
    """
    Score how discriminative a term is.

    Args:
        meta: Term metadata

    Returns:
        Integer quality score (higher is better)
    """
    score = 0

    if meta.is_original_query_term:
        score += 100

    if meta.length >= 5:
        score += 10
    elif meta.length == 4:
        score += 7
    elif meta.length == 3:
        score += 4
    else:
        score += 1

    if not meta.has_prefix:
        score += 5
    if not meta.is_root:
        score += 3

    if meta.term in VERY_COMMON_SHORT_WORDS:
        score -= 20

    if len(meta.term) >= 4 and not meta.has_prefix and not meta.is_root:
        score += 4

    return score


def rank_terms(metadata: List[TermMetadata]) -> List[RankedTerm]:
    """Score and sort terms, best first; ties keep discovery order."""
    ranked = [
        RankedTerm(
            term=meta.term,
            length=meta.length,
            has_prefix=meta.has_prefix,
            is_root=meta.is_root,
            is_original_query_term=meta.is_original_query_term,
            original_term=meta.original_term,
            quality_score=rank_term_quality(meta),
        )
        for meta in metadata
    ]
    ranked.sort(key=lambda t: t.quality_score, reverse=True)
    return ranked


class TermRankingCache:
    """
    Bounded term ranking cache with FIFO eviction.

    Keys are order independent: the term list is sorted and pipe-joined.
    Concurrent writers may recompute the same entry; the stored value is
    identical either way.
    """

    def __init__(self, max_size: int = 1000):
        """
        Initialize cache.

        Args:
            max_size: Maximum number of entries before the oldest is evicted
        """
        self.max_size = max_size
        self._entries: "OrderedDict[str, List[RankedTerm]]" = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    @staticmethod
    def make_key(terms: Iterable[str]) -> str:
        return '|'.join(sorted(terms))

    def get(self, terms: Iterable[str]) -> Optional[List[RankedTerm]]:
        key = self.make_key(terms)
        with self._lock:
            ranking = self._entries.get(key)
            if ranking is None:
                self.misses += 1
                return None
            self.hits += 1
            return list(ranking)

    def set(self, terms: Iterable[str], ranking: List[RankedTerm]):
        key = self.make_key(terms)
        with self._lock:
            if key not in self._entries and len(self._entries) >= self.max_size:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug(f"Term ranking cache full, evicted: {evicted}")
            self._entries[key] = list(ranking)

    def clear(self):
        with self._lock:
            self._entries.clear()
            self.hits = 0
            self.misses = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def stats(self) -> Dict[str, int]:
        """Cache size and hit/miss counters."""
        with self._lock:
            return {
                'size': len(self._entries),
                'max_size': self.max_size,
                'hits': self.hits,
                'misses': self.misses,
            }


class TermRanker:
    """Ranks term metadata through a TermRankingCache."""

    def __init__(self, cache: Optional[TermRankingCache] = None):
        self.cache = cache if cache is not None else TermRankingCache()

    def rank(self, metadata: List[TermMetadata]) -> List[RankedTerm]:
        """
        Rank terms, reusing a cached ranking for the same term set.

        Args:
            metadata: Output of build_term_metadata()

        Returns:
            Ranked terms, best first
        """
        terms = [meta.term for meta in metadata]

        ranking = self.cache.get(terms)
        if ranking is not None:
            logger.debug(f"Term ranking cache hit for {len(terms)} terms")
            return ranking

        ranking = rank_terms(metadata)
        self.cache.set(terms, ranking)
        return ranking
