"""
Corpus statistics used by TF-IDF scoring.

Wraps a TermStatisticsSource with a time-based document count cache and
batched IDF lookups. Lookup failures never reach the ranking computation:
the count falls back to the last cached value (or 1) and IDF lookups to an
empty map, which makes vectorize() use ln(total_docs).
"""

import math
import threading
import time
from typing import List, Dict, Optional, Callable
import logging

from .models import TermStatisticsSource
from config.search_config import CACHE_CONFIG

logger = logging.getLogger('search')


class DocumentCountCache:
    """Total document count refreshed at most every refresh_interval seconds."""

    def __init__(
        self,
        refresh_interval: float = 300,
        clock: Callable[[], float] = time.monotonic
    ):
        self.refresh_interval = refresh_interval
        self._clock = clock
        self._lock = threading.Lock()
        self._value = 0
        self._last_updated: Optional[float] = None

    def get_fresh(self) -> Optional[int]:
        """Cached count if it is positive and inside the refresh window."""
        with self._lock:
            if (
                self._value > 0
                and self._last_updated is not None
                and self._clock() - self._last_updated < self.refresh_interval
            ):
                return self._value
            return None

    def set(self, value: int):
        with self._lock:
            self._value = value
            self._last_updated = self._clock()

    @property
    def value(self) -> int:
        with self._lock:
            return self._value

    def stats(self) -> Dict:
        with self._lock:
            return {
                'total_documents': self._value,
                'age_seconds': (
                    round(self._clock() - self._last_updated, 1)
                    if self._last_updated is not None else None
                ),
            }


class SearchMetadata:
    """Document count and IDF lookups over a term statistics source."""

    def __init__(
        self,
        source: TermStatisticsSource,
        count_cache: Optional[DocumentCountCache] = None,
        batch_size: Optional[int] = None
    ):
        """
        Initialize search metadata.

        Args:
            source: Term statistics store
            count_cache: Document count cache (created from CACHE_CONFIG if omitted)
            batch_size: Maximum terms per frequency lookup
        """
        self.source = source
        self.count_cache = count_cache or DocumentCountCache(
            CACHE_CONFIG['refresh_interval_seconds']
        )
        self.batch_size = batch_size or CACHE_CONFIG['idf_batch_size']

    def total_documents(self) -> int:
        """
        Total number of documents in the corpus.

        Reads the stored metadata value; when absent, counts documents and
        stores the result.

        Returns:
            Document count (last cached value or 1 on failure)
        """
        cached = self.count_cache.get_fresh()
        if cached is not None:
            return cached

        try:
            total = self.source.stored_total_documents()
            if total is None:
                total = self.source.count_documents()
                self.count_cache.set(total)
                self.source.store_total_documents(total)
            else:
                self.count_cache.set(total)
            return total

        except Exception as e:
            logger.warning(f"Document count lookup failed, using cached value: {e}")
            return self.count_cache.value or 1

    def batch_idf(self, terms: List[str], total_docs: Optional[int] = None) -> Dict[str, float]:
        """
        IDF values for a list of terms.

        IDF = ln(total_docs / document_frequency); terms without statistics
        get ln(total_docs).

        Args:
            terms: Terms to look up
            total_docs: Corpus size (looked up when omitted)

        Returns:
            Mapping term -> IDF (empty on failure)
        """
        if not total_docs:
            total_docs = self.total_documents()

        if total_docs <= 0 or not terms:
            return {}

        idf: Dict[str, float] = {}
        for start in range(0, len(terms), self.batch_size):
            batch = terms[start:start + self.batch_size]

            try:
                frequencies = self.source.document_frequencies(batch)
            except Exception as e:
                logger.warning(f"Term statistics lookup failed, using fallback IDF: {e}")
                return {}

            for term in batch:
                frequency = frequencies.get(term)
                if frequency:
                    idf[term] = math.log(total_docs / frequency)
                else:
                    idf[term] = math.log(total_docs)

        return idf
