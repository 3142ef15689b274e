"""
SQLite-backed document store.

Implements both datastore contracts the ranking engine consumes:
- candidate retrieval in three tiers (full-text, trigram supplement,
  trigram fallback over raw snippets)
- term statistics and the stored total document count

It also serves the document browsing endpoints.
"""

import sqlite3
from typing import List, Dict, Optional, Any, Iterable
import logging

from .database import Database
from ..search.models import CandidateDocument
from config.search_config import DATABASE_PATH, SEARCH_CONFIG

logger = logging.getLogger('search')

TOTAL_DOCUMENTS_KEY = 'total_documents'

_CANDIDATE_COLUMNS = "d.id, d.file_id, d.page_index, d.text_snippet, d.processed_text"


def _fts_term(term: str) -> str:
    """Quote a term as an FTS5 string literal."""
    return '"' + term.replace('"', '""') + '"'


def build_match_expression(important_terms: List[str], expanded_terms: List[str]) -> str:
    """
    FTS5 expression: (AND of important terms) OR (OR of expanded terms).

    Args:
        important_terms: Top ranked terms
        expanded_terms: All search terms

    Returns:
        MATCH expression ('' when there is nothing to match)
    """
    important = [_fts_term(t) for t in important_terms if t]
    expanded = [_fts_term(t) for t in expanded_terms if t]

    clauses = []
    if important:
        clauses.append('(' + ' AND '.join(important) + ')')
    if expanded:
        clauses.append('(' + ' OR '.join(expanded) + ')')

    return ' OR '.join(clauses)


def _row_to_candidate(row: sqlite3.Row) -> CandidateDocument:
    return CandidateDocument(
        id=row['id'],
        file_id=row['file_id'],
        page_index=row['page_index'],
        text_snippet=row['text_snippet'],
        processed_text=row['processed_text'],
    )


class SQLiteDocumentStore:
    """Candidate source and term statistics over the SQLite schema."""

    def __init__(self, db_path: Optional[str] = None, config: Optional[Dict[str, Any]] = None):
        """
        Initialize document store.

        Args:
            db_path: Path to SQLite database
            config: Retrieval settings (defaults to SEARCH_CONFIG)
        """
        self.db = Database(db_path or DATABASE_PATH)
        self.config = config or SEARCH_CONFIG

    def connect(self) -> sqlite3.Connection:
        return self.db.connect()

    # ------------------------------------------------------------------
    # Candidate retrieval
    # ------------------------------------------------------------------

    def fetch_candidates(
        self,
        important_terms: List[str],
        expanded_terms: List[str],
        fallback_terms: List[str],
        limit: int,
        query_word_count: int
    ) -> List[CandidateDocument]:
        """
        Fetch candidate documents for the ranked query terms.

        Tier 1: full-text match ranked by bm25.
        Tier 2: short queries (query_word_count up to supplement_max_query_words)
                with fewer than supplement_min_rows rows get trigram matches
                on processed text, newest first, appended.
        Tier 3: when nothing matched, trigram matches of the fallback terms
                on the raw snippet text, newest first.

        Args:
            important_terms: Top ranked terms (ANDed)
            expanded_terms: All search terms (ORed)
            fallback_terms: First meaningful query words
            limit: Maximum rows for tier 1
            query_word_count: Number of words in the raw query

        Returns:
            Candidate documents
        """
        threshold = (
            self.config['trigram_threshold_short']
            if query_word_count <= self.config['supplement_max_query_words']
            else self.config['trigram_threshold_default']
        )

        with self.db.lock:
            rows = self._full_text_candidates(important_terms, expanded_terms, limit)
            logger.debug(f"Full-text tier returned {len(rows)} rows")

            if (query_word_count <= self.config['supplement_max_query_words']
                    and len(rows) < self.config['supplement_min_rows']):
                seen = {row.id for row in rows}
                supplement = self._trigram_candidates(
                    'processed_text', expanded_terms, threshold, self.config['supplement_limit']
                )
                rows.extend(row for row in supplement if row.id not in seen)
                logger.debug(f"Trigram supplement raised candidates to {len(rows)}")

            if not rows:
                rows = self._trigram_candidates(
                    'text_snippet', fallback_terms, threshold, self.config['fallback_limit']
                )
                logger.debug(f"Trigram fallback returned {len(rows)} rows")

        return rows

    def _full_text_candidates(
        self,
        important_terms: List[str],
        expanded_terms: List[str],
        limit: int
    ) -> List[CandidateDocument]:
        expression = build_match_expression(important_terms, expanded_terms)
        if not expression:
            return []

        cursor = self.connect().execute(f"""
            SELECT {_CANDIDATE_COLUMNS}
            FROM documents_fts
            JOIN documents d ON d.id = documents_fts.rowid
            WHERE documents_fts MATCH ?
            ORDER BY bm25(documents_fts)
            LIMIT ?
        """, (expression, limit))

        return [_row_to_candidate(row) for row in cursor.fetchall()]

    def _trigram_candidates(
        self,
        column: str,
        terms: List[str],
        threshold: float,
        limit: int
    ) -> List[CandidateDocument]:
        terms = [t for t in terms if t]
        if not terms:
            return []

        # column is one of two fixed names, never user input
        condition = ' OR '.join([f"similarity(d.{column}, ?) >= ?"] * len(terms))
        params: List[Any] = []
        for term in terms:
            params.extend([term, threshold])
        params.append(limit)

        cursor = self.connect().execute(f"""
            SELECT {_CANDIDATE_COLUMNS}
            FROM documents d
            WHERE {condition}
            ORDER BY d.id DESC
            LIMIT ?
        """, params)

        return [_row_to_candidate(row) for row in cursor.fetchall()]

    # ------------------------------------------------------------------
    # Term statistics
    # ------------------------------------------------------------------

    def document_frequencies(self, terms: Iterable[str]) -> Dict[str, int]:
        """Document frequency of each known term."""
        terms = list(terms)
        if not terms:
            return {}

        placeholders = ','.join('?' * len(terms))
        with self.db.lock:
            cursor = self.connect().execute(
                f"SELECT term, document_frequency FROM term_statistics WHERE term IN ({placeholders})",
                terms
            )
            return {row['term']: row['document_frequency'] for row in cursor.fetchall()}

    def stored_total_documents(self) -> Optional[int]:
        """Total document count from search_metadata (None if absent)."""
        with self.db.lock:
            row = self.connect().execute(
                "SELECT value FROM search_metadata WHERE key = ?",
                (TOTAL_DOCUMENTS_KEY,)
            ).fetchone()
        return int(row['value']) if row else None

    def count_documents(self) -> int:
        """Count documents that have processed text."""
        with self.db.lock:
            row = self.connect().execute(
                "SELECT COUNT(*) AS count FROM documents WHERE processed_text IS NOT NULL"
            ).fetchone()
        return row['count']

    def store_total_documents(self, total: int):
        """Upsert the total document count."""
        with self.db.lock:
            conn = self.connect()
            conn.execute("""
                INSERT INTO search_metadata (key, value, updated_at)
                VALUES (?, ?, CURRENT_TIMESTAMP)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = CURRENT_TIMESTAMP
            """, (TOTAL_DOCUMENTS_KEY, str(total)))
            conn.commit()

    # ------------------------------------------------------------------
    # Browsing
    # ------------------------------------------------------------------

    def get_document(self, document_id: int) -> Optional[CandidateDocument]:
        """Fetch one document by id."""
        with self.db.lock:
            row = self.connect().execute(
                f"SELECT {_CANDIDATE_COLUMNS} FROM documents d WHERE d.id = ?",
                (document_id,)
            ).fetchone()
        return _row_to_candidate(row) if row else None

    def list_documents(self, page: int = 1, page_size: int = 30) -> Dict[str, Any]:
        """
        One page of documents ordered by id.

        Returns:
            Dict with documents, total, page, total_pages
        """
        page = max(1, page)
        offset = (page - 1) * page_size

        with self.db.lock:
            conn = self.connect()
            total = conn.execute("SELECT COUNT(*) AS count FROM documents").fetchone()['count']
            rows = conn.execute(
                f"SELECT {_CANDIDATE_COLUMNS} FROM documents d ORDER BY d.id LIMIT ? OFFSET ?",
                (page_size, offset)
            ).fetchall()

        return {
            'documents': [_row_to_candidate(row) for row in rows],
            'total': total,
            'page': page,
            'total_pages': (total + page_size - 1) // page_size,
        }

    def get_stats(self) -> Dict[str, Any]:
        """Row counts of the store tables."""
        with self.db.lock:
            conn = self.connect()
            documents = conn.execute("SELECT COUNT(*) AS count FROM documents").fetchone()['count']
            terms = conn.execute("SELECT COUNT(*) AS count FROM term_statistics").fetchone()['count']
            files = conn.execute(
                "SELECT COUNT(DISTINCT file_id) AS count FROM documents"
            ).fetchone()['count']

        return {
            'documents': documents,
            'files': files,
            'term_statistics': terms,
        }

    def close(self):
        with self.db.lock:
            self.db.close()
