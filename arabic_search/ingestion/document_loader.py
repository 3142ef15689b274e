"""
Document loading for the SQLite store.

Reads document snippets from a JSON array or JSON Lines file, stores them
with their processed (cleaned, normalized) text and rebuilds the term
statistics used for IDF.
"""

import json
import sqlite3
from collections import Counter
from pathlib import Path
from typing import List, Dict, Optional, Iterator, Any
import logging

from pydantic import BaseModel, Field, ValidationError, field_validator

from ..common.text_normalizer import TextNormalizer
from ..search.tfidf import vocabulary_tokens

logger = logging.getLogger('ingestion')


class DocumentRecord(BaseModel):
    """One document snippet as found in an import file."""
    file_id: str = Field(..., min_length=1)
    page_index: int = Field(..., ge=0)
    text_snippet: str = Field(..., min_length=1)
    processed_text: Optional[str] = None

    @field_validator('file_id', mode='before')
    @classmethod
    def coerce_file_id(cls, v):
        """File ids may be numeric in exported data."""
        if isinstance(v, int):
            return str(v)
        return v


def read_records(path: Path) -> Iterator[Dict[str, Any]]:
    """
    Yield raw records from a JSON array or JSON Lines file.

    Args:
        path: Input file

    Raises:
        ValueError: If the file is neither a JSON array nor JSON Lines
    """
    with open(path, 'r', encoding='utf-8') as f:
        content = f.read()

    stripped = content.lstrip()
    if stripped.startswith('['):
        data = json.loads(stripped)
        if not isinstance(data, list):
            raise ValueError(f"Expected a JSON array in {path}")
        yield from data
        return

    for line_number, line in enumerate(content.splitlines(), start=1):
        line = line.strip()
        if not line:
            continue
        try:
            yield json.loads(line)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON on line {line_number} of {path}: {e}") from e


class DocumentLoader:
    """Stores document snippets and maintains term statistics."""

    def __init__(self, db_connection: sqlite3.Connection):
        """
        Initialize document loader.

        Args:
            db_connection: SQLite database connection (schema initialized)
        """
        self.db = db_connection
        self.normalizer = TextNormalizer()

    def save_documents(self, records: List[Dict[str, Any]]) -> Dict[str, int]:
        """
        Validate and insert document records.

        Args:
            records: Raw record dictionaries

        Returns:
            Dictionary with 'saved' and 'skipped' counts
        """
        stats = {'saved': 0, 'skipped': 0}
        cursor = self.db.cursor()

        for index, raw in enumerate(records):
            try:
                record = DocumentRecord.model_validate(raw)
            except ValidationError as e:
                logger.warning(f"Skipping invalid record #{index}: {e.error_count()} errors")
                stats['skipped'] += 1
                continue

            text = self.normalizer.clean(record.text_snippet)
            if not text:
                stats['skipped'] += 1
                continue

            processed = record.processed_text or self.normalizer.processed_text(text)

            cursor.execute("""
                INSERT INTO documents (file_id, page_index, text_snippet, processed_text)
                VALUES (?, ?, ?, ?)
            """, (record.file_id, record.page_index, text, processed))
            stats['saved'] += 1

        self.db.commit()
        logger.info(f"Batch save complete - Saved: {stats['saved']}, Skipped: {stats['skipped']}")
        return stats

    def load_file(self, path: str) -> Dict[str, int]:
        """
        Load a JSON/JSONL file and refresh term statistics.

        Args:
            path: Path to the import file

        Returns:
            Dictionary with saved, skipped and terms counts
        """
        records = list(read_records(Path(path)))
        logger.info(f"Read {len(records)} records from {path}")

        stats = self.save_documents(records)
        stats['terms'] = self.refresh_term_statistics()
        return stats

    def refresh_term_statistics(self) -> int:
        """
        Recompute document frequencies and the total document count.

        Document frequency counts each normalized token of a snippet once.

        Returns:
            Number of distinct terms stored
        """
        cursor = self.db.cursor()
        frequencies: Counter = Counter()
        total = 0

        for row in cursor.execute("SELECT text_snippet, processed_text FROM documents"):
            frequencies.update(set(vocabulary_tokens(row[0])))
            if row[1] is not None:
                total += 1

        cursor.execute("DELETE FROM term_statistics")
        cursor.executemany(
            "INSERT INTO term_statistics (term, document_frequency) VALUES (?, ?)",
            frequencies.items()
        )
        cursor.execute("""
            INSERT INTO search_metadata (key, value, updated_at)
            VALUES ('total_documents', ?, CURRENT_TIMESTAMP)
            ON CONFLICT(key) DO UPDATE SET
                value = excluded.value,
                updated_at = CURRENT_TIMESTAMP
        """, (str(total),))
        self.db.commit()

        logger.info(f"Term statistics refreshed: {len(frequencies)} terms over {total} documents")
        return len(frequencies)
