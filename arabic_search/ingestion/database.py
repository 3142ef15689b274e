"""
Database initialization and management for the Arabic search engine.
"""

import sqlite3
import threading
from pathlib import Path
from typing import Optional
import logging

from ..common import trigram

logger = logging.getLogger('ingestion')


class Database:
    """Manages SQLite database connections and schema."""

    def __init__(self, db_path: str):
        """
        Initialize database connection.

        Args:
            db_path: Path to the SQLite database file
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.connection: Optional[sqlite3.Connection] = None
        self.lock = threading.RLock()

    def connect(self) -> sqlite3.Connection:
        """
        Create and return a database connection.

        The connection has the trigram similarity() SQL function registered.

        Returns:
            SQLite connection object
        """
        if self.connection is None:
            self.connection = sqlite3.connect(self.db_path, check_same_thread=False)
            self.connection.row_factory = sqlite3.Row
            trigram.register(self.connection)
        return self.connection

    def initialize_schema(self):
        """Create all database tables, indexes and triggers."""
        conn = self.connect()
        cursor = conn.cursor()

        # Document snippets
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS documents (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                file_id TEXT NOT NULL,
                page_index INTEGER NOT NULL,
                text_snippet TEXT NOT NULL,
                processed_text TEXT
            )
        """)

        # Full-text index over the processed text
        cursor.execute("""
            CREATE VIRTUAL TABLE IF NOT EXISTS documents_fts USING fts5(
                processed_text,
                content='documents',
                content_rowid='id'
            )
        """)

        # Keep the full-text index in sync with documents
        cursor.execute("""
            CREATE TRIGGER IF NOT EXISTS documents_ai AFTER INSERT ON documents BEGIN
                INSERT INTO documents_fts(rowid, processed_text)
                VALUES (new.id, new.processed_text);
            END
        """)
        cursor.execute("""
            CREATE TRIGGER IF NOT EXISTS documents_ad AFTER DELETE ON documents BEGIN
                INSERT INTO documents_fts(documents_fts, rowid, processed_text)
                VALUES ('delete', old.id, old.processed_text);
            END
        """)
        cursor.execute("""
            CREATE TRIGGER IF NOT EXISTS documents_au AFTER UPDATE ON documents BEGIN
                INSERT INTO documents_fts(documents_fts, rowid, processed_text)
                VALUES ('delete', old.id, old.processed_text);
                INSERT INTO documents_fts(rowid, processed_text)
                VALUES (new.id, new.processed_text);
            END
        """)

        # Document frequency per normalized term
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS term_statistics (
                term TEXT PRIMARY KEY,
                document_frequency INTEGER NOT NULL
            )
        """)

        # Corpus-level values (total_documents, ...)
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS search_metadata (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at DATETIME DEFAULT CURRENT_TIMESTAMP
            )
        """)

        # Create indexes
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_file_page ON documents(file_id, page_index)")

        conn.commit()
        logger.info("Database schema initialized successfully")

    def close(self):
        """Close database connection."""
        if self.connection:
            self.connection.close()
            self.connection = None

    def __enter__(self):
        """Context manager entry."""
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()


def init_database(db_path: str) -> Database:
    """
    Initialize database with schema.

    Args:
        db_path: Path to SQLite database file

    Returns:
        Database instance
    """
    db = Database(db_path)
    db.initialize_schema()
    return db
