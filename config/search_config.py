"""
Configuration settings for the Arabic semantic search engine.
"""

import os
from pathlib import Path

# Base directories
BASE_DIR = Path(__file__).parent.parent
CONFIG_DIR = BASE_DIR / "config"

# Data directory - use environment variable in production, local path in development
DATA_DIR = Path(os.getenv("DATA_DIR", str(BASE_DIR / "data")))

# Database path - SQLite store holding documents, term statistics and metadata
DATABASE_PATH = os.getenv("DATABASE_PATH", str(DATA_DIR / "documents.db"))


# SEARCH CONFIGURATION
#
# Candidate retrieval and final result limits.

SEARCH_CONFIG = {
    # Rows requested from the full-text tier
    "max_initial_candidates": int(os.getenv("MAX_INITIAL_CANDIDATES", "300")),

    # Results returned to the caller after re-rank and dedup
    "max_final_results": int(os.getenv("MAX_FINAL_RESULTS", "10")),

    # Results below this re-rank score are not returned
    "min_rerank_score": 0.35,

    # Number of ranked terms ANDed together in the full-text tier
    "important_terms": 5,

    # Trigram supplement runs for short queries with fewer rows than this
    "supplement_min_rows": 50,
    "supplement_max_query_words": 2,
    "supplement_limit": 100,

    # Final fallback uses the first N meaningful query words
    "fallback_terms": 3,
    "fallback_limit": 100,

    # Trigram similarity thresholds (short queries are looser)
    "trigram_threshold_short": 0.013,
    "trigram_threshold_default": 0.02,
}


# FUZZY MATCHING CONFIGURATION
#
# Fuzzy matching only kicks in when exact/root matching leaves most of the
# query unmatched, and only for long words.

FUZZY_CONFIG = {
    "enabled": os.getenv("FUZZY_ENABLED", "true").lower() == "true",
    "min_word_length": 5,
    "min_exact_score": 0.3,
    "max_terms": 3,
    "match_threshold": 0.80,
}


# SCORING CONFIGURATION
#
# Weight profiles for the combined score: (tfidf, keyword, proximity, phrase)

SCORING_CONFIG = {
    "default_weights": (0.55, 0.25, 0.12, 0.08),
    "short_query_weights": (0.20, 0.60, 0.10, 0.10),
    "question_weights": (0.52, 0.28, 0.12, 0.08),
    "short_query_max_words": 2,

    # Pattern bonuses are scaled by min(1, tfidf / this)
    "min_tfidf_for_full_bonus": 0.10,

    "definition_bonus_weight": 0.25,
    "method_bonus_weight": 0.20,
    "causality_bonus_weight": 0.20,
    "quote_bonus_weight": 0.12,
    "context_weight": 0.10,
    "answer_type_weight": 0.06,
    "concept_bonus_weight": 0.08,

    "max_combined_score": 1.5,

    # Per-document scoring workers (1 = sequential)
    "parallel_workers": int(os.getenv("SCORING_WORKERS", "1")),
}


# RERANKING CONFIGURATION
#
# Second pass over the best candidates by combined score.

RERANKING_CONFIG = {
    "top_n": 20,
    "combined_weight": 0.75,
    "context_weight": 0.25,
    "phrase_weight": 0.25,
    "answer_type_weight": 0.20,
    "negation_weight": 0.15,

    # Nonlinear stretch separating acceptable from marginal results
    "stretch_upper_threshold": 0.35,
    "stretch_upper_slope": 1.2,
    "stretch_upper_offset": 0.30,
    "stretch_lower_threshold": 0.20,
    "stretch_lower_multiplier": 1.6,
}


# DEDUPLICATION CONFIGURATION

DEDUP_CONFIG = {
    # Content key uses this many leading characters of the normalized text
    "hash_prefix_chars": 100,

    # Similarity-based second phase (off = hash-only dedup)
    "similarity_phase_enabled": os.getenv("DEDUP_SIMILARITY", "false").lower() == "true",
    "similarity_threshold": 0.85,
}


# CACHE CONFIGURATION

CACHE_CONFIG = {
    # Term ranking cache capacity (FIFO eviction)
    "max_size": 1000,

    # Total document count refresh window
    "refresh_interval_seconds": 5 * 60,

    # Term statistics lookups are split into batches of this size
    "idf_batch_size": 500,
}


# CONCURRENCY CONFIGURATION

CONCURRENCY_CONFIG = {
    "uvicorn_workers": 1,
    "search_thread_pool_size": 4,
}


# LOGGING CONFIGURATION

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_DIR = Path(os.getenv("LOG_DIR", str(BASE_DIR / "logs")))

LOG_CONFIG = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "json": {
            "class": "pythonjsonlogger.json.JsonFormatter",
            "format": "%(asctime)s %(name)s %(levelname)s %(message)s"
        },
        "standard": {
            "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        }
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "level": LOG_LEVEL,
            "formatter": "standard",
            "stream": "ext://sys.stdout"
        },
        "api": {
            "class": "logging.handlers.RotatingFileHandler",
            "filename": str(LOG_DIR / "api.log"),
            "maxBytes": 10485760,  # 10MB
            "backupCount": 5,
            "formatter": "json",
            "level": LOG_LEVEL
        },
        "search": {
            "class": "logging.handlers.RotatingFileHandler",
            "filename": str(LOG_DIR / "search.log"),
            "maxBytes": 10485760,
            "backupCount": 5,
            "formatter": "json",
            "level": LOG_LEVEL
        },
        "errors": {
            "class": "logging.handlers.RotatingFileHandler",
            "filename": str(LOG_DIR / "errors.log"),
            "maxBytes": 10485760,
            "backupCount": 5,
            "formatter": "json",
            "level": "ERROR"
        }
    },
    "loggers": {
        "api": {
            "handlers": ["console", "api", "errors"],
            "level": LOG_LEVEL,
            "propagate": False
        },
        "search": {
            "handlers": ["console", "search", "errors"],
            "level": LOG_LEVEL,
            "propagate": False
        },
        "ingestion": {
            "handlers": ["console", "errors"],
            "level": LOG_LEVEL,
            "propagate": False
        },
        "": {  # Root logger
            "handlers": ["console", "errors"],
            "level": LOG_LEVEL
        }
    }
}


def configure_logging():
    """Apply LOG_CONFIG, creating the log directory first."""
    import logging.config

    LOG_DIR.mkdir(parents=True, exist_ok=True)
    logging.config.dictConfig(LOG_CONFIG)


# API CONFIGURATION

API_CONFIG = {
    "host": os.getenv("API_HOST", "0.0.0.0"),
    "port": int(os.getenv("API_PORT", "8000")),
    "reload": os.getenv("RELOAD", "false").lower() == "true",
    "log_level": LOG_LEVEL.lower(),
    "documents_page_size": 30,
    "snippet_chars": 300,
    # Comma-separated; CORS stays off when unset
    "cors_origins": [
        origin.strip()
        for origin in os.getenv("CORS_ORIGINS", "").split(",")
        if origin.strip()
    ],
}


# ENVIRONMENT

DEBUG = os.getenv("DEBUG", "false").lower() == "true"
ENVIRONMENT = os.getenv("ENVIRONMENT", "development")
