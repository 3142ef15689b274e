"""
FastAPI route handlers for search API.
"""

import asyncio
import logging
from typing import Dict, Any, Optional
from datetime import datetime
from concurrent.futures import ThreadPoolExecutor
from fastapi import APIRouter, HTTPException, Query, Depends
from fastapi.responses import JSONResponse

from .models import (
    SearchRequest,
    SearchResponse,
    DocumentsResponse,
    Document,
    StatsResponse,
    HealthResponse,
)
from ..search.models import SearchOutcome, RankedDocument, CandidateDocument
from ..search.search_engine import SearchEngine, SearchError
from config.search_config import CONCURRENCY_CONFIG, API_CONFIG

logger = logging.getLogger('api')

# Thread pool for CPU-bound search and store work (owned by the app lifespan)
search_executor: Optional[ThreadPoolExecutor] = None

# Global search engine instance (loaded on startup)
search_engine: SearchEngine = None

# Track service start time
service_start_time = datetime.now()


# ============================================================================
# Dependency Injection
# ============================================================================

def get_search_engine() -> SearchEngine:
    """Get the global search engine instance."""
    if search_engine is None:
        raise HTTPException(
            status_code=503,
            detail="Search engine not initialized"
        )
    return search_engine


def get_executor() -> ThreadPoolExecutor:
    """Return the worker pool, starting one if the lifespan has not."""
    global search_executor

    if search_executor is None:
        search_executor = ThreadPoolExecutor(
            max_workers=CONCURRENCY_CONFIG['search_thread_pool_size'],
            thread_name_prefix='search'
        )
    return search_executor


# ============================================================================
# Response Conversion
# ============================================================================

def result_to_dict(doc: RankedDocument) -> Dict[str, Any]:
    """Flatten a ranked document into the SearchResult shape."""
    return {
        "id": doc.id,
        "file_id": doc.file_id,
        "page_index": doc.page_index,
        "text_snippet": doc.text_snippet[:API_CONFIG['snippet_chars']],
        "has_quotes": doc.has_quotes,
        "combined_score": round(doc.combined_score, 4),
        "re_rank_score": round(doc.re_rank_score, 4),
        "scores": {
            "tfidf_similarity": doc.tfidf_similarity,
            "keyword_score": doc.keyword_score,
            "proximity_score": doc.proximity_score,
            "phrase_score": doc.phrase_score,
            "context_score": doc.context_score,
            "answer_type_score": doc.answer_type_score,
            "concept_bonus": doc.concept_bonus,
            "causality_score": doc.causality_score,
            "method_score": doc.method_score,
            "definition_score": doc.definition_score,
            "quote_score": doc.quote_score,
            "negation_penalty": doc.negation_penalty,
        },
    }


def outcome_to_response(outcome: SearchOutcome, query: str) -> Dict[str, Any]:
    """Build the SearchResponse body from an engine outcome."""
    query_info = None
    if outcome.query is not None:
        query_info = {
            "normalized": outcome.query.normalized,
            "words": list(outcome.query.words),
            "concepts": list(outcome.query.analysis.concepts),
            "question_type": outcome.query.analysis.question_type,
            "intents": outcome.query.intent.labels(),
        }

    return {
        "results": [result_to_dict(doc) for doc in outcome.results],
        "status": outcome.status.value,
        "total_candidates": outcome.candidate_count,
        "duplicates_removed": outcome.duplicates_removed,
        "query_time_ms": outcome.query_time_ms,
        "query": query,
        "query_info": query_info,
    }


def document_to_dict(doc: CandidateDocument) -> Dict[str, Any]:
    return {
        "id": doc.id,
        "file_id": doc.file_id,
        "page_index": doc.page_index,
        "text_snippet": doc.text_snippet,
    }


# ============================================================================
# API Router
# ============================================================================

router = APIRouter(prefix="/api/v1", tags=["search"])


# ============================================================================
# Search Endpoints
# ============================================================================

async def run_search(engine: SearchEngine, query: str, limit: Optional[int]) -> Dict[str, Any]:
    """Run a ranking request on the thread pool and map engine errors to HTTP errors."""
    try:
        logger.info(f"Search request: query='{query}', limit={limit}")

        # Offload CPU-bound ranking to thread pool
        loop = asyncio.get_event_loop()
        outcome = await loop.run_in_executor(
            get_executor(),
            lambda: engine.rank(query, limit=limit)
        )

        logger.info(
            f"Search completed: status={outcome.status.value}, "
            f"{len(outcome.results)} returned, "
            f"{outcome.query_time_ms}ms"
        )

        return outcome_to_response(outcome, query)

    except ValueError as e:
        logger.warning(f"Rejected query: {e}")
        raise HTTPException(
            status_code=400,
            detail={
                "error": "Invalid query",
                "code": "INVALID_QUERY",
                "details": {"message": str(e)}
            }
        )

    except SearchError as e:
        logger.error(f"Search failed: {e}", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail={
                "error": "Search execution failed",
                "code": "SEARCH_FAILED",
                "details": {"message": str(e)}
            }
        )


@router.post("/search", response_model=SearchResponse)
async def search_documents(
    request: SearchRequest,
    engine: SearchEngine = Depends(get_search_engine)
):
    """
    Rank document snippets against an Arabic query.

    Combines TF-IDF, keyword, proximity, phrase and question-specific
    signals, re-ranks the top results and removes duplicates.
    """
    return await run_search(engine, request.query, request.limit)


@router.get("/search", response_model=SearchResponse)
async def search_documents_get(
    q: str = Query(..., min_length=1, max_length=1000, description="Search query"),
    limit: Optional[int] = Query(None, ge=1, le=50, description="Maximum results to return"),
    engine: SearchEngine = Depends(get_search_engine)
):
    """Query-string variant of the search endpoint."""
    if not q.strip():
        raise HTTPException(
            status_code=422,
            detail={
                "error": "Invalid query",
                "code": "INVALID_QUERY",
                "details": {"message": "Query must not be blank"}
            }
        )
    return await run_search(engine, q, limit)


# ============================================================================
# Document Endpoints
# ============================================================================

@router.get("/documents", response_model=DocumentsResponse)
async def list_documents(
    page: int = Query(1, ge=1, description="Page number"),
    engine: SearchEngine = Depends(get_search_engine)
):
    """
    Browse stored documents, ordered by id.
    """
    try:
        loop = asyncio.get_event_loop()
        listing = await loop.run_in_executor(
            get_executor(),
            lambda: engine.candidate_source.list_documents(
                page=page,
                page_size=API_CONFIG['documents_page_size']
            )
        )

        return {
            "documents": [document_to_dict(doc) for doc in listing['documents']],
            "total": listing['total'],
            "page": listing['page'],
            "total_pages": listing['total_pages'],
        }

    except Exception as e:
        logger.error(f"Failed to fetch documents: {e}", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail={
                "error": "Failed to fetch documents",
                "code": "DOCUMENTS_FAILED",
                "details": {"message": str(e)}
            }
        )


@router.get("/documents/{document_id}", response_model=Document)
async def get_document(
    document_id: int,
    engine: SearchEngine = Depends(get_search_engine)
):
    """Fetch one document by id."""
    loop = asyncio.get_event_loop()
    doc = await loop.run_in_executor(
        get_executor(),
        lambda: engine.candidate_source.get_document(document_id)
    )

    if doc is None:
        raise HTTPException(status_code=404, detail="Document not found")

    return document_to_dict(doc)


# ============================================================================
# Statistics Endpoints
# ============================================================================

@router.get("/stats", response_model=StatsResponse)
async def get_stats(
    engine: SearchEngine = Depends(get_search_engine)
):
    """
    Get corpus and cache statistics.

    Returns:
    - Total documents used for IDF
    - Term ranking cache size and hit rate
    - Document count cache state
    - Store row counts
    """
    try:
        logger.info("Fetching statistics")

        # Offload to thread pool
        loop = asyncio.get_event_loop()
        stats = await loop.run_in_executor(
            get_executor(),
            lambda: engine.get_stats()
        )

        logger.info(f"Statistics retrieved: {stats['total_documents']} documents")

        return stats

    except Exception as e:
        logger.error(f"Failed to fetch stats: {e}", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail={
                "error": "Failed to fetch statistics",
                "code": "STATS_FAILED",
                "details": {"message": str(e)}
            }
        )


# ============================================================================
# Health Check Endpoint
# ============================================================================

def check_store(engine: SearchEngine):
    """Return (database_connected, total_documents) for the health check."""
    db_connected = False
    connect = getattr(engine.candidate_source, 'connect', None)
    if callable(connect):
        try:
            db_connected = connect() is not None
        except Exception as e:
            logger.warning(f"Database connection check failed: {e}")

    return db_connected, engine.metadata.total_documents()


@router.get("/health", response_model=HealthResponse)
async def health_check(
    engine: SearchEngine = Depends(get_search_engine)
):
    """
    Health check endpoint.

    Returns service status and basic metrics.
    """
    try:
        # Calculate uptime
        uptime = (datetime.now() - service_start_time).total_seconds()

        # Connection check and document count both touch the store
        loop = asyncio.get_event_loop()
        db_connected, total_documents = await loop.run_in_executor(
            get_executor(),
            lambda: check_store(engine)
        )
        status = "healthy" if db_connected else "degraded"

        return {
            "status": status,
            "database_connected": db_connected,
            "total_documents": total_documents,
            "uptime_seconds": int(uptime)
        }

    except Exception as e:
        logger.error(f"Health check failed: {e}", exc_info=True)
        return JSONResponse(
            status_code=503,
            content={
                "status": "unhealthy",
                "error": str(e)
            }
        )


# ============================================================================
# Initialization
# ============================================================================

def init_search_engine(db_path: str = None):
    """
    Initialize the global search engine instance.

    This should be called during application startup.
    """
    global search_engine

    logger.info("Initializing search engine...")
    get_executor()

    try:
        search_engine = SearchEngine.from_database(db_path)
        logger.info("Search engine initialized successfully")

    except Exception as e:
        logger.error(f"Failed to initialize search engine: {e}")
        raise


def shutdown_search_engine():
    """
    Cleanup search engine on shutdown.

    This should be called during application shutdown.
    """
    global search_engine, search_executor

    if search_engine:
        logger.info("Shutting down search engine...")
        search_engine.close()
        search_engine = None

    if search_executor is not None:
        search_executor.shutdown(wait=True)
        search_executor = None
        logger.info("Thread pool shut down")
