"""
ASGI entry point for the Arabic search service.

`app` is built by create_app() from config/search_config.py. The lifespan
opens the document store and the worker pool on startup and releases both
on shutdown.
"""

import logging
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import routes
from config.search_config import (
    configure_logging,
    API_CONFIG,
    DATABASE_PATH,
    ENVIRONMENT,
    DEBUG
)

configure_logging()
logger = logging.getLogger('api')

SERVICE_NAME = "Arabic Search API"
SERVICE_VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    db_path = app.state.db_path
    logger.info(f"Starting {SERVICE_NAME} ({ENVIRONMENT}, debug={DEBUG})")

    routes.init_search_engine(db_path=db_path)
    logger.info(f"Ranking documents from {db_path}")

    try:
        yield
    finally:
        routes.shutdown_search_engine()
        logger.info(f"{SERVICE_NAME} stopped")


async def not_found_handler(request: Request, exc):
    return JSONResponse(
        status_code=404,
        content={
            "error": "Resource not found",
            "code": "NOT_FOUND",
            "details": {"path": request.url.path}
        }
    )


async def internal_error_handler(request: Request, exc):
    logger.error(f"Unhandled error on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "code": "INTERNAL_ERROR",
            "details": {
                "message": str(exc) if DEBUG else "An unexpected error occurred"
            }
        }
    )


def create_app(
    db_path: Optional[str] = None,
    cors_origins: Optional[List[str]] = None
) -> FastAPI:
    """
    Build the service application.

    Args:
        db_path: SQLite store to rank from (defaults to DATABASE_PATH)
        cors_origins: Browser origins allowed to call the API
                      (defaults to API_CONFIG['cors_origins']; none disables CORS)
    """
    application = FastAPI(
        title=SERVICE_NAME,
        description="Semantic ranking API for Arabic document snippets",
        version=SERVICE_VERSION,
        lifespan=lifespan,
        docs_url="/docs" if DEBUG else None,
        redoc_url="/redoc" if DEBUG else None
    )
    application.state.db_path = db_path or DATABASE_PATH

    if cors_origins is None:
        cors_origins = API_CONFIG['cors_origins']
    if cors_origins:
        application.add_middleware(
            CORSMiddleware,
            allow_origins=list(cors_origins),
            allow_methods=["GET", "POST"],
            allow_headers=["*"],
        )

    application.include_router(routes.router)
    application.add_exception_handler(404, not_found_handler)
    application.add_exception_handler(500, internal_error_handler)

    @application.get("/")
    async def root():
        """Service name and endpoint map."""
        return {
            "name": SERVICE_NAME,
            "version": SERVICE_VERSION,
            "endpoints": {
                "search": "/api/v1/search",
                "documents": "/api/v1/documents",
                "stats": "/api/v1/stats",
                "health": "/api/v1/health"
            },
            "documentation": "/docs" if DEBUG else None
        }

    return application


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "arabic_search.api.main:app",
        host=API_CONFIG['host'],
        port=API_CONFIG['port'],
        reload=API_CONFIG['reload'],
        log_level=API_CONFIG['log_level']
    )
