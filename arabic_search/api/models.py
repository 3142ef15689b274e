"""
Pydantic models for API requests and responses.
"""

from typing import Optional, List, Dict, Any
from pydantic import BaseModel, Field, field_validator


# ============================================================================
# Search Models
# ============================================================================

class SearchRequest(BaseModel):
    """Search request body."""

    query: str = Field(..., min_length=1, max_length=1000, description="Search query")
    limit: Optional[int] = Field(None, ge=1, le=50, description="Maximum results to return")

    @field_validator('query')
    @classmethod
    def validate_query(cls, v):
        """Reject queries made only of whitespace."""
        if not v.strip():
            raise ValueError('Query must contain at least one non-whitespace character')
        return v


class ScoreBreakdown(BaseModel):
    """Individual ranking signals of a result."""

    tfidf_similarity: float = Field(..., description="Cosine similarity of TF-IDF vectors")
    keyword_score: float = Field(..., description="Exact and fuzzy keyword coverage")
    proximity_score: float = Field(..., description="Closeness of key terms in the text")
    phrase_score: float = Field(..., description="Query bigram/trigram matches")
    context_score: float = Field(..., description="Key terms near each other")
    answer_type_score: float = Field(..., description="Indicators of the expected answer type")
    concept_bonus: float = Field(..., description="Question-specific concept bonus")
    causality_score: float = Field(..., description="Causality indicators")
    method_score: float = Field(..., description="Method indicators")
    definition_score: float = Field(..., description="Definition indicators")
    quote_score: float = Field(..., description="Quotation and testimony indicators")
    negation_penalty: float = Field(..., description="Penalty for negated key terms")


class SearchResult(BaseModel):
    """Individual search result."""

    id: int = Field(..., description="Document ID")
    file_id: str = Field(..., description="Source file ID")
    page_index: int = Field(..., description="Page within the source file")
    text_snippet: str = Field(..., description="Document text")
    has_quotes: bool = Field(..., description="Whether the text contains quotations")
    combined_score: float = Field(..., description="Weighted combination of all signals")
    re_rank_score: float = Field(..., description="Final relevance score")
    scores: ScoreBreakdown = Field(..., description="Individual signal scores")


class QueryInfo(BaseModel):
    """How the query was understood."""

    normalized: str = Field(..., description="Normalized query text")
    words: List[str] = Field(default_factory=list, description="Meaningful query words")
    concepts: List[str] = Field(default_factory=list, description="Extracted concepts")
    question_type: Optional[str] = Field(None, description="Detected question type")
    intents: List[str] = Field(default_factory=list, description="Presentation intents: quotes, summary, comparison, list")


class SearchResponse(BaseModel):
    """Search response."""

    results: List[SearchResult] = Field(..., description="Ranked search results")
    status: str = Field(..., description="ok, no_meaningful_terms or no_matches")
    total_candidates: int = Field(..., description="Candidates fetched from the store")
    duplicates_removed: int = Field(..., description="Results dropped as duplicates")
    query_time_ms: float = Field(..., description="Query execution time in milliseconds")
    query: str = Field(..., description="Original search query")
    query_info: Optional[QueryInfo] = Field(None, description="Query analysis")


# ============================================================================
# Document Models
# ============================================================================

class Document(BaseModel):
    """Stored document snippet."""

    id: int = Field(..., description="Document ID")
    file_id: str = Field(..., description="Source file ID")
    page_index: int = Field(..., description="Page within the source file")
    text_snippet: str = Field(..., description="Document text")


class DocumentsResponse(BaseModel):
    """One page of documents."""

    documents: List[Document] = Field(..., description="Documents on this page")
    total: int = Field(..., description="Total documents")
    page: int = Field(..., description="Current page number")
    total_pages: int = Field(..., description="Total number of pages")


# ============================================================================
# Statistics Models
# ============================================================================

class StatsResponse(BaseModel):
    """Corpus and cache statistics response."""

    total_documents: int = Field(..., description="Corpus size used for IDF")
    term_cache: Dict[str, Any] = Field(..., description="Term ranking cache statistics")
    document_count_cache: Dict[str, Any] = Field(..., description="Document count cache state")
    store: Optional[Dict[str, Any]] = Field(None, description="Row counts of the document store")


# ============================================================================
# Health Models
# ============================================================================

class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., description="Service status")
    database_connected: bool = Field(..., description="Database connection status")
    total_documents: int = Field(..., description="Documents in the corpus")
    uptime_seconds: Optional[int] = Field(None, description="Service uptime in seconds")


# ============================================================================
# Error Models
# ============================================================================

class ErrorResponse(BaseModel):
    """Error response."""

    error: str = Field(..., description="Error message")
    code: str = Field(..., description="Error code")
    details: Optional[Dict[str, Any]] = Field(None, description="Additional error details")
