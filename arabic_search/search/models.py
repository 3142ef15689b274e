"""
Data structures passed between the ranking pipeline stages.

Every score field exists from construction and defaults to 0; stages fill
them in as the document moves through scoring, re-ranking and dedup.
"""

import time
import uuid
from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import List, Dict, Optional, Any, Protocol, Iterable, Tuple


@dataclass(frozen=True)
class QueryAnalysis:
    """Semantic analysis of a query (immutable once built)."""
    question_type: Optional[str] = None
    concepts: Tuple[str, ...] = ()
    is_question: bool = False
    needs_causality: bool = False
    needs_method: bool = False
    needs_definition: bool = False
    needs_quotes: bool = False
    definition_term: Optional[str] = None
    main_subject: Optional[str] = None
    main_verb: Optional[str] = None


@dataclass(frozen=True)
class QueryIntent:
    """Presentation intents detected in a query."""
    wants_quotes: bool = False
    wants_summary: bool = False
    wants_comparison: bool = False
    wants_list: bool = False

    def labels(self) -> List[str]:
        """Names of the intents present, e.g. ['comparison', 'list']."""
        return [name[len('wants_'):] for name, wanted in asdict(self).items() if wanted]


@dataclass(frozen=True)
class ProcessedQuery:
    """Query after punctuation stripping, normalization and stop word removal."""
    words: Tuple[str, ...]
    normalized: str
    original: str
    key_terms: Tuple[str, ...]
    analysis: QueryAnalysis
    intent: QueryIntent = field(default_factory=QueryIntent)

    def has_content(self) -> bool:
        """Check if query has any meaningful words."""
        return bool(self.words)


@dataclass(frozen=True)
class TermMetadata:
    """A candidate search term before quality ranking."""
    term: str
    length: int
    has_prefix: bool
    is_root: bool
    is_original_query_term: bool
    original_term: str


@dataclass(frozen=True)
class RankedTerm:
    """A search term with its quality score."""
    term: str
    length: int
    has_prefix: bool
    is_root: bool
    is_original_query_term: bool
    original_term: str
    quality_score: int


@dataclass(frozen=True)
class CandidateDocument:
    """Document snippet supplied by the candidate source (read-only)."""
    id: int
    file_id: str
    page_index: int
    text_snippet: str
    processed_text: Optional[str] = None


@dataclass
class ScoredDocument:
    """Candidate plus every per-document signal."""
    candidate: CandidateDocument
    tfidf_similarity: float = 0.0
    keyword_score: float = 0.0
    proximity_score: float = 0.0
    causality_score: float = 0.0
    method_score: float = 0.0
    definition_score: float = 0.0
    phrase_score: float = 0.0
    context_score: float = 0.0
    answer_type_score: float = 0.0
    concept_bonus: float = 0.0
    quote_score: float = 0.0
    has_quotes: bool = False
    tfidf_multiplier: float = 0.0
    combined_score: float = 0.0

    @property
    def id(self) -> int:
        return self.candidate.id

    @property
    def file_id(self) -> str:
        return self.candidate.file_id

    @property
    def page_index(self) -> int:
        return self.candidate.page_index

    @property
    def text_snippet(self) -> str:
        return self.candidate.text_snippet

    def scores(self) -> Dict[str, Any]:
        """Score fields as a flat dictionary (no candidate data)."""
        data = asdict(self)
        data.pop('candidate')
        return data


@dataclass
class RankedDocument(ScoredDocument):
    """Scored document after the re-rank pass."""
    re_rank_score: float = 0.0
    negation_penalty: float = 0.0

    @classmethod
    def from_scored(cls, scored: ScoredDocument) -> 'RankedDocument':
        """Copy every signal of a scored document into a ranked one."""
        values = {name: getattr(scored, name) for name in scored.__dataclass_fields__}
        return cls(**values)


class SearchStatus(str, Enum):
    """Outcome of a ranking request."""
    OK = "ok"
    NO_TERMS = "no_meaningful_terms"
    NO_MATCHES = "no_matches"


@dataclass
class SearchOutcome:
    """Result of SearchEngine.rank()."""
    status: SearchStatus
    results: List[RankedDocument] = field(default_factory=list)
    candidate_count: int = 0
    duplicates_removed: int = 0
    query_time_ms: float = 0.0
    query: Optional[ProcessedQuery] = None


@dataclass
class SearchContext:
    """
    Per-request state.

    Carries the request id for log correlation, timing marks for the
    performance summary and the flag recording that fuzzy matching was
    logged for this request.
    """
    request_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    started_at: float = field(default_factory=time.perf_counter)
    marks: Dict[str, float] = field(default_factory=dict)
    fuzzy_logged: bool = False

    def mark(self, name: str):
        """Record elapsed milliseconds since the request started."""
        self.marks[name] = (time.perf_counter() - self.started_at) * 1000

    def elapsed_ms(self) -> float:
        return (time.perf_counter() - self.started_at) * 1000


class CandidateSource(Protocol):
    """Datastore returning candidate documents for the ranked terms."""

    def fetch_candidates(
        self,
        important_terms: List[str],
        expanded_terms: List[str],
        fallback_terms: List[str],
        limit: int,
        query_word_count: int
    ) -> List[CandidateDocument]:
        ...


class TermStatisticsSource(Protocol):
    """Datastore holding per-term document frequencies and the corpus size."""

    def document_frequencies(self, terms: Iterable[str]) -> Dict[str, int]:
        ...

    def stored_total_documents(self) -> Optional[int]:
        ...

    def count_documents(self) -> int:
        ...

    def store_total_documents(self, total: int):
        ...
