"""Domain models."""
from .document import DocumentRef, Chunk, ScoredDocument, make_chunk_id
from .index import IndexSnapshot, BuildStats, BuildStatus, HealthStatus
from .query import Query, QueryStage, QueryUnderstanding, SearchResponse

__all__ = [
    "DocumentRef",
    "Chunk",
    "ScoredDocument",
    "make_chunk_id",
    "IndexSnapshot",
    "BuildStats",
    "BuildStatus",
    "HealthStatus",
    "Query",
    "QueryStage",
    "QueryUnderstanding",
    "SearchResponse",
]
