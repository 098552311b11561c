"""Query domain models."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .document import ScoredDocument


class QueryStage(Enum):
    """Per-request orchestration stages."""
    RECEIVED = "received"
    INTENT_RESOLVED = "intent_resolved"
    SHORT_CIRCUIT_NO_SEARCH = "short_circuit_no_search"
    INDEX_READY = "index_ready"
    RETRIEVED = "retrieved"
    RESPONDED = "responded"


class QueryUnderstanding(BaseModel):
    """Validated output of the query understanding provider."""

    model_config = ConfigDict(strict=True, frozen=True)

    should_search: bool
    rewritten_query: str = Field(min_length=1)
    suggested_threshold: Optional[float] = Field(default=None, allow_inf_nan=False)

    @classmethod
    def fallback(cls, raw_query: str) -> "QueryUnderstanding":
        """Search everything literally with the default threshold."""
        return cls.model_construct(
            should_search=True, rewritten_query=raw_query, suggested_threshold=None
        )


@dataclass(frozen=True)
class Query:
    raw_text: str
    resolved_text: str
    similarity_threshold: float


@dataclass
class SearchResponse:
    """Search response for presentation layer."""
    query: Query
    documents: list[ScoredDocument] = field(default_factory=list)
    reason: Optional[str] = None
    used_fallback: bool = False

    @property
    def total(self) -> int:
        return len(self.documents)

    def to_dict(self) -> dict:
        data = {
            "total": self.total,
            "documents": [d.to_dict() for d in self.documents],
            "understanding": {
                "original": self.query.raw_text,
                "resolvedQuery": self.query.resolved_text,
                "usedThreshold": self.query.similarity_threshold,
            },
        }
        if self.reason:
            data["reason"] = self.reason
        return data
