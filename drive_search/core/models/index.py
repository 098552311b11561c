"""Index domain models."""
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Optional

from .document import Chunk, DocumentRef


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class IndexSnapshot:
    """One fully built generation of the index.

    Chunks are ordered by insertion (document listing order, then
    sequence index). Every chunk's document is present in ``documents``.
    """
    chunks: tuple[Chunk, ...]
    documents: dict[str, DocumentRef]
    built_at: datetime = field(default_factory=utcnow)

    @classmethod
    def empty(cls) -> "IndexSnapshot":
        return cls(chunks=(), documents={})

    @property
    def is_empty(self) -> bool:
        return not self.chunks

    def age_seconds(self, now: Optional[datetime] = None) -> float:
        return ((now or utcnow()) - self.built_at).total_seconds()


@dataclass
class BuildStats:
    """Outcome of a completed build pass."""
    documents_seen: int = 0
    documents_indexed: int = 0
    skipped_no_text: int = 0
    skipped_failed: int = 0
    chunks_total: int = 0
    started_at: datetime = field(default_factory=utcnow)
    finished_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        data = asdict(self)
        data["started_at"] = self.started_at.isoformat()
        data["finished_at"] = self.finished_at.isoformat() if self.finished_at else None
        return data


@dataclass
class BuildStatus:
    """Returned to a rebuild trigger that found a build already running."""
    in_progress: bool
    started_at: Optional[datetime] = None
    last_built_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "in_progress": self.in_progress,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "last_built_at": self.last_built_at.isoformat() if self.last_built_at else None,
        }


@dataclass
class HealthStatus:
    """Service status for health checks."""
    index_present: bool
    built_at: Optional[datetime]
    chunk_count: int
    document_count: int
    build_in_progress: bool
    last_build_error: Optional[str] = None
    providers: dict[str, bool] = field(default_factory=dict)

    @property
    def healthy(self) -> bool:
        return all(self.providers.values())

    def to_dict(self) -> dict:
        return {
            "healthy": self.healthy,
            "index_present": self.index_present,
            "built_at": self.built_at.isoformat() if self.built_at else None,
            "chunk_count": self.chunk_count,
            "document_count": self.document_count,
            "build_in_progress": self.build_in_progress,
            "last_build_error": self.last_build_error,
            "providers": dict(self.providers),
        }
