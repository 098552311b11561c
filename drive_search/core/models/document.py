"""Document domain models."""
import hashlib
from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class DocumentRef:
    """Document listed by a document source."""
    id: str
    display_name: str
    mime_type: str
    view_url: str = ""
    modified_at: Optional[str] = None


def make_chunk_id(document_id: str, sequence_index: int) -> str:
    """Stable chunk id for (document, position)."""
    digest = hashlib.md5(document_id.encode()).hexdigest()[:12]
    return f"{digest}_{sequence_index}"


@dataclass(frozen=True)
class Chunk:
    """Embedded text window of one document."""
    chunk_id: str
    document_id: str
    sequence_index: int
    text: str
    vector: tuple[float, ...] = field(repr=False)

    @classmethod
    def create(
        cls, document_id: str, sequence_index: int, text: str, vector: list[float]
    ) -> "Chunk":
        return cls(
            chunk_id=make_chunk_id(document_id, sequence_index),
            document_id=document_id,
            sequence_index=sequence_index,
            text=text,
            vector=tuple(float(v) for v in vector),
        )


@dataclass
class ScoredDocument:
    """Ranked document in a search response."""
    document_id: str
    display_name: str
    view_url: str
    modified_at: Optional[str]
    score: float
    best_snippet: str

    def to_dict(self) -> dict:
        return {
            "documentId": self.document_id,
            "displayName": self.display_name,
            "viewUrl": self.view_url,
            "modifiedAt": self.modified_at,
            "score": round(self.score, 4),
            "bestSnippet": self.best_snippet,
        }
