"""Shared fakes and fixtures."""

import asyncio
import math
from typing import Callable, Optional

import pytest

from drive_search.core.errors import EmbeddingError
from drive_search.core.models.document import Chunk, DocumentRef
from drive_search.core.models.index import IndexSnapshot
from drive_search.core.models.query import QueryUnderstanding


def unit(similarity: float) -> list[float]:
    """2-d unit vector whose cosine with [1, 0] equals ``similarity``."""
    return [similarity, math.sqrt(max(0.0, 1.0 - similarity * similarity))]


def make_ref(doc_id: str) -> DocumentRef:
    return DocumentRef(
        id=doc_id,
        display_name=f"{doc_id}.txt",
        mime_type="text/plain",
        view_url=f"https://drive.example/{doc_id}",
        modified_at="2024-05-01T10:00:00Z",
    )


def make_snapshot(corpus: dict[str, list[list[float]]]) -> IndexSnapshot:
    """Snapshot from {doc_id: [chunk vectors]}; chunk text is '<doc> chunk <i>'."""
    chunks = []
    documents = {}
    for doc_id, vectors in corpus.items():
        documents[doc_id] = make_ref(doc_id)
        for i, vector in enumerate(vectors):
            chunks.append(Chunk.create(doc_id, i, f"{doc_id} chunk {i}", vector))
    return IndexSnapshot(chunks=tuple(chunks), documents=documents)


class FakeEmbedder:
    """Deterministic embedder; texts containing ``fail_on`` raise EmbeddingError."""

    def __init__(
        self,
        vector_for: Optional[Callable[[str], list[float]]] = None,
        fail_on: Optional[str] = None,
        delay: float = 0.0,
    ):
        self._vector_for = vector_for or (lambda text: [float(len(text)), 1.0, 0.5])
        self._fail_on = fail_on
        self._delay = delay
        self.calls: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def embed(self, text: str, *, is_query: bool = False) -> list[float]:
        self.calls.append(text)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self._delay)
            if self._fail_on is not None and self._fail_on in text:
                raise EmbeddingError("provider down")
            return self._vector_for(text)
        finally:
            self.in_flight -= 1

    async def ping(self) -> bool:
        return True


class FakeSource:
    """In-memory document source keyed by document id."""

    def __init__(self, texts: dict[str, str], failing: tuple[str, ...] = ()):
        self.texts = texts
        self.failing = set(failing)
        self.list_calls = 0
        self.gate: Optional[asyncio.Event] = None
        self.list_error: Optional[Exception] = None

    async def list_all_documents(self, root_id: str) -> list[DocumentRef]:
        self.list_calls += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.list_error is not None:
            raise self.list_error
        return [make_ref(doc_id) for doc_id in self.texts]

    async def extract_text(self, ref: DocumentRef) -> str:
        await asyncio.sleep(0)
        if ref.id in self.failing:
            raise OSError(f"cannot read {ref.id}")
        return self.texts[ref.id]

    async def ping(self) -> bool:
        return True


class FakeUnderstanding:
    def __init__(self, result: Optional[QueryUnderstanding] = None, error: Optional[Exception] = None):
        self.result = result
        self.error = error
        self.calls = 0

    async def understand(self, query: str) -> QueryUnderstanding:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.result or QueryUnderstanding(should_search=True, rewritten_query=query)

    async def ping(self) -> bool:
        return self.error is None


@pytest.fixture
def fake_embedder():
    return FakeEmbedder()
