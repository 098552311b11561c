"""Protocol interfaces for dependency injection."""
from .embedder import EmbedderProtocol
from .vector_store import VectorStoreProtocol
from .document_source import DocumentSourceProtocol
from .understanding import QueryUnderstandingProtocol

__all__ = [
    "EmbedderProtocol",
    "VectorStoreProtocol",
    "DocumentSourceProtocol",
    "QueryUnderstandingProtocol",
]
