"""Core business services."""
from .index_service import IndexService
from .retrieval_service import RetrievalService
from .query_service import QueryService

__all__ = [
    "IndexService",
    "RetrievalService",
    "QueryService",
]
