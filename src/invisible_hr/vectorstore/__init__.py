"""Vector store adapters behind one interface."""

from .base import QueryResult, VectorRecord, VectorStore
from .factory import create_vector_store
from .memory_store import InMemoryVectorStore

__all__ = ["VectorStore", "VectorRecord", "QueryResult", "InMemoryVectorStore", "create_vector_store"]
