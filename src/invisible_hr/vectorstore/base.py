from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from invisible_hr.exceptions import ValidationError


@dataclass
class VectorRecord:
    """Embedded chunk as written to the vector store."""

    id: str
    embedding: List[float]
    text: str
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class QueryResult:
    """Nearest-neighbour hit. Higher score means more similar."""

    id: str
    text: str
    metadata: Dict[str, Any]
    score: float


class VectorStore(ABC):
    """
    Uniform interface over the vector backends.

    Every vector in one store shares a single dimensionality. A query against an
    unreachable backend raises VectorStoreError instead of returning no hits.
    """

    @abstractmethod
    def upsert(self, records: List[VectorRecord]) -> None:
        """Insert or replace records by id."""

    @abstractmethod
    def query(self, embedding: List[float], top_k: int) -> List[QueryResult]:
        """Return at most `top_k` records ordered by descending similarity."""

    @abstractmethod
    def delete_by_metadata(self, filter: Dict[str, Any]) -> int:
        """Delete every record whose metadata matches all filter items. Returns the number removed."""

    @abstractmethod
    def count(self, filter: Optional[Dict[str, Any]] = None) -> int:
        """Number of records, optionally restricted to a metadata filter."""

    def close(self) -> None:
        """Release backend connections."""


def matches_filter(metadata: Dict[str, Any], filter: Optional[Dict[str, Any]]) -> bool:
    if not filter:
        return True
    return all(metadata.get(key) == value for key, value in filter.items())


def require_filter(filter: Dict[str, Any]) -> None:
    """An empty filter would match every record, so deletes must name at least one key."""
    if not filter:
        raise ValidationError("delete_by_metadata requires a non-empty filter", field="filter")
