import logging
from typing import Any, Dict, List, Optional

import numpy as np

from invisible_hr.exceptions import VectorStoreError

from .base import QueryResult, VectorRecord, VectorStore, matches_filter, require_filter

logger = logging.getLogger(__name__)


class InMemoryVectorStore(VectorStore):
    """
    Process-local exact search using cosine similarity.

    The dimension is fixed by the first record written unless given up front.
    """

    def __init__(self, dimension: Optional[int] = None):
        self.dimension = dimension
        self._records: Dict[str, VectorRecord] = {}

    def _check_dimension(self, vector: List[float], operation: str) -> None:
        if self.dimension is not None and len(vector) != self.dimension:
            raise VectorStoreError(
                f"Embedding dimension mismatch: expected {self.dimension}, got {len(vector)}",
                operation=operation,
            )

    def upsert(self, records: List[VectorRecord]) -> None:
        if not records:
            return
        if self.dimension is None:
            self.dimension = len(records[0].embedding)
        for record in records:
            self._check_dimension(record.embedding, "upsert")
        for record in records:
            self._records[record.id] = VectorRecord(
                id=record.id,
                embedding=list(record.embedding),
                text=record.text,
                metadata=dict(record.metadata),
            )
        logger.info(f"Upserted {len(records)} records, total={len(self._records)}")

    def query(self, embedding: List[float], top_k: int) -> List[QueryResult]:
        if top_k <= 0 or not self._records:
            return []
        self._check_dimension(embedding, "query")

        records = list(self._records.values())
        matrix = np.array([record.embedding for record in records], dtype=np.float32)
        query_vector = np.array(embedding, dtype=np.float32)

        norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(query_vector)
        # Zero vectors have no direction; give them the lowest score
        scores = np.divide(matrix @ query_vector, norms, out=np.full(len(records), -1.0, dtype=np.float32), where=norms > 0)

        top_indices = np.argsort(-scores, kind="stable")[:top_k]
        return [
            QueryResult(
                id=records[i].id,
                text=records[i].text,
                metadata=dict(records[i].metadata),
                score=float(scores[i]),
            )
            for i in top_indices
        ]

    def delete_by_metadata(self, filter: Dict[str, Any]) -> int:
        require_filter(filter)
        doomed = [record_id for record_id, record in self._records.items() if matches_filter(record.metadata, filter)]
        for record_id in doomed:
            del self._records[record_id]
        logger.info(f"Deleted {len(doomed)} records matching {filter}")
        return len(doomed)

    def count(self, filter: Optional[Dict[str, Any]] = None) -> int:
        return sum(1 for record in self._records.values() if matches_filter(record.metadata, filter))
