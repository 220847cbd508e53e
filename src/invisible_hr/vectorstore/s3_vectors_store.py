"""
Amazon S3 Vectors backend.

Records live in one vector index inside a vector bucket. The chunk text is
kept as non-filterable metadata so query results carry it back.
"""

import logging
from typing import Any, Dict, List, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from invisible_hr.exceptions import VectorStoreError

from .base import QueryResult, VectorRecord, VectorStore, matches_filter, require_filter

logger = logging.getLogger(__name__)

# Service limit for put_vectors / delete_vectors
MAX_BATCH_SIZE = 500
TEXT_KEY = "text"


class S3VectorsStore(VectorStore):
    """Managed cloud vector index on Amazon S3 Vectors."""

    def __init__(
        self,
        bucket_name: str,
        index_name: str,
        client: Any = None,
        region_name: str = "us-east-1",
        timeout: float = 30.0,
    ):
        self.bucket_name = bucket_name
        self.index_name = index_name
        self.client = client or boto3.client(
            "s3vectors",
            region_name=region_name,
            config=Config(
                connect_timeout=timeout,
                read_timeout=timeout,
                retries={"max_attempts": 3, "mode": "standard"},
            ),
        )
        self.dimension: Optional[int] = None

    def _error(self, operation: str, error: Exception) -> VectorStoreError:
        return VectorStoreError(
            f"S3 Vectors {operation} failed: {error}",
            operation=operation,
            details={"bucket": self.bucket_name, "index": self.index_name},
        )

    def _ensure_index(self, dimension: int) -> None:
        """Create the index on first write; afterwards only check the dimension."""
        if self.dimension is None:
            try:
                response = self.client.get_index(vectorBucketName=self.bucket_name, indexName=self.index_name)
                self.dimension = response["index"]["dimension"]
            except ClientError as e:
                if e.response.get("Error", {}).get("Code") != "NotFoundException":
                    raise
                logger.info(f"Creating S3 vector index {self.index_name} (dimension={dimension})")
                self.client.create_index(
                    vectorBucketName=self.bucket_name,
                    indexName=self.index_name,
                    dataType="float32",
                    dimension=dimension,
                    distanceMetric="cosine",
                    metadataConfiguration={"nonFilterableMetadataKeys": [TEXT_KEY]},
                )
                self.dimension = dimension

        if dimension != self.dimension:
            raise VectorStoreError(
                f"Embedding dimension mismatch: expected {self.dimension}, got {dimension}",
                operation="upsert",
            )

    def upsert(self, records: List[VectorRecord]) -> None:
        if not records:
            return
        try:
            self._ensure_index(len(records[0].embedding))
            for record in records:
                if len(record.embedding) != self.dimension:
                    raise VectorStoreError(
                        f"Embedding dimension mismatch: expected {self.dimension}, got {len(record.embedding)}",
                        operation="upsert",
                    )
            for i in range(0, len(records), MAX_BATCH_SIZE):
                batch = records[i : i + MAX_BATCH_SIZE]
                self.client.put_vectors(
                    vectorBucketName=self.bucket_name,
                    indexName=self.index_name,
                    vectors=[
                        {
                            "key": record.id,
                            "data": {"float32": [float(v) for v in record.embedding]},
                            "metadata": {**record.metadata, TEXT_KEY: record.text},
                        }
                        for record in batch
                    ],
                )
        except (ClientError, BotoCoreError) as e:
            raise self._error("upsert", e) from e
        logger.info(f"Upserted {len(records)} vectors into {self.bucket_name}/{self.index_name}")

    def query(self, embedding: List[float], top_k: int) -> List[QueryResult]:
        if top_k <= 0:
            return []
        if self.dimension is not None and len(embedding) != self.dimension:
            raise VectorStoreError(
                f"Query dimension mismatch: expected {self.dimension}, got {len(embedding)}",
                operation="query",
            )
        try:
            response = self.client.query_vectors(
                vectorBucketName=self.bucket_name,
                indexName=self.index_name,
                topK=top_k,
                queryVector={"float32": [float(v) for v in embedding]},
                returnMetadata=True,
                returnDistance=True,
            )
        except (ClientError, BotoCoreError) as e:
            raise self._error("query", e) from e

        results = []
        for match in response.get("vectors", []):
            metadata = dict(match.get("metadata") or {})
            text = metadata.pop(TEXT_KEY, "")
            results.append(
                QueryResult(
                    id=match["key"],
                    text=text,
                    metadata=metadata,
                    score=1.0 - float(match.get("distance", 1.0)),
                )
            )
        results.sort(key=lambda r: r.score, reverse=True)
        return results[:top_k]

    def _matching_keys(self, filter: Optional[Dict[str, Any]]) -> List[str]:
        """Page through the index and collect keys whose metadata matches the filter."""
        keys = []
        kwargs = {
            "vectorBucketName": self.bucket_name,
            "indexName": self.index_name,
            "maxResults": 1000,
            "returnMetadata": True,
        }
        while True:
            response = self.client.list_vectors(**kwargs)
            for vector in response.get("vectors", []):
                if matches_filter(vector.get("metadata") or {}, filter):
                    keys.append(vector["key"])
            next_token = response.get("nextToken")
            if not next_token:
                return keys
            kwargs["nextToken"] = next_token

    def delete_by_metadata(self, filter: Dict[str, Any]) -> int:
        require_filter(filter)
        try:
            keys = self._matching_keys(filter)
            for i in range(0, len(keys), MAX_BATCH_SIZE):
                self.client.delete_vectors(
                    vectorBucketName=self.bucket_name,
                    indexName=self.index_name,
                    keys=keys[i : i + MAX_BATCH_SIZE],
                )
        except (ClientError, BotoCoreError) as e:
            raise self._error("delete", e) from e
        logger.info(f"Deleted {len(keys)} vectors matching {filter}")
        return len(keys)

    def count(self, filter: Optional[Dict[str, Any]] = None) -> int:
        try:
            return len(self._matching_keys(filter))
        except (ClientError, BotoCoreError) as e:
            raise self._error("count", e) from e
