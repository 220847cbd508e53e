import json
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

import weaviate
from weaviate.classes.config import Configure, DataType, Property, Tokenization, VectorDistances
from weaviate.classes.init import AdditionalConfig, Timeout
from weaviate.classes.query import Filter, MetadataQuery
from weaviate.exceptions import WeaviateBaseError
from weaviate.util import generate_uuid5

from invisible_hr.exceptions import ValidationError, VectorStoreError

from .base import QueryResult, VectorRecord, VectorStore, require_filter

logger = logging.getLogger(__name__)

# Metadata keys stored as their own properties so they can be filtered on.
# Everything else rides along in metadata_json.
FILTERABLE_KEYS = ("source", "filename", "type")


def connect(weaviate_url: str, timeout: float = 30.0) -> weaviate.WeaviateClient:
    """Connect to a local Weaviate instance with explicit timeouts."""
    parsed = urlparse(weaviate_url)
    return weaviate.connect_to_local(
        host=parsed.hostname or "localhost",
        port=parsed.port or 8080,
        additional_config=AdditionalConfig(timeout=Timeout(init=timeout, query=timeout, insert=timeout)),
    )


class WeaviateVectorStore(VectorStore):
    """Collection-oriented store on a local Weaviate service (bring-your-own-vector)."""

    def __init__(self, client: weaviate.WeaviateClient, collection_name: str = "HrKnowledge"):
        self.client = client
        self.collection_name = collection_name
        self._collection = None

    @classmethod
    def from_url(cls, weaviate_url: str, collection_name: str, timeout: float = 30.0) -> "WeaviateVectorStore":
        try:
            client = connect(weaviate_url, timeout)
        except WeaviateBaseError as e:
            raise VectorStoreError(f"Cannot connect to Weaviate at {weaviate_url}: {e}", operation="connect") from e
        logger.info(f"Connected to Weaviate at {weaviate_url}, collection: {collection_name}")
        return cls(client, collection_name)

    def _get_collection(self):
        """Get or create the collection."""
        if self._collection is not None:
            return self._collection

        # NOTE: Tokenization.FIELD keeps ids and filenames as single tokens for exact-match filters
        if not self.client.collections.exists(self.collection_name):
            logger.info(f"Creating collection: {self.collection_name}")
            self.client.collections.create(
                name=self.collection_name,
                properties=[
                    Property(name="record_id", data_type=DataType.TEXT, tokenization=Tokenization.FIELD),
                    Property(name="text", data_type=DataType.TEXT),
                    Property(name="source", data_type=DataType.TEXT, tokenization=Tokenization.FIELD),
                    Property(name="filename", data_type=DataType.TEXT, tokenization=Tokenization.FIELD),
                    Property(name="type", data_type=DataType.TEXT, tokenization=Tokenization.FIELD),
                    Property(name="metadata_json", data_type=DataType.TEXT, skip_vectorization=True),
                ],
                vectorizer_config=Configure.Vectorizer.none(),
                vector_index_config=Configure.VectorIndex.hnsw(distance_metric=VectorDistances.COSINE),
            )
        self._collection = self.client.collections.get(self.collection_name)
        return self._collection

    def _build_filter(self, filter: Dict[str, Any]):
        unknown = [key for key in filter if key not in FILTERABLE_KEYS]
        if unknown:
            raise ValidationError(f"Cannot filter Weaviate records on {unknown}", field="filter")
        combined = None
        for key, value in filter.items():
            condition = Filter.by_property(key).equal(value)
            combined = condition if combined is None else combined & condition
        return combined

    def upsert(self, records: List[VectorRecord]) -> None:
        if not records:
            return
        logger.info(f"Upserting {len(records)} records into {self.collection_name}")
        try:
            collection = self._get_collection()
            with collection.batch.dynamic() as batch:
                for record in records:
                    properties = {
                        "record_id": record.id,
                        "text": record.text,
                        "metadata_json": json.dumps(record.metadata),
                    }
                    for key in FILTERABLE_KEYS:
                        if key in record.metadata:
                            properties[key] = str(record.metadata[key])
                    batch.add_object(properties=properties, vector=record.embedding, uuid=generate_uuid5(record.id))
            failed = collection.batch.failed_objects
        except WeaviateBaseError as e:
            raise VectorStoreError(f"Weaviate upsert failed: {e}", operation="upsert") from e

        if failed:
            raise VectorStoreError(
                f"Weaviate rejected {len(failed)} of {len(records)} records: {failed[0].message}",
                operation="upsert",
            )

    def query(self, embedding: List[float], top_k: int) -> List[QueryResult]:
        if top_k <= 0:
            return []
        try:
            response = self._get_collection().query.near_vector(
                near_vector=embedding,
                limit=top_k,
                return_metadata=MetadataQuery(distance=True),
            )
        except WeaviateBaseError as e:
            raise VectorStoreError(f"Weaviate query failed: {e}", operation="query") from e

        results = []
        for obj in response.objects:
            props = obj.properties
            metadata = json.loads(props.get("metadata_json") or "{}")
            distance = obj.metadata.distance if obj.metadata.distance is not None else 1.0
            results.append(
                QueryResult(
                    id=props.get("record_id", str(obj.uuid)),
                    text=props.get("text", ""),
                    metadata=metadata,
                    score=1.0 - distance,
                )
            )
        results.sort(key=lambda r: r.score, reverse=True)
        return results

    def delete_by_metadata(self, filter: Dict[str, Any]) -> int:
        require_filter(filter)
        where = self._build_filter(filter)
        try:
            result = self._get_collection().data.delete_many(where=where)
        except WeaviateBaseError as e:
            raise VectorStoreError(f"Weaviate delete failed: {e}", operation="delete") from e
        logger.info(f"Deleted {result.successful} records matching {filter}")
        return result.successful

    def count(self, filter: Optional[Dict[str, Any]] = None) -> int:
        try:
            aggregate = self._get_collection().aggregate.over_all(
                total_count=True,
                filters=self._build_filter(filter) if filter else None,
            )
        except WeaviateBaseError as e:
            raise VectorStoreError(f"Weaviate count failed: {e}", operation="count") from e
        return aggregate.total_count or 0

    def close(self) -> None:
        self.client.close()
