"""Select the vector store backend from settings."""

import logging

from invisible_hr.config import Settings

from .base import VectorStore
from .memory_store import InMemoryVectorStore

logger = logging.getLogger(__name__)


def create_vector_store(settings: Settings) -> VectorStore:
    """
    Build the backend named by VECTOR_STORE.

    Backend modules are imported lazily so a deployment only needs the client
    library for the store it actually uses.
    """
    logger.info(f"Using vector store backend: {settings.vector_store}")

    if settings.vector_store == "weaviate":
        from .weaviate_store import WeaviateVectorStore

        return WeaviateVectorStore.from_url(
            settings.weaviate_url, settings.weaviate_collection, timeout=settings.request_timeout
        )

    if settings.vector_store == "s3vectors":
        from .s3_vectors_store import S3VectorsStore

        return S3VectorsStore(
            bucket_name=settings.s3_vectors_bucket,
            index_name=settings.s3_vectors_index,
            region_name=settings.aws_region,
            timeout=settings.request_timeout,
        )

    return InMemoryVectorStore(dimension=settings.embedding_dimension)
