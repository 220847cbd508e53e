import asyncio
import logging
from typing import List, Optional

from langfuse import observe

from invisible_hr.embeddings import EmbeddingClient
from invisible_hr.exceptions import ValidationError
from invisible_hr.vectorstore.base import VectorStore

from .config import RetrievalConfig
from .models import RetrievedChunk

logger = logging.getLogger(__name__)


class PolicyRetriever:
    """
    Semantic top-K retrieval over the knowledge base.

    Embedding and vector store failures propagate unchanged so callers can tell
    "nothing relevant" apart from "store unavailable".
    """

    def __init__(
        self,
        embedding_client: EmbeddingClient,
        vector_store: VectorStore,
        config: Optional[RetrievalConfig] = None,
    ):
        self.embedding_client = embedding_client
        self.vector_store = vector_store
        self.config = config or RetrievalConfig()

    def retrieve(self, query: str, top_k: Optional[int] = None) -> List[RetrievedChunk]:
        """
        Retrieve the chunks most similar to a query.

        Args:
            query: Free-text question
            top_k: Number of chunks (defaults to config.default_top_k)

        Returns:
            Chunks ordered by descending score
        """
        if not query or not query.strip():
            raise ValidationError("Query must not be empty", field="query")

        top_k = top_k if top_k is not None else self.config.default_top_k
        if top_k <= 0:
            return []
        embedding = self.embedding_client.embed(query)
        results = self.vector_store.query(embedding, top_k)

        chunks = [
            RetrievedChunk(id=r.id, text=r.text, score=r.score, metadata=r.metadata)
            for r in results
            if r.score >= self.config.min_score
        ]
        logger.info(f"Retrieved {len(chunks)} chunks for query='{query[:60]}'")
        return chunks

    @observe(as_type="retriever")
    async def aretrieve(self, query: str, top_k: Optional[int] = None) -> List[RetrievedChunk]:
        """Async wrapper; the sync clients run in a worker thread."""
        return await asyncio.to_thread(self.retrieve, query, top_k)

    def format_context(self, chunks: List[RetrievedChunk]) -> str:
        """Join chunk texts with the configured separator."""
        return self.config.context_separator.join(chunk.text for chunk in chunks)
