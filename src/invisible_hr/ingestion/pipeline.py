import logging
from typing import Iterable, List, Optional

from langfuse import observe

from invisible_hr.embeddings import EmbeddingClient
from invisible_hr.exceptions import EmptyDocumentError
from invisible_hr.vectorstore.base import VectorRecord, VectorStore

from .config import IngestionConfig
from .extraction import extract_text
from .models import DocumentChunk
from .text_processing import chunk_text, make_chunk_id

logger = logging.getLogger(__name__)


class IngestionPipeline:
    """Extracts, chunks, embeds and stores uploaded documents."""

    def __init__(
        self,
        embedding_client: EmbeddingClient,
        vector_store: VectorStore,
        config: Optional[IngestionConfig] = None,
    ):
        self.embedding_client = embedding_client
        self.vector_store = vector_store
        self.config = config or IngestionConfig()
        logger.info(
            f"Initializing IngestionPipeline (chunk_size={self.config.chunk_size}, "
            f"overlap={self.config.chunk_overlap})"
        )

    def build_chunks(self, text: str, filename: str, document_id: str) -> List[DocumentChunk]:
        """Split extracted text into chunks with stable ids."""
        pieces = chunk_text(text, self.config.chunk_size, self.config.chunk_overlap)
        return [
            DocumentChunk(
                chunk_id=make_chunk_id(document_id, i),
                document_id=document_id,
                filename=filename,
                chunk_index=i,
                text=piece,
            )
            for i, piece in enumerate(pieces)
        ]

    @observe()
    def ingest(self, file_bytes: bytes, filename: str, document_id: str) -> int:
        """
        Index one document.

        Args:
            file_bytes: Raw uploaded content
            filename: Original filename (selects the extractor)
            document_id: Caller-supplied id, stored as the `source` metadata

        Returns:
            Number of chunks embedded and upserted

        Raises:
            UnsupportedFileTypeError: Unknown extension or unparseable file
            EmptyDocumentError: No text could be extracted
            EmbeddingProviderError / VectorStoreError: Provider failures
        """
        logger.info("=" * 80)
        logger.info(f"Ingesting {filename} as {document_id}")

        text = extract_text(file_bytes, filename)
        if not text.strip():
            raise EmptyDocumentError(filename)

        chunks = self.build_chunks(text, filename, document_id)
        logger.info(f"Created {len(chunks)} chunks")

        records = []
        for chunk in chunks:
            embedding = self.embedding_client.embed(chunk.text)
            records.append(VectorRecord(id=chunk.chunk_id, embedding=embedding, text=chunk.text, metadata=chunk.metadata))

        self.vector_store.upsert(records)
        logger.info(f"Ingested {len(records)} chunks for {document_id}")
        return len(records)

    def purge(self, document_id: str) -> int:
        """Remove every vector that belongs to a document."""
        removed = self.vector_store.delete_by_metadata({"source": document_id})
        logger.info(f"Purged {removed} vectors for {document_id}")
        return removed

    def reingest(self, file_bytes: bytes, filename: str, document_id: str) -> int:
        """Replace a document's vectors, so a shorter revision leaves no stale chunks behind."""
        self.purge(document_id)
        return self.ingest(file_bytes, filename, document_id)

    def ingest_policies(self, policies: Iterable) -> int:
        """
        Seed policy texts, one vector per policy.

        Ids are `policy-<id>` so re-seeding replaces rather than duplicates.
        """
        records = []
        for policy in policies:
            record_id = f"policy-{policy.id}"
            records.append(
                VectorRecord(
                    id=record_id,
                    embedding=self.embedding_client.embed(policy.content),
                    text=policy.content,
                    metadata={"source": record_id, "filename": record_id, "type": "policy", "policy_id": policy.id},
                )
            )
        self.vector_store.upsert(records)
        logger.info(f"Seeded {len(records)} policies")
        return len(records)
