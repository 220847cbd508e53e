"""
Tests for the ingestion pipeline.
"""

from unittest.mock import MagicMock

import pytest

from invisible_hr.employees import SEED_POLICIES
from invisible_hr.exceptions import EmbeddingProviderError, EmptyDocumentError, UnsupportedFileTypeError
from invisible_hr.ingestion import IngestionConfig, IngestionPipeline

THREE_SENTENCES = b"Lunch allowance is RM20 per day. Claims go through the HR portal. Receipts are not required."


class TestIngestionPipeline:
    """Tests for IngestionPipeline."""

    def test_short_txt_yields_one_chunk(self, pipeline, store):
        count = pipeline.ingest(THREE_SENTENCES, "lunch.txt", "doc-1")

        assert count == 1
        assert store.count() == 1
        assert store.count({"source": "doc-1"}) == 1

    def test_record_ids_and_metadata(self, pipeline, store, embedder):
        pipeline.ingest(THREE_SENTENCES, "lunch.txt", "doc-1")

        [hit] = store.query(embedder.embed("lunch allowance"), top_k=3)
        assert hit.id == "doc-1-chunk-0"
        assert hit.metadata == {"source": "doc-1", "filename": "lunch.txt"}
        assert hit.text == THREE_SENTENCES.decode()

    def test_purge_removes_all_vectors(self, pipeline, store):
        pipeline.ingest(THREE_SENTENCES, "lunch.txt", "doc-1")
        pipeline.ingest(b"Remote work needs approval.", "remote.txt", "doc-2")

        assert pipeline.purge("doc-1") == 1
        assert store.count({"source": "doc-1"}) == 0
        assert store.count({"source": "doc-2"}) == 1

    def test_long_document_embeds_each_chunk(self, embedder, store):
        pipeline = IngestionPipeline(embedder, store, IngestionConfig(chunk_size=120, chunk_overlap=30))
        text = " ".join(f"Rule {i} applies to every employee in the company." for i in range(12))

        count = pipeline.ingest(text.encode(), "rules.txt", "rules")

        assert count > 1
        assert store.count({"source": "rules"}) == count
        assert len(embedder.calls) == count

    def test_reingest_replaces_stale_chunks(self, embedder, store):
        pipeline = IngestionPipeline(embedder, store, IngestionConfig(chunk_size=120, chunk_overlap=30))
        long_text = " ".join(f"Rule {i} applies to every employee in the company." for i in range(12))
        pipeline.ingest(long_text.encode(), "rules.txt", "rules")

        count = pipeline.reingest(b"Only one rule remains.", "rules.txt", "rules")

        assert count == 1
        assert store.count({"source": "rules"}) == 1

    def test_empty_document(self, pipeline, store):
        with pytest.raises(EmptyDocumentError):
            pipeline.ingest(b"   \n  ", "empty.txt", "doc-1")
        assert store.count() == 0

    def test_unsupported_file(self, pipeline):
        with pytest.raises(UnsupportedFileTypeError):
            pipeline.ingest(b"a,b", "data.csv", "doc-1")

    def test_embedding_failure_writes_nothing(self, store):
        embedder = MagicMock()
        embedder.embed.side_effect = EmbeddingProviderError("provider down")
        pipeline = IngestionPipeline(embedder, store)

        with pytest.raises(EmbeddingProviderError):
            pipeline.ingest(THREE_SENTENCES, "lunch.txt", "doc-1")
        assert store.count() == 0

    def test_ingest_policies(self, pipeline, store):
        assert pipeline.ingest_policies(SEED_POLICIES) == 3
        # Re-seeding replaces by id
        pipeline.ingest_policies(SEED_POLICIES)

        assert store.count() == 3
        assert store.count({"type": "policy"}) == 3
        assert store.count({"source": "policy-2"}) == 1
