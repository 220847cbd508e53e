"""Integration tests for the ingestion pipeline using a local Weaviate instance."""

import os

import pytest

from invisible_hr.ingestion import IngestionPipeline
from invisible_hr.retriever import PolicyRetriever
from invisible_hr.vectorstore.weaviate_store import WeaviateVectorStore

COLLECTION = "HrKnowledgeIntegrationTest"

pytestmark = pytest.mark.integration


@pytest.fixture
def weaviate_store():
    from dotenv import load_dotenv

    load_dotenv()
    try:
        store = WeaviateVectorStore.from_url(os.getenv("WEAVIATE_URL", "http://localhost:8080"), COLLECTION)
    except Exception as e:
        pytest.skip(f"Local Weaviate not reachable: {e}")

    yield store

    store.client.collections.delete(COLLECTION)
    store.close()


class TestIngestionIntegration:
    def test_ingest_query_purge(self, embedder, weaviate_store):
        pipeline = IngestionPipeline(embedder, weaviate_store)
        text = b"Remote work policy: Employees may work from home up to 2 days per week."

        assert pipeline.ingest(text, "remote.txt", "doc-remote") == 1
        assert weaviate_store.count({"source": "doc-remote"}) == 1

        chunks = PolicyRetriever(embedder, weaviate_store).retrieve("Can I work from home?")
        assert chunks[0].id == "doc-remote-chunk-0"
        assert chunks[0].metadata["filename"] == "remote.txt"

        assert pipeline.purge("doc-remote") == 1
        assert weaviate_store.count() == 0
