"""
Tests for the S3 Vectors store with a mocked boto3 client.
"""

from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from invisible_hr.exceptions import VectorStoreError
from invisible_hr.vectorstore import VectorRecord
from invisible_hr.vectorstore.s3_vectors_store import S3VectorsStore


def _client_error(code: str, operation: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


@pytest.fixture
def client():
    client = MagicMock()
    client.get_index.return_value = {"index": {"dimension": 2}}
    return client


@pytest.fixture
def store(client):
    return S3VectorsStore("hr-bucket", "hr-index", client=client)


class TestS3VectorsStore:
    """Tests for S3VectorsStore."""

    def test_upsert_sends_keys_vectors_and_text(self, store, client):
        store.upsert([VectorRecord(id="doc-chunk-0", embedding=[0.5, 0.5], text="hello", metadata={"source": "doc"})])

        kwargs = client.put_vectors.call_args.kwargs
        assert kwargs["vectorBucketName"] == "hr-bucket"
        assert kwargs["indexName"] == "hr-index"
        assert kwargs["vectors"] == [
            {"key": "doc-chunk-0", "data": {"float32": [0.5, 0.5]}, "metadata": {"source": "doc", "text": "hello"}}
        ]

    def test_creates_index_when_missing(self, store, client):
        client.get_index.side_effect = _client_error("NotFoundException", "GetIndex")

        store.upsert([VectorRecord(id="a", embedding=[0.1, 0.2, 0.3], text="t", metadata={"source": "doc"})])

        create_kwargs = client.create_index.call_args.kwargs
        assert create_kwargs["dimension"] == 3
        assert create_kwargs["distanceMetric"] == "cosine"

    def test_dimension_mismatch(self, store):
        with pytest.raises(VectorStoreError):
            store.upsert([VectorRecord(id="a", embedding=[0.1, 0.2, 0.3], text="t", metadata={"source": "doc"})])

    def test_large_upsert_is_batched(self, store, client):
        records = [VectorRecord(id=f"r{i}", embedding=[1.0, 0.0], text="t", metadata={"source": "doc"}) for i in range(1200)]

        store.upsert(records)

        assert client.put_vectors.call_count == 3

    def test_query_maps_results(self, store, client):
        client.query_vectors.return_value = {
            "vectors": [
                {"key": "b", "metadata": {"source": "doc", "text": "second"}, "distance": 0.4},
                {"key": "a", "metadata": {"source": "doc", "text": "first"}, "distance": 0.1},
            ]
        }

        hits = store.query([1.0, 0.0], top_k=2)

        assert [hit.id for hit in hits] == ["a", "b"]
        assert hits[0].text == "first"
        assert hits[0].metadata == {"source": "doc"}
        assert hits[0].score == pytest.approx(0.9)

    def test_query_failure_is_loud(self, store, client):
        client.query_vectors.side_effect = _client_error("ServiceUnavailableException", "QueryVectors")

        with pytest.raises(VectorStoreError):
            store.query([1.0, 0.0], top_k=3)

    def test_delete_by_metadata_pages_and_filters(self, store, client):
        client.list_vectors.side_effect = [
            {"vectors": [{"key": "a", "metadata": {"source": "doc"}}, {"key": "b", "metadata": {"source": "other"}}], "nextToken": "t1"},
            {"vectors": [{"key": "c", "metadata": {"source": "doc"}}]},
        ]

        assert store.delete_by_metadata({"source": "doc"}) == 2

        client.delete_vectors.assert_called_once_with(vectorBucketName="hr-bucket", indexName="hr-index", keys=["a", "c"])
        assert client.list_vectors.call_args_list[1].kwargs["nextToken"] == "t1"
