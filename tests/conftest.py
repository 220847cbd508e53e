"""Shared fixtures."""

import re
import zlib
from datetime import date
from typing import List

import pytest

from invisible_hr.embeddings import EmbeddingClient
from invisible_hr.employees import Employee, EmployeeContext, seed_directory
from invisible_hr.ingestion import IngestionPipeline
from invisible_hr.retriever import PolicyRetriever
from invisible_hr.vectorstore import InMemoryVectorStore


class FakeEmbeddingClient(EmbeddingClient):
    """Deterministic bag-of-words embedding; texts sharing words point the same way."""

    def __init__(self, dimension: int = 32):
        self.dimension = dimension
        self.calls: List[str] = []

    def embed(self, text: str) -> List[float]:
        self.calls.append(text)
        vector = [0.0] * self.dimension
        for word in re.findall(r"\w+", text.lower()):
            vector[zlib.crc32(word.encode()) % self.dimension] += 1.0
        return vector


@pytest.fixture
def today():
    return date(2025, 1, 1)


@pytest.fixture
def embedder():
    return FakeEmbeddingClient()


@pytest.fixture
def store():
    return InMemoryVectorStore()


@pytest.fixture
def pipeline(embedder, store):
    return IngestionPipeline(embedder, store)


@pytest.fixture
def retriever(embedder, store):
    return PolicyRetriever(embedder, store)


@pytest.fixture
def directory(today):
    return seed_directory(today)


@pytest.fixture
def hazim_context(directory):
    return EmployeeContext.from_employee(directory.get_by_email("hazim@company.com"))


def make_employee(id, role="Engineer", salary=5000, country="Malaysia", name=None, **kwargs) -> Employee:
    return Employee(
        id=id,
        name=name or f"Employee {id}",
        email=f"employee{id}@company.com",
        role=role,
        country=country,
        salary=salary,
        **kwargs,
    )
