"""Embedding clients for the locally hosted (Ollama) and cloud (OpenAI) providers."""

import logging
from abc import ABC, abstractmethod
from typing import Any, List, Optional

import httpx
from llama_index.embeddings.openai import OpenAIEmbedding
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential

from invisible_hr.config import Settings
from invisible_hr.exceptions import EmbeddingProviderError

logger = logging.getLogger(__name__)


def normalize_whitespace(text: str) -> str:
    """Collapse newlines and runs of whitespace into single spaces."""
    return " ".join(text.split())


def _is_transient(error: BaseException) -> bool:
    """Connection problems and 5xx/429 responses are worth retrying."""
    if isinstance(error, httpx.TransportError):
        return True
    if isinstance(error, httpx.HTTPStatusError):
        status = error.response.status_code
        return status >= 500 or status == 429
    return False


def validate_embedding(payload: Any, expected_dimension: Optional[int] = None) -> List[float]:
    """Check that a provider payload is a non-empty list of numbers of the expected size."""
    if not isinstance(payload, list) or not payload:
        raise EmbeddingProviderError("Embedding provider returned an empty or malformed vector")
    if not all(isinstance(value, (int, float)) and not isinstance(value, bool) for value in payload):
        raise EmbeddingProviderError("Embedding vector contains non-numeric values")
    if expected_dimension is not None and len(payload) != expected_dimension:
        raise EmbeddingProviderError(
            f"Embedding dimension {len(payload)} does not match configured dimension {expected_dimension}",
            {"expected": expected_dimension, "actual": len(payload)},
        )
    return [float(value) for value in payload]


class EmbeddingClient(ABC):
    """Converts text into a fixed-length vector."""

    expected_dimension: Optional[int] = None

    @abstractmethod
    def embed(self, text: str) -> List[float]:
        """Embed a single text. Raises EmbeddingProviderError on any failure."""

    def close(self) -> None:
        """Release any underlying connections."""


class OllamaEmbeddingClient(EmbeddingClient):
    """Embeddings from a locally hosted Ollama server (`POST /api/embeddings`)."""

    def __init__(
        self,
        base_url: str = "http://localhost:11434",
        model: str = "nomic-embed-text",
        timeout: float = 30.0,
        expected_dimension: Optional[int] = None,
        max_attempts: int = 3,
        http_client: Optional[httpx.Client] = None,
    ):
        """
        Args:
            base_url: Ollama API base URL
            model: Embedding model name
            timeout: Request timeout in seconds
            expected_dimension: Reject vectors of any other size when set
            max_attempts: Attempts per request for transient failures
            http_client: Pre-built client (tests inject one with a mock transport)
        """
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.expected_dimension = expected_dimension
        self.max_attempts = max_attempts
        self.client = http_client or httpx.Client(timeout=timeout)

    def _post(self, payload: dict) -> httpx.Response:
        @retry(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=0.5, min=0.5, max=5),
            retry=retry_if_exception(_is_transient),
            reraise=True,
        )
        def send() -> httpx.Response:
            response = self.client.post(f"{self.base_url}/api/embeddings", json=payload)
            response.raise_for_status()
            return response

        return send()

    def embed(self, text: str) -> List[float]:
        payload = {"model": self.model, "prompt": normalize_whitespace(text)}
        logger.debug(f"Ollama embedding request: model={self.model}, chars={len(payload['prompt'])}")

        try:
            response = self._post(payload)
        except httpx.HTTPStatusError as e:
            raise EmbeddingProviderError(
                f"Ollama embedding request failed with status {e.response.status_code}",
                {"status_code": e.response.status_code, "model": self.model},
            ) from e
        except httpx.HTTPError as e:
            raise EmbeddingProviderError(f"Ollama embedding request failed: {e}", {"model": self.model}) from e

        try:
            data = response.json()
        except ValueError as e:
            raise EmbeddingProviderError("Ollama returned a non-JSON embedding response") from e
        if not isinstance(data, dict):
            raise EmbeddingProviderError("Ollama returned an unexpected embedding payload")

        return validate_embedding(data.get("embedding"), self.expected_dimension)

    def close(self) -> None:
        self.client.close()


class OpenAIEmbeddingClient(EmbeddingClient):
    """Embeddings from the OpenAI API through LlamaIndex's OpenAIEmbedding."""

    def __init__(
        self,
        model: str = "text-embedding-3-small",
        timeout: float = 30.0,
        expected_dimension: Optional[int] = None,
        max_retries: int = 3,
        embed_model: Optional[OpenAIEmbedding] = None,
    ):
        self.model = model
        self.expected_dimension = expected_dimension
        self.embed_model = embed_model or OpenAIEmbedding(model=model, timeout=timeout, max_retries=max_retries)
        logger.info(f"Using embedding model: {model}")

    def embed(self, text: str) -> List[float]:
        try:
            vector = self.embed_model.get_text_embedding(normalize_whitespace(text))
        except Exception as e:
            raise EmbeddingProviderError(f"OpenAI embedding request failed: {e}", {"model": self.model}) from e
        return validate_embedding(vector, self.expected_dimension)


def create_embedding_client(settings: Settings) -> EmbeddingClient:
    """Build the embedding client selected by EMBEDDING_PROVIDER."""
    if settings.embedding_provider == "openai":
        return OpenAIEmbeddingClient(
            model=settings.embedding_model,
            timeout=settings.request_timeout,
            expected_dimension=settings.embedding_dimension,
        )
    return OllamaEmbeddingClient(
        base_url=settings.ollama_base_url,
        model=settings.embedding_model,
        timeout=settings.request_timeout,
        expected_dimension=settings.embedding_dimension,
    )
