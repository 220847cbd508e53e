"""
Application settings read from the environment.

Field names map to upper-case environment variables (`chunk_size` reads
`CHUNK_SIZE`). Entry points call `load_dotenv()` before building settings.
"""

from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, ValidationError as PydanticValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from invisible_hr.exceptions import ValidationError


class Settings(BaseSettings):
    """Top-level configuration used to wire the concrete clients."""

    model_config = SettingsConfigDict(case_sensitive=False, extra="ignore")

    # Embeddings
    embedding_provider: Literal["ollama", "openai"] = "ollama"
    embedding_model: str = "nomic-embed-text"
    embedding_dimension: Optional[int] = Field(default=None, gt=0)
    ollama_base_url: str = "http://localhost:11434"

    # Chat model
    chat_provider: Literal["openai", "ollama"] = "openai"
    chat_model: str = "gpt-4o"
    chat_temperature: float = Field(default=0.1, ge=0.0, le=2.0)

    # Vector store
    vector_store: Literal["weaviate", "s3vectors", "memory"] = "weaviate"
    weaviate_url: str = "http://localhost:8080"
    weaviate_collection: str = "HrKnowledge"
    s3_vectors_bucket: str = "invisible-hr"
    s3_vectors_index: str = "hr-knowledge"
    aws_region: str = "us-east-1"

    # Ingestion / retrieval
    chunk_size: int = Field(default=800, gt=0)
    chunk_overlap: int = Field(default=200, ge=0)
    retrieval_top_k: int = Field(default=3, gt=0)

    # Runtime
    request_timeout: float = Field(default=30.0, gt=0)
    knowledge_base_dir: Path = Path("./knowledge_base")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    @field_validator("embedding_provider", "chat_provider", "vector_store", mode="before")
    @classmethod
    def lowercase_choice(cls, value):
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator("log_level", mode="before")
    @classmethod
    def uppercase_level(cls, value):
        return value.strip().upper() if isinstance(value, str) else value

    @field_validator("embedding_dimension", mode="before")
    @classmethod
    def blank_dimension(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @classmethod
    def from_env(cls, **overrides) -> "Settings":
        """
        Build settings from environment variables, falling back to defaults.

        Raises:
            ValidationError: A variable is missing its expected type or choice
        """
        try:
            settings = cls(**overrides)
        except PydanticValidationError as e:
            error = e.errors()[0]
            name = ".".join(str(part) for part in error["loc"]).upper()
            raise ValidationError(f"Invalid setting {name}: {error['msg']}", field=name) from e

        if settings.chunk_overlap >= settings.chunk_size:
            raise ValidationError("CHUNK_OVERLAP must be smaller than CHUNK_SIZE", field="CHUNK_OVERLAP")
        return settings
