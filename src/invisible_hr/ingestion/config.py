from dataclasses import dataclass


@dataclass
class IngestionConfig:
    """Configuration for ingestion pipeline."""

    chunk_size: int = 800
    chunk_overlap: int = 200
