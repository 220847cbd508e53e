"""Configuration for retrieval system."""

from dataclasses import dataclass


@dataclass
class RetrievalConfig:
    """Configuration for retrieval behavior."""

    default_top_k: int = 3
    context_separator: str = "\n--\n"
    # Hits scoring below this are dropped (cosine similarity; -1.0 keeps everything)
    min_score: float = -1.0
