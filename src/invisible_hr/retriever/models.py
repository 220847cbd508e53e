from dataclasses import dataclass, field
from typing import Any, Dict


@dataclass
class RetrievedChunk:
    """Retrieved chunk with its similarity score."""

    id: str
    text: str
    score: float
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def source(self) -> str:
        return self.metadata.get("source", "")

    @property
    def relevance_percent(self) -> int:
        """Score as a 0-100 percentage, for tool output."""
        return max(0, min(100, int(self.score * 100 + 0.5)))
