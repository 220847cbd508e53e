"""Configuration for the HR chat orchestrator."""

from dataclasses import dataclass


@dataclass
class AgentConfig:
    """Configuration for the chat orchestrator."""

    # LLM settings
    model_name: str = "gpt-4o"
    temperature: float = 0.1
    max_tokens: int = 1024
    request_timeout: float = 30.0

    # Per-phase timeouts (seconds)
    retrieval_timeout: float = 20.0
    model_timeout: float = 45.0
    tool_timeout: float = 20.0

    # Retrieval
    top_k: int = 3

    # Feature flags
    enable_tools: bool = True
    # Answer without context when the vector store is down instead of failing
    degrade_on_retrieval_error: bool = False

    # Observability
    enable_langfuse: bool = False
