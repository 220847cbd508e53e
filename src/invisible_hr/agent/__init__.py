from .config import AgentConfig
from .orchestrator import ChatAnswer, ChatOrchestrator
from .state import ChatPhase
from .tools import ToolRegistry

__all__ = ["AgentConfig", "ChatAnswer", "ChatOrchestrator", "ChatPhase", "ToolRegistry"]
