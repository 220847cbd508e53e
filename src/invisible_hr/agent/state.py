import operator
from enum import Enum
from typing import Annotated, Dict, List, Optional, TypedDict

from langgraph.graph.message import add_messages

from invisible_hr.employees import EmployeeContext


class ChatPhase(Enum):
    """Phases of one chat turn."""

    AWAITING_MODEL = "awaiting_model"
    TOOL_REQUESTED = "tool_requested"
    TOOL_EXECUTED = "tool_executed"
    AWAITING_FINAL_MODEL = "awaiting_final_model"
    DONE = "done"


class ChatState(TypedDict):
    """State that flows through the chat graph."""

    messages: Annotated[list, add_messages]

    question: str
    employee: EmployeeContext
    context_chunks: Optional[List[Dict]]
    tools_used: List[str]

    phase: ChatPhase
    phase_history: Annotated[List[ChatPhase], operator.add]
    final_response: Optional[str]
