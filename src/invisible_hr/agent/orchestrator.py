import asyncio
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from langchain_core.messages import AIMessage, HumanMessage, SystemMessage, ToolMessage
from langfuse import observe
from langfuse.langchain import CallbackHandler
from langgraph.graph import END, START, StateGraph

from invisible_hr.employees import EmployeeContext
from invisible_hr.exceptions import (
    ChatProviderError,
    EmbeddingProviderError,
    ValidationError,
    VectorStoreError,
)
from invisible_hr.retriever import PolicyRetriever

from .config import AgentConfig
from .prompt import build_system_prompt
from .state import ChatPhase, ChatState
from .tools import ToolRegistry

logger = logging.getLogger(__name__)


@dataclass
class ChatAnswer:
    """Final answer of one chat turn."""

    response: str
    sources: List[str] = field(default_factory=list)
    tools_used: List[str] = field(default_factory=list)
    phases: List[ChatPhase] = field(default_factory=list)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": True,
            "response": self.response,
            "sources": self.sources,
            "toolsUsed": self.tools_used,
            "timestamp": self.timestamp.isoformat(),
        }


def _message_text(message: AIMessage) -> str:
    """Plain text of a model reply (content may be a list of parts)."""
    content = message.content
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = [part if isinstance(part, str) else part.get("text", "") for part in content if isinstance(part, (str, dict))]
        return "".join(parts)
    return ""


class ChatOrchestrator:
    """
    Grounded HR chat over a LangGraph state machine.

    retrieve -> call_model -> [execute_tools -> call_final_model] -> END

    The bracketed branch runs only when the model asks for tools. Each model
    call runs under its own timeout.
    """

    def __init__(
        self,
        retriever: PolicyRetriever,
        chat_model,
        tools: Optional[ToolRegistry] = None,
        config: Optional[AgentConfig] = None,
    ):
        self.retriever = retriever
        self.chat_model = chat_model
        self.tools = tools
        self.config = config or AgentConfig()

        self.tools_enabled = self.tools is not None and self.config.enable_tools
        self.tool_model = self.chat_model.bind_tools(self.tools.declarations) if self.tools_enabled else self.chat_model

        self.graph = self._build_graph()
        logger.info(f"ChatOrchestrator initialized (tools={'on' if self.tools_enabled else 'off'})")

    def _build_graph(self):
        graph = StateGraph(ChatState)

        graph.add_node("retrieve", self.retrieve)
        graph.add_node("call_model", self.call_model)
        graph.add_node("execute_tools", self.execute_tools)
        graph.add_node("call_final_model", self.call_final_model)

        graph.add_edge(START, "retrieve")
        graph.add_edge("retrieve", "call_model")

        def route_after_model(state: ChatState) -> str:
            if state["phase"] == ChatPhase.TOOL_REQUESTED:
                return "execute_tools"
            return "done"

        graph.add_conditional_edges("call_model", route_after_model, {"execute_tools": "execute_tools", "done": END})
        graph.add_edge("execute_tools", "call_final_model")
        graph.add_edge("call_final_model", END)

        return graph.compile()

    # Nodes

    async def retrieve(self, state: ChatState) -> Dict:
        """Fetch policy context and assemble the opening messages."""
        question = state["question"]
        try:
            chunks = await asyncio.wait_for(
                self.retriever.aretrieve(question, self.config.top_k), timeout=self.config.retrieval_timeout
            )
        except asyncio.TimeoutError as e:
            if not self.config.degrade_on_retrieval_error:
                raise VectorStoreError("Policy retrieval timed out", operation="query") from e
            logger.warning("Policy retrieval timed out, answering without context")
            chunks = []
        except (VectorStoreError, EmbeddingProviderError) as e:
            if not self.config.degrade_on_retrieval_error:
                raise
            logger.warning(f"Policy retrieval failed, answering without context: {e}")
            chunks = []

        context = self.retriever.format_context(chunks)
        system_prompt = build_system_prompt(state["employee"], context, tools_enabled=self.tools_enabled)

        return {
            "messages": [SystemMessage(content=system_prompt), HumanMessage(content=question)],
            "context_chunks": [{"id": c.id, "source": c.source, "score": c.score} for c in chunks],
            "phase": ChatPhase.AWAITING_MODEL,
            "phase_history": [ChatPhase.AWAITING_MODEL],
        }

    async def call_model(self, state: ChatState) -> Dict:
        """First completion; the model either answers or requests tools."""
        response = await self._invoke(self.tool_model, state["messages"], ChatPhase.AWAITING_MODEL)

        if response.tool_calls:
            logger.info(f"Model requested tools: {[call['name'] for call in response.tool_calls]}")
            return {
                "messages": [response],
                "phase": ChatPhase.TOOL_REQUESTED,
                "phase_history": [ChatPhase.TOOL_REQUESTED],
            }

        return {
            "messages": [response],
            "final_response": self._require_text(response),
            "phase": ChatPhase.DONE,
            "phase_history": [ChatPhase.DONE],
        }

    async def execute_tools(self, state: ChatState) -> Dict:
        """Run each requested tool and append its JSON result as a tool message."""
        request = state["messages"][-1]
        employee_id = state["employee"].employee_id
        tool_messages = []
        tools_used = list(state.get("tools_used") or [])

        for call in request.tool_calls:
            name = call["name"]
            try:
                result = await asyncio.wait_for(
                    asyncio.to_thread(self.tools.execute, name, call.get("args"), employee_id),
                    timeout=self.config.tool_timeout,
                )
            except asyncio.TimeoutError:
                logger.warning(f"Tool {name} timed out")
                result = {"error": f"Tool {name} timed out."}

            if result is not None:
                tools_used.append(name)
            # Every tool call needs a reply message, including ignored unknown tools
            tool_messages.append(
                ToolMessage(content=json.dumps(result if result is not None else {}), tool_call_id=call["id"], name=name)
            )

        return {
            "messages": tool_messages,
            "tools_used": tools_used,
            "phase": ChatPhase.TOOL_EXECUTED,
            "phase_history": [ChatPhase.TOOL_EXECUTED],
        }

    async def call_final_model(self, state: ChatState) -> Dict:
        """Second completion that turns tool results into the answer."""
        response = await self._invoke(self.chat_model, state["messages"], ChatPhase.AWAITING_FINAL_MODEL)
        return {
            "messages": [response],
            "final_response": self._require_text(response),
            "phase": ChatPhase.DONE,
            "phase_history": [ChatPhase.AWAITING_FINAL_MODEL, ChatPhase.DONE],
        }

    # Helpers

    async def _invoke(self, model, messages: List, phase: ChatPhase) -> AIMessage:
        try:
            response = await asyncio.wait_for(model.ainvoke(messages), timeout=self.config.model_timeout)
        except asyncio.TimeoutError as e:
            raise ChatProviderError(
                f"Chat model timed out after {self.config.model_timeout}s", {"phase": phase.value}
            ) from e
        except Exception as e:
            raise ChatProviderError(f"Chat model call failed: {e}", {"phase": phase.value}) from e

        if not isinstance(response, AIMessage):
            raise ChatProviderError(
                f"Chat model returned {type(response).__name__} instead of a message", {"phase": phase.value}
            )
        return response

    @staticmethod
    def _require_text(response: AIMessage) -> str:
        text = _message_text(response).strip()
        if not text:
            raise ChatProviderError("Chat model returned an empty answer")
        return text

    @observe(as_type="agent")
    async def answer(self, message: str, employee: EmployeeContext) -> ChatAnswer:
        """
        Answer one employee question.

        Raises:
            ValidationError: Blank message
            ChatProviderError: Model failure, timeout or malformed reply
            VectorStoreError / EmbeddingProviderError: Retrieval failure (unless degrading)
        """
        if not message or not message.strip():
            raise ValidationError("Message is required", field="message")

        initial_state: ChatState = {
            "messages": [],
            "question": message.strip(),
            "employee": employee,
            "context_chunks": None,
            "tools_used": [],
            "phase": ChatPhase.AWAITING_MODEL,
            "phase_history": [],
            "final_response": None,
        }

        run_config = {"callbacks": [CallbackHandler()]} if self.config.enable_langfuse else {}
        result = await self.graph.ainvoke(initial_state, config=run_config)

        logger.info(f"Chat answered for employee {employee.employee_id} (phases={[p.value for p in result['phase_history']]})")
        return ChatAnswer(
            response=result["final_response"],
            sources=[chunk["source"] for chunk in result.get("context_chunks") or []],
            tools_used=result.get("tools_used") or [],
            phases=result["phase_history"],
        )
