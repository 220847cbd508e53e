"""
Tools the chat model may call.

Declarations use the OpenAI function shape `{name, description, parameters}`.
Results are JSON-serializable dicts; failures are reported inside the result so
the model can explain them instead of the turn crashing.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

from invisible_hr.exceptions import EmployeeNotFoundError, HRAssistantError
from invisible_hr.retriever import PolicyRetriever

logger = logging.getLogger(__name__)

TOOL_DECLARATIONS = [
    {
        "name": "getLeaveBalance",
        "description": "Get the leave balance (remaining leave days) for the current employee.",
        "parameters": {
            "type": "object",
            "properties": {
                "employeeId": {
                    "type": "string",
                    "description": (
                        "Optional: ID or Email is already known from context. "
                        "Only provide if asking for SOMEONE ELSE."
                    ),
                },
            },
        },
    },
    {
        "name": "readPolicy",
        "description": "Read company policies. Can search for specific policy content by keyword.",
        "parameters": {
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": 'Optional: keyword to search for in policies (e.g., "lunch", "leave", "remote")',
                },
            },
        },
    },
]


class ToolRegistry:
    """Executes the declared tools against the employee directory and the retriever."""

    def __init__(self, directory, retriever: PolicyRetriever, policy_top_k: int = 3):
        self.directory = directory
        self.retriever = retriever
        self.policy_top_k = policy_top_k
        self._handlers: Dict[str, Callable[..., Dict[str, Any]]] = {
            "getLeaveBalance": self.get_leave_balance,
            "readPolicy": self.read_policy,
        }

    @property
    def declarations(self) -> List[Dict[str, Any]]:
        return TOOL_DECLARATIONS

    def knows(self, name: str) -> bool:
        return name in self._handlers

    def get_leave_balance(self, employeeId: Optional[str] = None, default_employee_id: Optional[int] = None) -> Dict:
        """Leave balance by numeric id or email; falls back to the employee asking."""
        identifier = employeeId or default_employee_id
        if identifier is None or str(identifier).strip() == "":
            return {"error": "Employee not found"}
        try:
            employee = self.directory.find(str(identifier))
        except EmployeeNotFoundError:
            return {"error": "Employee not found"}
        return {
            "employeeName": employee.name,
            "leaveBalance": employee.leave_balance,
            "message": f"{employee.name} has {employee.leave_balance} days of leave remaining.",
        }

    def read_policy(self, query: str = "") -> Dict:
        """Semantic policy search; lists a few policies when no query is given."""
        if not query or not query.strip():
            policies = self.directory.list_policies()[:5]
            return {
                "message": "Please specify what policy you are looking for.",
                "availablePolicies": [policy.content[:50] + "..." for policy in policies],
            }

        try:
            chunks = self.retriever.retrieve(query, top_k=self.policy_top_k)
        except HRAssistantError as e:
            logger.error(f"readPolicy failed for query='{query}': {e}")
            return {"error": "Failed to retrieve policy information."}

        if not chunks:
            return {"message": "No relevant policies found."}

        content = "\n\n".join(f"[Relevance: {chunk.relevance_percent}%] {chunk.text}" for chunk in chunks)
        return {"policiesFound": len(chunks), "content": content}

    def execute(self, name: str, arguments: Optional[Dict[str, Any]], employee_id: Optional[int] = None) -> Optional[Dict]:
        """
        Run a tool by name.

        Returns None for unknown tools; nothing is executed in that case.
        """
        handler = self._handlers.get(name)
        if handler is None:
            logger.warning(f"Model requested unknown tool '{name}', ignoring")
            return None

        arguments = dict(arguments or {})
        logger.info(f"Executing tool {name} with {arguments}")
        if name == "getLeaveBalance":
            return handler(employeeId=arguments.get("employeeId"), default_employee_id=employee_id)
        return handler(query=arguments.get("query", ""))
