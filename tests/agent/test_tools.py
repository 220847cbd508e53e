"""
Tests for the chat tools.
"""

from unittest.mock import MagicMock

import pytest

from invisible_hr.agent.tools import TOOL_DECLARATIONS, ToolRegistry
from invisible_hr.employees import SEED_POLICIES
from invisible_hr.exceptions import VectorStoreError


@pytest.fixture
def registry(directory, retriever, pipeline):
    pipeline.ingest_policies(SEED_POLICIES)
    return ToolRegistry(directory, retriever)


class TestDeclarations:
    def test_openai_function_shape(self):
        names = [tool["name"] for tool in TOOL_DECLARATIONS]

        assert names == ["getLeaveBalance", "readPolicy"]
        for tool in TOOL_DECLARATIONS:
            assert set(tool) == {"name", "description", "parameters"}
            assert tool["parameters"]["type"] == "object"


class TestGetLeaveBalance:
    def test_by_email(self, registry):
        result = registry.execute("getLeaveBalance", {"employeeId": "Sarah@Company.com"})

        assert result == {
            "employeeName": "Sarah",
            "leaveBalance": 15,
            "message": "Sarah has 15 days of leave remaining.",
        }

    def test_by_numeric_id(self, registry):
        assert registry.execute("getLeaveBalance", {"employeeId": "3"})["employeeName"] == "Ahmad"

    def test_defaults_to_current_employee(self, registry):
        assert registry.execute("getLeaveBalance", {}, employee_id=1)["leaveBalance"] == 12

    def test_unknown_employee(self, registry):
        assert registry.execute("getLeaveBalance", {"employeeId": "nobody@company.com"}) == {"error": "Employee not found"}


class TestReadPolicy:
    def test_finds_relevant_policy(self, registry):
        result = registry.execute("readPolicy", {"query": "lunch allowance per day"})

        assert result["policiesFound"] >= 1
        first_line = result["content"].split("\n\n")[0]
        assert first_line.startswith("[Relevance: ")
        assert "Lunch allowance is RM20 per day" in first_line

    def test_empty_query_lists_policies(self, registry):
        result = registry.execute("readPolicy", {})

        assert result["message"] == "Please specify what policy you are looking for."
        assert len(result["availablePolicies"]) == 3
        assert result["availablePolicies"][0] == SEED_POLICIES[0].content[:50] + "..."

    def test_no_matches(self, directory):
        retriever = MagicMock()
        retriever.retrieve.return_value = []

        result = ToolRegistry(directory, retriever).execute("readPolicy", {"query": "pets"})

        assert result == {"message": "No relevant policies found."}

    def test_store_failure_is_reported_in_result(self, directory):
        retriever = MagicMock()
        retriever.retrieve.side_effect = VectorStoreError("down")

        result = ToolRegistry(directory, retriever).execute("readPolicy", {"query": "leave"})

        assert result == {"error": "Failed to retrieve policy information."}


def test_unknown_tool_is_not_executed(registry):
    assert registry.execute("deleteEverything", {"confirm": True}) is None
    assert not registry.knows("deleteEverything")
