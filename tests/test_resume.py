"""
Tests for resume extraction.
"""

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock

import pytest
from langchain_core.messages import AIMessage

from invisible_hr.exceptions import ChatProviderError, ValidationError
from invisible_hr.resume import ResumeExtractor, Skill, strip_code_fences

RESUME_JSON = {
    "name": "Aisha Rahman",
    "email": "aisha@example.com",
    "phone": "+60 12-345 6789",
    "skills": ["Python", "SQL"],
    "experience": [{"role": "Data Analyst", "company": "Acme", "duration": "2 years"}],
    "education": [{"degree": "BSc Statistics", "school": "UM", "year": 2019}],
    "summary": "Analyst with a focus on HR data.",
}


def _extractor(content=None, error=None) -> ResumeExtractor:
    model = MagicMock()
    model.ainvoke = AsyncMock(side_effect=error) if error else AsyncMock(return_value=AIMessage(content=content))
    return ResumeExtractor(model)


class TestResumeExtractor:
    def test_parses_fenced_json(self):
        content = "```json\n" + json.dumps(RESUME_JSON) + "\n```"

        data = asyncio.run(_extractor(content).extract("Aisha Rahman, Data Analyst at Acme..."))

        assert data.name == "Aisha Rahman"
        assert data.skills == [Skill(name="Python"), Skill(name="SQL")]
        assert data.experience[0].company == "Acme"
        assert data.education[0].year == "2019"

    def test_missing_fields_default_to_empty(self):
        data = asyncio.run(_extractor('{"name": "Bo"}').extract("Bo"))

        assert data.name == "Bo"
        assert data.skills == []
        assert data.summary == ""

    def test_blank_resume(self):
        with pytest.raises(ValidationError):
            asyncio.run(_extractor("{}").extract("  "))

    def test_non_json_reply(self):
        with pytest.raises(ChatProviderError):
            asyncio.run(_extractor("Sure! Here is the data: name Aisha").extract("Aisha"))

    def test_schema_mismatch(self):
        with pytest.raises(ValidationError):
            asyncio.run(_extractor('{"experience": "lots"}').extract("Aisha"))

    def test_provider_failure(self):
        with pytest.raises(ChatProviderError):
            asyncio.run(_extractor(error=RuntimeError("ollama down")).extract("Aisha"))


def test_strip_code_fences():
    assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_code_fences('{"a": 1}') == '{"a": 1}'
