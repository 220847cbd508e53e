"""Structured resume extraction with a chat model."""

import asyncio
import json
import logging
import re
from typing import List, Optional

from langchain_core.messages import HumanMessage, SystemMessage
from pydantic import BaseModel, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from invisible_hr.exceptions import ChatProviderError, ValidationError

logger = logging.getLogger(__name__)

RESUME_SYSTEM_PROMPT = (
    "You are a helpful HR assistant that extracts structured data from resumes. Always return valid JSON."
)

RESUME_PROMPT = """You are an expert HR assistant. Extract the following information from the resume text provided below.
Return the output strictly as a JSON object with the following keys:
- name (string)
- email (string)
- phone (string)
- skills (array of strings)
- experience (array of objects with role, company, duration)
- education (array of objects with degree, school, year)
- summary (string, brief professional summary)

Resume Text:
{resume_text}

Ensure the response is valid JSON only, without any markdown formatting or explanation."""

FENCE_PATTERN = re.compile(r"```(?:json)?", re.IGNORECASE)


def _as_text(value) -> str:
    return "" if value is None else str(value)


class Skill(BaseModel):
    name: str


class Experience(BaseModel):
    role: str = ""
    company: str = ""
    duration: str = ""

    @field_validator("role", "company", "duration", mode="before")
    @classmethod
    def coerce_text(cls, value):
        return _as_text(value)


class Education(BaseModel):
    degree: str = ""
    school: str = ""
    year: str = Field("", description="Graduation year as written on the resume")

    @field_validator("degree", "school", "year", mode="before")
    @classmethod
    def coerce_text(cls, value):
        return _as_text(value)


class ResumeData(BaseModel):
    """Candidate details extracted from a resume."""

    name: str = ""
    email: str = ""
    phone: str = ""
    skills: List[Skill] = Field(default_factory=list)
    experience: List[Experience] = Field(default_factory=list)
    education: List[Education] = Field(default_factory=list)
    summary: str = ""

    @field_validator("name", "email", "phone", "summary", mode="before")
    @classmethod
    def coerce_text(cls, value):
        return _as_text(value)

    @field_validator("skills", mode="before")
    @classmethod
    def skills_from_strings(cls, value):
        """Models usually return plain strings for skills."""
        if value is None:
            return []
        return [{"name": item} if isinstance(item, str) else item for item in value]


def strip_code_fences(content: str) -> str:
    return FENCE_PATTERN.sub("", content).strip()


class ResumeExtractor:
    """Turns free-text resumes into ResumeData."""

    def __init__(self, chat_model, timeout: float = 60.0):
        self.chat_model = chat_model
        self.timeout = timeout

    async def extract(self, resume_text: str) -> ResumeData:
        """
        Raises:
            ValidationError: Blank resume, or JSON that does not fit the schema
            ChatProviderError: Model failure, timeout or non-JSON reply
        """
        if not resume_text or not resume_text.strip():
            raise ValidationError("Resume text is required", field="resume_text")

        messages = [
            SystemMessage(content=RESUME_SYSTEM_PROMPT),
            HumanMessage(content=RESUME_PROMPT.format(resume_text=resume_text)),
        ]
        try:
            response = await asyncio.wait_for(self.chat_model.ainvoke(messages), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            raise ChatProviderError(f"Resume extraction timed out after {self.timeout}s") from e
        except Exception as e:
            raise ChatProviderError(f"Resume extraction failed: {e}") from e

        content = strip_code_fences(response.content if isinstance(response.content, str) else "")
        try:
            payload = json.loads(content or "{}")
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse JSON from chat model: {content[:200]}")
            raise ChatProviderError("Chat model did not return valid JSON", {"raw": content[:500]}) from e

        if not isinstance(payload, dict):
            raise ValidationError("Resume extraction must return a JSON object", field="resume")

        try:
            data = ResumeData.model_validate(payload)
        except PydanticValidationError as e:
            raise ValidationError(f"Extracted resume does not match the schema: {e.error_count()} errors", field="resume") from e

        logger.info(f"Extracted resume for '{data.name}' ({len(data.skills)} skills, {len(data.experience)} roles)")
        return data
