"""
ProfileExtractor — unstructured GitHub/resume text to a profile draft.

Unlike scoring, every failure here propagates: onboarding would rather
ask the user to retry than save a silently empty profile.
"""

from __future__ import annotations

import logging
from typing import Any

from ..core.errors import FieldTypeError, InvalidRequestError
from ..core.protocols import ReasoningClient
from ..matching.parser import decode_object

logger = logging.getLogger(__name__)

ROLE_CHOICES = ("Frontend", "Backend", "Full Stack", "Mobile", "AI/ML", "DevOps", "Design")

STRING_FIELDS = (
    "name", "email", "role_preference", "school", "location",
    "github", "devpost", "description", "num_hackathons",
)
LIST_FIELDS = ("skills", "tech_stack", "experience")

EXTRACTION_PROMPT = """\
Analyze the following data: {data}

Extract the following into a JSON object:
- name: (String, full name if available)
- email: (String, email if available, otherwise empty string)
- role_preference: (String, one of: {roles})
- skills: (Array of Strings, e.g., ["React", "Node.js", "Python"])
- tech_stack: (Array of Strings, top 5-10 languages/frameworks/tools)
- experience: (Array of Strings, job titles and companies, e.g., ["Software Engineer @ Company"])
- school: (String, university/school name)
- location: (String, city, state or city, country)
- github: (String, GitHub username only, no URL)
- devpost: (String, Devpost username if available, otherwise empty)
- description: (String, short 2-sentence professional bio about their interests/goals)
- num_hackathons: (String, number as string, e.g., "5", infer from projects/hackathon mentions)

Return ONLY raw JSON, no markdown code blocks."""


def build_extraction_prompt(text: str) -> str:
    return EXTRACTION_PROMPT.format(data=text, roles=", ".join(ROLE_CHOICES))


def _as_string(key: str, value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    if isinstance(value, list) and key == "num_hackathons":
        return str(value[0]).strip() if value else ""
    raise FieldTypeError(f"{key} must be a string, got {type(value).__name__}")


def _as_string_list(key: str, value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    if isinstance(value, list):
        return [str(v).strip() for v in value if v is not None and str(v).strip()]
    raise FieldTypeError(f"{key} must be a list, got {type(value).__name__}")


def normalize_draft(data: dict[str, Any]) -> dict[str, Any]:
    """Every expected key present; strings for scalars, lists of strings for lists."""
    draft: dict[str, Any] = {}
    for key in STRING_FIELDS:
        draft[key] = _as_string(key, data.get(key))
    for key in LIST_FIELDS:
        draft[key] = _as_string_list(key, data.get(key))
    return draft


class ProfileExtractor:
    """
    Single-prompt profile extraction.

    ``source`` ("github" or "resume") is recorded for logging; both
    currently share one prompt.
    """

    def __init__(self, client: ReasoningClient):
        self._client = client

    async def extract(self, text: str, source: str = "resume") -> dict[str, Any]:
        if not text or not text.strip():
            raise InvalidRequestError("Nothing to analyze")

        model = await self._client.resolve_model()
        prompt = build_extraction_prompt(text)
        logger.info(
            "Profile extraction START | source=%s | model=%s | prompt_len=%d",
            source, model, len(prompt),
        )
        raw = await self._client.generate(prompt, model=model)
        draft = normalize_draft(decode_object(raw))
        logger.info(
            "Profile extraction OK | source=%s | name=%r | skills=%d",
            source, draft["name"], len(draft["skills"]),
        )
        return draft
