"""Profile extraction (GitHub / resume) and the team mentor."""

from .extraction import ProfileExtractor, build_extraction_prompt, normalize_draft
from .mentor import PERSONA_PROMPTS, TeamMentor, build_advice_prompt, build_mentor_prompt
from .sources import GitHubClient, parse_github_username, resume_text

__all__ = [
    "ProfileExtractor", "build_extraction_prompt", "normalize_draft",
    "TeamMentor", "build_mentor_prompt", "build_advice_prompt", "PERSONA_PROMPTS",
    "GitHubClient", "parse_github_username", "resume_text",
]
