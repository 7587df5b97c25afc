"""
Text gathering for profile extraction.

GitHub: list a user's public repositories via the REST API and flatten
them to JSON text. Resume: plain text as-is, or a base64 payload that is
read as a PDF (falling back to UTF-8 text when it is not one).
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
import re
from io import BytesIO
from typing import Optional

import httpx
from pypdf import PdfReader
from pypdf.errors import PyPdfError

from ..core.errors import InvalidRequestError, UpstreamError

logger = logging.getLogger(__name__)

_GITHUB_URL_RE = re.compile(r"^https?://(www\.)?github\.com/", re.IGNORECASE)
GITHUB_NOT_FOUND = "GitHub profile not found or private."


def parse_github_username(github_url: str) -> str:
    """``https://github.com/octocat/repo?tab=x`` -> ``octocat``. Bare usernames pass through."""
    rest = _GITHUB_URL_RE.sub("", github_url.strip())
    username = rest.split("/")[0].split("?")[0].lstrip("@")
    if not username:
        raise InvalidRequestError("Could not read a GitHub username from the URL")
    return username


class GitHubClient:
    """Thin async wrapper around the GitHub REST API."""

    def __init__(
        self,
        api_url: str = "https://api.github.com",
        token: str = "",
        timeout_s: float = 15.0,
        http: Optional[httpx.AsyncClient] = None,
    ):
        self.base = api_url.rstrip("/")
        headers = {"Accept": "application/vnd.github+json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._http = http or httpx.AsyncClient(timeout=timeout_s, headers=headers)

    @classmethod
    def from_config(cls, config) -> GitHubClient:
        return cls(
            api_url=config.github_api_url,
            token=config.github_token,
            timeout_s=config.github_timeout_seconds,
        )

    async def list_repos(self, username: str) -> list[dict]:
        """Public repos as ``{name, description, language, topics}``."""
        try:
            resp = await self._http.get(
                f"{self.base}/users/{username}/repos", params={"per_page": 100},
            )
            resp.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning("GitHub repos FAIL | user=%s | %s", username, e)
            raise InvalidRequestError(GITHUB_NOT_FOUND) from e

        try:
            repos = [
                {
                    "name": repo.get("name", ""),
                    "description": repo.get("description") or "",
                    "language": repo.get("language") or "N/A",
                    "topics": repo.get("topics") or [],
                }
                for repo in resp.json()
            ]
        except (ValueError, TypeError, AttributeError) as e:
            logger.warning("GitHub repos unreadable | user=%s | %s", username, e)
            raise UpstreamError("GitHub returned an unreadable response") from e
        logger.info("GitHub repos OK | user=%s | count=%d", username, len(repos))
        return repos

    async def profile_text(self, github_url: str) -> str:
        username = parse_github_username(github_url)
        return json.dumps(await self.list_repos(username), ensure_ascii=False)

    async def close(self) -> None:
        await self._http.aclose()


def pdf_text(data: bytes) -> str:
    reader = PdfReader(BytesIO(data))
    return "\n".join(page.extract_text() or "" for page in reader.pages).strip()


def resume_text(text: Optional[str] = None, base64_payload: Optional[str] = None) -> str:
    """
    Resolve resume input to plain text.

    A base64 payload is tried as a PDF first; if it is not a PDF it is
    decoded as UTF-8, unless ``text`` was also supplied.
    """
    if not base64_payload:
        if not text or not text.strip():
            raise InvalidRequestError("Resume text is empty")
        return text

    try:
        data = base64.b64decode(base64_payload, validate=False)
    except (binascii.Error, ValueError) as e:
        raise InvalidRequestError("resumeBase64 is not valid base64") from e

    try:
        extracted = pdf_text(data)
        if extracted:
            logger.info("Resume PDF parsed | chars=%d", len(extracted))
            return extracted
    except (PyPdfError, ValueError, OSError) as e:
        logger.info("Resume payload is not a readable PDF, using text fallback | %s", e)

    fallback = text or data.decode("utf-8", errors="ignore")
    if not fallback.strip():
        raise InvalidRequestError("Could not read any text from the resume")
    return fallback
