"""Request-scoped accessors for services held on ``app.state``."""

from __future__ import annotations

from typing import Optional

from fastapi import Header, Request

from hackmatch.matching import MatchScorer
from hackmatch.profiles import GitHubClient, ProfileExtractor, TeamMentor
from hackmatch.store.base import DocumentStore
from hackmatch.teams import TeamAssemblyController, TeamChat


def get_actor_id(x_user_id: Optional[str] = Header(default=None)) -> Optional[str]:
    """Caller identity from the ``X-User-Id`` header, if sent."""
    return x_user_id.strip() if x_user_id and x_user_id.strip() else None


def get_store(request: Request) -> DocumentStore:
    return request.app.state.store


def get_scorer(request: Request) -> MatchScorer:
    return request.app.state.scorer


def get_controller(request: Request) -> TeamAssemblyController:
    return request.app.state.controller


def get_chat(request: Request) -> TeamChat:
    return request.app.state.chat


def get_extractor(request: Request) -> ProfileExtractor:
    return request.app.state.extractor


def get_mentor(request: Request) -> TeamMentor:
    return request.app.state.mentor


def get_github(request: Request) -> GitHubClient:
    return request.app.state.github
