"""
Pydantic request/response models for the hackmatch API.

Request bodies accept both snake_case and the camelCase names older
clients send (``fromUserId``, ``hackathonId``).
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


# ============ Scoring ============

class MatchScoreRequest(BaseModel):
    user1_id: str
    user2_id: str
    team_member_ids: list[str] = Field(default_factory=list)
    hackathon_id: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("hackathon_id", "hackathonId"),
    )


class MatchScoreResponse(BaseModel):
    score: int
    reason: str
    category: str
    needed_roles: list[str] = Field(default_factory=list)
    status: str = "ok"
    error_kind: Optional[str] = None


class BatchScoreRequest(BaseModel):
    user_id: str
    hackathon_id: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("hackathon_id", "hackathonId"),
    )
    candidate_ids: Optional[list[str]] = None


class BatchScoreItem(MatchScoreResponse):
    user_id: str


class BatchScoreResponse(BaseModel):
    results: list[BatchScoreItem]


# ============ Requests & Teams ============

class CreateRequestBody(BaseModel):
    from_user_id: str = Field(validation_alias=AliasChoices("from_user_id", "fromUserId"))
    to_user_id: str = Field(validation_alias=AliasChoices("to_user_id", "toUserId"))
    hackathon_id: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("hackathon_id", "hackathonId"),
    )
    message: str = ""


class AcceptRequestBody(BaseModel):
    current_user_id: Optional[str] = None


class JoinTeamBody(BaseModel):
    hackathon_id: str = Field(validation_alias=AliasChoices("hackathon_id", "hackathonId"))
    user_id: str


class ChatPostBody(BaseModel):
    user_id: Optional[str] = None
    user_name: Optional[str] = None
    message: str


class MentorBody(BaseModel):
    message: str


class AdviceBody(BaseModel):
    prompt: Optional[str] = None
    active_agent: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("active_agent", "activeAgent"),
    )


# ============ Profiles ============

class AnalyzeBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    github_url: Optional[str] = Field(default=None, alias="githubUrl")
    resume_text: Optional[str] = Field(default=None, alias="resumeText")
    resume_base64: Optional[str] = Field(default=None, alias="resumeBase64")


class ProfileSaveBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_data: dict[str, Any] = Field(alias="userData")
    selected_hackathons: list[str] = Field(default_factory=list, alias="selectedHackathons")
