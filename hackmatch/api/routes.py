"""
API endpoints for hackmatch.

``router`` holds the ``/api`` routes; ``root_router`` the legacy
unprefixed paths (``/match-score``, ``/team``, ``/chat/...``) that
existing clients call. Domain errors propagate to the exception handlers
registered in ``app.py``.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from hackmatch.core.errors import InvalidRequestError, NotFoundError
from hackmatch.core.models import Hackathon, Team, UserProfile
from hackmatch.matching import MatchScorer
from hackmatch.profiles import GitHubClient, ProfileExtractor, TeamMentor, resume_text
from hackmatch.store import HACKATHONS, USERS
from hackmatch.store.base import DocumentStore
from hackmatch.teams import TeamAssemblyController, TeamChat

from .deps import (
    get_actor_id,
    get_chat,
    get_controller,
    get_extractor,
    get_github,
    get_mentor,
    get_scorer,
    get_store,
)
from .schemas import (
    AcceptRequestBody,
    AdviceBody,
    AnalyzeBody,
    BatchScoreItem,
    BatchScoreRequest,
    BatchScoreResponse,
    ChatPostBody,
    CreateRequestBody,
    JoinTeamBody,
    MatchScoreRequest,
    MatchScoreResponse,
    MentorBody,
    ProfileSaveBody,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")
root_router = APIRouter()


async def _roster_for(
    controller: TeamAssemblyController,
    user_id: str,
    hackathon_id: Optional[str],
    exclude: str = "",
) -> list[UserProfile]:
    """The user's team for the hackathon as a scoring roster; empty unless it has teammates."""
    if not hackathon_id:
        return []
    team = await controller.team_for_user(user_id, hackathon_id)
    if team is None or len(team.members) < 2:
        return []
    return await controller.get_users([m for m in team.members if m != exclude])


# ============ Scoring ============

@root_router.post("/match-score", response_model=MatchScoreResponse, response_model_exclude_none=True)
async def match_score(
    req: MatchScoreRequest,
    actor_id: Optional[str] = Depends(get_actor_id),
    controller: TeamAssemblyController = Depends(get_controller),
    scorer: MatchScorer = Depends(get_scorer),
):
    user_a = await controller.get_user(req.user1_id)
    user_b = await controller.get_user(req.user2_id)

    if req.team_member_ids:
        roster = await controller.get_users(req.team_member_ids)
    else:
        roster = await _roster_for(controller, user_a.id, req.hackathon_id, exclude=user_b.id)

    result = await scorer.score_pair(user_a, user_b, team_members=roster or None, actor_id=actor_id)
    return result.to_public()


@router.post("/match-scores", response_model=BatchScoreResponse, response_model_exclude_none=True)
async def match_scores(
    req: BatchScoreRequest,
    controller: TeamAssemblyController = Depends(get_controller),
    store: DocumentStore = Depends(get_store),
    scorer: MatchScorer = Depends(get_scorer),
):
    me = await controller.get_user(req.user_id)

    if req.candidate_ids is not None:
        candidates = await controller.get_users([c for c in req.candidate_ids if c != me.id])
    else:
        flt: dict[str, Any] = {"id": {"$ne": me.id}}
        if req.hackathon_id:
            flt["registered_hackathons"] = req.hackathon_id
        candidates = [UserProfile.from_doc(d) for d in await store.find(USERS, flt)]

    roster = await _roster_for(controller, me.id, req.hackathon_id)
    results = await scorer.score_candidates(me, candidates, team_members=roster or None)
    return BatchScoreResponse(results=[
        BatchScoreItem(user_id=c.id, **results[c.id].to_public()) for c in candidates
    ])


# ============ Requests ============

async def _create_request(req: CreateRequestBody, controller: TeamAssemblyController):
    created = await controller.create_request(
        req.from_user_id, req.to_user_id,
        hackathon_id=req.hackathon_id, message=req.message,
    )
    return JSONResponse(
        status_code=201,
        content={"message": "Request sent successfully", "request": created.to_doc()},
    )


@router.post("/request", status_code=201)
async def create_request(
    req: CreateRequestBody,
    controller: TeamAssemblyController = Depends(get_controller),
):
    return await _create_request(req, controller)


@root_router.post("/request", status_code=201)
async def create_request_legacy(
    req: CreateRequestBody,
    controller: TeamAssemblyController = Depends(get_controller),
):
    return await _create_request(req, controller)


@router.get("/requests/incoming/{user_id}")
async def incoming_requests(
    user_id: str,
    controller: TeamAssemblyController = Depends(get_controller),
):
    return await controller.incoming_requests(user_id)


@router.get("/requests/{user_id}")
async def pending_request_count(
    user_id: str,
    controller: TeamAssemblyController = Depends(get_controller),
):
    return await controller.pending_count(user_id)


@root_router.post("/requests/{request_id}/accept")
async def accept_request(
    request_id: str,
    body: Optional[AcceptRequestBody] = None,
    actor_id: Optional[str] = Depends(get_actor_id),
    controller: TeamAssemblyController = Depends(get_controller),
):
    current_user_id = (body.current_user_id if body else None) or actor_id
    if not current_user_id:
        raise InvalidRequestError("current_user_id is required")
    team = await controller.accept_request(request_id, current_user_id)
    return {
        "success": True,
        "team": team.to_doc() if team else None,
        "message": "Request accepted and team created/updated",
    }


# ============ Teams ============

@root_router.post("/team")
async def join_team(
    body: JoinTeamBody,
    controller: TeamAssemblyController = Depends(get_controller),
):
    team = await controller.join_team(body.hackathon_id, body.user_id)
    return team.to_doc()


@root_router.get("/team/{user_id}")
async def team_for_user(
    user_id: str,
    hackathon_id: Optional[str] = Query(default=None, alias="hackathonId"),
    controller: TeamAssemblyController = Depends(get_controller),
):
    team = await controller.team_for_user(user_id, hackathon_id)
    if team is None:
        return {"team": None, "needed_roles": []}
    members = await controller.get_users(team.members)
    return {
        "team": {**team.to_doc(), "members_details": [m.to_doc() for m in members]},
        "needed_roles": team.needed_roles,
    }


@router.get("/team/{team_id}")
async def get_team(
    team_id: str,
    controller: TeamAssemblyController = Depends(get_controller),
):
    team = await controller.get_team(team_id)
    return await controller.describe_team(team)


@router.get("/teams/{user_id}")
async def teams_for_user(
    user_id: str,
    controller: TeamAssemblyController = Depends(get_controller),
):
    teams = await controller.teams_for_user(user_id)
    return [await controller.describe_team(t) for t in teams]


# ============ Chat & Mentor ============

@root_router.get("/chat/{team_id}/messages")
async def list_messages(team_id: str, chat: TeamChat = Depends(get_chat)):
    return [m.to_doc() for m in await chat.list_messages(team_id)]


@root_router.post("/chat/{team_id}/messages")
async def post_message(
    team_id: str,
    body: ChatPostBody,
    actor_id: Optional[str] = Depends(get_actor_id),
    chat: TeamChat = Depends(get_chat),
):
    message = await chat.post_message(team_id, body.user_id or actor_id or "", body.message)
    return message.to_doc()


async def _team_context(
    team_id: str, controller: TeamAssemblyController, store: DocumentStore,
) -> tuple[Team, list[UserProfile], Optional[Hackathon]]:
    team: Team = await controller.get_team(team_id)
    members = await controller.get_users(team.members)
    hackathon = None
    if team.hackathon_id:
        hdoc = await store.get(HACKATHONS, team.hackathon_id)
        hackathon = Hackathon.from_doc(hdoc) if hdoc else None
    return team, members, hackathon


@root_router.post("/chat/{team_id}/ai-advice")
async def ai_advice(
    team_id: str,
    body: Optional[AdviceBody] = None,
    controller: TeamAssemblyController = Depends(get_controller),
    store: DocumentStore = Depends(get_store),
    mentor: TeamMentor = Depends(get_mentor),
    chat: TeamChat = Depends(get_chat),
):
    body = body or AdviceBody()
    team, members, hackathon = await _team_context(team_id, controller, store)
    reply = await mentor.team_advice(team, members, hackathon, body.active_agent, body.prompt)
    message = await chat.post_advice(team_id, reply)
    return message.to_doc()


@router.post("/ai-mentor/{team_id}")
async def ai_mentor(
    team_id: str,
    body: MentorBody,
    controller: TeamAssemblyController = Depends(get_controller),
    store: DocumentStore = Depends(get_store),
    mentor: TeamMentor = Depends(get_mentor),
):
    team, members, hackathon = await _team_context(team_id, controller, store)
    answer = await mentor.advise(body.message, team, members, hackathon)
    return {"response": answer}


# ============ Hackathons & Users ============

@root_router.get("/hackathons")
async def list_hackathons(store: DocumentStore = Depends(get_store)):
    hackathons = [Hackathon.from_doc(d) for d in await store.find(HACKATHONS)]
    # Undated events last
    hackathons.sort(key=lambda h: (h.start_date is None, h.start_date or ""))
    return [
        {
            **h.to_doc(),
            "name": h.name or "Hackathon Event",
            "location": h.location or "Location TBD",
            "url": h.url or "https://mlh.io",
        }
        for h in hackathons
    ]


@root_router.get("/users")
async def list_users(
    hackathon_id: Optional[str] = Query(default=None, alias="hackathonId"),
    actor_id: Optional[str] = Depends(get_actor_id),
    store: DocumentStore = Depends(get_store),
):
    flt: dict[str, Any] = {}
    if hackathon_id:
        flt["registered_hackathons"] = hackathon_id
    if actor_id:
        flt["id"] = {"$ne": actor_id}
    return [UserProfile.from_doc(d).to_doc() for d in await store.find(USERS, flt)]


@router.get("/users/{user_id}")
async def get_user(
    user_id: str,
    controller: TeamAssemblyController = Depends(get_controller),
):
    return (await controller.get_user(user_id)).to_doc()


def _merge_profile(existing: dict[str, Any], body: ProfileSaveBody, user_id: str) -> dict[str, Any]:
    if not body.user_data.get("name"):
        raise InvalidRequestError("User data with name is required")
    merged = {
        **existing,
        **body.user_data,
        "id": user_id,
        "registered_hackathons": body.selected_hackathons,
    }
    return UserProfile.from_doc(merged).to_doc()


@router.put("/users/{user_id}")
async def update_user(
    user_id: str,
    body: ProfileSaveBody,
    store: DocumentStore = Depends(get_store),
):
    existing = await store.get(USERS, user_id)
    if existing is None:
        raise NotFoundError("User not found")
    doc = _merge_profile(existing, body, user_id)
    updated = await store.update_one(USERS, {"id": user_id}, doc)
    logger.info("Profile updated | %s", user_id)
    return {"success": True, "user": updated, "message": "Profile saved successfully"}


@router.post("/onboarding/save")
async def save_onboarding(
    body: ProfileSaveBody,
    actor_id: Optional[str] = Depends(get_actor_id),
    store: DocumentStore = Depends(get_store),
):
    if not actor_id:
        raise InvalidRequestError("X-User-Id header is required")
    existing = await store.get(USERS, actor_id)
    doc = _merge_profile(existing or {}, body, actor_id)
    if existing is None:
        await store.insert(USERS, doc)
        logger.info("Profile created | %s", actor_id)
    else:
        await store.update_one(USERS, {"id": actor_id}, doc)
        logger.info("Profile saved | %s", actor_id)
    return {"success": True, "userId": actor_id, "message": "Profile saved successfully"}


@router.post("/onboarding/analyze")
async def analyze_profile(
    body: AnalyzeBody,
    github: GitHubClient = Depends(get_github),
    extractor: ProfileExtractor = Depends(get_extractor),
):
    if not (body.github_url or body.resume_text or body.resume_base64):
        raise InvalidRequestError("Either githubUrl, resumeText, or resumeBase64 is required")

    if body.resume_text or body.resume_base64:
        text = resume_text(body.resume_text, body.resume_base64)
        source = "resume"
    else:
        text = await github.profile_text(body.github_url)
        source = "github"
    return await extractor.extract(text, source=source)


# ============ Health ============

@root_router.get("/health")
async def health(store: DocumentStore = Depends(get_store)):
    return {"status": "ok", "store": store.store_type}
