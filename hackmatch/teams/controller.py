"""
TeamAssemblyController — the only writer of Team and TeamRequest records.

Membership changes run inside a per-hackathon asyncio.Lock and are
written with a conditional store update whose precondition is the member
count read under that lock. A concurrent writer outside this process
therefore makes the update miss instead of overfilling the team.

Request creation runs inside a per-sender lock so the pending-count check
and the insert cannot interleave with another request from the same user.
"""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from typing import Any, Optional

from ..core.errors import (
    DuplicateRequestError,
    InvalidRequestError,
    NotFoundError,
    RequestLimitExceededError,
    TeamFullError,
)
from ..core.models import (
    MAX_PENDING_REQUESTS,
    MAX_TEAM_SIZE,
    ChatMessage,
    Hackathon,
    RequestStatus,
    Team,
    TeamRequest,
    UserProfile,
    generate_id,
)
from ..store import HACKATHONS, REQUESTS, TEAMS, USERS
from ..store.base import DocumentStore

logger = logging.getLogger(__name__)

SYSTEM_BOT_ID = "system_bot"
MAX_WRITE_ATTEMPTS = 3


class TeamAssemblyController:
    """
    Join/create, request and accept flows over a DocumentStore.

    Example:
        controller = TeamAssemblyController(store)
        team = await controller.join_team("hack_1", "u1")
        req = await controller.create_request("u1", "u2", hackathon_id="hack_1")
        team = await controller.accept_request(req.id, current_user_id="u2")
    """

    def __init__(self, store: DocumentStore):
        self._store = store
        self._hackathon_locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)
        self._sender_locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    # ============ Lookups ============

    async def get_user(self, user_id: str) -> UserProfile:
        doc = await self._store.get(USERS, user_id)
        if doc is None:
            raise NotFoundError(f"User not found: {user_id}")
        return UserProfile.from_doc(doc)

    async def get_users(self, user_ids: list[str]) -> list[UserProfile]:
        """Profiles for ``user_ids`` in the given order; unknown ids are skipped."""
        docs = await self._store.find(USERS, {"id": {"$in": user_ids}})
        by_id = {d["id"]: UserProfile.from_doc(d) for d in docs}
        return [by_id[uid] for uid in user_ids if uid in by_id]

    async def get_team(self, team_id: str) -> Team:
        doc = await self._store.get(TEAMS, team_id)
        if doc is None:
            raise NotFoundError("Team not found")
        return Team.from_doc(doc)

    async def team_for_user(
        self, user_id: str, hackathon_id: Optional[str] = None,
    ) -> Optional[Team]:
        flt: dict[str, Any] = {"members": user_id}
        if hackathon_id:
            flt["hackathon_id"] = hackathon_id
        doc = await self._store.find_one(TEAMS, flt)
        return Team.from_doc(doc) if doc else None

    async def teams_for_user(self, user_id: str) -> list[Team]:
        """All teams the user belongs to, newest first."""
        docs = await self._store.find(TEAMS, {"members": user_id})
        teams = [Team.from_doc(d) for d in docs]
        teams.sort(key=lambda t: t.created_at, reverse=True)
        return teams

    async def describe_team(self, team: Team) -> dict[str, Any]:
        """Team document plus ``hackathon`` summary and ``memberDetails``."""
        members = await self.get_users(team.members)
        hackathon = None
        if team.hackathon_id:
            hdoc = await self._store.get(HACKATHONS, team.hackathon_id)
            if hdoc:
                h = Hackathon.from_doc(hdoc)
                hackathon = {"name": h.name, "location": h.location}
        return {
            **team.to_doc(),
            "hackathon": hackathon,
            "memberDetails": [
                {"id": m.id, "name": m.name, "skills": m.skills, "tech_stack": m.tech_stack}
                for m in members
            ],
        }

    async def pending_count(self, user_id: str) -> dict[str, Any]:
        count = await self._store.count(
            REQUESTS, {"from_user_id": user_id, "status": RequestStatus.PENDING.value},
        )
        return {"userId": user_id, "requestCount": count, "maxRequests": MAX_PENDING_REQUESTS}

    async def incoming_requests(self, user_id: str) -> list[dict[str, Any]]:
        """Pending requests addressed to ``user_id``, each with the sender's profile embedded."""
        docs = await self._store.find(
            REQUESTS, {"to_user_id": user_id, "status": RequestStatus.PENDING.value},
        )
        result = []
        for doc in docs:
            req = TeamRequest.from_doc(doc)
            sender_doc = await self._store.get(USERS, req.from_user_id)
            if sender_doc is not None:
                sender = UserProfile.from_doc(sender_doc).to_doc()
            else:
                sender = {"id": req.from_user_id, "name": "Unknown User", "skills": [], "tech_stack": []}
            result.append({**req.to_doc(), "from_user": sender})
        return result

    # ============ Team membership ============

    async def join_team(self, hackathon_id: str, user_id: str) -> Team:
        """
        Put ``user_id`` on a team for ``hackathon_id``.

        Returns the user's existing team for the hackathon if there is one,
        otherwise joins the open team or creates a new one.
        """
        if not hackathon_id or not user_id:
            raise InvalidRequestError("hackathon_id and user_id are required")
        await self.get_user(user_id)

        async with self._hackathon_locks[hackathon_id]:
            existing = await self._store.find_one(
                TEAMS, {"hackathon_id": hackathon_id, "members": user_id},
            )
            if existing:
                return Team.from_doc(existing)

            open_doc = await self._store.find_one(
                TEAMS, {"hackathon_id": hackathon_id, "is_full": False},
            )
            if open_doc is None:
                team = await self._create_team(hackathon_id, [user_id])
                logger.info("Team created | %s | hackathon=%s | user=%s", team.id, hackathon_id, user_id)
                return team

            team = await self._add_member(Team.from_doc(open_doc), user_id)
            logger.info(
                "Team joined | %s | user=%s | members=%d/%d",
                team.id, user_id, len(team.members), MAX_TEAM_SIZE,
            )
            return team

    async def _create_team(self, hackathon_id: Optional[str], members: list[str]) -> Team:
        count = await self._store.count(TEAMS, {"hackathon_id": hackathon_id or ""})
        team = Team(
            id=generate_id("team"),
            hackathon_id=hackathon_id or "",
            members=list(members),
            name=f"Team {count + 1}",
        )
        team.is_full = len(team.members) == MAX_TEAM_SIZE
        await self._store.insert(TEAMS, team.to_doc())
        if team.is_full:
            await self._cancel_pending_for(team.members)
        return team

    async def _add_member(self, team: Team, user_id: str) -> Team:
        """
        Append ``user_id`` with a conditional update on the member count.

        Re-reads and retries if the team changed underneath; raises
        TeamFullError once the team holds MAX_TEAM_SIZE members.
        """
        for _ in range(MAX_WRITE_ATTEMPTS):
            if user_id in team.members:
                return team
            if len(team.members) >= MAX_TEAM_SIZE:
                raise TeamFullError("Team is full")

            members = team.members + [user_id]
            updated = await self._store.update_one(
                TEAMS,
                {"id": team.id, "members": {"$size": len(team.members)}},
                {"members": members, "is_full": len(members) == MAX_TEAM_SIZE},
            )
            if updated is not None:
                team = Team.from_doc(updated)
                if team.is_full:
                    logger.info("Team full | %s | members=%s", team.id, team.members)
                    await self._cancel_pending_for(team.members)
                return team

            logger.debug("Team %s changed during join, re-reading", team.id)
            team = await self.get_team(team.id)

        raise TeamFullError("Team changed concurrently; try again")

    async def _cancel_pending_for(self, member_ids: list[str]) -> int:
        """Cancel every pending request sent or received by any of ``member_ids``."""
        cancelled = await self._store.update_many(
            REQUESTS,
            {
                "status": RequestStatus.PENDING.value,
                "$or": [
                    {"from_user_id": {"$in": member_ids}},
                    {"to_user_id": {"$in": member_ids}},
                ],
            },
            {"status": RequestStatus.CANCELLED.value},
        )
        if cancelled:
            logger.info("Cancelled %d pending requests for full team %s", cancelled, member_ids)
        return cancelled

    # ============ Requests ============

    async def create_request(
        self,
        from_user_id: str,
        to_user_id: str,
        hackathon_id: Optional[str] = None,
        message: str = "",
    ) -> TeamRequest:
        """
        Validate and persist a pending request.

        Nothing is written when any check fails. The pending limit is
        counted per sender across all hackathons.

        The checks and the insert hold the hackathon lock that membership
        writes take, so a team cannot fill between them. A team filled by
        another writer is caught by re-checking after the insert, in which
        case the new request is cancelled.
        """
        if not from_user_id or not to_user_id:
            raise InvalidRequestError("from_user_id and to_user_id are required")
        if "placeholder" in from_user_id or "placeholder" in to_user_id:
            raise InvalidRequestError("Invalid user ID: placeholder values are not allowed")
        if from_user_id == to_user_id:
            raise InvalidRequestError("Cannot send a request to yourself")
        await self.get_user(from_user_id)
        await self.get_user(to_user_id)

        async with self._sender_locks[from_user_id], self._hackathon_locks[hackathon_id or ""]:
            if await self._full_team_for(from_user_id, to_user_id, hackathon_id):
                raise TeamFullError("One of these users is already on a full team")

            from_team = await self._team_in(hackathon_id, from_user_id)
            to_team = await self._team_in(hackathon_id, to_user_id)
            if from_team and to_team and from_team.id != to_team.id:
                raise InvalidRequestError("Both users are already on different teams")

            duplicate = await self._store.find_one(REQUESTS, {
                "from_user_id": from_user_id,
                "to_user_id": to_user_id,
                "status": RequestStatus.PENDING.value,
            })
            if duplicate:
                raise DuplicateRequestError("Request already sent")

            pending = await self._store.count(
                REQUESTS, {"from_user_id": from_user_id, "status": RequestStatus.PENDING.value},
            )
            if pending >= MAX_PENDING_REQUESTS:
                raise RequestLimitExceededError(
                    f"Maximum of {MAX_PENDING_REQUESTS} pending requests allowed"
                )

            req = TeamRequest(
                id=generate_id("req"),
                from_user_id=from_user_id,
                to_user_id=to_user_id,
                hackathon_id=hackathon_id or None,
                message=message or "",
            )
            await self._store.insert(REQUESTS, req.to_doc())

            if await self._full_team_for(from_user_id, to_user_id, hackathon_id):
                await self._store.update_one(
                    REQUESTS,
                    {"id": req.id, "status": RequestStatus.PENDING.value},
                    {"status": RequestStatus.CANCELLED.value},
                )
                logger.info("Request %s cancelled: a team filled during creation", req.id)
                raise TeamFullError("One of these users is already on a full team")

        logger.info(
            "Request created | %s | %s -> %s | hackathon=%s | pending=%d",
            req.id, from_user_id, to_user_id, hackathon_id, pending + 1,
        )
        return req

    async def accept_request(self, request_id: str, current_user_id: str) -> Optional[Team]:
        """
        Accept a pending request as its recipient and return the resulting team.

        Accepting a request that is no longer pending changes nothing and
        returns the recipient's current team for that hackathon (or None).
        A request between members of two different teams is refused and
        stays pending.
        """
        if not current_user_id:
            raise InvalidRequestError("current_user_id is required")
        doc = await self._store.get(REQUESTS, request_id)
        if doc is None:
            raise NotFoundError("Request not found")
        req = TeamRequest.from_doc(doc)
        if req.to_user_id != current_user_id:
            raise InvalidRequestError("You can only accept requests sent to you")

        hackathon_id = req.hackathon_id
        async with self._hackathon_locks[hackathon_id or ""]:
            # Re-read under the lock so concurrent retries see one transition
            req = TeamRequest.from_doc(await self._store.get(REQUESTS, request_id))
            if not req.is_pending:
                logger.info("Accept no-op | %s already %s", req.id, req.status.value)
                return await self._team_in(hackathon_id, current_user_id)

            sender_id, recipient_id = req.from_user_id, req.to_user_id
            team = await self._team_in(hackathon_id, recipient_id)
            sender_team = await self._team_in(hackathon_id, sender_id)
            if team is not None and sender_team is not None and team.id != sender_team.id:
                raise InvalidRequestError("Both users are already on different teams")
            if team is not None:
                team = await self._add_member(team, sender_id)
            elif sender_team is not None:
                team = await self._add_member(sender_team, recipient_id)
            else:
                team = await self._create_team(hackathon_id, [sender_id, recipient_id])

            # The full-team cascade may already have cancelled this request
            await self._store.update_one(
                REQUESTS, {"id": req.id}, {"status": RequestStatus.ACCEPTED.value},
            )
            rejected = await self._store.update_many(
                REQUESTS,
                {
                    "from_user_id": sender_id,
                    "hackathon_id": hackathon_id,
                    "status": RequestStatus.PENDING.value,
                    "id": {"$ne": req.id},
                },
                {"status": RequestStatus.REJECTED.value},
            )

            team = await self._post_welcome(team)

        logger.info(
            "Request accepted | %s | team=%s | members=%d | rejected_others=%d",
            req.id, team.id, len(team.members), rejected,
        )
        return team

    async def _full_team_for(
        self, from_user_id: str, to_user_id: str, hackathon_id: Optional[str],
    ) -> Optional[dict[str, Any]]:
        flt: dict[str, Any] = {"is_full": True, "members": {"$in": [from_user_id, to_user_id]}}
        if hackathon_id:
            flt["hackathon_id"] = hackathon_id
        return await self._store.find_one(TEAMS, flt)

    async def _team_in(self, hackathon_id: Optional[str], user_id: str) -> Optional[Team]:
        doc = await self._store.find_one(
            TEAMS, {"hackathon_id": hackathon_id or "", "members": user_id},
        )
        return Team.from_doc(doc) if doc else None

    async def _post_welcome(self, team: Team) -> Team:
        members = await self.get_users(team.members)
        names = ", ".join(m.name or "Member" for m in members)
        welcome = ChatMessage(
            sender_id=SYSTEM_BOT_ID,
            text=f"🎉 Team formed! {names} are now collaborating. Let's build something amazing together!",
        )
        updated = await self._store.push(TEAMS, team.id, "messages", welcome.to_doc())
        return Team.from_doc(updated) if updated else team
