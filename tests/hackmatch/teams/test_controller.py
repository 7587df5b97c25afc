"""Tests for TeamAssemblyController: join, request and accept flows."""

from __future__ import annotations

import asyncio

import pytest
import pytest_asyncio

from hackmatch.core.errors import (
    DuplicateRequestError,
    InvalidRequestError,
    NotFoundError,
    RequestLimitExceededError,
    TeamFullError,
)
from hackmatch.core.models import MAX_TEAM_SIZE, RequestStatus, Team
from hackmatch.store import REQUESTS, TEAMS
from hackmatch.store.memory import MemoryDocumentStore
from hackmatch.store.sql import SqlDocumentStore
from hackmatch.teams import SYSTEM_BOT_ID

from ..conftest import ADA, BEN, CY, DEE, make_users, seed_users


@pytest_asyncio.fixture(params=["memory", "sql"])
async def store(request, tmp_path):
    """Run every controller test against both document stores."""
    if request.param == "memory":
        yield MemoryDocumentStore()
        return
    sql_store = SqlDocumentStore(f"sqlite+aiosqlite:///{tmp_path / 'teams.db'}")
    yield sql_store
    await sql_store.close()


async def _statuses(store) -> dict[str, str]:
    return {d["id"]: d["status"] for d in await store.find(REQUESTS)}


# ============ Join ============

class TestJoinTeam:
    @pytest.mark.asyncio
    async def test_first_join_creates_team(self, controller, seeded_store):
        team = await controller.join_team("hack_1", ADA.id)
        assert team.members == [ADA.id]
        assert team.name == "Team 1"
        assert team.is_full is False

    @pytest.mark.asyncio
    async def test_join_is_idempotent(self, controller, seeded_store):
        first = await controller.join_team("hack_1", ADA.id)
        again = await controller.join_team("hack_1", ADA.id)
        assert again.id == first.id
        assert again.members == [ADA.id]

    @pytest.mark.asyncio
    async def test_fills_then_opens_new_team(self, controller, store):
        users = make_users(5)
        await seed_users(store, users)
        teams = [await controller.join_team("hack_1", u.id) for u in users]

        assert len({t.id for t in teams[:4]}) == 1
        assert teams[3].is_full is True
        assert len(teams[3].members) == MAX_TEAM_SIZE
        assert teams[4].id != teams[0].id
        assert teams[4].name == "Team 2"

    @pytest.mark.asyncio
    async def test_concurrent_joins_never_overfill(self, controller, store):
        users = make_users(10)
        await seed_users(store, users)

        await asyncio.gather(*(controller.join_team("hack_1", u.id) for u in users))

        docs = await store.find(TEAMS, {"hackathon_id": "hack_1"})
        teams = [Team.from_doc(d) for d in docs]
        assert all(len(t.members) <= MAX_TEAM_SIZE for t in teams)
        assert all(t.is_full == (len(t.members) == MAX_TEAM_SIZE) for t in teams)
        placed = [m for t in teams for m in t.members]
        assert sorted(placed) == sorted(u.id for u in users)
        assert len(teams) == 3

    @pytest.mark.asyncio
    async def test_validation(self, controller, seeded_store):
        with pytest.raises(InvalidRequestError):
            await controller.join_team("", ADA.id)
        with pytest.raises(NotFoundError):
            await controller.join_team("hack_1", "u_ghost")

    @pytest.mark.asyncio
    async def test_becoming_full_cancels_pending(self, controller, store):
        users = make_users(5)
        await seed_users(store, users)
        outsider = users[4]
        req_out = await controller.create_request(users[0].id, outsider.id, "hack_1")
        req_in = await controller.create_request(outsider.id, users[3].id, "hack_1")

        for u in users[:4]:
            await controller.join_team("hack_1", u.id)

        statuses = await _statuses(store)
        assert statuses[req_out.id] == "cancelled"
        assert statuses[req_in.id] == "cancelled"


# ============ Requests ============

class TestCreateRequest:
    @pytest.mark.asyncio
    async def test_creates_pending(self, controller, seeded_store):
        req = await controller.create_request(ADA.id, BEN.id, "hack_1", "Let's team up")
        assert req.status == RequestStatus.PENDING
        assert req.id.startswith("req_")
        stored = await seeded_store.get(REQUESTS, req.id)
        assert stored["message"] == "Let's team up"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("from_id,to_id", [
        ("", "u_ben"),
        ("u_ada", ""),
        ("placeholder_user", "u_ben"),
        ("u_ada", "u_ada"),
    ])
    async def test_invalid_pairs(self, controller, seeded_store, from_id, to_id):
        with pytest.raises(InvalidRequestError):
            await controller.create_request(from_id, to_id, "hack_1")
        assert await seeded_store.count(REQUESTS) == 0

    @pytest.mark.asyncio
    async def test_unknown_user(self, controller, seeded_store):
        with pytest.raises(NotFoundError):
            await controller.create_request(ADA.id, "u_ghost", "hack_1")

    @pytest.mark.asyncio
    async def test_duplicate_rejected(self, controller, seeded_store):
        await controller.create_request(ADA.id, BEN.id, "hack_1")
        with pytest.raises(DuplicateRequestError, match="Request already sent"):
            await controller.create_request(ADA.id, BEN.id, "hack_1")
        assert await seeded_store.count(REQUESTS) == 1

    @pytest.mark.asyncio
    async def test_reverse_direction_allowed(self, controller, seeded_store):
        await controller.create_request(ADA.id, BEN.id, "hack_1")
        await controller.create_request(BEN.id, ADA.id, "hack_1")
        assert await seeded_store.count(REQUESTS) == 2

    @pytest.mark.asyncio
    async def test_sixth_pending_rejected_without_write(self, controller, store):
        sender, *targets = make_users(7)
        await seed_users(store, [sender, *targets])
        for t in targets[:5]:
            await controller.create_request(sender.id, t.id, "hack_1")

        with pytest.raises(RequestLimitExceededError, match="Maximum of 5"):
            await controller.create_request(sender.id, targets[5].id, "hack_1")
        assert await store.count(REQUESTS) == 5
        assert (await controller.pending_count(sender.id))["requestCount"] == 5

    @pytest.mark.asyncio
    async def test_concurrent_burst_respects_limit(self, controller, store):
        sender, *targets = make_users(9)
        await seed_users(store, [sender, *targets])

        results = await asyncio.gather(
            *(controller.create_request(sender.id, t.id, "hack_1") for t in targets),
            return_exceptions=True,
        )
        created = [r for r in results if not isinstance(r, BaseException)]
        assert len(created) == 5
        assert all(isinstance(r, RequestLimitExceededError) for r in results if isinstance(r, BaseException))

    @pytest.mark.asyncio
    async def test_member_of_full_team_cannot_request(self, controller, store):
        users = make_users(5)
        await seed_users(store, users)
        for u in users[:4]:
            await controller.join_team("hack_1", u.id)

        with pytest.raises(TeamFullError):
            await controller.create_request(users[4].id, users[0].id, "hack_1")
        with pytest.raises(TeamFullError):
            await controller.create_request(users[0].id, users[4].id, "hack_1")
        assert await store.count(REQUESTS) == 0

    @pytest.mark.asyncio
    async def test_full_team_in_other_hackathon_does_not_block(self, controller, store):
        users = make_users(5)
        await seed_users(store, users)
        for u in users[:4]:
            await controller.join_team("hack_1", u.id)

        req = await controller.create_request(users[4].id, users[0].id, "hack_2")
        assert req.hackathon_id == "hack_2"

    @pytest.mark.asyncio
    async def test_request_racing_a_filling_join(self, controller, store):
        users = make_users(5)
        await seed_users(store, users)
        for u in users[:3]:
            await controller.join_team("hack_1", u.id)

        await asyncio.gather(
            controller.join_team("hack_1", users[3].id),
            controller.create_request(users[4].id, users[0].id, "hack_1"),
            return_exceptions=True,
        )

        full = await store.find(TEAMS, {"is_full": True})
        assert len(full) == 1
        members = set(full[0]["members"])
        pending = await store.find(REQUESTS, {"status": "pending"})
        assert not [r for r in pending if {r["from_user_id"], r["to_user_id"]} & members]

    @pytest.mark.asyncio
    async def test_team_filled_during_insert_cancels_request(self, controller, store, monkeypatch):
        users = make_users(5)
        await seed_users(store, users)
        for u in users[:3]:
            await controller.join_team("hack_1", u.id)
        team_doc = await store.find_one(TEAMS, {"hackathon_id": "hack_1"})
        original_insert = store.insert

        async def insert_then_fill(collection, doc):
            written = await original_insert(collection, doc)
            if collection == REQUESTS:
                await store.update_one(
                    TEAMS,
                    {"id": team_doc["id"]},
                    {"members": [u.id for u in users[:4]], "is_full": True},
                )
            return written

        monkeypatch.setattr(store, "insert", insert_then_fill)
        with pytest.raises(TeamFullError):
            await controller.create_request(users[4].id, users[0].id, "hack_1")
        assert list((await _statuses(store)).values()) == ["cancelled"]


# ============ Accept ============

class TestAcceptRequest:
    @pytest.mark.asyncio
    async def test_creates_team_for_two_loners(self, controller, seeded_store):
        req = await controller.create_request(ADA.id, BEN.id, "hack_1")
        team = await controller.accept_request(req.id, BEN.id)

        assert sorted(team.members) == sorted([ADA.id, BEN.id])
        assert team.name == "Team 1"
        assert (await seeded_store.get(REQUESTS, req.id))["status"] == "accepted"

    @pytest.mark.asyncio
    async def test_welcome_message_posted(self, controller, seeded_store):
        req = await controller.create_request(ADA.id, BEN.id, "hack_1")
        team = await controller.accept_request(req.id, BEN.id)

        assert len(team.messages) == 1
        welcome = team.messages[0]
        assert welcome.sender_id == SYSTEM_BOT_ID
        assert welcome.text.startswith("🎉 Team formed!")
        assert "Ada" in welcome.text and "Ben" in welcome.text

    @pytest.mark.asyncio
    async def test_sender_joins_recipient_team(self, controller, seeded_store):
        req1 = await controller.create_request(ADA.id, BEN.id, "hack_1")
        first = await controller.accept_request(req1.id, BEN.id)

        req2 = await controller.create_request(CY.id, BEN.id, "hack_1")
        team = await controller.accept_request(req2.id, BEN.id)

        assert team.id == first.id
        assert team.members[-1] == CY.id
        assert len(team.members) == 3

    @pytest.mark.asyncio
    async def test_recipient_joins_sender_team(self, controller, seeded_store):
        req1 = await controller.create_request(ADA.id, BEN.id, "hack_1")
        first = await controller.accept_request(req1.id, BEN.id)

        req2 = await controller.create_request(ADA.id, DEE.id, "hack_1")
        team = await controller.accept_request(req2.id, DEE.id)

        assert team.id == first.id
        assert DEE.id in team.members

    @pytest.mark.asyncio
    async def test_other_pending_from_sender_rejected(self, controller, seeded_store):
        req_b = await controller.create_request(ADA.id, BEN.id, "hack_1")
        req_c = await controller.create_request(ADA.id, CY.id, "hack_1")
        req_other = await controller.create_request(ADA.id, DEE.id, "hack_2")

        await controller.accept_request(req_b.id, BEN.id)

        statuses = await _statuses(seeded_store)
        assert statuses[req_b.id] == "accepted"
        assert statuses[req_c.id] == "rejected"
        assert statuses[req_other.id] == "pending"

    @pytest.mark.asyncio
    async def test_accept_twice_is_noop(self, controller, seeded_store):
        req = await controller.create_request(ADA.id, BEN.id, "hack_1")
        first = await controller.accept_request(req.id, BEN.id)
        second = await controller.accept_request(req.id, BEN.id)

        assert second.id == first.id
        assert second.members == first.members
        assert len(second.messages) == 1
        assert await seeded_store.count(TEAMS) == 1

    @pytest.mark.asyncio
    async def test_concurrent_accept_forms_one_team(self, controller, seeded_store):
        req = await controller.create_request(ADA.id, BEN.id, "hack_1")
        teams = await asyncio.gather(*(controller.accept_request(req.id, BEN.id) for _ in range(3)))

        assert len({t.id for t in teams}) == 1
        assert await seeded_store.count(TEAMS) == 1

    @pytest.mark.asyncio
    async def test_only_recipient_may_accept(self, controller, seeded_store):
        req = await controller.create_request(ADA.id, BEN.id, "hack_1")
        with pytest.raises(InvalidRequestError, match="only accept requests sent to you"):
            await controller.accept_request(req.id, CY.id)
        assert (await seeded_store.get(REQUESTS, req.id))["status"] == "pending"

    @pytest.mark.asyncio
    async def test_unknown_request(self, controller, seeded_store):
        with pytest.raises(NotFoundError, match="Request not found"):
            await controller.accept_request("req_missing", BEN.id)

    @pytest.mark.asyncio
    async def test_filling_accept_cancels_remaining_pending(self, controller, store):
        users = make_users(6)
        await seed_users(store, users)
        a, b, c, d, e, f = users
        for sender in (b, c):
            req = await controller.create_request(sender.id, a.id, "hack_1")
            await controller.accept_request(req.id, a.id)

        stray = await controller.create_request(e.id, b.id, "hack_1")
        outgoing = await controller.create_request(a.id, f.id, "hack_2")
        last = await controller.create_request(d.id, a.id, "hack_1")
        team = await controller.accept_request(last.id, a.id)

        assert team.is_full is True
        assert len(team.members) == MAX_TEAM_SIZE
        statuses = await _statuses(store)
        assert statuses[last.id] == "accepted"
        assert statuses[stray.id] == "cancelled"
        assert statuses[outgoing.id] == "cancelled"

    @pytest.mark.asyncio
    async def test_request_between_two_teams_refused(self, controller, seeded_store):
        for sender, recipient in ((ADA, BEN), (CY, DEE)):
            req = await controller.create_request(sender.id, recipient.id, "hack_1")
            await controller.accept_request(req.id, recipient.id)

        with pytest.raises(InvalidRequestError, match="different teams"):
            await controller.create_request(ADA.id, DEE.id, "hack_1")
        assert await seeded_store.count(REQUESTS, {"status": "pending"}) == 0

    @pytest.mark.asyncio
    async def test_accept_across_teams_refused(self, controller, seeded_store):
        early = await controller.create_request(DEE.id, ADA.id, "hack_1")
        for sender, recipient in ((ADA, BEN), (CY, DEE)):
            req = await controller.create_request(sender.id, recipient.id, "hack_1")
            await controller.accept_request(req.id, recipient.id)

        with pytest.raises(InvalidRequestError, match="different teams"):
            await controller.accept_request(early.id, ADA.id)

        assert (await seeded_store.get(REQUESTS, early.id))["status"] == "pending"
        assert await seeded_store.count(TEAMS, {"members": ADA.id}) == 1
        assert await seeded_store.count(TEAMS, {"members": DEE.id}) == 1


# ============ Lookups ============

class TestLookups:
    @pytest.mark.asyncio
    async def test_incoming_requests_embed_sender(self, controller, seeded_store):
        await controller.create_request(ADA.id, BEN.id, "hack_1")
        incoming = await controller.incoming_requests(BEN.id)

        assert len(incoming) == 1
        assert incoming[0]["from_user"]["name"] == "Ada"
        assert await controller.incoming_requests(ADA.id) == []

    @pytest.mark.asyncio
    async def test_describe_team(self, controller, seeded_store):
        req = await controller.create_request(ADA.id, BEN.id, "hack_1")
        team = await controller.accept_request(req.id, BEN.id)
        described = await controller.describe_team(team)

        assert described["hackathon"] == {"name": "Test Hack", "location": "Remote"}
        assert [m["name"] for m in described["memberDetails"]] == ["Ada", "Ben"]

    @pytest.mark.asyncio
    async def test_team_for_user_scoped_by_hackathon(self, controller, seeded_store):
        await controller.join_team("hack_1", DEE.id)
        await controller.join_team("hack_2", DEE.id)

        assert (await controller.team_for_user(DEE.id, "hack_2")).hackathon_id == "hack_2"
        assert await controller.team_for_user(ADA.id, "hack_1") is None
        assert len(await controller.teams_for_user(DEE.id)) == 2

    @pytest.mark.asyncio
    async def test_get_team_missing(self, controller, seeded_store):
        with pytest.raises(NotFoundError, match="Team not found"):
            await controller.get_team("team_missing")
