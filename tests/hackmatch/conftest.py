"""
Shared test fixtures for hackmatch tests.

Provides a scripted reasoning client, an in-memory store, sample
profiles and helpers for seeding users and hackathons.
"""

from __future__ import annotations

from typing import Optional, Union

import pytest
import pytest_asyncio

from hackmatch.core.errors import UpstreamError
from hackmatch.core.models import Hackathon, UserProfile
from hackmatch.store import HACKATHONS, USERS
from hackmatch.store.memory import MemoryDocumentStore
from hackmatch.teams import TeamAssemblyController


# ============ Sample Data ============

ADA = UserProfile(
    id="u_ada",
    name="Ada",
    role_preference="Frontend",
    skills=["React"],
    tech_stack=["React", "TypeScript"],
    experience=["Frontend Intern @ Acme"],
    bio="Builds fast UIs",
    registered_hackathons=["hack_1"],
)

BEN = UserProfile(
    id="u_ben",
    name="Ben",
    role_preference="Backend",
    skills=["Node.js", "Postgres"],
    tech_stack=["Node.js", "Express"],
    experience=["Backend Engineer @ Beta"],
    bio="APIs and databases",
    registered_hackathons=["hack_1"],
)

CY = UserProfile(
    id="u_cy",
    name="Cy",
    role_preference="Design",
    skills=["Figma"],
    registered_hackathons=["hack_1"],
)

DEE = UserProfile(
    id="u_dee",
    name="Dee",
    role_preference="AI/ML",
    skills=["Python", "PyTorch"],
    tech_stack=["Python"],
    registered_hackathons=["hack_1", "hack_2"],
)

SAMPLE_USERS = [ADA, BEN, CY, DEE]

SAMPLE_HACKATHON = Hackathon(
    id="hack_1",
    name="Test Hack",
    start_date="2026-11-14",
    end_date="2026-11-15",
    location="Remote",
    description="Build with AI",
)

STUB_MATCH_JSON = '{"score":78,"reason":"Pros: complementary stacks. Major Risk: no designer.","category":"Strong Match"}'


# ============ Mock Reasoning Client ============

Scripted = Union[str, BaseException]


class MockReasoningClient:
    """
    Scripted ReasoningClient.

    Responses are consumed in order; once exhausted the default response
    is returned. Exceptions in the script are raised instead of returned.
    """

    def __init__(self, responses: Optional[list[Scripted]] = None, default: Scripted = STUB_MATCH_JSON):
        self._responses: list[Scripted] = list(responses or [])
        self._default = default
        self.prompts: list[str] = []
        self.models: list[Optional[str]] = []
        self.resolve_calls = 0
        self.resolve_error: Optional[BaseException] = None

    def queue(self, *responses: Scripted) -> None:
        self._responses.extend(responses)

    async def resolve_model(self) -> str:
        self.resolve_calls += 1
        if self.resolve_error is not None:
            raise self.resolve_error
        return "mock-model"

    async def generate(self, prompt: str, model: Optional[str] = None) -> str:
        self.prompts.append(prompt)
        self.models.append(model)
        item = self._responses.pop(0) if self._responses else self._default
        if isinstance(item, BaseException):
            raise item
        return item


# ============ Fixtures ============

@pytest.fixture
def mock_client() -> MockReasoningClient:
    return MockReasoningClient()


@pytest.fixture
def failing_client() -> MockReasoningClient:
    return MockReasoningClient(default=UpstreamError("simulated outage"))


@pytest.fixture
def store() -> MemoryDocumentStore:
    return MemoryDocumentStore()


@pytest.fixture
def controller(store) -> TeamAssemblyController:
    return TeamAssemblyController(store)


async def seed_users(store, users=None) -> None:
    for user in users or SAMPLE_USERS:
        await store.insert(USERS, user.to_doc())


async def seed_hackathon(store, hackathon: Hackathon = SAMPLE_HACKATHON) -> None:
    await store.insert(HACKATHONS, hackathon.to_doc())


def make_users(n: int, prefix: str = "user", hackathon_id: str = "hack_1") -> list[UserProfile]:
    return [
        UserProfile(id=f"{prefix}_{i}", name=f"{prefix.title()} {i}", registered_hackathons=[hackathon_id])
        for i in range(n)
    ]


@pytest_asyncio.fixture
async def seeded_store(store) -> MemoryDocumentStore:
    await seed_users(store)
    await seed_hackathon(store)
    return store
