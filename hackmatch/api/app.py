"""
FastAPI application for hackmatch.

Start with: uvicorn hackmatch.api.app:app --reload --port 8000
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from hackmatch.core.errors import HackmatchError
from hackmatch.core.models import Hackathon, UserProfile
from hackmatch.infra import ClaudeReasoningGateway, HackmatchConfig, configure_logging
from hackmatch.matching import MatchScorer
from hackmatch.profiles import GitHubClient, ProfileExtractor, TeamMentor
from hackmatch.store import HACKATHONS, USERS, create_store
from hackmatch.store.base import DocumentStore
from hackmatch.teams import TeamAssemblyController, TeamChat

from .routes import root_router, router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize all dependencies on startup, clean up on shutdown."""
    config: HackmatchConfig = app.state.config
    configure_logging(config.log_level)

    store = getattr(app.state, "store", None) or create_store(config)
    app.state.store = store

    gateway = getattr(app.state, "gateway", None) or ClaudeReasoningGateway.from_config(config)
    app.state.gateway = gateway
    if not config.anthropic_api_key and isinstance(gateway, ClaudeReasoningGateway):
        logger.warning("No HACKMATCH_ANTHROPIC_API_KEY set; scoring will degrade and extraction will fail")

    app.state.scorer = MatchScorer(gateway, max_concurrent=config.max_concurrent_scoring)
    app.state.controller = TeamAssemblyController(store)
    app.state.chat = TeamChat(store)
    app.state.extractor = ProfileExtractor(gateway)
    app.state.mentor = TeamMentor(gateway)
    app.state.github = getattr(app.state, "github", None) or GitHubClient.from_config(config)

    if config.seed_demo:
        await seed_demo_data(store)

    logger.info("hackmatch API started | store=%s", store.store_type)
    yield

    await app.state.github.close()
    await store.close()
    logger.info("hackmatch API shutdown")


async def seed_demo_data(store: DocumentStore) -> None:
    """Seed one hackathon and four complementary users when the store is empty."""
    if await store.count(USERS) or await store.count(HACKATHONS):
        return  # Idempotent

    hackathon = Hackathon(
        id="hack_demo",
        name="Demo Hack 2026",
        start_date="2026-11-14",
        end_date="2026-11-15",
        location="San Francisco, CA",
        url="https://mlh.io",
        type="In-Person",
        description="Build anything with AI in 24 hours",
    )
    await store.insert(HACKATHONS, hackathon.to_doc())

    demo_users = [
        ("user_ada", "Ada", "Frontend", ["React", "TypeScript"], ["React", "Tailwind"],
         "Frontend engineer who loves fast UIs"),
        ("user_ben", "Ben", "Backend", ["Node.js", "Postgres"], ["Node.js", "Express", "Postgres"],
         "API and database person"),
        ("user_cy", "Cy", "Design", ["Figma", "UX Research"], ["Figma"],
         "Product designer focused on onboarding flows"),
        ("user_dee", "Dee", "AI/ML", ["Python", "PyTorch"], ["Python", "FastAPI"],
         "ML engineer shipping LLM features"),
    ]
    for user_id, name, role, skills, stack, bio in demo_users:
        profile = UserProfile(
            id=user_id,
            name=name,
            role_preference=role,
            skills=skills,
            tech_stack=stack,
            bio=bio,
            registered_hackathons=[hackathon.id],
        )
        await store.insert(USERS, profile.to_doc())

    logger.info("Demo data seeded: %s with %d users", hackathon.id, len(demo_users))


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


async def handle_hackmatch_error(request: Request, exc: HackmatchError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed | %s: %s", request.method, request.url.path, type(exc).__name__, exc)
    else:
        logger.info("%s %s rejected | %s: %s", request.method, request.url.path, type(exc).__name__, exc)
    return _error_response(exc.status_code, str(exc))


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
        message = f"{field}: {first.get('msg', 'invalid')}" if field else first.get("msg", "invalid")
    else:
        message = "Invalid request"
    return _error_response(400, message)


async def handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return _error_response(exc.status_code, str(exc.detail))


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "%s %s crashed | %s: %s", request.method, request.url.path, type(exc).__name__, exc,
        exc_info=exc,
    )
    return _error_response(500, "Internal server error")


def create_app(
    config: Optional[HackmatchConfig] = None,
    store: Optional[DocumentStore] = None,
    gateway=None,
    github: Optional[GitHubClient] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    ``store``, ``gateway`` and ``github`` override the configured
    implementations (tests pass in-memory and mock instances).
    """
    app = FastAPI(
        title="hackmatch API",
        description="Hackathon teammate matching: compatibility scoring and team formation",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.config = config or HackmatchConfig()
    app.state.store = store
    app.state.gateway = gateway
    app.state.github = github

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(HackmatchError, handle_hackmatch_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    app.include_router(router)
    app.include_router(root_router)

    return app


app = create_app()
