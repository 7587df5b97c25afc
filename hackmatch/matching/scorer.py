"""
MatchScorer — turns (user, user) or (candidate, roster) into a MatchResult.

Pipeline: build prompt -> ReasoningClient.generate -> parse_match_payload
-> clamp + tier. Any failure along the way is absorbed into a degraded
result (score 50, status "degraded") tagged with the failure class, so a
batch of scores always completes.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Optional, Sequence

from ..core.errors import (
    ConfigurationError,
    FieldTypeError,
    HackmatchError,
    MalformedResponseError,
    MissingFieldError,
    NoAvailableModelError,
    NoJSONObjectError,
    UpstreamError,
)
from ..core.models import MatchResult, MatchTier, UserProfile
from ..core.protocols import ReasoningClient
from .parser import parse_match_payload
from .prompts import build_match_prompt

logger = logging.getLogger(__name__)

# Most specific first
_ERROR_KINDS: list[tuple[type[Exception], str]] = [
    (NoJSONObjectError, "no_json_object"),
    (MissingFieldError, "missing_field"),
    (FieldTypeError, "field_type"),
    (MalformedResponseError, "malformed_response"),
    (NoAvailableModelError, "no_available_model"),
    (UpstreamError, "upstream"),
    (ConfigurationError, "configuration"),
    (asyncio.TimeoutError, "upstream"),
]


def error_kind(exc: BaseException) -> str:
    for cls, kind in _ERROR_KINDS:
        if isinstance(exc, cls):
            return kind
    return "internal"


class MatchScorer:
    """
    Compatibility scoring over a ReasoningClient.

    Example:
        scorer = MatchScorer(gateway, max_concurrent=5)
        result = await scorer.score_pair(me, candidate, actor_id=me.id)
        result.to_public()  # {"score": 78, "category": "Good Match", ...}
    """

    def __init__(self, client: ReasoningClient, max_concurrent: int = 5):
        self._client = client
        self._max_concurrent = max(1, max_concurrent)

    async def score_pair(
        self,
        user_a: UserProfile,
        user_b: UserProfile,
        team_members: Optional[Sequence[UserProfile]] = None,
        actor_id: Optional[str] = None,
    ) -> MatchResult:
        """
        Score ``user_b`` for ``user_a`` (or for ``team_members`` when given).

        Never raises for pipeline failures; returns a degraded result instead.
        """
        template, prompt = build_match_prompt(user_a, user_b, team_members, actor_id)
        start = time.monotonic()
        logger.info(
            "Scoring START | %s vs %s | template=%s",
            user_a.display_name, user_b.display_name, template,
        )
        try:
            raw = await self._client.generate(prompt)
            payload = parse_match_payload(raw)
        except (HackmatchError, asyncio.TimeoutError) as e:
            kind = error_kind(e)
            logger.warning(
                "Scoring DEGRADED | %s vs %s | kind=%s | %s",
                user_a.display_name, user_b.display_name, kind, e,
            )
            return MatchResult.degraded(
                reason=f"Error calculating match score: {kind.replace('_', ' ')} ({e})",
                error_kind=kind,
            )
        except Exception as e:
            logger.exception(
                "Scoring FAILED unexpectedly | %s vs %s", user_a.display_name, user_b.display_name,
            )
            return MatchResult.degraded(
                reason=f"Error calculating match score: internal ({e})",
                error_kind="internal",
            )

        score = payload["score"]
        result = MatchResult(
            score=score,
            reason=payload["reason"],
            tier=MatchTier.from_score(score),
            needed_roles=payload["needed_roles"],
        )
        if payload["category"] and payload["category"] != result.category:
            logger.debug(
                "Upstream category %r overridden by %r (score=%d)",
                payload["category"], result.category, score,
            )
        logger.info(
            "Scoring OK | %s vs %s | score=%d | tier=%s | %.0fms",
            user_a.display_name, user_b.display_name, score, result.tier.value,
            (time.monotonic() - start) * 1000,
        )
        return result

    async def score_candidates(
        self,
        me: UserProfile,
        candidates: Sequence[UserProfile],
        team_members: Optional[Sequence[UserProfile]] = None,
    ) -> dict[str, MatchResult]:
        """
        Score many candidates concurrently, at most ``max_concurrent`` in flight.

        Returns results keyed by candidate id once every call has finished.
        """
        semaphore = asyncio.Semaphore(self._max_concurrent)

        async def _one(candidate: UserProfile) -> tuple[str, MatchResult]:
            async with semaphore:
                result = await self.score_pair(me, candidate, team_members, actor_id=me.id)
                return candidate.id, result

        pairs = await asyncio.gather(*(_one(c) for c in candidates))
        degraded = sum(1 for _, r in pairs if r.is_degraded)
        logger.info(
            "Batch scoring done | user=%s | candidates=%d | degraded=%d",
            me.id, len(pairs), degraded,
        )
        return dict(pairs)
