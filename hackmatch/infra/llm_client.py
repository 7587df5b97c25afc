"""
ClaudeReasoningGateway — the single entry point to the completion service.

Callers hand it a prompt and get raw text back. The gateway owns the
model fallback list: model names churn, so a probe or a failed call on one
model moves on to the next. Every call carries an explicit timeout and is
bounded by a semaphore so a burst of scoring requests cannot flood the
upstream service.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Optional, Sequence

import anthropic

from hackmatch.core.errors import (
    ConfigurationError,
    NoAvailableModelError,
    UpstreamError,
)

logger = logging.getLogger(__name__)

PROBE_PROMPT = "test"
PROBE_MAX_TOKENS = 8


class ClaudeReasoningGateway:
    """
    Reasoning gateway implementing the ReasoningClient Protocol.

    Holds no state between calls except the credential; model resolution
    is re-done on demand rather than cached.
    """

    def __init__(
        self,
        api_key: str,
        models: Sequence[str],
        max_tokens: int = 1024,
        base_url: str | None = None,
        timeout_s: float = 30.0,
        max_concurrent: int = 8,
    ):
        self._models = [m for m in models if m]
        if not self._models:
            raise ConfigurationError("Model fallback list is empty")

        client_kwargs: dict[str, Any] = {}
        if base_url:
            client_kwargs["base_url"] = base_url
        self._client = (
            anthropic.AsyncAnthropic(api_key=api_key, **client_kwargs) if api_key else None
        )
        self._max_tokens = max_tokens
        self._timeout_s = timeout_s
        self._semaphore = asyncio.Semaphore(max_concurrent)

        logger.info(
            "ClaudeReasoningGateway: models=%s, timeout=%.0fs, max_concurrent=%d, key=%s",
            ",".join(self._models), timeout_s, max_concurrent, "set" if api_key else "MISSING",
        )

    @classmethod
    def from_config(cls, config: Any) -> ClaudeReasoningGateway:
        return cls(
            api_key=config.anthropic_api_key,
            models=config.get_model_candidates(),
            max_tokens=config.max_tokens,
            base_url=config.get_base_url(),
            timeout_s=config.llm_timeout_seconds,
            max_concurrent=config.llm_max_concurrent,
        )

    @property
    def models(self) -> list[str]:
        return list(self._models)

    def _require_client(self) -> anthropic.AsyncAnthropic:
        if self._client is None:
            raise ConfigurationError(
                "AI service is not configured. Set HACKMATCH_ANTHROPIC_API_KEY "
                "in the environment or .env file."
            )
        return self._client

    async def resolve_model(self) -> str:
        """Return the first model in the fallback list that answers a probe."""
        client = self._require_client()
        for model in self._models:
            try:
                await self._call(client, model, PROBE_PROMPT, max_tokens=PROBE_MAX_TOKENS)
            except UpstreamError as e:
                logger.warning("Model probe FAIL | %s | %s", model, e)
                continue
            logger.info("Model probe OK   | %s", model)
            return model

        raise NoAvailableModelError(
            "No working model found. The API key may not have access to any of: "
            + ", ".join(self._models)
        )

    async def generate(self, prompt: str, model: Optional[str] = None) -> str:
        """
        Send ``prompt`` and return the raw text.

        With an explicit ``model`` a failure raises immediately; otherwise
        each fallback model is tried in order.
        """
        client = self._require_client()
        if model is not None:
            return await self._call(client, model, prompt)

        last_error: UpstreamError | None = None
        for candidate in self._models:
            try:
                return await self._call(client, candidate, prompt)
            except UpstreamError as e:
                last_error = e
                logger.warning("LLM fallback | %s failed, trying next | %s", candidate, e)

        raise NoAvailableModelError(
            f"All {len(self._models)} models failed; last error: {last_error}"
        ) from last_error

    async def _call(
        self,
        client: anthropic.AsyncAnthropic,
        model: str,
        prompt: str,
        max_tokens: int | None = None,
    ) -> str:
        async with self._semaphore:
            logger.info("LLM call START | model=%s | prompt_len=%d", model, len(prompt))
            t0 = time.monotonic()
            try:
                response = await asyncio.wait_for(
                    client.messages.create(
                        model=model,
                        max_tokens=max_tokens or self._max_tokens,
                        messages=[{"role": "user", "content": prompt}],
                    ),
                    timeout=self._timeout_s,
                )
            except asyncio.TimeoutError as e:
                logger.error("LLM call TIMEOUT | model=%s | %.0fs", model, self._timeout_s)
                raise UpstreamError(
                    f"LLM call timed out after {self._timeout_s:.0f}s (model={model})"
                ) from e
            except (anthropic.AuthenticationError, anthropic.PermissionDeniedError) as e:
                logger.error("LLM call AUTH_FAIL | model=%s | %s", model, e)
                raise ConfigurationError(
                    "Invalid HACKMATCH_ANTHROPIC_API_KEY. Please check your API key."
                ) from e
            except anthropic.APIError as e:
                elapsed_ms = (time.monotonic() - t0) * 1000
                logger.error("LLM call FAIL  | model=%s | %.0fms | %s", model, elapsed_ms, e)
                raise UpstreamError(f"LLM call failed (model={model}): {e}") from e

        elapsed_ms = (time.monotonic() - t0) * 1000
        text = _response_text(response)
        if not text:
            raise UpstreamError(f"LLM returned empty response (model={model})")

        logger.info("LLM call OK    | model=%s | %.0fms | text_len=%d", model, elapsed_ms, len(text))
        return text


def _response_text(response: Any) -> str:
    """Concatenate the text blocks of an Anthropic Messages response."""
    parts = [block.text for block in response.content if block.type == "text"]
    return "".join(parts).strip()
