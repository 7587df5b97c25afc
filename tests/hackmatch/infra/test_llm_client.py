"""Tests for ClaudeReasoningGateway."""

from __future__ import annotations

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import anthropic
import httpx
import pytest

from hackmatch.core.errors import ConfigurationError, NoAvailableModelError, UpstreamError
from hackmatch.core.protocols import ReasoningClient
from hackmatch.infra.config import HackmatchConfig
from hackmatch.infra.llm_client import ClaudeReasoningGateway


def _text_response(text: str) -> SimpleNamespace:
    return SimpleNamespace(content=[SimpleNamespace(type="text", text=text)], stop_reason="end_turn")


def _api_error(message: str = "Server error") -> anthropic.APIError:
    return anthropic.APIError(message=message, request=MagicMock(), body=None)


def _auth_error() -> anthropic.AuthenticationError:
    request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
    response = httpx.Response(401, request=request)
    return anthropic.AuthenticationError("invalid x-api-key", response=response, body=None)


@pytest.fixture
def gateway():
    return ClaudeReasoningGateway(api_key="test-key", models=["model-a", "model-b"], timeout_s=1.0)


class TestConstruction:
    def test_implements_protocol(self, gateway):
        assert isinstance(gateway, ReasoningClient)

    def test_empty_model_list_rejected(self):
        with pytest.raises(ConfigurationError):
            ClaudeReasoningGateway(api_key="k", models=[])

    def test_from_config(self):
        config = HackmatchConfig(_env_file=None, anthropic_api_key="k", model_candidates="m1,m2")
        gw = ClaudeReasoningGateway.from_config(config)
        assert gw.models == ["m1", "m2"]


class TestResolveModel:
    @pytest.mark.asyncio
    async def test_missing_key_is_configuration_error(self):
        gw = ClaudeReasoningGateway(api_key="", models=["model-a"])
        with pytest.raises(ConfigurationError, match="not configured"):
            await gw.resolve_model()

    @pytest.mark.asyncio
    async def test_first_working_model(self, gateway):
        gateway._client.messages.create = AsyncMock(return_value=_text_response("ok"))
        assert await gateway.resolve_model() == "model-a"

    @pytest.mark.asyncio
    async def test_skips_failing_model(self, gateway):
        gateway._client.messages.create = AsyncMock(
            side_effect=[_api_error("not found"), _text_response("ok")]
        )
        assert await gateway.resolve_model() == "model-b"
        probed = [c.kwargs["model"] for c in gateway._client.messages.create.call_args_list]
        assert probed == ["model-a", "model-b"]

    @pytest.mark.asyncio
    async def test_exhausted_list(self, gateway):
        gateway._client.messages.create = AsyncMock(side_effect=_api_error())
        with pytest.raises(NoAvailableModelError):
            await gateway.resolve_model()

    @pytest.mark.asyncio
    async def test_auth_failure_not_retried(self, gateway):
        gateway._client.messages.create = AsyncMock(side_effect=_auth_error())
        with pytest.raises(ConfigurationError, match="Invalid HACKMATCH_ANTHROPIC_API_KEY"):
            await gateway.resolve_model()
        assert gateway._client.messages.create.call_count == 1


class TestGenerate:
    @pytest.mark.asyncio
    async def test_returns_raw_text(self, gateway):
        gateway._client.messages.create = AsyncMock(return_value=_text_response("  not json  "))
        assert await gateway.generate("hello") == "not json"

        call_kwargs = gateway._client.messages.create.call_args.kwargs
        assert call_kwargs["model"] == "model-a"
        assert call_kwargs["messages"] == [{"role": "user", "content": "hello"}]

    @pytest.mark.asyncio
    async def test_explicit_model_no_fallback(self, gateway):
        gateway._client.messages.create = AsyncMock(side_effect=_api_error())
        with pytest.raises(UpstreamError, match="model=model-b"):
            await gateway.generate("hello", model="model-b")
        assert gateway._client.messages.create.call_count == 1

    @pytest.mark.asyncio
    async def test_falls_back_then_succeeds(self, gateway):
        gateway._client.messages.create = AsyncMock(
            side_effect=[_api_error(), _text_response("from b")]
        )
        assert await gateway.generate("hello") == "from b"

    @pytest.mark.asyncio
    async def test_all_models_fail(self, gateway):
        gateway._client.messages.create = AsyncMock(side_effect=_api_error())
        with pytest.raises(NoAvailableModelError, match="All 2 models failed"):
            await gateway.generate("hello")

    @pytest.mark.asyncio
    async def test_empty_response_is_upstream_error(self, gateway):
        gateway._client.messages.create = AsyncMock(return_value=_text_response("   "))
        with pytest.raises(UpstreamError, match="empty"):
            await gateway.generate("hello", model="model-a")

    @pytest.mark.asyncio
    async def test_timeout_is_upstream_error(self):
        gw = ClaudeReasoningGateway(api_key="k", models=["model-a"], timeout_s=0.05)

        async def _slow(**kwargs):
            await asyncio.sleep(1)
            return _text_response("late")

        gw._client.messages.create = _slow
        with pytest.raises(UpstreamError, match="timed out"):
            await gw.generate("hello", model="model-a")

    @pytest.mark.asyncio
    async def test_ignores_non_text_blocks(self, gateway):
        response = SimpleNamespace(content=[
            SimpleNamespace(type="thinking", thinking="..."),
            SimpleNamespace(type="text", text='{"score": 1}'),
        ])
        gateway._client.messages.create = AsyncMock(return_value=response)
        assert await gateway.generate("hello") == '{"score": 1}'
