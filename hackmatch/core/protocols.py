"""
Module-boundary Protocol definitions.

The scoring engine, profile extractor and mentor code against these
contracts, so tests and alternative providers can stand in for the
Anthropic-backed gateway.
"""

from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable


@runtime_checkable
class ReasoningClient(Protocol):
    """
    Text-completion capability: "given a prompt, return generated text".

    Implementations raise ConfigurationError, UpstreamError or
    NoAvailableModelError; they never return structured data.
    """

    async def resolve_model(self) -> str:
        """Probe the fallback list and return the first model that answers."""
        ...

    async def generate(self, prompt: str, model: Optional[str] = None) -> str:
        """
        Send a prompt and return the raw generated text.

        With ``model=None`` the implementation walks its fallback list.
        """
        ...
