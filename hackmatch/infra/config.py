"""
Configuration management using pydantic-settings.

All settings are loaded from environment variables with the HACKMATCH_
prefix (a local ``.env`` file is read as well).
"""

from __future__ import annotations

from pydantic_settings import BaseSettings

DEFAULT_MODEL_CANDIDATES = (
    "claude-sonnet-4-5-20250929,"
    "claude-sonnet-4-20250514,"
    "claude-3-7-sonnet-20250219,"
    "claude-3-5-haiku-20241022"
)


class HackmatchConfig(BaseSettings):
    """
    hackmatch service configuration.

    Environment variables are prefixed with HACKMATCH_, e.g.:
    - HACKMATCH_ANTHROPIC_API_KEY=sk-...
    - HACKMATCH_MODEL_CANDIDATES=claude-sonnet-4-5-20250929,claude-3-5-haiku-20241022
    - HACKMATCH_STORE_BACKEND=sql
    """

    model_config = {"env_prefix": "HACKMATCH_", "env_file": ".env", "extra": "ignore"}

    # LLM
    anthropic_api_key: str = ""
    anthropic_base_url: str = ""  # Proxy base URL
    model_candidates: str = DEFAULT_MODEL_CANDIDATES  # Comma-separated, tried in order
    max_tokens: int = 1024
    llm_timeout_seconds: float = 30.0
    llm_max_concurrent: int = 8

    def get_model_candidates(self) -> list[str]:
        """Return the ordered model fallback list."""
        return [m.strip() for m in self.model_candidates.split(",") if m.strip()]

    def get_base_url(self) -> str | None:
        """Return base URL or None for Anthropic default."""
        return self.anthropic_base_url or None

    # Scoring
    max_concurrent_scoring: int = 5

    # Storage
    store_backend: str = "memory"  # memory | sql
    database_url: str = "sqlite+aiosqlite:///./data/hackmatch.db"

    # Profile sources
    github_token: str = ""
    github_api_url: str = "https://api.github.com"
    github_timeout_seconds: float = 15.0

    # App
    log_level: str = "INFO"
    seed_demo: bool = False
