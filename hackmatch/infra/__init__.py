from .config import HackmatchConfig
from .llm_client import ClaudeReasoningGateway
from .logging_setup import configure_logging

__all__ = ["HackmatchConfig", "ClaudeReasoningGateway", "configure_logging"]
