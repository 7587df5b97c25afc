"""Core layer — records, match result, errors, protocols."""

from .errors import (
    ConfigurationError,
    DuplicateRequestError,
    FieldTypeError,
    HackmatchError,
    InvalidRequestError,
    MalformedResponseError,
    MissingFieldError,
    NoAvailableModelError,
    NoJSONObjectError,
    NotFoundError,
    StoreConflictError,
    RequestLimitExceededError,
    TeamFullError,
    UpstreamError,
)
from .models import (
    MAX_PENDING_REQUESTS,
    MAX_TEAM_SIZE,
    STRONG_MATCH_THRESHOLD,
    ChatMessage,
    Hackathon,
    MatchResult,
    MatchStatus,
    MatchTier,
    RequestStatus,
    Team,
    TeamRequest,
    UserProfile,
    generate_id,
)
from .protocols import ReasoningClient

__all__ = [
    "HackmatchError", "ConfigurationError", "UpstreamError", "NoAvailableModelError",
    "MalformedResponseError", "NoJSONObjectError", "MissingFieldError", "FieldTypeError",
    "InvalidRequestError", "TeamFullError", "RequestLimitExceededError",
    "DuplicateRequestError", "NotFoundError", "StoreConflictError",
    "MAX_PENDING_REQUESTS", "MAX_TEAM_SIZE", "STRONG_MATCH_THRESHOLD",
    "ChatMessage", "Hackathon", "MatchResult", "MatchStatus", "MatchTier",
    "RequestStatus", "Team", "TeamRequest", "UserProfile", "generate_id",
    "ReasoningClient",
]
