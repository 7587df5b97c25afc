"""
hackmatch — hackathon teammate matching.

Public API surface::

    from hackmatch import MatchScorer, TeamAssemblyController, ClaudeReasoningGateway

Extension points:

- ``ReasoningClient`` — swap the text-completion provider
- ``DocumentStore`` — swap the persistence backend
"""

# -- Core --
from hackmatch.core import (
    ConfigurationError,
    DuplicateRequestError,
    FieldTypeError,
    HackmatchError,
    InvalidRequestError,
    MalformedResponseError,
    MatchResult,
    MatchStatus,
    MatchTier,
    MissingFieldError,
    NoAvailableModelError,
    NoJSONObjectError,
    NotFoundError,
    StoreConflictError,
    ReasoningClient,
    RequestLimitExceededError,
    RequestStatus,
    Team,
    TeamFullError,
    TeamRequest,
    UpstreamError,
    UserProfile,
)

# -- Infrastructure --
from hackmatch.infra import ClaudeReasoningGateway, HackmatchConfig

# -- Components --
from hackmatch.matching import MatchScorer
from hackmatch.profiles import ProfileExtractor, TeamMentor
from hackmatch.store import DocumentStore, MemoryDocumentStore, create_store
from hackmatch.teams import TeamAssemblyController, TeamChat

__version__ = "1.0.0"

__all__ = [
    "HackmatchError", "ConfigurationError", "UpstreamError", "NoAvailableModelError",
    "MalformedResponseError", "NoJSONObjectError", "MissingFieldError", "FieldTypeError",
    "InvalidRequestError", "TeamFullError", "RequestLimitExceededError",
    "DuplicateRequestError", "NotFoundError", "StoreConflictError",
    "MatchResult", "MatchStatus", "MatchTier", "RequestStatus", "Team", "TeamRequest",
    "UserProfile", "ReasoningClient",
    "ClaudeReasoningGateway", "HackmatchConfig",
    "MatchScorer", "ProfileExtractor", "TeamMentor",
    "DocumentStore", "MemoryDocumentStore", "create_store",
    "TeamAssemblyController", "TeamChat",
]
