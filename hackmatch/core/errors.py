"""
Unified exception hierarchy for hackmatch.

All exceptions inherit from HackmatchError. Each class carries the HTTP
status the API layer uses when flattening it to ``{"error": ...}``.
"""


class HackmatchError(Exception):
    """Base exception for all hackmatch errors."""

    status_code = 500


# ============ Reasoning service ============

class ConfigurationError(HackmatchError):
    """Missing or rejected configuration (API credential, etc.). Not retried."""

    status_code = 500


class UpstreamError(HackmatchError):
    """Reasoning service call failed (timeout, transport, 5xx, empty reply)."""

    status_code = 500


class NoAvailableModelError(UpstreamError):
    """Every model in the fallback list failed."""

    status_code = 500


# ============ Structured decoding ============

class MalformedResponseError(HackmatchError):
    """Reasoning service output could not be decoded into the expected shape."""

    status_code = 500

    def __init__(self, message: str, raw: str = ""):
        super().__init__(message)
        self.raw = raw


class NoJSONObjectError(MalformedResponseError):
    """No parseable ``{...}`` object in the response text."""


class MissingFieldError(MalformedResponseError):
    """A required field is absent from the decoded object."""


class FieldTypeError(MalformedResponseError):
    """A field is present but has the wrong type."""


# ============ Caller-actionable ============

class InvalidRequestError(HackmatchError):
    """Request failed validation or violates a team invariant."""

    status_code = 400


class TeamFullError(InvalidRequestError):
    """Team already has the maximum number of members."""


class RequestLimitExceededError(InvalidRequestError):
    """Sender already has the maximum number of pending requests."""


class DuplicateRequestError(InvalidRequestError):
    """A pending request for the same sender/recipient pair already exists."""


class NotFoundError(HackmatchError):
    """Unknown user, hackathon, team or request id."""

    status_code = 404


# ============ Storage ============

class StoreConflictError(HackmatchError):
    """A conditional write kept losing to concurrent writers and gave up."""

    status_code = 500
