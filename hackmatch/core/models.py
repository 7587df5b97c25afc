"""
Core data models for team matching.

These are the records the store persists (users, hackathons, teams,
requests) plus the derived MatchResult the scoring engine produces.
Records round-trip through plain JSON-compatible dicts ("documents")
via ``from_doc`` / ``to_doc``.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional


MAX_TEAM_SIZE = 4
MAX_PENDING_REQUESTS = 5
STRONG_MATCH_THRESHOLD = 85


# ============ Helpers ============

def generate_id(prefix: str = "") -> str:
    """Generate a unique ID with optional prefix."""
    uid = uuid.uuid4().hex[:12]
    return f"{prefix}_{uid}" if prefix else uid


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_list(value: Any) -> list[str]:
    """Coerce a stored list field; tolerates None and comma-separated strings."""
    if value is None:
        return []
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value if v is not None and str(v).strip()]
    return [str(value)]


def _as_str(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def _parse_dt(value: Any) -> datetime:
    """Parse a stored timestamp; always timezone-aware UTC. Naive values are taken as UTC."""
    parsed: Optional[datetime] = None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            parsed = None
    if parsed is None:
        return utcnow()
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _format_dt(value: datetime) -> str:
    return value.isoformat()


# ============ User ============

@dataclass
class UserProfile:
    """A participant profile. ``description`` is accepted as an alias of bio."""
    id: str
    name: str = ""
    email: str = ""
    role_preference: str = ""
    skills: list[str] = field(default_factory=list)
    tech_stack: list[str] = field(default_factory=list)
    experience: list[str] = field(default_factory=list)
    school: str = ""
    location: str = ""
    bio: str = ""
    github: str = ""
    devpost: str = ""
    num_hackathons: str = ""
    registered_hackathons: list[str] = field(default_factory=list)

    @classmethod
    def from_doc(cls, doc: dict[str, Any]) -> UserProfile:
        num = doc.get("num_hackathons")
        if isinstance(num, list):
            num = num[0] if num else ""
        return cls(
            id=_as_str(doc.get("id")),
            name=_as_str(doc.get("name")),
            email=_as_str(doc.get("email")),
            role_preference=_as_str(doc.get("role_preference")),
            skills=_as_list(doc.get("skills")),
            tech_stack=_as_list(doc.get("tech_stack")),
            experience=_as_list(doc.get("experience")),
            school=_as_str(doc.get("school")),
            location=_as_str(doc.get("location")),
            bio=_as_str(doc.get("bio") or doc.get("description")),
            github=_as_str(doc.get("github")),
            devpost=_as_str(doc.get("devpost")),
            num_hackathons=_as_str(num),
            registered_hackathons=_as_list(doc.get("registered_hackathons")),
        )

    def to_doc(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role_preference": self.role_preference,
            "skills": list(self.skills),
            "tech_stack": list(self.tech_stack),
            "experience": list(self.experience),
            "school": self.school,
            "location": self.location,
            "bio": self.bio,
            "description": self.bio,
            "github": self.github,
            "devpost": self.devpost,
            "num_hackathons": self.num_hackathons,
            "registered_hackathons": list(self.registered_hackathons),
        }

    @property
    def display_name(self) -> str:
        return self.name or self.id


# ============ Hackathon ============

@dataclass
class Hackathon:
    id: str
    name: str = ""
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    location: str = ""
    url: str = ""
    type: str = ""
    description: str = ""
    image_url: Optional[str] = None
    is_active: bool = True

    @classmethod
    def from_doc(cls, doc: dict[str, Any]) -> Hackathon:
        return cls(
            id=_as_str(doc.get("id")),
            name=_as_str(doc.get("name")),
            start_date=_date_only(doc.get("start_date") or doc.get("startDate")),
            end_date=_date_only(doc.get("end_date") or doc.get("endDate")),
            location=_as_str(doc.get("location")),
            url=_as_str(doc.get("url")),
            type=_as_str(doc.get("type")),
            description=_as_str(doc.get("description")),
            image_url=doc.get("image_url") or doc.get("imageUrl") or doc.get("logo"),
            is_active=bool(doc.get("is_active", doc.get("isActive", True))),
        )

    def to_doc(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "start_date": self.start_date,
            "end_date": self.end_date,
            "location": self.location,
            "url": self.url,
            "type": self.type,
            "description": self.description,
            "image_url": self.image_url,
            "is_active": self.is_active,
        }


def _date_only(value: Any) -> Optional[str]:
    """Normalize a stored date/datetime to ``YYYY-MM-DD``; None if unparseable."""
    if not value:
        return None
    if isinstance(value, datetime):
        return value.date().isoformat()
    text = str(value)
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date().isoformat()
    except ValueError:
        return None


# ============ Team ============

@dataclass
class ChatMessage:
    sender_id: str
    text: str
    timestamp: datetime = field(default_factory=utcnow)

    @classmethod
    def from_doc(cls, doc: dict[str, Any]) -> ChatMessage:
        return cls(
            sender_id=_as_str(doc.get("senderId")),
            text=_as_str(doc.get("text")),
            timestamp=_parse_dt(doc.get("timestamp")),
        )

    def to_doc(self) -> dict[str, Any]:
        return {
            "senderId": self.sender_id,
            "text": self.text,
            "timestamp": _format_dt(self.timestamp),
        }


@dataclass
class Team:
    """
    A hackathon team.

    Invariants: ``len(members) <= MAX_TEAM_SIZE`` and
    ``is_full == (len(members) == MAX_TEAM_SIZE)``.
    """
    id: str
    hackathon_id: str
    members: list[str] = field(default_factory=list)
    needed_roles: list[str] = field(default_factory=list)
    is_full: bool = False
    name: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)
    messages: list[ChatMessage] = field(default_factory=list)

    @classmethod
    def from_doc(cls, doc: dict[str, Any]) -> Team:
        return cls(
            id=_as_str(doc.get("id")),
            hackathon_id=_as_str(doc.get("hackathon_id") or doc.get("hackathonId")),
            members=_as_list(doc.get("members")),
            needed_roles=_as_list(doc.get("needed_roles")),
            is_full=bool(doc.get("is_full", False)),
            name=doc.get("name"),
            created_at=_parse_dt(doc.get("created_at")),
            messages=[ChatMessage.from_doc(m) for m in doc.get("messages") or []],
        )

    def to_doc(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "hackathon_id": self.hackathon_id,
            "members": list(self.members),
            "needed_roles": list(self.needed_roles),
            "is_full": self.is_full,
            "name": self.name,
            "created_at": _format_dt(self.created_at),
            "messages": [m.to_doc() for m in self.messages],
        }

    @property
    def is_open(self) -> bool:
        return len(self.members) < MAX_TEAM_SIZE


# ============ Team Request ============

class RequestStatus(str, Enum):
    PENDING = "pending"
    CANCELLED = "cancelled"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


@dataclass
class TeamRequest:
    id: str
    from_user_id: str
    to_user_id: str
    hackathon_id: Optional[str] = None
    status: RequestStatus = RequestStatus.PENDING
    message: str = ""
    created_at: datetime = field(default_factory=utcnow)

    @classmethod
    def from_doc(cls, doc: dict[str, Any]) -> TeamRequest:
        try:
            status = RequestStatus(doc.get("status", "pending"))
        except ValueError:
            status = RequestStatus.CANCELLED
        return cls(
            id=_as_str(doc.get("id")),
            from_user_id=_as_str(doc.get("from_user_id") or doc.get("fromUserId")),
            to_user_id=_as_str(doc.get("to_user_id") or doc.get("toUserId")),
            hackathon_id=doc.get("hackathon_id") or doc.get("hackathonId") or None,
            status=status,
            message=_as_str(doc.get("message")),
            created_at=_parse_dt(doc.get("created_at") or doc.get("createdAt")),
        )

    def to_doc(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "from_user_id": self.from_user_id,
            "to_user_id": self.to_user_id,
            "hackathon_id": self.hackathon_id,
            "status": self.status.value,
            "message": self.message,
            "created_at": _format_dt(self.created_at),
        }

    @property
    def is_pending(self) -> bool:
        return self.status == RequestStatus.PENDING


# ============ Match Result ============

class MatchTier(str, Enum):
    """The four score bands of the evaluation rubric."""
    DREAM_TEAM = "Dream Team"
    STRONG = "Strong Match"
    AVERAGE = "Average Match"
    WEAK = "Weak Match"

    @classmethod
    def from_score(cls, score: int) -> MatchTier:
        if score >= 90:
            return cls.DREAM_TEAM
        if score >= 70:
            return cls.STRONG
        if score >= 40:
            return cls.AVERAGE
        return cls.WEAK


class MatchStatus(str, Enum):
    OK = "ok"
    DEGRADED = "degraded"


DEGRADED_SCORE = 50


@dataclass
class MatchResult:
    """
    Compatibility verdict. Never persisted.

    ``tier`` keeps the four-band rubric value; ``category`` is the
    two-value label surfaced to clients and is only derived here.
    """
    score: int
    reason: str
    tier: MatchTier
    needed_roles: list[str] = field(default_factory=list)
    status: MatchStatus = MatchStatus.OK
    error_kind: Optional[str] = None

    @property
    def category(self) -> str:
        return "Strong Match" if self.score >= STRONG_MATCH_THRESHOLD else "Good Match"

    @property
    def is_degraded(self) -> bool:
        return self.status == MatchStatus.DEGRADED

    @classmethod
    def degraded(cls, reason: str, error_kind: str) -> MatchResult:
        return cls(
            score=DEGRADED_SCORE,
            reason=reason,
            tier=MatchTier.from_score(DEGRADED_SCORE),
            needed_roles=[],
            status=MatchStatus.DEGRADED,
            error_kind=error_kind,
        )

    def to_public(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "score": self.score,
            "reason": self.reason,
            "category": self.category,
            "needed_roles": list(self.needed_roles),
            "status": self.status.value,
        }
        if self.error_kind:
            data["error_kind"] = self.error_kind
        return data
