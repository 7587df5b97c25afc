from .base import DocumentStore, create_store, matches
from .memory import MemoryDocumentStore

USERS = "users"
HACKATHONS = "hackathons"
TEAMS = "teams"
REQUESTS = "requests"

__all__ = [
    "DocumentStore", "MemoryDocumentStore", "create_store", "matches",
    "USERS", "HACKATHONS", "TEAMS", "REQUESTS",
]
