"""
Document store abstract interface.

Records are JSON-compatible dicts keyed by ``id`` inside named
collections (``users``, ``hackathons``, ``teams``, ``requests``).
Two implementations exist: memory (default, single process) and
SQLAlchemy (durable). ``create_store`` picks one from configuration.

Filters are small Mongo-style dicts:

    {"hackathon_id": "h1", "is_full": False}    # equality
    {"members": "u1"}                            # list field contains value
    {"members": {"$size": 3}}                    # list length
    {"status": {"$in": ["pending", "accepted"]}}
    {"id": {"$ne": "r1"}}
    {"$or": [{"from_user_id": "u1"}, {"to_user_id": "u1"}]}

``update_one`` is conditional: the filter is re-checked against the
current document at write time, so a precondition such as a member count
is enforced atomically by the store.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

logger = logging.getLogger(__name__)

Document = dict[str, Any]
Filter = dict[str, Any]


def matches(doc: Document, flt: Optional[Filter]) -> bool:
    """Return True if ``doc`` satisfies every clause in ``flt``."""
    if not flt:
        return True
    for key, expected in flt.items():
        if key == "$or":
            if not any(matches(doc, sub) for sub in expected):
                return False
            continue
        if not _match_field(doc.get(key), expected):
            return False
    return True


def _match_field(actual: Any, expected: Any) -> bool:
    if isinstance(expected, dict) and expected and all(k.startswith("$") for k in expected):
        for op, operand in expected.items():
            if op == "$in":
                if isinstance(actual, list):
                    if not any(a in operand for a in actual):
                        return False
                elif actual not in operand:
                    return False
            elif op == "$ne":
                if _match_field(actual, operand):
                    return False
            elif op == "$size":
                if not isinstance(actual, list) or len(actual) != operand:
                    return False
            else:
                raise ValueError(f"Unsupported filter operator: {op}")
        return True
    if isinstance(actual, list) and not isinstance(expected, list):
        return expected in actual
    return actual == expected


class DocumentStore(ABC):
    """
    Abstract document store.

    All methods are coroutines and return copies; mutating a returned
    document never changes stored state.
    """

    @abstractmethod
    async def insert(self, collection: str, doc: Document) -> Document:
        """Insert a document (``id`` required). Returns the stored copy."""

    @abstractmethod
    async def get(self, collection: str, doc_id: str) -> Optional[Document]:
        """Fetch by id, or None."""

    @abstractmethod
    async def find(
        self,
        collection: str,
        flt: Optional[Filter] = None,
        limit: Optional[int] = None,
    ) -> list[Document]:
        """All matching documents in insertion order."""

    async def find_one(self, collection: str, flt: Optional[Filter] = None) -> Optional[Document]:
        docs = await self.find(collection, flt, limit=1)
        return docs[0] if docs else None

    async def count(self, collection: str, flt: Optional[Filter] = None) -> int:
        return len(await self.find(collection, flt))

    @abstractmethod
    async def update_one(
        self, collection: str, flt: Filter, changes: Document,
    ) -> Optional[Document]:
        """
        Atomically merge ``changes`` into the first document matching ``flt``.

        Returns the updated document, or None when nothing matched at
        write time (the precondition failed).
        """

    @abstractmethod
    async def update_many(self, collection: str, flt: Filter, changes: Document) -> int:
        """Merge ``changes`` into every matching document; returns the count."""

    @abstractmethod
    async def push(
        self, collection: str, doc_id: str, field: str, value: Any,
    ) -> Optional[Document]:
        """Atomically append ``value`` to a list field. None if no such document."""

    async def close(self) -> None:
        """Release connections. Default: nothing to release."""

    @property
    @abstractmethod
    def store_type(self) -> str:
        """Backend identifier (``memory``, ``sql``)."""


def create_store(config: Any) -> DocumentStore:
    """Build the configured store backend."""
    backend = (config.store_backend or "memory").lower()
    if backend == "sql":
        from .sql import SqlDocumentStore
        return SqlDocumentStore(config.database_url)
    if backend != "memory":
        logger.warning("Unknown store backend %r, falling back to memory", backend)
    from .memory import MemoryDocumentStore
    return MemoryDocumentStore()
