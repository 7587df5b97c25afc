"""
In-memory document store.

Single-process only. Every operation runs under one asyncio.Lock, which
makes ``update_one`` and ``push`` atomic with respect to other coroutines.
"""

from __future__ import annotations

import asyncio
import copy
import logging
from typing import Any, Optional

from .base import Document, DocumentStore, Filter, matches

logger = logging.getLogger(__name__)


class MemoryDocumentStore(DocumentStore):
    """
    Dict-backed document store.

    Example:
        store = MemoryDocumentStore()
        await store.insert("users", {"id": "u1", "name": "Ada"})
        user = await store.get("users", "u1")
    """

    def __init__(self):
        self._data: dict[str, dict[str, Document]] = {}
        self._lock = asyncio.Lock()

    def _collection(self, name: str) -> dict[str, Document]:
        return self._data.setdefault(name, {})

    async def insert(self, collection: str, doc: Document) -> Document:
        if not doc.get("id"):
            raise ValueError("Document id is required")
        async with self._lock:
            coll = self._collection(collection)
            if doc["id"] in coll:
                raise ValueError(f"Duplicate id in {collection}: {doc['id']}")
            coll[doc["id"]] = copy.deepcopy(doc)
            return copy.deepcopy(doc)

    async def get(self, collection: str, doc_id: str) -> Optional[Document]:
        async with self._lock:
            doc = self._collection(collection).get(doc_id)
            return copy.deepcopy(doc) if doc is not None else None

    async def find(
        self,
        collection: str,
        flt: Optional[Filter] = None,
        limit: Optional[int] = None,
    ) -> list[Document]:
        async with self._lock:
            result = []
            for doc in self._collection(collection).values():
                if matches(doc, flt):
                    result.append(copy.deepcopy(doc))
                    if limit is not None and len(result) >= limit:
                        break
            return result

    async def update_one(
        self, collection: str, flt: Filter, changes: Document,
    ) -> Optional[Document]:
        async with self._lock:
            for doc in self._collection(collection).values():
                if matches(doc, flt):
                    doc.update(copy.deepcopy(changes))
                    return copy.deepcopy(doc)
            return None

    async def update_many(self, collection: str, flt: Filter, changes: Document) -> int:
        async with self._lock:
            n = 0
            for doc in self._collection(collection).values():
                if matches(doc, flt):
                    doc.update(copy.deepcopy(changes))
                    n += 1
            return n

    async def push(
        self, collection: str, doc_id: str, field: str, value: Any,
    ) -> Optional[Document]:
        async with self._lock:
            doc = self._collection(collection).get(doc_id)
            if doc is None:
                return None
            doc.setdefault(field, []).append(copy.deepcopy(value))
            return copy.deepcopy(doc)

    @property
    def store_type(self) -> str:
        return "memory"
