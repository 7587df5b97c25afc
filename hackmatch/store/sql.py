"""
SQLAlchemy-backed document store.

One row per document: ``(collection, doc_id, body JSON, version)``.
Writes are compare-and-set on ``version``; a writer that loses the race
re-reads and re-checks its filter, so conditional updates stay atomic
across concurrent sessions and processes sharing the database. A write
that still conflicts after MAX_CAS_RETRIES attempts raises
StoreConflictError rather than reporting a miss.
"""

from __future__ import annotations

import asyncio
import copy
import logging
from pathlib import Path
from typing import Any, Callable, Optional

from sqlalchemy import JSON, Column, Integer, String, UniqueConstraint, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from ..core.errors import StoreConflictError
from .base import Document, DocumentStore, Filter, matches

logger = logging.getLogger(__name__)

MAX_CAS_RETRIES = 10


class Base(DeclarativeBase):
    pass


class DocumentRow(Base):
    __tablename__ = "documents"
    __table_args__ = (UniqueConstraint("collection", "doc_id", name="uq_collection_doc"),)

    seq = Column(Integer, primary_key=True, autoincrement=True)
    collection = Column(String(64), nullable=False, index=True)
    doc_id = Column(String(128), nullable=False)
    body = Column(JSON, nullable=False)
    version = Column(Integer, nullable=False, default=1)


def _ensure_sqlite_dir(database_url: str) -> None:
    """Create the parent directory of a file-based SQLite database."""
    prefix = "sqlite+aiosqlite:///"
    if database_url.startswith(prefix):
        path = database_url[len(prefix):]
        if path and path != ":memory:":
            Path(path).parent.mkdir(parents=True, exist_ok=True)


class SqlDocumentStore(DocumentStore):
    """Durable document store over an async SQLAlchemy engine."""

    def __init__(self, database_url: str):
        _ensure_sqlite_dir(database_url)
        self.engine = create_async_engine(database_url, echo=False)
        self._sessions = async_sessionmaker(self.engine, class_=AsyncSession, expire_on_commit=False)
        self._ready = False
        self._init_lock = asyncio.Lock()
        logger.info("SqlDocumentStore: %s", database_url.split("@")[-1])

    async def _ensure_tables(self) -> None:
        if self._ready:
            return
        async with self._init_lock:
            if not self._ready:
                async with self.engine.begin() as conn:
                    await conn.run_sync(Base.metadata.create_all)
                self._ready = True

    async def _rows(self, session: AsyncSession, collection: str) -> list[DocumentRow]:
        result = await session.execute(
            select(DocumentRow)
            .where(DocumentRow.collection == collection)
            .order_by(DocumentRow.seq)
        )
        return list(result.scalars())

    async def _cas(self, session: AsyncSession, row: DocumentRow, body: Document) -> bool:
        result = await session.execute(
            update(DocumentRow)
            .where(DocumentRow.seq == row.seq, DocumentRow.version == row.version)
            .values(body=body, version=row.version + 1)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def insert(self, collection: str, doc: Document) -> Document:
        if not doc.get("id"):
            raise ValueError("Document id is required")
        await self._ensure_tables()
        async with self._sessions() as session:
            session.add(DocumentRow(
                collection=collection,
                doc_id=doc["id"],
                body=copy.deepcopy(doc),
                version=1,
            ))
            try:
                await session.commit()
            except IntegrityError as e:
                raise ValueError(f"Duplicate id in {collection}: {doc['id']}") from e
        return copy.deepcopy(doc)

    async def get(self, collection: str, doc_id: str) -> Optional[Document]:
        await self._ensure_tables()
        async with self._sessions() as session:
            result = await session.execute(
                select(DocumentRow).where(
                    DocumentRow.collection == collection,
                    DocumentRow.doc_id == doc_id,
                )
            )
            row = result.scalar_one_or_none()
            return copy.deepcopy(row.body) if row is not None else None

    async def find(
        self,
        collection: str,
        flt: Optional[Filter] = None,
        limit: Optional[int] = None,
    ) -> list[Document]:
        await self._ensure_tables()
        async with self._sessions() as session:
            docs = []
            for row in await self._rows(session, collection):
                if matches(row.body, flt):
                    docs.append(copy.deepcopy(row.body))
                    if limit is not None and len(docs) >= limit:
                        break
            return docs

    async def _modify(
        self,
        collection: str,
        flt: Filter,
        mutate: Callable[[Document], Document],
        many: bool,
    ) -> list[Document]:
        """Apply ``mutate`` to matching rows with compare-and-set, retrying on conflict."""
        await self._ensure_tables()
        for attempt in range(1, MAX_CAS_RETRIES + 1):
            async with self._sessions() as session:
                targets = [r for r in await self._rows(session, collection) if matches(r.body, flt)]
                if not many:
                    targets = targets[:1]
                if not targets:
                    return []

                written = []
                conflict = False
                for row in targets:
                    body = mutate(copy.deepcopy(row.body))
                    if not await self._cas(session, row, body):
                        conflict = True
                        break
                    written.append(body)

                if not conflict:
                    await session.commit()
                    return written
                await session.rollback()
            logger.debug("CAS conflict on %s (attempt %d), retrying", collection, attempt)

        logger.error("CAS retries exhausted on %s filter=%s", collection, flt)
        raise StoreConflictError(
            f"Write to {collection} kept conflicting after {MAX_CAS_RETRIES} attempts"
        )

    async def update_one(
        self, collection: str, flt: Filter, changes: Document,
    ) -> Optional[Document]:
        written = await self._modify(
            collection, flt, lambda body: {**body, **copy.deepcopy(changes)}, many=False,
        )
        return written[0] if written else None

    async def update_many(self, collection: str, flt: Filter, changes: Document) -> int:
        written = await self._modify(
            collection, flt, lambda body: {**body, **copy.deepcopy(changes)}, many=True,
        )
        return len(written)

    async def push(
        self, collection: str, doc_id: str, field: str, value: Any,
    ) -> Optional[Document]:
        def _append(body: Document) -> Document:
            body[field] = list(body.get(field) or []) + [copy.deepcopy(value)]
            return body

        written = await self._modify(collection, {"id": doc_id}, _append, many=False)
        return written[0] if written else None

    async def close(self) -> None:
        await self.engine.dispose()

    @property
    def store_type(self) -> str:
        return "sql"
