"""Tests for SqlDocumentStore against a temporary SQLite database."""

from __future__ import annotations

import pytest
import pytest_asyncio

from hackmatch.core.errors import StoreConflictError
from hackmatch.store.sql import MAX_CAS_RETRIES, SqlDocumentStore


@pytest_asyncio.fixture
async def sql_store(tmp_path):
    store = SqlDocumentStore(f"sqlite+aiosqlite:///{tmp_path / 'hackmatch.db'}")
    yield store
    await store.close()


class TestSqlDocumentStore:
    @pytest.mark.asyncio
    async def test_insert_get_find(self, sql_store):
        await sql_store.insert("users", {"id": "u1", "name": "Ada", "registered_hackathons": ["h1"]})
        await sql_store.insert("users", {"id": "u2", "name": "Ben", "registered_hackathons": []})

        assert (await sql_store.get("users", "u1"))["name"] == "Ada"
        assert await sql_store.get("users", "nope") is None
        found = await sql_store.find("users", {"registered_hackathons": "h1"})
        assert [d["id"] for d in found] == ["u1"]
        assert sql_store.store_type == "sql"

    @pytest.mark.asyncio
    async def test_duplicate_id_rejected(self, sql_store):
        await sql_store.insert("users", {"id": "u1"})
        with pytest.raises(ValueError, match="Duplicate"):
            await sql_store.insert("users", {"id": "u1"})

    @pytest.mark.asyncio
    async def test_same_id_in_different_collections(self, sql_store):
        await sql_store.insert("users", {"id": "x"})
        await sql_store.insert("teams", {"id": "x"})
        assert await sql_store.count("users") == 1
        assert await sql_store.count("teams") == 1

    @pytest.mark.asyncio
    async def test_conditional_update(self, sql_store):
        await sql_store.insert("teams", {"id": "t1", "members": ["a"], "is_full": False})
        assert await sql_store.update_one("teams", {"id": "t1", "members": {"$size": 2}}, {"is_full": True}) is None

        updated = await sql_store.update_one("teams", {"id": "t1", "members": {"$size": 1}}, {"members": ["a", "b"]})
        assert updated == {"id": "t1", "members": ["a", "b"], "is_full": False}
        assert (await sql_store.get("teams", "t1"))["members"] == ["a", "b"]

    @pytest.mark.asyncio
    async def test_update_many_and_push(self, sql_store):
        for i in range(3):
            await sql_store.insert("requests", {"id": f"r{i}", "status": "pending", "from_user_id": "a"})
        changed = await sql_store.update_many(
            "requests", {"from_user_id": "a", "id": {"$ne": "r0"}}, {"status": "rejected"},
        )
        assert changed == 2
        assert (await sql_store.get("requests", "r0"))["status"] == "pending"

        await sql_store.insert("teams", {"id": "t1", "messages": []})
        await sql_store.push("teams", "t1", "messages", {"text": "one"})
        doc = await sql_store.push("teams", "t1", "messages", {"text": "two"})
        assert [m["text"] for m in doc["messages"]] == ["one", "two"]

    @pytest.mark.asyncio
    async def test_exhausted_retries_raise(self, sql_store, monkeypatch):
        await sql_store.insert("requests", {"id": "r1", "status": "pending"})
        attempts = []

        async def _always_conflict(session, row, body):
            attempts.append(row.doc_id)
            return False

        monkeypatch.setattr(sql_store, "_cas", _always_conflict)

        with pytest.raises(StoreConflictError):
            await sql_store.update_many("requests", {"status": "pending"}, {"status": "cancelled"})
        with pytest.raises(StoreConflictError):
            await sql_store.update_one("requests", {"id": "r1"}, {"status": "cancelled"})
        assert len(attempts) == 2 * MAX_CAS_RETRIES
        assert (await sql_store.get("requests", "r1"))["status"] == "pending"

    @pytest.mark.asyncio
    async def test_no_match_is_not_a_conflict(self, sql_store):
        assert await sql_store.update_many("requests", {"status": "pending"}, {"status": "x"}) == 0
        assert await sql_store.update_one("requests", {"id": "nope"}, {"status": "x"}) is None
