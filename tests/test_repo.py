import json
from datetime import date, datetime, timezone

import pytest

from splitstack.db import repo as repo_module
from splitstack.db.repo import Database, SharedStackStore, StackRepository
from splitstack.services.stacks import create_stack

ROSTER = ("alice", "bob")
NOW = datetime(2025, 6, 21, 18, 0, tzinfo=timezone.utc)


class DummyDB:
    def __init__(self) -> None:
        self.stacks: dict[str, dict] = {}
        self.shared: dict[str, str] = {}

    async def execute(self, query: str, *args):
        if "INSERT INTO stacks" in query:
            self.stacks[args[0]] = {"owner_id": args[1], "document": args[4]}
        elif "INSERT INTO shared_stacks" in query:
            self.shared[args[0]] = args[1]
        elif "DELETE FROM stacks" in query:
            self.stacks.pop(args[0], None)
        return "OK"

    async def fetchrow(self, query: str, *args):
        row = self.stacks.get(args[0])
        if row is None or row["owner_id"] != args[1]:
            return None
        return {"document": row["document"]}

    async def fetch(self, query: str, *args):
        return [{"document": row["document"]} for row in self.stacks.values() if row["owner_id"] == args[0]]

    async def fetchval(self, query: str, *args):
        return self.shared.get(args[0])


@pytest.mark.asyncio
async def test_stack_roundtrip_through_repository():
    db = DummyDB()
    repo = StackRepository(db, ROSTER)  # type: ignore[arg-type]
    stack = create_stack("Picnic", date(2025, 6, 21), ROSTER, now=NOW)

    await repo.save_stack(42, stack)

    assert json.loads(db.stacks[stack.id]["document"])["name"] == "Picnic"
    assert await repo.get_stack(42, stack.id) == stack
    assert await repo.get_stack(7, stack.id) is None
    assert await repo.list_stacks(42) == [stack]

    await repo.delete_stack(42, stack.id)
    assert await repo.list_stacks(42) == []


@pytest.mark.asyncio
async def test_shared_store_get_and_set():
    db = DummyDB()
    store = SharedStackStore(db)  # type: ignore[arg-type]

    assert await store.get("ABC123") is None

    await store.set("ABC123", {"stackName": "Picnic", "receipts": []})

    assert await store.get("ABC123") == {"stackName": "Picnic", "receipts": []}


class FakePool:
    def __init__(self) -> None:
        self.executed: list[tuple] = []
        self.closed = False

    async def execute(self, query: str, *args):
        self.executed.append((query, args))
        return "DELETE 0"

    async def close(self) -> None:
        self.closed = True


@pytest.mark.asyncio
async def test_database_opens_pool_lazily_with_configured_size(monkeypatch):
    pool = FakePool()
    calls: list[tuple] = []

    async def fake_create_pool(dsn, **kwargs):
        calls.append((dsn, kwargs))
        return pool

    monkeypatch.setattr(repo_module.asyncpg, "create_pool", fake_create_pool)
    db = Database("postgresql+asyncpg://localhost/split", min_size=2, max_size=4, command_timeout=3.0)

    assert await db.execute("DELETE FROM stacks WHERE id = $1", "x") == "DELETE 0"
    await db.execute("DELETE FROM stacks WHERE id = $1", "y")

    assert calls == [("postgresql://localhost/split", {"min_size": 2, "max_size": 4, "command_timeout": 3.0})]
    assert [args for _, args in pool.executed] == [("x",), ("y",)]

    await db.close()
    assert pool.closed


def test_database_rejects_inverted_pool_bounds():
    with pytest.raises(ValueError):
        Database("postgresql://localhost/split", min_size=5, max_size=2)
