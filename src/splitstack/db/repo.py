from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Optional, Sequence

import asyncpg

from splitstack.db.documents import stack_from_document, stack_to_document
from splitstack.db.models import Participant, Stack
from splitstack.logging import get_logger, sql_logger


class Database:
    """asyncpg pool wrapper; statements are logged on the ``splitstack.sql`` logger."""

    def __init__(
        self,
        dsn: str,
        *,
        min_size: int = 1,
        max_size: int = 5,
        command_timeout: float | None = None,
    ) -> None:
        if min_size > max_size:
            raise ValueError("DB_POOL_MIN_SIZE must not exceed DB_POOL_MAX_SIZE")
        # asyncpg expects a plain postgresql/postgres scheme, without "+asyncpg"
        self._dsn = dsn.replace("+asyncpg", "")
        self._min_size = min_size
        self._max_size = max_size
        self._command_timeout = command_timeout
        self._pool: asyncpg.Pool | None = None
        self._log = get_logger(__name__)

    async def connect(self) -> None:
        if self._pool is None:
            self._pool = await asyncpg.create_pool(
                self._dsn,
                min_size=self._min_size,
                max_size=self._max_size,
                command_timeout=self._command_timeout,
            )
            self._log.info("splitstack.db.pool.opened", min_size=self._min_size, max_size=self._max_size)

    async def close(self) -> None:
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
            self._log.info("splitstack.db.pool.closed")

    async def fetch(self, query: str, *args: Any) -> list[asyncpg.Record]:
        pool = await self._acquire("fetch", query, args)
        return await pool.fetch(query, *args)

    async def fetchrow(self, query: str, *args: Any) -> asyncpg.Record | None:
        pool = await self._acquire("fetchrow", query, args)
        return await pool.fetchrow(query, *args)

    async def fetchval(self, query: str, *args: Any) -> Any:
        pool = await self._acquire("fetchval", query, args)
        return await pool.fetchval(query, *args)

    async def execute(self, query: str, *args: Any) -> str:
        pool = await self._acquire("execute", query, args)
        return await pool.execute(query, *args)

    async def _acquire(self, kind: str, query: str, args: tuple[Any, ...]) -> asyncpg.Pool:
        if self._pool is None:
            await self.connect()
        assert self._pool
        # long string arguments (stack documents) are logged by length only
        sql_logger.debug(
            f"splitstack.sql.{kind}",
            query=" ".join(query.split()),
            args=[arg if not isinstance(arg, str) or len(arg) <= 64 else f"<{len(arg)} chars>" for arg in args],
        )
        return self._pool


def _load_json(value: Any) -> dict[str, Any]:
    # asyncpg hands jsonb back as text unless a codec is registered
    if isinstance(value, str):
        return json.loads(value)
    return dict(value)


class StackRepository:
    def __init__(self, db: Database, roster: Sequence[Participant]) -> None:
        self.db = db
        self.roster = tuple(roster)

    async def save_stack(self, owner_id: int, stack: Stack) -> None:
        await self.db.execute(
            """
            INSERT INTO stacks (id, owner_id, name, stack_date, document, share_id, created_at, updated_at)
            VALUES ($1, $2, $3, $4, $5::jsonb, $6, $7, $8)
            ON CONFLICT (id) DO UPDATE
                SET name = EXCLUDED.name,
                    stack_date = EXCLUDED.stack_date,
                    document = EXCLUDED.document,
                    share_id = EXCLUDED.share_id,
                    updated_at = EXCLUDED.updated_at
            """,
            stack.id,
            owner_id,
            stack.name,
            stack.date,
            json.dumps(stack_to_document(stack)),
            stack.share_id,
            stack.created_at,
            datetime.now(timezone.utc),
        )

    async def get_stack(self, owner_id: int, stack_id: str) -> Optional[Stack]:
        row = await self.db.fetchrow(
            "SELECT document FROM stacks WHERE id = $1 AND owner_id = $2",
            stack_id,
            owner_id,
        )
        if row is None:
            return None
        return stack_from_document(_load_json(row["document"]), self.roster)

    async def list_stacks(self, owner_id: int) -> list[Stack]:
        rows = await self.db.fetch(
            """
            SELECT document
            FROM stacks
            WHERE owner_id = $1
            ORDER BY stack_date, created_at
            """,
            owner_id,
        )
        return [stack_from_document(_load_json(row["document"]), self.roster) for row in rows]

    async def delete_stack(self, owner_id: int, stack_id: str) -> None:
        await self.db.execute("DELETE FROM stacks WHERE id = $1 AND owner_id = $2", stack_id, owner_id)


class SharedStackStore:
    """Key-value store of shared snapshots, addressed by share id."""

    def __init__(self, db: Database) -> None:
        self.db = db

    async def get(self, key: str) -> Optional[dict[str, Any]]:
        value = await self.db.fetchval("SELECT snapshot FROM shared_stacks WHERE share_id = $1", key)
        if value is None:
            return None
        return _load_json(value)

    async def set(self, key: str, value: dict[str, Any]) -> None:
        await self.db.execute(
            """
            INSERT INTO shared_stacks (share_id, snapshot, shared_at)
            VALUES ($1, $2::jsonb, $3)
            ON CONFLICT (share_id) DO UPDATE
                SET snapshot = EXCLUDED.snapshot,
                    shared_at = EXCLUDED.shared_at
            """,
            key,
            json.dumps(value),
            datetime.now(timezone.utc),
        )


_global_repo: StackRepository | None = None
_global_share_store: SharedStackStore | None = None


def set_global_repository(repo: StackRepository, share_store: SharedStackStore) -> None:
    global _global_repo, _global_share_store
    _global_repo = repo
    _global_share_store = share_store


def get_global_repository() -> StackRepository:
    if _global_repo is None:
        raise RuntimeError("Repository is not initialised")
    return _global_repo


def get_global_share_store() -> SharedStackStore:
    if _global_share_store is None:
        raise RuntimeError("Share store is not initialised")
    return _global_share_store
