"""
Record store used by the dev terminal.

The pipeline only needs row-level insert / select / update against a handful
of tables plus a way to group writes atomically. `InMemoryRecordStore` backs
tests and local runs; `PostgresRecordStore` talks to PostgreSQL via asyncpg.
"""

import copy
import json
import logging
import re
import contextvars
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Dict, Iterable, List, Optional, Protocol, runtime_checkable
from uuid import uuid4

import asyncpg

from .errors import PersistenceFailure

logger = logging.getLogger(__name__)

REQUESTS_TABLE = "ashen_dev_requests"
BUILD_LOGS_TABLE = "ashen_build_logs"
ARTIFACTS_TABLE = "ashen_generated_artifacts"
CIVIC_MEMORY_TABLE = "ashen_civic_memory"
USER_ROLES_TABLE = "user_roles"

TABLES = (REQUESTS_TABLE, BUILD_LOGS_TABLE, ARTIFACTS_TABLE, CIVIC_MEMORY_TABLE, USER_ROLES_TABLE)

_IDENTIFIER = re.compile(r"^[a-z_][a-z0-9_]*$")


@runtime_checkable
class RecordStore(Protocol):
    """Protocol for the terminal's persistent store."""

    async def insert(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        """Insert a row, returning it with generated columns filled in."""
        ...

    async def select(
        self,
        table: str,
        eq: Optional[Dict[str, Any]] = None,
        in_: Optional[Dict[str, Iterable[Any]]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """Select rows matching equality / membership filters."""
        ...

    async def update(self, table: str, values: Dict[str, Any], eq: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Update matching rows, returning the updated rows."""
        ...

    def transaction(self):
        """Async context manager: writes inside it commit or roll back together."""
        ...


def _check_table(table: str) -> None:
    if table not in TABLES:
        raise PersistenceFailure(f"Unknown table: {table}")


def _check_columns(columns: Iterable[str]) -> None:
    for column in columns:
        if not _IDENTIFIER.match(column):
            raise PersistenceFailure(f"Invalid column name: {column!r}")


def _matches(row: Dict[str, Any], eq: Optional[Dict[str, Any]], in_: Optional[Dict[str, Iterable[Any]]]) -> bool:
    for key, value in (eq or {}).items():
        if row.get(key) != value:
            return False
    for key, values in (in_ or {}).items():
        if row.get(key) not in list(values):
            return False
    return True


class InMemoryRecordStore:
    """Dict-backed record store for tests and local development."""

    def __init__(self):
        self._tables: Dict[str, List[Dict[str, Any]]] = {table: [] for table in TABLES}
        self._tx_depth = 0

    async def insert(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        _check_table(table)
        stored = copy.deepcopy(row)
        if stored.get("id") is None:
            stored["id"] = str(uuid4())
        if stored.get("created_at") is None:
            stored["created_at"] = datetime.now(timezone.utc)
        self._tables[table].append(stored)
        return copy.deepcopy(stored)

    async def select(
        self,
        table: str,
        eq: Optional[Dict[str, Any]] = None,
        in_: Optional[Dict[str, Iterable[Any]]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        _check_table(table)
        indexed = [(i, row) for i, row in enumerate(self._tables[table]) if _matches(row, eq, in_)]
        if order_by:
            # Insertion position breaks ties so equal timestamps keep a stable order
            indexed.sort(
                key=lambda item: (item[1].get(order_by) is not None, item[1].get(order_by), item[0]),
                reverse=descending,
            )
        rows = [copy.deepcopy(row) for _, row in indexed]
        return rows[:limit] if limit is not None else rows

    async def update(self, table: str, values: Dict[str, Any], eq: Dict[str, Any]) -> List[Dict[str, Any]]:
        _check_table(table)
        updated = []
        for row in self._tables[table]:
            if _matches(row, eq, None):
                row.update(copy.deepcopy(values))
                updated.append(copy.deepcopy(row))
        return updated

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        if self._tx_depth:
            self._tx_depth += 1
            try:
                yield
            finally:
                self._tx_depth -= 1
            return

        snapshot = copy.deepcopy(self._tables)
        self._tx_depth = 1
        try:
            yield
        except BaseException:
            self._tables = snapshot
            raise
        finally:
            self._tx_depth = 0


SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS ashen_dev_requests (
    id TEXT PRIMARY KEY DEFAULT gen_random_uuid()::text,
    request_prompt TEXT NOT NULL,
    request_type TEXT NOT NULL DEFAULT 'plugin',
    target_users TEXT[] NOT NULL DEFAULT ARRAY['admin'],
    build_mode TEXT NOT NULL DEFAULT 'think_first',
    use_civic_memory BOOLEAN NOT NULL DEFAULT true,
    preview_before_build BOOLEAN NOT NULL DEFAULT true,
    status TEXT NOT NULL DEFAULT 'pending',
    created_by TEXT,
    analysis JSONB,
    created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
    started_at TIMESTAMPTZ,
    completed_at TIMESTAMPTZ,
    build_duration_seconds INTEGER
);

CREATE TABLE IF NOT EXISTS ashen_build_logs (
    id TEXT PRIMARY KEY DEFAULT gen_random_uuid()::text,
    request_id TEXT NOT NULL REFERENCES ashen_dev_requests(id),
    step_name TEXT NOT NULL,
    step_type TEXT NOT NULL,
    step_order INTEGER NOT NULL,
    status TEXT NOT NULL DEFAULT 'pending',
    output_data JSONB NOT NULL DEFAULT '{}'::jsonb,
    error_details TEXT,
    created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
    started_at TIMESTAMPTZ,
    completed_at TIMESTAMPTZ,
    UNIQUE (request_id, step_order)
);

CREATE TABLE IF NOT EXISTS ashen_generated_artifacts (
    id TEXT PRIMARY KEY DEFAULT gen_random_uuid()::text,
    request_id TEXT NOT NULL REFERENCES ashen_dev_requests(id),
    artifact_type TEXT NOT NULL,
    artifact_name TEXT NOT NULL,
    file_path TEXT,
    generated_code TEXT NOT NULL,
    schema_definition JSONB,
    linked_modules TEXT[] NOT NULL DEFAULT '{}',
    created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
    reverted_at TIMESTAMPTZ,
    revert_reason TEXT
);

CREATE TABLE IF NOT EXISTS ashen_civic_memory (
    id TEXT PRIMARY KEY DEFAULT gen_random_uuid()::text,
    pattern_name TEXT NOT NULL,
    pattern_type TEXT,
    usage_count INTEGER NOT NULL DEFAULT 0,
    success_rate DOUBLE PRECISION,
    tags TEXT[] NOT NULL DEFAULT '{}',
    is_active BOOLEAN NOT NULL DEFAULT true,
    created_at TIMESTAMPTZ NOT NULL DEFAULT now()
);

CREATE TABLE IF NOT EXISTS user_roles (
    id TEXT PRIMARY KEY DEFAULT gen_random_uuid()::text,
    user_id TEXT NOT NULL,
    role TEXT NOT NULL,
    created_at TIMESTAMPTZ NOT NULL DEFAULT now()
);
"""


def _equality_clauses(eq: Dict[str, Any], args: List[Any]) -> List[str]:
    """Build WHERE clauses for `eq`, appending bind values to `args`."""
    clauses = []
    for column, value in eq.items():
        _check_columns([column])
        if value is None:
            clauses.append(f"{column} IS NULL")
        else:
            args.append(value)
            clauses.append(f"{column} = ${len(args)}")
    return clauses


async def _init_connection(conn: asyncpg.Connection) -> None:
    await conn.set_type_codec("jsonb", encoder=json.dumps, decoder=json.loads, schema="pg_catalog")


class PostgresRecordStore:
    """asyncpg-backed record store."""

    def __init__(self, dsn: str, min_size: int = 1, max_size: int = 10):
        self.dsn = dsn
        self.min_size = min_size
        self.max_size = max_size
        self._pool: Optional[asyncpg.Pool] = None
        self._tx_conn: contextvars.ContextVar = contextvars.ContextVar("tx_conn", default=None)

    async def connect(self) -> None:
        try:
            self._pool = await asyncpg.create_pool(
                self.dsn, min_size=self.min_size, max_size=self.max_size, init=_init_connection
            )
        except (asyncpg.PostgresError, OSError) as e:
            raise PersistenceFailure(f"Could not connect to database: {e}") from e
        await self.ensure_schema()
        logger.info("Connected to PostgreSQL record store")

    async def close(self) -> None:
        if self._pool is not None:
            await self._pool.close()
            self._pool = None

    async def ensure_schema(self) -> None:
        async with self._connection() as conn:
            await self._run(conn.execute(SCHEMA_SQL))

    @asynccontextmanager
    async def _connection(self) -> AsyncIterator[asyncpg.Connection]:
        conn = self._tx_conn.get()
        if conn is not None:
            yield conn
            return
        if self._pool is None:
            raise PersistenceFailure("Record store is not connected")
        async with self._pool.acquire() as conn:
            yield conn

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        if self._tx_conn.get() is not None:
            yield
            return
        if self._pool is None:
            raise PersistenceFailure("Record store is not connected")
        async with self._pool.acquire() as conn:
            async with conn.transaction():
                token = self._tx_conn.set(conn)
                try:
                    yield
                finally:
                    self._tx_conn.reset(token)

    @staticmethod
    async def _run(awaitable):
        try:
            return await awaitable
        except (asyncpg.PostgresError, asyncpg.InterfaceError) as e:
            raise PersistenceFailure(str(e)) from e

    async def insert(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        _check_table(table)
        _check_columns(row)
        columns = list(row)
        placeholders = ", ".join(f"${i}" for i in range(1, len(columns) + 1))
        sql = (
            f'INSERT INTO {table} ({", ".join(columns)}) '
            f"VALUES ({placeholders}) RETURNING *"
        )
        async with self._connection() as conn:
            record = await self._run(conn.fetchrow(sql, *row.values()))
        return dict(record)

    async def select(
        self,
        table: str,
        eq: Optional[Dict[str, Any]] = None,
        in_: Optional[Dict[str, Iterable[Any]]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        _check_table(table)
        args: List[Any] = []
        clauses = _equality_clauses(eq or {}, args)
        for column, values in (in_ or {}).items():
            _check_columns([column])
            args.append(list(values))
            clauses.append(f"{column} = ANY(${len(args)})")

        sql = f"SELECT * FROM {table}"
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        if order_by:
            _check_columns([order_by])
            sql += f" ORDER BY {order_by} {'DESC' if descending else 'ASC'}"
        if limit is not None:
            args.append(limit)
            sql += f" LIMIT ${len(args)}"

        async with self._connection() as conn:
            records = await self._run(conn.fetch(sql, *args))
        return [dict(r) for r in records]

    async def update(self, table: str, values: Dict[str, Any], eq: Dict[str, Any]) -> List[Dict[str, Any]]:
        _check_table(table)
        _check_columns(values)
        _check_columns(eq)
        args: List[Any] = list(values.values())
        assignments = ", ".join(f"{column} = ${i}" for i, column in enumerate(values, start=1))
        clauses = _equality_clauses(eq, args)
        sql = f"UPDATE {table} SET {assignments}"
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        sql += " RETURNING *"

        async with self._connection() as conn:
            records = await self._run(conn.fetch(sql, *args))
        return [dict(r) for r in records]
