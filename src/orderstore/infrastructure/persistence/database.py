"""Database handles — one connection per operation, explicit transactions.

Invariants:
    - A handle lives exactly as long as one repository operation
    - The connection runs in autocommit mode; BEGIN/COMMIT/ROLLBACK are
      always issued explicitly through ``run()``
    - Foreign keys are enforced on every connection
    - Driver exceptions never escape: they are wrapped in StatementError

Statements are written with ``$1``-style placeholders and rewritten to
SQLite's numbered ``?1`` form before execution, so parameters always bind
by position.
"""

from __future__ import annotations

import logging
import re
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol

import aiosqlite

from orderstore.domain.exceptions import PersistenceError, StatementError

logger = logging.getLogger(__name__)

TRANSACTION_COMMANDS = ("BEGIN", "COMMIT", "ROLLBACK")

_PLACEHOLDER = re.compile(r"\$(\d+)")


@dataclass
class ExecuteResult:
    """Outcome of a single statement."""

    rows: list[dict[str, Any]] = field(default_factory=list)
    last_insert_id: int | None = None
    rowcount: int = -1


class DatabaseHandle(Protocol):

    async def execute(self, sql: str, params: Sequence[Any] = ()) -> ExecuteResult:
        ...

    async def run(self, command: str) -> None:
        ...


class SqliteHandle:
    """DatabaseHandle backed by an aiosqlite connection."""

    def __init__(self, connection: aiosqlite.Connection) -> None:
        self._connection = connection

    async def execute(self, sql: str, params: Sequence[Any] = ()) -> ExecuteResult:
        statement = _PLACEHOLDER.sub(r"?\1", sql)
        logger.debug("execute: %s params=%r", " ".join(statement.split()), params)
        try:
            async with self._connection.execute(statement, tuple(params)) as cursor:
                rows = await cursor.fetchall()
                is_insert = statement.lstrip().upper().startswith("INSERT")
                return ExecuteResult(
                    rows=[dict(row) for row in rows],
                    last_insert_id=cursor.lastrowid if is_insert else None,
                    rowcount=cursor.rowcount,
                )
        except aiosqlite.Error as exc:
            raise StatementError(f"Statement failed: {exc}") from exc

    async def run(self, command: str) -> None:
        if command not in TRANSACTION_COMMANDS:
            raise ValueError(f"Unsupported transaction command {command!r}")
        try:
            await self._connection.execute(command)
        except aiosqlite.Error as exc:
            raise StatementError(f"{command} failed: {exc}") from exc


class DatabaseHandleProvider:
    """Hands out a fresh, schema-ready handle for each operation."""

    def __init__(self, database_path: str | Path) -> None:
        self._database_path = str(database_path)

    @property
    def database_path(self) -> str:
        return self._database_path

    @asynccontextmanager
    async def handle(self) -> AsyncIterator[SqliteHandle]:
        try:
            connection = await aiosqlite.connect(
                self._database_path, isolation_level=None
            )
        except aiosqlite.Error as exc:
            logger.error("Cannot open database %s: %s", self._database_path, exc)
            raise PersistenceError(
                f"Cannot open database {self._database_path}"
            ) from exc
        try:
            connection.row_factory = aiosqlite.Row
            await connection.execute("PRAGMA foreign_keys = ON")
            yield SqliteHandle(connection)
        finally:
            await connection.close()
