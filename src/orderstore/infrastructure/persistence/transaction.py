"""Transaction scope for a single repository operation.

    IDLE -> BEGIN -> statements -> COMMIT -> IDLE
                        |
                      error -> ROLLBACK -> IDLE (error re-raised)

Whatever goes wrong inside the block, the rollback is issued before the
exception leaves the ``async with``.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from orderstore.domain.exceptions import StatementError
from orderstore.infrastructure.persistence.database import DatabaseHandle

logger = logging.getLogger(__name__)


@asynccontextmanager
async def transaction(handle: DatabaseHandle, operation: str) -> AsyncIterator[DatabaseHandle]:
    await handle.run("BEGIN")
    try:
        yield handle
        await handle.run("COMMIT")
    except Exception as exc:
        logger.error("%s failed, rolling back: %s", operation, exc)
        await _rollback(handle, operation)
        raise
    logger.debug("%s committed", operation)


async def _rollback(handle: DatabaseHandle, operation: str) -> None:
    try:
        await handle.run("ROLLBACK")
    except StatementError:
        # Closing the connection discards the open transaction.
        logger.exception("ROLLBACK of %s failed", operation)
