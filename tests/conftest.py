"""Shared fixtures — a fresh SQLite database file per test.

The schema in ``fixtures/schema.sql`` is applied before each test together
with a small set of customers, employees and products.  Orders are created
by the tests themselves.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from orderstore.infrastructure.persistence.database import DatabaseHandleProvider
from orderstore.infrastructure.persistence.order_collection_query import (
    OrderCollectionQuery,
)
from orderstore.infrastructure.persistence.sql_order_repository import (
    SqlOrderRepository,
)
from tests.fakes import prepare_database


@pytest.fixture
async def database_path(tmp_path: Path) -> Path:
    path = tmp_path / "orders.db"
    await prepare_database(path)
    return path


@pytest.fixture
def provider(database_path: Path) -> DatabaseHandleProvider:
    return DatabaseHandleProvider(database_path)


@pytest.fixture
def repo(provider: DatabaseHandleProvider) -> SqlOrderRepository:
    return SqlOrderRepository(provider)


@pytest.fixture
def collection(provider: DatabaseHandleProvider) -> OrderCollectionQuery:
    return OrderCollectionQuery(provider)


@pytest.fixture(autouse=True)
def _restore_orderstore_logger():
    """Undo process-wide logger configuration done by CLI invocations."""
    import logging

    logger = logging.getLogger("orderstore")
    level, handlers = logger.level, list(logger.handlers)
    yield
    logger.setLevel(level)
    logger.handlers[:] = handlers
