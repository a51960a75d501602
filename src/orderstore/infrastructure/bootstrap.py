"""Composition root — wires concrete implementations to domain interfaces.

This is the only place in the codebase that knows about *all* layers.
Every other module depends only on abstractions.
"""

from __future__ import annotations

from orderstore.infrastructure.config import get_settings
from orderstore.infrastructure.persistence.database import DatabaseHandleProvider
from orderstore.infrastructure.persistence.order_collection_query import (
    OrderCollectionQuery,
)
from orderstore.infrastructure.persistence.sql_order_repository import (
    SqlOrderRepository,
)


def handle_provider() -> DatabaseHandleProvider:
    return DatabaseHandleProvider(get_settings().database_path)


def order_repository() -> SqlOrderRepository:
    return SqlOrderRepository(handle_provider())


def order_collection_query() -> OrderCollectionQuery:
    return OrderCollectionQuery(handle_provider())
