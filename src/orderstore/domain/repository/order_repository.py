"""Abstract repository for the Order aggregate."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from typing import Any

from orderstore.domain.model.order import (
    NewOrderDetail,
    Order,
    OrderDetail,
    OrderDetailChange,
)


class OrderRepository(ABC):

    @abstractmethod
    async def get_order(self, order_id: int) -> Order | None:
        """Return the enriched order, or None if not found."""

    @abstractmethod
    async def get_order_details(self, order_id: int) -> list[OrderDetail]:
        """Return the order's lines; empty if it has none."""

    async def get_order_with_details(
        self, order_id: int
    ) -> tuple[Order | None, list[OrderDetail]]:
        """Fetch an order and its lines with two separate reads."""
        order = await self.get_order(order_id)
        details = await self.get_order_details(order_id)
        return order, details

    @abstractmethod
    async def create_order(
        self, order: Order, details: Sequence[NewOrderDetail] = ()
    ) -> int:
        """Persist a new order with its lines atomically; return the new id."""

    @abstractmethod
    async def update_order(
        self,
        order_id: int,
        data: Mapping[str, Any],
        details: Sequence[OrderDetailChange] = (),
    ) -> None:
        """Update order fields and existing lines atomically."""

    @abstractmethod
    async def delete_order(self, order_id: int) -> bool:
        """Delete an order and its lines; return False if it did not exist."""

    @abstractmethod
    async def add_order_detail(self, order_id: int, detail: NewOrderDetail) -> str:
        """Attach one more line to an existing order; return its id."""

    @abstractmethod
    async def delete_order_detail(self, detail_id: str) -> bool:
        """Remove a single line; return False if it did not exist."""
