"""SQL-backed implementation of OrderRepository.

Every mutating operation opens its own handle and runs all of its
statements (order row and detail rows alike) inside one transaction.
Reads run without a transaction and let store errors propagate.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from orderstore.domain.exceptions import (
    CreationFailedError,
    EntityNotFoundError,
    StatementError,
    TransactionFailedError,
    UpdateFailedError,
    ValidationError,
)
from orderstore.domain.model.order import (
    NewOrderDetail,
    Order,
    OrderDetail,
    OrderDetailChange,
    detail_id,
)
from orderstore.domain.repository.order_repository import OrderRepository
from orderstore.infrastructure.persistence.database import (
    DatabaseHandle,
    DatabaseHandleProvider,
)
from orderstore.infrastructure.persistence.sql_fragments import (
    Projection,
    build_assignments,
    build_column_list,
    build_placeholders,
)
from orderstore.infrastructure.persistence.transaction import transaction

logger = logging.getLogger(__name__)

# Order attribute -> CustomerOrder column, in Projection.ORDER_INSERT order.
ORDER_FIELD_COLUMNS = {
    "customer_id": "customerid",
    "employee_id": "employeeid",
    "ship_via": "shipvia",
    "ship_name": "shipname",
    "ship_address": "shipaddress",
    "ship_city": "shipcity",
    "ship_region": "shipregion",
    "ship_postal_code": "shippostalcode",
    "ship_country": "shipcountry",
    "order_date": "orderdate",
    "required_date": "requireddate",
    "shipped_date": "shippeddate",
    "freight": "freight",
}

DETAIL_FIELD_COLUMNS = {
    "quantity": "quantity",
    "unit_price": "unitprice",
    "discount": "discount",
}

_SELECT_ORDER = """
SELECT co.*,
       c.companyname                                       AS customername,
       e.firstname || ' ' || e.lastname                    AS employeename,
       SUM(od.unitprice * od.quantity * (1 - od.discount)) AS subtotal
FROM CustomerOrder AS co
       LEFT JOIN Customer AS c ON co.customerid = c.id
       LEFT JOIN Employee AS e ON co.employeeid = e.id
       LEFT JOIN OrderDetail AS od ON od.orderid = co.id
WHERE co.id = $1
GROUP BY co.id
"""

_SELECT_ORDER_DETAILS = """
SELECT od.*, od.unitprice * od.quantity AS price, p.productname AS productname
FROM OrderDetail AS od
       LEFT JOIN Product AS p ON p.id = od.productid
WHERE od.orderid = $1
ORDER BY od.productid
"""


class SqlOrderRepository(OrderRepository):

    def __init__(self, provider: DatabaseHandleProvider) -> None:
        self._provider = provider

    # --- Reads ----------------------------------------------------------------

    async def get_order(self, order_id: int) -> Order | None:
        async with self._provider.handle() as handle:
            result = await handle.execute(_SELECT_ORDER, [order_id])
        if not result.rows:
            return None
        return self._to_order(result.rows[0])

    async def get_order_details(self, order_id: int) -> list[OrderDetail]:
        async with self._provider.handle() as handle:
            result = await handle.execute(_SELECT_ORDER_DETAILS, [order_id])
        return [self._to_detail(row) for row in result.rows]

    # --- Writes ---------------------------------------------------------------

    async def create_order(
        self, order: Order, details: Sequence[NewOrderDetail] = ()
    ) -> int:
        """Insert the order and all of its lines, or nothing at all.

        Steps:
        1. Validate every line before touching the store.
        2. BEGIN, insert the order row, insert each line keyed by
           ``"{new_id}/{product_id}"``, COMMIT.
        3. On any failure ROLLBACK and re-raise.
        """
        details = list(details)
        if order.id is not None:
            raise ValidationError("A new order cannot carry an id; the store assigns it")
        self._validate_new_details(details)

        async with self._provider.handle() as handle:
            try:
                async with transaction(handle, "create_order"):
                    order_id = await self._insert_order(handle, order)
                    for detail in details:
                        await self._insert_detail(handle, order_id, detail)
            except StatementError as exc:
                raise TransactionFailedError(f"Could not create order: {exc}") from exc

        logger.info("Created order #%s with %d detail(s)", order_id, len(details))
        return order_id

    async def update_order(
        self,
        order_id: int,
        data: Mapping[str, Any],
        details: Sequence[OrderDetailChange] = (),
    ) -> None:
        """Update order fields and existing lines in one transaction.

        ``data`` maps Order attribute names (``ship_city``, ``freight``, ...)
        to new values.  Lines are addressed by their composite id and must
        belong to this order.
        """
        fields = self._updatable_fields(data)
        changes = list(details)
        for change in changes:
            change.validate()

        columns = [ORDER_FIELD_COLUMNS[name] for name in fields]
        values = [data[name] for name in fields]

        async with self._provider.handle() as handle:
            try:
                async with transaction(handle, "update_order"):
                    result = await handle.execute(
                        f"UPDATE CustomerOrder SET {build_assignments(columns)} "
                        f"WHERE id = ${len(columns) + 1}",
                        [*values, order_id],
                    )
                    if result.rowcount == 0:
                        raise UpdateFailedError(f"Order #{order_id} not found")
                    for change in changes:
                        await self._update_detail(handle, order_id, change)
            except StatementError as exc:
                raise UpdateFailedError(f"Could not update order #{order_id}: {exc}") from exc

        logger.info(
            "Updated order #%s (%s) and %d detail(s)",
            order_id, ", ".join(fields), len(changes),
        )

    async def delete_order(self, order_id: int) -> bool:
        """Delete the order together with all of its lines."""
        async with self._provider.handle() as handle:
            try:
                async with transaction(handle, "delete_order"):
                    await handle.execute(
                        "DELETE FROM OrderDetail WHERE orderid = $1", [order_id]
                    )
                    result = await handle.execute(
                        "DELETE FROM CustomerOrder WHERE id = $1", [order_id]
                    )
            except StatementError as exc:
                raise TransactionFailedError(
                    f"Could not delete order #{order_id}: {exc}"
                ) from exc

        deleted = result.rowcount > 0
        if deleted:
            logger.info("Deleted order #%s", order_id)
        return deleted

    async def add_order_detail(self, order_id: int, detail: NewOrderDetail) -> str:
        detail.validate()
        async with self._provider.handle() as handle:
            try:
                async with transaction(handle, "add_order_detail"):
                    found = await handle.execute(
                        "SELECT id FROM CustomerOrder WHERE id = $1", [order_id]
                    )
                    if not found.rows:
                        raise EntityNotFoundError(f"Order #{order_id} not found")
                    new_id = await self._insert_detail(handle, order_id, detail)
            except StatementError as exc:
                raise TransactionFailedError(
                    f"Could not add product {detail.product_id} to order #{order_id}: {exc}"
                ) from exc
        return new_id

    async def delete_order_detail(self, detail_id: str) -> bool:
        async with self._provider.handle() as handle:
            try:
                async with transaction(handle, "delete_order_detail"):
                    result = await handle.execute(
                        "DELETE FROM OrderDetail WHERE id = $1", [detail_id]
                    )
            except StatementError as exc:
                raise TransactionFailedError(
                    f"Could not delete order detail '{detail_id}': {exc}"
                ) from exc
        return result.rowcount > 0

    # --- Statements -----------------------------------------------------------

    @staticmethod
    async def _insert_order(handle: DatabaseHandle, order: Order) -> int:
        columns = Projection.ORDER_INSERT.columns
        values = [getattr(order, name) for name in ORDER_FIELD_COLUMNS]
        result = await handle.execute(
            f"INSERT INTO CustomerOrder ({build_column_list(columns)}) "
            f"VALUES ({build_placeholders(1, len(columns))})",
            values,
        )
        if result.last_insert_id is None:
            raise CreationFailedError("Inserting the order did not yield an id")
        return result.last_insert_id

    @staticmethod
    async def _insert_detail(
        handle: DatabaseHandle, order_id: int, detail: NewOrderDetail
    ) -> str:
        columns = Projection.ORDER_DETAIL_INSERT.columns
        new_id = detail_id(order_id, detail.product_id)
        await handle.execute(
            f"INSERT INTO OrderDetail ({build_column_list(columns)}) "
            f"VALUES ({build_placeholders(1, len(columns))})",
            [
                new_id,
                order_id,
                detail.product_id,
                detail.unit_price,
                detail.quantity,
                detail.discount,
            ],
        )
        return new_id

    @staticmethod
    async def _update_detail(
        handle: DatabaseHandle, order_id: int, change: OrderDetailChange
    ) -> None:
        fields = change.changed_fields()
        columns = [DETAIL_FIELD_COLUMNS[name] for name in fields]
        next_index = len(columns) + 1
        result = await handle.execute(
            f"UPDATE OrderDetail SET {build_assignments(columns)} "
            f"WHERE id = ${next_index} AND orderid = ${next_index + 1}",
            [*fields.values(), change.id, order_id],
        )
        if result.rowcount == 0:
            raise UpdateFailedError(
                f"Order detail '{change.id}' not found on order #{order_id}"
            )

    # --- Validation -----------------------------------------------------------

    @staticmethod
    def _updatable_fields(data: Mapping[str, Any]) -> list[str]:
        if not data:
            raise ValidationError("Order update requires at least one field")
        unknown = sorted(name for name in data if name not in ORDER_FIELD_COLUMNS)
        if unknown:
            raise ValidationError(f"Cannot update order field(s): {', '.join(unknown)}")
        return [name for name in ORDER_FIELD_COLUMNS if name in data]

    @staticmethod
    def _validate_new_details(details: list[NewOrderDetail]) -> None:
        seen: set[int] = set()
        for detail in details:
            detail.validate()
            if detail.product_id in seen:
                raise ValidationError(
                    f"Product {detail.product_id} appears more than once in the order"
                )
            seen.add(detail.product_id)

    # --- Mapping --------------------------------------------------------------

    @staticmethod
    def _to_order(row: dict[str, Any]) -> Order:
        return Order(
            id=row["id"],
            customer_id=row["customerid"],
            employee_id=row["employeeid"],
            ship_via=row["shipvia"],
            ship_name=row["shipname"],
            ship_address=row["shipaddress"],
            ship_city=row["shipcity"],
            ship_region=row["shipregion"],
            ship_postal_code=row["shippostalcode"],
            ship_country=row["shipcountry"],
            order_date=row["orderdate"],
            required_date=row["requireddate"],
            shipped_date=row["shippeddate"],
            freight=row["freight"],
            customer_name=row["customername"],
            employee_name=row["employeename"],
            subtotal=row["subtotal"],
        )

    @staticmethod
    def _to_detail(row: dict[str, Any]) -> OrderDetail:
        return OrderDetail(
            id=row["id"],
            order_id=row["orderid"],
            product_id=row["productid"],
            unit_price=row["unitprice"],
            quantity=row["quantity"],
            discount=row["discount"],
            price=row["price"],
            product_name=row["productname"],
        )
