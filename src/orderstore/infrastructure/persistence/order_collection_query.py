"""Paginated, sortable listing of orders joined with customer and employee.

NOTE: the order table holds tens of thousands of rows, so listings are
always served one page at a time.
"""

from __future__ import annotations

import logging
from typing import Any

from orderstore.domain.model.collection_options import (
    DEFAULT_ORDER_COLLECTION_OPTIONS,
    OrderCollectionOptions,
)
from orderstore.domain.model.order import OrderSummary
from orderstore.infrastructure.persistence.database import DatabaseHandleProvider
from orderstore.infrastructure.persistence.sql_fragments import (
    Predicate,
    Projection,
    build_column_list,
    build_limit_offset,
    build_order_by,
    build_where_clause,
)

logger = logging.getLogger(__name__)

# Sort option -> SQL expression.  Keys mirror SORTABLE_COLUMNS.
SORT_EXPRESSIONS = {
    "id": "CustomerOrder.id",
    "customerid": "CustomerOrder.customerid",
    "employeeid": "CustomerOrder.employeeid",
    "shipcity": "CustomerOrder.shipcity",
    "shipcountry": "CustomerOrder.shipcountry",
    "shippeddate": "CustomerOrder.shippeddate",
    "customername": "customername",
    "employeename": "employeename",
}


class OrderCollectionQuery:

    def __init__(self, provider: DatabaseHandleProvider) -> None:
        self._provider = provider

    async def list_orders(
        self, options: OrderCollectionOptions | None = None, **overrides: Any
    ) -> list[OrderSummary]:
        """Return one page of orders.

        *overrides* (``page``, ``per_page``, ``sort``, ``order``,
        ``customer_id``) are merged over *options*, which themselves default
        to ``DEFAULT_ORDER_COLLECTION_OPTIONS``.
        """
        options = (options or DEFAULT_ORDER_COLLECTION_OPTIONS).merge(**overrides)
        sql, params = self.build_query(options)
        logger.debug(
            "Listing orders page=%d per_page=%d sort=%s %s customer=%s",
            options.page, options.per_page, options.sort, options.order,
            options.customer_id,
        )
        async with self._provider.handle() as handle:
            result = await handle.execute(sql, params)
        return [self._to_summary(row) for row in result.rows]

    async def get_customer_orders(
        self, customer_id: str, **overrides: Any
    ) -> list[OrderSummary]:
        """Orders for one customer, by shipped date ascending unless overridden."""
        options = DEFAULT_ORDER_COLLECTION_OPTIONS.merge(
            sort="shippeddate", order="asc", customer_id=customer_id
        )
        return await self.list_orders(options, **overrides)

    @staticmethod
    def build_query(options: OrderCollectionOptions) -> tuple[str, list[Any]]:
        predicate = None
        if options.customer_id:
            predicate = Predicate("CustomerOrder.customerid", options.customer_id)
        where, params = build_where_clause(predicate)
        order_by = build_order_by(
            SORT_EXPRESSIONS[options.sort], options.order, tiebreaker="CustomerOrder.id"
        )
        limit = build_limit_offset(len(params) + 1)
        params = [*params, options.per_page, options.offset]

        sql = f"""
SELECT {build_column_list(Projection.ORDER_LIST)}
FROM CustomerOrder
LEFT JOIN Customer ON Customer.id = CustomerOrder.customerid
LEFT JOIN Employee ON Employee.id = CustomerOrder.employeeid
{where}
{order_by}
{limit}"""
        return sql, params

    @staticmethod
    def _to_summary(row: dict[str, Any]) -> OrderSummary:
        return OrderSummary(
            id=row["id"],
            customer_id=row["customerid"],
            employee_id=row["employeeid"],
            ship_city=row["shipcity"],
            ship_country=row["shipcountry"],
            shipped_date=row["shippeddate"],
            customer_name=row["customername"],
            employee_name=row["employeename"],
        )
