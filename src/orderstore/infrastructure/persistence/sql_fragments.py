"""Query fragment builder — safe, parameterized SQL pieces.

Values always travel as bound parameters (``$1``, ``$2``, ...).  The only
text ever interpolated into a statement is an identifier taken from a
fixed set declared in this package: a ``Projection``, an allow-listed sort
expression or a column from a repository's updatable-field map.  Nothing
that originates from a caller's data reaches the SQL text.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any


class Projection(Enum):
    """Fixed column sets, one per supported query shape."""

    ORDER_LIST = (
        "CustomerOrder.id AS id",
        "CustomerOrder.customerid",
        "CustomerOrder.employeeid",
        "CustomerOrder.shipcity",
        "CustomerOrder.shipcountry",
        "CustomerOrder.shippeddate",
        "Customer.companyname AS customername",
        "Employee.lastname AS employeename",
    )
    ORDER_INSERT = (
        "customerid",
        "employeeid",
        "shipvia",
        "shipname",
        "shipaddress",
        "shipcity",
        "shipregion",
        "shippostalcode",
        "shipcountry",
        "orderdate",
        "requireddate",
        "shippeddate",
        "freight",
    )
    ORDER_DETAIL_INSERT = (
        "id",
        "orderid",
        "productid",
        "unitprice",
        "quantity",
        "discount",
    )

    @property
    def columns(self) -> tuple[str, ...]:
        return self.value


@dataclass(frozen=True)
class Predicate:
    """An equality test of a known column against a bound value."""

    column: str
    value: Any


def build_column_list(columns: Projection | Sequence[str]) -> str:
    """Join a projection's columns with ``", "``."""
    if isinstance(columns, Projection):
        columns = columns.columns
    return ", ".join(columns)


def build_placeholders(start_index: int, count: int) -> str:
    """``build_placeholders(3, 2)`` -> ``"$3, $4"``."""
    if start_index < 1:
        raise ValueError(f"Placeholder numbering starts at 1, got {start_index}")
    if count < 0:
        raise ValueError(f"Placeholder count cannot be negative, got {count}")
    return ", ".join(f"${i}" for i in range(start_index, start_index + count))


def build_where_clause(
    predicate: Predicate | None, start_index: int = 1
) -> tuple[str, list[Any]]:
    """Return ``("WHERE col = $n", [value])``, or ``("", [])`` for no filter."""
    if predicate is None:
        return "", []
    return f"WHERE {predicate.column} = ${start_index}", [predicate.value]


def build_assignments(columns: Sequence[str], start_index: int = 1) -> str:
    """``build_assignments(["a", "b"])`` -> ``"a = $1, b = $2"``."""
    return ", ".join(
        f"{column} = ${index}"
        for index, column in enumerate(columns, start=start_index)
    )


def build_order_by(
    sort_expression: str, direction: str, tiebreaker: str | None = None
) -> str:
    """ORDER BY over allow-listed identifiers.

    The tiebreaker keeps page boundaries stable when the sort column holds
    duplicates.
    """
    if direction not in ("asc", "desc"):
        raise ValueError(f"Unsupported sort direction {direction!r}")
    clause = f"ORDER BY {sort_expression} {direction.upper()}"
    if tiebreaker is not None and tiebreaker != sort_expression:
        clause += f", {tiebreaker} ASC"
    return clause


def build_limit_offset(start_index: int) -> str:
    """``LIMIT $n OFFSET $n+1`` — bind (limit, offset) in that order."""
    return f"LIMIT ${start_index} OFFSET ${start_index + 1}"
