"""Options for querying a page of the order collection.

Options are immutable.  A call builds its own instance by merging the
caller's overrides over ``DEFAULT_ORDER_COLLECTION_OPTIONS``; nothing is
shared or mutated between calls.
"""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from typing import Any

from orderstore.domain.exceptions import ValidationError

SORTABLE_COLUMNS = (
    "id",
    "customerid",
    "employeeid",
    "shipcity",
    "shipcountry",
    "shippeddate",
    "customername",
    "employeename",
)
SORT_DIRECTIONS = ("asc", "desc")


@dataclass(frozen=True)
class OrderCollectionOptions:
    """Page, sort and filter settings for an order listing.

    Invariants:
    - ``page`` is 1-indexed and ``per_page`` is positive
    - ``sort`` is one of ``SORTABLE_COLUMNS``
    - ``order`` is ``"asc"`` or ``"desc"``
    """

    page: int = 1
    per_page: int = 20
    sort: str = "id"
    order: str = "asc"
    customer_id: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.page, int) or self.page < 1:
            raise ValidationError(f"Page must be a positive integer, got {self.page!r}")
        if not isinstance(self.per_page, int) or self.per_page < 1:
            raise ValidationError(
                f"Results per page must be a positive integer, got {self.per_page!r}"
            )
        if self.sort not in SORTABLE_COLUMNS:
            raise ValidationError(
                f"Cannot sort orders by {self.sort!r}; "
                f"expected one of {', '.join(SORTABLE_COLUMNS)}"
            )
        if self.order not in SORT_DIRECTIONS:
            raise ValidationError(
                f"Sort direction must be 'asc' or 'desc', got {self.order!r}"
            )

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.per_page

    def merge(self, **overrides: Any) -> OrderCollectionOptions:
        """Return a copy with *overrides* applied; ``None`` values are skipped
        except for ``customer_id``, which may be cleared explicitly."""
        known = {f.name for f in fields(self)}
        unknown = sorted(set(overrides) - known)
        if unknown:
            raise ValidationError(f"Unknown collection option(s): {', '.join(unknown)}")
        changes = {
            name: value
            for name, value in overrides.items()
            if value is not None or name == "customer_id"
        }
        return replace(self, **changes)


DEFAULT_ORDER_COLLECTION_OPTIONS = OrderCollectionOptions()
