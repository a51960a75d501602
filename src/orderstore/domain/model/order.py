"""Order aggregate — a CustomerOrder row and the OrderDetail lines it owns.

The Order is the aggregate root.  Its line items are identified by a
composite key ``"{order_id}/{product_id}"`` so one order can never hold
two lines for the same product.
"""

from __future__ import annotations

from dataclasses import dataclass

from orderstore.domain.exceptions import ValidationError


def detail_id(order_id: int, product_id: int) -> str:
    """Build the composite key of the line for *product_id* on *order_id*."""
    return f"{order_id}/{product_id}"


@dataclass
class Order:
    """Aggregate root for customer orders.

    ``id`` is ``None`` until the store assigns one and never changes
    afterwards.  ``customer_name``, ``employee_name`` and ``subtotal`` are
    read-side enrichments filled in by ``get_order``; they are ignored on
    writes.
    """

    id: int | None = None
    customer_id: str | None = None
    employee_id: int | None = None
    ship_via: int | None = None
    ship_name: str | None = None
    ship_address: str | None = None
    ship_city: str | None = None
    ship_region: str | None = None
    ship_postal_code: str | None = None
    ship_country: str | None = None
    order_date: str | None = None
    required_date: str | None = None
    shipped_date: str | None = None
    freight: float | None = None

    customer_name: str | None = None
    employee_name: str | None = None
    subtotal: float | None = None


@dataclass(frozen=True)
class NewOrderDetail:
    """Input: one product line to attach to an order."""

    product_id: int
    quantity: int
    unit_price: float
    discount: float = 0.0

    def validate(self) -> None:
        if not isinstance(self.quantity, int) or isinstance(self.quantity, bool):
            raise ValidationError(
                f"Quantity must be an integer, got {type(self.quantity).__name__}"
            )
        if self.quantity <= 0:
            raise ValidationError("Quantity must be positive")
        if self.unit_price < 0:
            raise ValidationError(
                f"Unit price cannot be negative, got {self.unit_price}"
            )
        if not 0 <= self.discount <= 1:
            raise ValidationError(
                f"Discount must be between 0 and 1, got {self.discount}"
            )


@dataclass(frozen=True)
class OrderDetailChange:
    """Input: new values for an existing line, addressed by its composite id.

    Fields left as ``None`` are not touched.  The product of a line cannot
    change because it is part of the line's identity.
    """

    id: str
    quantity: int | None = None
    unit_price: float | None = None
    discount: float | None = None

    def changed_fields(self) -> dict[str, int | float]:
        fields = {
            "quantity": self.quantity,
            "unit_price": self.unit_price,
            "discount": self.discount,
        }
        return {name: value for name, value in fields.items() if value is not None}

    def validate(self) -> None:
        if not self.changed_fields():
            raise ValidationError(f"No fields to update for order detail '{self.id}'")
        if self.quantity is not None:
            if not isinstance(self.quantity, int) or isinstance(self.quantity, bool):
                raise ValidationError(
                    f"Quantity must be an integer, got {type(self.quantity).__name__}"
                )
            if self.quantity <= 0:
                raise ValidationError("Quantity must be positive")
        if self.unit_price is not None and self.unit_price < 0:
            raise ValidationError(
                f"Unit price cannot be negative, got {self.unit_price}"
            )
        if self.discount is not None and not 0 <= self.discount <= 1:
            raise ValidationError(
                f"Discount must be between 0 and 1, got {self.discount}"
            )


@dataclass
class OrderDetail:
    """A persisted order line as read back from the store.

    ``price`` is the undiscounted ``unit_price * quantity`` computed by the
    query; ``subtotal`` applies the discount.
    """

    id: str
    order_id: int
    product_id: int
    unit_price: float
    quantity: int
    discount: float
    price: float | None = None
    product_name: str | None = None

    @property
    def subtotal(self) -> float:
        return self.unit_price * self.quantity * (1 - self.discount)


@dataclass(frozen=True)
class OrderSummary:
    """One row of the order collection listing."""

    id: int
    customer_id: str | None
    employee_id: int | None
    ship_city: str | None
    ship_country: str | None
    shipped_date: str | None
    customer_name: str | None
    employee_name: str | None
