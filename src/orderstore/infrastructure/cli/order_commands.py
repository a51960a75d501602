"""CLI commands for the Order aggregate."""

from __future__ import annotations

import asyncio

import click

from orderstore.domain.exceptions import DomainException, EntityNotFoundError
from orderstore.domain.model.collection_options import SORT_DIRECTIONS, SORTABLE_COLUMNS
from orderstore.domain.model.order import NewOrderDetail, Order, OrderDetailChange
from orderstore.infrastructure.bootstrap import order_collection_query, order_repository
from orderstore.infrastructure.config import get_settings


def _parse_items(raw: str) -> list[NewOrderDetail]:
    """Parse '11:12:14.00,42:10:9.80:0.05' into NewOrderDetail list.

    Each item is ProductId:Quantity:UnitPrice with an optional :Discount.
    """
    details: list[NewOrderDetail] = []
    for chunk in raw.split(","):
        chunk = chunk.strip()
        parts = chunk.split(":")
        if len(parts) not in (3, 4):
            raise click.BadParameter(
                f"Invalid item format '{chunk}'. "
                "Expected 'ProductId:Quantity:UnitPrice[:Discount]'."
            )
        try:
            details.append(
                NewOrderDetail(
                    product_id=int(parts[0]),
                    quantity=int(parts[1]),
                    unit_price=float(parts[2]),
                    discount=float(parts[3]) if len(parts) == 4 else 0.0,
                )
            )
        except ValueError:
            raise click.BadParameter(f"Invalid number in item '{chunk}'.")
    return details


def _parse_changes(raw: str) -> list[OrderDetailChange]:
    """Parse '10248/11:quantity=5,10248/42:discount=0.1' into changes."""
    changes: dict[str, dict[str, float]] = {}
    for chunk in raw.split(","):
        chunk = chunk.strip()
        if ":" not in chunk or "=" not in chunk:
            raise click.BadParameter(
                f"Invalid detail change '{chunk}'. Expected 'DetailId:field=value'."
            )
        line_id, assignment = chunk.split(":", 1)
        name, value = assignment.split("=", 1)
        if name not in ("quantity", "unit_price", "discount"):
            raise click.BadParameter(f"Cannot change '{name}' on an order detail.")
        try:
            number = int(value) if name == "quantity" else float(value)
        except ValueError:
            raise click.BadParameter(f"Invalid number '{value}' for {name}.")
        changes.setdefault(line_id.strip(), {})[name] = number
    return [OrderDetailChange(id=line_id, **fields) for line_id, fields in changes.items()]


def _parse_assignments(pairs: tuple[str, ...]) -> dict[str, str | None]:
    """Parse ('ship_city=Lyon', 'shipped_date=') into a field mapping.

    An empty value clears the field.
    """
    data: dict[str, str | None] = {}
    for pair in pairs:
        if "=" not in pair:
            raise click.BadParameter(f"Invalid assignment '{pair}'. Expected 'field=value'.")
        name, value = pair.split("=", 1)
        data[name.strip()] = value or None
    return data


def _fmt(value: object) -> str:
    return "-" if value is None else str(value)


@click.command("list")
@click.option("--page", type=int, default=1, show_default=True, help="Page number (1-indexed).")
@click.option("--per-page", type=int, default=None, help="Results per page.")
@click.option("--sort", type=click.Choice(SORTABLE_COLUMNS), default=None, help="Column to sort by.")
@click.option("--order", "direction", type=click.Choice(SORT_DIRECTIONS), default=None, help="Sort direction.")
@click.option("--customer", default=None, help="Only orders of this customer id.")
def order_list(
    page: int,
    per_page: int | None,
    sort: str | None,
    direction: str | None,
    customer: str | None,
) -> None:
    """List orders one page at a time."""
    query = order_collection_query()
    if per_page is None:
        per_page = get_settings().default_per_page

    try:
        if customer is not None:
            rows = asyncio.run(query.get_customer_orders(
                customer, page=page, per_page=per_page, sort=sort, order=direction,
            ))
        else:
            rows = asyncio.run(query.list_orders(
                page=page, per_page=per_page, sort=sort, order=direction,
            ))
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if not rows:
        click.echo("No orders found.")
        return

    click.echo(f"{'ID':<8} {'Customer':<30} {'Employee':<15} {'City':<15} {'Shipped':<12}")
    click.echo("-" * 84)
    for row in rows:
        click.echo(
            f"{row.id:<8} {_fmt(row.customer_name):<30} {_fmt(row.employee_name):<15} "
            f"{_fmt(row.ship_city):<15} {_fmt(row.shipped_date):<12}"
        )


@click.command("show")
@click.option("--id", "order_id", required=True, type=int, help="Order ID to display.")
def order_show(order_id: int) -> None:
    """Show an order and its line items."""
    repo = order_repository()

    try:
        order, details = asyncio.run(repo.get_order_with_details(order_id))
        if order is None:
            raise EntityNotFoundError(f"Order #{order_id} not found")
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order #{order.id}")
    click.echo(f"Customer: {_fmt(order.customer_name)} ({_fmt(order.customer_id)})")
    click.echo(f"Employee: {_fmt(order.employee_name)}")
    click.echo(f"Ship to:  {_fmt(order.ship_name)}, {_fmt(order.ship_city)}, {_fmt(order.ship_country)}")
    click.echo(f"Required: {_fmt(order.required_date)}  Shipped: {_fmt(order.shipped_date)}")
    click.echo()
    click.echo(f"  {'Product':<32} {'Qty':>5} {'Price':>10} {'Disc':>6} {'Total':>10}")
    click.echo(f"  {'-'*67}")
    for item in details:
        click.echo(
            f"  {_fmt(item.product_name):<32} {item.quantity:>5} {item.unit_price:>10.2f} "
            f"{item.discount:>6.2f} {item.subtotal:>10.2f}"
        )
    click.echo(f"  {'-'*67}")
    click.echo(f"  {'Subtotal':<32} {order.subtotal or 0:>35.2f}")


@click.command("create")
@click.option("--customer", required=True, help="Customer id.")
@click.option("--employee", type=int, default=None, help="Employee id.")
@click.option("--ship-name", default=None)
@click.option("--ship-address", default=None)
@click.option("--ship-city", default=None)
@click.option("--ship-country", default=None)
@click.option("--required-date", default=None, help="Date the order is required by.")
@click.option("--freight", type=float, default=None)
@click.option("--items", default=None, help="Items as 'ProductId:Qty:UnitPrice[:Discount],...'.")
def order_create(
    customer: str,
    employee: int | None,
    ship_name: str | None,
    ship_address: str | None,
    ship_city: str | None,
    ship_country: str | None,
    required_date: str | None,
    freight: float | None,
    items: str | None,
) -> None:
    """Create an order together with its line items."""
    details = _parse_items(items) if items else []
    order = Order(
        customer_id=customer,
        employee_id=employee,
        ship_name=ship_name,
        ship_address=ship_address,
        ship_city=ship_city,
        ship_country=ship_country,
        required_date=required_date,
        freight=freight,
    )

    try:
        order_id = asyncio.run(order_repository().create_order(order, details))
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order #{order_id} created with {len(details)} item(s).")


@click.command("update")
@click.option("--id", "order_id", required=True, type=int, help="Order ID to update.")
@click.option("--set", "assignments", multiple=True, required=True, help="Field assignment, e.g. ship_city=Lyon.")
@click.option("--details", default=None, help="Line changes as 'DetailId:field=value,...'.")
def order_update(order_id: int, assignments: tuple[str, ...], details: str | None) -> None:
    """Update an order and, optionally, some of its line items."""
    data = _parse_assignments(assignments)
    changes = _parse_changes(details) if details else []

    try:
        asyncio.run(order_repository().update_order(order_id, data, changes))
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order #{order_id} updated.")


@click.command("delete")
@click.option("--id", "order_id", required=True, type=int, help="Order ID to delete.")
def order_delete(order_id: int) -> None:
    """Delete an order and all of its line items."""
    try:
        deleted = asyncio.run(order_repository().delete_order(order_id))
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if not deleted:
        raise click.ClickException(f"Order #{order_id} not found")
    click.echo(f"Order #{order_id} deleted.")
