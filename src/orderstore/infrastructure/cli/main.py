import click

from orderstore.infrastructure.cli.order_commands import (
    order_create,
    order_delete,
    order_list,
    order_show,
    order_update,
)
from orderstore.infrastructure.config import get_settings
from orderstore.infrastructure.logging_setup import setup_logging


@click.group()
def cli() -> None:
    """orderstore — transactional order data layer"""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)


@cli.group()
def order() -> None:
    """Manage orders."""


# Register subcommands
order.add_command(order_create)
order.add_command(order_delete)
order.add_command(order_list)
order.add_command(order_show)
order.add_command(order_update)
