import logging

import click

from fulfillment.infrastructure.cli.inventory_commands import (
    inventory_adjust,
    inventory_check,
    inventory_low_stock,
    inventory_movements,
    inventory_reorder_level,
    inventory_show,
    inventory_stock,
    inventory_value,
)
from fulfillment.infrastructure.cli.order_commands import (
    order_cancel,
    order_create,
    order_expire_stale,
    order_list,
    order_show,
    order_stats,
    order_status,
)
from fulfillment.infrastructure.cli.payment_commands import (
    payment_charge,
    payment_history,
    payment_methods,
    payment_refund,
    payment_stats,
)
from fulfillment.infrastructure.cli.product_commands import (
    product_add,
    product_list,
    product_update,
)
from fulfillment.infrastructure.config import get_settings


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Log at INFO level, including audit entries.")
def cli(verbose: bool) -> None:
    """Storefront fulfillment: stock, orders and payments."""
    level = "INFO" if verbose else get_settings().log_level
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@cli.group()
def order() -> None:
    """Manage orders."""


@cli.group()
def product() -> None:
    """Manage products."""


@cli.group()
def inventory() -> None:
    """Manage inventory."""


@cli.group()
def payment() -> None:
    """Charge and refund orders."""


# Register subcommands
order.add_command(order_cancel)
order.add_command(order_create)
order.add_command(order_expire_stale)
order.add_command(order_list)
order.add_command(order_show)
order.add_command(order_stats)
order.add_command(order_status)
product.add_command(product_add)
product.add_command(product_list)
product.add_command(product_update)
inventory.add_command(inventory_adjust)
inventory.add_command(inventory_check)
inventory.add_command(inventory_low_stock)
inventory.add_command(inventory_movements)
inventory.add_command(inventory_reorder_level)
inventory.add_command(inventory_show)
inventory.add_command(inventory_stock)
inventory.add_command(inventory_value)
payment.add_command(payment_charge)
payment.add_command(payment_history)
payment.add_command(payment_methods)
payment.add_command(payment_refund)
payment.add_command(payment_stats)


if __name__ == "__main__":
    cli()
