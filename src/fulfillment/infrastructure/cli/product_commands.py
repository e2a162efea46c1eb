"""CLI commands for the Product catalog."""

from __future__ import annotations

import click

from fulfillment.application.add_product import AddProductHandler
from fulfillment.application.update_product import UpdateProductHandler
from fulfillment.domain.exceptions import DomainException
from fulfillment.infrastructure.bootstrap import product_repository
from fulfillment.infrastructure.config import get_settings


@click.command("add")
@click.option("--name", required=True, help="Product name.")
@click.option("--price", required=True, help="Price (e.g. 15.00).")
@click.option("--cost", "cost_price", default="0", show_default=True, help="Cost price.")
@click.option("--sku", default=None, help="Stock keeping unit, must be unique.")
def product_add(name: str, price: str, cost_price: str, sku: str | None) -> None:
    """Add a new product to the catalog."""
    handler = AddProductHandler(
        product_repo=product_repository(),
        currency=get_settings().currency,
    )

    try:
        product = handler.handle(name=name, price=price, cost_price=cost_price, sku=sku)
    except DomainException as exc:
        raise click.ClickException(f"[{exc.code}] {exc}")

    click.echo(f"Product #{product.id} '{product.name}' added at {product.price}")


@click.command("list")
def product_list() -> None:
    """List all products in the catalog."""
    products = product_repository().list_all()

    if not products:
        click.echo("No products found.")
        return

    click.echo(f"{'ID':<6} {'Name':<20} {'SKU':<12} {'Price':>10} {'Cost':>10}  Active")
    click.echo("-" * 68)
    for p in products:
        click.echo(
            f"{p.id:<6} {p.name:<20} {p.sku or '-':<12} {str(p.price):>10} "
            f"{str(p.cost_price):>10}  {'yes' if p.is_active else 'no'}"
        )


@click.command("update")
@click.option("--id", "product_id", required=True, help="Product ID.")
@click.option("--price", default=None, help="New price (e.g. 29.99).")
@click.option("--active/--inactive", default=None, help="Re-list or retire the product.")
def product_update(product_id: str, price: str | None, active: bool | None) -> None:
    """Update a product's price or availability."""
    if price is None and active is None:
        raise click.UsageError("Nothing to update: pass --price and/or --active/--inactive")

    handler = UpdateProductHandler(product_repo=product_repository())

    try:
        product = handler.handle(product_id=product_id, new_price=price, active=active)
    except DomainException as exc:
        raise click.ClickException(f"[{exc.code}] {exc}")

    state = "active" if product.is_active else "inactive"
    click.echo(f"Product #{product.id} '{product.name}' now {product.price} ({state})")
