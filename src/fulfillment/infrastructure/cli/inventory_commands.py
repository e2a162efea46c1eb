"""CLI commands for inventory management."""

from __future__ import annotations

import click

from fulfillment.application.adjust_inventory import AdjustInventoryHandler
from fulfillment.application.dto import InventoryMovementDTO
from fulfillment.application.inventory_movements import InventoryMovementsHandler
from fulfillment.application.show_inventory import ShowInventoryHandler
from fulfillment.application.stock_product import StockProductHandler
from fulfillment.domain.exceptions import DomainException
from fulfillment.domain.model.inventory import InventoryOperation
from fulfillment.infrastructure.bootstrap import (
    audit_log,
    availability_checker,
    inventory_ledger,
    inventory_reports,
    inventory_repository,
    product_repository,
)

_OPERATIONS = [op.value for op in InventoryOperation if op is not InventoryOperation.SELL]


def _parse_changes(raw: str) -> dict[str, int]:
    """Parse '1:5,2:-3' into {product_id: change}."""
    result: dict[str, int] = {}
    for pair in raw.split(","):
        pair = pair.strip()
        if ":" not in pair:
            raise click.BadParameter(
                f"Invalid item format '{pair}'. Expected 'ProductID:Quantity'."
            )
        product_id, qty_str = pair.rsplit(":", 1)
        try:
            result[product_id.strip()] = int(qty_str)
        except ValueError:
            raise click.BadParameter(
                f"Invalid quantity '{qty_str}' for product '{product_id}'."
            )
    return result


@click.command("stock")
@click.option("--product", "product_id", required=True, help="Product ID.")
@click.option("--quantity", required=True, type=int, help="Initial quantity in stock.")
@click.option("--reorder-level", default=0, show_default=True, type=int, help="Low-stock threshold.")
def inventory_stock(product_id: str, quantity: int, reorder_level: int) -> None:
    """Create the inventory record for a product."""
    handler = StockProductHandler(
        product_repo=product_repository(),
        ledger=inventory_ledger(),
    )

    try:
        record = handler.handle(product_id, quantity, reorder_level, actor_id="cli")
    except DomainException as exc:
        raise click.ClickException(f"[{exc.code}] {exc}")

    click.echo(f"Inventory for '{record.product_name}' created with {record.quantity} units")


@click.command("show")
def inventory_show() -> None:
    """Show current inventory levels."""
    handler = ShowInventoryHandler(inventory_repo=inventory_repository())
    lines = handler.handle()

    if not lines:
        click.echo("No inventory records found.")
        return

    click.echo(f"{'ID':<6} {'Product':<20} {'Total':>8} {'Reserved':>10} {'Available':>10} {'Reorder':>8}")
    click.echo("-" * 67)
    for line in lines:
        click.echo(
            f"{line.product_id:<6} {line.product_name:<20} {line.total:>8} "
            f"{line.reserved:>10} {line.available:>10} {line.reorder_level:>8}"
        )


@click.command("adjust")
@click.option("--product", "product_id", default=None, help="Product ID.")
@click.option("--change", type=int, default=None, help="Quantity change (signed for 'adjust').")
@click.option("--items", "items_str", default=None, help="Bulk changes as 'ProductID:Change,...'.")
@click.option(
    "--operation",
    type=click.Choice(_OPERATIONS),
    default=InventoryOperation.ADJUST.value,
    show_default=True,
    help="Ledger operation to apply.",
)
def inventory_adjust(
    product_id: str | None,
    change: int | None,
    items_str: str | None,
    operation: str,
) -> None:
    """Adjust stock for one product, or several with --items (all or nothing)."""
    handler = AdjustInventoryHandler(ledger=inventory_ledger())

    if items_str:
        changes = _parse_changes(items_str)
        try:
            results = handler.handle_bulk(changes, operation, actor_id="cli")
        except DomainException as exc:
            raise click.ClickException(f"[{exc.code}] {exc}")
    else:
        if product_id is None or change is None:
            raise click.UsageError("Pass --product and --change, or --items")
        try:
            results = [handler.handle(product_id, change, operation, actor_id="cli")]
        except DomainException as exc:
            raise click.ClickException(f"[{exc.code}] {exc}")

    for result in results:
        click.echo(
            f"Product {result.product_id}: {operation} {result.quantity_change} -> "
            f"quantity {result.new_quantity}, reserved {result.new_reserved}, "
            f"available {result.available_quantity}"
        )


@click.command("reorder-level")
@click.option("--product", "product_id", required=True, help="Product ID.")
@click.option("--level", required=True, type=int, help="New low-stock threshold.")
def inventory_reorder_level(product_id: str, level: int) -> None:
    """Set the low-stock threshold for a product."""
    handler = AdjustInventoryHandler(ledger=inventory_ledger())

    try:
        record = handler.set_reorder_level(product_id, level, actor_id="cli")
    except DomainException as exc:
        raise click.ClickException(f"[{exc.code}] {exc}")

    click.echo(f"Reorder level for '{record.product_name}' set to {record.reorder_level}")


@click.command("check")
@click.option("--items", "items_str", required=True, help="Items as 'ProductID:Qty,...'.")
def inventory_check(items_str: str) -> None:
    """Check whether the given quantities could be ordered right now."""
    items = list(_parse_changes(items_str).items())

    try:
        report = availability_checker().check_many(items)
    except DomainException as exc:
        raise click.ClickException(f"[{exc.code}] {exc}")

    for result in report.results:
        if result.available:
            click.echo(
                f"{result.product_id}: OK ({result.requested_quantity} of "
                f"{result.available_quantity} available)"
            )
        else:
            click.echo(
                f"{result.product_id}: UNAVAILABLE ({result.reason.value}, "  # type: ignore[union-attr]
                f"{result.available_quantity} available)"
            )
    click.echo("All items available." if report.all_available else "Some items are unavailable.")


@click.command("low-stock")
@click.option("--limit", default=50, show_default=True, type=int, help="Maximum rows.")
def inventory_low_stock(limit: int) -> None:
    """List active products at or below their reorder level."""
    records = inventory_reports().low_stock_items(limit=limit)

    if not records:
        click.echo("No products are low on stock.")
        return

    click.echo(f"{'ID':<6} {'Product':<20} {'Total':>8} {'Available':>10} {'Reorder':>8}")
    click.echo("-" * 56)
    for record in records:
        click.echo(
            f"{record.product_id:<6} {record.product_name:<20} {record.quantity:>8} "
            f"{record.available_quantity:>10} {record.reorder_level:>8}"
        )


@click.command("value")
@click.option("--product", "product_id", default=None, help="Limit to one product ID.")
def inventory_value(product_id: str | None) -> None:
    """Show the retail value and cost of stock on hand."""
    try:
        valuation = inventory_reports().inventory_value(product_id)
    except DomainException as exc:
        raise click.ClickException(f"[{exc.code}] {exc}")

    click.echo(f"Products:          {valuation.product_count}")
    click.echo(f"Units in stock:    {valuation.total_quantity}")
    click.echo(f"Retail value:      {valuation.total_value}")
    click.echo(f"Cost:              {valuation.total_cost}")
    click.echo(f"Potential profit:  {valuation.potential_profit:.2f}")
    click.echo(f"Profit margin:     {valuation.profit_margin:.2f}%")


@click.command("movements")
@click.option("--product", "product_id", default=None, help="Limit to one product ID.")
@click.option("--limit", default=50, show_default=True, type=int, help="Maximum rows.")
def inventory_movements(product_id: str | None, limit: int) -> None:
    """Show recent stock movements, newest first."""
    handler = InventoryMovementsHandler(audit_log=audit_log())

    try:
        movements = handler.handle(product_id, limit=limit)
    except DomainException as exc:
        raise click.ClickException(f"[{exc.code}] {exc}")

    if not movements:
        click.echo("No inventory movements recorded.")
        return

    for move in movements:
        what = move.operation or move.action.lower()
        change = f"{move.quantity_change:+d}" if move.quantity_change is not None else ""
        click.echo(
            f"{move.created_at}  product {move.product_id:<6} {what:<8} {change:>6}  "
            f"{_levels(move)}  by {move.actor_id or 'system'}"
        )


def _levels(move: InventoryMovementDTO) -> str:
    if move.new_quantity is None:
        return "reorder level changed"
    if move.old_quantity is None:
        return f"quantity {move.new_quantity}, reserved {move.new_reserved}"
    return (
        f"quantity {move.old_quantity} -> {move.new_quantity}, "
        f"reserved {move.old_reserved} -> {move.new_reserved}"
    )
