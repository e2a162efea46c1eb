"""CLI commands for the Order aggregate."""

from __future__ import annotations

from datetime import timedelta

import click

from fulfillment.application.cancel_order import CancelOrderHandler
from fulfillment.application.create_order import CreateOrderHandler
from fulfillment.application.dto import OrderDTO, OrderItemSpec
from fulfillment.application.expire_stale_orders import ExpireStaleOrdersHandler
from fulfillment.application.list_orders import ListOrdersHandler
from fulfillment.application.order_stats import OrderStatsHandler
from fulfillment.application.show_order import ShowOrderHandler
from fulfillment.application.update_order_status import UpdateOrderStatusHandler
from fulfillment.domain.exceptions import DomainException
from fulfillment.domain.model.order import OrderStatus
from fulfillment.infrastructure.bootstrap import (
    audit_log,
    inventory_ledger,
    inventory_repository,
    notifier,
    order_lifecycle,
    order_repository,
    payment_repository,
    product_repository,
)
from fulfillment.infrastructure.config import get_settings


def _parse_items(raw: str) -> list[OrderItemSpec]:
    """Parse '1:3,2:5' into OrderItemSpec list."""
    specs: list[OrderItemSpec] = []
    for pair in raw.split(","):
        pair = pair.strip()
        if ":" not in pair:
            raise click.BadParameter(
                f"Invalid item format '{pair}'. Expected 'ProductID:Quantity'."
            )
        product_id, qty_str = pair.rsplit(":", 1)
        try:
            qty = int(qty_str)
        except ValueError:
            raise click.BadParameter(
                f"Invalid quantity '{qty_str}' for product '{product_id}'."
            )
        specs.append(OrderItemSpec(product_id=product_id.strip(), quantity=qty))
    return specs


def _parse_address(raw: str) -> dict[str, str]:
    """Parse 'street=1 Main St;city=Springfield' into a dict."""
    address: dict[str, str] = {}
    for part in raw.split(";"):
        part = part.strip()
        if not part:
            continue
        if "=" not in part:
            raise click.BadParameter(
                f"Invalid address part '{part}'. Expected 'key=value;key=value'."
            )
        key, value = part.split("=", 1)
        address[key.strip()] = value.strip()
    return address


@click.command("create")
@click.option("--user", "user_id", required=True, help="Customer user ID.")
@click.option("--items", required=True, help="Items as 'ProductID:Qty,ProductID:Qty'.")
@click.option("--ship-to", required=True, help="Shipping address as 'key=value;key=value'.")
@click.option("--bill-to", default=None, help="Billing address (defaults to the shipping address).")
@click.option("--payment-method", default=None, help="Intended payment method.")
@click.option("--notes", default=None, help="Free-form order notes.")
def order_create(
    user_id: str,
    items: str,
    ship_to: str,
    bill_to: str | None,
    payment_method: str | None,
    notes: str | None,
) -> None:
    """Create a pending order and reserve its stock."""
    specs = _parse_items(items)
    shipping = _parse_address(ship_to)
    billing = _parse_address(bill_to) if bill_to else dict(shipping)

    handler = CreateOrderHandler(
        order_repo=order_repository(),
        product_repo=product_repository(),
        inventory_repo=inventory_repository(),
        ledger=inventory_ledger(),
        audit_log=audit_log(),
        notifier=notifier(),
        max_line_items=get_settings().max_line_items,
    )

    try:
        result = handler.handle(
            user_id=user_id,
            item_specs=specs,
            shipping_address=shipping,
            billing_address=billing,
            payment_method=payment_method,
            notes=notes,
        )
    except DomainException as exc:
        raise click.ClickException(f"[{exc.code}] {exc}")

    click.echo(f"Order #{result.order_id} ({result.order_number}) created, total {result.total_amount}")


def _display_order(dto: OrderDTO) -> None:
    """Shared formatting for displaying an order."""
    click.echo(f"Order #{dto.id} {dto.order_number}  (status={dto.status}, payment={dto.payment_status})")
    click.echo(f"User:     {dto.user_id}")
    click.echo(f"Created:  {dto.created_at}")
    click.echo(f"Ship to:  {', '.join(dto.shipping_address.values())}")
    if dto.notes:
        click.echo(f"Notes:    {dto.notes}")
    click.echo()

    click.echo(f"  {'Product':<20} {'Qty':>5} {'Price':>10} {'Total':>10}")
    click.echo(f"  {'-'*47}")
    for item in dto.items:
        click.echo(
            f"  {item.product_name:<20} {item.quantity:>5} {item.unit_price:>10} {item.line_total:>10}"
        )
    click.echo(f"  {'-'*47}")
    click.echo(f"  {'Order Total':<27} {dto.total:>20}")

    if dto.payments:
        click.echo()
        click.echo("  Payments:")
        for p in dto.payments:
            click.echo(
                f"  #{p.id:<4} {p.method:<12} {p.amount:>10} {p.status:<9} {p.transaction_id or '-'}"
            )


@click.command("show")
@click.option("--id", "order_id", required=True, type=int, help="Order ID to display.")
def order_show(order_id: int) -> None:
    """Show details of an existing order."""
    handler = ShowOrderHandler(
        order_repo=order_repository(),
        payment_repo=payment_repository(),
    )

    try:
        dto = handler.handle(order_id)
    except DomainException as exc:
        raise click.ClickException(f"[{exc.code}] {exc}")

    _display_order(dto)


@click.command("status")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
@click.option(
    "--to",
    "status",
    required=True,
    type=click.Choice([s.value for s in OrderStatus]),
    help="Target status.",
)
@click.option("--admin", "admin_id", default="admin", show_default=True, help="Acting administrator.")
@click.option("--notes", default=None, help="Note to store on the order.")
def order_status(order_id: int, status: str, admin_id: str, notes: str | None) -> None:
    """Move an order to another status (administrators)."""
    handler = UpdateOrderStatusHandler(lifecycle=order_lifecycle())

    try:
        result = handler.handle(order_id, status, admin_id=admin_id, notes=notes)
    except DomainException as exc:
        raise click.ClickException(f"[{exc.code}] {exc}")

    if result.changed:
        click.echo(
            f"Order {result.order_number}: {result.previous_status.value} -> {result.new_status.value}"
        )
    else:
        click.echo(f"Order {result.order_number} is already {result.new_status.value}.")


@click.command("cancel")
@click.option("--id", "order_id", required=True, type=int, help="Order ID to cancel.")
@click.option("--user", "user_id", required=True, help="Customer user ID owning the order.")
def order_cancel(order_id: int, user_id: str) -> None:
    """Cancel a pending order (releases its reserved stock)."""
    handler = CancelOrderHandler(
        order_repo=order_repository(),
        lifecycle=order_lifecycle(),
    )

    try:
        result = handler.handle(order_id, user_id)
    except DomainException as exc:
        raise click.ClickException(f"[{exc.code}] {exc}")

    if result.changed:
        click.echo(f"Order {result.order_number} cancelled.")
    else:
        click.echo(f"Order {result.order_number} was already cancelled.")


@click.command("expire-stale")
@click.option(
    "--hours",
    type=int,
    default=None,
    help="Age in hours after which unpaid pending orders are cancelled "
    "(default: FULFILLMENT_STALE_ORDER_HOURS).",
)
def order_expire_stale(hours: int | None) -> None:
    """Cancel unpaid pending orders older than the cut-off."""
    if hours is None:
        hours = get_settings().stale_order_hours

    handler = ExpireStaleOrdersHandler(
        order_repo=order_repository(),
        lifecycle=order_lifecycle(),
    )
    expired = handler.handle(timedelta(hours=hours), actor_id="cli")

    if not expired:
        click.echo("No stale orders found.")
        return
    click.echo(f"Cancelled {len(expired)} stale order(s):")
    for order_number in expired:
        click.echo(f"  {order_number}")


@click.command("list")
@click.option("--user", "user_id", default=None, help="Only orders of this customer.")
@click.option(
    "--status",
    type=click.Choice([s.value for s in OrderStatus]),
    default=None,
    help="Only orders in this status.",
)
@click.option("--page", default=1, show_default=True, type=int)
@click.option("--limit", default=10, show_default=True, type=int, help="Orders per page.")
def order_list(user_id: str | None, status: str | None, page: int, limit: int) -> None:
    """List orders, newest first."""
    handler = ListOrdersHandler(order_repo=order_repository())

    try:
        result = handler.handle(user_id=user_id, status=status, page=page, limit=limit)
    except DomainException as exc:
        raise click.ClickException(f"[{exc.code}] {exc}")

    if not result.items:
        click.echo("No orders found.")
        return

    click.echo(f"{'ID':<6} {'Number':<24} {'User':<10} {'Status':<11} {'Payment':<11} {'Total':>10}")
    click.echo("-" * 77)
    for row in result.items:
        click.echo(
            f"{row.id:<6} {row.order_number:<24} {row.user_id:<10} "
            f"{row.status:<11} {row.payment_status:<11} {row.total:>10}"
        )
    click.echo(f"Page {result.page} of {result.pages} ({result.total} orders)")


@click.command("stats")
def order_stats() -> None:
    """Show order counts per status and revenue (administrators)."""
    stats = OrderStatsHandler(
        order_repo=order_repository(),
        currency=get_settings().currency,
    ).handle()

    click.echo(f"Orders:            {stats.total_orders}")
    for status, count in stats.status_counts.items():
        click.echo(f"  {status:<16} {count}")
    click.echo(f"Revenue:           {stats.total_revenue}")
    click.echo(f"Average order:     {stats.average_order_value}")
