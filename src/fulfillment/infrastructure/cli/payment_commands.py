"""CLI commands for payment settlement."""

from __future__ import annotations

import click

from fulfillment.application.payment_history import PaymentHistoryHandler
from fulfillment.application.payment_stats import PaymentStatsHandler
from fulfillment.application.process_payment import ProcessPaymentHandler
from fulfillment.application.refund_payment import RefundPaymentHandler
from fulfillment.domain.exceptions import DomainException
from fulfillment.domain.model.payment import (
    SUPPORTED_PAYMENT_METHODS,
    PaymentMethod,
    processing_fees,
)
from fulfillment.domain.model.value_objects import Money
from fulfillment.infrastructure.bootstrap import (
    audit_log,
    notifier,
    order_lifecycle,
    order_repository,
    payment_gateway,
    payment_repository,
)
from fulfillment.infrastructure.config import get_settings


def _handler_dependencies() -> dict:
    return {
        "order_repo": order_repository(),
        "payment_repo": payment_repository(),
        "gateway": payment_gateway(),
        "lifecycle": order_lifecycle(),
        "audit_log": audit_log(),
        "notifier": notifier(),
    }


@click.command("charge")
@click.option("--order", "order_id", required=True, type=int, help="Order ID to pay.")
@click.option(
    "--method",
    required=True,
    type=click.Choice([m.value for m in PaymentMethod]),
    help="Payment method.",
)
@click.option("--user", "user_id", default=None, help="Paying user; must own the order.")
@click.option("--card-number", default=None)
@click.option("--expiry-month", default=None)
@click.option("--expiry-year", default=None)
@click.option("--cvv", default=None)
@click.option("--cardholder-name", default=None)
@click.option("--email", default=None, help="PayPal account email.")
@click.option("--account-number", default=None)
@click.option("--routing-number", default=None)
def payment_charge(order_id: int, method: str, user_id: str | None, **details: str | None) -> None:
    """Charge a pending order."""
    handler = ProcessPaymentHandler(**_handler_dependencies())
    details = {key: value for key, value in details.items() if value is not None}

    try:
        result = handler.handle(order_id, method, details, user_id=user_id)
    except DomainException as exc:
        raise click.ClickException(f"[{exc.code}] {exc}")

    if result.succeeded:
        click.echo(f"Payment #{result.payment_id} succeeded ({result.transaction_id}).")
    else:
        raise click.ClickException(
            f"[{result.reason_code}] Payment #{result.payment_id} failed: {result.message}"
        )


@click.command("refund")
@click.option("--payment", "payment_id", required=True, type=int, help="Charge to refund.")
@click.option("--amount", default=None, help="Amount to refund (default: remaining balance).")
@click.option("--reason", default=None, help="Reason recorded with the refund.")
@click.option("--admin", "admin_id", default="admin", show_default=True, help="Acting administrator.")
def payment_refund(payment_id: int, amount: str | None, reason: str | None, admin_id: str) -> None:
    """Refund all or part of a successful charge."""
    handler = RefundPaymentHandler(**_handler_dependencies())

    try:
        result = handler.handle(payment_id, amount=amount, reason=reason, actor_id=admin_id)
    except DomainException as exc:
        raise click.ClickException(f"[{exc.code}] {exc}")

    if not result.succeeded:
        raise click.ClickException(
            f"[{result.reason_code}] Refund of payment #{payment_id} failed: {result.message}"
        )
    kind = "Full" if result.full_refund else "Partial"
    click.echo(f"{kind} refund of {result.amount} recorded as payment #{result.refund_payment_id}.")


@click.command("methods")
@click.option("--amount", default=None, help="Show the fees for a charge of this amount.")
def payment_methods(amount: str | None) -> None:
    """List supported payment methods and their fees."""
    try:
        charge = Money.of(amount, get_settings().currency) if amount is not None else None
    except DomainException as exc:
        raise click.ClickException(f"[{exc.code}] {exc}")

    for info in SUPPORTED_PAYMENT_METHODS:
        state = "enabled" if info.enabled else "disabled"
        line = (
            f"{info.method.value:<14} {info.name:<14} "
            f"{info.percentage_fee * 100:.1f}% + {info.fixed_fee}  ({state})"
        )
        if charge is not None:
            fees = processing_fees(charge, info.method)
            line += f"  fee {fees.total_fee}, net {fees.net_amount:.2f}"
        click.echo(line)


@click.command("history")
@click.option("--user", "user_id", default=None, help="Only payments for this customer's orders.")
@click.option("--page", default=1, show_default=True, type=int)
@click.option("--limit", default=10, show_default=True, type=int, help="Payments per page.")
def payment_history(user_id: str | None, page: int, limit: int) -> None:
    """List charges and refunds, newest first."""
    handler = PaymentHistoryHandler(
        payment_repo=payment_repository(),
        order_repo=order_repository(),
    )

    try:
        result = handler.handle(user_id=user_id, page=page, limit=limit)
    except DomainException as exc:
        raise click.ClickException(f"[{exc.code}] {exc}")

    if not result.items:
        click.echo("No payments found.")
        return

    for row in result.items:
        click.echo(
            f"#{row.id:<4} {row.order_number or row.order_id:<24} {row.method:<14} "
            f"{row.amount:>10} {row.status:<9} {row.transaction_id or '-'}"
        )
    click.echo(f"Page {result.page} of {result.pages} ({result.total} payments)")


@click.command("stats")
def payment_stats() -> None:
    """Show payment totals (administrators)."""
    stats = PaymentStatsHandler(
        payment_repo=payment_repository(),
        currency=get_settings().currency,
    ).handle()

    click.echo(f"Successful:        {stats.successful_payments}")
    click.echo(f"Failed:            {stats.failed_payments}")
    click.echo(f"Revenue:           {stats.total_revenue}")
    click.echo(f"Refunds:           {stats.total_refunds}")
    click.echo(f"Average payment:   {stats.average_payment}")
