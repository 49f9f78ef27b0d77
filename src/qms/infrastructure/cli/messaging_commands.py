"""CLI commands driving the outbox relay and the stock reconciler."""

from __future__ import annotations

import click

from qms.application.outbox_relay import OutboxRelay
from qms.application.reconcile_stock import StockReconciler
from qms.domain.exceptions import DomainException
from qms.infrastructure.bootstrap import event_channel, inventory_store, quotation_repository


@click.command("relay")
def outbox_relay() -> None:
    """Publish outbox messages that were not delivered yet."""
    repo = quotation_repository()
    try:
        count = OutboxRelay(repo, event_channel()).flush()
        remaining = len(repo.pending_outbox())
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if remaining:
        raise click.ClickException(
            f"Relayed {count} message(s); {remaining} still pending (see log for the cause)."
        )
    click.echo(f"Relayed {count} message(s).")


@click.command("run")
@click.option("--max", "max_messages", type=int, default=None, help="Stop after N deliveries.")
def reconcile_run(max_messages: int | None) -> None:
    """Consume quotation.approved events and decrement stock."""
    try:
        acked = StockReconciler(inventory_store()).consume(
            event_channel(), max_messages=max_messages
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Processed {acked} event(s).")
