"""CLI commands for the Quotation aggregate."""

from __future__ import annotations

import click

from qms.application.approve_quotation import ApproveQuotationHandler
from qms.application.cancel_quotation import CancelQuotationHandler
from qms.application.create_quotation import CreateQuotationHandler
from qms.application.dto import QuotationDTO, QuotationItemSpec
from qms.application.list_quotations import ListQuotationsHandler, QuotationFilters
from qms.application.show_quotation import ShowQuotationHandler
from qms.application.submit_quotation import SubmitQuotationHandler
from qms.domain.exceptions import DomainException
from qms.infrastructure.bootstrap import (
    event_channel,
    product_lookup,
    quotation_repository,
)


def _parse_items(raw: str) -> list[QuotationItemSpec]:
    """Parse 'p1:3,p2:5' into QuotationItemSpec list."""
    specs: list[QuotationItemSpec] = []
    for pair in raw.split(","):
        pair = pair.strip()
        if ":" not in pair:
            raise click.BadParameter(
                f"Invalid item format '{pair}'. Expected 'ProductId:Quantity'."
            )
        product_id, qty_str = pair.rsplit(":", 1)
        try:
            qty = int(qty_str)
        except ValueError:
            raise click.BadParameter(
                f"Invalid quantity '{qty_str}' for product '{product_id}'."
            )
        specs.append(QuotationItemSpec(product_id=product_id.strip(), quantity=qty))
    return specs


def _display_quotation(dto: QuotationDTO) -> None:
    click.echo(f"Quotation {dto.id}  (status={dto.status}, version={dto.version})")
    click.echo(f"Customer: {dto.customer_id}")
    click.echo(f"Created:  {dto.created_at} by {dto.created_by}")
    click.echo()
    click.echo(f"  {'Product':<20} {'Qty':>5} {'Price':>10} {'Total':>10} {'Frozen':>7}")
    click.echo(f"  {'-'*55}")
    for item in dto.items:
        frozen = "yes" if item.price_snapshot else ""
        click.echo(
            f"  {item.product_name:<20} {item.quantity:>5} {item.unit_price:>10} "
            f"{item.line_total:>10} {frozen:>7}"
        )
    click.echo(f"  {'-'*55}")
    click.echo(f"  {'Total':<27} {dto.total_amount:>20}")


@click.command("create")
@click.option("--customer", required=True, help="Customer ID.")
@click.option("--items", required=True, help="Items as 'ProductId:Qty,ProductId:Qty'.")
@click.option("--by", "created_by", default="system", show_default=True, help="Author.")
def quotation_create(customer: str, items: str, created_by: str) -> None:
    """Create a new DRAFT quotation."""
    specs = _parse_items(items)
    repo = quotation_repository()
    handler = CreateQuotationHandler(quotation_repo=repo, product_lookup=product_lookup())

    try:
        quotation_id = handler.handle(customer, specs, created_by=created_by)
        dto = ShowQuotationHandler(repo).handle(quotation_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _display_quotation(dto)


@click.command("show")
@click.option("--id", "quotation_id", required=True, help="Quotation ID to display.")
def quotation_show(quotation_id: str) -> None:
    """Show details of an existing quotation."""
    try:
        dto = ShowQuotationHandler(quotation_repository()).handle(quotation_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _display_quotation(dto)


@click.command("list")
@click.option("--status", default=None, help="Only quotations in this status.")
@click.option("--customer", default=None, help="Only quotations for this customer.")
@click.option("--limit", type=int, default=None, help="Maximum rows to show.")
def quotation_list(status: str | None, customer: str | None, limit: int | None) -> None:
    """List quotations, newest first."""
    filters = QuotationFilters(status=status, customer_id=customer, limit=limit)
    try:
        rows = ListQuotationsHandler(quotation_repository()).handle(filters)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if not rows:
        click.echo("No quotations found.")
        return

    click.echo(f"{'ID':<38} {'Customer':<16} {'Status':<10} {'Items':>5} {'Total':>12}")
    click.echo("-" * 85)
    for row in rows:
        click.echo(
            f"{row.id:<38} {row.customer_id:<16} {row.status:<10} "
            f"{row.item_count:>5} {row.total_amount:>12}"
        )


@click.command("submit")
@click.option("--id", "quotation_id", required=True, help="Quotation ID to submit.")
def quotation_submit(quotation_id: str) -> None:
    """Submit a DRAFT quotation for approval."""
    try:
        SubmitQuotationHandler(quotation_repository()).handle(quotation_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Quotation {quotation_id} submitted, awaiting approval.")


@click.command("approve")
@click.option("--id", "quotation_id", required=True, help="Quotation ID to approve.")
def quotation_approve(quotation_id: str) -> None:
    """Approve a PENDING quotation (freezes prices, emits quotation.approved)."""
    repo = quotation_repository()
    handler = ApproveQuotationHandler(
        quotation_repo=repo,
        product_lookup=product_lookup(),
        publisher=event_channel(),
    )

    try:
        event = handler.handle(quotation_id)
        undelivered = [
            m for m in repo.pending_outbox() if m.payload.get("quotationId") == quotation_id
        ]
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if undelivered:
        raise click.ClickException(
            f"Quotation {quotation_id} approved (total {event.total_amount}), but its "
            f"{event.event_type} event was not delivered; run 'qms outbox relay' to retry."
        )
    click.echo(f"Quotation {quotation_id} approved, total {event.total_amount}.")


@click.command("cancel")
@click.option("--id", "quotation_id", required=True, help="Quotation ID to cancel.")
def quotation_cancel(quotation_id: str) -> None:
    """Cancel a DRAFT or PENDING quotation."""
    try:
        CancelQuotationHandler(quotation_repository()).handle(quotation_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Quotation {quotation_id} cancelled.")
