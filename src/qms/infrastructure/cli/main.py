import click

from qms.infrastructure.bootstrap import settings
from qms.infrastructure.cli.messaging_commands import outbox_relay, reconcile_run
from qms.infrastructure.cli.product_commands import (
    product_add,
    product_list,
    product_price,
    product_stock,
)
from qms.infrastructure.cli.quotation_commands import (
    quotation_approve,
    quotation_cancel,
    quotation_create,
    quotation_list,
    quotation_show,
    quotation_submit,
)
from qms.infrastructure.logging_config import configure_logging


@click.group()
@click.option("--log-level", default=None, help="Logging level (default: $QMS_LOG_LEVEL or INFO).")
def cli(log_level: str | None) -> None:
    """QMS: Quotation Management System"""
    configure_logging(log_level or settings().log_level)


@cli.group()
def quotation() -> None:
    """Manage quotations."""


@cli.group()
def product() -> None:
    """Manage the inventory catalog."""


@cli.group()
def outbox() -> None:
    """Relay stored events to the event channel."""


@cli.group()
def reconcile() -> None:
    """Apply approved quotations to stock."""


# Register subcommands
quotation.add_command(quotation_approve)
quotation.add_command(quotation_cancel)
quotation.add_command(quotation_create)
quotation.add_command(quotation_list)
quotation.add_command(quotation_show)
quotation.add_command(quotation_submit)
product.add_command(product_add)
product.add_command(product_list)
product.add_command(product_price)
product.add_command(product_stock)
outbox.add_command(outbox_relay)
reconcile.add_command(reconcile_run)
