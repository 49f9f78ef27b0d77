"""CLI commands for the inventory catalog."""

from __future__ import annotations

import click

from qms.domain.exceptions import DomainException, EntityNotFoundError, ValidationError
from qms.domain.model.product import Product
from qms.domain.model.value_objects import Money
from qms.infrastructure.bootstrap import inventory_store


@click.command("add")
@click.option("--id", "product_id", required=True, help="Product ID.")
@click.option("--name", required=True, help="Product name.")
@click.option("--price", required=True, help="Price (e.g. 15.00).")
@click.option("--sku", default=None, help="SKU (defaults to the product ID).")
@click.option("--stock", type=int, default=0, show_default=True, help="Initial stock.")
def product_add(product_id: str, name: str, price: str, sku: str | None, stock: int) -> None:
    """Add a product to the catalog."""
    store = inventory_store()
    try:
        if store.get_product(product_id) is not None:
            raise ValidationError(f"Product '{product_id}' already exists")
        if stock < 0:
            raise ValidationError("Initial stock cannot be negative")
        product = Product(
            id=product_id, sku=sku or product_id, name=name, price=Money.of(price), stock=stock
        )
        store.stage_product(product)
        store.commit()
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Product {product.id} '{product.name}' added at {product.price} (stock {stock})")


@click.command("list")
def product_list() -> None:
    """List all products with their stock."""
    products = inventory_store().list_products()

    if not products:
        click.echo("No products found.")
        return

    click.echo(f"{'ID':<10} {'Name':<20} {'Price':>10} {'Stock':>8}")
    click.echo("-" * 51)
    for p in products:
        click.echo(f"{p.id:<10} {p.name:<20} {str(p.price):>10} {p.stock:>8}")


@click.command("stock")
@click.option("--id", "product_id", required=True, help="Product ID.")
@click.option("--adjust", type=int, required=True, help="Signed stock adjustment.")
def product_stock(product_id: str, adjust: int) -> None:
    """Adjust a product's stock level by a signed amount."""
    store = inventory_store()
    try:
        product = store.get_product(product_id)
        if product is None:
            raise EntityNotFoundError(f"Product '{product_id}' not found")
        product.adjust_stock(adjust)
        store.stage_product(product)
        store.commit()
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Product {product_id} stock is now {product.stock}")


@click.command("price")
@click.option("--id", "product_id", required=True, help="Product ID.")
@click.option("--price", required=True, help="New catalog price (e.g. 15.00).")
def product_price(product_id: str, price: str) -> None:
    """Change a product's catalog price; SOLD quotations keep theirs."""
    store = inventory_store()
    try:
        product = store.get_product(product_id)
        if product is None:
            raise EntityNotFoundError(f"Product '{product_id}' not found")
        product.update_price(Money.of(price))
        store.stage_product(product)
        store.commit()
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Product {product_id} now costs {product.price}")
