"""Product commands."""

from typing import Optional

import click
from pydantic import ValidationError as PydanticValidationError

from ...core.exceptions import ValidationError
from ...services.products import PRODUCT_STATUSES, ProductInput, ProductService, format_price
from ...utils.output import format_option, print_success, print_warning, render
from ..context import CommandContext, connection_options, handle_errors


@click.command(name='product:list')
@click.argument('category', required=False)
@click.option('--status', '-s', type=click.Choice(['enabled', 'disabled', 'all']), default='all',
              help='Filter by status')
@click.option('--limit', '-l', type=int, default=50, show_default=True, help='Limit number of results')
@click.option('--search', help='Search by product name or model')
@format_option
@connection_options
@handle_errors
def list_products(category: Optional[str], status: str, limit: int, search: Optional[str],
                  output_format: str, target: dict):
    """List products, optionally filtered by category name or ID."""
    with CommandContext(**target) as context:
        products = ProductService(context.gateway).list_products(
            category=category, status=status, limit=limit, search=search
        )

    if not products:
        print_warning("No products found matching the criteria.")
        return

    if output_format != 'table':
        render(products, output_format)
        return

    rows = [
        {
            **product,
            "price": f"${product['price']}",
            "status": f"{'✓' if product['status'] == 'enabled' else '✗'} {product['status'].capitalize()}",
            "date_added": str(product["date_added"] or "")[:10],
        }
        for product in products
    ]
    render(
        rows,
        columns=["product_id", "name", "model", "price", "status", "category", "quantity", "date_added"],
        title="Products",
        headers={"product_id": "ID", "quantity": "Qty"}
    )


def _prompt_missing(data: dict) -> dict:
    if not data["name"]:
        data["name"] = click.prompt("Product name")
    if not data["model"]:
        data["model"] = click.prompt("Product model/SKU")
    if data["price"] in (None, ""):
        data["price"] = click.prompt("Product price", type=click.FloatRange(min=0))
    if not data["description"]:
        data["description"] = click.prompt("Product description (optional)", default="", show_default=False)
    if not data["category"]:
        data["category"] = click.prompt("Category name or ID (optional)", default="", show_default=False) or None
    return data


def _first_error(error: PydanticValidationError) -> str:
    first = error.errors()[0]
    message = first.get("msg", str(error))
    # pydantic prefixes messages raised from validators
    return message.replace("Value error, ", "")


@click.command(name='product:create')
@click.argument('name', required=False)
@click.argument('model', required=False)
@click.argument('price', required=False)
@click.option('--description', '-d', default='', help='Product description')
@click.option('--category', '-c', help='Category name or ID')
@click.option('--quantity', type=int, default=0, help='Product quantity')
@click.option('--status', '-s', type=click.Choice(PRODUCT_STATUSES), default='enabled', help='Product status')
@click.option('--weight', '-w', type=float, default=0.0, help='Product weight')
@click.option('--sku', default='', help='Product SKU')
@click.option('--interactive', '-i', is_flag=True, help='Prompt for missing values')
@format_option
@connection_options
@handle_errors
def create(name, model, price, description, category, quantity, status, weight, sku,
           interactive: bool, output_format: str, target: dict):
    """Create a new product."""
    data = {
        "name": name,
        "model": model,
        "price": price,
        "description": description,
        "category": category,
        "quantity": quantity,
        "status": status,
        "weight": weight,
        "sku": sku,
    }

    with CommandContext(**target) as context:
        if interactive or not (name and model and price):
            data = _prompt_missing(data)

        try:
            product = ProductInput(**data)
        except PydanticValidationError as e:
            raise ValidationError(_first_error(e)) from e

        product_id = ProductService(context.gateway).create_product(product)

    result = {
        "product_id": product_id,
        "name": product.name,
        "model": product.model,
        "price": format_price(product.price),
        "status": product.status,
        "quantity": product.quantity,
        "weight": product.weight,
    }

    if output_format != 'table':
        render(result, output_format)
        return

    print_success("Product created successfully!")
    render({
        "Product ID": result["product_id"],
        "Name": result["name"],
        "Model": result["model"],
        "Price": f"${result['price']}",
        "Status": result["status"].capitalize(),
        "Quantity": result["quantity"],
        "Weight": result["weight"],
    }, title="Product")
