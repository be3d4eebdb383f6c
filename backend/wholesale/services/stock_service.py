# Overview: Stock validation for checkout; resolves products and checks availability.

"""
Stock Validator

Resolves every requested product to a live row and checks the requested
quantity against stock_quantity. Must run inside the same write transaction
as the decrement (see order_service.place_order); products are loaded with
lock_for_update so the check and the decrement see one consistent view.
"""

from __future__ import annotations

from typing import Iterable

from ..errors import ProductNotFoundError, InsufficientStockError
from ..models import Product
from ..repositories import ProductRepository


def aggregate_quantities(lines: Iterable) -> dict[int, int]:
    """Total requested quantity per product id, in first-seen order."""
    totals: dict[int, int] = {}
    for line in lines:
        totals[line.product_id] = totals.get(line.product_id, 0) + line.quantity
    return totals


def resolve_products(product_ids: Iterable[int], repo: ProductRepository | None = None) -> dict[int, Product]:
    """
    Load and lock every referenced product.

    Raises ProductNotFoundError naming the missing ids if any do not resolve.
    """
    repo = repo or ProductRepository()
    wanted = list(dict.fromkeys(product_ids))
    products = repo.get_many_for_update(wanted)

    missing = [pid for pid in wanted if pid not in products]
    if missing:
        raise ProductNotFoundError(
            f"Product not found: {missing[0]}",
            details={"product_ids": missing},
        )
    return products


def validate_stock(lines: Iterable, products: dict[int, Product]) -> None:
    """
    Raise InsufficientStockError if any product's combined requested quantity
    exceeds its stock_quantity. The message names the first short product;
    details list every shortfall.
    """
    insufficient = []
    for product_id, qty in aggregate_quantities(lines).items():
        product = products[product_id]
        if qty > product.stock_quantity:
            insufficient.append({
                "product_id": product_id,
                "product_name": product.name,
                "requested_quantity": qty,
                "available_quantity": product.stock_quantity,
            })

    if insufficient:
        first = insufficient[0]
        raise InsufficientStockError(
            f"Insufficient stock for product: {first['product_name']}",
            details={"items": insufficient},
        )


def validate_lines(lines: list, repo: ProductRepository | None = None) -> dict[int, Product]:
    """Resolve then check stock. Returns the locked products keyed by id."""
    products = resolve_products((line.product_id for line in lines), repo)
    validate_stock(lines, products)
    return products
