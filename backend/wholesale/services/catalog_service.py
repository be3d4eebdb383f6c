# Overview: Distributor catalog management and outlet catalog browsing.

"""
Catalog

Products belong to exactly one distributor. Price and stock edits run through
run_in_transaction, the same locked boundary checkout uses, so a direct stock
set and a concurrent checkout on the same product serialize.

Deleting a product never touches order history: order lines keep their
snapshot and only lose the live product reference.
"""

from __future__ import annotations

from flask import current_app

from ..errors import ProductNotFoundError
from ..models import Product
from ..repositories import ProductRepository
from ..validation import PRODUCT_POLICY, enforce_rules_product, validate_payload
from .concurrency import run_in_transaction


def _owned_for_update(repo: ProductRepository, product_id: int, distributor_id: int) -> Product:
    product = repo.get_for_update(product_id)
    # Another distributor's product is reported as missing
    if product is None or product.distributor_id != distributor_id:
        raise ProductNotFoundError("Product not found", details={"product_id": product_id})
    return product


def list_catalog(repo: ProductRepository | None = None) -> list[Product]:
    """Products from every distributor that currently have stock."""
    return (repo or ProductRepository()).list_in_stock()


def list_distributor_products(distributor_id: int, repo: ProductRepository | None = None) -> list[Product]:
    return (repo or ProductRepository()).list_for_distributor(distributor_id)


def create_product(distributor_id: int, payload: dict, repo: ProductRepository | None = None) -> Product:
    repo = repo or ProductRepository()
    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
    enforce_rules_product(patch)
    patch.setdefault("stock_quantity", 0)

    def _op():
        product = Product(distributor_id=distributor_id, **patch)
        repo.add(product)
        return product

    return run_in_transaction(_op, session=repo.session, failure_message="Product could not be saved")


def update_product(
    product_id: int,
    distributor_id: int,
    payload: dict,
    repo: ProductRepository | None = None,
) -> Product:
    """Partial update, including a direct set of stock_quantity."""
    repo = repo or ProductRepository()
    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
    enforce_rules_product(patch)

    def _op():
        product = _owned_for_update(repo, product_id, distributor_id)
        for key, value in patch.items():
            setattr(product, key, value)
        return product

    product = run_in_transaction(_op, session=repo.session, failure_message="Product could not be saved")
    current_app.logger.info("Product %s updated by distributor %s: %s", product_id, distributor_id, sorted(patch))
    return product


def delete_product(product_id: int, distributor_id: int, repo: ProductRepository | None = None) -> None:
    repo = repo or ProductRepository()

    def _op():
        product = _owned_for_update(repo, product_id, distributor_id)
        repo.delete(product)

    run_in_transaction(_op, session=repo.session, failure_message="Product could not be deleted")
    current_app.logger.info("Product %s deleted by distributor %s", product_id, distributor_id)
