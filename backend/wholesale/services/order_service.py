# Overview: Checkout splitting, order persistence and order status changes.

"""
Order placement and fulfillment.

A checkout may contain products from several distributors. It is validated
as a whole, split into one Order per distributor, and persisted together with
the stock decrements in a single transaction: either every order and every
decrement is committed, or none is.

Conservation: for any committed checkout, the quantity removed from
products.stock_quantity equals the quantity across its order lines.
"""

from __future__ import annotations

from flask import current_app

from ..errors import PriceMismatchError, OrderNotFoundError, UnauthorizedError
from ..models import Order, OrderLine, Product
from ..repositories import OrderRepository, ProductRepository
from ..validation import OrderLineRequest, PlaceOrderRequest
from wholesale.time_utils import utcnow
from . import order_status
from .account_status_service import require_outlet_active
from .concurrency import run_in_transaction
from .stock_service import aggregate_quantities, validate_lines


def _retry_attempts() -> int:
    return current_app.config.get("CHECKOUT_RETRY_ATTEMPTS", 3)


def split_by_distributor(
    lines: list[OrderLineRequest], products: dict[int, Product]
) -> dict[int, list[OrderLineRequest]]:
    """Group checkout lines by the owning distributor of each product (first-seen order)."""
    groups: dict[int, list[OrderLineRequest]] = {}
    for line in lines:
        distributor_id = products[line.product_id].distributor_id
        groups.setdefault(distributor_id, []).append(line)
    return groups


def check_prices(lines: list[OrderLineRequest], products: dict[int, Product]) -> None:
    """
    Reject the checkout if any submitted unit price differs from the catalog.

    The cart is stale; the caller must re-fetch and resubmit. The catalog price
    is never silently substituted.
    """
    mismatched = []
    for line in lines:
        product = products[line.product_id]
        if line.unit_price_cents != product.price_cents:
            mismatched.append({
                "product_id": product.id,
                "product_name": product.name,
                "submitted_unit_price_cents": line.unit_price_cents,
                "current_unit_price_cents": product.price_cents,
            })

    if mismatched:
        raise PriceMismatchError(
            f"Price changed for product: {mismatched[0]['product_name']}",
            details={"items": mismatched},
        )


def build_order(
    outlet_id: int,
    distributor_id: int,
    lines: list[OrderLineRequest],
    products: dict[int, Product],
    created_at=None,
) -> Order:
    """Build one distributor's Order with snapshotted lines. Does not persist."""
    order = Order(
        outlet_id=outlet_id,
        distributor_id=distributor_id,
        status=order_status.INITIAL_STATUS,
        created_at=created_at or utcnow(),
    )

    total = 0
    for line in lines:
        product = products[line.product_id]
        line_total = product.price_cents * line.quantity
        order.lines.append(OrderLine(
            product_id=product.id,
            quantity=line.quantity,
            unit_price_cents=product.price_cents,
            line_total_cents=line_total,
            product_name=product.name,
            product_description=product.description,
            product_image_url=product.image_url,
            product_distributor_id=product.distributor_id,
        ))
        total += line_total

    order.total_cents = total
    return order


def place_order(
    outlet_id: int,
    request: PlaceOrderRequest,
    *,
    products_repo: ProductRepository | None = None,
    orders_repo: OrderRepository | None = None,
) -> list[Order]:
    """
    Validate, split and persist a checkout. Returns one Order per distributor.

    Raises AccountDeactivatedError, ProductNotFoundError,
    InsufficientStockError, PriceMismatchError or PersistenceError; on any of
    them nothing has been written.
    """
    orders_repo = orders_repo or OrderRepository()
    products_repo = products_repo or ProductRepository(orders_repo.session)
    lines = list(request.items)

    def _op():
        # Re-checked inside the transaction so a concurrent deactivation wins
        require_outlet_active(outlet_id, orders_repo.session)

        products = validate_lines(lines, products_repo)
        check_prices(lines, products)

        now = utcnow()
        orders = []
        for distributor_id, group in split_by_distributor(lines, products).items():
            order = build_order(outlet_id, distributor_id, group, products, created_at=now)
            orders_repo.add(order)
            orders.append(order)

        for product_id, qty in aggregate_quantities(lines).items():
            products[product_id].stock_quantity -= qty

        orders_repo.flush()
        return orders

    orders = run_in_transaction(
        _op,
        attempts=_retry_attempts(),
        session=orders_repo.session,
        failure_message="Checkout could not be saved",
    )

    current_app.logger.info(
        "Checkout for outlet %s created orders %s",
        outlet_id,
        [o.id for o in orders],
    )
    return orders


def update_order_status(
    order_id: int,
    distributor_id: int,
    new_status: str,
    *,
    orders_repo: OrderRepository | None = None,
) -> Order:
    """
    Move an order to new_status on behalf of its owning distributor.

    Raises OrderNotFoundError, UnauthorizedError (not the owning distributor)
    or InvalidTransitionError.
    """
    orders_repo = orders_repo or OrderRepository()

    def _op():
        order = orders_repo.get_for_update(order_id)
        if order is None:
            raise OrderNotFoundError("Order not found", details={"order_id": order_id})

        if order.distributor_id != distributor_id:
            raise UnauthorizedError(
                "Only the owning distributor may change this order",
                details={"order_id": order_id},
            )

        previous = order.status
        order_status.require_transition(previous, new_status)
        order.status = new_status
        order.updated_at = utcnow()
        return order, previous

    order, previous = run_in_transaction(
        _op,
        attempts=_retry_attempts(),
        session=orders_repo.session,
        failure_message="Order status could not be saved",
    )

    current_app.logger.info(
        "Order %s moved %s -> %s by distributor %s",
        order.id, previous, new_status, distributor_id,
    )
    return order


def list_outlet_orders(outlet_id: int, *, orders_repo: OrderRepository | None = None) -> list[Order]:
    return (orders_repo or OrderRepository()).list_for_outlet(outlet_id)


def list_distributor_orders(
    distributor_id: int,
    status: str | None = None,
    *,
    orders_repo: OrderRepository | None = None,
) -> list[Order]:
    return (orders_repo or OrderRepository()).list_for_distributor(distributor_id, status)


def get_order(
    order_id: int,
    *,
    outlet_id: int | None = None,
    distributor_id: int | None = None,
    orders_repo: OrderRepository | None = None,
) -> Order:
    """
    Fetch an order visible to the caller.

    Orders that belong to another outlet or distributor are reported as not
    found so their existence is not revealed.
    """
    order = (orders_repo or OrderRepository()).get(order_id)
    if order is None:
        raise OrderNotFoundError("Order not found", details={"order_id": order_id})
    if outlet_id is not None and order.outlet_id != outlet_id:
        raise OrderNotFoundError("Order not found", details={"order_id": order_id})
    if distributor_id is not None and order.distributor_id != distributor_id:
        raise OrderNotFoundError("Order not found", details={"order_id": order_id})
    return order
