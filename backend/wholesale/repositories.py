# Overview: Storage access for the stock validator and order repository.

"""
Repositories wrap a SQLAlchemy session so the checkout components never reach
for a global storage handle directly. The default instances bind to
``db.session``; tests may pass any object with the same methods.
"""

from __future__ import annotations

from .extensions import db
from .models import Product, Order, OrderLine
from .services.concurrency import lock_for_update


class ProductRepository:
    def __init__(self, session=None):
        self.session = session or db.session

    def get(self, product_id: int) -> Product | None:
        return self.session.get(Product, product_id)

    def get_many_for_update(self, product_ids: list[int]) -> dict[int, Product]:
        """Load products by id with a row lock, keyed by id. Missing ids are absent."""
        if not product_ids:
            return {}
        query = self.session.query(Product).filter(Product.id.in_(product_ids)).order_by(Product.id)
        return {p.id: p for p in lock_for_update(query).all()}

    def get_for_update(self, product_id: int) -> Product | None:
        query = self.session.query(Product).filter_by(id=product_id)
        return lock_for_update(query).first()

    def list_in_stock(self) -> list[Product]:
        return (
            self.session.query(Product)
            .filter(Product.stock_quantity > 0)
            .order_by(Product.created_at.desc(), Product.id.desc())
            .all()
        )

    def list_for_distributor(self, distributor_id: int) -> list[Product]:
        return (
            self.session.query(Product)
            .filter_by(distributor_id=distributor_id)
            .order_by(Product.created_at.desc(), Product.id.desc())
            .all()
        )

    def add(self, product: Product) -> None:
        self.session.add(product)

    def delete(self, product: Product) -> None:
        # Detach historical lines first; their snapshot columns stay as written
        self.session.query(OrderLine).filter_by(product_id=product.id).update(
            {OrderLine.product_id: None}, synchronize_session="fetch"
        )
        self.session.delete(product)


class OrderRepository:
    def __init__(self, session=None):
        self.session = session or db.session

    def add(self, order: Order) -> None:
        self.session.add(order)

    def flush(self) -> None:
        self.session.flush()

    def get(self, order_id: int) -> Order | None:
        return self.session.get(Order, order_id)

    def get_for_update(self, order_id: int) -> Order | None:
        query = self.session.query(Order).filter_by(id=order_id)
        return lock_for_update(query).first()

    def list_for_outlet(self, outlet_id: int) -> list[Order]:
        return (
            self.session.query(Order)
            .filter_by(outlet_id=outlet_id)
            .order_by(Order.created_at.desc(), Order.id.desc())
            .all()
        )

    def list_for_distributor(self, distributor_id: int, status: str | None = None) -> list[Order]:
        query = self.session.query(Order).filter_by(distributor_id=distributor_id)
        if status:
            query = query.filter_by(status=status)
        return query.order_by(Order.created_at.desc(), Order.id.desc()).all()

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()
