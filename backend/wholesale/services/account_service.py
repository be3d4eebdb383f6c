# Overview: Outlet administration, the distributor outlet directory and outlet account summaries.

"""
Outlet account administration.

- create_outlet: new outlets start PENDING.
- activate_outlet: provisions an OUTLET login identity with a one-time
  password and moves the outlet to ACTIVE. This is the only way out of
  PENDING into ACTIVE.
- set_outlet_status: toggles ACTIVE/INACTIVE. Sessions are left alone; the
  account-status gate rejects (and terminates) them on their next request.
- list_outlet_directory / get_outlet_for_distributor: read-only views for
  distributors. Distributors may also propose outlets through create_outlet;
  those still need operator activation.
"""

from __future__ import annotations

from datetime import timedelta

from flask import current_app

from ..extensions import db
from ..models import Outlet, Order, User, ROLE_OUTLET, OUTLET_ACTIVE, OUTLET_PENDING
from ..validation import (
    ConflictError,
    OUTLET_POLICY,
    ValidationError,
    validate_payload,
)
from .auth_service import create_user, generate_password
from .concurrency import lock_for_update, run_in_transaction
from .order_status import PENDING, COMPLETED
from wholesale.time_utils import to_utc_z, utcnow


class OutletNotFoundError(LookupError):
    """Raised when an outlet id does not resolve."""


def _get_outlet(outlet_id: int, *, lock: bool = False) -> Outlet:
    query = db.session.query(Outlet).filter_by(id=outlet_id)
    if lock:
        query = lock_for_update(query)
    outlet = query.first()
    if outlet is None:
        raise OutletNotFoundError("Outlet not found")
    return outlet


def create_outlet(payload: dict) -> Outlet:
    patch = validate_payload(model=Outlet, payload=payload, policy=OUTLET_POLICY, partial=False)

    if db.session.query(Outlet).filter_by(name=patch["name"]).first():
        raise ConflictError("An outlet with this name already exists")

    outlet = Outlet(status=OUTLET_PENDING, **patch)
    db.session.add(outlet)
    db.session.commit()
    return outlet


def activate_outlet(outlet_id: int, email: str) -> tuple[Outlet, User, str]:
    """
    Provision an OUTLET login identity and set the outlet ACTIVE.

    Returns (outlet, user, plaintext_password). The password is shown once
    and never stored in plaintext. Only PENDING outlets can be activated;
    an INACTIVE outlet is re-enabled with set_outlet_status.
    """
    password = generate_password()

    def _op():
        outlet = _get_outlet(outlet_id, lock=True)
        if outlet.status != OUTLET_PENDING:
            raise ConflictError(f"Outlet is {outlet.status}; only PENDING outlets can be activated")
        user = create_user(
            email=email,
            password=password,
            role=ROLE_OUTLET,
            outlet_id=outlet.id,
            display_name=outlet.name,
            commit=False,
        )
        outlet.status = OUTLET_ACTIVE
        return outlet, user

    outlet, user = run_in_transaction(_op, failure_message="Outlet could not be activated")
    current_app.logger.info("Outlet %s activated with identity %s", outlet.id, user.id)
    return outlet, user, password


def set_outlet_status(outlet_id: int, status: str) -> Outlet:
    """
    Toggle an outlet between ACTIVE and INACTIVE.

    Re-activating requires a previously provisioned identity; a PENDING
    outlet goes through activate_outlet instead.
    """
    if status not in ("ACTIVE", "INACTIVE"):
        raise ValidationError("status must be ACTIVE or INACTIVE")

    def _op():
        outlet = _get_outlet(outlet_id, lock=True)
        if status == OUTLET_ACTIVE:
            has_identity = db.session.query(User).filter_by(
                outlet_id=outlet.id, role=ROLE_OUTLET
            ).first() is not None
            if not has_identity:
                raise ConflictError("Outlet has no login identity; activate it with credentials first")
        previous = outlet.status
        outlet.status = status
        return outlet, previous

    outlet, previous = run_in_transaction(_op, failure_message="Outlet status could not be saved")
    current_app.logger.info("Outlet %s status %s -> %s", outlet.id, previous, status)
    return outlet


def list_outlets(status: str | None = None) -> list[Outlet]:
    query = db.session.query(Outlet)
    if status:
        query = query.filter_by(status=status)
    return query.order_by(Outlet.created_at.desc(), Outlet.id.desc()).all()


def _counts_by_outlet(model, outlet_ids) -> dict[int, int]:
    if not outlet_ids:
        return {}
    rows = (
        db.session.query(model.outlet_id, db.func.count(model.id))
        .filter(model.outlet_id.in_(outlet_ids))
        .group_by(model.outlet_id)
        .all()
    )
    return dict(rows)


def _directory_entry(outlet: Outlet, user_counts: dict, order_counts: dict) -> dict:
    data = outlet.to_dict()
    data["user_count"] = user_counts.get(outlet.id, 0)
    data["order_count"] = order_counts.get(outlet.id, 0)
    return data


def list_outlet_directory(status: str | None = None) -> list[dict]:
    """Read-only outlet listing for distributors, with user and order counts."""
    outlets = list_outlets(status)
    ids = [o.id for o in outlets]
    user_counts = _counts_by_outlet(User, ids)
    order_counts = _counts_by_outlet(Order, ids)
    return [_directory_entry(o, user_counts, order_counts) for o in outlets]


def get_outlet_for_distributor(outlet_id: int, distributor_id: int, recent_days: int = 30) -> dict:
    """
    One outlet as seen by a distributor.

    Counts cover the whole outlet; orders and statistics only cover orders
    placed with this distributor.
    """
    outlet = _get_outlet(outlet_id)
    entry = _directory_entry(
        outlet,
        _counts_by_outlet(User, [outlet.id]),
        _counts_by_outlet(Order, [outlet.id]),
    )

    orders = (
        db.session.query(Order)
        .filter_by(outlet_id=outlet_id, distributor_id=distributor_id)
        .order_by(Order.created_at.desc(), Order.id.desc())
        .all()
    )
    revenue = sum(o.total_cents for o in orders)
    recent = (
        db.session.query(Order)
        .filter_by(outlet_id=outlet_id, distributor_id=distributor_id)
        .filter(Order.created_at >= utcnow() - timedelta(days=recent_days))
        .count()
    )

    return {
        "outlet": entry,
        "orders": [o.to_dict() for o in orders],
        "statistics": {
            "total_orders": len(orders),
            "total_revenue_cents": revenue,
            "total_items": sum(line.quantity for o in orders for line in o.lines),
            "recent_orders": recent,
            "average_order_value_cents": revenue // len(orders) if orders else 0,
        },
    }


def get_account_summary(outlet_id: int, recent: int = 5) -> dict:
    """Outlet details plus simple order aggregates."""
    outlet = _get_outlet(outlet_id)
    orders = (
        db.session.query(Order)
        .filter_by(outlet_id=outlet_id)
        .order_by(Order.created_at.desc(), Order.id.desc())
        .all()
    )
    user_count = db.session.query(User).filter_by(outlet_id=outlet_id).count()

    return {
        "outlet": outlet.to_dict(),
        "statistics": {
            "total_orders": len(orders),
            "pending_orders": sum(1 for o in orders if o.status == PENDING),
            "completed_orders": sum(1 for o in orders if o.status == COMPLETED),
            "total_value_cents": sum(o.total_cents for o in orders),
            "total_users": user_count,
            "last_order_at": to_utc_z(orders[0].created_at) if orders else None,
        },
        "recent_orders": [
            {
                "id": o.id,
                "status": o.status,
                "total_cents": o.total_cents,
                "item_count": len(o.lines),
                "created_at": to_utc_z(o.created_at),
            }
            for o in orders[:recent]
        ],
    }
