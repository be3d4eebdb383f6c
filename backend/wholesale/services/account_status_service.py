# Overview: Account-status gate; decides whether an outlet may transact right now.

"""
Account-Status Gate

An OUTLET login identity may act only while its outlet account is exactly
ACTIVE. This is evaluated against the live outlets row on every request; a
session token never carries an authorization decision. PENDING and INACTIVE
both fail closed but stay distinguishable so clients can show "awaiting
approval" versus "deactivated".
"""

from __future__ import annotations

from ..errors import AccountDeactivatedError, UnauthorizedError
from ..extensions import db
from ..models import Outlet, User, ROLE_OUTLET, OUTLET_ACTIVE, OUTLET_PENDING


_REASONS = {
    OUTLET_PENDING: "Your outlet account is awaiting approval by the administrator.",
    None: "Your outlet account no longer exists. Please contact support.",
}
_DEFAULT_REASON = "Your outlet account has been deactivated by the administrator. Please contact support."


def _load_outlet(outlet_id: int | None, session=None) -> Outlet | None:
    if outlet_id is None:
        return None
    session = session or db.session
    # Always re-read: the status may have changed since this session last looked
    return session.get(Outlet, outlet_id, populate_existing=True)


def check_account_status(outlet_id: int, session=None) -> dict:
    """Pure read of an outlet's current status."""
    outlet = _load_outlet(outlet_id, session)
    status = outlet.status if outlet else None
    return {
        "outlet_id": outlet_id,
        "status": status,
        "can_transact": status == OUTLET_ACTIVE,
    }


def require_outlet_active(outlet_id: int | None, session=None) -> Outlet:
    """Return the outlet if ACTIVE, else raise AccountDeactivatedError."""
    outlet = _load_outlet(outlet_id, session)
    status = outlet.status if outlet else None
    if status == OUTLET_ACTIVE:
        return outlet

    raise AccountDeactivatedError(
        _REASONS.get(status, _DEFAULT_REASON),
        account_status=status,
        details={"outlet_id": outlet_id},
    )


def require_active_outlet_user(user: User, session=None) -> Outlet:
    """
    Gate for an authenticated caller.

    Raises UnauthorizedError if the caller is not an OUTLET identity and
    AccountDeactivatedError if its outlet is not ACTIVE.
    """
    if user is None or user.role != ROLE_OUTLET:
        raise UnauthorizedError("Outlet account required")
    return require_outlet_active(user.outlet_id, session)
