# Overview: Order status state machine.

"""
Order lifecycle:

    PENDING -> SHIPPED -> COMPLETED
    PENDING -> CANCELLED
    SHIPPED -> CANCELLED   (allowed until the order is completed)

COMPLETED and CANCELLED are terminal. There are no time-based transitions;
only the owning distributor drives an order forward.
"""

from __future__ import annotations

from ..errors import InvalidTransitionError

PENDING = "PENDING"
SHIPPED = "SHIPPED"
COMPLETED = "COMPLETED"
CANCELLED = "CANCELLED"

ORDER_STATUSES = (PENDING, SHIPPED, COMPLETED, CANCELLED)
INITIAL_STATUS = PENDING
TERMINAL_STATUSES = frozenset({COMPLETED, CANCELLED})

ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    PENDING: frozenset({SHIPPED, CANCELLED}),
    SHIPPED: frozenset({COMPLETED, CANCELLED}),
    COMPLETED: frozenset(),
    CANCELLED: frozenset(),
}


def can_transition(current: str, new: str) -> bool:
    return new in ALLOWED_TRANSITIONS.get(current, frozenset())


def require_transition(current: str, new: str) -> None:
    """Raise InvalidTransitionError unless current -> new is a legal move."""
    if can_transition(current, new):
        return

    if current in TERMINAL_STATUSES:
        message = f"Order is {current} and cannot change status"
    else:
        message = f"Cannot change order status from {current} to {new}"

    raise InvalidTransitionError(
        message,
        details={
            "current_status": current,
            "requested_status": new,
            "allowed": sorted(ALLOWED_TRANSITIONS.get(current, ())),
        },
    )
