from .accounts import (
    Outlet, User, SessionToken,
    ROLES, ROLE_OPERATOR, ROLE_DISTRIBUTOR, ROLE_OUTLET,
    OUTLET_STATUSES, OUTLET_PENDING, OUTLET_ACTIVE, OUTLET_INACTIVE,
)
from .catalog import Product
from .orders import Order, OrderLine
from .security import SecurityEvent

__all__ = [
    'Outlet', 'User', 'SessionToken',
    'ROLES', 'ROLE_OPERATOR', 'ROLE_DISTRIBUTOR', 'ROLE_OUTLET',
    'OUTLET_STATUSES', 'OUTLET_PENDING', 'OUTLET_ACTIVE', 'OUTLET_INACTIVE',
    'Product',
    'Order', 'OrderLine',
    'SecurityEvent',
]
