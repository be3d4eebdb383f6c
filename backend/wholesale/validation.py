from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from sqlalchemy import Boolean, Integer, String, Text
from sqlalchemy.orm import DeclarativeMeta

from .services.order_status import ORDER_STATUSES


# Maximum price: $9,999,999.99 (999,999,999 cents)
MAX_PRICE_CENTS = 999_999_999
MAX_QUANTITY = 1_000_000
MAX_CHECKOUT_LINES = 200


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate outlet name)."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore


PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={"name", "description", "image_url", "price_cents", "stock_quantity"},
    required_on_create={"name", "price_cents"},
)

OUTLET_POLICY = ModelValidationPolicy(
    writable_fields={"name", "contact_email", "contact_phone"},
    required_on_create={"name"},
)


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _coerce_int(key: str, value: Any) -> int:
    # Already an int (but not bool which is a subclass of int)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    # String input - must be plain digits (with optional leading minus)
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{key} must be an integer")
        if 'e' in stripped.lower():
            raise ValidationError(f"{key} must be a plain integer (scientific notation not allowed)")
        if '.' in stripped:
            raise ValidationError(f"{key} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{key} must be an integer")
    if isinstance(value, float):
        raise ValidationError(f"{key} must be an integer, not a decimal")
    raise ValidationError(f"{key} must be an integer")


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    if isinstance(coltype, Integer):
        return _coerce_int(col.key, value)

    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        raise ValidationError(f"{col.key} must be a boolean")

    if isinstance(coltype, (String, Text)):
        if isinstance(value, (dict, list)):
            raise ValidationError(f"{col.key} must be a string")
        return str(value).strip()

    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    required = policy.required_on_create or set()
    if not partial:
        missing = sorted(f for f in required if f not in payload)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)

    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if k not in cols:
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        col = cols[k]

        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank")

        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[k] = val

    return patch


def enforce_rules_product(patch: dict) -> None:
    """Business rules that are not captured by SQLAlchemy metadata alone."""
    if "price_cents" in patch and patch["price_cents"] is not None:
        price = patch["price_cents"]
        if price < 0:
            raise ValidationError("price_cents must be >= 0")
        if price > MAX_PRICE_CENTS:
            raise ValidationError(f"price_cents cannot exceed {MAX_PRICE_CENTS} (${MAX_PRICE_CENTS / 100:,.2f})")

    if "stock_quantity" in patch and patch["stock_quantity"] is not None:
        if patch["stock_quantity"] < 0:
            raise ValidationError("stock_quantity must be >= 0")
        if patch["stock_quantity"] > MAX_QUANTITY:
            raise ValidationError(f"stock_quantity cannot exceed {MAX_QUANTITY}")


# =============================================================================
# Request structs
# =============================================================================


@dataclass(frozen=True)
class OrderLineRequest:
    product_id: int
    quantity: int
    unit_price_cents: int

    @classmethod
    def from_payload(cls, raw: Any, index: int) -> "OrderLineRequest":
        where = f"items[{index}]"
        if not isinstance(raw, dict):
            raise ValidationError(f"{where} must be an object")

        unknown = set(raw) - {"product_id", "quantity", "unit_price_cents"}
        if unknown:
            raise ValidationError(f"{where}: field not allowed: {', '.join(sorted(unknown))}")

        for key in ("product_id", "quantity", "unit_price_cents"):
            if raw.get(key) is None:
                raise ValidationError(f"{where}.{key} is required")

        product_id = _coerce_int(f"{where}.product_id", raw["product_id"])
        quantity = _coerce_int(f"{where}.quantity", raw["quantity"])
        unit_price_cents = _coerce_int(f"{where}.unit_price_cents", raw["unit_price_cents"])

        if product_id <= 0:
            raise ValidationError(f"{where}.product_id must be > 0")
        if quantity <= 0:
            raise ValidationError(f"{where}.quantity must be > 0")
        if quantity > MAX_QUANTITY:
            raise ValidationError(f"{where}.quantity cannot exceed {MAX_QUANTITY}")
        if unit_price_cents < 0 or unit_price_cents > MAX_PRICE_CENTS:
            raise ValidationError(f"{where}.unit_price_cents out of range")

        return cls(product_id=product_id, quantity=quantity, unit_price_cents=unit_price_cents)


@dataclass(frozen=True)
class PlaceOrderRequest:
    """Checkout request: one or more lines, possibly spanning distributors."""
    items: tuple[OrderLineRequest, ...]

    @classmethod
    def from_payload(cls, payload: Any) -> "PlaceOrderRequest":
        if not isinstance(payload, dict):
            raise ValidationError("Invalid JSON payload")

        items = payload.get("items")
        if not isinstance(items, list) or not items:
            raise ValidationError("items must be a non-empty list")
        if len(items) > MAX_CHECKOUT_LINES:
            raise ValidationError(f"items cannot exceed {MAX_CHECKOUT_LINES} lines")

        return cls(items=tuple(OrderLineRequest.from_payload(raw, i) for i, raw in enumerate(items)))


@dataclass(frozen=True)
class UpdateOrderStatusRequest:
    status: str

    @classmethod
    def from_payload(cls, payload: Any) -> "UpdateOrderStatusRequest":
        if not isinstance(payload, dict):
            raise ValidationError("Invalid JSON payload")

        status = payload.get("status")
        if not isinstance(status, str) or not status.strip():
            raise ValidationError("status is required")

        status = status.strip().upper()
        if status not in ORDER_STATUSES:
            raise ValidationError(f"status must be one of: {', '.join(ORDER_STATUSES)}")

        return cls(status=status)


@dataclass(frozen=True)
class OutletStatusRequest:
    """Operator toggle. PENDING is only left via activation, never set directly."""
    status: str

    @classmethod
    def from_payload(cls, payload: Any) -> "OutletStatusRequest":
        if not isinstance(payload, dict):
            raise ValidationError("Invalid JSON payload")

        status = payload.get("status")
        if status not in ("ACTIVE", "INACTIVE"):
            raise ValidationError("status must be ACTIVE or INACTIVE")

        return cls(status=status)
