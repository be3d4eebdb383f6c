# Overview: Flask API routes for outlet (retail buyer) operations; every route passes the account-status gate.

# backend/wholesale/routes/outlet.py
"""Outlet API routes: catalog browsing, checkout, order history, account."""

from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import require_auth, require_active_outlet
from ..errors import OrderingError, PersistenceError
from ..services import account_service, catalog_service, order_service
from ..services.account_status_service import check_account_status
from ..validation import PlaceOrderRequest, ValidationError


outlet_bp = Blueprint("outlet", __name__, url_prefix="/api/outlet")


@outlet_bp.get("/account/status")
@require_auth
@require_active_outlet
def account_status_route():
    """
    Current outlet account status.

    Reaching this handler already implies ACTIVE; a PENDING or INACTIVE
    account is answered by the gate with 403 ACCOUNT_DEACTIVATED.
    """
    return jsonify(check_account_status(g.outlet.id)), 200


@outlet_bp.get("/account")
@require_auth
@require_active_outlet
def account_summary_route():
    summary = account_service.get_account_summary(g.outlet.id)
    summary["user"] = g.current_user.to_dict()
    return jsonify(summary), 200


@outlet_bp.get("/products")
@require_auth
@require_active_outlet
def list_products_route():
    """Catalog of in-stock products from all distributors."""
    products = catalog_service.list_catalog()
    return jsonify({"products": [p.to_dict() for p in products]}), 200


@outlet_bp.post("/orders")
@require_auth
@require_active_outlet
def place_order_route():
    """
    Checkout. Body: {"items": [{"product_id", "quantity", "unit_price_cents"}]}

    Returns 201 with one order per distributor. On any error nothing is
    persisted and the client must re-fetch the catalog before resubmitting.
    """
    try:
        order_request = PlaceOrderRequest.from_payload(request.get_json(silent=True))
        orders = order_service.place_order(g.outlet.id, order_request)
        return jsonify({"orders": [o.to_dict() for o in orders]}), 201

    except ValidationError as e:
        return jsonify({"error": str(e), "code": "VALIDATION_ERROR"}), 400
    except PersistenceError as e:
        current_app.logger.error("Checkout persistence failure for outlet %s", g.outlet.id, exc_info=e)
        return jsonify(e.to_dict()), e.http_status
    except OrderingError as e:
        current_app.logger.info("Checkout rejected for outlet %s: %s %s", g.outlet.id, e.code, e.details)
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to place order")
        return jsonify({"error": "Internal server error"}), 500


@outlet_bp.get("/orders")
@require_auth
@require_active_outlet
def list_orders_route():
    orders = order_service.list_outlet_orders(g.outlet.id)
    return jsonify({"orders": [o.to_dict() for o in orders]}), 200


@outlet_bp.get("/orders/<int:order_id>")
@require_auth
@require_active_outlet
def get_order_route(order_id: int):
    try:
        order = order_service.get_order(order_id, outlet_id=g.outlet.id)
        return jsonify({"order": order.to_dict()}), 200
    except OrderingError as e:
        return jsonify(e.to_dict()), e.http_status
