# Overview: Flask API routes for distributor operations; parses input and returns JSON responses.

# backend/wholesale/routes/distributor.py
"""Distributor API routes: own catalog, order fulfillment and the outlet directory."""

from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import require_auth, require_role
from ..errors import OrderingError, PersistenceError
from ..models import OUTLET_STATUSES, ROLE_DISTRIBUTOR
from ..services import account_service, catalog_service, order_service
from ..services.account_service import OutletNotFoundError
from ..services.order_status import ORDER_STATUSES
from ..validation import ConflictError, UpdateOrderStatusRequest, ValidationError


distributor_bp = Blueprint("distributor", __name__, url_prefix="/api/distributor")


def _domain_error(e: OrderingError, what: str):
    if isinstance(e, PersistenceError):
        current_app.logger.error("%s: persistence failure", what, exc_info=e)
    return jsonify(e.to_dict()), e.http_status


@distributor_bp.get("/products")
@require_auth
@require_role(ROLE_DISTRIBUTOR)
def list_products_route():
    products = catalog_service.list_distributor_products(g.current_user.id)
    return jsonify({"products": [p.to_dict() for p in products]}), 200


@distributor_bp.post("/products")
@require_auth
@require_role(ROLE_DISTRIBUTOR)
def create_product_route():
    """Body: name, price_cents (required); description, image_url, stock_quantity."""
    try:
        product = catalog_service.create_product(g.current_user.id, request.get_json(silent=True))
        return jsonify({"product": product.to_dict()}), 201

    except ValidationError as e:
        return jsonify({"error": str(e), "code": "VALIDATION_ERROR"}), 400
    except OrderingError as e:
        return _domain_error(e, "Create product")
    except Exception:
        current_app.logger.exception("Failed to create product")
        return jsonify({"error": "Internal server error"}), 500


@distributor_bp.patch("/products/<int:product_id>")
@require_auth
@require_role(ROLE_DISTRIBUTOR)
def update_product_route(product_id: int):
    """Partial update; stock_quantity is a direct set."""
    try:
        product = catalog_service.update_product(
            product_id, g.current_user.id, request.get_json(silent=True)
        )
        return jsonify({"product": product.to_dict()}), 200

    except ValidationError as e:
        return jsonify({"error": str(e), "code": "VALIDATION_ERROR"}), 400
    except OrderingError as e:
        return _domain_error(e, "Update product")
    except Exception:
        current_app.logger.exception("Failed to update product")
        return jsonify({"error": "Internal server error"}), 500


@distributor_bp.delete("/products/<int:product_id>")
@require_auth
@require_role(ROLE_DISTRIBUTOR)
def delete_product_route(product_id: int):
    """Existing orders keep their line snapshots."""
    try:
        catalog_service.delete_product(product_id, g.current_user.id)
        return jsonify({"message": "Product deleted successfully"}), 200

    except OrderingError as e:
        return _domain_error(e, "Delete product")
    except Exception:
        current_app.logger.exception("Failed to delete product")
        return jsonify({"error": "Internal server error"}), 500


@distributor_bp.get("/orders")
@require_auth
@require_role(ROLE_DISTRIBUTOR)
def list_orders_route():
    status = request.args.get("status")
    if status and status not in ORDER_STATUSES:
        return jsonify({
            "error": f"status must be one of: {', '.join(ORDER_STATUSES)}",
            "code": "VALIDATION_ERROR",
        }), 400

    orders = order_service.list_distributor_orders(g.current_user.id, status)
    return jsonify({"orders": [o.to_dict() for o in orders]}), 200


@distributor_bp.get("/outlets")
@require_auth
@require_role(ROLE_DISTRIBUTOR)
def list_outlets_route():
    """Read-only outlet directory with user and order counts."""
    status = request.args.get("status")
    if status and status not in OUTLET_STATUSES:
        return jsonify({
            "error": f"status must be one of: {', '.join(OUTLET_STATUSES)}",
            "code": "VALIDATION_ERROR",
        }), 400

    return jsonify({"outlets": account_service.list_outlet_directory(status)}), 200


@distributor_bp.get("/outlets/<int:outlet_id>")
@require_auth
@require_role(ROLE_DISTRIBUTOR)
def get_outlet_route(outlet_id: int):
    """Outlet details plus the caller's own orders from that outlet."""
    try:
        return jsonify(account_service.get_outlet_for_distributor(outlet_id, g.current_user.id)), 200
    except OutletNotFoundError as e:
        return jsonify({"error": str(e)}), 404


@distributor_bp.post("/outlets")
@require_auth
@require_role(ROLE_DISTRIBUTOR)
def create_outlet_route():
    """
    Body: name (required); contact_email, contact_phone.

    The outlet starts PENDING; an operator provisions its login on activation.
    """
    try:
        outlet = account_service.create_outlet(request.get_json(silent=True))
        current_app.logger.info("Distributor %s added outlet %s", g.current_user.id, outlet.id)
        return jsonify({
            "message": "Outlet added and pending operator approval",
            "outlet": outlet.to_dict(),
        }), 201

    except ValidationError as e:
        return jsonify({"error": str(e), "code": "VALIDATION_ERROR"}), 400
    except ConflictError as e:
        return jsonify({"error": str(e), "code": "CONFLICT"}), 409
    except Exception:
        current_app.logger.exception("Failed to add outlet")
        return jsonify({"error": "Internal server error"}), 500


@distributor_bp.patch("/orders/<int:order_id>")
@require_auth
@require_role(ROLE_DISTRIBUTOR)
def update_order_status_route(order_id: int):
    """
    Body: {"status": "SHIPPED" | "COMPLETED" | "CANCELLED"}

    Only the owning distributor may move an order; terminal orders never move.
    """
    try:
        status_request = UpdateOrderStatusRequest.from_payload(request.get_json(silent=True))
        order = order_service.update_order_status(order_id, g.current_user.id, status_request.status)
        return jsonify({"order": order.to_dict()}), 200

    except ValidationError as e:
        return jsonify({"error": str(e), "code": "VALIDATION_ERROR"}), 400
    except OrderingError as e:
        return _domain_error(e, "Update order status")
    except Exception:
        current_app.logger.exception("Failed to update order status")
        return jsonify({"error": "Internal server error"}), 500
