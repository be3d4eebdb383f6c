# Overview: Flask API routes for operator outlet administration.

# backend/wholesale/routes/admin.py
"""Operator-only outlet administration."""

from flask import Blueprint, request, jsonify, current_app

from ..decorators import require_auth, require_role
from ..errors import OrderingError
from ..models import ROLE_OPERATOR, OUTLET_STATUSES
from ..services import account_service
from ..services.account_service import OutletNotFoundError
from ..validation import ConflictError, OutletStatusRequest, ValidationError


admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")


@admin_bp.get("/outlets")
@require_auth
@require_role(ROLE_OPERATOR)
def list_outlets_route():
    status = request.args.get("status")
    if status and status not in OUTLET_STATUSES:
        return jsonify({"error": f"status must be one of: {', '.join(OUTLET_STATUSES)}"}), 400

    outlets = account_service.list_outlets(status)
    return jsonify({"outlets": [o.to_dict() for o in outlets]}), 200


@admin_bp.post("/outlets")
@require_auth
@require_role(ROLE_OPERATOR)
def create_outlet_route():
    """Create an outlet in PENDING status. Body: name, contact_email, contact_phone."""
    try:
        outlet = account_service.create_outlet(request.get_json(silent=True))
        return jsonify({"outlet": outlet.to_dict()}), 201

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to create outlet")
        return jsonify({"error": "Internal server error"}), 500


@admin_bp.post("/outlets/<int:outlet_id>/activate")
@require_auth
@require_role(ROLE_OPERATOR)
def activate_outlet_route(outlet_id: int):
    """
    Provision an OUTLET login and set the outlet ACTIVE.

    The generated password is returned once in this response.
    """
    try:
        data = request.get_json(silent=True) or {}
        outlet, user, password = account_service.activate_outlet(outlet_id, data.get("email"))
        return jsonify({
            "message": "Outlet activated successfully",
            "outlet": outlet.to_dict(),
            "credentials": {"email": user.email, "password": password},
        }), 200

    except OutletNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except OrderingError as e:
        current_app.logger.error("Outlet activation failed", exc_info=e)
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to activate outlet")
        return jsonify({"error": "Internal server error"}), 500


@admin_bp.patch("/outlets/<int:outlet_id>")
@require_auth
@require_role(ROLE_OPERATOR)
def set_outlet_status_route(outlet_id: int):
    """Body: {"status": "ACTIVE" | "INACTIVE"}. Takes effect on the outlet's next request."""
    try:
        status_request = OutletStatusRequest.from_payload(request.get_json(silent=True))
        outlet = account_service.set_outlet_status(outlet_id, status_request.status)
        return jsonify({"outlet": outlet.to_dict()}), 200

    except OutletNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except OrderingError as e:
        current_app.logger.error("Outlet status update failed", exc_info=e)
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to update outlet status")
        return jsonify({"error": "Internal server error"}), 500
