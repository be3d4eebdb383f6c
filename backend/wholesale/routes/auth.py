# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/wholesale/routes/auth.py
"""
Authentication API routes

- Session management with opaque bearer tokens
- Outlet logins are refused while the outlet is not ACTIVE
- Failed and denied logins are recorded as security events
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import require_auth, terminate_outlet_sessions
from ..errors import AccountDeactivatedError
from ..models import ROLE_OUTLET
from ..services import auth_service, security_service, session_service
from ..services.account_status_service import require_outlet_active
from ..services.auth_service import PasswordValidationError
from ..validation import ValidationError


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/login")
def login_route():
    """
    Authenticate and create a session token.

    Token must be sent as "Authorization: Bearer <token>" on protected routes.
    """
    try:
        data = request.get_json(silent=True) or {}
        email = data.get("email")
        password = data.get("password")

        if not all([email, password]):
            return jsonify({"error": "email and password required"}), 400

        user_agent = request.headers.get("User-Agent")
        ip_address = request.remote_addr

        try:
            user = auth_service.authenticate(email, password)
        except AccountDeactivatedError as e:
            security_service.log_security_event(
                user_id=None,
                outlet_id=e.details.get("outlet_id"),
                event_type="LOGIN_DENIED_ACCOUNT_STATUS",
                success=False,
                resource=request.path,
                action=request.method,
                reason=f"{email}: outlet status {e.account_status}",
                ip_address=ip_address,
                user_agent=user_agent,
            )
            return jsonify(e.to_dict()), e.http_status

        if not user:
            security_service.log_security_event(
                user_id=None,
                event_type="LOGIN_FAILED",
                success=False,
                resource=request.path,
                action=request.method,
                reason=f"Invalid credentials for {email}",
                ip_address=ip_address,
                user_agent=user_agent,
            )
            return jsonify({"error": "Invalid credentials"}), 401

        session, token = session_service.create_session(
            user_id=user.id,
            user_agent=user_agent,
            ip_address=ip_address
        )

        return jsonify({
            "user": user.to_dict(),
            "token": token,
            "session": session.to_dict(),
            "message": "Login successful"
        }), 200

    except Exception:
        current_app.logger.exception("Failed to login user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/logout")
def logout_route():
    """Revoke the presented session token."""
    try:
        auth_header = request.headers.get("Authorization")
        if not auth_header or not auth_header.startswith("Bearer "):
            return jsonify({"error": "Authorization header required"}), 401

        token = auth_header.split(" ", 1)[1]

        if not session_service.revoke_session(token, reason="User logout"):
            return jsonify({"error": "Invalid or expired token"}), 401

        return jsonify({"message": "Logout successful"}), 200

    except Exception:
        current_app.logger.exception("Failed to logout user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/validate")
@require_auth
def validate_route():
    """
    Validate the session token and return the caller.

    OUTLET identities pass the account-status gate here too: a deactivated
    outlet gets 403 and loses every session instead of "Session valid".
    """
    user = g.current_user
    body = {
        "user": user.to_dict(),
        "session": g.session_context.session.to_dict(),
        "message": "Session valid",
    }
    if user.role == ROLE_OUTLET:
        try:
            outlet = require_outlet_active(user.outlet_id)
        except AccountDeactivatedError as e:
            return terminate_outlet_sessions(user, e)
        body["account_status"] = outlet.status
    return jsonify(body), 200


@auth_bp.post("/change-password")
@require_auth
def change_password_route():
    """Body: current_password, new_password. Other sessions are revoked on success."""
    user = g.current_user
    try:
        if user.role == ROLE_OUTLET:
            require_outlet_active(user.outlet_id)

        data = request.get_json(silent=True) or {}
        auth_service.change_password(user, data.get("current_password"), data.get("new_password") or "")

        current = g.session_context.session
        revoked = 0
        for other in user.sessions:
            if other.id != current.id and not other.is_revoked:
                session_service.revoke_session_record(other, reason="Password changed")
                revoked += 1
        current_app.logger.info("User %s changed password; %s other session(s) revoked", user.id, revoked)

        return jsonify({"message": "Password changed successfully"}), 200

    except AccountDeactivatedError as e:
        return terminate_outlet_sessions(user, e)
    except (ValidationError, PasswordValidationError) as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to change password")
        return jsonify({"error": "Internal server error"}), 500
