# Overview: Request authentication, role and account-status decorators for API routes.

from functools import wraps
from flask import request, jsonify, g, current_app

from .errors import AccountDeactivatedError, UnauthorizedError
from .services import session_service, security_service
from .services.account_status_service import require_active_outlet_user


def _is_authenticated() -> bool:
    return hasattr(g, 'current_user')


def _bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1]


def _unauthorized(message: str, status: int, **extra):
    body = {"error": message, "code": "UNAUTHORIZED"}
    body.update(extra)
    return jsonify(body), status


def require_auth(f):
    """
    Require a valid session token.

    Sets the following Flask g attributes:
    - g.current_user: The authenticated User object
    - g.session_context: The full SessionContext object

    Establishes identity only. Role and outlet status are checked by the
    decorators below, against live rows, on every request.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = _bearer_token()
        if not token:
            return _unauthorized("Authentication required", 401)

        context = session_service.validate_session(token)
        if not context:
            return _unauthorized("Invalid or expired token", 401)

        g.current_user = context.user
        g.session_context = context

        return f(*args, **kwargs)

    return decorated_function


def require_role(*roles: str):
    """Require the authenticated user to hold one of the given roles."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return _unauthorized("Authentication required", 401)

            user = g.current_user
            if user.role not in roles:
                security_service.log_security_event(
                    user_id=user.id,
                    event_type="ROLE_DENIED",
                    success=False,
                    resource=request.path,
                    action=request.method,
                    reason=f"Role {user.role} not in: {', '.join(roles)}",
                    ip_address=request.remote_addr,
                    user_agent=request.headers.get("User-Agent"),
                )
                return _unauthorized("Unauthorized", 403, required_roles=list(roles))

            return f(*args, **kwargs)

        return decorated_function
    return decorator


def require_active_outlet(f):
    """
    Account-status gate for outlet-facing routes.

    Requires an OUTLET identity whose outlet is ACTIVE right now. On failure
    every session of the caller is revoked, so a deactivated account cannot
    silently retry with the same token.

    Sets g.outlet on success.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not _is_authenticated():
            return _unauthorized("Authentication required", 401)

        user = g.current_user
        try:
            g.outlet = require_active_outlet_user(user)
        except UnauthorizedError as e:
            return jsonify(e.to_dict()), e.http_status
        except AccountDeactivatedError as e:
            return terminate_outlet_sessions(user, e)

        return f(*args, **kwargs)

    return decorated_function


def terminate_outlet_sessions(user, error: AccountDeactivatedError):
    """
    Revoke every session of a denied outlet identity and build the 403 response.

    Shared by the gate and the auth routes that check outlet status inline.
    """
    revoked = session_service.revoke_all_user_sessions(
        user.id, reason=f"Outlet account {error.account_status or 'missing'}"
    )
    security_service.log_security_event(
        user_id=user.id,
        outlet_id=user.outlet_id,
        event_type="ACCOUNT_DEACTIVATED",
        success=False,
        resource=request.path,
        action=request.method,
        reason=f"Outlet status {error.account_status}; {revoked} session(s) revoked",
        ip_address=request.remote_addr,
        user_agent=request.headers.get("User-Agent"),
    )
    current_app.logger.warning(
        "Outlet gate denied user %s (outlet %s, status %s)",
        user.id, user.outlet_id, error.account_status,
    )
    body = error.to_dict()
    body["session_terminated"] = True
    return jsonify(body), error.http_status
