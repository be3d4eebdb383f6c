# Overview: Append-only security event logging.

from ..extensions import db
from ..models import SecurityEvent


def log_security_event(
    user_id: int | None,
    event_type: str,
    success: bool,
    resource: str | None = None,
    action: str | None = None,
    reason: str | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
    outlet_id: int | None = None,
    *,
    commit: bool = True,
) -> SecurityEvent:
    """
    Log security event to audit trail.

    event_type examples:
    - LOGIN_FAILED
    - LOGIN_DENIED_ACCOUNT_STATUS
    - ROLE_DENIED
    - ACCOUNT_DEACTIVATED
    - LOGOUT
    """
    event = SecurityEvent(
        user_id=user_id,
        outlet_id=outlet_id,
        event_type=event_type,
        resource=resource,
        action=action,
        success=success,
        reason=reason,
        ip_address=ip_address,
        user_agent=user_agent,
    )
    db.session.add(event)
    if commit:
        db.session.commit()
    return event
