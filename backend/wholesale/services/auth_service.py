# Overview: Service-layer operations for auth; encapsulates business logic and database work.

"""
Authentication Service

Uses bcrypt for password hashing and validates password strength.

An OUTLET identity can only authenticate while its outlet is ACTIVE; the same
rule is re-applied on every request by the account-status gate.
"""

import re
import secrets
import string

import bcrypt
from flask import current_app

from ..extensions import db
from ..models import User, ROLES, ROLE_OUTLET
from ..validation import ConflictError, ValidationError
from wholesale.time_utils import utcnow
from .account_status_service import require_outlet_active


GENERATED_PASSWORD_LENGTH = 16


class PasswordValidationError(Exception):
    """Raised when password doesn't meet strength requirements."""
    pass


def validate_password_strength(password: str) -> None:
    """
    Validate password meets strength requirements.

    Requirements:
    - Minimum 8 characters
    - At least one letter
    - At least one digit

    Raises PasswordValidationError if requirements not met.
    """
    if len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if not re.search(r'[A-Za-z]', password):
        raise PasswordValidationError("Password must contain at least one letter")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt (cost factor from BCRYPT_ROUNDS, 12 by default).

    Password is validated for strength before hashing.
    """
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=current_app.config.get("BCRYPT_ROUNDS", 12))
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    Returns True if password matches hash, False otherwise.
    """
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        # Malformed hash
        return False


def generate_password() -> str:
    """One-time password for provisioned identities; always passes the strength rules."""
    alphabet = string.ascii_letters + string.digits
    while True:
        candidate = "".join(secrets.choice(alphabet) for _ in range(GENERATED_PASSWORD_LENGTH))
        if re.search(r'[A-Za-z]', candidate) and re.search(r'\d', candidate):
            return candidate


def normalize_email(email: str | None) -> str:
    if not isinstance(email, str) or not email.strip():
        raise ValidationError("email is required")
    email = email.strip().lower()
    if "@" not in email or len(email) > 255:
        raise ValidationError("email is invalid")
    return email


def create_user(
    email: str,
    password: str,
    role: str,
    outlet_id: int | None = None,
    display_name: str | None = None,
    *,
    commit: bool = True,
) -> User:
    """
    Create a login identity with bcrypt password hashing.

    OUTLET identities must reference an outlet; other roles must not.
    Raises ConflictError if the email is taken.
    """
    email = normalize_email(email)

    if role not in ROLES:
        raise ValidationError(f"role must be one of: {', '.join(ROLES)}")
    if role == ROLE_OUTLET and outlet_id is None:
        raise ValidationError("outlet_id is required for OUTLET identities")
    if role != ROLE_OUTLET and outlet_id is not None:
        raise ValidationError("outlet_id is only allowed for OUTLET identities")

    if db.session.query(User).filter_by(email=email).first():
        raise ConflictError("A user with this email already exists")

    user = User(
        email=email,
        password_hash=hash_password(password),
        role=role,
        outlet_id=outlet_id,
        display_name=display_name,
        is_active=True,
    )
    db.session.add(user)
    if commit:
        db.session.commit()
    return user


def authenticate(email: str, password: str) -> User | None:
    """
    Authenticate by email and password.

    Returns the User on success, None on bad credentials.
    Raises AccountDeactivatedError for an OUTLET identity whose outlet is not
    ACTIVE (checked after the password so status is not revealed to guessers).
    """
    if not email or not password:
        return None

    user = db.session.query(User).filter_by(email=email.strip().lower()).first()
    if not user or not user.is_active:
        return None

    if not verify_password(password, user.password_hash):
        return None

    if user.role == ROLE_OUTLET:
        require_outlet_active(user.outlet_id)

    user.last_login_at = utcnow()
    db.session.commit()
    return user


def change_password(user: User, current_password: str, new_password: str) -> None:
    """Change own password. Raises ValidationError / PasswordValidationError."""
    if not verify_password(current_password or "", user.password_hash):
        raise ValidationError("Current password is incorrect")

    user.password_hash = hash_password(new_password)
    db.session.commit()
