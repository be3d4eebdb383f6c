from __future__ import annotations

from ..extensions import db
from wholesale.time_utils import to_utc_z


ROLE_OPERATOR = "OPERATOR"
ROLE_DISTRIBUTOR = "DISTRIBUTOR"
ROLE_OUTLET = "OUTLET"
ROLES = (ROLE_OPERATOR, ROLE_DISTRIBUTOR, ROLE_OUTLET)

OUTLET_PENDING = "PENDING"
OUTLET_ACTIVE = "ACTIVE"
OUTLET_INACTIVE = "INACTIVE"
OUTLET_STATUSES = (OUTLET_PENDING, OUTLET_ACTIVE, OUTLET_INACTIVE)


class Outlet(db.Model):
    """
    Retail buyer organization.

    Lifecycle: PENDING -> ACTIVE only through operator activation (which
    provisions a login identity). ACTIVE <-> INACTIVE may be toggled at any
    time; INACTIVE takes effect on the very next request of any session.
    """
    __tablename__ = "outlets"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False, unique=True)
    status = db.Column(db.String(16), nullable=False, default=OUTLET_PENDING, index=True)

    contact_email = db.Column(db.String(255), nullable=True)
    contact_phone = db.Column(db.String(32), nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Outlet id={self.id} name={self.name!r} status={self.status}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "status": self.status,
            "contact_email": self.contact_email,
            "contact_phone": self.contact_phone,
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class User(db.Model):
    """
    Login identity.

    OUTLET identities reference exactly one Outlet. Effective access for an
    OUTLET identity is "credential valid" AND "outlet.status == ACTIVE", and
    the second half is evaluated on every request, never stored in a token.
    """
    __tablename__ = "users"
    __table_args__ = (
        db.CheckConstraint(
            "(role = 'OUTLET' AND outlet_id IS NOT NULL) OR (role != 'OUTLET' AND outlet_id IS NULL)",
            name="ck_users_outlet_role",
        ),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)

    # Bcrypt hashed password
    password_hash = db.Column(db.String(255), nullable=False)

    role = db.Column(db.String(16), nullable=False, index=True)
    outlet_id = db.Column(db.Integer, db.ForeignKey("outlets.id"), nullable=True, index=True)
    display_name = db.Column(db.String(255), nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    last_login_at = db.Column(db.DateTime(timezone=True), nullable=True)

    outlet = db.relationship("Outlet", backref=db.backref("users", lazy=True))

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email!r} role={self.role}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "role": self.role,
            "outlet_id": self.outlet_id,
            "display_name": self.display_name,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "last_login_at": to_utc_z(self.last_login_at) if self.last_login_at else None,
        }


class SessionToken(db.Model):
    """
    Server-side session record.

    Only the SHA-256 of the bearer token is stored. The record identifies the
    login identity and nothing else: role and outlet status are resolved from
    live rows on each request.
    """
    __tablename__ = "session_tokens"
    __table_args__ = (
        db.Index("ix_session_tokens_user_revoked", "user_id", "is_revoked"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    token_hash = db.Column(db.String(64), nullable=False, unique=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False)
    last_used_at = db.Column(db.DateTime(timezone=True), nullable=False)
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False)

    is_revoked = db.Column(db.Boolean, nullable=False, default=False)
    revoked_at = db.Column(db.DateTime(timezone=True), nullable=True)
    revoked_reason = db.Column(db.String(255), nullable=True)

    user_agent = db.Column(db.String(512), nullable=True)
    ip_address = db.Column(db.String(45), nullable=True)

    user = db.relationship("User", backref=db.backref("sessions", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "created_at": to_utc_z(self.created_at),
            "last_used_at": to_utc_z(self.last_used_at),
            "expires_at": to_utc_z(self.expires_at),
            "is_revoked": self.is_revoked,
        }
