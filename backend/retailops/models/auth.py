from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class User(db.Model):
    """
    A person with a back-office login (the stored user profile).

    Users are never deleted, only deactivated. `permissions` holds the
    per-user capability record; keys missing from it fall back to the
    role defaults at check time.
    """
    __tablename__ = "users"
    __table_args__ = (
        db.Index("ix_users_role_active", "role", "is_active"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)
    name = db.Column(db.String(120), nullable=False)
    phone = db.Column(db.String(32), nullable=True)

    # SUPER_ADMIN, ADMIN, OWNER, MANAGER, STAFF
    role = db.Column(db.String(16), nullable=False, default="STAFF", index=True)

    # Legacy single-store assignment; folded into the membership set
    assigned_store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=True, index=True)

    permissions = db.Column(db.JSON, nullable=False, default=dict)

    password_hash = db.Column(db.String(255), nullable=False)

    is_active = db.Column(db.Boolean, nullable=False, default=True)
    activated_at = db.Column(db.DateTime(timezone=True), nullable=True)
    activated_by = db.Column(db.String(255), nullable=True)
    deactivated_at = db.Column(db.DateTime(timezone=True), nullable=True)
    deactivated_by = db.Column(db.String(255), nullable=True)
    deactivation_reason = db.Column(db.Text, nullable=True)

    created_by = db.Column(db.String(255), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    last_login_at = db.Column(db.DateTime(timezone=True), nullable=True)

    assigned_store = db.relationship("Store", foreign_keys=[assigned_store_id])

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "phone": self.phone,
            "role": self.role,
            "assigned_store_id": self.assigned_store_id,
            "stores": {str(a.store_id): bool(a.is_member) for a in self.store_access},
            "permissions": dict(self.permissions or {}),
            "is_active": self.is_active,
            "activated_at": to_utc_z(self.activated_at) if self.activated_at else None,
            "activated_by": self.activated_by,
            "deactivated_at": to_utc_z(self.deactivated_at) if self.deactivated_at else None,
            "deactivated_by": self.deactivated_by,
            "deactivation_reason": self.deactivation_reason,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
            "last_login_at": to_utc_z(self.last_login_at) if self.last_login_at else None,
        }


class UserStoreAccess(db.Model):
    """
    One entry of a user's store-membership mapping (store -> bool).

    A row with is_member=False is kept rather than deleted so that an
    explicit revocation stays visible in the profile.
    """
    __tablename__ = "user_store_access"
    __table_args__ = (
        db.UniqueConstraint("user_id", "store_id", name="uq_user_store_access"),
        db.Index("ix_user_store_access_user", "user_id"),
        db.Index("ix_user_store_access_store", "store_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False)
    is_member = db.Column(db.Boolean, nullable=False, default=True)
    granted_by = db.Column(db.String(255), nullable=True)
    granted_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    user = db.relationship("User", backref=db.backref("store_access", lazy=True, cascade="all, delete-orphan"))
    store = db.relationship("Store", backref=db.backref("user_access", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "store_id": self.store_id,
            "is_member": self.is_member,
            "granted_by": self.granted_by,
            "granted_at": to_utc_z(self.granted_at),
        }


class SessionToken(db.Model):
    """
    Bearer session issued at login.

    Tokens are stored hashed (SHA-256); the plaintext is only returned to
    the client once. Sessions expire absolutely and on idle.
    """
    __tablename__ = "session_tokens"
    __table_args__ = (
        db.Index("ix_session_tokens_user_active", "user_id", "is_revoked"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    # Token hash (never store plaintext tokens!)
    token_hash = db.Column(db.String(255), nullable=False, unique=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    last_used_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False, index=True)

    is_revoked = db.Column(db.Boolean, nullable=False, default=False, index=True)
    revoked_at = db.Column(db.DateTime(timezone=True), nullable=True)
    revoked_reason = db.Column(db.String(255), nullable=True)

    user_agent = db.Column(db.String(512), nullable=True)
    ip_address = db.Column(db.String(45), nullable=True)  # IPv6 max length

    user = db.relationship("User", backref=db.backref("session_tokens", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "created_at": to_utc_z(self.created_at),
            "last_used_at": to_utc_z(self.last_used_at),
            "expires_at": to_utc_z(self.expires_at),
            "is_revoked": self.is_revoked,
        }
