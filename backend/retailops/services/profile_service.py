# Overview: Loads user profiles into immutable snapshots consumed by the access resolver.

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from ..extensions import db
from ..models import Store, User
from ..permissions import Role


def _store_id(value: Any):
    """Membership keys arrive as ints from the DB and as strings from JSON."""
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return value


@dataclass(frozen=True)
class UserProfile:
    email: str
    name: str
    role: Role
    stores: Mapping[Any, bool] = field(default_factory=dict)
    assigned_store: Any = None
    is_active: bool = True
    permissions: Mapping[str, bool] = field(default_factory=dict)
    owned_stores: frozenset = frozenset()
    user_id: int | None = None

    @classmethod
    def from_user(cls, user: User, owned_store_ids=()) -> "UserProfile":
        return cls(
            email=user.email,
            name=user.name,
            role=Role.parse(user.role),
            stores={a.store_id: bool(a.is_member) for a in user.store_access},
            assigned_store=user.assigned_store_id,
            is_active=bool(user.is_active),
            permissions=dict(user.permissions or {}),
            owned_stores=frozenset(owned_store_ids),
            user_id=user.id,
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "UserProfile":
        """
        Build a profile from a stored profile document.

        Accepts the store mapping either as {store_id: bool} or as a plain
        list of store ids (older profiles), and the legacy single store as
        `assignedStore` or `assigned_store`.
        """
        raw_stores = data.get("stores") or {}
        if isinstance(raw_stores, Mapping):
            stores = {_store_id(k): bool(v) for k, v in raw_stores.items()}
        else:
            stores = {_store_id(k): True for k in raw_stores}

        assigned = data.get("assignedStore", data.get("assigned_store"))
        raw_permissions = data.get("permissions") or {}
        return cls(
            email=str(data.get("email") or "").lower(),
            name=str(data.get("name") or ""),
            role=Role.parse(data.get("role")),
            stores=stores,
            assigned_store=_store_id(assigned) if assigned not in (None, "") else None,
            is_active=bool(data.get("isActive", data.get("is_active", True))),
            permissions={str(k): bool(v) for k, v in raw_permissions.items()},
            user_id=data.get("id"),
        )


def load_profile(user_id: int | None) -> UserProfile | None:
    """Load the profile for a user id; None when the user does not exist."""
    if user_id is None:
        return None
    user = db.session.query(User).filter_by(id=user_id).first()
    if not user:
        return None
    owned = [row[0] for row in db.session.query(Store.id).filter_by(owner_id=user.id).all()]
    return UserProfile.from_user(user, owned_store_ids=owned)


def load_profile_by_email(email: str) -> UserProfile | None:
    user = db.session.query(User).filter_by(email=(email or "").strip().lower()).first()
    return load_profile(user.id) if user else None
