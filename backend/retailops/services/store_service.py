from __future__ import annotations

from ..extensions import db
from ..models import Store, User
from . import access_service


class StoreError(ValueError):
    """Raised when store operations fail."""
    pass


def create_store(name: str, brand: str | None = None, city: str | None = None, owner_id: int | None = None) -> Store:
    name = (name or "").strip()
    brand = (brand or "").strip()
    city = (city or "").strip()
    if not name:
        raise StoreError("Store name is required")

    if owner_id is not None:
        owner = db.session.get(User, owner_id)
        if not owner:
            raise StoreError("Owner not found")
        if owner.role != "OWNER":
            raise StoreError("Store owner must have the OWNER role")

    duplicate = db.session.query(Store).filter_by(brand=brand, name=name, city=city).first()
    if duplicate:
        raise StoreError("A store with this brand, name and city already exists")

    store = Store(brand=brand, name=name, city=city, owner_id=owner_id)
    db.session.add(store)
    db.session.commit()
    return store


def get_store(store_id: int) -> Store | None:
    return db.session.get(Store, store_id)


def list_stores() -> list[Store]:
    return db.session.query(Store).order_by(Store.brand.asc(), Store.name.asc()).all()


def list_stores_for_profile(profile) -> list[Store]:
    """Stores the profile may see; an empty allowed set means all stores."""
    query = db.session.query(Store)
    query = access_service.filter_store_query(query, Store.id, profile)
    return query.order_by(Store.brand.asc(), Store.name.asc()).all()
