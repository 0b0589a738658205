from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class Store(db.Model):
    """
    A retail outlet of the chain.

    Stores are read-only for the ledger and attendance workflows; every
    ledger row and attendance record belongs to exactly one store.
    """
    __tablename__ = "stores"
    __table_args__ = (
        db.UniqueConstraint("brand", "name", "city", name="uq_stores_brand_name_city"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    brand = db.Column(db.String(120), nullable=False, default="")
    name = db.Column(db.String(120), nullable=False)
    city = db.Column(db.String(120), nullable=False, default="")

    # Optional owning OWNER account (users.id; no FK since users reference stores)
    owner_id = db.Column(db.Integer, nullable=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<Store id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "brand": self.brand,
            "name": self.name,
            "city": self.city,
            "owner_id": self.owner_id,
            "created_at": to_utc_z(self.created_at),
        }
