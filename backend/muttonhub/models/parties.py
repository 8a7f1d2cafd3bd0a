from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


class _PartyMixin:
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(32), nullable=False, index=True)
    address = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "phone": self.phone,
            "address": self.address,
            "created_at": to_utc_z(self.created_at),
        }


class Buyer(_PartyMixin, db.Model):
    """
    Counterparty we purchase goats from.

    Profiles are append-only from the UI (no edit/delete) and are not audited.
    """
    __tablename__ = "buyers"
    __table_args__ = ({"sqlite_autoincrement": True},)


class Seller(_PartyMixin, db.Model):
    """Counterparty we sell meat to, priced by weight."""
    __tablename__ = "sellers"
    __table_args__ = ({"sqlite_autoincrement": True},)
