from __future__ import annotations

from ..extensions import db
from ..time_utils import to_iso_date, to_utc_z, utcnow


def _number(value):
    return float(value) if value is not None else None


class BuyerTransaction(db.Model):
    """
    Purchase of goats from a buyer.

    INVARIANT: remaining_balance = total_amount - paid_amount after every write.
    Settlement updates are conditional on the paid_amount that was read.
    """
    __tablename__ = "buyer_transactions"
    __table_args__ = (
        db.Index("ix_buyer_transactions_entry_date", "entry_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    buyer_id = db.Column(db.Integer, db.ForeignKey("buyers.id"), nullable=False, index=True)
    entry_date = db.Column(db.Date, nullable=False)
    number_of_goats = db.Column(db.Integer, nullable=False, default=0)

    total_amount = db.Column(db.Numeric(14, 2), nullable=False)
    paid_amount = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    remaining_balance = db.Column(db.Numeric(14, 2), nullable=False)
    payment_mode = db.Column(db.String(32), nullable=False, default="cash")

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    buyer = db.relationship("Buyer", backref=db.backref("transactions", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "buyer_id": self.buyer_id,
            "entry_date": to_iso_date(self.entry_date),
            "number_of_goats": self.number_of_goats,
            "total_amount": _number(self.total_amount),
            "paid_amount": _number(self.paid_amount),
            "remaining_balance": _number(self.remaining_balance),
            "payment_mode": self.payment_mode,
            "created_at": to_utc_z(self.created_at),
        }


class SellerTransaction(db.Model):
    """
    Sale of meat by weight to a seller.

    INVARIANT: total_amount = total_weight * price_per_kg, fixed at creation.
    """
    __tablename__ = "seller_transactions"
    __table_args__ = (
        db.Index("ix_seller_transactions_entry_date", "entry_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    seller_id = db.Column(db.Integer, db.ForeignKey("sellers.id"), nullable=False, index=True)
    entry_date = db.Column(db.Date, nullable=False)
    total_weight = db.Column(db.Numeric(14, 3), nullable=False)
    price_per_kg = db.Column(db.Numeric(14, 2), nullable=False)

    total_amount = db.Column(db.Numeric(14, 2), nullable=False)
    paid_amount = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    remaining_balance = db.Column(db.Numeric(14, 2), nullable=False)
    payment_mode = db.Column(db.String(32), nullable=False, default="cash")

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    seller = db.relationship("Seller", backref=db.backref("transactions", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "seller_id": self.seller_id,
            "entry_date": to_iso_date(self.entry_date),
            "total_weight": _number(self.total_weight),
            "price_per_kg": _number(self.price_per_kg),
            "total_amount": _number(self.total_amount),
            "paid_amount": _number(self.paid_amount),
            "remaining_balance": _number(self.remaining_balance),
            "payment_mode": self.payment_mode,
            "created_at": to_utc_z(self.created_at),
        }
