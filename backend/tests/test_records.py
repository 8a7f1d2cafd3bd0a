"""
Domain record tests: gateway rows with missing or null fields.
"""

from datetime import date, datetime
from decimal import Decimal

from muttonhub.records import (
    AuditLogEntry,
    BuyerTransaction,
    Party,
    SellerTransaction,
    UserRoleAssignment,
)


class TestTransactionRecords:

    def test_buyer_row_with_embedded_party(self):
        txn = BuyerTransaction.from_row({
            "id": 7,
            "buyer_id": 3,
            "entry_date": "2024-03-01",
            "number_of_goats": "12",
            "total_amount": 10000,
            "paid_amount": 4000,
            "remaining_balance": 6000,
            "payment_mode": "upi",
            "created_at": "2024-03-01T09:30:00Z",
            "buyers": {"name": "Ramesh", "phone": "98765"},
        })
        assert txn.entry_date == date(2024, 3, 1)
        assert txn.number_of_goats == 12
        assert txn.remaining_balance == Decimal("6000.00")
        assert txn.status == "Pending"
        assert txn.party.name == "Ramesh"

        data = txn.to_dict()
        assert data["buyer"] == {"name": "Ramesh", "phone": "98765"}
        assert data["created_at"] == "2024-03-01T09:30:00Z"
        assert data["total_amount"] == 10000.0

    def test_missing_fields_default_to_zero_amounts(self):
        txn = BuyerTransaction.from_row({"id": 1})
        assert txn.total_amount == Decimal("0.00")
        assert txn.paid_amount == Decimal("0.00")
        assert txn.party is None
        assert txn.entry_date is None
        assert txn.status == "Paid"
        assert txn.to_dict()["buyer"] is None

    def test_seller_row_keeps_weight_precision(self):
        txn = SellerTransaction.from_row({
            "id": 2,
            "seller_id": 5,
            "entry_date": "2024-03-02",
            "total_weight": "12.345",
            "price_per_kg": "640",
            "total_amount": "7900.80",
            "paid_amount": "7900.80",
            "remaining_balance": "0",
            "sellers": {"name": "City Meat", "phone": "91234"},
        })
        assert txn.total_weight == Decimal("12.345")
        assert txn.price_per_kg == Decimal("640.00")
        assert txn.status == "Paid"
        assert txn.to_dict()["seller"]["name"] == "City Meat"

    def test_seller_row_without_weight(self):
        txn = SellerTransaction.from_row({"id": 2, "total_amount": 10})
        assert txn.total_weight is None
        assert txn.to_dict()["total_weight"] is None


class TestPartyRecord:

    def test_offset_timestamp_is_normalized_to_utc(self):
        party = Party.from_row({
            "id": 1,
            "name": "Ramesh",
            "phone": "98765",
            "created_at": "2024-03-01T15:00:00+05:30",
        })
        assert party.created_at == datetime(2024, 3, 1, 9, 30)
        assert party.address is None


class TestAuditAndRoleRecords:

    def test_audit_entry_reads_embedded_role(self):
        entry = AuditLogEntry.from_row({
            "id": 9,
            "action": "UPDATE",
            "table_name": "buyer_transactions",
            "old_values": {"paid_amount": 4000},
            "new_values": {"paid_amount": 10000},
            "user_id": "u-1",
            "created_at": "2024-03-01T10:00:00Z",
            "user_roles": {"role": "admin"},
        })
        assert entry.user_role == "admin"
        assert entry.to_dict()["user_role"] == "admin"

    def test_audit_entry_without_role(self):
        entry = AuditLogEntry.from_row({"id": 9, "action": "CREATE", "table_name": "t", "user_roles": None})
        assert entry.user_role is None
        assert entry.created_at is None

    def test_role_assignment_reads_embedded_user(self):
        assignment = UserRoleAssignment.from_row({
            "user_id": "u-1",
            "role": "owner",
            "created_at": "2024-01-01T00:00:00Z",
            "users": {"email": "owner@example.com", "created_at": "2024-01-01T00:00:00Z", "last_sign_in_at": None},
        })
        assert assignment.email == "owner@example.com"
        assert assignment.last_sign_in_at is None
        assert assignment.to_dict()["user_created_at"] == "2024-01-01T00:00:00Z"
