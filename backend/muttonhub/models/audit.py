from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


class AuditLog(db.Model):
    """
    Append-only record of transaction mutations.

    WHY: Settlements change money owed; the before/after snapshot shows who
    changed what. Writes are best-effort and never block the mutation.
    """
    __tablename__ = "audit_logs"
    __table_args__ = (
        db.Index("ix_audit_logs_created_at", "created_at"),
        db.Index("ix_audit_logs_action_table", "action", "table_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    action = db.Column(db.String(16), nullable=False)  # CREATE, UPDATE, DELETE
    table_name = db.Column(db.String(64), nullable=False)
    old_values = db.Column(db.JSON, nullable=True)
    new_values = db.Column(db.JSON, nullable=True)
    user_id = db.Column(db.String(36), nullable=True, index=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    # user_id is not a hard FK: entries outlive role assignments
    role_assignment = db.relationship(
        "UserRole",
        primaryjoin="foreign(AuditLog.user_id) == UserRole.user_id",
        uselist=False,
        viewonly=True,
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "action": self.action,
            "table_name": self.table_name,
            "old_values": self.old_values,
            "new_values": self.new_values,
            "user_id": self.user_id,
            "created_at": to_utc_z(self.created_at),
        }
