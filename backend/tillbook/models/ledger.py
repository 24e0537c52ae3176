from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow

ENTRY_INCOME = "income"
ENTRY_EXPENSE = "expense"
ENTRY_TYPES = (ENTRY_INCOME, ENTRY_EXPENSE)

SALES_CATEGORY = "Sales"


class LedgerEntry(db.Model):
    """
    Financial ledger record (money in/out), independent of inventory.

    Invariants:
    - Append-only: no updates/deletes from the services layer.
    - A sale's income entry is written in the same DB transaction as the sale.
    - reference_id points back at the originating sale (lookup, not ownership).
    """
    __tablename__ = "ledger_entries"
    __table_args__ = (
        db.CheckConstraint("amount >= 0", name="amount_non_negative"),
        db.Index("ix_ledger_entries_tenant_created", "tenant_id", "created_at"),
        db.Index("ix_ledger_entries_tenant_type", "tenant_id", "entry_type"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey("tenants.id"), nullable=False, index=True)

    entry_type = db.Column(db.String(16), nullable=False)  # income, expense
    amount = db.Column(db.Numeric(14, 2), nullable=False)
    description = db.Column(db.String(255), nullable=False)
    category = db.Column(db.String(64), nullable=True)

    reference_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=True, index=True)
    created_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<LedgerEntry id={self.id} type={self.entry_type} amount={self.amount}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "type": self.entry_type,
            "amount": str(self.amount),
            "description": self.description,
            "category": self.category,
            "reference_id": self.reference_id,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
        }
