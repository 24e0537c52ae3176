from __future__ import annotations

from ..extensions import db
from ..time_utils import utcnow


class InvoiceSequence(db.Model):
    """
    Atomic per-tenant, per-day invoice counters.

    WHY: Prevent race conditions when minting invoice numbers. The row for
    (tenant_id, issued_on) is incremented with a single UPDATE inside the
    sale's unit of work, so concurrent sales in the same tenant serialize on it.
    """
    __tablename__ = "invoice_sequences"
    __table_args__ = (
        db.UniqueConstraint("tenant_id", "issued_on", name="uq_invoice_sequences_tenant_day"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey("tenants.id"), nullable=False, index=True)
    issued_on = db.Column(db.Date, nullable=False)
    next_number = db.Column(db.Integer, nullable=False, default=1)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, server_default=db.func.now(), onupdate=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "issued_on": self.issued_on.isoformat(),
            "next_number": self.next_number,
        }
