# Overview: Ledger writes; the sale income poster and manual entries.

from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError

from ..errors import PersistenceFailure, ValidationError
from ..models import ENTRY_INCOME, ENTRY_TYPES, SALES_CATEGORY, LedgerEntry, Sale
from ..validation import clean_text, parse_money
from .tenant_service import TenantScope, require_active_tenant, require_user_in_tenant

logger = logging.getLogger(__name__)
"""
Ledger Invariants (authoritative)

- Append-only: entries are never updated or deleted here.
- A sale's income entry is written inside the sale's unit of work; if it
  cannot be written the sale does not happen.
- Exactly one income entry per sale (reference_id = sale.id).
- Direction comes from entry_type. Manual entries must be positive; a sale
  income entry carries final_amount, which is 0 for a fully discounted sale.
"""


def post_sale_income(scope: TenantScope, sale: Sale) -> LedgerEntry:
    """
    Append the income entry for a freshly persisted sale.

    Runs inside the caller's transaction and never commits. Any failure is
    raised as PersistenceFailure so the whole sale rolls back.
    """
    if sale.id is None:
        raise PersistenceFailure("Sale must be flushed before posting to the ledger")
    if sale.tenant_id != scope.tenant_id:
        raise PersistenceFailure("Sale belongs to a different tenant than the ledger scope")

    already_posted = (
        scope.query(LedgerEntry, LedgerEntry.id)
        .filter(LedgerEntry.reference_id == sale.id, LedgerEntry.entry_type == ENTRY_INCOME)
        .first()
    )
    if already_posted is not None:
        raise PersistenceFailure(
            "Sale already has an income entry",
            details={"sale_id": sale.id, "ledger_entry_id": already_posted.id},
        )

    entry = LedgerEntry(
        tenant_id=scope.tenant_id,
        entry_type=ENTRY_INCOME,
        amount=sale.final_amount,
        description=f"Sale {sale.invoice_number}",
        category=SALES_CATEGORY,
        reference_id=sale.id,
        created_by=sale.created_by,
    )
    try:
        scope.session.add(entry)
        scope.session.flush()  # ensures entry.id is assigned without committing
    except SQLAlchemyError as exc:
        raise PersistenceFailure(
            "Ledger entry could not be written",
            details={"sale_id": sale.id},
        ) from exc
    return entry


def record_ledger_entry(
    scope: TenantScope,
    *,
    entry_type: str,
    amount,
    description: str,
    category: str | None = None,
    created_by: int | None = None,
    reference_id: int | None = None,
    commit: bool = True,
) -> LedgerEntry:
    """Manual income/expense entry (rent, supplies, other income)."""
    if entry_type not in ENTRY_TYPES:
        raise ValidationError(
            f"type must be one of {', '.join(ENTRY_TYPES)}",
            details={"field": "type"},
        )
    amount = parse_money(amount, "amount", allow_zero=False)
    description = clean_text(description, 255)
    if not description:
        raise ValidationError("description is required", details={"field": "description"})

    require_active_tenant(scope)
    if created_by is not None:
        require_user_in_tenant(scope, created_by)
    if reference_id is not None and scope.query(Sale, Sale.id).filter(Sale.id == reference_id).first() is None:
        raise ValidationError("Referenced sale not found", details={"reference_id": reference_id})

    entry = LedgerEntry(
        tenant_id=scope.tenant_id,
        entry_type=entry_type,
        amount=amount,
        description=description,
        category=clean_text(category, 64),
        reference_id=reference_id,
        created_by=created_by,
    )
    scope.session.add(entry)
    if not commit:
        # Caller owns the transaction and its rollback.
        try:
            scope.session.flush()
        except SQLAlchemyError as exc:
            raise PersistenceFailure("Ledger entry could not be written") from exc
        return entry

    try:
        scope.session.commit()
    except SQLAlchemyError as exc:
        scope.session.rollback()
        logger.exception("Ledger entry could not be committed for tenant %s", scope.tenant_id)
        raise PersistenceFailure("Ledger entry could not be written") from exc
    logger.info("Recorded %s ledger entry %s for tenant %s", entry_type, entry.id, scope.tenant_id)
    return entry
