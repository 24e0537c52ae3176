# Overview: Read-only ledger and sales reporting (never used by the sale engine).

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import func

from ..errors import ValidationError
from ..models import ENTRY_EXPENSE, ENTRY_INCOME, ENTRY_TYPES, LedgerEntry, Sale
from ..models.sales import STATUS_PAID
from ..time_utils import day_bounds
from ..validation import to_money
from .tenant_service import TenantScope


@dataclass(frozen=True)
class LedgerSummary:
    income: Decimal
    expense: Decimal

    @property
    def balance(self) -> Decimal:
        return self.income - self.expense

    def to_dict(self) -> dict:
        return {
            "income": str(self.income),
            "expense": str(self.expense),
            "balance": str(self.balance),
        }


def _as_money(value) -> Decimal:
    if value is None:
        return to_money(Decimal("0"))
    return to_money(Decimal(str(value)))


def list_ledger_entries(
    scope: TenantScope,
    entry_type: str | None = None,
    *,
    limit: int | None = None,
    offset: int = 0,
) -> list[LedgerEntry]:
    """Newest first, optionally filtered by type."""
    query = scope.query(LedgerEntry)
    if entry_type is not None:
        if entry_type not in ENTRY_TYPES:
            raise ValidationError(f"type must be one of {', '.join(ENTRY_TYPES)}")
        query = query.filter(LedgerEntry.entry_type == entry_type)
    query = query.order_by(LedgerEntry.created_at.desc(), LedgerEntry.id.desc())
    if offset:
        query = query.offset(offset)
    if limit is not None:
        query = query.limit(limit)
    return query.all()


def ledger_summary(
    scope: TenantScope,
    start: datetime | None = None,
    end: datetime | None = None,
) -> LedgerSummary:
    """Income, expense and balance over [start, end)."""
    query = scope.query(
        LedgerEntry,
        LedgerEntry.entry_type,
        func.sum(LedgerEntry.amount),
    )
    if start is not None:
        query = query.filter(LedgerEntry.created_at >= start)
    if end is not None:
        query = query.filter(LedgerEntry.created_at < end)

    totals = dict(query.group_by(LedgerEntry.entry_type).all())
    return LedgerSummary(
        income=_as_money(totals.get(ENTRY_INCOME)),
        expense=_as_money(totals.get(ENTRY_EXPENSE)),
    )


def sales_for_day(scope: TenantScope, day: date) -> dict:
    """Paid sales total and count for one UTC day."""
    start, end = day_bounds(day)
    total, count = (
        scope.query(Sale, func.sum(Sale.final_amount), func.count(Sale.id))
        .filter(
            Sale.payment_status == STATUS_PAID,
            Sale.created_at >= start,
            Sale.created_at < end,
        )
        .one()
    )
    return {"date": day.isoformat(), "total": str(_as_money(total)), "count": int(count or 0)}
