# Overview: Per-tenant invoice numbering backed by a daily counter row.

from __future__ import annotations

import logging
from datetime import date

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from ..errors import NumberingExhausted, ValidationError
from ..models import InvoiceSequence, Sale
from .tenant_service import TenantScope

logger = logging.getLogger(__name__)

DEFAULT_PREFIX = "INV"
DEFAULT_MAX_ATTEMPTS = 5


def format_invoice_number(prefix: str, issued_on: date, number: int, pad: int = 4) -> str:
    """INV-20261019-0001; the suffix widens past `pad` digits rather than wrapping."""
    return f"{prefix}-{issued_on:%Y%m%d}-{number:0{pad}d}"


def _allocate(scope: TenantScope, issued_on: date) -> int:
    """
    Take the next counter value for (tenant, day) inside the open transaction.

    The UPDATE holds the counter row lock until the unit of work ends. The
    first sale of a day inserts the row in a savepoint; if a concurrent sale
    won that insert, fall back to the UPDATE.
    """
    session = scope.session
    stmt = (
        update(InvoiceSequence)
        .where(
            InvoiceSequence.tenant_id == scope.tenant_id,
            InvoiceSequence.issued_on == issued_on,
        )
        .values(next_number=InvoiceSequence.next_number + 1)
    )

    def _bump() -> int | None:
        result = session.execute(stmt)
        if not result.rowcount:
            return None
        session.flush()
        current = (
            session.query(InvoiceSequence.next_number)
            .filter_by(tenant_id=scope.tenant_id, issued_on=issued_on)
            .scalar()
        )
        return current - 1

    number = _bump()
    if number is not None:
        return number

    try:
        with session.begin_nested():
            session.add(InvoiceSequence(tenant_id=scope.tenant_id, issued_on=issued_on, next_number=2))
        return 1
    except IntegrityError:
        number = _bump()
        if number is None:
            raise
        return number


def invoice_number_exists(scope: TenantScope, invoice_number: str) -> bool:
    return (
        scope.query(Sale, Sale.id)
        .filter(Sale.invoice_number == invoice_number)
        .first()
        is not None
    )


def next_invoice_number(
    scope: TenantScope,
    issued_on: date,
    *,
    prefix: str = DEFAULT_PREFIX,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> str:
    """
    Mint an invoice number never used before by this tenant.

    Must run inside the caller's unit of work. Candidates already taken (e.g.
    by imported sales) are skipped; after max_attempts collisions
    NumberingExhausted is raised and the caller rolls back.
    """
    if not prefix:
        raise ValidationError("invoice prefix is required")
    if max_attempts < 1:
        raise ValidationError("max_attempts must be at least 1")

    for attempt in range(1, max_attempts + 1):
        candidate = format_invoice_number(prefix, issued_on, _allocate(scope, issued_on))
        if not invoice_number_exists(scope, candidate):
            return candidate
        logger.warning(
            "Invoice number %s already used in tenant %s (attempt %d of %d)",
            candidate, scope.tenant_id, attempt, max_attempts,
        )

    raise NumberingExhausted(
        "Could not allocate a unique invoice number",
        details={"tenant_id": scope.tenant_id, "issued_on": issued_on.isoformat(), "attempts": max_attempts},
    )
