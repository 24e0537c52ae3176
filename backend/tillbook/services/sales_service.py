"""
Sales Service - atomic sale recording

WHY: A sale touches four things at once: stock, the sale document, its
items and the ledger. They either all change together or none of them do.

Flow (one unit of work, one tenant):
    validate input -> BEGIN -> tenant/actor check -> lock products
    -> price check -> stock guard -> invoice number -> sale + items
    -> ledger income entry -> COMMIT
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Iterable, Mapping

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..cart import Cart, CartLine, CustomerInfo
from ..errors import (
    ConcurrencyConflict,
    PersistenceFailure,
    SaleError,
    ValidationError,
)
from ..models import LedgerEntry, Product, Sale, SaleItem
from ..models.sales import (
    PAYMENT_EWALLET,
    PAYMENT_METHODS,
    STATUS_CANCELLED,
    STATUS_PAID,
    PAYMENT_STATUSES,
)
from ..time_utils import utcnow
from ..validation import clean_text, parse_money, to_money
from .concurrency import RETRYABLE_ERRORS, begin_unit_of_work, is_lock_conflict, run_with_retry
from .inventory_service import lock_sale_products, reserve_stock
from .invoice_service import DEFAULT_MAX_ATTEMPTS, DEFAULT_PREFIX, next_invoice_number
from .ledger_service import post_sale_income
from .tenant_service import TenantScope, require_active_tenant, require_user_in_tenant

logger = logging.getLogger(__name__)

# Whole-sale retry covers lock timeouts, optimistic version conflicts and
# unique-constraint races on invoice numbers.
SALE_RETRYABLE_ERRORS = RETRYABLE_ERRORS + (IntegrityError,)

_PAYMENT_METHOD_ALIASES = {"e-wallet": PAYMENT_EWALLET, "e_wallet": PAYMENT_EWALLET}


@dataclass(frozen=True)
class EngineOptions:
    retry_attempts: int = 3
    retry_backoff: float = 0.1
    invoice_prefix: str = DEFAULT_PREFIX
    invoice_max_attempts: int = DEFAULT_MAX_ATTEMPTS

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "EngineOptions":
        return cls(
            retry_attempts=int(config.get("SALE_RETRY_ATTEMPTS", cls.retry_attempts)),
            retry_backoff=float(config.get("SALE_RETRY_BACKOFF", cls.retry_backoff)),
            invoice_prefix=config.get("INVOICE_PREFIX", cls.invoice_prefix),
            invoice_max_attempts=int(config.get("INVOICE_MAX_ATTEMPTS", cls.invoice_max_attempts)),
        )


@dataclass(frozen=True)
class SaleDraft:
    """Validated, not-yet-persisted sale. Built before any transaction opens."""

    cart: Cart
    customer: CustomerInfo
    payment_method: str
    payment_status: str
    total_amount: Decimal
    discount_amount: Decimal
    final_amount: Decimal
    notes: str | None = None


@dataclass
class SaleResult:
    sale: Sale
    items: list[SaleItem]
    ledger_entry: LedgerEntry

    def to_dict(self) -> dict:
        return {
            "sale": self.sale.to_dict(),
            "items": [item.to_dict(include_product=True) for item in self.items],
            "ledger_entry": self.ledger_entry.to_dict(),
        }


def _normalize_payment_method(value: str | None) -> str:
    method = (value or "cash").strip().lower()
    method = _PAYMENT_METHOD_ALIASES.get(method, method)
    if method not in PAYMENT_METHODS:
        raise ValidationError(
            f"payment_method must be one of {', '.join(PAYMENT_METHODS)}",
            details={"field": "payment_method"},
        )
    return method


def _normalize_payment_status(value: str | None) -> str:
    status = (value or STATUS_PAID).strip().lower()
    if status not in PAYMENT_STATUSES:
        raise ValidationError(
            f"payment_status must be one of {', '.join(PAYMENT_STATUSES)}",
            details={"field": "payment_status"},
        )
    if status == STATUS_CANCELLED:
        raise ValidationError("A new sale cannot be recorded as cancelled", details={"field": "payment_status"})
    return status


def prepare_sale(
    cart: Cart | Iterable[CartLine | Mapping[str, Any]],
    *,
    customer: CustomerInfo | Mapping[str, Any] | None = None,
    payment_method: str | None = None,
    payment_status: str | None = None,
    discount_amount: Any = 0,
    notes: str | None = None,
) -> SaleDraft:
    """
    Validate sale input and compute amounts. No database access.

    Raises ValidationError for an empty cart, bad quantities or prices, a
    discount larger than the total, or an unknown payment method/status.
    """
    if not isinstance(cart, Cart):
        cart = Cart.from_items(cart)
    if cart.is_empty:
        raise ValidationError("Cart is empty")

    if isinstance(customer, CustomerInfo):
        customer = customer.normalized()
    else:
        customer = CustomerInfo.from_mapping(customer)

    total = cart.total_amount
    discount = parse_money(discount_amount if discount_amount is not None else 0, "discount_amount")
    if discount > total:
        raise ValidationError(
            "discount_amount cannot exceed total_amount",
            details={"field": "discount_amount", "total_amount": str(total)},
        )

    return SaleDraft(
        cart=cart,
        customer=customer,
        payment_method=_normalize_payment_method(payment_method),
        payment_status=_normalize_payment_status(payment_status),
        total_amount=total,
        discount_amount=discount,
        final_amount=to_money(total - discount),
        notes=clean_text(notes, 2000),
    )


def _check_prices(cart: Cart, products: Mapping[int, Product]) -> None:
    mismatches = []
    for line in cart:
        current = to_money(Decimal(str(products[line.product_id].sell_price)))
        if line.unit_price != current:
            mismatches.append({
                "product_id": line.product_id,
                "unit_price": str(line.unit_price),
                "current_price": str(current),
            })
    if mismatches:
        raise ValidationError("Price mismatch", details={"items": mismatches})


def _record_locked(
    scope: TenantScope,
    actor_user_id: int,
    draft: SaleDraft,
    options: EngineOptions,
) -> SaleResult:
    session = scope.session

    require_active_tenant(scope)
    actor = require_user_in_tenant(scope, actor_user_id)

    quantities = draft.cart.quantities_by_product()
    products = lock_sale_products(scope, quantities.keys())
    _check_prices(draft.cart, products)
    reserve_stock(scope, quantities, products)

    invoice_number = next_invoice_number(
        scope,
        utcnow().date(),
        prefix=options.invoice_prefix,
        max_attempts=options.invoice_max_attempts,
    )

    sale = Sale(
        tenant_id=scope.tenant_id,
        invoice_number=invoice_number,
        customer_name=draft.customer.name,
        customer_phone=draft.customer.phone,
        notes=draft.notes,
        total_amount=draft.total_amount,
        discount_amount=draft.discount_amount,
        final_amount=draft.final_amount,
        payment_method=draft.payment_method,
        payment_status=draft.payment_status,
        created_by=actor.id,
    )
    session.add(sale)
    session.flush()

    items = [
        SaleItem(
            tenant_id=scope.tenant_id,
            sale_id=sale.id,
            product_id=line.product_id,
            quantity=line.quantity,
            unit_price=line.unit_price,
            total_price=line.total_price,
        )
        for line in draft.cart
    ]
    session.add_all(items)
    session.flush()

    entry = post_sale_income(scope, sale)
    return SaleResult(sale=sale, items=items, ledger_entry=entry)


def record_sale(
    session: Session,
    tenant_id: int,
    actor_user_id: int,
    cart: Cart | Iterable[CartLine | Mapping[str, Any]],
    *,
    customer: CustomerInfo | Mapping[str, Any] | None = None,
    payment_method: str | None = "cash",
    payment_status: str | None = STATUS_PAID,
    discount_amount: Any = 0,
    notes: str | None = None,
    options: EngineOptions | None = None,
) -> SaleResult:
    """
    Record a sale atomically for one tenant.

    Validates stock against persisted rows under lock, decrements it, mints
    an invoice number, writes the sale and its items and posts the income
    ledger entry, then commits. On any failure the session is rolled back and
    nothing is left behind.

    Raises ValidationError, TenantAccessError, InsufficientStock,
    NumberingExhausted, ConcurrencyConflict or PersistenceFailure.
    """
    options = options or EngineOptions()
    draft = prepare_sale(
        cart,
        customer=customer,
        payment_method=payment_method,
        payment_status=payment_status,
        discount_amount=discount_amount,
        notes=notes,
    )
    scope = TenantScope(session, tenant_id)

    def _op() -> SaleResult:
        begin_unit_of_work(session)
        try:
            result = _record_locked(scope, actor_user_id, draft, options)
            session.commit()
        except SALE_RETRYABLE_ERRORS:
            raise  # run_with_retry rolls back and tries again
        except SaleError as exc:
            session.rollback()
            logger.warning("Sale rejected for tenant %s: %s (%s)", tenant_id, exc, exc.code)
            raise
        except SQLAlchemyError as exc:
            session.rollback()
            logger.exception("Sale could not be persisted for tenant %s", tenant_id)
            raise PersistenceFailure("Sale could not be persisted") from exc
        except Exception:
            session.rollback()
            raise
        return result

    try:
        result = run_with_retry(
            _op,
            session=session,
            attempts=options.retry_attempts,
            backoff_base=options.retry_backoff,
            retry_on=SALE_RETRYABLE_ERRORS,
        )
    except SALE_RETRYABLE_ERRORS as exc:
        if is_lock_conflict(exc):
            logger.warning("Sale for tenant %s gave up after %d attempts: %s", tenant_id, options.retry_attempts, exc)
            raise ConcurrencyConflict(
                "Sale conflicted with a concurrent update; retry",
                details={"attempts": options.retry_attempts},
            ) from exc
        logger.error("Sale for tenant %s failed on storage: %s", tenant_id, exc)
        raise PersistenceFailure("Sale could not be persisted") from exc

    logger.info(
        "Recorded sale %s for tenant %s: %d items, final %s",
        result.sale.invoice_number, tenant_id, len(result.items), result.sale.final_amount,
    )
    return result
