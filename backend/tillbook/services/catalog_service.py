# Overview: Product catalog reads and the stock-decrement primitive.

from __future__ import annotations

from sqlalchemy import update

from ..models import Product
from .concurrency import lock_for_update
from .tenant_service import TenantScope


def get_product(scope: TenantScope, product_id: int, *, lock: bool = False) -> Product | None:
    """Return the tenant's product, or None when absent or owned by another tenant."""
    query = scope.query(Product).filter(Product.id == product_id)
    if lock:
        query = lock_for_update(query)
    return query.first()


def get_products(scope: TenantScope, product_ids, *, lock: bool = False) -> list[Product]:
    """
    Load several tenant products, ordered by id.

    Locking in a fixed order keeps two sales over the same products from
    deadlocking each other.
    """
    ids = sorted(set(product_ids))
    if not ids:
        return []
    query = scope.query(Product).filter(Product.id.in_(ids)).order_by(Product.id)
    if lock:
        query = lock_for_update(query)
    return query.all()


def current_stock(scope: TenantScope, product_id: int) -> int:
    stock = scope.query(Product, Product.stock).filter(Product.id == product_id).scalar()
    return int(stock or 0)


def decrement_stock(scope: TenantScope, product_id: int, quantity: int) -> bool:
    """
    Guarded stock decrement for use inside an open unit of work.

    Single UPDATE ... WHERE stock >= quantity, bumping version_id so ORM
    writers holding an older copy of the row fail with StaleDataError.
    Returns False (and changes nothing) when stock is short.
    """
    stmt = (
        update(Product)
        .where(
            Product.id == product_id,
            Product.tenant_id == scope.tenant_id,
            Product.stock >= quantity,
        )
        .values(stock=Product.stock - quantity, version_id=Product.version_id + 1)
        .execution_options(synchronize_session=False)
    )
    result = scope.session.execute(stmt)
    return result.rowcount == 1


def low_stock_products(scope: TenantScope, product_ids=None) -> list[Product]:
    """Active products at or below their minimum stock level."""
    query = scope.query(Product).filter(
        Product.is_active.is_(True),
        Product.stock <= Product.min_stock,
    )
    if product_ids is not None:
        query = query.filter(Product.id.in_(list(product_ids)))
    return query.order_by(Product.name).all()
