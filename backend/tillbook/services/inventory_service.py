# Overview: Stock guard; validates and decrements stock for a batch of sale lines.

from __future__ import annotations

import logging
from typing import Mapping

from ..errors import InsufficientStock, ValidationError
from ..models import Product
from .catalog_service import current_stock, decrement_stock, get_products
from .tenant_service import TenantScope

logger = logging.getLogger(__name__)
"""
Stock Guard Invariants (authoritative)

- Checks run against the persisted stock read under lock, never against a
  client snapshot.
- All-or-nothing: either every product in the batch is decremented or the
  caller's unit of work is rolled back. This module never commits.
- Post-decrement stock is never negative (guarded UPDATE + check constraint).
- Quantities for the same product across several lines are summed first.
"""


def lock_sale_products(scope: TenantScope, product_ids) -> dict[int, Product]:
    """
    Lock the tenant's products for a sale, in id order.

    Unknown ids and ids owned by another tenant are rejected the same way.
    Inactive products cannot be sold.
    """
    wanted = set(product_ids)
    products = {p.id: p for p in get_products(scope, wanted, lock=True)}

    missing = sorted(wanted - products.keys())
    if missing:
        raise ValidationError("Product not found", details={"product_ids": missing})

    inactive = sorted(pid for pid, p in products.items() if not p.is_active)
    if inactive:
        raise ValidationError("Product is inactive", details={"product_ids": inactive})

    return products


def reserve_stock(
    scope: TenantScope,
    quantities: Mapping[int, int],
    products: Mapping[int, Product] | None = None,
) -> dict[int, Product]:
    """
    Validate and decrement stock for {product_id: quantity}.

    Must run inside the caller's unit of work. Raises InsufficientStock for
    the lowest offending product id; details["items"] lists every shortfall.
    """
    if products is None:
        products = lock_sale_products(scope, quantities.keys())

    shortfalls = []
    for product_id in sorted(quantities):
        requested = quantities[product_id]
        available = products[product_id].stock
        if requested > available:
            shortfalls.append({
                "product_id": product_id,
                "requested": requested,
                "available": available,
            })

    if shortfalls:
        first = shortfalls[0]
        raise InsufficientStock(
            first["product_id"], first["requested"], first["available"],
            details={"items": shortfalls},
        )

    for product_id in sorted(quantities):
        requested = quantities[product_id]
        if not decrement_stock(scope, product_id, requested):
            # Row moved after our read; report what is there now.
            available = current_stock(scope, product_id)
            logger.warning(
                "Guarded decrement refused for product %s (tenant %s): requested %s, available %s",
                product_id, scope.tenant_id, requested, available,
            )
            raise InsufficientStock(product_id, requested, available)
        # Drop the stale in-memory copy; the next access reloads it.
        scope.session.expire(products[product_id], ["stock", "version_id"])

    return dict(products)
