"""
Multi-Tenant Service: explicit tenant scoping.

WHY: Tenant isolation is a parameter, never ambient state. Every data-access
call receives a TenantScope (session + tenant_id), and every query it builds
filters on tenant_id. Nothing here reads request globals.

SECURITY INVARIANTS:
1. Queries for tenant-owned rows go through TenantScope.query
2. Actor ids from callers are validated against the scope's tenant
3. Foreign-tenant rows are reported as "not found", never as "forbidden"
4. Cross-tenant attempts are logged at WARNING

USAGE:
    scope = TenantScope(db.session, current_user.tenant_id)
    require_active_tenant(scope)
    actor = require_user_in_tenant(scope, current_user.id)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session

from ..errors import TenantAccessError
from ..models import Tenant, User

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TenantScope:
    """Tenant-scoped data-access handle."""

    session: Session
    tenant_id: int

    def query(self, model, *entities):
        """Query `model` (or columns of it) restricted to this tenant."""
        q = self.session.query(*entities) if entities else self.session.query(model)
        return q.filter(model.tenant_id == self.tenant_id)


def require_active_tenant(scope: TenantScope) -> Tenant:
    tenant = scope.session.get(Tenant, scope.tenant_id)
    if tenant is None or not tenant.is_active:
        logger.warning("Tenant %s not found or inactive", scope.tenant_id)
        raise TenantAccessError("Tenant not found")
    return tenant


def require_user_in_tenant(scope: TenantScope, user_id: int | None) -> User:
    """
    Validate that an acting user belongs to the scope's tenant.

    Raises TenantAccessError when the user is unknown, inactive, or a member
    of another tenant (reported identically so existence is not leaked).
    """
    if user_id is None:
        raise TenantAccessError("User not found")

    user = scope.session.get(User, user_id)
    if user is None or not user.is_active:
        logger.warning("User %s not found or inactive (tenant %s)", user_id, scope.tenant_id)
        raise TenantAccessError("User not found")

    if user.tenant_id != scope.tenant_id:
        # CRITICAL: Cross-tenant access attempt
        logger.warning(
            "Cross-tenant access denied: user %s belongs to tenant %s, not %s",
            user_id, user.tenant_id, scope.tenant_id,
        )
        raise TenantAccessError("User not found")

    return user
