"""
Identity provider seam.

Authentication happens upstream (gateway, auth service). By the time a
request reaches us the caller is a user id; the provider turns that into a
tenant-scoped CurrentUser that the sales routes trust as the isolation key.
Swap the provider on app.extensions[IDENTITY_EXTENSION_KEY] to plug in a
different resolver.
"""

from __future__ import annotations

from dataclasses import dataclass

from flask import request

from .errors import TenantAccessError
from .extensions import db
from .models import Tenant, User

IDENTITY_EXTENSION_KEY = "tillbook.identity"


@dataclass(frozen=True)
class CurrentUser:
    id: int
    tenant_id: int


class IdentityProvider:
    def current_user(self) -> CurrentUser:
        raise NotImplementedError


class HeaderIdentityProvider(IdentityProvider):
    """Resolve the user id an upstream gateway forwards in a request header."""

    def __init__(self, header: str = "X-User-Id"):
        self.header = header

    def current_user(self) -> CurrentUser:
        raw = (request.headers.get(self.header) or "").strip()
        if not raw.isdigit():
            raise TenantAccessError("Not authenticated")

        row = (
            db.session.query(User.id, User.tenant_id)
            .join(Tenant, Tenant.id == User.tenant_id)
            .filter(User.id == int(raw), User.is_active.is_(True), Tenant.is_active.is_(True))
            .first()
        )
        if row is None:
            raise TenantAccessError("Not authenticated")
        return CurrentUser(id=row.id, tenant_id=row.tenant_id)


class StaticIdentityProvider(IdentityProvider):
    """Fixed identity, for CLI use and tests."""

    def __init__(self, user: CurrentUser):
        self.user = user

    def current_user(self) -> CurrentUser:
        return self.user
