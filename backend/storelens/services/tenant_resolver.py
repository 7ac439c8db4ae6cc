from __future__ import annotations

from sqlalchemy.orm import Session

from storelens.core.errors import TenantNotFound
from storelens.db.model.tenant import Tenant
from storelens.repository import tenant_repo


def resolve_tenant(db: Session, shop_domain: str) -> Tenant:
    """
    Map the ``X-Shopify-Shop-Domain`` header to an active tenant.

    Exact (case-insensitive) domain match only. An inactive tenant means the
    app was uninstalled, so it resolves the same as an unknown domain.
    """
    tenant = tenant_repo.get_active_by_domain(db, shop_domain)
    if tenant is None:
        raise TenantNotFound(tenant_repo.normalize_domain(shop_domain))
    return tenant
