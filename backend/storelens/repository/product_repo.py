from __future__ import annotations

import uuid
from decimal import Decimal
from typing import Any, Dict

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from storelens.db.model.product import Product
from storelens.db.upsert import write_entity


CREATE_DEFAULTS: Dict[str, Any] = {
    "title": "Untitled",
    "handle": None,
    "description": None,
    "price": Decimal("0.00"),
    "sku": None,
    "vendor": None,
    "status": "active",
}


def upsert_by_external_id(db: Session, tenant_id: uuid.UUID, external_id: str, changes: Dict[str, Any]) -> Product:
    return write_entity(
        db,
        Product,
        lookup={"tenant_id": tenant_id, "external_product_id": external_id},
        changes=changes,
        defaults=CREATE_DEFAULTS,
    )


def count_for_tenant(db: Session, tenant_id: uuid.UUID) -> int:
    return db.execute(
        select(func.count()).select_from(Product).where(Product.tenant_id == tenant_id)
    ).scalar_one()
