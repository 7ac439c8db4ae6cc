from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy.orm import Session

from storelens.core.errors import InvalidPayload
from storelens.db.model.product import Product
from storelens.integrations.shopify.payloads import ShopifyProduct, parse_payload
from storelens.repository import product_repo


def upsert_product(db: Session, tenant_id: uuid.UUID, data: Any) -> Product:
    product = parse_payload(ShopifyProduct, data, "product")
    if not product.id:
        raise InvalidPayload("product", "missing id")
    return product_repo.upsert_by_external_id(db, tenant_id, product.id, product.changes())
