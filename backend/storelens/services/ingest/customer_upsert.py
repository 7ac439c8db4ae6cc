from __future__ import annotations

import logging
import uuid
from typing import Any

from sqlalchemy.orm import Session

from storelens.core.errors import InvalidPayload
from storelens.db.model.customer import Customer
from storelens.integrations.shopify.payloads import ShopifyCustomer, parse_payload
from storelens.repository import customer_repo

logger = logging.getLogger(__name__)


def upsert_customer(db: Session, tenant_id: uuid.UUID, data: Any) -> Customer:
    """
    Merge a customer payload into the tenant's customer table.

    Keyed by the platform customer id; a customer without one (guest checkout)
    is keyed by e-mail instead. Neither present -> InvalidPayload.
    Counters (``orders_count`` / ``total_spent``) are replaced with the payload
    values, never incremented, so replays converge.
    """
    customer = parse_payload(ShopifyCustomer, data, "customer")
    changes = customer.changes()

    if customer.id:
        return customer_repo.upsert_by_external_id(db, tenant_id, customer.id, changes)

    if customer.email:
        logger.debug("customer.upsert.guest tenant=%s email=%s", tenant_id, customer.email)
        return customer_repo.upsert_guest_by_email(db, tenant_id, customer.email, changes)

    raise InvalidPayload("customer", "neither id nor email present")
