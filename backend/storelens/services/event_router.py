# Topic 路由："<resource>/<action>" → 对应的 upserter

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple

from sqlalchemy.orm import Session

from storelens.core.errors import InvalidPayload
from storelens.integrations.shopify.payloads import unwrap
from storelens.services.ingest.customer_upsert import upsert_customer
from storelens.services.ingest.order_upsert import upsert_order
from storelens.services.ingest.product_upsert import upsert_product

logger = logging.getLogger(__name__)

Upserter = Callable[[Session, uuid.UUID, Any], Any]


@dataclass(frozen=True)
class Route:
    wrapper: str          # 可选的外层包装键：{"order": {...}}
    upsert: Upserter


# action 不区分（create / update / updated / paid ...），只看资源前缀
ROUTES: Dict[str, Route] = {
    "customers": Route("customer", upsert_customer),
    "products": Route("product", upsert_product),
    "orders": Route("order", upsert_order),
}


@dataclass
class RouteResult:
    resource: str
    action: str
    handled: bool
    entity_id: Optional[uuid.UUID] = None


def parse_topic(topic: Optional[str]) -> Tuple[str, str]:
    resource, _, action = (topic or "").strip().lower().partition("/")
    return resource, action


def route_event(db: Session, tenant_id: uuid.UUID, topic: str, payload: Any) -> RouteResult:
    """
    Dispatch one webhook payload to the upserter for its resource.

    Topics we are not subscribed to are a no-op (``handled=False``); platforms
    deliver plenty of those and they must not count as failures.
    """
    resource, action = parse_topic(topic)
    route = ROUTES.get(resource)
    if route is None:
        logger.info("webhook.route.ignored topic=%s tenant=%s", topic, tenant_id)
        return RouteResult(resource=resource, action=action, handled=False)

    if not isinstance(payload, dict):
        raise InvalidPayload(route.wrapper, f"expected a JSON object, got {type(payload).__name__}")

    entity = route.upsert(db, tenant_id, unwrap(payload, route.wrapper))
    return RouteResult(
        resource=resource,
        action=action,
        handled=True,
        entity_id=getattr(entity, "id", None),
    )
