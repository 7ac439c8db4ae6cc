"""
订单 upsert：订单头 + 关联客户 + 订单行

顺序：
  1) 内嵌 customer 先 upsert（savepoint 里做，失败就当访客订单）
  2) 订单头按 (tenant_id, external_order_id) upsert，状态由信号推导
  3) payload 带了 line_items 时：删光旧行，逐行重建；每行一个 savepoint，
     坏行记日志跳过，不回滚订单头；行里带 product_id 的顺手补建/更新商品

整个过程在调用方的同一个事务里，提交前失败会整体回滚。
"""
from __future__ import annotations

import logging
import uuid
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from storelens.core.config import settings
from storelens.core.errors import InvalidPayload
from storelens.db.model.order import Order, OrderItem, OrderStatus
from storelens.integrations.shopify.payloads import (
    ShopifyLineItem,
    ShopifyOrder,
    parse_payload,
)
from storelens.repository import order_repo
from storelens.services.ingest.customer_upsert import upsert_customer
from storelens.services.ingest.order_status import CANCEL_SIGNALS, derive_order_status
from storelens.services.ingest.product_upsert import upsert_product
from storelens.utils.clock import now_utc
from storelens.utils.money import line_total

logger = logging.getLogger(__name__)

DEFAULT_LINE_TITLE = "Item"


def upsert_order(
    db: Session,
    tenant_id: uuid.UUID,
    data: Any,
    *,
    precedence: Optional[str] = None,
) -> Order:
    order = parse_payload(ShopifyOrder, data, "order")
    if not order.id:
        raise InvalidPayload("order", "missing id")

    changes = order.changes()

    signals = order.status_signals()
    if signals:
        # 一个状态信号都没带的部分更新，不动已有状态
        status = derive_order_status(signals, precedence)
        if status is not OrderStatus.CANCELLED and _stays_cancelled(db, tenant_id, order.id, signals):
            logger.info("order.status.keep_cancelled order=%s derived=%s", order.id, status.value)
        else:
            changes["status"] = status

    customer_id = _link_customer(db, tenant_id, order)
    if customer_id is not None:
        changes["customer_id"] = customer_id

    defaults: Dict[str, Any] = {
        "order_number": order.display_number() or order.id,
        "email": None,
        "total_price": Decimal("0.00"),
        "currency": settings.DEFAULT_CURRENCY,
        "status": OrderStatus.PENDING,
        "processed_at": None,
        "created_at": now_utc(),
        "customer_id": None,
    }
    saved = order_repo.upsert_by_external_id(db, tenant_id, order.id, changes, defaults)

    if order.present("line_items"):
        replace_line_items(db, tenant_id, saved, order.line_items or [])

    return saved


def _stays_cancelled(db: Session, tenant_id: uuid.UUID, external_id: str, signals: Dict[str, Any]) -> bool:
    """
    取消是终态：payload 没提取消字段（迟到的 paid / fulfilled 事件）时，
    已取消的订单不会被付款/发货信号改回去。
    """
    if any(key in signals for key in CANCEL_SIGNALS):
        return False
    existing = order_repo.get_by_external_id(db, tenant_id, external_id)
    return existing is not None and existing.status is OrderStatus.CANCELLED


def _link_customer(db: Session, tenant_id: uuid.UUID, order: ShopifyOrder) -> Optional[uuid.UUID]:
    if not order.customer:
        return None
    try:
        with db.begin_nested():
            customer = upsert_customer(db, tenant_id, order.customer)
    except InvalidPayload as exc:
        logger.info("order.customer.unresolved order=%s reason=%s -> guest order", order.id, exc.reason)
        return None
    return customer.id


def replace_line_items(db: Session, tenant_id: uuid.UUID, order: Order, line_items: List[Any]) -> int:
    """Delete every item of ``order`` and rebuild from ``line_items``; returns rows written."""
    removed = order_repo.delete_items(db, order.id)

    written = 0
    for position, raw in enumerate(line_items):
        try:
            with db.begin_nested():
                order_repo.add_item(db, _build_item(db, tenant_id, order.id, raw))
            written += 1
        except InvalidPayload as exc:
            logger.warning(
                "order.line_item.skipped order=%s position=%s reason=%s",
                order.external_order_id, position, exc.reason,
            )

    logger.debug(
        "order.line_items.replaced order=%s removed=%s written=%s",
        order.external_order_id, removed, written,
    )
    return written


def _build_item(db: Session, tenant_id: uuid.UUID, order_id: uuid.UUID, raw: Any) -> OrderItem:
    item = parse_payload(ShopifyLineItem, raw, "line_item")

    quantity = item.quantity if item.quantity is not None else 1
    price = item.price if item.price is not None else Decimal("0.00")

    product_id = None
    if item.product_id:
        product = upsert_product(db, tenant_id, synthesize_product_payload(item))
        product_id = product.id

    return OrderItem(
        order_id=order_id,
        product_id=product_id,
        title=item.display_title or DEFAULT_LINE_TITLE,
        sku=item.sku,
        quantity=quantity,
        price=price,
        total_price=line_total(price, quantity),
    )


def synthesize_product_payload(item: ShopifyLineItem) -> Dict[str, Any]:
    """
    Minimal product payload built from a line item. Only fields the line item
    actually carries are included, so an existing product keeps the rest.
    """
    payload: Dict[str, Any] = {"id": item.product_id}
    if item.display_title:
        payload["title"] = item.display_title

    variant: Dict[str, Any] = {}
    if item.price is not None:
        variant["price"] = str(item.price)
    if item.present("sku"):
        variant["sku"] = item.sku
    if variant:
        payload["variants"] = [variant]
    return payload
