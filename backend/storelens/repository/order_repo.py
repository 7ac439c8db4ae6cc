from __future__ import annotations

import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from storelens.db.model.order import Order, OrderItem
from storelens.db.upsert import write_entity


def upsert_by_external_id(
    db: Session,
    tenant_id: uuid.UUID,
    external_id: str,
    changes: Dict[str, Any],
    defaults: Dict[str, Any],
) -> Order:
    # 订单默认值依赖 payload（订单号回退、下单时间），由上层算好传进来
    return write_entity(
        db,
        Order,
        lookup={"tenant_id": tenant_id, "external_order_id": external_id},
        changes=changes,
        defaults=defaults,
    )


def get_by_external_id(db: Session, tenant_id: uuid.UUID, external_id: str) -> Optional[Order]:
    return db.execute(
        select(Order).where(Order.tenant_id == tenant_id, Order.external_order_id == external_id)
    ).scalar_one_or_none()


def delete_items(db: Session, order_id: uuid.UUID) -> int:
    res = db.execute(
        delete(OrderItem).where(OrderItem.order_id == order_id).execution_options(synchronize_session="fetch")
    )
    return int(res.rowcount or 0)


def add_item(db: Session, item: OrderItem) -> OrderItem:
    db.add(item)
    db.flush()
    return item


def list_items(db: Session, order_id: uuid.UUID) -> List[OrderItem]:
    return list(
        db.execute(
            select(OrderItem).where(OrderItem.order_id == order_id).order_by(OrderItem.id)
        ).scalars()
    )


def count_for_tenant(db: Session, tenant_id: uuid.UUID) -> int:
    return db.execute(
        select(func.count()).select_from(Order).where(Order.tenant_id == tenant_id)
    ).scalar_one()


def latest_for_tenant(db: Session, tenant_id: uuid.UUID, limit: int = 3) -> List[Order]:
    return list(
        db.execute(
            select(Order)
            .where(Order.tenant_id == tenant_id)
            .order_by(Order.created_at.desc())
            .limit(limit)
        ).scalars()
    )
