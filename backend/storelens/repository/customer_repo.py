from __future__ import annotations

import uuid
from decimal import Decimal
from typing import Any, Dict

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from storelens.db.model.customer import Customer
from storelens.db.upsert import write_entity


# 新建时 payload 没带的字段用这些默认值；更新时缺失字段保持原值
CREATE_DEFAULTS: Dict[str, Any] = {
    "email": None,
    "first_name": None,
    "last_name": None,
    "phone": None,
    "total_spent": Decimal("0.00"),
    "orders_count": 0,
    "last_order_date": None,
}


def upsert_by_external_id(db: Session, tenant_id: uuid.UUID, external_id: str, changes: Dict[str, Any]) -> Customer:
    return write_entity(
        db,
        Customer,
        lookup={"tenant_id": tenant_id, "external_customer_id": external_id},
        changes=changes,
        defaults=CREATE_DEFAULTS,
    )


'''
访客客户（没有平台 id）：按 (tenant_id, email) 去重，只匹配同样没有平台 id 的行，
对应部分唯一索引 ux_customers_tenant_email_guest
'''
def upsert_guest_by_email(db: Session, tenant_id: uuid.UUID, email: str, changes: Dict[str, Any]) -> Customer:
    changes = {k: v for k, v in changes.items() if k != "email"}
    return write_entity(
        db,
        Customer,
        lookup={"tenant_id": tenant_id, "email": email, "external_customer_id": None},
        changes=changes,
        defaults=CREATE_DEFAULTS,
        conflict_keys=["tenant_id", "email"],
        index_where=Customer.external_customer_id.is_(None),
    )


def count_for_tenant(db: Session, tenant_id: uuid.UUID) -> int:
    return db.execute(
        select(func.count()).select_from(Customer).where(Customer.tenant_id == tenant_id)
    ).scalar_one()
