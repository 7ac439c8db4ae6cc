from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from storelens.db.session import get_db
from storelens.repository import customer_repo, order_repo, processing_log_repo, product_repo, tenant_repo


router = APIRouter(tags=["verify"])


class EntityCounts(BaseModel):
    customers: int
    products: int
    orders: int
    webhook_logs: int


class RecentLogOut(BaseModel):
    topic: str
    status: str
    created_at: Optional[datetime] = None


class RecentOrderOut(BaseModel):
    order_number: str
    total_price: Decimal
    created_at: Optional[datetime] = None


class VerifyOut(BaseModel):
    tenant_id: UUID
    shop: str
    counts: EntityCounts
    recent_logs: List[RecentLogOut]
    recent_orders: List[RecentOrderOut]


'''
接入自检：装好 app、注册完 webhook 后，用它看数据有没有进来
   GET /verify?shop=xxx.myshopify.com
'''
@router.get("/verify", response_model=VerifyOut)
def verify_tenant(
    shop: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
):
    if not shop or not shop.strip():
        raise HTTPException(status_code=400, detail="shop is required")

    tenant = tenant_repo.get_active_by_domain(db, shop)
    if tenant is None:
        raise HTTPException(status_code=404, detail="Tenant not found")

    logs = processing_log_repo.list_recent(db, tenant.id, limit=5)
    orders = order_repo.latest_for_tenant(db, tenant.id, limit=3)

    return VerifyOut(
        tenant_id=tenant.id,
        shop=tenant.store_domain,
        counts=EntityCounts(
            customers=customer_repo.count_for_tenant(db, tenant.id),
            products=product_repo.count_for_tenant(db, tenant.id),
            orders=order_repo.count_for_tenant(db, tenant.id),
            webhook_logs=processing_log_repo.count_for_tenant(db, tenant.id),
        ),
        recent_logs=[
            RecentLogOut(topic=e.event_topic, status=e.status.value, created_at=e.created_at) for e in logs
        ],
        recent_orders=[
            RecentOrderOut(order_number=o.order_number, total_price=o.total_price, created_at=o.created_at)
            for o in orders
        ],
    )
