from __future__ import annotations

from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from storelens.db.model.tenant import Tenant


def normalize_domain(shop_domain: Optional[str]) -> str:
    return (shop_domain or "").strip().lower()


def get_by_domain(db: Session, shop_domain: str) -> Optional[Tenant]:
    domain = normalize_domain(shop_domain)
    if not domain:
        return None
    return db.execute(select(Tenant).where(Tenant.store_domain == domain)).scalar_one_or_none()


def get_active_by_domain(db: Session, shop_domain: str) -> Optional[Tenant]:
    # 精确匹配，不做模糊/前缀匹配；已卸载（inactive）的店铺视同不存在
    tenant = get_by_domain(db, shop_domain)
    if tenant is None or not tenant.is_active:
        return None
    return tenant


def create_tenant(
    db: Session,
    name: str,
    store_domain: Optional[str] = None,
    access_token: Optional[str] = None,
    is_active: bool = True,
) -> Tenant:
    tenant = Tenant(
        name=name,
        store_domain=normalize_domain(store_domain) or None,
        access_token=access_token,
        is_active=is_active,
    )
    db.add(tenant)
    db.commit()
    db.refresh(tenant)
    return tenant


'''
安装回调（OAuth 外部流程）写租户的契约：
  - 店铺不存在 → 新建（name 默认用域名）
  - 已存在 → 更新 token 并重新激活
  后写者覆盖，不和 webhook 摄取做事务耦合
'''
def upsert_installation(
    db: Session,
    shop_domain: str,
    access_token: str,
    name: Optional[str] = None,
) -> Tenant:
    domain = normalize_domain(shop_domain)
    if not domain:
        raise ValueError("shop_domain is required")

    tenant = get_by_domain(db, domain)
    if tenant is None:
        return create_tenant(db, name=name or domain, store_domain=domain, access_token=access_token)

    tenant.access_token = access_token
    tenant.is_active = True
    if name:
        tenant.name = name
    db.commit()
    db.refresh(tenant)
    return tenant


def deactivate(db: Session, shop_domain: str) -> bool:
    tenant = get_by_domain(db, shop_domain)
    if tenant is None:
        return False
    tenant.is_active = False
    db.commit()
    return True
