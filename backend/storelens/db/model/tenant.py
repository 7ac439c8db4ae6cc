from __future__ import annotations
import uuid
from typing import Optional

from sqlalchemy import Boolean, String, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column
from storelens.db.base import Base, TimestampMixin


"""
  租户表：一个店铺 = 一个租户
  store_domain 是 webhook -> 租户 的唯一关联键（小写存储）
"""
class Tenant(TimestampMixin, Base):

    __tablename__ = "tenants"

    id:   Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name: Mapped[str]       = mapped_column(String(255), nullable=False)

    store_domain: Mapped[Optional[str]] = mapped_column(String(255), unique=True, index=True)  # xxx.myshopify.com
    access_token: Mapped[Optional[str]] = mapped_column(String(255))                          # OAuth 回调写入

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("true"))   # 卸载后置 false

