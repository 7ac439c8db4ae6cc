from __future__ import annotations
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    DateTime, ForeignKey, Index, Integer, Numeric, String, UniqueConstraint, Uuid, text,
)
from sqlalchemy.orm import Mapped, mapped_column
from storelens.db.base import Base, TimestampMixin


"""
  客户表
  业务主键：(tenant_id, external_customer_id)；没有平台 id 的访客客户退回 (tenant_id, email)
"""
class Customer(TimestampMixin, Base):

    __tablename__ = "customers"

    id:        Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    tenant_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("tenants.id", ondelete="CASCADE"), index=True, nullable=False,
    )
    external_customer_id: Mapped[Optional[str]] = mapped_column(String(64))   # 平台客户 id（字符串化）

    email:      Mapped[Optional[str]] = mapped_column(String(255))
    first_name: Mapped[Optional[str]] = mapped_column(String(255))
    last_name:  Mapped[Optional[str]] = mapped_column(String(255))
    phone:      Mapped[Optional[str]] = mapped_column(String(64))

    # 平台给的累计值，直接覆盖，不做自增
    total_spent:     Mapped[Decimal]            = mapped_column(Numeric(12, 2), nullable=False, server_default=text("0"))
    orders_count:    Mapped[int]                = mapped_column(Integer, nullable=False, server_default=text("0"))
    last_order_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))


    __table_args__ = (
        UniqueConstraint("tenant_id", "external_customer_id", name="ux_customers_tenant_external"),
        # 访客客户（无平台 id）按邮箱去重，部分唯一索引
        Index(
            "ux_customers_tenant_email_guest",
            "tenant_id", "email",
            unique=True,
            postgresql_where=text("external_customer_id IS NULL"),
            sqlite_where=text("external_customer_id IS NULL"),
        ),
    )
