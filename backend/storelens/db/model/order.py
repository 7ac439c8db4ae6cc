from __future__ import annotations
import enum
import uuid
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import (
    DateTime, Enum, ForeignKey, Index, Integer, Numeric, String, UniqueConstraint, Uuid, func, text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from storelens.db.base import Base, TimestampMixin


class OrderStatus(str, enum.Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    PROCESSING = "PROCESSING"
    SHIPPED = "SHIPPED"
    CANCELLED = "CANCELLED"


"""
  订单表
  业务主键：(tenant_id, external_order_id)；customer_id 是弱引用（访客订单为空）
"""
class Order(TimestampMixin, Base):

    __tablename__ = "orders"

    id:        Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    tenant_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("tenants.id", ondelete="CASCADE"), index=True, nullable=False,
    )
    external_order_id: Mapped[Optional[str]] = mapped_column(String(64))

    order_number: Mapped[str]           = mapped_column(String(64), nullable=False, server_default=text("''"))   # "#1001"
    email:        Mapped[Optional[str]] = mapped_column(String(255))
    total_price:  Mapped[Decimal]       = mapped_column(Numeric(12, 2), nullable=False, server_default=text("0"))
    currency:     Mapped[str]           = mapped_column(String(8), nullable=False, server_default=text("'USD'"))
    status:       Mapped[OrderStatus]   = mapped_column(
        Enum(OrderStatus, name="order_status", native_enum=False, length=16),
        nullable=False,
        default=OrderStatus.PENDING,
    )

    processed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    created_at:   Mapped[datetime]           = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)  # 平台下单时间

    customer_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("customers.id", ondelete="SET NULL"), index=True,
    )

    items: Mapped[List["OrderItem"]] = relationship(
        back_populates="order",
        passive_deletes=True,
        order_by="OrderItem.id",
    )

    __table_args__ = (
        UniqueConstraint("tenant_id", "external_order_id", name="ux_orders_tenant_external"),
        Index("ix_orders_tenant_created", "tenant_id", "created_at"),
    )



'''
  订单行：每次订单更新整单删除重建，不逐行合并
'''
class OrderItem(Base):

    __tablename__ = "order_items"

    id:       Mapped[int]       = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("orders.id", ondelete="CASCADE"), index=True, nullable=False,
    )
    product_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("products.id", ondelete="SET NULL"), index=True,
    )

    title:       Mapped[str]           = mapped_column(String(512), nullable=False)
    sku:         Mapped[Optional[str]] = mapped_column(String(255))
    quantity:    Mapped[int]           = mapped_column(Integer, nullable=False, server_default=text("1"))
    price:       Mapped[Decimal]       = mapped_column(Numeric(12, 2), nullable=False)   # 单价
    total_price: Mapped[Decimal]       = mapped_column(Numeric(12, 2), nullable=False)   # 单价 × 数量，两位小数

    order: Mapped[Order] = relationship(back_populates="items")
