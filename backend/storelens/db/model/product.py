from __future__ import annotations
import uuid
from decimal import Decimal
from typing import Optional

from sqlalchemy import ForeignKey, Numeric, String, Text, UniqueConstraint, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column
from storelens.db.base import Base, TimestampMixin


"""
  商品表：products/* webhook 写入，订单行里引用到的商品也会被补建
  price / sku 取自第一个 variant
"""
class Product(TimestampMixin, Base):

    __tablename__ = "products"

    id:        Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    tenant_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("tenants.id", ondelete="CASCADE"), index=True, nullable=False,
    )
    external_product_id: Mapped[Optional[str]] = mapped_column(String(64))

    title:       Mapped[str]           = mapped_column(String(512), nullable=False, server_default=text("'Untitled'"))
    handle:      Mapped[Optional[str]] = mapped_column(String(255))
    description: Mapped[Optional[str]] = mapped_column(Text)            # body_html 原样存
    price:       Mapped[Decimal]       = mapped_column(Numeric(12, 2), nullable=False, server_default=text("0"))
    sku:         Mapped[Optional[str]] = mapped_column(String(255))
    vendor:      Mapped[Optional[str]] = mapped_column(String(255))
    status:      Mapped[str]           = mapped_column(String(32), nullable=False, server_default=text("'active'"))


    __table_args__ = (
        UniqueConstraint("tenant_id", "external_product_id", name="ux_products_tenant_external"),
    )
