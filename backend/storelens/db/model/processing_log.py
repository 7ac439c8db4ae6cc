from __future__ import annotations
import enum
import uuid
from typing import Optional

from sqlalchemy import Enum, ForeignKey, Index, Integer, String, Text, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column
from storelens.db.base import Base, TimestampMixin


class ProcessingStatus(str, enum.Enum):
    RECEIVED = "RECEIVED"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


"""
  webhook 处理日志（审计流水）
  每次投递一行，只追加不删除；raw_payload 保存收到的原始 body
"""
class ProcessingLogEntry(TimestampMixin, Base):

    __tablename__ = "processing_log"

    id:        Mapped[int]       = mapped_column(Integer, primary_key=True, autoincrement=True)
    tenant_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("tenants.id", ondelete="CASCADE"), index=True, nullable=False,
    )

    event_topic: Mapped[str] = mapped_column(String(128), nullable=False, server_default=text("''"))
    raw_payload: Mapped[str] = mapped_column(Text, nullable=False)

    status: Mapped[ProcessingStatus] = mapped_column(
        Enum(ProcessingStatus, name="processing_status", native_enum=False, length=16),
        nullable=False,
        default=ProcessingStatus.RECEIVED,
    )
    error_message: Mapped[Optional[str]] = mapped_column(Text)   # 截断后的错误信息


    __table_args__ = (
        Index("ix_processing_log_tenant_created", "tenant_id", "created_at"),
        Index("ix_processing_log_status", "status", "created_at"),
    )
