"""
Webhook 处理日志（审计流水）

每个被接收的事件先落一行 RECEIVED，再开始 upsert；进程中途崩了也能在表里看到。
日志写入和实体 upsert 用各自的会话/事务，互不牵连。
日志写失败只打运维日志，不改变已经算好的 HTTP 响应。
"""
from __future__ import annotations

import logging
import uuid
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storelens.core.config import settings
from storelens.db.model.processing_log import ProcessingStatus
from storelens.repository import processing_log_repo

logger = logging.getLogger(__name__)


def truncate_error(message: str, limit: Optional[int] = None) -> str:
    limit = limit or settings.PROCESSING_LOG_ERROR_MAX
    return message[:limit] + "…" if len(message) > limit else message


class ProcessingLog:

    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory

    def open(self, tenant_id: uuid.UUID, topic: str, raw_payload: str) -> Optional[int]:
        """Create the RECEIVED row; returns its id, or None when storage is down."""
        try:
            with self._session_factory() as db:
                entry = processing_log_repo.create_entry(db, tenant_id, topic, raw_payload)
                return entry.id
        except SQLAlchemyError:
            logger.exception("processing_log.open_failed tenant=%s topic=%s", tenant_id, topic)
            return None

    def start(self, log_id: Optional[int]) -> None:
        self._set(log_id, ProcessingStatus.PROCESSING)

    def complete(self, log_id: Optional[int]) -> None:
        self._set(log_id, ProcessingStatus.COMPLETED)

    def fail(self, log_id: Optional[int], error_message: str) -> None:
        self._set(log_id, ProcessingStatus.FAILED, truncate_error(error_message or "unknown error"))

    def _set(self, log_id: Optional[int], status: ProcessingStatus, error_message: Optional[str] = None) -> None:
        if log_id is None:
            return
        try:
            with self._session_factory() as db:
                if not processing_log_repo.set_status(db, log_id, status, error_message):
                    logger.warning("processing_log.missing id=%s status=%s", log_id, status.value)
        except SQLAlchemyError:
            logger.exception("processing_log.update_failed id=%s status=%s", log_id, status.value)
