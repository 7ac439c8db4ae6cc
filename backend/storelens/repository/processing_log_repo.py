from __future__ import annotations

import uuid
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from storelens.db.model.processing_log import ProcessingLogEntry, ProcessingStatus


def create_entry(
    db: Session,
    tenant_id: uuid.UUID,
    topic: str,
    raw_payload: str,
    status: ProcessingStatus = ProcessingStatus.RECEIVED,
) -> ProcessingLogEntry:
    entry = ProcessingLogEntry(
        tenant_id=tenant_id,
        event_topic=topic,
        raw_payload=raw_payload,
        status=status,
    )
    db.add(entry)
    db.commit()
    db.refresh(entry)
    return entry


def set_status(
    db: Session,
    log_id: int,
    status: ProcessingStatus,
    error_message: Optional[str] = None,
) -> bool:
    entry = db.get(ProcessingLogEntry, log_id)
    if entry is None:
        return False
    entry.status = status
    entry.error_message = error_message
    db.commit()
    return True


def get_entry(db: Session, log_id: int) -> Optional[ProcessingLogEntry]:
    return db.get(ProcessingLogEntry, log_id)


def list_recent(db: Session, tenant_id: uuid.UUID, limit: int = 5) -> List[ProcessingLogEntry]:
    return list(
        db.execute(
            select(ProcessingLogEntry)
            .where(ProcessingLogEntry.tenant_id == tenant_id)
            .order_by(ProcessingLogEntry.created_at.desc(), ProcessingLogEntry.id.desc())
            .limit(limit)
        ).scalars()
    )


def count_for_tenant(db: Session, tenant_id: uuid.UUID) -> int:
    return db.execute(
        select(func.count()).select_from(ProcessingLogEntry).where(ProcessingLogEntry.tenant_id == tenant_id)
    ).scalar_one()
