# 通用“查到就改、查不到就插（冲突转更新）”写入模板

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Type, TypeVar

from sqlalchemy import func, select
from sqlalchemy.orm import Session
from sqlalchemy.sql.elements import ColumnElement

from storelens.core.errors import StorageConflict
from storelens.db.base import Base

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=Base)


def dialect_insert(db: Session, model: Type[Base]):
    """
    Return the dialect-specific ``insert()`` construct for ``model`` so the caller
    can use ``on_conflict_do_update``. PostgreSQL in production, SQLite in tests.
    """
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    elif dialect == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    else:
        raise NotImplementedError(f"upsert not supported for dialect {dialect!r}")
    return insert(model)


def find_existing(db: Session, model: Type[M], lookup: Dict[str, Any]) -> Optional[M]:
    # lookup 里的 None 会被 filter_by 编译成 IS NULL（访客客户按邮箱查时用到）
    return db.execute(select(model).filter_by(**lookup).limit(1)).scalar_one_or_none()


def insert_or_update(
    db: Session,
    model: Type[M],
    *,
    values: Dict[str, Any],
    changes: Dict[str, Any],
    conflict_keys: List[str],
    index_where: Optional[ColumnElement] = None,
) -> M:
    """
    INSERT ... ON CONFLICT (conflict_keys) DO UPDATE SET <changes>, updated_at = now()
    RETURNING id

    并发下两个 webhook 同时“没查到”再各自插入时，后到的那个在这里被转成更新，
    最终只剩一行，不抛唯一键异常。冲突时只覆盖本次 payload 里出现的字段。
    """
    stmt = dialect_insert(db, model).values(**values)

    updates = {col: getattr(stmt.excluded, col) for col in changes if col not in conflict_keys}
    updates["updated_at"] = func.now()

    stmt = stmt.on_conflict_do_update(
        index_elements=conflict_keys,
        index_where=index_where,
        set_=updates,
    ).returning(model.id)

    row_id = db.execute(stmt).scalar_one_or_none()
    if row_id is None:
        raise StorageConflict(f"{model.__tablename__}: upsert on {conflict_keys} returned no row")

    # 同一 session 里可能已有旧快照，强制刷新
    return db.execute(
        select(model).where(model.id == row_id).execution_options(populate_existing=True)
    ).scalar_one()


def write_entity(
    db: Session,
    model: Type[M],
    *,
    lookup: Dict[str, Any],
    changes: Dict[str, Any],
    defaults: Dict[str, Any],
    conflict_keys: Optional[List[str]] = None,
    index_where: Optional[ColumnElement] = None,
) -> M:
    """
    Tenant-scoped upsert of one entity row.

    - ``lookup``: columns identifying the row (always includes ``tenant_id``).
    - ``changes``: only the fields present in the inbound payload; absent fields
      never overwrite what is stored.
    - ``defaults``: create-time values for fields the payload did not carry.
    """
    existing = find_existing(db, model, lookup)
    if existing is not None:
        for field, value in changes.items():
            setattr(existing, field, value)
        db.flush()
        return existing

    keys = conflict_keys or list(lookup)
    values = {**defaults, **changes, **lookup}
    try:
        row = insert_or_update(
            db,
            model,
            values=values,
            changes=changes,
            conflict_keys=keys,
            index_where=index_where,
        )
    except StorageConflict:
        # 冲突行已被别的事务写入：再查一次，按普通更新处理
        existing = find_existing(db, model, lookup)
        if existing is None:
            raise
        logger.info("upsert.conflict_retry table=%s key=%s", model.__tablename__, {k: lookup[k] for k in keys})
        for field, value in changes.items():
            setattr(existing, field, value)
        db.flush()
        return existing

    logger.debug("upsert.create table=%s key=%s", model.__tablename__, {k: lookup[k] for k in keys})
    return row
