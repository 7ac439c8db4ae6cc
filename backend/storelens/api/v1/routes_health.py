# 健康检查（含 DB 探活）

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storelens.db.session import get_db

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health")
def health(db: Session = Depends(get_db)):
    # 轻量 DB ping（不依赖迁移）
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.exception("health.db_unreachable")
        return JSONResponse(status_code=503, content={"status": "unhealthy", "database": "unreachable"})
    return {"status": "ok", "database": "ok"}
