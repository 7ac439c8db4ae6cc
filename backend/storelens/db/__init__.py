# 导出入口，给脚本/临时建表用

from .session import engine, SessionLocal, get_db, get_session_factory, dispose_engine
from storelens.db.model import *  # 确保把所有模型加载进 Base.metadata
from .base import Base


"""
    空库快速建表（本项目不维护迁移脚本）：
        python -c "from storelens.db import create_all; create_all()"
"""
def create_all(bind=None) -> None:
    Base.metadata.create_all(bind=bind or engine)
