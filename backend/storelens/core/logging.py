"""
进程级日志配置（API 进程和 scripts/ 共用）

业务日志统一写成 ``event.name key=value ...``，这里只管输出到哪、什么级别。
"""
import logging
import os
import sys
from typing import Optional

LOG_FORMAT = "%(asctime)s %(levelname)-7s [%(name)s] %(message)s"

# 第三方库只在出问题时说话
_QUIET_LOGGERS = ("sqlalchemy.engine", "sqlalchemy.pool", "urllib3")


def configure_logging(level: Optional[str] = None) -> logging.Logger:
    """Attach a stdout handler once and apply ``level`` (default: $LOG_LEVEL, then INFO)."""
    resolved = (level or os.getenv("LOG_LEVEL") or "INFO").upper()
    root = logging.getLogger()

    # uvicorn / pytest 已经挂了 handler 时只调级别，不重复输出
    if root.handlers:
        root.setLevel(resolved)
    else:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
        root.setLevel(resolved)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    logging.captureWarnings(True)
    return logging.getLogger("storelens")
