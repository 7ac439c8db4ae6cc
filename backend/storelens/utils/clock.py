from __future__ import annotations
from datetime import datetime, timezone


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value) -> datetime | None:
    """
    平台时间戳 → datetime。支持 "2024-01-01T10:00:00-05:00"、结尾 "Z"、纯日期 "2024-01-01"。
    空值返回 None；格式不对抛 ValueError。
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)
