"""时间解析与格式化

上游时间格式五花八门（ISO 8601 带 Z / 带偏移、Unix 秒、字符串秒），
统一解析为 UTC datetime；输出统一格式化为 YYYY-MM-DDTHH:MM:SS+00:00，
保证生成文件逐字节稳定。
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

OUTPUT_FORMAT = "%Y-%m-%dT%H:%M:%S+00:00"


def parse_time(value: Any) -> datetime | None:
    """解析上游时间值，无法识别时返回 None"""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, bool):
        return None
    elif isinstance(value, (int, float)):
        dt = datetime.fromtimestamp(value, tz=timezone.utc)
    elif isinstance(value, str):
        text = value.strip()
        if text.isdigit():
            dt = datetime.fromtimestamp(int(text), tz=timezone.utc)
        else:
            if text.endswith("Z"):
                text = text[:-1] + "+00:00"
            try:
                dt = datetime.fromisoformat(text)
            except ValueError:
                return None
    else:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).replace(microsecond=0)


def format_time(dt: datetime | None) -> str | None:
    """格式化为固定 UTC 文本，None 原样返回"""
    if dt is None:
        return None
    return dt.astimezone(timezone.utc).strftime(OUTPUT_FORMAT)
