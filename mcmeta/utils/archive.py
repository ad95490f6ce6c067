"""jar / zip 包检查工具

上游 jar 只在内存中检查，不落盘:
  - 计算 sha1 / sha256 / size
  - 读取包内 JSON 文件
  - 取所有条目中最新的修改时间作为发布时间
"""

from __future__ import annotations

import hashlib
import io
import json
import logging
import zipfile
from datetime import datetime, timezone
from typing import Any

from mcmeta.core.exceptions import ParseError

logger = logging.getLogger(__name__)


def file_info(data: bytes) -> dict[str, Any]:
    return {
        "sha1": hashlib.sha1(data).hexdigest(),  # nosec B324
        "sha256": hashlib.sha256(data).hexdigest(),
        "size": len(data),
    }


def _open(data: bytes, label: str) -> zipfile.ZipFile:
    try:
        return zipfile.ZipFile(io.BytesIO(data))
    except zipfile.BadZipFile as e:
        raise ParseError(f"不是有效的 zip/jar 包: {label}") from e


def newest_entry_time(data: bytes, label: str = "") -> datetime | None:
    """包内条目的最新修改时间（按 UTC 解释），空包返回 None"""
    with _open(data, label) as zf:
        stamps = [datetime(*info.date_time, tzinfo=timezone.utc) for info in zf.infolist()]
    return max(stamps) if stamps else None


def read_json_member(data: bytes, member: str, label: str = "") -> Any | None:
    """读取包内 JSON 文件，条目不存在返回 None，内容非法抛 ParseError"""
    with _open(data, label) as zf:
        try:
            raw = zf.read(member)
        except KeyError:
            return None
    try:
        return json.loads(raw)
    except ValueError as e:
        raise ParseError(f"{label}: {member} 不是有效 JSON - {e}") from e
