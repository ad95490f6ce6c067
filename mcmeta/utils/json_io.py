"""JSON 文件统一读写工具

生成文件要求逐字节可复现，因此所有输出统一经过 canonical_dumps:
键排序、两空格缩进、UTF-8 原样输出、末尾换行。
写入统一走 atomic_write（临时文件 + rename），防止中途崩溃导致文件损坏。
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


def canonical_dumps(data: Any) -> str:
    """稳定序列化: 同一数据在任意运行中得到相同文本"""
    return json.dumps(data, indent=2, sort_keys=True, ensure_ascii=False) + "\n"


def atomic_write(path: Path, content: str | bytes) -> None:
    """原子写入文件：先写临时文件再 rename

    实现:
        1. 在同目录创建临时文件
        2. 写入内容到临时文件
        3. os.replace 原子替换目标文件
        4. 如果失败，清理临时文件后重新抛出
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=str(path.parent), suffix=".tmp")
    data = content.encode("utf-8") if isinstance(content, str) else content
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.replace(tmp, str(path))
    except Exception:
        try:
            os.unlink(tmp)
        except OSError:
            pass
        raise


def save_json(path: str | Path, data: Any) -> None:
    """以 canonical 格式原子写入 JSON 文件"""
    atomic_write(Path(path), canonical_dumps(data))


def load_json(path: str | Path) -> Any:
    """读取 JSON 文件，文件不存在返回 None"""
    p = Path(path)
    if not p.exists():
        return None
    with open(p, encoding="utf-8") as f:
        return json.load(f)
