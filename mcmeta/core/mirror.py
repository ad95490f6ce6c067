"""本地镜像存储

目录结构:
    <mirror_dir>/<source>/index.json
    <mirror_dir>/<source>/records/<safe-id>.json
    <mirror_dir>/<source>/artifacts/<safe-id>.json   附属文件（如 Mojang 资源索引）

提交按源分区整体替换:
    1. 复制当前分区到 .staging/<source>，在副本上写入新记录、删除下线记录、写新索引
    2. 当前分区改名为 .rollback/<source>
    3. staging 改名为正式分区
    4. 删除 rollback
任一步失败都恢复原分区并抛 CommitFailure；进程在 2、3 之间崩溃时，
下次启动由 recover() 把 rollback 放回原位。
"""

from __future__ import annotations

import logging
import os
import re
import shutil
from pathlib import Path
from typing import Any

from mcmeta.core.exceptions import CommitFailure, ParseError
from mcmeta.core.models import (
    MirrorSnapshot,
    Source,
    VersionIndex,
    VersionListEntry,
    VersionRecord,
)
from mcmeta.utils.json_io import load_json, save_json

logger = logging.getLogger(__name__)

STAGING_DIR = ".staging"
ARTIFACTS_DIR = "artifacts"
ROLLBACK_DIR = ".rollback"

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._+-]")


def safe_id(entry_id: str) -> str:
    """条目 id 转为安全文件名，避免路径穿越"""
    name = _UNSAFE_CHARS.sub("_", entry_id)
    if name in ("", ".", ".."):
        name = name.replace(".", "_") or "_"
    return name


class LocalMirror:
    """基于本地目录的镜像存储（MirrorStore 实现）"""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    def partition(self, source: Source) -> Path:
        return self.root / source.value

    def _record_path(self, base: Path, entry_id: str) -> Path:
        return base / "records" / f"{safe_id(entry_id)}.json"

    def _artifact_path(self, base: Path, artifact_id: str) -> Path:
        return base / ARTIFACTS_DIR / f"{safe_id(artifact_id)}.json"

    # ---- 读取 ----

    def read_index(self, source: Source) -> VersionIndex:
        data = load_json(self.partition(source) / "index.json")
        if data is None:
            return VersionIndex(source=source)
        try:
            return VersionIndex.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            raise ParseError(f"镜像索引损坏: {source.value} - {e}", source=source.value) from e

    def read_record(self, source: Source, entry_id: str) -> VersionRecord | None:
        data = load_json(self._record_path(self.partition(source), entry_id))
        if data is None:
            return None
        try:
            return VersionRecord.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            raise ParseError(
                f"镜像记录损坏: {source.value}/{entry_id} - {e}",
                source=source.value, entry_id=entry_id,
            ) from e

    def has_record(self, source: Source, entry_id: str) -> bool:
        return self._record_path(self.partition(source), entry_id).exists()

    def read_artifact(self, source: Source, artifact_id: str) -> dict[str, Any] | None:
        return load_json(self._artifact_path(self.partition(source), artifact_id))

    def snapshot(self, source: Source) -> MirrorSnapshot:
        """读取索引及其全部记录；缺失记录跳过并告警"""
        index = self.read_index(source)
        records: dict[str, VersionRecord] = {}
        for entry in index.entries:
            record = self.read_record(source, entry.id)
            if record is None:
                logger.warning("镜像缺少记录: %s/%s", source.value, entry.id)
                continue
            records[entry.id] = record
        return MirrorSnapshot(source=source, index=index, records=records)

    # ---- 提交 ----

    def atomic_write(
        self,
        source: Source,
        entries: list[VersionListEntry],
        records: list[VersionRecord],
        documents: dict[str, Any] | None = None,
        removed: list[str] | None = None,
        artifacts: dict[str, dict[str, Any]] | None = None,
    ) -> None:
        for record in records:
            if record.source != source:
                raise CommitFailure(
                    f"记录源不匹配: {record.source.value}/{record.id} 不属于 {source.value}"
                )

        current = self.partition(source)
        staging = self.root / STAGING_DIR / source.value
        rollback = self.root / ROLLBACK_DIR / source.value

        try:
            self._prepare_staging(current, staging)
            for record in records:
                save_json(self._record_path(staging, record.id), record.to_dict())
            for artifact_id, data in (artifacts or {}).items():
                save_json(self._artifact_path(staging, artifact_id), data)
            for entry_id in removed or []:
                path = self._record_path(staging, entry_id)
                if path.exists():
                    path.unlink()
            index = VersionIndex(source=source, entries=entries, documents=documents or {})
            save_json(staging / "index.json", index.to_dict())
        except OSError as e:
            shutil.rmtree(staging, ignore_errors=True)
            raise CommitFailure(f"镜像暂存失败: {source.value} - {e}") from e

        try:
            self._swap(current, staging, rollback)
        except OSError as e:
            self._restore(current, rollback)
            shutil.rmtree(staging, ignore_errors=True)
            raise CommitFailure(f"镜像提交失败（已回滚）: {source.value} - {e}") from e

        shutil.rmtree(rollback, ignore_errors=True)
        logger.info(
            "镜像已提交: %s (%d 条索引, %d 条新记录, %d 个附属文件, %d 条删除)",
            source.value, len(entries), len(records), len(artifacts or {}), len(removed or []),
        )

    def _prepare_staging(self, current: Path, staging: Path) -> None:
        if staging.exists():
            shutil.rmtree(staging)
        staging.parent.mkdir(parents=True, exist_ok=True)
        if current.exists():
            shutil.copytree(current, staging)
        else:
            (staging / "records").mkdir(parents=True)

    def _swap(self, current: Path, staging: Path, rollback: Path) -> None:
        if rollback.exists():
            shutil.rmtree(rollback)
        rollback.parent.mkdir(parents=True, exist_ok=True)
        current.parent.mkdir(parents=True, exist_ok=True)
        if current.exists():
            os.replace(current, rollback)
        os.replace(staging, current)

    @staticmethod
    def _restore(current: Path, rollback: Path) -> None:
        if rollback.exists() and not current.exists():
            os.replace(rollback, current)

    def recover(self) -> list[str]:
        """恢复中断的提交，清理残留暂存目录"""
        restored: list[str] = []
        rollback_root = self.root / ROLLBACK_DIR
        if rollback_root.exists():
            for rollback in sorted(rollback_root.iterdir()):
                current = self.root / rollback.name
                if current.exists():
                    shutil.rmtree(rollback)
                else:
                    os.replace(rollback, current)
                    restored.append(rollback.name)
                    logger.warning("镜像分区已从中断的提交中恢复: %s", rollback.name)
        shutil.rmtree(self.root / STAGING_DIR, ignore_errors=True)
        return restored
