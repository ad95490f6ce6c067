"""输出目录写入

职责:
- 全部包与顶层文件先写入暂存目录，输出目录此时不变
- 再逐个整目录替换，被替换 / 删除的内容移入 rollback
- 删除本轮未生成、但带 package.json 的旧包目录
- 替换中任一步失败，按逆序从 rollback 恢复全部已改动路径
生成全部在内存完成后才调用本模块，之前任何失败都不会触碰输出目录。
"""

from __future__ import annotations

import logging
import os
import shutil
from collections import defaultdict
from pathlib import Path

from mcmeta.core.exceptions import CommitFailure
from mcmeta.core.models import GeneratedMetaFile

logger = logging.getLogger(__name__)

STAGING_DIR = ".mcmeta-staging"
ROLLBACK_DIR = ".mcmeta-rollback"
# 顶层文件在暂存 / 回滚目录中的子目录；以 "." 开头，不会与包目录重名
TOP_LEVEL_DIR = ".top"


class OutputWriter:
    """把一轮生成结果落盘到输出目录（整体生效或整体不变）"""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    def managed_packages(self) -> list[str]:
        """输出目录中由本工具维护的包（含 package.json 的顶层目录）"""
        if not self.root.exists():
            return []
        return sorted(
            p.name for p in self.root.iterdir()
            if p.is_dir() and not p.name.startswith(".") and (p / "package.json").exists()
        )

    def write(self, files: list[GeneratedMetaFile]) -> list[str]:
        """写出全部文件，返回受影响的相对路径（供 git stage）"""
        by_package: dict[str, list[GeneratedMetaFile]] = defaultdict(list)
        top_level: list[GeneratedMetaFile] = []
        for f in files:
            if f.package_id:
                by_package[f.package_id].append(f)
            else:
                top_level.append(f)

        self.root.mkdir(parents=True, exist_ok=True)
        stale = [uid for uid in self.managed_packages() if uid not in by_package]
        staging = self.root / STAGING_DIR
        rollback = self.root / ROLLBACK_DIR

        try:
            try:
                self._stage_all(staging, rollback, by_package, top_level)
            except OSError as e:
                raise CommitFailure(f"输出暂存失败，输出目录未改动: {e}") from e

            # (相对路径, 备份位置, 是否换入了新内容)
            swapped: list[tuple[str, Path, bool]] = []
            try:
                for uid in sorted(by_package):
                    swapped.append(self._swap(uid, staging / uid, rollback / uid))
                for uid in stale:
                    swapped.append(self._swap(uid, None, rollback / uid))
                    logger.info("  已删除过期包: %s", uid)
                for f in top_level:
                    swapped.append(self._swap(
                        f.path, staging / TOP_LEVEL_DIR / f.path, rollback / TOP_LEVEL_DIR / f.path,
                    ))
            except OSError as e:
                self._restore(swapped)
                raise CommitFailure(f"输出写入失败（已回滚）: {e}") from e
        finally:
            shutil.rmtree(staging, ignore_errors=True)

        shutil.rmtree(rollback, ignore_errors=True)
        logger.info(
            "输出写入完成: %d 个包, %d 个文件, 删除 %d 个过期包",
            len(by_package), len(files), len(stale),
        )
        return [rel for rel, _, _ in swapped]

    def _stage_all(
        self,
        staging: Path,
        rollback: Path,
        by_package: dict[str, list[GeneratedMetaFile]],
        top_level: list[GeneratedMetaFile],
    ) -> None:
        for path in (staging, rollback):
            if path.exists():
                shutil.rmtree(path)
        staging.mkdir(parents=True)
        for uid in sorted(by_package):
            prefix = f"{uid}/"
            for f in by_package[uid]:
                if not f.path.startswith(prefix):
                    raise CommitFailure(f"文件路径不属于包 {uid}: {f.path}")
                self._stage_file(staging / uid / f.path[len(prefix):], f)
        for f in top_level:
            self._stage_file(staging / TOP_LEVEL_DIR / f.path, f)

    @staticmethod
    def _stage_file(target: Path, f: GeneratedMetaFile) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(f.serialize(), encoding="utf-8")

    def _swap(self, rel: str, staged: Path | None, backup: Path) -> tuple[str, Path, bool]:
        """当前内容移入 backup，再换入 staged（None 表示只删除）"""
        current = self.root / rel
        if current.exists():
            backup.parent.mkdir(parents=True, exist_ok=True)
            os.replace(current, backup)
        if staged is not None:
            current.parent.mkdir(parents=True, exist_ok=True)
            try:
                os.replace(staged, current)
            except OSError:
                if backup.exists():
                    os.replace(backup, current)
                raise
        return rel, backup, staged is not None

    def _restore(self, swapped: list[tuple[str, Path, bool]]) -> None:
        """逆序撤销已完成的替换；恢复失败时保留 rollback 目录供人工处理"""
        for rel, backup, replaced in reversed(swapped):
            current = self.root / rel
            try:
                if replaced and current.is_dir():
                    shutil.rmtree(current)
                elif replaced and current.exists():
                    current.unlink()
                if backup.exists():
                    os.replace(backup, current)
            except OSError as e:
                logger.error("回滚失败: %s - %s（备份保留在 %s）", rel, e, self.root / ROLLBACK_DIR)
                raise CommitFailure(f"输出回滚失败，需人工恢复: {rel} - {e}") from e
        logger.warning("输出写入失败，已恢复 %d 个路径", len(swapped))
