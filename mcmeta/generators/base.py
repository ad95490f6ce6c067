"""生成器公共部分

职责:
- 定义 generate(snapshot) 接口（纯函数，只依赖镜像快照）
- 版本文件 / package.json 的公共字段与序列化约定
- 记录被跳过的条目，汇总到运行报告

输出格式为 PolyMC meta v1: 值为 None 的字段不输出，时间统一为 UTC 秒级。
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Iterable

from mcmeta.core.models import GeneratedMetaFile, MirrorSnapshot, Source, VersionRecord
from mcmeta.utils.timeutil import format_time

logger = logging.getLogger(__name__)

FORMAT_VERSION = 1


def prune(data: dict[str, Any]) -> dict[str, Any]:
    """去掉值为 None 的顶层字段"""
    return {k: v for k, v in data.items() if v is not None}


def version_path(uid: str, version: str) -> str:
    name = version.replace("/", "_").replace("\\", "_")
    return f"{uid}/{name}.json"


def passthrough(raw: dict[str, Any], mapped: Iterable[str]) -> dict[str, Any]:
    """上游载荷中未映射到输出字段的部分，原样保留"""
    skip = set(mapped)
    return {k: v for k, v in raw.items() if k not in skip}


@dataclass
class GeneratorOutput:
    files: list[GeneratedMetaFile] = field(default_factory=list)
    skipped: list[dict[str, str]] = field(default_factory=list)

    def skip(self, version_id: str, reason: str) -> None:
        self.skipped.append({"id": version_id, "reason": reason})
        logger.info("  跳过 %s: %s", version_id, reason)


class Generator(ABC):
    """单个上游源的生成器"""

    source: Source

    def generate(self, snapshot: MirrorSnapshot) -> list[GeneratedMetaFile]:
        return self.run(snapshot).files

    def run(self, snapshot: MirrorSnapshot) -> GeneratorOutput:
        """生成全部文件并附带跳过明细；按索引顺序遍历，保证结果稳定"""
        if snapshot.source != self.source:
            raise ValueError(f"{type(self).__name__} 不能处理 {snapshot.source.value} 快照")
        out = GeneratorOutput()
        for entry in snapshot.entries:
            record = snapshot.records.get(entry.id)
            if record is None:
                out.skip(entry.id, "镜像中缺少记录")
                continue
            self._render_version(record, snapshot, out)
        self._render_packages(snapshot, out)
        logger.info(
            "  %s 生成完成: %d 个文件, 跳过 %d",
            self.source.value, len(out.files), len(out.skipped),
        )
        return out

    @abstractmethod
    def _render_version(
        self, record: VersionRecord, snapshot: MirrorSnapshot, out: GeneratorOutput,
    ) -> None:
        """生成单个版本文件，不支持的版本调用 out.skip()"""

    @abstractmethod
    def _render_packages(self, snapshot: MirrorSnapshot, out: GeneratorOutput) -> None:
        """生成本源各包的 package.json"""

    # ---- 公共构造 ----

    @staticmethod
    def version_file(
        uid: str,
        name: str,
        version: str,
        record: VersionRecord,
        fields: dict[str, Any],
        extra: dict[str, Any],
    ) -> GeneratedMetaFile:
        content: dict[str, Any] = {
            "formatVersion": FORMAT_VERSION,
            "name": name,
            "uid": uid,
            "version": version,
            "releaseTime": format_time(record.release_time),
        }
        content.update(fields)
        if extra:
            content["passthrough"] = extra
        return GeneratedMetaFile(
            package_id=uid,
            path=version_path(uid, version),
            content=prune(content),
            version_id=version,
            kind="version",
        )

    @staticmethod
    def package_file(
        uid: str,
        name: str,
        *,
        recommended: list[str] | None = None,
        authors: list[str] | None = None,
        description: str | None = None,
        project_url: str | None = None,
    ) -> GeneratedMetaFile:
        content = prune({
            "formatVersion": FORMAT_VERSION,
            "name": name,
            "uid": uid,
            "recommended": recommended,
            "authors": authors,
            "description": description,
            "projectUrl": project_url,
        })
        return GeneratedMetaFile(
            package_id=uid, path=f"{uid}/package.json", content=content, kind="package",
        )
