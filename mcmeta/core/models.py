"""核心数据模型

所有核心数据类集中定义，消除 sources ↔ reconciler ↔ generators 的循环依赖。

模型分三层:
  - 上游索引: VersionListEntry / VersionIndex
  - 镜像记录: VersionRecord（details 为按源区分的标签变体）/ MirrorSnapshot
  - 生成产物: GeneratedMetaFile / IndexFile
"""

from __future__ import annotations

import hashlib
from dataclasses import asdict, dataclass, field, fields
from datetime import datetime
from enum import Enum, IntEnum
from typing import Any, Union

from mcmeta.utils.json_io import canonical_dumps
from mcmeta.utils.timeutil import format_time, parse_time

# =========================================================================
# 枚举
# =========================================================================


class Source(str, Enum):
    """上游数据源"""

    MOJANG = "mojang"
    FORGE = "forge"
    FABRIC = "fabric"
    LITELOADER = "liteloader"

    @classmethod
    def values(cls) -> list[str]:
        return [s.value for s in cls]


class ReconcileState(str, Enum):
    """单个源的同步状态机"""

    IDLE = "idle"
    LOADING_LOCAL = "loading_local"
    FETCHING_REMOTE_INDEX = "fetching_remote_index"
    DIFFING = "diffing"
    FETCHING_DELTAS = "fetching_deltas"
    COMMITTING = "committing"
    DONE = "done"
    FAILED = "failed"


class ExitCode(IntEnum):
    """进程退出码，按失败类别区分"""

    SUCCESS = 0
    RECONCILE_FAILED = 2
    GENERATION_FAILED = 3
    COMMIT_FAILED = 4
    PARTIAL = 5
    INTERRUPTED = 130


# =========================================================================
# 上游索引
# =========================================================================


@dataclass
class VersionListEntry:
    """上游索引中的单个版本条目"""

    id: str
    source: Source
    release_time: datetime | None = None
    sha: str = ""             # 上游提供的内容哈希（Mojang sha1 / Liteloader md5）
    url: str = ""
    version_type: str = ""
    extra: dict[str, Any] = field(default_factory=dict)
    labels: list[str] = field(default_factory=list)   # 索引级标记（latest / recommended），不计入指纹

    def fingerprint(self) -> str:
        """内容指纹: 有上游哈希直接用，否则对条目本身求哈希"""
        if self.sha:
            return self.sha
        body = canonical_dumps({
            "id": self.id, "url": self.url,
            "type": self.version_type, "extra": self.extra,
        })
        return hashlib.sha1(body.encode("utf-8")).hexdigest()  # nosec B324

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "source": self.source.value,
            "release_time": format_time(self.release_time),
            "sha": self.sha,
            "url": self.url,
            "type": self.version_type,
            "extra": self.extra,
            "labels": self.labels,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> VersionListEntry:
        return cls(
            id=str(data["id"]),
            source=Source(data["source"]),
            release_time=parse_time(data.get("release_time")),
            sha=data.get("sha", ""),
            url=data.get("url", ""),
            version_type=data.get("type", ""),
            extra=data.get("extra") or {},
            labels=list(data.get("labels") or []),
        )


@dataclass
class VersionIndex:
    """某个源的版本索引（本地镜像与远端共用）

    documents 保存需要随索引一起落盘的上游原始文档（如 Forge promotions）。
    """

    source: Source
    entries: list[VersionListEntry] = field(default_factory=list)
    documents: dict[str, Any] = field(default_factory=dict)

    def by_id(self) -> dict[str, VersionListEntry]:
        return {e.id: e for e in self.entries}

    def ids(self) -> list[str]:
        return [e.id for e in self.entries]

    def to_dict(self) -> dict[str, Any]:
        return {
            "source": self.source.value,
            "entries": [e.to_dict() for e in self.entries],
            "documents": self.documents,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> VersionIndex:
        return cls(
            source=Source(data["source"]),
            entries=[VersionListEntry.from_dict(e) for e in data.get("entries", [])],
            documents=data.get("documents") or {},
        )


@dataclass
class DeltaPlan:
    """本地与远端索引的差异计划"""

    source: Source
    new: list[str] = field(default_factory=list)
    updated: list[str] = field(default_factory=list)
    ambiguous: list[str] = field(default_factory=list)   # 时间相同但内容不同
    missing: list[str] = field(default_factory=list)      # 索引中有但镜像缺记录
    to_keep: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)      # 仅本地存在

    @property
    def to_fetch(self) -> list[str]:
        return sorted(set(self.new) | set(self.updated) | set(self.ambiguous) | set(self.missing))

    def summary(self) -> dict[str, int]:
        return {
            "new": len(self.new), "updated": len(self.updated),
            "ambiguous": len(self.ambiguous), "missing": len(self.missing),
            "keep": len(self.to_keep), "removed": len(self.removed),
        }


# =========================================================================
# 镜像记录（details 为按源区分的标签变体）
# =========================================================================


@dataclass
class MojangDetails:
    version_type: str = ""
    main_class: str | None = None
    minecraft_arguments: str | None = None
    arguments: dict[str, Any] | None = None
    asset_index: dict[str, Any] | None = None
    assets: str | None = None
    downloads: dict[str, Any] = field(default_factory=dict)
    libraries: list[dict[str, Any]] = field(default_factory=list)
    java_version: dict[str, Any] | None = None
    compliance_level: int | None = None
    logging: dict[str, Any] | None = None
    inherits_from: str | None = None
    minimum_launcher_version: int | None = None


@dataclass
class ForgeDetails:
    mc_version: str
    version: str
    build: int
    branch: str | None = None
    files: list[dict[str, str]] = field(default_factory=list)  # classifier/extension/hash
    uses_installer: bool = False
    jar_info: dict[str, Any] | None = None                    # 安装器或 universal 包的 sha1/sha256/size
    install_profile: dict[str, Any] | None = None
    version_json: dict[str, Any] | None = None
    profile_kind: str = ""                                     # v1 / v1_5 / v2 / legacy / 空=不支持


@dataclass
class FabricDetails:
    component: str                      # intermediary / loader
    maven: str
    version: str
    stable: bool | None = None
    jar_info: dict[str, Any] = field(default_factory=dict)    # sha1/sha256/size
    installer: dict[str, Any] | None = None


@dataclass
class LiteloaderDetails:
    mc_version: str
    version: str
    stream: str = ""
    build: str | None = None
    md5: str = ""
    file: str = ""
    tweak_class: str = ""
    libraries: list[dict[str, Any]] = field(default_factory=list)
    timestamp: int = 0
    snapshot: bool = False
    repo: dict[str, Any] = field(default_factory=dict)


RecordDetails = Union[MojangDetails, ForgeDetails, FabricDetails, LiteloaderDetails]

DETAILS_TYPES: dict[Source, type] = {
    Source.MOJANG: MojangDetails,
    Source.FORGE: ForgeDetails,
    Source.FABRIC: FabricDetails,
    Source.LITELOADER: LiteloaderDetails,
}


def details_from_dict(source: Source, data: dict[str, Any]) -> RecordDetails:
    """按源标签还原 details 变体，忽略未知字段"""
    cls = DETAILS_TYPES[source]
    known = {f.name for f in fields(cls)}
    return cls(**{k: v for k, v in data.items() if k in known})


@dataclass
class VersionRecord:
    """单个版本的完整规范化记录

    raw 保留上游原始载荷，供生成器把未建模字段透传到输出。
    """

    source: Source
    id: str
    release_time: datetime | None
    details: RecordDetails
    raw: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        expected = DETAILS_TYPES[self.source]
        if not isinstance(self.details, expected):
            raise TypeError(
                f"{self.source.value} 记录的 details 类型应为 {expected.__name__}，"
                f"实际为 {type(self.details).__name__}"
            )

    def to_dict(self) -> dict[str, Any]:
        return {
            "source": self.source.value,
            "id": self.id,
            "release_time": format_time(self.release_time),
            "details": asdict(self.details),
            "raw": self.raw,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> VersionRecord:
        source = Source(data["source"])
        return cls(
            source=source,
            id=str(data["id"]),
            release_time=parse_time(data.get("release_time")),
            details=details_from_dict(source, data.get("details") or {}),
            raw=data.get("raw") or {},
        )


@dataclass
class MirrorSnapshot:
    """某个源在镜像中的一致性快照（生成器的唯一输入）"""

    source: Source
    index: VersionIndex
    records: dict[str, VersionRecord] = field(default_factory=dict)

    @property
    def entries(self) -> list[VersionListEntry]:
        return self.index.entries


# =========================================================================
# 生成产物
# =========================================================================


@dataclass
class GeneratedMetaFile:
    """一个输出文件（版本文件 / 包描述 / 索引）"""

    package_id: str
    path: str                   # 相对输出根目录的 posix 路径
    content: dict[str, Any]
    version_id: str = ""
    kind: str = "version"       # version / package / index

    def serialize(self) -> str:
        return canonical_dumps(self.content)

    @property
    def sha256(self) -> str:
        return hashlib.sha256(self.serialize().encode("utf-8")).hexdigest()


@dataclass
class IndexVersion:
    version_id: str
    version_type: str = ""
    release_time: datetime | None = None
    sha256: str = ""
    requires: list[dict[str, Any]] = field(default_factory=list)
    recommended: bool = False
    volatile: bool = False

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "version": self.version_id,
            "type": self.version_type,
            "releaseTime": format_time(self.release_time),
            "sha256": self.sha256,
        }
        if self.requires:
            data["requires"] = self.requires
        if self.recommended:
            data["recommended"] = True
        if self.volatile:
            data["volatile"] = True
        return data


@dataclass
class PackageIndex:
    package_id: str
    name: str
    versions: list[IndexVersion] = field(default_factory=list)
    sha256: str = ""


@dataclass
class IndexFile:
    """顶层索引: 所有包及其有序版本列表"""

    format_version: int
    packages: list[PackageIndex] = field(default_factory=list)

    def package(self, package_id: str) -> PackageIndex | None:
        for p in self.packages:
            if p.package_id == package_id:
                return p
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "formatVersion": self.format_version,
            "packages": [
                {
                    "uid": p.package_id,
                    "name": p.name,
                    "sha256": p.sha256,
                    "versions": [
                        {
                            "version": v.version_id,
                            "type": v.version_type,
                            "releaseTime": format_time(v.release_time),
                        }
                        for v in p.versions
                    ],
                }
                for p in self.packages
            ],
        }


# =========================================================================
# 同步结果
# =========================================================================


@dataclass
class ReconcileResult:
    """单个源一次同步的结果"""

    source: Source
    state: ReconcileState = ReconcileState.IDLE
    plan: DeltaPlan | None = None
    fetched: list[str] = field(default_factory=list)
    artifacts: list[str] = field(default_factory=list)
    failed_ids: list[str] = field(default_factory=list)
    causes: dict[str, str] = field(default_factory=dict)
    skipped_ids: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    error: str = ""
    error_code: str = ""
    transitions: list[str] = field(default_factory=list)
    dry_run: bool = False

    @property
    def success(self) -> bool:
        return self.state == ReconcileState.DONE

    def to_dict(self) -> dict[str, Any]:
        return {
            "source": self.source.value,
            "state": self.state.value,
            "plan": self.plan.summary() if self.plan else None,
            "fetched": self.fetched,
            "artifacts": self.artifacts,
            "failed_ids": self.failed_ids,
            "causes": self.causes,
            "skipped_ids": self.skipped_ids,
            "removed": self.removed,
            "error": self.error,
            "error_code": self.error_code,
            "dry_run": self.dry_run,
        }
