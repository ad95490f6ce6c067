"""领域协议定义

集中定义核心流程与外部协作者之间的接口契约（Protocol），
核心流程只依赖这些抽象，具体实现（urllib / 本地目录 / git）可替换。

使用 typing.Protocol 而非 ABC，测试中的内存实现无需继承即可满足协议。
"""

from __future__ import annotations

from typing import Any, Protocol

from mcmeta.core.models import MirrorSnapshot, Source, VersionIndex, VersionListEntry, VersionRecord

# =========================================================================
# HTTP 协议
# =========================================================================


class HttpClient(Protocol):
    """HTTP 客户端协议

    超时 / 重试 / 退避由实现负责，重试耗尽后抛 NetworkError。
    """

    def get(self, url: str) -> bytes:
        """下载原始字节"""
        ...

    def get_json(self, url: str) -> Any:
        """下载并解析 JSON，格式错误抛 ParseError"""
        ...


# =========================================================================
# 镜像存储协议
# =========================================================================


class MirrorStore(Protocol):
    """本地镜像存储协议

    以 (source, id) 为键；atomic_write 整体替换一个源分区，要么全部生效要么不变。
    """

    def read_index(self, source: Source) -> VersionIndex:
        """读取本地索引，分区不存在时返回空索引"""
        ...

    def read_record(self, source: Source, entry_id: str) -> VersionRecord | None:
        """读取单条记录，不存在返回 None"""
        ...

    def has_record(self, source: Source, entry_id: str) -> bool:
        """记录文件是否存在（不解析内容）"""
        ...

    def read_artifact(self, source: Source, artifact_id: str) -> dict[str, Any] | None:
        """读取附属文件，不存在返回 None"""
        ...

    def atomic_write(
        self,
        source: Source,
        entries: list[VersionListEntry],
        records: list[VersionRecord],
        documents: dict[str, Any] | None = None,
        removed: list[str] | None = None,
        artifacts: dict[str, dict[str, Any]] | None = None,
    ) -> None:
        """原子提交: 新索引 + 拉取到的记录 + 附属文件 + 删除下线条目"""
        ...

    def snapshot(self, source: Source) -> MirrorSnapshot:
        """读取分区的一致性快照"""
        ...

    def recover(self) -> list[str]:
        """恢复上次中断的提交，返回被恢复的源"""
        ...


# =========================================================================
# 输出仓库协议
# =========================================================================


class OutputRepository(Protocol):
    """输出仓库协议（版本控制抽象）"""

    def checkout(self, branch: str) -> None:
        """切换到目标分支"""
        ...

    def hard_reset(self) -> None:
        """丢弃工作区内所有未提交改动"""
        ...

    def stage(self, paths: list[str]) -> None:
        """暂存给定路径（相对仓库根目录）"""
        ...

    def has_changes(self) -> bool:
        """工作区或暂存区是否存在改动"""
        ...

    def commit(self, message: str) -> bool:
        """提交暂存内容，无改动时返回 False"""
        ...
