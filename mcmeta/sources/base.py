"""上游源适配器 - Strategy Pattern

职责:
- 定义四个上游源共同的 拉取索引 / 差异 / 拉取单条 / 附属文件 接口
- 缓存最近一次拉取的远端索引，fetch() 据此定位条目

适配器不直接写镜像，提交由 Reconciler 负责。
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

from mcmeta.core.diff import TIE_BREAK_REFETCH, compute_delta
from mcmeta.core.exceptions import ParseError
from mcmeta.core.models import DeltaPlan, Source, VersionIndex, VersionListEntry, VersionRecord
from mcmeta.core.protocols import HttpClient

logger = logging.getLogger(__name__)


class SourceAdapter(ABC):
    """上游源适配器公共接口"""

    source: Source
    depends_on: tuple[Source, ...] = ()

    def __init__(self, http: HttpClient) -> None:
        self.http = http
        self._remote: VersionIndex | None = None

    def fetch_remote_index(self) -> VersionIndex:
        """拉取远端索引；网络或格式错误直接上抛，源立即失败"""
        index = self._load_remote_index()
        self._remote = index
        logger.info("  %s 远端索引: %d 个条目", self.source.value, len(index.entries))
        return index

    def reconcile(
        self,
        local: VersionIndex,
        remote: VersionIndex,
        tie_break: str = TIE_BREAK_REFETCH,
    ) -> DeltaPlan:
        return compute_delta(local, remote, tie_break)

    def fetch(self, entry_id: str) -> VersionRecord:
        """拉取单个条目的完整记录"""
        return self._fetch_entry(self._entry(entry_id))

    def fetch_artifacts(self, records: list[VersionRecord]) -> dict[str, dict[str, Any]]:
        """本轮新拉取记录引用的附属文件 (artifact id → JSON)，与记录一同提交

        全部条目拉取成功后才调用；默认没有附属文件。
        """
        return {}

    def _entry(self, entry_id: str) -> VersionListEntry:
        if self._remote is None:
            raise ParseError(
                f"{self.source.value}: 尚未拉取远端索引", source=self.source.value, entry_id=entry_id,
            )
        entry = self._remote.by_id().get(entry_id)
        if entry is None:
            raise ParseError(
                f"{self.source.value}: 远端索引中没有 {entry_id}",
                source=self.source.value, entry_id=entry_id,
            )
        return entry

    def _error(self, message: str, entry_id: str = "") -> ParseError:
        prefix = f"{self.source.value}/{entry_id}" if entry_id else self.source.value
        return ParseError(f"{prefix}: {message}", source=self.source.value, entry_id=entry_id)

    def _require_dict(self, value: Any, what: str, entry_id: str = "") -> dict[str, Any]:
        if not isinstance(value, dict):
            raise self._error(f"{what} 应为 JSON 对象，实际为 {type(value).__name__}", entry_id)
        return value

    def _require_list(self, value: Any, what: str, entry_id: str = "") -> list[Any]:
        if not isinstance(value, list):
            raise self._error(f"{what} 应为 JSON 数组，实际为 {type(value).__name__}", entry_id)
        return value

    @abstractmethod
    def _load_remote_index(self) -> VersionIndex:
        """从上游构建远端索引"""

    @abstractmethod
    def _fetch_entry(self, entry: VersionListEntry) -> VersionRecord:
        """拉取并规范化单个条目"""
