"""Fabric 上游源

两个组件: intermediary（映射）与 loader（加载器），索引来自 meta.fabricmc.net/v2。
条目 id 形如 ``loader:0.14.21`` / ``intermediary:1.20.1``。
拉取时下载 maven jar 计算哈希，发布时间取 jar 内最新条目时间；
loader 额外下载安装器 JSON。
stable 作为索引标记保存，上游调整稳定版时不会触发重新下载。
"""

from __future__ import annotations

import logging

from mcmeta.core.exceptions import ParseError
from mcmeta.core.gradle import GradleSpecifier
from mcmeta.core.models import FabricDetails, Source, VersionIndex, VersionListEntry, VersionRecord
from mcmeta.core.protocols import HttpClient
from mcmeta.sources.base import SourceAdapter
from mcmeta.utils.archive import file_info, newest_entry_time

logger = logging.getLogger(__name__)

META_URL = "https://meta.fabricmc.net/v2/versions"
MAVEN_URL = "https://maven.fabricmc.net/"

COMPONENTS = ("intermediary", "loader")
LABEL_STABLE = "stable"

# 索引条目中单独映射的键，其余键原样保存在 extra["upstream"]
_ITEM_MAPPED = ("maven", "version", "stable")


def get_maven_url(maven_key: str, server: str = MAVEN_URL, ext: str = ".jar") -> str:
    """maven 坐标转下载地址，ext 含点号（.jar / .json）"""
    group, artifact, version = maven_key.split(":", 2)
    return f"{server}{group.replace('.', '/')}/{artifact}/{version}/{artifact}-{version}{ext}"


def entry_id(component: str, version: str) -> str:
    return f"{component}:{version}"


class FabricSource(SourceAdapter):
    """Fabric intermediary 与 loader"""

    source = Source.FABRIC
    depends_on = (Source.MOJANG,)

    def __init__(
        self, http: HttpClient, meta_url: str = META_URL, maven_url: str = MAVEN_URL,
    ) -> None:
        super().__init__(http)
        self.meta_url = meta_url.rstrip("/")
        self.maven_url = maven_url

    def _load_remote_index(self) -> VersionIndex:
        entries: list[VersionListEntry] = []
        for component in COMPONENTS:
            items = self._require_list(
                self.http.get_json(f"{self.meta_url}/{component}"), f"{component} 列表",
            )
            for item in items:
                item = self._require_dict(item, f"{component} 条目")
                maven, version = item.get("maven"), item.get("version")
                if not maven or not version:
                    raise self._error(f"{component} 条目缺少 maven 或 version: {item}")
                try:
                    GradleSpecifier.parse(maven)
                except ParseError as e:
                    raise self._error(str(e), entry_id(component, version)) from e
                entries.append(VersionListEntry(
                    id=entry_id(component, version),
                    source=self.source,
                    url=get_maven_url(maven, self.maven_url, ".jar"),
                    version_type=component,
                    extra={
                        "component": component,
                        "maven": maven,
                        "version": version,
                        "upstream": {k: v for k, v in item.items() if k not in _ITEM_MAPPED},
                    },
                    labels=[LABEL_STABLE] if item.get("stable") else [],
                ))
        return VersionIndex(source=self.source, entries=entries)

    def _fetch_entry(self, entry: VersionListEntry) -> VersionRecord:
        component = entry.extra["component"]
        maven = entry.extra["maven"]
        data = self.http.get(entry.url)
        release_time = newest_entry_time(data, entry.id)

        installer = None
        if component == "loader":
            installer = self._require_dict(
                self.http.get_json(get_maven_url(maven, self.maven_url, ".json")),
                "安装器 JSON", entry.id,
            )

        details = FabricDetails(
            component=component,
            maven=maven,
            version=entry.extra["version"],
            stable=LABEL_STABLE in entry.labels,
            jar_info=file_info(data),
            installer=installer,
        )
        return VersionRecord(
            source=self.source,
            id=entry.id,
            release_time=release_time,
            details=details,
            raw={"index": dict(entry.extra.get("upstream") or {}), "installer": installer},
        )
