"""Mojang 上游源

索引: version_manifest_v2.json（每条带 releaseTime 与 sha1）
条目: 每个版本的 version JSON
附属文件: 新拉取版本引用的资源索引 (assetIndex.url)，按 asset id 去重
"""

from __future__ import annotations

import logging
from typing import Any

from mcmeta.core.models import MojangDetails, Source, VersionIndex, VersionListEntry, VersionRecord
from mcmeta.core.protocols import HttpClient
from mcmeta.sources.base import SourceAdapter
from mcmeta.utils.timeutil import parse_time

logger = logging.getLogger(__name__)

MANIFEST_URL = "https://launchermeta.mojang.com/mc/game/version_manifest_v2.json"

# 能处理的最高 minimumLauncherVersion
MAX_LAUNCHER_VERSION = 21


class MojangSource(SourceAdapter):
    """Minecraft 本体版本"""

    source = Source.MOJANG

    def __init__(self, http: HttpClient, manifest_url: str = MANIFEST_URL) -> None:
        super().__init__(http)
        self.manifest_url = manifest_url

    def _load_remote_index(self) -> VersionIndex:
        data = self._require_dict(self.http.get_json(self.manifest_url), "版本清单")
        versions = self._require_list(data.get("versions"), "versions")

        entries: list[VersionListEntry] = []
        seen: set[str] = set()
        for item in versions:
            item = self._require_dict(item, "版本条目")
            vid, url = item.get("id"), item.get("url")
            if not vid or not url:
                raise self._error(f"版本条目缺少 id 或 url: {item}")
            if vid in seen:
                raise self._error("版本清单中 id 重复", vid)
            seen.add(vid)
            extra: dict[str, Any] = {"time": item.get("time")}
            if item.get("complianceLevel") is not None:
                extra["complianceLevel"] = item["complianceLevel"]
            entries.append(VersionListEntry(
                id=vid,
                source=self.source,
                release_time=parse_time(item.get("releaseTime")),
                sha=item.get("sha1", ""),
                url=url,
                version_type=item.get("type", ""),
                extra=extra,
            ))
        return VersionIndex(
            source=self.source, entries=entries,
            documents={"latest": data.get("latest") or {}},
        )

    def _fetch_entry(self, entry: VersionListEntry) -> VersionRecord:
        payload = self._require_dict(self.http.get_json(entry.url), "版本文件", entry.id)
        vid = payload.get("id")
        if not vid:
            raise self._error("版本文件缺少 id", entry.id)
        if vid != entry.id:
            raise self._error(f"版本文件 id 不一致: {vid}", entry.id)

        launcher_version = payload.get("minimumLauncherVersion")
        if launcher_version is not None:
            if not isinstance(launcher_version, int) or launcher_version > MAX_LAUNCHER_VERSION:
                raise self._error(
                    f"不支持的 minimumLauncherVersion: {launcher_version}"
                    f"（最高 {MAX_LAUNCHER_VERSION}）",
                    entry.id,
                )
        asset_index = payload.get("assetIndex")
        if not isinstance(asset_index, dict) or not asset_index.get("id") or not asset_index.get("url"):
            raise self._error("版本文件缺少 assetIndex", entry.id)

        compliance = payload.get("complianceLevel", entry.extra.get("complianceLevel"))
        details = MojangDetails(
            version_type=payload.get("type") or entry.version_type,
            main_class=payload.get("mainClass"),
            minecraft_arguments=payload.get("minecraftArguments"),
            arguments=payload.get("arguments"),
            asset_index=asset_index,
            assets=payload.get("assets"),
            downloads=payload.get("downloads") or {},
            libraries=payload.get("libraries") or [],
            java_version=payload.get("javaVersion"),
            compliance_level=compliance,
            logging=payload.get("logging"),
            inherits_from=payload.get("inheritsFrom"),
            minimum_launcher_version=launcher_version,
        )
        return VersionRecord(
            source=self.source,
            id=entry.id,
            release_time=parse_time(payload.get("releaseTime")) or entry.release_time,
            details=details,
            raw=payload,
        )

    def fetch_artifacts(self, records: list[VersionRecord]) -> dict[str, dict[str, Any]]:
        """下载资源索引；多个版本共用同一 asset id 时只下载一次"""
        urls: dict[str, str] = {}
        for record in records:
            asset_index = record.details.asset_index  # type: ignore[union-attr]
            urls.setdefault(asset_index["id"], asset_index["url"])

        artifacts: dict[str, dict[str, Any]] = {}
        for asset_id in sorted(urls):
            logger.info("  下载资源索引: %s", asset_id)
            artifacts[asset_id] = self._require_dict(
                self.http.get_json(urls[asset_id]), "资源索引", asset_id,
            )
        return artifacts
