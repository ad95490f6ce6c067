"""Liteloader 上游源

单一索引 versions.json 已包含全部版本信息:
    versions.<mc>.artefacts["com.mumfrey:liteloader"].<key>   正式版（跳过 latest 别名）
    versions.<mc>.snapshots["com.mumfrey:liteloader"].<key>   快照版
拉取单条时直接从已拉取的索引中取出，不产生额外网络请求。
"""

from __future__ import annotations

import logging
from typing import Any

from mcmeta.core.models import LiteloaderDetails, Source, VersionIndex, VersionListEntry, VersionRecord
from mcmeta.core.protocols import HttpClient
from mcmeta.sources.base import SourceAdapter
from mcmeta.utils.timeutil import parse_time

logger = logging.getLogger(__name__)

VERSIONS_URL = "https://dl.liteloader.com/versions/versions.json"
ARTIFACT_KEY = "com.mumfrey:liteloader"


class LiteloaderSource(SourceAdapter):
    """LiteLoader 加载器"""

    source = Source.LITELOADER
    depends_on = (Source.MOJANG,)

    def __init__(self, http: HttpClient, versions_url: str = VERSIONS_URL) -> None:
        super().__init__(http)
        self.versions_url = versions_url

    def _load_remote_index(self) -> VersionIndex:
        data = self._require_dict(self.http.get_json(self.versions_url), "versions.json")
        versions = self._require_dict(data.get("versions") or {}, "versions")

        entries: list[VersionListEntry] = []
        seen: set[str] = set()
        for mc_version in sorted(versions):
            mc_entry = self._require_dict(versions[mc_version], f"MC {mc_version}")
            repo = mc_entry.get("repo") or {}
            candidates: list[tuple[dict[str, Any], bool, list[Any]]] = []

            artefacts = (mc_entry.get("artefacts") or {}).get(ARTIFACT_KEY) or {}
            for key in sorted(artefacts):
                if key == "latest":
                    continue
                candidates.append((artefacts[key], False, []))

            snapshots = mc_entry.get("snapshots") or {}
            snapshot_libs = snapshots.get("libraries") or []
            for key in sorted(snapshots.get(ARTIFACT_KEY) or {}):
                candidates.append((snapshots[ARTIFACT_KEY][key], True, snapshot_libs))

            for artifact, is_snapshot, extra_libs in candidates:
                artifact = self._require_dict(artifact, f"MC {mc_version} 的构件")
                version = artifact.get("version")
                if not version:
                    raise self._error(f"MC {mc_version} 的构件缺少 version")
                if version in seen:
                    logger.warning("  liteloader 版本重复，保留首个: %s", version)
                    continue
                seen.add(version)
                entries.append(VersionListEntry(
                    id=version,
                    source=self.source,
                    release_time=parse_time(artifact.get("timestamp")),
                    sha=artifact.get("md5", ""),
                    url=self.versions_url,
                    version_type="snapshot" if is_snapshot else "release",
                    extra={
                        "mc_version": mc_version,
                        "snapshot": is_snapshot,
                        "artifact": artifact,
                        "repo": repo,
                        "snapshot_libraries": extra_libs,
                    },
                ))
        return VersionIndex(
            source=self.source, entries=entries,
            documents={"meta": data.get("meta") or {}},
        )

    def _fetch_entry(self, entry: VersionListEntry) -> VersionRecord:
        artifact = entry.extra["artifact"]
        tweak_class = artifact.get("tweakClass")
        if not tweak_class:
            raise self._error("构件缺少 tweakClass", entry.id)
        libraries = list(artifact.get("libraries") or []) + list(entry.extra.get("snapshot_libraries") or [])
        timestamp = artifact.get("timestamp")
        details = LiteloaderDetails(
            mc_version=entry.extra["mc_version"],
            version=entry.id,
            stream=artifact.get("stream", ""),
            build=artifact.get("build"),
            md5=artifact.get("md5", ""),
            file=artifact.get("file", ""),
            tweak_class=tweak_class,
            libraries=libraries,
            timestamp=int(timestamp) if str(timestamp or "").isdigit() else 0,
            snapshot=entry.extra.get("snapshot", False),
            repo=entry.extra.get("repo") or {},
        )
        return VersionRecord(
            source=self.source,
            id=entry.id,
            release_time=entry.release_time,
            details=details,
            raw={"artifact": artifact, "repo": details.repo},
        )
