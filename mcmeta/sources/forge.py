"""Forge 上游源

索引: maven-metadata.json（MC 版本 → 长版本号列表）+ promotions_slim.json
条目: 每个长版本的文件清单 meta.json；
      安装器版本下载安装器 jar，读取 install_profile.json 与可选的 version.json；
      老版本（无安装器）下载 universal 包。

索引不带时间戳，release_time 取自版本文件，老版本取 jar 内最新条目时间。
latest / recommended 作为索引标记保存，不影响条目指纹。
"""

from __future__ import annotations

import logging
import re
from typing import Any

from mcmeta.core.exceptions import ParseError
from mcmeta.core.models import ForgeDetails, Source, VersionIndex, VersionListEntry, VersionRecord
from mcmeta.core.protocols import HttpClient
from mcmeta.sources.base import SourceAdapter
from mcmeta.utils.archive import file_info, newest_entry_time, read_json_member
from mcmeta.utils.timeutil import parse_time

logger = logging.getLogger(__name__)

MAVEN_METADATA_URL = "https://files.minecraftforge.net/net/minecraftforge/forge/maven-metadata.json"
PROMOTIONS_URL = "https://files.minecraftforge.net/net/minecraftforge/forge/promotions_slim.json"
FILES_MANIFEST_URL = "https://files.minecraftforge.net/net/minecraftforge/forge/{long}/meta.json"
FILE_URL = (
    "https://files.minecraftforge.net/maven/net/minecraftforge/forge/"
    "{long}/forge-{long}-{classifier}.{ext}"
)

PROMOTED_KEY_RE = re.compile(
    r"(?P<mc>[^-]+)-(?P<promotion>(latest)|(recommended))(-(?P<branch>[a-zA-Z0-9\.]+))?"
)
VERSION_RE = re.compile(
    r"^(?P<mc>[0-9a-zA-Z_\.]+)-(?P<ver>[0-9\.]+\.(?P<build>[0-9]+))(-(?P<branch>[a-zA-Z0-9\.]+))?$"
)
_NON_WORD = re.compile(r"\W")

# 1.5.2 虽有安装器，仍按 universal 包处理
INSTALLER_EXCLUDED_MC = ("1.5.2",)

LABEL_LATEST = "latest"
LABEL_RECOMMENDED = "recommended"


def file_url(long_version: str, classifier: str, extension: str) -> str:
    return FILE_URL.format(long=long_version, classifier=classifier, ext=extension)


def mc_version_sane(mc_version: str) -> str:
    return mc_version.replace("_pre", "-pre", 1)


def select_files(files: list[dict[str, str]]) -> dict[str, dict[str, str]]:
    """按 classifier/扩展名挑出 installer / universal / changelog"""
    picked: dict[str, dict[str, str]] = {}
    for f in files:
        classifier, ext = f["classifier"], f["extension"]
        if classifier == "installer" and ext == "jar":
            picked.setdefault("installer", f)
        elif classifier in ("universal", "client") and ext in ("jar", "zip"):
            picked.setdefault("universal", f)
        elif classifier == "changelog" and ext == "txt":
            picked.setdefault("changelog", f)
    return picked


def detect_profile_kind(profile: Any) -> str:
    """识别 install_profile.json 版本: v1（install + versionInfo）/ v2 / v1_5"""
    if not isinstance(profile, dict):
        return ""
    if isinstance(profile.get("install"), dict) and isinstance(profile.get("versionInfo"), dict):
        return "v1"
    if "spec" in profile or "processors" in profile:
        data = profile.get("data")
        if data is None or (
            isinstance(data, dict) and all(isinstance(v, dict) for v in data.values())
        ):
            return "v2"
        return "v1_5"
    return ""


class ForgeSource(SourceAdapter):
    """Minecraft Forge 加载器"""

    source = Source.FORGE
    depends_on = (Source.MOJANG,)

    def __init__(
        self,
        http: HttpClient,
        metadata_url: str = MAVEN_METADATA_URL,
        promotions_url: str = PROMOTIONS_URL,
    ) -> None:
        super().__init__(http)
        self.metadata_url = metadata_url
        self.promotions_url = promotions_url

    # ---- 索引 ----

    def _load_remote_index(self) -> VersionIndex:
        maven = self._require_dict(self.http.get_json(self.metadata_url), "maven-metadata")
        promotions = self._require_dict(self.http.get_json(self.promotions_url), "promotions")
        recommended = self._recommended_versions(promotions)

        entries: list[VersionListEntry] = []
        for mc_version, long_versions in maven.items():
            long_versions = self._require_list(long_versions, f"MC {mc_version} 的版本列表")
            for long_version in long_versions:
                if not isinstance(long_version, str):
                    raise self._error(f"MC {mc_version} 下的 Forge 版本不是字符串: {long_version!r}")
                m = VERSION_RE.match(long_version)
                if m is None:
                    raise self._error(f"版本号格式不符: {long_version}")
                if m.group("mc") != mc_version:
                    raise self._error(f"版本号 {long_version} 与 MC 版本 {mc_version} 不符")
                labels = [LABEL_RECOMMENDED] if m.group("ver") in recommended else []
                entries.append(VersionListEntry(
                    id=long_version,
                    source=self.source,
                    url=FILES_MANIFEST_URL.format(long=long_version),
                    extra={
                        "mc_version": mc_version,
                        "version": m.group("ver"),
                        "build": int(m.group("build")),
                        "branch": m.group("branch"),
                    },
                    labels=labels,
                ))
            if long_versions:
                # 每个 MC 版本列表中最后一个为 latest
                entries[-1].labels.append(LABEL_LATEST)

        return VersionIndex(
            source=self.source, entries=entries,
            documents={"promotions": promotions.get("promos", {})},
        )

    def _recommended_versions(self, promotions: dict[str, Any]) -> set[str]:
        promos = self._require_dict(promotions.get("promos"), "promos")
        recommended: set[str] = set()
        for key, short_version in promos.items():
            m = PROMOTED_KEY_RE.match(key)
            if m is None or not m.group("mc"):
                logger.info("  跳过推广键 %s: 格式不符", key)
                continue
            if m.group("branch"):
                logger.info("  跳过推广键 %s: 带分支", key)
                continue
            promotion = m.group("promotion")
            if promotion == "recommended":
                recommended.add(str(short_version))
            elif promotion != "latest":
                raise self._error(f"未知的推广类型: {key}")
        return recommended

    # ---- 条目 ----

    def _files_manifest(
        self, entry: VersionListEntry,
    ) -> tuple[list[dict[str, str]], dict[str, Any]]:
        """返回 (可用文件列表, 清单中除 classifiers 外的其余字段)"""
        data = self._require_dict(self.http.get_json(entry.url), "文件清单", entry.id)
        classifiers = self._require_dict(data.get("classifiers", {}), "classifiers", entry.id)
        files: list[dict[str, str]] = []
        for classifier in sorted(classifiers):
            extensions = self._require_dict(classifiers[classifier], f"classifier {classifier}", entry.id)
            for ext in sorted(extensions):
                digest = extensions[ext]
                if not isinstance(digest, str):
                    logger.warning("%s: 跳过缺少哈希的文件 %s.%s", entry.id, classifier, ext)
                    continue
                cleaned = _NON_WORD.sub("", digest)
                if len(cleaned) != 32:
                    logger.warning("%s: 跳过哈希无效的文件 %s.%s", entry.id, classifier, ext)
                    continue
                files.append({"classifier": classifier, "extension": ext, "hash": cleaned})
        return files, {k: v for k, v in data.items() if k != "classifiers"}

    def _fetch_entry(self, entry: VersionListEntry) -> VersionRecord:
        files, manifest_extra = self._files_manifest(entry)
        picked = select_files(files)
        mc_version = entry.extra["mc_version"]
        raw_version = entry.extra["version"]

        uses_installer = "installer" in picked and mc_version not in INSTALLER_EXCLUDED_MC
        main_file = picked.get("installer") if uses_installer else picked.get("universal")
        supported = main_file is not None and raw_version.split(".")[0].isdigit()

        details = ForgeDetails(
            mc_version=mc_version,
            version=raw_version,
            build=entry.extra["build"],
            branch=entry.extra.get("branch"),
            files=files,
            uses_installer=uses_installer,
        )
        raw: dict[str, Any] = {"files": files, "manifest": manifest_extra}
        release_time = None

        if main_file is None:
            logger.info("  %s: 没有可用文件，仅记录清单", entry.id)
            return VersionRecord(self.source, entry.id, None, details, raw)

        url = file_url(entry.id, main_file["classifier"], main_file["extension"])
        data = self.http.get(url)
        details.jar_info = file_info(data)

        if uses_installer:
            try:
                version_json = read_json_member(data, "version.json", entry.id)
            except ParseError as e:
                logger.warning("%s: version.json 解析失败，忽略 - %s", entry.id, e)
                version_json = None
            profile = read_json_member(data, "install_profile.json", entry.id)
            kind = detect_profile_kind(profile)
            if not kind:
                if supported:
                    raise self._error("install_profile.json 缺失或无法识别", entry.id)
                logger.warning("%s: install_profile.json 无法识别，跳过", entry.id)
            else:
                details.install_profile = profile
                details.profile_kind = kind
            if isinstance(version_json, dict):
                details.version_json = version_json
                release_time = parse_time(version_json.get("releaseTime"))
            if release_time is None and kind == "v1":
                release_time = parse_time(profile["versionInfo"].get("releaseTime"))
            raw["install_profile"] = profile
            raw["version_json"] = version_json
        else:
            details.profile_kind = "legacy" if supported else ""
            release_time = newest_entry_time(data, entry.id)

        return VersionRecord(
            source=self.source,
            id=entry.id,
            release_time=release_time,
            details=details,
            raw=raw,
        )
