"""Liteloader → com.mumfrey.liteloader"""

from __future__ import annotations

import logging
from typing import Any

from mcmeta.core.models import LiteloaderDetails, MirrorSnapshot, Source, VersionRecord
from mcmeta.generators.base import Generator, GeneratorOutput, passthrough

logger = logging.getLogger(__name__)

UID = "com.mumfrey.liteloader"
NAME = "LiteLoader"
MAIN_CLASS = "net.minecraft.launchwrapper.Launch"
DEFAULT_REPO_URL = "https://dl.liteloader.com/versions/"

# 构件中已映射到输出字段的键
_ARTIFACT_MAPPED = ("version", "tweakClass", "libraries", "timestamp")


class LiteloaderGenerator(Generator):
    source = Source.LITELOADER

    def _render_version(
        self, record: VersionRecord, snapshot: MirrorSnapshot, out: GeneratorOutput,
    ) -> None:
        d: LiteloaderDetails = record.details  # type: ignore[assignment]
        repo_url = d.repo.get("url") or DEFAULT_REPO_URL
        if not repo_url.endswith("/"):
            repo_url += "/"
        own_library: dict[str, Any] = {
            "name": f"com.mumfrey:liteloader:{d.version}",
            "url": repo_url,
        }
        if d.snapshot:
            own_library["MMC-hint"] = "always-stale"

        libraries = [dict(lib) for lib in d.libraries] + [own_library]
        fields: dict[str, Any] = {
            "requires": [{"uid": "net.minecraft", "equals": d.mc_version}],
            "mainClass": MAIN_CLASS,
            "libraries": libraries,
            "+tweakers": [d.tweak_class],
            "type": "snapshot" if d.snapshot else "release",
            "order": 10,
        }
        extra = passthrough(record.raw.get("artifact") or {}, _ARTIFACT_MAPPED)
        repo_extra = passthrough(d.repo, ("url",))
        if repo_extra:
            extra["repo"] = repo_extra
        out.files.append(self.version_file(UID, NAME, d.version, record, fields, extra))

    def _render_packages(self, snapshot: MirrorSnapshot, out: GeneratorOutput) -> None:
        meta = snapshot.index.documents.get("meta") or {}
        authors = meta.get("authors")
        out.files.append(self.package_file(
            UID, NAME,
            description=meta.get("description"),
            project_url=meta.get("url"),
            authors=[authors] if isinstance(authors, str) and authors else None,
        ))
