"""Fabric → net.fabricmc.intermediary / net.fabricmc.fabric-loader"""

from __future__ import annotations

import logging
from typing import Any

from mcmeta.core.models import FabricDetails, MirrorSnapshot, Source, VersionRecord
from mcmeta.generators.base import Generator, GeneratorOutput, passthrough
from mcmeta.sources.fabric import LABEL_STABLE, MAVEN_URL

logger = logging.getLogger(__name__)

INTERMEDIARY_UID = "net.fabricmc.intermediary"
INTERMEDIARY_NAME = "Intermediary Mappings"
LOADER_UID = "net.fabricmc.fabric-loader"
LOADER_NAME = "Fabric Loader"
PROJECT_URL = "https://fabricmc.net"
AUTHORS = ["Fabric Developers"]

_INDEX_MAPPED = ("component", "maven", "version", "stable")
_INSTALLER_MAPPED = ("libraries", "mainClass", "launchwrapper", "arguments")


def _main_class(value: Any) -> str | None:
    if isinstance(value, dict):
        return value.get("client")
    return value


def _is_stable(record: VersionRecord, snapshot: MirrorSnapshot) -> bool:
    """以当前索引上的标记为准；记录拉取后上游可能已调整稳定版"""
    for entry in snapshot.entries:
        if entry.id == record.id:
            return LABEL_STABLE in entry.labels
    return bool(record.details.stable)  # type: ignore[union-attr]


class FabricGenerator(Generator):
    source = Source.FABRIC

    def _render_version(
        self, record: VersionRecord, snapshot: MirrorSnapshot, out: GeneratorOutput,
    ) -> None:
        d: FabricDetails = record.details  # type: ignore[assignment]
        own_library = {"name": d.maven, "url": MAVEN_URL}
        extra: dict[str, Any] = {"maven": d.maven, "jar": d.jar_info}
        extra.update(passthrough(record.raw.get("index") or {}, _INDEX_MAPPED))

        if d.component == "intermediary":
            fields: dict[str, Any] = {
                "requires": [{"uid": "net.minecraft", "equals": d.version}],
                "libraries": [own_library],
                "type": "release",
                "order": 11,
                "volatile": True,
            }
            out.files.append(self.version_file(
                INTERMEDIARY_UID, INTERMEDIARY_NAME, d.version, record, fields, extra,
            ))
            return

        if d.component != "loader":
            out.skip(record.id, f"未知的 Fabric 组件: {d.component}")
            return

        installer = d.installer or {}
        libs = installer.get("libraries") or {}
        libraries = list(libs.get("common") or []) + list(libs.get("client") or [])
        libraries.append(own_library)
        fields = {
            "requires": [{"uid": INTERMEDIARY_UID}],
            "libraries": libraries,
            "mainClass": _main_class(installer.get("mainClass")),
            "type": "release" if _is_stable(record, snapshot) else "snapshot",
            "order": 10,
        }
        tweakers = ((installer.get("launchwrapper") or {}).get("tweakers") or {}).get("client")
        if tweakers:
            fields["+tweakers"] = list(tweakers)
        if installer.get("arguments"):
            extra["arguments"] = installer["arguments"]
        if libs.get("server"):
            extra["serverLibraries"] = libs["server"]
        installer_extra = passthrough(installer, _INSTALLER_MAPPED)
        if installer_extra:
            extra["installer"] = installer_extra
        out.files.append(self.version_file(
            LOADER_UID, LOADER_NAME, d.version, record, fields, extra,
        ))

    def _render_packages(self, snapshot: MirrorSnapshot, out: GeneratorOutput) -> None:
        out.files.append(self.package_file(
            INTERMEDIARY_UID, INTERMEDIARY_NAME,
            description="Intermediary mappings for use with Fabric",
            project_url=PROJECT_URL, authors=AUTHORS,
        ))
        out.files.append(self.package_file(
            LOADER_UID, LOADER_NAME,
            description="Fabric Loader is a tool to load Fabric-compatible mods in game environments.",
            project_url=PROJECT_URL, authors=AUTHORS,
        ))
