"""Mojang → net.minecraft

- mainJar 取自 client 下载项
- complianceLevel == 1 追加 XR:Initial 特性，更高等级视为错误
- 可选的老版本覆盖表: 覆盖 releaseTime / mainClass / appletClass，追加 +traits，
  并去掉 libraries 与 minecraftArguments
"""

from __future__ import annotations

import logging
from typing import Any

from mcmeta.core.exceptions import ValidationError
from mcmeta.core.models import MirrorSnapshot, MojangDetails, Source, VersionRecord
from mcmeta.generators.base import Generator, GeneratorOutput, passthrough
from mcmeta.utils.timeutil import format_time, parse_time

logger = logging.getLogger(__name__)

UID = "net.minecraft"
NAME = "Minecraft"
MAX_COMPLIANCE_LEVEL = 1

_MAPPED_KEYS = (
    "id", "assetIndex", "libraries", "mainClass", "minecraftArguments",
    "releaseTime", "type", "complianceLevel",
)


class MojangGenerator(Generator):
    source = Source.MOJANG

    def __init__(self, legacy_overrides: dict[str, dict[str, Any]] | None = None) -> None:
        self.legacy_overrides = legacy_overrides or {}

    def _render_version(
        self, record: VersionRecord, snapshot: MirrorSnapshot, out: GeneratorOutput,
    ) -> None:
        d: MojangDetails = record.details  # type: ignore[assignment]
        fields: dict[str, Any] = {
            "assetIndex": d.asset_index,
            "libraries": d.libraries,
            "mainClass": d.main_class,
            "minecraftArguments": d.minecraft_arguments,
            "type": d.version_type,
            "mainJar": self._main_jar(record.id, d),
        }

        traits: list[str] = []
        if d.compliance_level is not None and d.compliance_level != 0:
            if d.compliance_level > MAX_COMPLIANCE_LEVEL:
                raise ValidationError(
                    f"{record.id}: 不支持的 complianceLevel {d.compliance_level}"
                    f"（最高 {MAX_COMPLIANCE_LEVEL}）"
                )
            traits.append("XR:Initial")

        file = self.version_file(
            UID, NAME, record.id, record, fields, passthrough(record.raw, _MAPPED_KEYS),
        )
        content = file.content
        if traits:
            content["+traits"] = traits

        override = self.legacy_overrides.get(record.id)
        if override:
            self._apply_override(content, override)
        out.files.append(file)

    def _main_jar(self, version_id: str, d: MojangDetails) -> dict[str, Any] | None:
        client = (d.downloads or {}).get("client")
        if not client:
            return None
        return {
            "name": f"com.mojang:minecraft:{version_id}:client",
            "downloads": {
                "artifact": {
                    "sha1": client.get("sha1"),
                    "size": client.get("size"),
                    "url": client.get("url"),
                },
            },
        }

    @staticmethod
    def _apply_override(content: dict[str, Any], override: dict[str, Any]) -> None:
        for key in ("mainClass", "appletClass"):
            if override.get(key) is not None:
                content[key] = override[key]
            else:
                content.pop(key, None)
        release_time = parse_time(override.get("releaseTime"))
        if release_time is not None:
            content["releaseTime"] = format_time(release_time)
        traits = override.get("+traits") or []
        if traits:
            content["+traits"] = content.get("+traits", []) + list(traits)
        content.pop("libraries", None)
        content.pop("minecraftArguments", None)

    def _render_packages(self, snapshot: MirrorSnapshot, out: GeneratorOutput) -> None:
        latest = (snapshot.index.documents.get("latest") or {}).get("release")
        recommended = [latest] if latest and latest in snapshot.records else None
        out.files.append(self.package_file(UID, NAME, recommended=recommended))
