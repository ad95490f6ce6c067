"""Forge → net.minecraftforge

按安装器 profile 类型分三种启动方式:
  - v1:        versionInfo 直接给出 mainClass / 参数 / 库
  - v1_5, v2:  经 ForgeWrapper 启动，安装器及其库作为 mavenFiles
  - legacy:    universal 包作为 jarMods，附带 FML 运行时库清单
不支持的构建（无可用文件或 profile 无法识别）跳过并记录。
"""

from __future__ import annotations

import logging
from typing import Any

from mcmeta.core.exceptions import ParseError
from mcmeta.core.gradle import GradleSpecifier
from mcmeta.core.models import ForgeDetails, MirrorSnapshot, Source, VersionRecord
from mcmeta.generators.base import Generator, GeneratorOutput, passthrough
from mcmeta.generators.fml_libs import fml_libs_for
from mcmeta.sources.forge import LABEL_RECOMMENDED, mc_version_sane, select_files

logger = logging.getLogger(__name__)

UID = "net.minecraftforge"
NAME = "Forge"
ORDER = 5
FORGE_MAVEN = "https://files.minecraftforge.net/maven/"

FORGEWRAPPER_MAIN = "io.github.zekerzhayard.forgewrapper.installer.Main"
FORGEWRAPPER_LIBRARY = {
    "name": "io.github.zekerzhayard:ForgeWrapper:mmc2",
    "url": "https://files.polymc.org/maven/",
}

_FORGE_LIB_PREFIXES = ("net.minecraftforge:forge:", "net.minecraftforge:minecraftforge:")
_VERSION_JSON_MAPPED = (
    "id", "libraries", "mainClass", "minecraftArguments", "releaseTime", "time",
    "type", "inheritsFrom", "jar",
)


def forge_version_id(d: ForgeDetails) -> str:
    """包内版本号: 去掉 MC 前缀的长版本"""
    return f"{d.version}-{d.branch}" if d.branch else d.version


def split_tweakers(arguments: str | None) -> tuple[str | None, list[str]]:
    """从 minecraftArguments 中拆出 --tweakClass"""
    if not arguments:
        return arguments, []
    tokens = arguments.split()
    rest: list[str] = []
    tweakers: list[str] = []
    i = 0
    while i < len(tokens):
        if tokens[i] == "--tweakClass" and i + 1 < len(tokens):
            tweakers.append(tokens[i + 1])
            i += 2
            continue
        rest.append(tokens[i])
        i += 1
    return " ".join(rest), tweakers


class ForgeGenerator(Generator):
    source = Source.FORGE

    def _render_version(
        self, record: VersionRecord, snapshot: MirrorSnapshot, out: GeneratorOutput,
    ) -> None:
        d: ForgeDetails = record.details  # type: ignore[assignment]
        if not d.profile_kind:
            out.skip(record.id, "构建不受支持（无可用文件或安装配置无法识别）")
            return

        fields: dict[str, Any] = {
            "requires": [{"uid": "net.minecraft", "equals": mc_version_sane(d.mc_version)}],
            "order": ORDER,
            "type": "release",
        }
        extra: dict[str, Any] = {
            "build": d.build,
            "branch": d.branch,
            "mcVersion": d.mc_version,
            "files": d.files,
            "profileKind": d.profile_kind,
        }
        manifest_extra = record.raw.get("manifest")
        if manifest_extra:
            extra["manifest"] = manifest_extra

        if d.profile_kind == "v1":
            self._from_v1(record.id, d, fields, extra)
        elif d.profile_kind in ("v1_5", "v2"):
            self._from_installer(record.id, d, fields, extra)
        else:
            self._from_legacy(record.id, d, fields)

        out.files.append(
            self.version_file(UID, NAME, forge_version_id(d), record, fields, extra)
        )

    def _from_v1(
        self, long_version: str, d: ForgeDetails, fields: dict[str, Any], extra: dict[str, Any],
    ) -> None:
        info = (d.install_profile or {}).get("versionInfo") or {}
        arguments, tweakers = split_tweakers(info.get("minecraftArguments"))
        libraries = []
        for lib in info.get("libraries") or []:
            name = lib.get("name", "")
            if lib.get("clientreq") is False:
                continue
            try:
                spec = GradleSpecifier.parse(name)
            except ParseError as e:
                raise ParseError(f"{long_version}: 库坐标无效 {name!r}", entry_id=long_version) from e
            if spec.is_lwjgl():
                continue
            if name.startswith(_FORGE_LIB_PREFIXES):
                libraries.append({
                    "name": f"net.minecraftforge:forge:{long_version}:universal",
                    "url": FORGE_MAVEN,
                })
                continue
            libraries.append({k: v for k, v in lib.items() if k not in ("clientreq", "serverreq")})
        fields.update({
            "mainClass": info.get("mainClass"),
            "minecraftArguments": arguments,
            "libraries": libraries,
        })
        if tweakers:
            fields["+tweakers"] = tweakers
        extra.update(passthrough(info, _VERSION_JSON_MAPPED))
        profile_extra = passthrough(d.install_profile or {}, ("versionInfo",))
        if profile_extra:
            extra["installProfile"] = profile_extra

    def _from_installer(
        self, long_version: str, d: ForgeDetails, fields: dict[str, Any], extra: dict[str, Any],
    ) -> None:
        profile = d.install_profile or {}
        version_json = d.version_json or {}
        info = d.jar_info or {}
        spec = GradleSpecifier("net.minecraftforge", "forge", long_version, "installer")
        installer = {
            "name": str(spec),
            "downloads": {
                "artifact": {
                    "url": spec.url(FORGE_MAVEN),
                    "sha1": info.get("sha1"),
                    "size": info.get("size"),
                },
            },
        }
        libraries = [FORGEWRAPPER_LIBRARY]
        for lib in version_json.get("libraries") or []:
            # forge 主库由 ForgeWrapper 在本地安装产生
            if lib.get("name", "").startswith(_FORGE_LIB_PREFIXES) and not (
                lib.get("downloads", {}).get("artifact", {}).get("url")
            ):
                continue
            libraries.append(lib)
        fields.update({
            "mainClass": FORGEWRAPPER_MAIN,
            "libraries": libraries,
            "mavenFiles": [installer] + list(profile.get("libraries") or []),
        })
        if version_json.get("minecraftArguments"):
            arguments, tweakers = split_tweakers(version_json["minecraftArguments"])
            fields["minecraftArguments"] = arguments
            if tweakers:
                fields["+tweakers"] = tweakers
        extra.update(passthrough(version_json, _VERSION_JSON_MAPPED))
        extra["installProfile"] = passthrough(profile, ("libraries",))

    def _from_legacy(self, long_version: str, d: ForgeDetails, fields: dict[str, Any]) -> None:
        universal = select_files(d.files).get("universal")
        ext = universal["extension"] if universal else "jar"
        classifier = universal["classifier"] if universal else "universal"
        name = f"net.minecraftforge:forge:{long_version}:{classifier}"
        if ext != "jar":
            name += f"@{ext}"
        fields["jarMods"] = [{"name": name, "url": FORGE_MAVEN}]
        fields["+traits"] = ["legacyFML"]
        fml_libs = fml_libs_for(d.mc_version)
        if fml_libs:
            fields["+fmlLibs"] = fml_libs

    def _render_packages(self, snapshot: MirrorSnapshot, out: GeneratorOutput) -> None:
        recommended: list[str] = []
        for entry in snapshot.entries:
            record = snapshot.records.get(entry.id)
            if record is None or LABEL_RECOMMENDED not in entry.labels:
                continue
            d: ForgeDetails = record.details  # type: ignore[assignment]
            if d.profile_kind:
                recommended.append(forge_version_id(d))
        out.files.append(self.package_file(
            UID, NAME,
            recommended=sorted(set(recommended)) or None,
            project_url="https://www.minecraftforge.net/forum/",
            authors=["LexManos", "cpw"],
        ))
