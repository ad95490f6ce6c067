"""net.minecraftforge 生成测试"""

from __future__ import annotations

from datetime import datetime, timezone

from mcmeta.core.models import (
    ForgeDetails,
    MirrorSnapshot,
    Source,
    VersionIndex,
    VersionListEntry,
    VersionRecord,
)
from mcmeta.generators.forge import (
    FORGEWRAPPER_MAIN,
    UID,
    ForgeGenerator,
    forge_version_id,
    split_tweakers,
)
from mcmeta.sources.forge import LABEL_RECOMMENDED

T = datetime(2023, 7, 10, 12, 0, 0, tzinfo=timezone.utc)
HASH = "0" * 32


def _snapshot(*records: tuple[ForgeDetails, list[str]]) -> MirrorSnapshot:
    entries, by_id = [], {}
    for details, labels in records:
        long_version = f"{details.mc_version}-{details.version}"
        entries.append(VersionListEntry(id=long_version, source=Source.FORGE, labels=labels))
        by_id[long_version] = VersionRecord(
            source=Source.FORGE, id=long_version, release_time=T, details=details,
        )
    index = VersionIndex(source=Source.FORGE, entries=entries)
    return MirrorSnapshot(source=Source.FORGE, index=index, records=by_id)


def _by_path(snapshot: MirrorSnapshot) -> dict:
    return {f.path: f.content for f in ForgeGenerator().generate(snapshot)}


class TestForgeHelpers:
    def test_version_id_with_branch(self) -> None:
        d = ForgeDetails(mc_version="1.7.10", version="10.13.4.1614", build=1614, branch="1.7.10")
        assert forge_version_id(d) == "10.13.4.1614-1.7.10"

    def test_split_tweakers(self) -> None:
        args, tweakers = split_tweakers("--username ${auth} --tweakClass a.B --tweakClass c.D")
        assert args == "--username ${auth}"
        assert tweakers == ["a.B", "c.D"]


class TestForgeGenerator:
    def test_v2_uses_forgewrapper(self) -> None:
        d = ForgeDetails(
            mc_version="1.20.1", version="47.1.0", build=0, uses_installer=True,
            jar_info={"sha1": "s", "size": 5}, profile_kind="v2",
            install_profile={"spec": 1, "libraries": [{"name": "net.minecraftforge:installertools:1.3.0"}]},
            version_json={
                "libraries": [
                    {"name": "net.minecraftforge:forge:1.20.1-47.1.0:client"},
                    {"name": "cpw.mods:securejarhandler:2.1.10"},
                ],
                "arguments": {"game": ["--launchTarget", "forgeclient"]},
            },
        )
        content = _by_path(_snapshot((d, [])))[f"{UID}/47.1.0.json"]
        assert content["mainClass"] == FORGEWRAPPER_MAIN
        assert content["requires"] == [{"uid": "net.minecraft", "equals": "1.20.1"}]
        names = [lib["name"] for lib in content["libraries"]]
        assert names == ["io.github.zekerzhayard:ForgeWrapper:mmc2", "cpw.mods:securejarhandler:2.1.10"]
        installer = content["mavenFiles"][0]
        assert installer["name"] == "net.minecraftforge:forge:1.20.1-47.1.0:installer"
        assert installer["downloads"]["artifact"]["url"].endswith("forge-1.20.1-47.1.0-installer.jar")
        assert content["passthrough"]["arguments"]["game"][0] == "--launchTarget"

    def test_v1_uses_version_info(self) -> None:
        d = ForgeDetails(
            mc_version="1.7.10", version="10.13.4.1614", build=1614, uses_installer=True,
            profile_kind="v1",
            install_profile={
                "install": {},
                "versionInfo": {
                    "mainClass": "net.minecraft.launchwrapper.Launch",
                    "minecraftArguments": "--username ${auth} --tweakClass cpw.mods.fml.common.launcher.FMLTweaker",
                    "libraries": [
                        {"name": "net.minecraftforge:forge:1.7.10-10.13.4.1614"},
                        {"name": "org.lwjgl.lwjgl:lwjgl:2.9.1"},
                        {"name": "com.typesafe:config:1.2.1", "serverreq": True},
                        {"name": "server.only:lib:1", "clientreq": False},
                    ],
                },
            },
        )
        content = _by_path(_snapshot((d, [])))[f"{UID}/10.13.4.1614.json"]
        assert content["+tweakers"] == ["cpw.mods.fml.common.launcher.FMLTweaker"]
        assert content["minecraftArguments"] == "--username ${auth}"
        assert content["libraries"] == [
            {"name": "net.minecraftforge:forge:1.7.10-10.13.4.1614:universal",
             "url": "https://files.minecraftforge.net/maven/"},
            {"name": "com.typesafe:config:1.2.1"},
        ]

    def test_legacy_build_gets_jar_mod_and_fml_libs(self) -> None:
        d = ForgeDetails(
            mc_version="1.5.2", version="7.8.1.738", build=738, profile_kind="legacy",
            files=[{"classifier": "universal", "extension": "zip", "hash": HASH}],
        )
        content = _by_path(_snapshot((d, [])))[f"{UID}/7.8.1.738.json"]
        assert content["jarMods"][0]["name"] == "net.minecraftforge:forge:1.5.2-7.8.1.738:universal@zip"
        assert content["+traits"] == ["legacyFML"]
        assert any(lib["name"] == "scala-library.jar" for lib in content["+fmlLibs"])

    def test_unsupported_build_skipped(self) -> None:
        d = ForgeDetails(mc_version="1.1", version="1.3.2.1", build=1)
        out = ForgeGenerator().run(_snapshot((d, [])))
        assert out.skipped[0]["id"] == "1.1-1.3.2.1"
        assert [f.kind for f in out.files] == ["package"]

    def test_package_lists_recommended(self) -> None:
        rec = ForgeDetails(mc_version="1.5.2", version="7.8.1.738", build=738, profile_kind="legacy")
        other = ForgeDetails(mc_version="1.5.2", version="7.8.1.739", build=739, profile_kind="legacy")
        files = _by_path(_snapshot((rec, [LABEL_RECOMMENDED]), (other, [])))
        assert files[f"{UID}/package.json"]["recommended"] == ["7.8.1.738"]

    def test_unknown_installer_fields_passed_through(self) -> None:
        d = ForgeDetails(
            mc_version="1.20.1", version="47.1.0", build=0, uses_installer=True,
            jar_info={"sha1": "s", "size": 5}, profile_kind="v2",
            install_profile={
                "spec": 1,
                "data": {"MAPPINGS": {"client": "[de.oceanlabs.mcp:mcp_config:1.20.1@zip]"}},
                "processors": [{"jar": "net.minecraftforge:installertools:1.3.0"}],
                "libraries": [{"name": "net.minecraftforge:installertools:1.3.0"}],
            },
            version_json={
                "id": "1.20.1-forge-47.1.0",
                "libraries": [],
                "logging": {"client": {"argument": "-Dlog4j=${path}"}},
            },
        )
        content = _by_path(_snapshot((d, [])))[f"{UID}/47.1.0.json"]
        extra = content["passthrough"]
        assert extra["logging"] == {"client": {"argument": "-Dlog4j=${path}"}}
        assert "id" not in extra
        assert extra["installProfile"]["processors"] == [{"jar": "net.minecraftforge:installertools:1.3.0"}]
        assert extra["installProfile"]["data"]["MAPPINGS"]["client"].startswith("[de.oceanlabs")
        assert "libraries" not in extra["installProfile"]

    def test_unknown_v1_profile_fields_passed_through(self) -> None:
        d = ForgeDetails(
            mc_version="1.7.10", version="10.13.4.1614", build=1614, uses_installer=True,
            profile_kind="v1",
            install_profile={
                "install": {"profileName": "Forge"},
                "versionInfo": {
                    "mainClass": "net.minecraft.launchwrapper.Launch",
                    "libraries": [],
                    "assets": "1.7.10",
                },
            },
        )
        extra = _by_path(_snapshot((d, [])))[f"{UID}/10.13.4.1614.json"]["passthrough"]
        assert extra["assets"] == "1.7.10"
        assert extra["installProfile"] == {"install": {"profileName": "Forge"}}

    def test_files_manifest_extras_passed_through(self) -> None:
        d = ForgeDetails(
            mc_version="1.5.2", version="7.8.1.738", build=738, profile_kind="legacy",
            files=[{"classifier": "universal", "extension": "zip", "hash": HASH}],
        )
        snapshot = _snapshot((d, []))
        snapshot.records["1.5.2-7.8.1.738"].raw = {"files": d.files, "manifest": {"homepage": "https://f.test"}}
        extra = _by_path(snapshot)[f"{UID}/7.8.1.738.json"]["passthrough"]
        assert extra["manifest"] == {"homepage": "https://f.test"}
