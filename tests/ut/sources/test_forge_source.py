"""Forge 上游源测试"""

from __future__ import annotations

import pytest
from conftest import FakeHttp, make_jar

from mcmeta.core.exceptions import ParseError
from mcmeta.sources.forge import (
    FILES_MANIFEST_URL,
    LABEL_LATEST,
    LABEL_RECOMMENDED,
    ForgeSource,
    detect_profile_kind,
    file_url,
    mc_version_sane,
    select_files,
)

METADATA_URL = "https://meta.test/forge/maven-metadata.json"
PROMOTIONS_URL = "https://meta.test/forge/promotions_slim.json"
HASH = "0123456789abcdef0123456789abcdef"

V2_PROFILE = {
    "spec": 1,
    "data": {"MAPPINGS": {"client": "[de.oceanlabs.mcp:mcp_config:1.20.1@zip]", "server": ""}},
    "processors": [],
    "libraries": [{"name": "net.minecraftforge:installertools:1.3.0"}],
}
VERSION_JSON = {
    "id": "1.20.1-forge-47.1.0",
    "releaseTime": "2023-07-10T12:00:00+00:00",
    "mainClass": "cpw.mods.bootstraplauncher.BootstrapLauncher",
    "libraries": [{"name": "cpw.mods:securejarhandler:2.1.10"}],
}


def _routes(**overrides) -> dict:
    routes = {
        METADATA_URL: {
            "1.20.1": ["1.20.1-47.1.0", "1.20.1-47.1.3"],
            "1.5.2": ["1.5.2-7.8.1.738"],
        },
        PROMOTIONS_URL: {"promos": {
            "1.20.1-recommended": "47.1.0",
            "1.20.1-latest": "47.1.3",
            "1.7.10-latest-1.7.10": "10.13.4.1614",
        }},
        FILES_MANIFEST_URL.format(long="1.20.1-47.1.0"): {
            "classifiers": {"installer": {"jar": HASH}, "changelog": {"txt": HASH}},
        },
        file_url("1.20.1-47.1.0", "installer", "jar"): make_jar({
            "install_profile.json": V2_PROFILE,
            "version.json": VERSION_JSON,
        }),
        FILES_MANIFEST_URL.format(long="1.5.2-7.8.1.738"): {
            "classifiers": {
                "installer": {"jar": HASH},
                "universal": {"zip": f"{HASH[:16]}-{HASH[16:]}"},
            },
        },
        file_url("1.5.2-7.8.1.738", "universal", "zip"): make_jar(
            {"cpw/mods/fml/common/Loader.class": b"\xca\xfe"},
            date_time=(2013, 5, 1, 10, 0, 0),
        ),
    }
    routes.update(overrides)
    return routes


def _source(routes: dict) -> ForgeSource:
    src = ForgeSource(FakeHttp(routes), metadata_url=METADATA_URL, promotions_url=PROMOTIONS_URL)
    src.fetch_remote_index()
    return src


class TestForgeHelpers:
    def test_mc_version_sane(self) -> None:
        assert mc_version_sane("1.7.10_pre4") == "1.7.10-pre4"

    def test_select_files(self) -> None:
        picked = select_files([
            {"classifier": "changelog", "extension": "txt", "hash": HASH},
            {"classifier": "universal", "extension": "zip", "hash": HASH},
            {"classifier": "installer", "extension": "jar", "hash": HASH},
        ])
        assert set(picked) == {"installer", "universal", "changelog"}

    @pytest.mark.parametrize("profile, kind", [
        ({"install": {}, "versionInfo": {}}, "v1"),
        (V2_PROFILE, "v2"),
        ({"spec": 0, "processors": [], "data": {"X": "y"}}, "v1_5"),
        ({"something": 1}, ""),
        (None, ""),
    ])
    def test_detect_profile_kind(self, profile, kind: str) -> None:
        assert detect_profile_kind(profile) == kind


class TestForgeIndex:
    def test_labels_and_fields(self) -> None:
        index = _source(_routes())._remote
        by_id = index.by_id()
        assert LABEL_RECOMMENDED in by_id["1.20.1-47.1.0"].labels
        assert by_id["1.20.1-47.1.3"].labels == [LABEL_LATEST]
        assert by_id["1.5.2-7.8.1.738"].labels == [LABEL_LATEST]
        assert by_id["1.20.1-47.1.0"].extra == {
            "mc_version": "1.20.1", "version": "47.1.0", "build": 0, "branch": None,
        }
        assert by_id["1.20.1-47.1.0"].release_time is None

    def test_version_must_match_mc(self) -> None:
        routes = _routes(**{METADATA_URL: {"1.20.1": ["1.19-47.1.0"]}})
        with pytest.raises(ParseError, match="不符"):
            _source(routes)

    def test_malformed_version(self) -> None:
        routes = _routes(**{METADATA_URL: {"1.20.1": ["garbage"]}})
        with pytest.raises(ParseError, match="格式不符"):
            _source(routes)


class TestForgeFetch:
    def test_installer_build(self) -> None:
        record = _source(_routes()).fetch("1.20.1-47.1.0")
        d = record.details
        assert d.uses_installer
        assert d.profile_kind == "v2"
        assert d.version_json["mainClass"].startswith("cpw.mods")
        assert d.jar_info["size"] > 0
        assert [f["classifier"] for f in d.files] == ["changelog", "installer"]
        assert record.release_time.isoformat() == "2023-07-10T12:00:00+00:00"

    def test_legacy_build_uses_universal(self) -> None:
        record = _source(_routes()).fetch("1.5.2-7.8.1.738")
        d = record.details
        assert not d.uses_installer
        assert d.profile_kind == "legacy"
        # 带分隔符的哈希清理后仍为 32 位
        assert {"classifier": "universal", "extension": "zip", "hash": HASH} in d.files
        assert record.release_time.isoformat() == "2013-05-01T10:00:00+00:00"

    def test_invalid_hash_skipped(self) -> None:
        routes = _routes(**{
            FILES_MANIFEST_URL.format(long="1.20.1-47.1.3"): {"classifiers": {"installer": {"jar": "short"}}},
        })
        record = _source(routes).fetch("1.20.1-47.1.3")
        assert record.details.files == []
        assert record.details.profile_kind == ""
        assert record.release_time is None

    def test_missing_profile_on_supported_build_fails(self) -> None:
        routes = _routes(**{
            file_url("1.20.1-47.1.0", "installer", "jar"): make_jar({"version.json": VERSION_JSON}),
        })
        with pytest.raises(ParseError, match="install_profile"):
            _source(routes).fetch("1.20.1-47.1.0")

    def test_manifest_extra_fields_kept_in_raw(self) -> None:
        routes = _routes(**{
            FILES_MANIFEST_URL.format(long="1.5.2-7.8.1.738"): {
                "homepage": "https://f.test",
                "classifiers": {"universal": {"zip": HASH}},
            },
        })
        record = _source(routes).fetch("1.5.2-7.8.1.738")
        assert record.raw["manifest"] == {"homepage": "https://f.test"}
        assert "classifiers" not in record.raw["manifest"]
