"""ServiceContainer 单元测试"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

import mcmeta.core.config as cfgmod
from mcmeta.core.exceptions import ConfigError
from mcmeta.core.mirror import LocalMirror
from mcmeta.services.container import ServiceContainer, get_container, reset_container
from mcmeta.services.repo import GitOutputRepository
from mcmeta.sources.forge import ForgeSource
from mcmeta.utils.http import UrlLibHttpClient


@pytest.fixture(autouse=True)
def _setup_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    cfg = cfgmod.Config(
        mirror_dir=str(tmp_path / "upstream"),
        output_dir=str(tmp_path / "meta"),
        http_timeout=5,
    )
    monkeypatch.setattr(cfgmod, "_current", cfg)
    reset_container()
    yield
    reset_container()


class TestServiceContainer:
    def test_lazy_loading(self) -> None:
        c = ServiceContainer()
        assert len(c._instances) == 0
        _ = c.mirror
        assert "mirror" in c._instances

    def test_default_collaborators(self, tmp_path: Path) -> None:
        c = ServiceContainer()
        assert isinstance(c.http, UrlLibHttpClient)
        assert c.http.timeout == 5
        assert isinstance(c.mirror, LocalMirror)
        assert c.mirror.root == tmp_path / "upstream"
        assert isinstance(c.output_repo, GitOutputRepository)

    def test_injected_collaborators_used(self) -> None:
        http = object()
        c = ServiceContainer(http=http)  # type: ignore[arg-type]
        assert c.http is http
        assert c.adapter("forge").http is http

    def test_adapters_cached_per_source(self) -> None:
        c = ServiceContainer()
        assert isinstance(c.adapter("forge"), ForgeSource)
        assert c.adapter("forge") is c.adapter("forge")
        assert c.reconciler("forge") is not c.reconciler("forge")

    def test_unknown_source(self) -> None:
        with pytest.raises(ConfigError, match="不支持"):
            ServiceContainer().generator("optifine")

    def test_legacy_overrides_loaded(self, tmp_path: Path) -> None:
        path = tmp_path / "overrides.json"
        path.write_text(json.dumps({"versions": {"b1.7.3": {"+traits": ["legacyLaunch"]}}}), encoding="utf-8")
        cfg = cfgmod.Config(legacy_overrides_file=str(path))
        c = ServiceContainer(cfg)
        assert c.legacy_overrides == {"b1.7.3": {"+traits": ["legacyLaunch"]}}
        assert c.generator("mojang").legacy_overrides is c.legacy_overrides

    def test_global_singleton(self) -> None:
        a = get_container()
        assert get_container() is a
        reset_container()
        assert get_container() is not a
