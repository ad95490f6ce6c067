"""配置加载测试"""

from __future__ import annotations

from pathlib import Path

import pytest

from mcmeta.core.config import Config
from mcmeta.core.exceptions import ConfigError


class TestConfig:
    def test_defaults(self) -> None:
        cfg = Config()
        assert cfg.sources == ["mojang", "forge", "fabric", "liteloader"]
        assert cfg.tie_break == "refetch"
        assert cfg.abort_on_source_failure is True

    def test_from_file_keeps_unknown_keys(self, tmp_path: Path) -> None:
        path = tmp_path / "cfg.yml"
        path.write_text("max_workers: 2\nsources: [mojang]\ncustom_key: 1\n", encoding="utf-8")
        cfg = Config.from_file(str(path))
        assert cfg.max_workers == 2
        assert cfg.sources == ["mojang"]
        assert cfg.extra == {"custom_key": 1}

    def test_missing_file_gives_defaults(self, tmp_path: Path) -> None:
        assert Config.from_file(str(tmp_path / "none.yml")) == Config()

    @pytest.mark.parametrize("kwargs, message", [
        ({"sources": ["optifine"]}, "未知的上游源"),
        ({"sources": ["mojang", "mojang"]}, "重复"),
        ({"tie_break": "maybe"}, "tie_break"),
        ({"max_workers": 0}, "max_workers"),
    ])
    def test_invalid_values(self, kwargs: dict, message: str) -> None:
        with pytest.raises(ConfigError, match=message):
            Config(**kwargs)

    def test_shipped_default_config_is_valid(self) -> None:
        path = Path(__file__).resolve().parents[3] / "configs" / "default.yml"
        cfg = Config.from_file(str(path))
        assert cfg.extra == {}
        assert cfg.output_branch == "main"
