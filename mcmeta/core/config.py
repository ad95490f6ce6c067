"""集中配置管理

提供统一的配置入口，支持从 YAML 文件加载 + 编程式覆盖。
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field

from mcmeta.core.exceptions import ConfigError
from mcmeta.utils.yaml_io import load_yaml

logger = logging.getLogger(__name__)

DEFAULT_SOURCES = ["mojang", "forge", "fabric", "liteloader"]
TIE_BREAK_POLICIES = ("refetch", "keep")


@dataclass
class Config:
    """全局配置"""

    # 目录
    mirror_dir: str = "upstream"
    output_dir: str = "meta"
    output_branch: str = "main"
    legacy_overrides_file: str = ""

    # 源与顺序
    sources: list[str] = field(default_factory=lambda: list(DEFAULT_SOURCES))

    # 并发
    max_workers: int = 8
    parallel_sources: int = 1
    generator_workers: int = 4

    # HTTP
    http_timeout: float = 30.0
    http_retries: int = 3
    http_backoff: float = 1.0
    user_agent: str = "mcmeta"

    # 同步策略
    tie_break: str = "refetch"
    abort_on_source_failure: bool = True

    # 输出仓库
    commit_output: bool = True
    commit_message: str = "Update metadata"

    # 自定义扩展 (放不到字段里的配置项)
    extra: dict = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """校验配置取值，非法时抛 ConfigError"""
        from mcmeta.core.models import Source
        unknown = [s for s in self.sources if s not in Source.values()]
        if unknown:
            raise ConfigError(f"未知的上游源: {unknown}，可用: {Source.values()}")
        if len(set(self.sources)) != len(self.sources):
            raise ConfigError(f"上游源重复: {self.sources}")
        if self.tie_break not in TIE_BREAK_POLICIES:
            raise ConfigError(
                f"tie_break 取值无效: {self.tie_break}，可用: {list(TIE_BREAK_POLICIES)}"
            )
        for name in ("max_workers", "parallel_sources", "generator_workers"):
            if getattr(self, name) < 1:
                raise ConfigError(f"{name} 必须 >= 1")

    @classmethod
    def from_file(cls, path: str = "configs/default.yml") -> Config:
        """从 YAML 文件加载配置，不存在则返回默认"""
        data = load_yaml(path)
        if not data:
            return cls()
        known = {f.name for f in cls.__dataclass_fields__.values()}
        matched = {k: v for k, v in data.items() if k in known and k != "extra"}
        extra = {k: v for k, v in data.items() if k not in known}
        try:
            cfg = cls(**matched)
        except TypeError as e:
            raise ConfigError(f"配置文件内容无效: {path} - {e}") from e
        cfg.extra = extra
        return cfg

    def to_dict(self) -> dict:
        return asdict(self)


# 全局单例，首次 import 时不加载文件；由 CLI 入口显式初始化
_current: Config | None = None


def get_config() -> Config:
    """获取当前配置（未初始化则返回默认值）"""
    global _current  # noqa: PLW0603
    if _current is None:
        _current = Config()
    return _current


def init_config(path: str = "configs/default.yml") -> Config:
    """从文件初始化全局配置"""
    global _current  # noqa: PLW0603
    _current = Config.from_file(path)
    logger.info("配置已加载: %s", path)
    return _current
