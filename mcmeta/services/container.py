"""服务容器 - 统一依赖注入

CLI 和流水线通过容器获取协作者，同一容器内的实例共享（HTTP 客户端、镜像等）。

依赖关系图（→ 表示依赖）:
  adapter(source)   → http
  reconciler(source) → adapter, mirror
  generator(source) → legacy_overrides
  其余均为独立实例

用法:
    container = ServiceContainer()
    mirror = container.mirror            # 懒加载
    adapter = container.adapter("forge") # 按源缓存

    # 测试时直接注入替身
    container = ServiceContainer(config=cfg, http=FakeHttp(), output_repo=FakeRepo())
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Any

from mcmeta.core.exceptions import ConfigError
from mcmeta.core.models import Source

if TYPE_CHECKING:
    from mcmeta.core.config import Config
    from mcmeta.core.protocols import HttpClient, MirrorStore, OutputRepository
    from mcmeta.core.reconciler import Reconciler
    from mcmeta.generators.base import Generator
    from mcmeta.services.output import OutputWriter
    from mcmeta.sources.base import SourceAdapter

logger = logging.getLogger(__name__)


class ServiceContainer:
    """懒加载服务容器

    构造参数里显式给出的协作者直接使用，其余按配置懒加载。
    """

    def __init__(
        self,
        config: Config | None = None,
        *,
        http: HttpClient | None = None,
        mirror: MirrorStore | None = None,
        output_repo: OutputRepository | None = None,
    ) -> None:
        self._instances: dict[str, Any] = {}
        if config is None:
            from mcmeta.core.config import get_config
            config = get_config()
        self._config = config
        for name, value in (("http", http), ("mirror", mirror), ("output_repo", output_repo)):
            if value is not None:
                self._instances[name] = value

    @property
    def config(self) -> Config:
        return self._config

    # ---- 外部协作者 ----

    @property
    def http(self) -> HttpClient:
        if "http" not in self._instances:
            from mcmeta.utils.http import UrlLibHttpClient
            self._instances["http"] = UrlLibHttpClient(
                timeout=self._config.http_timeout,
                retries=self._config.http_retries,
                backoff=self._config.http_backoff,
                user_agent=self._config.user_agent,
            )
        return self._instances["http"]

    @property
    def mirror(self) -> MirrorStore:
        if "mirror" not in self._instances:
            from mcmeta.core.mirror import LocalMirror
            self._instances["mirror"] = LocalMirror(self._config.mirror_dir)
        return self._instances["mirror"]

    @property
    def output_repo(self) -> OutputRepository:
        if "output_repo" not in self._instances:
            from mcmeta.services.repo import GitOutputRepository
            self._instances["output_repo"] = GitOutputRepository(self._config.output_dir)
        return self._instances["output_repo"]

    @property
    def output_writer(self) -> OutputWriter:
        if "output_writer" not in self._instances:
            from mcmeta.services.output import OutputWriter
            self._instances["output_writer"] = OutputWriter(self._config.output_dir)
        return self._instances["output_writer"]

    @property
    def legacy_overrides(self) -> dict[str, dict[str, Any]]:
        """Mojang 旧版本覆盖表，文件可为 YAML 或 JSON；顶层可带 versions 包裹"""
        if "legacy_overrides" not in self._instances:
            path = self._config.legacy_overrides_file
            data: dict[str, Any] = {}
            if path:
                from mcmeta.utils.yaml_io import load_yaml
                data = load_yaml(path)
                if not data:
                    logger.warning("旧版本覆盖文件为空或不存在: %s", path)
                data = data.get("versions", data)
                if not isinstance(data, dict):
                    raise ConfigError(f"旧版本覆盖文件格式无效: {path}")
            self._instances["legacy_overrides"] = data
        return self._instances["legacy_overrides"]

    # ---- 按源实例 ----

    def _per_source(self, kind: str, source: Source | str) -> tuple[str, Source]:
        try:
            src = Source(source)
        except ValueError as e:
            raise ConfigError(f"不支持的上游源: {source}") from e
        return f"{kind}:{src.value}", src

    def adapter(self, source: Source | str) -> SourceAdapter:
        key, src = self._per_source("adapter", source)
        if key not in self._instances:
            from mcmeta.sources import create_adapter
            self._instances[key] = create_adapter(src, self.http)
        return self._instances[key]

    def generator(self, source: Source | str) -> Generator:
        key, src = self._per_source("generator", source)
        if key not in self._instances:
            from mcmeta.generators import create_generator
            self._instances[key] = create_generator(
                src, legacy_overrides=self.legacy_overrides,
            )
        return self._instances[key]

    def reconciler(self, source: Source | str) -> Reconciler:
        """每次新建: Reconciler 持有单次运行状态"""
        from mcmeta.core.reconciler import Reconciler
        return Reconciler(
            self.adapter(source),
            self.mirror,
            max_workers=self._config.max_workers,
            tie_break=self._config.tie_break,
        )


# ---- 全局单例 ----

_global: ServiceContainer | None = None
_global_lock = threading.Lock()


def get_container() -> ServiceContainer:
    """获取全局 ServiceContainer 单例（线程安全）"""
    global _global  # noqa: PLW0603
    if _global is not None:
        return _global
    with _global_lock:
        if _global is None:
            _global = ServiceContainer()
        return _global


def reset_container() -> None:
    """重置全局容器（仅用于测试）"""
    global _global  # noqa: PLW0603
    with _global_lock:
        _global = None
