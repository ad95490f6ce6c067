"""上游源适配器

用法:
    from mcmeta.sources import create_adapter
    adapter = create_adapter(Source.FORGE, http)
"""

from __future__ import annotations

from mcmeta.core.exceptions import ConfigError
from mcmeta.core.models import Source
from mcmeta.core.protocols import HttpClient
from mcmeta.sources.base import SourceAdapter
from mcmeta.sources.fabric import FabricSource
from mcmeta.sources.forge import ForgeSource
from mcmeta.sources.liteloader import LiteloaderSource
from mcmeta.sources.mojang import MojangSource

_ADAPTERS: dict[Source, type[SourceAdapter]] = {
    Source.MOJANG: MojangSource,
    Source.FORGE: ForgeSource,
    Source.FABRIC: FabricSource,
    Source.LITELOADER: LiteloaderSource,
}


def create_adapter(source: Source | str, http: HttpClient) -> SourceAdapter:
    """按源创建适配器"""
    try:
        cls = _ADAPTERS[Source(source)]
    except (KeyError, ValueError) as e:
        raise ConfigError(f"不支持的上游源: {source}") from e
    return cls(http)


__all__ = [
    "FabricSource",
    "ForgeSource",
    "LiteloaderSource",
    "MojangSource",
    "SourceAdapter",
    "create_adapter",
]
