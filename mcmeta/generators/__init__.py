"""各上游源的生成器"""

from __future__ import annotations

from typing import Any

from mcmeta.core.exceptions import ConfigError
from mcmeta.core.models import Source
from mcmeta.generators.base import Generator, GeneratorOutput
from mcmeta.generators.fabric import FabricGenerator
from mcmeta.generators.forge import ForgeGenerator
from mcmeta.generators.liteloader import LiteloaderGenerator
from mcmeta.generators.mojang import MojangGenerator


def create_generator(
    source: Source | str, *, legacy_overrides: dict[str, dict[str, Any]] | None = None,
) -> Generator:
    """按源创建生成器；legacy_overrides 只对 Mojang 生效"""
    try:
        source = Source(source)
    except ValueError as e:
        raise ConfigError(f"不支持的上游源: {source}") from e
    if source == Source.MOJANG:
        return MojangGenerator(legacy_overrides)
    if source == Source.FORGE:
        return ForgeGenerator()
    if source == Source.FABRIC:
        return FabricGenerator()
    return LiteloaderGenerator()


__all__ = [
    "FabricGenerator",
    "ForgeGenerator",
    "Generator",
    "GeneratorOutput",
    "LiteloaderGenerator",
    "MojangGenerator",
    "create_generator",
]
