"""老版本 FML 运行时自行下载的库（1.3.2 – 1.5.2）

(文件名, sha1, 是否由我方镜像托管)
"""

from __future__ import annotations

from typing import NamedTuple

FORGE_FMLLIBS_URL = "https://files.minecraftforge.net/fmllibs/"
MIRROR_FMLLIBS_URL = "https://files.polymc.org/fmllibs/"


class FMLLib(NamedTuple):
    name: str
    sha1: str
    ours: bool


_FML_1_3 = [
    FMLLib("argo-2.25.jar", "bb672829fde76cb163004752b86b0484bd0a7f4b", False),
    FMLLib("guava-12.0.1.jar", "b8e78b9af7bf45900e14c6f958486b6ca682195f", False),
    FMLLib("asm-all-4.0.jar", "98308890597acb64047f7e896638e0d98753ae82", False),
]

_FML_1_4 = _FML_1_3 + [
    FMLLib("bcprov-jdk15on-147.jar", "b6f5d9926b0afbde9f4dbe3db88c5247be7794bb", False),
]


def _fml_1_5(deobf_name: str, deobf_sha1: str) -> list[FMLLib]:
    return [
        FMLLib("argo-small-3.2.jar", "58912ea2858d168c50781f956fa5b59f0f7c6b51", False),
        FMLLib("guava-14.0-rc3.jar", "931ae21fa8014c3ce686aaa621eae565fefb1a6a", False),
        FMLLib("asm-all-4.1.jar", "054986e962b88d8660ae4566475658469595ef58", False),
        FMLLib("bcprov-jdk15on-148.jar", "960dea7c9181ba0b17e8bab0c06a43f0a5f04e65", True),
        FMLLib(deobf_name, deobf_sha1, False),
        FMLLib("scala-library.jar", "458d046151ad179c85429ed7420ffb1eaf6ddf85", True),
    ]


FML_LIB_MAPPING: dict[str, list[FMLLib]] = {
    "1.3.2": _FML_1_3,
    **{v: _FML_1_4 for v in (
        "1.4", "1.4.1", "1.4.2", "1.4.3", "1.4.4", "1.4.5", "1.4.6", "1.4.7",
    )},
    "1.5": _fml_1_5("deobfuscation_data_1.5.zip", "5f7c142d53776f16304c0bbe10542014abad6af8"),
    "1.5.1": _fml_1_5("deobfuscation_data_1.5.1.zip", "22e221a0d89516c1f721d6cab056a7e37471d0a6"),
    "1.5.2": _fml_1_5("deobfuscation_data_1.5.2.zip", "446e55cd986582c70fcf12cb27bc00114c5adfd9"),
}


def fml_libs_for(mc_version: str) -> list[dict[str, str]] | None:
    libs = FML_LIB_MAPPING.get(mc_version)
    if libs is None:
        return None
    return [
        {
            "name": lib.name,
            "sha1": lib.sha1,
            "url": (MIRROR_FMLLIBS_URL if lib.ours else FORGE_FMLLIBS_URL) + lib.name,
        }
        for lib in libs
    ]
