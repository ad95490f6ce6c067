"""Maven / Gradle 坐标

形如 ``group:artifact:version[:classifier][@ext]`` 的坐标解析与路径计算，
Forge / Fabric / Liteloader 的库地址都由此拼出。
"""

from __future__ import annotations

from dataclasses import dataclass

from mcmeta.core.exceptions import ParseError

LWJGL_GROUPS = ("org.lwjgl", "org.lwjgl.lwjgl", "net.java.jinput", "net.java.jutils")


@dataclass(frozen=True)
class GradleSpecifier:
    group: str
    artifact: str
    version: str
    classifier: str | None = None
    extension: str = "jar"

    @classmethod
    def parse(cls, text: str) -> GradleSpecifier:
        coords, _, ext = text.partition("@")
        parts = coords.split(":")
        if len(parts) not in (3, 4) or not all(parts):
            raise ParseError(f"无效的 Maven 坐标: {text!r}")
        return cls(
            group=parts[0],
            artifact=parts[1],
            version=parts[2],
            classifier=parts[3] if len(parts) == 4 else None,
            extension=ext or "jar",
        )

    @property
    def filename(self) -> str:
        if self.classifier:
            return f"{self.artifact}-{self.version}-{self.classifier}.{self.extension}"
        return f"{self.artifact}-{self.version}.{self.extension}"

    @property
    def base(self) -> str:
        return f"{self.group.replace('.', '/')}/{self.artifact}/{self.version}"

    @property
    def path(self) -> str:
        return f"{self.base}/{self.filename}"

    def url(self, server: str) -> str:
        """拼接完整下载地址，server 末尾斜杠可有可无"""
        return f"{server.rstrip('/')}/{self.path}"

    def is_lwjgl(self) -> bool:
        return self.group in LWJGL_GROUPS

    def __str__(self) -> str:
        text = f"{self.group}:{self.artifact}:{self.version}"
        if self.classifier:
            text += f":{self.classifier}"
        if self.extension != "jar":
            text += f"@{self.extension}"
        return text
