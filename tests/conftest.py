"""共享测试替身: 内存 HTTP、内存输出仓库、jar 构造与上游载荷样例"""

from __future__ import annotations

import io
import json
import zipfile
from typing import Any

import pytest

from mcmeta.core.exceptions import NetworkError, RepositoryError
from mcmeta.sources.mojang import MANIFEST_URL


class FakeHttp:
    """按 URL 返回预置内容；值为异常实例时抛出，未登记的 URL 视为 404"""

    def __init__(self, routes: dict[str, Any] | None = None) -> None:
        self.routes: dict[str, Any] = dict(routes or {})
        self.calls: list[str] = []

    def get(self, url: str) -> bytes:
        self.calls.append(url)
        if url not in self.routes:
            raise NetworkError(f"资源不存在: {url}", url=url, kind=NetworkError.NOT_FOUND)
        value = self.routes[url]
        if isinstance(value, Exception):
            raise value
        if isinstance(value, bytes):
            return value
        return json.dumps(value).encode("utf-8")

    def get_json(self, url: str) -> Any:
        return json.loads(self.get(url))


class FakeRepo:
    """内存 OutputRepository，记录调用顺序"""

    def __init__(self, *, changes: bool = True, fail_on: str = "") -> None:
        self.calls: list[tuple[str, Any]] = []
        self.changes = changes
        self.fail_on = fail_on
        self.commits: list[str] = []

    def _record(self, name: str, arg: Any = None) -> None:
        self.calls.append((name, arg))
        if name == self.fail_on:
            raise RepositoryError(f"{name} 失败")

    def checkout(self, branch: str) -> None:
        self._record("checkout", branch)

    def hard_reset(self) -> None:
        self._record("hard_reset")

    def stage(self, paths: list[str]) -> None:
        self._record("stage", list(paths))

    def has_changes(self) -> bool:
        self._record("has_changes")
        return self.changes

    def commit(self, message: str) -> bool:
        self._record("commit", message)
        if not self.changes:
            return False
        self.commits.append(message)
        return True


def make_jar(
    members: dict[str, Any], date_time: tuple[int, int, int, int, int, int] = (2020, 1, 2, 3, 4, 6),
) -> bytes:
    """构造内存 jar；dict/list 成员按 JSON 写入"""
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        for name, content in members.items():
            if isinstance(content, (dict, list)):
                content = json.dumps(content)
            info = zipfile.ZipInfo(name, date_time=date_time)
            zf.writestr(info, content)
    return buf.getvalue()


def mojang_version(vid: str, release_time: str, **overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "id": vid,
        "type": "release",
        "releaseTime": release_time,
        "time": release_time,
        "mainClass": "net.minecraft.client.main.Main",
        "assetIndex": {"id": vid.rsplit(".", 1)[0], "url": f"https://assets.test/{vid}.json"},
        "assets": vid.rsplit(".", 1)[0],
        "downloads": {
            "client": {"sha1": "c" * 40, "size": 100, "url": f"https://dl.test/{vid}/client.jar"},
        },
        "libraries": [{"name": "com.mojang:brigadier:1.0.18"}],
        "javaVersion": {"component": "java-runtime-gamma", "majorVersion": 17},
        "minimumLauncherVersion": 21,
        "complianceLevel": 1,
    }
    payload.update(overrides)
    return payload


def mojang_routes(versions: list[tuple[str, str]], latest: str = "") -> dict[str, Any]:
    """Mojang 清单 + 各版本文件 + 资源索引的路由表；versions 为 (id, releaseTime)"""
    manifest = {
        "latest": {"release": latest or (versions[-1][0] if versions else ""), "snapshot": ""},
        "versions": [
            {
                "id": vid,
                "type": "release",
                "url": f"https://meta.test/mojang/{vid}.json",
                "time": rt,
                "releaseTime": rt,
                "sha1": f"sha-{vid}-{rt}",
                "complianceLevel": 1,
            }
            for vid, rt in versions
        ],
    }
    routes: dict[str, Any] = {MANIFEST_URL: manifest}
    for vid, rt in versions:
        routes[f"https://meta.test/mojang/{vid}.json"] = mojang_version(vid, rt)
        routes[f"https://assets.test/{vid}.json"] = {"objects": {f"icons/{vid}.png": {"hash": "a" * 40, "size": 1}}}
    return routes


@pytest.fixture()
def fake_repo() -> FakeRepo:
    return FakeRepo()
