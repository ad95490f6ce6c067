"""HTTP 客户端 - 超时 + 重试 + 指数退避

上游拉取统一经过 UrlLibHttpClient.get()，错误映射为 NetworkError（带 kind）
或 ParseError。重试策略由客户端自己负责，核心流程只看到最终成功或失败。

重试规则:
  - 超时 / 连接失败 / 5xx: 重试，间隔 backoff * 2^n 秒
  - 404 / 其他 4xx: 不重试，立即失败
"""

from __future__ import annotations

import json
import logging
import socket
import time
import urllib.error
import urllib.request
from typing import Any, Callable
from urllib.parse import urlparse

from mcmeta.core.exceptions import NetworkError, ParseError, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "mcmeta"
_ALLOWED_SCHEMES = frozenset(("http", "https"))


def _check_scheme(url: str) -> None:
    """上游地址只允许 http/https，manifest 中的 file:// 等链接直接拒绝"""
    scheme = urlparse(url).scheme
    if scheme not in _ALLOWED_SCHEMES:
        raise ValidationError(f"不允许的 URL 协议 '{scheme}': {url}")


class UrlLibHttpClient:
    """基于 urllib 的默认 HTTP 客户端"""

    def __init__(
        self,
        timeout: float = 30.0,
        retries: int = 3,
        backoff: float = 1.0,
        user_agent: str = DEFAULT_USER_AGENT,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.timeout = timeout
        self.retries = max(0, retries)
        self.backoff = backoff
        self.user_agent = user_agent
        self._sleep = sleep

    def get(self, url: str) -> bytes:
        """下载 URL 内容，重试耗尽后抛 NetworkError"""
        _check_scheme(url)
        last_error: NetworkError | None = None
        for attempt in range(self.retries + 1):
            if attempt:
                delay = self.backoff * (2 ** (attempt - 1))
                logger.info("  重试 (%d/%d, %.1f秒后): %s", attempt, self.retries, delay, url)
                self._sleep(delay)
            try:
                return self._get_once(url)
            except NetworkError as e:
                if e.kind in (NetworkError.NOT_FOUND, NetworkError.CLIENT_ERROR):
                    raise
                last_error = e
                logger.warning("请求失败 (%s): %s - %s", e.kind, url, e)
        if last_error is None:
            raise NetworkError(f"未发出任何请求 (retries={self.retries}): {url}", url=url)
        raise last_error

    def get_json(self, url: str) -> Any:
        """下载并解析 JSON"""
        body = self.get(url)
        try:
            return json.loads(body)
        except ValueError as e:
            raise ParseError(f"JSON 解析失败: {url} - {e}") from e

    def _get_once(self, url: str) -> bytes:
        request = urllib.request.Request(url, headers={"User-Agent": self.user_agent})
        try:
            with urllib.request.urlopen(request, timeout=self.timeout) as resp:  # nosec B310
                return resp.read()
        except urllib.error.HTTPError as e:
            if e.code == 404:
                raise NetworkError(f"资源不存在: {url}", url=url, kind=NetworkError.NOT_FOUND) from e
            if e.code >= 500:
                raise NetworkError(
                    f"服务端错误 {e.code}: {url}", url=url, kind=NetworkError.SERVER_ERROR,
                ) from e
            raise NetworkError(
                f"请求被拒绝 {e.code}: {url}", url=url, kind=NetworkError.CLIENT_ERROR,
            ) from e
        except urllib.error.URLError as e:
            if isinstance(e.reason, (socket.timeout, TimeoutError)):
                raise NetworkError(f"请求超时: {url}", url=url, kind=NetworkError.TIMEOUT) from e
            raise NetworkError(
                f"连接失败: {url} - {e.reason}", url=url, kind=NetworkError.CONNECTION,
            ) from e
        except (socket.timeout, TimeoutError) as e:
            raise NetworkError(f"请求超时: {url}", url=url, kind=NetworkError.TIMEOUT) from e
        except OSError as e:
            raise NetworkError(f"连接失败: {url} - {e}", url=url, kind=NetworkError.CONNECTION) from e
