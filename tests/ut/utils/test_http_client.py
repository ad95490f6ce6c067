"""HTTP 客户端重试与错误映射测试（patch urlopen）"""

from __future__ import annotations

import io
import socket
import urllib.error
from unittest.mock import MagicMock, patch

import pytest

from mcmeta.core.exceptions import NetworkError, ParseError, ValidationError
from mcmeta.utils.http import UrlLibHttpClient

URL = "https://meta.test/x.json"


def _response(body: bytes) -> MagicMock:
    resp = MagicMock()
    resp.__enter__.return_value.read.return_value = body
    return resp


def _http_error(code: int) -> urllib.error.HTTPError:
    return urllib.error.HTTPError(URL, code, "err", {}, io.BytesIO(b""))


class TestUrlLibHttpClient:
    def test_get_json(self) -> None:
        client = UrlLibHttpClient(sleep=lambda s: None)
        with patch("urllib.request.urlopen", return_value=_response(b'{"a": 1}')):
            assert client.get_json(URL) == {"a": 1}

    def test_retries_server_errors_with_backoff(self) -> None:
        delays: list[float] = []
        client = UrlLibHttpClient(retries=2, backoff=0.5, sleep=delays.append)
        side_effect = [_http_error(503), _http_error(502), _response(b"ok")]
        with patch("urllib.request.urlopen", side_effect=side_effect) as urlopen:
            assert client.get(URL) == b"ok"
        assert urlopen.call_count == 3
        assert delays == [0.5, 1.0]

    def test_not_found_not_retried(self) -> None:
        client = UrlLibHttpClient(retries=3, sleep=lambda s: None)
        with patch("urllib.request.urlopen", side_effect=_http_error(404)) as urlopen:
            with pytest.raises(NetworkError) as exc:
                client.get(URL)
        assert exc.value.kind == NetworkError.NOT_FOUND
        assert urlopen.call_count == 1

    def test_exhausted_retries_raise_last_error(self) -> None:
        client = UrlLibHttpClient(retries=1, sleep=lambda s: None)
        err = urllib.error.URLError(socket.timeout("timed out"))
        with patch("urllib.request.urlopen", side_effect=[err, err]):
            with pytest.raises(NetworkError) as exc:
                client.get(URL)
        assert exc.value.kind == NetworkError.TIMEOUT

    def test_no_attempt_raises_network_error(self) -> None:
        client = UrlLibHttpClient(sleep=lambda s: None)
        client.retries = -1
        with patch("urllib.request.urlopen") as urlopen:
            with pytest.raises(NetworkError, match="未发出任何请求"):
                client.get(URL)
        assert urlopen.call_count == 0

    def test_connection_refused(self) -> None:
        client = UrlLibHttpClient(retries=0, sleep=lambda s: None)
        err = urllib.error.URLError(ConnectionRefusedError("refused"))
        with patch("urllib.request.urlopen", side_effect=err):
            with pytest.raises(NetworkError) as exc:
                client.get(URL)
        assert exc.value.kind == NetworkError.CONNECTION

    def test_invalid_json(self) -> None:
        client = UrlLibHttpClient(sleep=lambda s: None)
        with patch("urllib.request.urlopen", return_value=_response(b"<html>")):
            with pytest.raises(ParseError, match="JSON"):
                client.get_json(URL)

    def test_file_scheme_rejected(self) -> None:
        with pytest.raises(ValidationError, match="协议"):
            UrlLibHttpClient().get("file:///etc/passwd")
