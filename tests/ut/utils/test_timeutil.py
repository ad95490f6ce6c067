"""时间解析与格式化测试"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from mcmeta.utils.timeutil import format_time, parse_time


class TestParseTime:
    @pytest.mark.parametrize("value", [
        "2023-06-12T13:25:51+00:00",
        "2023-06-12T13:25:51Z",
        "2023-06-12T15:25:51+02:00",
        "2023-06-12T13:25:51.123+00:00",
        1686576351,
        "1686576351",
    ])
    def test_formats_normalized_to_utc(self, value) -> None:
        assert parse_time(value) == datetime(2023, 6, 12, 13, 25, 51, tzinfo=timezone.utc)

    @pytest.mark.parametrize("value", [None, "", "yesterday", True, [1]])
    def test_unrecognized_is_none(self, value) -> None:
        assert parse_time(value) is None


class TestFormatTime:
    def test_fixed_utc_format(self) -> None:
        dt = datetime(2023, 6, 12, 13, 25, 51, tzinfo=timezone.utc)
        assert format_time(dt) == "2023-06-12T13:25:51+00:00"

    def test_none(self) -> None:
        assert format_time(None) is None
