"""日志配置测试"""

from __future__ import annotations

import json
import logging
import sys

from mcmeta.utils.logger import JSONFormatter, setup_logging


class TestJSONFormatter:
    def test_fields(self) -> None:
        record = logging.LogRecord(
            "mcmeta.core.reconciler", logging.WARNING, __file__, 10, "拉取 %s", ("1.20",), None,
        )
        entry = json.loads(JSONFormatter().format(record))
        assert entry["level"] == "WARNING"
        assert entry["logger"] == "mcmeta.core.reconciler"
        assert entry["message"] == "拉取 1.20"
        assert "exception" not in entry

    def test_exception_included(self) -> None:
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            record = logging.LogRecord("x", logging.ERROR, __file__, 1, "failed", (), sys.exc_info())
        entry = json.loads(JSONFormatter().format(record))
        assert "RuntimeError: boom" in entry["exception"]


class TestSetupLogging:
    def test_replaces_handlers(self) -> None:
        root = logging.getLogger()
        saved = root.handlers[:], root.level
        try:
            setup_logging("DEBUG")
            setup_logging("WARNING", json_output=True)
            assert len(root.handlers) == 1
            assert isinstance(root.handlers[0].formatter, JSONFormatter)
            assert root.level == logging.WARNING
        finally:
            for h in root.handlers[:]:
                root.removeHandler(h)
            for h in saved[0]:
                root.addHandler(h)
            root.setLevel(saved[1])
