"""
Tests for log formatting.
"""

from __future__ import annotations

import io
import json
import logging

import pytest

from doppelganger.logging_config import HumanFormatter, JSONFormatter, setup_logging


def _record(msg: str, level: int = logging.INFO, **extra) -> logging.LogRecord:
    record = logging.LogRecord("doppelganger.webhook", level, __file__, 1, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.fixture
def restore_root():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


class TestJSONFormatter:

    def test_fields(self):
        entry = json.loads(JSONFormatter().format(_record("[webhook] updated octo/hello")))
        assert entry["level"] == "INFO"
        assert entry["logger"] == "doppelganger.webhook"
        assert entry["message"] == "[webhook] updated octo/hello"
        assert entry["ts"].endswith("+00:00")

    def test_extra_fields(self):
        record = _record("updated", repo="octo/hello", event="push", status=200)
        entry = json.loads(JSONFormatter().format(record))
        assert (entry["repo"], entry["event"], entry["status"]) == ("octo/hello", "push", 200)
        assert "action" not in entry


class TestHumanFormatter:

    def test_line_layout(self):
        line = HumanFormatter().format(_record("[webhook] hello", logging.WARNING))
        assert " WARNING " in line
        assert " webhook " in line
        assert line.endswith("[webhook] hello")
        assert "\033[" not in line

    def test_color(self):
        line = HumanFormatter(use_color=True).format(_record("boom", logging.ERROR))
        assert "\033[31m" in line


class TestSetupLogging:

    def test_json_output(self, restore_root):
        stream = io.StringIO()
        setup_logging(level="debug", format_type="json", stream=stream)

        logging.getLogger("doppelganger.test").info("[test] hello", extra={"repo": "octo/hello"})

        entry = json.loads(stream.getvalue().strip().splitlines()[-1])
        assert entry["message"] == "[test] hello"
        assert entry["repo"] == "octo/hello"
        assert logging.getLogger().level == logging.DEBUG
        assert logging.getLogger("httpx").level == logging.WARNING

    def test_environment_defaults(self, restore_root, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "warning")
        monkeypatch.delenv("LOG_FORMAT", raising=False)
        stream = io.StringIO()
        setup_logging(stream=stream)

        assert logging.getLogger().level == logging.WARNING
        assert isinstance(logging.getLogger().handlers[0].formatter, HumanFormatter)

    def test_unknown_level_falls_back_to_info(self, restore_root):
        setup_logging(level="chatty", stream=io.StringIO())
        assert logging.getLogger().level == logging.INFO
