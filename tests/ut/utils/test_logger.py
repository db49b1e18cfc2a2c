"""日志配置测试"""

from __future__ import annotations

import io
import json
import logging

import pytest

from pkgextract.utils.logger import JSONFormatter, reset_logging, setup_logging


@pytest.fixture()
def root_logger():
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    yield root
    reset_logging()
    for h in saved_handlers:
        root.addHandler(h)
    root.setLevel(saved_level)


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        "pkgextract.core.extract", logging.WARNING, __file__, 1, "缓存损坏 %s", ("x",), None,
    )
    record.__dict__.update(extra)
    return record


class TestJSONFormatter:
    def test_basic_fields(self) -> None:
        entry = json.loads(JSONFormatter().format(_record()))
        assert entry["level"] == "WARNING"
        assert entry["logger"] == "pkgextract.core.extract"
        assert entry["message"] == "缓存损坏 x"
        assert "integrity" not in entry

    def test_context_fields(self) -> None:
        entry = json.loads(JSONFormatter().format(
            _record(spec="left-pad@1.3.0", integrity="sha512-AAA", source="digest"),
        ))
        assert entry["spec"] == "left-pad@1.3.0"
        assert entry["integrity"] == "sha512-AAA"
        assert entry["source"] == "digest"

    def test_non_ascii_kept(self) -> None:
        assert "缓存损坏" in JSONFormatter().format(_record())


class TestSetupLogging:
    def test_json_output(self, root_logger: logging.Logger) -> None:
        buf = io.StringIO()
        setup_logging("DEBUG", json_output=True, stream=buf)
        logging.getLogger("pkgextract.test").debug("hello", extra={"dest": "/tmp/x"})
        entry = json.loads(buf.getvalue().strip())
        assert entry["message"] == "hello"
        assert entry["dest"] == "/tmp/x"
        assert root_logger.level == logging.DEBUG

    def test_repeated_setup_single_handler(self, root_logger: logging.Logger) -> None:
        setup_logging("INFO", stream=io.StringIO())
        setup_logging("INFO", stream=io.StringIO())
        assert len(root_logger.handlers) == 1

    def test_unknown_level_falls_back(self, root_logger: logging.Logger) -> None:
        setup_logging("LOUD", stream=io.StringIO())
        assert root_logger.level == logging.INFO
