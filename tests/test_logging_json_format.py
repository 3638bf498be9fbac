from __future__ import annotations

import io
import json
import logging

import pytest

from mission_control.core.logging.context import get_log_context, log_context
from mission_control.core.logging.json_formatter import JSONFormatter


def _json_logger(name: str) -> tuple[logging.Logger, io.StringIO]:
    stream = io.StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(JSONFormatter())

    logger = logging.getLogger(name)
    logger.handlers = []
    logger.setLevel(logging.INFO)
    logger.propagate = False
    logger.addHandler(handler)
    return logger, stream


def test_logging_json_line_with_context() -> None:
    logger, stream = _json_logger("mission_control.test.json")

    with log_context(run_id="r1", diff_id="d1"):
        logger.info("hello", extra={"extra_fields": {"path": "/tmp/a.txt"}})

    payload = json.loads(stream.getvalue().strip())
    assert payload["msg"] == "hello"
    assert payload["level"] == "INFO"
    assert payload["logger"] == "mission_control.test.json"
    assert payload["run_id"] == "r1"
    assert payload["diff_id"] == "d1"
    assert payload["path"] == "/tmp/a.txt"
    assert "ts_iso_utc" in payload


def test_extra_fields_are_redacted() -> None:
    logger, stream = _json_logger("mission_control.test.redact")

    logger.info("login", extra={"extra_fields": {"api_token": "abc", "note": "password=hunter2hunter2"}})

    payload = json.loads(stream.getvalue().strip())
    assert payload["api_token"] == "[REDACTED]"
    assert "hunter2hunter2" not in payload["note"]


def test_nested_context_keeps_outer_values() -> None:
    with log_context(run_id="outer"):
        with log_context(diff_id="inner"):
            assert get_log_context() == {"run_id": "outer", "diff_id": "inner"}
        assert get_log_context() == {"run_id": "outer"}
    assert get_log_context() == {}


def test_unknown_context_field_is_rejected() -> None:
    with pytest.raises(TypeError):
        with log_context(correlation_id="c1"):
            pass
    assert get_log_context() == {}
