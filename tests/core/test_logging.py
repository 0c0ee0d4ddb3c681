from __future__ import annotations

import json
import logging

from educonnect.core.logging import _ContainerFormatter, _JsonFormatter, setup_logging
from educonnect.middleware.request_context import request_id_var


def _record(level: int = logging.INFO, msg: str = "hello", lineno: int = 1):
    return logging.LogRecord(
        name="educonnect.test",
        level=level,
        pathname="grading.py",
        lineno=lineno,
        msg=msg,
        args=(),
        exc_info=None,
    )


def test_setup_logging_sets_root_level() -> None:
    setup_logging("debug")
    assert logging.getLogger().level == logging.DEBUG

    setup_logging("warning")
    assert logging.getLogger().level == logging.WARNING


def test_setup_logging_defaults_to_info_for_unknown_level() -> None:
    setup_logging("nonexistent")
    assert logging.getLogger().level == logging.INFO


def test_setup_logging_quiets_drivers_at_debug() -> None:
    setup_logging("debug")
    assert logging.getLogger("uvicorn").level == logging.WARNING
    assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING


def test_setup_logging_installs_one_handler() -> None:
    setup_logging("info")
    setup_logging("info", json_format=True)
    handlers = logging.getLogger().handlers
    assert len(handlers) == 1
    assert isinstance(handlers[0].formatter, _JsonFormatter)


def test_container_formatter_location_only_for_warnings() -> None:
    fmt = _ContainerFormatter()
    assert "[grading.py:" not in fmt.format(_record())
    assert "[grading.py:42]" in fmt.format(_record(logging.WARNING, "bad", 42))


def test_json_formatter_promotes_grading_context() -> None:
    record = _record(msg="Certificate issued")
    record.user_id = "u-1"  # type: ignore[attr-defined]
    record.assessment_id = "a-1"  # type: ignore[attr-defined]
    record.credential_id = "EC-abcd-0001-XY12"  # type: ignore[attr-defined]

    parsed = json.loads(_JsonFormatter().format(record))
    assert parsed["message"] == "Certificate issued"
    assert parsed["user_id"] == "u-1"
    assert parsed["assessment_id"] == "a-1"
    assert parsed["credential_id"] == "EC-abcd-0001-XY12"
    assert "course_id" not in parsed


def test_handler_stamps_request_id() -> None:
    setup_logging("info", json_format=True)
    handler = logging.getLogger().handlers[0]

    token = request_id_var.set("req-123")
    try:
        record = _record()
        assert handler.filter(record)
    finally:
        request_id_var.reset(token)

    assert json.loads(handler.format(record))["request_id"] == "req-123"
