from __future__ import annotations

import json
import logging

from institute.core.logging import _ContainerFormatter, _JsonFormatter, setup_logging


def _record(level: int = logging.INFO, **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="institute.test",
        level=level,
        pathname="catalog_service.py",
        lineno=42,
        msg="Course %s saved",
        args=("c-1",),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_setup_logging_sets_root_level() -> None:
    setup_logging("debug")
    assert logging.getLogger().level == logging.DEBUG

    setup_logging("warning")
    assert logging.getLogger().level == logging.WARNING


def test_setup_logging_defaults_to_info_for_unknown_level() -> None:
    setup_logging("nonexistent")
    assert logging.getLogger().level == logging.INFO


def test_setup_logging_quiets_sdk_loggers_at_debug() -> None:
    setup_logging("debug")
    assert logging.getLogger("uvicorn").level == logging.WARNING
    assert logging.getLogger("httpx").level == logging.WARNING
    assert logging.getLogger("google_genai").level == logging.WARNING


def test_setup_logging_installs_json_formatter() -> None:
    setup_logging("info", json_format=True)
    handlers = logging.getLogger().handlers
    assert len(handlers) == 1
    assert isinstance(handlers[0].formatter, _JsonFormatter)
    setup_logging("info")


def test_container_formatter_adds_location_for_warnings() -> None:
    fmt = _ContainerFormatter()
    assert "[catalog_service.py:42]" in fmt.format(_record(logging.WARNING))
    assert "[catalog_service.py:42]" not in fmt.format(_record(logging.INFO))


def test_json_formatter_lifts_context_fields() -> None:
    line = _JsonFormatter().format(_record(request_id="r-1", course_id="c-1"))
    entry = json.loads(line)
    assert entry["message"] == "Course c-1 saved"
    assert entry["request_id"] == "r-1"
    assert entry["course_id"] == "c-1"
    assert "user_id" not in entry
