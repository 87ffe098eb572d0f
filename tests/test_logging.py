"""Tests for structured logging."""

import logging

from pagecraft.core.logging import StructuredFormatter, get_logger, log_with_context


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        "pagecraft.test", logging.INFO, __file__, 1, "hello %s", ("world",), None
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_formatter_includes_context_fields():
    line = StructuredFormatter().format(
        _record(session_id="s-1", component="Header", extra_data={"attempt": 2})
    )

    assert "message=hello world" in line
    assert "session_id=s-1" in line
    assert "component=Header" in line
    assert "attempt=2" in line


def test_formatter_omits_missing_context():
    line = StructuredFormatter().format(_record())

    assert "session_id=" not in line
    assert "level=INFO" in line


def test_get_logger_nests_under_package_root():
    assert get_logger("pagecraft.core.composer").name == "pagecraft.core.composer"
    assert get_logger("scripts.seed").name == "pagecraft.scripts.seed"


def test_log_with_context_promotes_session_and_component():
    logger = get_logger("pagecraft.test_context")
    captured: list[logging.LogRecord] = []

    class Capture(logging.Handler):
        def emit(self, record):
            captured.append(record)

    handler = Capture()
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)
    try:
        log_with_context(logger, logging.INFO, "generated", session_id="s-9", component="Hero", ms=12)
    finally:
        logger.removeHandler(handler)

    record = captured[0]
    assert record.session_id == "s-9"
    assert record.component == "Hero"
    assert record.extra_data == {"ms": 12}
