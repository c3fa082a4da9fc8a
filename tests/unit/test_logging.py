from __future__ import annotations

import json
import logging

from arcade_compliance.utils.logging import _json_formatter, configure_logging

EXPECTED_TOTAL = 10
EXPECTED_MAX_B3 = 2


def _record() -> logging.LogRecord:
    return logging.LogRecord(
        name="test.logger",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="hello",
        args=(),
        exc_info=None,
    )


def test_json_formatter_promotes_standard_extra_fields() -> None:
    record = _record()
    record.total = EXPECTED_TOTAL
    record.arcade_id = "arcade-1"

    payload = json.loads(_json_formatter(record))

    assert payload["level"] == "INFO"
    assert payload["logger"] == "test.logger"
    assert payload["message"] == "hello"
    assert payload["total"] == EXPECTED_TOTAL
    assert payload["arcade_id"] == "arcade-1"
    assert "pathname" not in payload


def test_json_formatter_supports_legacy_nested_extra_field() -> None:
    record = _record()
    record.extra = {"max_b3_allowed": EXPECTED_MAX_B3}

    payload = json.loads(_json_formatter(record))

    assert payload["max_b3_allowed"] == EXPECTED_MAX_B3
    assert "extra" not in payload


def test_configure_logging_without_force_keeps_existing_handlers() -> None:
    root = logging.getLogger()
    sentinel = logging.NullHandler()
    saved = root.handlers[:]
    root.handlers = [sentinel]
    try:
        configure_logging(level="DEBUG", force=False)
        assert root.handlers == [sentinel]
    finally:
        root.handlers = saved
