import json
import logging
import sys

from loguru import logger as loguru_logger

from flame.core.logging_utils import (
    EnhancedJsonFormatter,
    InterceptHandler,
    generate_correlation_id,
    setup_json_logging,
)


def _record(**extra):
    record = logging.LogRecord(
        name="flame.transfer.importer",
        level=logging.INFO,
        pathname=__file__,
        lineno=10,
        msg="import_completed",
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_formatter_groups_extra_fields():
    formatter = EnhancedJsonFormatter(include_location=False, include_process_info=False)

    payload = json.loads(formatter.format(_record(format="json", error_count=0)))

    assert payload["event"] == "import_completed"
    assert payload["level"] == "INFO"
    assert payload["logger"] == "flame.transfer.importer"
    assert payload["extra"] == {"format": "json", "error_count": 0}
    assert "location" not in payload


def test_formatter_lifts_correlation_id():
    formatter = EnhancedJsonFormatter()

    payload = json.loads(formatter.format(_record(correlation_id="api-abc")))

    assert payload["correlation_id"] == "api-abc"
    assert "extra" not in payload
    assert payload["location"].endswith(":10")


def test_formatter_includes_exception():
    formatter = EnhancedJsonFormatter(include_location=False)
    try:
        raise ValueError("bad row")
    except ValueError:
        record = _record()
        record.exc_info = sys.exc_info()

    payload = json.loads(formatter.format(record))

    assert payload["exception"]["type"] == "ValueError"
    assert payload["exception"]["message"] == "bad row"


def test_setup_selects_handler_by_flag():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    try:
        setup_json_logging("WARNING", use_loguru=False)
        assert isinstance(root.handlers[0].formatter, EnhancedJsonFormatter)
        assert root.level == logging.WARNING

        setup_json_logging("INFO", use_loguru=True)
        assert isinstance(root.handlers[0], InterceptHandler)
    finally:
        loguru_logger.remove()
        root.handlers[:] = handlers
        root.setLevel(level)


def test_correlation_ids_are_short_and_unique():
    first, second = generate_correlation_id(), generate_correlation_id()

    assert len(first) == 12
    assert first != second
