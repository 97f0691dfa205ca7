"""Tests for log formatting and stream routing."""

import logging

import pytest

from mayfly.logging import StreamFormatter, StreamRoutingFilter, configure_logging


def make_record(level: int, name: str = "mayfly.core.orchestrator") -> logging.LogRecord:
    return logging.LogRecord(name, level, __file__, 1, "instance %s", ("i-1",), None)


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield root
    root.handlers = handlers
    root.setLevel(level)


@pytest.mark.parametrize(
    ("level", "expected"),
    [
        (logging.DEBUG, "instance i-1"),
        (logging.INFO, "instance i-1"),
        (logging.WARNING, "[warning] instance i-1"),
        (logging.ERROR, "[error] instance i-1"),
    ],
)
def test_formatter_prefixes_by_level(level, expected):
    assert StreamFormatter("%(message)s").format(make_record(level)) == expected


def test_formatter_shows_logger_name_in_debug():
    formatter = StreamFormatter("%(message)s", show_logger=True)

    assert formatter.format(make_record(logging.INFO)) == "mayfly.core.orchestrator: instance i-1"


def test_routing_filter_splits_at_warning():
    stdout = StreamRoutingFilter("stdout")
    stderr = StreamRoutingFilter("stderr")

    assert stdout.filter(make_record(logging.INFO))
    assert not stdout.filter(make_record(logging.WARNING))
    assert stderr.filter(make_record(logging.WARNING))
    assert not stderr.filter(make_record(logging.DEBUG))


def test_routing_filter_rejects_unknown_stream():
    with pytest.raises(ValueError, match="stream must be"):
        StreamRoutingFilter("syslog")


def test_configure_logging_levels(restore_root_logger):
    configure_logging(debug=False)
    assert restore_root_logger.level == logging.WARNING
    assert len(restore_root_logger.handlers) == 2

    configure_logging(debug=True)
    assert restore_root_logger.level == logging.DEBUG
    assert logging.getLogger("botocore").level == logging.WARNING
