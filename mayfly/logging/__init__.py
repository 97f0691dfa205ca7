"""Logging setup for the mayfly CLI."""

from __future__ import annotations

import logging
import sys

from mayfly.logging.filters import StreamRoutingFilter
from mayfly.logging.formatters import StreamFormatter

QUIET_LOGGERS = ("botocore", "boto3", "urllib3")


def configure_logging(debug: bool = False) -> None:
    """Route log records to stdout/stderr by level.

    Parameters
    ----------
    debug : bool
        Log at DEBUG and prefix records with the logger name
    """
    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setFormatter(StreamFormatter("%(message)s", show_logger=debug))
    stdout_handler.addFilter(StreamRoutingFilter("stdout"))

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setFormatter(StreamFormatter("%(message)s", show_logger=debug))
    stderr_handler.addFilter(StreamRoutingFilter("stderr"))

    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        handlers=[stdout_handler, stderr_handler],
        force=True,
    )

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


__all__ = ["StreamFormatter", "StreamRoutingFilter", "configure_logging"]
