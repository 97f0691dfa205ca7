"""Logging filters routing records to stdout or stderr by level."""

import logging


class StreamRoutingFilter(logging.Filter):
    """Pass records below WARNING to stdout and the rest to stderr.

    Parameters
    ----------
    stream : str
        Either ``"stdout"`` or ``"stderr"``
    """

    def __init__(self, stream: str) -> None:
        super().__init__()
        if stream not in ("stdout", "stderr"):
            raise ValueError(f"stream must be 'stdout' or 'stderr', got '{stream}'")
        self.stream = stream

    def filter(self, record: logging.LogRecord) -> bool:
        if self.stream == "stdout":
            return record.levelno < logging.WARNING
        return record.levelno >= logging.WARNING
