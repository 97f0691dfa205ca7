"""Logging formatters for terminal output."""

import logging


class StreamFormatter(logging.Formatter):
    """Formatter that tags warnings and errors with their level.

    Parameters
    ----------
    fmt : str | None
        Base format string
    show_logger : bool
        Prefix records with the emitting logger's name (debug mode)
    """

    def __init__(self, fmt: str | None = None, show_logger: bool = False) -> None:
        super().__init__(fmt)
        self.show_logger = show_logger

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with level and logger prefixes when applicable.

        Parameters
        ----------
        record : logging.LogRecord
            Log record to format

        Returns
        -------
        str
            Formatted log message
        """
        msg = super().format(record)

        if self.show_logger:
            msg = f"{record.name}: {msg}"

        if record.levelno >= logging.ERROR:
            return f"[error] {msg}"
        elif record.levelno >= logging.WARNING:
            return f"[warning] {msg}"

        return msg
