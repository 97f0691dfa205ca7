"""Terminal status output."""

from __future__ import annotations

import logging
import sys

from rich.console import Console
from rich.control import Control
from rich.segment import ControlType
from rich.text import Text

from mayfly.utils import format_duration

logger = logging.getLogger(__name__)


class Display:
    """Render status lines and the live countdown with rich.

    Every message is also logged at DEBUG so ``MAYFLY_DEBUG=1`` runs keep a
    complete trace in the log stream.

    Parameters
    ----------
    console : Console | None
        Console to write to. Defaults to stderr so stdout stays clean.
    """

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console(file=sys.stderr, highlight=False)
        self._countdown_active = False

    def _line(self, symbol: str, style: str, message: str) -> None:
        self._end_countdown_line()
        text = Text()
        text.append(f"{symbol} ", style=style)
        text.append(message)
        self.console.print(text)

    def status(self, message: str) -> None:
        logger.debug("status: %s", message)
        self._line("→", "bold cyan", message)

    def success(self, message: str) -> None:
        logger.debug("success: %s", message)
        self._line("✓", "bold green", message)

    def info(self, label: str, value: str) -> None:
        logger.debug("info: %s %s", label, value)
        self._end_countdown_line()
        text = Text("  ")
        text.append(f"{label:<16}", style="dim")
        text.append(value, style="bold")
        self.console.print(text)

    def warn(self, message: str) -> None:
        logger.debug("warn: %s", message)
        self._line("!", "bold yellow", message)

    def error(self, message: str) -> None:
        logger.debug("error: %s", message)
        self._line("✗", "bold red", message)

    def countdown(self, remaining: float) -> None:
        """Redraw the remaining time in place. Terminals only."""
        if not self.console.is_terminal:
            return

        text = Text("⏳ ", style="bold magenta")
        text.append("Time remaining: ")
        text.append(format_duration(remaining), style="bold")
        text.append("  (Ctrl+C to tear down now)", style="dim")

        self.console.control(
            Control(ControlType.CARRIAGE_RETURN, (ControlType.ERASE_IN_LINE, 2))
        )
        self.console.print(text, end="")
        self._countdown_active = True

    def countdown_done(self) -> None:
        self._end_countdown_line()

    def _end_countdown_line(self) -> None:
        if self._countdown_active:
            self.console.print()
            self._countdown_active = False
