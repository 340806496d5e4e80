"""Status notifications emitted by a migration run.

The orchestrator and its collaborators only push notifications into a
``StatusReporter``; nothing they receive back is consumed. A ``loading``
notification opens a spinner handle which stays open until the next
notification closes it, so at most one spinner is ever live.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Optional

from rich.console import Console
from rich.status import Status

logger = logging.getLogger(__name__)


class NotificationKind(Enum):
    """Kinds of notification a reporter accepts."""
    INFO = "info"
    SUCCESS = "success"
    ERROR = "error"
    WARNING = "warning"
    LOADING = "loading"
    STEP = "step"
    TITLE = "title"


class StatusReporter:
    """Base reporter. Subclasses implement ``display``."""

    def info(self, text: str = "") -> None:
        self.display(NotificationKind.INFO, text)

    def success(self, text: str = "") -> None:
        self.display(NotificationKind.SUCCESS, text)

    def error(self, text: str = "") -> None:
        self.display(NotificationKind.ERROR, text)

    def warning(self, text: str = "") -> None:
        self.display(NotificationKind.WARNING, text)

    def loading(self, text: str = "") -> None:
        self.display(NotificationKind.LOADING, text)

    def step(self, text: str = "") -> None:
        self.display(NotificationKind.STEP, text)

    def title(self, text: str = "") -> None:
        self.display(NotificationKind.TITLE, text)

    def display(self, kind: NotificationKind, text: str) -> None:
        raise NotImplementedError

    def close(self) -> None:
        """Release any open handle. Safe to call more than once."""


class ConsoleReporter(StatusReporter):
    """Colored terminal output with a rich spinner for long-running steps."""

    _STYLES = {
        NotificationKind.INFO: ("", "bright_white"),
        NotificationKind.SUCCESS: ("✓ ", "bright_green"),
        NotificationKind.ERROR: ("✗ ", "bright_red"),
        NotificationKind.WARNING: ("⚠ ", "bright_yellow"),
        NotificationKind.STEP: ("→ ", "bright_cyan"),
    }

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console(highlight=False)
        self._spinner: Optional[Status] = None

    @property
    def spinner_active(self) -> bool:
        return self._spinner is not None

    def display(self, kind: NotificationKind, text: str) -> None:
        self.close()

        if kind == NotificationKind.LOADING:
            self._spinner = self.console.status(
                f"[bright_blue]{text}[/]", spinner="dots", spinner_style="blue"
            )
            self._spinner.start()
            return

        if kind == NotificationKind.TITLE:
            self.console.print()
            self.console.rule(text, style="bright_magenta")
            self.console.print()
            return

        prefix, style = self._STYLES[kind]
        self.console.print(f"{prefix}{text}", style=style, markup=False)

    def close(self) -> None:
        if self._spinner is not None:
            self._spinner.stop()
            self._spinner = None


class LogReporter(StatusReporter):
    """Routes notifications to ``logging``; used with ``--quiet``."""

    _LEVELS = {
        NotificationKind.ERROR: logging.ERROR,
        NotificationKind.WARNING: logging.WARNING,
        NotificationKind.LOADING: logging.DEBUG,
    }

    def __init__(self, log: Optional[logging.Logger] = None):
        self._log = log or logger

    def display(self, kind: NotificationKind, text: str) -> None:
        self._log.log(self._LEVELS.get(kind, logging.INFO), "%s", text)
