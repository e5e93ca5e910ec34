"""Status narration for archive lookups.

The lookup reports short human-readable messages to a ``StatusSink``.  How a
sink delivers them (websocket, log, terminal) is its own business; a sink that
fails must never abort the lookup, so every call goes through ``report()``.
"""

from __future__ import annotations

import dataclasses
import logging
import sys
from typing import Callable, Protocol, runtime_checkable

from rich.console import Console
from rich.text import Text

logger = logging.getLogger("prowmetrics.engine.status")

# Message kinds understood by the web client
STATUS = "status"
PROGRESS = "progress"
FAILURE = "failure"
DONE = "done"
LINK = "link"
APP_LABEL = "app-label"

KINDS = (STATUS, PROGRESS, FAILURE, DONE, LINK, APP_LABEL)


@runtime_checkable
class StatusSink(Protocol):
    """Receives status messages during a lookup."""

    def send(self, kind: str, message: str) -> None: ...


def report(sink: StatusSink | None, kind: str, message: str) -> None:
    """Deliver one message to ``sink``; delivery failures are logged, never raised."""
    if sink is None:
        return
    try:
        sink.send(kind, message)
    except Exception:
        logger.warning("Failed to deliver %s message %r", kind, message, exc_info=True)


# ── Sinks ─────────────────────────────────────────────────────────────────


class LoggingStatusSink:
    """Writes status messages to a logger."""

    def __init__(self, name: str = "prowmetrics.status") -> None:
        self._logger = logging.getLogger(name)

    def send(self, kind: str, message: str) -> None:
        level = logging.ERROR if kind == FAILURE else logging.INFO
        self._logger.log(level, "[%s] %s", kind, message)


class CallbackStatusSink:
    """Forwards status messages to a callable, e.g. a websocket writer."""

    def __init__(self, callback: Callable[[str, str], None]) -> None:
        self._callback = callback

    def send(self, kind: str, message: str) -> None:
        self._callback(kind, message)


@dataclasses.dataclass(frozen=True)
class StatusMessage:
    kind: str
    message: str


class RecordingStatusSink:
    """Keeps every message in memory, in delivery order."""

    def __init__(self) -> None:
        self.messages: list[StatusMessage] = []

    def send(self, kind: str, message: str) -> None:
        self.messages.append(StatusMessage(kind, message))

    def kinds(self) -> list[str]:
        return [m.kind for m in self.messages]


class ConsoleStatusSink:
    """Prints status messages with Rich, or as plain ASCII lines for CI/pipes."""

    _STYLES = {
        STATUS: "cyan",
        PROGRESS: "dim",
        FAILURE: "bold red",
        DONE: "bold green",
        LINK: "blue underline",
        APP_LABEL: "magenta",
    }

    def __init__(self, console: Console | None = None, plain: bool = False) -> None:
        self._console = console or Console(stderr=True)
        self._plain = plain

    def send(self, kind: str, message: str) -> None:
        if self._plain:
            print(f"[{kind}] {message}", file=sys.stderr, flush=True)
            return
        line = Text()
        line.append(f"{kind:>9}", style=self._STYLES.get(kind, ""))
        line.append(f"  {message}")
        self._console.print(line)
