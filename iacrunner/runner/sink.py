# iacrunner/runner/sink.py
from __future__ import annotations

import logging
import threading
from typing import List, Protocol

import click


class OutputSink(Protocol):
    def write_line(self, line: str) -> None: ...


class ListSink:
    """Collects lines in memory (tests, JSON output)."""

    def __init__(self) -> None:
        self._lines: List[str] = []
        self._lock = threading.Lock()

    def write_line(self, line: str) -> None:
        with self._lock:
            self._lines.append(line)

    @property
    def lines(self) -> List[str]:
        with self._lock:
            return list(self._lines)

    def text(self) -> str:
        return "\n".join(self.lines)


class LoggerSink:
    def __init__(self, logger: logging.Logger, level: int = logging.INFO) -> None:
        self._logger = logger
        self._level = level

    def write_line(self, line: str) -> None:
        self._logger.log(self._level, "%s", line)


class EchoSink:
    """Console sink for the CLI; ``err=True`` sends lines to stderr."""

    def __init__(self, err: bool = False) -> None:
        self._err = err

    def write_line(self, line: str) -> None:
        click.echo(line, err=self._err)
