from __future__ import annotations

from .cancel import CancelToken
from .cmd import CommandRunner, format_cmd, run  # re-export for main.py
from .sink import EchoSink, ListSink, LoggerSink, OutputSink

__all__ = [
    "CancelToken",
    "CommandRunner",
    "EchoSink",
    "ListSink",
    "LoggerSink",
    "OutputSink",
    "format_cmd",
    "run",
]
