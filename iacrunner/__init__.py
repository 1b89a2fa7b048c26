"""Run infrastructure-as-code tool invocations (terraform by default) as build steps."""
from __future__ import annotations

__version__ = "0.1.0"

from iacrunner.errors import ConfigurationError, IacRunnerError, WorkspaceError
from iacrunner.runner import CancelToken, CommandRunner, ListSink, OutputSink
from iacrunner.schema import InvocationRequest, InvocationResult, Outcome

__all__ = [
    "__version__",
    "CancelToken",
    "CommandRunner",
    "ConfigurationError",
    "IacRunnerError",
    "InvocationRequest",
    "InvocationResult",
    "ListSink",
    "Outcome",
    "OutputSink",
    "WorkspaceError",
]
