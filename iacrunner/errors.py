# iacrunner/errors.py
from __future__ import annotations


class IacRunnerError(Exception):
    """Base class for problems detected before a tool is launched."""


class ConfigurationError(IacRunnerError, ValueError):
    """Missing or invalid binary path, subcommand, template path or env overrides."""


class WorkspaceError(IacRunnerError):
    """The working directory is missing or is not a directory."""
