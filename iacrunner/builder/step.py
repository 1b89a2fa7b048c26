# iacrunner/builder/step.py
"""
Host-side glue for running an invocation as a CI build step.

A CI plugin keeps two kinds of settings:
- per job: template path, command, environment variables (free text)
- global: the terraform binary path, edited by an administrator

``BuildStep.perform`` turns both into an ``InvocationRequest``, runs it and
hands back the result; ``build_status`` maps that result onto the status the
host shows for the step.
"""
from __future__ import annotations

import shlex
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, Optional, Union

from iacrunner.config import Config, resolve_binary
from iacrunner.errors import ConfigurationError
from iacrunner.runner.cancel import CancelToken
from iacrunner.runner.cmd import CommandRunner, format_cmd
from iacrunner.runner.sink import OutputSink
from iacrunner.schema.request import InvocationRequest
from iacrunner.schema.result import InvocationResult, Outcome

DISPLAY_NAME = "Infrastructure as Code"


# ---------------- form checks ----------------

class ValidationKind(Enum):
    OK = "ok"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class FormValidation:
    kind: ValidationKind
    message: str = ""

    @classmethod
    def ok(cls) -> "FormValidation":
        return cls(ValidationKind.OK)

    @classmethod
    def warning(cls, message: str) -> "FormValidation":
        return cls(ValidationKind.WARNING, message)

    @classmethod
    def error(cls, message: str) -> "FormValidation":
        return cls(ValidationKind.ERROR, message)


def check_path(value: Optional[str]) -> FormValidation:
    if not (value or "").strip():
        return FormValidation.error("Please set a terraform binary path")
    return FormValidation.ok()


def check_command(value: Optional[str]) -> FormValidation:
    s = (value or "").strip()
    if not s:
        return FormValidation.error("Please set a command")
    if len(s.split()) > 1:
        return FormValidation.warning("Only the first word is the command; the rest is passed as one argument")
    return FormValidation.ok()


# ---------------- environment variables ----------------

def parse_env_variables(text: Optional[str]) -> Dict[str, str]:
    """
    Parse the job's free-text environment field.

    Entries are ``KEY=VALUE`` separated by whitespace or newlines; values may
    be quoted shell-style to keep spaces (``MSG="hello world"``). Later
    entries win.
    """
    env: Dict[str, str] = {}
    if not text or not text.strip():
        return env
    try:
        tokens = shlex.split(text)
    except ValueError as e:
        raise ConfigurationError(f"Cannot parse environment variables: {e}") from e
    for tok in tokens:
        key, sep, value = tok.partition("=")
        if not sep or not key:
            raise ConfigurationError(f"Expected KEY=VALUE, got {tok!r}")
        env[key] = value
    return env


# ---------------- settings + step ----------------

@dataclass(frozen=True)
class GlobalSettings:
    terraform_path: str

    @classmethod
    def from_config(cls, config: Config) -> "GlobalSettings":
        return cls(terraform_path=config.terraform_binary)

    @classmethod
    def from_env(cls, override: Optional[str] = None) -> "GlobalSettings":
        return cls(terraform_path=resolve_binary(override))


@dataclass(frozen=True)
class BuildStep:
    template_path: str
    command: str
    env_variables: str = ""

    def to_request(
        self,
        workspace: Union[str, Path],
        settings: GlobalSettings,
        timeout: Optional[float] = None,
    ) -> InvocationRequest:
        return InvocationRequest(
            binary_path=settings.terraform_path,
            subcommand=(self.command or "").strip(),
            template_path=(self.template_path or "").strip(),
            working_directory=workspace,
            environment_overrides=parse_env_variables(self.env_variables),
            timeout=timeout,
        )

    def perform(
        self,
        workspace: Union[str, Path],
        sink: OutputSink,
        settings: GlobalSettings,
        runner: Optional[CommandRunner] = None,
        cancel: Optional[CancelToken] = None,
        timeout: Optional[float] = None,
    ) -> InvocationResult:
        try:
            request = self.to_request(workspace, settings, timeout)
        except ConfigurationError as e:
            sink.write_line(f"ERROR: {e}")
            return InvocationResult.failed(Outcome.CONFIGURATION_ERROR, str(e))

        result = (runner or CommandRunner()).run(request, sink, cancel)
        if result.succeeded:
            sink.write_line(f"OK:{format_cmd(result.command)}")
        elif result.failure_reason:
            sink.write_line(f"ERROR: {result.failure_reason}")
        else:
            sink.write_line(f"ERROR: {format_cmd(result.command)} exited with status {result.exit_code}")
        return result


# ---------------- status mapping ----------------

class BuildStatus(Enum):
    SUCCESS = "SUCCESS"
    UNSTABLE = "UNSTABLE"
    FAILURE = "FAILURE"
    ABORTED = "ABORTED"


def build_status(result: InvocationResult, unstable_on_failure: bool = False) -> BuildStatus:
    """
    Non-zero exits become FAILURE, or UNSTABLE when the job opts in.
    Cancelled runs are ABORTED; anything else that failed is FAILURE.
    """
    if result.succeeded:
        return BuildStatus.SUCCESS
    if result.outcome is Outcome.CANCELLED:
        return BuildStatus.ABORTED
    if result.outcome is Outcome.NON_ZERO_EXIT and unstable_on_failure:
        return BuildStatus.UNSTABLE
    return BuildStatus.FAILURE
