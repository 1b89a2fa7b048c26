# iacrunner/schema/request.py
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Mapping, Optional, Tuple, Union

from iacrunner.errors import ConfigurationError, WorkspaceError

PathLike = Union[str, Path]


def _is_within(path: Path, root: Path) -> bool:
    try:
        path.relative_to(root)
    except ValueError:
        return False
    return True


@dataclass(frozen=True)
class InvocationRequest:
    """
    One tool invocation: ``<binary_path> <subcommand> [<template_path>]``
    executed inside ``working_directory``.

    The request only describes the call; ``CommandRunner.run`` executes it.
    ``template_path`` may be empty, in which case it is left out of argv.
    """

    binary_path: str
    subcommand: str
    template_path: str = ""
    working_directory: PathLike = "."
    environment_overrides: Mapping[str, str] = field(default_factory=dict)
    timeout: Optional[float] = None
    allow_template_outside_workspace: bool = False

    # ---------------- validation ----------------

    def validate(self) -> None:
        """
        Raise ConfigurationError / WorkspaceError for anything that would make
        launching pointless. Nothing is spawned here.
        """
        if not (self.binary_path or "").strip():
            raise ConfigurationError("Please set a terraform binary path")
        if not (self.subcommand or "").strip():
            raise ConfigurationError("Please set a command (e.g. init, plan, apply)")
        for name, value in (
            ("binary path", self.binary_path),
            ("command", self.subcommand),
            ("template path", self.template_path or ""),
        ):
            if "\0" in value:
                raise ConfigurationError(f"The {name} contains a NUL byte")
        if self.timeout is not None and self.timeout <= 0:
            raise ConfigurationError(f"Timeout must be positive, got {self.timeout!r}")
        for key, value in self.environment_overrides.items():
            if not key or "=" in key or "\0" in key:
                raise ConfigurationError(f"Invalid environment variable name: {key!r}")
            if value is None or "\0" in str(value):
                raise ConfigurationError(f"Invalid value for environment variable {key!r}")

        workdir = Path(self.working_directory)
        if not workdir.exists():
            raise WorkspaceError(f"Working directory not found: '{workdir}'")
        if not workdir.is_dir():
            raise WorkspaceError(f"Working directory is not a directory: '{workdir}'")

        if self.template_path and not self.allow_template_outside_workspace:
            root = workdir.resolve()
            target = (root / self.template_path).resolve()
            if not _is_within(target, root):
                raise ConfigurationError(
                    f"Template path '{self.template_path}' resolves outside the working directory '{root}'"
                )

    # ---------------- process inputs ----------------

    def argv(self) -> Tuple[str, ...]:
        args = [self.binary_path, self.subcommand]
        if self.template_path:
            args.append(self.template_path)
        return tuple(args)

    def environment(self, base: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
        """Inherited environment with the overrides layered on top."""
        env = dict(os.environ if base is None else base)
        env.update({k: str(v) for k, v in self.environment_overrides.items()})
        return env
