from __future__ import annotations

from .step import (
    DISPLAY_NAME,
    BuildStatus,
    BuildStep,
    FormValidation,
    GlobalSettings,
    ValidationKind,
    build_status,
    check_command,
    check_path,
    parse_env_variables,
)

__all__ = [
    "DISPLAY_NAME",
    "BuildStatus",
    "BuildStep",
    "FormValidation",
    "GlobalSettings",
    "ValidationKind",
    "build_status",
    "check_command",
    "check_path",
    "parse_env_variables",
]
