# iacrunner/config.py
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

DEFAULT_TERRAFORM_BINARY = "terraform"
DEFAULT_LOG_LEVEL = "WARN"

# ---------------- tiny helpers ----------------

def _parse_timeout(value: Optional[str]) -> Optional[float]:
    s = (value or "").strip()
    if not s:
        return None
    try:
        seconds = float(s)
    except ValueError:
        return None
    return seconds if seconds > 0 else None

def _load_env_files() -> None:
    # .env.local first so it wins over .env; real env vars win over both
    load_dotenv(Path.cwd() / ".env.local", override=False)
    load_dotenv(Path.cwd() / ".env", override=False)

# ---------------- config model ----------------

@dataclass(frozen=True)
class Config:
    terraform_binary: str = DEFAULT_TERRAFORM_BINARY
    default_timeout: Optional[float] = None
    no_color: bool = False
    log_level: str = DEFAULT_LOG_LEVEL

_BINARY_ENV_PRIORITY = (
    "IACRUNNER_TERRAFORM_PATH",
    "TERRAFORM_BINARY",
)

def resolve_binary(override: str | None = None) -> str:
    """
    Pick the terraform binary to launch.

    Precedence:
      1) explicit override (CLI / build step)
      2) IACRUNNER_TERRAFORM_PATH
      3) TERRAFORM_BINARY
      4) default "terraform" (looked up on PATH by the OS)
    """
    if override and override.strip():
        return override.strip()
    for key in _BINARY_ENV_PRIORITY:
        v = (os.getenv(key) or "").strip()
        if v:
            return v
    return DEFAULT_TERRAFORM_BINARY

def load_config(binary: str | None = None, no_color: bool = False, load_env_files: bool = True) -> Config:
    if load_env_files:
        _load_env_files()

    return Config(
        terraform_binary=resolve_binary(binary),
        default_timeout=_parse_timeout(os.getenv("IACRUNNER_TIMEOUT")),
        no_color=no_color or os.getenv("NO_COLOR") is not None,
        log_level=(os.getenv("IACRUNNER_LOG_LEVEL") or DEFAULT_LOG_LEVEL).upper(),
    )
