# iacrunner/schema/result.py
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class Outcome(Enum):
    SUCCEEDED = "Succeeded"
    NON_ZERO_EXIT = "NonZeroExit"
    CONFIGURATION_ERROR = "ConfigurationError"
    ENVIRONMENT_ERROR = "EnvironmentError"
    LAUNCH_FAILURE = "LaunchFailure"
    TIMEOUT = "Timeout"
    CANCELLED = "Cancelled"


@dataclass(frozen=True)
class InvocationResult:
    """
    Terminal report for one invocation.

    exit_code is None whenever the child never ran to completion on its own
    (validation error, launch failure, timeout, cancel).
    """

    outcome: Outcome
    exit_code: Optional[int] = None
    failure_reason: Optional[str] = None
    command: Tuple[str, ...] = ()
    duration: float = 0.0

    @property
    def succeeded(self) -> bool:
        return self.outcome is Outcome.SUCCEEDED

    @classmethod
    def from_exit_code(
        cls,
        exit_code: int,
        command: Tuple[str, ...] = (),
        duration: float = 0.0,
        failure_reason: Optional[str] = None,
    ) -> "InvocationResult":
        outcome = Outcome.SUCCEEDED if exit_code == 0 else Outcome.NON_ZERO_EXIT
        return cls(outcome, exit_code, failure_reason, tuple(command), duration)

    @classmethod
    def failed(
        cls,
        outcome: Outcome,
        reason: str,
        command: Tuple[str, ...] = (),
        duration: float = 0.0,
    ) -> "InvocationResult":
        return cls(outcome, None, reason, tuple(command), duration)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "outcome": self.outcome.value,
            "succeeded": self.succeeded,
            "exitCode": self.exit_code,
            "failureReason": self.failure_reason,
            "command": list(self.command),
            "duration": round(self.duration, 3),
        }
