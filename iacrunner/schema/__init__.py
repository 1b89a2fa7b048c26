from __future__ import annotations

from .request import InvocationRequest
from .result import InvocationResult, Outcome

__all__ = ["InvocationRequest", "InvocationResult", "Outcome"]
