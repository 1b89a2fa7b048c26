# iacrunner/runner/cancel.py
from __future__ import annotations

import threading


class CancelToken:
    """Set from any thread to ask a running invocation to kill its child."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()
