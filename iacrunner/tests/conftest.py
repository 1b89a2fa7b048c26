# iacrunner/tests/conftest.py
from __future__ import annotations

import stat
import subprocess
from pathlib import Path
from typing import Any, Callable, List

import pytest


# ---- Test doubles ----

class SpawnCounter:
    """Popen stand-in that counts launches and delegates to the real Popen."""

    def __init__(self) -> None:
        self.calls: List[List[str]] = []
        self.processes: List[subprocess.Popen] = []

    def __call__(self, args: List[str], **kwargs: Any) -> subprocess.Popen:
        self.calls.append(list(args))
        proc = subprocess.Popen(args, **kwargs)
        self.processes.append(proc)
        return proc

    @property
    def count(self) -> int:
        return len(self.calls)


@pytest.fixture
def spawn_counter() -> SpawnCounter:
    counter = SpawnCounter()
    yield counter
    for proc in counter.processes:
        if proc.poll() is None:
            proc.kill()
            proc.wait()


@pytest.fixture
def make_script(tmp_path: Path) -> Callable[[str, str], str]:
    """Write an executable /bin/sh script under tmp_path/bin and return its path."""
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()

    def _make(name: str, body: str) -> str:
        path = bin_dir / name
        path.write_text("#!/bin/sh\n" + body, encoding="utf-8")
        path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return str(path)

    return _make


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    ws = tmp_path / "workspace"
    ws.mkdir()
    return ws

