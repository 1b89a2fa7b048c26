# iacrunner/runner/cmd.py
from __future__ import annotations

import logging
import os
import shlex
import signal
import subprocess
import threading
import time
from typing import IO, Any, Callable, List, Optional, Sequence

from iacrunner.errors import ConfigurationError, WorkspaceError
from iacrunner.runner.cancel import CancelToken
from iacrunner.runner.sink import OutputSink
from iacrunner.schema.request import InvocationRequest
from iacrunner.schema.result import InvocationResult, Outcome

log = logging.getLogger(__name__)

PopenFactory = Callable[..., Any]

# How long pump threads may keep draining after the child is gone.
_DRAIN_GRACE = 5.0


def format_cmd(args: Sequence[str]) -> str:
    return " ".join(shlex.quote(a) for a in args)


def _announce(args: Sequence[str]) -> None:
    """Log the argv about to be launched; honours NO_COLOR for the ANSI dimming."""
    line = format_cmd(args)
    if os.getenv("NO_COLOR") is not None:
        log.info("Launching: %s", line)
    else:
        log.info("\x1b[90mLaunching: %s\x1b[0m", line)


class _Pump:
    """
    Drains child output streams into one sink.

    Writes are serialised so sinks need not be thread safe. After the first
    sink failure the remaining output is still read (so the child never blocks
    on a full pipe) but discarded. Once ``close`` is called nothing more
    reaches the sink, even if a stray descendant still holds a pipe open.
    """

    def __init__(self, sink: OutputSink) -> None:
        self._sink = sink
        self._lock = threading.Lock()
        self._threads: List[threading.Thread] = []
        self.error: Optional[str] = None
        self._closed = False

    def start(self, *streams: Optional[IO[str]]) -> None:
        for stream in streams:
            if stream is None:
                continue
            t = threading.Thread(target=self._drain, args=(stream,), daemon=True)
            t.start()
            self._threads.append(t)

    def join(self, timeout: Optional[float] = None) -> bool:
        """Wait for the pump threads; True when every stream reached EOF in time."""
        deadline = None if timeout is None else time.monotonic() + timeout
        for t in self._threads:
            remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
            t.join(remaining)
        return not any(t.is_alive() for t in self._threads)

    def close(self) -> None:
        with self._lock:
            self._closed = True

    def _drain(self, stream: IO[str]) -> None:
        try:
            for line in stream:
                self._emit(line.rstrip("\r\n"))
        except (OSError, ValueError) as e:
            self._record(f"Output stream error: {e}", notify_sink=True)
        finally:
            try:
                stream.close()
            except OSError:
                pass

    def _emit(self, line: str) -> None:
        with self._lock:
            if self._closed or self.error is not None:
                return
            try:
                self._sink.write_line(line)
            except Exception as e:  # the sink belongs to the caller
                self.error = f"Output sink failed: {e}"
                log.warning(self.error)

    def _record(self, message: str, notify_sink: bool) -> None:
        log.warning(message)
        with self._lock:
            if self._closed or self.error is not None:
                return
            self.error = message
            if notify_sink:
                try:
                    self._sink.write_line(message)
                except Exception:
                    log.debug("Sink rejected stream error notice", exc_info=True)


def _kill(proc: Any) -> None:
    """Kill the child and, on POSIX, every process in its session group."""
    try:
        if os.name == "posix":
            pgid = os.getpgid(proc.pid)
            if pgid != os.getpgrp():
                os.killpg(pgid, signal.SIGKILL)
                return
        proc.kill()
    except ProcessLookupError:
        pass


class CommandRunner:
    """
    Executes exactly one tool invocation per ``run`` call.

    Holds no per-invocation state, so one instance may serve concurrent
    callers. ``popen`` is injectable for tests. ``drain_grace`` bounds how
    long output is still forwarded once the child is gone.
    """

    def __init__(
        self,
        popen: PopenFactory = subprocess.Popen,
        poll_interval: float = 0.1,
        drain_grace: float = _DRAIN_GRACE,
    ) -> None:
        self._popen = popen
        self._poll_interval = poll_interval
        self._drain_grace = drain_grace

    def run(
        self,
        request: InvocationRequest,
        sink: OutputSink,
        cancel: Optional[CancelToken] = None,
    ) -> InvocationResult:
        started = time.monotonic()

        def elapsed() -> float:
            return time.monotonic() - started

        try:
            request.validate()
        except ConfigurationError as e:
            log.error("Invalid invocation: %s", e)
            return InvocationResult.failed(Outcome.CONFIGURATION_ERROR, str(e), duration=elapsed())
        except WorkspaceError as e:
            log.error("Invalid workspace: %s", e)
            return InvocationResult.failed(Outcome.ENVIRONMENT_ERROR, str(e), duration=elapsed())

        argv = request.argv()
        _announce(argv)

        if cancel is not None and cancel.cancelled:
            return InvocationResult.failed(
                Outcome.CANCELLED, "Cancelled before launch", command=argv, duration=elapsed()
            )

        try:
            proc = self._popen(
                list(argv),
                cwd=str(request.working_directory),
                env=request.environment(),
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                bufsize=1,  # line-buffered readers
                text=True,
                encoding="utf-8",
                errors="replace",
                shell=False,
                start_new_session=os.name == "posix",
            )
        except (OSError, ValueError) as e:
            log.warning("Failed to launch %s: %s", argv[0], e)
            return InvocationResult.failed(Outcome.LAUNCH_FAILURE, str(e), command=argv, duration=elapsed())

        pump = _Pump(sink)
        pump.start(proc.stdout, proc.stderr)

        stopped = self._wait(proc, started, request.timeout, cancel)
        if stopped is not None:
            _kill(proc)
            proc.wait()
            self._finish(pump)
            if stopped is Outcome.TIMEOUT:
                reason = f"Timeout: process killed after {request.timeout:g} seconds"
            else:
                reason = "Cancelled: process killed on request"
            log.warning("%s (%s)", reason, format_cmd(argv))
            return InvocationResult.failed(stopped, reason, command=argv, duration=elapsed())

        truncated = self._finish(pump)
        exit_code = proc.returncode
        log.debug("Command exited with status %s: %s", exit_code, format_cmd(argv))
        notes = [n for n in (pump.error, truncated) if n]
        return InvocationResult.from_exit_code(
            exit_code, command=argv, duration=elapsed(), failure_reason="; ".join(notes) or None
        )

    def _finish(self, pump: _Pump) -> Optional[str]:
        """Stop forwarding output to the sink; returns a note when output was cut off."""
        drained = pump.join(self._drain_grace)
        pump.close()
        if drained:
            return None
        note = f"Output truncated: a stream was still open {self._drain_grace:g}s after the process exited"
        log.warning(note)
        return note

    def _wait(
        self,
        proc: Any,
        started: float,
        timeout: Optional[float],
        cancel: Optional[CancelToken],
    ) -> Optional[Outcome]:
        """Block until the child exits (None) or must be stopped (TIMEOUT / CANCELLED)."""
        deadline = None if timeout is None else started + timeout
        while True:
            wait_for = self._poll_interval
            if deadline is not None:
                wait_for = max(0.0, min(wait_for, deadline - time.monotonic()))
            try:
                proc.wait(timeout=wait_for)
                return None
            except subprocess.TimeoutExpired:
                pass
            if cancel is not None and cancel.cancelled:
                return Outcome.CANCELLED
            if deadline is not None and time.monotonic() >= deadline:
                return Outcome.TIMEOUT


def run(
    request: InvocationRequest,
    sink: OutputSink,
    cancel: Optional[CancelToken] = None,
) -> InvocationResult:
    """Run ``request`` with a default ``CommandRunner``."""
    return CommandRunner().run(request, sink, cancel)
