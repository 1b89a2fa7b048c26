#!/usr/bin/env python3
"""
Command-line entry point for iacrunner - run one terraform (or compatible)
invocation the way a CI build step would.

Flags CLI (iacrunner run):
  --binary           tool binary (fallback: IACRUNNER_TERRAFORM_PATH / TERRAFORM_BINARY / terraform)
  --subcommand       init|plan|apply|... (one argument, never shell-split)
  --template         template path, relative to --workdir
  --workdir          working directory (default: .)
  --env KEY=VALUE    environment override, repeatable
  --timeout          seconds before the child is killed (fallback: IACRUNNER_TIMEOUT)
  -o, --output       text|json summary (default: text)
  --log-level        TRACE|DEBUG|INFO|WARN|ERROR (default: WARN)
  -v, --verbose      convenience alias for DEBUG (ignored if --log-level set)
  --no-color         disable colored output

Exit codes: 0 success, 1 non-zero exit, 2 configuration/launch error,
124 timeout, 130 cancelled.
"""
from __future__ import annotations

import json
import logging
import threading
from typing import Dict, Optional, Tuple

import click
from rich.console import Console
from rich.markup import escape

from iacrunner import __version__
from iacrunner.config import load_config
from iacrunner.runner import CancelToken, CommandRunner, EchoSink, format_cmd
from iacrunner.schema import InvocationRequest, InvocationResult, Outcome

EXIT_CODES: Dict[Outcome, int] = {
    Outcome.SUCCEEDED: 0,
    Outcome.NON_ZERO_EXIT: 1,
    Outcome.CONFIGURATION_ERROR: 2,
    Outcome.ENVIRONMENT_ERROR: 2,
    Outcome.LAUNCH_FAILURE: 2,
    Outcome.TIMEOUT: 124,
    Outcome.CANCELLED: 130,
}


# ---------------- helpers ----------------
# CLI level names; the stdlib has no TRACE, so it shares DEBUG.
_LOG_LEVELS: Dict[str, int] = {
    "TRACE": logging.DEBUG,
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARN": logging.WARNING,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}


def _resolve_log_level(name: Optional[str], verbose: bool) -> int:
    """An explicit name (flag or IACRUNNER_LOG_LEVEL) beats -v; unknown names fall back to WARN."""
    if name:
        return _LOG_LEVELS.get(name.upper(), logging.WARNING)
    return logging.DEBUG if verbose else logging.WARNING


def _configure_logging(name: Optional[str], verbose: bool) -> None:
    logging.basicConfig(level=_resolve_log_level(name, verbose), format="%(levelname)s %(name)s: %(message)s")


def _parse_env_option(ctx: click.Context, param: click.Parameter, values: Tuple[str, ...]) -> Dict[str, str]:
    env: Dict[str, str] = {}
    for item in values:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected KEY=VALUE, got {item!r}", ctx=ctx, param=param)
        env[key] = value
    return env


def _run_interruptible(runner: CommandRunner, request: InvocationRequest, err_sink: bool) -> InvocationResult:
    """Run on a worker thread so Ctrl-C in the main thread becomes a cancel."""
    cancel = CancelToken()
    box: Dict[str, InvocationResult] = {}

    def _target() -> None:
        box["result"] = runner.run(request, EchoSink(err=err_sink), cancel)

    worker = threading.Thread(target=_target, name="iacrunner-run", daemon=True)
    worker.start()
    while worker.is_alive():
        try:
            worker.join(0.2)
        except KeyboardInterrupt:
            click.echo("Interrupted; stopping the running command…", err=True)
            cancel.cancel()
    return box["result"]


def _render_summary(result: InvocationResult, no_color: bool) -> None:
    console = Console(stderr=True, no_color=no_color, highlight=False)
    cmd = escape(format_cmd(result.command)) if result.command else "<not started>"
    if result.succeeded:
        console.print(f"[green]OK[/green] {cmd} ({result.duration:.1f}s)")
    elif result.outcome is Outcome.NON_ZERO_EXIT:
        console.print(f"[red]FAILED[/red] {cmd} exited with status {result.exit_code}")
    else:
        reason = escape(result.failure_reason or "")
        console.print(f"[bold red]{result.outcome.value}[/bold red] {cmd}: {reason}")
    if result.failure_reason and result.outcome in (Outcome.SUCCEEDED, Outcome.NON_ZERO_EXIT):
        console.print(f"[yellow]warning[/yellow]: {escape(result.failure_reason)}")


# ---------------- CLI ----------------
@click.group(context_settings=dict(help_option_names=["-h", "--help"]))
@click.version_option(__version__, prog_name="iacrunner")
def main() -> None:
    """Run infrastructure-as-code tool invocations as build steps."""


@main.command("run")
@click.option("--binary", type=str, help="Tool binary. Overrides IACRUNNER_TERRAFORM_PATH / TERRAFORM_BINARY.")
@click.option("--subcommand", required=True, type=str, help="Tool subcommand, e.g. init, plan, apply.")
@click.option("--template", "template", default="", type=str, help="Template path, relative to --workdir.")
@click.option(
    "--workdir",
    default=".",
    show_default=True,
    type=click.Path(exists=False, file_okay=False),
    help="Working directory for the command.",
)
@click.option("--env", "env", multiple=True, callback=_parse_env_option, metavar="KEY=VALUE",
              help="Environment override (repeatable).")
@click.option("--timeout", type=click.FloatRange(min=0, min_open=True),
              help="Kill the command after this many seconds. Overrides IACRUNNER_TIMEOUT.")
@click.option(
    "--allow-outside-workdir",
    is_flag=True,
    help="Accept a template path that resolves outside --workdir.",
)
@click.option(
    "--output",
    "-o",
    type=click.Choice(["text", "json"], case_sensitive=False),
    default="text",
    show_default=True,
    help="Summary format.",
)
@click.option("--log-level", type=click.Choice(["TRACE", "DEBUG", "INFO", "WARN", "ERROR"], case_sensitive=True), help="Log level.")
@click.option("-v", "--verbose", is_flag=True, help="Enable DEBUG logs (ignored if --log-level is set).")
@click.option("--no-color", is_flag=True, help="Turn off colored output.")
def run_cmd(
    binary: Optional[str],
    subcommand: str,
    template: str,
    workdir: str,
    env: Dict[str, str],
    timeout: Optional[float],
    allow_outside_workdir: bool,
    output: str,
    log_level: Optional[str],
    verbose: bool,
    no_color: bool,
) -> None:
    """Run BINARY SUBCOMMAND [TEMPLATE] inside WORKDIR and stream its output."""
    config = load_config(no_color=no_color)
    _configure_logging(log_level or (config.log_level if not verbose else None), verbose)

    request = InvocationRequest(
        binary_path=config.terraform_binary if binary is None else binary,
        subcommand=subcommand,
        template_path=template,
        working_directory=workdir,
        environment_overrides=env,
        timeout=timeout if timeout is not None else config.default_timeout,
        allow_template_outside_workspace=allow_outside_workdir,
    )

    as_json = output.lower() == "json"
    # keep stdout clean for the JSON document
    result = _run_interruptible(CommandRunner(), request, err_sink=as_json)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
    else:
        _render_summary(result, no_color=config.no_color)

    raise SystemExit(EXIT_CODES[result.outcome])


if __name__ == "__main__":
    main()
