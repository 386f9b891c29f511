"""Typer CLI for qpick."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Annotated

import typer

from qpick.config import Config, ConfigError, load_config

EXIT_ABORTED = 1
EXIT_CONFIG_ERROR = 2

app = typer.Typer(
    name="qpick",
    help="Interactive picker over the results of an external search command.",
    add_completion=False,
)


@app.command()
def pick(
    config_path: Annotated[
        Path | None,
        typer.Option("--config", help="Read the config document from a file instead of stdin"),
    ] = None,
    log_file: Annotated[
        Path | None,
        typer.Option("--log-file", envvar="QPICK_LOG_FILE", help="Write logs to this file"),
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", help="Log debug messages")] = False,
    check: Annotated[
        bool, typer.Option("--check", help="Validate the config and exit without the UI")
    ] = False,
) -> None:
    """Pick a search result; its identifier is written to stderr."""
    from qpick.ui.app import configure_logging

    configure_logging(log_file, verbose)
    config = _read_config(config_path)

    if check:
        typer.echo(_describe(config))
        return

    from qpick.ui.app import run_app

    chosen = run_app(config)
    if chosen is None:
        raise typer.Exit(code=EXIT_ABORTED)
    typer.echo(chosen, err=True)


def _read_config(config_path: Path | None) -> Config:
    try:
        if config_path is not None:
            text = config_path.read_text(encoding="utf-8")
        else:
            text = sys.stdin.read()
        return load_config(text)
    except (OSError, ConfigError) as exc:
        typer.echo(f"error: {exc}", err=True)
        raise typer.Exit(code=EXIT_CONFIG_ERROR) from exc


def _describe(config: Config) -> str:
    command = config.query_command
    sources = [template.source for template in command.templates()]
    return "\n".join(
        [
            "config ok",
            f"  command: {' '.join(sources)}",
            f"  debounce: {config.timeout_millis}ms",
            f"  execution timeout: {config.execution_timeout_millis}ms",
            f"  display: {config.display_template.source}",
        ]
    )
