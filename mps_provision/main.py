"""
MPS Provision — CLI entrypoint.

Usage:
    mps-provision
    mps-provision --verbose
    python -m mps_provision --config provision.yml
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

import click

from mps_provision import __version__
from mps_provision.adapters.base import SystemInterrogator
from mps_provision.core.observability.logging_config import (
    ENV_LOG_FILE,
    ENV_LOG_FILE_LEVEL,
    resolve_level,
    setup_logging,
)


def build_interrogator() -> SystemInterrogator:
    """The host access used by the CLI."""
    from mps_provision.adapters.shell.command import ShellInterrogator

    return ShellInterrogator()


@click.command()
@click.version_option(version=__version__, prog_name="mps-provision")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Only log errors.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to provision.yml (default: auto-detect).",
)
def cli(verbose: bool, quiet: bool, debug: bool, config_path: str | None) -> None:
    """MPS Provision — set up Chatterbox TTS on Apple Silicon."""
    # ── Logging setup (once, at process start) ──────────────────
    setup_logging(
        level=resolve_level(debug=debug, verbose=verbose, quiet=quiet, environ=os.environ),
        log_file=os.environ.get(ENV_LOG_FILE),
        log_file_level=os.environ.get(ENV_LOG_FILE_LEVEL),
    )

    from mps_provision.core.config.loader import ConfigError, load_config
    from mps_provision.core.context import ExecutionContext
    from mps_provision.core.use_cases.provision import run_provision
    from mps_provision.ui.cli.console import ClickConsole

    try:
        config = load_config(Path(config_path) if config_path else None)
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)

    result = run_provision(
        build_interrogator(),
        ClickConsole(),
        config=config,
        ctx=ExecutionContext.from_environ(),
    )

    if result.status == "fatal":
        click.secho(f"❌ {result.reason}", fg="red")
    elif result.status == "aborted":
        click.secho(f"🛑 {result.reason}", fg="yellow")
    for line in result.remediation:
        click.echo(line)

    sys.exit(result.exit_code)


if __name__ == "__main__":
    cli()
