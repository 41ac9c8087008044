"""
Click console — terminal output and prompts for the provisioning stages.

Implements ``mps_provision.core.interaction.Console`` with click so the
CLI can be driven by ``CliRunner`` input in tests.
"""

from __future__ import annotations

from collections.abc import Sequence

import click


class ClickConsole:
    """Print with ``click.secho``, ask with ``click.confirm``/``click.prompt``."""

    def heading(self, message: str) -> None:
        click.secho(message, fg="cyan", bold=True)

    def info(self, message: str) -> None:
        click.echo(message)

    def success(self, message: str) -> None:
        click.secho(f"✅ {message}", fg="green")

    def warn(self, message: str) -> None:
        click.secho(f"⚠️  {message}", fg="yellow")

    def error(self, message: str) -> None:
        click.secho(f"❌ {message}", fg="red")

    def detail(self, message: str) -> None:
        click.echo(f"   {message}")

    def blank(self) -> None:
        click.echo()

    def confirm(self, question: str) -> bool:
        return click.confirm(question, default=False)

    def choose(self, question: str, options: Sequence[str]) -> int:
        for number, label in enumerate(options, start=1):
            click.echo(f"{number}) {label}")
        answer = click.prompt(
            question,
            type=click.Choice([str(n) for n in range(1, len(options) + 1)]),
            show_choices=False,
        )
        return int(answer)
