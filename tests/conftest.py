"""
Shared test fixtures and configuration.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from pathlib import Path

import pytest

from mps_provision.adapters.mock import MockInterrogator
from mps_provision.core.context import ExecutionContext


class ScriptedConsole:
    """Console fake: records output, answers prompts from a script.

    Running out of scripted answers fails the test, so an unexpected
    prompt is never silently answered.
    """

    def __init__(self, confirms: Iterable[bool] = (), choices: Iterable[int] = ()):
        self._confirms = list(confirms)
        self._choices = list(choices)
        self.lines: list[str] = []
        self.questions: list[str] = []
        self.menus: list[list[str]] = []

    @property
    def text(self) -> str:
        return "\n".join(self.lines)

    def heading(self, message: str) -> None:
        self.lines.append(message)

    def info(self, message: str) -> None:
        self.lines.append(message)

    def success(self, message: str) -> None:
        self.lines.append(f"✅ {message}")

    def warn(self, message: str) -> None:
        self.lines.append(f"⚠️  {message}")

    def error(self, message: str) -> None:
        self.lines.append(f"❌ {message}")

    def detail(self, message: str) -> None:
        self.lines.append(f"   {message}")

    def blank(self) -> None:
        self.lines.append("")

    def confirm(self, question: str) -> bool:
        self.questions.append(question)
        assert self._confirms, f"Unexpected question: {question}"
        return self._confirms.pop(0)

    def choose(self, question: str, options: Sequence[str]) -> int:
        self.questions.append(question)
        self.menus.append(list(options))
        assert self._choices, f"Unexpected menu: {question}"
        return self._choices.pop(0)


@pytest.fixture
def make_console():
    """Factory for scripted consoles."""
    return ScriptedConsole


@pytest.fixture
def ctx(tmp_path: Path) -> ExecutionContext:
    """A fresh, non-isolated macOS context rooted in tmp_path."""
    return ExecutionContext(
        os_type="darwin23",
        search_path=["/usr/bin", "/bin"],
        home=str(tmp_path),
        working_dir=str(tmp_path),
    )


@pytest.fixture
def host() -> MockInterrogator:
    """A Mac with Homebrew, Python 3.12 and macOS 14.5."""
    return MockInterrogator(
        commands={"python3.12": "Python 3.12.7", "brew": "Homebrew 4.3.0"},
        paths={"/opt/homebrew/bin/brew": "Homebrew 4.3.0"},
        outputs={"sw_vers -productVersion": "14.5"},
    )
