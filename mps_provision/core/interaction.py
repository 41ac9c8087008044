"""
Console protocol — how stages talk to the person running the installer.

Core stages print progress and ask questions through this protocol
only. The click implementation lives in ``mps_provision.ui.cli.console``;
tests use a scripted fake.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol


class Console(Protocol):
    def heading(self, message: str) -> None: ...

    def info(self, message: str) -> None: ...

    def success(self, message: str) -> None: ...

    def warn(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...

    def detail(self, message: str) -> None: ...

    def blank(self) -> None: ...

    def confirm(self, question: str) -> bool:
        """Yes/no question, defaulting to no."""
        ...

    def choose(self, question: str, options: Sequence[str]) -> int:
        """Numbered menu. Returns the 1-based index of the chosen option."""
        ...
