"""
InstallStep and Receipt models — the execution contract.

Steps represent requested commands. Receipts represent results.
The sequencer hands steps to the system interrogator and gets
receipts back. Never exceptions.
"""

from __future__ import annotations

import shlex
from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class InstallStep(BaseModel):
    """One entry of the installation checklist.

    Steps run strictly in list order; the first failure halts
    everything after it.
    """

    command: list[str]
    description: str
    phase: str = ""                 # groups steps under one heading

    @property
    def display(self) -> str:
        """Shell-quoted command line, as shown to the user."""
        return shlex.join(self.command)

    def mentions(self, needle: str) -> bool:
        """Whether the arguments reference *needle* (case-insensitive).

        The executable is left out: a venv path may contain anything.
        """
        return needle.lower() in shlex.join(self.command[1:]).lower()


class Receipt(BaseModel):
    """Result of running one external command.

    The system interrogator NEVER raises for a failing command —
    failures are captured here.
    """

    command: str
    status: Literal["ok", "failed"] = "ok"
    return_code: int | None = 0

    started_at: str = Field(default_factory=_now_iso)
    ended_at: str = Field(default_factory=_now_iso)
    duration_ms: int = 0

    output: str = ""
    error: str | None = None

    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        """Whether the command succeeded."""
        return self.status == "ok"

    @property
    def failed(self) -> bool:
        """Whether the command failed."""
        return self.status == "failed"

    @classmethod
    def success(
        cls,
        command: str,
        output: str = "",
        **kwargs: Any,
    ) -> Receipt:
        """Create a success receipt."""
        return cls(command=command, status="ok", output=output, **kwargs)

    @classmethod
    def failure(
        cls,
        command: str,
        error: str,
        **kwargs: Any,
    ) -> Receipt:
        """Create a failure receipt."""
        kwargs.setdefault("return_code", None)
        return cls(command=command, status="failed", error=error, **kwargs)
