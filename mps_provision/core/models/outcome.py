"""
Stage outcomes — the tagged result every provisioning stage returns.

A stage either succeeds with a value, fails fatally with a reason and
remediation text, or stops because the user chose to abort. Only the
CLI entry point turns an outcome into a process exit code.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, Literal, TypeVar

T = TypeVar("T")


@dataclass
class StageOutcome(Generic[T]):
    """Success(value) | Fatal(reason) | UserAborted(reason)."""

    status: Literal["ok", "fatal", "aborted"] = "ok"
    value: T | None = None
    reason: str = ""
    remediation: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    @property
    def fatal(self) -> bool:
        return self.status == "fatal"

    @property
    def aborted(self) -> bool:
        return self.status == "aborted"

    @property
    def exit_code(self) -> int:
        """0 for success and graceful aborts, 1 for fatal errors."""
        return 1 if self.fatal else 0

    @classmethod
    def success(cls, value: T) -> StageOutcome[T]:
        return cls(status="ok", value=value)

    @classmethod
    def failure(
        cls,
        reason: str,
        remediation: list[str] | None = None,
        value: T | None = None,
    ) -> StageOutcome[T]:
        return cls(status="fatal", value=value, reason=reason, remediation=remediation or [])

    @classmethod
    def abort(cls, reason: str, remediation: list[str] | None = None) -> StageOutcome[T]:
        return cls(status="aborted", reason=reason, remediation=remediation or [])

    def carry(self) -> StageOutcome[Any]:
        """Re-tag a non-ok outcome for a caller with a different value type."""
        if self.ok:
            raise ValueError("Only fatal or aborted outcomes can be carried")
        return StageOutcome(status=self.status, reason=self.reason, remediation=list(self.remediation))
