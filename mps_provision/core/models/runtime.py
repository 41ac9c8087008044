"""
Runtime models — interpreter versions, candidates, dependency specs.

Pure parsing and compatibility rules. No I/O, no subprocess.
"""

from __future__ import annotations

import re
from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator

# Interpreters ONNX and the pinned ML stack can be installed on.
COMPATIBLE_MAJOR = 3
COMPATIBLE_MINORS = (9, 12)
FIRST_UNSUPPORTED = (3, 13)

_VERSION_RE = re.compile(r"(\d+)\.(\d+)\.(\d+)")

# name[extras] optionally followed by an exact ==pin
_REQUIREMENT_RE = re.compile(
    r"^\s*(?P<name>[A-Za-z0-9][A-Za-z0-9._-]*(?:\[[A-Za-z0-9,._ -]+\])?)"
    r"\s*(?:==\s*(?P<pin>[A-Za-z0-9.*+!_-]+))?\s*$"
)


class RuntimeVersion(BaseModel):
    """A parsed ``major.minor.patch`` interpreter version."""

    model_config = ConfigDict(frozen=True)

    major: int
    minor: int
    patch: int = 0

    @classmethod
    def parse(cls, text: str | None) -> RuntimeVersion | None:
        """Extract the first ``major.minor.patch`` found in *text*.

        ``"Python 3.12.7"`` → ``RuntimeVersion(3, 12, 7)``. Anything
        without three numeric components returns ``None``.
        """
        if not text:
            return None
        match = _VERSION_RE.search(text)
        if match is None:
            return None
        major, minor, patch = (int(part) for part in match.groups())
        return cls(major=major, minor=minor, patch=patch)

    @property
    def is_compatible(self) -> bool:
        low, high = COMPATIBLE_MINORS
        return self.major == COMPATIBLE_MAJOR and low <= self.minor <= high

    @property
    def is_unsupported_release(self) -> bool:
        """At or past the first release the ML stack does not support."""
        return (self.major, self.minor) >= FIRST_UNSUPPORTED

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"


def is_compatible(version_text: str | None) -> bool:
    """Whether a raw version string names a supported interpreter.

    Malformed strings are incompatible, never an error.
    """
    version = RuntimeVersion.parse(version_text)
    return version is not None and version.is_compatible


def compatible_window_label() -> str:
    low, high = COMPATIBLE_MINORS
    return f"Python {COMPATIBLE_MAJOR}.{low}-{COMPATIBLE_MAJOR}.{high}"


class RuntimeCandidate(BaseModel):
    """An interpreter that was found and answered ``--version``."""

    identifier: str                 # command name or absolute path
    version: RuntimeVersion

    @property
    def is_compatible(self) -> bool:
        return self.version.is_compatible


class DependencySpec(BaseModel):
    """A pip requirement: a name plus an optional exact pin.

    Accepts a plain requirement string wherever a spec is expected::

        DependencySpec.parse("conformer==0.3.2")
        DependencySpec.parse("uvicorn[standard]")
    """

    model_config = ConfigDict(frozen=True)

    name: str
    pin: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _from_requirement(cls, data: Any) -> Any:
        if not isinstance(data, str):
            return data
        match = _REQUIREMENT_RE.match(data)
        if match is None:
            raise ValueError(f"Not a plain or ==pinned requirement: {data!r}")
        return {"name": match.group("name"), "pin": match.group("pin")}

    @classmethod
    def parse(cls, requirement: str) -> DependencySpec:
        return cls.model_validate(requirement)

    @property
    def pinned(self) -> bool:
        return self.pin is not None

    @property
    def requirement(self) -> str:
        """The string handed to ``pip install``."""
        if self.pin:
            return f"{self.name}=={self.pin}"
        return self.name

    @property
    def project(self) -> str:
        """Name without extras, e.g. ``uvicorn`` for ``uvicorn[standard]``."""
        return self.name.split("[", 1)[0]
