"""
Execution context — the process environment as an explicit value.

Every stage receives the context it should act on and returns a new
one when it changes something (Homebrew on the search path, a venv
activated, a runtime selected). Nothing writes to ``os.environ``;
subprocesses get their environment from ``ExecutionContext.environ()``.

The CLI builds the initial context once:

    - CLI:   main.py  → ExecutionContext.from_environ()
    - Tests: fixtures → ExecutionContext(os_type="darwin23", ...)
"""

from __future__ import annotations

import os
import sys
from collections.abc import Mapping
from pathlib import Path

from pydantic import BaseModel, Field


class ExecutionContext(BaseModel):
    """Everything a stage needs to know about the environment it runs in."""

    os_type: str = ""
    runtime: str | None = None      # resolved compatible interpreter
    python: str = "python"          # interpreter used for pip and the smoke test
    virtual_env: str = ""
    conda_env: str = ""
    search_path: list[str] = Field(default_factory=list)
    home: str = "~"
    working_dir: str = "."

    @classmethod
    def from_environ(
        cls,
        environ: Mapping[str, str] | None = None,
        working_dir: str | None = None,
    ) -> ExecutionContext:
        """Snapshot the current process environment."""
        env = os.environ if environ is None else environ
        return cls(
            # OSTYPE is a shell variable and is usually not exported
            os_type=env.get("OSTYPE") or sys.platform,
            virtual_env=env.get("VIRTUAL_ENV", ""),
            conda_env=env.get("CONDA_DEFAULT_ENV", ""),
            search_path=[p for p in env.get("PATH", "").split(os.pathsep) if p],
            home=env.get("HOME") or str(Path.home()),
            working_dir=working_dir or str(Path.cwd()),
        )

    @property
    def is_isolated(self) -> bool:
        """Inside a venv or a conda environment."""
        return bool(self.virtual_env or self.conda_env)

    @property
    def path_string(self) -> str:
        return os.pathsep.join(self.search_path)

    def with_path_prefix(self, *directories: str) -> ExecutionContext:
        """Put *directories* first on the search path (no duplicates)."""
        rest = [p for p in self.search_path if p not in directories]
        return self.model_copy(update={"search_path": [*directories, *rest]})

    def with_runtime(self, identifier: str) -> ExecutionContext:
        return self.model_copy(update={"runtime": identifier})

    def activate(self, venv_dir: str) -> ExecutionContext:
        """Equivalent of ``source <venv>/bin/activate``."""
        bin_dir = str(Path(venv_dir) / "bin")
        activated = self.with_path_prefix(bin_dir)
        return activated.model_copy(
            update={"virtual_env": venv_dir, "python": str(Path(bin_dir) / "python")}
        )

    def deactivate(self) -> ExecutionContext:
        """Drop the active venv's ``bin`` and the isolation markers."""
        search_path = list(self.search_path)
        if self.virtual_env:
            bin_dir = str(Path(self.virtual_env) / "bin")
            search_path = [p for p in search_path if p != bin_dir]
        return self.model_copy(
            update={
                "search_path": search_path,
                "virtual_env": "",
                "conda_env": "",
                "python": "python",
            }
        )

    def environ(self, base: Mapping[str, str] | None = None) -> dict[str, str]:
        """Environment mapping for subprocesses launched in this context."""
        env = dict(os.environ if base is None else base)
        env["PATH"] = self.path_string
        for key, value in (("VIRTUAL_ENV", self.virtual_env), ("CONDA_DEFAULT_ENV", self.conda_env)):
            if value:
                env[key] = value
            else:
                env.pop(key, None)
        return env
