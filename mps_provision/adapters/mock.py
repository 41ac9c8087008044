"""
Mock interrogator — test double for all host access.

Simulates a machine without touching it: which commands and files
exist, what they answer to ``--version``, which install commands fail,
and what an install changes (e.g. ``brew install python@3.12`` making
``python3.12`` appear). Every install command is recorded.
"""

from __future__ import annotations

import shlex
from collections.abc import Callable, Mapping, Sequence

from mps_provision.adapters.base import SystemInterrogator
from mps_provision.core.models.action import Receipt

Effect = Callable[["MockInterrogator"], None]


class MockInterrogator(SystemInterrogator):
    """In-memory host for testing.

    By default every install command succeeds. Search paths are ignored:
    a command either exists or it does not.

    Args:
        commands: Command name → ``--version`` output (None = present
            but not runnable).
        paths: Absolute path → ``--version`` output (None = present
            but not runnable).
        outputs: Probe command line → stdout.
    """

    def __init__(
        self,
        commands: Mapping[str, str | None] | None = None,
        paths: Mapping[str, str | None] | None = None,
        outputs: Mapping[str, str] | None = None,
    ):
        self._commands: dict[str, str | None] = dict(commands or {})
        self._paths: dict[str, str | None] = dict(paths or {})
        self._outputs: dict[str, str] = dict(outputs or {})
        self._failures: dict[str, int] = {}
        self._effects: list[tuple[str, Effect]] = []
        self._install_log: list[list[str]] = []
        self._probe_log: list[str] = []

    # ── Configuration ───────────────────────────────────────────

    def add_command(self, name: str, version_output: str | None = None) -> None:
        self._commands[name] = version_output

    def add_path(self, path: str, version_output: str | None = None) -> None:
        self._paths[path] = version_output

    def remove_command(self, name: str) -> None:
        self._commands.pop(name, None)

    def set_output(self, command: str, output: str) -> None:
        """Set the stdout returned for a probe command line."""
        self._outputs[command] = output

    def set_failure(self, needle: str, return_code: int = 1) -> None:
        """Make every install command containing *needle* fail."""
        self._failures[needle] = return_code

    def on_install(self, needle: str, effect: Effect) -> None:
        """Run *effect* after a successful install command containing *needle*."""
        self._effects.append((needle, effect))

    # ── Inspection ──────────────────────────────────────────────

    @property
    def install_log(self) -> list[list[str]]:
        """Every install command received, in order."""
        return self._install_log

    @property
    def install_count(self) -> int:
        return len(self._install_log)

    @property
    def probe_log(self) -> list[str]:
        """Every executable asked for its version, in order."""
        return self._probe_log

    def ran(self, needle: str) -> bool:
        """Whether any install command contained *needle*."""
        return any(needle in shlex.join(cmd) for cmd in self._install_log)

    def reset(self) -> None:
        """Clear logs, failures and effects."""
        self._install_log.clear()
        self._probe_log.clear()
        self._failures.clear()
        self._effects.clear()

    # ── SystemInterrogator ──────────────────────────────────────

    def command_exists(self, name: str, search_path: Sequence[str] | None = None) -> bool:
        return name in self._commands

    def path_exists(self, path: str) -> bool:
        return path in self._paths

    def run_and_capture_version(
        self,
        executable: str,
        search_path: Sequence[str] | None = None,
    ) -> str | None:
        self._probe_log.append(executable)
        if "/" in executable:
            return self._paths.get(executable)
        return self._commands.get(executable)

    def capture_output(
        self,
        command: Sequence[str],
        search_path: Sequence[str] | None = None,
    ) -> str | None:
        return self._outputs.get(" ".join(command))

    def run_install_command(
        self,
        command: Sequence[str],
        env: Mapping[str, str] | None = None,
    ) -> Receipt:
        argv = list(command)
        display = shlex.join(argv)
        self._install_log.append(argv)

        for needle, return_code in self._failures.items():
            if needle in display:
                return Receipt.failure(
                    command=display,
                    error=f"Command exited with code {return_code}",
                    return_code=return_code,
                    metadata={"mock": True},
                )

        for needle, effect in self._effects:
            if needle in display:
                effect(self)

        return Receipt.success(
            command=display,
            output="[mock] executed",
            metadata={"mock": True},
        )
