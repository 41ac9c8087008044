"""
Shell interrogator — probe and change the real host.

Probes capture output with a short timeout. Install commands inherit
the terminal so pip and brew progress stays visible, and only the exit
status is captured.
"""

from __future__ import annotations

import logging
import os
import shlex
import shutil
import subprocess
import time
from collections.abc import Mapping, Sequence
from pathlib import Path

from mps_provision.adapters.base import SystemInterrogator
from mps_provision.core.models.action import Receipt

logger = logging.getLogger(__name__)


class ShellInterrogator(SystemInterrogator):
    """Run commands on the local machine with ``subprocess``.

    Args:
        probe_timeout: Seconds allowed for ``--version`` style probes.
        install_timeout: Seconds allowed per install command
            (None = wait as long as it takes).
    """

    def __init__(self, probe_timeout: int = 10, install_timeout: int | None = None):
        self._probe_timeout = probe_timeout
        self._install_timeout = install_timeout

    def command_exists(self, name: str, search_path: Sequence[str] | None = None) -> bool:
        return self._resolve(name, search_path) is not None

    def path_exists(self, path: str) -> bool:
        return Path(path).is_file()

    def run_and_capture_version(
        self,
        executable: str,
        search_path: Sequence[str] | None = None,
    ) -> str | None:
        # Python 2 and some wrappers print the version on stderr
        return self._probe([executable, "--version"], search_path, include_stderr=True)

    def capture_output(
        self,
        command: Sequence[str],
        search_path: Sequence[str] | None = None,
    ) -> str | None:
        return self._probe(list(command), search_path, include_stderr=False)

    def run_install_command(
        self,
        command: Sequence[str],
        env: Mapping[str, str] | None = None,
    ) -> Receipt:
        argv = list(command)
        display = shlex.join(argv)
        search_path = env["PATH"].split(os.pathsep) if env and "PATH" in env else None
        executable = self._resolve(argv[0], search_path)
        if executable is None:
            return Receipt.failure(
                command=display,
                error=f"Command not found: {argv[0]}",
                return_code=127,
            )

        logger.debug("Executing: %s", display)
        start = time.monotonic()

        try:
            result = subprocess.run(
                [executable, *argv[1:]],
                env=dict(env) if env is not None else None,
                timeout=self._install_timeout,
            )
        except subprocess.TimeoutExpired:
            return Receipt.failure(
                command=display,
                error=f"Command timed out after {self._install_timeout}s",
                metadata={"timeout": self._install_timeout},
            )
        except OSError as e:
            return Receipt.failure(command=display, error=f"Command execution error: {e}")

        elapsed_ms = int((time.monotonic() - start) * 1000)
        if result.returncode == 0:
            return Receipt.success(
                command=display,
                duration_ms=elapsed_ms,
                return_code=0,
                metadata={"executable": executable},
            )
        return Receipt.failure(
            command=display,
            error=f"Command exited with code {result.returncode}",
            return_code=result.returncode,
            duration_ms=elapsed_ms,
            metadata={"executable": executable},
        )

    # ── Helpers ─────────────────────────────────────────────────

    @staticmethod
    def _resolve(name: str, search_path: Sequence[str] | None) -> str | None:
        if "/" in name:
            return name if os.access(name, os.X_OK) and Path(name).is_file() else None
        path = os.pathsep.join(search_path) if search_path is not None else None
        return shutil.which(name, path=path)

    def _probe(
        self,
        argv: list[str],
        search_path: Sequence[str] | None,
        include_stderr: bool,
    ) -> str | None:
        executable = self._resolve(argv[0], search_path)
        if executable is None:
            logger.debug("Probe skipped, not found: %s", argv[0])
            return None
        try:
            result = subprocess.run(
                [executable, *argv[1:]],
                capture_output=True,
                text=True,
                timeout=self._probe_timeout,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.debug("Probe failed: %s (%s)", shlex.join(argv), e)
            return None
        if result.returncode != 0:
            logger.debug("Probe exited %d: %s", result.returncode, shlex.join(argv))
            return None
        output = result.stdout or ""
        if include_stderr:
            output += result.stderr or ""
        return output.strip()
