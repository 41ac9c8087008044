"""
System interrogator base — the contract between the core and the host.

The core never calls ``subprocess`` or ``shutil.which`` directly. It
asks a ``SystemInterrogator`` whether a command exists, what version an
interpreter reports, or to run an install command. The shell
implementation talks to the real machine; the mock implementation
lets resolution and sequencing be tested without touching brew or pip.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence

from mps_provision.core.models.action import Receipt


class SystemInterrogator(ABC):
    """Abstract base class for host access.

    Probes return ``None``/``False`` when something is missing or
    broken. ``run_install_command`` never raises — failures are
    captured in the Receipt.

    To create a new interrogator:
        1. Subclass SystemInterrogator
        2. Implement the five capability methods
        3. Hand it to ``run_provision``
    """

    @abstractmethod
    def command_exists(self, name: str, search_path: Sequence[str] | None = None) -> bool:
        """Whether *name* resolves on the search path (``command -v``)."""

    @abstractmethod
    def path_exists(self, path: str) -> bool:
        """Whether an absolute path points at a regular file."""

    @abstractmethod
    def run_and_capture_version(
        self,
        executable: str,
        search_path: Sequence[str] | None = None,
    ) -> str | None:
        """Run ``<executable> --version`` and return its combined output.

        Returns None if the executable is missing, cannot run, or
        exits non-zero.
        """

    @abstractmethod
    def capture_output(
        self,
        command: Sequence[str],
        search_path: Sequence[str] | None = None,
    ) -> str | None:
        """Run a read-only probe command and return its stdout, or None."""

    @abstractmethod
    def run_install_command(
        self,
        command: Sequence[str],
        env: Mapping[str, str] | None = None,
    ) -> Receipt:
        """Run a side-effecting command to completion and return a receipt."""

    def exists(self, identifier: str, search_path: Sequence[str] | None = None) -> bool:
        """Path check for absolute identifiers, search-path lookup otherwise."""
        if "/" in identifier:
            return self.path_exists(identifier)
        return self.command_exists(identifier, search_path)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}>"
