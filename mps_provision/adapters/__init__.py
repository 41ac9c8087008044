"""Adapters — host access for the provisioning stages.

Public re-exports for convenient access.
"""

from mps_provision.adapters.base import SystemInterrogator
from mps_provision.adapters.mock import MockInterrogator
from mps_provision.adapters.shell.command import ShellInterrogator

__all__ = [
    "MockInterrogator",
    "ShellInterrogator",
    "SystemInterrogator",
]
