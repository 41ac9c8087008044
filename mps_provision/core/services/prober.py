"""
Environment prober — host OS, Homebrew, and the MPS version gate.

Read-only probes, except ``install_package_manager`` which runs the
official Homebrew installer and records its shellenv in the user's
shell profile.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from mps_provision.adapters.base import SystemInterrogator
from mps_provision.core.context import ExecutionContext
from mps_provision.core.interaction import Console
from mps_provision.core.models.config import ProvisionConfig
from mps_provision.core.models.outcome import StageOutcome

logger = logging.getLogger(__name__)

TARGET_OS_PREFIX = "darwin"

# Metal Performance Shaders need macOS 12.3+
MPS_MIN_VERSION = (12, 3)


@dataclass
class OSInfo:
    """What we learned about the host."""

    os_type: str
    version: str | None = None

    @property
    def label(self) -> str:
        return self.version or "unknown"


# ── OS family ──────────────────────────────────────────────────


def detect_os(ctx: ExecutionContext) -> StageOutcome[OSInfo]:
    """Fail unless the OS-type marker says macOS (``darwin*``)."""
    if not ctx.os_type.startswith(TARGET_OS_PREFIX):
        logger.debug("Unsupported OS type: %r", ctx.os_type)
        return StageOutcome.failure(
            "This script is designed for macOS only",
            remediation=[f"Detected OS type: {ctx.os_type or 'unknown'}"],
        )
    return StageOutcome.success(OSInfo(os_type=ctx.os_type))


# ── Homebrew ───────────────────────────────────────────────────


def _installed_prefix(interrogator: SystemInterrogator, config: ProvisionConfig) -> str | None:
    """First Homebrew prefix with a ``bin/brew`` in it."""
    for prefix in config.homebrew.prefixes:
        if interrogator.path_exists(f"{prefix}/bin/brew"):
            return prefix
    return None


def detect_package_manager(
    interrogator: SystemInterrogator,
    ctx: ExecutionContext,
    config: ProvisionConfig,
) -> bool:
    """Whether ``brew`` is on the search path or at a known prefix."""
    if interrogator.command_exists("brew", ctx.search_path):
        return True
    return _installed_prefix(interrogator, config) is not None


def load_shellenv(
    interrogator: SystemInterrogator,
    ctx: ExecutionContext,
    config: ProvisionConfig,
) -> ExecutionContext:
    """Put Homebrew's ``bin`` and ``sbin`` first on the search path.

    The context equivalent of ``eval "$(brew shellenv)"``. Returns the
    context unchanged when Homebrew is not installed at a known prefix.
    """
    prefix = _installed_prefix(interrogator, config)
    if prefix is None:
        return ctx
    logger.debug("Loading Homebrew shellenv from %s", prefix)
    return ctx.with_path_prefix(f"{prefix}/bin", f"{prefix}/sbin")


def persist_shellenv(home: str, prefix: str, profile: str = ".zprofile") -> bool:
    """Append the brew shellenv line to the shell profile, once.

    Returns:
        True if the line was written, False if it was already there.
    """
    line = f'eval "$({prefix}/bin/brew shellenv)"'
    path = Path(home).expanduser() / profile
    existing = path.read_text(encoding="utf-8") if path.is_file() else ""
    if line in existing.splitlines():
        return False
    with path.open("a", encoding="utf-8") as fh:
        if existing and not existing.endswith("\n"):
            fh.write("\n")
        fh.write(line + "\n")
    logger.info("Added Homebrew shellenv to %s", path)
    return True


def install_package_manager(
    interrogator: SystemInterrogator,
    ctx: ExecutionContext,
    config: ProvisionConfig,
    console: Console,
) -> StageOutcome[ExecutionContext]:
    """Run the official Homebrew installer and load it into the context."""
    console.info("🍺 Installing Homebrew...")
    console.detail("This will install the package manager for macOS")

    script = f'/bin/bash -c "$(curl -fsSL {config.homebrew.install_url})"'
    receipt = interrogator.run_install_command(["/bin/bash", "-c", script], env=ctx.environ())
    if receipt.failed:
        return StageOutcome.failure(
            "Homebrew installation failed",
            remediation=[
                receipt.error or "",
                "Install Homebrew manually from https://brew.sh/ and run this script again.",
            ],
        )

    prefix = _installed_prefix(interrogator, config)
    if prefix is not None:
        persist_shellenv(ctx.home, prefix, config.homebrew.profile)
    console.success("Homebrew installation completed")
    return StageOutcome.success(load_shellenv(interrogator, ctx, config))


# ── MPS version gate ───────────────────────────────────────────


def parse_os_version(text: str | None) -> tuple[int, int] | None:
    """``"14.5.1"`` → ``(14, 5)``; a missing minor counts as 0."""
    if not text:
        return None
    parts = text.strip().split(".")
    try:
        major = int(parts[0])
        minor = int(parts[1]) if len(parts) > 1 else 0
    except ValueError:
        return None
    return major, minor


def check_hardware_acceleration_support(os_version: str | None) -> bool:
    """Whether this macOS release can run MPS (12.3 or later)."""
    parsed = parse_os_version(os_version)
    if parsed is None:
        return False
    major, minor = parsed
    threshold_major, threshold_minor = MPS_MIN_VERSION
    return major > threshold_major or (major == threshold_major and minor >= threshold_minor)


def hardware_acceleration_gate(
    interrogator: SystemInterrogator,
    ctx: ExecutionContext,
    console: Console,
) -> StageOutcome[OSInfo]:
    """Check the macOS version; below 12.3 the user decides whether to go on."""
    console.info("🔍 Checking system compatibility...")
    raw = interrogator.capture_output(["sw_vers", "-productVersion"], ctx.search_path)
    info = OSInfo(os_type=ctx.os_type, version=raw.strip() if raw else None)
    console.info(f"📱 Detected macOS version: {info.label}")

    if check_hardware_acceleration_support(info.version):
        console.success("macOS version supports Metal Performance Shaders (MPS)")
        console.blank()
        return StageOutcome.success(info)

    major, minor = MPS_MIN_VERSION
    console.warn(f"Warning: macOS {major}.{minor} or later is recommended for MPS support")
    console.detail(f"Your version: {info.label}")
    if console.confirm("Continue anyway?"):
        console.blank()
        return StageOutcome.success(info)

    return StageOutcome.failure(
        f"macOS {major}.{minor} or later is required for MPS acceleration",
        remediation=[f"Detected macOS version: {info.label}"],
    )
