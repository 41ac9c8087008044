"""
Runtime resolver — find, validate, or install a compatible Python.

Candidates are probed in priority order and the first one inside the
3.9–3.12 window wins; later candidates are never examined. When none
qualifies, the user may let Homebrew install the preferred version
(installing Homebrew itself first if needed). Declining any of those
prompts is fatal, with manual instructions.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from mps_provision.adapters.base import SystemInterrogator
from mps_provision.core.context import ExecutionContext
from mps_provision.core.interaction import Console
from mps_provision.core.models.config import ProvisionConfig, RuntimeSettings
from mps_provision.core.models.outcome import StageOutcome
from mps_provision.core.models.runtime import (
    RuntimeCandidate,
    RuntimeVersion,
    compatible_window_label,
)
from mps_provision.core.services.prober import (
    detect_package_manager,
    install_package_manager,
    load_shellenv,
)

logger = logging.getLogger(__name__)


@dataclass
class ResolvedRuntime:
    """The chosen interpreter plus the context it was found in."""

    candidate: RuntimeCandidate
    context: ExecutionContext


def preferred_locations(settings: RuntimeSettings) -> list[str]:
    """The preferred interpreter by name, then under each install prefix."""
    command = settings.preferred_command
    return [command, *(f"{prefix}/{command}" for prefix in settings.install_prefixes)]


def candidate_identifiers(settings: RuntimeSettings) -> list[str]:
    """All candidates, highest priority first.

    ``python3.12``, ``/opt/homebrew/bin/python3.12``, ...,
    ``python3.11``, ``python3.10``, ``python3.9``, ``python3``, ``python``
    """
    return [
        *preferred_locations(settings),
        *(f"python{version}" for version in settings.fallbacks),
        *settings.generic,
    ]


def probe_candidate(
    interrogator: SystemInterrogator,
    ctx: ExecutionContext,
    identifier: str,
) -> RuntimeCandidate | None:
    """Existence check, then ``--version``. None if missing or unparseable."""
    if not interrogator.exists(identifier, ctx.search_path):
        return None
    output = interrogator.run_and_capture_version(identifier, ctx.search_path)
    version = RuntimeVersion.parse(output)
    if version is None:
        logger.debug("No usable version from %s: %r", identifier, output)
        return None
    return RuntimeCandidate(identifier=identifier, version=version)


def locate_runtime(
    interrogator: SystemInterrogator,
    ctx: ExecutionContext,
    identifiers: Sequence[str],
    console: Console | None = None,
) -> RuntimeCandidate | None:
    """Return the first compatible candidate (first match, not best match)."""
    for identifier in identifiers:
        candidate = probe_candidate(interrogator, ctx, identifier)
        if candidate is None:
            continue
        if console is not None:
            console.detail(f"Found {identifier} version: {candidate.version}")
        if candidate.is_compatible:
            if console is not None:
                console.detail("✅ Compatible Python version")
            return candidate
        if console is not None:
            console.detail(f"❌ Incompatible Python version (need {compatible_window_label()})")
    return None


def manual_runtime_instructions(config: ProvisionConfig) -> list[str]:
    preferred = config.runtime.preferred
    return [
        "💡 Manual installation suggestions:",
        f"   • Using Homebrew: brew install {config.runtime.brew_formula}",
        f"   • Using pyenv: pyenv install {preferred} && pyenv global {preferred}",
        f"   • Download from python.org (choose {preferred}.x version)",
        "",
        "🔄 After installing compatible Python, run this script again.",
    ]


def find_compatible_runtime(
    interrogator: SystemInterrogator,
    ctx: ExecutionContext,
    config: ProvisionConfig,
    console: Console,
) -> StageOutcome[ResolvedRuntime]:
    """Find a compatible interpreter, offering to install one if none exists."""
    console.info("🐍 Ensuring compatible Python version is available...")
    candidate = locate_runtime(interrogator, ctx, candidate_identifiers(config.runtime), console)
    if candidate is not None:
        logger.info("Selected runtime %s (%s)", candidate.identifier, candidate.version)
        return StageOutcome.success(ResolvedRuntime(candidate, ctx.with_runtime(candidate.identifier)))

    preferred = config.runtime.preferred
    console.blank()
    console.error("No compatible Python version found!")
    console.blank()
    console.info("📋 Requirements:")
    console.detail("• Python 3.9, 3.10, 3.11, or 3.12 (Python 3.13+ not yet supported by ONNX)")
    console.blank()
    console.info(f"💡 I can automatically install Python {preferred} for you using Homebrew.")
    console.blank()

    if not console.confirm(f"Would you like to install Python {preferred} automatically?"):
        return StageOutcome.failure(
            "Cannot proceed without compatible Python version",
            remediation=manual_runtime_instructions(config),
        )
    return install_preferred_runtime(interrogator, ctx, config, console)


def install_preferred_runtime(
    interrogator: SystemInterrogator,
    ctx: ExecutionContext,
    config: ProvisionConfig,
    console: Console,
) -> StageOutcome[ResolvedRuntime]:
    """Install the preferred Python with Homebrew and locate it again."""
    settings = config.runtime
    preferred = settings.preferred

    if not detect_package_manager(interrogator, ctx, config):
        console.blank()
        console.info(f"📦 Homebrew is required to install Python {preferred} automatically.")
        if not console.confirm("Install Homebrew now?"):
            return StageOutcome.failure(
                f"Cannot install Python {preferred} without Homebrew",
                remediation=[
                    "📝 Manual installation options:",
                    "   • Install Homebrew: /bin/bash -c \"$(curl -fsSL "
                    f"{config.homebrew.install_url})\"",
                    f"   • Then run: brew install {settings.brew_formula}",
                    f"   • Or download from python.org (choose {preferred}.x version)",
                ],
            )
        installed = install_package_manager(interrogator, ctx, config, console)
        if not installed.ok:
            return installed.carry()
        assert installed.value is not None
        ctx = installed.value
    else:
        ctx = load_shellenv(interrogator, ctx, config)

    console.info(f"🐍 Installing Python {preferred} via Homebrew...")
    for command, label in (
        (["brew", "update"], "Updating Homebrew"),
        (["brew", "install", settings.brew_formula], f"Installing {settings.brew_formula}"),
    ):
        console.detail(f"{label}...")
        receipt = interrogator.run_install_command(command, env=ctx.environ())
        if receipt.failed:
            return StageOutcome.failure(
                f"Failed to install or locate Python {preferred}",
                remediation=[f"`{receipt.command}` failed: {receipt.error}"],
            )

    console.detail(f"Setting up Python {preferred} paths...")
    for prefix in settings.install_prefixes:
        path = f"{prefix}/{settings.preferred_command}"
        if interrogator.path_exists(path):
            ctx = ctx.with_path_prefix(prefix)
            console.detail(f"Python {preferred} installed at: {path}")
            break

    candidate = locate_runtime(interrogator, ctx, preferred_locations(settings))
    if candidate is None:
        return StageOutcome.failure(
            f"Failed to install or locate Python {preferred}",
            remediation=manual_runtime_instructions(config),
        )

    console.success(f"Python {preferred} installed successfully: Python {candidate.version}")
    return StageOutcome.success(ResolvedRuntime(candidate, ctx.with_runtime(candidate.identifier)))


def verify_runtime(
    interrogator: SystemInterrogator,
    ctx: ExecutionContext,
    candidate: RuntimeCandidate,
    console: Console,
) -> StageOutcome[RuntimeCandidate]:
    """Re-query the selected interpreter before anything depends on it."""
    console.info("🧪 Verifying selected Python...")
    output = None
    if interrogator.exists(candidate.identifier, ctx.search_path):
        output = interrogator.run_and_capture_version(candidate.identifier, ctx.search_path)
    if not output:
        return StageOutcome.failure(f"Selected Python is not accessible: {candidate.identifier}")
    console.detail(f"✅ Verified: {output}")
    console.blank()
    return StageOutcome.success(candidate)
