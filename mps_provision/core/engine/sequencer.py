"""
Installation sequencer — the ordered pip checklist.

Builds the install plan from configuration, then runs it one step at a
time through the system interrogator. The first failed receipt stops
the sequence: no retry, no rollback of what was already installed, no
partial continuation.

Flow:
    config → build plan → run step → receipt → (ok: next step | failed: halt)
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from mps_provision.adapters.base import SystemInterrogator
from mps_provision.core.context import ExecutionContext
from mps_provision.core.interaction import Console
from mps_provision.core.models.action import InstallStep, Receipt
from mps_provision.core.models.config import ProvisionConfig
from mps_provision.core.models.outcome import StageOutcome
from mps_provision.core.models.runtime import FIRST_UNSUPPORTED, compatible_window_label

logger = logging.getLogger(__name__)

# Printed once when the sequence enters a phase
PHASE_HEADINGS = {
    "auxiliary": "🌐 Step 4: Installing core server dependencies...",
    "pinned": "🔗 Step 5: Installing chatterbox dependencies with pinned versions...",
}


def phase_heading(phase: str, config: ProvisionConfig) -> str | None:
    """Heading for *phase*; the interchange one names the configured library."""
    if phase == "interchange":
        name = config.packages.interchange.project.upper()
        major, minor = FIRST_UNSUPPORTED
        return (
            f"⚠️  Installing {name} - this requires {compatible_window_label()} "
            f"(fails on Python {major}.{minor}+)"
        )
    return PHASE_HEADINGS.get(phase)


@dataclass
class SequenceReport:
    """What ran, and how it went."""

    steps: list[InstallStep] = field(default_factory=list)
    receipts: list[Receipt] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.steps)

    @property
    def attempted(self) -> int:
        return len(self.receipts)

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.receipts if r.ok)

    @property
    def all_ok(self) -> bool:
        return self.succeeded == self.total

    @property
    def failed_step(self) -> InstallStep | None:
        for step, receipt in zip(self.steps, self.receipts):
            if receipt.failed:
                return step
        return None


def pip_install(ctx: ExecutionContext, *args: str) -> list[str]:
    """``<active python> -m pip install ...``"""
    return [ctx.python, "-m", "pip", "install", *args]


def build_install_plan(config: ProvisionConfig, ctx: ExecutionContext) -> list[InstallStep]:
    """The fixed install order for the configured dependency set."""
    packages = config.packages
    steps = [
        InstallStep(
            command=pip_install(ctx, "--upgrade", "pip"),
            description="Step 1: Upgrading pip",
            phase="installer",
        ),
        InstallStep(
            command=pip_install(ctx, *packages.accelerated),
            description="Step 2: Installing PyTorch with MPS support",
            phase="accelerated",
        ),
        InstallStep(
            command=pip_install(ctx, "--no-deps", packages.application),
            description="Step 3: Installing chatterbox-tts (without dependencies)",
            phase="application",
        ),
    ]
    steps += [
        InstallStep(
            command=pip_install(ctx, spec.requirement),
            description=f"Installing {spec.requirement}",
            phase="auxiliary",
        )
        for spec in packages.auxiliary
    ]
    steps += [
        InstallStep(
            command=pip_install(ctx, spec.requirement),
            description=f"Installing {spec.requirement}",
            phase="pinned",
        )
        for spec in packages.pinned
    ]
    steps.append(
        InstallStep(
            command=pip_install(ctx, "--no-deps", packages.tokenizer.requirement),
            description=f"Step 6: Installing {packages.tokenizer.name} (without dependencies)",
            phase="tokenizer",
        )
    )
    steps.append(
        InstallStep(
            command=pip_install(ctx, packages.interchange.requirement),
            description=f"Step 7: Installing compatible {packages.interchange.project.upper()} version",
            phase="interchange",
        )
    )
    return steps


def run_step(
    interrogator: SystemInterrogator,
    ctx: ExecutionContext,
    step: InstallStep,
    console: Console,
) -> Receipt:
    """Run one step and report it. Never raises."""
    console.info(f"🔧 {step.description}...")
    console.detail(f"Running: {step.display}")
    receipt = interrogator.run_install_command(step.command, env=ctx.environ())
    if receipt.ok:
        console.detail("✅ Success")
    else:
        logger.debug("Step failed: %s (%s)", step.display, receipt.error)
        console.detail(f"❌ Failed to execute: {step.display}")
    console.blank()
    return receipt


def remediation_for(
    interrogator: SystemInterrogator,
    ctx: ExecutionContext,
    step: InstallStep,
    config: ProvisionConfig,
) -> list[str]:
    """Hint printed under a failed step; specific for the interchange library."""
    interchange = config.packages.interchange
    if step.mentions(interchange.project):
        current = interrogator.run_and_capture_version(ctx.python, ctx.search_path) or "unknown"
        name = interchange.project.upper()
        return [
            f"💡 {name} installation failed - this is likely due to Python version incompatibility",
            f"   {interchange.requirement} requires {compatible_window_label()} "
            "(Python 3.13+ not yet supported)",
            f"   Your current Python: {current}",
            "",
            "🔄 A compatible Python should have been selected - this may be a different issue.",
            "   Please check the error messages above.",
        ]
    return [
        "Please check the error messages above.",
        f"To retry this step by hand: {step.display}",
    ]


def run_sequence(
    interrogator: SystemInterrogator,
    ctx: ExecutionContext,
    steps: Sequence[InstallStep],
    config: ProvisionConfig,
    console: Console,
) -> StageOutcome[SequenceReport]:
    """Run *steps* in order, halting on the first failure.

    Returns:
        ok with the full report, or fatal with the partial report as value.
    """
    report = SequenceReport(steps=list(steps))
    phase: str | None = None

    for step in steps:
        if step.phase != phase:
            phase = step.phase
            heading = phase_heading(phase, config)
            if heading:
                console.info(heading)

        receipt = run_step(interrogator, ctx, step, console)
        report.receipts.append(receipt)
        if receipt.failed:
            return StageOutcome.failure(
                f"Failed to execute: {step.display}",
                remediation=remediation_for(interrogator, ctx, step, config),
                value=report,
            )

    logger.info("Installed %d/%d steps", report.succeeded, report.total)
    return StageOutcome.success(report)
