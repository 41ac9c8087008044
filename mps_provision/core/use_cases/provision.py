"""
Provision use case — the whole installer, top to bottom.

Runs each stage in order, threading the execution context through
them, and stops at the first outcome that is not ok. The result says
which stage stopped the run and why; the CLI turns it into output and
an exit code.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from mps_provision.adapters.base import SystemInterrogator
from mps_provision.core.context import ExecutionContext
from mps_provision.core.engine.sequencer import (
    SequenceReport,
    build_install_plan,
    run_sequence,
)
from mps_provision.core.interaction import Console
from mps_provision.core.models.config import ProvisionConfig
from mps_provision.core.models.outcome import StageOutcome
from mps_provision.core.models.runtime import RuntimeCandidate
from mps_provision.core.services.isolation import decide_isolation
from mps_provision.core.services.prober import (
    OSInfo,
    detect_os,
    hardware_acceleration_gate,
    load_shellenv,
)
from mps_provision.core.services.runtime_resolver import (
    find_compatible_runtime,
    verify_runtime,
)
from mps_provision.core.services.verifier import print_next_steps, verify_installation

logger = logging.getLogger(__name__)


@dataclass
class ProvisionResult:
    """Result of a provisioning run."""

    status: str = "ok"              # ok, fatal, aborted
    stage: str = ""                 # stage that stopped the run
    reason: str = ""
    remediation: list[str] = field(default_factory=list)
    context: ExecutionContext | None = None
    runtime: RuntimeCandidate | None = None
    os_info: OSInfo | None = None
    report: SequenceReport | None = None

    @property
    def exit_code(self) -> int:
        return 1 if self.status == "fatal" else 0

    def halt(self, stage: str, outcome: StageOutcome[Any]) -> ProvisionResult:
        self.status = outcome.status
        self.stage = stage
        self.reason = outcome.reason
        self.remediation = list(outcome.remediation)
        logger.info("Stopped at %s: %s (%s)", stage, outcome.status, outcome.reason)
        return self


def run_provision(
    interrogator: SystemInterrogator,
    console: Console,
    config: ProvisionConfig | None = None,
    ctx: ExecutionContext | None = None,
) -> ProvisionResult:
    """Provision the MPS environment.

    Args:
        interrogator: Host access (shell on a real machine, mock in tests).
        console: Where progress goes and answers come from.
        config: Dependency set and search locations (default: built-in).
        ctx: Starting environment (default: snapshot of this process).

    Returns:
        ProvisionResult; ``exit_code`` is 1 only for fatal stops.
    """
    config = config or ProvisionConfig()
    ctx = ctx or ExecutionContext.from_environ()
    result = ProvisionResult(context=ctx)

    console.heading("🍎 Starting Apple Silicon (MPS) Installation for Chatterbox TTS...")

    # ── Host ─────────────────────────────────────────────────────
    host = detect_os(ctx)
    if not host.ok:
        return result.halt("os", host)
    ctx = load_shellenv(interrogator, ctx, config)

    # ── Runtime ──────────────────────────────────────────────────
    console.info("🔍 Checking Python compatibility...")
    resolved = find_compatible_runtime(interrogator, ctx, config, console)
    if not resolved.ok:
        return result.halt("runtime", resolved)
    assert resolved.value is not None
    runtime = resolved.value.candidate
    ctx = resolved.value.context
    result.runtime = runtime

    console.blank()
    console.info(f"🎯 Selected Python: {runtime.identifier}")
    verified = verify_runtime(interrogator, ctx, runtime, console)
    if not verified.ok:
        return result.halt("runtime", verified)

    # ── Isolation ────────────────────────────────────────────────
    isolation = decide_isolation(interrogator, ctx, runtime, config, console)
    if not isolation.ok:
        return result.halt("isolation", isolation)
    assert isolation.value is not None
    ctx = isolation.value
    result.context = ctx

    # ── Hardware acceleration ────────────────────────────────────
    gate = hardware_acceleration_gate(interrogator, ctx, console)
    if not gate.ok:
        return result.halt("hardware", gate)
    result.os_info = gate.value

    # ── Install ──────────────────────────────────────────────────
    console.info("🚀 Beginning installation process...")
    console.blank()
    active = interrogator.run_and_capture_version(ctx.python, ctx.search_path) or ctx.python
    console.info(f"🐍 Using Python: {active}")
    console.blank()

    sequence = run_sequence(interrogator, ctx, build_install_plan(config, ctx), config, console)
    result.report = sequence.value
    if not sequence.ok:
        return result.halt("install", sequence)

    # ── Verify ───────────────────────────────────────────────────
    print_next_steps(ctx, console)
    verify_installation(interrogator, ctx, config, console)
    return result
