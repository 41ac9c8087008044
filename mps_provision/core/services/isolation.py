"""
Isolation manager — virtual environment detection and creation.

The decision flow is a small state machine. ``transition`` is the
pure part (state × choice → state) and knows nothing about prompts;
``decide_isolation`` classifies the context, shows the menu for the
current state, and carries out whatever the new state requires.

    NOT_ISOLATED          ── create ──────────→ ISOLATED
                          ── skip ────────────→ UNISOLATED_CONTINUE
                          ── abort ───────────→ ABORTED
    ISOLATED_INCOMPATIBLE ── recreate ────────→ ISOLATED
                          ── continue-anyway ─→ INCOMPATIBLE_CONTINUE
                          ── abort ───────────→ ABORTED
    ISOLATED_COMPATIBLE   (no menu, proceeds)
"""

from __future__ import annotations

import logging
from enum import StrEnum
from pathlib import Path

from mps_provision.adapters.base import SystemInterrogator
from mps_provision.core.context import ExecutionContext
from mps_provision.core.interaction import Console
from mps_provision.core.models.config import ProvisionConfig
from mps_provision.core.models.outcome import StageOutcome
from mps_provision.core.models.runtime import RuntimeCandidate, RuntimeVersion

logger = logging.getLogger(__name__)


class IsolationState(StrEnum):
    NOT_ISOLATED = "not-isolated"
    ISOLATED_INCOMPATIBLE = "isolated-incompatible"
    ISOLATED_COMPATIBLE = "isolated-compatible"
    ISOLATED = "isolated"
    UNISOLATED_CONTINUE = "unisolated-continue"
    INCOMPATIBLE_CONTINUE = "incompatible-continue"
    ABORTED = "aborted"


class IsolationChoice(StrEnum):
    CREATE = "create"
    SKIP = "skip"
    ABORT = "abort"
    RECREATE = "recreate"
    CONTINUE_ANYWAY = "continue-anyway"


_TRANSITIONS: dict[tuple[IsolationState, IsolationChoice], IsolationState] = {
    (IsolationState.NOT_ISOLATED, IsolationChoice.CREATE): IsolationState.ISOLATED,
    (IsolationState.NOT_ISOLATED, IsolationChoice.SKIP): IsolationState.UNISOLATED_CONTINUE,
    (IsolationState.NOT_ISOLATED, IsolationChoice.ABORT): IsolationState.ABORTED,
    (IsolationState.ISOLATED_INCOMPATIBLE, IsolationChoice.RECREATE): IsolationState.ISOLATED,
    (IsolationState.ISOLATED_INCOMPATIBLE, IsolationChoice.CONTINUE_ANYWAY): (
        IsolationState.INCOMPATIBLE_CONTINUE
    ),
    (IsolationState.ISOLATED_INCOMPATIBLE, IsolationChoice.ABORT): IsolationState.ABORTED,
}

# Menu order = option numbers 1/2/3
MENU_OPTIONS: dict[IsolationState, tuple[IsolationChoice, ...]] = {
    IsolationState.NOT_ISOLATED: (
        IsolationChoice.CREATE,
        IsolationChoice.SKIP,
        IsolationChoice.ABORT,
    ),
    IsolationState.ISOLATED_INCOMPATIBLE: (
        IsolationChoice.RECREATE,
        IsolationChoice.CONTINUE_ANYWAY,
        IsolationChoice.ABORT,
    ),
}


def transition(state: IsolationState, choice: IsolationChoice) -> IsolationState:
    """Next state for a menu choice.

    Raises:
        ValueError: If *choice* is not offered in *state*.
    """
    try:
        return _TRANSITIONS[(state, choice)]
    except KeyError:
        raise ValueError(f"No transition from {state.value} on {choice.value}") from None


def is_isolated(ctx: ExecutionContext) -> bool:
    """Whether VIRTUAL_ENV or CONDA_DEFAULT_ENV is set in the context."""
    return ctx.is_isolated


def classify(
    interrogator: SystemInterrogator,
    ctx: ExecutionContext,
) -> tuple[IsolationState, RuntimeVersion | None]:
    """Where the decision flow starts, plus the active interpreter's version."""
    if not ctx.is_isolated:
        return IsolationState.NOT_ISOLATED, None
    version = RuntimeVersion.parse(interrogator.run_and_capture_version(ctx.python, ctx.search_path))
    if version is not None and version.is_unsupported_release:
        return IsolationState.ISOLATED_INCOMPATIBLE, version
    return IsolationState.ISOLATED_COMPATIBLE, version


def create_isolated_environment(
    interrogator: SystemInterrogator,
    ctx: ExecutionContext,
    runtime: str,
    name: str,
    console: Console,
) -> StageOutcome[ExecutionContext]:
    """``<runtime> -m venv <name>``, then activate it in the returned context."""
    venv_dir = str(Path(ctx.working_dir) / name)

    console.info(f"🐍 Setting up virtual environment with {runtime}...")
    console.detail(f"Creating virtual environment: {name}")
    receipt = interrogator.run_install_command([runtime, "-m", "venv", venv_dir], env=ctx.environ())
    if receipt.failed:
        return StageOutcome.failure(
            f"Failed to create virtual environment: {name}",
            remediation=[
                receipt.error or "",
                f"Try it manually: {runtime} -m venv {name}",
            ],
        )

    console.detail("Activating virtual environment...")
    activated = ctx.activate(venv_dir)
    version = interrogator.run_and_capture_version(activated.python, activated.search_path)
    console.detail(f"Virtual environment Python version: {version or 'unknown'}")
    logger.info("Activated venv %s (%s)", venv_dir, version)

    console.success("Virtual environment created and activated!")
    console.info(f"📝 Virtual environment location: {venv_dir}")
    console.info(f"📝 To activate manually later: source {name}/bin/activate")
    console.info("📝 To deactivate: deactivate")
    console.blank()
    return StageOutcome.success(activated)


def _menu_labels(state: IsolationState, runtime: str) -> list[str]:
    if state is IsolationState.NOT_ISOLATED:
        return [
            f"Create a new virtual environment automatically (with {runtime})",
            "Continue without virtual environment (not recommended)",
            "Exit and set up virtual environment manually",
        ]
    return [
        f"Deactivate current venv and create new one with compatible Python ({runtime})",
        "Continue anyway (likely to fail at ONNX installation)",
        "Exit and manually fix Python version",
    ]


def _manual_setup(state: IsolationState, runtime: str) -> list[str]:
    if state is IsolationState.NOT_ISOLATED:
        return [
            "📝 To set up virtual environment manually:",
            f"   {runtime} -m venv venv-chatterbox",
            "   source venv-chatterbox/bin/activate",
            "   mps-provision",
        ]
    return [
        "📝 To fix manually:",
        "   1. deactivate",
        f"   2. Create new venv with: {runtime} -m venv your-venv-name",
        "   3. source your-venv-name/bin/activate",
        "   4. Run this script again",
    ]


def decide_isolation(
    interrogator: SystemInterrogator,
    ctx: ExecutionContext,
    runtime: RuntimeCandidate,
    config: ProvisionConfig,
    console: Console,
) -> StageOutcome[ExecutionContext]:
    """Run the isolation decision flow and return the context to install into."""
    state, version = classify(interrogator, ctx)

    if state is IsolationState.ISOLATED_COMPATIBLE:
        console.success(f"Virtual environment detected: {ctx.virtual_env or ctx.conda_env}")
        console.detail(f"Current venv Python: {version or 'unknown'}")
        console.detail("✅ Virtual environment Python version is compatible")
        console.blank()
        return StageOutcome.success(ctx)

    if state is IsolationState.ISOLATED_INCOMPATIBLE:
        console.success(f"Virtual environment detected: {ctx.virtual_env or ctx.conda_env}")
        console.detail(f"❌ Current virtual environment uses Python {version}")
        console.detail("⚠️  Python 3.13+ is not compatible with ONNX and other ML packages")
    else:
        console.warn("No virtual environment detected.")
    console.blank()
    console.info("Options:")

    index = console.choose("Choose option (1/2/3)", _menu_labels(state, runtime.identifier))
    choice = MENU_OPTIONS[state][index - 1]
    next_state = transition(state, choice)
    logger.debug("Isolation %s --%s--> %s", state.value, choice.value, next_state.value)

    if next_state is IsolationState.ISOLATED:
        base = ctx
        if state is IsolationState.ISOLATED_INCOMPATIBLE:
            console.info("Deactivating current virtual environment...")
            base = ctx.deactivate()
        return create_isolated_environment(
            interrogator, base, runtime.identifier, config.venv_name, console
        )

    if next_state is IsolationState.UNISOLATED_CONTINUE:
        console.warn("Continuing without virtual environment...")
        console.warn("This may cause conflicts with system Python packages!")
        console.blank()
        return StageOutcome.success(ctx.model_copy(update={"python": runtime.identifier}))

    if next_state is IsolationState.INCOMPATIBLE_CONTINUE:
        console.warn(f"Continuing with Python {version} (expect ONNX installation to fail)...")
        console.blank()
        return StageOutcome.success(ctx)

    return StageOutcome.abort(
        "Exiting so the virtual environment can be set up manually",
        remediation=_manual_setup(state, runtime.identifier),
    )
