"""
Verifier — post-install report and the optional smoke test.

Nothing here can fail the run. The smoke test executes inside the
provisioned interpreter (which does not have this package installed),
so it is shipped as an inline program and every check in it catches
its own errors.
"""

from __future__ import annotations

import logging
import textwrap
from pathlib import Path

from mps_provision.adapters.base import SystemInterrogator
from mps_provision.core.context import ExecutionContext
from mps_provision.core.interaction import Console
from mps_provision.core.models.action import Receipt
from mps_provision.core.models.config import ProvisionConfig
from mps_provision.core.models.outcome import StageOutcome
from mps_provision.core.services.prober import detect_package_manager

logger = logging.getLogger(__name__)

SMOKE_PROGRAM = textwrap.dedent(
    """\
    import sys

    print(f'✅ Python version: {sys.version}')

    mps_available = False
    try:
        import torch
        print(f'✅ PyTorch version: {torch.__version__}')
        mps_available = torch.backends.mps.is_available()
        print(f'✅ MPS available: {mps_available}')
        print(f'✅ MPS built: {torch.backends.mps.is_built()}')
    except Exception as e:
        print(f'❌ PyTorch check failed: {e}')

    if mps_available:
        try:
            x = torch.tensor([1.0, 2.0, 3.0]).to('mps')
            y = x * 2
            result = y.cpu()
            print(f'✅ MPS test successful: {result.tolist()}')
            print('🎉 Apple Silicon MPS acceleration is ready!')
        except Exception as e:
            print(f'⚠️  MPS test failed: {e}')
            print('   You may need to restart your terminal or check your macOS version.')
    else:
        print('⚠️  MPS is not available. Check that you have macOS 12.3+ and Apple Silicon.')

    try:
        import onnx
        print(f'✅ ONNX version: {onnx.__version__}')
        print('✅ ONNX imported successfully')
    except Exception as e:
        print(f'❌ ONNX import failed: {e}')

    try:
        from chatterbox.mtl_tts import ChatterboxMultilingualTTS
        print('✅ Chatterbox TTS imported successfully')
    except Exception as e:
        print(f'⚠️  Chatterbox import failed: {e}')
        print('   This may be normal if additional setup is required')
    """
)


def print_next_steps(ctx: ExecutionContext, console: Console) -> None:
    console.heading("🎉 Installation completed successfully!")
    console.blank()
    console.info("📝 Next steps:")
    console.detail("1. Update your config.yaml to set 'tts_engine.device' to 'mps'")
    console.detail(
        "2. Test MPS functionality with: python -c \"import torch; "
        "print('MPS available:', torch.backends.mps.is_available())\""
    )
    if ctx.virtual_env:
        console.detail(f"3. Your virtual environment is active: {ctx.virtual_env}")
        console.detail("   To deactivate later: deactivate")
        console.detail(f"   To reactivate: source {Path(ctx.virtual_env).name}/bin/activate")
    console.blank()
    console.info("🚀 You can now run your Chatterbox TTS server with Apple Silicon acceleration!")
    console.blank()


def run_smoke_test(
    interrogator: SystemInterrogator,
    ctx: ExecutionContext,
    console: Console,
) -> Receipt:
    """Run the inline diagnostics with the active interpreter."""
    console.info("🔍 Testing installation...")
    receipt = interrogator.run_install_command([ctx.python, "-c", SMOKE_PROGRAM], env=ctx.environ())
    if receipt.failed:
        logger.debug("Smoke test failed: %s", receipt.error)
        console.warn(f"Smoke test did not finish cleanly ({receipt.error}); see the output above.")
    return receipt


def print_summary(
    interrogator: SystemInterrogator,
    ctx: ExecutionContext,
    config: ProvisionConfig,
    console: Console,
) -> None:
    version = interrogator.run_and_capture_version(ctx.python, ctx.search_path) or "unknown"
    brew = "Installed" if detect_package_manager(interrogator, ctx, config) else "Not installed"
    venv = "Active" if ctx.is_isolated else "Not active"

    console.blank()
    console.info("Happy TTS generation! 🎤✨")
    console.blank()
    console.info("📋 Installation Summary:")
    console.detail(f"• Python version used: {version}")
    console.detail(f"• Homebrew: {brew}")
    console.detail(f"• Virtual environment: {venv}")
    console.detail("• Ready for Apple Silicon MPS acceleration!")


def verify_installation(
    interrogator: SystemInterrogator,
    ctx: ExecutionContext,
    config: ProvisionConfig,
    console: Console,
) -> StageOutcome[Receipt | None]:
    """Offer the smoke test, then print the summary. Always ok."""
    receipt = None
    if console.confirm("🧪 Would you like to test the installation now?"):
        receipt = run_smoke_test(interrogator, ctx, console)
    print_summary(interrogator, ctx, config, console)
    return StageOutcome.success(receipt)
