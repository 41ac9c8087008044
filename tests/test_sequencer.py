"""
Tests for the installation sequencer — plan order, halting, remediation hints.
"""

from mps_provision.core.engine.sequencer import build_install_plan, run_sequence
from mps_provision.core.models.config import PackageSettings, ProvisionConfig


def _ctx(ctx):
    return ctx.model_copy(update={"python": "python3.12"})


# ── Plan ─────────────────────────────────────────────────────────────


class TestBuildInstallPlan:
    def test_order(self, ctx):
        steps = build_install_plan(ProvisionConfig(), _ctx(ctx))
        args = [step.command[4:] for step in steps]

        assert len(steps) == 3 + 16 + 4 + 2
        assert args[0] == ["--upgrade", "pip"]
        assert args[1] == ["torch", "torchvision", "torchaudio"]
        assert args[2] == ["--no-deps", "git+https://github.com/resemble-ai/chatterbox.git"]
        assert args[3] == ["fastapi"]
        assert args[18] == ["tqdm"]
        assert args[19:23] == [
            ["conformer==0.3.2"],
            ["diffusers==0.29.0"],
            ["resemble-perth==1.0.1"],
            ["transformers==4.46.3"],
        ]
        assert args[23] == ["--no-deps", "s3tokenizer"]
        assert args[24] == ["onnx==1.16.0"]

    def test_one_package_per_auxiliary_step(self, ctx):
        steps = build_install_plan(ProvisionConfig(), _ctx(ctx))
        auxiliary = [s for s in steps if s.phase == "auxiliary"]
        assert all(len(s.command) == 5 for s in auxiliary)

    def test_uses_active_interpreter(self, ctx):
        steps = build_install_plan(ProvisionConfig(), _ctx(ctx))
        assert all(s.command[:4] == ["python3.12", "-m", "pip", "install"] for s in steps)

    def test_custom_packages(self, ctx):
        config = ProvisionConfig(packages=PackageSettings(auxiliary=["requests"], pinned=["conformer==0.3.2"]))
        assert len(build_install_plan(config, _ctx(ctx))) == 7


# ── Running ──────────────────────────────────────────────────────────


class TestRunSequence:
    def test_all_ok(self, host, ctx, make_console):
        ctx = _ctx(ctx)
        steps = build_install_plan(ProvisionConfig(), ctx)
        outcome = run_sequence(host, ctx, steps, ProvisionConfig(), make_console())
        assert outcome.ok
        assert outcome.value.all_ok
        assert outcome.value.attempted == 25
        assert host.install_log == [s.command for s in steps]

    def test_halts_after_failed_step(self, host, ctx, make_console):
        ctx = _ctx(ctx)
        host.set_failure("chatterbox.git")
        steps = build_install_plan(ProvisionConfig(), ctx)
        outcome = run_sequence(host, ctx, steps, ProvisionConfig(), make_console())

        assert outcome.fatal
        assert host.install_count == 3
        assert not host.ran("fastapi")
        assert not host.ran("s3tokenizer")
        assert not host.ran("onnx")
        report = outcome.value
        assert report.attempted == 3
        assert report.succeeded == 2
        assert report.failed_step is steps[2]
        assert outcome.reason == f"Failed to execute: {steps[2].display}"

    def test_interchange_hint(self, host, ctx, make_console):
        ctx = _ctx(ctx)
        host.set_failure("onnx==1.16.0")
        steps = build_install_plan(ProvisionConfig(), ctx)
        outcome = run_sequence(host, ctx, steps, ProvisionConfig(), make_console())

        assert outcome.fatal
        assert host.install_count == 25
        hint = "\n".join(outcome.remediation)
        assert "onnx==1.16.0 requires Python 3.9-3.12" in hint
        assert "Python 3.13+ not yet supported" in hint
        assert "Your current Python: Python 3.12.7" in hint

    def test_generic_hint(self, host, ctx, make_console):
        ctx = _ctx(ctx)
        host.set_failure("librosa")
        steps = build_install_plan(ProvisionConfig(), ctx)
        outcome = run_sequence(host, ctx, steps, ProvisionConfig(), make_console())
        assert outcome.fatal
        assert "ONNX" not in "\n".join(outcome.remediation)
        assert any("librosa" in line for line in outcome.remediation)

    def test_phase_headings(self, host, ctx, make_console):
        ctx = _ctx(ctx)
        console = make_console()
        run_sequence(host, ctx, build_install_plan(ProvisionConfig(), ctx), ProvisionConfig(), console)
        assert console.lines.count("🌐 Step 4: Installing core server dependencies...") == 1
        assert "🔧 Step 7: Installing compatible ONNX version..." in console.lines
        assert "⚠️  Installing ONNX - this requires Python 3.9-3.12 (fails on Python 3.13+)" in console.lines

    def test_report_after_failure(self, host, ctx, make_console):
        ctx = _ctx(ctx)
        host.set_failure("torchaudio")
        steps = build_install_plan(ProvisionConfig(), ctx)
        report = run_sequence(host, ctx, steps, ProvisionConfig(), make_console()).value
        assert report.total == 25
        assert report.attempted == 2
        assert not report.all_ok
        assert report.failed_step is steps[1]

    def test_interchange_heading_names_configured_library(self, host, ctx, make_console):
        ctx = _ctx(ctx)
        config = ProvisionConfig(packages=PackageSettings(interchange="protobuf==4.25.3"))
        console = make_console()
        run_sequence(host, ctx, build_install_plan(config, ctx), config, console)
        assert (
            "⚠️  Installing PROTOBUF - this requires Python 3.9-3.12 (fails on Python 3.13+)"
            in console.lines
        )
        assert not any("ONNX" in line for line in console.lines)
