"""
Tests for the provision use case — stage order, exit codes, end-to-end flows.
"""

from mps_provision.adapters.mock import MockInterrogator
from mps_provision.core.use_cases.provision import run_provision

VENV = "venv-chatterbox-apple-silicon"


class TestHostGate:
    def test_non_macos_exits_before_probing(self, host, ctx, make_console):
        console = make_console()
        result = run_provision(host, console, ctx=ctx.model_copy(update={"os_type": "linux-gnu"}))
        assert result.exit_code == 1
        assert result.stage == "os"
        assert result.reason == "This script is designed for macOS only"
        assert host.probe_log == []
        assert host.install_count == 0
        assert console.questions == []


class TestHappyPaths:
    def test_create_venv(self, host, ctx, tmp_path, make_console):
        venv_python = f"{tmp_path / VENV}/bin/python"
        host.on_install("-m venv", lambda m: m.add_path(venv_python, "Python 3.12.7"))
        console = make_console(choices=[1], confirms=[False])

        result = run_provision(host, console, ctx=ctx)

        assert result.status == "ok"
        assert result.exit_code == 0
        assert result.runtime.identifier == "python3.12"
        assert result.context.virtual_env == str(tmp_path / VENV)
        assert host.install_log[0] == ["python3.12", "-m", "venv", str(tmp_path / VENV)]
        assert all(cmd[0] == venv_python for cmd in host.install_log[1:])
        assert host.install_count == 1 + 25
        assert result.report.all_ok
        assert "🐍 Using Python: Python 3.12.7" in console.lines

    def test_skip_never_creates_venv(self, host, ctx, make_console):
        result = run_provision(host, make_console(choices=[2], confirms=[False]), ctx=ctx)
        assert result.exit_code == 0
        assert not host.ran("-m venv")
        assert all(cmd[0] == "python3.12" for cmd in host.install_log)

    def test_already_isolated(self, host, ctx, make_console):
        host.add_command("python", "Python 3.11.9")
        isolated = ctx.model_copy(update={"virtual_env": "/work/venv"})
        console = make_console(confirms=[False])

        result = run_provision(host, console, ctx=isolated)

        assert result.exit_code == 0
        assert console.menus == []
        assert all(cmd[0] == "python" for cmd in host.install_log)

    def test_smoke_test_opt_in(self, host, ctx, make_console):
        result = run_provision(host, make_console(choices=[2], confirms=[True]), ctx=ctx)
        assert result.exit_code == 0
        assert host.install_log[-1][:2] == ["python3.12", "-c"]

    def test_second_run_also_succeeds(self, host, ctx, make_console):
        first = run_provision(host, make_console(choices=[2], confirms=[False]), ctx=ctx)
        second = run_provision(host, make_console(choices=[2], confirms=[False]), ctx=ctx)
        assert first.exit_code == 0
        assert second.exit_code == 0
        assert host.install_count == 50

    def test_homebrew_loaded_onto_path(self, host, ctx, make_console):
        result = run_provision(host, make_console(choices=[2], confirms=[False]), ctx=ctx)
        assert result.context.search_path[:2] == ["/opt/homebrew/bin", "/opt/homebrew/sbin"]


class TestStops:
    def test_abort_is_graceful(self, host, ctx, make_console):
        result = run_provision(host, make_console(choices=[3]), ctx=ctx)
        assert result.status == "aborted"
        assert result.stage == "isolation"
        assert result.exit_code == 0
        assert host.install_count == 0

    def test_no_runtime_declined(self, ctx, make_console):
        mock = MockInterrogator(commands={"python3": "Python 3.13.1"})
        result = run_provision(mock, make_console(confirms=[False]), ctx=ctx)
        assert result.exit_code == 1
        assert result.stage == "runtime"
        assert mock.install_count == 0

    def test_old_macos_declined(self, host, ctx, make_console):
        host.set_output("sw_vers -productVersion", "12.0")
        result = run_provision(host, make_console(choices=[2], confirms=[False]), ctx=ctx)
        assert result.exit_code == 1
        assert result.stage == "hardware"
        assert host.install_count == 0

    def test_old_macos_accepted(self, host, ctx, make_console):
        host.set_output("sw_vers -productVersion", "12.0")
        result = run_provision(host, make_console(choices=[2], confirms=[True, False]), ctx=ctx)
        assert result.exit_code == 0

    def test_step_failure_halts(self, host, ctx, make_console):
        host.set_failure("chatterbox.git")
        result = run_provision(host, make_console(choices=[2]), ctx=ctx)
        assert result.exit_code == 1
        assert result.stage == "install"
        assert host.install_count == 3
        assert not host.ran("s3tokenizer")
        assert result.report.attempted == 3

    def test_continue_anyway_fails_at_interchange(self, host, ctx, make_console):
        host.add_command("python", "Python 3.13.0")
        host.set_failure("onnx==1.16.0")
        isolated = ctx.model_copy(update={"virtual_env": "/work/venv"})

        result = run_provision(host, make_console(choices=[2]), ctx=isolated)

        assert result.exit_code == 1
        assert result.report.failed_step.mentions("onnx")
        assert any("Your current Python: Python 3.13.0" in line for line in result.remediation)

    def test_result_records_stop(self, host, ctx, make_console):
        host.set_failure("torchaudio")
        result = run_provision(host, make_console(choices=[2]), ctx=ctx)
        assert result.status == "fatal"
        assert result.exit_code == 1
        assert result.stage == "install"
        assert result.runtime.identifier == "python3.12"
        assert str(result.runtime.version) == "3.12.7"
        assert result.report.attempted == 2
