"""
Tests for the environment prober — OS family, Homebrew, MPS version gate.
"""

import pytest

from mps_provision.adapters.mock import MockInterrogator
from mps_provision.core.models.config import ProvisionConfig
from mps_provision.core.services.prober import (
    check_hardware_acceleration_support,
    detect_os,
    detect_package_manager,
    hardware_acceleration_gate,
    install_package_manager,
    load_shellenv,
    parse_os_version,
    persist_shellenv,
)

# ── OS family ────────────────────────────────────────────────────────


class TestDetectOS:
    def test_darwin(self, ctx):
        outcome = detect_os(ctx)
        assert outcome.ok
        assert outcome.value.os_type == "darwin23"

    @pytest.mark.parametrize("os_type", ["linux-gnu", "msys", "freebsd13.2", ""])
    def test_not_darwin_is_fatal(self, ctx, os_type):
        outcome = detect_os(ctx.model_copy(update={"os_type": os_type}))
        assert outcome.fatal
        assert outcome.reason == "This script is designed for macOS only"


# ── MPS threshold ────────────────────────────────────────────────────


class TestHardwareAccelerationSupport:
    @pytest.mark.parametrize("version", ["12.3", "12.3.1", "12.10", "13.0", "14", "15.1"])
    def test_supported(self, version):
        assert check_hardware_acceleration_support(version)

    @pytest.mark.parametrize("version", ["12.2", "12.2.1", "11.7.10", "10.15"])
    def test_too_old(self, version):
        assert not check_hardware_acceleration_support(version)

    @pytest.mark.parametrize("version", ["", None, "abc", "x.3"])
    def test_unparseable(self, version):
        assert not check_hardware_acceleration_support(version)

    def test_parse_os_version(self):
        assert parse_os_version("14.5.1\n") == (14, 5)
        assert parse_os_version("14") == (14, 0)
        assert parse_os_version("fourteen") is None


class TestHardwareGate:
    def test_supported_no_prompt(self, host, ctx, make_console):
        console = make_console()
        outcome = hardware_acceleration_gate(host, ctx, console)
        assert outcome.ok
        assert outcome.value.version == "14.5"
        assert console.questions == []
        assert "Detected macOS version: 14.5" in console.text

    def test_old_version_declined(self, host, ctx, make_console):
        host.set_output("sw_vers -productVersion", "12.1")
        console = make_console(confirms=[False])
        outcome = hardware_acceleration_gate(host, ctx, console)
        assert outcome.fatal
        assert console.questions == ["Continue anyway?"]

    def test_old_version_accepted(self, host, ctx, make_console):
        host.set_output("sw_vers -productVersion", "12.1")
        outcome = hardware_acceleration_gate(host, ctx, make_console(confirms=[True]))
        assert outcome.ok
        assert outcome.value.version == "12.1"

    def test_unknown_version_prompts(self, ctx, make_console):
        console = make_console(confirms=[False])
        outcome = hardware_acceleration_gate(MockInterrogator(), ctx, console)
        assert outcome.fatal
        assert "unknown" in console.text


# ── Homebrew ─────────────────────────────────────────────────────────


class TestHomebrew:
    def test_detect_on_path(self, ctx):
        mock = MockInterrogator(commands={"brew": None})
        assert detect_package_manager(mock, ctx, ProvisionConfig())

    def test_detect_at_known_prefix(self, ctx):
        mock = MockInterrogator(paths={"/usr/local/bin/brew": None})
        assert detect_package_manager(mock, ctx, ProvisionConfig())

    def test_not_installed(self, ctx):
        assert not detect_package_manager(MockInterrogator(), ctx, ProvisionConfig())

    def test_load_shellenv(self, host, ctx):
        loaded = load_shellenv(host, ctx, ProvisionConfig())
        assert loaded.search_path[:2] == ["/opt/homebrew/bin", "/opt/homebrew/sbin"]
        assert loaded.search_path[2:] == ctx.search_path

    def test_load_shellenv_without_brew(self, ctx):
        assert load_shellenv(MockInterrogator(), ctx, ProvisionConfig()) == ctx

    def test_persist_shellenv_once(self, tmp_path):
        assert persist_shellenv(str(tmp_path), "/opt/homebrew")
        assert not persist_shellenv(str(tmp_path), "/opt/homebrew")
        lines = (tmp_path / ".zprofile").read_text().splitlines()
        assert lines.count('eval "$(/opt/homebrew/bin/brew shellenv)"') == 1

    def test_persist_shellenv_appends(self, tmp_path):
        (tmp_path / ".zprofile").write_text("export EDITOR=vim")
        persist_shellenv(str(tmp_path), "/opt/homebrew")
        assert (tmp_path / ".zprofile").read_text().splitlines() == [
            "export EDITOR=vim",
            'eval "$(/opt/homebrew/bin/brew shellenv)"',
        ]

    def test_install_package_manager(self, ctx, tmp_path, make_console):
        mock = MockInterrogator()
        mock.on_install("Homebrew/install", lambda m: m.add_path("/opt/homebrew/bin/brew"))
        outcome = install_package_manager(mock, ctx, ProvisionConfig(), make_console())
        assert outcome.ok
        assert outcome.value.search_path[0] == "/opt/homebrew/bin"
        assert mock.install_log[0][:2] == ["/bin/bash", "-c"]
        assert "brew shellenv" in (tmp_path / ".zprofile").read_text()

    def test_install_package_manager_failure(self, ctx, make_console):
        mock = MockInterrogator()
        mock.set_failure("Homebrew/install")
        outcome = install_package_manager(mock, ctx, ProvisionConfig(), make_console())
        assert outcome.fatal
        assert outcome.reason == "Homebrew installation failed"
