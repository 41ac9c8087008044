"""
Tests for logging setup — level precedence and file output.
"""

import logging

import pytest

from mps_provision.core.observability.logging_config import resolve_level, setup_logging


class TestResolveLevel:
    def test_default(self):
        assert resolve_level() == "WARNING"

    def test_env(self):
        assert resolve_level(environ={"MPSP_LOG_LEVEL": "INFO"}) == "INFO"

    def test_flags_beat_env(self):
        env = {"MPSP_LOG_LEVEL": "ERROR"}
        assert resolve_level(debug=True, environ=env) == "DEBUG"
        assert resolve_level(verbose=True, environ=env) == "INFO"

    def test_debug_beats_quiet(self):
        assert resolve_level(debug=True, quiet=True) == "DEBUG"
        assert resolve_level(quiet=True) == "ERROR"


class TestSetupLogging:
    @pytest.fixture(autouse=True)
    def _restore_root(self):
        root = logging.getLogger()
        handlers, level = list(root.handlers), root.level
        yield
        for handler in root.handlers:
            if handler not in handlers:
                handler.close()
        root.handlers[:] = handlers
        root.setLevel(level)

    def test_console_level(self):
        setup_logging(level="ERROR")
        root = logging.getLogger()
        assert root.level == logging.ERROR
        assert len(root.handlers) == 1

    def test_unknown_level_falls_back(self):
        setup_logging(level="CHATTY")
        assert logging.getLogger().level == logging.WARNING

    def test_file_output(self, tmp_path):
        log_file = tmp_path / "provision.log"
        setup_logging(level="WARNING", log_file=str(log_file), log_file_level="DEBUG")
        root = logging.getLogger()
        assert root.level == logging.DEBUG

        logging.getLogger("mps_provision.test").debug("probe python3.12")
        for handler in root.handlers:
            handler.flush()
        assert "probe python3.12" in log_file.read_text()
