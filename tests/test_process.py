"""Tests for subprocess helpers."""

import subprocess
import sys
from unittest.mock import patch

import pytest

from nodeinit.utils.process import CommandError, CommandResult, run, run_sudo


class TestRun:
    """Tests for run."""

    def test_success(self):
        result = run([sys.executable, "-c", "print('hi')"])
        assert result.success
        assert result.stdout.strip() == "hi"

    def test_missing_command(self):
        result = run(["definitely-not-a-real-tool-xyz"])
        assert result.returncode == -1
        assert "Command not found" in result.stderr

    def test_check_raises(self):
        with pytest.raises(CommandError) as exc_info:
            run([sys.executable, "-c", "import sys; sys.stderr.write('boom'); sys.exit(3)"], check=True)
        assert exc_info.value.result.returncode == 3
        assert "boom" in str(exc_info.value)

    @patch("subprocess.run", side_effect=subprocess.TimeoutExpired(cmd="x", timeout=1))
    def test_timeout(self, mock_run):
        result = run(["sleep", "10"], timeout=1)
        assert result.returncode == -1
        assert result.stderr == "Command timed out"

    def test_env_is_merged(self, monkeypatch):
        monkeypatch.setenv("OUTER", "1")
        result = run(
            [sys.executable, "-c", "import os; print(os.environ['OUTER'], os.environ['INNER'])"],
            env={"INNER": "2"},
        )
        assert result.stdout.split() == ["1", "2"]

    def test_output_combines_streams(self):
        assert CommandResult(0, "a", "b").output == "ab"


class TestRunSudo:
    """Tests for run_sudo."""

    @patch("nodeinit.utils.process.run")
    @patch("nodeinit.utils.process.is_root", return_value=False)
    def test_prefixes_sudo(self, mock_root, mock_run):
        run_sudo(["apt-get", "update"])
        mock_run.assert_called_once_with(["sudo", "apt-get", "update"])

    @patch("nodeinit.utils.process.run")
    @patch("nodeinit.utils.process.is_root", return_value=True)
    def test_root_runs_directly(self, mock_root, mock_run):
        run_sudo(["apt-get", "update"], check=True)
        mock_run.assert_called_once_with(["apt-get", "update"], check=True)
