"""Tests for the connectivity probe and SSH helpers."""

from pathlib import Path
from unittest.mock import patch

from nodeinit.core.probe import greeting_indicates_success, probe
from nodeinit.utils.process import CommandResult
from nodeinit.utils.ssh import add_known_host, git_ssh_command, is_known_host, ssh_greeting

GITHUB_GREETING = (
    "Hi octo! You've successfully authenticated, but GitHub does not provide shell access.\n"
)
KEYSCAN_OUTPUT = (
    "# github.com:22 SSH-2.0-babeld\n"
    "github.com ssh-ed25519 AAAAC3NzaC1lZDI1NTE5AAAAIOMqqnkVzrm0SdG6UOoqKLsabgH5C9okWi0dh2l9GKJl\n"
)


class TestGreeting:
    """Tests for greeting inspection."""

    def test_success_marker(self):
        assert greeting_indicates_success(GITHUB_GREETING) is True

    def test_denied(self):
        assert greeting_indicates_success("git@github.com: Permission denied (publickey).") is False


class TestProbe:
    """The probe reports but never raises."""

    @patch("nodeinit.core.probe.add_known_host", return_value=True)
    @patch("nodeinit.core.probe.ssh_greeting")
    def test_success(self, mock_greeting, mock_known):
        # GitHub exits 1 even when authentication works
        mock_greeting.return_value = CommandResult(1, "", GITHUB_GREETING)
        assert probe("github.com", key_path=Path("/k")) is True
        mock_greeting.assert_called_once_with("github.com", key_path=Path("/k"), timeout=10, env=None)

    @patch("nodeinit.core.probe.add_known_host", return_value=True)
    @patch("nodeinit.core.probe.ssh_greeting")
    def test_failure(self, mock_greeting, mock_known):
        mock_greeting.return_value = CommandResult(255, "", "Permission denied (publickey).")
        assert probe("github.com") is False

    @patch("nodeinit.core.probe.add_known_host", return_value=False)
    @patch("nodeinit.core.probe.ssh_greeting")
    def test_keyscan_failure_still_checks_login(self, mock_greeting, mock_known):
        mock_greeting.return_value = CommandResult(-1, "", "Command timed out")
        assert probe("github.com") is False
        mock_greeting.assert_called_once()

    @patch("nodeinit.utils.ssh.run")
    @patch("nodeinit.core.probe.ssh_greeting")
    def test_undecodable_known_hosts(self, mock_greeting, mock_run, tmp_path: Path):
        mock_greeting.return_value = CommandResult(255, "", "Host key verification failed.")
        known = tmp_path / "known_hosts"
        known.write_bytes(b"\xff\xfe garbage\n")

        assert probe("github.com", known_hosts=known) is False
        mock_run.assert_not_called()
        mock_greeting.assert_called_once()

    @patch("nodeinit.utils.ssh.run")
    @patch("nodeinit.core.probe.ssh_greeting")
    def test_known_hosts_is_a_directory(self, mock_greeting, mock_run, tmp_path: Path):
        mock_greeting.return_value = CommandResult(1, "", GITHUB_GREETING)
        known = tmp_path / "known_hosts"
        known.mkdir()

        assert probe("github.com", known_hosts=known) is True
        mock_run.assert_not_called()

    @patch("nodeinit.utils.ssh.run")
    @patch("nodeinit.core.probe.ssh_greeting")
    def test_unwritable_known_hosts(self, mock_greeting, mock_run, tmp_path: Path):
        mock_run.return_value = CommandResult(0, KEYSCAN_OUTPUT, "")
        mock_greeting.return_value = CommandResult(255, "", "Permission denied (publickey).")
        blocker = tmp_path / "not_a_dir"
        blocker.write_text("")

        assert probe("github.com", known_hosts=blocker / "known_hosts") is False
        mock_greeting.assert_called_once()


class TestKnownHosts:
    """Tests for known_hosts management."""

    def test_is_known_host(self, tmp_path: Path):
        known = tmp_path / "known_hosts"
        known.write_text("# comment\nexample.org,1.2.3.4 ssh-rsa AAAA\n")
        assert is_known_host("example.org", known) is True
        assert is_known_host("1.2.3.4", known) is True
        assert is_known_host("github.com", known) is False

    def test_missing_file(self, tmp_path: Path):
        assert is_known_host("github.com", tmp_path / "none") is False

    def test_marker_lines_do_not_count(self, tmp_path: Path):
        known = tmp_path / "known_hosts"
        known.write_text(
            "@cert-authority github.com ssh-rsa AAAA\n"
            "@revoked github.com ssh-ed25519 BBBB\n"
        )
        assert is_known_host("github.com", known) is False

    def test_bracketed_port_entries(self, tmp_path: Path):
        known = tmp_path / "known_hosts"
        known.write_text("[github.com]:22,[140.82.112.3]:22 ssh-ed25519 AAAA\n")
        assert is_known_host("github.com", known) is True
        assert is_known_host("140.82.112.3", known) is True
        assert is_known_host("gitlab.com", known) is False

    @patch("nodeinit.utils.ssh.run")
    def test_add_known_host_after_marker_line(self, mock_run, tmp_path: Path):
        mock_run.return_value = CommandResult(0, KEYSCAN_OUTPUT, "")
        known = tmp_path / "known_hosts"
        known.write_text("@cert-authority github.com ssh-rsa AAAA\n")

        assert add_known_host("github.com", known) is True
        mock_run.assert_called_once()
        assert known.read_text().splitlines()[1].startswith("github.com ssh-ed25519")

    @patch("nodeinit.utils.ssh.run")
    def test_add_known_host_appends(self, mock_run, tmp_path: Path):
        mock_run.return_value = CommandResult(0, KEYSCAN_OUTPUT, "")
        known = tmp_path / "ssh" / "known_hosts"

        assert add_known_host("github.com", known) is True

        content = known.read_text()
        assert content.startswith("github.com ssh-ed25519")
        assert "#" not in content
        assert oct(known.stat().st_mode & 0o777) == oct(0o600)

    @patch("nodeinit.utils.ssh.run")
    def test_add_known_host_is_idempotent(self, mock_run, tmp_path: Path):
        known = tmp_path / "known_hosts"
        known.write_text("github.com ssh-ed25519 AAAA\n")

        assert add_known_host("github.com", known) is True
        mock_run.assert_not_called()
        assert known.read_text() == "github.com ssh-ed25519 AAAA\n"

    @patch("nodeinit.utils.ssh.run")
    def test_add_known_host_scan_failure(self, mock_run, tmp_path: Path):
        mock_run.return_value = CommandResult(1, "", "getaddrinfo failed")
        known = tmp_path / "known_hosts"
        assert add_known_host("github.com", known) is False
        assert not known.exists()


class TestSSHCommands:
    """Tests for SSH command construction."""

    @patch("nodeinit.utils.ssh.run")
    def test_ssh_greeting_command(self, mock_run):
        mock_run.return_value = CommandResult(1, "", GITHUB_GREETING)

        ssh_greeting("github.com", key_path=Path("/keys/k"), timeout=7)

        cmd = mock_run.call_args[0][0]
        assert cmd[0] == "ssh"
        assert "BatchMode=yes" in cmd
        assert "ConnectTimeout=7" in cmd
        assert cmd[cmd.index("-i") + 1] == "/keys/k"
        assert cmd[-2:] == ["-T", "git@github.com"]
        assert mock_run.call_args.kwargs["timeout"] == 12

    def test_git_ssh_command(self):
        assert git_ssh_command(Path("/keys/k")) == (
            "ssh -o BatchMode=yes -i /keys/k -o IdentitiesOnly=yes"
        )
        assert git_ssh_command(None) == "ssh -o BatchMode=yes"
