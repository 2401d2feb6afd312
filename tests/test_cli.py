"""CLI argument parsing and exit status tests."""

from unittest.mock import patch

import pytest

from nixdeck.cli import NixDeckCLI
from nixdeck.daemon import main, parse_args
from nixdeck.errors import StartupError


@pytest.fixture
def cli(tmp_path):
    return NixDeckCLI(socket_path=tmp_path / "nixdeck.sock")


class TestParser:

    def test_snapshot_restore(self, cli):
        args = cli.build_parser().parse_args(["snapshot", "restore", "s1"])

        assert (args.command, args.action, args.name) == ("snapshot", "restore", "s1")

    def test_container_export(self, cli):
        args = cli.build_parser().parse_args(["container", "export", "work", "/tmp/work.tar.gz"])

        assert args.path == "/tmp/work.tar.gz"

    def test_rice_apply_reads_from_file_argument(self, cli):
        args = cli.build_parser().parse_args(["rice", "apply", "kitty", "-"])

        assert (args.component, args.file) == ("kitty", "-")

    def test_show_metadata(self, cli):
        args = cli.build_parser().parse_args(["container", "show", "work"])

        assert (args.action, args.name) == ("show", "work")

    def test_action_is_required(self, cli):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args(["snapshot"])


class TestExitStatus:

    def test_no_command_prints_help(self, cli):
        assert cli.run([]) == 1

    def test_daemon_not_running(self, cli):
        assert cli.run(["ping"]) == 1

    def test_unresolvable_settings(self):
        with patch("nixdeck.cli.Settings.from_environment", side_effect=StartupError("no home")):
            assert NixDeckCLI().run(["snapshot", "list"]) == 2


class TestDaemonArguments:

    def test_defaults(self):
        args = parse_args([])

        assert args.root is None
        assert args.config_home is None

    def test_explicit_paths(self, tmp_path):
        args = parse_args(["--root", str(tmp_path), "--config-home", str(tmp_path / "cfg"), "--log-level", "DEBUG"])

        assert args.root == tmp_path
        assert args.log_level == "DEBUG"

    @pytest.mark.asyncio
    async def test_daemon_exits_with_status_2_on_startup_failure(self):
        with patch("nixdeck.daemon.Settings.from_environment", side_effect=StartupError("no home")):
            assert await main([]) == 2
