"""
Tests for the funcvm command line (funcvm/cli.py).
"""

import io
from unittest.mock import MagicMock, patch

import pytest

from funcvm.activation import VERSION_ENV_VAR
from funcvm.cli import (
    Context,
    DoctorCommand,
    HelpCommand,
    InstallCommand,
    ListCommand,
    RemoveCommand,
    UsageError,
    UseCommand,
    Options,
    build_context,
    main,
    parse_command,
)
from funcvm.config import Config
from funcvm.errors import HttpStatusError, UnsupportedPlatformError
from funcvm.feed import FeedResolver
from funcvm.installer import InstallCoordinator
from funcvm.store import VersionStore


class Harness:
    """Context wired to canned feed documents and an in-memory archive."""

    def __init__(self, tmp_path, platform, feed, archive, env=None):
        self.config = Config(home_dir=str(tmp_path / "home"))
        self.project = tmp_path / "project"
        self.project.mkdir()
        self.store = VersionStore(self.config.download_dir)
        self.documents = {self.config.feed_url: feed}
        self.fetch_calls = []
        self.download = MagicMock(side_effect=lambda url, **kwargs: io.BytesIO(archive))
        self.lines = []
        self.env = dict(env or {})
        self.context = Context(
            config=self.config,
            platform=platform,
            store=self.store,
            env=self.env,
            working_dir=self.project,
            resolver=FeedResolver(self.config, platform, fetch_json=self.fetch),
            installer=InstallCoordinator(self.store, platform, download=self.download),
            out=self.lines.append,
        )

    def fetch(self, url, timeout=None, headers=None):
        self.fetch_calls.append(url)
        if url not in self.documents:
            raise HttpStatusError(f"Failed to fetch {url}: HTTP 404", status=404)
        return self.documents[url]

    def run(self, *argv):
        return main(list(argv), env=self.env, working_dir=self.project, context=self.context)

    def install(self, version):
        path = self.store.install_dir(version)
        path.mkdir(parents=True)
        (path / "func").write_text("#!/bin/sh\n")
        return path


@pytest.fixture
def harness(tmp_path, linux, feed_document, archive_bytes):
    return Harness(tmp_path, linux, feed_document, archive_bytes)


class TestParseCommand:
    """Tests for argv parsing into command variants."""

    def test_no_args(self):
        assert parse_command([])[0] == HelpCommand()

    def test_unknown_command(self):
        assert parse_command(["frobnicate", "4"])[0] == HelpCommand()

    def test_use(self):
        assert parse_command(["use", "4"])[0] == UseCommand("4", local=False)

    def test_use_local(self):
        assert parse_command(["use", "4.0.3928", "--local"])[0] == UseCommand("4.0.3928", local=True)

    def test_install(self):
        assert parse_command(["install", "4"])[0] == InstallCommand("4")

    def test_list(self):
        assert parse_command(["list"])[0] == ListCommand(remote=False)
        assert parse_command(["list", "--remote"])[0] == ListCommand(remote=True)

    def test_remove(self):
        assert parse_command(["remove", "3.0.3904"])[0] == RemoveCommand("3.0.3904")

    def test_doctor(self):
        assert parse_command(["doctor"])[0] == DoctorCommand()

    def test_global_options(self):
        command, options = parse_command(["--config", "custom.yml", "-v", "list"])
        assert command == ListCommand()
        assert options.config_path == "custom.yml"
        assert options.verbose is True

    def test_missing_version(self):
        with pytest.raises(UsageError):
            parse_command(["use"])

    def test_unknown_flag(self):
        with pytest.raises(UsageError):
            parse_command(["install", "4", "--force"])


class TestHelp:
    """Tests for the help form."""

    def test_no_args_prints_usage(self, capsys):
        assert main([], env={}) == 0
        assert "Usage: funcvm" in capsys.readouterr().out

    def test_usage_error_exit_code(self):
        assert main(["remove"], env={}) == 1


class TestUse:
    """Tests for funcvm use."""

    def test_use_alias_installs_and_pins_globally(self, harness):
        assert harness.run("use", "4") == 0

        assert harness.store.read_global_pin() == "4.0.3928"
        assert harness.store.read_local_pin(harness.project) is None
        assert harness.store.is_installed("4.0.3928")
        harness.download.assert_called_once()
        assert harness.lines == ["Using 4.0.3928"]

    def test_use_local_writes_local_pin_only(self, harness):
        assert harness.run("use", "3", "--local") == 0

        assert harness.store.read_local_pin(harness.project) == "3.0.3904"
        assert harness.store.read_global_pin() is None
        assert harness.lines == ["Using 3.0.3904 (local)"]

    def test_use_local_overwrites_existing_local_pin(self, harness):
        harness.store.write_local_pin(harness.project, "3.0.3904")
        assert harness.run("use", "4", "--local") == 0
        assert harness.store.read_local_pin(harness.project) == "4.0.3928"

    def test_bare_use_refuses_when_local_pin_exists(self, harness):
        harness.store.write_local_pin(harness.project, "3.0.3904")
        harness.store.write_global_pin("3.0.3904")

        assert harness.run("use", "4") == 1

        assert harness.store.read_global_pin() == "3.0.3904"
        assert harness.store.read_local_pin(harness.project) == "3.0.3904"
        assert harness.fetch_calls == []
        harness.download.assert_not_called()

    def test_use_installed_version_skips_network(self, harness):
        harness.install("4.0.3928")
        assert harness.run("use", "4.0.3928") == 0
        assert harness.fetch_calls == []
        harness.download.assert_not_called()
        assert harness.store.read_global_pin() == "4.0.3928"

    def test_use_unknown_version(self, harness):
        assert harness.run("use", "9.9.9") == 1
        assert harness.store.read_global_pin() is None

    def test_use_download_failure_keeps_previous_pin(self, harness):
        from funcvm.errors import DownloadError

        harness.store.write_global_pin("3.0.3904")
        harness.download.side_effect = DownloadError("Failed to download: connection reset")

        assert harness.run("use", "4") == 1
        assert harness.store.read_global_pin() == "3.0.3904"
        assert not harness.store.is_installed("4.0.3928")


class TestInstall:
    """Tests for funcvm install."""

    def test_install_does_not_pin(self, harness):
        assert harness.run("install", "4") == 0
        assert harness.store.is_installed("4.0.3928")
        assert harness.store.read_global_pin() is None
        assert harness.lines[0].startswith("Installed 4.0.3928 at ")

    def test_install_is_idempotent(self, harness):
        path = harness.install("4.0.3928")
        before = sorted(p.name for p in path.iterdir())

        assert harness.run("install", "4.0.3928") == 0

        assert harness.fetch_calls == []
        harness.download.assert_not_called()
        assert sorted(p.name for p in path.iterdir()) == before
        assert "already installed" in harness.lines[0]

    def test_install_via_github_fallback(self, harness):
        url = (
            "https://github.com/Azure/azure-functions-core-tools/releases/download/"
            "4.0.3000/Azure.Functions.Cli.linux-x64.4.0.3000.zip"
        )
        harness.documents[f"{harness.config.releases_api_url}/tags/4.0.3000"] = {
            "assets": [{"name": "Azure.Functions.Cli.linux-x64.4.0.3000.zip", "browser_download_url": url}],
        }

        assert harness.run("install", "4.0.3000") == 0
        assert harness.download.call_args.args[0] == url
        assert harness.store.is_installed("4.0.3000")

    def test_install_missing_asset(self, harness):
        harness.documents[f"{harness.config.releases_api_url}/tags/4.0.3000"] = {"assets": []}
        assert harness.run("install", "4.0.3000") == 1
        assert not harness.store.is_installed("4.0.3000")


class TestList:
    """Tests for funcvm list."""

    def test_empty(self, harness):
        assert harness.run("list") == 0
        assert harness.lines == []

    def test_sorted_with_sources(self, harness):
        for version in ("4.0.3928", "10.0.1", "3.0.3904"):
            harness.install(version)
        harness.store.write_global_pin("4.0.3928")
        harness.store.write_local_pin(harness.project, "3.0.3904")

        assert harness.run("list") == 0
        assert harness.lines == [
            "3.0.3904 (local)",
            "4.0.3928 (global)",
            "10.0.1",
        ]

    def test_env_annotation(self, harness):
        harness.install("4.0.3928")
        harness.store.write_global_pin("4.0.3928")
        harness.env[VERSION_ENV_VAR] = "4.0.3928"

        assert harness.run("list") == 0
        assert harness.lines == ["4.0.3928 (env, global)"]

    def test_remote_tags(self, harness):
        harness.install("4.0.3928")
        harness.env[VERSION_ENV_VAR] = "3.0.3904"

        assert harness.run("list", "--remote") == 0
        assert harness.lines == [
            "v4 4.0.3928 (installed)",
            "v3 3.0.3904 (env, not installed)",
        ]

    def test_remote_without_any_state(self, harness):
        assert harness.run("list", "--remote") == 0
        assert harness.lines == ["v4 4.0.3928", "v3 3.0.3904"]

    def test_remote_pinned_and_installed(self, harness):
        harness.install("3.0.3904")
        harness.store.write_global_pin("3.0.3904")
        harness.store.write_local_pin(harness.project, "3.0.3904")

        assert harness.run("list", "--remote") == 0
        assert harness.lines[1] == "v3 3.0.3904 (local, global, installed)"


class TestRemove:
    """Tests for funcvm remove."""

    def test_remove(self, harness):
        harness.install("3.0.3904")
        assert harness.run("remove", "3.0.3904") == 0
        assert not harness.store.is_installed("3.0.3904")
        assert harness.lines == ["Removed 3.0.3904"]

    def test_remove_pinned_keeps_pin(self, harness):
        harness.install("4.0.3928")
        harness.store.write_global_pin("4.0.3928")

        assert harness.run("remove", "4.0.3928") == 0
        assert harness.store.read_global_pin() == "4.0.3928"

    def test_remove_not_installed(self, harness):
        assert harness.run("remove", "1.2.3") == 1

    def test_remove_refuses_path_outside_cache(self, harness, tmp_path):
        victim = tmp_path / "victim"
        victim.mkdir()
        harness.store.write_global_pin("4.0.3928")

        assert harness.run("remove", str(victim)) == 1
        assert harness.run("remove", ".") == 1
        assert victim.is_dir()
        assert harness.store.read_global_pin() == "4.0.3928"
        assert harness.lines == []


class TestDoctor:
    """Tests for funcvm doctor."""

    @patch("funcvm.cli.validate_environment", return_value=False)
    def test_doctor_never_fails(self, mock_validate, harness):
        assert harness.run("doctor") == 0
        mock_validate.assert_called_once()


class TestContextErrors:
    """Tests for failures while wiring the context."""

    @patch("funcvm.config.CONFIG_LOCATIONS", [])
    @patch("funcvm.cli.detect_platform")
    def test_unsupported_platform(self, mock_platform, tmp_path):
        mock_platform.side_effect = UnsupportedPlatformError("Unsupported platform: sunos5")
        code = main(["list"], env={"FUNCVM_HOME": str(tmp_path)}, working_dir=tmp_path)
        assert code == 1

    def test_missing_config_file(self, tmp_path):
        code = main(
            ["--config", str(tmp_path / "missing.yml"), "list"],
            env={"FUNCVM_HOME": str(tmp_path)},
            working_dir=tmp_path,
        )
        assert code == 1

    def test_project_config_read_from_working_dir(self, tmp_path, linux, monkeypatch):
        project = tmp_path / "project"
        project.mkdir()
        (project / ".funcvm.yml").write_text(f"home_dir: {tmp_path / 'from-project'}\n")
        (tmp_path / ".funcvm.yml").write_text(f"home_dir: {tmp_path / 'from-cwd'}\n")
        monkeypatch.chdir(tmp_path)

        with patch("funcvm.config.CONFIG_LOCATIONS", [".funcvm.yml"]):
            context = build_context(Options(), {}, project, platform=linux)
        assert context.config.funcvm_dir == tmp_path / "from-project"
