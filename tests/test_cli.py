"""Tests for the gitfusion CLI commands."""

from typing import Any
from unittest.mock import patch

import pytest

from gitfusion import exit_codes
from gitfusion.cli import app


def short_config() -> dict[str, Any]:
    """A small configuration whose values fit in an 80 column table."""
    return {
        "enabled": True,
        "global": {"password": "gsecret", "perforce": {"user": "p4"}},
        "gf": {"url": "https://gf", "perforce": {"password": "p4secret"}},
        "scp": {"url": "git@h:r", "user": "bob"},
        "broken": {"label": "no url"},
    }


@pytest.fixture
def static_info():
    """Answer info lookups from canned text instead of running git."""

    def factory(config):
        return lambda entry_id: "Server address: 1666\n"

    with patch("gitfusion.cli.info_hook_for", side_effect=factory):
        yield


class TestParse:
    """Tests for the parse command."""

    def test_prints_parts_and_canonical_url(self, cli_runner) -> None:
        """Verify a URL is broken into its parts and printed without its password."""
        # When
        result = cli_runner.invoke(app, ["parse", "https://alice:secret@gf/@status@repo@12"])

        # Then
        assert result.exit_code == exit_codes.SUCCESS
        assert "https://alice@gf/@status@repo@12" in result.output
        assert "status" in result.output
        assert "****" in result.output
        assert "secret" not in result.output

    def test_show_password(self, cli_runner) -> None:
        """Verify --show-password keeps the password in the canonical URL."""
        # When
        result = cli_runner.invoke(app, ["parse", "https://alice:secret@gf/repo", "--show-password"])

        # Then
        assert result.exit_code == exit_codes.SUCCESS
        assert "https://alice:secret@gf/repo" in result.output

    def test_scp_url_keeps_colon_delimiter(self, cli_runner) -> None:
        """Verify scp-style URLs round-trip with their delimiter."""
        # When
        result = cli_runner.invoke(app, ["parse", "git@gf:@info"])

        # Then
        assert result.exit_code == exit_codes.SUCCESS
        assert "git@gf:@info" in result.output
        assert "scp" in result.output

    def test_invalid_scheme(self, cli_runner) -> None:
        """Verify an unsupported scheme exits with INVALID_URL."""
        # When
        result = cli_runner.invoke(app, ["parse", "ftp://gf/repo"])

        # Then
        assert result.exit_code == exit_codes.INVALID_URL
        assert "Invalid URL scheme specified: ftp." in result.output

    def test_unknown_command(self, cli_runner) -> None:
        """Verify an unknown embedded command exits with INVALID_URL."""
        # When
        result = cli_runner.invoke(app, ["parse", "https://gf/@bogus"])

        # Then
        assert result.exit_code == exit_codes.INVALID_URL
        assert "Unknown command: bogus" in result.output

    def test_error_text_is_not_markup(self, cli_runner) -> None:
        """Verify user text in error messages is printed literally."""
        # When
        result = cli_runner.invoke(app, ["parse", "https://gf/@[bold]x"])

        # Then
        assert result.exit_code == exit_codes.INVALID_URL
        assert "https://gf/@[bold]x" in result.output


class TestEntries:
    """Tests for the entries command."""

    def test_lists_usable_entries(self, cli_runner, write_config) -> None:
        """Verify usable entries are listed with their resolved users."""
        # Given
        write_config(short_config())

        # When
        result = cli_runner.invoke(app, ["entries"])

        # Then
        assert result.exit_code == exit_codes.SUCCESS
        assert "https://gitswarm@gf" in result.output
        assert "bob@h:r" in result.output
        assert "broken" not in result.output

    def test_warns_when_disabled(self, cli_runner, write_config) -> None:
        """Verify a disabled configuration is listed with a warning."""
        # Given
        config = short_config()
        config["enabled"] = False
        write_config(config)

        # When
        result = cli_runner.invoke(app, ["entries"])

        # Then
        assert result.exit_code == exit_codes.SUCCESS
        assert "not enabled" in result.output

    def test_no_usable_entries(self, cli_runner, write_config) -> None:
        """Verify a configuration without usable entries exits with CONFIG_INVALID."""
        # Given
        write_config({"enabled": True, "broken": {"label": "no url"}})

        # When
        result = cli_runner.invoke(app, ["entries"])

        # Then
        assert result.exit_code == exit_codes.CONFIG_INVALID
        assert "No Git Fusion configuration found." in result.output

    def test_missing_config_file(self, cli_runner, tmp_path, monkeypatch) -> None:
        """Verify a missing configuration file exits with CONFIG_NOT_FOUND."""
        # Given
        monkeypatch.setenv("GITFUSION_CONFIG", str(tmp_path / "missing.yaml"))

        # When
        result = cli_runner.invoke(app, ["entries"])

        # Then
        assert result.exit_code == exit_codes.CONFIG_NOT_FOUND
        assert "Configuration file not found" in result.output

    def test_invalid_config_file(self, cli_runner, write_config) -> None:
        """Verify an invalid configuration file exits with CONFIG_INVALID."""
        # Given
        write_config({"enabled": "sometimes"})

        # When
        result = cli_runner.invoke(app, ["entries"])

        # Then
        assert result.exit_code == exit_codes.CONFIG_INVALID
        assert "Invalid configuration" in result.output

    def test_config_option(self, cli_runner, tmp_path) -> None:
        """Verify --config points at a specific file."""
        # Given
        path = tmp_path / "other.yaml"
        path.write_text("git_fusion:\n  enabled: true\n  other:\n    url: https://other\n")

        # When
        result = cli_runner.invoke(app, ["entries", "--config", str(path)])

        # Then
        assert result.exit_code == exit_codes.SUCCESS
        assert "other" in result.output

    def test_configured_users_are_not_markup(self, cli_runner, write_config) -> None:
        """Verify users from the config are printed literally."""
        # Given
        config = short_config()
        config["global"] = {"perforce": {"user": "[bold]p4[/bold]"}}
        write_config(config)

        # When
        result = cli_runner.invoke(app, ["entries"])

        # Then
        assert result.exit_code == exit_codes.SUCCESS
        assert "[bold]p4[/bold]" in result.output


class TestShow:
    """Tests for the show command."""

    def test_shows_resolved_settings(self, cli_runner, write_config, static_info) -> None:
        """Verify the first entry is resolved, with the port scraped from info."""
        # Given
        write_config(short_config())

        # When
        result = cli_runner.invoke(app, ["show"])

        # Then
        assert result.exit_code == exit_codes.SUCCESS
        assert "https://gitswarm@gf" in result.output
        assert "gf:1666" in result.output
        assert "p4secret" not in result.output
        assert "****" in result.output

    def test_show_password(self, cli_runner, write_config, static_info) -> None:
        """Verify --show-password prints the resolved passwords."""
        # Given
        write_config(short_config())

        # When
        result = cli_runner.invoke(app, ["show", "gf", "--show-password"])

        # Then
        assert result.exit_code == exit_codes.SUCCESS
        assert "gsecret" in result.output
        assert "p4secret" in result.output

    def test_named_entry(self, cli_runner, write_config, static_info) -> None:
        """Verify a named entry uses its own user."""
        # Given
        write_config(short_config())

        # When
        result = cli_runner.invoke(app, ["show", "scp"])

        # Then
        assert result.exit_code == exit_codes.SUCCESS
        assert "bob@h:r" in result.output
        assert "h:1666" in result.output

    @pytest.mark.parametrize("entry_id", ["nope", "broken"])
    def test_unusable_entry(self, cli_runner, write_config, entry_id: str) -> None:
        """Verify unknown and malformed entries exit with ENTRY_NOT_FOUND."""
        # Given
        write_config(short_config())

        # When
        result = cli_runner.invoke(app, ["show", entry_id])

        # Then
        assert result.exit_code == exit_codes.ENTRY_NOT_FOUND
        assert f"'{entry_id}'" in result.output

    def test_configured_values_are_not_markup(self, cli_runner, write_config, static_info) -> None:
        """Verify users and passwords from the config are printed literally."""
        # Given
        config = short_config()
        config["global"] = {"password": "[red]pw", "perforce": {"user": "[bold]p4[/bold]"}}
        write_config(config)

        # When
        result = cli_runner.invoke(app, ["show", "gf", "--show-password"])

        # Then
        assert result.exit_code == exit_codes.SUCCESS
        assert "[bold]p4[/bold]" in result.output
        assert "[red]pw" in result.output


class TestCheck:
    """Tests for the check command."""

    def test_valid_configuration(self, cli_runner, write_config) -> None:
        """Verify a clean configuration passes."""
        # Given
        config = short_config()
        del config["broken"]
        write_config(config)

        # When
        result = cli_runner.invoke(app, ["check"])

        # Then
        assert result.exit_code == exit_codes.SUCCESS
        assert "Configuration is valid" in result.output

    def test_reports_problems(self, cli_runner, write_config) -> None:
        """Verify each problem is listed and the command fails."""
        # Given
        write_config(short_config())

        # When
        result = cli_runner.invoke(app, ["check"])

        # Then
        assert result.exit_code == exit_codes.CONFIG_INVALID
        assert "'broken': missing url" in result.output


class TestRun:
    """Tests for the run command."""

    def test_unknown_command(self, cli_runner) -> None:
        """Verify an unknown command is rejected before any config is read."""
        # When
        result = cli_runner.invoke(app, ["run", "bogus"])

        # Then
        assert result.exit_code == exit_codes.INVALID_ARGS
        assert "Unknown command: bogus" in result.output

    def test_extra_requires_repo(self, cli_runner) -> None:
        """Verify --extra without --repo is rejected."""
        # When
        result = cli_runner.invoke(app, ["run", "status", "--extra", "1234"])

        # Then
        assert result.exit_code == exit_codes.INVALID_ARGS
        assert "--extra requires --repo" in result.output

    def test_streams_command_output(self, cli_runner, write_config, fake_git) -> None:
        """Verify the filtered command output is printed."""
        # Given
        write_config(short_config())
        fake_git.set_output("Cloning into 'x'...\nRepo status: ok\n", "fatal: done\n")

        # When
        result = cli_runner.invoke(app, ["run", "status", "gf", "--repo", "my-repo"])

        # Then
        assert result.exit_code == exit_codes.SUCCESS
        assert "Repo status: ok" in result.output
        assert "Cloning into" not in result.output
        assert fake_git.args()[-1] == "https://gitswarm@gf/@status@my-repo"

    def test_quiet(self, cli_runner, write_config, fake_git) -> None:
        """Verify --quiet suppresses the command output."""
        # Given
        write_config(short_config())
        fake_git.set_output("Repo status: ok\n")

        # When
        result = cli_runner.invoke(app, ["run", "info", "--quiet"])

        # Then
        assert result.exit_code == exit_codes.SUCCESS
        assert "Repo status: ok" not in result.output

    def test_unknown_entry(self, cli_runner, write_config, fake_git) -> None:
        """Verify an unknown entry exits with ENTRY_NOT_FOUND."""
        # Given
        write_config(short_config())

        # When
        result = cli_runner.invoke(app, ["run", "info", "nope"])

        # Then
        assert result.exit_code == exit_codes.ENTRY_NOT_FOUND

    def test_git_unavailable(self, cli_runner, write_config) -> None:
        """Verify a missing git exits with GIT_ERROR."""
        # Given
        write_config(short_config())

        # When
        with patch("gitfusion.cli.is_git_available", return_value=False):
            result = cli_runner.invoke(app, ["run", "info"])

        # Then
        assert result.exit_code == exit_codes.GIT_ERROR
        assert "Git is not available" in result.output
