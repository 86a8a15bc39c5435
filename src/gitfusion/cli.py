"""gitfusion CLI entry point."""

import sys
from pathlib import Path
from typing import Annotated, Any

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from gitfusion import __version__, cli_logger, exit_codes
from gitfusion.commands import VALID_COMMANDS, UnknownCommandError, is_valid_command
from gitfusion.config import (
    ConfigEntry,
    ConfigError,
    GitFusionConfig,
    MalformedConfigEntryError,
    NoConfigurationFoundError,
    UnknownConfigEntryError,
)
from gitfusion.errors import handle_cli_error
from gitfusion.git import is_git_available
from gitfusion.loader import get_config_path, load_config
from gitfusion.run import info_hook_for, run_entry_command
from gitfusion.url import GitFusionURL, GitFusionURLError

app = typer.Typer(
    name="gitfusion",
    help="Resolve Git Fusion URLs and configuration, and run Git Fusion commands.",
    no_args_is_help=True,
)

console = Console()

ConfigOption = Annotated[
    Path | None,
    typer.Option(
        "--config",
        "-c",
        help="Configuration file. Defaults to GITFUSION_CONFIG or ~/.gitfusion/config.yaml",
    ),
]

ShowPasswordOption = Annotated[
    bool,
    typer.Option("--show-password", help="Print passwords instead of masking them."),
]

MASK = "****"


def require_config(path: Path | None) -> GitFusionConfig:
    """Load the configuration, wiring the info hook to the real ``info`` command.

    Raises:
        typer.Exit: With CONFIG_NOT_FOUND if the file does not exist.
        typer.Exit: With CONFIG_INVALID if the file cannot be parsed.
    """
    config_path = path or get_config_path()
    try:
        config = load_config(config_path)
    except FileNotFoundError:
        cli_logger.error(f"Configuration file not found at {config_path}")
        cli_logger.info("  Set [bold]GITFUSION_CONFIG[/bold] or pass [bold]--config[/bold].")
        raise typer.Exit(exit_codes.CONFIG_NOT_FOUND) from None
    except ValueError as e:
        cli_logger.error(str(e))
        raise typer.Exit(exit_codes.CONFIG_INVALID) from e

    config.info_hook = info_hook_for(config)
    return config


def require_entry(config: GitFusionConfig, entry_id: str | None) -> ConfigEntry:
    """Select an entry, exiting with a clean message if it cannot be used.

    Raises:
        typer.Exit: With CONFIG_INVALID if there are no usable entries.
        typer.Exit: With ENTRY_NOT_FOUND if the entry is unknown or malformed.
    """
    try:
        return config.entry(entry_id)
    except NoConfigurationFoundError as e:
        cli_logger.error(str(e))
        raise typer.Exit(exit_codes.CONFIG_INVALID) from e
    except (UnknownConfigEntryError, MalformedConfigEntryError) as e:
        cli_logger.error(str(e))
        raise typer.Exit(exit_codes.ENTRY_NOT_FOUND) from e


def require_git() -> None:
    """Verify git is available on the system.

    Raises:
        typer.Exit: With GIT_ERROR if git is not available.
    """
    if not is_git_available():
        cli_logger.error("Git is not available")
        cli_logger.dim("  • Git Fusion commands are run through git clone")
        raise typer.Exit(exit_codes.GIT_ERROR)


def _mask(value: Any, show: bool) -> str:
    if not value:
        return "-"
    return escape(str(value)) if show else MASK


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        cli_logger.info(f"gitfusion v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show gitfusion version and exit.",
    ),
) -> None:
    """Resolve Git Fusion URLs and configuration, and run Git Fusion commands."""


@app.command()
def parse(
    url: Annotated[
        str,
        typer.Argument(help="Git Fusion URL (http, https, ssh or user@host:path)."),
    ],
    show_password: ShowPasswordOption = False,
) -> None:
    """Parse a Git Fusion URL and print its parts.

    The canonical form strips any embedded password unless --show-password is given.
    """
    try:
        parsed = GitFusionURL(url)
    except (GitFusionURLError, UnknownCommandError) as e:
        cli_logger.error(str(e))
        raise typer.Exit(exit_codes.INVALID_URL) from e

    parsed.strip_password = not show_password

    table = Table(show_header=False)
    table.add_column("FIELD", style="cyan")
    table.add_column("VALUE")
    table.add_row("scheme", parsed.scheme)
    table.add_row("host", escape(parsed.host))
    table.add_row("user", escape(parsed.user) if parsed.user else "-")
    table.add_row("password", _mask(parsed.password, show_password))
    table.add_row("delimiter", parsed.delimiter)
    table.add_row("command", parsed.command or "-")
    table.add_row("repo", escape(parsed.repo) if parsed.repo is not None else "-")
    table.add_row("extra", escape(str(parsed.extra)) if parsed.extra is not None else "-")
    console.print(table)

    console.print(str(parsed), markup=False, highlight=False, soft_wrap=True)
    raise typer.Exit(exit_codes.SUCCESS)


@app.command()
def entries(config_path: ConfigOption = None) -> None:
    """List configured Git Fusion entries."""
    config = require_config(config_path)

    if not config.enabled:
        cli_logger.warning("Git Fusion is not enabled (git_fusion.enabled is false)")

    try:
        entry_list = config.entries()
    except NoConfigurationFoundError as e:
        cli_logger.error(str(e))
        raise typer.Exit(exit_codes.CONFIG_INVALID) from e

    table = Table(show_header=True, header_style="bold")
    table.add_column("ID", style="cyan")
    table.add_column("URL")
    table.add_column("USER")
    table.add_column("PERFORCE USER")
    table.add_column("AUTO-CREATE")

    for entry_id, entry in entry_list.items():
        try:
            url = escape(str(entry.url()))
        except (GitFusionURLError, UnknownCommandError) as e:
            table.add_row(escape(str(entry_id)), f"[red]{escape(str(e))}[/red]", "-", "-", "-")
            continue
        auto_create = "[green]✓[/green]" if entry.auto_create_configured() else "-"
        table.add_row(
            escape(str(entry_id)),
            url,
            escape(str(entry.git_fusion_user())),
            escape(str(entry.perforce_user())),
            auto_create,
        )

    console.print(table)
    raise typer.Exit(exit_codes.SUCCESS)


@app.command()
def show(
    entry_id: Annotated[
        str | None,
        typer.Argument(help="Entry id. Defaults to the first entry."),
    ] = None,
    config_path: ConfigOption = None,
    show_password: ShowPasswordOption = False,
) -> None:
    """Show the resolved settings for an entry.

    The Perforce port is read from the config, or scraped from the output of
    the Git Fusion info command when not configured.
    """
    config = require_config(config_path)
    entry = require_entry(config, entry_id)

    try:
        url = str(entry.url())
    except (GitFusionURLError, UnknownCommandError) as e:
        cli_logger.error(f"Entry '{entry.id}' has an invalid URL: {e}")
        raise typer.Exit(exit_codes.INVALID_URL) from e

    table = Table(show_header=False)
    table.add_column("SETTING", style="cyan")
    table.add_column("VALUE")
    table.add_row("id", escape(str(entry.id)) if entry.id else "-")
    table.add_row("url", escape(url))
    table.add_row("user", escape(str(entry.git_fusion_user())))
    table.add_row("password", _mask(entry.git_fusion_password(), show_password))
    table.add_row("perforce user", escape(str(entry.perforce_user())))
    table.add_row("perforce password", _mask(entry.perforce_password(), show_password))
    port = entry.perforce_port()
    table.add_row("perforce port", escape(str(port)) if port else "-")
    table.add_row("auto-create", "configured" if entry.auto_create_configured() else "not configured")
    console.print(table)
    raise typer.Exit(exit_codes.SUCCESS)


@app.command()
def check(config_path: ConfigOption = None) -> None:
    """Validate every entry in the configuration."""
    config = require_config(config_path)
    result = config.validate()

    if result.is_valid:
        cli_logger.success("Configuration is valid")
        raise typer.Exit(exit_codes.SUCCESS)

    cli_logger.error("Configuration has problems:")
    for error in result.errors:
        cli_logger.dim(f"  • {error}")
    raise typer.Exit(exit_codes.CONFIG_INVALID)


@app.command()
def run(
    command: Annotated[
        str,
        typer.Argument(help=f"Git Fusion command: {', '.join(VALID_COMMANDS)}."),
    ],
    entry_id: Annotated[
        str | None,
        typer.Argument(help="Entry id. Defaults to the first entry."),
    ] = None,
    repo: Annotated[
        str | None,
        typer.Option("--repo", "-r", help="Repo to run the command against."),
    ] = None,
    extra: Annotated[
        str | None,
        typer.Option("--extra", help="Extra parameters (requires --repo)."),
    ] = None,
    config_path: ConfigOption = None,
    quiet: Annotated[
        bool,
        typer.Option("--quiet", "-q", help="Do not echo command output."),
    ] = False,
) -> None:
    """Run a Git Fusion command against an entry."""
    if not is_valid_command(command):
        cli_logger.error(f"Unknown command: {command}")
        cli_logger.dim(f"  • Valid commands: {', '.join(VALID_COMMANDS)}")
        raise typer.Exit(exit_codes.INVALID_ARGS)

    if extra is not None and repo is None:
        cli_logger.error("--extra requires --repo")
        raise typer.Exit(exit_codes.INVALID_ARGS)

    config = require_config(config_path)
    entry = require_entry(config, entry_id)
    require_git()

    try:
        run_entry_command(config, entry.id, command, repo, extra, stream_output=not quiet)
    except (GitFusionURLError, UnknownCommandError) as e:
        cli_logger.error(str(e))
        raise typer.Exit(exit_codes.INVALID_URL) from e
    except ConfigError as e:
        cli_logger.error(str(e))
        raise typer.Exit(exit_codes.CONFIG_INVALID) from e

    raise typer.Exit(exit_codes.SUCCESS)


def main_cli() -> None:
    """CLI entry point with top-level exception handling.

    Wraps the Typer app to catch any unhandled exceptions and format them
    as clean error messages instead of raw tracebacks.
    """
    try:
        app()
    except Exception as e:
        sys.exit(handle_cli_error(e))


if __name__ == "__main__":
    main_cli()
