"""Running Git Fusion commands.

Clones a command URL inside a throwaway directory and collects the
command output that Git Fusion sends back, dropping git's own noise.
"""

import tempfile
from collections.abc import Callable
from pathlib import Path
from typing import Any

from gitfusion import cli_logger
from gitfusion.config import GitFusionConfig
from gitfusion.git import build_clone_command, stream_clone
from gitfusion.url import GitFusionURL

CLONE_BANNER = "Cloning into"
FATAL_PREFIX = "fatal: "

LineCallback = Callable[[str], None]


class CommandRequiredError(Exception):
    """Raised when running a URL that carries no command."""

    def __init__(self) -> None:
        """Initialize with the fixed message."""
        super().__init__("run requires a command")


def run_command(
    url: GitFusionURL,
    *,
    stream_output: bool = False,
    on_line: LineCallback | None = None,
) -> str:
    """Run the command embedded in a Git Fusion URL.

    Output is filtered: the ``Cloning into`` banner is dropped, and so is
    everything from the first ``fatal: `` line onwards.

    Args:
        url: URL with a command set.
        stream_output: Echo each kept line to the console as it arrives.
        on_line: Called with each kept line as it arrives.

    Returns:
        The kept output with trailing whitespace removed.

    Raises:
        CommandRequiredError: If the URL has no command.
    """
    if url.command is None:
        raise CommandRequiredError()

    command = build_clone_command(url)
    lines: list[str] = []

    with tempfile.TemporaryDirectory() as temp:
        silenced = False
        for line in stream_clone(command, Path(temp)):
            silenced = silenced or line.startswith(FATAL_PREFIX)
            if silenced or line.startswith(CLONE_BANNER):
                continue
            lines.append(line)
            if stream_output:
                cli_logger.stream(line)
            if on_line is not None:
                on_line(line)

    return "".join(lines).rstrip()


def run_entry_command(
    config: GitFusionConfig,
    entry_id: str | None,
    command: str,
    repo: str | None = None,
    extra: Any = None,
    *,
    stream_output: bool = False,
    on_line: LineCallback | None = None,
) -> str:
    """Run a Git Fusion command against a configured entry.

    Args:
        config: The Git Fusion configuration.
        entry_id: Entry to use, or None for the first entry.
        command: Git Fusion command (e.g. "info").
        repo: Repo to address; any repo in the configured URL is dropped otherwise.
        extra: Extra parameters; requires a repo.

    Returns:
        The filtered command output.
    """
    url = config.entry(entry_id).url()
    url.command = command
    url.repo = repo if repo is not None else False
    url.extra = extra
    return run_command(url, stream_output=stream_output, on_line=on_line)


def info_hook_for(config: GitFusionConfig) -> Callable[[str], str]:
    """Build an info hook that runs the ``info`` command for an entry id."""

    def hook(entry_id: str) -> str:
        return run_entry_command(config, entry_id, "info")

    return hook
