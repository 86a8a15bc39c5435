"""Git process helpers.

Git Fusion commands are executed by cloning a URL that carries the
command (e.g. ``git clone -- https://host/@info``); Git Fusion answers
with the command output and then aborts the clone.
"""

import subprocess
from collections.abc import Iterator
from pathlib import Path

from gitfusion.url import GitFusionURL


def is_git_available() -> bool:
    """Check if git command is available on the system.

    Returns:
        True if git is available, False otherwise.
    """
    try:
        subprocess.run(
            ["git", "--version"],
            capture_output=True,
            check=True,
        )
        return True
    except (FileNotFoundError, subprocess.CalledProcessError):
        return False


def build_clone_command(url: GitFusionURL) -> list[str]:
    """Build the ``git clone`` argv for a Git Fusion URL.

    Each git config param becomes a ``-c key=value`` option. The URL is
    placed after ``--`` so it is never read as an option.

    Raises:
        ExtraWithoutCommandAndRepoError: If the URL cannot be serialized.
    """
    command = ["git"]
    for param in url.git_config_params:
        command += ["-c", param]
    command += ["clone", "--", url.to_string()]
    return command


def stream_clone(command: list[str], cwd: Path) -> Iterator[str]:
    """Run a clone command and yield its combined stdout/stderr line by line.

    Lines keep their trailing newline; bytes that are not UTF-8 are replaced
    with U+FFFD. The exit status is not checked:
    Git Fusion commands always end with a failed clone.
    """
    with subprocess.Popen(
        command,
        cwd=cwd,
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        text=True,
        encoding="utf-8",
        errors="replace",
    ) as process:
        assert process.stdout is not None
        yield from process.stdout
