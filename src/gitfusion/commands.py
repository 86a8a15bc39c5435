"""Extended commands understood by Git Fusion.

A Git Fusion URL may embed one of these commands in its path
(e.g. ``https://host/@info``). The set is closed.
"""

from typing import Any, Literal, get_args

Command = Literal["help", "info", "list", "status", "wait"]

VALID_COMMANDS: tuple[str, ...] = get_args(Command)


class UnknownCommandError(ValueError):
    """Raised when a command is not part of the Git Fusion vocabulary."""

    def __init__(self, command: Any) -> None:
        """Initialize with the rejected command."""
        self.command = command
        super().__init__(f"Unknown command: {command}")


def is_valid_command(command: Any) -> bool:
    """Check whether the given value is a known Git Fusion command."""
    return command in VALID_COMMANDS


def validate_command(command: Any) -> str:
    """Return the command unchanged if it is known.

    Raises:
        UnknownCommandError: If the command is not in VALID_COMMANDS.
    """
    if not is_valid_command(command):
        raise UnknownCommandError(command)
    return command
