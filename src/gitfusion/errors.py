"""Error formatting utilities for the gitfusion CLI.

Turns Pydantic validation errors and other exceptions into clean,
user-friendly messages.
"""

import subprocess

import yaml
from pydantic import ValidationError

from gitfusion import cli_logger, exit_codes
from gitfusion.commands import UnknownCommandError
from gitfusion.config import ConfigError, MalformedConfigEntryError, UnknownConfigEntryError
from gitfusion.url import GitFusionURLError


def format_validation_errors(error: ValidationError) -> str:
    """Format Pydantic ValidationError into clean, user-friendly message.

    Removes Pydantic-specific URLs and technical jargon, producing a message
    suitable for CLI output.

    Args:
        error: The Pydantic ValidationError to format.

    Returns:
        A clean, human-readable error message.
    """
    messages = []

    for err in error.errors():
        # Field path, e.g. "git_fusion.enabled"
        loc = ".".join(str(part) for part in err["loc"])
        error_type = err["type"]

        if error_type == "missing":
            messages.append(f"'{loc}': field is required")
        elif error_type == "bool_type" or error_type == "bool_parsing":
            messages.append(f"'{loc}': expected boolean")
        elif error_type == "dict_type" or error_type == "model_type":
            messages.append(f"'{loc}': expected mapping")
        elif error_type == "string_type":
            messages.append(f"'{loc}': expected string")
        else:
            messages.append(f"'{loc}': {err['msg'].lower()}")

    return "; ".join(messages)


def handle_cli_error(error: Exception) -> int:
    """Handle an unhandled exception at the CLI boundary.

    Formats the error into a clean user-friendly message and returns
    an appropriate exit code, so raw tracebacks never reach the user.

    Args:
        error: The exception to handle.

    Returns:
        An exit code from exit_codes.
    """
    if isinstance(error, ValidationError):
        cli_logger.error(f"Invalid configuration: {format_validation_errors(error)}")
        return exit_codes.CONFIG_INVALID

    if isinstance(error, (GitFusionURLError, UnknownCommandError)):
        cli_logger.error(str(error))
        return exit_codes.INVALID_URL

    if isinstance(error, (UnknownConfigEntryError, MalformedConfigEntryError)):
        cli_logger.error(str(error))
        return exit_codes.ENTRY_NOT_FOUND

    if isinstance(error, ConfigError):
        cli_logger.error(str(error))
        return exit_codes.CONFIG_INVALID

    if isinstance(error, subprocess.CalledProcessError):
        cmd_str = " ".join(str(c) for c in error.cmd) if isinstance(error.cmd, list) else str(error.cmd)
        cli_logger.error(f"Command failed (exit code {error.returncode}): {cmd_str}")
        return exit_codes.GIT_ERROR

    if isinstance(error, OSError):
        if error.filename:
            cli_logger.error(f"{error.strerror}: {error.filename}")
        else:
            cli_logger.error(str(error))
        return exit_codes.GENERAL_ERROR

    if isinstance(error, yaml.YAMLError):
        cli_logger.error(f"Invalid YAML: {error}")
        return exit_codes.CONFIG_INVALID

    cli_logger.error(f"Unexpected error: {error}")
    return exit_codes.GENERAL_ERROR
