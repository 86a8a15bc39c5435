"""Loading the Git Fusion configuration file.

The configuration lives in a YAML file whose ``git_fusion`` section holds
the ``enabled`` flag, the ``global`` defaults and one mapping per entry.
Other top-level sections are ignored so the file may be shared with the
host application.
"""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from gitfusion.config import GitFusionConfig, InfoHook
from gitfusion.errors import format_validation_errors

# Default configuration file location
DEFAULT_CONFIG_PATH = Path.home() / ".gitfusion" / "config.yaml"

# Environment variable for a custom configuration file location
CONFIG_ENV_VAR = "GITFUSION_CONFIG"


class GitFusionSection(BaseModel):
    """The ``git_fusion`` section: an enabled flag plus entries keyed by id."""

    model_config = ConfigDict(extra="allow")

    enabled: bool = Field(default=False, description="Whether Git Fusion integration is on")

    def raw_config(self) -> dict[str, Any]:
        """The section as a plain mapping, entries in file order."""
        return self.model_dump()


class ConfigFileSchema(BaseModel):
    """Root schema for the configuration file."""

    model_config = ConfigDict(extra="ignore")

    git_fusion: GitFusionSection = Field(
        default_factory=GitFusionSection,
        description="Git Fusion settings",
    )

    @field_validator("git_fusion", mode="before")
    @classmethod
    def normalize_section(cls, v: Any) -> Any:
        """Treat a missing or non-mapping section as empty."""
        return v if isinstance(v, dict) else {}


def get_config_path() -> Path:
    """Get the configuration file path.

    Resolution order:
    1. GITFUSION_CONFIG environment variable (if set)
    2. Default: ~/.gitfusion/config.yaml

    Returns:
        Path to the configuration file.
    """
    env_value = os.environ.get(CONFIG_ENV_VAR)
    if env_value:
        return Path(env_value).expanduser()
    return DEFAULT_CONFIG_PATH


def load_config_file(path: Path) -> ConfigFileSchema:
    """Load and validate the configuration file.

    Args:
        path: Path to the YAML configuration file.

    Returns:
        Validated ConfigFileSchema instance.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If YAML is invalid or schema validation fails.
    """
    if not path.exists():
        msg = f"Configuration file not found at {path}"
        raise FileNotFoundError(msg)

    try:
        data = yaml.safe_load(path.read_text())
    except yaml.YAMLError as e:
        msg = f"Invalid YAML in '{path}': {e}"
        raise ValueError(msg) from e

    if data is None:
        data = {}

    try:
        return ConfigFileSchema.model_validate(data)
    except ValidationError as e:
        clean_errors = format_validation_errors(e)
        msg = f"Invalid configuration '{path}': {clean_errors}"
        raise ValueError(msg) from e


def load_config(path: Path | None = None, info_hook: InfoHook | None = None) -> GitFusionConfig:
    """Load the Git Fusion configuration.

    Args:
        path: Configuration file. Defaults to get_config_path().
        info_hook: Hook used by entries to fetch ``info`` output.

    Returns:
        GitFusionConfig over the file's ``git_fusion`` section.
    """
    schema = load_config_file(path or get_config_path())
    return GitFusionConfig(schema.git_fusion.raw_config(), info_hook=info_hook)
