"""Checks for the repo auto-create settings.

Auto-create derives a Perforce depot path and a Git Fusion repo name from
two templates. Both must reference the project being created::

    auto_create:
      path_template: //gitswarm/projects/{namespace}/{project-path}
      repo_name_template: gitswarm-{namespace}-{project-path}
"""

import re
from collections.abc import Mapping
from typing import Any

from gitfusion.validation import ValidationResult

TEMPLATE_KEYS = ("path_template", "repo_name_template")
PLACEHOLDERS = ("{project-path}", "{namespace}")

# Starts with //, has a depot segment and a further path, and does not end in ...
PATH_TEMPLATE_PATTERN = re.compile(r"//[^/]+/.+(?<!\.\.\.)")


def validate_auto_create(settings: Mapping[str, Any]) -> ValidationResult:
    """Validate merged auto-create settings.

    Args:
        settings: The auto_create mapping (global merged with the entry's own).

    Returns:
        ValidationResult listing every problem with the templates.
    """
    errors: list[str] = []

    for key in TEMPLATE_KEYS:
        template = settings.get(key)
        if not isinstance(template, str):
            errors.append(f"'{key}' must be a string")
            continue
        missing = [placeholder for placeholder in PLACEHOLDERS if placeholder not in template]
        if missing:
            errors.append(f"'{key}' must contain {' and '.join(missing)}")

    path_template = settings.get("path_template")
    if isinstance(path_template, str) and not PATH_TEMPLATE_PATTERN.fullmatch(path_template):
        errors.append(
            "'path_template' must start with //, name a depot and a path below it, "
            "and must not end with ..."
        )

    return ValidationResult.from_errors(errors)


def is_auto_create_configured(settings: Mapping[str, Any]) -> bool:
    """Return True if the auto-create settings are usable."""
    return validate_auto_create(settings).is_valid
