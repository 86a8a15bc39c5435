"""Exit codes for gitfusion CLI commands."""

# Success
SUCCESS = 0

# Errors
GENERAL_ERROR = 1
INVALID_ARGS = 2
CONFIG_NOT_FOUND = 3
ENTRY_NOT_FOUND = 4
CONFIG_INVALID = 5
INVALID_URL = 6
GIT_ERROR = 7
