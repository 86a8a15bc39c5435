"""Validation result type shared by config and auto-create checks."""

from dataclasses import dataclass, field


@dataclass
class ValidationResult:
    """Result of a validation operation.

    Attributes:
        is_valid: True if validation passed, False otherwise.
        errors: Human-readable reasons, one per problem found.
    """

    is_valid: bool
    errors: list[str] = field(default_factory=list)

    @classmethod
    def from_errors(cls, errors: list[str]) -> "ValidationResult":
        """Build a result that is valid exactly when no errors were collected."""
        return cls(is_valid=not errors, errors=errors)
