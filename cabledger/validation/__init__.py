"""Form validation package."""

from cabledger.validation.validator import (
    FormValidator,
    ValidationIssue,
    ValidationResult,
)

__all__ = ["FormValidator", "ValidationIssue", "ValidationResult"]
