"""Validators for the lint job."""

# Import validators to trigger registration
from shipmatrix.validators import (
    project,  # noqa: F401
    quality,  # noqa: F401
)
from shipmatrix.validators.base import (
    LintContext,
    ValidationResult,
    Validator,
    ValidatorRegistry,
)
from shipmatrix.validators.lint import run_lint

__all__ = [
    "LintContext",
    "ValidationResult",
    "Validator",
    "ValidatorRegistry",
    "run_lint",
]
