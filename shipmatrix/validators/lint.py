"""The lint job: structure checks, then toolchain checks.

Structure problems are fatal preconditions and are reported before the
toolchain runs at all.
"""

import logging

from shipmatrix.validators.base import (
    LintContext,
    ValidationResult,
    ValidatorRegistry,
)

logger = logging.getLogger(__name__)

LINT_CATEGORIES = ("structure", "toolchain")


def run_lint(context: LintContext) -> list[ValidationResult]:
    """Run every lint validator and raise on the first error.

    Returns:
        All results, when nothing failed

    Raises:
        PreconditionError: A structure validator failed (its specific subclass)
        LintError: A toolchain validator failed
    """
    collected: list[ValidationResult] = []
    for category in LINT_CATEGORIES:
        for validator, result in ValidatorRegistry.run_category(category, context):
            logger.debug("%s: %s", validator.name, result.message)
            validator.raise_for(result)
            collected.append(result)
    return collected
