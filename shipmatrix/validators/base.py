"""Validator interface and registry for the lint job.

Each validator checks one thing about the project and maps a failed
check onto its own exception class, so a missing go.mod and a failing
``go vet`` surface as different errors.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, ClassVar

from shipmatrix.exceptions import LintError, ReleaseError

if TYPE_CHECKING:
    from shipmatrix.config.models import PipelineConfig


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of one check.

    Attributes:
        passed: False fails the lint job
        message: One-line summary
        details: Tool output or a longer explanation
        fix_command: What to run or change to fix it
        file_path: The file the check looked at, if any
    """

    passed: bool
    message: str
    details: str | None = None
    fix_command: str | None = None
    file_path: Path | None = None

    @classmethod
    def success(cls, message: str = "Validation passed") -> "ValidationResult":
        return cls(passed=True, message=message)

    @classmethod
    def error(
        cls,
        message: str,
        details: str | None = None,
        fix_command: str | None = None,
        file_path: Path | None = None,
    ) -> "ValidationResult":
        return cls(
            passed=False,
            message=message,
            details=details,
            fix_command=fix_command,
            file_path=file_path,
        )


@dataclass(frozen=True)
class LintContext:
    project_root: Path
    config: "PipelineConfig"


class Validator(ABC):
    """One lint check.

    Subclasses set ``name``, ``description`` and ``category`` (``structure``
    or ``toolchain``), and may narrow ``failure`` to a more specific error.
    """

    name: ClassVar[str]
    description: ClassVar[str]
    category: ClassVar[str]
    failure: ClassVar[type[ReleaseError]] = LintError

    @abstractmethod
    def validate(self, context: LintContext) -> ValidationResult:
        """Run the check against ``context.project_root``."""

    def should_run(self, context: LintContext) -> bool:
        return True

    def raise_for(self, result: ValidationResult) -> None:
        """Raise ``failure`` if the result did not pass."""
        if not result.passed:
            raise self.failure(
                result.message,
                details=result.details,
                fix_hint=result.fix_command,
            )


class ValidatorRegistry:
    """Validators by name and by category, in registration order."""

    _validators: dict[str, type[Validator]] = {}
    _categories: dict[str, list[type[Validator]]] = {}

    @classmethod
    def register(cls, validator_class: type[Validator]) -> type[Validator]:
        """Class decorator adding a validator to the registry.

        Raises:
            TypeError: A required class attribute is missing or ``name`` is empty
            ValueError: Another class already uses the name
        """
        missing = [
            attr
            for attr in ("name", "description", "category")
            if not hasattr(validator_class, attr)
        ]
        if missing:
            raise TypeError(
                f"{validator_class.__name__} must define {', '.join(missing)}"
            )
        name = validator_class.name
        if not isinstance(name, str) or not name:
            raise TypeError(f"{validator_class.__name__}.name must be a non-empty string")

        existing = cls._validators.get(name)
        if existing is validator_class:
            return validator_class
        if existing is not None:
            raise ValueError(
                f"Validator '{name}' is already registered by {existing.__name__}"
            )

        cls._validators[name] = validator_class
        cls._categories.setdefault(validator_class.category, []).append(validator_class)
        return validator_class

    @classmethod
    def get(cls, name: str) -> type[Validator] | None:
        return cls._validators.get(name)

    @classmethod
    def get_by_category(cls, category: str) -> list[type[Validator]]:
        return list(cls._categories.get(category, []))

    @classmethod
    def run_category(
        cls,
        category: str,
        context: LintContext,
    ) -> list[tuple[Validator, ValidationResult]]:
        """Run the category's validators whose should_run() allows it."""
        pairs = []
        for validator_class in cls.get_by_category(category):
            validator = validator_class()
            if validator.should_run(context):
                pairs.append((validator, validator.validate(context)))
        return pairs
