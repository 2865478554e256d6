"""Project structure validators.

A missing manifest, entrypoint or (when an image is published) Dockerfile
is a fatal precondition: the lint job fails before any build work.
"""

from typing import ClassVar

from shipmatrix.exceptions import (
    MissingDependencyManifest,
    MissingDockerfile,
    MissingEntrypoint,
    ReleaseError,
)
from shipmatrix.validators.base import (
    LintContext,
    ValidationResult,
    Validator,
    ValidatorRegistry,
)


class RequiredFileValidator(Validator):
    """Checks that one configured file exists at the project root."""

    # Config attribute on ProjectConfig naming the file
    config_field: ClassVar[str]

    def validate(self, context: LintContext) -> ValidationResult:
        relative = getattr(context.config.project, self.config_field)
        path = context.project_root / relative
        if path.is_file():
            return ValidationResult.success(f"Found {relative}")
        return ValidationResult.error(
            message=f"{relative} not found",
            details=f"Expected {self.description.lower()} at {path}",
            fix_command=f"Create {relative} or set project.{self.config_field} in shipmatrix.yml",
            file_path=path,
        )


@ValidatorRegistry.register
class DependencyManifestValidator(RequiredFileValidator):
    name: ClassVar[str] = "dependency-manifest"
    description: ClassVar[str] = "Dependency manifest"
    category: ClassVar[str] = "structure"
    config_field: ClassVar[str] = "dependency_manifest"
    failure: ClassVar[type[ReleaseError]] = MissingDependencyManifest


@ValidatorRegistry.register
class EntrypointValidator(RequiredFileValidator):
    name: ClassVar[str] = "entrypoint"
    description: ClassVar[str] = "Program entrypoint"
    category: ClassVar[str] = "structure"
    config_field: ClassVar[str] = "entrypoint"
    failure: ClassVar[type[ReleaseError]] = MissingEntrypoint


@ValidatorRegistry.register
class DockerfileValidator(RequiredFileValidator):
    """Only required when the container image is published."""

    name: ClassVar[str] = "dockerfile"
    description: ClassVar[str] = "Dockerfile"
    category: ClassVar[str] = "structure"
    config_field: ClassVar[str] = "dockerfile"
    failure: ClassVar[type[ReleaseError]] = MissingDockerfile

    def should_run(self, context: LintContext) -> bool:
        return context.config.image.enabled
