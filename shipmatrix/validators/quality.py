"""Toolchain quality validators.

Runs the Go formatter and static analysis in check mode:
- gofmt -l (lists unformatted files without rewriting them)
- go vet ./...
"""

import subprocess
from typing import ClassVar

from shipmatrix.utils.shell import ShellError, is_command_available, run
from shipmatrix.validators.base import (
    LintContext,
    ValidationResult,
    Validator,
    ValidatorRegistry,
)


def _missing_tool(tool: str) -> ValidationResult:
    return ValidationResult.error(
        message=f"{tool} not found",
        details=f"'{tool}' is required for the lint job",
        fix_command="Install the Go toolchain and ensure it is on PATH",
    )


@ValidatorRegistry.register
class GofmtValidator(Validator):
    """Fails when any Go file is not gofmt-formatted."""

    name: ClassVar[str] = "gofmt"
    description: ClassVar[str] = "Check Go formatting"
    category: ClassVar[str] = "toolchain"

    def validate(self, context: LintContext) -> ValidationResult:
        if not is_command_available("gofmt"):
            return _missing_tool("gofmt")

        try:
            result = run(
                ["gofmt", "-l", "."],
                cwd=context.project_root,
                check=True,
                timeout=context.config.timeouts.lint_job,
            )
        except ShellError as e:
            return ValidationResult.error(
                message="gofmt failed",
                details=e.output,
                fix_command="Fix the syntax errors reported by gofmt",
            )
        except subprocess.TimeoutExpired:
            return ValidationResult.error(message="gofmt timed out")

        unformatted = [line for line in result.stdout.splitlines() if line.strip()]
        if unformatted:
            return ValidationResult.error(
                message=f"{len(unformatted)} file(s) need formatting",
                details="\n".join(unformatted),
                fix_command="go fmt ./...",
            )
        return ValidationResult.success("Go formatting passed")


@ValidatorRegistry.register
class GoVetValidator(Validator):
    """Fails when go vet reports problems."""

    name: ClassVar[str] = "go-vet"
    description: ClassVar[str] = "Run go vet static analysis"
    category: ClassVar[str] = "toolchain"

    def validate(self, context: LintContext) -> ValidationResult:
        if not is_command_available("go"):
            return _missing_tool("go")

        try:
            run(
                ["go", "vet", "./..."],
                cwd=context.project_root,
                check=True,
                timeout=context.config.timeouts.lint_job,
            )
        except ShellError as e:
            return ValidationResult.error(
                message="go vet reported problems",
                details="go vet failed. Output:\n" + e.output,
                fix_command="go vet ./...",
            )
        except subprocess.TimeoutExpired:
            return ValidationResult.error(message="go vet timed out")
        return ValidationResult.success("go vet passed")
