"""Compiler toolchain adapter.

The build matrix only talks to the narrow Toolchain interface; GoToolchain
drives the ``go`` command through shipmatrix.utils.shell.run().
"""

import logging
import subprocess
from pathlib import Path
from typing import Protocol

from shipmatrix.build.targets import BuildTarget
from shipmatrix.config.models import PipelineConfig
from shipmatrix.exceptions import BuildError, ReleaseTimeoutError
from shipmatrix.utils.shell import ShellError, run

logger = logging.getLogger(__name__)


class Toolchain(Protocol):
    """Compiles the project for one target."""

    def prepare(self) -> None:
        """Resolve dependencies once before any target is built."""

    def build(self, target: BuildTarget, version: str, output: Path) -> None:
        """Compile an executable for ``target`` at ``output``."""


class GoToolchain:
    """Cross-compiles a Go module with GOOS/GOARCH."""

    def __init__(self, project_root: Path, config: PipelineConfig) -> None:
        self.project_root = project_root
        self.config = config

    def ldflags(self, version: str) -> str:
        """Linker flags embedding ``version`` into the configured symbol."""
        flags = []
        if self.config.toolchain.strip:
            flags.extend(["-s", "-w"])
        flags.append(f"-X {self.config.toolchain.version_variable}={version}")
        return " ".join(flags)

    def build_command(self, version: str, output: Path) -> list[str]:
        cmd = ["go", "build"]
        if self.config.toolchain.trimpath:
            cmd.append("-trimpath")
        cmd.extend([f"-ldflags={self.ldflags(version)}", "-o", str(output), "."])
        return cmd

    def build_env(self, target: BuildTarget) -> dict[str, str]:
        return {
            "GOOS": target.os,
            "GOARCH": target.arch,
            "CGO_ENABLED": "1" if self.config.toolchain.cgo else "0",
        }

    def prepare(self) -> None:
        """Run ``go mod tidy`` and ``go mod download``.

        Raises:
            BuildError: If either command fails
            ReleaseTimeoutError: If either command exceeds the target budget
        """
        for cmd in (["go", "mod", "tidy"], ["go", "mod", "download"]):
            self._go(cmd, env=None, what="Dependency preparation")

    def build(self, target: BuildTarget, version: str, output: Path) -> None:
        """Compile one target.

        Raises:
            BuildError: If compilation fails
            ReleaseTimeoutError: If compilation exceeds the target budget
        """
        output.parent.mkdir(parents=True, exist_ok=True)
        logger.debug("Compiling %s -> %s", target, output)
        self._go(
            self.build_command(version, output),
            env=self.build_env(target),
            what=f"Build for {target}",
        )

    def _go(self, cmd: list[str], env: dict[str, str] | None, what: str) -> None:
        timeout = self.config.timeouts.build_target
        try:
            run(cmd, cwd=self.project_root, check=True, timeout=timeout, env=env)
        except subprocess.TimeoutExpired as e:
            raise ReleaseTimeoutError(
                f"{what} timed out after {timeout}s",
                details=" ".join(cmd),
                fix_hint="Raise timeouts.build_target in shipmatrix.yml",
            ) from e
        except ShellError as e:
            raise BuildError(f"{what} failed", details=e.output or str(e)) from e
        except FileNotFoundError as e:
            raise BuildError(
                f"{what} failed: go toolchain not found",
                details=str(e),
                fix_hint=f"Install Go {self.config.toolchain.version} and ensure 'go' is on PATH",
            ) from e
