"""Locate, parse and validate shipmatrix.yml (or .toml)."""

import tomllib
from collections.abc import Callable
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError as PydanticValidationError

from shipmatrix.config.models import PipelineConfig
from shipmatrix.exceptions import ConfigurationError

# Searched in order; the config/ directory wins over the project root
SEARCH_PATHS = (
    "config/shipmatrix.yml",
    "config/shipmatrix.yaml",
    "shipmatrix.yml",
    "shipmatrix.yaml",
    "config/shipmatrix.toml",
    "shipmatrix.toml",
)

_INIT_HINT = "Run 'shipmatrix init-config' to generate one"


def _not_found(path: Path) -> ConfigurationError:
    return ConfigurationError(f"Configuration file not found: {path}", fix_hint=_INIT_HINT)


def load_yaml(path: Path) -> dict[str, Any]:
    """Parse a YAML file into a mapping; an empty file yields ``{}``.

    Raises:
        ConfigurationError: Missing file, bad syntax, or a non-mapping document
    """
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        raise _not_found(path) from None
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Invalid YAML in {path}",
            details=str(e),
            fix_hint="Check YAML syntax at the indicated line",
        ) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Invalid configuration in {path}",
            details=f"Top level must be a mapping, got {type(data).__name__}",
        )
    return data


def load_toml(path: Path) -> dict[str, Any]:
    """Parse a TOML file into a mapping.

    Raises:
        ConfigurationError: Missing file or bad syntax
    """
    try:
        return tomllib.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        raise _not_found(path) from None
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(
            f"Invalid TOML in {path}",
            details=str(e),
            fix_hint="Check TOML syntax at the indicated line",
        ) from e


_PARSERS: dict[str, Callable[[Path], dict[str, Any]]] = {
    ".yml": load_yaml,
    ".yaml": load_yaml,
    ".toml": load_toml,
}


def find_config(project_root: Path) -> Path | None:
    """First existing file from SEARCH_PATHS, or None."""
    return next(
        (project_root / p for p in SEARCH_PATHS if (project_root / p).is_file()),
        None,
    )


def load_config(
    path: Path | None = None,
    project_root: Path | None = None,
) -> PipelineConfig:
    """Build the frozen PipelineConfig for a project.

    Args:
        path: Explicit config file; relative paths resolve against project_root
        project_root: Directory to search (defaults to the working directory)

    Raises:
        ConfigurationError: No file found, unknown extension, unparsable
            content, or values rejected by the models
    """
    root = project_root or Path.cwd()
    if path is not None:
        config_path: Path | None = path if path.is_absolute() else root / path
    else:
        config_path = find_config(root)

    if config_path is None:
        raise ConfigurationError(
            "No configuration file found",
            details=f"Searched in: {', '.join(SEARCH_PATHS)}",
            fix_hint=_INIT_HINT,
        )

    parser = _PARSERS.get(config_path.suffix)
    if parser is None:
        raise ConfigurationError(
            f"Unsupported config format: {config_path.suffix or config_path.name}",
            fix_hint="Use a .yml, .yaml or .toml file",
        )

    data = parser(config_path)
    try:
        return PipelineConfig(**data)
    except PydanticValidationError as e:
        raise ConfigurationError(
            f"Invalid configuration in {config_path}",
            details=str(e),
            fix_hint="Compare the reported fields with 'shipmatrix init-config' output",
        ) from e
