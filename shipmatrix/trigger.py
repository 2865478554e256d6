"""Trigger events that start a pipeline run.

A run is either an automatic check (push / pull request: build and
validate only) or a manual release request that carries a release kind.
"""

import json
import os
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from shipmatrix.exceptions import ValidationError


class TriggerKind(Enum):
    """What started the run."""

    AUTOMATIC_CHECK = "automatic_check"
    MANUAL_RELEASE = "manual_release"


class ReleaseKind(Enum):
    """Release channel chosen for a manual release."""

    BETA = "beta"
    STABLE = "stable"

    @classmethod
    def parse(cls, value: str) -> "ReleaseKind":
        """Accept 'beta'/'stable' plus the dispatch form's 'Beta'/'Releases'."""
        normalized = value.strip().lower()
        aliases = {
            "beta": cls.BETA,
            "stable": cls.STABLE,
            "releases": cls.STABLE,
            "release": cls.STABLE,
        }
        try:
            return aliases[normalized]
        except KeyError:
            raise ValidationError(
                f"Unknown release kind: '{value}'",
                fix_hint="Use 'beta' or 'stable'",
            ) from None


# CI event names mapped to trigger kinds
_EVENT_KINDS = {
    "push": TriggerKind.AUTOMATIC_CHECK,
    "pull_request": TriggerKind.AUTOMATIC_CHECK,
    "workflow_dispatch": TriggerKind.MANUAL_RELEASE,
}


@dataclass(frozen=True)
class TriggerEvent:
    """Immutable description of the event that started the run."""

    kind: TriggerKind
    release_kind: ReleaseKind | None = None

    def __post_init__(self) -> None:
        if self.kind is TriggerKind.MANUAL_RELEASE and self.release_kind is None:
            raise ValidationError(
                "A manual release needs a release kind",
                fix_hint="Pass --release-kind beta or --release-kind stable",
            )
        if self.kind is TriggerKind.AUTOMATIC_CHECK and self.release_kind is not None:
            raise ValidationError("Automatic checks do not take a release kind")

    @classmethod
    def automatic(cls) -> "TriggerEvent":
        return cls(TriggerKind.AUTOMATIC_CHECK)

    @classmethod
    def manual(cls, release_kind: ReleaseKind) -> "TriggerEvent":
        return cls(TriggerKind.MANUAL_RELEASE, release_kind)

    @property
    def is_manual(self) -> bool:
        return self.kind is TriggerKind.MANUAL_RELEASE

    @property
    def prerelease(self) -> bool:
        """True for every release that is not Stable."""
        return self.release_kind is not ReleaseKind.STABLE

    @classmethod
    def from_environment(cls, environ: Mapping[str, str] | None = None) -> "TriggerEvent":
        """Build the trigger from a GitHub Actions environment.

        push and pull_request map to an automatic check; workflow_dispatch
        maps to a manual release whose kind comes from the
        ``release_type`` input (``Beta`` or ``Releases``), defaulting to Beta.

        Raises:
            ValidationError: If the event name is missing or unsupported
        """
        env = os.environ if environ is None else environ
        event_name = env.get("GITHUB_EVENT_NAME", "")
        kind = _EVENT_KINDS.get(event_name)
        if kind is None:
            raise ValidationError(
                f"Unsupported trigger event: '{event_name or '<unset>'}'",
                details="Expected push, pull_request or workflow_dispatch",
                fix_hint="Run inside GitHub Actions or pass --release-kind",
            )
        if kind is TriggerKind.AUTOMATIC_CHECK:
            return cls.automatic()

        release_type = _read_dispatch_input(env.get("GITHUB_EVENT_PATH"), "release_type")
        return cls.manual(ReleaseKind.parse(release_type or "Beta"))


def _read_dispatch_input(event_path: str | None, name: str) -> str | None:
    if not event_path:
        return None
    try:
        payload = json.loads(Path(event_path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ValidationError(
            f"Cannot read event payload: {event_path}",
            details=str(e),
        ) from e
    inputs = payload.get("inputs") or {}
    value = inputs.get(name)
    return str(value) if value is not None else None
