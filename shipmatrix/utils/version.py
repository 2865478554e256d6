"""Version value type and tag parsing.

Release versions follow MAJOR.MINOR.PATCH. Git tags carry a prefix
(``v1.2.3``); automatic checks use a fixed snapshot sentinel
(``v0.0.0-snapshot``) that is never persisted as a tag.
"""

from dataclasses import dataclass

from shipmatrix.exceptions import VersionParseError

VersionTuple = tuple[int, int, int]


@dataclass(frozen=True, order=True)
class Version:
    """An ordered (major, minor, patch) triple.

    Attributes:
        major: Major component
        minor: Minor component
        patch: Patch component
        is_snapshot: True for the non-persisted sentinel used by automatic checks
        qualifier: Pre-release qualifier rendered after a dash (snapshot only)
        prefix: Tag prefix rendered by ``tag``
    """

    major: int
    minor: int
    patch: int
    is_snapshot: bool = False
    qualifier: str = ""
    prefix: str = "v"

    @classmethod
    def snapshot(cls, qualifier: str = "snapshot", prefix: str = "v") -> "Version":
        """The fixed sentinel returned for automatic checks."""
        return cls(0, 0, 0, is_snapshot=True, qualifier=qualifier, prefix=prefix)

    @property
    def core(self) -> VersionTuple:
        return (self.major, self.minor, self.patch)

    @property
    def tag(self) -> str:
        """Tag name, e.g. ``v1.2.4`` or ``v0.0.0-snapshot``."""
        text = f"{self.prefix}{self.major}.{self.minor}.{self.patch}"
        if self.qualifier:
            text = f"{text}-{self.qualifier}"
        return text

    def bump_patch(self) -> "Version":
        """Next persisted version: same major/minor, patch + 1."""
        if self.is_snapshot:
            raise VersionParseError(
                "Snapshot versions cannot be bumped",
                details=f"'{self.tag}' is not a persisted release version",
            )
        return Version(self.major, self.minor, self.patch + 1, prefix=self.prefix)

    def __str__(self) -> str:
        return self.tag


def parse_tag(tag: str, prefix: str = "v") -> Version:
    """Parse a release tag into a Version.

    Args:
        tag: Tag name (e.g. ``v1.2.3`` or ``1.2.3``)
        prefix: Expected tag prefix; the parsed Version keeps it

    Returns:
        Persisted (non-snapshot) Version

    Raises:
        VersionParseError: If the tag is empty, has the wrong number of
            components, or any component is non-numeric

    Examples:
        >>> parse_tag("v1.2.3").core
        (1, 2, 3)
        >>> parse_tag("v1.x.3")
        VersionParseError: Invalid version tag: 'v1.x.3'
    """
    text = tag.strip() if tag else ""
    if not text:
        raise VersionParseError(
            "Empty version tag",
            fix_hint="Tags must look like 'v1.2.3'",
        )

    if prefix and text.startswith(prefix):
        text = text[len(prefix) :]

    parts = text.split(".")
    if len(parts) != 3:
        raise VersionParseError(
            f"Invalid version tag: '{tag}'",
            details="Expected three components: MAJOR.MINOR.PATCH",
            fix_hint="Delete or rename the malformed tag, e.g. 'git tag -d <tag>'",
        )

    bad = [part for part in parts if not part.isascii() or not part.isdigit()]
    if bad:
        raise VersionParseError(
            f"Invalid version tag: '{tag}'",
            details=f"Non-numeric component(s): {', '.join(repr(b) for b in bad)}",
            fix_hint="Delete or rename the malformed tag, e.g. 'git tag -d <tag>'",
        )

    major, minor, patch = (int(part) for part in parts)
    return Version(major, minor, patch, prefix=prefix)


def is_valid_tag(tag: str, prefix: str = "v") -> bool:
    """Check whether a tag parses as a release version."""
    try:
        parse_tag(tag, prefix)
    except VersionParseError:
        return False
    return True


__all__ = [
    "Version",
    "VersionTuple",
    "parse_tag",
    "is_valid_tag",
]
