"""
Semantic version values and the increment strategies applied to them.

Only strict MAJOR.MINOR.PATCH[-PRERELEASE][+BUILD] versions are accepted.
Versions are immutable; every increment builds a new value.
"""

import re
from enum import Enum
from functools import total_ordering
from typing import Optional, Tuple

from .errors import UnsupportedBuildMetadata, VersionParseError

__all__ = [
    "Version",
    "Strategy",
    "VersionIncrement",
    "increment",
    "parse_increment",
    "PRERELEASE_TOKEN",
]

PRERELEASE_TOKEN = "pre"

_IDENT = r"(?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*)"
SEMVER_REGEX = re.compile(
    r"^(?P<major>0|[1-9]\d*)\.(?P<minor>0|[1-9]\d*)\.(?P<patch>0|[1-9]\d*)"
    rf"(?:-(?P<pre>{_IDENT}(?:\.{_IDENT})*))?"
    r"(?:\+(?P<build>[0-9a-zA-Z-]+(?:\.[0-9a-zA-Z-]+)*))?$"
)


def _prerelease_key(pre: str) -> Tuple:
    """Sort key for a pre-release string.

    A release (empty pre-release) sorts after every pre-release of the same
    numbers. Numeric identifiers sort numerically and before alphanumeric ones.
    """
    if not pre:
        return (1,)
    parts = []
    for ident in pre.split("."):
        if ident.isdigit():
            parts.append((0, int(ident), ""))
        else:
            parts.append((1, 0, ident))
    return (0, tuple(parts))


@total_ordering
class Version:
    """A semantic version.

    Equality, hashing and ordering ignore build metadata.
    """

    __slots__ = ("major", "minor", "patch", "pre", "build")

    def __init__(self, major: int, minor: int, patch: int, pre: str = "", build: str = ""):
        for part in (major, minor, patch):
            if not isinstance(part, int) or part < 0:
                raise VersionParseError(f"invalid version component: {part!r}")
        object.__setattr__(self, "major", major)
        object.__setattr__(self, "minor", minor)
        object.__setattr__(self, "patch", patch)
        object.__setattr__(self, "pre", pre or "")
        object.__setattr__(self, "build", build or "")

    def __setattr__(self, name, value):
        raise AttributeError(f"{type(self).__name__} is immutable")

    @classmethod
    def parse(cls, text: str) -> "Version":
        """Parse a version string, raising VersionParseError if it is not strict semver."""
        m = SEMVER_REGEX.fullmatch(text) if isinstance(text, str) else None
        if m is None:
            raise VersionParseError(f"invalid version: {text!r}")
        return cls(
            int(m.group("major")),
            int(m.group("minor")),
            int(m.group("patch")),
            m.group("pre") or "",
            m.group("build") or "",
        )

    def replace(self, **changes) -> "Version":
        fields = {name: getattr(self, name) for name in self.__slots__}
        fields.update(changes)
        return Version(**fields)

    @property
    def is_prerelease(self) -> bool:
        return bool(self.pre)

    def _key(self):
        return (self.major, self.minor, self.patch, _prerelease_key(self.pre))

    def __eq__(self, other):
        if not isinstance(other, Version):
            return NotImplemented
        return self._key() == other._key()

    def __lt__(self, other):
        if not isinstance(other, Version):
            return NotImplemented
        return self._key() < other._key()

    def __hash__(self):
        return hash(self._key())

    def __str__(self):
        s = f"{self.major}.{self.minor}.{self.patch}"
        if self.pre:
            s += f"-{self.pre}"
        if self.build:
            s += f"+{self.build}"
        return s

    def __repr__(self):
        return f"Version({str(self)!r})"


class Strategy(Enum):
    AUTO = "auto"
    PATCH = "patch"
    MINOR = "minor"
    MAJOR = "major"
    STRIP = "strip"
    PRERELEASE = "pre"
    EXACT = "exact"


class VersionIncrement:
    """An increment strategy, optionally carrying the exact target version."""

    __slots__ = ("strategy", "exact")

    def __init__(self, strategy: Strategy, exact: Optional[Version] = None):
        if (strategy is Strategy.EXACT) != (exact is not None):
            raise ValueError("an exact version is required for, and only for, Strategy.EXACT")
        self.strategy = strategy
        self.exact = exact

    def apply(self, current: Version, prerelease_token: str = PRERELEASE_TOKEN) -> Version:
        return increment(self, current, prerelease_token)

    def __eq__(self, other):
        if not isinstance(other, VersionIncrement):
            return NotImplemented
        return (self.strategy, self.exact) == (other.strategy, other.exact)

    def __hash__(self):
        return hash((self.strategy, self.exact))

    def __str__(self):
        if self.strategy is Strategy.EXACT:
            return str(self.exact)
        return self.strategy.value

    def __repr__(self):
        return f"VersionIncrement({self})"


def parse_increment(token: str) -> VersionIncrement:
    """Turn a command line token into a VersionIncrement.

    The named tokens are matched case-insensitively; anything else must be
    an exact version without build metadata.
    """
    name = token.strip().lower()
    for strategy in Strategy:
        if strategy is not Strategy.EXACT and strategy.value == name:
            return VersionIncrement(strategy)
    exact = Version.parse(token.strip())
    if exact.build:
        raise VersionParseError(f"build metadata is not supported: {token!r}")
    return VersionIncrement(Strategy.EXACT, exact)


def increment(inc, current: Version, prerelease_token: str = PRERELEASE_TOKEN) -> Version:
    """Compute the version that follows `current` under `inc`.

    `inc` is a VersionIncrement or a bare Strategy (other than EXACT).
    Patch, minor and major bumps always produce a release version.
    """
    if isinstance(inc, Strategy):
        inc = VersionIncrement(inc)
    if current.build:
        raise UnsupportedBuildMetadata(current)

    strategy = inc.strategy
    if strategy is Strategy.AUTO:
        strategy = Strategy.STRIP if current.is_prerelease else Strategy.PATCH

    if strategy is Strategy.PATCH:
        return Version(current.major, current.minor, current.patch + 1)
    if strategy is Strategy.MINOR:
        return Version(current.major, current.minor + 1, 0)
    if strategy is Strategy.MAJOR:
        return Version(current.major + 1, 0, 0)
    if strategy is Strategy.STRIP:
        return current.replace(pre="")
    if strategy is Strategy.PRERELEASE:
        return current.replace(pre=prerelease_token)
    return inc.exact
