"""
Find the project's current version.

The locator reads a fixed, ordered table of well-known files, takes the
first `version = "X"` assignment from each one that exists, and insists
that every value found is textually identical before parsing it.
"""

import logging
from pathlib import Path
from typing import List, Optional, Pattern, Sequence, Tuple

from .errors import (
    InconsistentVersion,
    NoVersionFound,
    TagMismatch,
    UnsupportedBuildMetadata,
    VersionParseError,
)
from .version import Version

__all__ = [
    "find_version_strings",
    "find_current_version",
    "strip_tag_marker",
    "check_against_tag",
    "all_equal",
]

logger = logging.getLogger(__name__)


def all_equal(values: Sequence) -> bool:
    """True for a non-empty sequence whose items are all equal."""
    if not values:
        return False
    first = values[0]
    return all(v == first for v in values[1:])


def find_version_strings(root: Path, sources: Sequence[Tuple[str, Pattern]]) -> List[Tuple[str, str]]:
    """Return (filename, raw version string) for every source that yields a match.

    Missing or unreadable files are skipped; the pattern's last group is the
    version string.
    """
    found = []
    for name, pattern in sources:
        path = Path(root) / name
        try:
            contents = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.debug(f"Skipping {path}: {e}")
            continue
        m = pattern.search(contents)
        if m is None:
            logger.debug(f"No version assignment in {path}")
            continue
        value = m.group(m.re.groups)
        logger.debug(f"Found version {value!r} in {path}")
        found.append((name, value))
    return found


def find_current_version(root: Path, sources: Sequence[Tuple[str, Pattern]]) -> Version:
    """Discover the single authoritative current version under `root`.

    Raises NoVersionFound, InconsistentVersion, or UnsupportedBuildMetadata.
    A value that is not strict semver surfaces as VersionParseError.
    """
    found = find_version_strings(root, sources)
    versions = [value for _, value in found]
    if not versions:
        raise NoVersionFound()
    if not all_equal(versions):
        raise InconsistentVersion(versions)
    version = Version.parse(versions[0])
    if version.build:
        raise UnsupportedBuildMetadata(version)
    return version


def strip_tag_marker(tag: str, marker: str = "v") -> str:
    if marker and tag.startswith(marker):
        return tag[len(marker):]
    return tag


def check_against_tag(version: Version, last_tag: Optional[str], marker: str = "v") -> None:
    """Require the most recent tag to name `version`.

    Skipped when there is no tag, when the tag is only the marker, and when
    `version` is a pre-release (its tag does not exist yet).
    """
    if last_tag is None:
        return
    stripped = strip_tag_marker(last_tag, marker)
    if not stripped or version.is_prerelease:
        return
    try:
        tagged = Version.parse(stripped)
    except VersionParseError:
        raise TagMismatch(last_tag, version) from None
    if tagged != version:
        raise TagMismatch(last_tag, version)
