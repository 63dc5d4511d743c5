"""
Find and rewrite every file that references the current version.

Planning (`find_files_to_update`) only reads. Applying (`update_files`)
rewrites the planned files one at a time; each file is replaced through a
temporary file and a rename so it is never left half written.
"""

import os
import re
import logging
import tempfile
from enum import Enum
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Pattern, Tuple

import pathspec

from .errors import RewriteError

__all__ = [
    "FileKind",
    "classify",
    "VersionPatterns",
    "walk_project",
    "find_files_to_update",
    "update_files",
    "IGNORE_FILES",
]

logger = logging.getLogger(__name__)

IGNORE_FILES = (".gitignore", ".ignore")

# Dotfiles that may carry the project version.
VISIBLE_DOTFILES = frozenset({".env"})

PRECISE_FILES = frozenset({"Cargo.toml"})
SKIP_FILES = frozenset({"Cargo.lock"})


class FileKind(Enum):
    PRECISE = "precise"
    LOOSE = "loose"
    SKIP = "skip"


def classify(path, precise_files=PRECISE_FILES, skip_files=SKIP_FILES) -> FileKind:
    """Classify a file by its name alone."""
    name = Path(path).name
    if name in precise_files:
        return FileKind.PRECISE
    if name in skip_files:
        return FileKind.SKIP
    return FileKind.LOOSE


class VersionPatterns:
    """The two patterns that find references to `from_version`.

    precise: `version = "<from>"`, key in any case and not part of a longer key.
    loose:   `<from>` as a whole word.
    Both expose the version itself as the `replace` group.
    """

    def __init__(self, from_version, to_version,
                 precise_files=PRECISE_FILES, skip_files=SKIP_FILES):
        self.from_string = str(from_version)
        self.to_string = str(to_version)
        self.precise_files = frozenset(precise_files)
        self.skip_files = frozenset(skip_files)
        escaped = re.escape(self.from_string)
        self.precise = re.compile(
            rf'((?<![\w-])(?i:version)[ \t]*=[ \t]*)"(?P<replace>{escaped})"')
        self.loose = re.compile(rf"\b(?P<replace>{escaped})\b")

    def classify(self, path) -> FileKind:
        return classify(path, self.precise_files, self.skip_files)

    def pattern_for(self, path) -> Optional[Pattern]:
        kind = self.classify(path)
        if kind is FileKind.PRECISE:
            return self.precise
        if kind is FileKind.LOOSE:
            return self.loose
        return None

    def substitute(self, pattern: Pattern, contents: str) -> Tuple[str, int]:
        """Replace the version inside every match, leaving the rest of the match alone."""

        def _replace(m):
            text = m.group(0)
            start = m.start("replace") - m.start()
            end = m.end("replace") - m.start()
            return text[:start] + self.to_string + text[end:]

        return pattern.subn(_replace, contents)


def _load_ignore_spec(directory: Path) -> Optional[pathspec.PathSpec]:
    lines = []
    for name in IGNORE_FILES:
        path = directory / name
        if path.is_file():
            try:
                lines.extend(path.read_text(encoding="utf-8").splitlines())
            except (OSError, UnicodeDecodeError) as e:
                logger.warning(f"Could not read {path}: {e}")
    if not lines:
        return None
    return pathspec.GitIgnoreSpec.from_lines(lines)


def _is_ignored(specs, path: Path, is_dir: bool) -> bool:
    for base, spec in specs:
        rel = path.relative_to(base).as_posix()
        if is_dir:
            rel += "/"
        if spec.match_file(rel):
            return True
    return False


def walk_project(root, visible=VISIBLE_DOTFILES) -> Iterator[Path]:
    """Yield every regular file under `root`, relative to it.

    Hidden entries are skipped, except files named in `visible`. Ignore
    rules from `.gitignore` and `.ignore` files apply to everything below
    the directory holding them.
    Symlinks are not followed.
    """
    root = Path(root)
    specs_by_dir = {}

    for dirpath, dirnames, filenames in os.walk(root):
        current = Path(dirpath)
        parent_specs = specs_by_dir.get(current.parent, []) if current != root else []
        spec = _load_ignore_spec(current)
        specs = parent_specs + [(current, spec)] if spec is not None else parent_specs
        specs_by_dir[current] = specs

        kept = []
        for d in sorted(dirnames):
            full = current / d
            if d.startswith(".") or full.is_symlink() or _is_ignored(specs, full, True):
                continue
            kept.append(d)
        dirnames[:] = kept

        for f in sorted(filenames):
            full = current / f
            if f.startswith(".") and f not in visible:
                continue
            if full.is_symlink() or not full.is_file():
                continue
            if _is_ignored(specs, full, False):
                continue
            yield full.relative_to(root)


def _read_text(path: Path) -> str:
    # newline='' keeps line endings byte-identical on write back
    with open(path, "r", encoding="utf-8", newline="") as f:
        return f.read()


def find_files_to_update(root, patterns: VersionPatterns,
                         candidates: Optional[Iterable[Path]] = None,
                         visible=VISIBLE_DOTFILES) -> List[Path]:
    """Read-only pass: list the files (relative to `root`) that reference the current version."""
    root = Path(root)
    if candidates is None:
        candidates = walk_project(root, visible)
    matching = []
    for rel in candidates:
        pattern = patterns.pattern_for(rel)
        if pattern is None:
            logger.debug(f"Skipping {rel}")
            continue
        try:
            contents = _read_text(root / rel)
        except (OSError, UnicodeDecodeError) as e:
            logger.debug(f"Not scanning {rel}: {e}")
            continue
        if pattern.search(contents):
            matching.append(Path(rel))
    return matching


def _write_atomic(path: Path, contents: str) -> None:
    fd, tmp = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(contents)
            f.flush()
            os.fsync(f.fileno())
        os.chmod(tmp, os.stat(path).st_mode & 0o7777)
        os.replace(tmp, path)
    except BaseException:
        try:
            os.unlink(tmp)
        except FileNotFoundError:
            pass
        raise


def update_files(root, files: Iterable[Path], patterns: VersionPatterns) -> List[Path]:
    """Apply pass: rewrite each planned file, returning the ones that changed.

    Raises RewriteError on the first file that cannot be read or written.
    Files rewritten before that point stay rewritten.
    """
    root = Path(root)
    changed = []
    for rel in files:
        pattern = patterns.pattern_for(rel)
        if pattern is None:
            continue
        path = root / rel
        try:
            contents = _read_text(path)
            replaced, count = patterns.substitute(pattern, contents)
            if count:
                _write_atomic(path, replaced)
        except (OSError, UnicodeDecodeError) as e:
            raise RewriteError(rel, e) from e
        if count:
            logger.info(f"Updated {rel} ({count} occurrence{'s' if count != 1 else ''})")
            changed.append(Path(rel))
    return changed
