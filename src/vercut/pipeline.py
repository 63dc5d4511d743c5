"""
Release pipeline.

A run moves through the stages below in order and stops at the first
error. Nothing on disk changes before CONFIRM succeeds, and nothing in
version control changes before INTEGRATE.

Files rewritten during APPLY are left as they are if VALIDATE or
INTEGRATE fails afterwards; the operator has to restore or commit them.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional, Pattern, Sequence, Tuple

from .errors import Aborted, DirtyWorkingTree, InvalidOperations
from .locator import check_against_tag, find_current_version
from .rewriter import (
    PRECISE_FILES,
    SKIP_FILES,
    VISIBLE_DOTFILES,
    VersionPatterns,
    find_files_to_update,
    update_files,
)
from .version import PRERELEASE_TOKEN, Version, VersionIncrement, increment

__all__ = [
    "Stage",
    "ReleaseOptions",
    "ReleasePlan",
    "TagPolicy",
    "Release",
    "validate_operations",
    "describe_operations",
]

logger = logging.getLogger(__name__)


class Stage(Enum):
    PRECONDITION = 1
    DISCOVER = 2
    COMPUTE = 3
    PLAN = 4
    CONFIRM = 5
    APPLY = 6
    VALIDATE = 7
    INTEGRATE = 8
    DONE = 9


@dataclass(frozen=True)
class ReleaseOptions:
    increment: VersionIncrement
    commit: bool = False
    tag: bool = False
    push: bool = False
    force: bool = False


@dataclass
class ReleasePlan:
    from_version: Version
    to_version: Version
    files: List[Path]
    commit: bool
    tag: bool
    push: bool
    tag_name: str
    last_tag: Optional[str] = None
    changed: List[Path] = field(default_factory=list)

    @property
    def commit_message(self) -> str:
        return f"Version {self.to_version}"

    def operations(self) -> str:
        return describe_operations(self.commit, self.tag, self.push)


def validate_operations(commit: bool, tag: bool, push: bool) -> None:
    """Tag and push are only meaningful on top of a commit."""
    if commit:
        return
    if tag:
        raise InvalidOperations("Can't tag when -c / --commit is not enabled")
    if push:
        raise InvalidOperations("Can't push when -c / --commit is not enabled")


def describe_operations(commit: bool, tag: bool, push: bool) -> str:
    """Suffix for "The following files will be changed..." naming the git steps.

    >>> describe_operations(True, True, True)
    ', committed, tagged and pushed'
    >>> describe_operations(True, False, False)
    ' and committed'
    """
    ops = []
    if commit:
        ops.append("committed")
        if tag:
            ops.append("tagged")
        if push:
            ops.append("pushed")
    if not ops:
        return ""
    last = ops.pop()
    return "".join(f", {op}" for op in ops) + f" and {last}"


class TagPolicy:
    """Names the tag for a new release after the previous tag's convention.

    A previous tag starting with the marker means the new tag gets it too;
    any other previous tag means a bare version. Without a previous tag the
    marker is used.
    """

    def __init__(self, marker: str = "v"):
        self.marker = marker

    def uses_marker(self, last_tag: Optional[str]) -> bool:
        if last_tag is None:
            return True
        return bool(self.marker) and last_tag.startswith(self.marker)

    def tag_for(self, version: Version, last_tag: Optional[str]) -> str:
        if self.uses_marker(last_tag):
            return f"{self.marker}{version}"
        return str(version)


def _decline(plan: ReleasePlan) -> bool:
    return False


class Release:
    """Runs one release against the project at `root`.

    `vcs` provides is_clean, last_tag, commit_all, tag, push and push_tag.
    `build_checker` provides check. `confirm` is called with the plan and
    returns whether to go ahead. `echo` receives operator-facing lines.
    """

    def __init__(
        self,
        root: Path,
        vcs,
        build_checker,
        sources: Sequence[Tuple[str, Pattern]],
        confirm: Callable[[ReleasePlan], bool] = _decline,
        echo: Callable[[str], None] = logger.info,
        tag_policy: Optional[TagPolicy] = None,
        precise_files=PRECISE_FILES,
        skip_files=SKIP_FILES,
        prerelease_token: str = PRERELEASE_TOKEN,
    ):
        self.root = Path(root)
        self.vcs = vcs
        self.build_checker = build_checker
        self.sources = list(sources)
        self.confirm = confirm
        self.echo = echo
        self.tag_policy = tag_policy or TagPolicy()
        self.precise_files = frozenset(precise_files)
        self.skip_files = frozenset(skip_files)
        self.prerelease_token = prerelease_token
        self.stage: Optional[Stage] = None

    @classmethod
    def from_config(cls, config, vcs, build_checker, **kwargs) -> "Release":
        return cls(
            config.root,
            vcs,
            build_checker,
            config.version_sources(),
            tag_policy=TagPolicy(config.TAG_MARKER),
            precise_files=config.PRECISE_FILES,
            skip_files=config.SKIP_FILES,
            prerelease_token=config.PRERELEASE_TOKEN,
            **kwargs,
        )

    def _enter(self, stage: Stage) -> None:
        logger.debug(f"Stage {stage.name}")
        self.stage = stage

    def run(self, options: ReleaseOptions) -> ReleasePlan:
        validate_operations(options.commit, options.tag, options.push)

        self._enter(Stage.PRECONDITION)
        if not self.vcs.is_clean():
            raise DirtyWorkingTree()

        self._enter(Stage.DISCOVER)
        from_version = find_current_version(self.root, self.sources)
        last_tag = self.vcs.last_tag()
        check_against_tag(from_version, last_tag, self.tag_policy.marker)

        self._enter(Stage.COMPUTE)
        to_version = increment(options.increment, from_version, self.prerelease_token)
        self.echo(f"Upgrading version {from_version} to {to_version}")

        self._enter(Stage.PLAN)
        plan = self.plan(from_version, to_version, options, last_tag)

        self._enter(Stage.CONFIRM)
        self.echo(f"The following files will be changed{plan.operations()}:")
        for f in plan.files:
            self.echo(f"\t{f}")
        if not plan.files:
            self.echo("No files reference the current version.")
        if not options.force and not self.confirm(plan):
            raise Aborted()

        self._enter(Stage.APPLY)
        plan.changed = update_files(self.root, plan.files, self._patterns(plan))

        self._enter(Stage.VALIDATE)
        self.build_checker.check()
        self.echo("Upgraded!")

        self._enter(Stage.INTEGRATE)
        self.integrate(plan)

        self._enter(Stage.DONE)
        return plan

    def _patterns(self, plan: ReleasePlan) -> VersionPatterns:
        return VersionPatterns(plan.from_version, plan.to_version,
                               self.precise_files, self.skip_files)

    def plan(self, from_version: Version, to_version: Version,
             options: ReleaseOptions, last_tag: Optional[str] = None) -> ReleasePlan:
        """Read-only pass over the project tree."""
        plan = ReleasePlan(
            from_version=from_version,
            to_version=to_version,
            files=[],
            commit=options.commit,
            tag=options.tag,
            push=options.push,
            tag_name=self.tag_policy.tag_for(to_version, last_tag),
            last_tag=last_tag,
        )
        visible = VISIBLE_DOTFILES | {Path(name).name for name, _ in self.sources}
        plan.files = find_files_to_update(self.root, self._patterns(plan), visible=visible)
        return plan

    def integrate(self, plan: ReleasePlan) -> None:
        """Commit, push, tag and push the tag, as requested."""
        validate_operations(plan.commit, plan.tag, plan.push)
        if not plan.commit:
            return
        self.vcs.commit_all(plan.commit_message)
        if plan.push:
            self.vcs.push()
        if plan.tag:
            self.vcs.tag(plan.tag_name)
            if plan.push:
                self.vcs.push_tag(plan.tag_name)
