"""Build consistency check run after the version files are rewritten."""

import logging
import shlex
from pathlib import Path
from typing import Sequence

from .runcmd import check_command

__all__ = ["CommandBuildChecker", "NullBuildChecker"]

logger = logging.getLogger(__name__)


class CommandBuildChecker:
    """Runs a build command (by default `cargo check -q`) in the project root.

    For cargo this also refreshes Cargo.lock with the new version.
    """

    def __init__(self, root: Path, command: Sequence[str] = ("cargo", "check", "-q")):
        self.root = Path(root)
        self.command = list(command)

    def check(self) -> None:
        logger.info(f"Running build check: {shlex.join(self.command)}")
        check_command(self.command, f"{shlex.join(self.command)} failed", cwd=self.root)


class NullBuildChecker:
    """Build check used when the check is disabled."""

    def check(self) -> None:
        logger.info("Build check disabled")
