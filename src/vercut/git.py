"""Version control capability backed by the git executable."""

import logging
from pathlib import Path
from typing import Optional

from .runcmd import check_command, output_of, run_command

__all__ = ["Git"]

logger = logging.getLogger(__name__)


class Git:
    """The version control operations a release needs.

    Every method blocks until git exits. Failures raise ExternalToolError,
    except the two queries, which answer rather than fail.
    """

    def __init__(self, root: Path, executable: str = "git"):
        self.root = Path(root)
        self.executable = executable

    def _cmd(self, *args):
        return [self.executable, *args]

    def is_clean(self) -> bool:
        """True when tracked files have no unstaged or staged changes."""
        for args in (("diff", "--exit-code"), ("diff", "--cached", "--exit-code")):
            p = run_command(self._cmd(*args), cwd=self.root, quiet_stdout=True)
            if p.returncode != 0:
                return False
        return True

    def last_tag(self) -> Optional[str]:
        """Most recent tag reachable from HEAD, or None if there is none."""
        tag = output_of(self._cmd("describe", "--tags", "--abbrev=0"), cwd=self.root)
        if not tag:
            return None
        return tag

    def commit_all(self, message: str) -> None:
        logger.info(f"Committing: {message}")
        check_command(self._cmd("commit", "-am", message), "commit failed", cwd=self.root)

    def tag(self, name: str) -> None:
        logger.info(f"Tagging {name}")
        check_command(self._cmd("tag", name), "tag failed", cwd=self.root)

    def push(self) -> None:
        logger.info("Pushing current branch")
        check_command(self._cmd("push"), "push failed", cwd=self.root)

    def push_tag(self, name: str) -> None:
        logger.info(f"Pushing tag {name}")
        check_command(self._cmd("push", "origin", name), "push tag failed", cwd=self.root)
