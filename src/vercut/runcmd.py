"""
Blocking external-process helper.
- run_command(): runs a command to completion and returns the CompletedProcess
- check_command(): same, but raises ExternalToolError on non-zero exit
"""

import logging
import shlex
import subprocess
from typing import Optional, Sequence

from .errors import ExternalToolError

logger = logging.getLogger(__name__)


def run_command(args: Sequence[str], cwd=None, capture: bool = False,
                quiet_stdout: bool = False) -> subprocess.CompletedProcess:
    """Run `args` and wait for it. A missing executable is an ExternalToolError."""
    args = [str(a) for a in args]
    logger.debug(f"Running: {shlex.join(args)} (cwd={cwd})")
    if capture:
        stdout = subprocess.PIPE
    elif quiet_stdout:
        stdout = subprocess.DEVNULL
    else:
        stdout = None
    try:
        p = subprocess.run(
            args,
            cwd=None if cwd is None else str(cwd),
            stdout=stdout,
            stderr=subprocess.PIPE if capture else None,
            text=True,
        )
    except FileNotFoundError:
        raise ExternalToolError(f"{args[0]} command not found", cmd=args) from None
    except OSError as e:
        raise ExternalToolError(f"could not run {args[0]}: {e}", cmd=args) from e
    logger.debug(f"{args[0]} exited with {p.returncode}")
    return p


def check_command(args: Sequence[str], what: str, cwd=None,
                  quiet_stdout: bool = False) -> None:
    """Run `args`; raise ExternalToolError naming `what` if it fails."""
    p = run_command(args, cwd=cwd, quiet_stdout=quiet_stdout)
    if p.returncode != 0:
        raise ExternalToolError(what, cmd=list(args), returncode=p.returncode)


def output_of(args: Sequence[str], cwd=None) -> Optional[str]:
    """Stripped stdout of `args`, or None if it exits non-zero."""
    p = run_command(args, cwd=cwd, capture=True)
    if p.returncode != 0:
        logger.debug(f"{args[0]} stderr: {(p.stderr or '').strip()}")
        return None
    return (p.stdout or "").strip()
