"""Exceptions raised by vercut.

Every failure is fatal for the run. Nothing in the package catches these
except the command line entry point, which turns them into a one-line
diagnostic and a non-zero exit status.
"""

__all__ = [
    "VercutError",
    "Aborted",
    "UsagePreconditionError",
    "DirtyWorkingTree",
    "InvalidOperations",
    "DiscoveryError",
    "NoVersionFound",
    "InconsistentVersion",
    "UnsupportedBuildMetadata",
    "TagMismatch",
    "VersionParseError",
    "ExternalToolError",
    "RewriteError",
]


class VercutError(Exception):
    """Base class for all errors reported to the operator."""


class Aborted(VercutError):
    """The operator declined the confirmation prompt."""

    def __init__(self, message="aborted by user"):
        super().__init__(message)


class UsagePreconditionError(VercutError):
    pass


class DirtyWorkingTree(UsagePreconditionError):
    def __init__(self, message="uncommitted changes"):
        super().__init__(message)


class InvalidOperations(UsagePreconditionError):
    """Tag or push was requested without commit."""


class DiscoveryError(VercutError):
    pass


class NoVersionFound(DiscoveryError):
    def __init__(self, message="no versions found"):
        super().__init__(message)


class InconsistentVersion(DiscoveryError):
    def __init__(self, versions):
        self.versions = list(versions)
        super().__init__(f"no consistent version found: {self.versions!r}")


class UnsupportedBuildMetadata(DiscoveryError):
    def __init__(self, version):
        self.version = version
        super().__init__(f"build suffix unsupported: {version}")


class TagMismatch(DiscoveryError):
    def __init__(self, tag, version):
        self.tag = tag
        self.version = version
        super().__init__(
            f"last git tag {tag!r} does not match the detected version {version}"
        )


class VersionParseError(VercutError, ValueError):
    pass


class ExternalToolError(VercutError):
    """An external command (git, build check) reported failure."""

    def __init__(self, what, cmd=None, returncode=None):
        self.what = what
        self.cmd = cmd
        self.returncode = returncode
        message = what
        if returncode is not None:
            message = f"{what} (exit status {returncode})"
        super().__init__(message)


class RewriteError(VercutError):
    def __init__(self, path, cause):
        self.path = path
        self.cause = cause
        super().__init__(f"could not update {path}: {cause}")
