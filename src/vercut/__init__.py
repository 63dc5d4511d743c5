"""
vercut - increment a project's version and release it

Finds the current version, rewrites every file that mentions it, runs a
build check, then commits, tags and pushes with git.
"""

__version__ = "0.2.0"
__author__ = "vercut Contributors"

from vercut.version import Version, VersionIncrement, Strategy, increment, parse_increment

__all__ = ["Version", "VersionIncrement", "Strategy", "increment", "parse_increment",
           "__version__"]
