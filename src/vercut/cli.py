"""Command-line interface for vercut"""

import sys
import logging
from pathlib import Path

import click

from vercut import __version__
from vercut.errors import VercutError, VersionParseError
from vercut.version import parse_increment

__all__ = ["main", "cli"]

logger = logging.getLogger(__name__)


class IncrementType(click.ParamType):
    name = "increment"

    def convert(self, value, param, ctx):
        if not isinstance(value, str):
            return value
        try:
            return parse_increment(value)
        except VersionParseError as e:
            self.fail(f"{e}. Use auto, patch, minor, major, strip, pre or an exact version.",
                      param, ctx)


def _echo(line):
    click.echo(line, err=True)


def _confirm(plan):
    return click.confirm("Do you want to continue?", err=True)


@click.command()
@click.version_option(version=__version__)
@click.argument("increment", type=IncrementType(), default="auto")
@click.option("-c", "--commit", is_flag=True, help="Commit the version changes")
@click.option("-t", "--tag", is_flag=True, help="Tag the commit. Requires -c / --commit")
@click.option("-p", "--push", is_flag=True,
              help="Push the commit and tag. Requires -c / --commit")
@click.option("-y", "--force", is_flag=True, help="Skip the interactive confirm step")
@click.option("--root", type=click.Path(exists=True, file_okay=False, path_type=Path),
              default=None, help="Project root (default: current directory)")
@click.option("--no-build-check", is_flag=True, help="Do not run the build check")
@click.option("--debug/--no-debug", default=False, help="Enable debug logging")
def cli(increment, commit, tag, push, force, root, no_build_check, debug):
    """Increment the project version and release it.

    INCREMENT is one of auto, patch, minor, major, strip, pre or an exact
    version such as 1.0.3. The default, auto, is patch for a release and
    strip for a pre-release.
    """
    from vercut.build import CommandBuildChecker, NullBuildChecker
    from vercut.config import get_config
    from vercut.git import Git
    from vercut.pipeline import Release, ReleaseOptions

    config = get_config("development" if debug else "production", root)
    config.setup_logger()

    vcs = Git(config.root, config.GIT_PATH)
    if no_build_check or not config.BUILD_CHECK_COMMAND:
        checker = NullBuildChecker()
    else:
        checker = CommandBuildChecker(config.root, config.BUILD_CHECK_COMMAND)

    release = Release.from_config(config, vcs, checker, confirm=_confirm, echo=_echo)
    options = ReleaseOptions(increment, commit=commit, tag=tag, push=push, force=force)
    try:
        plan = release.run(options)
    except VercutError as e:
        logger.debug(f"Release stopped at stage {release.stage}")
        raise click.ClickException(str(e)) from e
    if plan.commit:
        _echo(f"Released {plan.to_version}")


def main():
    """Main entry point"""
    try:
        cli(standalone_mode=False)
    except click.exceptions.Abort:
        click.echo("\nAborted!", err=True)
        sys.exit(1)
    except click.ClickException as e:
        e.show()
        sys.exit(e.exit_code)
    except KeyboardInterrupt:
        click.echo("\nInterrupted", err=True)
        sys.exit(1)
    except Exception as e:
        click.echo(f"❌ Error: {e}", err=True)
        if "--debug" in sys.argv:
            import traceback

            traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
