import re

import pytest

from conftest import FakeBuildChecker, FakeVCS
from vercut.config import DEFAULT_VERSION_SOURCES, Config
from vercut.errors import (
    Aborted,
    DirtyWorkingTree,
    ExternalToolError,
    InconsistentVersion,
    InvalidOperations,
    TagMismatch,
)
from vercut.pipeline import (
    Release,
    ReleaseOptions,
    Stage,
    TagPolicy,
    describe_operations,
    validate_operations,
)
from vercut.version import Strategy, Version, VersionIncrement, parse_increment

SOURCES = [(name, re.compile(p)) for name, p in DEFAULT_VERSION_SOURCES]


def snapshot(root):
    return {p: p.read_bytes() for p in root.rglob("*") if p.is_file()}


def make_release(root, vcs, checker, confirm=None, lines=None):
    kwargs = {}
    if confirm is not None:
        kwargs["confirm"] = confirm
    if lines is not None:
        kwargs["echo"] = lines.append
    return Release(root, vcs, checker, SOURCES, **kwargs)


def opts(inc="auto", **kw):
    return ReleaseOptions(parse_increment(inc), **kw)


def test_full_release(project, vcs, build_checker):
    lines = []
    release = make_release(project, vcs, build_checker, lines=lines)
    plan = release.run(opts("minor", commit=True, tag=True, push=True, force=True))

    assert plan.to_version == Version.parse("1.3.0")
    assert 'version = "1.3.0"' in (project / "Cargo.toml").read_text()
    assert (project / ".env").read_text().startswith('VERSION = "1.3.0"')
    assert build_checker.runs == 1
    assert vcs.mutations() == [
        ("commit_all", "Version 1.3.0"),
        ("push",),
        ("tag", "v1.3.0"),
        ("push_tag", "v1.3.0"),
    ]
    assert release.stage is Stage.DONE
    assert "Upgrading version 1.2.3 to 1.3.0" in lines
    assert "The following files will be changed, committed, tagged and pushed:" in lines
    assert "Upgraded!" in lines


def test_tag_without_commit_fails_first(project, vcs, build_checker):
    before = snapshot(project)
    release = make_release(project, vcs, build_checker, confirm=lambda plan: True)
    with pytest.raises(InvalidOperations):
        release.run(opts("patch", tag=True, force=True))
    assert release.stage is None
    assert vcs.calls == []
    assert build_checker.runs == 0
    assert snapshot(project) == before


def test_push_without_commit_fails(project, vcs, build_checker):
    with pytest.raises(InvalidOperations):
        make_release(project, vcs, build_checker).run(opts(push=True, force=True))


def test_decline_changes_nothing(project, vcs, build_checker):
    before = snapshot(project)
    seen = []

    def decline(plan):
        seen.append(plan)
        return False

    release = make_release(project, vcs, build_checker, confirm=decline)
    with pytest.raises(Aborted):
        release.run(opts("patch", commit=True, tag=True))
    assert release.stage is Stage.CONFIRM
    assert snapshot(project) == before
    assert vcs.mutations() == []
    assert build_checker.runs == 0
    assert sorted(f.as_posix() for f in seen[0].files) == [".env", "Cargo.toml", "README.md"]


def test_default_confirm_declines(project, vcs, build_checker):
    with pytest.raises(Aborted):
        Release(project, vcs, build_checker, SOURCES).run(opts())


def test_dirty_tree(project, build_checker):
    vcs = FakeVCS(clean=False)
    release = make_release(project, vcs, build_checker)
    with pytest.raises(DirtyWorkingTree):
        release.run(opts(force=True))
    assert release.stage is Stage.PRECONDITION


def test_inconsistent_versions_stop_discovery(project, vcs, build_checker):
    (project / ".env").write_text('VERSION = "1.2.4"\n')
    release = make_release(project, vcs, build_checker)
    with pytest.raises(InconsistentVersion):
        release.run(opts(force=True))
    assert release.stage is Stage.DISCOVER


def test_tag_mismatch(project, build_checker):
    vcs = FakeVCS(last_tag="v1.2.2")
    with pytest.raises(TagMismatch):
        make_release(project, vcs, build_checker).run(opts(force=True))


def test_bare_tag_convention(project, build_checker):
    vcs = FakeVCS(last_tag="1.2.3")
    plan = make_release(project, vcs, build_checker).run(
        opts("patch", commit=True, tag=True, force=True))
    assert plan.tag_name == "1.2.4"
    assert ("tag", "1.2.4") in vcs.calls


def test_build_check_failure_keeps_files(project, vcs):
    checker = FakeBuildChecker(ok=False)
    release = make_release(project, vcs, checker)
    with pytest.raises(ExternalToolError):
        release.run(opts("patch", commit=True, force=True))
    assert release.stage is Stage.VALIDATE
    # no rollback: the rewrite stays on disk, uncommitted
    assert 'version = "1.2.4"' in (project / "Cargo.toml").read_text()
    assert vcs.mutations() == []


def test_commit_failure_stops_integration(project, build_checker):
    vcs = FakeVCS(fail_on={"commit_all"})
    with pytest.raises(ExternalToolError):
        make_release(project, vcs, build_checker).run(
            opts(commit=True, tag=True, push=True, force=True))
    assert vcs.mutations() == [("commit_all", "Version 1.2.4")]


def test_push_failure_stops_tagging(project, build_checker):
    vcs = FakeVCS(fail_on={"push"})
    with pytest.raises(ExternalToolError):
        make_release(project, vcs, build_checker).run(
            opts(commit=True, tag=True, push=True, force=True))
    assert [c[0] for c in vcs.mutations()] == ["commit_all", "push"]


def test_no_git_operations(project, vcs, build_checker):
    lines = []
    plan = make_release(project, vcs, build_checker, lines=lines).run(opts(force=True))
    assert str(plan.to_version) == "1.2.4"
    assert vcs.mutations() == []
    assert "The following files will be changed:" in lines


def test_prerelease_then_auto(project, vcs, build_checker):
    make_release(project, vcs, build_checker).run(opts("pre", force=True))
    assert 'version = "1.2.3-pre"' in (project / "Cargo.toml").read_text()
    # the old tag does not need to match a pre-release
    vcs = FakeVCS(last_tag="v1.2.2")
    plan = make_release(project, vcs, build_checker).run(opts("auto", force=True))
    assert str(plan.to_version) == "1.2.3"
    assert (project / ".env").read_text().startswith('VERSION = "1.2.3"\n')


def test_empty_plan_is_not_an_error(tmp_path, vcs, build_checker):
    (tmp_path / "Cargo.toml").write_text('version = "1.0.0"\n')
    (tmp_path / ".gitignore").write_text("Cargo.toml\n")
    lines = []
    plan = make_release(tmp_path, vcs, build_checker, lines=lines).run(opts(force=True))
    assert plan.files == []
    assert "No files reference the current version." in lines
    assert build_checker.runs == 1
    assert (tmp_path / "Cargo.toml").read_text() == 'version = "1.0.0"\n'


def test_from_config(project, vcs, build_checker, monkeypatch):
    monkeypatch.setenv("VERCUT_TAG_MARKER", "release-")
    config = Config("test", root=project)
    release = Release.from_config(config, vcs, build_checker)
    plan = release.run(opts("major", commit=True, tag=True, force=True))
    assert plan.tag_name == "release-2.0.0"


def test_validate_operations():
    validate_operations(False, False, False)
    validate_operations(True, True, True)
    validate_operations(True, False, True)
    with pytest.raises(InvalidOperations):
        validate_operations(False, True, False)
    with pytest.raises(InvalidOperations):
        validate_operations(False, False, True)


def test_describe_operations():
    assert describe_operations(False, False, False) == ""
    assert describe_operations(True, False, False) == " and committed"
    assert describe_operations(True, True, False) == ", committed and tagged"
    assert describe_operations(True, False, True) == ", committed and pushed"
    assert describe_operations(True, True, True) == ", committed, tagged and pushed"


def test_tag_policy():
    policy = TagPolicy()
    v = Version.parse("1.3.0")
    assert policy.tag_for(v, None) == "v1.3.0"
    assert policy.tag_for(v, "v1.2.0") == "v1.3.0"
    assert policy.tag_for(v, "1.2.0") == "1.3.0"
    assert TagPolicy("").tag_for(v, None) == "1.3.0"


def test_exact_increment(project, vcs, build_checker):
    inc = VersionIncrement(Strategy.EXACT, Version.parse("0.0.1"))
    plan = make_release(project, vcs, build_checker).run(ReleaseOptions(inc, force=True))
    assert str(plan.from_version) == "1.2.3"
    assert 'version = "0.0.1"' in (project / "Cargo.toml").read_text()
