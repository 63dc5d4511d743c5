import pytest

from vercut.config import reset_config
from vercut.errors import ExternalToolError


class FakeVCS:
    def __init__(self, clean=True, last_tag=None, fail_on=()):
        self.clean = clean
        self._last_tag = last_tag
        self.fail_on = set(fail_on)
        self.calls = []

    def _do(self, name, *args):
        self.calls.append((name,) + args)
        if name in self.fail_on:
            raise ExternalToolError(f"{name} failed", returncode=1)

    def is_clean(self):
        self.calls.append(("is_clean",))
        return self.clean

    def last_tag(self):
        self.calls.append(("last_tag",))
        return self._last_tag

    def commit_all(self, message):
        self._do("commit_all", message)

    def tag(self, name):
        self._do("tag", name)

    def push(self):
        self._do("push")

    def push_tag(self, name):
        self._do("push_tag", name)

    def mutations(self):
        return [c for c in self.calls if c[0] not in ("is_clean", "last_tag")]


class FakeBuildChecker:
    def __init__(self, ok=True):
        self.ok = ok
        self.runs = 0

    def check(self):
        self.runs += 1
        if not self.ok:
            raise ExternalToolError("cargo check -q failed", returncode=101)


@pytest.fixture(autouse=True)
def _fresh_config():
    reset_config()
    yield
    reset_config()


@pytest.fixture
def vcs():
    return FakeVCS()


@pytest.fixture
def build_checker():
    return FakeBuildChecker()


@pytest.fixture
def project(tmp_path):
    """A small cargo project at version 1.2.3."""
    (tmp_path / "Cargo.toml").write_text(
        '[package]\nname = "demo"\nversion = "1.2.3"\nedition = "2021"\n\n'
        '[dependencies]\nserde = { version = "1.2.3" }\n'
    )
    (tmp_path / ".env").write_text('VERSION = "1.2.3"\nOTHER=11.2.3\n')
    (tmp_path / "Cargo.lock").write_text(
        '[[package]]\nname = "demo"\nversion = "1.2.3"\n'
    )
    (tmp_path / "README.md").write_text("Install demo 1.2.3 (not 1.2.30).\n")
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "main.rs").write_text('fn main() { println!("hello"); }\n')
    return tmp_path
