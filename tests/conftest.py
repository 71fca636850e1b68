from __future__ import annotations

import shlex
import shutil
import subprocess
from pathlib import Path

import pytest

from syncbuild.dsl import bash, git, recipe, sh
from syncbuild.ui.console import Console, set_console

TAG = "v2_02_103"

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git is not installed")


def git_cmd(cwd: Path, *args: str) -> str:
    out = subprocess.run(
        [
            "git",
            "-c", "user.name=syncbuild",
            "-c", "user.email=syncbuild@example.com",
            "-c", "commit.gpgsign=false",
            "-c", "tag.gpgsign=false",
            *args,
        ],
        cwd=str(cwd),
        check=True,
        capture_output=True,
        text=True,
    )
    return out.stdout.strip()


class Upstream:
    """A throwaway repository standing in for the external library."""

    def __init__(self, path: Path):
        self.path = path

    @property
    def url(self) -> str:
        return str(self.path)

    def commit(self, filename: str, content: str, message: str) -> str:
        (self.path / filename).write_text(content)
        git_cmd(self.path, "add", "-A")
        git_cmd(self.path, "commit", "-q", "-m", message)
        return self.sha("HEAD")

    def tag(self, name: str, ref: str = "HEAD") -> None:
        git_cmd(self.path, "tag", "-f", name, ref)

    def sha(self, ref: str) -> str:
        return git_cmd(self.path, "rev-parse", f"{ref}^{{commit}}")


@pytest.fixture(autouse=True)
def fresh_console():
    set_console(Console())
    yield
    set_console(Console())


@pytest.fixture
def upstream(tmp_path) -> Upstream:
    path = tmp_path / "upstream"
    path.mkdir()
    git_cmd(path, "init", "-q")
    git_cmd(path, "symbolic-ref", "HEAD", "refs/heads/main")

    up = Upstream(path)
    up.commit("configure", "#!/bin/sh\necho configured\n", "initial import")
    up.commit("Makefile", "device-mapper:\n\techo dm\n", "add Makefile")
    up.tag(TAG)
    return up


@pytest.fixture
def build_log(tmp_path) -> Path:
    return tmp_path / "build.log"


def logged(build_log: Path) -> list[str]:
    if not build_log.exists():
        return []
    return build_log.read_text().split()


@pytest.fixture
def make_recipe(tmp_path, upstream, build_log):
    """
    Recipe factory: the default build action appends one word per command to
    build_log, and only if it runs inside the checkout (where `configure` lives).
    """
    log = shlex.quote(str(build_log))

    def _make(reference: str = TAG, steps=None, destination=None, requires=None, env=None):
        dest = destination or (tmp_path / "checkout")
        if steps is None:
            steps = [
                sh("configure", f"test -f configure && echo configure >> {log}"),
                sh("build", f"test -f configure && echo build >> {log}"),
                sh("install", f"test -f configure && echo install >> {log}"),
            ]
        return recipe(
            "lvm2-test",
            git(str(dest), upstream.url, reference),
            bash(*steps, shell=None, env=env),
            requires=requires,
        )

    return _make
