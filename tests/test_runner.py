from __future__ import annotations

import os
import shlex
import textwrap

import pytest

from syncbuild.dsl import sh
from syncbuild.errors import BuildError, PrerequisiteError, SyncError
from syncbuild.git_facts.git import head_sha, sync
from syncbuild.model import Recipe
from syncbuild.runner import check_prerequisites, load_recipe, run_recipe

from conftest import TAG, git_cmd, logged, requires_git


@requires_git
def test_missing_destination_is_cloned_and_built_once(tmp_path, upstream, build_log, make_recipe):
    r = make_recipe()

    result = run_recipe(r)

    assert result.sync.cloned
    assert result.sync.changed
    assert result.built
    assert [s.name for s in result.steps] == ["configure", "build", "install"]
    assert all(s.ok for s in result.steps)
    assert logged(build_log) == ["configure", "build", "install"]
    assert head_sha(tmp_path / "checkout") == upstream.sha(TAG)


@requires_git
def test_second_run_does_not_build_again(build_log, make_recipe):
    r = make_recipe()

    first = run_recipe(r)
    second = run_recipe(r)

    assert first.built
    assert not second.built
    assert not second.sync.changed
    assert logged(build_log) == ["configure", "build", "install"]


@requires_git
def test_checkout_already_at_reference_runs_no_commands(tmp_path, upstream, build_log, make_recipe):
    sync(tmp_path / "checkout", upstream.url, TAG)

    result = run_recipe(make_recipe())

    assert not result.built
    assert result.steps == []
    assert not build_log.exists()


@requires_git
def test_moved_reference_rebuilds(upstream, build_log, make_recipe):
    r = make_recipe()
    run_recipe(r)

    new_sha = upstream.commit("NEWS", "respin\n", "respin")
    upstream.tag(TAG)
    result = run_recipe(r)

    assert result.sync.after == new_sha
    assert result.built
    assert logged(build_log) == ["configure", "build", "install"] * 2


@requires_git
def test_build_failure_keeps_checkout_at_new_revision(tmp_path, upstream, build_log, make_recipe):
    log = shlex.quote(str(build_log))
    r = make_recipe(
        steps=[
            sh("configure", f"echo configure >> {log}"),
            sh("build", "echo 'make: *** [device-mapper] Error 2' >&2; exit 3"),
            sh("install", f"echo install >> {log}"),
        ]
    )

    with pytest.raises(BuildError) as exc:
        run_recipe(r)

    err = exc.value
    assert err.exit_code == 4
    assert err.step == "build"
    assert err.returncode == 3
    assert "Error 2" in err.stderr
    assert err.sync is not None and err.sync.after == upstream.sha(TAG)
    assert head_sha(tmp_path / "checkout") == upstream.sha(TAG)
    assert logged(build_log) == ["configure"]

    # no rollback: the next run sees an unchanged checkout and does not build
    again = run_recipe(r)
    assert not again.built


@requires_git
def test_missing_step_directory_is_a_build_error(make_recipe):
    r = make_recipe(steps=[sh("configure", "true", cwd="no-such-subdir")])

    with pytest.raises(BuildError, match="cwd not found") as exc:
        run_recipe(r)

    assert exc.value.step == "configure"
    assert exc.value.returncode is None


@requires_git
def test_unknown_reference_is_a_sync_error(tmp_path, build_log, make_recipe):
    with pytest.raises(SyncError) as exc:
        run_recipe(make_recipe(reference="v9_99_999"))

    assert exc.value.exit_code == 3
    assert exc.value.details["reference"] == "v9_99_999"
    assert not build_log.exists()
    assert not (tmp_path / "checkout").exists()


@requires_git
def test_unreachable_remote_is_a_sync_error(tmp_path, upstream, build_log, make_recipe):
    r = make_recipe()
    run_recipe(r)
    upstream.path.rename(tmp_path / "gone")

    with pytest.raises(SyncError, match="fetch"):
        run_recipe(r)

    assert logged(build_log) == ["configure", "build", "install"]


@requires_git
def test_step_output_and_env_are_captured(make_recipe):
    r = make_recipe(steps=[sh("show", "echo $SYNCBUILD_FLAVOUR")], env={"SYNCBUILD_FLAVOUR": "static"})

    result = run_recipe(r)

    assert result.steps[0].stdout.strip() == "static"
    assert result.steps[0].elapsed_s >= 0


@requires_git
def test_missing_prerequisite_stops_before_sync(tmp_path, make_recipe):
    r = make_recipe(requires=["syncbuild-no-such-tool"])

    with pytest.raises(PrerequisiteError) as exc:
        run_recipe(r)

    assert exc.value.tool == "syncbuild-no-such-tool"
    assert exc.value.exit_code == 5
    assert not (tmp_path / "checkout").exists()


@requires_git
def test_prerequisite_hint_for_known_tool(monkeypatch, make_recipe):
    def fake_run(cmd, **kwargs):
        raise FileNotFoundError(cmd[0])

    monkeypatch.setattr("syncbuild.runner.subprocess.run", fake_run)

    with pytest.raises(PrerequisiteError) as exc:
        check_prerequisites(make_recipe(requires=["make"]))

    assert "build-essential" in exc.value.hint


# ----------------------------------------------------------------------
# Recipe loading
# ----------------------------------------------------------------------

def test_load_builtin_recipe():
    r = load_recipe("lvm2")

    assert r.checkout.destination == "/usr/local/lvm2"
    assert r.checkout.repository == "https://git.fedorahosted.org/git/lvm2.git"
    assert r.checkout.reference == TAG
    assert [s.run for s in r.build.steps] == [
        "./configure --enable-static_link",
        "make device-mapper",
        "make install_device-mapper",
    ]
    assert r.build.shell == "/bin/bash"


def test_load_recipe_function(tmp_path):
    path = tmp_path / "demo_recipe.py"
    path.write_text(textwrap.dedent("""
        from syncbuild.dsl import bash, git, recipe as make_recipe, sh

        def recipe():
            return make_recipe("demo", git("/tmp/demo", "https://example.com/demo.git", "v1"), bash(sh("x", "true")))
    """))

    r = load_recipe(path)

    assert isinstance(r, Recipe)
    assert r.name == "demo"


def test_load_recipe_constant(tmp_path):
    path = tmp_path / "demo_recipe.py"
    path.write_text(textwrap.dedent("""
        from syncbuild.dsl import RecipeBuilder

        RECIPE = (
            RecipeBuilder("demo")
            .sync("/tmp/demo", "https://example.com/demo.git", "v1")
            .define_step("x", "true")
            .build()
        )
    """))

    assert load_recipe(path).checkout.reference == "v1"


def test_load_recipe_shadowed_helper(tmp_path):
    path = tmp_path / "demo_recipe.py"
    path.write_text("from syncbuild.dsl import recipe\n")

    with pytest.raises(TypeError, match="shadowed"):
        load_recipe(path)


def test_load_recipe_without_recipe(tmp_path):
    path = tmp_path / "demo_recipe.py"
    path.write_text("X = 1\n")

    with pytest.raises(TypeError, match="must return/define a Recipe"):
        load_recipe(path)


def test_load_recipe_missing_and_wrong_suffix(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_recipe(tmp_path / "nope.py")

    other = tmp_path / "recipe.txt"
    other.write_text("")
    with pytest.raises(ValueError):
        load_recipe(other)


@requires_git
def test_missing_shell_is_a_build_error_naming_the_step(make_recipe, tmp_path):
    r = make_recipe(steps=[sh("configure", "true")])
    r.build.shell = str(tmp_path / "no-such-shell")

    with pytest.raises(BuildError, match="could not start") as exc:
        run_recipe(r)

    assert exc.value.step == "configure"


@requires_git
def test_clone_interrupted_before_checkout_is_built_on_next_run(tmp_path, upstream, build_log, make_recipe):
    dest = tmp_path / "checkout"
    git_cmd(tmp_path, "clone", "-q", "--no-checkout", upstream.url, str(dest))

    result = run_recipe(make_recipe(reference="main"))

    assert result.sync.changed
    assert result.built
    assert (dest / "configure").exists()
    assert logged(build_log) == ["configure", "build", "install"]


@requires_git
def test_tool_on_path_but_not_executable_is_a_prerequisite_error(tmp_path, monkeypatch, make_recipe):
    bindir = tmp_path / "bin"
    bindir.mkdir()
    tool = bindir / "syncbuild-noexec"
    tool.write_text("#!/bin/sh\nexit 0\n")
    tool.chmod(0o644)
    monkeypatch.setenv("PATH", f"{bindir}{os.pathsep}{os.environ.get('PATH', '')}")

    with pytest.raises(PrerequisiteError) as exc:
        check_prerequisites(make_recipe(requires=["syncbuild-noexec"]))

    assert exc.value.tool == "syncbuild-noexec"
