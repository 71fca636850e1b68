# dsl.py
from __future__ import annotations

from dataclasses import replace
from typing import Dict, List, Optional

from .model import BuildAction, Checkout, Recipe, Step


# ---------------------------------------------------------------------
# Step helpers
# ---------------------------------------------------------------------

def sh(name: str, cmd: str, *, cwd: str | None = None) -> Step:
    """Create a shell step."""
    return Step(name=name, run=cmd, cwd=cwd)


def script(code: str, *, cwd: str | None = None) -> List[Step]:
    """
    Split a heredoc-style block into one step per command line.

    Blank lines and `#` comments are dropped; each step is named after its command,
    so a failure points at the exact line:

        script('''
            ./configure --enable-static_link
            make device-mapper
        ''')
    """
    steps: List[Step] = []
    for line in code.splitlines():
        cmd = line.strip()
        if not cmd or cmd.startswith("#"):
            continue
        steps.append(Step(name=cmd, run=cmd, cwd=cwd))
    return steps


# ---------------------------------------------------------------------
# Resource helpers
# ---------------------------------------------------------------------

def git(destination: str, repository: str, reference: str, *, remote: str = "origin") -> Checkout:
    for label, value in (("destination", destination), ("repository", repository), ("reference", reference)):
        if not value or not str(value).strip():
            raise ValueError(f"git(): {label} must not be empty")
    return Checkout(destination=destination, repository=repository, reference=reference, remote=remote)


def bash(
    *steps: Step | List[Step],  # allow: bash(sh(...), sh(...)) and bash(script(...))
    env: Optional[Dict[str, str]] = None,
    shell: str | None = "/bin/bash",
    cwd: str | None = None,  # default cwd applied to steps missing cwd
) -> BuildAction:
    steps_final: List[Step] = []
    for s in steps:
        if isinstance(s, list):
            steps_final.extend(s)
        else:
            steps_final.append(s)

    if not steps_final:
        raise ValueError("bash() must have at least one step")

    if cwd is not None:
        steps_final = [s if s.cwd is not None else replace(s, cwd=cwd) for s in steps_final]

    # force values to str for env compatibility
    env_final = {k: str(v) for k, v in (env or {}).items()}
    return BuildAction(steps=steps_final, env=env_final, shell=shell)


def recipe(
    name: str,
    checkout: Checkout,
    build: BuildAction,
    *,
    requires: Optional[List[str]] = None,
) -> Recipe:
    if not build.steps:
        raise ValueError(f"recipe({name!r}) build action has no steps")
    return Recipe(name=name, checkout=checkout, build=build, requires=list(requires or []))


# ---------------------------------------------------------------------
# Builder API
# ---------------------------------------------------------------------

class RecipeBuilder:
    """
    Fluent alternative to recipe():

        RecipeBuilder("lvm2")
            .sync("/usr/local/lvm2", "https://...", "v2_02_103")
            .define_step("configure", "./configure")
            .define_requirements("git", "make")
            .build()
    """
    def __init__(self, name: str):
        self.name = name
        self._checkout: Optional[Checkout] = None
        self._steps: list[Step] = []
        self._env: dict[str, str] = {}
        self._requires: list[str] = []
        self._shell: str | None = "/bin/bash"

    def sync(self, destination: str, repository: str, reference: str, *, remote: str = "origin"):
        self._checkout = git(destination, repository, reference, remote=remote)
        return self

    def define_step(self, name: str, run: str, cwd: str | None = None):
        self._steps.append(Step(name=name, run=run, cwd=cwd))
        return self

    def define_requirements(self, *tools: str):
        self._requires.extend(tools)
        return self

    def with_env(self, **env):
        self._env.update({k: str(v) for k, v in env.items()})
        return self

    def with_shell(self, shell: str | None):
        self._shell = shell
        return self

    def build(self) -> Recipe:
        if self._checkout is None:
            raise ValueError(f"Recipe '{self.name}' has no checkout; call .sync(...) first")
        if not self._steps:
            raise ValueError(f"Recipe '{self.name}' has no steps")

        return Recipe(
            name=self.name,
            checkout=self._checkout,
            build=BuildAction(steps=list(self._steps), env=dict(self._env), shell=self._shell),
            requires=list(self._requires),
        )
