# runner.py
from __future__ import annotations

import os
import runpy
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from . import settings
from .errors import BuildError, PrerequisiteError, SyncError
from .model import Recipe, RunResult, Step, StepResult, SyncResult
from .git_facts.git import GitError, sync
from .recipes import BUILTIN_RECIPES
from .ui.console import get_console

# pinned ref ---> git sync ---> changed? ---> configure / make / make install


TOOL_HINTS = {
    "git": "Install git (e.g., apt-get install git) or fix PATH.",
    "make": "Install build tools (e.g., apt-get install build-essential).",
    "gcc": "Install a C compiler (e.g., apt-get install build-essential).",
    "cc": "Install a C compiler (e.g., apt-get install build-essential).",
    "autoconf": "Install autoconf (e.g., apt-get install autoconf).",
}


# ----------------------------------------------------------------------
# Recipe loading (built-in name or local file)
# ----------------------------------------------------------------------

def load_recipe(path: str | Path) -> Recipe:
    """
    Load a recipe by built-in name (e.g. "lvm2") or from a python file path.

    The file must define either:
      - recipe() -> Recipe
      - RECIPE = Recipe(...)

    Returns:
      Recipe
    """
    if str(path) in BUILTIN_RECIPES:
        return BUILTIN_RECIPES[str(path)]()

    recipe_path = Path(path).expanduser().resolve()
    if not recipe_path.exists():
        raise FileNotFoundError(f"Recipe file not found: {recipe_path}")
    if recipe_path.suffix != ".py":
        raise ValueError(f"Recipe must be a .py file, got: {recipe_path.name}")

    module_name = f"syncbuild_recipe_{recipe_path.stem}"
    globals_dict = runpy.run_path(str(recipe_path), run_name=module_name)

    found = None
    if "recipe" in globals_dict and callable(globals_dict["recipe"]):
        try:
            found = globals_dict["recipe"]()
        except TypeError as e:
            if "missing" in str(e) and "argument" in str(e):
                raise TypeError(
                    "Your recipe() is being shadowed by the DSL helper of the same name. "
                    "Import it under another name: `from syncbuild.dsl import recipe as make_recipe`."
                ) from e
            raise
    elif "RECIPE" in globals_dict:
        found = globals_dict["RECIPE"]

    if not isinstance(found, Recipe):
        raise TypeError(
            "Recipe file must return/define a Recipe. "
            "Define recipe() -> Recipe or RECIPE = Recipe(...)."
        )

    return found


# ----------------------------------------------------------------------
# Errors
# ----------------------------------------------------------------------

@dataclass
class StepFailure(Exception):
    step: str
    cmd: str
    exit_code: Optional[int]   # None when the command never started
    stdout: str = ""
    stderr: str = ""
    reason: str = ""

    def __str__(self) -> str:
        if self.exit_code is None:
            return f"step '{self.step}' could not start: {self.reason}"
        return f"step '{self.step}' failed (exit={self.exit_code}): {self.cmd}"


# ----------------------------------------------------------------------
# Execution primitives
# ----------------------------------------------------------------------

def _tail(text: str) -> str:
    return text[-settings.OUTPUT_TAIL:] if text else ""


def _run_step(recipe: Recipe, step: Step, checkout_root: Path) -> StepResult:
    cwd = (checkout_root / (step.cwd or ".")).resolve()
    if not cwd.exists():
        raise StepFailure(
            step=step.name,
            cmd=step.run,
            exit_code=None,
            reason=f"cwd not found: {cwd}",
        )

    env = os.environ.copy()
    env.update(recipe.build.env or {})

    started = time.monotonic()
    try:
        proc = subprocess.run(
            step.run,
            shell=True,
            cwd=str(cwd),
            env=env,
            executable=recipe.build.shell,
            text=True,
            capture_output=True,   # so you can show output on failure
        )
    except OSError as e:
        # e.g. the configured shell is missing or not executable
        raise StepFailure(step=step.name, cmd=step.run, exit_code=None, reason=str(e)) from e
    result = StepResult(
        name=step.name,
        cmd=step.run,
        returncode=proc.returncode,
        stdout=proc.stdout,
        stderr=proc.stderr,
        elapsed_s=time.monotonic() - started,
    )

    if proc.returncode != 0:
        raise StepFailure(
            step=step.name,
            cmd=step.run,
            exit_code=proc.returncode,
            stdout=_tail(proc.stdout),
            stderr=_tail(proc.stderr),
        )
    return result


def run_build(recipe: Recipe) -> List[StepResult]:
    """
    Run every build step in order inside the checkout.
    Stops at the first non-zero exit (raises StepFailure).
    """
    console = get_console()
    root = Path(recipe.checkout.destination)

    results: List[StepResult] = []
    for step in recipe.build.steps:
        console.print_step(step.name)
        result = _run_step(recipe, step, root)
        console.print_step_output(result)
        results.append(result)
    return results


def check_prerequisites(recipe: Recipe) -> None:
    """Every tool in recipe.requires must already be installed."""
    for tool in recipe.requires:
        try:
            subprocess.run(
                [tool, "--version"],
                capture_output=True,
                check=True,
            )
        except (subprocess.CalledProcessError, OSError):
            hint = TOOL_HINTS.get(tool, f"Install {tool} or fix PATH.")
            raise PrerequisiteError(
                recipe=recipe.name,
                message=f"{tool} is not available",
                details={"hint": hint},
                tool=tool,
                hint=hint,
            )


# ----------------------------------------------------------------------
# Public API
# ----------------------------------------------------------------------

def sync_checkout(recipe: Recipe) -> SyncResult:
    co = recipe.checkout
    try:
        return sync(co.destination, co.repository, co.reference, remote=co.remote)
    except GitError as e:
        raise SyncError(
            recipe=recipe.name,
            message=str(e),
            details={
                "repository": co.repository,
                "reference": co.reference,
                "destination": co.destination,
            },
        ) from e


def run_recipe(recipe: Recipe) -> RunResult:
    """
    Sync the checkout, then run the build action iff the checkout changed.

    Raises:
      PrerequisiteError: a required tool is missing (nothing touched)
      SyncError: git could not bring the checkout to the reference (no build)
      BuildError: a build step failed; the checkout stays at the new revision
    """
    console = get_console()
    check_prerequisites(recipe)

    synced = sync_checkout(recipe)
    console.print_sync(synced)

    result = RunResult(recipe=recipe.name, sync=synced)
    if not synced.changed:
        console.print_build_skipped()
        return result

    try:
        result.steps = run_build(recipe)
    except StepFailure as e:
        raise BuildError(
            recipe=recipe.name,
            message=str(e),
            details={"destination": recipe.checkout.destination, "revision": synced.after},
            step=e.step,
            returncode=e.exit_code,
            stdout=e.stdout,
            stderr=e.stderr,
            sync=synced,
        ) from e

    return result
