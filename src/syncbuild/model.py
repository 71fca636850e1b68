# model.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, List, Dict


@dataclass(frozen=True)
class Step:
    """A single shell command inside a build action."""
    name: str
    run: str
    cwd: str | None = None


@dataclass
class Checkout:
    """
    A working directory holding a clone of an external repository,
    pinned to one reference (tag, branch or commit).
    """
    destination: str
    repository: str
    reference: str
    remote: str = "origin"


@dataclass
class BuildAction:
    """
    Ordered shell steps run inside the checkout whenever it changes.

    `shell` selects the executable handed to subprocess (None -> /bin/sh).
    """
    steps: list[Step]
    env: Dict[str, str] = field(default_factory=dict)
    shell: Optional[str] = None


@dataclass
class Recipe:
    name: str
    checkout: Checkout
    build: BuildAction

    # tools that must already be provisioned on the host (e.g. git, make)
    requires: list[str] = field(default_factory=list)


# ----------------------------------------------------------------------
# Results
# ----------------------------------------------------------------------

@dataclass(frozen=True)
class SyncResult:
    destination: str
    reference: str
    before: Optional[str]   # HEAD before the sync (None if nothing was checked out)
    after: str              # commit the reference resolved to
    cloned: bool = False

    @property
    def changed(self) -> bool:
        return self.before != self.after


@dataclass(frozen=True)
class StepResult:
    name: str
    cmd: str
    returncode: int
    stdout: str = ""
    stderr: str = ""
    elapsed_s: float = 0.0

    @property
    def ok(self) -> bool:
        return self.returncode == 0


@dataclass
class RunResult:
    recipe: str
    sync: SyncResult
    steps: List[StepResult] = field(default_factory=list)

    @property
    def built(self) -> bool:
        return bool(self.steps)
