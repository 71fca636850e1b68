# errors.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar, Optional

from .model import SyncResult


@dataclass
class RecipeError(Exception):
    """
    Structured recipe failure with enough context for:
      - clean CLI output
      - a distinct process exit code per failure kind
      - debugging without full tracebacks
    """
    kind: ClassVar[str] = "error"
    exit_code: ClassVar[int] = 1

    recipe: str
    message: str
    details: dict = field(default_factory=dict)

    def __str__(self) -> str:
        lines = [f"{self.kind}: {self.message}", f"recipe={self.recipe}"]
        for k, v in self.details.items():
            lines.append(f"{k}={v}")
        return "\n".join(lines)


@dataclass
class SyncError(RecipeError):
    """Remote unreachable, reference not found, or destination unusable."""
    kind: ClassVar[str] = "sync"
    exit_code: ClassVar[int] = 3


@dataclass
class BuildError(RecipeError):
    """
    A build step exited non-zero.

    The checkout has already moved to the new revision when this is raised;
    `sync` records where it went.
    """
    kind: ClassVar[str] = "build"
    exit_code: ClassVar[int] = 4

    step: Optional[str] = None
    returncode: Optional[int] = None
    stdout: str = ""
    stderr: str = ""
    sync: Optional[SyncResult] = None


@dataclass
class PrerequisiteError(RecipeError):
    kind: ClassVar[str] = "prerequisite"
    exit_code: ClassVar[int] = 5

    tool: str = ""
    hint: str = ""
