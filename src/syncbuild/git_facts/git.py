# git.py
# Small, focused wrapper around the Git CLI.
# This module centralizes all Git interactions so the rest of the codebase
# never needs to call subprocess("git ...") directly.

from __future__ import annotations

import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from .. import settings
from ..model import SyncResult


@dataclass
class GitError(Exception):
    """A git invocation failed (or git itself could not be started)."""
    command: List[str]
    returncode: int
    stderr: str = ""

    def __str__(self) -> str:
        cmd = " ".join(["git", *self.command])
        msg = self.stderr.strip().splitlines()[-1] if self.stderr.strip() else "no output"
        return f"`{cmd}` failed (exit={self.returncode}): {msg}"


def _git(args: list[str], cwd: Optional[str | Path] = None) -> str:
    """
    Execute a git command and return its stdout as a clean string.

    This is the single low-level entry point for all Git operations in this file.
    Every other function builds on top of this to ensure:
    - consistent invocation of git
    - consistent text output (not bytes)
    - one error type (GitError) carrying git's own stderr

    Args:
        args: List of git arguments (e.g. ["fetch", "--tags", "origin"])
        cwd: Optional working directory in which to run the git command.

    Returns:
        Stdout from the git command with surrounding whitespace removed.

    Raises:
        GitError: git exited non-zero, or the git executable was not found.
    """
    try:
        proc = subprocess.run(
            [settings.GIT_EXECUTABLE, *args],
            cwd=str(cwd) if cwd is not None else None,
            text=True,   # return output as str instead of bytes
            capture_output=True,
        )
    except FileNotFoundError:
        raise GitError(command=list(args), returncode=127, stderr="git command not found")

    if proc.returncode != 0:
        raise GitError(command=list(args), returncode=proc.returncode, stderr=proc.stderr)

    # Strip trailing newlines so callers can do clean string comparisons
    return proc.stdout.strip()


def is_checkout(path: str | Path) -> bool:
    """
    Return True if `path` is the top level of a git working tree.

    A directory nested inside some other repository does not count:
    we compare git's notion of the top level against the path itself.
    """
    p = Path(path)
    if not (p / ".git").exists():
        return False
    try:
        top = _git(["rev-parse", "--show-toplevel"], cwd=p)
    except GitError:
        return False
    return Path(top).resolve() == p.resolve()


def head_sha(path: str | Path) -> Optional[str]:
    """
    Return the full SHA of HEAD in the checkout at `path`.

    Returns None when HEAD is unborn, e.g. right after `git clone --no-checkout`
    of an empty repository.
    """
    try:
        # --verify makes rev-parse fail instead of echoing the literal "HEAD"
        return _git(["rev-parse", "--verify", "--quiet", "HEAD^{commit}"], cwd=path)
    except GitError:
        return None


def remote_url(path: str | Path, remote: str = "origin") -> Optional[str]:
    """Return the configured URL of `remote`, or None if it is not set."""
    try:
        return _git(["remote", "get-url", remote], cwd=path)
    except GitError:
        return None


def resolve_reference(path: str | Path, reference: str, remote: str = "origin") -> str:
    """
    Resolve `reference` to a commit SHA using only objects already present locally.

    Lookup order:
      1. remote-tracking branch `<remote>/<reference>` (so branch pins follow updates)
      2. the reference as given (tag, full or abbreviated commit SHA, local ref)

    Raises:
        GitError: if none of the candidates names a commit.
    """
    candidates = [f"{remote}/{reference}", reference]
    for cand in candidates:
        try:
            return _git(["rev-parse", "--verify", "--quiet", f"{cand}^{{commit}}"], cwd=path)
        except GitError:
            continue

    raise GitError(
        command=["rev-parse", "--verify", reference],
        returncode=128,
        stderr=f"reference not found: {reference}",
    )


def _is_empty_dir(p: Path) -> bool:
    return p.is_dir() and not any(p.iterdir())


def has_worktree(path: str | Path) -> bool:
    """
    Return True once anything has been checked out into the checkout at `path`.

    `git clone --no-checkout` leaves HEAD pointing at the remote default branch
    but writes no index, so HEAD alone says nothing about the files on disk.
    """
    try:
        index = _git(["rev-parse", "--git-path", "index"], cwd=path)
    except GitError:
        return False
    return (Path(path) / index).exists()


def sync(
    destination: str | Path,
    repository: str,
    reference: str,
    *,
    remote: str = "origin",
) -> SyncResult:
    """
    Bring `destination` to exactly the tree at `reference` in `repository`.

    Steps:
      - missing (or empty) destination: clone, then check out the reference
      - existing checkout: remember HEAD, re-point the remote if its URL moved,
        then fetch branches and tags
      - resolve the reference to a commit
      - if HEAD already is that commit, stop (unchanged)
      - otherwise force-checkout the commit (detached), discarding local edits
        to tracked files

    The returned SyncResult.changed is the trigger for the build action.

    Failure guarantees:
      - a failed fetch or unknown reference leaves an existing checkout as it was
      - a fresh clone is removed again if resolving or checking out the reference
        fails or is interrupted

    Raises:
        GitError: on any git failure, or if destination is a non-empty
                  directory that is not a git checkout.
    """
    dest = Path(destination)

    if is_checkout(dest):
        cloned = False
        # a clone that was interrupted before its first checkout has nothing on disk
        before = head_sha(dest) if has_worktree(dest) else None

        current_url = remote_url(dest, remote)
        if current_url != repository:
            # `remote add` when the remote is missing entirely, `set-url` otherwise
            if current_url is None:
                _git(["remote", "add", remote, repository], cwd=dest)
            else:
                _git(["remote", "set-url", remote, repository], cwd=dest)

        # --force lets moved tags overwrite the local copy
        _git(["fetch", "--tags", "--force", "--prune", remote], cwd=dest)
        after = resolve_reference(dest, reference, remote)

    else:
        if dest.exists() and not _is_empty_dir(dest):
            raise GitError(
                command=["clone", repository, str(dest)],
                returncode=128,
                stderr=f"destination exists and is not a git checkout: {dest}",
            )

        created = not dest.exists()
        cloned = True
        before = None

        # git clone cleans up after itself if it fails
        _git(["clone", "--no-checkout", "--origin", remote, repository, str(dest)])
        try:
            after = resolve_reference(dest, reference, remote)
            _git(["checkout", "--quiet", "--force", "--detach", after], cwd=dest)
        except BaseException:
            shutil.rmtree(dest, ignore_errors=True)
            if not created:
                dest.mkdir(parents=True, exist_ok=True)
            raise

    result = SyncResult(
        destination=str(dest), reference=reference, before=before, after=after, cloned=cloned
    )
    if result.changed and not cloned:
        _git(["checkout", "--quiet", "--force", "--detach", after], cwd=dest)

    return result


def local_status(destination: str | Path, reference: str, remote: str = "origin") -> str:
    """
    Compare a checkout against its pinned reference without touching the network.

    Returns one of:
      - "missing":    destination is not a git checkout
      - "unknown":    the reference has not been fetched yet
      - "up-to-date": HEAD is the commit the reference names
      - "outdated":   HEAD is something else, or nothing was ever checked out
    """
    dest = Path(destination)
    if not is_checkout(dest):
        return "missing"

    try:
        target = resolve_reference(dest, reference, remote)
    except GitError:
        return "unknown"

    if not has_worktree(dest):
        return "outdated"
    return "up-to-date" if head_sha(dest) == target else "outdated"
