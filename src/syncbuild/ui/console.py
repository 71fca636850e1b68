"""Console output formatting utilities for syncbuild."""

from __future__ import annotations

import sys
from typing import Optional

from ..model import RunResult, StepResult, SyncResult


class Console:
    """Centralized console output formatting."""

    def __init__(self, debug: bool = False):
        """
        Initialize console formatter.

        Args:
            debug: If True, show captured step output and stack traces
        """
        self.debug = debug

    def print_run_started(
        self,
        recipe: str,
        repository: str,
        reference: str,
        destination: str,
    ) -> None:
        """Print run start information."""
        print("\nRUN STARTED")
        print(f"Recipe: {recipe}")
        print(f"Repository: {repository}")
        print(f"Reference: {reference}")
        print(f"Destination: {destination}")
        print()

    def print_sync(self, result: SyncResult) -> None:
        """Print the outcome of the checkout sync."""
        after = result.after[:12]
        if result.cloned:
            print(f"SYNC: cloned ({after})")
        elif result.changed:
            before = result.before[:12] if result.before else "none"
            print(f"SYNC: updated ({before} -> {after})")
        else:
            print(f"SYNC: up to date ({after})")

    def print_build_skipped(self) -> None:
        print("BUILD: skipped (checkout unchanged)")

    def print_step(self, name: str) -> None:
        """Print step start message."""
        print(f"STEP: {name}")

    def print_step_output(self, result: StepResult) -> None:
        """Print captured step output (debug mode only)."""
        if not self.debug:
            return
        for stream in (result.stdout, result.stderr):
            text = stream.rstrip()
            if text:
                print(text)

    def print_failure(
        self,
        name: str,
        reason: str,
        exit_code: Optional[int] = None,
        hint: Optional[str] = None,
        output: Optional[str] = None,
    ) -> None:
        """
        Print failure message.

        Args:
            name: Step or phase name
            reason: Failure reason/error message
            exit_code: Optional exit code
            hint: Optional hint for user
            output: Optional captured output tail
        """
        print(f"FAILED: {name}", file=sys.stderr)
        if exit_code is not None:
            print(f"Exit code: {exit_code}", file=sys.stderr)
        if hint:
            print(f"Hint: {hint}", file=sys.stderr)
        if self.debug:
            print(f"Error details: {reason}", file=sys.stderr)
        else:
            error_line = reason.split('\n')[0] if reason else "Unknown error"
            print(f"Error: {error_line}", file=sys.stderr)
        if output and output.strip():
            print(output.rstrip(), file=sys.stderr)

    def print_results(self, result: RunResult) -> None:
        """Print final results summary."""
        print("\n" + "=" * 40)
        print("RESULTS")
        print("=" * 40)
        print(f"  sync: {'CHANGED' if result.sync.changed else 'UNCHANGED'}")
        if result.built:
            print(f"  build: SUCCESS ({len(result.steps)} step(s))")
        else:
            print("  build: SKIPPED")

    def print_status(self, recipe: str, destination: str, reference: str, status: str) -> None:
        print(f"{recipe}: {status}")
        print(f"  destination: {destination}")
        print(f"  reference: {reference}")

    def print_error(
        self,
        title: str,
        message: str,
        details: Optional[list[str]] = None,
        suggestion: Optional[str] = None,
    ) -> None:
        """
        Print structured error message.

        Args:
            title: Error title
            message: Main error message
            details: Optional list of detail lines
            suggestion: Optional suggestion for user
        """
        print(f"\nERROR: {title}", file=sys.stderr)
        print(f"{message}", file=sys.stderr)
        if details:
            for detail in details:
                print(f"  {detail}", file=sys.stderr)
        if suggestion:
            print(f"\n{suggestion}", file=sys.stderr)

    def print_exception(self, exc: Exception) -> None:
        """Print exception, with full traceback only in debug mode."""
        if self.debug:
            import traceback
            traceback.print_exc()
        else:
            print(f"Error: {exc}", file=sys.stderr)

    def print_info(self, message: str) -> None:
        """Print informational message."""
        print(message)

    def print_debug(self, message: str) -> None:
        """Print debug message (only if debug mode enabled)."""
        if self.debug:
            print(f"[DEBUG] {message}", file=sys.stderr)


# Global console instance (will be initialized by CLI)
_console: Optional[Console] = None


def get_console() -> Console:
    """Get the global console instance."""
    global _console
    if _console is None:
        _console = Console()
    return _console


def set_console(console: Console) -> None:
    """Set the global console instance."""
    global _console
    _console = console
