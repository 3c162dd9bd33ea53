"""Console output formatting utilities for bookrunner."""

from __future__ import annotations

import sys
from typing import Optional

import click


class Console:
    """Centralized console output formatting."""

    def __init__(self, debug: bool = False):
        """
        Initialize console formatter.

        Args:
            debug: If True, show detailed output including debug messages
        """
        self.debug = debug

    def print_run_started(self, desc: str, path: Optional[str], step_count: int, included: bool = False) -> None:
        """Print run start information."""
        title = "INCLUDE STARTED" if included else "RUN STARTED"
        print(f"\n{title}: {desc}")
        if path:
            print(f"Runbook: {path}")
        print(f"Steps: {step_count}")

    def print_step(self, index: int, key: Optional[str], runner: str) -> None:
        """Print step start message."""
        label = f"{index}" if key is None else f"{index} ({key})"
        print(f"STEP {label}: {runner}")

    def print_failure(self, name: str, reason: str) -> None:
        """Print failure message; only the first line unless debugging."""
        print(f"STEP FAILED: {name}")
        if self.debug:
            print(f"Error details: {reason}")
        else:
            error_line = reason.split("\n")[0] if reason else "Unknown error"
            print(f"Error: {error_line}")

    def print_include_finished(self, path: str, runner_count: int) -> None:
        print(f"INCLUDE FINISHED: {path} (runners re-homed: {runner_count})")

    def print_debug(self, message: str) -> None:
        """Print debug message (only if debug mode enabled)."""
        if self.debug:
            print(f"[DEBUG] {message}", file=sys.stderr)


def line_number(n: int, width: int) -> str:
    """Right-aligned, yellow line number prefix for picked source lines."""
    return click.style(f"{n:>{width}d} ", fg="yellow")


# Global console instance (replaced by set_console)
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
