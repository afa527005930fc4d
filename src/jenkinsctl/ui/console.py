"""Console output formatting utilities for jenkinsctl."""

from __future__ import annotations

import traceback
from typing import Dict, Optional

import click

from jenkinsctl.client.models import Job

# Named styles, applied with click.style(**style)
SUCCESS = {"fg": "green"}
ERROR = {"fg": "red"}
WARNING = {"fg": "yellow"}
MUTED = {"dim": True}
PLAIN: Dict[str, object] = {}

# Status color -> style. "blue" is resolved separately (stoplight mode).
COLOR_STYLES = {
    "red": ERROR,
    "yellow": WARNING,
    "aborted": ERROR,
    "disabled": MUTED,
    "grey": MUTED,
    "notbuilt": MUTED,
}

MARKER_BUILDING = "*"
MARKER_ABORTED = "?"
MARKER_QUEUED = "+"


class Console:
    """Centralized console output formatting."""

    def __init__(
        self,
        color: Optional[bool] = None,
        stoplight: bool = False,
        verbose: bool = False,
    ):
        """
        Initialize console formatter.

        Args:
            color: Force ANSI colors on (True) or off (False). None lets
                click strip them when stdout is not a terminal.
            stoplight: Show successful jobs in green instead of the default
            verbose: Show request/response tracing and tracebacks
        """
        self.color = color
        self.stoplight = stoplight
        self.verbose = verbose

    # ------------------------------------------------------------------
    # Styles
    # ------------------------------------------------------------------

    def style_for_color(self, color: str) -> dict:
        """Map a CI status color (with or without _anime) to a style."""
        base = color[: -len("_anime")] if color.endswith("_anime") else color
        if base == "blue":
            return SUCCESS if self.stoplight else PLAIN
        if base in COLOR_STYLES:
            return COLOR_STYLES[base]
        self.print_warning(f"unknown status color {color!r}")
        return MUTED

    def styled(self, text: str, style: dict) -> str:
        return click.style(text, **style) if style else text

    @staticmethod
    def job_markers(job: Job) -> str:
        markers = ""
        if job.is_building:
            markers += MARKER_BUILDING
        if job.was_aborted:
            markers += MARKER_ABORTED
        if job.in_queue:
            markers += MARKER_QUEUED
        return markers

    def format_job(self, job: Job) -> str:
        """Job name in its status style followed by status markers."""
        return self.styled(job.name, self.style_for_color(job.color)) + self.job_markers(job)

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def echo(self, message: str = "", nl: bool = True) -> None:
        click.echo(message, nl=nl, color=self.color)

    def print_info(self, message: str) -> None:
        """Print informational message."""
        self.echo(message)

    def print_header(self, title: str) -> None:
        """Print a section header."""
        self.echo(self.styled(title, {"bold": True}))

    def print_job(self, job: Job) -> None:
        self.echo(self.format_job(job))

    def print_result(self, name: str, error: Optional[str] = None) -> None:
        """Print the outcome of an action on a single job."""
        if error is None:
            self.echo(f"{name}: {self.styled('OK', SUCCESS)}")
        else:
            self.echo(f"{name}: {self.styled('ERROR: ' + error, ERROR)}")

    def print_warning(self, message: str) -> None:
        click.echo(self.styled(f"WARNING: {message}", WARNING), err=True, color=self.color)

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
        click.echo(self.styled(f"ERROR: {title}", ERROR), err=True, color=self.color)
        click.echo(message, err=True)
        if details:
            for detail in details:
                click.echo(f"  {detail}", err=True)
        if suggestion:
            click.echo(f"\n{suggestion}", err=True)

    def print_exception(self, exc: BaseException) -> None:
        """Print exception, with full traceback only in verbose mode."""
        if self.verbose:
            click.echo("".join(traceback.format_exception(type(exc), exc, exc.__traceback__)), err=True)
        else:
            click.echo(f"Error: {exc}", err=True)

    def print_debug(self, message: str) -> None:
        """Print debug message (only if verbose mode enabled)."""
        if self.verbose:
            click.echo(f"[DEBUG] {message}", err=True)


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
