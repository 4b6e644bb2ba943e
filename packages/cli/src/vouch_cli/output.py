"""Shared console output and error conversion for commands."""

from __future__ import annotations

import functools

import click
from rich.console import Console

from vouch_core.errors import VouchError

console = Console()

ERROR_EXIT_CODE = 3

STATUS_STYLE = {
    "vouched": "green",
    "allowed": "green",
    "skipped": "cyan",
    "updated": "green",
    "unvouched": "yellow",
    "unknown": "yellow",
    "unchanged": "dim",
    "denounced": "red",
    "closed": "red",
}


def print_status(status: str, subject: str | None = None) -> None:
    style = STATUS_STYLE.get(status, "white")
    suffix = f" {subject}" if subject else ""
    console.print(f"[{style}]{status}[/{style}]{suffix}")


class VouchClickException(click.ClickException):
    """Expected failure. Exits 3 so scripts can tell it from a trust status (0-2)."""

    exit_code = ERROR_EXIT_CODE


def vouch_errors(func):
    """Turn expected VouchError failures into a VouchClickException."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except VouchError as e:
            raise VouchClickException(str(e)) from e

    return wrapper
