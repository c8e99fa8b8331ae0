"""CLI utility functions and helpers."""

import sys
from contextlib import contextmanager
from typing import Iterator, Optional, TextIO

import click

from .error_handler import OutputError

# Global flag for quiet mode
_quiet_mode = False


def set_quiet_mode(quiet: bool) -> None:
    """Set the global quiet mode flag."""
    global _quiet_mode
    _quiet_mode = quiet


def echo(message: str = "", err: bool = True, **kwargs) -> None:
    """Echo wrapper that respects quiet mode.

    Messages go to stderr by default since stdout may carry FASTA records.
    """
    if _quiet_mode:
        return
    click.echo(message, err=err, **kwargs)


@contextmanager
def open_output(path: Optional[str] = None) -> Iterator[TextIO]:
    """Open the FASTA sink: a truncated file, or stdout when no path is given.

    The file is closed on every exit path; stdout is flushed but left open.
    """
    if not path:
        try:
            yield sys.stdout
        finally:
            sys.stdout.flush()
        return

    try:
        handle = open(path, 'w')
    except OSError as e:
        raise OutputError(f"Cannot open output file {path}: {e}") from e

    try:
        yield handle
    finally:
        handle.close()
