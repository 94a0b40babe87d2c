"""
Reporter — leveled, human-readable status output for the operator.

Three severities, each rendered distinctly:

    info       plain line on stdout
    important  yellow "!" line on stdout (actionable, run continues)
               shown even when quiet
    fatal      red "✗" line on stderr, then the process exits with 1

With ``err=True`` every line goes to stderr, keeping stdout free for
machine-readable output.

Every message is mirrored into ``logging`` so a log file holds the
full story of a run even when the console is quiet.
"""

from __future__ import annotations

import logging
from typing import NoReturn

import click

logger = logging.getLogger(__name__)

FATAL_EXIT_CODE = 1


class Reporter:
    """Operator-facing output with three severities."""

    def __init__(self, quiet: bool = False, err: bool = False):
        self._quiet = quiet
        self._err = err
        self._important: list[str] = []

    @property
    def important_messages(self) -> list[str]:
        """Every important message emitted so far (for end-of-run summaries)."""
        return list(self._important)

    def info(self, message: str) -> None:
        logger.info(message)
        if not self._quiet:
            click.echo(f"  {message}", err=self._err)

    def success(self, message: str) -> None:
        logger.info(message)
        if not self._quiet:
            click.secho(f"✓ {message}", fg="green", err=self._err)

    def important(self, message: str) -> None:
        logger.warning(message)
        self._important.append(message)
        click.secho(f"! {message}", fg="yellow", bold=True, err=self._err)

    def fatal(self, message: str) -> NoReturn:
        logger.error(message)
        click.secho(f"✗ {message}", fg="red", bold=True, err=True)
        raise SystemExit(FATAL_EXIT_CODE)
