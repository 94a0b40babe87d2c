"""
Logging configuration — the diagnostic trail of a provisioning run.

``setup_logging`` is called once by main.py; modules log through
``logging.getLogger(__name__)``. The executor wraps each step in
``step_context`` so every record carries the id of the step that
emitted it (``-`` outside the pipeline).

Level precedence:
    CLI flag  >  WPSTACK_LOG_LEVEL  >  WARNING

A log file (WPSTACK_LOG_FILE, level WPSTACK_LOG_FILE_LEVEL) always gets
the full format. Operator-facing lines belong to the Reporter.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar

NO_STEP = "-"

_current_step: ContextVar[str] = ContextVar("wpstack_step", default=NO_STEP)

_FMT_CONSOLE = {
    logging.DEBUG: ("%(asctime)s %(levelname)-5s [%(step)s] %(name)s:%(lineno)d: %(message)s", "%H:%M:%S"),
    logging.INFO: ("%(asctime)s [%(step)s] %(message)s", "%H:%M:%S"),
}
_FMT_FILE = "%(asctime)s %(levelname)-5s [%(step)s] %(name)s:%(lineno)d: %(message)s"
_DATEFMT_FILE = "%Y-%m-%d %H:%M:%S"


class StepFilter(logging.Filter):
    """Stamp ``record.step`` with the step currently running."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.step = _current_step.get()
        return True


@contextmanager
def step_context(step_id: str) -> Iterator[None]:
    """Attribute every record logged inside the block to ``step_id``."""
    token = _current_step.set(step_id)
    try:
        yield
    finally:
        _current_step.reset(token)


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
) -> None:
    """Configure the root logger for the whole process.

    Args:
        level: Console level name (DEBUG, INFO, WARNING, ...).
        log_file: Optional path of a log file.
        log_file_level: Level for the file; defaults to ``level``.
    """
    numeric_level = _parse_level(level)

    if numeric_level <= logging.DEBUG:
        fmt, datefmt = _FMT_CONSOLE[logging.DEBUG]
    elif numeric_level <= logging.INFO:
        fmt, datefmt = _FMT_CONSOLE[logging.INFO]
    else:
        fmt, datefmt = "%(message)s", None

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(numeric_level)
    console.addFilter(StepFilter())
    console.setFormatter(logging.Formatter(fmt, datefmt=datefmt))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(console)
    effective_level = numeric_level

    if log_file:
        file_level = _parse_level(log_file_level) if log_file_level else numeric_level
        effective_level = min(effective_level, file_level)
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(file_level)
        fh.addFilter(StepFilter())
        fh.setFormatter(logging.Formatter(_FMT_FILE, datefmt=_DATEFMT_FILE))
        root.addHandler(fh)

    root.setLevel(effective_level)
    logging.raiseExceptions = False


def _parse_level(level: str | None) -> int:
    """Level name to its numeric value; unknown names mean WARNING."""
    numeric = getattr(logging, (level or "").upper(), None)
    return numeric if isinstance(numeric, int) else logging.WARNING
