"""
Prompt loops — the Input Validator and Secret Collector.

The loops are written against an ``InputSource`` so the same code runs
on a terminal (``wpstack.ui.cli.terminal.TerminalInput``) and on a
scripted list of answers. Terminal input never runs out, so the loops
are unbounded there; a ``ScriptedInput`` raises ``InputExhausted``
when its answers are used up, which is the retry bound for
non-interactive use.

On a confirmation mismatch both reads are discarded and re-entered.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Callable, Iterable
from typing import Protocol

from wpstack.core.domain.validation import PasswordPolicy
from wpstack.core.errors import InputExhausted, ValidationFailure

logger = logging.getLogger(__name__)

Report = Callable[[str], None]
Validator = Callable[[str], str]


class InputSource(Protocol):
    """Where operator answers come from."""

    def read_line(self, prompt: str) -> str:
        """Read one line of visible input."""

    def read_secret(self, prompt: str) -> str:
        """Read one line with echo masked."""

    def read_key(self, prompt: str) -> str:
        """Read a single keystroke."""


class ScriptedInput:
    """Input source fed from a fixed list of answers.

    All three read methods consume from the same queue, in order.
    Used for tests and for driving the gathering phase without a TTY.
    """

    def __init__(self, answers: Iterable[str]):
        self._answers: deque[str] = deque(answers)
        self.prompts: list[str] = []

    @property
    def remaining(self) -> int:
        return len(self._answers)

    def _next(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if not self._answers:
            raise InputExhausted(f"No scripted answer left for prompt {prompt!r}")
        return self._answers.popleft()

    def read_line(self, prompt: str) -> str:
        return self._next(prompt)

    def read_secret(self, prompt: str) -> str:
        return self._next(prompt)

    def read_key(self, prompt: str) -> str:
        return self._next(prompt)[:1]


def _log_only(message: str) -> None:
    logger.warning(message)


def prompt_until_valid(
    source: InputSource,
    prompt: str,
    validator: Validator,
    report: Report = _log_only,
) -> str:
    """Ask until ``validator`` accepts the answer; return the normalized value."""
    while True:
        raw = source.read_line(prompt)
        try:
            return validator(raw)
        except ValidationFailure as e:
            report(str(e))


def ask_yes_no(source: InputSource, prompt: str) -> bool:
    """Single-keystroke y/n question. Anything else asks again."""
    while True:
        key = source.read_key(f"{prompt} [y/n] ").lower()
        if key == "y":
            return True
        if key == "n":
            return False


def collect_secret(source: InputSource, prompt: str) -> str:
    """Read one secret with masked echo."""
    return source.read_secret(prompt)


def collect_secret_confirmed(
    source: InputSource,
    prompt: str,
    policy: PasswordPolicy,
    report: Report = _log_only,
) -> str:
    """Read a secret twice until both reads match and satisfy ``policy``."""
    while True:
        first = collect_secret(source, prompt)
        second = collect_secret(source, f"{prompt} (again)")
        if first != second:
            report("The two entries do not match, please try again")
            continue
        problems = policy.problems(first)
        if problems:
            report(f"Password does not meet the {policy.name} policy; it needs {', '.join(problems)}")
            continue
        return first
