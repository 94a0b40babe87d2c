"""
Terminal input source — what the operator types at the console.

Secrets are read one keystroke at a time with ``click.getchar`` so that
every character is echoed as ``*`` and backspace visibly erases it.
"""

from __future__ import annotations

from collections.abc import Callable

import click

_ENTER = ("\r", "\n")
_BACKSPACE = ("\x7f", "\x08")
_INTERRUPT = ("\x03", "\x04")
MASK = "*"


def read_masked(
    prompt: str,
    getchar: Callable[[], str] = click.getchar,
    echo: Callable[[str], None] | None = None,
) -> str:
    """Read a line with every character shown as ``*``.

    Backspace removes the last character and its mask. Enter ends the
    line. Ctrl-C / Ctrl-D abort.
    """
    if echo is None:
        def echo(text: str) -> None:
            click.echo(text, nl=False)

    echo(prompt)
    chars: list[str] = []
    while True:
        ch = getchar()
        if ch in _ENTER:
            echo("\n")
            return "".join(chars)
        if ch in _INTERRUPT:
            echo("\n")
            raise click.Abort()
        if ch in _BACKSPACE:
            if chars:
                chars.pop()
                echo("\b \b")
            continue
        if not ch.isprintable():
            # Arrow keys and other escape sequences are not part of a secret.
            continue
        chars.append(ch)
        echo(MASK)


class TerminalInput:
    """Interactive input source backed by click."""

    def read_line(self, prompt: str) -> str:
        return click.prompt(prompt, default="", show_default=False)

    def read_secret(self, prompt: str) -> str:
        return read_masked(f"{prompt}: ")

    def read_key(self, prompt: str) -> str:
        click.echo(prompt, nl=False)
        key = click.getchar()
        if key in _INTERRUPT:
            click.echo()
            raise click.Abort()
        click.echo(key if key.isprintable() else "")
        return key
