"""
Shared helpers for step bodies.
"""

from __future__ import annotations

from wpstack.core.engine.executor import StepContext
from wpstack.core.engine.guards import PackagesInstalled


def ensure_packages(ctx: StepContext, packages: list[str]) -> None:
    """Install ``packages`` unless every one of them is already present."""
    if ctx.satisfied(PackagesInstalled(tuple(packages))):
        return
    ctx.packages.install(packages)


def ensure_line(ctx: StepContext, path: str, search: str, line: str) -> None:
    """Turn ``search`` into ``line`` in ``path``; append ``line`` when the anchor is absent.

    Callers guard this with a HasLine check for ``line``, so a
    second call never duplicates it.
    """
    results = ctx.patch(search, line, path)
    if not any(r.replaced for r in results) and ctx.probe.exists(path):
        ctx.files.append(path, line.strip("\n") + "\n")


def sql_quote(value: str) -> str:
    """Quote a string literal for MariaDB."""
    escaped = value.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


def option_file_quote(value: str) -> str:
    """Quote a value for a MariaDB option file, where ``#`` starts a comment."""
    return '"' + value.replace("\\", "\\\\") + '"'
