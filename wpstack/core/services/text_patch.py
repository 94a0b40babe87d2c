"""
Text patcher — literal, global, in-place substitution in config files.

Configuration files of the collaborator tools (php.ini, sshd_config,
postfix main.cf, ...) are not owned by wpstack. Instead of templating
them whole, steps replace one known line with another. A file that is
missing, or that no longer contains the expected text, is reported as a
warning and left alone; it never aborts provisioning.

Matching is exact: the search text is escaped before it reaches the
regex engine, and the replacement is inserted verbatim.
Bytes that are not valid UTF-8 pass through untouched.
"""

from __future__ import annotations

import enum
import logging
import os
import re
import tempfile
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)


class PatchOutcome(enum.Enum):
    REPLACED = "replaced"
    WARN_NOT_FOUND = "not_found"
    WARN_MISSING_FILE = "missing_file"


@dataclass(frozen=True)
class PatchResult:
    """Outcome of one (search, replace, path) operation."""

    path: Path
    outcome: PatchOutcome
    count: int = 0

    @property
    def replaced(self) -> bool:
        return self.outcome is PatchOutcome.REPLACED

    @property
    def is_warning(self) -> bool:
        return not self.replaced

    def describe(self, search: str) -> str:
        if self.outcome is PatchOutcome.WARN_MISSING_FILE:
            return f"{self.path} does not exist; left unpatched"
        if self.outcome is PatchOutcome.WARN_NOT_FOUND:
            return f"{search!r} not found in {self.path}; left unpatched"
        return f"Patched {self.count} occurrence(s) in {self.path}"


def _write_atomic(path: Path, content: str) -> None:
    """Replace ``path`` with ``content``, keeping mode and ownership."""
    st = path.stat()
    with tempfile.NamedTemporaryFile(
        mode="w",
        encoding="utf-8",
        errors="surrogateescape",
        delete=False,
        dir=str(path.parent),
        newline="",
    ) as tmp:
        tmp.write(content)
        tmp.flush()
        os.fsync(tmp.fileno())
        tmp_path = tmp.name
    try:
        os.chmod(tmp_path, st.st_mode & 0o7777)
        if hasattr(os, "chown") and os.geteuid() == 0:
            os.chown(tmp_path, st.st_uid, st.st_gid)
        os.replace(tmp_path, path)
    except OSError:
        Path(tmp_path).unlink(missing_ok=True)
        raise


def patch_file(
    search: str,
    replace: str,
    path: Path,
    dry_run: bool = False,
    whole_line: bool = False,
) -> PatchResult:
    """Replace every literal occurrence of ``search`` in one file.

    With ``whole_line``, only lines that consist of exactly ``search``
    match; a commented copy or a longer value is left alone.
    """
    if not search:
        raise ValueError("search text must not be empty")

    if not path.is_file():
        logger.warning("Patch target missing: %s", path)
        return PatchResult(path=path, outcome=PatchOutcome.WARN_MISSING_FILE)

    with path.open(encoding="utf-8", errors="surrogateescape", newline="") as f:
        original = f.read()
    if whole_line:
        pattern = re.compile(rf"^{re.escape(search)}(?=\r?$)", re.MULTILINE)
    else:
        pattern = re.compile(re.escape(search))
    patched, count = pattern.subn(lambda _m: replace, original)

    if count == 0:
        logger.warning("Patch anchor %r not found in %s", search, path)
        return PatchResult(path=path, outcome=PatchOutcome.WARN_NOT_FOUND)

    if dry_run:
        logger.debug("[dry-run] would patch %d occurrence(s) in %s", count, path)
    else:
        _write_atomic(path, patched)
        logger.debug("Patched %d occurrence(s) of %r in %s", count, search, path)
    return PatchResult(path=path, outcome=PatchOutcome.REPLACED, count=count)


def patch(
    search: str,
    replace: str,
    *paths: Path | str,
    dry_run: bool = False,
    whole_line: bool = False,
) -> list[PatchResult]:
    """Patch each of ``paths`` independently.

    Returns:
        One PatchResult per path, in the order given.
    """
    return [
        patch_file(search, replace, Path(p), dry_run=dry_run, whole_line=whole_line)
        for p in paths
    ]
