"""
Host probe — read-only queries of host state.

Guards ask the probe whether a step's effect is already in place. The
probe never changes anything, and a query that cannot be answered
(missing tool, timeout, unreadable file) reads as "not there", so the
step runs and the collaborator reports the real problem.

Account and group lookups parse ``etc/passwd`` / ``etc/group`` under the
configured root, which keeps the probe usable against a scratch root.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
from pathlib import Path

from wpstack.core.models.settings import HostSettings

logger = logging.getLogger(__name__)

MYSQL_DEFAULTS_FILE = "/root/.my.cnf"

_QUERY_TIMEOUT = 30


class HostProbe:
    """Side-effect-free view of the target host."""

    def __init__(self, settings: HostSettings):
        self.settings = settings

    # ── Files ────────────────────────────────────────────────────

    def path(self, path: str) -> Path:
        """Resolve an absolute host path under the configured root."""
        return self.settings.host_path(path)

    def exists(self, path: str) -> bool:
        return self.path(path).exists()

    def read_text(self, path: str) -> str | None:
        try:
            return self.path(path).read_text(encoding="utf-8", errors="surrogateescape")
        except OSError:
            return None

    def contains(self, path: str, text: str) -> bool:
        content = self.read_text(path)
        return content is not None and text in content

    def has_line(self, path: str, line: str) -> bool:
        """True when some line of ``path`` equals ``line``, ignoring surrounding blanks."""
        wanted = line.strip()
        return any(candidate.strip() == wanted for candidate in (self.read_text(path) or "").splitlines())

    def directive_lines(self, path: str, keyword: str) -> list[str]:
        """Uncommented lines of ``path`` whose first word is ``keyword`` (any case)."""
        found = []
        for line in (self.read_text(path) or "").splitlines():
            words = line.split(None, 1)
            if words and words[0].lower() == keyword.lower():
                found.append(line)
        return found

    # ── Accounts ─────────────────────────────────────────────────

    def _records(self, path: str) -> list[list[str]]:
        content = self.read_text(path) or ""
        return [line.split(":") for line in content.splitlines() if line and not line.startswith("#")]

    def user_exists(self, username: str) -> bool:
        return any(rec[0] == username for rec in self._records("/etc/passwd"))

    def user_in_group(self, username: str, group: str) -> bool:
        for rec in self._records("/etc/group"):
            if len(rec) >= 4 and rec[0] == group:
                return username in rec[3].split(",")
        return False

    # ── Packages & binaries ─────────────────────────────────────

    def package_installed(self, package: str) -> bool:
        """Whether dpkg reports ``package`` as installed."""
        try:
            r = subprocess.run(
                ["dpkg-query", "-W", "-f=${Status}", package],
                capture_output=True, text=True, timeout=_QUERY_TIMEOUT,
            )
            return "install ok installed" in r.stdout
        except FileNotFoundError:
            logger.warning("dpkg-query not found (checking %s)", package)
        except subprocess.TimeoutExpired:
            logger.warning("Timeout checking package %s", package)
        except OSError as exc:
            logger.warning("OS error checking package %s: %s", package, exc)
        return False

    def packages_installed(self, packages: list[str]) -> bool:
        return all(self.package_installed(pkg) for pkg in packages)

    def binary_available(self, binary: str) -> bool:
        """An absolute path must be an executable file; a bare name must be on PATH."""
        if "/" in binary:
            target = self.path(binary)
            return target.is_file() and os.access(target, os.X_OK)
        return shutil.which(binary) is not None

    # ── Tool queries ─────────────────────────────────────────────

    def _query(self, argv: list[str]) -> tuple[bool, str]:
        try:
            r = subprocess.run(argv, capture_output=True, text=True, timeout=_QUERY_TIMEOUT)
        except (OSError, subprocess.TimeoutExpired) as exc:
            logger.debug("Probe %s failed: %s", argv[0], exc)
            return False, ""
        return r.returncode == 0, r.stdout

    def database_exists(self, name: str) -> bool:
        defaults = self.path(MYSQL_DEFAULTS_FILE)
        argv = ["mysql"]
        if defaults.is_file():
            argv.append(f"--defaults-file={defaults}")
        argv += ["-N", "-B", "-e", "SHOW DATABASES"]
        ok, out = self._query(argv)
        return ok and name in out.split()

    def _wp(self, site_dir: str, args: tuple[str, ...]) -> list[str]:
        return [
            str(self.path(self.settings.wp_cli_path)),
            *args,
            "--allow-root",
            f"--path={self.path(site_dir)}",
        ]

    def wp_succeeds(self, site_dir: str, *args: str) -> bool:
        """Whether a wp-cli query exits 0 (e.g. ``core is-installed``)."""
        if not self.binary_available(self.settings.wp_cli_path):
            return False
        ok, _ = self._query(self._wp(site_dir, args))
        return ok

    def wp_output(self, site_dir: str, *args: str) -> str | None:
        """Stripped stdout of a wp-cli query, or None when it fails."""
        if not self.binary_available(self.settings.wp_cli_path):
            return None
        ok, out = self._query(self._wp(site_dir, args))
        return out.strip() if ok else None
