"""
Filesystem adapter — file and directory mutations.

Provides a receipt-returning interface for the file changes steps make
(config files, credentials, cron registrations, symlinks), so they are
logged, mockable, and skipped in mock mode like every other side effect.
Paths in params are absolute host paths; they are resolved under the
execution root.
"""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path

from wpstack.adapters.base import ExecutionContext, OperationAdapter
from wpstack.core.models.action import Receipt

logger = logging.getLogger(__name__)


class FilesystemAdapter(OperationAdapter):
    """File and directory operations with receipts.

    Action params:
        operation (str): One of 'write', 'append', 'mkdir', 'symlink',
                         'remove', 'chmod', 'chown'.
        path (str): Target host path.
        content (str): Content for 'write' / 'append'.
        mode (int): Permission bits for 'write' / 'mkdir' / 'chmod'.
        target (str): Link target for 'symlink'.
        owner (str): 'user' or 'user:group' for 'chown'.
        recursive (bool): Recurse for 'chown'.
    """

    operations = {
        "write": ("path", "content"),
        "append": ("path", "content"),
        "mkdir": ("path",),
        "symlink": ("path", "target"),
        "remove": ("path",),
        "chmod": ("path", "mode"),
        "chown": ("path", "owner"),
    }

    @property
    def name(self) -> str:
        return "filesystem"

    def is_available(self) -> bool:
        return True  # filesystem is always available

    def _target(self, ctx: ExecutionContext, key: str = "path") -> Path:
        return Path(ctx.host_path(ctx.action.params[key]))

    def _ok(self, ctx: ExecutionContext, output: str, target: Path) -> Receipt:
        return Receipt.success(
            adapter=self.name,
            action_id=ctx.action.id,
            output=output,
            metadata={"operation": ctx.action.operation, "path": str(target)},
        )

    # ── Operations ──────────────────────────────────────────────

    def _write(self, ctx: ExecutionContext) -> Receipt:
        target = self._target(ctx)
        content = ctx.action.params["content"]
        mode = ctx.action.params.get("mode")
        target.parent.mkdir(parents=True, exist_ok=True)
        if mode is not None:
            # Create with the final mode so secrets are never world-readable.
            fd = os.open(target, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, mode)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
            os.chmod(target, mode)
        else:
            target.write_text(content, encoding="utf-8")
        return self._ok(ctx, f"Written {len(content)} bytes to {target}", target)

    def _append(self, ctx: ExecutionContext) -> Receipt:
        target = self._target(ctx)
        content = ctx.action.params["content"]
        target.parent.mkdir(parents=True, exist_ok=True)
        existing = target.read_bytes() if target.is_file() else b""
        with target.open("a", encoding="utf-8") as f:
            if existing and not existing.endswith(b"\n"):
                f.write("\n")
            f.write(content)
        return self._ok(ctx, f"Appended {len(content)} bytes to {target}", target)

    def _mkdir(self, ctx: ExecutionContext) -> Receipt:
        target = self._target(ctx)
        target.mkdir(parents=True, exist_ok=True)
        mode = ctx.action.params.get("mode")
        if mode is not None:
            os.chmod(target, mode)
        return self._ok(ctx, f"Directory created: {target}", target)

    def _symlink(self, ctx: ExecutionContext) -> Receipt:
        target = self._target(ctx)
        link_to = self._target(ctx, "target")
        target.parent.mkdir(parents=True, exist_ok=True)
        if target.is_symlink() or target.exists():
            target.unlink()
        target.symlink_to(link_to)
        return self._ok(ctx, f"Linked {target} → {link_to}", target)

    def _remove(self, ctx: ExecutionContext) -> Receipt:
        target = self._target(ctx)
        if target.is_dir() and not target.is_symlink():
            shutil.rmtree(target)
        else:
            target.unlink(missing_ok=True)
        return self._ok(ctx, f"Removed {target}", target)

    def _chmod(self, ctx: ExecutionContext) -> Receipt:
        target = self._target(ctx)
        os.chmod(target, ctx.action.params["mode"])
        return self._ok(ctx, f"Mode of {target} set to {ctx.action.params['mode']:o}", target)

    def _chown(self, ctx: ExecutionContext) -> Receipt:
        target = self._target(ctx)
        user, _, group = ctx.action.params["owner"].partition(":")
        paths = [target]
        if ctx.action.params.get("recursive") and target.is_dir():
            paths.extend(target.rglob("*"))
        for path in paths:
            shutil.chown(path, user=user, group=group or None)
        return self._ok(ctx, f"Owner of {target} set to {ctx.action.params['owner']}", target)
