"""
Core subprocess runner.

The SINGLE PLACE where ``subprocess.run`` is called for collaborator
operations. Logging, timeouts and error capture are centralised here.

Security invariants:
- stdin payloads (passwords, SQL, credentials) are never logged
- commands are argv lists, never shell strings
"""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
import time
from typing import Any

from wpstack.core.models.action import Receipt

logger = logging.getLogger(__name__)

_TAIL = 2000


def _run_subprocess(
    cmd: list[str],
    *,
    input_text: str | None = None,
    timeout: int = 1800,
    env_overrides: dict[str, str] | None = None,
    cwd: str | None = None,
) -> dict[str, Any]:
    """Run a command and capture its result.

    Args:
        cmd: Command list for ``subprocess.run()``.
        input_text: Data piped to stdin (never logged).
        timeout: Seconds before the call counts as failed.
        env_overrides: Extra environment variables.
        cwd: Working directory for the command.

    Returns:
        ``{"ok": True, "stdout": "...", "elapsed_ms": N}`` on success,
        ``{"ok": False, "error": "...", ...}`` on failure.
    """
    env = os.environ.copy()
    if env_overrides:
        env.update(env_overrides)

    logger.debug("Executing: %s (cwd=%s)", shlex.join(cmd), cwd)
    start = time.monotonic()
    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=timeout,
            input=input_text,
            env=env,
            cwd=cwd,
        )
    except subprocess.TimeoutExpired:
        return {"ok": False, "error": f"Command timed out ({timeout}s): {cmd[0]}"}
    except FileNotFoundError:
        return {"ok": False, "error": f"Command not found: {cmd[0]}"}
    except OSError as e:
        logger.exception("Subprocess error: %s", cmd[0])
        return {"ok": False, "error": str(e)}

    elapsed_ms = int((time.monotonic() - start) * 1000)
    stdout = result.stdout[-_TAIL:] if result.stdout else ""
    stderr = result.stderr[-_TAIL:] if result.stderr else ""

    if result.returncode == 0:
        return {"ok": True, "stdout": stdout, "stderr": stderr, "elapsed_ms": elapsed_ms}

    return {
        "ok": False,
        "error": f"Command failed (exit {result.returncode})",
        "returncode": result.returncode,
        "stderr": stderr,
        "stdout": stdout,
        "elapsed_ms": elapsed_ms,
    }


def run_to_receipt(
    adapter: str,
    action_id: str,
    cmd: list[str],
    *,
    input_text: str | None = None,
    timeout: int = 1800,
    env_overrides: dict[str, str] | None = None,
    cwd: str | None = None,
) -> Receipt:
    """Run a command and wrap the outcome in a Receipt."""
    result = _run_subprocess(
        cmd,
        input_text=input_text,
        timeout=timeout,
        env_overrides=env_overrides,
        cwd=cwd,
    )
    metadata = {"command": shlex.join(cmd)}
    if result["ok"]:
        return Receipt.success(
            adapter=adapter,
            action_id=action_id,
            output=result["stdout"].strip(),
            duration_ms=result["elapsed_ms"],
            metadata={**metadata, "stderr": result["stderr"].strip()},
        )

    detail = result.get("stderr", "").strip() or result.get("stdout", "").strip()
    error = f"{result['error']}: {detail}" if detail else result["error"]
    if "returncode" in result:
        metadata["return_code"] = result["returncode"]
    return Receipt.failure(
        adapter=adapter,
        action_id=action_id,
        error=error,
        duration_ms=result.get("elapsed_ms", 0),
        metadata=metadata,
    )
