"""
Shell command adapter — run one-off commands.

The most fundamental adapter: it runs an argv list and captures its
output. Used for the small tools that have no adapter of their own
(``nginx -t``, ``mkswap``, ``postmap``, ``ufw``, ``curl``).
"""

from __future__ import annotations

import shutil

from wpstack.adapters.base import Adapter, ExecutionContext
from wpstack.adapters.shell.runner import run_to_receipt
from wpstack.core.models.action import Receipt


class ShellCommandAdapter(Adapter):
    """Execute a command and capture output.

    Action params:
        argv (list[str]): The command to execute.
        input (str): Optional stdin payload (never logged).
        timeout (int): Timeout in seconds (default: context timeout).
        cwd (str): Working directory (host path, mapped onto the root).
        env (dict): Extra environment variables.
    """

    @property
    def name(self) -> str:
        return "shell"

    def is_available(self) -> bool:
        return shutil.which("sh") is not None

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        argv = context.action.params.get("argv")
        if not argv:
            return False, "Missing required param: 'argv'"
        if not isinstance(argv, list) or not all(isinstance(a, str) for a in argv):
            return False, "'argv' must be a list of strings"
        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        params = context.action.params
        cwd = params.get("cwd")
        return run_to_receipt(
            self.name,
            context.action.id,
            list(params["argv"]),
            input_text=params.get("input"),
            timeout=context.timeout,
            env_overrides=params.get("env"),
            cwd=context.host_path(cwd) if cwd else None,
        )
