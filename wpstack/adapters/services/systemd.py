"""
Systemd adapter — service lifecycle through systemctl.
"""

from __future__ import annotations

from wpstack.adapters.base import ExecutionContext
from wpstack.adapters.shell.tool import ToolAdapter
from wpstack.core.models.action import Receipt


class SystemdAdapter(ToolAdapter):
    """Service controller.

    Action params:
        operation (str): 'restart', 'reload' or 'enable'.
        service (str): Unit name.
    """

    binary = "systemctl"
    operations = {
        "restart": ("service",),
        "reload": ("service",),
        "enable": ("service",),
    }

    @property
    def name(self) -> str:
        return "systemctl"

    def _restart(self, ctx: ExecutionContext) -> Receipt:
        return self._run(ctx, ["systemctl", "restart", ctx.action.params["service"]])

    def _reload(self, ctx: ExecutionContext) -> Receipt:
        return self._run(ctx, ["systemctl", "reload", ctx.action.params["service"]])

    def _enable(self, ctx: ExecutionContext) -> Receipt:
        return self._run(ctx, ["systemctl", "enable", "--now", ctx.action.params["service"]])
