"""
Tool adapter base — operation adapters backed by one CLI binary.

Each concrete adapter declares the binary it drives and turns an
operation plus params into an argv list. Execution goes through the
shared runner so logging, timeouts and stdin secrecy are uniform.
"""

from __future__ import annotations

import shutil

from wpstack.adapters.base import ExecutionContext, OperationAdapter
from wpstack.adapters.shell.runner import run_to_receipt
from wpstack.core.models.action import Receipt


class ToolAdapter(OperationAdapter):
    """OperationAdapter whose operations all shell out to ``binary``."""

    binary: str = ""

    def is_available(self) -> bool:
        return shutil.which(self.binary) is not None

    def _run(
        self,
        ctx: ExecutionContext,
        argv: list[str],
        *,
        input_text: str | None = None,
        env: dict[str, str] | None = None,
        cwd: str | None = None,
    ) -> Receipt:
        receipt = run_to_receipt(
            self.name,
            ctx.action.id,
            argv,
            input_text=input_text,
            timeout=ctx.timeout,
            env_overrides=env,
            cwd=ctx.host_path(cwd) if cwd else None,
        )
        receipt.metadata["operation"] = ctx.action.operation
        return receipt
