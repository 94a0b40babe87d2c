"""
Action and Receipt — what a step asks of a collaborator, and the answer.

Every action id reads ``<step>:<adapter>:<operation>``, so a receipt in
the run report points back at the step and the operation that produced
it. Adapters answer with receipts and never raise; a failed receipt is
what stops the pipeline.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

ReceiptStatus = Literal["ok", "skipped", "failed"]


class Action(BaseModel):
    """One collaborator operation requested by a pipeline step."""

    id: str
    adapter: str
    params: dict[str, Any] = Field(default_factory=dict)
    step: str | None = None
    title: str = ""

    @classmethod
    def for_step(
        cls,
        step_id: str,
        adapter: str,
        operation: str,
        params: dict[str, Any],
        title: str = "",
    ) -> Action:
        return cls(
            id=f"{step_id}:{adapter}:{operation}",
            adapter=adapter,
            params={"operation": operation, **params},
            step=step_id,
            title=title,
        )

    @property
    def operation(self) -> str:
        return str(self.params.get("operation", ""))


class Receipt(BaseModel):
    """Outcome of one action."""

    adapter: str
    action_id: str
    status: ReceiptStatus = "ok"
    finished_at: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())
    duration_ms: int = 0
    output: str = ""
    error: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    @property
    def failed(self) -> bool:
        return self.status == "failed"

    def describe(self) -> str:
        """One report line: id, status and, on failure, the first error line."""
        line = f"{self.action_id} → {self.status}"
        if self.failed and self.error:
            line += f": {self.error.splitlines()[0]}"
        return line

    @classmethod
    def success(cls, adapter: str, action_id: str, output: str = "", **kwargs: Any) -> Receipt:
        return cls(adapter=adapter, action_id=action_id, output=output, **kwargs)

    @classmethod
    def failure(cls, adapter: str, action_id: str, error: str, **kwargs: Any) -> Receipt:
        return cls(adapter=adapter, action_id=action_id, status="failed", error=error, **kwargs)

    @classmethod
    def skip(cls, adapter: str, action_id: str, reason: str = "", **kwargs: Any) -> Receipt:
        """A receipt for an action that was deliberately not run."""
        return cls(adapter=adapter, action_id=action_id, status="skipped", output=reason, **kwargs)
