"""
Mock adapter — stands in for every collaborator when nothing may run.

In mock mode the registry routes all actions here. Each call is
recorded, and a receipt comes back without touching the host. Failures
can be scripted by action id, using ``<step>:<adapter>:<operation>`` or
a shell-style pattern such as ``cms-core:*`` to fail a whole step.
"""

from __future__ import annotations

import fnmatch

from wpstack.adapters.base import Adapter, ExecutionContext
from wpstack.core.models.action import Receipt


class MockAdapter(Adapter):
    """Records every action and succeeds unless told to fail."""

    def __init__(self, adapter_name: str = "mock"):
        self._name = adapter_name
        self._failures: dict[str, str] = {}
        self._call_log: list[ExecutionContext] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def call_log(self) -> list[ExecutionContext]:
        return self._call_log

    @property
    def call_count(self) -> int:
        return len(self._call_log)

    @property
    def called_steps(self) -> list[str]:
        """Owning step of every call, in call order (duplicates kept)."""
        return [ctx.action.step or "" for ctx in self._call_log]

    def is_available(self) -> bool:
        return True

    def fail_on(self, pattern: str, error: str = "Mock failure") -> None:
        """Fail every action whose id matches ``pattern``."""
        self._failures[pattern] = error

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        self._call_log.append(context)
        action = context.action

        for pattern, error in self._failures.items():
            if fnmatch.fnmatchcase(action.id, pattern):
                return Receipt.failure(
                    adapter=action.adapter,
                    action_id=action.id,
                    error=error,
                    metadata={"mock": True},
                )

        return Receipt.success(
            adapter=action.adapter,
            action_id=action.id,
            output=f"[mock] {action.adapter}:{action.operation} executed",
            metadata={"mock": True},
        )
