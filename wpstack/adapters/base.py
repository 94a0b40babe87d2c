"""
Adapter base — the protocol contract between steps and tools.

This defines the abstract interface that every collaborator adapter
must implement. Steps only talk to adapters through the registry,
never directly to external tools.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, Field

from wpstack.core.models.action import Action, Receipt


class ExecutionContext(BaseModel):
    """Everything an adapter needs to execute an action.

    This is the adapter's view of the world: the action to perform,
    the filesystem root host paths resolve under, and the default
    timeout for blocking tool calls.
    """

    action: Action
    root: str = "/"
    timeout: int = 1800
    dry_run: bool = False
    params: dict[str, Any] = Field(default_factory=dict)

    def host_path(self, path: str) -> str:
        """Map an absolute host path onto the execution root."""
        if self.root in ("", "/"):
            return path
        return f"{self.root.rstrip('/')}/{path.lstrip('/')}"


class Adapter(ABC):
    """Abstract base class for all adapters.

    Adapters perform external side effects and return receipts.
    They NEVER raise exceptions — failures are captured in the Receipt.

    To create a new adapter:
        1. Subclass Adapter
        2. Implement name, is_available, validate, execute
        3. Register it in the AdapterRegistry
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """The adapter identifier (e.g., 'apt', 'wp', 'systemctl')."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check if this adapter's underlying tool is available.

        Should be fast and never raise.
        """

    @abstractmethod
    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        """Validate that the action can be executed.

        Returns:
            (is_valid, error_message). error_message is empty if valid.
        """

    @abstractmethod
    def execute(self, context: ExecutionContext) -> Receipt:
        """Execute the action and return a receipt.

        MUST never raise exceptions. All failures are captured
        in the Receipt with status='failed'.
        """

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"


class OperationAdapter(Adapter):
    """Adapter whose actions select one of a fixed set of operations.

    Subclasses declare ``operations`` (operation → required params) and
    implement ``_<operation>`` methods returning a Receipt.
    """

    operations: dict[str, tuple[str, ...]] = {}

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        operation = context.action.params.get("operation", "")
        if not operation:
            return False, "Missing required param: 'operation'"

        if operation not in self.operations:
            valid = ", ".join(sorted(self.operations))
            return False, f"Unknown operation '{operation}'. Valid: {valid}"

        for param in self.operations[operation]:
            if param not in context.action.params:
                return False, f"Missing required param: '{param}' for {operation}"

        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        operation = context.action.params.get("operation", "")
        handler = getattr(self, f"_{operation}", None)
        if handler is None:
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=f"Unknown operation: {operation}",
            )
        try:
            return handler(context)
        except Exception as e:
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=f"{self.name} error: {e}",
                metadata={"operation": operation},
            )
