"""
Error taxonomy for a provisioning run.

Recoverable errors (ValidationFailure, PolicyViolation) never leave the
prompt loops that raise them. Everything else is fatal: the CLI reports
it through ``Reporter.fatal`` and exits non-zero, leaving completed
steps on disk for the next run to pick up.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from wpstack.core.models.action import Receipt


class ProvisionError(Exception):
    """Base class for all wpstack errors."""


class ValidationFailure(ProvisionError, ValueError):
    """Operator input rejected by a validator.

    Also a ``ValueError`` so pydantic field validators surface it as
    an ordinary field error when a record is built from a file.
    """


class PolicyViolation(ValidationFailure):
    """A secret does not satisfy its composition policy."""

    def __init__(self, policy: str, problems: list[str]):
        self.policy = policy
        self.problems = problems
        super().__init__(f"Password does not meet the {policy} policy: {', '.join(problems)}")


class CollaboratorFailure(ProvisionError):
    """An external tool returned a failure. Aborts the run."""

    def __init__(self, receipt: Receipt, step_id: str | None = None):
        self.receipt = receipt
        self.step_id = step_id
        self.report = None  # filled in by the executor
        detail = receipt.error or "unknown error"
        where = f"[{step_id}] " if step_id else ""
        super().__init__(f"{where}{receipt.adapter} failed ({receipt.action_id}): {detail}")


class PreconditionUnmet(ProvisionError):
    """The process cannot start provisioning (e.g. not running as root)."""


class InputExhausted(ProvisionError):
    """A scripted input source ran out of answers."""


class ConfigError(ProvisionError):
    """Raised when a settings or answers file is invalid or missing."""
