"""
Engine executor — the ordered provisioning pipeline.

Each step is guarded: if its effect is already present on the host the
step is skipped, otherwise its body runs through the collaborator
facades and the guard is evaluated again to verify the result. The
first collaborator failure stops the run; later steps are never
evaluated. Re-running after a failure picks up where the host is.

Flow per step:
    toggle → guard → (skip | dry-run pending | body) → verify → log
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Literal

from wpstack.adapters.registry import AdapterRegistry
from wpstack.core.detection.host_probe import HostProbe
from wpstack.core.engine.guards import Guard
from wpstack.core.errors import CollaboratorFailure
from wpstack.core.models.action import Action, Receipt
from wpstack.core.models.config import SiteConfig
from wpstack.core.models.settings import HostSettings
from wpstack.core.observability.logging_config import step_context
from wpstack.core.observability.reporter import Reporter
from wpstack.core.services import collaborators
from wpstack.core.services.text_patch import PatchResult, patch

logger = logging.getLogger(__name__)

StepStatus = Literal["done", "satisfied", "skipped", "pending", "failed"]


@dataclass(frozen=True)
class Step:
    """One idempotent unit of provisioning work."""

    id: str
    title: str
    guard: Guard
    body: Callable[[StepContext], None]
    when: Callable[[SiteConfig], bool] | None = None

    def selected(self, config: SiteConfig) -> bool:
        return self.when is None or self.when(config)


@dataclass
class Runtime:
    """Everything a pipeline run shares across steps."""

    settings: HostSettings
    probe: HostProbe
    registry: AdapterRegistry
    reporter: Reporter
    dry_run: bool = False


class StepContext:
    """What a step body sees: the config, the facades, and a receipt log."""

    def __init__(self, step: Step, config: SiteConfig, runtime: Runtime):
        self.step = step
        self.config = config
        self.settings = runtime.settings
        self.probe = runtime.probe
        self.reporter = runtime.reporter
        self._runtime = runtime
        self.receipts: list[Receipt] = []

        self.packages = collaborators.PackageInstaller(self)
        self.database = collaborators.DatabaseAdministrator(self)
        self.certificates = collaborators.CertificateIssuer(self)
        self.services = collaborators.ServiceController(self)
        self.cms = collaborators.cms_for(self, runtime.settings, config.domain)
        self.accounts = collaborators.AccountManager(self)
        self.files = collaborators.FileWriter(self)
        self.shell = collaborators.Shell(self)

    def invoke(self, adapter: str, operation: str, **params: Any) -> Receipt:
        """Dispatch one collaborator operation; raise on failure."""
        action = Action.for_step(self.step.id, adapter, operation, params, title=self.step.title)
        receipt = self._runtime.registry.execute_action(action, dry_run=self._runtime.dry_run)
        self.receipts.append(receipt)
        if receipt.failed:
            raise CollaboratorFailure(receipt, step_id=self.step.id)
        logger.debug("  %s → %s", action.id, receipt.status)
        return receipt

    def satisfied(self, guard: Guard) -> bool:
        """Evaluate a sub-guard inside a body."""
        return guard.already_done(self.probe)

    def patch(
        self, search: str, replace: str, *paths: str, whole_line: bool = False
    ) -> list[PatchResult]:
        """Text-patch host files; missing anchors or files are reported, not fatal."""
        skip_write = self._runtime.dry_run or self._runtime.registry.mock_mode
        results = patch(
            search,
            replace,
            *(self.settings.host_path(p) for p in paths),
            dry_run=skip_write,
            whole_line=whole_line,
        )
        for result in results:
            if result.is_warning:
                self.reporter.important(result.describe(search))
        return results


# ── Report ───────────────────────────────────────────────────────


@dataclass
class StepRecord:
    """Outcome of one step."""

    step_id: str
    title: str
    status: StepStatus
    verified: bool | None = None
    receipts: list[Receipt] = field(default_factory=list)
    error: str | None = None
    duration_ms: int = 0

    def to_dict(self) -> dict:
        return {
            "step_id": self.step_id,
            "title": self.title,
            "status": self.status,
            "verified": self.verified,
            "error": self.error,
            "duration_ms": self.duration_ms,
            "receipts": [r.model_dump(mode="json") for r in self.receipts],
        }


@dataclass
class PipelineReport:
    """Result of running (or planning) a pipeline."""

    records: list[StepRecord] = field(default_factory=list)
    dry_run: bool = False

    def count(self, status: StepStatus) -> int:
        return sum(1 for r in self.records if r.status == status)

    @property
    def failed(self) -> int:
        return self.count("failed")

    @property
    def status(self) -> str:
        return "failed" if self.failed else "ok"

    @property
    def unverified(self) -> list[str]:
        return [r.step_id for r in self.records if r.verified is False]

    def get(self, step_id: str) -> StepRecord | None:
        return next((r for r in self.records if r.step_id == step_id), None)

    def to_dict(self) -> dict:
        return {
            "status": self.status,
            "dry_run": self.dry_run,
            "counts": {
                status: self.count(status)
                for status in ("done", "satisfied", "skipped", "pending", "failed")
            },
            "unverified": self.unverified,
            "steps": [r.to_dict() for r in self.records],
        }


# ── Pipeline ─────────────────────────────────────────────────────


def _run_step(step: Step, config: SiteConfig, runtime: Runtime) -> StepRecord:
    reporter = runtime.reporter

    if not step.selected(config):
        reporter.info(f"⊘ {step.title}: not selected")
        return StepRecord(step.id, step.title, "skipped")

    if step.guard.already_done(runtime.probe):
        reporter.info(f"✓ {step.title}: already satisfied")
        return StepRecord(step.id, step.title, "satisfied")

    if runtime.dry_run:
        reporter.info(f"… {step.title}: pending ({step.guard.describe()} does not hold)")
        return StepRecord(step.id, step.title, "pending")

    reporter.info(f"→ {step.title}")
    ctx = StepContext(step, config, runtime)
    start = time.monotonic()
    try:
        step.body(ctx)
    except CollaboratorFailure as e:
        return StepRecord(
            step.id,
            step.title,
            "failed",
            receipts=ctx.receipts,
            error=str(e),
            duration_ms=int((time.monotonic() - start) * 1000),
        )
    duration_ms = int((time.monotonic() - start) * 1000)

    # Mock receipts change nothing, so there is nothing to verify.
    verified: bool | None = None
    if not runtime.registry.mock_mode:
        verified = step.guard.already_done(runtime.probe)
        if not verified:
            reporter.important(
                f"{step.title}: completed but could not verify ({step.guard.describe()})"
            )

    reporter.success(f"{step.title} ({duration_ms}ms)")
    return StepRecord(
        step.id,
        step.title,
        "done",
        verified=verified,
        receipts=ctx.receipts,
        duration_ms=duration_ms,
    )


def run_pipeline(
    config: SiteConfig,
    steps: list[Step],
    runtime: Runtime,
) -> PipelineReport:
    """Run ``steps`` in order against the host.

    Raises:
        CollaboratorFailure: A collaborator failed. The partial report
            (including the failed step) is attached as ``.report``.
    """
    report = PipelineReport(dry_run=runtime.dry_run)

    for step in steps:
        with step_context(step.id):
            record = _run_step(step, config, runtime)
            logger.info("%s %s → %s", _MARKERS[record.status], step.id, record.status)
        report.records.append(record)

        if record.status == "failed":
            failing = record.receipts[-1]
            failure = CollaboratorFailure(failing, step_id=step.id)
            failure.report = report
            raise failure

    return report


_MARKERS: dict[str, str] = {
    "done": "✓",
    "satisfied": "✓",
    "skipped": "⊘",
    "pending": "…",
    "failed": "✗",
}
