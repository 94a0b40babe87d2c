"""
Plan use case — evaluate every guard without changing the host.
"""

from __future__ import annotations

from dataclasses import dataclass

from wpstack.adapters.registry import AdapterRegistry
from wpstack.core.detection.host_probe import HostProbe
from wpstack.core.engine.executor import PipelineReport, Runtime, run_pipeline
from wpstack.core.models.config import SiteConfig
from wpstack.core.models.settings import HostSettings
from wpstack.core.observability.reporter import Reporter
from wpstack.core.steps.pipeline import build_pipeline


@dataclass
class PlanResult:
    """Which steps a provisioning run would execute."""

    report: PipelineReport

    @property
    def pending(self) -> list[str]:
        return [r.step_id for r in self.report.records if r.status == "pending"]

    def to_dict(self) -> dict:
        return {"pending": self.pending, **self.report.to_dict()}


def plan(
    config: SiteConfig,
    settings: HostSettings,
    reporter: Reporter,
    probe: HostProbe | None = None,
) -> PlanResult:
    """Dry-run the pipeline: guards are evaluated, no body runs."""
    runtime = Runtime(
        settings=settings,
        probe=probe or HostProbe(settings),
        registry=AdapterRegistry(root=settings.root, timeout=settings.command_timeout),
        reporter=reporter,
        dry_run=True,
    )
    return PlanResult(report=run_pipeline(config, build_pipeline(config, settings), runtime))
