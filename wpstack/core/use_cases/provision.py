"""
Provision use case — precondition check plus a full pipeline run.

The vertical slice from a validated SiteConfig to a provisioned host:
check that we may run, wire up the adapters, run every step, and hand
back a result the CLI can render. Failures come back in ``error``
rather than as exceptions.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from dataclasses import dataclass

from wpstack.adapters.registry import AdapterRegistry
from wpstack.core.detection.host_probe import HostProbe
from wpstack.core.engine.executor import PipelineReport, Runtime, run_pipeline
from wpstack.core.errors import CollaboratorFailure, PreconditionUnmet
from wpstack.core.models.config import SiteConfig
from wpstack.core.models.settings import HostSettings
from wpstack.core.observability.reporter import Reporter
from wpstack.core.steps.pipeline import build_pipeline

logger = logging.getLogger(__name__)


@dataclass
class ProvisionResult:
    """Result of a provisioning run."""

    report: PipelineReport | None = None
    failed_step: str | None = None
    mock: bool = False
    error: str | None = None

    def to_dict(self) -> dict:
        result: dict = {"mock": self.mock}
        if self.error:
            result["error"] = self.error
        if self.failed_step:
            result["failed_step"] = self.failed_step
        if self.report:
            result["report"] = self.report.to_dict()
        return result


def build_registry(settings: HostSettings, mock_mode: bool = False) -> AdapterRegistry:
    """Registry with every collaborator adapter registered."""
    from wpstack.adapters.accounts.users import AccountAdapter
    from wpstack.adapters.cms.wpcli import WpCliAdapter
    from wpstack.adapters.database.mysql import MysqlAdapter
    from wpstack.adapters.packages.apt import AptAdapter
    from wpstack.adapters.services.systemd import SystemdAdapter
    from wpstack.adapters.shell.command import ShellCommandAdapter
    from wpstack.adapters.shell.filesystem import FilesystemAdapter
    from wpstack.adapters.tls.certbot import CertbotAdapter

    registry = AdapterRegistry(
        mock_mode=mock_mode,
        root=settings.root,
        timeout=settings.command_timeout,
    )
    registry.register(ShellCommandAdapter())
    registry.register(FilesystemAdapter())
    registry.register(AptAdapter())
    registry.register(MysqlAdapter())
    registry.register(CertbotAdapter())
    registry.register(SystemdAdapter())
    registry.register(WpCliAdapter())
    registry.register(AccountAdapter())
    return registry


def check_preconditions(
    mock_mode: bool = False,
    geteuid: Callable[[], int] | None = None,
) -> None:
    """Raise PreconditionUnmet unless the run may touch the host."""
    if mock_mode:
        return
    if (geteuid or os.geteuid)() != 0:
        raise PreconditionUnmet("Provisioning must run as root (try sudo)")


def provision(
    config: SiteConfig,
    settings: HostSettings,
    reporter: Reporter,
    mock_mode: bool = False,
    registry: AdapterRegistry | None = None,
    probe: HostProbe | None = None,
    geteuid: Callable[[], int] | None = None,
) -> ProvisionResult:
    """Provision the host for ``config``.

    Args:
        config: Validated site configuration.
        settings: Host layout and tunables.
        reporter: Operator output.
        mock_mode: If True, no adapter really executes.
        registry: Optional pre-configured adapter registry.
        probe: Optional host probe (tests inject a simulated one).

    Returns:
        ProvisionResult with the pipeline report.
    """
    result = ProvisionResult(mock=mock_mode)

    try:
        check_preconditions(mock_mode, geteuid)
    except PreconditionUnmet as e:
        result.error = str(e)
        return result

    if registry is None:
        registry = build_registry(settings, mock_mode=mock_mode)
    runtime = Runtime(
        settings=settings,
        probe=probe or HostProbe(settings),
        registry=registry,
        reporter=reporter,
    )

    steps = build_pipeline(config, settings)
    logger.info("Provisioning %s: %d steps (mock=%s)", config.domain, len(steps), mock_mode)

    try:
        result.report = run_pipeline(config, steps, runtime)
    except CollaboratorFailure as e:
        result.report = e.report
        result.failed_step = e.step_id
        result.error = str(e)

    return result
