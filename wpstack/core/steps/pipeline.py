"""
Pipeline declaration — every step, in execution order.

Order matters: the database exists before wp-config.php is created,
WordPress is installed before the certificate step rewrites the nginx
site for HTTPS, and the firewall goes up last so SSH stays reachable
while everything else is configured.
"""

from __future__ import annotations

from collections.abc import Callable

from wpstack.core.engine.executor import Step
from wpstack.core.models.config import SiteConfig
from wpstack.core.models.settings import HostSettings
from wpstack.core.steps import cms, database, mail, system, web

StepFactory = Callable[[SiteConfig, HostSettings], Step]

STEP_FACTORIES: tuple[StepFactory, ...] = (
    system.base_packages,
    system.admin_user,
    system.ssh_hardening,
    system.swap,
    web.web_server,
    database.database_server,
    database.database_site,
    web.php_runtime,
    cms.cms_cli,
    cms.cms_core,
    cms.cms_config,
    cms.cms_install,
    web.tls_certificate,
    cms.cms_theme,
    cms.cms_jetpack,
    cms.cms_options,
    cms.cms_cron,
    mail.mail_relay,
    system.auto_updates,
    system.fail2ban,
    system.firewall,
)


def build_pipeline(config: SiteConfig, settings: HostSettings) -> list[Step]:
    """Instantiate the steps for one configuration, in execution order."""
    return [factory(config, settings) for factory in STEP_FACTORIES]
