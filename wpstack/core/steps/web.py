"""
Web tier steps: nginx site, PHP-FPM runtime and the TLS certificate.
"""

from __future__ import annotations

import re

from wpstack.core.data.templates import NGINX_SITE, render_template
from wpstack.core.engine.executor import Step, StepContext
from wpstack.core.engine.guards import FileExists, HasLine, PackagesInstalled, all_of
from wpstack.core.models.config import SiteConfig
from wpstack.core.models.settings import HostSettings
from wpstack.core.steps.common import ensure_packages

SITES_AVAILABLE = "/etc/nginx/sites-available"
SITES_ENABLED = "/etc/nginx/sites-enabled"
CERT_LIVE_DIR = "/etc/letsencrypt/live"

PHP_EXTENSIONS = ("fpm", "mysql", "curl", "gd", "mbstring", "xml", "zip", "intl")


def php_packages(settings: HostSettings) -> list[str]:
    return [f"php{settings.php_version}-{ext}" for ext in PHP_EXTENSIONS]


# ── web-server ───────────────────────────────────────────────────


def web_server(config: SiteConfig, settings: HostSettings) -> Step:
    available = f"{SITES_AVAILABLE}/{config.domain}"
    enabled = f"{SITES_ENABLED}/{config.domain}"
    packages = ["nginx"]

    def body(ctx: StepContext) -> None:
        ensure_packages(ctx, packages)
        site = render_template(
            NGINX_SITE,
            {
                "domain": config.domain,
                "www_domain": config.www_domain,
                "site_dir": settings.site_dir(config.domain),
                "php_fpm_socket": settings.php_fpm_socket,
                "upload_max_filesize": settings.php_ini.get("upload_max_filesize", "64M"),
            },
        )
        ctx.files.write(available, site)
        ctx.files.symlink(enabled, available)
        if ctx.probe.exists(f"{SITES_ENABLED}/default"):
            ctx.files.remove(f"{SITES_ENABLED}/default")
        ctx.shell.run(["nginx", "-t"])
        ctx.services.reload("nginx")

    return Step(
        "web-server",
        f"nginx site {config.domain}",
        all_of(PackagesInstalled(tuple(packages)), FileExists(available), FileExists(enabled)),
        body,
    )


# ── php-runtime ──────────────────────────────────────────────────


def _ini_line(key: str, value: str) -> str:
    return f"{key} = {value}"


def php_runtime(config: SiteConfig, settings: HostSettings) -> Step:
    packages = php_packages(settings)
    ini = settings.php_ini_path
    overrides = [HasLine(ini, _ini_line(k, v)) for k, v in settings.php_ini.items()]

    def body(ctx: StepContext) -> None:
        ensure_packages(ctx, packages)
        current = ctx.probe.read_text(ini) or ""
        for key, value in settings.php_ini.items():
            wanted = _ini_line(key, value)
            if ctx.probe.has_line(ini, wanted):
                continue
            match = re.search(rf"^;?\s*{re.escape(key)}\s*=.*$", current, re.MULTILINE)
            if match:
                ctx.patch(match.group(0), wanted, ini, whole_line=True)
            else:
                ctx.files.append(ini, wanted + "\n")
        ctx.services.restart(settings.php_fpm_service)

    return Step(
        "php-runtime",
        f"PHP {settings.php_version} runtime",
        all_of(PackagesInstalled(tuple(packages)), *overrides),
        body,
    )


# ── tls-certificate ──────────────────────────────────────────────


def tls_certificate(config: SiteConfig, settings: HostSettings) -> Step:
    packages = ["certbot", "python3-certbot-nginx"]

    def body(ctx: StepContext) -> None:
        ensure_packages(ctx, packages)
        ctx.certificates.issue_or_reuse(
            [config.domain, config.www_domain],
            config.notification_email,
        )

    return Step(
        "tls-certificate",
        f"TLS certificate for {config.domain}",
        FileExists(f"{CERT_LIVE_DIR}/{config.domain}/fullchain.pem"),
        body,
    )
