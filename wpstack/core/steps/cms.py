"""
WordPress steps, driven through wp-cli.

Every wp-cli write runs as root, so steps that create files hand the
document root back to the web user afterwards.
"""

from __future__ import annotations

from wpstack.core.data.templates import WP_CRON, render_template
from wpstack.core.engine.executor import Step, StepContext
from wpstack.core.engine.guards import BinaryAvailable, CmsOptionEquals, CmsQuery, FileExists
from wpstack.core.models.config import SiteConfig
from wpstack.core.models.settings import HostSettings

PERMALINK_STRUCTURE = "/%postname%/"
JETPACK = "jetpack"


def cron_file(config: SiteConfig) -> str:
    return f"/etc/cron.d/wp-cron-{config.db_name}"


def _owner(settings: HostSettings) -> str:
    return f"{settings.web_user}:{settings.web_user}"


def cms_cli(config: SiteConfig, settings: HostSettings) -> Step:
    def body(ctx: StepContext) -> None:
        ctx.shell.run(["curl", "-fsSL", "-o", settings.wp_cli_path, settings.wp_cli_url])
        ctx.files.chmod(settings.wp_cli_path, 0o755)

    return Step("cms-cli", "wp-cli", BinaryAvailable(settings.wp_cli_path), body)


def cms_core(config: SiteConfig, settings: HostSettings) -> Step:
    site_dir = settings.site_dir(config.domain)

    def body(ctx: StepContext) -> None:
        ctx.files.mkdir(site_dir, mode=0o755)
        ctx.cms.download_core()
        ctx.files.chown(site_dir, _owner(settings), recursive=True)

    return Step(
        "cms-core",
        "WordPress core files",
        FileExists(f"{site_dir}/wp-includes/version.php"),
        body,
    )


def cms_config(config: SiteConfig, settings: HostSettings) -> Step:
    wp_config = f"{settings.site_dir(config.domain)}/wp-config.php"

    def body(ctx: StepContext) -> None:
        ctx.cms.create_config(
            dbname=config.db_name,
            dbuser=config.db_user,
            dbpass=config.db_user_password,
            dbprefix=config.db_table_prefix,
        )
        # System cron (cms-cron) replaces the request-triggered one.
        ctx.cms.set_config("DISABLE_WP_CRON", "true", raw=True)
        ctx.files.chown(wp_config, _owner(settings))
        ctx.files.chmod(wp_config, 0o640)

    return Step("cms-config", "wp-config.php", FileExists(wp_config), body)


def cms_install(config: SiteConfig, settings: HostSettings) -> Step:
    site_dir = settings.site_dir(config.domain)

    def body(ctx: StepContext) -> None:
        ctx.cms.install_core(
            url=f"https://{config.domain}",
            title=config.site_name,
            admin_user=config.admin_user,
            admin_password=config.admin_password,
            admin_email=config.admin_email,
        )

    return Step(
        "cms-install",
        "WordPress install",
        CmsQuery(site_dir, ("core", "is-installed")),
        body,
    )


def cms_theme(config: SiteConfig, settings: HostSettings) -> Step:
    site_dir = settings.site_dir(config.domain)

    def body(ctx: StepContext) -> None:
        ctx.cms.install_theme(config.theme_slug)
        ctx.files.chown(f"{site_dir}/wp-content", _owner(settings), recursive=True)

    return Step(
        "cms-theme",
        f"Theme {config.theme_slug}",
        CmsQuery(site_dir, ("theme", "is-active", config.theme_slug)),
        body,
    )


def cms_jetpack(config: SiteConfig, settings: HostSettings) -> Step:
    site_dir = settings.site_dir(config.domain)

    def body(ctx: StepContext) -> None:
        ctx.cms.install_plugin(JETPACK)
        ctx.files.chown(f"{site_dir}/wp-content", _owner(settings), recursive=True)

    return Step(
        "cms-jetpack",
        "Jetpack plugin",
        CmsQuery(site_dir, ("plugin", "is-active", JETPACK)),
        body,
        when=lambda c: c.use_jetpack,
    )


def cms_options(config: SiteConfig, settings: HostSettings) -> Step:
    site_dir = settings.site_dir(config.domain)

    def body(ctx: StepContext) -> None:
        ctx.cms.update_option("permalink_structure", PERMALINK_STRUCTURE)
        ctx.cms.flush_rewrites()

    return Step(
        "cms-options",
        "Permalinks",
        CmsOptionEquals(site_dir, "permalink_structure", PERMALINK_STRUCTURE),
        body,
    )


def cms_cron(config: SiteConfig, settings: HostSettings) -> Step:
    path = cron_file(config)

    def body(ctx: StepContext) -> None:
        ctx.files.write(
            path,
            render_template(
                WP_CRON,
                {
                    "domain": config.domain,
                    "web_user": settings.web_user,
                    "wp_cli_path": settings.wp_cli_path,
                    "site_dir": settings.site_dir(config.domain),
                },
            ),
            mode=0o644,
        )

    return Step("cms-cron", "WordPress cron", FileExists(path), body)
