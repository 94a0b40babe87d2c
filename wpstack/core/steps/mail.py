"""
Mail relay step: Postfix as a satellite relaying through Mailgun.
"""

from __future__ import annotations

from wpstack.core.data.templates import SASL_PASSWD, render_template
from wpstack.core.engine.executor import Step, StepContext
from wpstack.core.engine.guards import FileExists, HasLine, all_of
from wpstack.core.models.config import SiteConfig
from wpstack.core.models.settings import HostSettings
from wpstack.core.steps.common import ensure_line, ensure_packages

MAIN_CF = "/etc/postfix/main.cf"
SASL_PASSWD_FILE = "/etc/postfix/sasl_passwd"

SASL_SETTINGS = (
    "smtp_sasl_auth_enable = yes\n"
    f"smtp_sasl_password_maps = hash:{SASL_PASSWD_FILE}\n"
    "smtp_sasl_security_options = noanonymous\n"
    "smtp_tls_security_level = encrypt\n"
)


def relay_line(settings: HostSettings) -> str:
    return f"relayhost = [{settings.relay_host}]:{settings.relay_port}"


def mail_relay(config: SiteConfig, settings: HostSettings) -> Step:
    packages = ["postfix", "libsasl2-modules"]
    relay = HasLine(MAIN_CF, relay_line(settings))
    credentials = FileExists(f"{SASL_PASSWD_FILE}.db")

    def body(ctx: StepContext) -> None:
        ctx.packages.preseed(
            f"postfix postfix/mailname string {config.domain}\n"
            "postfix postfix/main_mailer_type select Internet Site\n"
        )
        ensure_packages(ctx, packages)

        if not ctx.satisfied(credentials):
            ctx.files.write(
                SASL_PASSWD_FILE,
                render_template(
                    SASL_PASSWD,
                    {
                        "relay_host": settings.relay_host,
                        "relay_port": settings.relay_port,
                        "mailgun_username": config.mailgun_username,
                        "mailgun_password": config.mailgun_password,
                    },
                ),
                mode=0o600,
            )
            ctx.shell.run(["postmap", SASL_PASSWD_FILE])
            ctx.files.chmod(f"{SASL_PASSWD_FILE}.db", 0o600)

        if not ctx.satisfied(relay):
            ensure_line(ctx, MAIN_CF, "relayhost = \n", relay_line(settings) + "\n")
        if not ctx.probe.has_line(MAIN_CF, "smtp_sasl_auth_enable = yes"):
            ctx.files.append(MAIN_CF, SASL_SETTINGS)

        ctx.services.restart("postfix")

    return Step(
        "mail-relay",
        f"Mail relay via {settings.relay_host}",
        all_of(credentials, relay),
        body,
        when=lambda c: c.use_mailgun,
    )
