"""
Gather use case — build the SiteConfig from operator answers.

Every answer is validated as it is typed (re-prompting until valid),
so building the model at the end cannot fail on a field the operator
already confirmed. The same validators back ``load_answers``, which
is why both paths produce identical records for identical input.
"""

from __future__ import annotations

import logging
from typing import Any

from wpstack.core.domain.validation import (
    RELAXED_POLICY,
    STRICT_POLICY,
    check_admin_user,
    check_db_user,
    check_domain,
    check_email,
    check_site_name,
    check_table_prefix,
    check_theme_slug,
    check_username,
)
from wpstack.core.models.config import SiteConfig
from wpstack.core.observability.reporter import Reporter
from wpstack.core.services.prompts import (
    InputSource,
    Validator,
    ask_yes_no,
    collect_secret_confirmed,
    prompt_until_valid,
)

logger = logging.getLogger(__name__)

DEFAULT_TABLE_PREFIX = "wp_"
DEFAULT_THEME = "twentytwentyfour"


def _or_default(validator: Validator, default: str) -> Validator:
    """Accept an empty answer as ``default``."""

    def check(value: str) -> str:
        return validator(value if value.strip() else default)

    return check


def gather_config(source: InputSource, reporter: Reporter) -> SiteConfig:
    """Ask every question and return the validated configuration."""
    report = reporter.important
    answers: dict[str, Any] = {}

    def ask(field: str, prompt: str, validator: Validator) -> None:
        answers[field] = prompt_until_valid(source, prompt, validator, report)

    def secret(field: str, prompt: str) -> None:
        answers[field] = collect_secret_confirmed(source, prompt, STRICT_POLICY, report)

    # ── Admin account ────────────────────────────────────────────
    ask("username", "Admin (sudo) username", check_username)
    secret("user_password", "Password for the admin user")

    # ── Site ─────────────────────────────────────────────────────
    ask("domain", "Domain name (without www.)", check_domain)

    # ── Database ─────────────────────────────────────────────────
    secret("db_root_password", "MariaDB root password")
    ask("db_user", "Database user", check_db_user)
    secret("db_user_password", "Database user password")
    ask(
        "db_table_prefix",
        f"Table prefix [{DEFAULT_TABLE_PREFIX}]",
        _or_default(check_table_prefix, DEFAULT_TABLE_PREFIX),
    )

    # ── Features ─────────────────────────────────────────────────
    answers["use_swap"] = ask_yes_no(source, "Create a swap file?")
    answers["use_jetpack"] = ask_yes_no(source, "Install Jetpack?")
    answers["use_mailgun"] = ask_yes_no(source, "Relay mail through Mailgun?")

    # ── WordPress ────────────────────────────────────────────────
    ask("site_name", "Site title", check_site_name)
    ask("admin_user", "WordPress admin user", check_admin_user)
    secret("admin_password", "WordPress admin password")
    ask("admin_email", "WordPress admin email", check_email)
    ask(
        "theme_slug",
        f"Theme [{DEFAULT_THEME}]",
        _or_default(check_theme_slug, DEFAULT_THEME),
    )

    # ── Mail ─────────────────────────────────────────────────────
    if answers["use_mailgun"]:
        ask("mailgun_username", "Mailgun SMTP login", check_email)
        answers["mailgun_password"] = collect_secret_confirmed(
            source, "Mailgun SMTP password", RELAXED_POLICY, report
        )
    ask("notification_email", "Email for system notifications", check_email)

    config = SiteConfig(**answers)
    logger.info("Gathered configuration for %s", config.domain)
    return config
