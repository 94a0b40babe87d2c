"""
SiteConfig — the configuration model for one provisioning run.

Built once at the end of the gathering phase (interactively or from an
answers file), frozen, and passed explicitly to the pipeline builder.
Every field is validated by the same functions the interactive prompts
use, so both paths produce identical records for identical input.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator, model_validator

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
    db_ident,
)

SECRET_FIELDS = (
    "user_password",
    "db_root_password",
    "db_user_password",
    "admin_password",
    "mailgun_password",
)


class SiteConfig(BaseModel):
    """Operator-supplied and derived parameters of a provisioning run."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    # ── Identity ─────────────────────────────────────────────────
    username: str
    user_password: str = Field(repr=False)
    domain: str

    # ── Database ─────────────────────────────────────────────────
    db_root_password: str = Field(repr=False)
    db_user: str
    db_user_password: str = Field(repr=False)
    db_table_prefix: str = "wp_"

    # ── Feature toggles ──────────────────────────────────────────
    use_mailgun: bool = False
    use_swap: bool = True
    use_jetpack: bool = False

    # ── Site metadata ────────────────────────────────────────────
    site_name: str
    admin_user: str
    admin_password: str = Field(repr=False)
    admin_email: str
    theme_slug: str = "twentytwentyfour"

    # ── Third-party credentials ──────────────────────────────────
    mailgun_username: str = ""
    mailgun_password: str = Field(default="", repr=False)
    notification_email: str

    @field_validator("username")
    @classmethod
    def _username(cls, value: str) -> str:
        return check_username(value)

    @field_validator("domain")
    @classmethod
    def _domain(cls, value: str) -> str:
        return check_domain(value)

    @field_validator("db_user")
    @classmethod
    def _db_user(cls, value: str) -> str:
        return check_db_user(value)

    @field_validator("db_table_prefix")
    @classmethod
    def _table_prefix(cls, value: str) -> str:
        return check_table_prefix(value)

    @field_validator("site_name")
    @classmethod
    def _site_name(cls, value: str) -> str:
        return check_site_name(value)

    @field_validator("admin_user")
    @classmethod
    def _admin_user(cls, value: str) -> str:
        return check_admin_user(value)

    @field_validator("admin_email", "notification_email")
    @classmethod
    def _email(cls, value: str) -> str:
        return check_email(value)

    @field_validator("theme_slug")
    @classmethod
    def _theme_slug(cls, value: str) -> str:
        return check_theme_slug(value)

    @field_validator("user_password", "db_root_password", "db_user_password", "admin_password")
    @classmethod
    def _strict_secret(cls, value: str) -> str:
        return STRICT_POLICY.check(value)

    @model_validator(mode="after")
    def _mailgun_credentials(self) -> SiteConfig:
        if not self.use_mailgun:
            return self
        if not self.mailgun_username:
            raise ValueError("mailgun_username is required when use_mailgun is enabled")
        check_email(self.mailgun_username)
        RELAXED_POLICY.check(self.mailgun_password)
        return self

    # ── Derived ──────────────────────────────────────────────────

    @computed_field  # type: ignore[prop-decorator]
    @property
    def www_domain(self) -> str:
        return f"www.{self.domain}"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def db_name(self) -> str:
        return db_ident(self.domain)

    def summary(self) -> dict[str, Any]:
        """Field values for display, with secrets masked."""
        data = self.model_dump()
        for name in SECRET_FIELDS:
            if data.get(name):
                data[name] = "********"
        return data
