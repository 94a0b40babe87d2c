"""
L1 Domain — Operator input validation (pure).

Every validator takes the raw text the operator typed and returns the
normalized value, or raises ``ValidationFailure`` with a message fit
to show before re-prompting. No I/O.
"""

from __future__ import annotations

import re
import string
from dataclasses import dataclass

from wpstack.core.errors import PolicyViolation, ValidationFailure

_USERNAME_RE = re.compile(r"[a-z_][a-z0-9_-]{1,31}")
_DB_USER_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]{0,31}")
_ADMIN_USER_RE = re.compile(r"[A-Za-z0-9_.@-]{3,60}")
_TABLE_PREFIX_RE = re.compile(r"[a-zA-Z][a-zA-Z0-9_]{1,7}")
_THEME_SLUG_RE = re.compile(r"[a-z0-9][a-z0-9_-]*")
_EMAIL_RE = re.compile(r"[^@\s]+@[^@\s.]+(\.[^@\s.]+)+")
_DOMAIN_LABEL_RE = re.compile(r"[a-z0-9]([a-z0-9-]{0,61}[a-z0-9])?")

RESERVED_USERNAME = "root"
WWW_PREFIX = "www."
PREFIX_SEPARATOR = "_"


# ── Normalizers ─────────────────────────────────────────────────


def strip_www(domain: str) -> str:
    """Strip exactly one leading ``www.`` from a domain."""
    if domain.startswith(WWW_PREFIX):
        return domain[len(WWW_PREFIX):]
    return domain


def finalize_prefix(prefix: str) -> str:
    """Make sure a table prefix ends in the separator, exactly once added."""
    if prefix.endswith(PREFIX_SEPARATOR):
        return prefix
    return prefix + PREFIX_SEPARATOR


def db_ident(domain: str) -> str:
    """Database identifier derived from a domain (``a.b-c`` → ``a_b_c``)."""
    return "".join(ch if ch.isalnum() else "_" for ch in domain)


# ── Validators ──────────────────────────────────────────────────


def check_username(value: str) -> str:
    value = value.strip()
    if value == RESERVED_USERNAME:
        raise ValidationFailure("The username 'root' is reserved, choose another one")
    if not _USERNAME_RE.fullmatch(value):
        raise ValidationFailure(
            "Usernames are 2-32 characters: lowercase letters, digits, '_' or '-', "
            "starting with a letter or '_'"
        )
    return value


def check_domain(value: str) -> str:
    value = strip_www(value.strip().lower())
    if not value:
        raise ValidationFailure("The domain name cannot be empty")
    if any(ch.isspace() for ch in value):
        raise ValidationFailure("The domain name cannot contain whitespace")
    labels = value.split(".")
    well_formed = all(_DOMAIN_LABEL_RE.fullmatch(label) for label in labels)
    if len(value) > 253 or len(labels) < 2 or not well_formed:
        raise ValidationFailure(
            f"'{value}' is not a domain name: use dot-separated labels of letters, digits and '-'"
        )
    return value


def check_email(value: str) -> str:
    value = value.strip()
    if not _EMAIL_RE.fullmatch(value):
        raise ValidationFailure(f"'{value}' is not a valid email address")
    return value


def check_table_prefix(value: str) -> str:
    """Validate a table prefix and return it separator-suffixed.

    A prefix that already carries its separator is checked without it,
    so a finalized value validates again unchanged.
    """
    value = value.strip()
    bare = value[:-1] if value.endswith(PREFIX_SEPARATOR) else value
    if not (_TABLE_PREFIX_RE.fullmatch(value) or _TABLE_PREFIX_RE.fullmatch(bare)):
        raise ValidationFailure(
            "Table prefixes are 2-8 characters: letters, digits or '_', starting with a letter"
        )
    return finalize_prefix(value)


def check_site_name(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValidationFailure("The site name cannot be empty")
    return value


def check_db_user(value: str) -> str:
    value = value.strip()
    if value == RESERVED_USERNAME:
        raise ValidationFailure("The database user 'root' is reserved, choose another one")
    if not _DB_USER_RE.fullmatch(value):
        raise ValidationFailure(
            "Database users are 1-32 characters: letters, digits or '_', not starting with a digit"
        )
    return value


def check_admin_user(value: str) -> str:
    value = value.strip()
    if not _ADMIN_USER_RE.fullmatch(value):
        raise ValidationFailure(
            "Admin usernames are 3-60 characters: letters, digits, '_', '.', '@' or '-'"
        )
    return value


def check_theme_slug(value: str) -> str:
    value = value.strip()
    if not _THEME_SLUG_RE.fullmatch(value):
        raise ValidationFailure(
            "Theme slugs are lowercase letters, digits, '_' or '-' (e.g. 'twentytwentyfour')"
        )
    return value


# ── Password policies ───────────────────────────────────────────


@dataclass(frozen=True)
class PasswordPolicy:
    """A named predicate over secret length and character classes."""

    name: str
    min_length: int = 12
    require_upper: bool = False
    require_lower: bool = False
    require_digit: bool = False
    require_punctuation: bool = False

    def problems(self, secret: str) -> list[str]:
        """Return the rules ``secret`` breaks (empty = acceptable)."""
        found = []
        if len(secret) < self.min_length:
            found.append(f"at least {self.min_length} characters")
        if self.require_upper and not any(ch.isupper() for ch in secret):
            found.append("an uppercase letter")
        if self.require_lower and not any(ch.islower() for ch in secret):
            found.append("a lowercase letter")
        if self.require_digit and not any(ch.isdigit() for ch in secret):
            found.append("a digit")
        if self.require_punctuation and not any(ch in string.punctuation for ch in secret):
            found.append("a punctuation character")
        return found

    def __call__(self, secret: str) -> bool:
        return not self.problems(secret)

    def check(self, secret: str) -> str:
        problems = self.problems(secret)
        if problems:
            raise PolicyViolation(self.name, problems)
        return secret


STRICT_POLICY = PasswordPolicy(
    name="strict",
    require_upper=True,
    require_lower=True,
    require_digit=True,
    require_punctuation=True,
)

# Third-party relay credentials are generated by the provider and are
# lowercase alphanumeric.
RELAXED_POLICY = PasswordPolicy(
    name="relaxed",
    require_lower=True,
    require_digit=True,
)
