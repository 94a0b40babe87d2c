"""
Database steps: MariaDB server hardening and the site database.

``/root/.my.cnf`` doubles as the completion marker of the server step
and as the credentials file every later admin script runs with.
"""

from __future__ import annotations

from wpstack.core.data.templates import MYSQL_CLIENT_CNF, render_template
from wpstack.core.detection.host_probe import MYSQL_DEFAULTS_FILE
from wpstack.core.engine.executor import Step, StepContext
from wpstack.core.engine.guards import DatabaseExists, FileExists, PackagesInstalled, all_of
from wpstack.core.models.config import SiteConfig
from wpstack.core.models.settings import HostSettings
from wpstack.core.steps.common import ensure_packages, option_file_quote, sql_quote


def secure_installation_sql(root_password: str) -> list[str]:
    """Statements equivalent to mysql_secure_installation.

    Root keeps unix_socket authentication alongside the password so a
    re-run as the OS root user still gets in.
    """
    return [
        "ALTER USER 'root'@'localhost' IDENTIFIED VIA unix_socket "
        f"OR mysql_native_password USING PASSWORD({sql_quote(root_password)})",
        "DELETE FROM mysql.global_priv WHERE User=''",
        "DELETE FROM mysql.global_priv WHERE User='root' "
        "AND Host NOT IN ('localhost', '127.0.0.1', '::1')",
        "DROP DATABASE IF EXISTS test",
        "DELETE FROM mysql.db WHERE Db='test' OR Db='test\\_%'",
        "FLUSH PRIVILEGES",
    ]


def site_database_sql(db_name: str, db_user: str, db_password: str) -> list[str]:
    account = f"{sql_quote(db_user)}@'localhost'"
    return [
        f"CREATE DATABASE IF NOT EXISTS `{db_name}` "
        "CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci",
        f"CREATE USER IF NOT EXISTS {account} IDENTIFIED BY {sql_quote(db_password)}",
        f"ALTER USER {account} IDENTIFIED BY {sql_quote(db_password)}",
        f"GRANT ALL PRIVILEGES ON `{db_name}`.* TO {account}",
        "FLUSH PRIVILEGES",
    ]


# ── database-server ──────────────────────────────────────────────


def database_server(config: SiteConfig, settings: HostSettings) -> Step:
    packages = ["mariadb-server", "mariadb-client"]

    def body(ctx: StepContext) -> None:
        ensure_packages(ctx, packages)
        ctx.database.execute_admin_script(secure_installation_sql(config.db_root_password))
        ctx.files.write(
            MYSQL_DEFAULTS_FILE,
            render_template(
                MYSQL_CLIENT_CNF, {"db_root_password": option_file_quote(config.db_root_password)}
            ),
            mode=0o600,
        )

    return Step(
        "database-server",
        "MariaDB server",
        all_of(PackagesInstalled(tuple(packages)), FileExists(MYSQL_DEFAULTS_FILE)),
        body,
    )


# ── database-site ────────────────────────────────────────────────


def database_site(config: SiteConfig, settings: HostSettings) -> Step:
    def body(ctx: StepContext) -> None:
        ctx.database.execute_admin_script(
            site_database_sql(config.db_name, config.db_user, config.db_user_password),
            defaults_file=MYSQL_DEFAULTS_FILE,
        )

    return Step(
        "database-site",
        f"Database {config.db_name}",
        DatabaseExists(config.db_name),
        body,
    )
