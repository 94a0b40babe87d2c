"""
HostSettings — non-secret tunables of the target host.

These are the knobs an operator may want to change without touching
code: where the filesystem root is, which PHP version the distro
ships, how big the swap file is. Loaded from ``wpstack.yml`` by
``wpstack.core.config.loader``; every field has a default.
"""

from __future__ import annotations

from pathlib import Path, PurePosixPath

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_BASE_PACKAGES = [
    "curl",
    "unzip",
    "gnupg",
    "ca-certificates",
    "software-properties-common",
    "ufw",
    "unattended-upgrades",
]

DEFAULT_PHP_INI = {
    "upload_max_filesize": "64M",
    "post_max_size": "64M",
    "memory_limit": "256M",
    "max_execution_time": "120",
}


class HostSettings(BaseModel):
    """Host layout and tool tunables."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    # All absolute host paths resolve under this root. "/" on a real
    # machine; a scratch directory in tests.
    root: str = "/"

    web_root: str = "/var/www"
    web_user: str = "www-data"

    php_version: str = "8.3"
    php_ini: dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_PHP_INI))

    swap_size_mb: int = Field(default=2048, gt=0)
    swappiness: int = Field(default=10, ge=0, le=100)

    relay_host: str = "smtp.mailgun.org"
    relay_port: int = 587

    wp_cli_url: str = "https://raw.githubusercontent.com/wp-cli/builds/gh-pages/phar/wp-cli.phar"
    wp_cli_path: str = "/usr/local/bin/wp"

    command_timeout: int = Field(default=1800, gt=0)
    base_packages: list[str] = Field(default_factory=lambda: list(DEFAULT_BASE_PACKAGES))

    def host_path(self, path: str | PurePosixPath) -> Path:
        """Map an absolute host path onto the configured root."""
        relative = str(path).lstrip("/")
        return Path(self.root) / relative

    def site_dir(self, domain: str) -> str:
        """Absolute (unrooted) document root of a site."""
        return str(PurePosixPath(self.web_root) / domain)

    @property
    def php_fpm_service(self) -> str:
        return f"php{self.php_version}-fpm"

    @property
    def php_fpm_socket(self) -> str:
        return f"/run/php/php{self.php_version}-fpm.sock"

    @property
    def php_ini_path(self) -> str:
        return f"/etc/php/{self.php_version}/fpm/php.ini"
