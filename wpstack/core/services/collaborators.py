"""
Collaborator facades — typed capability interfaces over the registry.

Step bodies call ``ctx.packages.install([...])`` rather than building
Actions by hand. Each facade method maps to exactly one adapter
operation, so every side effect still flows through the registry (and
shows up in receipts, mock call logs and dry-run output).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

from wpstack.core.models.action import Receipt

if TYPE_CHECKING:
    from wpstack.core.models.settings import HostSettings


class Invoker(Protocol):
    """Anything that can dispatch one adapter operation (a StepContext)."""

    def invoke(self, adapter: str, operation: str, **params: Any) -> Receipt: ...


class _Facade:
    adapter = ""

    def __init__(self, invoker: Invoker):
        self._invoker = invoker

    def _call(self, operation: str, **params: Any) -> Receipt:
        return self._invoker.invoke(self.adapter, operation, **params)


class PackageInstaller(_Facade):
    adapter = "apt"

    def update(self) -> Receipt:
        return self._call("update")

    def install(self, packages: list[str]) -> Receipt:
        return self._call("install", packages=list(packages))

    def register_key(self, url: str, keyring: str) -> Receipt:
        return self._call("add_key", url=url, keyring=keyring)

    def register_repository(self, line: str, list_file: str) -> Receipt:
        return self._call("add_repository", line=line, list_file=list_file)

    def preseed(self, selections: str) -> Receipt:
        return self._call("preseed", selections=selections)


class DatabaseAdministrator(_Facade):
    adapter = "mysql"

    def execute_admin_script(
        self, statements: list[str], defaults_file: str | None = None
    ) -> Receipt:
        params: dict[str, Any] = {"statements": list(statements)}
        if defaults_file:
            params["defaults_file"] = defaults_file
        return self._call("execute_script", **params)


class CertificateIssuer(_Facade):
    adapter = "certbot"

    def issue_or_reuse(self, domains: list[str], email: str) -> Receipt:
        return self._call("issue", domains=list(domains), email=email)


class ServiceController(_Facade):
    adapter = "systemctl"

    def restart(self, service: str) -> Receipt:
        return self._call("restart", service=service)

    def reload(self, service: str) -> Receipt:
        return self._call("reload", service=service)

    def enable(self, service: str) -> Receipt:
        return self._call("enable", service=service)


class CmsManager(_Facade):
    """wp-cli operations bound to one site directory."""

    adapter = "wp"

    def __init__(self, invoker: Invoker, site_dir: str, binary: str = "wp"):
        super().__init__(invoker)
        self.site_dir = site_dir
        self.binary = binary

    def _call(self, operation: str, **params: Any) -> Receipt:
        return super()._call(operation, path=self.site_dir, binary=self.binary, **params)

    def download_core(self) -> Receipt:
        return self._call("download_core")

    def create_config(self, dbname: str, dbuser: str, dbpass: str, dbprefix: str) -> Receipt:
        return self._call(
            "create_config", dbname=dbname, dbuser=dbuser, dbpass=dbpass, dbprefix=dbprefix
        )

    def set_config(self, key: str, value: str, raw: bool = False) -> Receipt:
        return self._call("set_config", key=key, value=value, raw=raw)

    def install_core(
        self, url: str, title: str, admin_user: str, admin_password: str, admin_email: str
    ) -> Receipt:
        return self._call(
            "install_core",
            url=url,
            title=title,
            admin_user=admin_user,
            admin_password=admin_password,
            admin_email=admin_email,
        )

    def install_theme(self, slug: str) -> Receipt:
        return self._call("install_theme", slug=slug)

    def install_plugin(self, slug: str) -> Receipt:
        return self._call("install_plugin", slug=slug)

    def update_option(self, key: str, value: str) -> Receipt:
        return self._call("update_option", key=key, value=value)

    def flush_rewrites(self) -> Receipt:
        return self._call("flush_rewrites")


class AccountManager(_Facade):
    adapter = "accounts"

    def create_user(self, username: str) -> Receipt:
        return self._call("create_user", username=username)

    def set_password(self, username: str, password: str) -> Receipt:
        return self._call("set_password", username=username, password=password)

    def add_to_group(self, username: str, group: str) -> Receipt:
        return self._call("add_to_group", username=username, group=group)

    def install_authorized_keys(self, username: str) -> Receipt:
        return self._call("install_authorized_keys", username=username)


class FileWriter(_Facade):
    adapter = "filesystem"

    def write(self, path: str, content: str, mode: int | None = None) -> Receipt:
        params: dict[str, Any] = {"path": path, "content": content}
        if mode is not None:
            params["mode"] = mode
        return self._call("write", **params)

    def append(self, path: str, content: str) -> Receipt:
        return self._call("append", path=path, content=content)

    def mkdir(self, path: str, mode: int | None = None) -> Receipt:
        params: dict[str, Any] = {"path": path}
        if mode is not None:
            params["mode"] = mode
        return self._call("mkdir", **params)

    def symlink(self, path: str, target: str) -> Receipt:
        return self._call("symlink", path=path, target=target)

    def remove(self, path: str) -> Receipt:
        return self._call("remove", path=path)

    def chmod(self, path: str, mode: int) -> Receipt:
        return self._call("chmod", path=path, mode=mode)

    def chown(self, path: str, owner: str, recursive: bool = False) -> Receipt:
        return self._call("chown", path=path, owner=owner, recursive=recursive)


class Shell(_Facade):
    adapter = "shell"

    def run(self, argv: list[str], input_text: str | None = None) -> Receipt:
        params: dict[str, Any] = {"argv": list(argv)}
        if input_text is not None:
            params["input"] = input_text
        return self._call("run", **params)


def cms_for(invoker: Invoker, settings: HostSettings, domain: str) -> CmsManager:
    """CmsManager bound to the document root of ``domain``."""
    return CmsManager(invoker, settings.site_dir(domain), binary=settings.wp_cli_path)
