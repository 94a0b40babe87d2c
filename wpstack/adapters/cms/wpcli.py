"""
WP-CLI adapter — WordPress core, config, themes, plugins and options.

Runs as root with ``--allow-root``; the caller re-owns the document
root to the web user afterwards. Passwords are handed to wp-cli via
``--prompt=<field>`` and stdin, never on the command line.
"""

from __future__ import annotations

from wpstack.adapters.base import ExecutionContext
from wpstack.adapters.shell.tool import ToolAdapter
from wpstack.core.models.action import Receipt


class WpCliAdapter(ToolAdapter):
    """CMS manager over wp-cli.

    Every action carries ``path`` (the site document root, host path)
    and optionally ``binary`` (wp-cli location, default ``wp``).
    """

    binary = "wp"
    operations = {
        "download_core": ("path",),
        "create_config": ("path", "dbname", "dbuser", "dbpass", "dbprefix"),
        "set_config": ("path", "key", "value"),
        "install_core": ("path", "url", "title", "admin_user", "admin_password", "admin_email"),
        "install_theme": ("path", "slug"),
        "install_plugin": ("path", "slug"),
        "update_option": ("path", "key", "value"),
        "flush_rewrites": ("path",),
    }

    @property
    def name(self) -> str:
        return "wp"

    def _wp(self, ctx: ExecutionContext, *args: str) -> list[str]:
        params = ctx.action.params
        return [
            params.get("binary", self.binary),
            *args,
            "--allow-root",
            f"--path={ctx.host_path(params['path'])}",
        ]

    # ── Operations ──────────────────────────────────────────────

    def _download_core(self, ctx: ExecutionContext) -> Receipt:
        argv = self._wp(ctx, "core", "download")
        locale = ctx.action.params.get("locale")
        if locale:
            argv.append(f"--locale={locale}")
        return self._run(ctx, argv)

    def _create_config(self, ctx: ExecutionContext) -> Receipt:
        p = ctx.action.params
        argv = self._wp(
            ctx,
            "config",
            "create",
            f"--dbname={p['dbname']}",
            f"--dbuser={p['dbuser']}",
            f"--dbprefix={p['dbprefix']}",
            f"--dbhost={p.get('dbhost', 'localhost')}",
            "--prompt=dbpass",
        )
        return self._run(ctx, argv, input_text=p["dbpass"] + "\n")

    def _set_config(self, ctx: ExecutionContext) -> Receipt:
        p = ctx.action.params
        argv = self._wp(ctx, "config", "set", p["key"], str(p["value"]), "--type=constant")
        if p.get("raw"):
            argv.append("--raw")
        return self._run(ctx, argv)

    def _install_core(self, ctx: ExecutionContext) -> Receipt:
        p = ctx.action.params
        argv = self._wp(
            ctx,
            "core",
            "install",
            f"--url={p['url']}",
            f"--title={p['title']}",
            f"--admin_user={p['admin_user']}",
            f"--admin_email={p['admin_email']}",
            "--skip-email",
            "--prompt=admin_password",
        )
        return self._run(ctx, argv, input_text=p["admin_password"] + "\n")

    def _install_theme(self, ctx: ExecutionContext) -> Receipt:
        return self._run(ctx, self._wp(ctx, "theme", "install", ctx.action.params["slug"], "--activate"))

    def _install_plugin(self, ctx: ExecutionContext) -> Receipt:
        return self._run(ctx, self._wp(ctx, "plugin", "install", ctx.action.params["slug"], "--activate"))

    def _update_option(self, ctx: ExecutionContext) -> Receipt:
        p = ctx.action.params
        return self._run(ctx, self._wp(ctx, "option", "update", p["key"], str(p["value"])))

    def _flush_rewrites(self, ctx: ExecutionContext) -> Receipt:
        return self._run(ctx, self._wp(ctx, "rewrite", "flush"))
