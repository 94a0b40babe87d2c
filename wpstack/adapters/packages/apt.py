"""
APT adapter — Debian/Ubuntu package management.

Installs run non-interactively; debconf answers are preseeded through
stdin so package post-install scripts never prompt.
"""

from __future__ import annotations

from wpstack.adapters.base import ExecutionContext
from wpstack.adapters.shell.tool import ToolAdapter
from wpstack.core.models.action import Receipt

_NONINTERACTIVE = {"DEBIAN_FRONTEND": "noninteractive"}


class AptAdapter(ToolAdapter):
    """Package installer over apt-get.

    Action params:
        operation (str): 'update', 'install', 'add_key', 'add_repository'
                         or 'preseed'.
        packages (list[str]): Packages for 'install'.
        url (str), keyring (str): Key source and keyring path for 'add_key'.
        line (str), list_file (str): Source line and list file for
                                     'add_repository'.
        selections (str): debconf-set-selections input for 'preseed'.
    """

    binary = "apt-get"
    operations = {
        "update": (),
        "install": ("packages",),
        "add_key": ("url", "keyring"),
        "add_repository": ("line", "list_file"),
        "preseed": ("selections",),
    }

    @property
    def name(self) -> str:
        return "apt"

    def _update(self, ctx: ExecutionContext) -> Receipt:
        return self._run(ctx, ["apt-get", "update", "-q"], env=_NONINTERACTIVE)

    def _install(self, ctx: ExecutionContext) -> Receipt:
        packages = list(ctx.action.params["packages"])
        if not packages:
            return Receipt.skip(self.name, ctx.action.id, reason="No packages requested")
        return self._run(
            ctx,
            ["apt-get", "install", "-y", "-q", *packages],
            env=_NONINTERACTIVE,
        )

    def _add_key(self, ctx: ExecutionContext) -> Receipt:
        keyring = ctx.host_path(ctx.action.params["keyring"])
        armored = f"{keyring}.asc"
        fetched = self._run(ctx, ["curl", "-fsSL", "-o", armored, ctx.action.params["url"]])
        if not fetched.ok:
            return fetched
        return self._run(ctx, ["gpg", "--batch", "--yes", "--dearmor", "-o", keyring, armored])

    def _add_repository(self, ctx: ExecutionContext) -> Receipt:
        list_file = ctx.host_path(ctx.action.params["list_file"])
        return self._run(
            ctx,
            ["tee", list_file],
            input_text=ctx.action.params["line"].rstrip("\n") + "\n",
        )

    def _preseed(self, ctx: ExecutionContext) -> Receipt:
        return self._run(
            ctx,
            ["debconf-set-selections"],
            input_text=ctx.action.params["selections"].rstrip("\n") + "\n",
        )
