"""
Accounts adapter — OS users, passwords, groups and SSH keys.
"""

from __future__ import annotations

from wpstack.adapters.base import ExecutionContext
from wpstack.adapters.shell.tool import ToolAdapter
from wpstack.core.models.action import Receipt

ROOT_AUTHORIZED_KEYS = "/root/.ssh/authorized_keys"


class AccountAdapter(ToolAdapter):
    """OS account manager over shadow-utils.

    Action params:
        operation (str): 'create_user', 'set_password', 'add_to_group'
                         or 'install_authorized_keys'.
        username (str): Account name (all operations).
        password (str): New password for 'set_password' (stdin only).
        group (str): Supplementary group for 'add_to_group'.
        source (str): Key file to copy for 'install_authorized_keys'
                      (default: root's authorized_keys).
    """

    binary = "useradd"
    operations = {
        "create_user": ("username",),
        "set_password": ("username", "password"),
        "add_to_group": ("username", "group"),
        "install_authorized_keys": ("username",),
    }

    @property
    def name(self) -> str:
        return "accounts"

    def _create_user(self, ctx: ExecutionContext) -> Receipt:
        username = ctx.action.params["username"]
        return self._run(ctx, ["useradd", "--create-home", "--shell", "/bin/bash", username])

    def _set_password(self, ctx: ExecutionContext) -> Receipt:
        p = ctx.action.params
        return self._run(ctx, ["chpasswd"], input_text=f"{p['username']}:{p['password']}\n")

    def _add_to_group(self, ctx: ExecutionContext) -> Receipt:
        p = ctx.action.params
        return self._run(ctx, ["usermod", "--append", "--groups", p["group"], p["username"]])

    def _install_authorized_keys(self, ctx: ExecutionContext) -> Receipt:
        username = ctx.action.params["username"]
        source = ctx.host_path(ctx.action.params.get("source", ROOT_AUTHORIZED_KEYS))
        ssh_dir = ctx.host_path(f"/home/{username}/.ssh")
        owner = ["-o", username, "-g", username]

        made = self._run(ctx, ["install", "-d", "-m", "700", *owner, ssh_dir])
        if not made.ok:
            return made
        return self._run(
            ctx,
            ["install", "-m", "600", *owner, source, f"{ssh_dir}/authorized_keys"],
        )
