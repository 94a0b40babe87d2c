"""
Certbot adapter — Let's Encrypt certificates through the nginx plugin.
"""

from __future__ import annotations

from wpstack.adapters.base import ExecutionContext
from wpstack.adapters.shell.tool import ToolAdapter
from wpstack.core.models.action import Receipt


class CertbotAdapter(ToolAdapter):
    """Certificate issuer.

    ``--keep-until-expiring`` makes a repeated issue for the same names
    reuse the existing certificate instead of hitting the CA again.

    Action params:
        operation (str): 'issue'.
        domains (list[str]): Names on the certificate, primary first.
        email (str): Registration / expiry notice address.
    """

    binary = "certbot"
    operations = {"issue": ("domains", "email")}

    @property
    def name(self) -> str:
        return "certbot"

    def _issue(self, ctx: ExecutionContext) -> Receipt:
        domains = list(ctx.action.params["domains"])
        if not domains:
            return Receipt.failure(self.name, ctx.action.id, error="No domains given")
        argv = [
            "certbot",
            "--nginx",
            "--non-interactive",
            "--agree-tos",
            "--keep-until-expiring",
            "--redirect",
            "-m",
            ctx.action.params["email"],
        ]
        for domain in domains:
            argv += ["-d", domain]
        return self._run(ctx, argv)
