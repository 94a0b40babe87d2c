"""
MySQL adapter — administrative SQL against the local MariaDB server.

Statements are piped through stdin so neither SQL nor the passwords
embedded in it appear in the process list or in logs.
"""

from __future__ import annotations

from wpstack.adapters.base import ExecutionContext
from wpstack.adapters.shell.tool import ToolAdapter
from wpstack.core.models.action import Receipt


class MysqlAdapter(ToolAdapter):
    """Database administrator over the ``mysql`` client.

    Action params:
        operation (str): 'execute_script'.
        statements (list[str]): SQL statements, executed in order.
        defaults_file (str): Optional client credentials file (host path).
    """

    binary = "mysql"
    operations = {"execute_script": ("statements",)}

    @property
    def name(self) -> str:
        return "mysql"

    def _execute_script(self, ctx: ExecutionContext) -> Receipt:
        statements = [s.strip().rstrip(";") for s in ctx.action.params["statements"]]
        script = "".join(f"{s};\n" for s in statements if s)
        argv = ["mysql"]
        defaults_file = ctx.action.params.get("defaults_file")
        if defaults_file:
            # --defaults-file must be the first option.
            argv.append(f"--defaults-file={ctx.host_path(defaults_file)}")
        argv.append("--batch")
        receipt = self._run(ctx, argv, input_text=script)
        receipt.metadata["statements"] = len(statements)
        return receipt
