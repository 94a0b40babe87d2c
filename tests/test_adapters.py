"""
Tests for the adapter registry and the collaborator adapters.

Tool adapters are exercised with the runner patched out, so the tests
check the argv and stdin each operation produces without running apt,
mysql, wp-cli or certbot.
"""

import sys

import pytest

from wpstack.adapters.accounts.users import AccountAdapter
from wpstack.adapters.base import ExecutionContext
from wpstack.adapters.cms.wpcli import WpCliAdapter
from wpstack.adapters.database.mysql import MysqlAdapter
from wpstack.adapters.mock import MockAdapter
from wpstack.adapters.packages.apt import AptAdapter
from wpstack.adapters.registry import AdapterRegistry
from wpstack.adapters.services.systemd import SystemdAdapter
from wpstack.adapters.shell import tool
from wpstack.adapters.shell.command import ShellCommandAdapter
from wpstack.adapters.shell.filesystem import FilesystemAdapter
from wpstack.adapters.tls.certbot import CertbotAdapter
from wpstack.core.models.action import Action, Receipt

SECRET = "Str0ng!Passw0rd"


def _action(adapter: str, operation: str, step: str = "test", **params) -> Action:
    return Action.for_step(step, adapter, operation, params)


@pytest.fixture
def calls(monkeypatch):
    """Capture every runner call made by a ToolAdapter."""
    recorded = []

    def fake_run(adapter, action_id, cmd, **kwargs):
        recorded.append({"argv": cmd, **kwargs})
        return Receipt.success(adapter=adapter, action_id=action_id, output="ok")

    monkeypatch.setattr(tool, "run_to_receipt", fake_run)
    return recorded


def _execute(adapter, action, root="/"):
    registry = AdapterRegistry(root=root)
    registry.register(adapter)
    return registry.execute_action(action)


# ── Registry ─────────────────────────────────────────────────────


class TestRegistry:
    def test_unknown_adapter_fails(self):
        receipt = AdapterRegistry().execute_action(_action("nope", "run"))
        assert receipt.failed
        assert "No adapter registered" in receipt.error

    def test_validation_failure(self):
        receipt = _execute(AptAdapter(), _action("apt", "install"))
        assert receipt.failed
        assert "packages" in receipt.error

    def test_unknown_operation(self):
        receipt = _execute(AptAdapter(), _action("apt", "purge", packages=["x"]))
        assert receipt.failed
        assert "Unknown operation 'purge'" in receipt.error

    def test_dry_run_skips(self, calls):
        registry = AdapterRegistry()
        registry.register(AptAdapter())
        receipt = registry.execute_action(_action("apt", "update"), dry_run=True)
        assert receipt.status == "skipped"
        assert calls == []

    def test_default_mock_mode_succeeds(self):
        registry = AdapterRegistry(mock_mode=True)
        receipt = registry.execute_action(_action("apt", "install", packages=["nginx"]))
        assert receipt.ok
        assert receipt.metadata["mock"] is True

    def test_custom_mock_adapter(self):
        mock = MockAdapter()
        registry = AdapterRegistry()
        registry.register(AptAdapter())
        registry.set_mock_mode(True, mock)
        registry.execute_action(_action("apt", "update", step="base-packages"))
        assert mock.called_steps == ["base-packages"]

    def test_raising_adapter_becomes_failure(self):
        class Broken(MockAdapter):
            def execute(self, context):
                raise RuntimeError("boom")

        receipt = _execute(Broken(adapter_name="broken"), _action("broken", "x"))
        assert receipt.failed
        assert "boom" in receipt.error

    def test_receipt_line_names_action_and_error(self):
        receipt = _execute(AptAdapter(), _action("apt", "purge", step="base-packages", packages=["x"]))
        assert receipt.describe().startswith("base-packages:apt:purge → failed: Validation failed")


class TestContext:
    def test_host_path(self):
        action = _action("filesystem", "write")
        assert ExecutionContext(action=action).host_path("/etc/x") == "/etc/x"
        assert ExecutionContext(action=action, root="/tmp/h/").host_path("/etc/x") == "/tmp/h/etc/x"


# ── Filesystem ───────────────────────────────────────────────────


class TestFilesystem:
    def test_write_with_mode(self, tmp_path):
        receipt = _execute(
            FilesystemAdapter(),
            _action("filesystem", "write", path="/root/.my.cnf", content="[client]\n", mode=0o600),
            root=str(tmp_path),
        )
        target = tmp_path / "root" / ".my.cnf"
        assert receipt.ok
        assert target.read_text() == "[client]\n"
        assert (target.stat().st_mode & 0o777) == 0o600

    def test_append_adds_missing_newline(self, tmp_path):
        fstab = tmp_path / "etc" / "fstab"
        fstab.parent.mkdir()
        fstab.write_text("UUID=abcd / ext4 defaults 0 1")
        _execute(
            FilesystemAdapter(),
            _action("filesystem", "append", path="/etc/fstab", content="/swapfile none swap sw 0 0\n"),
            root=str(tmp_path),
        )
        assert fstab.read_text() == "UUID=abcd / ext4 defaults 0 1\n/swapfile none swap sw 0 0\n"

    def test_append_to_non_utf8_file(self, tmp_path):
        jail = tmp_path / "etc" / "fail2ban" / "jail.local"
        jail.parent.mkdir(parents=True)
        jail.write_bytes(b"# r\xe9seau")
        receipt = _execute(
            FilesystemAdapter(),
            _action("filesystem", "append", path="/etc/fail2ban/jail.local", content="[sshd]\n"),
            root=str(tmp_path),
        )
        assert receipt.ok
        assert jail.read_bytes() == b"# r\xe9seau\n[sshd]\n"

    def test_symlink_and_remove(self, tmp_path):
        fs = FilesystemAdapter()
        (tmp_path / "etc" / "nginx" / "sites-available").mkdir(parents=True)
        (tmp_path / "etc" / "nginx" / "sites-available" / "site").write_text("server {}")
        _execute(
            fs,
            _action(
                "filesystem",
                "symlink",
                path="/etc/nginx/sites-enabled/site",
                target="/etc/nginx/sites-available/site",
            ),
            root=str(tmp_path),
        )
        link = tmp_path / "etc" / "nginx" / "sites-enabled" / "site"
        assert link.is_symlink()
        assert link.read_text() == "server {}"

        _execute(fs, _action("filesystem", "remove", path="/etc/nginx/sites-enabled/site"), root=str(tmp_path))
        assert not link.is_symlink()

    def test_chmod_missing_file_is_a_failure(self, tmp_path):
        receipt = _execute(
            FilesystemAdapter(),
            _action("filesystem", "chmod", path="/absent", mode=0o600),
            root=str(tmp_path),
        )
        assert receipt.failed


# ── Shell ────────────────────────────────────────────────────────


class TestShellCommand:
    def test_runs_argv(self):
        receipt = _execute(ShellCommandAdapter(), _action("shell", "run", argv=[sys.executable, "-c", "print('hi')"]))
        assert receipt.ok
        assert receipt.output == "hi"

    def test_stdin_payload(self):
        code = "import sys; print(sys.stdin.read().upper())"
        receipt = _execute(
            ShellCommandAdapter(),
            _action("shell", "run", argv=[sys.executable, "-c", code], input="secret"),
        )
        assert receipt.output == "SECRET"
        assert "secret" not in receipt.metadata["command"]

    def test_non_zero_exit(self):
        code = "import sys; sys.stderr.write('bad config'); sys.exit(3)"
        receipt = _execute(ShellCommandAdapter(), _action("shell", "run", argv=[sys.executable, "-c", code]))
        assert receipt.failed
        assert "exit 3" in receipt.error
        assert "bad config" in receipt.error
        assert receipt.metadata["return_code"] == 3

    def test_missing_command(self):
        receipt = _execute(ShellCommandAdapter(), _action("shell", "run", argv=["wpstack-no-such-tool"]))
        assert receipt.failed
        assert "Command not found" in receipt.error

    def test_argv_must_be_a_list(self):
        receipt = _execute(ShellCommandAdapter(), _action("shell", "run", argv="ls -l"))
        assert receipt.failed


# ── Tool adapters ────────────────────────────────────────────────


class TestApt:
    def test_install(self, calls):
        receipt = _execute(AptAdapter(), _action("apt", "install", packages=["nginx", "ufw"]))
        assert receipt.ok
        assert receipt.metadata["operation"] == "install"
        assert calls[0]["argv"] == ["apt-get", "install", "-y", "-q", "nginx", "ufw"]
        assert calls[0]["env_overrides"] == {"DEBIAN_FRONTEND": "noninteractive"}

    def test_empty_install_is_skipped(self, calls):
        receipt = _execute(AptAdapter(), _action("apt", "install", packages=[]))
        assert receipt.status == "skipped"
        assert calls == []

    def test_preseed_goes_through_stdin(self, calls):
        selections = "postfix postfix/main_mailer_type select Satellite system"
        _execute(AptAdapter(), _action("apt", "preseed", selections=selections))
        assert calls[0]["argv"] == ["debconf-set-selections"]
        assert calls[0]["input_text"] == selections + "\n"


class TestMysql:
    def test_script_on_stdin(self, calls):
        statements = [f"CREATE USER 'wpuser'@'localhost' IDENTIFIED BY '{SECRET}'", "FLUSH PRIVILEGES;"]
        _execute(
            MysqlAdapter(),
            _action("mysql", "execute_script", statements=statements, defaults_file="/root/.my.cnf"),
        )
        call = calls[0]
        assert call["argv"] == ["mysql", "--defaults-file=/root/.my.cnf", "--batch"]
        assert call["input_text"] == f"{statements[0]};\nFLUSH PRIVILEGES;\n"
        assert SECRET not in " ".join(call["argv"])


class TestWpCli:
    def test_install_core_password_on_stdin(self, calls):
        _execute(
            WpCliAdapter(),
            _action(
                "wp",
                "install_core",
                path="/var/www/example.com",
                binary="/usr/local/bin/wp",
                url="https://example.com",
                title="Example Site",
                admin_user="siteadmin",
                admin_password=SECRET,
                admin_email="admin@example.com",
            ),
        )
        argv = calls[0]["argv"]
        assert argv[:3] == ["/usr/local/bin/wp", "core", "install"]
        assert "--prompt=admin_password" in argv
        assert "--allow-root" in argv
        assert "--path=/var/www/example.com" in argv
        assert SECRET not in " ".join(argv)
        assert calls[0]["input_text"] == SECRET + "\n"

    def test_create_config(self, calls):
        _execute(
            WpCliAdapter(),
            _action(
                "wp",
                "create_config",
                path="/var/www/example.com",
                dbname="example_com",
                dbuser="wpuser",
                dbpass=SECRET,
                dbprefix="wp_",
            ),
        )
        argv = calls[0]["argv"]
        assert argv[0] == "wp"
        assert "--dbname=example_com" in argv
        assert "--prompt=dbpass" in argv
        assert SECRET not in " ".join(argv)

    def test_raw_config_constant(self, calls):
        _execute(
            WpCliAdapter(),
            _action("wp", "set_config", path="/var/www/x", key="DISABLE_WP_CRON", value="true", raw=True),
        )
        argv = calls[0]["argv"]
        assert argv[1:6] == ["config", "set", "DISABLE_WP_CRON", "true", "--type=constant"]
        assert argv[-1] == "--raw"

    def test_path_follows_root(self, calls, tmp_path):
        _execute(WpCliAdapter(), _action("wp", "flush_rewrites", path="/var/www/x"), root=str(tmp_path))
        assert calls[0]["argv"][-1] == f"--path={tmp_path}/var/www/x"


class TestAccounts:
    def test_password_on_stdin(self, calls):
        _execute(AccountAdapter(), _action("accounts", "set_password", username="deploy", password=SECRET))
        assert calls[0]["argv"] == ["chpasswd"]
        assert calls[0]["input_text"] == f"deploy:{SECRET}\n"

    def test_authorized_keys(self, calls):
        _execute(AccountAdapter(), _action("accounts", "install_authorized_keys", username="deploy"))
        assert calls[0]["argv"] == ["install", "-d", "-m", "700", "-o", "deploy", "-g", "deploy", "/home/deploy/.ssh"]
        assert calls[1]["argv"][-2:] == ["/root/.ssh/authorized_keys", "/home/deploy/.ssh/authorized_keys"]

    def test_group(self, calls):
        _execute(AccountAdapter(), _action("accounts", "add_to_group", username="deploy", group="sudo"))
        assert calls[0]["argv"] == ["usermod", "--append", "--groups", "sudo", "deploy"]


class TestCertbotAndSystemd:
    def test_issue(self, calls):
        _execute(
            CertbotAdapter(),
            _action("certbot", "issue", domains=["example.com", "www.example.com"], email="ops@example.com"),
        )
        argv = calls[0]["argv"]
        assert "--keep-until-expiring" in argv
        assert argv[-4:] == ["-d", "example.com", "-d", "www.example.com"]

    def test_issue_without_domains(self, calls):
        receipt = _execute(CertbotAdapter(), _action("certbot", "issue", domains=[], email="ops@example.com"))
        assert receipt.failed
        assert calls == []

    def test_enable(self, calls):
        _execute(SystemdAdapter(), _action("systemctl", "enable", service="fail2ban"))
        assert calls[0]["argv"] == ["systemctl", "enable", "--now", "fail2ban"]


class TestWiring:
    @pytest.mark.parametrize(
        "adapter", ["accounts", "apt", "certbot", "filesystem", "mysql", "shell", "systemctl", "wp"]
    )
    def test_every_collaborator_is_registered(self, adapter):
        from wpstack.core.models.settings import HostSettings
        from wpstack.core.use_cases.provision import build_registry

        registry = build_registry(HostSettings(root="/tmp/host", command_timeout=60))
        receipt = registry.execute_action(_action(adapter, "nothing"), dry_run=True)
        assert registry.mock_mode is False
        assert "No adapter registered" not in (receipt.error or "")

    def test_mock_fails_a_whole_step(self):
        mock = MockAdapter()
        mock.fail_on("cms-core:*", error="Download failed")
        registry = AdapterRegistry(mock_mode=True)
        registry.set_mock_mode(True, mock)

        ok = registry.execute_action(_action("apt", "install", step="base-packages", packages=["nginx"]))
        failed = registry.execute_action(_action("wp", "download_core", step="cms-core"))
        assert ok.ok
        assert ok.output == "[mock] apt:install executed"
        assert failed.failed
        assert failed.adapter == "wp"
        assert failed.error == "Download failed"
        assert mock.called_steps == ["base-packages", "cms-core"]
