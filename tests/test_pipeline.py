"""
Pipeline tests against a simulated host — ordering, idempotency,
fail-fast, resumption and configuration propagation.
"""

from pathlib import Path

from wpstack.adapters.mock import MockAdapter
from wpstack.adapters.registry import AdapterRegistry
from wpstack.core.models.settings import HostSettings
from wpstack.core.observability.reporter import Reporter
from wpstack.core.steps.pipeline import build_pipeline
from wpstack.core.use_cases.plan import plan
from wpstack.core.use_cases.provision import provision

from tests.simulated_host import STOCK_PHP_INI, simulated_runtime_parts

ALL_STEPS = [
    "base-packages",
    "admin-user",
    "ssh-hardening",
    "swap",
    "web-server",
    "database-server",
    "database-site",
    "php-runtime",
    "cms-cli",
    "cms-core",
    "cms-config",
    "cms-install",
    "tls-certificate",
    "cms-theme",
    "cms-jetpack",
    "cms-options",
    "cms-cron",
    "mail-relay",
    "auto-updates",
    "fail2ban",
    "firewall",
]


def _root():
    return lambda: 0


def _run(config, settings, registry, probe):
    return provision(
        config,
        settings,
        Reporter(quiet=True),
        registry=registry,
        probe=probe,
        geteuid=_root(),
    )


class TestPipelineDeclaration:
    def test_order(self, site_config, settings):
        steps = build_pipeline(site_config, settings)
        assert [s.id for s in steps] == ALL_STEPS

    def test_toggles_follow_config(self, site_config, full_config, settings):
        plain = {s.id: s.selected(site_config) for s in build_pipeline(site_config, settings)}
        full = {s.id: s.selected(full_config) for s in build_pipeline(full_config, settings)}
        assert not plain["mail-relay"] and full["mail-relay"]
        assert not plain["cms-jetpack"] and full["cms-jetpack"]
        assert plain["swap"] and full["swap"]


class TestFirstRun:
    def test_every_selected_step_runs_and_verifies(self, full_config, settings):
        _, registry, probe = simulated_runtime_parts(settings)
        result = _run(full_config, settings, registry, probe)

        assert result.error is None
        assert result.report.status == "ok"
        assert [r.step_id for r in result.report.records] == ALL_STEPS
        assert all(r.status == "done" for r in result.report.records)
        assert result.report.unverified == []
        assert registry.steps_called == ALL_STEPS

    def test_deselected_features_are_never_invoked(self, site_config, settings):
        _, registry, probe = simulated_runtime_parts(settings)
        result = _run(site_config, settings, registry, probe)

        assert result.report.get("mail-relay").status == "skipped"
        assert result.report.get("cms-jetpack").status == "skipped"
        assert "mail-relay" not in registry.steps_called
        assert "cms-jetpack" not in registry.steps_called

    def test_swap_toggle_off(self, settings):
        from wpstack.core.models.config import SiteConfig

        from tests.helpers import site_answers

        config = SiteConfig(**site_answers(use_swap=False))
        host, registry, probe = simulated_runtime_parts(settings)
        _run(config, settings, registry, probe)
        assert "swap" not in registry.steps_called
        assert not host.path("/swapfile").exists()


class TestIdempotency:
    def test_second_run_makes_no_collaborator_calls(self, full_config, settings):
        _, registry, probe = simulated_runtime_parts(settings)
        _run(full_config, settings, registry, probe)

        registry.actions.clear()
        second = _run(full_config, settings, registry, probe)

        assert registry.actions == []
        assert second.error is None
        statuses = {r.step_id: r.status for r in second.report.records}
        assert set(statuses.values()) == {"satisfied"}

    def test_second_run_leaves_files_unchanged(self, full_config, settings):
        host, registry, probe = simulated_runtime_parts(settings)
        _run(full_config, settings, registry, probe)
        watched = [
            "/etc/ssh/sshd_config",
            "/etc/fstab",
            f"/etc/php/{settings.php_version}/fpm/php.ini",
            "/etc/postfix/main.cf",
            "/etc/apt/apt.conf.d/50unattended-upgrades",
        ]
        before = {p: host.read(p) for p in watched}
        _run(full_config, settings, registry, probe)
        assert {p: host.read(p) for p in watched} == before

    def test_plan_after_provision_has_nothing_pending(self, full_config, settings):
        _, registry, probe = simulated_runtime_parts(settings)
        _run(full_config, settings, registry, probe)
        result = plan(full_config, settings, Reporter(quiet=True), probe=probe)
        assert result.pending == []


class TestFailFast:
    def test_failure_stops_the_run(self, site_config, settings):
        _, registry, probe = simulated_runtime_parts(settings)
        registry.fail_on["database-site:mysql:execute_script"] = "ERROR 1045: access denied"

        result = _run(site_config, settings, registry, probe)

        assert result.failed_step == "database-site"
        assert "access denied" in result.error
        assert result.report.status == "failed"
        assert result.report.records[-1].step_id == "database-site"
        assert registry.steps_called[-1] == "database-site"
        assert "php-runtime" not in registry.steps_called

    def test_rerun_resumes_at_the_failed_step(self, site_config, settings):
        _, registry, probe = simulated_runtime_parts(settings)
        registry.fail_on["cms-install:wp:install_core"] = "Error: database connection"
        _run(site_config, settings, registry, probe)

        registry.fail_on.clear()
        registry.actions.clear()
        result = _run(site_config, settings, registry, probe)

        assert result.error is None
        assert registry.steps_called[0] == "cms-install"
        statuses = {r.step_id: r.status for r in result.report.records}
        assert statuses["cms-config"] == "satisfied"
        assert statuses["cms-install"] == "done"

    def test_failure_within_a_step_stops_its_remaining_calls(self, site_config, settings):
        _, registry, probe = simulated_runtime_parts(settings)
        registry.fail_on["web-server:shell:run"] = "nginx: configuration file test failed"
        _run(site_config, settings, registry, probe)
        ids = [a.id for a in registry.actions]
        assert ids[-1] == "web-server:shell:run"
        assert "web-server:systemctl:reload" not in ids


class TestPrecondition:
    def test_non_root_is_refused_before_any_step(self, site_config, settings):
        _, registry, probe = simulated_runtime_parts(settings)
        result = provision(
            site_config,
            settings,
            Reporter(quiet=True),
            registry=registry,
            probe=probe,
            geteuid=lambda: 1000,
        )
        assert "root" in result.error
        assert result.report is None
        assert registry.actions == []


class TestPropagation:
    def test_domain_reaches_every_dependent_artifact(self, full_config, settings):
        host, registry, probe = simulated_runtime_parts(settings)
        _run(full_config, settings, registry, probe)

        site = host.read("/etc/nginx/sites-available/example.com")
        assert "server_name example.com www.example.com;" in site
        assert "root /var/www/example.com;" in site
        assert host.path("/etc/letsencrypt/live/example.com/fullchain.pem").exists()
        cron = host.read("/etc/cron.d/wp-cron-example_com")
        assert "--path=/var/www/example.com" in cron
        assert "example_com" in host.databases

        certbot = next(a for a in registry.actions if a.adapter == "certbot")
        assert certbot.params["domains"] == ["example.com", "www.example.com"]
        install = next(a for a in registry.actions if a.id == "cms-install:wp:install_core")
        assert install.params["url"] == "https://example.com"

    def test_hardening_edits(self, full_config, settings):
        host, registry, probe = simulated_runtime_parts(settings)
        _run(full_config, settings, registry, probe)

        assert "PermitRootLogin no" in host.read("/etc/ssh/sshd_config")
        assert "/swapfile none swap sw 0 0" in host.read("/etc/fstab")
        php_ini = host.read(f"/etc/php/{settings.php_version}/fpm/php.ini")
        assert "upload_max_filesize = 64M" in php_ini
        assert "upload_max_filesize = 2M" not in php_ini
        main_cf = host.read("/etc/postfix/main.cf")
        assert "relayhost = [smtp.mailgun.org]:587" in main_cf
        assert main_cf.count("smtp_sasl_auth_enable = yes") == 1
        assert 'Unattended-Upgrade::Mail "ops@example.com";' in host.read(
            "/etc/apt/apt.conf.d/50unattended-upgrades"
        )
        assert (host.path("/root/.my.cnf").stat().st_mode & 0o777) == 0o600

    def test_root_password_is_quoted_in_client_file(self, settings):
        from wpstack.core.models.config import SiteConfig

        from tests.helpers import site_answers

        config = SiteConfig(**site_answers(db_root_password="Str0ng#Pass\\w0rd"))
        host, registry, probe = simulated_runtime_parts(settings)
        _run(config, settings, registry, probe)
        assert "password=\"Str0ng#Pass\\\\w0rd\"\n" in host.read("/root/.my.cnf")

    def test_secrets_stay_off_argv(self, full_config, settings):
        _, registry, probe = simulated_runtime_parts(settings)
        _run(full_config, settings, registry, probe)
        for action in registry.actions:
            assert full_config.admin_password not in " ".join(action.params.get("argv", []))


class TestHostFileVariants:
    def test_active_root_login_directive_is_rewritten(self, site_config, settings):
        host, registry, probe = simulated_runtime_parts(settings)
        host.write(
            "/etc/ssh/sshd_config",
            "Port 22\nPermitRootLogin prohibit-password\n#PermitRootLogin no\nPasswordAuthentication yes\n",
        )
        result = _run(site_config, settings, registry, probe)

        record = result.report.get("ssh-hardening")
        assert (record.status, record.verified) == ("done", True)
        assert host.read("/etc/ssh/sshd_config") == (
            "Port 22\nPermitRootLogin no\n#PermitRootLogin no\nPasswordAuthentication yes\n"
        )

    def test_php_ini_with_latin1_bytes(self, site_config, settings):
        host, registry, probe = simulated_runtime_parts(settings)
        host.stock_php_ini = b"; caf\xe9\n" + STOCK_PHP_INI.encode()
        result = _run(site_config, settings, registry, probe)

        assert result.error is None
        assert result.report.get("php-runtime").verified is True
        php_ini = host.path(f"/etc/php/{settings.php_version}/fpm/php.ini").read_bytes()
        assert php_ini.startswith(b"; caf\xe9\n")
        assert b"upload_max_filesize = 64M\n" in php_ini

    def test_longer_ini_value_is_not_taken_as_set(self, site_config, settings):
        host, registry, probe = simulated_runtime_parts(settings)
        host.stock_php_ini = STOCK_PHP_INI.replace("= 30\n", "= 1200\n").encode()
        _run(site_config, settings, registry, probe)

        php_ini = host.read(f"/etc/php/{settings.php_version}/fpm/php.ini")
        assert "max_execution_time = 120\n" in php_ini
        assert "1200" not in php_ini


class TestMockMode:
    def test_mock_run_calls_every_step_in_order(self, site_config, settings):
        _, _, probe = simulated_runtime_parts(settings)
        mock = MockAdapter()
        registry = AdapterRegistry(root=settings.root)
        registry.set_mock_mode(True, mock)

        result = provision(
            site_config, settings, Reporter(quiet=True), mock_mode=True, registry=registry, probe=probe
        )

        assert result.error is None
        called = list(dict.fromkeys(mock.called_steps))
        assert called == [s for s in ALL_STEPS if s not in ("cms-jetpack", "mail-relay")]
        assert all(r.verified is None for r in result.report.records if r.status == "done")

    def test_mock_failure_injection(self, site_config, settings):
        _, _, probe = simulated_runtime_parts(settings)
        mock = MockAdapter()
        mock.fail_on("cms-core:wp:download_core", error="Download failed")
        registry = AdapterRegistry(root=settings.root)
        registry.set_mock_mode(True, mock)

        result = provision(
            site_config, settings, Reporter(quiet=True), mock_mode=True, registry=registry, probe=probe
        )

        assert result.failed_step == "cms-core"
        assert "cms-config" not in mock.called_steps

    def test_mock_mode_leaves_files_untouched(self, site_config, host_root: Path):
        settings = HostSettings(root=str(host_root))
        host, _, probe = simulated_runtime_parts(settings)
        sshd = host.read("/etc/ssh/sshd_config")
        registry = AdapterRegistry(root=settings.root)
        registry.set_mock_mode(True, MockAdapter())

        provision(site_config, settings, Reporter(quiet=True), mock_mode=True, registry=registry, probe=probe)

        assert host.read("/etc/ssh/sshd_config") == sshd
