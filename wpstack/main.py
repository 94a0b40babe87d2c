"""
wpstack — CLI entrypoint.

Usage:
    wpstack --help
    sudo wpstack provision
    sudo wpstack provision --answers site.yml --yes
    wpstack plan --answers site.yml
    wpstack check --answers site.yml
    wpstack patch 'old' 'new' /etc/some.conf
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click

from wpstack import __version__
from wpstack.core.observability.logging_config import setup_logging


@click.group()
@click.version_option(version=__version__, prog_name="wpstack")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to wpstack.yml host settings (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """wpstack — provision a WordPress server, idempotently."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    # ── Logging setup (once, at process start) ──────────────────
    if debug:
        level = "DEBUG"
    elif verbose:
        level = "INFO"
    elif quiet:
        level = "ERROR"
    else:
        level = os.environ.get("WPSTACK_LOG_LEVEL", "WARNING")

    setup_logging(
        level=level,
        log_file=os.environ.get("WPSTACK_LOG_FILE"),
        log_file_level=os.environ.get("WPSTACK_LOG_FILE_LEVEL"),
    )


# ── Shared helpers ──────────────────────────────────────────────────


def _reporter(ctx: click.Context, as_json: bool = False):
    from wpstack.core.observability.reporter import Reporter

    # JSON output owns stdout; status lines go to stderr.
    return Reporter(quiet=ctx.obj.get("quiet", False) or as_json, err=as_json)


def _settings(ctx: click.Context, reporter):
    from wpstack.core.config.loader import ConfigError, load_settings

    try:
        return load_settings(ctx.obj.get("config_path"))
    except ConfigError as e:
        reporter.fatal(str(e))


def _site_config(answers: str | None, reporter):
    """Load the answers file, or ask interactively."""
    from wpstack.core.config.loader import ConfigError, load_answers
    from wpstack.core.errors import InputExhausted
    from wpstack.core.use_cases.gather import gather_config
    from wpstack.ui.cli.terminal import TerminalInput

    if answers:
        try:
            return load_answers(Path(answers))
        except ConfigError as e:
            reporter.fatal(str(e))

    try:
        return gather_config(TerminalInput(), reporter)
    except (click.Abort, InputExhausted):
        reporter.fatal("Aborted")


def _print_summary(config) -> None:
    click.secho("\n📋 Configuration", fg="cyan", bold=True)
    for key, value in config.summary().items():
        click.echo(f"   {key}: {value}")
    click.echo()


def _print_report(report, verbose: bool) -> None:
    icons = {
        "done": ("✓", "green"),
        "satisfied": ("✓", "cyan"),
        "skipped": ("⊘", "yellow"),
        "pending": ("…", "yellow"),
        "failed": ("✗", "red"),
    }
    click.echo()
    for record in report.records:
        icon, color = icons[record.status]
        click.secho(f"   {icon} {record.step_id:<16}", fg=color, nl=False)
        timing = f" ({record.duration_ms}ms)" if record.duration_ms else ""
        click.echo(f" {record.status}{timing}")
        if record.verified is False:
            click.secho("       │ not verified", fg="yellow")
        if record.error:
            for line in record.error.split("\n")[:5]:
                click.echo(f"       │ {line}")
        elif verbose:
            for receipt in record.receipts:
                click.echo(f"       │ {receipt.describe()}")

    click.echo()
    counts = report.to_dict()["counts"]
    summary = ", ".join(f"{n} {status}" for status, n in counts.items() if n)
    status_color = "green" if report.status == "ok" else "red"
    click.secho(f"   Result: {summary or 'nothing to do'}", fg=status_color, bold=True)
    click.echo()


# ── Commands ────────────────────────────────────────────────────────


@cli.command()
@click.option("--answers", "-a", type=click.Path(), default=None, help="YAML answers file.")
@click.option("--mock", is_flag=True, help="Use mock adapters (no real execution).")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def provision(
    ctx: click.Context,
    answers: str | None,
    mock: bool,
    yes: bool,
    as_json: bool,
) -> None:
    """Provision this host.

    Examples:

        sudo wpstack provision

        sudo wpstack provision --answers site.yml --yes

        wpstack provision --answers site.yml --mock --yes
    """
    from wpstack.core.errors import PreconditionUnmet
    from wpstack.core.services.prompts import ask_yes_no
    from wpstack.core.use_cases.provision import check_preconditions
    from wpstack.core.use_cases.provision import provision as run_provision
    from wpstack.ui.cli.terminal import TerminalInput

    reporter = _reporter(ctx, as_json)
    settings = _settings(ctx, reporter)
    try:
        check_preconditions(mock_mode=mock)
    except PreconditionUnmet as e:
        reporter.fatal(str(e))
    config = _site_config(answers, reporter)

    if not as_json:
        _print_summary(config)
    if not yes:
        try:
            proceed = ask_yes_no(TerminalInput(), "Proceed with provisioning?")
        except click.Abort:
            proceed = False
        if not proceed:
            reporter.fatal("Aborted")

    if mock and not as_json:
        click.secho("   Mode: mock (no real execution)", fg="yellow")

    result = run_provision(config, settings, reporter, mock_mode=mock)

    if as_json:
        click.echo(json.dumps({**result.to_dict(), "important": reporter.important_messages}, indent=2))
        if result.error:
            sys.exit(1)
        return

    if result.report:
        _print_report(result.report, ctx.obj.get("verbose", False))
    if result.error:
        reporter.fatal(result.error)

    for message in reporter.important_messages:
        click.secho(f"   ! {message}", fg="yellow")
    click.secho(f"✅ {config.domain} is provisioned", fg="green", bold=True)


@cli.command()
@click.option("--answers", "-a", type=click.Path(), default=None, help="YAML answers file.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def plan(ctx: click.Context, answers: str | None, as_json: bool) -> None:
    """Show which steps a provisioning run would execute."""
    from wpstack.core.use_cases.plan import plan as run_plan

    reporter = _reporter(ctx, as_json)
    settings = _settings(ctx, reporter)
    config = _site_config(answers, reporter)

    if as_json:
        result = run_plan(config, settings, reporter)
        click.echo(json.dumps(result.to_dict(), indent=2))
        return

    result = run_plan(config, settings, reporter)
    _print_report(result.report, ctx.obj.get("verbose", False))
    if result.pending:
        click.echo(f"   {len(result.pending)} step(s) would run: {', '.join(result.pending)}")
    else:
        click.secho("   Host is fully provisioned", fg="green")
    click.echo()


@cli.command()
@click.option("--answers", "-a", type=click.Path(), required=True, help="YAML answers file.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def check(ctx: click.Context, answers: str, as_json: bool) -> None:
    """Validate an answers file without touching the host."""
    from wpstack.core.config.loader import ConfigError, load_answers

    try:
        config = load_answers(Path(answers))
    except ConfigError as e:
        if as_json:
            click.echo(json.dumps({"valid": False, "error": str(e)}, indent=2))
        else:
            click.secho("❌ Answers are invalid:", fg="red", bold=True)
            click.echo(f"   • {e}")
        sys.exit(1)

    if as_json:
        click.echo(json.dumps({"valid": True, "config": config.summary()}, indent=2))
        return

    click.secho("✅ Answers are valid", fg="green", bold=True)
    click.echo(f"   Domain: {config.domain} (+ {config.www_domain})")
    click.echo(f"   Database: {config.db_name} (prefix {config.db_table_prefix})")
    features = [
        name
        for name, enabled in (
            ("swap", config.use_swap),
            ("jetpack", config.use_jetpack),
            ("mailgun", config.use_mailgun),
        )
        if enabled
    ]
    click.echo(f"   Features: {', '.join(features) or 'none'}")
    click.echo()


@cli.command()
@click.argument("search")
@click.argument("replace")
@click.argument("paths", nargs=-1, required=True, type=click.Path())
@click.option("--dry-run", is_flag=True, help="Report what would change, write nothing.")
@click.pass_context
def patch(
    ctx: click.Context,
    search: str,
    replace: str,
    paths: tuple[str, ...],
    dry_run: bool,
) -> None:
    """Replace every literal SEARCH with REPLACE in each PATH.

    Missing files and absent search text are warnings, not errors.
    """
    from wpstack.core.services.text_patch import patch as run_patch

    reporter = _reporter(ctx)
    if not search:
        reporter.fatal("SEARCH must not be empty")

    for result in run_patch(search, replace, *paths, dry_run=dry_run):
        if result.is_warning:
            reporter.important(result.describe(search))
        else:
            prefix = "[dry-run] " if dry_run else ""
            reporter.success(f"{prefix}{result.describe(search)}")


if __name__ == "__main__":
    cli()
