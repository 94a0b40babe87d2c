"""
Operating-system steps: packages, the admin account, SSH, swap and
hardening (automatic updates, fail2ban, firewall).
"""

from __future__ import annotations

from wpstack.core.data.templates import (
    AUTO_UPGRADES,
    FAIL2BAN_JAIL,
    SWAP_FSTAB_LINE,
    SWAP_SYSCTL,
    render_template,
)
from wpstack.core.engine.executor import Step, StepContext
from wpstack.core.engine.guards import (
    DirectiveIs,
    FileContains,
    FileExists,
    HasLine,
    PackagesInstalled,
    UserExists,
    UserInGroup,
    all_of,
)
from wpstack.core.models.config import SiteConfig
from wpstack.core.models.settings import HostSettings
from wpstack.core.steps.common import ensure_line, ensure_packages

SUDO_GROUP = "sudo"
SSHD_CONFIG = "/etc/ssh/sshd_config"
ROOT_LOGIN = "PermitRootLogin"
ROOT_LOGIN_OFF = f"{ROOT_LOGIN} no"
SWAPFILE = "/swapfile"
FSTAB = "/etc/fstab"
SWAP_SYSCTL_FILE = "/etc/sysctl.d/99-swappiness.conf"
PERIODIC_FILE = "/etc/apt/apt.conf.d/20auto-upgrades"
UNATTENDED_FILE = "/etc/apt/apt.conf.d/50unattended-upgrades"
JAIL_LOCAL = "/etc/fail2ban/jail.local"
UFW_CONF = "/etc/ufw/ufw.conf"


def _authorized_keys(username: str) -> str:
    return f"/home/{username}/.ssh/authorized_keys"


# ── base-packages ────────────────────────────────────────────────


def base_packages(config: SiteConfig, settings: HostSettings) -> Step:
    packages = list(settings.base_packages)

    def body(ctx: StepContext) -> None:
        ctx.packages.update()
        ctx.packages.install(packages)

    return Step("base-packages", "Base packages", PackagesInstalled(tuple(packages)), body)


# ── admin-user ───────────────────────────────────────────────────


def admin_user(config: SiteConfig, settings: HostSettings) -> Step:
    user = config.username
    exists = UserExists(user)
    in_sudo = UserInGroup(user, SUDO_GROUP)
    has_keys = FileExists(_authorized_keys(user))

    def body(ctx: StepContext) -> None:
        if not ctx.satisfied(exists):
            ctx.accounts.create_user(user)
            ctx.accounts.set_password(user, config.user_password)
        if not ctx.satisfied(in_sudo):
            ctx.accounts.add_to_group(user, SUDO_GROUP)
        if not ctx.satisfied(has_keys):
            if ctx.probe.exists("/root/.ssh/authorized_keys"):
                ctx.accounts.install_authorized_keys(user)
            else:
                ctx.reporter.important(
                    f"root has no authorized_keys; add an SSH key for {user} before logging out"
                )

    return Step("admin-user", f"Admin user {user}", all_of(exists, in_sudo, has_keys), body)


# ── ssh-hardening ────────────────────────────────────────────────


def ssh_hardening(config: SiteConfig, settings: HostSettings) -> Step:
    def body(ctx: StepContext) -> None:
        # sshd takes the first value it reads; every active line must say no.
        active = ctx.probe.directive_lines(SSHD_CONFIG, ROOT_LOGIN)
        for line in dict.fromkeys(active):
            if line != ROOT_LOGIN_OFF:
                ctx.patch(line, ROOT_LOGIN_OFF, SSHD_CONFIG, whole_line=True)
        if not active:
            ensure_line(ctx, SSHD_CONFIG, f"#{ROOT_LOGIN} prohibit-password", ROOT_LOGIN_OFF)
        ctx.services.restart("ssh")

    return Step(
        "ssh-hardening",
        "Disable SSH root login",
        DirectiveIs(SSHD_CONFIG, ROOT_LOGIN, "no"),
        body,
    )


# ── swap ─────────────────────────────────────────────────────────


def swap(config: SiteConfig, settings: HostSettings) -> Step:
    swapfile = FileExists(SWAPFILE)
    in_fstab = FileContains(FSTAB, SWAPFILE)
    sysctl = FileExists(SWAP_SYSCTL_FILE)

    def body(ctx: StepContext) -> None:
        if not ctx.satisfied(swapfile):
            ctx.shell.run(["fallocate", "-l", f"{settings.swap_size_mb}M", SWAPFILE])
            ctx.files.chmod(SWAPFILE, 0o600)
            ctx.shell.run(["mkswap", SWAPFILE])
            ctx.shell.run(["swapon", SWAPFILE])
        if not ctx.satisfied(in_fstab):
            ctx.files.append(FSTAB, SWAP_FSTAB_LINE)
        if not ctx.satisfied(sysctl):
            ctx.files.write(
                SWAP_SYSCTL_FILE,
                render_template(SWAP_SYSCTL, {"swappiness": settings.swappiness}),
            )
            ctx.shell.run(["sysctl", "-p", SWAP_SYSCTL_FILE])

    return Step(
        "swap",
        f"Swap file ({settings.swap_size_mb} MB)",
        all_of(swapfile, in_fstab, sysctl),
        body,
        when=lambda c: c.use_swap,
    )


# ── auto-updates ─────────────────────────────────────────────────


def auto_updates(config: SiteConfig, settings: HostSettings) -> Step:
    mail_line = f'Unattended-Upgrade::Mail "{config.notification_email}";'
    periodic = FileExists(PERIODIC_FILE)
    mail = HasLine(UNATTENDED_FILE, mail_line)

    def body(ctx: StepContext) -> None:
        if not ctx.satisfied(periodic):
            ctx.files.write(PERIODIC_FILE, AUTO_UPGRADES)
        if not ctx.satisfied(mail):
            ensure_line(ctx, UNATTENDED_FILE, '//Unattended-Upgrade::Mail "";', mail_line)

    return Step("auto-updates", "Automatic security updates", all_of(periodic, mail), body)


# ── fail2ban ─────────────────────────────────────────────────────


def fail2ban(config: SiteConfig, settings: HostSettings) -> Step:
    packages = ["fail2ban"]
    jail = FileExists(JAIL_LOCAL)

    def body(ctx: StepContext) -> None:
        ensure_packages(ctx, packages)
        ctx.files.write(
            JAIL_LOCAL,
            render_template(FAIL2BAN_JAIL, {"notification_email": config.notification_email}),
        )
        ctx.services.enable("fail2ban")
        ctx.services.restart("fail2ban")

    return Step(
        "fail2ban",
        "fail2ban",
        all_of(PackagesInstalled(tuple(packages)), jail),
        body,
    )


# ── firewall ─────────────────────────────────────────────────────


def firewall(config: SiteConfig, settings: HostSettings) -> Step:
    def body(ctx: StepContext) -> None:
        ctx.shell.run(["ufw", "allow", "OpenSSH"])
        ctx.shell.run(["ufw", "allow", "Nginx Full"])
        ctx.shell.run(["ufw", "--force", "enable"])

    return Step("firewall", "Firewall", HasLine(UFW_CONF, "ENABLED=yes"), body)
