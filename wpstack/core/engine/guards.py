"""
Idempotency guards — "is this step's effect already in place?"

A guard is evaluated before a step body runs (skip when satisfied) and
again after it (verification). Guards only read host state through the
HostProbe; evaluating one never changes the host.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from wpstack.core.detection.host_probe import HostProbe


class Guard(ABC):
    """Side-effect-free completion predicate."""

    @abstractmethod
    def already_done(self, probe: HostProbe) -> bool:
        """True when the effect this guard describes is present."""

    @abstractmethod
    def describe(self) -> str:
        """Human description for logs and plan output."""

    def __str__(self) -> str:
        return self.describe()


@dataclass(frozen=True)
class FileExists(Guard):
    path: str

    def already_done(self, probe: HostProbe) -> bool:
        return probe.exists(self.path)

    def describe(self) -> str:
        return f"{self.path} exists"


@dataclass(frozen=True)
class FileContains(Guard):
    path: str
    text: str

    def already_done(self, probe: HostProbe) -> bool:
        return probe.contains(self.path, self.text)

    def describe(self) -> str:
        return f"{self.path} contains {self.text!r}"


@dataclass(frozen=True)
class HasLine(Guard):
    """A whole line of the file equals ``line``; longer values do not count."""

    path: str
    line: str

    def already_done(self, probe: HostProbe) -> bool:
        return probe.has_line(self.path, self.line)

    def describe(self) -> str:
        return f"{self.path} has the line {self.line!r}"


@dataclass(frozen=True)
class DirectiveIs(Guard):
    """Every active ``keyword`` directive in the file is set to ``value``.

    Commented lines do not count, and at least one active directive
    must exist.
    """

    path: str
    keyword: str
    value: str

    def already_done(self, probe: HostProbe) -> bool:
        lines = probe.directive_lines(self.path, self.keyword)
        return bool(lines) and all(line.split()[1:] == [self.value] for line in lines)

    def describe(self) -> str:
        return f"{self.path} sets {self.keyword} {self.value}"


@dataclass(frozen=True)
class UserExists(Guard):
    username: str

    def already_done(self, probe: HostProbe) -> bool:
        return probe.user_exists(self.username)

    def describe(self) -> str:
        return f"user {self.username} exists"


@dataclass(frozen=True)
class UserInGroup(Guard):
    username: str
    group: str

    def already_done(self, probe: HostProbe) -> bool:
        return probe.user_in_group(self.username, self.group)

    def describe(self) -> str:
        return f"user {self.username} is in group {self.group}"


@dataclass(frozen=True)
class PackagesInstalled(Guard):
    packages: tuple[str, ...]

    def already_done(self, probe: HostProbe) -> bool:
        return probe.packages_installed(list(self.packages))

    def describe(self) -> str:
        return f"packages installed: {' '.join(self.packages)}"


@dataclass(frozen=True)
class BinaryAvailable(Guard):
    binary: str

    def already_done(self, probe: HostProbe) -> bool:
        return probe.binary_available(self.binary)

    def describe(self) -> str:
        return f"{self.binary} is executable"


@dataclass(frozen=True)
class DatabaseExists(Guard):
    name: str

    def already_done(self, probe: HostProbe) -> bool:
        return probe.database_exists(self.name)

    def describe(self) -> str:
        return f"database {self.name} exists"


@dataclass(frozen=True)
class CmsQuery(Guard):
    """A wp-cli query that exits 0 once the effect is in place."""

    site_dir: str
    args: tuple[str, ...]

    def already_done(self, probe: HostProbe) -> bool:
        return probe.wp_succeeds(self.site_dir, *self.args)

    def describe(self) -> str:
        return f"wp {' '.join(self.args)} succeeds"


@dataclass(frozen=True)
class CmsOptionEquals(Guard):
    site_dir: str
    option: str
    value: str

    def already_done(self, probe: HostProbe) -> bool:
        return probe.wp_output(self.site_dir, "option", "get", self.option) == self.value

    def describe(self) -> str:
        return f"option {self.option} is {self.value!r}"


@dataclass(frozen=True)
class AllOf(Guard):
    """Conjunction; short-circuits on the first unmet guard."""

    guards: tuple[Guard, ...]

    def already_done(self, probe: HostProbe) -> bool:
        return all(g.already_done(probe) for g in self.guards)

    def describe(self) -> str:
        return " and ".join(g.describe() for g in self.guards)


def all_of(*guards: Guard) -> AllOf:
    return AllOf(tuple(guards))
