"""
Host adapter — facts about the machine: OS release, hardware, sockets, users.

This is the one place that reads text-format system files
(``/etc/lsb-release``, ``/proc/meminfo``, ``ss`` output). Everything
else asks this adapter for parsed values.
"""

from __future__ import annotations

import os
import platform
import pwd
import re
from dataclasses import dataclass

from slemp.adapters.base import Adapter
from slemp.adapters.shell.command import CommandRunner
from slemp.adapters.shell.filesystem import Filesystem

NOBODY_UID = 65534
MIN_HUMAN_UID = 1000

_PORT_RE = re.compile(r":(\d+)$")


@dataclass(frozen=True)
class OsRelease:
    distributor: str = ""
    release: str = ""
    codename: str = ""

    @property
    def major(self) -> str:
        return self.release.split(".", 1)[0]


@dataclass(frozen=True)
class UserHome:
    name: str
    uid: int
    home: str


class HostAdapter(Adapter):
    binary = "ss"

    def __init__(self, runner: CommandRunner, fs: Filesystem):
        super().__init__(runner)
        self.fs = fs

    @property
    def name(self) -> str:
        return "host"

    # ── OS / hardware ───────────────────────────────────────────

    def os_release(self) -> OsRelease | None:
        """Parse ``/etc/lsb-release``; None when it does not exist."""
        text = self.fs.read_text("/etc/lsb-release")
        if text is None:
            return None
        values: dict[str, str] = {}
        for line in text.splitlines():
            key, sep, value = line.partition("=")
            if sep:
                values[key.strip()] = value.strip().strip('"')
        return OsRelease(
            distributor=values.get("DISTRIB_ID", ""),
            release=values.get("DISTRIB_RELEASE", ""),
            codename=values.get("DISTRIB_CODENAME", ""),
        )

    def memory_kb(self) -> dict[str, int]:
        """``MemTotal`` / ``MemAvailable`` etc. from ``/proc/meminfo`` in kB."""
        text = self.fs.read_text("/proc/meminfo") or ""
        values: dict[str, int] = {}
        for line in text.splitlines():
            key, _, rest = line.partition(":")
            parts = rest.split()
            if parts and parts[0].isascii() and parts[0].isdigit():
                values[key.strip()] = int(parts[0])
        return values

    def kernel(self) -> str:
        return platform.release()

    def architecture(self) -> str:
        return platform.machine()

    def cpu_count(self) -> int:
        return os.cpu_count() or 0

    # ── Network ─────────────────────────────────────────────────

    def listening_ports(self) -> set[int]:
        """TCP ports in LISTEN state, from ``ss -ltnH``."""
        receipt = self.runner.run(["ss", "-ltnH"])
        ports: set[int] = set()
        if not receipt.ok:
            return ports
        for line in receipt.output.splitlines():
            fields = line.split()
            if len(fields) < 4:
                continue
            match = _PORT_RE.search(fields[3])
            if match:
                ports.add(int(match.group(1)))
        return ports

    # ── Users ───────────────────────────────────────────────────

    def user_exists(self, user: str) -> bool:
        try:
            pwd.getpwnam(user)
        except KeyError:
            return False
        return True

    def human_users(self) -> list[UserHome]:
        """Accounts with UID >= 1000, excluding ``nobody``."""
        return [
            UserHome(name=entry.pw_name, uid=entry.pw_uid, home=entry.pw_dir)
            for entry in pwd.getpwall()
            if entry.pw_uid >= MIN_HUMAN_UID and entry.pw_uid != NOBODY_UID
        ]

    def root_home(self) -> str:
        try:
            return pwd.getpwuid(0).pw_dir
        except KeyError:
            return "/root"
