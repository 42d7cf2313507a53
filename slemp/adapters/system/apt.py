"""
APT adapter — package installation, purging and status queries.

Installed-state checks use ``dpkg-query`` with an explicit format
string instead of scraping ``dpkg -l`` columns.
"""

from __future__ import annotations

import logging
import re

from slemp.adapters.base import Adapter
from slemp.core.models.receipt import Receipt

logger = logging.getLogger(__name__)

DPKG_LOCKS = ("/var/lib/dpkg/lock-frontend", "/var/lib/dpkg/lock")
_INSTALLED = "install ok installed"


class AptAdapter(Adapter):
    """apt-get / dpkg-query / add-apt-repository."""

    binary = "apt-get"

    @property
    def name(self) -> str:
        return "apt"

    # ── Queries ─────────────────────────────────────────────────

    def is_installed(self, package: str) -> bool:
        receipt = self.runner.run(["dpkg-query", "-W", "-f=${Status}", package])
        return receipt.ok and receipt.output.strip() == _INSTALLED

    def installed_packages(self) -> list[str]:
        """Names of every fully installed package."""
        receipt = self.runner.run(["dpkg-query", "-W", "-f=${Package}\t${Status}\n"])
        if not receipt.ok:
            return []
        names = []
        for line in receipt.output.splitlines():
            name, _, status = line.partition("\t")
            if status.strip() == _INSTALLED:
                names.append(name.strip())
        return names

    def installed_matching(self, pattern: str) -> list[str]:
        """Installed packages whose name matches a regex."""
        rx = re.compile(pattern)
        return [p for p in self.installed_packages() if rx.search(p)]

    def lock_held(self) -> bool:
        """Whether another process holds the dpkg frontend lock."""
        receipt = self.runner.run(["fuser", DPKG_LOCKS[0]])
        return receipt.ok and bool(receipt.output.strip())

    # ── Mutations ───────────────────────────────────────────────

    def update(self) -> Receipt:
        return self.runner.run(["apt-get", "update"])

    def upgrade(self) -> Receipt:
        return self.runner.run(["apt-get", "upgrade", "-y"])

    def install(self, packages: list[str]) -> Receipt:
        return self.runner.run(["apt-get", "install", "-y", *packages])

    def purge(self, packages: list[str], allow_held: bool = False) -> Receipt:
        cmd = ["apt-get", "purge", "-y"]
        if allow_held:
            cmd.append("--allow-change-held-packages")
        return self.runner.run([*cmd, *packages])

    def autoremove(self) -> Receipt:
        return self.runner.run(["apt-get", "autoremove", "--purge", "-y"])

    def clean(self) -> Receipt:
        return self.runner.run(["apt-get", "clean"])

    def repair(self) -> list[Receipt]:
        """Finish interrupted dpkg runs and fix broken dependencies."""
        return [
            self.runner.run(["dpkg", "--configure", "-a"]),
            self.runner.run(["apt-get", "-f", "install", "-y"]),
        ]

    def add_ppa(self, ppa: str) -> Receipt:
        return self.runner.run(["add-apt-repository", "-y", ppa])

    def remove_ppa(self, ppa: str) -> Receipt:
        return self.runner.run(["add-apt-repository", "--remove", "-y", ppa])

    def kill_stale(self) -> Receipt:
        """Terminate hung apt processes. Failure (nothing to kill) is normal."""
        return self.runner.run(["killall", "apt", "apt-get"])
