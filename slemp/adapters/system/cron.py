"""
Crontab adapter — read and replace a user's crontab.

``crontab -l`` exits non-zero when the user has no crontab; that is
reported as ``None`` rather than as an error.
"""

from __future__ import annotations

from slemp.adapters.base import Adapter
from slemp.core.models.receipt import Receipt


class CrontabAdapter(Adapter):
    binary = "crontab"

    @property
    def name(self) -> str:
        return "crontab"

    def read(self, user: str) -> list[str] | None:
        """Crontab lines for ``user``, or None when there is no crontab."""
        receipt = self.runner.run(["crontab", "-u", user, "-l"])
        if not receipt.ok:
            return None
        return receipt.output.splitlines()

    def write(self, user: str, lines: list[str]) -> Receipt:
        """Replace ``user``'s crontab with ``lines``."""
        content = "\n".join(lines) + "\n"
        return self.runner.run(["crontab", "-u", user, "-"], input=content)

    def remove(self, user: str) -> Receipt:
        return self.runner.run(["crontab", "-u", user, "-r"])
