"""
Systemd adapter — service lifecycle and status.

Status comes from ``systemctl is-active`` / ``is-enabled`` exit codes,
not from parsing ``systemctl status`` text.
"""

from __future__ import annotations

from slemp.adapters.base import Adapter
from slemp.core.models.receipt import Receipt

UNIT_DIRS = ("/usr/lib/systemd/system", "/lib/systemd/system")


class SystemdAdapter(Adapter):
    binary = "systemctl"

    @property
    def name(self) -> str:
        return "systemd"

    def _ctl(self, *args: str) -> Receipt:
        return self.runner.run(["systemctl", *args])

    def is_active(self, service: str) -> bool:
        return self._ctl("is-active", "--quiet", service).ok

    def is_enabled(self, service: str) -> bool:
        return self._ctl("is-enabled", "--quiet", service).ok

    def exists(self, service: str) -> bool:
        """Whether systemd knows a unit by this name."""
        return self._ctl("cat", service).ok

    def start(self, service: str) -> Receipt:
        return self._ctl("start", service)

    def stop(self, service: str) -> Receipt:
        return self._ctl("stop", service)

    def restart(self, service: str) -> Receipt:
        return self._ctl("restart", service)

    def reload(self, service: str) -> Receipt:
        return self._ctl("reload", service)

    def enable(self, service: str) -> Receipt:
        return self._ctl("enable", service)

    def disable(self, service: str) -> Receipt:
        return self._ctl("disable", service)

    def daemon_reload(self) -> Receipt:
        return self._ctl("daemon-reload")

    def start_and_enable(self, service: str) -> Receipt:
        """Start then enable; the first failing receipt wins."""
        started = self.start(service)
        if started.failed:
            return started
        return self.enable(service)

    @staticmethod
    def unit_file_paths(service: str) -> list[str]:
        """Where a unit file for ``service`` may live."""
        unit = service if "." in service else f"{service}.service"
        return [f"{d}/{unit}" for d in UNIT_DIRS]
