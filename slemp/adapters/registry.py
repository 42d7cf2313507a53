"""
Adapter registry — one bundle of every collaborator adapter.

Steps receive the registry through their StepContext and never build
adapters themselves. All adapters share one CommandRunner and one
Filesystem, so swapping in a MockRunner and a temp-dir Filesystem
sandboxes an entire run.
"""

from __future__ import annotations

import logging

from slemp.adapters.shell.command import CommandRunner
from slemp.adapters.shell.filesystem import Filesystem
from slemp.adapters.stack.datastores import MariaDBAdapter, RedisAdapter
from slemp.adapters.stack.nginx import CertbotAdapter, NginxAdapter
from slemp.adapters.stack.php import PhpAdapter
from slemp.adapters.system.apt import AptAdapter
from slemp.adapters.system.cron import CrontabAdapter
from slemp.adapters.system.host import HostAdapter
from slemp.adapters.system.supervisor import SupervisorAdapter
from slemp.adapters.system.systemd import SystemdAdapter
from slemp.adapters.system.ufw import UfwAdapter

logger = logging.getLogger(__name__)


class AdapterRegistry:
    """Central access point for collaborator adapters."""

    def __init__(
        self,
        runner: CommandRunner | None = None,
        fs: Filesystem | None = None,
    ):
        self.runner = runner or CommandRunner()
        self.fs = fs or Filesystem("/")

        self.apt = AptAdapter(self.runner)
        self.systemd = SystemdAdapter(self.runner)
        self.ufw = UfwAdapter(self.runner)
        self.supervisor = SupervisorAdapter(self.runner)
        self.crontab = CrontabAdapter(self.runner)
        self.host = HostAdapter(self.runner, self.fs)
        self.nginx = NginxAdapter(self.runner)
        self.certbot = CertbotAdapter(self.runner)
        self.mariadb = MariaDBAdapter(self.runner)
        self.redis = RedisAdapter(self.runner)
        self._php: dict[str, PhpAdapter] = {}

    def php(self, version: str) -> PhpAdapter:
        """The adapter for one PHP version (cached per version)."""
        if version not in self._php:
            self._php[version] = PhpAdapter(self.runner, version)
        return self._php[version]

    def adapter_status(self) -> dict[str, bool]:
        """Which collaborator tools are currently on PATH."""
        adapters = [
            self.apt,
            self.systemd,
            self.ufw,
            self.supervisor,
            self.crontab,
            self.nginx,
            self.certbot,
            self.mariadb,
            self.redis,
        ]
        status = {a.name: a.is_available() for a in adapters}
        logger.debug("Adapter availability: %s", status)
        return status
