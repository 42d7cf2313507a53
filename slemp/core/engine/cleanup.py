"""
Cleanup handler — best-effort rollback after a critical failure or interrupt.

Stops whatever stack services are running and frees the package
manager so the host is left in a state where the installer can be
re-run. Every action is best effort: a cleanup that fails halfway
still finishes the remaining actions, and it runs at most once.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from slemp.adapters.registry import AdapterRegistry
from slemp.adapters.system.apt import DPKG_LOCKS
from slemp.core.models.config import ConfigurationRecord
from slemp.core.models.removal import RemovalOutcome

logger = logging.getLogger(__name__)


class CleanupHandler:
    """Single-shot cleanup, triggered explicitly or by :meth:`guard`."""

    def __init__(self, adapters: AdapterRegistry, config: ConfigurationRecord | None = None):
        self.adapters = adapters
        self.config = config
        self._ran = False
        self.stopped: list[str] = []

    @property
    def ran(self) -> bool:
        return self._ran

    def run(self, cause: str = "", exit_code: int | None = None) -> bool:
        """Perform the cleanup. Returns False when it already ran."""
        if self._ran:
            logger.debug("Cleanup already performed, skipping")
            return False
        self._ran = True

        if exit_code is not None:
            logger.error("Installation failed at: %s (exit code %d)", cause or "unknown", exit_code)
        else:
            logger.error("Installation interrupted: %s", cause or "unknown")
        logger.info("Performing cleanup...")

        self._stop_services()
        self._release_package_locks()

        logger.info("Cleanup completed")
        return True

    def _stop_services(self) -> None:
        if self.config is None:
            return
        systemd = self.adapters.systemd
        for service in self.config.services:
            if not systemd.is_active(service):
                continue
            receipt = systemd.stop(service)
            if receipt.ok:
                logger.info("Stopped %s", service)
                self.stopped.append(service)
            else:
                logger.warning("Could not stop %s: %s", service, receipt.error)

    def _release_package_locks(self) -> None:
        # Nothing to kill is the normal case.
        self.adapters.apt.kill_stale()
        for lock in DPKG_LOCKS:
            if self.adapters.fs.remove(lock) == RemovalOutcome.FAILED:
                logger.warning("Could not remove %s", lock)

    @contextmanager
    def guard(self) -> Iterator[CleanupHandler]:
        """Run the cleanup on any exception (KeyboardInterrupt included), then re-raise."""
        try:
            yield self
        except BaseException as e:
            cause = "keyboard interrupt" if isinstance(e, KeyboardInterrupt) else type(e).__name__
            self.run(cause=cause)
            raise
