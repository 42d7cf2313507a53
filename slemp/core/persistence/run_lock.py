"""
Run lock — one install at a time per host.

A file holding the installer's PID. It is created exclusively on
entry (an existing file means another run is in progress, or a
previous run died without cleaning up) and removed on every exit
path, including exceptions and Ctrl-C.
"""

from __future__ import annotations

import logging
import os

from slemp.adapters.shell.filesystem import Filesystem

logger = logging.getLogger(__name__)


class RunLockHeld(Exception):
    """Raised when the lock file already exists."""

    def __init__(self, path: str, pid: str | None = None):
        self.path = path
        self.pid = pid
        holder = f" (held by PID {pid})" if pid else ""
        super().__init__(f"Another installation is already running{holder}: {path}")


class RunLock:
    """Context manager around the PID lock file."""

    def __init__(self, path: str, fs: Filesystem, pid: int | None = None):
        self.path = path
        self.fs = fs
        self.pid = pid if pid is not None else os.getpid()
        self._held = False

    @property
    def held(self) -> bool:
        return self._held

    def acquire(self) -> None:
        target = self.fs.path(self.path)
        target.parent.mkdir(parents=True, exist_ok=True)
        try:
            fd = os.open(target, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o644)
        except FileExistsError:
            holder = (self.fs.read_text(self.path) or "").strip() or None
            raise RunLockHeld(self.path, holder) from None
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(f"{self.pid}\n")
        self._held = True
        logger.debug("Acquired run lock %s (pid %d)", self.path, self.pid)

    def release(self) -> None:
        if not self._held:
            return
        self.fs.remove(self.path)
        self._held = False
        logger.debug("Released run lock %s", self.path)

    def __enter__(self) -> RunLock:
        self.acquire()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()
