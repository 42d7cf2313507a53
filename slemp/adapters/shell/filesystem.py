"""
Filesystem adapter — file and directory operations under a root prefix.

All paths handed to this adapter are the host's absolute paths
(``/etc/nginx/...``). They are resolved under ``root``, which is "/"
on a real host and a temporary directory in tests, so every file a
step writes can be inspected without touching the machine.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from pathlib import Path

from slemp.core.models.removal import RemovalOutcome

logger = logging.getLogger(__name__)


class Filesystem:
    """Root-prefixed file operations with atomic writes."""

    def __init__(self, root: str | Path = "/"):
        self.root = Path(root)

    @property
    def name(self) -> str:
        return "filesystem"

    def path(self, host_path: str) -> Path:
        """Map a host absolute path to its location under ``root``."""
        return self.root / host_path.lstrip("/")

    def host_path(self, path: Path) -> str:
        """Inverse of :meth:`path`."""
        return "/" + path.relative_to(self.root).as_posix()

    # ── Queries ─────────────────────────────────────────────────

    def exists(self, host_path: str) -> bool:
        p = self.path(host_path)
        return p.exists() or p.is_symlink()

    def is_file(self, host_path: str) -> bool:
        return self.path(host_path).is_file()

    def is_dir(self, host_path: str) -> bool:
        return self.path(host_path).is_dir()

    def is_socket(self, host_path: str) -> bool:
        return self.path(host_path).is_socket()

    def read_text(self, host_path: str) -> str | None:
        """File content, or None if missing or unreadable."""
        try:
            return self.path(host_path).read_text(encoding="utf-8")
        except (FileNotFoundError, IsADirectoryError, PermissionError, UnicodeDecodeError):
            return None

    def glob(self, pattern: str) -> list[str]:
        """Host paths matching a glob like ``/etc/cron.d/*``."""
        matches = sorted(self.root.glob(pattern.lstrip("/")))
        return [self.host_path(m) for m in matches]

    # ── Mutations ───────────────────────────────────────────────

    def ensure_dir(self, host_path: str, mode: int | None = None) -> Path:
        p = self.path(host_path)
        p.mkdir(parents=True, exist_ok=True)
        if mode is not None:
            p.chmod(mode)
        return p

    def write_text(self, host_path: str, content: str, mode: int = 0o644) -> Path:
        """Replace a file's content atomically (temp file + rename).

        The whole file is always rewritten: re-running a step never
        appends duplicate configuration.
        """
        target = self.path(host_path)
        target.parent.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=".slemp_", suffix=".tmp")
        tmp = Path(tmp_name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(content)
            tmp.chmod(mode)
            tmp.replace(target)
        except Exception:
            tmp.unlink(missing_ok=True)
            raise
        logger.debug("Wrote %s (%d bytes)", host_path, len(content))
        return target

    def copy(self, src: str, dst: str) -> None:
        shutil.copy2(self.path(src), self.path(dst))

    def symlink(self, target: str, link: str) -> None:
        """Point ``link`` at ``target`` (host paths), replacing any existing link."""
        link_path = self.path(link)
        link_path.parent.mkdir(parents=True, exist_ok=True)
        if link_path.is_symlink() or link_path.exists():
            link_path.unlink()
        link_path.symlink_to(self.path(target))

    def remove(self, host_path: str) -> RemovalOutcome:
        """Delete a file, symlink or directory tree."""
        p = self.path(host_path)
        try:
            if p.is_symlink() or p.is_file() or p.is_socket():
                p.unlink()
            elif p.is_dir():
                shutil.rmtree(p)
            elif p.exists():
                p.unlink()
            else:
                return RemovalOutcome.ABSENT
        except OSError as e:
            logger.warning("Failed to remove %s: %s", host_path, e)
            return RemovalOutcome.FAILED
        return RemovalOutcome.REMOVED

    def remove_contents(self, host_dir: str) -> list[tuple[str, RemovalOutcome]]:
        """Delete everything inside a directory, keeping the directory."""
        return [(path, self.remove(path)) for path in self.glob(f"{host_dir.rstrip('/')}/*")]

    def disk_total_gb(self, host_path: str = "/") -> int:
        return shutil.disk_usage(self.path(host_path)).total // (1024**3)
