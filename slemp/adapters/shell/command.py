"""
Command runner — the single place where host commands are executed.

Every collaborator adapter is built on top of this: it runs an argv
list (never through a shell), captures output, and returns a Receipt.
Secrets are passed through ``env``, never in argv, so they do not
show up in the process list or in logs.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import time

from slemp.core.models.receipt import Receipt

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 1800


class CommandRunner:
    """Execute host commands and capture their output."""

    def __init__(self, base_env: dict[str, str] | None = None):
        self._base_env = {"DEBIAN_FRONTEND": "noninteractive"}
        if base_env:
            self._base_env.update(base_env)

    def which(self, binary: str) -> str | None:
        """Resolve a binary on PATH."""
        return shutil.which(binary)

    def run(
        self,
        cmd: list[str],
        *,
        input: str | None = None,
        env: dict[str, str] | None = None,
        timeout: int = DEFAULT_TIMEOUT,
        cwd: str | None = None,
    ) -> Receipt:
        """Run ``cmd`` and return a Receipt. Never raises.

        Args:
            cmd: Argument vector.
            input: Text piped to stdin.
            env: Extra environment variables (e.g. MYSQL_PWD).
            timeout: Seconds before the command is killed.
            cwd: Working directory.
        """
        run_env = {**os.environ, **self._base_env, **(env or {})}
        logger.debug("Executing: %s", " ".join(cmd))
        start = time.monotonic()

        try:
            result = subprocess.run(
                cmd,
                input=input,
                env=run_env,
                cwd=cwd,
                capture_output=True,
                text=True,
                timeout=timeout,
            )
        except subprocess.TimeoutExpired:
            return Receipt.failure(
                cmd,
                error=f"Command timed out after {timeout}s",
                returncode=124,
                metadata={"timeout": timeout},
            )
        except FileNotFoundError:
            return Receipt.failure(cmd, error=f"Command not found: {cmd[0]}", returncode=127)
        except OSError as e:
            return Receipt.failure(cmd, error=f"Command execution error: {e}", returncode=126)

        elapsed_ms = int((time.monotonic() - start) * 1000)
        output = result.stdout.strip()
        stderr = result.stderr.strip()

        if result.returncode == 0:
            return Receipt.success(
                cmd,
                output=output,
                duration_ms=elapsed_ms,
                metadata={"stderr": stderr} if stderr else {},
            )
        return Receipt.failure(
            cmd,
            error=stderr or f"Command exited with code {result.returncode}",
            returncode=result.returncode,
            output=output,
            duration_ms=elapsed_ms,
        )
