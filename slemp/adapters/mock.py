"""
Mock runner — universal test double for every host command.

Stands in for CommandRunner so that all adapters (and therefore all
steps) can run without touching the machine. By default every command
succeeds with empty output and every binary is "installed". Responses
are scripted per command prefix; the longest matching prefix wins.
"""

from __future__ import annotations

import shlex
from typing import Any, Sequence

from slemp.adapters.shell.command import CommandRunner
from slemp.core.models.receipt import Receipt


def _tokens(prefix: str | Sequence[str]) -> tuple[str, ...]:
    if isinstance(prefix, str):
        return tuple(shlex.split(prefix))
    return tuple(prefix)


class MockRunner(CommandRunner):
    """Scriptable command runner for tests.

    Example::

        runner = MockRunner()
        runner.set_response("ufw status", "Status: active")
        runner.set_failure("nginx -t", "syntax error")
        runner.set_sequence("mysql", [Receipt.failure([], "down"), Receipt.success([])])
    """

    def __init__(self, missing: Sequence[str] = ()):
        super().__init__()
        self._responses: dict[tuple[str, ...], list[Receipt]] = {}
        self._missing: set[str] = set(missing)
        self._call_log: list[dict[str, Any]] = []

    # ── Scripting ───────────────────────────────────────────────

    def set_response(
        self,
        prefix: str | Sequence[str],
        output: str = "",
        returncode: int = 0,
        error: str | None = None,
    ) -> None:
        """Set the response for commands starting with ``prefix``."""
        if returncode == 0:
            receipt = Receipt.success([], output=output)
        else:
            receipt = Receipt.failure(
                [], error=error or f"exit {returncode}", returncode=returncode, output=output
            )
        self._responses[_tokens(prefix)] = [receipt]

    def set_failure(
        self,
        prefix: str | Sequence[str],
        error: str = "[mock] failure",
        returncode: int = 1,
    ) -> None:
        """Make commands starting with ``prefix`` fail."""
        self.set_response(prefix, returncode=returncode, error=error)

    def set_sequence(self, prefix: str | Sequence[str], receipts: list[Receipt]) -> None:
        """Return ``receipts`` in order on successive calls; the last one repeats."""
        if not receipts:
            raise ValueError("sequence must not be empty")
        self._responses[_tokens(prefix)] = list(receipts)

    def set_available(self, binary: str, available: bool) -> None:
        if available:
            self._missing.discard(binary)
        else:
            self._missing.add(binary)

    def reset(self) -> None:
        """Clear the call log and all scripted responses."""
        self._responses.clear()
        self._call_log.clear()

    # ── Inspection ──────────────────────────────────────────────

    @property
    def call_log(self) -> list[dict[str, Any]]:
        """Every call: ``{"cmd": [...], "input": ..., "env": {...}}``."""
        return self._call_log

    @property
    def calls(self) -> list[list[str]]:
        return [entry["cmd"] for entry in self._call_log]

    @property
    def call_count(self) -> int:
        return len(self._call_log)

    def calls_matching(self, prefix: str | Sequence[str]) -> list[list[str]]:
        want = _tokens(prefix)
        return [cmd for cmd in self.calls if tuple(cmd[: len(want)]) == want]

    def called(self, prefix: str | Sequence[str]) -> bool:
        return bool(self.calls_matching(prefix))

    # ── CommandRunner interface ─────────────────────────────────

    def which(self, binary: str) -> str | None:
        if binary in self._missing:
            return None
        return f"/usr/bin/{binary}"

    def run(
        self,
        cmd: list[str],
        *,
        input: str | None = None,
        env: dict[str, str] | None = None,
        timeout: int = 0,
        cwd: str | None = None,
    ) -> Receipt:
        self._call_log.append({"cmd": list(cmd), "input": input, "env": dict(env or {})})

        best: tuple[str, ...] | None = None
        for prefix in self._responses:
            if tuple(cmd[: len(prefix)]) == prefix and (best is None or len(prefix) > len(best)):
                best = prefix

        if best is None:
            return Receipt.success(cmd)

        queue = self._responses[best]
        template = queue.pop(0) if len(queue) > 1 else queue[0]
        return template.model_copy(update={"command": list(cmd)})
