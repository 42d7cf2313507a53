"""
Receipt model — the result contract for every collaborator call.

Adapters run external tools (apt, systemctl, ufw, mysql, ...) and
return Receipts. Never exceptions. A failed command is data that the
calling step inspects and turns into a StepResult.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class Receipt(BaseModel):
    """Result of one collaborator command.

    ``output`` holds stripped stdout. ``error`` holds stderr (or a
    synthesized message for timeouts and missing binaries) when the
    command failed.
    """

    command: list[str] = Field(default_factory=list)
    status: Literal["ok", "failed"] = "ok"
    returncode: int = 0

    started_at: str = Field(default_factory=_now_iso)
    ended_at: str = Field(default_factory=_now_iso)
    duration_ms: int = 0

    output: str = ""
    error: str | None = None

    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        """Whether the command succeeded."""
        return self.status == "ok"

    @property
    def failed(self) -> bool:
        """Whether the command failed."""
        return self.status == "failed"

    @property
    def label(self) -> str:
        """The command as a single display string."""
        return " ".join(self.command)

    @classmethod
    def success(
        cls,
        command: list[str],
        output: str = "",
        **kwargs: Any,
    ) -> Receipt:
        """Create a success receipt."""
        return cls(command=list(command), status="ok", output=output, **kwargs)

    @classmethod
    def failure(
        cls,
        command: list[str],
        error: str,
        returncode: int = 1,
        **kwargs: Any,
    ) -> Receipt:
        """Create a failure receipt."""
        return cls(
            command=list(command),
            status="failed",
            error=error,
            returncode=returncode,
            **kwargs,
        )
