"""
Step models — units of provisioning work and their explicit results.

A step is a named callable that receives a StepContext and returns a
StepResult. The executor never infers success from side effects: it
reads ``StepResult.status``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Callable, Literal

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from slemp.adapters.registry import AdapterRegistry
    from slemp.core.config.settings import Settings
    from slemp.core.models.config import ConfigurationRecord
    from slemp.core.models.receipt import Receipt
    from slemp.core.reliability.probe import ServiceProbe


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


class StepResult(BaseModel):
    """Outcome of one step.

    Status values:
        ok       — step completed.
        warning  — step completed with a non-fatal problem, or a
                   non-critical step failed.
        failed   — step could not complete; aborts the run if the
                   step is critical.
        skipped  — nothing to do.
    """

    step: str = ""
    status: Literal["ok", "warning", "failed", "skipped"] = "ok"
    message: str = ""
    error: str | None = None
    warnings: list[str] = Field(default_factory=list)
    exit_code: int = 0

    started_at: str = Field(default_factory=_now_iso)
    duration_ms: int = 0

    @property
    def ok(self) -> bool:
        return self.status in ("ok", "warning", "skipped")

    @property
    def failed(self) -> bool:
        return self.status == "failed"

    @classmethod
    def success(cls, message: str = "", warnings: list[str] | None = None) -> StepResult:
        """Success, or ``warning`` status when any warnings were collected."""
        warnings = list(warnings or [])
        return cls(
            status="warning" if warnings else "ok",
            message=message,
            warnings=warnings,
        )

    @classmethod
    def warning(cls, message: str, warnings: list[str] | None = None) -> StepResult:
        return cls(status="warning", message=message, warnings=list(warnings or [message]))

    @classmethod
    def failure(
        cls,
        error: str,
        exit_code: int = 1,
        warnings: list[str] | None = None,
    ) -> StepResult:
        return cls(
            status="failed",
            error=error,
            exit_code=exit_code or 1,
            warnings=list(warnings or []),
        )

    @classmethod
    def from_receipt(cls, receipt: Receipt, what: str) -> StepResult:
        """Critical failure built from a failed collaborator receipt."""
        detail = receipt.error or f"exit code {receipt.returncode}"
        return cls.failure(f"{what}: {detail}", exit_code=receipt.returncode)

    @classmethod
    def skip(cls, reason: str = "") -> StepResult:
        return cls(status="skipped", message=reason)


@dataclass
class StepContext:
    """Everything a step needs: the record, host settings and collaborators."""

    config: ConfigurationRecord
    settings: Settings
    adapters: AdapterRegistry
    probe: ServiceProbe

    @property
    def runner(self):
        return self.adapters.runner

    @property
    def fs(self):
        return self.adapters.fs


@dataclass(frozen=True)
class Step:
    """A named, ordered unit of provisioning work."""

    name: str
    label: str
    run: Callable[[StepContext], StepResult]
    critical: bool = True
