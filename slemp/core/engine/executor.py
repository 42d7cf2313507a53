"""
Engine executor — the ordered step loop of an install run.

The executor walks a fixed list of steps, hands each one the shared
StepContext and inspects the StepResult it returns. It never guesses
success from side effects.

Flow:
    steps → run one → inspect result → continue | downgrade | abort

A critical step that fails (or raises) aborts the run: no later step
runs and the report names the aborted step. A non-critical step that
fails is recorded as a warning and the run continues.
"""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Sequence

from slemp.core.models.step import Step, StepContext, StepResult

logger = logging.getLogger(__name__)


@dataclass
class ExecutionReport:
    """Result of running a step list."""

    operation_id: str = ""
    results: list[StepResult] = field(default_factory=list)
    aborted_step: str | None = None

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.status == "ok")

    @property
    def warnings(self) -> int:
        return sum(1 for r in self.results if r.status == "warning")

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if r.failed)

    @property
    def skipped(self) -> int:
        return sum(1 for r in self.results if r.status == "skipped")

    @property
    def aborted(self) -> bool:
        return self.aborted_step is not None

    @property
    def failed_result(self) -> StepResult | None:
        """The result that aborted the run, if any."""
        if self.aborted_step is None:
            return None
        for result in reversed(self.results):
            if result.step == self.aborted_step:
                return result
        return None

    @property
    def status(self) -> str:
        if self.aborted:
            return "failed"
        if self.warnings:
            return "partial"
        return "ok"

    def get(self, step: str) -> StepResult | None:
        for result in self.results:
            if result.step == step:
                return result
        return None

    def to_dict(self) -> dict:
        return {
            "operation_id": self.operation_id,
            "status": self.status,
            "aborted_step": self.aborted_step,
            "total": self.total,
            "succeeded": self.succeeded,
            "warnings": self.warnings,
            "failed": self.failed,
            "skipped": self.skipped,
            "results": [r.model_dump(mode="json") for r in self.results],
        }


class StepExecutor:
    """Runs steps in order, stopping at the first critical failure."""

    def __init__(self, steps: Sequence[Step]):
        self.steps = list(steps)

    def _invoke(self, step: Step, ctx: StepContext) -> StepResult:
        start = time.monotonic()
        try:
            result = step.run(ctx)
        except Exception as e:
            logger.debug("Step %s raised", step.name, exc_info=True)
            result = StepResult.failure(f"{type(e).__name__}: {e}")
        if not isinstance(result, StepResult):
            result = StepResult.failure(f"step returned {type(result).__name__}, not StepResult")

        elapsed_ms = int((time.monotonic() - start) * 1000)
        return result.model_copy(update={"step": step.name, "duration_ms": elapsed_ms})

    def run(self, ctx: StepContext, operation_id: str | None = None) -> ExecutionReport:
        report = ExecutionReport(operation_id=operation_id or generate_operation_id())
        total = len(self.steps)

        for index, step in enumerate(self.steps, start=1):
            logger.info("[%d/%d] %s", index, total, step.label)
            result = self._invoke(step, ctx)

            if result.failed and not step.critical:
                logger.warning("%s failed (non-critical): %s", step.label, result.error)
                result = result.model_copy(
                    update={
                        "status": "warning",
                        "warnings": [*result.warnings, result.error or "failed"],
                    }
                )

            report.results.append(result)

            for warning in result.warnings:
                logger.warning("%s: %s", step.label, warning)

            if result.failed:
                logger.error(
                    "%s failed (exit code %d): %s", step.label, result.exit_code, result.error
                )
                report.aborted_step = step.name
                break

            marker = "✓" if result.status == "ok" else "⊘" if result.status == "skipped" else "!"
            logger.info(
                "%s %s → %s%s",
                marker,
                step.label,
                result.status,
                f" ({result.message})" if result.message else "",
            )

        return report


def generate_operation_id() -> str:
    """Generate a unique operation ID."""
    now = datetime.now(UTC).strftime("%Y%m%d-%H%M%S")
    short = uuid.uuid4().hex[:6]
    return f"op-{now}-{short}"
