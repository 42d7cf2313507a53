"""
Remove use case — tear the stack down after operator confirmation.
"""

from __future__ import annotations

from dataclasses import dataclass

from slemp.adapters.registry import AdapterRegistry
from slemp.core.config.settings import Settings
from slemp.core.models.removal import RemovalReport
from slemp.core.services.preflight import PreconditionError, check_root
from slemp.core.services.removal import run_removal
from slemp.core.services.wizard import Prompter
from slemp.core.use_cases.install import default_adapters


@dataclass
class RemoveResult:
    report: RemovalReport | None = None
    error: str | None = None

    @property
    def exit_code(self) -> int:
        return 1 if self.error else 0

    def to_dict(self) -> dict:
        if self.error:
            return {"error": self.error}
        return {"report": self.report.to_dict() if self.report else None}


def run_remove(
    settings: Settings,
    prompter: Prompter,
    adapters: AdapterRegistry | None = None,
    euid: int | None = None,
) -> RemoveResult:
    """Remove the stack; failures of individual targets are in the report."""
    result = RemoveResult()
    try:
        check_root(euid)
    except PreconditionError as e:
        result.error = str(e)
        return result

    result.report = run_removal(adapters or default_adapters(settings), settings, prompter)
    return result
