"""
Removal models — per-target outcomes collected into a report.

Teardown never aborts, but it never hides failures either: every
stop, purge and delete records one RemovalAction.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class RemovalOutcome(str, Enum):
    REMOVED = "removed"
    ABSENT = "absent"
    FAILED = "failed"


@dataclass
class RemovalAction:
    """One teardown action and what happened."""

    phase: str
    target: str
    outcome: RemovalOutcome
    detail: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "phase": self.phase,
            "target": self.target,
            "outcome": self.outcome.value,
            "detail": self.detail,
        }


@dataclass
class ResidualFindings:
    """What the post-removal scan still found on the host."""

    packages: dict[str, list[str]] = field(default_factory=dict)
    active_services: list[str] = field(default_factory=list)
    orphaned_units: list[str] = field(default_factory=list)
    php_binary: str | None = None

    @property
    def clean(self) -> bool:
        return not (
            self.packages or self.active_services or self.orphaned_units or self.php_binary
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "clean": self.clean,
            "packages": self.packages,
            "active_services": self.active_services,
            "orphaned_units": self.orphaned_units,
            "php_binary": self.php_binary,
        }


@dataclass
class RemovalReport:
    """Result of a removal run."""

    cancelled: bool = False
    database_removed: bool = False
    kept: list[str] = field(default_factory=list)
    actions: list[RemovalAction] = field(default_factory=list)
    residual: ResidualFindings | None = None

    def record(
        self,
        phase: str,
        target: str,
        outcome: RemovalOutcome,
        detail: str = "",
    ) -> RemovalAction:
        action = RemovalAction(phase=phase, target=target, outcome=outcome, detail=detail)
        self.actions.append(action)
        return action

    def count(self, outcome: RemovalOutcome) -> int:
        return sum(1 for a in self.actions if a.outcome == outcome)

    @property
    def removed(self) -> int:
        return self.count(RemovalOutcome.REMOVED)

    @property
    def absent(self) -> int:
        return self.count(RemovalOutcome.ABSENT)

    @property
    def failed(self) -> int:
        return self.count(RemovalOutcome.FAILED)

    @property
    def failures(self) -> list[RemovalAction]:
        return [a for a in self.actions if a.outcome == RemovalOutcome.FAILED]

    def by_phase(self, phase: str) -> list[RemovalAction]:
        return [a for a in self.actions if a.phase == phase]

    def to_dict(self) -> dict[str, Any]:
        return {
            "cancelled": self.cancelled,
            "database_removed": self.database_removed,
            "kept": self.kept,
            "removed": self.removed,
            "absent": self.absent,
            "failed": self.failed,
            "actions": [a.to_dict() for a in self.actions],
            "residual": self.residual.to_dict() if self.residual else None,
        }
