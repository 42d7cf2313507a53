"""
Adapter base — the contract between provisioning steps and host tools.

Each adapter wraps one external collaborator (apt, systemctl, ufw,
mysql, ...). Steps only talk to collaborators through adapters, and
adapters only talk to the host through a CommandRunner, so a single
mock runner can stand in for the whole machine in tests.

Adapters NEVER raise for tool failures — they return Receipts.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from slemp.adapters.shell.command import CommandRunner


class Adapter(ABC):
    """Abstract base class for collaborator adapters.

    To create a new adapter:
        1. Subclass Adapter
        2. Implement ``name`` and set ``binary``
        3. Expose it from the AdapterRegistry
    """

    binary: str = ""

    def __init__(self, runner: CommandRunner):
        self.runner = runner

    @property
    @abstractmethod
    def name(self) -> str:
        """The adapter identifier (e.g., 'apt', 'systemd', 'ufw')."""

    def is_available(self) -> bool:
        """Whether the underlying tool is on PATH. Fast, never raises."""
        if not self.binary:
            return True
        return self.runner.which(self.binary) is not None

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
