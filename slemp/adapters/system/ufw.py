"""UFW adapter — firewall reset, policies and rules."""

from __future__ import annotations

from slemp.adapters.base import Adapter
from slemp.core.models.receipt import Receipt


class UfwAdapter(Adapter):
    binary = "ufw"

    @property
    def name(self) -> str:
        return "ufw"

    def _ufw(self, *args: str) -> Receipt:
        return self.runner.run(["ufw", *args])

    def reset(self) -> Receipt:
        """Drop every rule. Rules added afterwards can never be duplicates."""
        return self._ufw("--force", "reset")

    def default(self, policy: str, direction: str) -> Receipt:
        return self._ufw("default", policy, direction)

    def allow(self, rule: str) -> Receipt:
        return self._ufw("allow", rule)

    def limit(self, rule: str) -> Receipt:
        return self._ufw("limit", rule)

    def enable(self) -> Receipt:
        return self._ufw("--force", "enable")

    def is_active(self) -> bool:
        receipt = self._ufw("status")
        return receipt.ok and "Status: active" in receipt.output
