"""Supervisor adapter — reread/update program definitions."""

from __future__ import annotations

from slemp.adapters.base import Adapter
from slemp.core.models.receipt import Receipt


class SupervisorAdapter(Adapter):
    binary = "supervisorctl"

    @property
    def name(self) -> str:
        return "supervisor"

    def status(self, program: str | None = None) -> Receipt:
        args = ["supervisorctl", "status"]
        if program:
            args.append(program)
        return self.runner.run(args)

    def reread(self) -> Receipt:
        return self.runner.run(["supervisorctl", "reread"])

    def update(self) -> Receipt:
        return self.runner.run(["supervisorctl", "update"])
