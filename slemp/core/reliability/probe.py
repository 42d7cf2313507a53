"""
Service probe — bounded readiness polling for daemons.

A step that starts a daemon does not "fire and forget": it waits for a
readiness condition (socket file, query answer, PONG) with a fixed
attempt limit and interval. The probe never blocks indefinitely and
never raises; callers decide whether "not ready" is fatal.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable

from slemp.core.models.receipt import Receipt

logger = logging.getLogger(__name__)

Sleeper = Callable[[float], None]


@dataclass(frozen=True)
class ServiceDescriptor:
    """How to tell that a service is ready, and how long to keep asking."""

    name: str
    probe: Callable[[], bool]
    max_attempts: int = 5
    interval: float = 2.0


@dataclass
class ProbeResult:
    service: str
    ready: bool
    attempts: int
    message: str = ""


class ServiceProbe:
    """Polls readiness conditions. ``sleep`` is injectable for tests."""

    def __init__(self, sleep: Sleeper = time.sleep):
        self.sleep = sleep

    def _check(self, descriptor: ServiceDescriptor) -> bool:
        try:
            return bool(descriptor.probe())
        except Exception as e:  # a crashing probe means "not ready yet"
            logger.debug("Probe for %s raised: %s", descriptor.name, e)
            return False

    def wait_ready(self, descriptor: ServiceDescriptor) -> ProbeResult:
        """Poll until ready or ``max_attempts`` is exhausted.

        Sleeps ``interval`` between attempts, not after the last one.
        """
        attempts = max(1, descriptor.max_attempts)
        for attempt in range(1, attempts + 1):
            if self._check(descriptor):
                logger.debug("%s ready after %d attempt(s)", descriptor.name, attempt)
                return ProbeResult(
                    service=descriptor.name,
                    ready=True,
                    attempts=attempt,
                    message=f"{descriptor.name} is ready",
                )
            if attempt < attempts:
                logger.info(
                    "Waiting for %s... (attempt %d/%d)", descriptor.name, attempt, attempts
                )
                self.sleep(descriptor.interval)

        return ProbeResult(
            service=descriptor.name,
            ready=False,
            attempts=attempts,
            message=(
                f"{descriptor.name} not ready after {attempts} attempts "
                f"({descriptor.interval:g}s apart)"
            ),
        )

    def retry(
        self,
        operation: Callable[[], Receipt],
        attempts: int,
        interval: float,
        what: str = "operation",
    ) -> Receipt:
        """Run ``operation`` until it succeeds, at most ``attempts`` times.

        Returns the last receipt.
        """
        receipt = operation()
        for attempt in range(2, max(1, attempts) + 1):
            if receipt.ok:
                break
            logger.warning(
                "Attempt %d/%d: %s failed: %s", attempt - 1, attempts, what, receipt.error
            )
            self.sleep(interval)
            receipt = operation()
        return receipt
