"""
Tests for the service probe — bounded polling and retries.
"""

from slemp.core.models.receipt import Receipt
from slemp.core.reliability.probe import ServiceDescriptor, ServiceProbe


class Flaky:
    """Becomes ready on the ``ready_on``-th call."""

    def __init__(self, ready_on):
        self.ready_on = ready_on
        self.calls = 0

    def __call__(self):
        self.calls += 1
        return self.calls >= self.ready_on


class TestWaitReady:
    def test_ready_immediately(self):
        sleeps = []
        result = ServiceProbe(sleep=sleeps.append).wait_ready(
            ServiceDescriptor("nginx", lambda: True)
        )
        assert result.ready
        assert result.attempts == 1
        assert sleeps == []

    def test_ready_after_retries(self):
        sleeps = []
        probe = Flaky(ready_on=3)
        result = ServiceProbe(sleep=sleeps.append).wait_ready(
            ServiceDescriptor("mariadb", probe, max_attempts=10, interval=3)
        )
        assert result.ready
        assert result.attempts == 3
        assert sleeps == [3, 3]

    def test_gives_up_without_sleeping_after_last_attempt(self):
        sleeps = []
        result = ServiceProbe(sleep=sleeps.append).wait_ready(
            ServiceDescriptor("fpm", lambda: False, max_attempts=8, interval=2)
        )
        assert not result.ready
        assert result.attempts == 8
        assert len(sleeps) == 7
        assert "not ready after 8 attempts" in result.message

    def test_raising_probe_counts_as_not_ready(self):
        def boom():
            raise ConnectionError("refused")

        result = ServiceProbe(sleep=lambda s: None).wait_ready(
            ServiceDescriptor("redis", boom, max_attempts=2)
        )
        assert not result.ready
        assert result.to_dict()["service"] == "redis"


class TestRetry:
    def test_stops_on_success(self):
        receipts = [Receipt.failure([], "busy"), Receipt.success([])]
        sleeps = []
        result = ServiceProbe(sleep=sleeps.append).retry(
            lambda: receipts.pop(0), attempts=3, interval=5.0, what="apt update"
        )
        assert result.ok
        assert sleeps == [5.0]

    def test_returns_last_failure(self):
        calls = []

        def op():
            calls.append(1)
            return Receipt.failure([], f"fail {len(calls)}")

        result = ServiceProbe(sleep=lambda s: None).retry(op, attempts=3, interval=5.0)
        assert result.failed
        assert result.error == "fail 3"
        assert len(calls) == 3
