"""
Tests for the run lock.
"""

import pytest

from slemp.core.persistence.run_lock import RunLock, RunLockHeld

LOCK = "/tmp/lemp_install.lock"


class TestRunLock:
    def test_acquire_and_release(self, fs):
        lock = RunLock(LOCK, fs, pid=4242)
        lock.acquire()
        assert lock.held
        assert fs.read_text(LOCK).strip() == "4242"
        lock.release()
        assert not lock.held
        assert not fs.exists(LOCK)

    def test_second_holder_is_refused(self, fs):
        with RunLock(LOCK, fs, pid=1):
            with pytest.raises(RunLockHeld) as exc:
                RunLock(LOCK, fs, pid=2).acquire()
        assert exc.value.pid == "1"
        assert "already running" in str(exc.value)

    def test_refusal_leaves_lock_untouched(self, fs):
        fs.write_text(LOCK, "999\n")
        with pytest.raises(RunLockHeld):
            RunLock(LOCK, fs).acquire()
        assert fs.read_text(LOCK) == "999\n"

    def test_released_on_exception(self, fs):
        with pytest.raises(ValueError):
            with RunLock(LOCK, fs):
                raise ValueError("step blew up")
        assert not fs.exists(LOCK)

    def test_release_without_acquire_is_noop(self, fs):
        RunLock(LOCK, fs).release()
        assert not fs.exists(LOCK)
