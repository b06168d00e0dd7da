"""
Test the bounded fan-out/join scope.
"""

import threading

import pytest

from mediasort.workers import ScopeCancelled, TaskScope


class TestTaskScope:
    """Joining, failure reporting, and cancellation."""

    def test_outcomes_in_submission_order(self):
        with TaskScope(max_workers=4) as scope:
            for i in range(20):
                scope.submit(lambda n: n * n, i)
            outcomes = scope.join()

        assert [o.value for o in outcomes] == [i * i for i in range(20)]
        assert all(o.ok for o in outcomes)

    def test_failure_cancels_pending_siblings(self):
        release = threading.Event()

        def fail_when_released():
            release.wait(5)
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            with TaskScope(max_workers=1) as scope:
                scope.submit(fail_when_released)
                pending = [scope.submit(lambda: "never") for _ in range(3)]
                release.set()
                scope.join()

        assert all(f.cancelled() for f in pending)
        assert scope.cancelled

    def test_submit_after_cancel_is_refused(self):
        with TaskScope(max_workers=1) as scope:
            scope.cancel()
            with pytest.raises(ScopeCancelled):
                scope.submit(lambda: None)

    def test_failures_reported_without_cancel_policy(self):
        def maybe_fail(n):
            if n == 2:
                raise ValueError("bad item")
            return n

        with TaskScope(max_workers=2, cancel_on_failure=False) as scope:
            for i in range(5):
                scope.submit(maybe_fail, i)
            outcomes = scope.join()

        assert [o.ok for o in outcomes] == [True, True, False, True, True]
        assert isinstance(outcomes[2].error, ValueError)
        assert not scope.cancelled

    def test_submit_requires_entered_scope(self):
        with pytest.raises(RuntimeError):
            TaskScope(max_workers=1).submit(lambda: None)
