"""Tests for the convergence waiting loop."""

from __future__ import annotations

import threading
import time

import pytest

from hostcycle.errors import ProbeConfigurationError, ProbeFault
from hostcycle.models.restart import ProbeOutcome, WaitGoal, WaitOutcome
from hostcycle.services.waiter import ConvergenceWaiter, goal_reached
from tests.fakes import FakeClock, ScriptedProbe

UP = ProbeOutcome.UP
DOWN = ProbeOutcome.DOWN
INDETERMINATE = ProbeOutcome.INDETERMINATE


def _waiter(clock: FakeClock, cancel: threading.Event | None = None) -> ConvergenceWaiter:
    return ConvergenceWaiter(sleep=clock.sleep, clock=clock, cancel_event=cancel)


class TestGoalReached:
    def test_down_goal(self):
        assert goal_reached(WaitGoal.AWAITING_DOWN, DOWN)
        assert goal_reached(WaitGoal.AWAITING_DOWN, INDETERMINATE)
        assert not goal_reached(WaitGoal.AWAITING_DOWN, UP)

    def test_up_goal(self):
        assert goal_reached(WaitGoal.AWAITING_UP, UP)
        assert not goal_reached(WaitGoal.AWAITING_UP, DOWN)
        assert not goal_reached(WaitGoal.AWAITING_UP, INDETERMINATE)


class TestFaults:
    def test_fault_while_awaiting_down_terminates_without_sleeping(self, clock):
        probe = ScriptedProbe("ping", [ProbeFault("no route")])
        report = _waiter(clock).wait(probe, WaitGoal.AWAITING_DOWN, 1.0)

        assert report.outcome == WaitOutcome.CONVERGED
        assert probe.calls == 1
        assert clock.sleeps == []

    def test_fault_while_awaiting_up_retries_after_interval(self, clock):
        probe = ScriptedProbe("management", [ProbeFault("refused"), UP], clock=clock)
        report = _waiter(clock).wait(probe, WaitGoal.AWAITING_UP, 5.0)

        assert report.outcome == WaitOutcome.CONVERGED
        assert probe.calls == 2
        assert clock.sleeps == [5.0]
        assert probe.call_times[1] - probe.call_times[0] == 5.0

    def test_indeterminate_result_counts_as_unreachable(self, clock):
        probe = ScriptedProbe("ping", [INDETERMINATE, UP])
        report = _waiter(clock).wait(probe, WaitGoal.AWAITING_UP, 1.0)
        assert report.attempts == 2

        down = ScriptedProbe("ping", [INDETERMINATE])
        assert _waiter(clock).wait(down, WaitGoal.AWAITING_DOWN, 1.0).attempts == 1

    def test_configuration_error_is_not_retried(self, clock):
        probe = ScriptedProbe("ping", [ProbeConfigurationError("ping missing")])
        with pytest.raises(ProbeConfigurationError):
            _waiter(clock).wait(probe, WaitGoal.AWAITING_UP, 1.0)
        assert probe.calls == 1
        assert clock.sleeps == []


class TestPolling:
    def test_down_down_up_sleeps_exactly_twice(self, clock):
        probe = ScriptedProbe("ping", [DOWN, DOWN, UP])
        report = _waiter(clock).wait(probe, WaitGoal.AWAITING_UP, 1.0)

        assert report.outcome == WaitOutcome.CONVERGED
        assert clock.sleeps == [1.0, 1.0]
        assert report.attempts == 3
        assert report.elapsed_seconds == 2.0

    def test_up_up_down_awaiting_down(self, clock):
        probe = ScriptedProbe("ping", [UP, UP, DOWN])
        report = _waiter(clock).wait(probe, WaitGoal.AWAITING_DOWN, 1.0)

        assert report.outcome == WaitOutcome.CONVERGED
        assert clock.sleeps == [1.0, 1.0]

    def test_immediate_convergence_does_not_sleep(self, clock):
        probe = ScriptedProbe("management", [UP])
        report = _waiter(clock).wait(probe, WaitGoal.AWAITING_UP, 5.0)
        assert report.attempts == 1
        assert clock.sleeps == []

    def test_long_wait_does_not_grow_the_stack(self, clock):
        probe = ScriptedProbe("ping", [DOWN] * 5000 + [UP])
        report = _waiter(clock).wait(probe, WaitGoal.AWAITING_UP, 1.0)
        assert report.attempts == 5001

    def test_report_names_probe_and_goal(self, clock):
        probe = ScriptedProbe("management", [DOWN])
        report = _waiter(clock).wait(probe, WaitGoal.AWAITING_DOWN, 5.0)
        assert report.probe == "management"
        assert report.goal == WaitGoal.AWAITING_DOWN


class TestCancellation:
    def test_cancel_before_first_sleep(self, clock):
        cancel = threading.Event()
        cancel.set()
        probe = ScriptedProbe("ping", [DOWN])
        report = _waiter(clock, cancel).wait(probe, WaitGoal.AWAITING_UP, 1.0)

        assert report.outcome == WaitOutcome.CANCELLED
        assert probe.calls == 1
        assert clock.sleeps == []

    def test_cancel_during_wait(self, clock):
        cancel = threading.Event()

        def sleep(seconds: float) -> None:
            clock.sleep(seconds)
            if len(clock.sleeps) == 3:
                cancel.set()

        waiter = ConvergenceWaiter(sleep=sleep, clock=clock, cancel_event=cancel)
        probe = ScriptedProbe("ping", [DOWN])
        report = waiter.wait(probe, WaitGoal.AWAITING_UP, 1.0)

        assert report.outcome == WaitOutcome.CANCELLED
        assert probe.calls == 4
        assert len(clock.sleeps) == 3

    def test_convergence_wins_over_cancellation(self, clock):
        cancel = threading.Event()
        cancel.set()
        probe = ScriptedProbe("ping", [UP])
        report = _waiter(clock, cancel).wait(probe, WaitGoal.AWAITING_UP, 1.0)
        assert report.outcome == WaitOutcome.CONVERGED

    def test_default_pause_ends_on_cancel(self):
        cancel = threading.Event()
        waiter = ConvergenceWaiter(cancel_event=cancel)
        probe = ScriptedProbe("management", [DOWN])
        timer = threading.Timer(0.05, cancel.set)
        timer.start()
        started = time.monotonic()
        try:
            report = waiter.wait(probe, WaitGoal.AWAITING_UP, 5.0)
        finally:
            timer.cancel()

        assert report.outcome == WaitOutcome.CANCELLED
        # Woken by the cancel request, not by the 5s interval running out
        assert time.monotonic() - started < 2.0
        assert probe.calls == 2


class TestTimeout:
    def test_budget_spent(self, clock):
        probe = ScriptedProbe("management", [DOWN])
        report = _waiter(clock).wait(probe, WaitGoal.AWAITING_UP, 5.0, max_wait=12.0)

        assert report.outcome == WaitOutcome.TIMEOUT
        # 5 + 5 + 2 (clipped to the remaining budget)
        assert clock.sleeps == [5.0, 5.0, 2.0]
        assert probe.calls == 4
        assert report.elapsed_seconds == 12.0

    def test_converges_inside_budget(self, clock):
        probe = ScriptedProbe("ping", [UP, DOWN])
        report = _waiter(clock).wait(probe, WaitGoal.AWAITING_DOWN, 1.0, max_wait=10.0)
        assert report.outcome == WaitOutcome.CONVERGED
        assert clock.sleeps == [1.0]
