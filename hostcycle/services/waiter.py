"""Convergence waiting: poll a probe until it reports the awaited state."""

from __future__ import annotations

import threading
import time
from typing import Callable, Optional

from hostcycle.errors import ProbeFault
from hostcycle.models.restart import ProbeOutcome, WaitGoal, WaitOutcome, WaitReport
from hostcycle.services.probes import Probe
from hostcycle.utils.logging import get_logger

log = get_logger(__name__)


def goal_reached(goal: WaitGoal, outcome: ProbeOutcome) -> bool:
    """Map a probe outcome onto the awaited transition.

    INDETERMINATE counts as "unreachable": it completes a wait for DOWN and
    keeps a wait for UP going.
    """
    if goal == WaitGoal.AWAITING_DOWN:
        return outcome in (ProbeOutcome.DOWN, ProbeOutcome.INDETERMINATE)
    return outcome == ProbeOutcome.UP


class ConvergenceWaiter:
    """Blocking sleep-and-retry loop over a single probe.

    ``sleep`` and ``clock`` are injectable so tests can fast-forward time.
    ``cancel_event`` is checked before every sleep; the default sleep waits
    on that event, so a cancel request ends the pause early.
    """

    def __init__(
        self,
        *,
        sleep: Optional[Callable[[float], object]] = None,
        clock: Callable[[], float] = time.monotonic,
        cancel_event: Optional[threading.Event] = None,
    ) -> None:
        self._clock = clock
        self._cancel = cancel_event or threading.Event()
        self._sleep = sleep or self._cancel.wait

    @property
    def cancel_event(self) -> threading.Event:
        return self._cancel

    def _attempt(self, probe: Probe, goal: WaitGoal) -> ProbeOutcome:
        try:
            return probe.attempt()
        except ProbeFault as exc:
            if goal == WaitGoal.AWAITING_DOWN:
                # May also mean the probe itself is broken
                log.warning("wait.fault_as_down", probe=probe.name, error=str(exc))
            else:
                log.debug("wait.fault", probe=probe.name, error=str(exc))
            return ProbeOutcome.INDETERMINATE

    def wait(
        self,
        probe: Probe,
        goal: WaitGoal,
        interval: float,
        *,
        max_wait: float | None = None,
    ) -> WaitReport:
        """Poll *probe* every *interval* seconds until *goal* is observed.

        Returns CONVERGED, CANCELLED or TIMEOUT. Without *max_wait* the loop
        only ends on convergence or cancellation.
        """
        start = self._clock()
        attempts = 0

        def report(outcome: WaitOutcome) -> WaitReport:
            return WaitReport(
                probe=probe.name,
                goal=goal,
                outcome=outcome,
                attempts=attempts,
                elapsed_seconds=self._clock() - start,
            )

        while True:
            attempts += 1
            outcome = self._attempt(probe, goal)
            if goal_reached(goal, outcome):
                log.info(
                    "wait.converged",
                    probe=probe.name,
                    goal=goal.value,
                    attempts=attempts,
                )
                return report(WaitOutcome.CONVERGED)

            if self._cancel.is_set():
                log.warning("wait.cancelled", probe=probe.name, goal=goal.value, attempts=attempts)
                return report(WaitOutcome.CANCELLED)

            pause = interval
            if max_wait is not None:
                remaining = max_wait - (self._clock() - start)
                if remaining <= 0:
                    log.warning(
                        "wait.timeout",
                        probe=probe.name,
                        goal=goal.value,
                        attempts=attempts,
                        max_wait=max_wait,
                    )
                    return report(WaitOutcome.TIMEOUT)
                pause = min(interval, remaining)

            log.debug(
                "wait.retry",
                probe=probe.name,
                goal=goal.value,
                observed=outcome.value,
                sleep=pause,
            )
            self._sleep(pause)
