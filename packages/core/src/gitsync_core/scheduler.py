"""When reconciliation passes run.

The loop itself does not know about time. A Scheduler decides how often to
call it, so a polling deployment and a webhook-triggered one share the same
reconciliation code.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Callable

logger = logging.getLogger(__name__)


class Scheduler(ABC):
    @abstractmethod
    def run(self, job: Callable[[], object]) -> None:
        """Invoke ``job`` according to the schedule.

        Exceptions raised by ``job`` propagate and end the schedule.
        """


class OnceScheduler(Scheduler):
    """Single-shot mode, for cron jobs."""

    def run(self, job: Callable[[], object]) -> None:
        job()


class IntervalScheduler(Scheduler):
    """Runs ``job`` immediately, then on a fixed wall-clock interval.

    A pass that overruns its slot starts the next one right away instead of
    queueing up missed ticks.
    """

    def __init__(
        self,
        interval: float,
        max_cycles: int | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.interval = interval
        self.max_cycles = max_cycles
        self._sleep = sleep
        self._clock = clock

    def run(self, job: Callable[[], object]) -> None:
        cycles = 0
        next_start = self._clock()
        while self.max_cycles is None or cycles < self.max_cycles:
            job()
            cycles += 1
            if self.max_cycles is not None and cycles >= self.max_cycles:
                break
            next_start += self.interval
            delay = next_start - self._clock()
            if delay > 0:
                logger.debug("Next pass in %.0fs", delay)
                self._sleep(delay)
            else:
                next_start = self._clock()
