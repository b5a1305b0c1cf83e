"""Scheduling utilities for aligning timeline ticks to wall-clock boundaries."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

LOGGER = logging.getLogger(__name__)

DEFAULT_TICK_SECONDS = 15


def next_tick_boundary(moment: datetime, interval_seconds: int = DEFAULT_TICK_SECONDS) -> datetime:
    """Return the next multiple of ``interval_seconds`` within the minute at or after ``moment``.

    ``interval_seconds`` must divide 60. Timezone-aware datetimes stay aware. If
    ``moment`` already falls exactly on a boundary, the same timestamp is returned.
    """

    if interval_seconds <= 0 or 60 % interval_seconds:
        raise ValueError("interval_seconds must be a positive divisor of 60")

    # Round up leftover microseconds so a trigger is never scheduled in the past.
    if moment.microsecond:
        moment = moment.replace(microsecond=0) + timedelta(seconds=1)
    else:
        moment = moment.replace(microsecond=0)

    if moment.second % interval_seconds == 0:
        return moment

    delta = interval_seconds - (moment.second % interval_seconds)
    return moment + timedelta(seconds=delta)


@dataclass
class Scheduler:
    """Run a callback on aligned tick boundaries."""

    callback: Callable[[], None]
    time_provider: Callable[[], datetime] = datetime.now
    sleep_func: Callable[[float], None] = time.sleep
    interval_seconds: int = DEFAULT_TICK_SECONDS

    def run(
        self,
        *,
        immediate: bool = False,
        iterations: Optional[int] = None,
    ) -> None:
        """Run the scheduler loop.

        Args:
            immediate: If ``True`` the callback is triggered immediately before
                waiting for the next boundary.
            iterations: Optional number of iterations to execute. ``None`` runs
                indefinitely.
        """

        remaining = iterations
        last_target: Optional[datetime] = None

        if immediate:
            LOGGER.debug("Executing immediate tick before schedule")
            self.callback()
            if remaining is not None:
                remaining -= 1
                if remaining <= 0:
                    return

        while remaining is None or remaining > 0:
            target = self.wait_until_next_boundary(after=last_target)
            last_target = target
            LOGGER.debug("Reached scheduled tick at %s", target.isoformat())
            self.callback()
            if remaining is not None:
                remaining -= 1

    def wait_until_next_boundary(self, *, after: Optional[datetime] = None) -> datetime:
        """Block until the next tick boundary and return its timestamp.

        A boundary at or before ``after`` has already fired, so the one after it
        is awaited instead.
        """

        target = next_tick_boundary(self.time_provider(), self.interval_seconds)
        if after is not None and target <= after:
            target = after + timedelta(seconds=self.interval_seconds)
        while True:
            now = self.time_provider()
            remaining = (target - now).total_seconds()
            if remaining <= 0:
                return target
            LOGGER.debug(
                "Sleeping %.3f seconds until next tick at %s",
                remaining,
                target.isoformat(),
            )
            self.sleep_func(remaining)
