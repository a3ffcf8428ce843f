# --- Future imports ---
from __future__ import annotations

# --- Project imports ---
from .models import PollConfig


class SchedulingPolicy:
    """
    Tick spacing for the poll loop.

    Ticks start `interval` seconds apart: time spent probing and
    recovering is subtracted from the sleep, and in bounded mode the
    sleep never runs past the deadline.
    """

    def __init__(self, config: PollConfig):
        self.interval = config.interval
        self.deadline = config.deadline

    def remaining(self, elapsed: float) -> float | None:
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - elapsed)

    def expired(self, elapsed: float) -> bool:
        return self.deadline is not None and elapsed >= self.deadline

    def next_sleep(self, cycle_elapsed: float, total_elapsed: float) -> float:
        sleep = max(0.0, self.interval - cycle_elapsed)
        remaining = self.remaining(total_elapsed)
        if remaining is not None:
            sleep = min(sleep, remaining)
        return sleep
