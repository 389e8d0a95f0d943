"""Simulated-time timers for the phase scheduler."""

from aviary.types import DeltaTime


class RepeatingTimer:
    """Fires once every ``period`` simulated seconds.

    Discovery and Arbitration each own one of these. The scheduler ticks
    them with the frame's delta and runs the phase when `tick()` reports
    the period elapsed.
    """

    def __init__(self, period: float, *, fire_immediately: bool = False) -> None:
        if period <= 0:
            raise ValueError("Timer period must be positive.")
        self.period = period
        # Starting "full" makes the first tick fire, so freshly spawned agents
        # get candidates and a commitment without waiting a whole period.
        self.elapsed = period if fire_immediately else 0.0

    def tick(self, delta_time: DeltaTime) -> bool:
        """Advance the timer. Returns True if the period elapsed.

        Fires at most once per tick even if ``delta_time`` spans several
        periods; the remainder is kept so long-run cadence stays accurate.
        """
        self.elapsed += max(0.0, delta_time)
        if self.elapsed < self.period:
            return False
        self.elapsed = min(self.elapsed - self.period, self.period)
        return True

    @property
    def fraction(self) -> float:
        """How far through the current period the timer is, 0.0 to 1.0."""
        return min(1.0, self.elapsed / self.period)
