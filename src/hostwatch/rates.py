"""Per-second rates from cumulative counters."""

from collections.abc import Hashable, Mapping

# Lower bound on the elapsed time used as divisor (seconds)
EPSILON = 1e-6


class RateTracker:
    """
    Convert successive cumulative counter samples into per-second rates.

    The tracker remembers the previous sample and its time. It is not
    thread-safe: updates must come from one sequential stream of ticks.
    """

    def __init__(self) -> None:
        self._last_sample: dict[Hashable, float] = {}
        self._last_time: float | None = None

    @property
    def has_baseline(self) -> bool:
        """Whether a previous sample exists to diff against."""
        return self._last_time is not None

    def update(self, counters: Mapping[Hashable, float], now: float) -> dict[Hashable, float]:
        """
        Record a new sample and return the rates since the previous one.

        Args:
            counters: Current cumulative value per key.
            now: Monotonic time of the sample, in seconds.

        Returns:
            Rate per second for every key present in both samples. Keys
            seen for the first time are left out until the next update.
            Nothing is emitted on the first update or when time did not
            move forward.
        """
        rates: dict[Hashable, float] = {}

        if self._last_time is not None:
            elapsed = now - self._last_time
            if elapsed > 0:
                divisor = max(elapsed, EPSILON)
                for key, current in counters.items():
                    previous = self._last_sample.get(key)
                    if previous is None:
                        continue
                    # Counter reset or wraparound reads as no traffic
                    rates[key] = max(0, current - previous) / divisor

        # Keys missing from this sample drop out of the baseline
        self._last_sample = dict(counters)
        self._last_time = now
        return rates
