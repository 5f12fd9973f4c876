"""
Delta tracking for monotonic counters

vPLC instances report running totals that restart from zero whenever the
device restarts. The tracker turns consecutive raw readings into the
non-negative increments that are added to exported counters.
"""

from typing import Dict, Hashable, Optional


class DeltaTracker:
    """Remember the last raw reading per key and compute increments."""

    def __init__(self):
        self._last: Dict[Hashable, float] = {}

    def apply(self, key: Hashable, raw_value: float) -> float:
        """Record ``raw_value`` for ``key`` and return the increment to export.

        The first reading only sets the baseline. A reading at or below the
        previous one (device restart, repeated read) yields no increment but
        becomes the new baseline.
        """
        previous = self._last.get(key)
        self._last[key] = raw_value
        if previous is None:
            return 0.0
        delta = raw_value - previous
        return delta if delta > 0 else 0.0

    def last_value(self, key: Hashable) -> Optional[float]:
        """Return the stored baseline for ``key`` or None."""
        return self._last.get(key)

    def __len__(self) -> int:
        return len(self._last)

