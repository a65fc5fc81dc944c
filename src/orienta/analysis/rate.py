from __future__ import annotations

from collections import deque
from typing import Deque, Iterable


class RateEstimator:
    """
    Estimate the sample rate from recent sample timestamps.

    Notes
    -----
    - Timestamps are in seconds and expected to increase monotonically.
    - A timestamp that goes backwards (device reset, dataset restart) clears
      the window before it is recorded.
    """

    def __init__(self, window_size: int = 100, default_hz: float = 0.0) -> None:
        if window_size <= 1:
            raise ValueError("window_size must be > 1")
        self._times: Deque[float] = deque(maxlen=window_size)
        self.default_hz = float(default_hz)

    def add_sample_time(self, t: float) -> None:
        t = float(t)
        if self._times and t < self._times[-1]:
            self._times.clear()
        self._times.append(t)

    @property
    def estimated_hz(self) -> float:
        """Rate over the current timestamp window, or ``default_hz``."""
        if len(self._times) < 2:
            return self.default_hz
        span = self._times[-1] - self._times[0]
        if span <= 0:
            return self.default_hz
        return (len(self._times) - 1) / span

    @property
    def buffer_size(self) -> int:
        """Number of timestamps currently in the window."""
        return len(self._times)

    def reset(self) -> None:
        self._times.clear()

    def feed_times(self, times: Iterable[float]) -> None:
        """Convenience method to bulk-add timestamps."""
        for t in times:
            self.add_sample_time(t)
