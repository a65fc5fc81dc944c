"""Rolling per-channel windows that feed the live graphs.

Every pushed sample gets the next value of a shared index counter and its
nine axis values are stored as one row of a preallocated
:class:`~orienta.core.ringbuffer.RingBuffer`. The ingest path (``push``) and
the render path (``snapshot``) share only a short lock around the copy.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Tuple

import numpy as np

from ..config.runtime import MIN_VISIBLE_SAMPLES
from ..sensors.sample import GpsFix, Orientation, SensorSample
from .ringbuffer import RingBuffer

DEFAULT_CAPACITY = 1000

GROUPS: Tuple[str, ...] = ("accel", "gyro", "mag")
AXES: Tuple[str, ...] = ("x", "y", "z")
CHANNELS: Tuple[str, ...] = tuple(f"{group}_{axis}" for group in GROUPS for axis in AXES)

GROUP_UNITS: Mapping[str, str] = {"accel": "mg", "gyro": "dps", "mag": "mG"}
DEFAULT_Y_RANGES: Mapping[str, float] = {"accel": 4000.0, "gyro": 250.0, "mag": 1600.0}

_INDEX_COL = 0
_AUTO_RANGE_PADDING = 0.1


def group_channels(group: str) -> Tuple[str, ...]:
    if group not in GROUPS:
        raise KeyError(f"Unknown channel group {group!r}")
    return tuple(f"{group}_{axis}" for axis in AXES)


@dataclass(frozen=True)
class ChannelWindow:
    """Read-only, oldest-first ``(index, value)`` series for one channel."""

    channel: str
    indices: np.ndarray
    values: np.ndarray

    def __len__(self) -> int:
        return int(self.indices.size)

    def pairs(self) -> List[Tuple[int, float]]:
        return [(int(i), float(v)) for i, v in zip(self.indices, self.values)]


@dataclass(frozen=True)
class GraphSnapshot:
    """Everything the renderer needs for one frame."""

    indices: np.ndarray
    channels: Dict[str, np.ndarray]
    current: Dict[str, float]
    x_range: Tuple[int, int]
    heading_deg: Optional[float] = None
    orientation: Optional[Orientation] = None
    gps: Optional[GpsFix] = None
    total_samples: int = 0
    y_ranges: Dict[str, Tuple[float, float]] = field(default_factory=dict)

    def window(self, channel: str) -> List[Tuple[int, float]]:
        return ChannelWindow(channel, self.indices, self.channels[channel]).pairs()


class GraphModel:
    """
    Nine bounded channel windows plus a current-value readout.

    ``push`` is O(1) and allocation-free; ``set_capacity`` and ``clear`` are
    the only operations that reset the index counter.
    """

    def __init__(
        self,
        capacity: int = DEFAULT_CAPACITY,
        y_ranges: Mapping[str, float] | None = None,
    ) -> None:
        self._lock = threading.Lock()
        self._capacity = max(MIN_VISIBLE_SAMPLES, int(capacity))
        self._rows = RingBuffer(self._capacity, width=1 + len(CHANNELS))
        self._row = np.zeros(1 + len(CHANNELS), dtype=np.float64)
        self._next_index = 0
        self._current: Dict[str, float] = {name: 0.0 for name in CHANNELS}
        self._heading: Optional[float] = None
        self._orientation: Optional[Orientation] = None
        self._gps: Optional[GpsFix] = None

        ranges = dict(DEFAULT_Y_RANGES)
        if y_ranges:
            ranges.update({k: float(v) for k, v in y_ranges.items() if k in GROUPS})
        self._y_ranges: Dict[str, Tuple[float, float]] = {
            group: (-abs(span), abs(span)) for group, span in ranges.items()
        }

    # ------------------------------------------------------------------ ingest
    def push(self, sample: SensorSample) -> None:
        row = self._row
        row[_INDEX_COL] = self._next_index
        row[1:] = sample.channel_values()
        with self._lock:
            self._rows.append(row)
            self._next_index += 1
            for name, value in zip(CHANNELS, row[1:]):
                self._current[name] = float(value)
            self._heading = sample.heading_deg()
            if sample.orientation is not None:
                self._orientation = sample.orientation
            if sample.gps is not None:
                self._gps = sample.gps

    def set_capacity(self, capacity: int) -> int:
        """Resize the windows (minimum 10), clearing them. Returns the applied capacity."""
        applied = max(MIN_VISIBLE_SAMPLES, int(capacity))
        with self._lock:
            self._capacity = applied
            self._rows = RingBuffer(applied, width=1 + len(CHANNELS))
            self._next_index = 0
        return applied

    def clear(self) -> None:
        with self._lock:
            self._rows.clear()
            self._next_index = 0
            self._current = {name: 0.0 for name in CHANNELS}
            self._heading = None
            self._orientation = None
            self._gps = None

    # ------------------------------------------------------------------- query
    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def total_samples(self) -> int:
        """Samples pushed since the last reset of the index counter."""
        return self._next_index

    def __len__(self) -> int:
        with self._lock:
            return len(self._rows)

    def current_values(self) -> Dict[str, float]:
        with self._lock:
            return dict(self._current)

    def window(self, channel: str) -> ChannelWindow:
        col = 1 + CHANNELS.index(channel)
        with self._lock:
            indices = self._rows.column(_INDEX_COL)
            values = self._rows.column(col)
        return ChannelWindow(channel, indices.astype(np.int64), values)

    def snapshot(self) -> GraphSnapshot:
        """Copy the windows for rendering; safe to call from another thread."""
        with self._lock:
            rows = self._rows.view()
            current = dict(self._current)
            total = self._next_index
            capacity = self._capacity
            heading = self._heading
            orientation = self._orientation
            gps = self._gps
            y_ranges = dict(self._y_ranges)

        channels = {name: rows[:, 1 + i] for i, name in enumerate(CHANNELS)}
        return GraphSnapshot(
            indices=rows[:, _INDEX_COL].astype(np.int64),
            channels=channels,
            current=current,
            x_range=_x_range(total, capacity),
            heading_deg=heading,
            orientation=orientation,
            gps=gps,
            total_samples=total,
            y_ranges=y_ranges,
        )

    # ----------------------------------------------------------------- scaling
    def x_range(self) -> Tuple[int, int]:
        with self._lock:
            return _x_range(self._next_index, self._capacity)

    def y_range(self, group: str) -> Tuple[float, float]:
        group_channels(group)
        with self._lock:
            return self._y_ranges[group]

    def set_y_range(self, group: str, minimum: float, maximum: float) -> None:
        group_channels(group)
        if minimum >= maximum:
            raise ValueError(f"y-range minimum must be below maximum, got {minimum} >= {maximum}")
        with self._lock:
            self._y_ranges[group] = (float(minimum), float(maximum))

    def auto_y_range(self, group: str) -> Tuple[float, float]:
        """Data min/max of ``group`` with 10% padding; configured range when empty."""
        cols = [1 + CHANNELS.index(name) for name in group_channels(group)]
        with self._lock:
            if len(self._rows) == 0:
                return self._y_ranges[group]
            data = self._rows.view()[:, cols]
        low = float(np.min(data))
        high = float(np.max(data))
        span = high - low
        pad = span * _AUTO_RANGE_PADDING if span > 0 else max(1.0, abs(high) * _AUTO_RANGE_PADDING)
        return low - pad, high + pad


def _x_range(total: int, capacity: int) -> Tuple[int, int]:
    """Sliding x-axis: fixed ``[0, capacity-1]`` until the window fills."""
    if total <= capacity:
        return 0, capacity - 1
    last = total - 1
    return last - capacity + 1, last
