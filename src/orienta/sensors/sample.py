"""
Sample model for the 9-axis IMU (plus optional orientation and GPS fix).

Units follow the device firmware:

  - accel : milli-g
  - gyro  : degrees per second
  - mag   : milli-Gauss
  - orientation : roll/pitch/yaw in degrees
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterator, Optional

# Magnetometer X/Y below this magnitude give an undefined heading.
_HEADING_EPSILON = 1e-6


@dataclass(frozen=True, slots=True)
class Vector3:
    x: float
    y: float
    z: float

    def __iter__(self) -> Iterator[float]:
        yield self.x
        yield self.y
        yield self.z


@dataclass(frozen=True, slots=True)
class Orientation:
    roll: float
    pitch: float
    yaw: float


@dataclass(frozen=True, slots=True)
class GpsFix:
    latitude: float
    longitude: float
    altitude: float


@dataclass(frozen=True, slots=True)
class SensorSample:
    timestamp: float
    accel: Vector3
    gyro: Vector3
    mag: Vector3
    orientation: Optional[Orientation] = None
    gps: Optional[GpsFix] = None

    def heading_deg(self) -> float:
        """Compass heading in ``[0, 360)`` from the magnetometer X/Y components."""
        mx, my = self.mag.x, self.mag.y
        if abs(mx) <= _HEADING_EPSILON and abs(my) <= _HEADING_EPSILON:
            return 0.0
        heading = math.degrees(math.atan2(my, mx))
        if heading < 0.0:
            heading += 360.0
        return heading

    def channel_values(self) -> tuple[float, ...]:
        """Values in :data:`orienta.core.graph_model.CHANNELS` order."""
        return (
            self.accel.x,
            self.accel.y,
            self.accel.z,
            self.gyro.x,
            self.gyro.y,
            self.gyro.z,
            self.mag.x,
            self.mag.y,
            self.mag.z,
        )
