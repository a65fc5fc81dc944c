"""Sensor sample model and the serial frame codec.

:mod:`sample` defines the immutable :class:`SensorSample`; :mod:`frame_codec`
turns raw serial bytes (or dataset lines) into those samples.
"""

from .frame_codec import FrameCodec, encode_frame, parse_frame
from .sample import GpsFix, Orientation, SensorSample, Vector3

__all__ = [
    "FrameCodec",
    "encode_frame",
    "parse_frame",
    "GpsFix",
    "Orientation",
    "SensorSample",
    "Vector3",
]
