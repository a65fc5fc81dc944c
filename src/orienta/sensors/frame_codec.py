"""
Serial frame format for the IMU board.

Version 1 frames are ASCII lines::

  $ORI,1,<t_ms>,<gx>,<gy>,<gz>,<ax>,<ay>,<az>,<mx>,<my>,<mz>,<roll>,<pitch>,<yaw>[,<lat>,<lon>,<alt>]*CS

``CS`` is the XOR of every byte between ``$`` and ``*`` as two hex digits.
Older firmware prints a bare line of 12 comma-separated values in the same
order (without tag, version or timestamp); those are still accepted.

:class:`FrameCodec` turns an arbitrary split byte stream into samples and
resynchronises on the next line after a bad frame.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, List, Optional, Sequence, Tuple

from ..errors import MalformedFrame
from ..tools.debug import debug_enabled
from .sample import GpsFix, Orientation, SensorSample, Vector3

logger = logging.getLogger(__name__)

FRAME_TAG = "ORI"
FRAME_VERSION = 1
LEGACY_FIELD_COUNT = 12
DEFAULT_MAX_FRAME_BYTES = 256

_START = ord("$")
_NEWLINE = ord("\n")
_GPS_FIELD_COUNT = 3


def checksum(payload: bytes) -> int:
    """XOR of all payload bytes."""
    value = 0
    for byte in payload:
        value ^= byte
    return value


def _to_floats(fields: Sequence[str]) -> List[float]:
    try:
        return [float(field) for field in fields]
    except ValueError as exc:
        raise MalformedFrame(f"non-numeric field ({exc})") from exc


def _build_sample(timestamp: float, values: Sequence[float], gps: Sequence[float] = ()) -> SensorSample:
    gx, gy, gz, ax, ay, az, mx, my, mz, roll, pitch, yaw = values
    fix = GpsFix(*gps) if gps else None
    return SensorSample(
        timestamp=timestamp,
        accel=Vector3(ax, ay, az),
        gyro=Vector3(gx, gy, gz),
        mag=Vector3(mx, my, mz),
        orientation=Orientation(roll, pitch, yaw),
        gps=fix,
    )


def _parse_tagged(text: str) -> SensorSample:
    star = text.rfind("*")
    if star < 0 or len(text) - star - 1 != 2:
        raise MalformedFrame("missing checksum")
    body = text[1:star]
    try:
        expected = int(text[star + 1 :], 16)
    except ValueError as exc:
        raise MalformedFrame("bad checksum digits") from exc
    actual = checksum(body.encode("ascii"))
    if actual != expected:
        raise MalformedFrame(f"checksum mismatch ({actual:02X} != {expected:02X})")

    parts = body.split(",")
    if parts[0] != FRAME_TAG:
        raise MalformedFrame(f"unknown frame tag {parts[0]!r}")
    if len(parts) < 2 or parts[1] != str(FRAME_VERSION):
        raise MalformedFrame(f"unsupported frame version {parts[1:2]}")

    fields = parts[2:]
    count = len(fields)
    if count not in (1 + LEGACY_FIELD_COUNT, 1 + LEGACY_FIELD_COUNT + _GPS_FIELD_COUNT):
        raise MalformedFrame(f"expected 13 or 16 fields, got {count}")
    numbers = _to_floats(fields)
    timestamp = numbers[0] / 1000.0
    values = numbers[1 : 1 + LEGACY_FIELD_COUNT]
    gps = numbers[1 + LEGACY_FIELD_COUNT :]
    return _build_sample(timestamp, values, gps)


def _parse_legacy(text: str, fallback_timestamp: float, skip_empty_fields: bool) -> SensorSample:
    fields = text.split(",")
    if skip_empty_fields:
        fields = [field for field in fields if field.strip()]
    if len(fields) != LEGACY_FIELD_COUNT:
        raise MalformedFrame(
            f"expected {LEGACY_FIELD_COUNT} comma-separated values, got {len(fields)}"
        )
    return _build_sample(fallback_timestamp, _to_floats(fields))


def parse_frame(
    line: str | bytes,
    *,
    fallback_timestamp: float = 0.0,
    skip_empty_fields: bool = False,
) -> SensorSample:
    """
    Parse one frame (without its line terminator) into a :class:`SensorSample`.

    ``fallback_timestamp`` is used for legacy frames, which carry no clock.
    With ``skip_empty_fields`` a legacy line may contain empty fields (for
    example a trailing comma); recorded logs are written that way.
    Raises :class:`MalformedFrame` for anything that is not a valid frame.
    """
    if isinstance(line, bytes):
        try:
            line = line.decode("ascii")
        except UnicodeDecodeError as exc:
            raise MalformedFrame("non-ASCII bytes in frame") from exc
    text = line.strip()
    if not text:
        raise MalformedFrame("empty frame")
    if text[0] == "$":
        return _parse_tagged(text)
    return _parse_legacy(text, fallback_timestamp, skip_empty_fields)


def _fmt(value: float) -> str:
    return f"{value:.6g}"


def encode_frame(sample: SensorSample) -> bytes:
    """Encode ``sample`` as a version 1 frame including the trailing newline."""
    orientation = sample.orientation or Orientation(0.0, 0.0, 0.0)
    fields = [
        FRAME_TAG,
        str(FRAME_VERSION),
        str(int(round(sample.timestamp * 1000.0))),
        *(_fmt(v) for v in sample.gyro),
        *(_fmt(v) for v in sample.accel),
        *(_fmt(v) for v in sample.mag),
        _fmt(orientation.roll),
        _fmt(orientation.pitch),
        _fmt(orientation.yaw),
    ]
    if sample.gps is not None:
        fields += [
            f"{sample.gps.latitude:.7f}",
            f"{sample.gps.longitude:.7f}",
            _fmt(sample.gps.altitude),
        ]
    body = ",".join(fields).encode("ascii")
    return b"$" + body + b"*" + f"{checksum(body):02X}".encode("ascii") + b"\n"


class FrameCodec:
    """
    Incremental decoder for a serial byte stream.

    A frame ends at a newline or right before the next ``$``. Bytes of an
    unfinished frame are kept until the next :meth:`decode` call, so
    splitting the stream at arbitrary boundaries yields the same samples in
    the same order. Malformed frames are dropped and counted; a frame longer
    than ``max_frame_bytes`` is dropped as a whole, even when it spans
    several calls.
    """

    def __init__(
        self,
        *,
        max_frame_bytes: int = DEFAULT_MAX_FRAME_BYTES,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._max_frame_bytes = max(16, int(max_frame_bytes))
        self._clock = clock
        self._pending = bytearray()
        # Set while the tail of an oversized frame is still arriving.
        self._skip_to_boundary = False
        self.malformed_count = 0
        self._parse_time_acc = 0.0
        self._parse_count = 0

    @property
    def pending(self) -> bytes:
        """Unparsed bytes retained from previous calls."""
        return bytes(self._pending)

    def reset(self) -> None:
        self._pending.clear()
        self._skip_to_boundary = False

    def decode(self, data: bytes) -> Tuple[List[SensorSample], bytes]:
        """
        Feed ``data`` and return ``(samples, remainder)``.

        ``remainder`` is the partial frame that will be completed by a later
        call; it is also kept internally.
        """
        self._pending.extend(data)
        samples: List[SensorSample] = []

        while True:
            boundary = self._next_boundary()
            if boundary < 0:
                break
            segment = bytes(self._pending[:boundary])
            if self._pending[boundary] == _NEWLINE:
                del self._pending[: boundary + 1]
            else:
                del self._pending[:boundary]

            if self._skip_to_boundary:
                # Tail of a frame already dropped as oversized.
                self._skip_to_boundary = False
                continue
            if len(segment) > self._max_frame_bytes:
                self._count_malformed(segment, "frame exceeds maximum length")
                continue
            sample = self._decode_line(segment)
            if sample is not None:
                samples.append(sample)

        if not self._skip_to_boundary and len(self._pending) > self._max_frame_bytes:
            self._count_malformed(bytes(self._pending), "frame exceeds maximum length")
            self._skip_to_boundary = True
        if self._skip_to_boundary:
            self._pending.clear()

        return samples, bytes(self._pending)

    def _next_boundary(self) -> int:
        # A '$' at offset 0 opens the current frame unless its predecessor was dropped.
        newline = self._pending.find(_NEWLINE)
        start = self._pending.find(_START, 0 if self._skip_to_boundary else 1)
        found = [pos for pos in (newline, start) if pos >= 0]
        return min(found) if found else -1

    def _decode_line(self, line: bytes) -> Optional[SensorSample]:
        line = line.strip()
        if not line:
            return None

        debug_on = debug_enabled()
        started = time.perf_counter() if debug_on else 0.0
        try:
            sample = parse_frame(line, fallback_timestamp=self._clock())
        except MalformedFrame as exc:
            self._count_malformed(line, str(exc))
            return None
        finally:
            if debug_on:
                self._record_parse_time(time.perf_counter() - started)
        return sample

    def _count_malformed(self, raw: bytes, reason: str) -> None:
        self.malformed_count += 1
        logger.debug("Dropping malformed frame %r: %s", raw[:64], reason)

    def _record_parse_time(self, elapsed: float) -> None:
        self._parse_time_acc += elapsed
        self._parse_count += 1
        if self._parse_count % 1000 == 0:
            avg_us = (self._parse_time_acc / self._parse_count) * 1e6
            logger.info("FrameCodec parse avg %.1f µs over %d frames", avg_us, self._parse_count)
