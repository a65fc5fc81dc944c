"""Live sample source backed by a pyserial port."""

from __future__ import annotations

import errno
import logging
from typing import Any, Callable, List, Optional, Tuple

import serial
import serial.tools.list_ports

from ..errors import PortUnavailable, PortUnopenable
from ..sensors.frame_codec import DEFAULT_MAX_FRAME_BYTES, FrameCodec
from .dispatch import Ticker
from .events import Event
from .router import SampleSink
from .states import ConnectionState

logger = logging.getLogger(__name__)

DEFAULT_BAUD_RATE = 115200
DEFAULT_POLL_INTERVAL_S = 0.005

SerialFactory = Callable[..., Any]

_UNAVAILABLE_ERRNOS = {
    errno.ENOENT,
    errno.EBUSY,
    errno.ENODEV,
    errno.ENXIO,
}
_UNAVAILABLE_MARKERS = (
    "no such file",
    "filenotfounderror",
    "cannot find",
    "could not find",
    "busy",
    "in use",
)


def enumerate_ports() -> List[Tuple[str, str]]:
    """
    Enumerate available serial ports.

    Returns
    -------
    list of ``(device, description)`` tuples sorted by device name, e.g.
    ``[("/dev/ttyUSB0", "USB Serial"), ...]``.
    """
    ports = [(info.device, info.description) for info in serial.tools.list_ports.comports()]
    ports.sort(key=lambda item: item[0])
    return ports


def _classify_open_error(port: str, exc: BaseException) -> PortUnavailable | PortUnopenable:
    reason = str(exc) or exc.__class__.__name__
    codes = {getattr(exc, "errno", None)}
    cause = exc.__cause__ or exc.__context__
    if cause is not None:
        codes.add(getattr(cause, "errno", None))
    lowered = reason.lower()
    if codes & _UNAVAILABLE_ERRNOS or any(marker in lowered for marker in _UNAVAILABLE_MARKERS):
        return PortUnavailable(port, reason)
    return PortUnopenable(port, reason)


class SerialSource:
    """
    Owns one serial connection: opens it, polls it without blocking, decodes
    frames and reports connection-state changes.

    ``poll`` is driven by a :class:`~orienta.core.dispatch.Ticker` between
    :meth:`start` and :meth:`stop`. An I/O error while streaming moves the
    source to ``ERRORED``, reports ``failed`` once and releases the port; it
    is not polled again until re-opened.
    """

    def __init__(
        self,
        ticker: Ticker,
        *,
        baud_rate: int = DEFAULT_BAUD_RATE,
        poll_interval_s: float = DEFAULT_POLL_INTERVAL_S,
        max_frame_bytes: int = DEFAULT_MAX_FRAME_BYTES,
        serial_factory: SerialFactory = serial.Serial,
        codec: FrameCodec | None = None,
    ) -> None:
        self.name = "serial"
        self._ticker = ticker
        self._baud_rate = int(baud_rate)
        self._poll_interval_s = float(poll_interval_s)
        self._serial_factory = serial_factory
        self._codec = codec or FrameCodec(max_frame_bytes=max_frame_bytes)
        self._handle: Any = None
        self._port: Optional[str] = None
        self._state = ConnectionState.DISCONNECTED
        self._sink: Optional[SampleSink] = None

        self.state_changed = Event("state_changed")
        self.failed = Event("failed")

    # ------------------------------------------------------------ properties
    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def port(self) -> Optional[str]:
        return self._port

    @property
    def is_open(self) -> bool:
        return self._state is ConnectionState.CONNECTED

    @property
    def codec(self) -> FrameCodec:
        return self._codec

    def set_sink(self, sink: Optional[SampleSink]) -> None:
        self._sink = sink

    # ------------------------------------------------------------- lifecycle
    def open(self, port: str) -> None:
        """
        Open ``port``; raises :class:`PortUnavailable` or :class:`PortUnopenable`.
        """
        if self._handle is not None:
            self.close()

        self._set_state(ConnectionState.CONNECTING)
        try:
            handle = self._serial_factory(port=port, baudrate=self._baud_rate, timeout=0)
        except (serial.SerialException, OSError, ValueError) as exc:
            error = _classify_open_error(port, exc)
            logger.warning("Failed to open serial port %s: %s", port, error.reason)
            self._set_state(ConnectionState.DISCONNECTED)
            raise error from exc

        self._handle = handle
        self._port = port
        self._codec.reset()
        logger.info("Opened serial port %s at %d baud", port, self._baud_rate)
        self._set_state(ConnectionState.CONNECTED)

    def start(self) -> None:
        if self._state is not ConnectionState.CONNECTED:
            return
        self._ticker.start(self._poll_interval_s, self._on_poll_timer)

    def stop(self) -> None:
        self._ticker.stop()

    def close(self) -> None:
        """Release the port and drop any partial frame."""
        self._ticker.stop()
        self._release_handle()
        self._codec.reset()
        if self._port is not None:
            logger.info("Closed serial port %s", self._port)
        self._port = None
        self._set_state(ConnectionState.DISCONNECTED)

    # ---------------------------------------------------------------- ingest
    def poll(self) -> int:
        """Read whatever is buffered, decode it and emit samples; never blocks."""
        if self._state is not ConnectionState.CONNECTED or self._handle is None:
            return 0
        try:
            waiting = self._handle.in_waiting
            data = self._handle.read(waiting) if waiting > 0 else b""
        except (serial.SerialException, OSError) as exc:
            self._fail(str(exc) or exc.__class__.__name__)
            return 0

        if not data:
            return 0

        samples, _ = self._codec.decode(data)
        emitted = 0
        for sample in samples:
            sink = self._sink
            if sink is None:
                # Detached (e.g. a simulation is running): keep draining the port.
                continue
            sink(sample)
            emitted += 1
        return emitted

    def _on_poll_timer(self) -> None:
        self.poll()

    # --------------------------------------------------------------- helpers
    def _fail(self, reason: str) -> None:
        logger.error("Serial port %s failed: %s", self._port, reason)
        self._ticker.stop()
        self._release_handle()
        self._codec.reset()
        self._set_state(ConnectionState.ERRORED)
        self.failed.emit(reason)

    def _release_handle(self) -> None:
        handle = self._handle
        self._handle = None
        if handle is None:
            return
        try:
            handle.close()
        except (serial.SerialException, OSError):
            logger.debug("Ignoring error while closing %s", self._port, exc_info=True)

    def _set_state(self, state: ConnectionState) -> None:
        if state is self._state:
            return
        self._state = state
        self.state_changed.emit(state)
