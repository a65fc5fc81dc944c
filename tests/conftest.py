from __future__ import annotations

import pathlib
import sys
from typing import Callable, List, Optional

import pytest

# Ensure src/ is on path for direct test execution
ROOT = pathlib.Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from orienta.sensors.sample import GpsFix, Orientation, SensorSample, Vector3  # noqa: E402


class FakeClock:
    def __init__(self, start: float = 0.0) -> None:
        self.now = float(start)

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class ManualTicker:
    """Ticker that only fires when the test says so."""

    def __init__(self, clock: Optional[FakeClock] = None) -> None:
        self.clock = clock
        self.interval_s: Optional[float] = None
        self.callback: Optional[Callable[[], None]] = None
        self.start_count = 0

    @property
    def active(self) -> bool:
        return self.callback is not None

    def start(self, interval_s: float, callback: Callable[[], None]) -> None:
        self.interval_s = interval_s
        self.callback = callback
        self.start_count += 1

    def stop(self) -> None:
        self.callback = None

    def fire(self, times: int = 1) -> None:
        for _ in range(times):
            if self.clock is not None and self.interval_s is not None:
                self.clock.advance(self.interval_s)
            callback = self.callback
            if callback is not None:
                callback()


class TickerBank:
    """Ticker factory that remembers every ticker it handed out."""

    def __init__(self, clock: Optional[FakeClock] = None) -> None:
        self.clock = clock
        self.tickers: List[ManualTicker] = []

    def __call__(self) -> ManualTicker:
        ticker = ManualTicker(self.clock)
        self.tickers.append(ticker)
        return ticker

    @property
    def latest(self) -> ManualTicker:
        return self.tickers[-1]


class FakeSerial:
    def __init__(self, port: str = "COM1", baudrate: int = 115200, timeout: float | None = 0) -> None:
        self.port = port
        self.baudrate = baudrate
        self.timeout = timeout
        self.closed = False
        self.read_error: Optional[BaseException] = None
        self._buffer = bytearray()

    def feed(self, data: bytes) -> None:
        self._buffer.extend(data)

    @property
    def in_waiting(self) -> int:
        if self.read_error is not None:
            raise self.read_error
        return len(self._buffer)

    def read(self, size: int = 1) -> bytes:
        chunk = bytes(self._buffer[:size])
        del self._buffer[:size]
        return chunk

    def close(self) -> None:
        self.closed = True


class FakeSerialFactory:
    """Stands in for ``serial.Serial``; ports listed in ``errors`` fail to open."""

    def __init__(self) -> None:
        self.errors: dict[str, BaseException] = {}
        self.opened: List[FakeSerial] = []
        self.calls: List[dict] = []

    def __call__(self, port: str, baudrate: int, timeout: float | None) -> FakeSerial:
        self.calls.append({"port": port, "baudrate": baudrate, "timeout": timeout})
        if port in self.errors:
            raise self.errors[port]
        handle = FakeSerial(port, baudrate, timeout)
        self.opened.append(handle)
        return handle

    @property
    def latest(self) -> FakeSerial:
        return self.opened[-1]


def make_sample(index: int, *, gps: bool = False) -> SensorSample:
    """Distinct, exactly representable values; ``timestamp`` is a whole number of ms."""
    base = float(index)
    return SensorSample(
        timestamp=index * 10 / 1000.0,
        accel=Vector3(100.0 + base, -50.0 - base, 1000.0),
        gyro=Vector3(1.5 + base, -2.25, 0.5),
        mag=Vector3(200.0, 150.0 + base, -400.0),
        orientation=Orientation(10.0 + base, -5.5, 180.0),
        gps=GpsFix(52.5200066, 13.4049540, 34.0) if gps else None,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def ticker(clock: FakeClock) -> ManualTicker:
    return ManualTicker(clock)


@pytest.fixture
def ticker_bank(clock: FakeClock) -> TickerBank:
    return TickerBank(clock)


@pytest.fixture
def serial_factory() -> FakeSerialFactory:
    return FakeSerialFactory()


@pytest.fixture
def samples() -> List[SensorSample]:
    return [make_sample(i) for i in range(5)]
