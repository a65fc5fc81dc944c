from __future__ import annotations

import threading
import time
from pathlib import Path
from typing import List

import pytest

from conftest import FakeClock, ManualTicker, make_sample
from orienta.core.dispatch import EventLoop, ThreadTicker
from orienta.core.simulation_source import SimulationSource
from orienta.dataio.dataset import SimulationDataset
from orienta.errors import ReplayOverflow
from orienta.sensors.sample import SensorSample


def _dataset(count: int) -> SimulationDataset:
    return SimulationDataset(path=Path("memory.log"), samples=tuple(make_sample(i) for i in range(count)))


def _source(count: int, ticker: ManualTicker, clock: FakeClock, **kwargs) -> tuple[SimulationSource, List[SensorSample], List[str]]:
    source = SimulationSource(_dataset(count), ticker, clock=clock, **kwargs)
    received: List[SensorSample] = []
    events: List[str] = []
    source.set_sink(received.append)
    source.finished.connect(lambda: events.append("finished"))
    source.failed.connect(lambda reason: events.append(f"failed:{reason}"))
    return source, received, events


def test_replays_every_sample_then_finishes_once(ticker: ManualTicker, clock: FakeClock) -> None:
    source, received, events = _source(3, ticker, clock)
    source.start()
    assert ticker.interval_s == pytest.approx(0.010)

    ticker.fire(3)
    assert received == [make_sample(i) for i in range(3)]
    assert events == ["finished"]
    assert not source.running
    assert not ticker.active

    ticker.fire(5)
    assert len(received) == 3
    assert events == ["finished"]


def test_one_sample_per_period(ticker: ManualTicker, clock: FakeClock) -> None:
    source, received, _ = _source(10, ticker, clock)
    source.start()
    ticker.fire()
    assert len(received) == 1
    clock.advance(0.004)
    source.catch_up()
    assert len(received) == 1
    ticker.fire()
    assert len(received) == 2


def test_late_timer_catches_up_in_order(ticker: ManualTicker, clock: FakeClock) -> None:
    source, received, _ = _source(10, ticker, clock)
    source.start()
    clock.advance(0.050)
    assert source.catch_up() == 5
    assert received == [make_sample(i) for i in range(5)]
    assert source.cursor == 5


def test_backlog_over_limit_fails_without_emitting(ticker: ManualTicker, clock: FakeClock) -> None:
    source, received, events = _source(50, ticker, clock, max_backlog=4)
    source.start()
    clock.advance(0.100)
    with pytest.raises(ReplayOverflow):
        source.catch_up()

    source.start()
    clock.advance(0.100)
    ticker.callback()
    assert received == []
    assert len(events) == 1 and events[0].startswith("failed:")
    assert not source.running


def test_restart_rewinds_to_first_sample(ticker: ManualTicker, clock: FakeClock) -> None:
    source, received, _ = _source(5, ticker, clock)
    source.start()
    ticker.fire(2)
    source.stop()
    assert source.cursor == 2
    assert not ticker.active

    source.start()
    assert source.cursor == 0
    ticker.fire()
    assert received[-1] == make_sample(0)


def test_stopped_source_ignores_already_posted_ticks(ticker: ManualTicker, clock: FakeClock) -> None:
    source, received, _ = _source(5, ticker, clock)
    source.start()
    callback = ticker.callback
    source.stop()
    clock.advance(0.030)
    callback()
    assert received == []
    assert source.tick() is None


def test_unattached_source_still_advances(ticker: ManualTicker, clock: FakeClock) -> None:
    source, received, events = _source(2, ticker, clock)
    source.set_sink(None)
    source.start()
    ticker.fire(2)
    assert received == []
    assert events == ["finished"]


def test_rejects_non_positive_period(ticker: ManualTicker) -> None:
    with pytest.raises(ValueError):
        SimulationSource(_dataset(1), ticker, sample_period_s=0)


def test_replay_cadence_with_thread_ticker() -> None:
    period = 0.010
    count = 30
    jitter = 0.100
    loop = EventLoop()
    source = SimulationSource(_dataset(count), ThreadTicker(loop), sample_period_s=period)
    arrivals: List[float] = []
    source.set_sink(lambda sample: arrivals.append(time.monotonic()))
    source.finished.connect(loop.stop)
    watchdog = threading.Timer(5.0, loop.stop)
    watchdog.start()

    started = time.monotonic()
    source.start()
    try:
        loop.run_forever(poll_timeout_s=0.005)
    finally:
        watchdog.cancel()
        source.stop()

    assert len(arrivals) == count
    for i, arrived in enumerate(arrivals):
        due = (i + 1) * period
        assert due - 1e-6 <= arrived - started <= due + jitter, i
