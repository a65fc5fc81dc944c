from __future__ import annotations

from typing import List, Optional

from conftest import make_sample
from orienta.core.router import SampleRouter, SampleSink
from orienta.sensors.sample import SensorSample


class FakeSource:
    def __init__(self, name: str) -> None:
        self.name = name
        self.sink: Optional[SampleSink] = None

    def set_sink(self, sink: Optional[SampleSink]) -> None:
        self.sink = sink

    def start(self) -> None:
        pass

    def stop(self) -> None:
        pass

    def emit(self, sample: SensorSample) -> None:
        if self.sink is not None:
            self.sink(sample)


def test_only_attached_source_reaches_consumers() -> None:
    router = SampleRouter()
    received: List[SensorSample] = []
    router.add_consumer(received.append)
    live, sim = FakeSource("serial"), FakeSource("simulation")

    router.attach(live)
    live.emit(make_sample(0))
    router.attach(sim)
    live.emit(make_sample(1))
    sim.emit(make_sample(2))

    assert received == [make_sample(0), make_sample(2)]
    assert live.sink is None
    assert router.active_source is sim


def test_stale_sink_is_dropped_after_switch() -> None:
    router = SampleRouter()
    received: List[SensorSample] = []
    router.add_consumer(received.append)
    live, sim = FakeSource("serial"), FakeSource("simulation")

    router.attach(live)
    in_flight = live.sink
    router.attach(sim)
    assert in_flight is not None
    in_flight(make_sample(9))

    assert received == []
    assert router.dropped_count == 1


def test_interleaved_switches_deliver_no_foreign_samples() -> None:
    router = SampleRouter()
    received: List[tuple[str, SensorSample]] = []
    sources = {"a": FakeSource("a"), "b": FakeSource("b")}
    current = {"name": ""}
    router.add_consumer(lambda s: received.append((current["name"], s)))

    schedule = "aabbbabaab"
    for step, name in enumerate(schedule):
        router.attach(sources[name])
        current["name"] = name
        for source in sources.values():
            source.emit(make_sample(step))

    assert len(received) == len(schedule)
    assert [s for _, s in received] == [make_sample(i) for i in range(len(schedule))]


def test_detach_only_affects_named_source() -> None:
    router = SampleRouter()
    live, sim = FakeSource("serial"), FakeSource("simulation")
    router.attach(sim)
    router.detach(live)
    assert router.active_source is sim

    router.detach()
    assert router.active_source is None
    assert sim.sink is None


def test_consumers_are_notified_in_registration_order() -> None:
    router = SampleRouter()
    order: List[str] = []

    def first(_: SensorSample) -> None:
        order.append("first")

    def second(_: SensorSample) -> None:
        order.append("second")

    router.add_consumer(first)
    router.add_consumer(second)
    router.add_consumer(first)
    source = FakeSource("serial")
    router.attach(source)
    source.emit(make_sample(0))
    router.remove_consumer(first)
    source.emit(make_sample(1))

    assert order == ["first", "second", "second"]
    assert router.delivered_count == 2
