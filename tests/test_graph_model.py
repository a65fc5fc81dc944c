from __future__ import annotations

import threading
from typing import List

import numpy as np
import pytest

from conftest import make_sample
from orienta.core.graph_model import CHANNELS, GraphModel, group_channels
from orienta.sensors.sample import SensorSample, Vector3


def _push(model: GraphModel, count: int, start: int = 0) -> None:
    for i in range(start, start + count):
        model.push(make_sample(i))


def test_window_holds_last_capacity_samples_in_order() -> None:
    model = GraphModel(capacity=10)
    _push(model, 15)

    window = model.window("accel_x")
    assert len(window) == 10
    assert window.pairs() == [(i, 100.0 + i) for i in range(5, 15)]
    assert model.total_samples == 15
    assert model.x_range() == (5, 14)


def test_x_range_is_fixed_until_window_fills() -> None:
    model = GraphModel(capacity=10)
    assert model.x_range() == (0, 9)
    _push(model, 10)
    assert model.x_range() == (0, 9)
    _push(model, 1, start=10)
    assert model.x_range() == (1, 10)


def test_set_capacity_clamps_and_resets_index() -> None:
    model = GraphModel(capacity=10)
    _push(model, 12)

    assert model.set_capacity(3) == 10
    assert model.set_capacity(20) == 20
    assert len(model) == 0
    assert model.total_samples == 0

    model.push(make_sample(42))
    assert model.window("gyro_x").pairs() == [(0, 43.5)]


def test_capacity_below_minimum_is_raised_to_ten() -> None:
    assert GraphModel(capacity=1).capacity == 10


def test_snapshot_carries_all_channels_and_readouts() -> None:
    model = GraphModel(capacity=10)
    _push(model, 3)
    snap = model.snapshot()

    assert set(snap.channels) == set(CHANNELS)
    assert snap.indices.tolist() == [0, 1, 2]
    assert snap.window("mag_y") == [(0, 150.0), (1, 151.0), (2, 152.0)]
    assert snap.current["accel_z"] == 1000.0
    assert snap.total_samples == 3
    assert snap.orientation is not None and snap.orientation.roll == 12.0
    assert snap.gps is None
    assert snap.x_range == (0, 9)


def test_heading_follows_magnetometer() -> None:
    model = GraphModel()
    model.push(
        SensorSample(
            timestamp=0.0,
            accel=Vector3(0.0, 0.0, 0.0),
            gyro=Vector3(0.0, 0.0, 0.0),
            mag=Vector3(0.0, -10.0, 0.0),
        )
    )
    assert model.snapshot().heading_deg == pytest.approx(270.0)


def test_clear_resets_windows_and_readouts() -> None:
    model = GraphModel(capacity=10)
    _push(model, 4)
    model.clear()
    snap = model.snapshot()
    assert snap.total_samples == 0
    assert snap.indices.size == 0
    assert snap.heading_deg is None
    assert all(value == 0.0 for value in snap.current.values())


def test_y_ranges_default_and_override() -> None:
    model = GraphModel(y_ranges={"gyro": 500})
    assert model.y_range("accel") == (-4000.0, 4000.0)
    assert model.y_range("gyro") == (-500.0, 500.0)
    assert model.y_range("mag") == (-1600.0, 1600.0)

    model.set_y_range("mag", -100, 300)
    assert model.y_range("mag") == (-100.0, 300.0)
    with pytest.raises(ValueError):
        model.set_y_range("mag", 5, 5)
    with pytest.raises(KeyError):
        model.y_range("baro")


def test_auto_y_range_pads_data_extent() -> None:
    model = GraphModel(capacity=10)
    assert model.auto_y_range("accel") == (-4000.0, 4000.0)
    _push(model, 2)
    low, high = model.auto_y_range("accel")
    # accel values span -51 .. 1000
    assert low == pytest.approx(-51.0 - 105.1)
    assert high == pytest.approx(1000.0 + 105.1)


def test_snapshot_is_consistent_while_pushing_from_another_thread() -> None:
    model = GraphModel(capacity=50)
    total = 5000
    done = threading.Event()
    problems: List[str] = []

    def producer() -> None:
        try:
            _push(model, total)
        finally:
            done.set()

    thread = threading.Thread(target=producer)
    thread.start()
    snapshots = 0
    while not done.is_set() or snapshots == 0:
        snap = model.snapshot()
        snapshots += 1
        indices = snap.indices
        if indices.size > model.capacity:
            problems.append(f"window of {indices.size} exceeds capacity")
        if indices.size and not np.array_equal(
            indices, np.arange(indices[0], indices[0] + indices.size)
        ):
            problems.append(f"indices not contiguous: {indices.tolist()}")
        for channel, values in snap.channels.items():
            if values.size != indices.size:
                problems.append(f"{channel} has {values.size} values for {indices.size} indices")
    thread.join()

    assert problems == []
    final = model.snapshot()
    assert final.total_samples == total
    assert final.indices.tolist() == list(range(total - 50, total))


def test_group_channels() -> None:
    assert group_channels("gyro") == ("gyro_x", "gyro_y", "gyro_z")
    with pytest.raises(KeyError):
        group_channels("temp")
