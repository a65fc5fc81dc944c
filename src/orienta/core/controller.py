"""Façade that the UI layer drives: connection lifecycle and source mode."""

from __future__ import annotations

import logging
import threading
import time
from functools import partial
from pathlib import Path
from typing import Callable, Optional

import serial

from ..analysis.rate import RateEstimator
from ..config.runtime import OrientaConfig
from ..dataio.dataset import SimulationDataset, load_dataset
from ..errors import ConnectOpenError, DatasetLoadError, NoDatasetLoaded, SimulationActive
from ..sensors.sample import SensorSample
from .dispatch import EventLoop, TickerFactory, thread_ticker_factory
from .events import Event
from .graph_model import GraphModel
from .router import SampleRouter
from .serial_source import SerialFactory, SerialSource
from .simulation_source import SimulationSource
from .states import ConnectionState, SourceMode

logger = logging.getLogger(__name__)


class ConnectionController:
    """
    Owns the serial and simulation sources, the router and the graph model.

    Commands (``connect``, ``disconnect``, ``enable_simulation``,
    ``disable_simulation``, ``load_dataset``, ``set_visible_sample_count``)
    must be called on the event-loop thread. Policy rejections are raised
    (:class:`SimulationActive`, :class:`NoDatasetLoaded`); lifecycle failures
    are reported once through the ``connection_failed``,
    ``dataset_load_failed`` and ``playback_failed`` events.
    """

    def __init__(
        self,
        config: OrientaConfig | None = None,
        *,
        loop: EventLoop | None = None,
        graph: GraphModel | None = None,
        ticker_factory: TickerFactory | None = None,
        serial_factory: SerialFactory = serial.Serial,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._config = (config or OrientaConfig()).sanitized()
        self._loop = loop or EventLoop()
        self._ticker_factory = ticker_factory or thread_ticker_factory(self._loop)
        self._serial_factory = serial_factory
        self._clock = clock
        self._graph = graph or GraphModel(
            self._config.visible_sample_count,
            y_ranges={
                "accel": self._config.accel_range,
                "gyro": self._config.gyro_range,
                "mag": self._config.mag_range,
            },
        )
        self._router = SampleRouter()
        self._router.add_consumer(self._graph.push)
        self._router.add_consumer(self._on_sample)
        self._rate = RateEstimator(window_size=200)

        self._serial: Optional[SerialSource] = None
        self._simulation: Optional[SimulationSource] = None
        self._mode = SourceMode.IDLE

        self.connection_state_changed = Event("connection_state_changed")
        self.connection_failed = Event("connection_failed")
        self.source_mode_changed = Event("source_mode_changed")
        self.sample_ingested = Event("sample_ingested")
        self.simulation_ended = Event("simulation_ended")
        self.dataset_loaded = Event("dataset_loaded")
        self.dataset_load_failed = Event("dataset_load_failed")
        self.playback_failed = Event("playback_failed")

    # ------------------------------------------------------------ properties
    @property
    def config(self) -> OrientaConfig:
        return self._config

    @property
    def loop(self) -> EventLoop:
        return self._loop

    @property
    def graph(self) -> GraphModel:
        return self._graph

    @property
    def router(self) -> SampleRouter:
        return self._router

    @property
    def source_mode(self) -> SourceMode:
        return self._mode

    @property
    def connection_state(self) -> ConnectionState:
        if self._serial is None:
            return ConnectionState.DISCONNECTED
        return self._serial.state

    @property
    def port(self) -> Optional[str]:
        return self._serial.port if self._serial is not None else None

    @property
    def dataset(self) -> Optional[SimulationDataset]:
        return self._simulation.dataset if self._simulation is not None else None

    @property
    def simulation(self) -> Optional[SimulationSource]:
        return self._simulation

    @property
    def ingest_rate_hz(self) -> float:
        return self._rate.estimated_hz

    # ------------------------------------------------------------ live link
    def connect(self, port: str) -> bool:
        """
        Open ``port`` and make it the live source.

        Returns ``False`` (after emitting ``connection_failed``) when the port
        cannot be opened. Raises :class:`SimulationActive` while simulating.
        """
        if self._mode is SourceMode.SIMULATING:
            raise SimulationActive(port)

        if self._serial is not None:
            self.disconnect()

        source = SerialSource(
            self._ticker_factory(),
            baud_rate=self._config.baud_rate,
            poll_interval_s=self._config.poll_interval_s,
            max_frame_bytes=self._config.max_frame_bytes,
            serial_factory=self._serial_factory,
        )
        source.state_changed.connect(partial(self._on_serial_state, source))
        source.failed.connect(partial(self._on_serial_failed, source))
        self._serial = source

        try:
            source.open(port)
        except ConnectOpenError as exc:
            self._serial = None
            self.connection_failed.emit(str(exc))
            return False

        self._rate.reset()
        self._router.attach(source)
        source.start()
        self._set_mode(SourceMode.LIVE)
        return True

    def disconnect(self) -> None:
        """Close the live connection; a running simulation is left alone."""
        source = self._serial
        if source is None:
            return
        self._router.detach(source)
        source.close()
        self._serial = None
        if self._mode is SourceMode.LIVE:
            self._set_mode(SourceMode.IDLE)

    # ------------------------------------------------------------ simulation
    def load_dataset(self, path: str | Path) -> bool:
        """Load a dataset synchronously; returns ``False`` on failure."""
        try:
            dataset = load_dataset(path, sample_period_s=self._config.sample_period_s)
        except DatasetLoadError as exc:
            self._report_dataset_error(exc)
            return False
        self._install_dataset(dataset)
        return True

    def load_dataset_async(self, path: str | Path) -> threading.Thread:
        """
        Read the dataset on a worker thread and install it on the loop thread.

        The returned thread is already started; the outcome arrives as a
        ``dataset_loaded`` or ``dataset_load_failed`` event once the loop runs
        the posted result.
        """
        period = self._config.sample_period_s

        def _target() -> None:
            try:
                dataset = load_dataset(path, sample_period_s=period)
            except DatasetLoadError as exc:
                self._loop.post(self._report_dataset_error, exc)
                return
            self._loop.post(self._install_dataset, dataset)

        thread = threading.Thread(target=_target, name="OrientaDatasetLoader", daemon=True)
        thread.start()
        return thread

    def enable_simulation(self) -> None:
        """Replay the loaded dataset from the start; raises :class:`NoDatasetLoaded`."""
        simulation = self._simulation
        if simulation is None:
            raise NoDatasetLoaded()
        if self._mode is SourceMode.SIMULATING:
            return
        self._router.attach(simulation)
        self._set_mode(SourceMode.SIMULATING)
        simulation.start()

    def disable_simulation(self) -> None:
        """Stop replaying; fall back to the live link if one is open."""
        if self._mode is not SourceMode.SIMULATING:
            return
        simulation = self._simulation
        if simulation is not None:
            simulation.stop()
            self._router.detach(simulation)
        if self._serial is not None and self._serial.is_open:
            self._router.attach(self._serial)
            self._set_mode(SourceMode.LIVE)
        else:
            self._set_mode(SourceMode.IDLE)

    # -------------------------------------------------------------- display
    def set_visible_sample_count(self, count: int) -> int:
        applied = self._graph.set_capacity(count)
        logger.info("Visible sample count set to %d", applied)
        return applied

    def shutdown(self) -> None:
        self.disable_simulation()
        self.disconnect()

    # ------------------------------------------------------------- internals
    def _install_dataset(self, dataset: SimulationDataset) -> None:
        if self._mode is SourceMode.SIMULATING:
            logger.info("Stopping running simulation to load %s", dataset.path)
            self.disable_simulation()
        source = SimulationSource(
            dataset,
            self._ticker_factory(),
            sample_period_s=self._config.sample_period_s,
            max_backlog=self._config.max_backlog,
            clock=self._clock,
        )
        source.finished.connect(partial(self._on_simulation_finished, source))
        source.failed.connect(partial(self._on_simulation_failed, source))
        self._simulation = source
        self.dataset_loaded.emit(str(dataset.path), len(dataset))

    def _report_dataset_error(self, exc: DatasetLoadError) -> None:
        logger.warning("Dataset load failed: %s", exc)
        self.dataset_load_failed.emit(str(exc))

    def _on_sample(self, sample: SensorSample) -> None:
        self._rate.add_sample_time(sample.timestamp)
        self.sample_ingested.emit(sample)

    def _on_serial_state(self, source: SerialSource, state: ConnectionState) -> None:
        if source is self._serial or state is ConnectionState.DISCONNECTED:
            self.connection_state_changed.emit(state)

    def _on_serial_failed(self, source: SerialSource, reason: str) -> None:
        if source is not self._serial:
            return
        self._router.detach(source)
        if self._mode is SourceMode.LIVE:
            self._set_mode(SourceMode.IDLE)
        self.connection_failed.emit(reason)

    def _on_simulation_finished(self, source: SimulationSource) -> None:
        if source is not self._simulation:
            return
        self.disable_simulation()
        self.simulation_ended.emit()

    def _on_simulation_failed(self, source: SimulationSource, reason: str) -> None:
        if source is not self._simulation:
            return
        self.disable_simulation()
        self.playback_failed.emit(reason)

    def _set_mode(self, mode: SourceMode) -> None:
        if mode is self._mode:
            return
        logger.info("Source mode %s -> %s", self._mode.value, mode.value)
        self._mode = mode
        self.source_mode_changed.emit(mode)
