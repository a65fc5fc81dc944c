"""Timed, deterministic replay of a loaded :class:`SimulationDataset`."""

from __future__ import annotations

import logging
import math
import time
from typing import Callable, Optional

from ..dataio.dataset import SimulationDataset
from ..errors import ReplayOverflow
from ..sensors.sample import SensorSample
from .dispatch import Ticker
from .events import Event
from .router import SampleSink

logger = logging.getLogger(__name__)

DEFAULT_SAMPLE_PERIOD_S = 0.010
DEFAULT_MAX_BACKLOG = 256


class SimulationSource:
    """
    Replay a dataset one sample per period, then report end-of-data once.

    The timer callback works out how many samples are due since
    :meth:`start` from the clock rather than counting timer events, so a
    late or coalesced timer delivers the missed samples in order instead of
    stretching the replay. More than ``max_backlog`` overdue samples is a
    configuration error (:class:`ReplayOverflow`), reported via ``failed``.
    """

    def __init__(
        self,
        dataset: SimulationDataset,
        ticker: Ticker,
        *,
        sample_period_s: float = DEFAULT_SAMPLE_PERIOD_S,
        max_backlog: int = DEFAULT_MAX_BACKLOG,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if sample_period_s <= 0:
            raise ValueError("sample_period_s must be positive")
        self.name = "simulation"
        self._dataset = dataset
        self._ticker = ticker
        self._period = float(sample_period_s)
        self._max_backlog = max(1, int(max_backlog))
        self._clock = clock
        self._cursor = 0
        self._epoch = 0.0
        self._running = False
        self._sink: Optional[SampleSink] = None

        self.finished = Event("finished")
        self.failed = Event("failed")

    @property
    def dataset(self) -> SimulationDataset:
        return self._dataset

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def running(self) -> bool:
        return self._running

    @property
    def sample_period_s(self) -> float:
        return self._period

    def set_sink(self, sink: Optional[SampleSink]) -> None:
        self._sink = sink

    # ------------------------------------------------------------- lifecycle
    def start(self) -> None:
        """Rewind to the first sample and begin ticking."""
        self._cursor = 0
        self._epoch = self._clock()
        self._running = True
        logger.info(
            "Replaying %d samples from %s every %.1f ms",
            len(self._dataset),
            self._dataset.path,
            self._period * 1000.0,
        )
        self._ticker.start(self._period, self._on_timer)

    def stop(self) -> None:
        """Halt ticking; the cursor is left where it is."""
        self._running = False
        self._ticker.stop()

    # ---------------------------------------------------------------- replay
    def tick(self) -> Optional[SensorSample]:
        """Emit the sample at the cursor and advance; finishes at the end."""
        if not self._running:
            return None
        if self._cursor >= len(self._dataset):
            self._finish()
            return None

        sample = self._dataset[self._cursor]
        self._cursor += 1
        sink = self._sink
        if sink is not None:
            sink(sample)
        if self._cursor >= len(self._dataset):
            self._finish()
        return sample

    def catch_up(self) -> int:
        """Emit every sample due by now; returns how many were emitted."""
        if not self._running:
            return 0
        elapsed = self._clock() - self._epoch
        # Tolerate float error so that exactly n periods yields n samples.
        due = min(len(self._dataset), int(math.floor(elapsed / self._period + 1e-9)))
        backlog = due - self._cursor
        if backlog > self._max_backlog:
            raise ReplayOverflow(
                f"{backlog} samples overdue, backlog limit is {self._max_backlog}"
            )
        emitted = 0
        while self._running and emitted < backlog:
            self.tick()
            emitted += 1
        return emitted

    def _on_timer(self) -> None:
        try:
            self.catch_up()
        except ReplayOverflow as exc:
            logger.error("Simulation replay stopped: %s", exc)
            self.stop()
            self.failed.emit(str(exc))

    def _finish(self) -> None:
        self.stop()
        logger.info("Simulation reached end of data after %d samples", self._cursor)
        self.finished.emit()
