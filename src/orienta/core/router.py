"""Single funnel between the active sample source and its consumers."""

from __future__ import annotations

import logging
from typing import Callable, List, Optional, Protocol

from ..sensors.sample import SensorSample

logger = logging.getLogger(__name__)

SampleSink = Callable[[SensorSample], None]


class SampleSource(Protocol):
    """Capability shared by the live serial link and the simulation replay."""

    name: str

    def set_sink(self, sink: Optional[SampleSink]) -> None:  # pragma: no cover - protocol
        ...

    def start(self) -> None:  # pragma: no cover - protocol
        ...

    def stop(self) -> None:  # pragma: no cover - protocol
        ...


class SampleRouter:
    """
    Forward samples from exactly one attached source to all consumers.

    Each :meth:`attach` bumps a generation counter and gives the source a sink
    bound to that generation. Samples carrying an older generation (a source
    that was switched away while a sample was in flight) are dropped, so after
    ``attach``/``detach`` returns the previous source can no longer deliver.
    """

    def __init__(self) -> None:
        self._consumers: List[SampleSink] = []
        self._source: Optional[SampleSource] = None
        self._generation = 0
        self.dropped_count = 0
        self.delivered_count = 0

    @property
    def active_source(self) -> Optional[SampleSource]:
        return self._source

    @property
    def generation(self) -> int:
        return self._generation

    def add_consumer(self, consumer: SampleSink) -> None:
        if consumer not in self._consumers:
            self._consumers.append(consumer)

    def remove_consumer(self, consumer: SampleSink) -> None:
        if consumer in self._consumers:
            self._consumers.remove(consumer)

    def attach(self, source: SampleSource) -> None:
        """Make ``source`` the only producer whose samples reach consumers."""
        self._release_current()
        self._generation += 1
        generation = self._generation
        self._source = source

        def _sink(sample: SensorSample) -> None:
            self._deliver(generation, sample)

        source.set_sink(_sink)
        logger.debug("Router attached %s (generation %d)", source.name, generation)

    def detach(self, source: SampleSource | None = None) -> None:
        """Detach the active source (only if it is ``source``, when given)."""
        if source is not None and source is not self._source:
            return
        self._release_current()
        self._generation += 1

    def _release_current(self) -> None:
        current = self._source
        self._source = None
        if current is not None:
            current.set_sink(None)
            logger.debug("Router detached %s", current.name)

    def _deliver(self, generation: int, sample: SensorSample) -> None:
        if generation != self._generation:
            self.dropped_count += 1
            return
        self.delivered_count += 1
        for consumer in list(self._consumers):
            consumer(sample)
