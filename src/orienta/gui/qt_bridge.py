"""Glue between the Qt event loop and the headless ingestion core."""

from __future__ import annotations

import logging
from typing import Callable, Optional

from PySide6.QtCore import QObject, Qt, QTimer, Signal

from ..core.controller import ConnectionController
from ..core.dispatch import EventLoop, Ticker, TickerFactory

logger = logging.getLogger(__name__)


class QtTicker:
    """:class:`~orienta.core.dispatch.Ticker` backed by a precise ``QTimer``."""

    def __init__(self, parent: Optional[QObject] = None) -> None:
        self._timer = QTimer(parent)
        self._timer.setTimerType(Qt.PreciseTimer)
        self._callback: Optional[Callable[[], None]] = None
        self._timer.timeout.connect(self._on_timeout)

    @property
    def active(self) -> bool:
        return self._timer.isActive()

    def start(self, interval_s: float, callback: Callable[[], None]) -> None:
        self._callback = callback
        self._timer.setInterval(max(1, int(round(float(interval_s) * 1000.0))))
        self._timer.start()

    def stop(self) -> None:
        self._timer.stop()
        self._callback = None

    def _on_timeout(self) -> None:
        callback = self._callback
        if callback is not None:
            callback()


def qt_ticker_factory(parent: Optional[QObject] = None) -> TickerFactory:
    def _factory() -> Ticker:
        return QtTicker(parent)

    return _factory


class LoopPump(QObject):
    """Drain an :class:`EventLoop` from the Qt thread at a fixed interval."""

    def __init__(self, loop: EventLoop, interval_ms: int = 5, parent: Optional[QObject] = None) -> None:
        super().__init__(parent)
        self._loop = loop
        self._timer = QTimer(self)
        self._timer.setInterval(max(1, int(interval_ms)))
        self._timer.timeout.connect(self._pump)

    def start(self) -> None:
        self._timer.start()

    def stop(self) -> None:
        self._timer.stop()

    def _pump(self) -> None:
        self._loop.run_pending()


class ControllerSignals(QObject):
    """Re-emit the controller's notifications as Qt signals."""

    connection_state_changed = Signal(object)
    connection_failed = Signal(str)
    source_mode_changed = Signal(object)
    simulation_ended = Signal()
    dataset_loaded = Signal(str, int)
    dataset_load_failed = Signal(str)
    playback_failed = Signal(str)

    def __init__(self, controller: ConnectionController, parent: Optional[QObject] = None) -> None:
        super().__init__(parent)
        controller.connection_state_changed.connect(self.connection_state_changed.emit)
        controller.connection_failed.connect(self.connection_failed.emit)
        controller.source_mode_changed.connect(self.source_mode_changed.emit)
        controller.simulation_ended.connect(self.simulation_ended.emit)
        controller.dataset_loaded.connect(self.dataset_loaded.emit)
        controller.dataset_load_failed.connect(self.dataset_load_failed.emit)
        controller.playback_failed.connect(self.playback_failed.emit)
