"""Ingestion core: sources, routing, graph buffers and the controller.

This package sits between the serial port (or a loaded dataset) and the GUI.
Sources decode samples and hand them to the :class:`SampleRouter`, which
feeds the :class:`GraphModel` that the plots render from. The
:class:`ConnectionController` coordinates all of it on a single
:class:`EventLoop`.
"""

from .controller import ConnectionController
from .dispatch import EventLoop, ThreadTicker, Ticker, thread_ticker_factory
from .events import Event
from .graph_model import CHANNELS, GROUPS, GraphModel, GraphSnapshot
from .ringbuffer import RingBuffer
from .router import SampleRouter, SampleSource
from .serial_source import SerialSource, enumerate_ports
from .simulation_source import SimulationSource
from .states import ConnectionState, SourceMode

__all__ = [
    "ConnectionController",
    "EventLoop",
    "ThreadTicker",
    "Ticker",
    "thread_ticker_factory",
    "Event",
    "CHANNELS",
    "GROUPS",
    "GraphModel",
    "GraphSnapshot",
    "RingBuffer",
    "SampleRouter",
    "SampleSource",
    "SerialSource",
    "enumerate_ports",
    "SimulationSource",
    "ConnectionState",
    "SourceMode",
]
