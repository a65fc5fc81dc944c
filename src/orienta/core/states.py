"""State enums shared by the sources, the controller and the GUI."""

from __future__ import annotations

from enum import Enum


class ConnectionState(Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    ERRORED = "errored"


class SourceMode(Enum):
    """Which producer currently feeds the router; LIVE and SIMULATING never overlap."""

    IDLE = "idle"
    LIVE = "live"
    SIMULATING = "simulating"
