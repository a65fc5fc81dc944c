"""Exception hierarchy for the ingestion pipeline."""

from __future__ import annotations


class OrientaError(Exception):
    """Base class for every error raised by the Orienta core."""


class ConnectOpenError(OrientaError):
    """A serial port could not be opened."""

    def __init__(self, port: str, reason: str) -> None:
        super().__init__(f"{port}: {reason}")
        self.port = port
        self.reason = reason


class PortUnavailable(ConnectOpenError):
    """The device is missing or busy."""


class PortUnopenable(ConnectOpenError):
    """Driver, permission or timeout failure while opening the port."""


class MalformedFrame(OrientaError):
    """A framing, field-count, number or checksum error in one frame."""


class DatasetLoadError(OrientaError):
    """A simulation dataset could not be loaded."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


class FileNotFound(DatasetLoadError):
    pass


class FileUnreadable(DatasetLoadError):
    pass


class FormatInvalid(DatasetLoadError):
    pass


class NoDatasetLoaded(OrientaError):
    """Simulation was requested before any dataset was loaded."""

    def __init__(self) -> None:
        super().__init__("No simulation dataset is loaded")


class SimulationActive(OrientaError):
    """A live connection was requested while a simulation is running."""

    def __init__(self, port: str) -> None:
        super().__init__(f"Cannot connect to {port} while a simulation is running")
        self.port = port


class ReplayOverflow(OrientaError):
    """The replay backlog exceeded its bound; samples would have been lost."""


__all__ = [
    "OrientaError",
    "ConnectOpenError",
    "PortUnavailable",
    "PortUnopenable",
    "MalformedFrame",
    "DatasetLoadError",
    "FileNotFound",
    "FileUnreadable",
    "FormatInvalid",
    "NoDatasetLoaded",
    "SimulationActive",
    "ReplayOverflow",
]
