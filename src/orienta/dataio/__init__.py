"""Simulation dataset input/output.

:mod:`dataset` loads recorded frame logs into a read-only
:class:`~orienta.dataio.dataset.SimulationDataset` and writes them back out.
"""

from .dataset import SimulationDataset, load_dataset, write_dataset

__all__ = ["SimulationDataset", "load_dataset", "write_dataset"]
