"""Orienta: live and replayed IMU sensor visualizer.

The :mod:`orienta.core` package owns ingestion, source arbitration and the
rolling graph buffers; :mod:`orienta.gui` is a thin PySide6 shell on top.
"""

__version__ = "0.3.0"
