"""pyqtgraph plots for the accelerometer, gyroscope and magnetometer groups."""

from __future__ import annotations

from typing import Dict, Optional

import pyqtgraph as pg
from PySide6.QtWidgets import QVBoxLayout, QWidget

from ..core.graph_model import AXES, GROUP_UNITS, GROUPS, GraphSnapshot, group_channels

_GROUP_TITLES = {
    "accel": "Accelerometer",
    "gyro": "Gyroscope",
    "mag": "Magnetometer",
}
_AXIS_COLORS = {"x": "r", "y": "g", "z": "c"}


class SensorGraphWidget(QWidget):
    """Three stacked plots, one per sensor group, with an X/Y/Z curve each."""

    def __init__(self, parent: Optional[QWidget] = None, line_width: float = 1.0) -> None:
        super().__init__(parent)
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        self._glw = pg.GraphicsLayoutWidget(self)
        layout.addWidget(self._glw)

        self._plots: Dict[str, pg.PlotItem] = {}
        self._curves: Dict[str, pg.PlotDataItem] = {}
        self._auto_y: Dict[str, bool] = {group: False for group in GROUPS}

        for row, group in enumerate(GROUPS):
            plot = self._glw.addPlot(row=row, col=0)
            plot.setMenuEnabled(False)
            plot.hideButtons()
            plot.showGrid(x=True, y=True, alpha=0.3)
            plot.enableAutoRange(x=False, y=False)
            plot.setTitle(_GROUP_TITLES[group])
            plot.setLabel("left", f"{group.upper()} [{GROUP_UNITS[group]}]")
            plot.addLegend(offset=(10, 5))
            if row == len(GROUPS) - 1:
                plot.setLabel("bottom", "Sample")
            for axis, channel in zip(AXES, group_channels(group)):
                pen = pg.mkPen(_AXIS_COLORS[axis], width=max(1.0, float(line_width)))
                self._curves[channel] = plot.plot([], [], pen=pen, name=axis.upper())
            self._plots[group] = plot

    def set_auto_y(self, group: str, enabled: bool) -> None:
        self._auto_y[group] = bool(enabled)
        self._plots[group].enableAutoRange(y=bool(enabled))

    def clear(self) -> None:
        for curve in self._curves.values():
            curve.setData([], [])

    def show_snapshot(self, snapshot: GraphSnapshot) -> None:
        """Draw one frame from ``snapshot``."""
        xmin, xmax = snapshot.x_range
        for channel, values in snapshot.channels.items():
            self._curves[channel].setData(snapshot.indices, values)
        for group, plot in self._plots.items():
            plot.setXRange(xmin, xmax, padding=0.0)
            if not self._auto_y[group]:
                ymin, ymax = snapshot.y_ranges[group]
                plot.setYRange(ymin, ymax, padding=0.0)
