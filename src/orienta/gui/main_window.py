"""Main window for the Orienta sensor visualizer."""

from __future__ import annotations

import logging
from pathlib import Path

from PySide6.QtCore import QTimer, Slot
from PySide6.QtGui import QCloseEvent
from PySide6.QtWidgets import (
    QCheckBox,
    QComboBox,
    QFileDialog,
    QGridLayout,
    QGroupBox,
    QHBoxLayout,
    QLabel,
    QMainWindow,
    QMessageBox,
    QPushButton,
    QSpinBox,
    QVBoxLayout,
    QWidget,
)

from ..config.runtime import MIN_VISIBLE_SAMPLES, OrientaConfig
from ..core.controller import ConnectionController
from ..core.graph_model import CHANNELS, GROUP_UNITS, GraphSnapshot
from ..core.serial_source import enumerate_ports
from ..core.states import ConnectionState, SourceMode
from ..errors import NoDatasetLoaded, SimulationActive
from ..tools.debug import time_block
from .qt_bridge import ControllerSignals
from .sensor_graph import SensorGraphWidget

_MAX_VISIBLE_SAMPLES = 100_000


class MainWindow(QMainWindow):
    """Port selection, simulation controls, live graphs and value readouts."""

    def __init__(
        self,
        controller: ConnectionController,
        config: OrientaConfig | None = None,
        parent: QWidget | None = None,
    ) -> None:
        super().__init__(parent)
        self.setWindowTitle("Orienta Sensor Visualizer")
        self._logger = logging.getLogger(__name__)
        self._controller = controller
        self._config = config or controller.config
        self._signals = ControllerSignals(controller, self)

        self._build_ui()
        self._wire_signals()
        self.refresh_ports()
        self._update_controls()

        self._render_timer = QTimer(self)
        self._render_timer.setInterval(self._config.render_interval_ms())
        self._render_timer.timeout.connect(self._on_render_timer)
        self._render_timer.start()

    @property
    def controller(self) -> ConnectionController:
        return self._controller

    # ------------------------------------------------------------------ layout
    def _build_ui(self) -> None:
        container = QWidget()
        layout = QVBoxLayout(container)

        controls = QHBoxLayout()
        controls.addWidget(QLabel("Port:"))
        self.port_combo = QComboBox()
        self.port_combo.setMinimumWidth(180)
        controls.addWidget(self.port_combo)
        self.refresh_ports_button = QPushButton("Refresh")
        controls.addWidget(self.refresh_ports_button)
        self.connect_button = QPushButton("Connect")
        controls.addWidget(self.connect_button)

        controls.addSpacing(16)
        self.load_dataset_button = QPushButton("Load dataset…")
        controls.addWidget(self.load_dataset_button)
        self.simulation_check = QCheckBox("Simulation")
        controls.addWidget(self.simulation_check)

        controls.addSpacing(16)
        controls.addWidget(QLabel("Samples:"))
        self.sample_count_spin = QSpinBox()
        self.sample_count_spin.setRange(MIN_VISIBLE_SAMPLES, _MAX_VISIBLE_SAMPLES)
        self.sample_count_spin.setSingleStep(100)
        self.sample_count_spin.setValue(self._controller.graph.capacity)
        self.sample_count_spin.setKeyboardTracking(False)
        controls.addWidget(self.sample_count_spin)
        controls.addStretch(1)
        layout.addLayout(controls)

        body = QHBoxLayout()
        self.graph_widget = SensorGraphWidget(self)
        body.addWidget(self.graph_widget, stretch=1)
        body.addWidget(self._build_readouts())
        layout.addLayout(body, stretch=1)

        self.setCentralWidget(container)
        self.statusBar().showMessage("Disconnected")

    def _build_readouts(self) -> QWidget:
        box = QGroupBox("Current values")
        grid = QGridLayout(box)
        self._value_labels: dict[str, QLabel] = {}
        for row, channel in enumerate(CHANNELS):
            group = channel.split("_", 1)[0]
            grid.addWidget(QLabel(f"{channel} [{GROUP_UNITS[group]}]"), row, 0)
            label = QLabel("—")
            label.setMinimumWidth(80)
            self._value_labels[channel] = label
            grid.addWidget(label, row, 1)

        row = len(CHANNELS)
        grid.addWidget(QLabel("Heading [°]"), row, 0)
        self.heading_label = QLabel("—")
        grid.addWidget(self.heading_label, row, 1)
        grid.addWidget(QLabel("Roll / Pitch / Yaw [°]"), row + 1, 0)
        self.orientation_label = QLabel("—")
        grid.addWidget(self.orientation_label, row + 1, 1)
        grid.addWidget(QLabel("GPS"), row + 2, 0)
        self.gps_label = QLabel("—")
        grid.addWidget(self.gps_label, row + 2, 1)
        grid.addWidget(QLabel("Rate [Hz]"), row + 3, 0)
        self.rate_label = QLabel("—")
        grid.addWidget(self.rate_label, row + 3, 1)
        grid.setRowStretch(row + 4, 1)
        return box

    def _wire_signals(self) -> None:
        self.refresh_ports_button.clicked.connect(self.refresh_ports)
        self.connect_button.clicked.connect(self._on_connect_clicked)
        self.load_dataset_button.clicked.connect(self._on_load_dataset_clicked)
        self.simulation_check.toggled.connect(self._on_simulation_toggled)
        self.sample_count_spin.valueChanged.connect(self._on_sample_count_changed)

        self._signals.connection_state_changed.connect(self._on_connection_state_changed)
        self._signals.source_mode_changed.connect(self._on_source_mode_changed)
        self._signals.connection_failed.connect(self._on_connection_failed)
        self._signals.simulation_ended.connect(self._on_simulation_ended)
        self._signals.dataset_loaded.connect(self._on_dataset_loaded)
        self._signals.dataset_load_failed.connect(self._on_dataset_load_failed)
        self._signals.playback_failed.connect(self._on_playback_failed)

    # ----------------------------------------------------------------- actions
    @Slot()
    def refresh_ports(self) -> None:
        current = self.port_combo.currentData()
        self.port_combo.clear()
        for device, description in enumerate_ports():
            self.port_combo.addItem(f"{device} ({description})", device)
        if current is not None:
            idx = self.port_combo.findData(current)
            if idx >= 0:
                self.port_combo.setCurrentIndex(idx)
        self._update_controls()

    def select_port(self, port: str) -> None:
        idx = self.port_combo.findData(port)
        if idx < 0:
            self.port_combo.addItem(port, port)
            idx = self.port_combo.count() - 1
        self.port_combo.setCurrentIndex(idx)
        self._update_controls()

    @Slot()
    def _on_connect_clicked(self) -> None:
        if self._controller.connection_state is ConnectionState.CONNECTED:
            self._controller.disconnect()
            return
        port = self.port_combo.currentData()
        if not port:
            QMessageBox.information(self, "No port", "Select a serial port first.")
            return
        try:
            self._controller.connect(str(port))
        except SimulationActive as exc:
            QMessageBox.warning(self, "Simulation running", str(exc))

    @Slot()
    def _on_load_dataset_clicked(self) -> None:
        start_dir = ""
        dataset = self._controller.dataset
        if dataset is not None:
            start_dir = str(dataset.path.parent)
        path, _ = QFileDialog.getOpenFileName(
            self,
            "Load simulation dataset",
            start_dir,
            "Sensor logs (*.txt *.log *.csv);;All files (*)",
        )
        if not path:
            return
        self.statusBar().showMessage(f"Loading {Path(path).name} …")
        self.load_dataset_button.setEnabled(False)
        self._controller.load_dataset_async(path)

    @Slot(bool)
    def _on_simulation_toggled(self, checked: bool) -> None:
        if checked:
            try:
                self._controller.enable_simulation()
            except NoDatasetLoaded as exc:
                QMessageBox.information(self, "No dataset", str(exc))
                self._set_simulation_checked(False)
        else:
            self._controller.disable_simulation()

    @Slot(int)
    def _on_sample_count_changed(self, value: int) -> None:
        applied = self._controller.set_visible_sample_count(value)
        if applied != value:
            self.sample_count_spin.setValue(applied)
        self.graph_widget.clear()

    # ------------------------------------------------------------ notifications
    @Slot(object)
    def _on_connection_state_changed(self, state: ConnectionState) -> None:
        port = self._controller.port or ""
        self.statusBar().showMessage(f"{state.value.capitalize()} {port}".strip())
        self._update_controls()

    @Slot(object)
    def _on_source_mode_changed(self, mode: SourceMode) -> None:
        self._set_simulation_checked(mode is SourceMode.SIMULATING)
        self._update_controls()

    @Slot(str)
    def _on_connection_failed(self, message: str) -> None:
        self._logger.warning("Connection failed: %s", message)
        self._update_controls()
        QMessageBox.critical(self, "Connection failed", message)

    @Slot()
    def _on_simulation_ended(self) -> None:
        self.statusBar().showMessage("Simulation finished", 5000)

    @Slot(str, int)
    def _on_dataset_loaded(self, path: str, count: int) -> None:
        self.load_dataset_button.setEnabled(True)
        self.statusBar().showMessage(f"Loaded {count} samples from {Path(path).name}", 5000)
        self._update_controls()

    @Slot(str)
    def _on_dataset_load_failed(self, message: str) -> None:
        self.load_dataset_button.setEnabled(True)
        self.statusBar().showMessage("Dataset load failed", 5000)
        QMessageBox.critical(self, "Dataset load failed", message)

    @Slot(str)
    def _on_playback_failed(self, message: str) -> None:
        QMessageBox.warning(self, "Simulation stopped", message)

    # -------------------------------------------------------------- rendering
    @Slot()
    def _on_render_timer(self) -> None:
        with time_block("render_frame"):
            snapshot = self._controller.graph.snapshot()
            self.graph_widget.show_snapshot(snapshot)
            self._update_readouts(snapshot)

    def _update_readouts(self, snapshot: GraphSnapshot) -> None:
        if snapshot.total_samples == 0:
            return
        for channel, value in snapshot.current.items():
            self._value_labels[channel].setText(f"{value:.1f}")
        if snapshot.heading_deg is not None:
            self.heading_label.setText(f"{snapshot.heading_deg:.1f}")
        orientation = snapshot.orientation
        if orientation is not None:
            self.orientation_label.setText(
                f"{orientation.roll:.1f} / {orientation.pitch:.1f} / {orientation.yaw:.1f}"
            )
        gps = snapshot.gps
        if gps is not None:
            self.gps_label.setText(
                f"{gps.latitude:.6f}, {gps.longitude:.6f} @ {gps.altitude:.1f} m"
            )
        self.rate_label.setText(f"{self._controller.ingest_rate_hz:.1f}")

    # ---------------------------------------------------------------- helpers
    def _set_simulation_checked(self, checked: bool) -> None:
        self.simulation_check.blockSignals(True)
        self.simulation_check.setChecked(checked)
        self.simulation_check.blockSignals(False)

    def _update_controls(self) -> None:
        state = self._controller.connection_state
        mode = self._controller.source_mode
        connected = state is ConnectionState.CONNECTED
        self.connect_button.setText("Disconnect" if connected else "Connect")
        self.connect_button.setEnabled(
            connected or (mode is not SourceMode.SIMULATING and self.port_combo.count() > 0)
        )
        self.port_combo.setEnabled(not connected)
        self.simulation_check.setEnabled(self._controller.dataset is not None)

    def closeEvent(self, event: QCloseEvent) -> None:
        self._render_timer.stop()
        self._controller.shutdown()
        super().closeEvent(event)
