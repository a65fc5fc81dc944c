"""Qt application entry point for the Orienta desktop GUI.

This module wires up argument parsing and logging, builds the
:class:`~orienta.core.controller.ConnectionController` with Qt-backed timers,
creates the :class:`~orienta.gui.main_window.MainWindow` and starts the Qt
event loop. ``python -m orienta.gui.application`` and the ``orienta`` gui script
both flow through ``main()`` here.
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Tuple

from PySide6.QtCore import QLoggingCategory
from PySide6.QtWidgets import QApplication

from ..config.runtime import OrientaConfig, default_config_path, load_config
from ..core.controller import ConnectionController
from ..core.dispatch import EventLoop
from ..tools.debug import configure_logging
from .main_window import MainWindow
from .qt_bridge import LoopPump, qt_ticker_factory


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Orienta IMU sensor visualizer")
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="YAML configuration file (default: $ORIENTA_CONFIG)",
    )
    parser.add_argument(
        "--port",
        type=str,
        default=None,
        help="Serial port to connect to on startup",
    )
    parser.add_argument(
        "--dataset",
        type=str,
        default=None,
        help="Simulation dataset to load on startup",
    )
    parser.add_argument(
        "--sample-count",
        type=int,
        default=None,
        help="Visible samples per graph (minimum 10)",
    )
    parser.add_argument(
        "--log-level",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        default="INFO",
        help="Logging level (default: INFO)",
    )
    return parser


def _parse_cli_args(argv: list[str]) -> tuple[argparse.Namespace, list[str]]:
    parser = _build_arg_parser()
    args, qt_args = parser.parse_known_args(argv[1:])
    qt_argv = [argv[0], *qt_args]
    return args, qt_argv


def create_app(
    argv: list[str] | None = None,
    *,
    config: OrientaConfig | None = None,
) -> Tuple[QApplication, MainWindow]:
    """
    Create the QApplication and the main Orienta window.

    Returns
    -------
    app:
        The QApplication instance (owned by caller).
    window:
        The main window; its controller is ``window.controller``.
    """
    qt_args = argv if argv is not None else sys.argv
    app = QApplication.instance() or QApplication(qt_args)

    # Suppress noisy QObject::connect warnings from QStyleHints and similar internals
    QLoggingCategory.setFilterRules("qt.core.qobject.connect=false")

    cfg = (config or OrientaConfig()).sanitized()
    loop = EventLoop()
    controller = ConnectionController(
        cfg,
        loop=loop,
        ticker_factory=qt_ticker_factory(app),
    )
    window = MainWindow(controller, cfg)
    pump = LoopPump(loop, interval_ms=cfg.poll_interval_ms, parent=window)
    pump.start()
    return app, window


def main(argv: list[str] | None = None) -> None:
    raw_argv = argv if argv is not None else sys.argv
    args, qt_argv = _parse_cli_args(raw_argv)
    configure_logging(args.log_level)
    logger = logging.getLogger(__name__)

    config = load_config(args.config or default_config_path())
    if args.sample_count is not None:
        config.visible_sample_count = args.sample_count
    dataset = args.dataset or config.dataset_path

    app, win = create_app(qt_argv, config=config)
    controller = win.controller

    if dataset:
        controller.load_dataset(dataset)
    if args.port:
        win.select_port(args.port)
        controller.connect(args.port)

    logger.info("Orienta GUI started")
    win.show()
    raise SystemExit(app.exec())


if __name__ == "__main__":
    main()
