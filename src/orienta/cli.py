"""Headless monitor: stream (or replay) samples and log the current values.

Examples
--------
    orienta-monitor --list-ports
    orienta-monitor --port /dev/ttyUSB0
    orienta-monitor --dataset logs/flight.txt --sample-count 200
"""

from __future__ import annotations

import argparse
import logging
import signal
import sys
import threading
from typing import Optional, Sequence

from .config.runtime import OrientaConfig, default_config_path, load_config
from .core.controller import ConnectionController
from .core.dispatch import EventLoop, thread_ticker_factory
from .core.serial_source import enumerate_ports
from .core.states import SourceMode
from .tools.debug import configure_logging

logger = logging.getLogger("orienta.monitor")


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Orienta headless sensor monitor")
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--port", type=str, default=None, help="Serial port to read from")
    source.add_argument("--dataset", type=str, default=None, help="Dataset to replay")
    source.add_argument("--list-ports", action="store_true", help="List serial ports and exit")
    parser.add_argument("--config", type=str, default=None, help="YAML configuration file")
    parser.add_argument(
        "--sample-count",
        type=int,
        default=None,
        help="Visible samples kept per channel (minimum 10)",
    )
    parser.add_argument(
        "--report-interval",
        type=float,
        default=1.0,
        help="Seconds between value reports (default: 1.0)",
    )
    parser.add_argument(
        "--log-level",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        default="INFO",
    )
    return parser


class Monitor:
    """Drive a :class:`ConnectionController` from a plain :class:`EventLoop`."""

    def __init__(self, config: OrientaConfig, report_interval_s: float = 1.0) -> None:
        self.loop = EventLoop()
        self.controller = ConnectionController(
            config,
            loop=self.loop,
            ticker_factory=thread_ticker_factory(self.loop),
        )
        self.exit_code = 0
        self._report_interval_s = max(0.1, float(report_interval_s))
        self._report_stop = threading.Event()

        self.controller.simulation_ended.connect(self._on_simulation_ended)
        self.controller.connection_failed.connect(self._on_failure)
        self.controller.playback_failed.connect(self._on_failure)

    def run_live(self, port: str) -> int:
        if not self.controller.connect(port):
            return 1
        return self._run()

    def run_replay(self, dataset: str) -> int:
        if not self.controller.load_dataset(dataset):
            return 1
        self.controller.enable_simulation()
        return self._run()

    def stop(self) -> None:
        self.loop.stop()

    def report(self) -> None:
        snapshot = self.controller.graph.snapshot()
        if snapshot.total_samples == 0:
            logger.info("No samples yet (%s)", self.controller.source_mode.value)
            return
        values = " ".join(f"{name}={value:.1f}" for name, value in snapshot.current.items())
        logger.info(
            "#%d %s heading=%.1f rate=%.1fHz",
            snapshot.total_samples,
            values,
            snapshot.heading_deg or 0.0,
            self.controller.ingest_rate_hz,
        )

    def _run(self) -> int:
        reporter = threading.Thread(target=self._report_loop, name="OrientaReporter", daemon=True)
        reporter.start()
        try:
            self.loop.run_forever()
        finally:
            self._report_stop.set()
            self.controller.shutdown()
            self.loop.run_pending()
        self.report()
        return self.exit_code

    def _report_loop(self) -> None:
        while not self._report_stop.wait(self._report_interval_s):
            self.loop.post(self.report)

    def _on_simulation_ended(self) -> None:
        logger.info("Replay finished")
        self.stop()

    def _on_failure(self, message: str) -> None:
        logger.error("%s", message)
        if self.controller.source_mode is SourceMode.IDLE:
            self.exit_code = 1
            self.stop()


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _build_arg_parser().parse_args(argv)
    configure_logging(args.log_level)

    if args.list_ports:
        for device, description in enumerate_ports():
            print(f"{device}\t{description}")
        return 0

    config = load_config(args.config or default_config_path())
    if args.sample_count is not None:
        config.visible_sample_count = args.sample_count
    dataset = args.dataset or (None if args.port else config.dataset_path)
    if not args.port and not dataset:
        logger.error("Nothing to do: pass --port or --dataset")
        return 2

    monitor = Monitor(config.sanitized(), report_interval_s=args.report_interval)
    signal.signal(signal.SIGINT, lambda *_: monitor.stop())

    if args.port:
        return monitor.run_live(args.port)
    return monitor.run_replay(dataset)


if __name__ == "__main__":
    sys.exit(main())
