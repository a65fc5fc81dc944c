from __future__ import annotations

from pathlib import Path

from conftest import make_sample
from orienta.cli import Monitor, main
from orienta.config.runtime import OrientaConfig
from orienta.core.states import SourceMode
from orienta.dataio.dataset import write_dataset


def test_monitor_replays_dataset_to_completion(tmp_path: Path) -> None:
    path = tmp_path / "replay.log"
    write_dataset(path, [make_sample(i) for i in range(3)])
    monitor = Monitor(OrientaConfig(sample_period_ms=2.0).sanitized(), report_interval_s=5.0)

    assert monitor.run_replay(str(path)) == 0
    assert monitor.controller.graph.total_samples == 3
    assert monitor.controller.source_mode is SourceMode.IDLE


def test_monitor_reports_missing_dataset(tmp_path: Path) -> None:
    monitor = Monitor(OrientaConfig())
    assert monitor.run_replay(str(tmp_path / "missing.log")) == 1


def test_main_without_source_exits_with_usage_error(monkeypatch) -> None:
    monkeypatch.delenv("ORIENTA_CONFIG", raising=False)
    assert main([]) == 2
