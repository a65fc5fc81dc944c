from __future__ import annotations

from pathlib import Path

import pytest

from orienta.config.runtime import (
    MIN_VISIBLE_SAMPLES,
    OrientaConfig,
    config_from_mapping,
    default_config_path,
    load_config,
)


def test_defaults_match_device() -> None:
    cfg = OrientaConfig()
    assert cfg.baud_rate == 115200
    assert cfg.sample_period_s == pytest.approx(0.010)
    assert cfg.visible_sample_count == 1000
    assert (cfg.accel_range, cfg.gyro_range, cfg.mag_range) == (4000.0, 250.0, 1600.0)
    assert cfg.render_interval_ms() == 33


def test_sections_are_flattened_and_unknown_keys_ignored() -> None:
    cfg = config_from_mapping(
        {
            "serial": {"baud_rate": 230400, "poll_interval_ms": 2},
            "simulation": {"sample_period_ms": 20, "dataset_path": "~/logs/run.log"},
            "graph": {"visible_sample_count": 500, "gyro_range": 2000},
            "theme": "dark",
        }
    )
    assert cfg.baud_rate == 230400
    assert cfg.poll_interval_s == pytest.approx(0.002)
    assert cfg.sample_period_s == pytest.approx(0.020)
    assert cfg.visible_sample_count == 500
    assert cfg.gyro_range == 2000.0
    assert cfg.dataset_path is not None and not cfg.dataset_path.startswith("~")


def test_sanitized_applies_limits() -> None:
    cfg = OrientaConfig(visible_sample_count=2, max_backlog=0, render_hz=0.0, accel_range=-8000).sanitized()
    assert cfg.visible_sample_count == MIN_VISIBLE_SAMPLES
    assert cfg.max_backlog == 1
    assert cfg.render_hz == 1.0
    assert cfg.accel_range == 8000.0


def test_load_config_from_yaml(tmp_path: Path) -> None:
    path = tmp_path / "orienta.yaml"
    path.write_text(
        "serial:\n  baud_rate: 57600\ngraph:\n  visible_sample_count: 200\n",
        encoding="utf-8",
    )
    cfg = load_config(path)
    assert cfg.baud_rate == 57600
    assert cfg.visible_sample_count == 200


def test_load_config_missing_file_gives_defaults(tmp_path: Path) -> None:
    assert load_config(tmp_path / "none.yaml") == OrientaConfig()
    assert load_config(None) == OrientaConfig()


def test_load_config_rejects_non_mapping(tmp_path: Path) -> None:
    path = tmp_path / "list.yaml"
    path.write_text("- 1\n- 2\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(path)


def test_default_config_path_from_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.delenv("ORIENTA_CONFIG", raising=False)
    assert default_config_path() is None
    monkeypatch.setenv("ORIENTA_CONFIG", str(tmp_path / "cfg.yaml"))
    assert default_config_path() == tmp_path / "cfg.yaml"
