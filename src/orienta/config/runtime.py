"""Runtime configuration for the ingestion, replay and graph pipeline."""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Mapping, MutableMapping, Optional

import yaml

MIN_VISIBLE_SAMPLES = 10

# Nested YAML sections that are merged into the flat dataclass.
_SECTIONS = ("serial", "simulation", "graph", "codec")


@dataclass(slots=True)
class OrientaConfig:
    """
    Tuning knobs for the live link, the simulation replay and the graphs.

    The defaults mirror the original device: 115200 baud, a 10 ms sample
    period and a 1000-sample visible window.
    """

    baud_rate: int = 115200
    poll_interval_ms: int = 5

    sample_period_ms: float = 10.0
    max_backlog: int = 256
    dataset_path: Optional[str] = None

    visible_sample_count: int = 1000
    render_hz: float = 30.0
    accel_range: float = 4000.0
    gyro_range: float = 250.0
    mag_range: float = 1600.0

    max_frame_bytes: int = 256

    def sanitized(self) -> OrientaConfig:
        """Return a copy with derived limits applied."""
        dataset = self.dataset_path
        if dataset is not None:
            dataset = str(Path(str(dataset)).expanduser())
        return OrientaConfig(
            baud_rate=max(300, int(self.baud_rate)),
            poll_interval_ms=max(1, int(self.poll_interval_ms)),
            sample_period_ms=max(0.1, float(self.sample_period_ms)),
            max_backlog=max(1, int(self.max_backlog)),
            dataset_path=dataset,
            visible_sample_count=max(MIN_VISIBLE_SAMPLES, int(self.visible_sample_count)),
            render_hz=min(240.0, max(1.0, float(self.render_hz))),
            accel_range=abs(float(self.accel_range)) or 4000.0,
            gyro_range=abs(float(self.gyro_range)) or 250.0,
            mag_range=abs(float(self.mag_range)) or 1600.0,
            max_frame_bytes=max(64, int(self.max_frame_bytes)),
        )

    @property
    def sample_period_s(self) -> float:
        return float(self.sample_period_ms) / 1000.0

    @property
    def poll_interval_s(self) -> float:
        return float(self.poll_interval_ms) / 1000.0

    def render_interval_ms(self) -> int:
        """Timer interval that corresponds to ``render_hz``."""
        return max(1, int(round(1000.0 / float(self.render_hz))))


def _recognized_fields() -> set[str]:
    """Return the dataclass field names accepted by :class:`OrientaConfig`."""
    return {f.name for f in fields(OrientaConfig)}


def _normalize_mapping(data: Mapping[str, Any]) -> MutableMapping[str, Any]:
    """Flatten the ``serial``/``simulation``/``graph``/``codec`` sections."""
    merged: MutableMapping[str, Any] = {}
    for key, value in data.items():
        if key in _SECTIONS and isinstance(value, Mapping):
            merged.update(value)
        else:
            merged[key] = value
    return merged


def config_from_mapping(data: Mapping[str, Any] | None) -> OrientaConfig:
    """Build :class:`OrientaConfig` from ``data`` (ignoring unknown keys)."""
    if not data:
        return OrientaConfig()
    normalized = _normalize_mapping(data)
    known = _recognized_fields()
    payload = {key: normalized[key] for key in normalized.keys() & known}
    return OrientaConfig(**payload).sanitized()


def default_config_path() -> Path | None:
    """Return the file named by ``ORIENTA_CONFIG``, if set."""
    env_path = os.environ.get("ORIENTA_CONFIG")
    if not env_path:
        return None
    return Path(env_path).expanduser()


def load_config(path: str | Path | None) -> OrientaConfig:
    """
    Load configuration from ``path``.

    Missing files fall back to default :class:`OrientaConfig`.
    """
    if path is None:
        return OrientaConfig()
    cfg_path = Path(path)
    if not cfg_path.exists():
        return OrientaConfig()
    with cfg_path.open("r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh) or {}
    if not isinstance(raw, Mapping):
        raise ValueError(f"Expected mapping in {cfg_path}, got {type(raw).__name__}")
    return config_from_mapping(raw)


__all__ = ["OrientaConfig", "config_from_mapping", "default_config_path", "load_config"]
