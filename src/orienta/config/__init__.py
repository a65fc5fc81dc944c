"""Configuration objects and helpers for Orienta.

Runtime tuning (serial polling, replay cadence, graph window and ranges) is
captured by :class:`~orienta.config.runtime.OrientaConfig`, optionally loaded
from a YAML file.
"""

from .runtime import OrientaConfig, config_from_mapping, default_config_path, load_config

__all__ = ["OrientaConfig", "config_from_mapping", "default_config_path", "load_config"]
