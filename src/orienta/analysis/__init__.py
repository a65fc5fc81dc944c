"""Lightweight signal statistics (ingest rate estimation)."""

from .rate import RateEstimator

__all__ = ["RateEstimator"]
