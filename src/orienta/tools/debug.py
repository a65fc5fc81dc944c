"""Minimal helpers for opt-in debug/instrumentation hooks."""

from __future__ import annotations

import logging
import os
import time
from contextlib import contextmanager
from typing import Callable, Iterator

logger = logging.getLogger(__name__)

DEBUG_ORIENTA = os.getenv("ORIENTA_DEBUG", "").lower() in {"1", "true", "yes", "on"}


def debug_enabled() -> bool:
    """Return True when lightweight instrumentation should run."""
    return DEBUG_ORIENTA


@contextmanager
def time_block(label: str, *, emitter: Callable[[str], None] | None = None) -> Iterator[None]:
    """
    Context manager that reports elapsed time when debugging is enabled.

    Messages go to ``emitter`` when given, otherwise to this module's logger
    at DEBUG level. Disabled instrumentation costs a single flag check.
    """
    if not DEBUG_ORIENTA:
        yield
        return

    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed_ms = (time.perf_counter() - start) * 1000.0
        message = f"{label} took {elapsed_ms:.3f} ms"
        if emitter is not None:
            emitter(message)
        else:
            logger.debug(message)


LOG_FORMAT = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Initialise the root logger; ``ORIENTA_DEBUG`` forces DEBUG level."""
    resolved = logging.DEBUG if DEBUG_ORIENTA else getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(level=resolved, format=LOG_FORMAT, datefmt="%H:%M:%S")
