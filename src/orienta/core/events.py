"""Callback-registration notifications used in place of Qt signals in the core."""

from __future__ import annotations

import logging
from typing import Any, Callable, List

logger = logging.getLogger(__name__)

Callback = Callable[..., Any]


class Event:
    """
    A named notification with any number of subscribers.

    Subscriber errors are logged and do not stop delivery to the remaining
    subscribers, so a broken UI hook cannot stall ingestion.
    """

    __slots__ = ("name", "_callbacks")

    def __init__(self, name: str) -> None:
        self.name = name
        self._callbacks: List[Callback] = []

    def connect(self, callback: Callback) -> None:
        if callback not in self._callbacks:
            self._callbacks.append(callback)

    def disconnect(self, callback: Callback) -> None:
        try:
            self._callbacks.remove(callback)
        except ValueError:
            pass

    def emit(self, *args: Any) -> None:
        for callback in list(self._callbacks):
            try:
                callback(*args)
            except Exception:
                logger.exception("Error in %s subscriber %r", self.name, callback)

    def __len__(self) -> int:
        return len(self._callbacks)

    def __repr__(self) -> str:  # pragma: no cover - debugging aid
        return f"Event({self.name!r}, subscribers={len(self._callbacks)})"
