from __future__ import annotations

import numpy as np


class RingBuffer:
    """
    Fixed-size ring buffer of numeric rows backed by one preallocated array.
    Overwrites the oldest row when full; appends never allocate.
    """

    __slots__ = ("_capacity", "_data", "_start", "_size")

    def __init__(self, capacity: int, width: int = 1, dtype: np.dtype | type = np.float64) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        if width <= 0:
            raise ValueError("width must be positive")
        self._capacity = int(capacity)
        self._data = np.zeros((self._capacity, int(width)), dtype=dtype)
        self._start = 0
        self._size = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def width(self) -> int:
        return int(self._data.shape[1])

    def append(self, row) -> None:
        idx = (self._start + self._size) % self._capacity
        self._data[idx] = row
        if self._size < self._capacity:
            self._size += 1
        else:
            self._start = (self._start + 1) % self._capacity

    def clear(self) -> None:
        self._start = 0
        self._size = 0

    def __len__(self) -> int:  # pragma: no cover - trivial
        return self._size

    def __getitem__(self, index: int) -> np.ndarray:
        """Support buf[i] and buf[-1] indexing over the *logical* contents."""
        size = self._size
        if size == 0:
            raise IndexError("RingBuffer is empty")

        if index < 0:
            index += size

        if index < 0 or index >= size:
            raise IndexError("RingBuffer index out of range")

        return self._data[(self._start + index) % self._capacity].copy()

    def view(self) -> np.ndarray:
        """Return an oldest-first copy of the logical contents, shape ``(len, width)``."""
        end = self._start + self._size
        if end <= self._capacity:
            return self._data[self._start : end].copy()
        head = self._data[self._start :]
        tail = self._data[: end - self._capacity]
        return np.concatenate((head, tail), axis=0)

    def column(self, col: int) -> np.ndarray:
        """Oldest-first copy of one column."""
        end = self._start + self._size
        if end <= self._capacity:
            return self._data[self._start : end, col].copy()
        return np.concatenate(
            (self._data[self._start :, col], self._data[: end - self._capacity, col])
        )
