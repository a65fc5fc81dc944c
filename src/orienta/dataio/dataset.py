"""Loading and writing simulation datasets.

A dataset file holds one frame per line in the serial wire format (see
:mod:`orienta.sensors.frame_codec`). Blank lines and ``#`` comments are
ignored. Legacy 12-value lines get synthetic timestamps spaced by the sample
period so replay stays deterministic.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Iterable, Iterator, Sequence

from ..errors import FileNotFound, FileUnreadable, FormatInvalid, MalformedFrame
from ..sensors.frame_codec import encode_frame, parse_frame
from ..sensors.sample import SensorSample
from ..tools.debug import time_block

logger = logging.getLogger(__name__)

DEFAULT_SAMPLE_PERIOD_S = 0.010


@dataclass(frozen=True)
class SimulationDataset:
    """Ordered, finite, read-only sequence of samples loaded from ``path``."""

    path: Path
    samples: tuple[SensorSample, ...]
    skipped_lines: int = 0

    def __len__(self) -> int:
        return len(self.samples)

    def __getitem__(self, index: int) -> SensorSample:
        return self.samples[index]

    def __iter__(self) -> Iterator[SensorSample]:
        return iter(self.samples)


def _read_lines(path: Path) -> list[str]:
    try:
        with path.open("r", encoding="ascii") as fh:
            return fh.readlines()
    except FileNotFoundError as exc:
        raise FileNotFound(str(path), "file does not exist") from exc
    except UnicodeDecodeError as exc:
        raise FormatInvalid(str(path), f"not a text dataset ({exc.reason})") from exc
    except OSError as exc:
        raise FileUnreadable(str(path), exc.strerror or str(exc)) from exc


def load_dataset(
    path: str | Path,
    *,
    sample_period_s: float = DEFAULT_SAMPLE_PERIOD_S,
) -> SimulationDataset:
    """
    Load a simulation dataset from ``path``.

    Raises
    ------
    FileNotFound
        ``path`` does not exist.
    FileUnreadable
        ``path`` exists but cannot be read (directory, permissions, I/O).
    FormatInvalid
        The file is not text or contains no valid frame.
    """
    dataset_path = Path(path).expanduser()
    if not dataset_path.exists():
        raise FileNotFound(str(dataset_path), "file does not exist")

    with time_block(f"load_dataset({dataset_path.name})"):
        lines = _read_lines(dataset_path)

        samples: list[SensorSample] = []
        skipped = 0
        for lineno, raw_line in enumerate(lines, start=1):
            line = raw_line.strip()
            if not line or line.startswith("#"):
                continue
            try:
                sample = parse_frame(
                    line,
                    fallback_timestamp=len(samples) * sample_period_s,
                    skip_empty_fields=True,
                )
            except MalformedFrame as exc:
                skipped += 1
                logger.warning("Skipping line %d of %s: %s", lineno, dataset_path, exc)
                continue
            samples.append(sample)

    if not samples:
        raise FormatInvalid(str(dataset_path), "no valid frames found")

    logger.info(
        "Loaded %d frames from %s (%d lines skipped)", len(samples), dataset_path, skipped
    )
    return SimulationDataset(path=dataset_path, samples=tuple(samples), skipped_lines=skipped)


def write_dataset(
    path: str | Path,
    samples: Iterable[SensorSample],
    *,
    header: Sequence[str] = (),
) -> int:
    """
    Write ``samples`` as a version 1 dataset; returns the number of frames.

    Directories are created as needed.
    """
    target = Path(path).expanduser()
    target.parent.mkdir(parents=True, exist_ok=True)
    count = 0
    with target.open("wb") as fh:
        written = datetime.now().isoformat(timespec="seconds")
        fh.write(f"# orienta dataset written {written}\n".encode("ascii"))
        for line in header:
            fh.write(f"# {line}\n".encode("ascii"))
        for sample in samples:
            fh.write(encode_frame(sample))
            count += 1
    return count
