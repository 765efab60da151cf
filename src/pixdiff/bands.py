"""Row-band partitioning and a small thread fan-out for per-band work."""

from __future__ import annotations

import os
import threading
from collections.abc import Callable
from typing import TypeVar

T = TypeVar("T")

Band = tuple[int, int]


def iter_bands(height: int, band_rows: int) -> list[Band]:
    """Split ``range(height)`` into consecutive ``[y0, y1)`` bands."""
    return [(y0, min(y0 + band_rows, height)) for y0 in range(0, height, band_rows)]


def default_workers() -> int:
    """Worker count from ``$PIXDIFF_WORKERS``, else the CPU count (capped at 8)."""
    env = os.environ.get("PIXDIFF_WORKERS", "").strip()
    if env.isdigit() and int(env) > 0:
        return int(env)
    return min(os.cpu_count() or 1, 8)


def map_bands(
    fn: Callable[[int, int], T],
    bands: list[Band],
    max_workers: int | None = None,
) -> list[T]:
    """Run ``fn(y0, y1)`` for every band and return results in band order.

    Each worker thread takes every ``n``-th band and stores its result at the
    band's index, so output order never depends on scheduling. The first
    exception raised by any worker is re-raised after all threads join.
    """
    workers = min(max_workers or default_workers(), len(bands))
    if workers <= 1:
        return [fn(y0, y1) for y0, y1 in bands]

    out: list[T | None] = [None] * len(bands)
    errors: list[BaseException | None] = [None] * workers

    def _work(slot: int) -> None:
        try:
            for idx in range(slot, len(bands), workers):
                y0, y1 = bands[idx]
                out[idx] = fn(y0, y1)
        except BaseException as exc:  # noqa: BLE001
            errors[slot] = exc

    threads = [
        threading.Thread(target=_work, args=(slot,), daemon=True) for slot in range(workers)
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    for exc in errors:
        if exc is not None:
            raise exc
    return out  # type: ignore[return-value]
