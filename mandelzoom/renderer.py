"""Row-parallel evaluation of escape-time grids."""

from __future__ import annotations

import os
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Optional

import numpy as np
import tensorflow as tf

from .generator import FrameDescriptor
from .kernel import escape_counts
from .mapping import column_offsets, row_offsets
from .numeric import Viewport


@dataclass(frozen=True)
class RenderResult:
    """Escape grid of one frame together with the parameters that produced it."""

    iterations: np.ndarray
    viewport: Viewport
    budget: int
    frame_index: int
    elapsed: float

    @property
    def inside(self) -> np.ndarray:
        return self.iterations >= self.budget


def default_workers() -> int:
    return max(os.cpu_count() or 1, 1)


def partition_rows(height: int, parts: int) -> list[range]:
    """Split ``range(height)`` into at most ``parts`` contiguous, disjoint row ranges."""

    if height < 0:
        raise ValueError(f"Grid height must be non-negative, got {height}.")
    if parts <= 0:
        raise ValueError(f"Number of parts must be positive, got {parts}.")
    parts = min(parts, height)
    if parts == 0:
        return []

    base, extra = divmod(height, parts)
    ranges = []
    start = 0
    for index in range(parts):
        stop = start + base + (1 if index < extra else 0)
        ranges.append(range(start, stop))
        start = stop
    return ranges


def _evaluate_rows(
    rows: range,
    columns: np.ndarray,
    viewport: Viewport,
    budget: int,
    height: int,
    device: str,
) -> tuple[range, np.ndarray]:
    ims = row_offsets(rows, height, viewport)
    re = np.broadcast_to(columns[np.newaxis, :], (len(rows), columns.size))
    im = np.broadcast_to(ims[:, np.newaxis], (len(rows), columns.size))
    with tf.device(device):
        block = escape_counts(re, im, budget)
    return rows, block


def evaluate(
    viewport: Viewport,
    budget: int,
    width: int,
    height: int,
    *,
    workers: Optional[int] = None,
    device: Optional[str] = None,
) -> np.ndarray:
    """Compute the ``(height, width)`` escape grid of ``viewport``.

    Rows are split into disjoint ranges up front, each range is evaluated as
    an independent task, and the blocks are copied into the output once every
    task has finished. The returned array is read-only. The result does not
    depend on ``workers``.
    """

    if width <= 0 or height <= 0:
        raise ValueError(f"Grid dimensions must be positive, got {width}x{height}.")
    if budget < 0:
        raise ValueError(f"Iteration budget must be non-negative, got {budget}.")

    workers = default_workers() if workers is None else workers
    device = device if device is not None else "/CPU:0"
    columns = column_offsets(width, viewport)
    bands = partition_rows(height, workers)

    grid = np.empty((height, width), dtype=np.int32)
    if len(bands) == 1:
        blocks = [_evaluate_rows(bands[0], columns, viewport, budget, height, device)]
    else:
        with ThreadPoolExecutor(max_workers=len(bands)) as pool:
            futures = [
                pool.submit(_evaluate_rows, rows, columns, viewport, budget, height, device)
                for rows in bands
            ]
            blocks = [future.result() for future in futures]

    for rows, block in blocks:
        grid[rows.start:rows.stop] = block
    grid.setflags(write=False)
    return grid


def render_frame(
    frame: FrameDescriptor,
    width: int,
    height: int,
    *,
    workers: Optional[int] = None,
    device: Optional[str] = None,
) -> RenderResult:
    """Render the escape grid described by ``frame``."""

    start = time.perf_counter()
    iterations = evaluate(frame.viewport, frame.budget, width, height, workers=workers, device=device)
    return RenderResult(
        iterations=iterations,
        viewport=frame.viewport,
        budget=frame.budget,
        frame_index=frame.index,
        elapsed=time.perf_counter() - start,
    )
