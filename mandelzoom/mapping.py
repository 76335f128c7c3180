"""Conversion between pixel indices and complex-plane coordinates.

Positions are ``index / extent`` rather than ``index / (extent - 1)``: the
last column and row land strictly inside the viewport, never on its far
edge. Existing renders depend on this, so keep it.
"""

from __future__ import annotations

import numpy as np

from .numeric import ComplexPoint, Viewport


def map_pixel(px: int, py: int, width: int, height: int, viewport: Viewport) -> ComplexPoint:
    """Complex point sampled by pixel ``(px, py)`` of a ``width`` x ``height`` grid."""

    if width <= 0 or height <= 0:
        raise ValueError(f"Grid dimensions must be positive, got {width}x{height}.")
    if not (0 <= px < width and 0 <= py < height):
        raise ValueError(f"Pixel ({px}, {py}) lies outside a {width}x{height} grid.")

    x_frac = px / width
    y_frac = py / height
    return ComplexPoint(
        viewport.x_min + (viewport.x_max - viewport.x_min) * x_frac,
        viewport.y_min + (viewport.y_max - viewport.y_min) * y_frac,
    )


def column_offsets(width: int, viewport: Viewport) -> np.ndarray:
    """Real parts sampled by every column, identical to :func:`map_pixel`."""

    if width <= 0:
        raise ValueError(f"Grid width must be positive, got {width}.")
    x_frac = np.arange(width, dtype=np.float64) / np.float64(width)
    return np.float64(viewport.x_min) + (np.float64(viewport.x_max) - np.float64(viewport.x_min)) * x_frac


def row_offsets(rows: range, height: int, viewport: Viewport) -> np.ndarray:
    """Imaginary parts sampled by ``rows``; one value per row."""

    if height <= 0:
        raise ValueError(f"Grid height must be positive, got {height}.")
    y_frac = np.arange(rows.start, rows.stop, dtype=np.float64) / np.float64(height)
    return np.float64(viewport.y_min) + (np.float64(viewport.y_max) - np.float64(viewport.y_min)) * y_frac
