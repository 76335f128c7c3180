"""Per-frame parameters for a Mandelbrot zoom sequence."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterator, Optional

import numpy as np

from .numeric import Viewport


@dataclass(frozen=True)
class ZoomConfig:
    """Fixed configuration of a zoom; frames are derived from it by index alone."""

    width: int = 1920
    height: int = 1080
    x_focus: float = -1.0067581019642513
    y_focus: float = 0.3112899872556565
    rad_x: float = 2.0
    rad_y: float = 1.0
    multiplier: float = 1.03
    iteration_constant: float = 66.5
    max_frames: int = 480

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Output dimensions must be positive, got {self.width}x{self.height}.")
        if self.rad_x <= 0 or self.rad_y <= 0:
            raise ValueError(f"Initial radii must be positive, got ({self.rad_x}, {self.rad_y}).")
        if not self.multiplier > 1:
            raise ValueError(f"Zoom multiplier must be greater than 1, got {self.multiplier}.")
        if self.iteration_constant <= 0:
            raise ValueError(f"Iteration constant must be positive, got {self.iteration_constant}.")
        if self.max_frames < 0:
            raise ValueError(f"max_frames must be non-negative, got {self.max_frames}.")


@dataclass(frozen=True)
class FrameDescriptor:
    """Viewport and iteration budget of a single frame."""

    index: int
    viewport: Viewport
    budget: int
    rad_x: float
    rad_y: float

    @property
    def power(self) -> float:
        """Zoom depth in powers of two relative to a radius of 2."""
        return math.log2(2.0 / self.rad_x)


def frame_radii(frame_index: int, config: ZoomConfig) -> tuple[float, float]:
    if frame_index < 0:
        raise ValueError(f"Frame index must be non-negative, got {frame_index}.")
    divisor = np.float64(config.multiplier) ** frame_index
    return float(config.rad_x / divisor), float(config.rad_y / divisor)


def iteration_budget(viewport: Viewport, width: int, iteration_constant: float) -> int:
    """Iteration budget for ``viewport`` rendered ``width`` pixels wide.

    ``floor(sqrt(sqrt(2 * (sqrt(5 * scale) - 1))) * K)`` where ``scale`` is
    pixels per unit of the imaginary extent. Empirically tuned; grows with
    the zoom and never drops below 1.
    """

    scale = width / viewport.y_width
    growth = max(math.sqrt(5.0 * scale) - 1.0, 0.0)
    budget = int(math.sqrt(math.sqrt(2.0 * growth)) * iteration_constant)
    return max(budget, 1)


def frame_params(frame_index: int, config: ZoomConfig) -> tuple[Viewport, int]:
    """Viewport and iteration budget of frame ``frame_index``."""

    rad_x, rad_y = frame_radii(frame_index, config)
    viewport = Viewport.around(config.x_focus, config.y_focus, rad_x, rad_y)
    return viewport, iteration_budget(viewport, config.width, config.iteration_constant)


def describe_frame(frame_index: int, config: ZoomConfig) -> FrameDescriptor:
    rad_x, rad_y = frame_radii(frame_index, config)
    viewport, budget = frame_params(frame_index, config)
    return FrameDescriptor(index=frame_index, viewport=viewport, budget=budget, rad_x=rad_x, rad_y=rad_y)


def iter_frames(config: ZoomConfig, start: int = 0, stop: Optional[int] = None) -> Iterator[FrameDescriptor]:
    """Yield descriptors for frames ``start`` through ``stop`` inclusive (default ``max_frames``)."""

    stop = config.max_frames if stop is None else stop
    for frame_index in range(start, stop + 1):
        yield describe_frame(frame_index, config)
