"""Public API for Mandelbrot zoom rendering utilities."""

from .numeric import ComplexPoint, Viewport
from .kernel import BAILOUT_SQUARED, escape, escape_counts
from .mapping import column_offsets, map_pixel, row_offsets
from .generator import (
    FrameDescriptor,
    ZoomConfig,
    describe_frame,
    frame_params,
    frame_radii,
    iter_frames,
    iteration_budget,
)
from .renderer import RenderResult, evaluate, partition_rows, render_frame

__all__ = [
    "BAILOUT_SQUARED",
    "ComplexPoint",
    "FrameDescriptor",
    "RenderResult",
    "Viewport",
    "ZoomConfig",
    "column_offsets",
    "describe_frame",
    "escape",
    "escape_counts",
    "evaluate",
    "frame_params",
    "frame_radii",
    "iter_frames",
    "iteration_budget",
    "map_pixel",
    "partition_rows",
    "render_frame",
    "row_offsets",
]
