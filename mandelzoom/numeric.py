"""Value types shared by the Mandelbrot evaluation pipeline."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ComplexPoint:
    """A point of the complex plane stored as a pair of floats."""

    re: float
    im: float

    def __add__(self, other: ComplexPoint) -> ComplexPoint:
        return ComplexPoint(self.re + other.re, self.im + other.im)

    def __mul__(self, other: ComplexPoint) -> ComplexPoint:
        return ComplexPoint(
            self.re * other.re - self.im * other.im,
            self.re * other.im + self.im * other.re,
        )

    def norm_sqr(self) -> float:
        return self.re * self.re + self.im * self.im


@dataclass(frozen=True)
class Viewport:
    """Rectangle of the complex plane sampled by a frame."""

    x_min: float
    x_max: float
    y_min: float
    y_max: float

    def __post_init__(self) -> None:
        if not self.x_max > self.x_min:
            raise ValueError(f"Viewport requires x_max > x_min, got [{self.x_min}, {self.x_max}].")
        if not self.y_max > self.y_min:
            raise ValueError(f"Viewport requires y_max > y_min, got [{self.y_min}, {self.y_max}].")

    @classmethod
    def around(cls, x_center: float, y_center: float, rad_x: float, rad_y: float) -> Viewport:
        return cls(x_center - rad_x, x_center + rad_x, y_center - rad_y, y_center + rad_y)

    @property
    def x_width(self) -> float:
        return self.x_max - self.x_min

    @property
    def y_width(self) -> float:
        return self.y_max - self.y_min
