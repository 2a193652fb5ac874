from __future__ import annotations

from dataclasses import dataclass
import math
from typing import Protocol

import numpy as np

from strokeplot.geom import Affine, Point, Rect


class Scale(Protocol):
    def forward(self, x: float) -> float: ...

    def inverse(self, u: float) -> float | None: ...

    def domain(self) -> tuple[float, float]: ...


@dataclass(frozen=True)
class LinearScale:
    """Maps [vmin, vmax] onto [0, 1]."""

    vmin: float = 0.0
    vmax: float = 1.0

    def domain(self) -> tuple[float, float]:
        return (self.vmin, self.vmax)

    def forward(self, x: float) -> float:
        den = self.vmax - self.vmin
        if den == 0:
            return 0.0
        return (x - self.vmin) / den

    def inverse(self, u: float) -> float | None:
        den = self.vmax - self.vmin
        if den == 0:
            return None
        return self.vmin + u * den


@dataclass(frozen=True)
class LogScale:
    """Maps [vmin, vmax] onto [0, 1] in log space; needs 0 < vmin != vmax and base > 1."""

    vmin: float
    vmax: float
    base: float = 10.0

    def domain(self) -> tuple[float, float]:
        return (self.vmin, self.vmax)

    def is_valid(self) -> bool:
        return self.base > 1 and self.vmin > 0 and self.vmax > 0 and self.vmin != self.vmax

    def forward(self, x: float) -> float:
        if not self.is_valid():
            return 0.0
        if x <= 0:
            return math.nan
        lo = math.log(self.vmin, self.base)
        hi = math.log(self.vmax, self.base)
        return (math.log(x, self.base) - lo) / (hi - lo)

    def inverse(self, u: float) -> float | None:
        if not self.is_valid():
            return None
        lo = math.log(self.vmin, self.base)
        hi = math.log(self.vmax, self.base)
        x = self.base ** (lo + u * (hi - lo))
        if x <= 0:
            return None
        return x


@dataclass(frozen=True)
class DataLimits:
    xmin: float
    xmax: float
    ymin: float
    ymax: float


def compute_limits(x: np.ndarray, y: np.ndarray, mask: np.ndarray, y_buffer_ratio: float = 0.05) -> DataLimits:
    vx = x[mask]
    vy = y[mask]
    xmin = float(np.min(vx))
    xmax = float(np.max(vx))
    ymin = float(np.min(vy))
    ymax = float(np.max(vy))

    if ymin == ymax:
        delta = max(1.0, abs(ymin) * y_buffer_ratio)
        ymin -= delta
        ymax += delta
    else:
        pad = (ymax - ymin) * y_buffer_ratio
        ymin -= pad
        ymax += pad

    if xmin == xmax:
        xmin -= 1.0
        xmax += 1.0

    return DataLimits(xmin=xmin, xmax=xmax, ymin=ymin, ymax=ymax)


def axes_to_pixel(px: Rect) -> Affine:
    """Map the unit square onto ``px`` with v = 0 at the bottom edge."""
    return Affine(a=px.width, d=-px.height, e=px.min.x, f=px.max.y)


@dataclass(frozen=True)
class AxesTransform:
    """Data -> pixel mapping: per-axis scales, then the axes affine."""

    x_scale: Scale
    y_scale: Scale
    axes_to_pixel: Affine

    @classmethod
    def for_rect(cls, x_scale: Scale, y_scale: Scale, px: Rect) -> "AxesTransform":
        return cls(x_scale, y_scale, axes_to_pixel(px))

    def apply(self, p: Point) -> Point:
        return self.axes_to_pixel.apply(Point(self.x_scale.forward(p.x), self.y_scale.forward(p.y)))

    def invert(self, p: Point) -> Point | None:
        inv = self.axes_to_pixel.invert()
        if inv is None:
            return None
        unit = inv.apply(p)
        x = self.x_scale.inverse(unit.x)
        y = self.y_scale.inverse(unit.y)
        if x is None or y is None:
            return None
        return Point(x, y)
