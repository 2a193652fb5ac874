from __future__ import annotations

import math
from typing import Callable, Literal, get_args

from strokeplot.geom import Path, Point


MarkerType = Literal["circle", "square", "triangle", "diamond", "plus", "cross"]

MARKER_TYPES: tuple[str, ...] = get_args(MarkerType)
CIRCLE_SEGMENTS = 16
ARM_THICKNESS = 0.3


def _polygon(points: list[Point]) -> Path:
    return Path.from_points(points, closed=True)


def circle_path(center: Point, radius: float) -> Path:
    points = []
    for i in range(CIRCLE_SEGMENTS):
        angle = 2.0 * math.pi * i / CIRCLE_SEGMENTS
        points.append(Point(center.x + radius * math.cos(angle), center.y + radius * math.sin(angle)))
    return _polygon(points)


def square_path(center: Point, radius: float) -> Path:
    cx, cy = center.x, center.y
    return _polygon(
        [
            Point(cx - radius, cy - radius),
            Point(cx + radius, cy - radius),
            Point(cx + radius, cy + radius),
            Point(cx - radius, cy + radius),
        ]
    )


def triangle_path(center: Point, radius: float) -> Path:
    cx, cy = center.x, center.y
    h = radius * math.sqrt(3.0) / 2.0
    return _polygon([Point(cx, cy + h), Point(cx - radius, cy - h / 2.0), Point(cx + radius, cy - h / 2.0)])


def diamond_path(center: Point, radius: float) -> Path:
    cx, cy = center.x, center.y
    return _polygon([Point(cx, cy + radius), Point(cx + radius, cy), Point(cx, cy - radius), Point(cx - radius, cy)])


def plus_path(center: Point, radius: float) -> Path:
    """Horizontal then vertical arm, each its own closed subpath."""
    cx, cy = center.x, center.y
    t = radius * ARM_THICKNESS
    path = _polygon(
        [Point(cx - radius, cy - t), Point(cx + radius, cy - t), Point(cx + radius, cy + t), Point(cx - radius, cy + t)]
    )
    path.extend(
        _polygon([Point(cx - t, cy - radius), Point(cx + t, cy - radius), Point(cx + t, cy + radius), Point(cx - t, cy + radius)])
    )
    return path


def cross_path(center: Point, radius: float) -> Path:
    """Two diagonal arms; the second one mirrors the first across the vertical."""
    cx, cy = center.x, center.y
    off = radius * ARM_THICKNESS / math.sqrt(2.0)
    path = _polygon(
        [
            Point(cx - radius + off, cy - radius - off),
            Point(cx - radius - off, cy - radius + off),
            Point(cx + radius - off, cy + radius - off),
            Point(cx + radius + off, cy + radius + off),
        ]
    )
    path.extend(
        _polygon(
            [
                Point(cx + radius - off, cy - radius - off),
                Point(cx + radius + off, cy - radius + off),
                Point(cx - radius + off, cy + radius - off),
                Point(cx - radius - off, cy + radius + off),
            ]
        )
    )
    return path


_BUILDERS: dict[str, Callable[[Point, float], Path]] = {
    "circle": circle_path,
    "square": square_path,
    "triangle": triangle_path,
    "diamond": diamond_path,
    "plus": plus_path,
    "cross": cross_path,
}


def marker_path(marker: MarkerType, center: Point, radius: float) -> Path:
    """Closed marker outline of ``radius`` pixels around ``center``.

    Non-finite centers and non-positive radii give an empty path.
    """
    if not center.is_finite() or not math.isfinite(radius) or radius <= 0:
        return Path()
    try:
        builder = _BUILDERS[marker]
    except KeyError:
        raise ValueError(f"unsupported marker: {marker}") from None
    return builder(center, radius)
