from __future__ import annotations

from typing import Callable

from strokeplot.config import DEFAULT_FLATTEN_TOLERANCE, DEFAULT_MIN_PARAM_SPAN
from strokeplot.geom import Point, Segment


def evaluate_quad(p0: Point, c: Point, p1: Point, t: float) -> Point:
    u = 1.0 - t
    return Point(
        u * u * p0.x + 2 * u * t * c.x + t * t * p1.x,
        u * u * p0.y + 2 * u * t * c.y + t * t * p1.y,
    )


def evaluate_cubic(p0: Point, c1: Point, c2: Point, p1: Point, t: float) -> Point:
    u = 1.0 - t
    return Point(
        u * u * u * p0.x + 3 * u * u * t * c1.x + 3 * u * t * t * c2.x + t * t * t * p1.x,
        u * u * u * p0.y + 3 * u * u * t * c1.y + 3 * u * t * t * c2.y + t * t * t * p1.y,
    )


def flatten_quad(
    p0: Point,
    c: Point,
    p1: Point,
    tolerance: float = DEFAULT_FLATTEN_TOLERANCE,
    min_span: float = DEFAULT_MIN_PARAM_SPAN,
) -> list[Segment]:
    return _subdivide(lambda t: evaluate_quad(p0, c, p1, t), tolerance, min_span)


def flatten_cubic(
    p0: Point,
    c1: Point,
    c2: Point,
    p1: Point,
    tolerance: float = DEFAULT_FLATTEN_TOLERANCE,
    min_span: float = DEFAULT_MIN_PARAM_SPAN,
) -> list[Segment]:
    return _subdivide(lambda t: evaluate_cubic(p0, c1, c2, p1, t), tolerance, min_span)


def _subdivide(curve: Callable[[float], Point], tolerance: float, min_span: float) -> list[Segment]:
    """Midpoint subdivision over [0, 1], emitting segments in parameter order.

    A span is accepted once the curve point at its mid parameter lies within
    ``tolerance`` of the chord midpoint, or once the span is narrower than
    ``min_span``. The span cut-off bounds the recursion depth for any input.
    """
    out: list[Segment] = []
    # Explicit stack of (t0, t1, p(t0), p(t1)); the right half is pushed first
    # so spans pop in ascending parameter order.
    stack = [(0.0, 1.0, curve(0.0), curve(1.0))]
    while stack:
        t0, t1, a, b = stack.pop()
        tmid = (t0 + t1) * 0.5
        mid = curve(tmid)
        chord_mid = a.lerp(b, 0.5)
        if mid.distance_to(chord_mid) <= tolerance or (t1 - t0) < min_span:
            out.append(Segment(a, b))
            continue
        stack.append((tmid, t1, mid, b))
        stack.append((t0, tmid, a, mid))
    return out
