from __future__ import annotations

import math

import numpy as np

from strokeplot.config import DEFAULT_SETTINGS, StrokeSettings
from strokeplot.geom import Path, Point, Rect, Verb
from strokeplot.stroke.flatten import flatten_cubic, flatten_quad


def path_edges(path: Path, tolerance: float, min_span: float) -> list[tuple[Point, Point]]:
    """Flatten ``path`` into edges with every subpath implicitly closed."""
    edges: list[tuple[Point, Point]] = []
    start = current = Point(0.0, 0.0)
    for verb, pts in path.iter_commands():
        if verb == Verb.MOVE_TO:
            if current != start:
                edges.append((current, start))
            start = current = pts[0]
        elif verb == Verb.LINE_TO:
            edges.append((current, pts[0]))
            current = pts[0]
        elif verb == Verb.QUAD_TO:
            edges.extend((s.start, s.end) for s in flatten_quad(current, pts[0], pts[1], tolerance, min_span))
            current = pts[1]
        elif verb == Verb.CUBIC_TO:
            edges.extend(
                (s.start, s.end) for s in flatten_cubic(current, pts[0], pts[1], pts[2], tolerance, min_span)
            )
            current = pts[2]
        elif verb == Verb.CLOSE:
            if current != start:
                edges.append((current, start))
            current = start
    if current != start:
        edges.append((current, start))
    return edges


def accumulate_edge(acc: np.ndarray, p0: Point, p1: Point) -> None:
    """Add the signed area contribution of one edge to ``acc`` (H, W).

    Contributions left of the surface land in column 0; contributions right
    of it are dropped, since they cannot affect any pixel after the prefix sum.
    """
    h, w = acc.shape
    if p0.y == p1.y:
        return
    direction = 1.0
    if p0.y > p1.y:
        direction = -1.0
        p0, p1 = p1, p0
    dxdy = (p1.x - p0.x) / (p1.y - p0.y)
    x = p0.x
    y_start = int(max(0.0, math.floor(p0.y)))
    if p0.y < 0:
        x -= p0.y * dxdy
    x_next = x
    for y in range(y_start, min(h, math.ceil(p1.y))):
        x = x_next
        dy = min(y + 1.0, p1.y) - max(float(y), p0.y)
        d = direction * dy
        x_next = x + dxdy * dy
        if not (math.isfinite(x) and math.isfinite(x_next)):
            continue
        x0, x1 = (x, x_next) if x < x_next else (x_next, x)
        x0_floor = math.floor(x0)
        x0i = int(x0_floor)
        x1i = int(math.ceil(x1))
        row = acc[y]
        if x1i <= x0i + 1:
            # The edge stays inside one pixel column on this scanline.
            xmf = 0.5 * (x + x_next) - x0_floor
            _add(row, x0i, w, d * (1.0 - xmf))
            _add(row, x0i + 1, w, d * xmf)
            continue
        s = 1.0 / (x1 - x0)
        x0f = x0 - x0_floor
        x1f = x1 - x1i + 1.0
        a0 = 0.5 * s * (1.0 - x0f) ** 2
        am = 0.5 * s * x1f**2
        _add(row, x0i, w, d * a0)
        if x1i == x0i + 2:
            _add(row, x0i + 1, w, d * (1.0 - a0 - am))
        else:
            a1 = s * (1.5 - x0f)
            _add(row, x0i + 1, w, d * (a1 - a0))
            lo, hi = x0i + 2, x1i - 1
            if lo < 0:
                # Every column left of the surface lands in column 0.
                _add(row, 0, w, d * s * max(0, min(hi, 0) - lo))
                lo = 0
            for xi in range(lo, min(hi, w)):
                _add(row, xi, w, d * s)
            a2 = a1 + (x1i - x0i - 3) * s
            _add(row, x1i - 1, w, d * (1.0 - a2 - am))
        _add(row, x1i, w, d * am)


def _add(row: np.ndarray, xi: int, w: int, value: float) -> None:
    if xi >= w:
        return
    row[xi if xi > 0 else 0] += value


def clip_mask(clip: Rect, width: int, height: int) -> np.ndarray:
    """Fraction of each pixel covered by ``clip``."""
    xs = np.arange(width, dtype=np.float64)
    ys = np.arange(height, dtype=np.float64)
    fx = np.clip(np.minimum(xs + 1.0, clip.max.x) - np.maximum(xs, clip.min.x), 0.0, 1.0)
    fy = np.clip(np.minimum(ys + 1.0, clip.max.y) - np.maximum(ys, clip.min.y), 0.0, 1.0)
    return fy[:, None] * fx[None, :]


def rasterize_nonzero(
    path: Path,
    width: int,
    height: int,
    clip: Rect | None = None,
    settings: StrokeSettings = DEFAULT_SETTINGS,
) -> np.ndarray:
    """Coverage in [0, 1] of ``path`` under the nonzero winding rule, shaped (H, W)."""
    if width <= 0 or height <= 0:
        raise ValueError("width and height must be > 0")
    acc = np.zeros((height, width), dtype=np.float64)
    for p0, p1 in path_edges(path, settings.fill_flatten_tolerance, settings.min_param_span):
        if not (p0.is_finite() and p1.is_finite()):
            continue
        accumulate_edge(acc, p0, p1)
    winding = np.cumsum(acc, axis=1)
    coverage = np.minimum(1.0, np.abs(winding))
    if clip is not None:
        coverage *= clip_mask(clip, width, height)
    return coverage
