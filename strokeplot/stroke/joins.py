from __future__ import annotations

import math

from strokeplot.config import DEFAULT_SETTINGS, StrokeSettings
from strokeplot.geom import Path, Point, Segment
from strokeplot.paint import LineCap, LineJoin
from strokeplot.quantize import quantize, quantize_point


def segment_normal(seg: Segment, half_width: float) -> Point:
    """Left-hand normal of ``seg`` scaled to ``half_width``."""
    dx = quantize(seg.end.x - seg.start.x)
    dy = quantize(seg.end.y - seg.start.y)
    length = quantize(math.hypot(dx, dy))
    if length == 0 or not math.isfinite(length):
        return Point(half_width, 0.0)
    return Point(quantize(-dy / length * half_width), quantize(dx / length * half_width))


def intersect_lines(
    p1: Point,
    p2: Point,
    p3: Point,
    p4: Point,
    epsilon: float = DEFAULT_SETTINGS.intersect_epsilon,
) -> Point:
    """Intersection of line p1-p2 with line p3-p4.

    Near-parallel lines yield the midpoint of ``p2`` and ``p3``.
    """
    denom = (p1.x - p2.x) * (p3.y - p4.y) - (p1.y - p2.y) * (p3.x - p4.x)
    if not abs(denom) >= epsilon:
        return Point((p2.x + p3.x) / 2, (p2.y + p3.y) / 2)
    t = ((p1.x - p3.x) * (p3.y - p4.y) - (p1.y - p3.y) * (p3.x - p4.x)) / denom
    return Point(p1.x + t * (p2.x - p1.x), p1.y + t * (p2.y - p1.y))


def _unit(seg: Segment) -> Point | None:
    d = seg.direction
    n = math.hypot(d.x, d.y)
    if n == 0 or not math.isfinite(n):
        return None
    return Point(d.x / n, d.y / n)


def _offset_intersections(
    prev: Segment,
    curr: Segment,
    prev_normal: Point,
    curr_normal: Point,
    epsilon: float,
) -> tuple[Point, Point]:
    left = intersect_lines(
        prev.start + prev_normal,
        prev.end + prev_normal,
        curr.start + curr_normal,
        curr.end + curr_normal,
        epsilon,
    )
    right = intersect_lines(
        prev.start - prev_normal,
        prev.end - prev_normal,
        curr.start - curr_normal,
        curr.end - curr_normal,
        epsilon,
    )
    return left, right


def compute_join(
    prev: Segment,
    curr: Segment,
    half_width: float,
    join: LineJoin,
    miter_limit: float,
    settings: StrokeSettings = DEFAULT_SETTINGS,
) -> tuple[Point, Point]:
    """Return the (left, right) offset points at the vertex shared by two segments."""
    prev_normal = segment_normal(prev, half_width)
    curr_normal = segment_normal(curr, half_width)
    vertex = prev.end

    # Bevel and every fallback below offset by the current normal only, so the
    # outer end of the previous segment's offset is not bridged and a sharp
    # turn leaves a small notch on the outside of the corner.
    left = vertex + curr_normal
    right = vertex - curr_normal
    if join == LineJoin.BEVEL:
        return left, right

    u_prev = _unit(prev)
    u_curr = _unit(curr)
    if u_prev is None or u_curr is None:
        return left, right
    dot = u_prev.x * u_curr.x + u_prev.y * u_curr.y

    if join == LineJoin.MITER:
        if abs(dot) > settings.parallel_dot_threshold:
            return left, right
        # Half of the interior angle between the two segments at the vertex.
        sin_half = math.sqrt(max(0.0, (1.0 + dot) / 2.0))
        if sin_half <= 0:
            return left, right
        if half_width / sin_half > miter_limit * half_width:
            return left, right
        ml, mr = _offset_intersections(prev, curr, prev_normal, curr_normal, settings.intersect_epsilon)
        return quantize_point(ml), quantize_point(mr)

    if join == LineJoin.ROUND:
        # Approximated with the offset-line intersections, each side kept only
        # while it stays within the miter limit.
        cross = u_prev.x * u_curr.y - u_prev.y * u_curr.x
        if abs(math.atan2(cross, dot)) > settings.round_join_min_angle:
            ml, mr = _offset_intersections(prev, curr, prev_normal, curr_normal, settings.intersect_epsilon)
            reach = miter_limit * half_width
            if vertex.distance_to(ml) < reach:
                left = ml
            if vertex.distance_to(mr) < reach:
                right = mr
    return left, right


def compute_cap(
    seg: Segment,
    at_start: bool,
    half_width: float,
    cap: LineCap,
    settings: StrokeSettings = DEFAULT_SETTINGS,
) -> Path:
    """Closed cap outline for one end of an open subpath (empty for butt caps)."""
    if cap == LineCap.BUTT:
        return Path()

    normal = segment_normal(seg, half_width)
    if at_start:
        anchor = seg.start
    else:
        anchor = seg.end
        normal = -normal

    out = Path()
    if cap == LineCap.SQUARE:
        d = seg.direction
        length = math.hypot(d.x, d.y)
        ext = Point(0.0, 0.0)
        if length > 0 and math.isfinite(length):
            ext = Point(d.x / length * half_width, d.y / length * half_width)
        if at_start:
            ext = -ext
        out.move_to(anchor + normal + ext)
        out.line_to(anchor + normal)
        out.line_to(anchor - normal)
        out.line_to(anchor - normal + ext)
        out.close()
        return out

    if cap == LineCap.ROUND:
        steps = int(max(settings.round_cap_min_segments, min(settings.round_cap_max_segments, half_width * 2)))
        out.move_to(anchor + normal)
        # The end normal is already flipped, so the same sweep bulges forward.
        for i in range(1, steps + 1):
            angle = math.pi * i / steps
            cos_a = math.cos(angle)
            sin_a = math.sin(angle)
            x = normal.x * cos_a - normal.y * sin_a
            y = normal.x * sin_a + normal.y * cos_a
            out.line_to(quantize_point(Point(anchor.x + x, anchor.y + y)))
        out.close()
    return out
