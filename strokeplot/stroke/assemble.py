from __future__ import annotations

import logging
import math

from strokeplot.config import DEFAULT_SETTINGS, StrokeSettings
from strokeplot.geom import Path, Point, Rect
from strokeplot.paint import Paint
from strokeplot.quantize import quantize, quantize_path, quantize_point
from strokeplot.stroke.dash import apply_dashes
from strokeplot.stroke.joins import compute_cap, compute_join, segment_normal
from strokeplot.stroke.segments import is_closed, path_to_segments, split_subpaths


LOGGER = logging.getLogger(__name__)


def stroke_to_path(path: Path, paint: Paint, settings: StrokeSettings = DEFAULT_SETTINGS) -> Path:
    """Convert a stroked centerline into a nonzero-fillable outline."""
    if path.is_empty() or not path.validate():
        return Path()
    if not math.isfinite(paint.line_width) or paint.line_width <= 0:
        return Path()

    work = quantize_path(path)
    if paint.dashes:
        work = apply_dashes(work, paint.dashes, settings, offset=paint.dash_offset)

    result = Path()
    for index, subpath in enumerate(split_subpaths(work)):
        outline = quantize_path(stroke_subpath(subpath, paint, settings))
        if not all(p.is_finite() for p in outline.points):
            LOGGER.debug("dropping stroke outline for subpath %d: non-finite coordinates", index)
            continue
        result.extend(outline)
    return result


def stroke_subpath(subpath: Path, paint: Paint, settings: StrokeSettings = DEFAULT_SETTINGS) -> Path:
    if subpath.is_empty() or not paint.line_width > 0:
        return Path()
    segments = path_to_segments(subpath, settings)
    if not segments:
        return Path()

    n = len(segments)
    half_width = quantize(paint.line_width / 2.0)
    closed = is_closed(subpath)

    left: list[Point] = []
    right: list[Point] = []
    for seg in segments:
        normal = segment_normal(seg, half_width)
        left.append(quantize_point(seg.start + normal))
        right.append(quantize_point(seg.start - normal))
    last_normal = segment_normal(segments[-1], half_width)
    left.append(quantize_point(segments[-1].end + last_normal))
    right.append(quantize_point(segments[-1].end - last_normal))

    for i in range(1, n):
        left[i], right[i] = compute_join(
            segments[i - 1], segments[i], half_width, paint.line_join, paint.miter_limit, settings
        )

    if closed and n >= 2:
        seam_left, seam_right = compute_join(
            segments[-1], segments[0], half_width, paint.line_join, paint.miter_limit, settings
        )
        left[0] = left[n] = seam_left
        right[0] = right[n] = seam_right

    out = Path()
    if not closed:
        out.extend(compute_cap(segments[0], True, half_width, paint.line_cap, settings))

    out.move_to(left[0])
    for p in left[1:]:
        out.line_to(p)
    for p in reversed(right):
        out.line_to(p)
    out.close()

    if not closed:
        out.extend(compute_cap(segments[-1], False, half_width, paint.line_cap, settings))
    return out


def stroke_bounds(path: Path, paint: Paint, settings: StrokeSettings = DEFAULT_SETTINGS) -> Rect | None:
    outline = stroke_to_path(path, paint, settings)
    if outline.is_empty():
        return None
    return outline.bounds()
