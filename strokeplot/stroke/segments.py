from __future__ import annotations

from strokeplot.config import DEFAULT_SETTINGS, StrokeSettings
from strokeplot.geom import ORIGIN, Path, Point, Segment, Verb
from strokeplot.stroke.flatten import flatten_cubic, flatten_quad


__all__ = ["Segment", "is_closed", "path_to_segments", "split_subpaths"]


def split_subpaths(path: Path) -> list[Path]:
    """Split a valid path at every MoveTo; each result starts with MoveTo."""
    subpaths: list[Path] = []
    current: Path | None = None
    for verb, pts in path.iter_commands():
        if verb == Verb.MOVE_TO:
            if current is not None and current.verbs:
                subpaths.append(current)
            current = Path().move_to(pts[0])
            continue
        if current is None:
            current = Path().move_to(ORIGIN)
        current.verbs.append(verb)
        current.points.extend(pts)
    if current is not None and current.verbs:
        subpaths.append(current)
    return subpaths


def is_closed(subpath: Path) -> bool:
    return bool(subpath.verbs) and subpath.verbs[-1] == Verb.CLOSE


def path_to_segments(subpath: Path, settings: StrokeSettings = DEFAULT_SETTINGS) -> list[Segment]:
    segments: list[Segment] = []
    current: Point = ORIGIN
    start: Point = ORIGIN
    for verb, pts in subpath.iter_commands():
        if verb == Verb.MOVE_TO:
            current = start = pts[0]
        elif verb == Verb.LINE_TO:
            segments.append(Segment(current, pts[0]))
            current = pts[0]
        elif verb == Verb.QUAD_TO:
            segments.extend(
                flatten_quad(current, pts[0], pts[1], settings.flatten_tolerance, settings.min_param_span)
            )
            current = pts[1]
        elif verb == Verb.CUBIC_TO:
            segments.extend(
                flatten_cubic(current, pts[0], pts[1], pts[2], settings.flatten_tolerance, settings.min_param_span)
            )
            current = pts[2]
        elif verb == Verb.CLOSE:
            if current != start:
                segments.append(Segment(current, start))
            current = start
    return segments
