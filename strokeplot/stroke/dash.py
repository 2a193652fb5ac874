from __future__ import annotations

from dataclasses import dataclass
import logging
import math
from typing import Sequence

from strokeplot.config import DEFAULT_SETTINGS, StrokeSettings
from strokeplot.geom import Path
from strokeplot.quantize import quantize, quantize_dashes, quantize_point
from strokeplot.stroke.segments import path_to_segments, split_subpaths


LOGGER = logging.getLogger(__name__)


def is_valid_dash_array(dashes: Sequence[float], epsilon: float = DEFAULT_SETTINGS.dash_epsilon) -> bool:
    if not dashes or len(dashes) % 2 != 0:
        return False
    total = 0.0
    for d in dashes:
        if not math.isfinite(d) or d < 0:
            return False
        total += d
    return total > epsilon


@dataclass
class _DashCursor:
    dashes: list[float]
    epsilon: float
    index: int = 0
    remaining: float = 0.0
    drawing: bool = True

    def __post_init__(self) -> None:
        self.remaining = self.dashes[0]
        self._skip_empty()

    def advance(self) -> None:
        self.index = (self.index + 1) % len(self.dashes)
        self.remaining = self.dashes[self.index]
        self.drawing = not self.drawing
        self._skip_empty()

    def seek(self, offset: float) -> None:
        total = sum(self.dashes)
        phase = offset % total
        while phase > self.epsilon:
            if phase >= self.remaining:
                phase -= self.remaining
                self.advance()
            else:
                self.remaining = quantize(self.remaining - phase)
                phase = 0.0

    def _skip_empty(self) -> None:
        # A valid pattern has an entry above epsilon; one lap always reaches it.
        for _ in range(len(self.dashes)):
            if self.remaining > self.epsilon:
                return
            self.index = (self.index + 1) % len(self.dashes)
            self.remaining = self.dashes[self.index]
            self.drawing = not self.drawing


def apply_dashes(
    path: Path,
    dashes: Sequence[float],
    settings: StrokeSettings = DEFAULT_SETTINGS,
    *,
    offset: float = 0.0,
) -> Path:
    """Replace each subpath with its "on" pieces, one MoveTo/LineTo pair each.

    Invalid dash arrays leave ``path`` untouched so the caller strokes it solid.
    """
    eps = settings.dash_epsilon
    if not is_valid_dash_array(dashes, eps):
        LOGGER.debug("ignoring invalid dash array %r; stroking solid", list(dashes))
        return path
    pattern = quantize_dashes(dashes)
    if not is_valid_dash_array(pattern, eps):
        LOGGER.debug("dash array %r vanishes on the quantization grid; stroking solid", list(dashes))
        return path
    if not math.isfinite(offset):
        offset = 0.0

    result = Path()
    for subpath in split_subpaths(path):
        result.extend(_dash_subpath(subpath, pattern, quantize(offset), settings))
    return result


def _dash_subpath(subpath: Path, pattern: list[float], offset: float, settings: StrokeSettings) -> Path:
    eps = settings.dash_epsilon
    out = Path()
    segments = path_to_segments(subpath, settings)
    if not segments:
        return out

    cursor = _DashCursor(pattern, eps)
    if offset:
        cursor.seek(offset)

    for seg in segments:
        seg_len = quantize(seg.length)
        if not math.isfinite(seg_len):
            continue
        consumed = 0.0
        while consumed < seg_len - eps:
            available = seg_len - consumed
            consume = quantize(min(available, cursor.remaining))
            if consume <= 0:
                consume = min(available, cursor.remaining)

            if cursor.drawing and consume > eps:
                t0 = max(0.0, min(1.0, consumed / seg_len))
                t1 = max(0.0, min(1.0, (consumed + consume) / seg_len))
                a = quantize_point(seg.point_at(t0))
                b = quantize_point(seg.point_at(t1))
                if a.distance_to(b) > eps:
                    out.move_to(a).line_to(b)

            consumed += consume
            cursor.remaining -= consume
            if cursor.remaining <= eps:
                cursor.advance()
    return out
