from __future__ import annotations

import math
from typing import Sequence

from strokeplot.geom import Path, Point


QUANTIZATION_EPSILON = 1e-6


def quantize(v: float) -> float:
    """Snap ``v`` to the 1e-6 grid. Non-finite values pass through untouched."""
    if not math.isfinite(v):
        return v
    scaled = v / QUANTIZATION_EPSILON
    # Huge finite values overflow the grid; they are left as they are.
    if not math.isfinite(scaled):
        return v
    return round(scaled) * QUANTIZATION_EPSILON


def quantize_point(p: Point) -> Point:
    return Point(quantize(p.x), quantize(p.y))


def quantize_path(path: Path) -> Path:
    return Path(list(path.verbs), [quantize_point(p) for p in path.points])


def quantize_dashes(dashes: Sequence[float]) -> list[float]:
    return [quantize(float(d)) for d in dashes]
