from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
import math

from strokeplot.config import DEFAULT_MITER_LIMIT


RGBA = tuple[int, int, int, int]


def _clamp01(v: float) -> float:
    if not math.isfinite(v):
        return 0.0
    return max(0.0, min(1.0, v))


@dataclass(frozen=True)
class Color:
    """Straight-alpha RGBA with float channels in [0, 1]."""

    r: float = 0.0
    g: float = 0.0
    b: float = 0.0
    a: float = 0.0

    @classmethod
    def from_rgba8(cls, r: int, g: int, b: int, a: int = 255) -> "Color":
        return cls(r / 255.0, g / 255.0, b / 255.0, a / 255.0)

    def with_alpha(self, a: float) -> "Color":
        return Color(self.r, self.g, self.b, a)

    def premultiplied(self) -> tuple[float, float, float, float]:
        return (self.r * self.a, self.g * self.a, self.b * self.a, self.a)

    def to_premultiplied_rgba8(self) -> RGBA:
        r, g, b, a = self.premultiplied()
        return (
            int(_clamp01(r) * 255 + 0.5),
            int(_clamp01(g) * 255 + 0.5),
            int(_clamp01(b) * 255 + 0.5),
            int(_clamp01(a) * 255 + 0.5),
        )

    def to_rgba8(self) -> RGBA:
        return (
            int(_clamp01(self.r) * 255 + 0.5),
            int(_clamp01(self.g) * 255 + 0.5),
            int(_clamp01(self.b) * 255 + 0.5),
            int(_clamp01(self.a) * 255 + 0.5),
        )


TRANSPARENT = Color(0.0, 0.0, 0.0, 0.0)
BLACK = Color(0.0, 0.0, 0.0, 1.0)
WHITE = Color(1.0, 1.0, 1.0, 1.0)


class LineJoin(IntEnum):
    MITER = 0
    ROUND = 1
    BEVEL = 2


class LineCap(IntEnum):
    BUTT = 0
    ROUND = 1
    SQUARE = 2


@dataclass(frozen=True)
class Paint:
    line_width: float = 0.0
    line_join: LineJoin = LineJoin.MITER
    line_cap: LineCap = LineCap.BUTT
    miter_limit: float = DEFAULT_MITER_LIMIT
    stroke: Color = TRANSPARENT
    fill: Color = TRANSPARENT
    dashes: tuple[float, ...] = field(default_factory=tuple)
    dash_offset: float = 0.0

    @property
    def half_width(self) -> float:
        return self.line_width / 2.0

    def has_fill(self) -> bool:
        return self.fill.a > 0

    def has_stroke(self) -> bool:
        return self.stroke.a > 0 and self.line_width > 0
