from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
import math
from typing import Iterator, Sequence


@dataclass(frozen=True)
class Point:
    x: float
    y: float

    def __add__(self, other: "Point") -> "Point":
        return Point(self.x + other.x, self.y + other.y)

    def __sub__(self, other: "Point") -> "Point":
        return Point(self.x - other.x, self.y - other.y)

    def __mul__(self, s: float) -> "Point":
        return Point(self.x * s, self.y * s)

    def __rmul__(self, s: float) -> "Point":
        return self.__mul__(s)

    def __neg__(self) -> "Point":
        return Point(-self.x, -self.y)

    def distance_to(self, other: "Point") -> float:
        return math.hypot(other.x - self.x, other.y - self.y)

    def lerp(self, other: "Point", t: float) -> "Point":
        return Point(self.x + t * (other.x - self.x), self.y + t * (other.y - self.y))

    def is_finite(self) -> bool:
        return math.isfinite(self.x) and math.isfinite(self.y)


ORIGIN = Point(0.0, 0.0)


@dataclass(frozen=True)
class Segment:
    """Straight piece of a flattened path, valid only within one stroke call."""

    start: Point
    end: Point

    @property
    def length(self) -> float:
        return self.start.distance_to(self.end)

    @property
    def direction(self) -> Point:
        return self.end - self.start

    def is_degenerate(self) -> bool:
        return self.start == self.end

    def point_at(self, t: float) -> Point:
        return self.start.lerp(self.end, t)


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle; a point p is inside iff min <= p < max per axis."""

    min: Point
    max: Point

    @classmethod
    def from_xywh(cls, x: float, y: float, width: float, height: float) -> "Rect":
        return cls(Point(x, y), Point(x + width, y + height))

    @property
    def width(self) -> float:
        return self.max.x - self.min.x

    @property
    def height(self) -> float:
        return self.max.y - self.min.y

    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def inflate(self, dx: float, dy: float) -> "Rect":
        return Rect(Point(self.min.x - dx, self.min.y - dy), Point(self.max.x + dx, self.max.y + dy))

    def contains(self, p: Point) -> bool:
        return self.min.x <= p.x < self.max.x and self.min.y <= p.y < self.max.y

    def intersect(self, other: "Rect") -> "Rect":
        lo = Point(max(self.min.x, other.min.x), max(self.min.y, other.min.y))
        hi = Point(min(self.max.x, other.max.x), min(self.max.y, other.max.y))
        # Empty intersections collapse onto the boundary instead of inverting.
        hi = Point(max(hi.x, lo.x), max(hi.y, lo.y))
        return Rect(lo, hi)

    def union(self, other: "Rect") -> "Rect":
        return Rect(
            Point(min(self.min.x, other.min.x), min(self.min.y, other.min.y)),
            Point(max(self.max.x, other.max.x), max(self.max.y, other.max.y)),
        )


@dataclass(frozen=True)
class Affine:
    """2x3 matrix mapping (x, y) -> (a*x + c*y + e, b*x + d*y + f)."""

    a: float = 1.0
    b: float = 0.0
    c: float = 0.0
    d: float = 1.0
    e: float = 0.0
    f: float = 0.0

    @classmethod
    def identity(cls) -> "Affine":
        return cls()

    @classmethod
    def translate(cls, tx: float, ty: float) -> "Affine":
        return cls(e=tx, f=ty)

    @classmethod
    def scale(cls, sx: float, sy: float | None = None) -> "Affine":
        return cls(a=sx, d=sx if sy is None else sy)

    def mul(self, n: "Affine") -> "Affine":
        """Compose so that the result applies ``n`` first, then ``self``."""
        return Affine(
            a=self.a * n.a + self.c * n.b,
            b=self.b * n.a + self.d * n.b,
            c=self.a * n.c + self.c * n.d,
            d=self.b * n.c + self.d * n.d,
            e=self.a * n.e + self.c * n.f + self.e,
            f=self.b * n.e + self.d * n.f + self.f,
        )

    def apply(self, p: Point) -> Point:
        return Point(self.a * p.x + self.c * p.y + self.e, self.b * p.x + self.d * p.y + self.f)

    def invert(self) -> "Affine | None":
        det = self.a * self.d - self.c * self.b
        if det == 0:
            return None
        inv_a = self.d / det
        inv_b = -self.b / det
        inv_c = -self.c / det
        inv_d = self.a / det
        return Affine(
            a=inv_a,
            b=inv_b,
            c=inv_c,
            d=inv_d,
            e=-(inv_a * self.e + inv_c * self.f),
            f=-(inv_b * self.e + inv_d * self.f),
        )


class Verb(IntEnum):
    MOVE_TO = 0
    LINE_TO = 1
    QUAD_TO = 2
    CUBIC_TO = 3
    CLOSE = 4


VERB_ARITY: dict[Verb, int] = {
    Verb.MOVE_TO: 1,
    Verb.LINE_TO: 1,
    Verb.QUAD_TO: 2,
    Verb.CUBIC_TO: 3,
    Verb.CLOSE: 0,
}


@dataclass
class Path:
    """Verb sequence paired with a flat point list.

    MoveTo and LineTo consume one point, QuadTo two (control, end), CubicTo
    three (control1, control2, end) and Close none.
    """

    verbs: list[Verb] = field(default_factory=list)
    points: list[Point] = field(default_factory=list)

    @classmethod
    def from_points(cls, points: Sequence[Point], *, closed: bool = False) -> "Path":
        path = cls()
        for i, p in enumerate(points):
            if i == 0:
                path.move_to(p)
            else:
                path.line_to(p)
        if closed and points:
            path.close()
        return path

    def move_to(self, p: Point) -> "Path":
        self.verbs.append(Verb.MOVE_TO)
        self.points.append(p)
        return self

    def line_to(self, p: Point) -> "Path":
        self.verbs.append(Verb.LINE_TO)
        self.points.append(p)
        return self

    def quad_to(self, ctrl: Point, to: Point) -> "Path":
        self.verbs.append(Verb.QUAD_TO)
        self.points.extend((ctrl, to))
        return self

    def cubic_to(self, c1: Point, c2: Point, to: Point) -> "Path":
        self.verbs.append(Verb.CUBIC_TO)
        self.points.extend((c1, c2, to))
        return self

    def close(self) -> "Path":
        self.verbs.append(Verb.CLOSE)
        return self

    def extend(self, other: "Path") -> "Path":
        self.verbs.extend(other.verbs)
        self.points.extend(other.points)
        return self

    def clear(self) -> None:
        self.verbs.clear()
        self.points.clear()

    def copy(self) -> "Path":
        return Path(list(self.verbs), list(self.points))

    def is_empty(self) -> bool:
        return not self.verbs

    def validate(self) -> bool:
        need = 0
        for verb in self.verbs:
            arity = VERB_ARITY.get(verb)
            if arity is None:
                return False
            need += arity
        return need == len(self.points)

    def iter_commands(self) -> Iterator[tuple[Verb, tuple[Point, ...]]]:
        """Yield ``(verb, points)`` pairs. The path must be valid."""
        i = 0
        for verb in self.verbs:
            n = VERB_ARITY[verb]
            yield verb, tuple(self.points[i : i + n])
            i += n

    def transformed(self, m: Affine) -> "Path":
        return Path(list(self.verbs), [m.apply(p) for p in self.points])

    def bounds(self) -> Rect | None:
        if not self.points:
            return None
        xs = [p.x for p in self.points]
        ys = [p.y for p in self.points]
        return Rect(Point(min(xs), min(ys)), Point(max(xs), max(ys)))

    def subpath_count(self) -> int:
        return sum(1 for verb in self.verbs if verb == Verb.MOVE_TO)
