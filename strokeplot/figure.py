from __future__ import annotations

from dataclasses import dataclass, field
import logging
from pathlib import Path as FilePath
from typing import Any, Callable, Iterable, Literal, Protocol, Sequence, get_args

import numpy as np

from strokeplot.adapters import normalize_xy
from strokeplot.errors import PlotDataError, PlotExportError
from strokeplot.geom import Path, Point, Rect
from strokeplot.markers import MARKER_TYPES, MarkerType, marker_path
from strokeplot.paint import BLACK, Color, LineCap, LineJoin, Paint
from strokeplot.raster.renderer import RasterRenderer
from strokeplot.render import Renderer
from strokeplot.scales import AxesTransform, DataLimits, LinearScale, LogScale, Scale, compute_limits
from strokeplot.stroke.assemble import stroke_bounds


LOGGER = logging.getLogger(__name__)

ColorLike = Color | tuple[int, int, int] | tuple[int, int, int, int]
BarOrientation = Literal["vertical", "horizontal"]

BAR_ORIENTATIONS: tuple[str, ...] = get_args(BarOrientation)

DEFAULT_AXES_RECT = (0.125, 0.11, 0.9, 0.88)
LINE_MITER_LIMIT = 10.0


def coerce_color(color: ColorLike, alpha: float = 1.0) -> Color:
    a = max(0.0, min(1.0, alpha))
    if isinstance(color, Color):
        return color.with_alpha(color.a * a)
    if len(color) == 3:
        r, g, b = color
        return Color.from_rgba8(r, g, b).with_alpha(a)
    r, g, b, a8 = color
    return Color.from_rgba8(r, g, b, a8).with_alpha(a8 / 255.0 * a)


def _contiguous_true_runs(mask: np.ndarray) -> list[tuple[int, int]]:
    idx = np.flatnonzero(mask)
    if idx.size == 0:
        return []
    runs: list[tuple[int, int]] = []
    start = int(idx[0])
    prev = int(idx[0])
    for v in idx[1:]:
        iv = int(v)
        if iv == prev + 1:
            prev = iv
            continue
        runs.append((start, prev + 1))
        start = iv
        prev = iv
    runs.append((start, prev + 1))
    return runs


def _to_pixels(ctx: "DrawContext", x: np.ndarray, y: np.ndarray) -> list[Point]:
    return [ctx.data_to_pixel.apply(Point(float(xv), float(yv))) for xv, yv in zip(x.tolist(), y.tolist())]


@dataclass(frozen=True)
class DrawContext:
    data_to_pixel: AxesTransform
    clip: Rect


class Artist(Protocol):
    z: float

    def draw(self, renderer: Renderer, ctx: DrawContext) -> None: ...

    def bounds(self, ctx: DrawContext) -> Rect | None: ...


def sorted_by_z(artists: Iterable[Artist]) -> list[Artist]:
    """Artists in ascending z; ties keep insertion order."""
    return sorted(artists, key=lambda art: art.z)


@dataclass
class Line2D:
    """Stroked polyline in data coordinates, broken at non-finite points."""

    x: np.ndarray
    y: np.ndarray
    width: float = 1.0
    color: Color = BLACK
    dashes: tuple[float, ...] = ()
    dash_offset: float = 0.0
    label: str | None = None
    z: float = 0.0

    def __post_init__(self) -> None:
        self.x = np.asarray(self.x, dtype=np.float64)
        self.y = np.asarray(self.y, dtype=np.float64)
        if self.x.shape != self.y.shape or self.x.ndim != 1:
            raise PlotDataError("x and y must be 1-D arrays of equal length")
        if self.width < 0:
            raise ValueError("width must be >= 0")

    def paint(self) -> Paint:
        return Paint(
            line_width=self.width,
            line_join=LineJoin.ROUND,
            line_cap=LineCap.ROUND,
            miter_limit=LINE_MITER_LIMIT,
            stroke=self.color,
            dashes=tuple(self.dashes),
            dash_offset=self.dash_offset,
        )

    def pixel_path(self, ctx: DrawContext) -> Path:
        points = _to_pixels(ctx, self.x, self.y)
        finite = np.asarray([p.is_finite() for p in points], dtype=bool)
        path = Path()
        for start, stop in _contiguous_true_runs(finite):
            path.extend(Path.from_points(points[start:stop]))
        return path

    def data_points(self) -> tuple[np.ndarray, np.ndarray]:
        return self.x, self.y

    def draw(self, renderer: Renderer, ctx: DrawContext) -> None:
        if self.x.size == 0:
            return
        path = self.pixel_path(ctx)
        if path.is_empty():
            return
        renderer.path(path, self.paint())

    def bounds(self, ctx: DrawContext) -> Rect | None:
        return stroke_bounds(self.pixel_path(ctx), self.paint())


@dataclass
class Polygon2D:
    """Filled closed polygon with an optional stroked edge."""

    x: np.ndarray
    y: np.ndarray
    color: Color = BLACK
    edge_color: Color = Color(0.0, 0.0, 0.0, 0.0)
    edge_width: float = 0.0
    label: str | None = None
    z: float = 0.0

    def __post_init__(self) -> None:
        self.x = np.asarray(self.x, dtype=np.float64)
        self.y = np.asarray(self.y, dtype=np.float64)
        if self.x.shape != self.y.shape or self.x.ndim != 1:
            raise PlotDataError("x and y must be 1-D arrays of equal length")

    def paint(self) -> Paint:
        if self.edge_width > 0 and self.edge_color.a > 0:
            return Paint(
                line_width=self.edge_width,
                line_join=LineJoin.ROUND,
                line_cap=LineCap.ROUND,
                stroke=self.edge_color,
                fill=self.color,
            )
        return Paint(fill=self.color)

    def pixel_path(self, ctx: DrawContext) -> Path:
        points = [p for p in _to_pixels(ctx, self.x, self.y) if p.is_finite()]
        if len(points) < 3:
            return Path()
        return Path.from_points(points, closed=True)

    def data_points(self) -> tuple[np.ndarray, np.ndarray]:
        return self.x, self.y

    def draw(self, renderer: Renderer, ctx: DrawContext) -> None:
        path = self.pixel_path(ctx)
        if path.is_empty():
            return
        renderer.path(path, self.paint())

    def bounds(self, ctx: DrawContext) -> Rect | None:
        path = self.pixel_path(ctx)
        box = path.bounds()
        if box is None:
            return None
        edge = stroke_bounds(path, self.paint())
        return box if edge is None else box.union(edge)


def _edge_paint(fill: Color, edge: Color, edge_width: float) -> Paint:
    if edge_width > 0 and edge.a > 0:
        return Paint(line_width=edge_width, line_join=LineJoin.MITER, stroke=edge, fill=fill)
    return Paint(fill=fill)


def _pick(values: Sequence[Any] | None, i: int, default: Any) -> Any:
    if values is not None and i < len(values):
        return values[i]
    return default


def _union(boxes: Iterable[Rect | None]) -> Rect | None:
    out: Rect | None = None
    for box in boxes:
        if box is None:
            continue
        out = box if out is None else out.union(box)
    return out


@dataclass
class Bar2D:
    """Filled bars from ``baseline`` to each value.

    Vertical bars are centered on ``x`` and reach ``y``. Horizontal bars are
    centered on ``x`` along the y axis and reach ``y`` along the x axis.
    """

    x: np.ndarray
    y: np.ndarray
    widths: np.ndarray | None = None
    colors: Sequence[Color] | None = None
    width: float = 0.8
    color: Color = BLACK
    baseline: float = 0.0
    orientation: BarOrientation = "vertical"
    edge_colors: Sequence[Color] | None = None
    edge_color: Color = Color(0.0, 0.0, 0.0, 0.0)
    edge_width: float = 0.0
    label: str | None = None
    z: float = 0.0

    def __post_init__(self) -> None:
        self.x = np.asarray(self.x, dtype=np.float64)
        self.y = np.asarray(self.y, dtype=np.float64)
        if self.x.ndim != 1 or self.y.ndim != 1:
            raise PlotDataError("bar positions and values must be 1-D arrays")
        if self.widths is not None:
            self.widths = np.asarray(self.widths, dtype=np.float64)
        if self.orientation not in BAR_ORIENTATIONS:
            raise ValueError(f"unsupported bar orientation: {self.orientation}")

    def __len__(self) -> int:
        return min(self.x.size, self.y.size)

    def bar_width(self, i: int) -> float:
        return float(_pick(self.widths, i, self.width))

    def data_rect(self, i: int) -> Rect | None:
        """Bar ``i`` in data coordinates, ordered so min <= max on both axes."""
        pos, value, half = float(self.x[i]), float(self.y[i]), self.bar_width(i) / 2.0
        if not (np.isfinite(pos) and np.isfinite(value) and np.isfinite(half)):
            return None
        lo, hi = min(self.baseline, value), max(self.baseline, value)
        if self.orientation == "vertical":
            return Rect(Point(pos - half, lo), Point(pos + half, hi))
        return Rect(Point(lo, pos - half), Point(hi, pos + half))

    def pixel_path(self, ctx: DrawContext, i: int) -> Path:
        r = self.data_rect(i)
        if r is None:
            return Path()
        corners = [r.min, Point(r.max.x, r.min.y), r.max, Point(r.min.x, r.max.y)]
        points = [ctx.data_to_pixel.apply(p) for p in corners]
        if not all(p.is_finite() for p in points):
            return Path()
        return Path.from_points(points, closed=True)

    def paint(self, i: int) -> Paint:
        return _edge_paint(
            _pick(self.colors, i, self.color),
            _pick(self.edge_colors, i, self.edge_color),
            self.edge_width,
        )

    def data_points(self) -> tuple[np.ndarray, np.ndarray]:
        n = len(self)
        if n == 0:
            return np.empty(0), np.empty(0)
        rects = [r for r in (self.data_rect(i) for i in range(n)) if r is not None]
        xs = np.asarray([v for r in rects for v in (r.min.x, r.max.x)], dtype=np.float64)
        ys = np.asarray([v for r in rects for v in (r.min.y, r.max.y)], dtype=np.float64)
        return xs, ys

    def draw(self, renderer: Renderer, ctx: DrawContext) -> None:
        for i in range(len(self)):
            path = self.pixel_path(ctx, i)
            if path.is_empty():
                continue
            renderer.path(path, self.paint(i))

    def bounds(self, ctx: DrawContext) -> Rect | None:
        boxes = []
        for i in range(len(self)):
            path = self.pixel_path(ctx, i)
            boxes.append(path.bounds())
            boxes.append(stroke_bounds(path, self.paint(i)))
        return _union(boxes)


@dataclass
class Scatter2D:
    """Filled markers at data points; ``size`` is the marker radius in pixels."""

    x: np.ndarray
    y: np.ndarray
    sizes: np.ndarray | None = None
    colors: Sequence[Color] | None = None
    size: float = 3.0
    color: Color = BLACK
    marker: MarkerType = "circle"
    edge_colors: Sequence[Color] | None = None
    edge_color: Color = Color(0.0, 0.0, 0.0, 0.0)
    edge_width: float = 0.0
    label: str | None = None
    z: float = 0.0

    def __post_init__(self) -> None:
        self.x = np.asarray(self.x, dtype=np.float64)
        self.y = np.asarray(self.y, dtype=np.float64)
        if self.x.shape != self.y.shape or self.x.ndim != 1:
            raise PlotDataError("x and y must be 1-D arrays of equal length")
        if self.sizes is not None:
            self.sizes = np.asarray(self.sizes, dtype=np.float64)
        if self.marker not in MARKER_TYPES:
            raise ValueError(f"unsupported marker: {self.marker}")

    def marker_size(self, i: int) -> float:
        return float(_pick(self.sizes, i, self.size))

    def max_marker_size(self) -> float:
        sizes = [self.marker_size(i) for i in range(self.x.size)]
        finite = [s for s in sizes if np.isfinite(s)]
        return max(finite, default=0.0)

    def pixel_path(self, ctx: DrawContext, i: int) -> Path:
        center = ctx.data_to_pixel.apply(Point(float(self.x[i]), float(self.y[i])))
        return marker_path(self.marker, center, self.marker_size(i))

    def paint(self, i: int) -> Paint:
        return _edge_paint(
            _pick(self.colors, i, self.color),
            _pick(self.edge_colors, i, self.edge_color),
            self.edge_width,
        )

    def data_points(self) -> tuple[np.ndarray, np.ndarray]:
        return self.x, self.y

    def draw(self, renderer: Renderer, ctx: DrawContext) -> None:
        for i in range(self.x.size):
            path = self.pixel_path(ctx, i)
            if path.is_empty():
                continue
            renderer.path(path, self.paint(i))

    def bounds(self, ctx: DrawContext) -> Rect | None:
        boxes = []
        for i in range(self.x.size):
            path = self.pixel_path(ctx, i)
            boxes.append(path.bounds())
            boxes.append(stroke_bounds(path, self.paint(i)))
        return _union(boxes)


@dataclass
class FunctionArtist:
    func: Callable[[Renderer, DrawContext], None]
    z: float = 0.0

    def draw(self, renderer: Renderer, ctx: DrawContext) -> None:
        self.func(renderer, ctx)

    def bounds(self, ctx: DrawContext) -> Rect | None:
        return None


@dataclass
class Axes:
    figure: "Figure" = field(repr=False, compare=False)
    rect: Rect
    title: str = ""
    x_scale: Scale = field(default_factory=LinearScale)
    y_scale: Scale = field(default_factory=LinearScale)
    artists: list[Artist] = field(default_factory=list)

    # style
    frame_color: Color = BLACK
    frame_width: float = 1.0
    show_frame: bool = True
    title_color: Color = BLACK
    title_size_px: float = 14.0

    def set_xlim(self, vmin: float, vmax: float) -> "Axes":
        self.x_scale = LinearScale(*self._checked_limits(vmin, vmax, "x"))
        return self

    def set_ylim(self, vmin: float, vmax: float) -> "Axes":
        self.y_scale = LinearScale(*self._checked_limits(vmin, vmax, "y"))
        return self

    def set_xlim_log(self, vmin: float, vmax: float, base: float = 10.0) -> "Axes":
        self.x_scale = self._log_scale(vmin, vmax, base, "x")
        return self

    def set_ylim_log(self, vmin: float, vmax: float, base: float = 10.0) -> "Axes":
        self.y_scale = self._log_scale(vmin, vmax, base, "y")
        return self

    @staticmethod
    def _checked_limits(vmin: float, vmax: float, axis: str) -> tuple[float, float]:
        lo, hi = float(vmin), float(vmax)
        if not (np.isfinite(lo) and np.isfinite(hi)):
            raise PlotDataError(f"{axis} limits must be finite")
        return lo, hi

    def _log_scale(self, vmin: float, vmax: float, base: float, axis: str) -> LogScale:
        lo, hi = self._checked_limits(vmin, vmax, axis)
        scale = LogScale(lo, hi, float(base))
        if not scale.is_valid():
            raise PlotDataError(f"invalid log {axis} limits: ({lo}, {hi}) base {base}")
        return scale

    def add(self, artist: Artist) -> Artist:
        self.artists.append(artist)
        return artist

    def plot(
        self,
        y: Any = None,
        *,
        x: Any = None,
        data: Any = None,
        label: str | None = None,
        color: ColorLike = (31, 119, 180),
        width: float = 1.5,
        alpha: float = 1.0,
        dashes: Sequence[float] = (),
        dash_offset: float = 0.0,
        z: float = 2.0,
    ) -> Line2D:
        if width <= 0:
            raise ValueError("line width must be > 0")
        series = normalize_xy(y, x=x, data=data, source_name=label)
        line = Line2D(
            x=np.where(series.mask, series.x, np.nan),
            y=np.where(series.mask, series.y, np.nan),
            width=float(width),
            color=coerce_color(color, alpha),
            dashes=tuple(float(d) for d in dashes),
            dash_offset=float(dash_offset),
            label=label,
            z=z,
        )
        self.add(line)
        return line

    def scatter(
        self,
        y: Any = None,
        *,
        x: Any = None,
        data: Any = None,
        label: str | None = None,
        color: ColorLike = (62, 149, 255),
        size: float = 3.0,
        marker: MarkerType = "circle",
        alpha: float = 1.0,
        edge_color: ColorLike | None = None,
        edge_width: float = 0.0,
        z: float = 2.0,
    ) -> Scatter2D:
        if size <= 0:
            raise ValueError("marker size must be > 0")
        series = normalize_xy(y, x=x, data=data, source_name=label)
        xs, ys = series.finite_points()
        points = Scatter2D(
            x=xs,
            y=ys,
            size=float(size),
            color=coerce_color(color, alpha),
            marker=marker,
            edge_color=Color() if edge_color is None else coerce_color(edge_color, alpha),
            edge_width=float(edge_width),
            label=label,
            z=z,
        )
        self.add(points)
        return points

    def bar(
        self,
        y: Any = None,
        *,
        x: Any = None,
        data: Any = None,
        label: str | None = None,
        color: ColorLike = (110, 169, 255),
        width: float = 0.8,
        alpha: float = 1.0,
        baseline: float = 0.0,
        orientation: BarOrientation = "vertical",
        edge_color: ColorLike | None = None,
        edge_width: float = 0.0,
        z: float = 1.0,
    ) -> Bar2D:
        """Bars of height ``y`` at positions ``x``; horizontal bars grow along x."""
        if width <= 0:
            raise ValueError("bar width must be > 0")
        series = normalize_xy(y, x=x, data=data, source_name=label)
        xs, ys = series.finite_points()
        bars = Bar2D(
            x=xs,
            y=ys,
            width=float(width),
            color=coerce_color(color, alpha),
            baseline=float(baseline),
            orientation=orientation,
            edge_color=Color() if edge_color is None else coerce_color(edge_color, alpha),
            edge_width=float(edge_width),
            label=label,
            z=z,
        )
        self.add(bars)
        return bars

    def fill(
        self,
        x: Any,
        y1: Any,
        y2: Any = None,
        *,
        baseline: float = 0.0,
        label: str | None = None,
        color: ColorLike = (31, 119, 180),
        alpha: float = 1.0,
        edge_color: ColorLike | None = None,
        edge_width: float = 0.0,
        z: float = 1.0,
    ) -> Polygon2D:
        """Fill between ``y1`` and ``y2`` (or ``baseline``) over ``x``."""
        top = normalize_xy(y1, x=x)
        if y2 is None:
            bottom_y = np.full(top.y.shape, float(baseline))
        else:
            bottom_y = normalize_xy(y2, x=x).y
        keep = top.mask & np.isfinite(bottom_y)
        xs = top.x[keep]
        if xs.size < 2:
            raise PlotDataError("fill needs at least 2 finite points")
        poly = Polygon2D(
            x=np.concatenate([xs, xs[::-1]]),
            y=np.concatenate([top.y[keep], bottom_y[keep][::-1]]),
            color=coerce_color(color, alpha),
            edge_color=Color() if edge_color is None else coerce_color(edge_color, alpha),
            edge_width=float(edge_width),
            label=label,
            z=z,
        )
        self.add(poly)
        return poly

    def data_limits(self) -> DataLimits:
        xs: list[np.ndarray] = []
        ys: list[np.ndarray] = []
        for art in self.artists:
            points = getattr(art, "data_points", None)
            if points is None:
                continue
            x, y = points()
            xs.append(x)
            ys.append(y)
        if not xs:
            raise PlotDataError("axes has no data to autoscale")
        x_all = np.concatenate(xs)
        y_all = np.concatenate(ys)
        mask = np.isfinite(x_all) & np.isfinite(y_all)
        if not np.any(mask):
            raise PlotDataError("axes has no finite data to autoscale")
        return compute_limits(x_all, y_all, mask)

    def autoscale(self) -> "Axes":
        limits = self.data_limits()
        self.set_xlim(limits.xmin, limits.xmax)
        self.set_ylim(limits.ymin, limits.ymax)
        return self

    def pixel_rect(self) -> Rect:
        """Axes rectangle in figure pixels; the fraction rect's y runs bottom-up."""
        w, h = float(self.figure.width), float(self.figure.height)
        return Rect(
            Point(w * self.rect.min.x, h * (1.0 - self.rect.max.y)),
            Point(w * self.rect.max.x, h * (1.0 - self.rect.min.y)),
        )

    def context(self) -> DrawContext:
        px = self.pixel_rect()
        return DrawContext(data_to_pixel=AxesTransform.for_rect(self.x_scale, self.y_scale, px), clip=px)

    def draw(self, renderer: Renderer) -> None:
        ctx = self.context()
        renderer.save()
        renderer.clip_rect(ctx.clip)
        for art in sorted_by_z(self.artists):
            art.draw(renderer, ctx)
        renderer.restore()
        if self.show_frame and self.frame_width > 0:
            self._draw_frame(renderer, ctx.clip)
        if self.title:
            self._draw_title(renderer, ctx.clip)

    def _draw_frame(self, renderer: Renderer, px: Rect) -> None:
        corners = [px.min, Point(px.max.x, px.min.y), px.max, Point(px.min.x, px.max.y)]
        paint = Paint(
            line_width=self.frame_width,
            line_join=LineJoin.MITER,
            line_cap=LineCap.SQUARE,
            stroke=self.frame_color,
        )
        renderer.path(Path.from_points(corners, closed=True), paint)

    def _draw_title(self, renderer: Renderer, px: Rect) -> None:
        drawer = renderer.text_drawer()
        if drawer is None:
            LOGGER.debug("renderer %s cannot draw text; skipping title", type(renderer).__name__)
            return
        metrics = renderer.measure_text(self.title, self.title_size_px)
        origin = Point(px.min.x + (px.width - metrics.width) / 2.0, px.min.y - metrics.descent - 4.0)
        drawer.draw_text(self.title, origin, self.title_size_px, self.title_color)


@dataclass
class Figure:
    width: int = 640
    height: int = 480
    background: Color = Color(1.0, 1.0, 1.0, 1.0)
    axes: list[Axes] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError("width and height must be > 0")

    def add_axes(self, rect: Rect | Sequence[float] = DEFAULT_AXES_RECT, **kwargs: Any) -> Axes:
        """Add axes covering ``rect`` = (left, bottom, right, top) in figure fractions."""
        if not isinstance(rect, Rect):
            if len(rect) != 4:
                raise ValueError("rect must be (left, bottom, right, top)")
            left, bottom, right, top = (float(v) for v in rect)
            rect = Rect(Point(left, bottom), Point(right, top))
        if rect.is_empty():
            raise ValueError("axes rect must have positive width and height")
        ax = Axes(figure=self, rect=rect, **kwargs)
        self.axes.append(ax)
        return ax

    def viewport(self) -> Rect:
        return Rect.from_xywh(0, 0, self.width, self.height)

    def draw(self, renderer: Renderer) -> None:
        renderer.begin(self.viewport())
        try:
            for ax in self.axes:
                ax.draw(renderer)
        finally:
            renderer.end()

    def _raster_renderer(self) -> RasterRenderer:
        return RasterRenderer(self.width, self.height, self.background)

    def to_rgba(self) -> np.ndarray:
        renderer = self._raster_renderer()
        self.draw(renderer)
        return renderer.rgba()

    def save_png(self, path: str | FilePath, renderer: Renderer | None = None) -> None:
        if renderer is None:
            renderer = self._raster_renderer()
        exporter = renderer.png_exporter()
        if exporter is None:
            raise PlotExportError(f"{type(renderer).__name__} cannot export PNG")
        self.draw(renderer)
        exporter.save_png(path)
