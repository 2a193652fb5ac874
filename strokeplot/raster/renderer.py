from __future__ import annotations

from dataclasses import replace
import logging
import math
from pathlib import Path as FilePath

import numpy as np
from PIL import Image

from strokeplot.config import DEFAULT_SETTINGS, StrokeSettings
from strokeplot.geom import Path, Point, Rect
from strokeplot.paint import TRANSPARENT, Color, Paint
from strokeplot.quantize import quantize, quantize_dashes, quantize_path, quantize_point
from strokeplot.raster.canvas import blit, composite_coverage, new_canvas, unpremultiply
from strokeplot.raster.draw_text import DEFAULT_FONT_FAMILY, draw_text, font_metrics, load_font, text_size
from strokeplot.raster.fill import rasterize_nonzero
from strokeplot.render import GlyphRun, RasterImage, SessionState, TextMetrics
from strokeplot.stroke.assemble import stroke_to_path


LOGGER = logging.getLogger(__name__)


def _pixel_bounds(rect: Rect) -> Rect:
    """Snap a clip rectangle outward to whole pixels."""
    return Rect(
        Point(math.floor(rect.min.x), math.floor(rect.min.y)),
        Point(math.ceil(rect.max.x), math.ceil(rect.max.y)),
    )


class RasterTextDrawer:
    def __init__(self, renderer: "RasterRenderer") -> None:
        self._renderer = renderer

    def draw_text(self, text: str, origin: Point, size: float, color: Color, font_key: str = "") -> None:
        """Draw ``text`` with its baseline starting at ``origin``."""
        if not text:
            return
        family = font_key or DEFAULT_FONT_FAMILY
        origin = quantize_point(origin)
        font = load_font(family, size)
        left, top, _, _ = font.getbbox(text)
        ascent, _ = font.getmetrics()
        draw_text(
            self._renderer.surface,
            int(round(origin.x + left)),
            int(round(origin.y - ascent + top)),
            text,
            color,
            font_family=family,
            font_size_px=size,
            clip=self._renderer.current_clip(),
        )


class RasterPNGExporter:
    def __init__(self, renderer: "RasterRenderer") -> None:
        self._renderer = renderer

    def save_png(self, path: str | FilePath) -> None:
        image = Image.fromarray(self._renderer.rgba())
        image.save(str(path), format="PNG")
        LOGGER.debug("wrote %dx%d PNG to %s", image.width, image.height, path)


class RasterRenderer:
    """Software renderer drawing into a premultiplied RGBA8 numpy surface."""

    def __init__(
        self,
        width: int,
        height: int,
        background: Color = TRANSPARENT,
        *,
        settings: StrokeSettings = DEFAULT_SETTINGS,
    ) -> None:
        if width <= 0 or height <= 0:
            raise ValueError("width and height must be > 0")
        self.width = int(width)
        self.height = int(height)
        self.settings = settings
        self.surface = new_canvas(self.width, self.height, background)
        self.viewport = Rect.from_xywh(0, 0, self.width, self.height)
        self._session = SessionState()
        self._stack: list[Rect | None] = []
        self._clip: Rect | None = None

    @property
    def active(self) -> bool:
        return self._session.active

    @property
    def depth(self) -> int:
        return len(self._stack)

    def current_clip(self) -> Rect | None:
        return self._clip

    def begin(self, viewport: Rect) -> None:
        self._session.begin(type(self).__name__)
        self.viewport = viewport
        self._stack.clear()
        self._clip = None

    def end(self) -> None:
        self._session.end(type(self).__name__)
        self._stack.clear()
        self._clip = None

    def save(self) -> None:
        self._stack.append(self._clip)

    def restore(self) -> None:
        if not self._stack:
            return
        self._clip = self._stack.pop()

    def clip_rect(self, rect: Rect) -> None:
        self._clip = rect if self._clip is None else self._clip.intersect(rect)

    def clip_path(self, path: Path) -> None:
        if not path.validate():
            LOGGER.debug("ignoring invalid clip path")
            return
        bounds = path.bounds()
        if bounds is None:
            return
        self.clip_rect(bounds)

    def path(self, path: Path, paint: Paint) -> None:
        if not path.validate():
            LOGGER.debug("skipping invalid path (%d verbs, %d points)", len(path.verbs), len(path.points))
            return
        path = quantize_path(path)
        paint = replace(
            paint,
            line_width=quantize(paint.line_width),
            miter_limit=quantize(paint.miter_limit),
            dashes=tuple(quantize_dashes(paint.dashes)),
        )
        if paint.has_fill():
            self._fill(path, paint.fill)
        if paint.has_stroke():
            outline = stroke_to_path(path, paint, self.settings)
            if not outline.is_empty():
                self._fill(outline, paint.stroke)

    def _fill(self, path: Path, color: Color) -> None:
        clip = None if self._clip is None else _pixel_bounds(self._clip)
        coverage = rasterize_nonzero(path, self.width, self.height, clip, self.settings)
        composite_coverage(self.surface, coverage, color)

    def image(self, img: RasterImage, dst: Rect) -> None:
        if dst.is_empty():
            return
        area = Rect(Point(0, 0), Point(self.width, self.height))
        if self._clip is not None:
            area = area.intersect(_pixel_bounds(self._clip))
        target = area.intersect(_pixel_bounds(dst))
        x0, y0 = int(target.min.x), int(target.min.y)
        x1, y1 = int(target.max.x), int(target.max.y)
        if x1 <= x0 or y1 <= y0:
            return
        # Nearest-neighbour sample at pixel centres.
        xs = (np.arange(x0, x1, dtype=np.float64) + 0.5 - dst.min.x) / dst.width * img.width
        ys = (np.arange(y0, y1, dtype=np.float64) + 0.5 - dst.min.y) / dst.height * img.height
        u = np.clip(np.floor(xs).astype(np.int64), 0, img.width - 1)
        v = np.clip(np.floor(ys).astype(np.int64), 0, img.height - 1)
        patch = img.pixels[v[:, None], u[None, :]]
        blit(self.surface, patch, x0, y0)

    def glyph_run(self, run: GlyphRun, color: Color) -> None:
        # Glyph IDs are not rasterized; text goes through text_drawer().
        return None

    def measure_text(self, text: str, size: float, font_key: str = "") -> TextMetrics:
        if not text:
            return TextMetrics()
        family = font_key or DEFAULT_FONT_FAMILY
        w, h = text_size(text, font_family=family, font_size_px=size)
        ascent, descent = font_metrics(family, size)
        return TextMetrics(
            width=quantize(float(w)),
            height=quantize(float(h)),
            ascent=quantize(ascent),
            descent=quantize(descent),
        )

    def text_drawer(self) -> RasterTextDrawer:
        return RasterTextDrawer(self)

    def png_exporter(self) -> RasterPNGExporter:
        return RasterPNGExporter(self)

    def premultiplied_rgba(self) -> np.ndarray:
        return self.surface.copy()

    def rgba(self) -> np.ndarray:
        return unpremultiply(self.surface)
