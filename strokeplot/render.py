from __future__ import annotations

from dataclasses import dataclass
import logging
from pathlib import Path as FilePath
from typing import Protocol, runtime_checkable

import numpy as np

from strokeplot.errors import RenderSessionError
from strokeplot.geom import Path, Point, Rect
from strokeplot.paint import Color, Paint


LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class Glyph:
    id: int
    advance: float
    offset: Point = Point(0.0, 0.0)


@dataclass(frozen=True)
class GlyphRun:
    glyphs: tuple[Glyph, ...]
    origin: Point
    size: float
    font_key: str = ""


@dataclass(frozen=True)
class TextMetrics:
    width: float = 0.0
    height: float = 0.0
    ascent: float = 0.0
    descent: float = 0.0


@dataclass(frozen=True)
class RasterImage:
    """Straight-alpha RGBA8 pixels shaped (H, W, 4)."""

    pixels: np.ndarray

    def __post_init__(self) -> None:
        if self.pixels.ndim != 3 or self.pixels.shape[2] != 4:
            raise ValueError("pixels must have shape (H, W, 4)")
        if self.pixels.dtype != np.uint8:
            raise ValueError("pixels must be uint8")

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    def size(self) -> tuple[int, int]:
        return (self.width, self.height)


class TextDrawer(Protocol):
    def draw_text(self, text: str, origin: Point, size: float, color: Color, font_key: str = "") -> None: ...


class PNGExporter(Protocol):
    def save_png(self, path: str | FilePath) -> None: ...


@runtime_checkable
class Renderer(Protocol):
    def begin(self, viewport: Rect) -> None: ...

    def end(self) -> None: ...

    def save(self) -> None: ...

    def restore(self) -> None: ...

    def clip_rect(self, rect: Rect) -> None: ...

    def clip_path(self, path: Path) -> None: ...

    def path(self, path: Path, paint: Paint) -> None: ...

    def image(self, img: RasterImage, dst: Rect) -> None: ...

    def glyph_run(self, run: GlyphRun, color: Color) -> None: ...

    def measure_text(self, text: str, size: float, font_key: str = "") -> TextMetrics: ...

    def text_drawer(self) -> TextDrawer | None: ...

    def png_exporter(self) -> PNGExporter | None: ...


class SessionState:
    """Begin/End bookkeeping shared by the bundled renderers."""

    def __init__(self) -> None:
        self.active = False

    def begin(self, owner: str) -> None:
        if self.active:
            LOGGER.warning("%s.begin called twice", owner)
            raise RenderSessionError("begin called twice")
        self.active = True

    def end(self, owner: str) -> None:
        if not self.active:
            LOGGER.warning("%s.end called before begin", owner)
            raise RenderSessionError("end called before begin")
        self.active = False


class NullRenderer:
    """Renderer that draws nothing; tracks the session and state stack only."""

    def __init__(self) -> None:
        self._session = SessionState()
        self._depth = 0
        self._clip_depth = 0

    @property
    def depth(self) -> int:
        return self._depth

    @property
    def active(self) -> bool:
        return self._session.active

    def begin(self, viewport: Rect) -> None:
        self._session.begin(type(self).__name__)

    def end(self) -> None:
        self._session.end(type(self).__name__)
        self._depth = 0
        self._clip_depth = 0

    def save(self) -> None:
        self._depth += 1

    def restore(self) -> None:
        if self._depth > 0:
            self._depth -= 1

    def clip_rect(self, rect: Rect) -> None:
        self._clip_depth += 1

    def clip_path(self, path: Path) -> None:
        self._clip_depth += 1

    def path(self, path: Path, paint: Paint) -> None:
        return None

    def image(self, img: RasterImage, dst: Rect) -> None:
        return None

    def glyph_run(self, run: GlyphRun, color: Color) -> None:
        return None

    def measure_text(self, text: str, size: float, font_key: str = "") -> TextMetrics:
        return TextMetrics()

    def text_drawer(self) -> TextDrawer | None:
        return None

    def png_exporter(self) -> PNGExporter | None:
        return None


@dataclass(frozen=True)
class RecordedPath:
    path: Path
    paint: Paint
    clip: Rect | None


class RecordingRenderer(NullRenderer):
    """Null renderer that remembers what a traversal submitted."""

    def __init__(self) -> None:
        super().__init__()
        self.paths: list[RecordedPath] = []
        self.events: list[str] = []
        self._clips: list[Rect | None] = [None]

    def begin(self, viewport: Rect) -> None:
        super().begin(viewport)
        self._clips = [None]
        self.events.append("begin")

    def end(self) -> None:
        super().end()
        self.events.append("end")

    def save(self) -> None:
        super().save()
        self._clips.append(self._clips[-1])
        self.events.append("save")

    def restore(self) -> None:
        super().restore()
        if len(self._clips) > 1:
            self._clips.pop()
        self.events.append("restore")

    def clip_rect(self, rect: Rect) -> None:
        super().clip_rect(rect)
        current = self._clips[-1]
        self._clips[-1] = rect if current is None else current.intersect(rect)
        self.events.append("clip_rect")

    def path(self, path: Path, paint: Paint) -> None:
        if not path.validate():
            LOGGER.debug("skipping invalid path (%d verbs, %d points)", len(path.verbs), len(path.points))
            return
        self.paths.append(RecordedPath(path=path.copy(), paint=paint, clip=self._clips[-1]))
        self.events.append("path")
