from __future__ import annotations

from strokeplot.figure import ColorLike, Figure, coerce_color
from strokeplot.paint import Color


DEFAULT_ASPECT_RATIO = 4.0 / 3.0
DEFAULT_WIDTH = 640


def figure(
    width: int | None = None,
    height: int | None = None,
    *,
    background: ColorLike = Color(1.0, 1.0, 1.0, 1.0),
    aspect_ratio: float = DEFAULT_ASPECT_RATIO,
) -> Figure:
    """Create a figure; a missing dimension follows ``aspect_ratio``."""
    if aspect_ratio <= 0:
        raise ValueError("aspect_ratio must be > 0")
    if width is None and height is None:
        width = DEFAULT_WIDTH
    if width is None and height is not None:
        if height <= 0:
            raise ValueError("height must be > 0")
        width = max(1, int(round(height * aspect_ratio)))
    elif width is not None and height is None:
        if width <= 0:
            raise ValueError("width must be > 0")
        height = max(1, int(round(width / aspect_ratio)))
    assert width is not None and height is not None
    return Figure(width=width, height=height, background=coerce_color(background))
