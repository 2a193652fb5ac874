from .canvas import blit, composite_coverage, frame_digest, new_canvas, unpremultiply
from .draw_text import draw_text, text_size
from .fill import rasterize_nonzero
from .renderer import RasterRenderer

__all__ = [
    "RasterRenderer",
    "blit",
    "composite_coverage",
    "draw_text",
    "frame_digest",
    "new_canvas",
    "rasterize_nonzero",
    "text_size",
    "unpremultiply",
]
