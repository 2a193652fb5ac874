from __future__ import annotations

import hashlib

import numpy as np

from strokeplot.paint import Color


def new_canvas(width: int, height: int, color: Color = Color(0.0, 0.0, 0.0, 0.0)) -> np.ndarray:
    """Premultiplied RGBA8 surface shaped (H, W, 4) filled with ``color``."""
    if width <= 0 or height <= 0:
        raise ValueError("width and height must be > 0")
    canvas = np.zeros((height, width, 4), dtype=np.uint8)
    r, g, b, a = color.to_premultiplied_rgba8()
    canvas[:, :, 0] = r
    canvas[:, :, 1] = g
    canvas[:, :, 2] = b
    canvas[:, :, 3] = a
    return canvas


def _source_over(view: np.ndarray, src_rgba: np.ndarray, src_alpha: np.ndarray) -> None:
    """Blend premultiplied float sources (0..255) over a uint8 view, in place."""
    dst = view.astype(np.float64)
    out = src_rgba + dst * (1.0 - src_alpha[:, :, None])
    view[:, :, :] = np.clip(np.floor(out + 0.5), 0, 255).astype(np.uint8)


def composite_coverage(dst: np.ndarray, coverage: np.ndarray, color: Color) -> None:
    if coverage.shape != dst.shape[:2]:
        raise ValueError("coverage shape must match canvas height/width")
    rows = np.flatnonzero(np.any(coverage > 0, axis=1))
    if rows.size == 0:
        return
    cols = np.flatnonzero(np.any(coverage > 0, axis=0))
    y0, y1 = int(rows[0]), int(rows[-1]) + 1
    x0, x1 = int(cols[0]), int(cols[-1]) + 1

    cov = coverage[y0:y1, x0:x1]
    premul = np.asarray([max(0.0, min(1.0, c)) for c in color.premultiplied()], dtype=np.float64)
    src = cov[:, :, None] * premul[None, None, :] * 255.0
    _source_over(dst[y0:y1, x0:x1], src, cov * premul[3])


def blit(dst: np.ndarray, src: np.ndarray, x0: int = 0, y0: int = 0) -> None:
    """Composite a straight-alpha RGBA8 patch onto a premultiplied canvas."""
    h, w, _ = src.shape
    dx0 = max(0, x0)
    dy0 = max(0, y0)
    dx1 = min(dst.shape[1], x0 + w)
    dy1 = min(dst.shape[0], y0 + h)
    if dy0 >= dy1 or dx0 >= dx1:
        return

    patch = src[dy0 - y0 : dy1 - y0, dx0 - x0 : dx1 - x0].astype(np.float64)
    alpha = patch[:, :, 3] / 255.0
    premul = patch.copy()
    premul[:, :, :3] *= alpha[:, :, None]
    _source_over(dst[dy0:dy1, dx0:dx1], premul, alpha)


def unpremultiply(canvas: np.ndarray) -> np.ndarray:
    """Straight-alpha copy of a premultiplied RGBA8 surface."""
    out = canvas.copy()
    alpha = canvas[:, :, 3].astype(np.float64)
    rgb = canvas[:, :, :3].astype(np.float64)
    safe = np.where(alpha > 0, alpha, 1.0)
    straight = np.floor(rgb * 255.0 / safe[:, :, None] + 0.5)
    straight = np.where(alpha[:, :, None] > 0, straight, 0.0)
    out[:, :, :3] = np.clip(straight, 0, 255).astype(np.uint8)
    return out


def frame_digest(canvas: np.ndarray) -> str:
    """SHA-256 of the raw surface bytes together with its shape."""
    digest = hashlib.sha256()
    digest.update(repr(canvas.shape).encode("ascii"))
    digest.update(np.ascontiguousarray(canvas, dtype=np.uint8).tobytes())
    return digest.hexdigest()
