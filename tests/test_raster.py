from __future__ import annotations

from pathlib import Path as FilePath
import tempfile
import unittest

import numpy as np
from PIL import Image

from strokeplot.errors import RenderSessionError
from strokeplot.geom import Path, Point, Rect, Verb
from strokeplot.paint import BLACK, TRANSPARENT, Color, LineCap, LineJoin, Paint
from strokeplot.raster import RasterRenderer, composite_coverage, frame_digest, new_canvas, rasterize_nonzero, unpremultiply
from strokeplot.render import RasterImage, TextMetrics

RED = Color(1.0, 0.0, 0.0, 1.0)


def _poly(*pts: tuple[float, float]) -> Path:
    return Path.from_points([Point(x, y) for x, y in pts], closed=True)


def _box(x0: float, y0: float, x1: float, y1: float) -> Path:
    return _poly((x0, y0), (x1, y0), (x1, y1), (x0, y1))


class FillTests(unittest.TestCase):
    def test_axis_aligned_rect_coverage(self) -> None:
        cov = rasterize_nonzero(_box(2, 2, 6, 5), 10, 10)
        self.assertEqual(cov.shape, (10, 10))
        self.assertAlmostEqual(float(cov.sum()), 12.0, places=6)
        self.assertEqual(cov[3, 3], 1.0)
        self.assertEqual(cov[0, 0], 0.0)
        self.assertEqual(cov[3, 6], 0.0)

    def test_half_pixel_edge(self) -> None:
        cov = rasterize_nonzero(_box(2.5, 0, 4, 1), 6, 2)
        self.assertAlmostEqual(float(cov[0, 2]), 0.5, places=6)
        self.assertAlmostEqual(float(cov[0, 3]), 1.0, places=6)
        self.assertEqual(float(cov[1, 2]), 0.0)

    def test_shape_left_of_surface_still_covers_first_columns(self) -> None:
        cov = rasterize_nonzero(_box(-5, 0, 3, 2), 6, 2)
        np.testing.assert_allclose(cov[:, :3], 1.0)
        np.testing.assert_allclose(cov[:, 3:], 0.0)

    def test_nonzero_overlap_is_clamped(self) -> None:
        path = _box(0, 0, 6, 6).extend(_box(3, 3, 9, 9))
        cov = rasterize_nonzero(path, 10, 10)
        self.assertLessEqual(float(cov.max()), 1.0)
        self.assertEqual(cov[4, 4], 1.0)

    def test_opposite_winding_makes_a_hole(self) -> None:
        path = _box(0, 0, 10, 10).extend(_poly((3, 3), (3, 7), (7, 7), (7, 3)))
        cov = rasterize_nonzero(path, 10, 10)
        self.assertEqual(cov[5, 5], 0.0)
        self.assertEqual(cov[1, 1], 1.0)

    def test_clip_limits_coverage(self) -> None:
        cov = rasterize_nonzero(_box(0, 0, 10, 10), 10, 10, clip=Rect(Point(0, 0), Point(4, 10)))
        np.testing.assert_allclose(cov[:, :4], 1.0)
        np.testing.assert_allclose(cov[:, 4:], 0.0)

    def test_open_subpaths_are_closed_for_filling(self) -> None:
        path = Path().move_to(Point(0, 0)).line_to(Point(4, 0)).line_to(Point(4, 4)).line_to(Point(0, 4))
        cov = rasterize_nonzero(path, 4, 4)
        np.testing.assert_allclose(cov, 1.0)

    def test_rejects_empty_surface(self) -> None:
        with self.assertRaises(ValueError):
            rasterize_nonzero(_box(0, 0, 1, 1), 0, 10)


class CanvasTests(unittest.TestCase):
    def test_new_canvas_is_premultiplied(self) -> None:
        canvas = new_canvas(2, 1, Color(1.0, 0.0, 0.0, 0.5))
        self.assertEqual(canvas.shape, (1, 2, 4))
        self.assertEqual(canvas.dtype, np.uint8)
        self.assertEqual(tuple(int(v) for v in canvas[0, 0]), (128, 0, 0, 128))

    def test_source_over_transparent(self) -> None:
        canvas = new_canvas(1, 1)
        composite_coverage(canvas, np.ones((1, 1)), Color(1.0, 0.0, 0.0, 0.5))
        self.assertEqual(tuple(int(v) for v in canvas[0, 0]), (128, 0, 0, 128))

    def test_source_over_white(self) -> None:
        canvas = new_canvas(1, 1, Color(1.0, 1.0, 1.0, 1.0))
        composite_coverage(canvas, np.ones((1, 1)), Color(1.0, 0.0, 0.0, 0.5))
        self.assertEqual(tuple(int(v) for v in canvas[0, 0]), (255, 128, 128, 255))

    def test_zero_coverage_leaves_canvas(self) -> None:
        canvas = new_canvas(3, 3, Color(0.2, 0.4, 0.6, 1.0))
        before = canvas.copy()
        composite_coverage(canvas, np.zeros((3, 3)), RED)
        np.testing.assert_array_equal(canvas, before)

    def test_coverage_shape_mismatch(self) -> None:
        with self.assertRaises(ValueError):
            composite_coverage(new_canvas(3, 3), np.ones((2, 3)), RED)

    def test_unpremultiply(self) -> None:
        canvas = new_canvas(1, 1, Color(1.0, 0.0, 0.0, 0.5))
        self.assertEqual(tuple(int(v) for v in unpremultiply(canvas)[0, 0]), (255, 0, 0, 128))
        self.assertEqual(tuple(int(v) for v in unpremultiply(new_canvas(1, 1))[0, 0]), (0, 0, 0, 0))

    def test_frame_digest(self) -> None:
        a = new_canvas(4, 4, RED)
        b = new_canvas(4, 4, RED)
        self.assertEqual(frame_digest(a), frame_digest(b))
        b[0, 0, 0] = 0
        self.assertNotEqual(frame_digest(a), frame_digest(b))
        self.assertNotEqual(frame_digest(new_canvas(2, 8)), frame_digest(new_canvas(8, 2)))


class RasterRendererTests(unittest.TestCase):
    def _renderer(self, w: int = 10, h: int = 10) -> RasterRenderer:
        r = RasterRenderer(w, h, TRANSPARENT)
        r.begin(Rect.from_xywh(0, 0, w, h))
        return r

    def test_session_protocol(self) -> None:
        r = RasterRenderer(4, 4)
        with self.assertRaises(RenderSessionError):
            r.end()
        r.begin(Rect.from_xywh(0, 0, 4, 4))
        self.assertTrue(r.active)
        with self.assertRaises(RenderSessionError):
            r.begin(Rect.from_xywh(0, 0, 4, 4))
        r.end()
        self.assertFalse(r.active)
        r.begin(Rect.from_xywh(0, 0, 4, 4))
        r.end()

    def test_restore_on_empty_stack_is_noop(self) -> None:
        r = self._renderer()
        r.restore()
        self.assertEqual(r.depth, 0)
        self.assertIsNone(r.current_clip())

    def test_fill_path(self) -> None:
        r = self._renderer()
        r.path(_box(2, 2, 6, 5), Paint(fill=RED))
        self.assertEqual(tuple(int(v) for v in r.surface[3, 3]), (255, 0, 0, 255))
        self.assertEqual(int(r.surface[0, 0, 3]), 0)
        np.testing.assert_array_equal(r.premultiplied_rgba(), r.surface)

    def test_invalid_path_is_skipped(self) -> None:
        r = self._renderer()
        before = frame_digest(r.surface)
        r.path(Path(verbs=[Verb.MOVE_TO, Verb.LINE_TO], points=[Point(0, 0)]), Paint(fill=RED))
        self.assertEqual(frame_digest(r.surface), before)

    def test_clip_rect_and_restore(self) -> None:
        r = self._renderer()
        r.save()
        r.clip_rect(Rect(Point(0, 0), Point(5, 10)))
        r.path(_box(0, 0, 10, 10), Paint(fill=RED))
        self.assertTrue(np.all(r.surface[:, :5, 3] == 255))
        self.assertTrue(np.all(r.surface[:, 5:, 3] == 0))
        r.restore()
        self.assertIsNone(r.current_clip())
        r.path(_box(0, 0, 10, 10), Paint(fill=RED))
        self.assertTrue(np.all(r.surface[:, :, 3] == 255))

    def test_nested_clips_intersect(self) -> None:
        r = self._renderer()
        r.clip_rect(Rect(Point(0, 0), Point(6, 10)))
        r.clip_rect(Rect(Point(4, 0), Point(10, 10)))
        r.path(_box(0, 0, 10, 10), Paint(fill=RED))
        self.assertTrue(np.all(r.surface[:, 4:6, 3] == 255))
        self.assertEqual(int(r.surface[:, :4, 3].max()), 0)
        self.assertEqual(int(r.surface[:, 6:, 3].max()), 0)

    def test_clip_path_uses_bounds(self) -> None:
        r = self._renderer()
        r.clip_path(_poly((2, 2), (5, 2), (2, 5)))
        r.path(_box(0, 0, 10, 10), Paint(fill=RED))
        self.assertEqual(int(r.surface[3, 3, 3]), 255)
        self.assertEqual(int(r.surface[6, 6, 3]), 0)

    def test_stroked_line(self) -> None:
        r = self._renderer()
        path = Path.from_points([Point(1, 5), Point(9, 5)])
        r.path(path, Paint(line_width=2.0, line_cap=LineCap.BUTT, stroke=BLACK))
        self.assertEqual(int(r.surface[4, 5, 3]), 255)
        self.assertEqual(int(r.surface[5, 5, 3]), 255)
        self.assertEqual(int(r.surface[7, 5, 3]), 0)
        self.assertEqual(int(r.surface[5, 0, 3]), 0)

    def test_stroked_ring_leaves_interior_empty(self) -> None:
        r = self._renderer(20, 20)
        r.path(_box(5, 5, 15, 15), Paint(line_width=2.0, line_join=LineJoin.MITER, stroke=BLACK))
        self.assertEqual(int(r.surface[10, 5, 3]), 255)
        self.assertEqual(int(r.surface[10, 10, 3]), 0)

    def test_drawing_is_deterministic(self) -> None:
        digests = []
        for _ in range(2):
            r = self._renderer(32, 32)
            path = Path().move_to(Point(2.3, 3.1)).cubic_to(Point(10, 30), Point(20, -5), Point(29.7, 28.2))
            r.path(path, Paint(line_width=2.5, line_join=LineJoin.ROUND, line_cap=LineCap.ROUND, stroke=RED))
            r.end()
            digests.append(frame_digest(r.surface))
        self.assertEqual(digests[0], digests[1])

    def test_image_nearest_neighbour(self) -> None:
        pixels = np.array(
            [
                [[255, 0, 0, 255], [0, 255, 0, 255]],
                [[0, 0, 255, 255], [255, 255, 255, 255]],
            ],
            dtype=np.uint8,
        )
        self.assertEqual(RasterImage(pixels).size(), (2, 2))
        r = self._renderer(6, 6)
        r.image(RasterImage(pixels), Rect(Point(0, 0), Point(4, 4)))
        self.assertEqual(tuple(int(v) for v in r.surface[0, 0]), (255, 0, 0, 255))
        self.assertEqual(tuple(int(v) for v in r.surface[0, 3]), (0, 255, 0, 255))
        self.assertEqual(tuple(int(v) for v in r.surface[3, 0]), (0, 0, 255, 255))
        self.assertEqual(tuple(int(v) for v in r.surface[3, 3]), (255, 255, 255, 255))
        self.assertEqual(int(r.surface[5, 5, 3]), 0)

    def test_raster_image_validates_pixels(self) -> None:
        with self.assertRaises(ValueError):
            RasterImage(np.zeros((2, 2, 3), dtype=np.uint8))
        with self.assertRaises(ValueError):
            RasterImage(np.zeros((2, 2, 4), dtype=np.float32))

    def test_measure_text(self) -> None:
        r = self._renderer()
        self.assertEqual(r.measure_text("", 12.0), TextMetrics())
        metrics = r.measure_text("abc", 16.0)
        self.assertGreater(metrics.width, 0.0)
        self.assertGreater(metrics.height, 0.0)

    def test_text_drawer_draws_antialiased_glyphs(self) -> None:
        r = self._renderer(120, 40)
        drawer = r.text_drawer()
        drawer.draw_text("Stroke", Point(5, 30), 20.0, BLACK)
        alpha = r.surface[:, :, 3]
        self.assertTrue(np.any(alpha > 0))
        self.assertEqual(int(alpha[0, 119]), 0)

    def test_png_export(self) -> None:
        r = self._renderer(8, 6)
        r.path(_box(0, 0, 4, 6), Paint(fill=RED))
        r.end()
        with tempfile.TemporaryDirectory() as tmp:
            out = FilePath(tmp) / "frame.png"
            r.png_exporter().save_png(out)
            with Image.open(out) as img:
                self.assertEqual(img.size, (8, 6))
                self.assertEqual(img.mode, "RGBA")
                self.assertEqual(img.getpixel((1, 1)), (255, 0, 0, 255))


if __name__ == "__main__":
    unittest.main()
