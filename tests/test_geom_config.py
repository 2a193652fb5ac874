from __future__ import annotations

import math
from pathlib import Path as FilePath
import tempfile
import unittest

from strokeplot.config import DEFAULT_SETTINGS, StrokeSettings, load_settings, settings_from_mapping
from strokeplot.geom import Affine, Path, Point, Rect, Verb
from strokeplot.paint import BLACK, Color, Paint
from strokeplot.quantize import QUANTIZATION_EPSILON, quantize, quantize_dashes, quantize_path
from strokeplot.raster import RasterRenderer
from strokeplot.stroke import stroke_to_path


class GeometryTests(unittest.TestCase):
    def test_validate_checks_point_arity(self) -> None:
        path = Path().move_to(Point(0, 0)).line_to(Point(1, 0)).quad_to(Point(2, 1), Point(3, 0)).close()
        self.assertTrue(path.validate())
        self.assertEqual(len(path.points), 4)

        broken = Path(verbs=[Verb.MOVE_TO, Verb.LINE_TO], points=[Point(0, 0)])
        self.assertFalse(broken.validate())

        extra = Path(verbs=[Verb.MOVE_TO], points=[Point(0, 0), Point(1, 1)])
        self.assertFalse(extra.validate())

    def test_iter_commands_groups_points_per_verb(self) -> None:
        path = Path().move_to(Point(0, 0)).cubic_to(Point(1, 1), Point(2, 1), Point(3, 0)).close()
        commands = list(path.iter_commands())
        self.assertEqual([verb for verb, _ in commands], [Verb.MOVE_TO, Verb.CUBIC_TO, Verb.CLOSE])
        self.assertEqual(len(commands[1][1]), 3)
        self.assertEqual(commands[2][1], ())

    def test_from_points_and_bounds(self) -> None:
        path = Path.from_points([Point(1, 2), Point(5, -1), Point(3, 7)], closed=True)
        self.assertEqual(path.verbs, [Verb.MOVE_TO, Verb.LINE_TO, Verb.LINE_TO, Verb.CLOSE])
        self.assertEqual(path.bounds(), Rect(Point(1, -1), Point(5, 7)))
        self.assertIsNone(Path().bounds())

    def test_clear_and_inflate(self) -> None:
        path = Path.from_points([Point(0, 0), Point(2, 3)])
        box = path.bounds()
        assert box is not None
        self.assertEqual(box.inflate(1, 2), Rect(Point(-1, -2), Point(3, 5)))
        path.clear()
        self.assertTrue(path.is_empty())
        self.assertEqual(path.points, [])

    def test_rect_contains_is_max_exclusive(self) -> None:
        r = Rect.from_xywh(0, 0, 10, 5)
        self.assertTrue(r.contains(Point(0, 0)))
        self.assertTrue(r.contains(Point(9.999, 4.999)))
        self.assertFalse(r.contains(Point(10, 0)))
        self.assertFalse(r.contains(Point(0, 5)))

    def test_disjoint_intersection_collapses_instead_of_inverting(self) -> None:
        a = Rect(Point(0, 0), Point(1, 1))
        b = Rect(Point(2, 2), Point(3, 3))
        out = a.intersect(b)
        self.assertTrue(out.is_empty())
        self.assertGreaterEqual(out.width, 0.0)
        self.assertGreaterEqual(out.height, 0.0)

    def test_affine_mul_applies_right_operand_first(self) -> None:
        m = Affine.translate(5, 0).mul(Affine.scale(2))
        self.assertEqual(m.apply(Point(1, 1)), Point(7, 2))

    def test_affine_invert(self) -> None:
        m = Affine(a=2, b=0.5, c=-1, d=3, e=4, f=-2)
        inv = m.invert()
        assert inv is not None
        p = inv.apply(m.apply(Point(3.5, -1.25)))
        self.assertAlmostEqual(p.x, 3.5, places=9)
        self.assertAlmostEqual(p.y, -1.25, places=9)
        self.assertIsNone(Affine(a=1, b=2, c=2, d=4).invert())

    def test_transformed_keeps_verbs(self) -> None:
        path = Path.from_points([Point(0, 0), Point(1, 1)])
        moved = path.transformed(Affine.translate(10, 20))
        self.assertEqual(moved.verbs, path.verbs)
        self.assertEqual(moved.points, [Point(10, 20), Point(11, 21)])


class QuantizeTests(unittest.TestCase):
    def test_quantize_snaps_to_grid(self) -> None:
        self.assertEqual(QUANTIZATION_EPSILON, 1e-6)
        self.assertAlmostEqual(quantize(0.1234567891), 0.123457, places=12)
        self.assertEqual(quantize(0.0), 0.0)

    def test_quantize_is_idempotent(self) -> None:
        for v in (0.1234567891, -3.99999951, 1e6 + 0.3333333, 7.0, -0.0000004):
            once = quantize(v)
            self.assertEqual(quantize(once), once)

    def test_quantize_passes_non_finite_through(self) -> None:
        self.assertTrue(math.isnan(quantize(math.nan)))
        self.assertEqual(quantize(math.inf), math.inf)

    def test_quantize_leaves_values_beyond_the_grid_alone(self) -> None:
        self.assertEqual(quantize(1e303), 1e303)
        self.assertEqual(quantize(-1e303), -1e303)
        self.assertEqual(quantize(quantize(1e303)), 1e303)

    def test_huge_coordinates_stroke_and_render(self) -> None:
        line = Path.from_points([Point(0, 0), Point(1e303, 0)])
        paint = Paint(line_width=2.0, stroke=BLACK)
        outline = stroke_to_path(line, paint)
        self.assertFalse(outline.is_empty())
        self.assertEqual(outline.bounds(), Rect(Point(0, -1), Point(1e303, 1)))

        renderer = RasterRenderer(10, 10)
        renderer.begin(Rect.from_xywh(0, 0, 10, 10))
        renderer.path(line, paint)
        renderer.end()
        self.assertEqual(int(renderer.surface[0, 5, 3]), 255)
        self.assertEqual(int(renderer.surface[5, 5, 3]), 0)

    def test_quantize_path_and_dashes(self) -> None:
        path = Path.from_points([Point(0.00000049, 1.0000006)])
        q = quantize_path(path)
        self.assertEqual(q.verbs, path.verbs)
        self.assertAlmostEqual(q.points[0].x, 0.0, places=12)
        self.assertAlmostEqual(q.points[0].y, 1.000001, places=12)
        self.assertEqual(quantize_dashes([2, 1]), [2.0, 1.0])


class PaintTests(unittest.TestCase):
    def test_premultiplied_rgba8_rounds_half_up(self) -> None:
        color = Color(1.0, 0.5, 0.0, 0.5)
        self.assertEqual(color.premultiplied(), (0.5, 0.25, 0.0, 0.5))
        self.assertEqual(color.to_premultiplied_rgba8(), (128, 64, 0, 128))
        self.assertEqual(color.to_rgba8(), (255, 128, 0, 128))

    def test_from_rgba8(self) -> None:
        color = Color.from_rgba8(255, 0, 51)
        self.assertEqual(color.a, 1.0)
        self.assertAlmostEqual(color.b, 0.2, places=9)

    def test_paint_flags(self) -> None:
        self.assertFalse(Paint().has_fill())
        self.assertFalse(Paint(stroke=Color(0, 0, 0, 1)).has_stroke())
        self.assertTrue(Paint(line_width=1.0, stroke=Color(0, 0, 0, 1)).has_stroke())


class ConfigTests(unittest.TestCase):
    def test_defaults(self) -> None:
        self.assertEqual(DEFAULT_SETTINGS.flatten_tolerance, 0.5)
        self.assertEqual(DEFAULT_SETTINGS.min_param_span, 0.01)
        self.assertEqual(DEFAULT_SETTINGS.parallel_dot_threshold, 0.999)
        self.assertEqual(
            (DEFAULT_SETTINGS.round_cap_min_segments, DEFAULT_SETTINGS.round_cap_max_segments),
            (8, 32),
        )

    def test_invalid_settings_raise(self) -> None:
        with self.assertRaises(ValueError):
            StrokeSettings(flatten_tolerance=0.0)
        with self.assertRaises(ValueError):
            StrokeSettings(parallel_dot_threshold=1.5)
        with self.assertRaises(ValueError):
            DEFAULT_SETTINGS.replace(round_cap_min_segments=40)

    def test_replace_returns_validated_copy(self) -> None:
        tuned = DEFAULT_SETTINGS.replace(flatten_tolerance=0.1)
        self.assertEqual(tuned.flatten_tolerance, 0.1)
        self.assertEqual(tuned.to_dict()["flatten_tolerance"], 0.1)
        self.assertEqual(DEFAULT_SETTINGS.flatten_tolerance, 0.5)

    def test_load_settings_reads_stroke_table(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = FilePath(tmp) / "strokeplot.toml"
            path.write_text("[stroke]\nflatten_tolerance = 0.25\nround_cap_max_segments = 16\n", encoding="utf-8")
            settings = load_settings(path)
        self.assertEqual(settings.flatten_tolerance, 0.25)
        self.assertEqual(settings.round_cap_max_segments, 16)
        self.assertIsInstance(settings.round_cap_max_segments, int)
        self.assertEqual(settings.min_param_span, DEFAULT_SETTINGS.min_param_span)

    def test_load_settings_without_table_uses_defaults(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = FilePath(tmp) / "empty.toml"
            path.write_text("", encoding="utf-8")
            self.assertEqual(load_settings(path), DEFAULT_SETTINGS)

    def test_mapping_rejects_unknown_and_non_numeric(self) -> None:
        with self.assertRaises(ValueError):
            settings_from_mapping({"tolerance": 0.5})
        with self.assertRaises(ValueError):
            settings_from_mapping({"flatten_tolerance": "fine"})
        with self.assertRaises(ValueError):
            settings_from_mapping({"flatten_tolerance": True})
        with self.assertRaises(ValueError):
            settings_from_mapping({"round_cap_min_segments": 8.5})


if __name__ == "__main__":
    unittest.main()
