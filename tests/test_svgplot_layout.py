from __future__ import annotations

import itertools
import unittest

from svgplot.layout import (
    LabelExtents,
    LayoutFlags,
    Margins,
    Rect,
    legend_box_size,
    legend_entry_positions,
    resolve_layout,
    resolve_x_ticks_side,
    x_axis_line_y,
    y_axis_line_x,
)
from svgplot.scales import AxisRange
from svgplot.text_metrics import EstimatedTextMeasure, PillowTextMeasure, glyph_count, rotated_extent
from svgplot.transform import AxisTransform


EXTENTS = LabelExtents(
    title_height=18.0,
    x_label_height=14.0,
    y_label_width=14.0,
    x_value_label_width=20.0,
    x_value_label_height=14.0,
    y_value_label_width=30.0,
    y_value_label_height=14.0,
    x_tick_length=5.0,
    y_tick_length=5.0,
    legend_size=(80.0, 60.0),
)


def _overlaps(a: Rect, b: Rect) -> bool:
    return a.x_min < b.x_max and b.x_min < a.x_max and a.y_min < b.y_max and b.y_min < a.y_max


def _bands(result) -> list[Rect]:
    candidates = [
        result.title_band,
        result.legend_box,
        result.x_label_band,
        result.y_label_band,
        result.x_value_band,
        result.y_value_band,
        result.plot_window,
    ]
    return [band for band in candidates if band is not None]


class ResolveLayoutTests(unittest.TestCase):
    def test_default_layout_positions(self) -> None:
        result = resolve_layout((500, 400), Margins(), LayoutFlags(legend_on=True), EXTENTS)
        self.assertFalse(result.degraded)
        self.assertEqual(result.title_band, Rect(2.0, 2.0, 498.0, 47.0))
        self.assertEqual(result.legend_box, Rect(408.0, 54.0, 488.0, 114.0))
        self.assertEqual(result.plot_window, Rect(75.0, 54.0, 405.0, 344.0))

    def test_regions_do_not_overlap(self) -> None:
        for place in ("outside_right", "outside_left", "outside_top", "outside_bottom", "nowhere"):
            with self.subTest(place=place):
                result = resolve_layout(
                    (500, 400),
                    Margins(),
                    LayoutFlags(legend_on=True, legend_place=place),
                    EXTENTS,
                )
                self.assertFalse(result.degraded)
                for a, b in itertools.combinations(_bands(result), 2):
                    self.assertFalse(_overlaps(a, b), f"{a} overlaps {b}")
                for band in _bands(result):
                    self.assertTrue(result.image.contains_rect(band))

    def test_disabled_regions_are_absent(self) -> None:
        flags = LayoutFlags(title_on=False, x_label_on=False, y_label_on=False, x_value_labels_on=False, y_value_labels_on=False)
        result = resolve_layout((300, 200), Margins(), flags, EXTENTS)
        self.assertIsNone(result.title_band)
        self.assertIsNone(result.legend_box)
        self.assertIsNone(result.x_label_band)
        self.assertIsNone(result.y_value_band)
        self.assertGreater(result.plot_window.width, 250.0)

    def test_inside_legend_sits_in_plot_window(self) -> None:
        result = resolve_layout((500, 400), Margins(), LayoutFlags(legend_on=True, legend_place="inside"), EXTENTS)
        self.assertTrue(result.plot_window.contains_rect(result.legend_box))
        self.assertEqual(result.legend_box.x_max, result.plot_window.x_max - 3.0)

    def test_somewhere_legend_uses_requested_corner(self) -> None:
        result = resolve_layout(
            (500, 400),
            Margins(),
            LayoutFlags(legend_on=True, legend_place="somewhere"),
            EXTENTS,
            legend_position=(100.0, 120.0),
        )
        self.assertEqual(result.legend_box, Rect(100.0, 120.0, 180.0, 180.0))

    def test_tiny_image_degrades_instead_of_raising(self) -> None:
        with self.assertLogs("svgplot.layout", level="WARNING") as logs:
            result = resolve_layout((30, 20), Margins(), LayoutFlags(legend_on=True), EXTENTS)
        self.assertTrue(result.degraded)
        self.assertEqual((result.plot_window.width, result.plot_window.height), (1.0, 1.0))
        self.assertTrue(result.image.contains_rect(result.plot_window))
        self.assertTrue(any("collapsed" in line for line in logs.output))

    def test_invalid_flags_raise(self) -> None:
        with self.assertRaises(ValueError):
            LayoutFlags(legend_place="center")  # type: ignore[arg-type]
        with self.assertRaises(ValueError):
            LayoutFlags(x_ticks_side="left")  # type: ignore[arg-type]
        with self.assertRaises(ValueError):
            Margins(border_width=-1.0)


class AxisLineTests(unittest.TestCase):
    def setUp(self) -> None:
        self.window = Rect(0.0, 0.0, 100.0, 100.0)

    def _y_transform(self, axis_range: AxisRange) -> AxisTransform:
        return AxisTransform.from_range(axis_range, (self.window.y_min, self.window.y_max), invert=True)

    def test_axis_side_follows_zero(self) -> None:
        straddling = AxisRange(min=-1.0, max=1.0, tick_interval=0.5, tick_count=5)
        self.assertEqual(x_axis_line_y(self.window, self._y_transform(straddling), straddling, "axis"), 50.0)
        positive = AxisRange(min=2.0, max=4.0, tick_interval=1.0, tick_count=3)
        self.assertEqual(resolve_x_ticks_side("axis", positive), "bottom")
        self.assertEqual(x_axis_line_y(self.window, self._y_transform(positive), positive, "axis"), 100.0)
        negative = AxisRange(min=-4.0, max=-2.0, tick_interval=1.0, tick_count=3)
        self.assertEqual(x_axis_line_y(self.window, self._y_transform(negative), negative, "axis"), 0.0)

    def test_fixed_sides(self) -> None:
        x_range = AxisRange(min=-5.0, max=5.0, tick_interval=1.0, tick_count=11)
        transform = AxisTransform.from_range(x_range, (self.window.x_min, self.window.x_max))
        self.assertEqual(y_axis_line_x(self.window, transform, x_range, "left"), 0.0)
        self.assertEqual(y_axis_line_x(self.window, transform, x_range, "right"), 100.0)
        self.assertEqual(y_axis_line_x(self.window, transform, x_range, "axis"), 50.0)


class LegendAndTextTests(unittest.TestCase):
    def test_legend_box_size(self) -> None:
        self.assertEqual(legend_box_size(["a", "bb"], font_size=10.0), (43.0, 50.0))
        self.assertEqual(legend_box_size(["a", "bb"], header="Series", font_size=10.0), (67.0, 70.0))
        wide, _ = legend_box_size(["a", "bb"], font_size=10.0, lines_on=True)
        self.assertEqual(wide, 58.0)

    def test_legend_rows_stack_downward(self) -> None:
        rows = legend_entry_positions(Rect(0.0, 0.0, 60.0, 50.0), 2, header=False, font_size=10.0)
        self.assertEqual(rows, [(13.0, 23.0, 15.0), (13.0, 23.0, 35.0)])

    def test_text_estimates(self) -> None:
        self.assertEqual(glyph_count("x &#x00B1; y"), 5)
        self.assertEqual(EstimatedTextMeasure().text_size("abcd", font_size=10.0), (24.0, 10.0))
        self.assertEqual(EstimatedTextMeasure().text_size("abcd", font_size=10.0, rotate_deg=90), (10.0, 24.0))
        w, h = rotated_extent(10.0, 0.0, 45.0)
        self.assertAlmostEqual(w, h)

    def test_pillow_measure(self) -> None:
        measure = PillowTextMeasure()
        w, h = measure.text_size("Hello", font_size=20.0)
        self.assertGreater(w, 0.0)
        self.assertGreaterEqual(h, 20.0)
        self.assertEqual(measure.text_size("Hello", font_size=20.0, rotate_deg=90), (h, w))
        self.assertGreater(measure.text_size("Hello", font_size=20.0, rotate_deg=90)[1], h)
        self.assertGreater(measure.text_size("Hello, world", font_size=20.0)[0], w)
        self.assertEqual(measure.text_size("", font_size=12.0), (0.0, 12.0))

    def test_rect_validation(self) -> None:
        with self.assertRaises(ValueError):
            Rect(10.0, 0.0, 5.0, 10.0)
        self.assertEqual(Rect.clamped(10.0, 0.0, 5.0, 10.0).width, 0.0)
        self.assertEqual(Rect(0.0, 0.0, 10.0, 4.0).inset(1.0, 1.0), Rect(1.0, 1.0, 9.0, 3.0))


if __name__ == "__main__":
    unittest.main()
