from __future__ import annotations

import io
from pathlib import Path
import tempfile
import unittest

import numpy as np

from svgplot import figure
from svgplot.config import AxisConfig, PlotConfiguration
from svgplot.errors import AutoscaleError, PlotConfigError, PlotDataError, QuantileError
from svgplot.figure import Figure, _AxesBase
from svgplot.limits import LimitClass
from svgplot.scales import AxisRange


class Figure2DTests(unittest.TestCase):
    def _render(self):
        fig = figure()
        ax = fig.axes(title="Squares", x_label="n", y_label="n^2")
        ax.plot([1.0, 4.0, float("inf"), 16.0, 5.0], x=[0.0, 1.0, 2.0, 3.0, float("nan")], label="squares")
        return fig, ax, ax.render()

    def test_ranges_ignore_pairs_at_limit(self) -> None:
        _, ax, result = self._render()
        self.assertEqual((result.x_range.min, result.x_range.max, result.x_range.tick_interval), (0.0, 3.0, 0.5))
        self.assertEqual((result.y_range.min, result.y_range.max, result.y_range.tick_interval), (0.0, 16.0, 2.0))
        self.assertIs(ax.last_render(), result)
        self.assertEqual(ax.last_y_range(), result.y_range)

    def test_limit_points_sit_on_window_edges(self) -> None:
        _, _, result = self._render()
        window = result.layout.plot_window
        points = result.series[0].limit_points
        self.assertEqual(len(points), 2)
        plus_inf, nan_x = points
        self.assertIs(plus_inf.y_class, LimitClass.PLUS_INFINITY)
        self.assertEqual(plus_inf.y, window.y_min)
        self.assertIs(nan_x.x_class, LimitClass.NAN)
        self.assertEqual(nan_x.x, window.x_min)
        self.assertTrue(np.isnan(result.series[0].x[2]))

    def test_kept_points_fall_inside_the_window(self) -> None:
        _, _, result = self._render()
        grown = result.layout.plot_window.inset(-1e-6, -1e-6)
        mapped = result.series[0]
        for x, y in zip(mapped.x.tolist(), mapped.y.tolist()):
            if np.isfinite(x):
                self.assertTrue(grown.contains(x, y))

    def test_svg_output(self) -> None:
        fig, ax, _ = self._render()
        ax.set_title("a < b & c")
        ax.set_legend(True)
        svg = fig.to_svg()
        self.assertTrue(svg.startswith("<?xml"))
        self.assertIn('xmlns="http://www.w3.org/2000/svg"', svg)
        for group in ("imageBackground", "plotBackground", "xAxis", "yAxis", "plotPoints", "limitPoints", "legendEntry0"):
            self.assertIn(f'id="{group}"', svg)
        self.assertIn("a &lt; b &amp; c", svg)
        self.assertTrue(svg.rstrip().endswith("</svg>"))

    def test_write_to_path_and_stream(self) -> None:
        fig, _, _ = self._render()
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "plot.svg"
            fig.write(path)
            self.assertIn("<svg", path.read_text(encoding="utf-8"))
        buf = io.StringIO()
        fig.write(buf)
        self.assertIn("</svg>", buf.getvalue())

    def test_all_nan_x_names_the_axis(self) -> None:
        fig = figure()
        ax = fig.axes()
        ax.plot([1.0, 2.0], x=[float("nan"), float("nan")])
        with self.assertRaises(AutoscaleError) as ctx:
            ax.render()
        self.assertEqual(ctx.exception.axis, "x")

    def test_explicit_range_is_used(self) -> None:
        fig = figure()
        ax = fig.axes()
        ax.plot([1.0, 2.0, 3.0]).set_x_range(0.0, 10.0, interval=2.5)
        result = ax.render()
        self.assertEqual(result.x_range, AxisRange(min=0.0, max=10.0, tick_interval=2.5, tick_count=5))
        self.assertEqual(result.x_ticks.labels, ("0", "2.5", "5", "7.5", "10"))

    def test_x_axis_crosses_at_zero(self) -> None:
        fig = figure()
        ax = fig.axes()
        ax.plot([-3.0, 5.0], x=[0.0, 1.0]).set_x_ticks(side="axis")
        result = ax.render()
        self.assertEqual(result.x_ticks_side, "axis")
        self.assertAlmostEqual(result.x_axis_y, float(result.y_transform.to_pixel(0.0)))

    def test_small_image_degrades(self) -> None:
        fig = figure(60, 40)
        ax = fig.axes(title="Tiny", x_label="x", y_label="y")
        ax.plot([1.0, 2.0, 3.0])
        with self.assertLogs("svgplot.layout", level="WARNING"):
            svg = fig.to_svg()
        self.assertTrue(ax.last_layout().degraded)
        self.assertIn("</svg>", svg)

    def test_area_fill_reaches_zero(self) -> None:
        fig = figure()
        ax = fig.axes()
        ax.area([-2.0, 3.0, 1.0, 4.0], x=[0.0, 1.0, 2.0, 3.0], area_fill=(0, 0, 255, 128)).set_x_ticks(side="axis")
        result = ax.render()
        mapped = result.series[0]
        window = result.layout.plot_window
        self.assertAlmostEqual(mapped.base_y, float(result.y_transform.to_pixel(0.0)))
        self.assertAlmostEqual(mapped.base_y, result.x_axis_y)
        self.assertLess(window.y_min, mapped.base_y)
        self.assertLess(mapped.base_y, window.y_max)
        svg = fig.to_svg()
        self.assertIn('id="series0Area"', svg)
        self.assertIn('fill-opacity="0.5"', svg)
        self.assertIn('id="series0Lines"', svg)

    def test_bars_grow_from_zero(self) -> None:
        fig = figure()
        ax = fig.axes()
        ax.bars([2.0, 5.0, 3.0], x=[1.0, 2.0, 3.0], bar_width=10.0).set_y_autoscale(force_include_zero=True)
        result = ax.render()
        mapped = result.series[0]
        self.assertEqual(result.y_range.min, 0.0)
        self.assertAlmostEqual(mapped.base_y, result.layout.plot_window.y_max)
        self.assertTrue(np.all(mapped.y < mapped.base_y))
        svg = fig.to_svg()
        self.assertIn('id="series0Bars"', svg)
        self.assertNotIn('id="series0Markers"', svg)

    def test_horizontal_sticks(self) -> None:
        fig = figure()
        ax = fig.axes()
        ax.plot([1.0, 2.0, 3.0], x=[-1.0, 2.0, 4.0], bar="y_stick")
        result = ax.render()
        window = result.layout.plot_window
        self.assertAlmostEqual(result.series[0].base_x, float(result.x_transform.to_pixel(0.0)))
        self.assertLess(window.x_min, result.series[0].base_x)
        self.assertIn('id="series0Bars"', fig.to_svg())

    def test_pillow_text_measure_renders(self) -> None:
        fig = figure()
        ax = fig.axes(title="Measured", x_label="x", y_label="y")
        ax.plot([1.0, 4.0, 9.0], label="squares").set_legend(True).set_text_measure("pillow")
        result = ax.render()
        self.assertEqual(result.config.text_measure, "pillow")
        self.assertFalse(result.layout.degraded)
        self.assertTrue(fig.to_svg().rstrip().endswith("</svg>"))


class FigureConfigTests(unittest.TestCase):
    def test_invalid_configuration(self) -> None:
        with self.assertRaises(PlotConfigError):
            AxisConfig(explicit_range=(0.0, 1.0))
        with self.assertRaises(PlotConfigError):
            AxisConfig(autoscale=False)
        with self.assertRaises(PlotConfigError):
            PlotConfiguration(limit_margin=0.5)
        ax = figure().axes()
        with self.assertRaises(PlotConfigError):
            ax.set_x_range(5.0, 1.0)
        with self.assertRaises(PlotConfigError):
            ax.set_y_autoscale(tightness=3.0)

    def test_figure_construction_errors(self) -> None:
        fig = figure()
        fig.axes()
        with self.assertRaises(PlotDataError):
            fig.axes()
        with self.assertRaises(ValueError):
            Figure(kind="3d")  # type: ignore[arg-type]
        with self.assertRaises(ValueError):
            figure(width=0)
        with self.assertRaises(PlotDataError):
            figure().render()
        with self.assertRaises(PlotDataError):
            figure().axes().render()

    def test_bad_series_style(self) -> None:
        ax = figure().axes()
        with self.assertRaises(PlotDataError):
            ax.plot([1.0, 2.0], marker="star")
        with self.assertRaises(PlotDataError):
            ax.plot(points=[(0, 1)], x=[0])
        with self.assertRaises(PlotDataError):
            ax.plot([1.0, 2.0], bar="column")  # type: ignore[arg-type]
        with self.assertRaises(PlotDataError):
            ax.bars([1.0, 2.0], bar_width=0.0)

    def test_base_axes_cannot_be_created(self) -> None:
        with self.assertRaises(TypeError):
            _AxesBase(figure=figure())  # type: ignore[abstract]


class Figure1DTests(unittest.TestCase):
    def test_values_and_limits(self) -> None:
        fig = figure(kind="1d")
        self.assertEqual((fig.width, fig.height), (500, 200))
        ax = fig.axes(title="Spread")
        ax.plot([1.0, 2.0, 3.0, float("inf"), float("-inf")], label="samples")
        result = ax.render()
        window = result.layout.plot_window
        self.assertEqual((result.x_range.min, result.x_range.max), (1.0, 3.0))
        self.assertIsNone(result.y_range)
        mapped = result.series[0]
        finite = np.isfinite(mapped.x)
        np.testing.assert_allclose(mapped.y[finite], window.center[1])
        xs = sorted(p.x for p in mapped.limit_points)
        self.assertEqual(xs, [window.x_min, window.x_max])
        self.assertIn('id="plotPoints"', fig.to_svg())


class BoxplotTests(unittest.TestCase):
    HOAGLIN = [53.0, 56.0, 75.0, 81.0, 82.0, 85.0, 87.0, 89.0, 95.0, 99.0, 100.0]

    def test_boxes_are_drawn_upward(self) -> None:
        fig = figure(kind="boxplot")
        ax = fig.axes(title="Scores")
        ax.plot(self.HOAGLIN + [200.0, 130.0], label="scores")
        ax.plot([1.0, 2.0, 3.0, 4.0], label="small")
        result = ax.render()
        first, second = result.boxes
        self.assertGreater(first.q1_y, first.median_y)
        self.assertGreater(first.median_y, first.q3_y)
        self.assertEqual(len(first.mild_outliers_y), 1)
        self.assertEqual(len(first.extreme_outliers_y), 1)
        self.assertLess(first.center_x, second.center_x)
        self.assertEqual(result.x_ticks.labels, ("scores", "small"))
        self.assertLessEqual(result.y_range.min, 1.0)
        self.assertGreaterEqual(result.y_range.max, 200.0)
        svg = fig.to_svg()
        self.assertIn('id="box0Median"', svg)
        self.assertIn('id="box0ExtremeOutliers"', svg)

    def test_unusable_series_is_named(self) -> None:
        ax = figure(kind="boxplot").axes()
        with self.assertRaises(QuantileError) as ctx:
            ax.plot([float("nan"), float("inf")], label="broken")
        self.assertIn("'broken'", str(ctx.exception))
        with self.assertRaises(QuantileError):
            ax.plot([1.0, 2.0], rule="nearest")


if __name__ == "__main__":
    unittest.main()
