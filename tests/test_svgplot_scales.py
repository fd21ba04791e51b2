from __future__ import annotations

import logging
import math
import unittest

import numpy as np

from svgplot.errors import AutoscaleError, PlotConfigError
from svgplot.scales import (
    AxisRange,
    ScaleOptions,
    StepSystem,
    data_bounds,
    format_tick,
    minor_tick_values,
    scale_axis,
    scale_sample,
    scale_xy,
    step_family,
    tick_labels,
)


def _as_tuple(r: AxisRange) -> tuple[float, float, float, int]:
    return (r.min, r.max, r.tick_interval, r.tick_count)


class ScaleAxisTests(unittest.TestCase):
    def test_decimal_steps_cover_small_range(self) -> None:
        r = scale_axis(0.2, 6.5, ScaleOptions(min_ticks=6, step_system=StepSystem.DECIMAL))
        self.assertEqual(_as_tuple(r), (0.0, 7.0, 1.0, 8))

    def test_forced_zero_with_tightness(self) -> None:
        sample = [2.3, 3.4, 4.5, 5.6, 6.7, 7.8]
        options = ScaleOptions(force_include_zero=True, min_ticks=10, tightness=0.01)
        r = scale_sample(sample, options)
        self.assertEqual(_as_tuple(r), (0.0, 8.0, 0.5, 17))

    def test_forced_zero_coarse_sample(self) -> None:
        options = ScaleOptions(force_include_zero=True, min_ticks=10, tightness=0.01)
        r = scale_axis(1.2, 8.9, options)
        self.assertEqual(_as_tuple(r), (0.0, 9.0, 1.0, 10))

    def test_force_zero_extends_negative_range_upward(self) -> None:
        r = scale_axis(-7.5, -2.0, ScaleOptions(force_include_zero=True))
        self.assertEqual(r.max, 0.0)
        self.assertLessEqual(r.min, -7.5)

    def test_tightness_drops_negligible_overshoot(self) -> None:
        loose = scale_axis(0.0, 10.001, ScaleOptions(min_ticks=6))
        tight = scale_axis(0.0, 10.001, ScaleOptions(min_ticks=6, tightness=0.01))
        self.assertEqual(_as_tuple(loose), (0.0, 12.0, 2.0, 7))
        self.assertEqual(_as_tuple(tight), (0.0, 10.0, 2.0, 6))

    def test_step_families(self) -> None:
        self.assertEqual(scale_axis(0.0, 30.0, ScaleOptions(min_ticks=5)).tick_interval, 5.0)
        self.assertEqual(scale_axis(0.0, 30.0, ScaleOptions(min_ticks=5, step_system=StepSystem.FIVES)).tick_interval, 5.0)
        twos = scale_axis(0.0, 30.0, ScaleOptions(min_ticks=5, step_system=StepSystem.TWOS))
        self.assertEqual(_as_tuple(twos), (0.0, 32.0, 8.0, 5))
        custom = scale_axis(0.0, 30.0, ScaleOptions(min_ticks=5, step_system=(2.5,)))
        self.assertEqual(_as_tuple(custom), (0.0, 30.0, 2.5, 13))

    def test_step_family_normalizes_to_one_decade(self) -> None:
        self.assertEqual(step_family(StepSystem.TWOS), (1.0, 2.0, 4.0, 6.0, 8.0))
        self.assertEqual(step_family((2, 4, 6, 8, 10)), (1.0, 2.0, 4.0, 6.0, 8.0))
        self.assertEqual(step_family("fives"), (1.0, 5.0))

    def test_range_covers_data_with_enough_ticks(self) -> None:
        rng = np.random.default_rng(11)
        for trial in range(300):
            scale = 10.0 ** rng.integers(-6, 7)
            a, b = sorted(rng.uniform(-1.0, 1.0, 2) * scale)
            min_ticks = int(rng.integers(2, 12))
            options = ScaleOptions(min_ticks=min_ticks, step_system=list(StepSystem)[trial % 3])
            with self.subTest(trial=trial, lo=a, hi=b):
                r = scale_axis(a, b, options)
                self.assertLessEqual(r.min, a)
                self.assertGreaterEqual(r.max, b)
                self.assertGreater(r.max, r.min)
                self.assertGreater(r.tick_interval, 0.0)
                self.assertEqual(r.tick_count, round((r.max - r.min) / r.tick_interval) + 1)
                self.assertGreaterEqual(r.tick_count, min_ticks)

    def test_repeated_calls_are_identical(self) -> None:
        options = ScaleOptions(min_ticks=7, tightness=0.2)
        first = scale_axis(-3.14159, 27.1828, options)
        second = scale_axis(-3.14159, 27.1828, options)
        self.assertEqual(first, second)
        self.assertEqual(first.min.hex(), second.min.hex())
        self.assertEqual(first.tick_interval.hex(), second.tick_interval.hex())

    def test_degenerate_span_is_widened(self) -> None:
        r = scale_axis(5.0, 5.0)
        self.assertLess(r.min, 5.0)
        self.assertGreater(r.max, 5.0)
        self.assertGreaterEqual(r.tick_count, 6)
        z = scale_axis(0.0, 0.0)
        self.assertEqual((z.min, z.max), (-1.0, 1.0))

    def test_subnormal_span_gives_finite_range(self) -> None:
        r = scale_axis(0.0, 1e-310)
        self.assertEqual(_as_tuple(r), (0.0, 1e-310, 2e-311, 6))
        s = scale_sample([0.0, 1e-310])
        self.assertTrue(math.isfinite(s.max))
        self.assertLessEqual(s.min, 0.0)
        self.assertGreaterEqual(s.max, 1e-310)
        self.assertGreaterEqual(s.tick_count, 6)

    def test_span_near_float_max(self) -> None:
        r = scale_axis(1e308, 1.5e308)
        self.assertEqual(_as_tuple(r), (1e308, 1.5e308, 1e307, 6))
        with self.assertRaises(AutoscaleError) as ctx:
            scale_axis(-1.7e308, 1.7e308)
        self.assertIn("span overflows", str(ctx.exception))

    def test_tiny_decades_keep_literal_steps(self) -> None:
        r = scale_axis(1e-300, 2e-300)
        self.assertEqual(r.tick_interval, 2e-301)
        self.assertEqual((r.min, r.max), (1e-300, 2e-300))

    def test_invalid_bounds_raise(self) -> None:
        with self.assertRaises(AutoscaleError):
            scale_axis(float("nan"), 1.0)
        with self.assertRaises(AutoscaleError):
            scale_axis(0.0, float("inf"))
        with self.assertRaises(AutoscaleError):
            scale_axis(2.0, 1.0)

    def test_step_search_is_bounded(self) -> None:
        with self.assertRaises(AutoscaleError) as ctx:
            scale_axis(0.0, 1.0, ScaleOptions(min_ticks=10**30))
        self.assertIn("did not reach", str(ctx.exception))

    def test_invalid_options_raise_config_errors(self) -> None:
        with self.assertRaises(PlotConfigError):
            ScaleOptions(tightness=1.5)
        with self.assertRaises(PlotConfigError):
            ScaleOptions(min_ticks=0)
        with self.assertRaises(PlotConfigError):
            ScaleOptions(step_system=(0.0, 5.0))
        with self.assertRaises(PlotConfigError):
            ScaleOptions(step_system=(-2.0,))
        with self.assertRaises(PlotConfigError):
            ScaleOptions(step_system=())
        with self.assertRaises(PlotConfigError):
            ScaleOptions(step_system="sevens")  # type: ignore[arg-type]


class SampleScalingTests(unittest.TestCase):
    def test_limit_values_are_skipped(self) -> None:
        sample = [1.0, float("nan"), float("inf"), float("-inf")]
        with self.assertLogs("svgplot.scales", level=logging.INFO):
            self.assertEqual(data_bounds(sample), (1.0, 1.0))
        r = scale_sample(sample)
        self.assertTrue(math.isfinite(r.min) and math.isfinite(r.max))
        self.assertTrue(r.min <= 1.0 <= r.max)

    def test_empty_and_all_limit_samples_raise(self) -> None:
        with self.assertRaises(AutoscaleError) as empty:
            scale_sample([])
        self.assertIn("no data to autoscale", str(empty.exception))
        with self.assertRaises(AutoscaleError) as limits:
            scale_sample([float("nan"), float("inf")])
        self.assertIn("no finite values to scale", str(limits.exception))

    def test_plusminus_uses_moments_of_finite_values(self) -> None:
        lo, hi = data_bounds([1.0, 2.0, 3.0, 4.0, 5.0, float("inf")], plusminus=1.0)
        self.assertAlmostEqual(lo, 3.0 - math.sqrt(2.0), places=12)
        self.assertAlmostEqual(hi, 3.0 + math.sqrt(2.0), places=12)
        with self.assertRaises(PlotConfigError):
            data_bounds([1.0, 2.0], plusminus=0.0)

    def test_generator_samples_are_accepted(self) -> None:
        r = scale_sample(v * 0.5 for v in range(1, 14))
        self.assertLessEqual(r.min, 0.5)
        self.assertGreaterEqual(r.max, 6.5)

    def test_scale_xy_drops_pairs_at_limit(self) -> None:
        x_range, y_range = scale_xy([0.0, 1.0, 2.0, float("nan")], [10.0, 20.0, float("inf"), 30.0])
        self.assertLessEqual(x_range.max, 1.0)
        self.assertEqual(y_range.max, 20.0)
        self.assertEqual(y_range.min, 10.0)

    def test_scale_xy_names_failing_axis(self) -> None:
        with self.assertRaises(AutoscaleError) as ctx:
            scale_xy([0.0, 1.0], [0.0, 1.0], y_options=ScaleOptions(min_ticks=10**30))
        self.assertEqual(ctx.exception.axis, "y")
        self.assertTrue(str(ctx.exception).startswith("y axis:"))


class AxisRangeTests(unittest.TestCase):
    def test_explicit_range_is_used_verbatim(self) -> None:
        r = AxisRange.explicit(0.0, 10.0, 2.5)
        self.assertEqual(_as_tuple(r), (0.0, 10.0, 2.5, 5))
        derived = AxisRange.explicit(0.0, 10.0)
        self.assertEqual(derived.tick_interval, 2.0)
        self.assertEqual(derived.tick_count, 6)

    def test_explicit_range_is_validated(self) -> None:
        with self.assertRaises(PlotConfigError):
            AxisRange.explicit(5.0, 1.0)
        with self.assertRaises(PlotConfigError):
            AxisRange.explicit(0.0, 1.0, -1.0)
        with self.assertRaises(PlotConfigError):
            AxisRange(min=0.0, max=0.0, tick_interval=1.0, tick_count=1)

    def test_tick_values_and_labels(self) -> None:
        r = AxisRange(min=0.0, max=1.0, tick_interval=0.2, tick_count=6)
        self.assertEqual(tick_labels(r), ["0", "0.2", "0.4", "0.6", "0.8", "1"])
        np.testing.assert_allclose(scale_axis(0.2, 6.5).tick_values(), np.arange(8, dtype=np.float64))

    def test_minor_ticks_fall_between_majors(self) -> None:
        r = AxisRange(min=0.0, max=2.0, tick_interval=1.0, tick_count=3)
        minor = minor_tick_values(r, 4)
        np.testing.assert_allclose(minor, [0.2, 0.4, 0.6, 0.8, 1.2, 1.4, 1.6, 1.8])
        self.assertEqual(minor_tick_values(r, 0).size, 0)

    def test_format_tick(self) -> None:
        self.assertEqual(format_tick(-0.0, step=0.5), "0")
        self.assertEqual(format_tick(2.5, step=0.5), "2.5")
        self.assertEqual(format_tick(30.0, step=10.0), "30")
        self.assertEqual(format_tick(2.5e7, step=5e6), "2.5000e+07")


if __name__ == "__main__":
    unittest.main()
