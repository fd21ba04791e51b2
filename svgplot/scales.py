from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from enum import Enum
import logging
import math
import sys
from typing import Any

import numpy as np

from svgplot.adapters.normalize import as_array
from svgplot.errors import AutoscaleError, PlotConfigError, PlotDataError
from svgplot.limits import LIMIT_MARGIN, limit_mask


LOGGER = logging.getLogger(__name__)

MAX_STEP_REFINEMENTS = 64
DEGENERATE_SPAN_RATIO = 0.05
_DEGENERATE_EPS = 100.0 * sys.float_info.epsilon
_SNAP_TOLERANCE = 1e-9


class StepSystem(str, Enum):
    DECIMAL = "decimal"
    FIVES = "fives"
    TWOS = "twos"

    @property
    def mantissas(self) -> tuple[float, ...]:
        return _STEP_FAMILIES[self]


# Mantissas within one decade; 10 is the next decade's 1.
_STEP_FAMILIES = {
    StepSystem.DECIMAL: (1.0, 2.0, 5.0),
    StepSystem.FIVES: (1.0, 5.0),
    StepSystem.TWOS: (1.0, 2.0, 4.0, 6.0, 8.0),
}


def step_family(step_system: StepSystem | str | Iterable[float]) -> tuple[float, ...]:
    """Resolve a step system to its sorted per-decade mantissas in [1, 10)."""
    if isinstance(step_system, StepSystem):
        return step_system.mantissas
    if isinstance(step_system, str):
        try:
            return StepSystem(step_system).mantissas
        except ValueError as exc:
            raise PlotConfigError(f"unknown tick step system: {step_system!r}") from exc
    try:
        raw = tuple(float(v) for v in step_system)
    except (TypeError, ValueError) as exc:
        raise PlotConfigError(f"unsupported tick step system: {step_system!r}") from exc
    if not raw:
        raise PlotConfigError("tick step system must not be empty")
    out: set[float] = set()
    for value in raw:
        if not math.isfinite(value) or value <= 0:
            raise PlotConfigError("tick step system values must be > 0")
        if value > 10:
            raise PlotConfigError("tick step system values must be <= 10")
        mantissa = value / 10.0 ** math.floor(math.log10(value))
        out.add(round(mantissa, 9) if round(mantissa, 9) < 10 else 1.0)
    return tuple(sorted(out))


@dataclass(frozen=True)
class ScaleOptions:
    force_include_zero: bool = False
    tightness: float = 0.0
    min_ticks: int = 6
    step_system: StepSystem | tuple[float, ...] = StepSystem.DECIMAL
    mantissas: tuple[float, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if not 0.0 <= self.tightness <= 1.0:
            raise PlotConfigError("tightness must be in [0, 1]")
        if int(self.min_ticks) != self.min_ticks or self.min_ticks < 1:
            raise PlotConfigError("min_ticks must be an integer >= 1")
        object.__setattr__(self, "mantissas", step_family(self.step_system))


@dataclass(frozen=True)
class AxisRange:
    min: float
    max: float
    tick_interval: float
    tick_count: int

    def __post_init__(self) -> None:
        if not (math.isfinite(self.min) and math.isfinite(self.max)):
            raise PlotConfigError("axis range bounds must be finite")
        if not self.max > self.min:
            raise PlotConfigError(f"axis range requires max > min, got [{self.min}, {self.max}]")
        if not (math.isfinite(self.tick_interval) and self.tick_interval > 0):
            raise PlotConfigError("tick_interval must be > 0")
        if self.tick_count < 1:
            raise PlotConfigError("tick_count must be >= 1")

    @property
    def span(self) -> float:
        return self.max - self.min

    def contains(self, value: float) -> bool:
        return self.min <= value <= self.max

    def contains_zero(self) -> bool:
        return self.min <= 0.0 <= self.max

    def tick_values(self) -> np.ndarray:
        ticks = self.min + np.arange(self.tick_count, dtype=np.float64) * self.tick_interval
        ticks[np.isclose(ticks, 0.0, rtol=0.0, atol=self.tick_interval * 1e-9)] = 0.0
        return ticks

    @classmethod
    def explicit(
        cls,
        min_value: float,
        max_value: float,
        tick_interval: float | None = None,
        *,
        options: ScaleOptions | None = None,
    ) -> "AxisRange":
        lo = float(min_value)
        hi = float(max_value)
        if not (math.isfinite(lo) and math.isfinite(hi)):
            raise PlotConfigError("axis range bounds must be finite")
        if not hi > lo:
            raise PlotConfigError(f"axis range requires max > min, got [{lo}, {hi}]")
        if tick_interval is None:
            tick_interval = scale_axis(lo, hi, options).tick_interval
        elif not tick_interval > 0:
            raise PlotConfigError("tick_interval must be > 0")
        count = int(math.floor((hi - lo) / tick_interval + _SNAP_TOLERANCE)) + 1
        return cls(min=lo, max=hi, tick_interval=float(tick_interval), tick_count=count)


def _scaled(mantissa: float, exponent: int, n: int = 1) -> float:
    # Rounded once from the exact decimal n * mantissa * 10**exponent, so 3 * 0.1 is the literal
    # 0.3 at any exponent. Overflow gives inf and underflow gives 0.0.
    return float((Decimal(repr(float(mantissa))) * n).scaleb(exponent))


def _floor_index(value: float, mantissa: float, exponent: int) -> int:
    q = value / _scaled(mantissa, exponent)
    n = round(q)
    if abs(q - n) > _SNAP_TOLERANCE * max(1.0, abs(q)):
        n = math.floor(q)
    if _scaled(mantissa, exponent, n) > value:
        n -= 1
    return int(n)


def _ceil_index(value: float, mantissa: float, exponent: int) -> int:
    q = value / _scaled(mantissa, exponent)
    n = round(q)
    if abs(q - n) > _SNAP_TOLERANCE * max(1.0, abs(q)):
        n = math.ceil(q)
    if _scaled(mantissa, exponent, n) < value:
        n += 1
    return int(n)


def _first_step_at_least(span: float, mantissas: tuple[float, ...]) -> tuple[int, int]:
    exponent = math.floor(math.log10(span))
    for i, mantissa in enumerate(mantissas):
        if _scaled(mantissa, exponent) >= span:
            return i, exponent
    return 0, exponent + 1


def scale_axis(min_value: float, max_value: float, options: ScaleOptions | None = None) -> AxisRange:
    """Choose a covering range and tick interval for ``[min_value, max_value]``.

    Walks down the step family from the coarsest step that spans the data,
    one notch at a time, until the rounded range holds at least
    ``options.min_ticks`` ticks.
    """
    if options is None:
        options = ScaleOptions()
    lo = float(min_value)
    hi = float(max_value)
    if not (math.isfinite(lo) and math.isfinite(hi)):
        raise AutoscaleError(f"cannot autoscale non-finite bounds [{lo}, {hi}]")
    if lo > hi:
        raise AutoscaleError(f"min_value {lo} is greater than max_value {hi}")

    if options.force_include_zero:
        if lo > 0.0:
            lo = 0.0
        elif hi < 0.0:
            hi = 0.0

    if hi - lo <= _DEGENERATE_EPS * max(abs(lo), abs(hi)):
        center = (lo + hi) / 2.0
        delta = max(1.0, abs(center) * DEGENERATE_SPAN_RATIO)
        lo = center - delta
        hi = center + delta

    span = hi - lo
    if not math.isfinite(span):
        raise AutoscaleError(f"span overflows for [{lo}, {hi}]")

    mantissas = options.mantissas
    index, exponent = _first_step_at_least(span, mantissas)
    tight = options.tightness
    for _ in range(MAX_STEP_REFINEMENTS):
        mantissa = mantissas[index]
        step = _scaled(mantissa, exponent)
        if step == 0.0:
            raise AutoscaleError(f"tick step underflows for [{lo}, {hi}]")
        if math.isfinite(step):
            n_lo = _floor_index(lo, mantissa, exponent)
            n_hi = _ceil_index(hi, mantissa, exponent)
            if tight > 0.0 and n_hi - n_lo > 1:
                if hi - _scaled(mantissa, exponent, n_hi - 1) < tight * step:
                    n_hi -= 1
            if tight > 0.0 and n_hi - n_lo > 1:
                if _scaled(mantissa, exponent, n_lo + 1) - lo < tight * step:
                    n_lo += 1
            ticks = n_hi - n_lo + 1
            if ticks >= options.min_ticks:
                axis_min = _scaled(mantissa, exponent, n_lo)
                axis_max = _scaled(mantissa, exponent, n_hi)
                if not (math.isfinite(axis_min) and math.isfinite(axis_max)):
                    raise AutoscaleError(f"rounded range overflows for [{lo}, {hi}]")
                if axis_min == 0.0:
                    axis_min = 0.0
                result = AxisRange(min=axis_min, max=axis_max, tick_interval=step, tick_count=ticks)
                LOGGER.debug(
                    "autoscaled [%r, %r] -> [%r, %r] step %r (%d ticks)",
                    min_value,
                    max_value,
                    result.min,
                    result.max,
                    result.tick_interval,
                    result.tick_count,
                )
                return result
        index -= 1
        if index < 0:
            index = len(mantissas) - 1
            exponent -= 1
    raise AutoscaleError(
        f"tick step search did not reach {options.min_ticks} ticks within {MAX_STEP_REFINEMENTS} refinements"
    )


def data_bounds(
    sample: Any,
    *,
    check_limits: bool = True,
    plusminus: float | None = None,
    margin: float = LIMIT_MARGIN,
) -> tuple[float, float]:
    """Min/max scan of a sample, optionally replaced by a ``mean ± k·sd`` window.

    At-limit values are dropped before the moments are taken.
    """
    values = as_array(sample)
    if values.size == 0:
        raise AutoscaleError("no data to autoscale")
    if check_limits:
        at_limit = limit_mask(values, margin=margin)
        skipped = int(np.count_nonzero(at_limit))
        if skipped:
            values = values[~at_limit]
            LOGGER.info("autoscale ignored %d of %d values at limits", skipped, skipped + values.size)
        if values.size == 0:
            raise AutoscaleError("no finite values to scale")
    if plusminus is not None:
        if not plusminus > 0:
            raise PlotConfigError("plusminus must be > 0")
        mean = float(np.mean(values))
        sd = float(np.std(values))
        return mean - plusminus * sd, mean + plusminus * sd
    return float(np.min(values)), float(np.max(values))


def scale_sample(
    sample: Any,
    options: ScaleOptions | None = None,
    *,
    check_limits: bool = True,
    plusminus: float | None = None,
    margin: float = LIMIT_MARGIN,
) -> AxisRange:
    lo, hi = data_bounds(sample, check_limits=check_limits, plusminus=plusminus, margin=margin)
    return scale_axis(lo, hi, options)


def scale_xy(
    x: Any,
    y: Any,
    x_options: ScaleOptions | None = None,
    y_options: ScaleOptions | None = None,
    *,
    check_limits: bool = True,
    plusminus: float | None = None,
    margin: float = LIMIT_MARGIN,
) -> tuple[AxisRange, AxisRange]:
    x_arr = as_array(x, label="x")
    y_arr = as_array(y, label="y")
    if x_arr.shape != y_arr.shape:
        raise PlotDataError(f"x and y length mismatch: {x_arr.size} != {y_arr.size}")
    if x_arr.size == 0:
        raise AutoscaleError("no data to autoscale")
    if check_limits:
        keep = ~(limit_mask(x_arr, margin=margin) | limit_mask(y_arr, margin=margin))
        if not np.any(keep):
            raise AutoscaleError("no finite values to scale")
        skipped = int(x_arr.size - np.count_nonzero(keep))
        if skipped:
            LOGGER.info("autoscale ignored %d of %d points at limits", skipped, x_arr.size)
        x_arr = x_arr[keep]
        y_arr = y_arr[keep]
    ranges = []
    for axis, values, options in (("x", x_arr, x_options), ("y", y_arr, y_options)):
        try:
            lo, hi = data_bounds(values, check_limits=False, plusminus=plusminus)
            ranges.append(scale_axis(lo, hi, options))
        except AutoscaleError as exc:
            raise exc.for_axis(axis) from exc
    return ranges[0], ranges[1]


def minor_tick_values(axis_range: AxisRange, per_major: int) -> np.ndarray:
    if per_major < 0:
        raise ValueError("per_major must be >= 0")
    if per_major == 0:
        return np.empty(0, dtype=np.float64)
    minor_step = axis_range.tick_interval / (per_major + 1)
    start = axis_range.min
    count = int(math.floor(axis_range.span / minor_step + _SNAP_TOLERANCE))
    idx = np.arange(1, count + 1)
    idx = idx[idx % (per_major + 1) != 0]
    return start + idx.astype(np.float64) * minor_step


def tick_labels(axis_range: AxisRange) -> list[str]:
    return format_ticks_for_axis(axis_range.tick_values())


def format_tick(value: float, *, step: float | None = None) -> str:
    if not np.isfinite(value):
        return str(value)
    if step is not None and np.isfinite(step) and step > 0 and abs(value) <= step * 1e-9:
        value = 0.0
    abs_v = abs(value)
    decimals = _decimals_from_step(step) if step is not None else 6
    if abs_v != 0 and (abs_v >= 1e6 or (step is not None and abs(step) < 1e-4) or abs_v < 1e-6):
        return f"{value:.4e}"

    d = Decimal(str(value))
    quant = Decimal("1").scaleb(-decimals)
    try:
        q = d.quantize(quant)
    except InvalidOperation:
        q = d
    out = format(q, "f")
    if "." in out:
        out = out.rstrip("0").rstrip(".")
    if out == "-0":
        out = "0"
    return out


def format_ticks_for_axis(ticks: np.ndarray) -> list[str]:
    if ticks.size == 0:
        return []
    if ticks.size == 1:
        return [format_tick(float(ticks[0]))]
    step = float(abs(ticks[1] - ticks[0]))
    return [format_tick(float(v), step=step) for v in ticks]


def _decimals_from_step(step: float) -> int:
    if step <= 0 or not np.isfinite(step):
        return 6
    d = Decimal(str(step)).normalize()
    exp = d.as_tuple().exponent
    decimals = max(0, -int(exp))
    return min(12, decimals)
