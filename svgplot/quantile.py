from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import math
from typing import Any

import numpy as np

from svgplot.adapters.normalize import as_array
from svgplot.errors import QuantileError
from svgplot.limits import LIMIT_MARGIN, limit_mask


MILD_OUTLIER_K = 1.5
EXTREME_OUTLIER_K = 3.0


class InterpolationRule(str, Enum):
    """Hyndman & Fan sample quantile definitions 4 through 9."""

    INTERPOLATED_INVERTED_CDF = "interpolated_inverted_cdf"
    HAZEN = "hazen"
    WEIBULL = "weibull"
    LINEAR = "linear"
    MEDIAN_UNBIASED = "median_unbiased"
    NORMAL_UNBIASED = "normal_unbiased"

    def offset(self, p: float) -> float:
        if self is InterpolationRule.INTERPOLATED_INVERTED_CDF:
            return 0.0
        if self is InterpolationRule.HAZEN:
            return 0.5
        if self is InterpolationRule.LINEAR:
            return 1.0 - p
        if self is InterpolationRule.MEDIAN_UNBIASED:
            return (p + 1.0) / 3.0
        if self is InterpolationRule.NORMAL_UNBIASED:
            return (p + 1.5) / 4.0
        return p


DEFAULT_RULE = InterpolationRule.MEDIAN_UNBIASED


def _coerce_rule(rule: InterpolationRule | str) -> InterpolationRule:
    try:
        return InterpolationRule(rule)
    except ValueError as exc:
        raise QuantileError(f"unknown interpolation rule: {rule!r}") from exc


def quantile(sorted_sample: Any, p: float, rule: InterpolationRule | str = DEFAULT_RULE) -> float:
    values = as_array(sorted_sample)
    n = int(values.size)
    if n == 0:
        raise QuantileError("quantile of an empty sample")
    if not 0.0 <= p <= 1.0:
        raise QuantileError(f"quantile probability must be in [0, 1], got {p!r}")
    npm = n * p + _coerce_rule(rule).offset(p)
    j = math.floor(npm)
    if j < 1:
        return float(values[0])
    if j >= n:
        return float(values[n - 1])
    g = npm - j
    return float((1.0 - g) * values[j - 1] + g * values[j])


def median(sorted_sample: Any) -> float:
    values = as_array(sorted_sample)
    n = int(values.size)
    if n == 0:
        raise QuantileError("median of an empty sample")
    mid = n // 2
    if n % 2 == 0:
        return float((values[mid - 1] + values[mid]) / 2.0)
    return float(values[mid])


@dataclass(frozen=True)
class QuantileSummary:
    min: float
    lower_fence: float
    q1: float
    median: float
    q3: float
    upper_fence: float
    max: float
    mild_outliers: tuple[float, ...]
    extreme_outliers: tuple[float, ...]
    whisker_min: float
    whisker_max: float
    rule: InterpolationRule = DEFAULT_RULE
    extreme_k: float = EXTREME_OUTLIER_K

    @property
    def iqr(self) -> float:
        return self.q3 - self.q1

    @property
    def extreme_lower_fence(self) -> float:
        return self.q1 - self.extreme_k * self.iqr

    @property
    def extreme_upper_fence(self) -> float:
        return self.q3 + self.extreme_k * self.iqr

    def is_extreme_outlier(self, value: float) -> bool:
        return value < self.extreme_lower_fence or value > self.extreme_upper_fence

    def is_mild_outlier(self, value: float) -> bool:
        if self.is_extreme_outlier(value):
            return False
        return value < self.lower_fence or value > self.upper_fence


def summarize(
    sample: Any,
    *,
    rule: InterpolationRule | str = DEFAULT_RULE,
    mild_k: float = MILD_OUTLIER_K,
    extreme_k: float = EXTREME_OUTLIER_K,
    check_limits: bool = True,
    margin: float = LIMIT_MARGIN,
) -> QuantileSummary:
    if mild_k <= 0 or extreme_k < mild_k:
        raise QuantileError("fence multipliers must satisfy 0 < mild_k <= extreme_k")
    rule = _coerce_rule(rule)
    values = as_array(sample)
    if check_limits:
        values = values[~limit_mask(values, margin=margin)]
    if values.size == 0:
        raise QuantileError("no finite values to summarize")
    values = np.sort(values)

    q1 = quantile(values, 0.25, rule)
    q3 = quantile(values, 0.75, rule)
    iqr = q3 - q1
    lower_fence = q1 - mild_k * iqr
    upper_fence = q3 + mild_k * iqr
    extreme_lower = q1 - extreme_k * iqr
    extreme_upper = q3 + extreme_k * iqr

    extreme = (values < extreme_lower) | (values > extreme_upper)
    outside = (values < lower_fence) | (values > upper_fence)
    inside = values[~outside]
    # Whiskers fall back to the quartiles when every value is an outlier.
    whisker_min = float(inside[0]) if inside.size else q1
    whisker_max = float(inside[-1]) if inside.size else q3

    return QuantileSummary(
        min=float(values[0]),
        lower_fence=lower_fence,
        q1=q1,
        median=median(values),
        q3=q3,
        upper_fence=upper_fence,
        max=float(values[-1]),
        mild_outliers=tuple(float(v) for v in values[outside & ~extreme]),
        extreme_outliers=tuple(float(v) for v in values[extreme]),
        whisker_min=whisker_min,
        whisker_max=whisker_max,
        rule=rule,
        extreme_k=extreme_k,
    )
