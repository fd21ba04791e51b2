from __future__ import annotations

from enum import Enum
import math
import sys

import numpy as np

from svgplot.errors import PlotConfigError


LIMIT_MARGIN = 4.0
_MAX_DOUBLE = sys.float_info.max


class LimitClass(str, Enum):
    NORMAL = "normal"
    PLUS_INFINITY = "plus_infinity"
    MINUS_INFINITY = "minus_infinity"
    NAN = "nan"
    NEAR_MAX = "near_max"
    NEAR_MINUS_MAX = "near_minus_max"

    @property
    def is_limit(self) -> bool:
        return self is not LimitClass.NORMAL


def _threshold(margin: float) -> float:
    if not margin >= 1.0:
        raise PlotConfigError("limit margin must be >= 1")
    return _MAX_DOUBLE / margin


def classify(value: float, *, margin: float = LIMIT_MARGIN, separate_near: bool = False) -> LimitClass:
    """Tag one value as normal or at-limit.

    Finite values beyond ``max_double / margin`` count as infinite unless
    ``separate_near`` asks for the NEAR_* members.
    """
    threshold = _threshold(margin)
    v = float(value)
    if math.isnan(v):
        return LimitClass.NAN
    if v > threshold:
        if separate_near and not math.isinf(v):
            return LimitClass.NEAR_MAX
        return LimitClass.PLUS_INFINITY
    if v < -threshold:
        if separate_near and not math.isinf(v):
            return LimitClass.NEAR_MINUS_MAX
        return LimitClass.MINUS_INFINITY
    return LimitClass.NORMAL


def limit_max(value: float, *, margin: float = LIMIT_MARGIN) -> bool:
    v = float(value)
    return not math.isnan(v) and v > _threshold(margin)


def limit_min(value: float, *, margin: float = LIMIT_MARGIN) -> bool:
    v = float(value)
    return not math.isnan(v) and v < -_threshold(margin)


def limit_nan(value: float) -> bool:
    return math.isnan(float(value))


def is_limit(value: float, *, margin: float = LIMIT_MARGIN) -> bool:
    return classify(value, margin=margin) is not LimitClass.NORMAL


def classify_pair(x: float, y: float, *, margin: float = LIMIT_MARGIN) -> tuple[LimitClass, LimitClass]:
    return classify(x, margin=margin), classify(y, margin=margin)


def pair_is_limit(x: float, y: float, *, margin: float = LIMIT_MARGIN) -> bool:
    return is_limit(x, margin=margin) or is_limit(y, margin=margin)


def limit_mask(values: np.ndarray, *, margin: float = LIMIT_MARGIN) -> np.ndarray:
    """Vectorized ``is_limit``: True where the value is NaN, infinite or near overflow."""
    threshold = _threshold(margin)
    arr = np.asarray(values, dtype=np.float64)
    with np.errstate(invalid="ignore"):
        return np.isnan(arr) | (np.abs(arr) > threshold)


def classify_array(values: np.ndarray, *, margin: float = LIMIT_MARGIN) -> list[LimitClass]:
    return [classify(v, margin=margin) for v in np.asarray(values, dtype=np.float64).tolist()]
