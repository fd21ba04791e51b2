from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import numpy as np

from svgplot.scales import AxisRange

if TYPE_CHECKING:
    from svgplot.layout import Rect


@dataclass(frozen=True)
class AxisTransform:
    """Linear map between one data axis and one pixel span."""

    data_min: float
    data_max: float
    pixel_lo: float
    pixel_hi: float

    def __post_init__(self) -> None:
        if not self.data_max > self.data_min:
            raise ValueError("data range must have max > min")
        if self.pixel_hi == self.pixel_lo:
            raise ValueError("pixel span must be non-empty")

    @classmethod
    def from_range(
        cls,
        axis_range: AxisRange,
        pixel_span: tuple[float, float],
        *,
        invert: bool = False,
    ) -> "AxisTransform":
        lo, hi = float(pixel_span[0]), float(pixel_span[1])
        if invert:
            lo, hi = hi, lo
        return cls(data_min=axis_range.min, data_max=axis_range.max, pixel_lo=lo, pixel_hi=hi)

    @property
    def scale(self) -> float:
        return (self.pixel_hi - self.pixel_lo) / (self.data_max - self.data_min)

    def to_pixel(self, value: Any) -> Any:
        if isinstance(value, np.ndarray):
            return self.pixel_lo + (value.astype(np.float64, copy=False) - self.data_min) * self.scale
        return self.pixel_lo + (float(value) - self.data_min) / (self.data_max - self.data_min) * (
            self.pixel_hi - self.pixel_lo
        )

    def to_data(self, pixel: Any) -> Any:
        if isinstance(pixel, np.ndarray):
            return self.data_min + (pixel.astype(np.float64, copy=False) - self.pixel_lo) / self.scale
        return self.data_min + (float(pixel) - self.pixel_lo) / (self.pixel_hi - self.pixel_lo) * (
            self.data_max - self.data_min
        )


def to_pixel(
    data_value: float,
    axis_range: AxisRange,
    pixel_span: tuple[float, float],
    invert: bool = False,
) -> float:
    return AxisTransform.from_range(axis_range, pixel_span, invert=invert).to_pixel(data_value)


def to_data(
    pixel: float,
    axis_range: AxisRange,
    pixel_span: tuple[float, float],
    invert: bool = False,
) -> float:
    return AxisTransform.from_range(axis_range, pixel_span, invert=invert).to_data(pixel)


@dataclass(frozen=True)
class PlotTransform:
    x: AxisTransform
    y: AxisTransform

    def map_points(self, x: np.ndarray, y: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        return self.x.to_pixel(np.asarray(x, dtype=np.float64)), self.y.to_pixel(np.asarray(y, dtype=np.float64))


def build_transform(x_range: AxisRange, y_range: AxisRange, plot_window: "Rect") -> PlotTransform:
    # Pixel y grows downward, so the y axis is inverted.
    return PlotTransform(
        x=AxisTransform.from_range(x_range, (plot_window.x_min, plot_window.x_max)),
        y=AxisTransform.from_range(y_range, (plot_window.y_min, plot_window.y_max), invert=True),
    )
