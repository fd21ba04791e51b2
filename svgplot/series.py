from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

import numpy as np

if TYPE_CHECKING:
    from svgplot.quantile import QuantileSummary


SeriesMode = Literal["markers", "lines", "lines+markers"]
MarkerShape = Literal["circle", "square", "diamond", "triangle", "cross", "none"]
BarMode = Literal["none", "x_stick", "x_block", "y_stick", "y_block"]
Color = str | tuple[int, int, int] | tuple[int, int, int, int]

SERIES_MODES = ("markers", "lines", "lines+markers")
MARKER_SHAPES = ("circle", "square", "diamond", "triangle", "cross", "none")
BAR_MODES = ("none", "x_stick", "x_block", "y_stick", "y_block")


@dataclass(frozen=True)
class SeriesData:
    x: np.ndarray
    y: np.ndarray
    mask: np.ndarray
    source_name: str | None = None

    @property
    def limit_count(self) -> int:
        return int(self.mask.size - np.count_nonzero(self.mask))


@dataclass(frozen=True)
class SeriesStyle:
    mode: SeriesMode = "markers"
    color: Color = "black"
    fill: Color | None = None
    marker_shape: MarkerShape = "circle"
    marker_size: float = 5.0
    line_width: float = 2.0
    area_fill: Color | None = None
    bar: BarMode = "none"
    bar_width: float = 8.0
    bar_fill: Color | None = None

    def __post_init__(self) -> None:
        if self.mode not in SERIES_MODES:
            raise ValueError(f"unsupported series mode: {self.mode}")
        if self.marker_shape not in MARKER_SHAPES:
            raise ValueError(f"unsupported marker shape: {self.marker_shape}")
        if self.marker_size <= 0:
            raise ValueError("marker_size must be > 0")
        if self.line_width <= 0:
            raise ValueError("line_width must be > 0")
        if self.bar not in BAR_MODES:
            raise ValueError(f"unsupported bar mode: {self.bar}")
        if self.bar_width <= 0:
            raise ValueError("bar_width must be > 0")

    @property
    def shows_markers(self) -> bool:
        return self.mode != "lines" and self.marker_shape != "none"

    @property
    def shows_lines(self) -> bool:
        return self.mode in {"lines", "lines+markers"}

    @property
    def shows_bars(self) -> bool:
        return self.bar != "none"


@dataclass(frozen=True)
class BoxStyle:
    box_fill: Color = "white"
    box_stroke: Color = "black"
    box_width: float = 30.0
    whisker_length: float = 30.0
    median_color: Color = "black"
    median_width: float = 2.0
    mild_outlier_color: Color = "black"
    extreme_outlier_color: Color = "red"
    outlier_size: float = 3.0

    def __post_init__(self) -> None:
        if self.box_width <= 0 or self.whisker_length <= 0:
            raise ValueError("box_width and whisker_length must be > 0")
        if self.outlier_size <= 0:
            raise ValueError("outlier_size must be > 0")


@dataclass(frozen=True)
class Series1D:
    values: np.ndarray
    mask: np.ndarray
    style: SeriesStyle
    label: str | None = None


@dataclass(frozen=True)
class SeriesXY:
    data: SeriesData
    style: SeriesStyle
    label: str | None = None


@dataclass(frozen=True)
class BoxplotSeries:
    values: np.ndarray
    summary: "QuantileSummary"
    style: BoxStyle
    label: str | None = None
