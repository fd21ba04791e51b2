from __future__ import annotations

from dataclasses import dataclass, field, replace
import math
from typing import Any, Literal

from svgplot.errors import PlotConfigError
from svgplot.layout import LEGEND_PLACES, X_TICKS_SIDES, Y_TICKS_SIDES, LegendPlace, Margins
from svgplot.limits import LIMIT_MARGIN
from svgplot.scales import ScaleOptions
from svgplot.series import Color
from svgplot.text_metrics import DEFAULT_FONT_FAMILY


TextRotation = Literal["horizontal", "upward", "downward", "uphill", "downhill"]
TextMeasureKind = Literal["estimate", "pillow"]

ROTATION_DEGREES = {
    "horizontal": 0.0,
    "upward": -90.0,
    "downward": 90.0,
    "uphill": -45.0,
    "downhill": 45.0,
}

PLOT_TIGHTNESS = 1e-6


@dataclass(frozen=True)
class TextStyle:
    font_size: float = 12.0
    font_family: str = DEFAULT_FONT_FAMILY
    color: Color = "black"
    weight: str = "normal"

    def __post_init__(self) -> None:
        if not self.font_size > 0:
            raise PlotConfigError("font_size must be > 0")


@dataclass(frozen=True)
class BorderStyle:
    stroke: Color = "black"
    fill: Color | None = "white"
    width: float = 2.0
    on: bool = True

    def __post_init__(self) -> None:
        if self.width < 0:
            raise PlotConfigError("border width must be >= 0")


@dataclass(frozen=True)
class LegendConfig:
    on: bool = False
    place: LegendPlace = "outside_right"
    header: str = ""
    position: tuple[float, float] | None = None
    lines_on: bool = False
    text: TextStyle = field(default_factory=lambda: TextStyle(font_size=14.0))
    border: BorderStyle = field(default_factory=lambda: BorderStyle(stroke="yellow", fill="white", width=2.0))

    def __post_init__(self) -> None:
        if self.place not in LEGEND_PLACES:
            raise PlotConfigError(f"unsupported legend place: {self.place}")


@dataclass(frozen=True)
class AxisConfig:
    label: str = ""
    label_on: bool = True
    label_style: TextStyle = field(default_factory=lambda: TextStyle(font_size=14.0))
    autoscale: bool = True
    explicit_range: tuple[float, float] | None = None
    major_interval: float | None = None
    scale: ScaleOptions = field(default_factory=lambda: ScaleOptions(tightness=PLOT_TIGHTNESS))
    check_limits: bool = True
    plusminus: float | None = None
    ticks_side: str = "bottom"
    ticks_out: bool = True
    major_tick_length: float = 5.0
    minor_tick_length: float = 2.0
    minor_ticks_per_major: int = 4
    major_grid_on: bool = False
    minor_grid_on: bool = False
    grid_color: Color = "lightgray"
    value_labels_on: bool = True
    value_label_rotation: TextRotation = "horizontal"
    value_label_style: TextStyle = field(default_factory=TextStyle)
    axis_line_on: bool = True
    color: Color = "black"

    def __post_init__(self) -> None:
        if self.explicit_range is not None:
            if self.autoscale:
                raise PlotConfigError("autoscale and an explicit range are mutually exclusive")
            lo, hi = (float(v) for v in self.explicit_range)
            if not (math.isfinite(lo) and math.isfinite(hi)):
                raise PlotConfigError("explicit range bounds must be finite")
            if not hi > lo:
                raise PlotConfigError(f"explicit range requires max > min, got [{lo}, {hi}]")
        elif not self.autoscale:
            raise PlotConfigError("an explicit range is required when autoscale is off")
        if self.major_interval is not None and not self.major_interval > 0:
            raise PlotConfigError("major_interval must be > 0")
        if self.plusminus is not None and not self.plusminus > 0:
            raise PlotConfigError("plusminus must be > 0")
        if self.ticks_side not in X_TICKS_SIDES + Y_TICKS_SIDES:
            raise PlotConfigError(f"unsupported ticks side: {self.ticks_side}")
        if self.major_tick_length < 0 or self.minor_tick_length < 0:
            raise PlotConfigError("tick lengths must be >= 0")
        if self.minor_ticks_per_major < 0:
            raise PlotConfigError("minor_ticks_per_major must be >= 0")
        if self.value_label_rotation not in ROTATION_DEGREES:
            raise PlotConfigError(f"unsupported label rotation: {self.value_label_rotation}")

    @property
    def value_label_degrees(self) -> float:
        return ROTATION_DEGREES[self.value_label_rotation]


@dataclass(frozen=True)
class PlotConfiguration:
    image_width: float = 500.0
    image_height: float = 400.0
    title: str = ""
    title_on: bool = True
    title_style: TextStyle = field(default_factory=lambda: TextStyle(font_size=18.0))
    image_border: BorderStyle = field(default_factory=lambda: BorderStyle(stroke="yellow", fill="white"))
    plot_window_on: bool = True
    plot_window_border: BorderStyle = field(default_factory=lambda: BorderStyle(stroke="lightslategray", fill="white"))
    margins: Margins = field(default_factory=Margins)
    legend: LegendConfig = field(default_factory=LegendConfig)
    x_axis: AxisConfig = field(default_factory=lambda: AxisConfig(ticks_side="bottom"))
    y_axis: AxisConfig = field(default_factory=lambda: AxisConfig(ticks_side="left"))
    limit_margin: float = LIMIT_MARGIN
    limit_point_stroke: Color = "lightslategray"
    limit_point_fill: Color = "antiquewhite"
    text_measure: TextMeasureKind = "estimate"

    def __post_init__(self) -> None:
        if not (self.image_width > 0 and self.image_height > 0):
            raise PlotConfigError("image width and height must be > 0")
        if not self.limit_margin >= 1.0:
            raise PlotConfigError("limit_margin must be >= 1")
        if self.x_axis.ticks_side not in X_TICKS_SIDES:
            raise PlotConfigError(f"x ticks side must be one of {X_TICKS_SIDES}")
        if self.y_axis.ticks_side not in Y_TICKS_SIDES:
            raise PlotConfigError(f"y ticks side must be one of {Y_TICKS_SIDES}")
        if self.text_measure not in ("estimate", "pillow"):
            raise PlotConfigError(f"unsupported text measure: {self.text_measure}")

    def with_changes(self, **changes: Any) -> "PlotConfiguration":
        return replace(self, **changes)

    def with_x_axis(self, **changes: Any) -> "PlotConfiguration":
        return replace(self, x_axis=replace(self.x_axis, **changes))

    def with_y_axis(self, **changes: Any) -> "PlotConfiguration":
        return replace(self, y_axis=replace(self.y_axis, **changes))

    def with_legend(self, **changes: Any) -> "PlotConfiguration":
        return replace(self, legend=replace(self.legend, **changes))
