from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
import logging
from pathlib import Path
from typing import IO, Any, Literal, Sequence

import numpy as np

from svgplot.adapters import as_array, normalize_pairs, normalize_xy
from svgplot.config import AxisConfig, PlotConfiguration, TextStyle
from svgplot.errors import AutoscaleError, PlotDataError, QuantileError
from svgplot.layout import (
    LabelExtents,
    LayoutFlags,
    LayoutResult,
    LegendPlace,
    Margins,
    XTicksSide,
    YTicksSide,
    legend_box_size,
    resolve_layout,
    resolve_x_ticks_side,
    resolve_y_ticks_side,
    x_axis_line_y,
    y_axis_line_x,
)
from svgplot.limits import LimitClass, classify, limit_mask
from svgplot.quantile import DEFAULT_RULE, InterpolationRule, summarize
from svgplot.render.svg import emit_svg
from svgplot.scales import (
    AxisRange,
    ScaleOptions,
    StepSystem,
    data_bounds,
    format_ticks_for_axis,
    minor_tick_values,
    scale_axis,
)
from svgplot.series import (
    BarMode,
    BoxplotSeries,
    BoxStyle,
    Color,
    MarkerShape,
    Series1D,
    SeriesMode,
    SeriesStyle,
    SeriesXY,
)
from svgplot.text_metrics import EstimatedTextMeasure, PillowTextMeasure, TextMeasure
from svgplot.transform import AxisTransform, PlotTransform, build_transform


LOGGER = logging.getLogger(__name__)

FigureKind = Literal["1d", "2d", "boxplot"]
FIGURE_KINDS = ("1d", "2d", "boxplot")
DEFAULT_SIZES = {"1d": (500, 200), "2d": (500, 400), "boxplot": (500, 350)}


@dataclass(frozen=True)
class LimitPoint:
    x: float
    y: float
    x_class: LimitClass
    y_class: LimitClass


@dataclass(frozen=True)
class MappedSeries:
    label: str | None
    style: SeriesStyle
    x: np.ndarray
    y: np.ndarray
    limit_points: tuple[LimitPoint, ...]
    # Pixel of data zero clamped into each range. Area fills and bars grow from here.
    base_x: float | None = None
    base_y: float | None = None


@dataclass(frozen=True)
class MappedBox:
    label: str | None
    style: BoxStyle
    center_x: float
    q1_y: float
    median_y: float
    q3_y: float
    whisker_min_y: float
    whisker_max_y: float
    mild_outliers_y: tuple[float, ...]
    extreme_outliers_y: tuple[float, ...]
    series: BoxplotSeries


@dataclass(frozen=True)
class AxisTicks:
    values: np.ndarray
    pixels: np.ndarray
    labels: tuple[str, ...]
    minor_pixels: np.ndarray


@dataclass(frozen=True)
class LegendEntry:
    index: int
    label: str
    style: SeriesStyle


@dataclass(frozen=True)
class RenderResult:
    kind: FigureKind
    config: PlotConfiguration
    layout: LayoutResult
    x_range: AxisRange
    y_range: AxisRange | None
    x_transform: AxisTransform
    y_transform: AxisTransform | None
    x_ticks_side: XTicksSide
    y_ticks_side: YTicksSide
    x_axis_y: float | None
    y_axis_x: float | None
    x_ticks: AxisTicks | None
    y_ticks: AxisTicks | None
    series: tuple[MappedSeries, ...] = ()
    boxes: tuple[MappedBox, ...] = ()
    legend_entries: tuple[LegendEntry, ...] = ()

    @property
    def transform(self) -> PlotTransform | None:
        if self.y_transform is None:
            return None
        return PlotTransform(x=self.x_transform, y=self.y_transform)


def _limit_pixel(cls: LimitClass, value: float, transform: AxisTransform, plus_px: float, minus_px: float, origin_px: float) -> float:
    if cls is LimitClass.PLUS_INFINITY:
        return plus_px
    if cls is LimitClass.MINUS_INFINITY:
        return minus_px
    if cls is LimitClass.NAN:
        return origin_px
    return float(transform.to_pixel(value))


def _origin_pixel(axis_range: AxisRange, transform: AxisTransform) -> float:
    origin = min(max(0.0, axis_range.min), axis_range.max)
    return float(transform.to_pixel(origin))


def _make_ticks(axis_range: AxisRange, transform: AxisTransform, axis: AxisConfig) -> AxisTicks:
    values = axis_range.tick_values()
    minor = minor_tick_values(axis_range, axis.minor_ticks_per_major)
    return AxisTicks(
        values=values,
        pixels=transform.to_pixel(values),
        labels=tuple(format_ticks_for_axis(values)),
        minor_pixels=transform.to_pixel(minor),
    )


def _max_label_extent(labels: Sequence[str], style: TextStyle, rotate_deg: float, measure: TextMeasure) -> tuple[float, float]:
    sizes = [
        measure.text_size(label, font_size=style.font_size, font_family=style.font_family, rotate_deg=rotate_deg)
        for label in labels
    ]
    return (max((w for w, _ in sizes), default=0.0), max((h for _, h in sizes), default=0.0))


@dataclass
class _AxesBase(ABC):
    figure: "Figure"
    config: PlotConfiguration = field(default_factory=PlotConfiguration)
    _last_render: RenderResult | None = None

    def set_title(self, title: str, *, font_size: float | None = None) -> "_AxesBase":
        style = self.config.title_style if font_size is None else replace(self.config.title_style, font_size=font_size)
        self.config = self.config.with_changes(title=str(title), title_style=style)
        return self

    def set_title_on(self, on: bool) -> "_AxesBase":
        self.config = self.config.with_changes(title_on=bool(on))
        return self

    def set_x_label(self, label: str, *, on: bool = True, font_size: float | None = None) -> "_AxesBase":
        style = self.config.x_axis.label_style
        if font_size is not None:
            style = replace(style, font_size=font_size)
        self.config = self.config.with_x_axis(label=str(label), label_on=bool(on), label_style=style)
        return self

    def set_x_range(self, min_value: float, max_value: float, *, interval: float | None = None) -> "_AxesBase":
        self.config = self.config.with_x_axis(
            autoscale=False,
            explicit_range=(float(min_value), float(max_value)),
            major_interval=interval,
        )
        return self

    def set_x_autoscale(
        self,
        *,
        force_include_zero: bool = False,
        tightness: float = 1e-6,
        min_ticks: int = 6,
        step_system: StepSystem | tuple[float, ...] = StepSystem.DECIMAL,
        check_limits: bool = True,
        plusminus: float | None = None,
    ) -> "_AxesBase":
        self.config = self.config.with_x_axis(
            autoscale=True,
            explicit_range=None,
            major_interval=None,
            scale=ScaleOptions(
                force_include_zero=force_include_zero,
                tightness=tightness,
                min_ticks=min_ticks,
                step_system=step_system,
            ),
            check_limits=check_limits,
            plusminus=plusminus,
        )
        return self

    def set_x_ticks(
        self,
        *,
        side: XTicksSide | None = None,
        outward: bool | None = None,
        major_length: float | None = None,
        minor_per_major: int | None = None,
        value_labels_on: bool | None = None,
        rotation: str | None = None,
    ) -> "_AxesBase":
        self.config = self.config.with_x_axis(**_tick_changes(side, outward, major_length, minor_per_major, value_labels_on, rotation))
        return self

    def set_x_grid(self, *, major: bool = True, minor: bool = False, color: Color | None = None) -> "_AxesBase":
        changes: dict[str, Any] = {"major_grid_on": bool(major), "minor_grid_on": bool(minor)}
        if color is not None:
            changes["grid_color"] = color
        self.config = self.config.with_x_axis(**changes)
        return self

    def set_legend(
        self,
        on: bool = True,
        *,
        place: LegendPlace | None = None,
        header: str | None = None,
        position: tuple[float, float] | None = None,
        lines_on: bool | None = None,
    ) -> "_AxesBase":
        changes: dict[str, Any] = {"on": bool(on)}
        if place is not None:
            changes["place"] = place
        if header is not None:
            changes["header"] = str(header)
        if position is not None:
            changes["position"] = (float(position[0]), float(position[1]))
            changes.setdefault("place", "somewhere")
        if lines_on is not None:
            changes["lines_on"] = bool(lines_on)
        self.config = self.config.with_legend(**changes)
        return self

    def set_margins(self, *, border_width: float | None = None, border_margin: float | None = None, text_margin: float | None = None) -> "_AxesBase":
        current = self.config.margins
        self.config = self.config.with_changes(
            margins=Margins(
                border_width=current.border_width if border_width is None else border_width,
                border_margin=current.border_margin if border_margin is None else border_margin,
                text_margin=current.text_margin if text_margin is None else text_margin,
            )
        )
        return self

    def set_plot_window_on(self, on: bool) -> "_AxesBase":
        self.config = self.config.with_changes(plot_window_on=bool(on))
        return self

    def set_limit_margin(self, margin: float) -> "_AxesBase":
        self.config = self.config.with_changes(limit_margin=float(margin))
        return self

    def set_text_measure(self, kind: Literal["estimate", "pillow"]) -> "_AxesBase":
        self.config = self.config.with_changes(text_measure=kind)
        return self

    def last_render(self) -> RenderResult | None:
        return self._last_render

    def last_x_range(self) -> AxisRange | None:
        return None if self._last_render is None else self._last_render.x_range

    def last_y_range(self) -> AxisRange | None:
        return None if self._last_render is None else self._last_render.y_range

    def last_layout(self) -> LayoutResult | None:
        return None if self._last_render is None else self._last_render.layout

    @abstractmethod
    def render(self) -> RenderResult:
        ...

    def _measure(self) -> TextMeasure:
        if self.config.text_measure == "pillow":
            return PillowTextMeasure()
        return EstimatedTextMeasure()

    def _axis_range(self, axis_name: str, axis: AxisConfig, values: np.ndarray, *, prefiltered: bool = False) -> AxisRange:
        if axis.explicit_range is not None:
            lo, hi = axis.explicit_range
            return AxisRange.explicit(lo, hi, axis.major_interval, options=axis.scale)
        try:
            lo, hi = data_bounds(
                values,
                check_limits=axis.check_limits and not prefiltered,
                plusminus=axis.plusminus,
                margin=self.config.limit_margin,
            )
            axis_range = scale_axis(lo, hi, axis.scale)
        except AutoscaleError as exc:
            raise exc.for_axis(axis_name) from exc
        if axis.major_interval is not None:
            axis_range = AxisRange.explicit(axis_range.min, axis_range.max, axis.major_interval)
        return axis_range

    def _title_height(self) -> float:
        cfg = self.config
        return cfg.title_style.font_size if cfg.title_on and cfg.title else 0.0

    @staticmethod
    def _label_size(axis: AxisConfig) -> float:
        return axis.label_style.font_size if axis.label_on and axis.label else 0.0

    def _legend_entries(self, specs: Sequence[Series1D | SeriesXY]) -> tuple[LegendEntry, ...]:
        if not self.config.legend.on:
            return ()
        return tuple(
            LegendEntry(index=i, label=spec.label, style=spec.style)
            for i, spec in enumerate(specs)
            if spec.label is not None and spec.label.strip()
        )

    def _legend_size(self, entries: Sequence[LegendEntry]) -> tuple[float, float]:
        legend = self.config.legend
        if not entries:
            return (0.0, 0.0)
        return legend_box_size(
            [entry.label for entry in entries],
            header=legend.header,
            font_size=legend.text.font_size,
            marker_size=max(entry.style.marker_size for entry in entries),
            lines_on=legend.lines_on,
            border_margin=self.config.margins.border_margin,
            measure=self._measure(),
        )

    def _finish(self, result: RenderResult) -> RenderResult:
        self._last_render = result
        LOGGER.debug(
            "rendered %s plot: x=[%r, %r] window=%s degraded=%s",
            result.kind,
            result.x_range.min,
            result.x_range.max,
            result.layout.plot_window.as_xywh(),
            result.layout.degraded,
        )
        return result


def _tick_changes(
    side: str | None,
    outward: bool | None,
    major_length: float | None,
    minor_per_major: int | None,
    value_labels_on: bool | None,
    rotation: str | None,
) -> dict[str, Any]:
    changes: dict[str, Any] = {}
    if side is not None:
        changes["ticks_side"] = side
    if outward is not None:
        changes["ticks_out"] = bool(outward)
    if major_length is not None:
        changes["major_tick_length"] = float(major_length)
    if minor_per_major is not None:
        changes["minor_ticks_per_major"] = int(minor_per_major)
    if value_labels_on is not None:
        changes["value_labels_on"] = bool(value_labels_on)
    if rotation is not None:
        changes["value_label_rotation"] = rotation
    return changes


def _series_style(
    mode: SeriesMode,
    color: Color,
    fill: Color | None,
    marker: MarkerShape,
    size: float,
    width: float,
    *,
    area_fill: Color | None = None,
    bar: BarMode = "none",
    bar_width: float = 8.0,
    bar_fill: Color | None = None,
) -> SeriesStyle:
    try:
        return SeriesStyle(
            mode=mode,
            color=color,
            fill=fill,
            marker_shape=marker,
            marker_size=size,
            line_width=width,
            area_fill=area_fill,
            bar=bar,
            bar_width=bar_width,
            bar_fill=bar_fill,
        )
    except ValueError as exc:
        raise PlotDataError(str(exc)) from exc


@dataclass
class Axes1D(_AxesBase):
    """Values spread along a single horizontal axis."""

    _series: list[Series1D] = field(default_factory=list)

    def plot(
        self,
        values: Any,
        *,
        label: str | None = None,
        color: Color = "black",
        fill: Color | None = None,
        marker: MarkerShape = "circle",
        size: float = 6.0,
    ) -> "Axes1D":
        arr = as_array(values, label="values")
        if arr.size == 0:
            raise PlotDataError("empty series")
        style = _series_style("markers", color, fill, marker, size, 1.0)
        mask = ~limit_mask(arr, margin=self.config.limit_margin)
        self._series.append(Series1D(values=arr, mask=mask, style=style, label=label))
        return self

    def render(self) -> RenderResult:
        if not self._series:
            raise PlotDataError("axes has no series")
        cfg = self.config
        x_cfg = cfg.x_axis
        values = np.concatenate([spec.values for spec in self._series])
        x_range = self._axis_range("x", x_cfg, values)

        measure = self._measure()
        labels = format_ticks_for_axis(x_range.tick_values())
        label_w, label_h = _max_label_extent(labels, x_cfg.value_label_style, x_cfg.value_label_degrees, measure)
        side: XTicksSide = x_cfg.ticks_side  # type: ignore[assignment]
        entries = self._legend_entries(self._series)
        flags = LayoutFlags(
            legend_on=bool(entries),
            title_on=cfg.title_on,
            x_label_on=x_cfg.label_on,
            y_label_on=False,
            plot_window_on=cfg.plot_window_on,
            x_ticks_side=side,
            y_ticks_side="axis",
            x_value_labels_on=x_cfg.value_labels_on,
            y_value_labels_on=False,
            x_ticks_out=x_cfg.ticks_out,
            y_ticks_out=False,
            legend_place=cfg.legend.place,
        )
        extents = LabelExtents(
            title_height=self._title_height(),
            x_label_height=self._label_size(x_cfg),
            x_value_label_width=label_w,
            x_value_label_height=label_h + x_cfg.value_label_style.font_size * 0.5,
            x_tick_length=x_cfg.major_tick_length,
            legend_size=self._legend_size(entries),
        )
        layout = resolve_layout((cfg.image_width, cfg.image_height), cfg.margins, flags, extents, legend_position=cfg.legend.position)
        window = layout.plot_window
        x_transform = AxisTransform.from_range(x_range, (window.x_min, window.x_max))
        center_y = window.center[1]
        if side == "axis":
            axis_y = center_y
        elif side == "top":
            axis_y = window.y_min
        else:
            axis_y = window.y_max

        origin_x = _origin_pixel(x_range, x_transform)
        mapped = []
        for spec in self._series:
            px = x_transform.to_pixel(spec.values)
            py = np.full(px.shape, center_y, dtype=np.float64)
            px[~spec.mask] = np.nan
            py[~spec.mask] = np.nan
            limit_points = []
            for v in spec.values[~spec.mask].tolist():
                cls = classify(v, margin=cfg.limit_margin)
                limit_points.append(
                    LimitPoint(
                        x=_limit_pixel(cls, v, x_transform, window.x_max, window.x_min, origin_x),
                        y=center_y,
                        x_class=cls,
                        y_class=LimitClass.NORMAL,
                    )
                )
            mapped.append(MappedSeries(label=spec.label, style=spec.style, x=px, y=py, limit_points=tuple(limit_points)))

        return self._finish(
            RenderResult(
                kind="1d",
                config=cfg,
                layout=layout,
                x_range=x_range,
                y_range=None,
                x_transform=x_transform,
                y_transform=None,
                x_ticks_side=side,
                y_ticks_side="axis",
                x_axis_y=axis_y,
                y_axis_x=None,
                x_ticks=_make_ticks(x_range, x_transform, x_cfg),
                y_ticks=None,
                series=tuple(mapped),
                legend_entries=entries,
            )
        )


@dataclass
class _XYAxesBase(_AxesBase):
    def set_y_label(self, label: str, *, on: bool = True, font_size: float | None = None) -> "_XYAxesBase":
        style = self.config.y_axis.label_style
        if font_size is not None:
            style = replace(style, font_size=font_size)
        self.config = self.config.with_y_axis(label=str(label), label_on=bool(on), label_style=style)
        return self

    def set_y_range(self, min_value: float, max_value: float, *, interval: float | None = None) -> "_XYAxesBase":
        self.config = self.config.with_y_axis(
            autoscale=False,
            explicit_range=(float(min_value), float(max_value)),
            major_interval=interval,
        )
        return self

    def set_y_autoscale(
        self,
        *,
        force_include_zero: bool = False,
        tightness: float = 1e-6,
        min_ticks: int = 6,
        step_system: StepSystem | tuple[float, ...] = StepSystem.DECIMAL,
        check_limits: bool = True,
        plusminus: float | None = None,
    ) -> "_XYAxesBase":
        self.config = self.config.with_y_axis(
            autoscale=True,
            explicit_range=None,
            major_interval=None,
            scale=ScaleOptions(
                force_include_zero=force_include_zero,
                tightness=tightness,
                min_ticks=min_ticks,
                step_system=step_system,
            ),
            check_limits=check_limits,
            plusminus=plusminus,
        )
        return self

    def set_y_ticks(
        self,
        *,
        side: YTicksSide | None = None,
        outward: bool | None = None,
        major_length: float | None = None,
        minor_per_major: int | None = None,
        value_labels_on: bool | None = None,
        rotation: str | None = None,
    ) -> "_XYAxesBase":
        self.config = self.config.with_y_axis(**_tick_changes(side, outward, major_length, minor_per_major, value_labels_on, rotation))
        return self

    def set_y_grid(self, *, major: bool = True, minor: bool = False, color: Color | None = None) -> "_XYAxesBase":
        changes: dict[str, Any] = {"major_grid_on": bool(major), "minor_grid_on": bool(minor)}
        if color is not None:
            changes["grid_color"] = color
        self.config = self.config.with_y_axis(**changes)
        return self

    def _layout_xy(
        self,
        x_range: AxisRange,
        y_range: AxisRange,
        x_labels: Sequence[str],
        y_labels: Sequence[str],
        entries: Sequence[LegendEntry],
        *,
        x_side: XTicksSide | None = None,
    ) -> tuple[LayoutResult, XTicksSide, YTicksSide]:
        cfg = self.config
        x_cfg = cfg.x_axis
        y_cfg = cfg.y_axis
        # The x axis sits on y = 0 only when the y range holds zero, and vice versa.
        if x_side is None:
            x_side = resolve_x_ticks_side(x_cfg.ticks_side, y_range)  # type: ignore[arg-type]
        y_side = resolve_y_ticks_side(y_cfg.ticks_side, x_range)  # type: ignore[arg-type]
        measure = self._measure()
        xw, xh = _max_label_extent(x_labels, x_cfg.value_label_style, x_cfg.value_label_degrees, measure)
        yw, yh = _max_label_extent(y_labels, y_cfg.value_label_style, y_cfg.value_label_degrees, measure)
        flags = LayoutFlags(
            legend_on=bool(entries),
            title_on=cfg.title_on,
            x_label_on=x_cfg.label_on,
            y_label_on=y_cfg.label_on,
            plot_window_on=cfg.plot_window_on,
            x_ticks_side=x_side,
            y_ticks_side=y_side,
            x_value_labels_on=x_cfg.value_labels_on,
            y_value_labels_on=y_cfg.value_labels_on,
            x_ticks_out=x_cfg.ticks_out,
            y_ticks_out=y_cfg.ticks_out,
            legend_place=cfg.legend.place,
        )
        extents = LabelExtents(
            title_height=self._title_height(),
            x_label_height=self._label_size(x_cfg),
            y_label_width=self._label_size(y_cfg),
            x_value_label_width=xw,
            x_value_label_height=xh + x_cfg.value_label_style.font_size * 0.5,
            y_value_label_width=yw + y_cfg.value_label_style.font_size * 0.5,
            y_value_label_height=yh,
            x_tick_length=x_cfg.major_tick_length,
            y_tick_length=y_cfg.major_tick_length,
            legend_size=self._legend_size(entries),
        )
        layout = resolve_layout((cfg.image_width, cfg.image_height), cfg.margins, flags, extents, legend_position=cfg.legend.position)
        return layout, x_side, y_side


@dataclass
class Axes2D(_XYAxesBase):
    _series: list[SeriesXY] = field(default_factory=list)

    def plot(
        self,
        y: Any = None,
        *,
        x: Any = None,
        data: Any = None,
        points: Any = None,
        label: str | None = None,
        mode: SeriesMode = "markers",
        color: Color = "black",
        fill: Color | None = None,
        marker: MarkerShape = "circle",
        size: float = 6.0,
        width: float = 2.0,
        area_fill: Color | None = None,
        bar: BarMode = "none",
        bar_width: float = 8.0,
        bar_fill: Color | None = None,
    ) -> "Axes2D":
        style = _series_style(
            mode,
            color,
            fill,
            marker,
            size,
            width,
            area_fill=area_fill,
            bar=bar,
            bar_width=bar_width,
            bar_fill=bar_fill,
        )
        if points is not None:
            if y is not None or x is not None:
                raise PlotDataError("pass either points= or x/y, not both")
            series_data = normalize_pairs(points, source_name=label, margin=self.config.limit_margin)
        else:
            series_data = normalize_xy(y=y, x=x, data=data, source_name=label, margin=self.config.limit_margin)
        self._series.append(SeriesXY(data=series_data, style=style, label=label))
        return self

    def scatter(self, y: Any = None, *, x: Any = None, **kwargs: Any) -> "Axes2D":
        return self.plot(y, x=x, mode="markers", **kwargs)

    def line(self, y: Any = None, *, x: Any = None, **kwargs: Any) -> "Axes2D":
        return self.plot(y, x=x, mode="lines", **kwargs)

    def area(self, y: Any = None, *, x: Any = None, area_fill: Color = "lightgray", **kwargs: Any) -> "Axes2D":
        return self.plot(y, x=x, mode="lines", area_fill=area_fill, **kwargs)

    def bars(self, y: Any = None, *, x: Any = None, bar: BarMode = "x_block", **kwargs: Any) -> "Axes2D":
        kwargs.setdefault("marker", "none")
        return self.plot(y, x=x, mode="markers", bar=bar, **kwargs)

    def render(self) -> RenderResult:
        if not self._series:
            raise PlotDataError("axes has no series")
        cfg = self.config
        xs = np.concatenate([spec.data.x for spec in self._series])
        ys = np.concatenate([spec.data.y for spec in self._series])
        keep = np.concatenate([spec.data.mask for spec in self._series])
        # Pairs with either coordinate at limit are left out of both ranges.
        x_range = self._pair_axis_range("x", cfg.x_axis, xs, keep)
        y_range = self._pair_axis_range("y", cfg.y_axis, ys, keep)

        x_labels = format_ticks_for_axis(x_range.tick_values())
        y_labels = format_ticks_for_axis(y_range.tick_values())
        entries = self._legend_entries(self._series)
        layout, x_side, y_side = self._layout_xy(x_range, y_range, x_labels, y_labels, entries)
        window = layout.plot_window
        transform = build_transform(x_range, y_range, window)
        origin_x = _origin_pixel(x_range, transform.x)
        origin_y = _origin_pixel(y_range, transform.y)

        mapped = []
        for spec in self._series:
            data = spec.data
            px, py = transform.map_points(data.x, data.y)
            px[~data.mask] = np.nan
            py[~data.mask] = np.nan
            limit_points = []
            for xv, yv in zip(data.x[~data.mask].tolist(), data.y[~data.mask].tolist()):
                cx = classify(xv, margin=cfg.limit_margin)
                cy = classify(yv, margin=cfg.limit_margin)
                limit_points.append(
                    LimitPoint(
                        x=_limit_pixel(cx, xv, transform.x, window.x_max, window.x_min, origin_x),
                        y=_limit_pixel(cy, yv, transform.y, window.y_min, window.y_max, origin_y),
                        x_class=cx,
                        y_class=cy,
                    )
                )
            mapped.append(
                MappedSeries(
                    label=spec.label,
                    style=spec.style,
                    x=px,
                    y=py,
                    limit_points=tuple(limit_points),
                    base_x=origin_x,
                    base_y=origin_y,
                )
            )

        return self._finish(
            RenderResult(
                kind="2d",
                config=cfg,
                layout=layout,
                x_range=x_range,
                y_range=y_range,
                x_transform=transform.x,
                y_transform=transform.y,
                x_ticks_side=x_side,
                y_ticks_side=y_side,
                x_axis_y=x_axis_line_y(window, transform.y, y_range, x_side),
                y_axis_x=y_axis_line_x(window, transform.x, x_range, y_side),
                x_ticks=_make_ticks(x_range, transform.x, cfg.x_axis),
                y_ticks=_make_ticks(y_range, transform.y, cfg.y_axis),
                series=tuple(mapped),
                legend_entries=entries,
            )
        )

    def _pair_axis_range(self, axis_name: str, axis: AxisConfig, values: np.ndarray, keep: np.ndarray) -> AxisRange:
        if axis.explicit_range is not None or not axis.check_limits:
            return self._axis_range(axis_name, axis, values)
        if values.size and not np.any(keep):
            raise AutoscaleError("no finite values to scale", axis=axis_name)
        return self._axis_range(axis_name, axis, values[keep], prefiltered=True)


@dataclass
class BoxplotAxes(_XYAxesBase):
    """One box per series along a categorical x axis."""

    _series: list[BoxplotSeries] = field(default_factory=list)

    def plot(
        self,
        values: Any,
        *,
        label: str | None = None,
        rule: InterpolationRule | str = DEFAULT_RULE,
        style: BoxStyle | None = None,
    ) -> "BoxplotAxes":
        arr = as_array(values, label="values")
        name = label if label is not None else f"series {len(self._series) + 1}"
        try:
            summary = summarize(arr, rule=rule, check_limits=self.config.y_axis.check_limits, margin=self.config.limit_margin)
        except QuantileError as exc:
            raise QuantileError(f"box plot {name!r}: {exc}") from exc
        self._series.append(BoxplotSeries(values=np.sort(arr), summary=summary, style=style or BoxStyle(), label=label))
        return self

    def render(self) -> RenderResult:
        if not self._series:
            raise PlotDataError("axes has no series")
        cfg = self.config
        count = len(self._series)
        # Category slot i is centred on data x = i + 0.5.
        x_range = AxisRange(min=0.0, max=float(count), tick_interval=1.0, tick_count=count + 1)
        values = np.concatenate([spec.values for spec in self._series])
        y_range = self._axis_range("y", cfg.y_axis, values)

        x_labels = [spec.label or f"series {i + 1}" for i, spec in enumerate(self._series)]
        y_labels = format_ticks_for_axis(y_range.tick_values())
        layout, _, y_side = self._layout_xy(x_range, y_range, x_labels, y_labels, (), x_side="bottom")
        window = layout.plot_window
        transform = build_transform(x_range, y_range, window)

        centers = np.arange(count, dtype=np.float64) + 0.5
        center_px = transform.x.to_pixel(centers)
        x_ticks = AxisTicks(
            values=centers,
            pixels=center_px,
            labels=tuple(x_labels),
            minor_pixels=np.empty(0, dtype=np.float64),
        )

        to_y = transform.y.to_pixel
        boxes = []
        for spec, cx in zip(self._series, center_px.tolist()):
            s = spec.summary
            boxes.append(
                MappedBox(
                    label=spec.label,
                    style=spec.style,
                    center_x=cx,
                    q1_y=float(to_y(s.q1)),
                    median_y=float(to_y(s.median)),
                    q3_y=float(to_y(s.q3)),
                    whisker_min_y=float(to_y(s.whisker_min)),
                    whisker_max_y=float(to_y(s.whisker_max)),
                    mild_outliers_y=tuple(float(to_y(v)) for v in s.mild_outliers),
                    extreme_outliers_y=tuple(float(to_y(v)) for v in s.extreme_outliers),
                    series=spec,
                )
            )

        return self._finish(
            RenderResult(
                kind="boxplot",
                config=cfg,
                layout=layout,
                x_range=x_range,
                y_range=y_range,
                x_transform=transform.x,
                y_transform=transform.y,
                x_ticks_side="bottom",
                y_ticks_side=y_side,
                x_axis_y=window.y_max,
                y_axis_x=y_axis_line_x(window, transform.x, x_range, y_side),
                x_ticks=x_ticks,
                y_ticks=_make_ticks(y_range, transform.y, cfg.y_axis),
                boxes=tuple(boxes),
            )
        )


@dataclass
class Figure:
    width: float | None = None
    height: float | None = None
    kind: FigureKind = "2d"
    _axes: _AxesBase | None = None

    def __post_init__(self) -> None:
        if self.kind not in FIGURE_KINDS:
            raise ValueError(f"unsupported figure kind: {self.kind}")
        default_w, default_h = DEFAULT_SIZES[self.kind]
        if self.width is None:
            self.width = default_w
        if self.height is None:
            self.height = default_h
        if self.width <= 0 or self.height <= 0:
            raise ValueError("width and height must be > 0")

    def axes(self, *, title: str = "", x_label: str = "", y_label: str = "") -> Any:
        if self._axes is not None:
            raise PlotDataError("a figure holds a single axes")
        config = PlotConfiguration(image_width=float(self.width), image_height=float(self.height), title=title)
        config = config.with_x_axis(label=x_label)
        if self.kind == "1d":
            self._axes = Axes1D(figure=self, config=config)
        elif self.kind == "boxplot":
            self._axes = BoxplotAxes(figure=self, config=config.with_y_axis(label=y_label))
        else:
            self._axes = Axes2D(figure=self, config=config.with_y_axis(label=y_label))
        return self._axes

    def render(self) -> RenderResult:
        if self._axes is None:
            raise PlotDataError("figure has no axes")
        return self._axes.render()

    def to_svg(self) -> str:
        return emit_svg(self.render())

    def write(self, target: str | Path | IO[str]) -> None:
        svg = self.to_svg()
        if isinstance(target, (str, Path)):
            path = Path(target)
            path.write_text(svg, encoding="utf-8")
            LOGGER.debug("wrote %s (%d bytes)", path, len(svg))
            return
        target.write(svg)
