from svgplot.api import figure
from svgplot.config import AxisConfig, LegendConfig, PlotConfiguration, TextStyle
from svgplot.errors import AutoscaleError, PlotConfigError, PlotDataError, QuantileError
from svgplot.figure import Axes1D, Axes2D, BoxplotAxes, Figure, RenderResult
from svgplot.layout import LabelExtents, LayoutFlags, LayoutResult, Margins, Rect, resolve_layout
from svgplot.limits import LimitClass, classify, is_limit, pair_is_limit
from svgplot.quantile import InterpolationRule, QuantileSummary, median, quantile, summarize
from svgplot.scales import AxisRange, ScaleOptions, StepSystem, scale_axis, scale_sample, scale_xy
from svgplot.transform import AxisTransform, PlotTransform, build_transform, to_data, to_pixel

__all__ = [
    "AutoscaleError",
    "AxisConfig",
    "AxisRange",
    "AxisTransform",
    "Axes1D",
    "Axes2D",
    "BoxplotAxes",
    "Figure",
    "InterpolationRule",
    "LabelExtents",
    "LayoutFlags",
    "LayoutResult",
    "LegendConfig",
    "LimitClass",
    "Margins",
    "PlotConfigError",
    "PlotConfiguration",
    "PlotDataError",
    "PlotTransform",
    "QuantileError",
    "QuantileSummary",
    "Rect",
    "RenderResult",
    "ScaleOptions",
    "StepSystem",
    "TextStyle",
    "build_transform",
    "classify",
    "figure",
    "is_limit",
    "median",
    "pair_is_limit",
    "quantile",
    "resolve_layout",
    "scale_axis",
    "scale_sample",
    "scale_xy",
    "summarize",
    "to_data",
    "to_pixel",
]
