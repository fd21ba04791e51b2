from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
import logging
from typing import Literal

from svgplot.scales import AxisRange
from svgplot.text_metrics import EstimatedTextMeasure, TextMeasure
from svgplot.transform import AxisTransform


LOGGER = logging.getLogger(__name__)

LegendPlace = Literal[
    "outside_right",
    "outside_left",
    "outside_top",
    "outside_bottom",
    "inside",
    "somewhere",
    "nowhere",
]
XTicksSide = Literal["bottom", "axis", "top"]
YTicksSide = Literal["left", "axis", "right"]

LEGEND_PLACES = ("outside_right", "outside_left", "outside_top", "outside_bottom", "inside", "somewhere", "nowhere")
X_TICKS_SIDES = ("bottom", "axis", "top")
Y_TICKS_SIDES = ("left", "axis", "right")

LEGEND_ROW_FACTOR = 2.0
MIN_PLOT_WINDOW = 1.0


@dataclass(frozen=True)
class Rect:
    x_min: float
    y_min: float
    x_max: float
    y_max: float

    def __post_init__(self) -> None:
        if self.x_max < self.x_min or self.y_max < self.y_min:
            raise ValueError(f"invalid rect: ({self.x_min}, {self.y_min}, {self.x_max}, {self.y_max})")

    @classmethod
    def clamped(cls, x_min: float, y_min: float, x_max: float, y_max: float) -> "Rect":
        return cls(x_min, y_min, max(x_min, x_max), max(y_min, y_max))

    @property
    def width(self) -> float:
        return self.x_max - self.x_min

    @property
    def height(self) -> float:
        return self.y_max - self.y_min

    @property
    def center(self) -> tuple[float, float]:
        return ((self.x_min + self.x_max) / 2.0, (self.y_min + self.y_max) / 2.0)

    def contains(self, x: float, y: float) -> bool:
        return self.x_min <= x <= self.x_max and self.y_min <= y <= self.y_max

    def contains_rect(self, other: "Rect") -> bool:
        return self.contains(other.x_min, other.y_min) and self.contains(other.x_max, other.y_max)

    def inset(self, dx: float, dy: float) -> "Rect":
        return Rect.clamped(self.x_min + dx, self.y_min + dy, self.x_max - dx, self.y_max - dy)

    def as_xywh(self) -> tuple[float, float, float, float]:
        return (self.x_min, self.y_min, self.width, self.height)


@dataclass(frozen=True)
class Margins:
    border_width: float = 2.0
    border_margin: float = 3.0
    text_margin: float = 2.0

    def __post_init__(self) -> None:
        if self.border_width < 0 or self.border_margin < 0 or self.text_margin < 0:
            raise ValueError("margins must be >= 0")


@dataclass(frozen=True)
class LayoutFlags:
    legend_on: bool = False
    title_on: bool = True
    x_label_on: bool = True
    y_label_on: bool = True
    plot_window_on: bool = True
    x_ticks_side: XTicksSide = "bottom"
    y_ticks_side: YTicksSide = "left"
    x_value_labels_on: bool = True
    y_value_labels_on: bool = True
    x_ticks_out: bool = True
    y_ticks_out: bool = True
    legend_place: LegendPlace = "outside_right"

    def __post_init__(self) -> None:
        if self.x_ticks_side not in X_TICKS_SIDES:
            raise ValueError(f"unsupported x ticks side: {self.x_ticks_side}")
        if self.y_ticks_side not in Y_TICKS_SIDES:
            raise ValueError(f"unsupported y ticks side: {self.y_ticks_side}")
        if self.legend_place not in LEGEND_PLACES:
            raise ValueError(f"unsupported legend place: {self.legend_place}")


@dataclass(frozen=True)
class LabelExtents:
    title_height: float = 0.0
    x_label_height: float = 0.0
    y_label_width: float = 0.0
    x_value_label_width: float = 0.0
    x_value_label_height: float = 0.0
    y_value_label_width: float = 0.0
    y_value_label_height: float = 0.0
    x_tick_length: float = 0.0
    y_tick_length: float = 0.0
    legend_size: tuple[float, float] = (0.0, 0.0)


@dataclass(frozen=True)
class LayoutResult:
    image: Rect
    plot_window: Rect
    title_band: Rect | None = None
    legend_box: Rect | None = None
    x_label_band: Rect | None = None
    y_label_band: Rect | None = None
    x_value_band: Rect | None = None
    y_value_band: Rect | None = None
    warnings: tuple[str, ...] = field(default_factory=tuple)

    @property
    def degraded(self) -> bool:
        return bool(self.warnings)


def legend_box_size(
    entries: Sequence[str],
    *,
    header: str = "",
    font_size: float = 14.0,
    marker_size: float = 5.0,
    lines_on: bool = False,
    border_margin: float = 3.0,
    measure: TextMeasure | None = None,
) -> tuple[float, float]:
    if measure is None:
        measure = EstimatedTextMeasure()
    spacing = max(font_size, marker_size)
    texts = list(entries) + ([header] if header else [])
    longest = max((measure.text_size(t, font_size=font_size)[0] for t in texts), default=0.0)
    width = 2.0 * border_margin + longest + spacing * 2.5
    if lines_on:
        width += spacing * 1.5
    height = spacing + len(entries) * spacing * LEGEND_ROW_FACTOR
    if header:
        height += font_size * 2.0
    return (width, height)


def legend_entry_positions(
    box: Rect,
    count: int,
    *,
    header: bool,
    font_size: float = 14.0,
    marker_size: float = 5.0,
    lines_on: bool = False,
    border_margin: float = 3.0,
) -> list[tuple[float, float, float]]:
    """(marker x, text x, baseline y) for each legend row, top to bottom."""
    spacing = max(font_size, marker_size)
    marker_x = box.x_min + border_margin + spacing
    text_x = marker_x + spacing * (2.5 if lines_on else 1.0)
    y = box.y_min + spacing * 1.5
    if header:
        y += font_size * 2.0
    out = []
    for _ in range(count):
        out.append((marker_x, text_x, y))
        y += spacing * LEGEND_ROW_FACTOR
    return out


def resolve_layout(
    image_size: tuple[float, float],
    margins: Margins,
    flags: LayoutFlags,
    extents: LabelExtents,
    *,
    legend_position: tuple[float, float] | None = None,
) -> LayoutResult:
    """Carve the image into title, label, legend and plot-window regions.

    Never raises: when the requested bands leave no room, the plot window is
    clamped to a 1x1 rectangle and the result carries a warning.
    """
    width = max(MIN_PLOT_WINDOW, float(image_size[0]))
    height = max(MIN_PLOT_WINDOW, float(image_size[1]))
    image = Rect(0.0, 0.0, width, height)
    warnings: list[str] = []

    left = margins.border_width
    top = margins.border_width
    right = width - margins.border_width
    bottom = height - margins.border_width

    title_band = None
    if flags.title_on and extents.title_height > 0:
        band = extents.title_height * (margins.text_margin + 0.5)
        title_band = Rect.clamped(left, top, right, top + band)
        top += band

    x_label_band = None
    if flags.x_label_on and extents.x_label_height > 0:
        band = extents.x_label_height * margins.text_margin
        x_label_band = Rect.clamped(left, bottom - band, right, bottom)
        bottom -= band

    y_label_band = None
    if flags.y_label_on and extents.y_label_width > 0:
        band = extents.y_label_width * margins.text_margin
        y_label_band = Rect.clamped(left, top, left + band, bottom)
        left += band

    if flags.plot_window_on:
        # Edge tick labels overhang the window by half their extent.
        h_margin = margins.border_margin
        if flags.x_value_labels_on and flags.x_ticks_side != "axis":
            h_margin = max(h_margin, extents.x_value_label_width / 2.0)
        v_margin = margins.border_margin
        if flags.y_value_labels_on and flags.y_ticks_side != "axis":
            v_margin = max(v_margin, extents.y_value_label_height / 2.0)
        left += h_margin
        right -= h_margin
        top += v_margin
        bottom -= v_margin

    legend_box = None
    legend_w, legend_h = extents.legend_size
    gap = margins.border_margin
    if flags.legend_on and flags.legend_place != "nowhere" and legend_w > 0 and legend_h > 0:
        if legend_w > width or legend_h > height:
            warnings.append(f"legend {legend_w:.0f}x{legend_h:.0f} does not fit the image {width:.0f}x{height:.0f}")
        place = flags.legend_place
        if place == "outside_right":
            legend_box = Rect.clamped(right - legend_w, top, right, top + legend_h)
            right -= legend_w + gap
        elif place == "outside_left":
            legend_box = Rect.clamped(left, top, left + legend_w, top + legend_h)
            left += legend_w + gap
        elif place == "outside_top":
            cx = (left + right) / 2.0
            legend_box = Rect.clamped(cx - legend_w / 2.0, top, cx + legend_w / 2.0, top + legend_h)
            top += legend_h + gap
        elif place == "outside_bottom":
            cx = (left + right) / 2.0
            legend_box = Rect.clamped(cx - legend_w / 2.0, bottom - legend_h, cx + legend_w / 2.0, bottom)
            bottom -= legend_h + gap
        elif place == "somewhere":
            x0, y0 = legend_position if legend_position is not None else (left, top)
            legend_box = Rect(x0, y0, x0 + legend_w, y0 + legend_h)

    x_value_band = None
    if flags.x_ticks_side == "bottom":
        if flags.x_ticks_out:
            bottom -= extents.x_tick_length
        if flags.x_value_labels_on:
            x_value_band = Rect.clamped(left, bottom - extents.x_value_label_height, right, bottom)
            bottom -= extents.x_value_label_height
    elif flags.x_ticks_side == "top":
        if flags.x_ticks_out:
            top += extents.x_tick_length
        if flags.x_value_labels_on:
            x_value_band = Rect.clamped(left, top, right, top + extents.x_value_label_height)
            top += extents.x_value_label_height

    y_value_band = None
    if flags.y_ticks_side == "left":
        if flags.y_ticks_out:
            left += extents.y_tick_length
        if flags.y_value_labels_on:
            y_value_band = Rect.clamped(left, top, left + extents.y_value_label_width, bottom)
            left += extents.y_value_label_width
    elif flags.y_ticks_side == "right":
        if flags.y_ticks_out:
            right -= extents.y_tick_length
        if flags.y_value_labels_on:
            y_value_band = Rect.clamped(right - extents.y_value_label_width, top, right, bottom)
            right -= extents.y_value_label_width

    if right - left < MIN_PLOT_WINDOW or bottom - top < MIN_PLOT_WINDOW:
        warnings.append(
            f"plot window collapsed to {right - left:.1f}x{bottom - top:.1f}; clamped to a 1x1 rectangle"
        )
        x0 = min(max(0.0, min(left, right)), width - MIN_PLOT_WINDOW)
        y0 = min(max(0.0, min(top, bottom)), height - MIN_PLOT_WINDOW)
        plot_window = Rect(x0, y0, x0 + MIN_PLOT_WINDOW, y0 + MIN_PLOT_WINDOW)
    else:
        plot_window = Rect(left, top, right, bottom)

    if flags.legend_on and flags.legend_place == "inside" and legend_w > 0 and legend_h > 0:
        legend_box = Rect(
            plot_window.x_max - legend_w - gap,
            plot_window.y_min + gap,
            plot_window.x_max - gap,
            plot_window.y_min + gap + legend_h,
        )
        if not plot_window.contains_rect(legend_box):
            warnings.append("legend does not fit inside the plot window")

    for message in warnings:
        LOGGER.warning("layout degraded: %s", message)

    return LayoutResult(
        image=image,
        plot_window=plot_window,
        title_band=title_band,
        legend_box=legend_box,
        x_label_band=x_label_band,
        y_label_band=y_label_band,
        x_value_band=x_value_band,
        y_value_band=y_value_band,
        warnings=tuple(warnings),
    )


def resolve_x_ticks_side(requested: XTicksSide, y_range: AxisRange) -> XTicksSide:
    if requested != "axis":
        return requested
    if y_range.min > 0.0:
        return "bottom"
    if y_range.max < 0.0:
        return "top"
    return "axis"


def resolve_y_ticks_side(requested: YTicksSide, x_range: AxisRange) -> YTicksSide:
    if requested != "axis":
        return requested
    if x_range.min > 0.0:
        return "left"
    if x_range.max < 0.0:
        return "right"
    return "axis"


def x_axis_line_y(plot_window: Rect, y_transform: AxisTransform, y_range: AxisRange, side: XTicksSide) -> float:
    side = resolve_x_ticks_side(side, y_range)
    if side == "bottom":
        return plot_window.y_max
    if side == "top":
        return plot_window.y_min
    return float(y_transform.to_pixel(0.0))


def y_axis_line_x(plot_window: Rect, x_transform: AxisTransform, x_range: AxisRange, side: YTicksSide) -> float:
    side = resolve_y_ticks_side(side, x_range)
    if side == "left":
        return plot_window.x_min
    if side == "right":
        return plot_window.x_max
    return float(x_transform.to_pixel(0.0))
