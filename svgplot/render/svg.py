from __future__ import annotations

from contextlib import contextmanager
import math
from typing import TYPE_CHECKING, Iterator
from xml.sax.saxutils import escape, quoteattr

import numpy as np

from svgplot.layout import Rect, legend_entry_positions
from svgplot.limits import LimitClass
from svgplot.series import Color

if TYPE_CHECKING:
    from svgplot.config import TextStyle
    from svgplot.figure import LimitPoint, MappedBox, MappedSeries, RenderResult


def svg_color(color: Color | None) -> tuple[str, float | None]:
    """Return an SVG paint value and an optional opacity."""
    if color is None:
        return ("none", None)
    if isinstance(color, str):
        return (color, None)
    if len(color) == 3:
        r, g, b = color
        return (f"rgb({int(r)},{int(g)},{int(b)})", None)
    r, g, b, a = color
    return (f"rgb({int(r)},{int(g)},{int(b)})", round(int(a) / 255.0, 3))


def _num(value: float) -> str:
    out = f"{float(value):.2f}".rstrip("0").rstrip(".")
    return "0" if out == "-0" else out


class SvgDocument:
    def __init__(self, width: float, height: float) -> None:
        self.width = width
        self.height = height
        self._parts: list[str] = []
        self._depth = 1

    def _emit(self, text: str) -> None:
        self._parts.append("  " * self._depth + text)

    def _attrs(self, attrs: dict[str, object]) -> str:
        out = []
        for key, value in attrs.items():
            if value is None:
                continue
            if isinstance(value, float):
                value = _num(value)
            out.append(f"{key.replace('_', '-')}={quoteattr(str(value))}")
        return " ".join(out)

    def _paint(self, prefix: str, color: Color | None) -> dict[str, object]:
        paint, opacity = svg_color(color)
        return {prefix: paint, f"{prefix}_opacity": opacity}

    @contextmanager
    def group(self, group_id: str, **attrs: object) -> Iterator[None]:
        self._emit(f"<g id={quoteattr(group_id)} {self._attrs(attrs)}".rstrip() + ">")
        self._depth += 1
        try:
            yield
        finally:
            self._depth -= 1
            self._emit("</g>")

    def clip_path(self, clip_id: str, rect: Rect) -> None:
        self._emit(f"<clipPath id={quoteattr(clip_id)}>")
        self._depth += 1
        self.rect(rect, stroke=None, fill=None)
        self._depth -= 1
        self._emit("</clipPath>")

    def rect(self, rect: Rect, *, stroke: Color | None = "black", fill: Color | None = None, width: float = 1.0) -> None:
        attrs: dict[str, object] = {
            "x": float(rect.x_min),
            "y": float(rect.y_min),
            "width": float(rect.width),
            "height": float(rect.height),
        }
        attrs.update(self._paint("stroke", stroke))
        attrs.update(self._paint("fill", fill))
        if stroke is not None:
            attrs["stroke_width"] = float(width)
        self._emit(f"<rect {self._attrs(attrs)}/>")

    def line(self, x1: float, y1: float, x2: float, y2: float) -> None:
        attrs = {"x1": float(x1), "y1": float(y1), "x2": float(x2), "y2": float(y2)}
        self._emit(f"<line {self._attrs(attrs)}/>")

    def circle(self, cx: float, cy: float, r: float) -> None:
        self._emit(f"<circle {self._attrs({'cx': float(cx), 'cy': float(cy), 'r': float(r)})}/>")

    def polygon(self, points: list[tuple[float, float]]) -> None:
        coords = " ".join(f"{_num(x)},{_num(y)}" for x, y in points)
        self._emit(f"<polygon points={quoteattr(coords)}/>")

    def polyline(self, xs: np.ndarray, ys: np.ndarray) -> None:
        coords = " ".join(f"{_num(x)},{_num(y)}" for x, y in zip(xs.tolist(), ys.tolist()))
        self._emit(f"<polyline points={quoteattr(coords)} fill=\"none\"/>")

    def text(
        self,
        x: float,
        y: float,
        content: str,
        style: "TextStyle",
        *,
        anchor: str = "middle",
        rotate_deg: float = 0.0,
    ) -> None:
        if not content:
            return
        attrs: dict[str, object] = {
            "x": float(x),
            "y": float(y),
            "text_anchor": anchor,
            "font_size": float(style.font_size),
            "font_family": style.font_family,
            "font_weight": None if style.weight == "normal" else style.weight,
        }
        attrs.update(self._paint("fill", style.color))
        if rotate_deg:
            attrs["transform"] = f"rotate({_num(rotate_deg)} {_num(x)} {_num(y)})"
        self._emit(f"<text {self._attrs(attrs)}>{escape(content)}</text>")

    def to_string(self) -> str:
        head = (
            '<?xml version="1.0" encoding="UTF-8" standalone="no"?>\n'
            f'<svg width="{_num(self.width)}" height="{_num(self.height)}" version="1.1" '
            'xmlns="http://www.w3.org/2000/svg">'
        )
        return "\n".join([head, *self._parts, "</svg>"]) + "\n"


def emit_svg(result: "RenderResult") -> str:
    cfg = result.config
    layout = result.layout
    doc = SvgDocument(layout.image.width, layout.image.height)
    window = layout.plot_window

    border = cfg.image_border
    with doc.group("imageBackground"):
        doc.rect(layout.image, stroke=border.stroke if border.on else None, fill=border.fill, width=border.width)

    if cfg.plot_window_on:
        pw = cfg.plot_window_border
        with doc.group("plotBackground"):
            doc.rect(window, stroke=pw.stroke if pw.on else None, fill=pw.fill, width=pw.width)

    _emit_grids(doc, result)
    _emit_axes(doc, result)
    _emit_labels(doc, result)

    doc.clip_path("plotWindowClip", window)
    with doc.group("plotPoints", clip_path="url(#plotWindowClip)"):
        for index, mapped in enumerate(result.series):
            _emit_series(doc, mapped, index)
        for index, box in enumerate(result.boxes):
            _emit_box(doc, box, index)

    limit_points = [p for mapped in result.series for p in mapped.limit_points]
    if limit_points:
        with doc.group(
            "limitPoints",
            stroke=svg_color(cfg.limit_point_stroke)[0],
            fill=svg_color(cfg.limit_point_fill)[0],
        ):
            for point in limit_points:
                doc.polygon(_limit_marker(point, size=6.0))

    _emit_legend(doc, result)
    return doc.to_string()


def _emit_grids(doc: SvgDocument, result: "RenderResult") -> None:
    window = result.layout.plot_window
    cfg = result.config
    for axis_name, axis_cfg, ticks in (("x", cfg.x_axis, result.x_ticks), ("y", cfg.y_axis, result.y_ticks)):
        if ticks is None:
            continue
        for kind, on, pixels, width in (
            ("Minor", axis_cfg.minor_grid_on, ticks.minor_pixels, 0.5),
            ("Major", axis_cfg.major_grid_on, ticks.pixels, 1.0),
        ):
            if not on or pixels.size == 0:
                continue
            with doc.group(f"{axis_name}{kind}Grid", stroke=svg_color(axis_cfg.grid_color)[0], stroke_width=width):
                for p in pixels.tolist():
                    if axis_name == "x":
                        doc.line(p, window.y_min, p, window.y_max)
                    else:
                        doc.line(window.x_min, p, window.x_max, p)


def _emit_axes(doc: SvgDocument, result: "RenderResult") -> None:
    cfg = result.config
    window = result.layout.plot_window
    if result.x_ticks is not None and result.x_axis_y is not None:
        axis = cfg.x_axis
        y0 = result.x_axis_y
        direction = -1.0 if result.x_ticks_side == "top" else 1.0
        if not axis.ticks_out:
            direction = -direction
        with doc.group("xAxis", stroke=svg_color(axis.color)[0], stroke_width=1.0):
            if axis.axis_line_on:
                doc.line(window.x_min, y0, window.x_max, y0)
            for p in result.x_ticks.pixels.tolist():
                doc.line(p, y0, p, y0 + direction * axis.major_tick_length)
            for p in result.x_ticks.minor_pixels.tolist():
                doc.line(p, y0, p, y0 + direction * axis.minor_tick_length)
        if axis.value_labels_on:
            style = axis.value_label_style
            rotation = axis.value_label_degrees
            reach = axis.major_tick_length if axis.ticks_out else 0.0
            if result.x_ticks_side == "top":
                baseline = y0 - reach - style.font_size * 0.4
            else:
                baseline = y0 + reach + style.font_size * 1.1
            anchor = "middle" if rotation == 0 else ("end" if rotation < 0 else "start")
            with doc.group("xTicksValues"):
                for p, label in zip(result.x_ticks.pixels.tolist(), result.x_ticks.labels):
                    doc.text(p, baseline, label, style, anchor=anchor, rotate_deg=rotation)

    if result.y_ticks is not None and result.y_axis_x is not None:
        axis = cfg.y_axis
        x0 = result.y_axis_x
        direction = 1.0 if result.y_ticks_side == "right" else -1.0
        if not axis.ticks_out:
            direction = -direction
        with doc.group("yAxis", stroke=svg_color(axis.color)[0], stroke_width=1.0):
            if axis.axis_line_on:
                doc.line(x0, window.y_min, x0, window.y_max)
            for p in result.y_ticks.pixels.tolist():
                doc.line(x0, p, x0 + direction * axis.major_tick_length, p)
            for p in result.y_ticks.minor_pixels.tolist():
                doc.line(x0, p, x0 + direction * axis.minor_tick_length, p)
        if axis.value_labels_on:
            style = axis.value_label_style
            reach = axis.major_tick_length if axis.ticks_out else 0.0
            text_x = x0 - reach - style.font_size * 0.3
            anchor = "end"
            if result.y_ticks_side == "right":
                text_x = x0 + reach + style.font_size * 0.3
                anchor = "start"
            with doc.group("yTicksValues"):
                for p, label in zip(result.y_ticks.pixels.tolist(), result.y_ticks.labels):
                    doc.text(text_x, p + style.font_size * 0.35, label, style, anchor=anchor)


def _emit_labels(doc: SvgDocument, result: "RenderResult") -> None:
    cfg = result.config
    layout = result.layout
    if layout.title_band is not None:
        cx, cy = layout.title_band.center
        with doc.group("title"):
            doc.text(cx, cy + cfg.title_style.font_size * 0.35, cfg.title, cfg.title_style)
    if layout.x_label_band is not None:
        style = cfg.x_axis.label_style
        cx = layout.plot_window.center[0]
        cy = layout.x_label_band.center[1]
        with doc.group("xLabel"):
            doc.text(cx, cy + style.font_size * 0.35, cfg.x_axis.label, style)
    if layout.y_label_band is not None:
        style = cfg.y_axis.label_style
        cx = layout.y_label_band.center[0] + style.font_size * 0.35
        cy = layout.plot_window.center[1]
        with doc.group("yLabel"):
            doc.text(cx, cy, cfg.y_axis.label, style, rotate_deg=-90.0)


def _emit_series(doc: SvgDocument, mapped: "MappedSeries", index: int) -> None:
    style = mapped.style
    stroke = svg_color(style.color)[0]
    if style.area_fill is not None and mapped.base_y is not None:
        paint, opacity = svg_color(style.area_fill)
        with doc.group(f"series{index}Area", stroke="none", fill=paint, fill_opacity=opacity):
            for start, stop in _finite_runs(mapped.x, mapped.y):
                if stop - start > 1:
                    xs = mapped.x[start:stop].tolist()
                    ys = mapped.y[start:stop].tolist()
                    doc.polygon([(xs[0], mapped.base_y), *zip(xs, ys), (xs[-1], mapped.base_y)])
    if style.shows_bars and mapped.base_x is not None and mapped.base_y is not None:
        _emit_bars(doc, mapped, index)
    if style.shows_lines:
        with doc.group(f"series{index}Lines", stroke=stroke, stroke_width=float(style.line_width)):
            for start, stop in _finite_runs(mapped.x, mapped.y):
                if stop - start > 1:
                    doc.polyline(mapped.x[start:stop], mapped.y[start:stop])
    if style.shows_markers:
        fill = svg_color(style.fill if style.fill is not None else style.color)[0]
        with doc.group(f"series{index}Markers", stroke=stroke, fill=fill):
            finite = np.isfinite(mapped.x) & np.isfinite(mapped.y)
            for x, y in zip(mapped.x[finite].tolist(), mapped.y[finite].tolist()):
                _emit_marker(doc, style.marker_shape, x, y, style.marker_size / 2.0)


def _emit_bars(doc: SvgDocument, mapped: "MappedSeries", index: int) -> None:
    style = mapped.style
    x0 = mapped.base_x
    y0 = mapped.base_y
    half = style.bar_width / 2.0
    fill = style.bar_fill if style.bar_fill is not None else style.color
    finite = np.isfinite(mapped.x) & np.isfinite(mapped.y)
    with doc.group(f"series{index}Bars", stroke=svg_color(style.color)[0], stroke_width=float(style.line_width)):
        for x, y in zip(mapped.x[finite].tolist(), mapped.y[finite].tolist()):
            if style.bar == "x_stick":
                doc.line(x, y, x, y0)
            elif style.bar == "y_stick":
                doc.line(x0, y, x, y)
            elif style.bar == "x_block":
                doc.rect(Rect.clamped(x - half, min(y, y0), x + half, max(y, y0)), stroke=style.color, fill=fill)
            else:
                doc.rect(Rect.clamped(min(x, x0), y - half, max(x, x0), y + half), stroke=style.color, fill=fill)


def _emit_marker(doc: SvgDocument, shape: str, x: float, y: float, r: float) -> None:
    if shape == "circle":
        doc.circle(x, y, r)
    elif shape == "square":
        doc.polygon([(x - r, y - r), (x + r, y - r), (x + r, y + r), (x - r, y + r)])
    elif shape == "diamond":
        doc.polygon([(x, y - r), (x + r, y), (x, y + r), (x - r, y)])
    elif shape == "triangle":
        doc.polygon([(x, y - r), (x + r, y + r), (x - r, y + r)])
    elif shape == "cross":
        doc.line(x - r, y, x + r, y)
        doc.line(x, y - r, x, y + r)


def _emit_box(doc: SvgDocument, box: "MappedBox", index: int) -> None:
    style = box.style
    half = style.box_width / 2.0
    whisker = style.whisker_length / 2.0
    cx = box.center_x
    with doc.group(f"box{index}", stroke=svg_color(style.box_stroke)[0], stroke_width=1.0):
        doc.line(cx, box.whisker_max_y, cx, box.q3_y)
        doc.line(cx, box.q1_y, cx, box.whisker_min_y)
        doc.line(cx - whisker, box.whisker_max_y, cx + whisker, box.whisker_max_y)
        doc.line(cx - whisker, box.whisker_min_y, cx + whisker, box.whisker_min_y)
        doc.rect(
            Rect.clamped(cx - half, min(box.q1_y, box.q3_y), cx + half, max(box.q1_y, box.q3_y)),
            stroke=style.box_stroke,
            fill=style.box_fill,
        )
    with doc.group(f"box{index}Median", stroke=svg_color(style.median_color)[0], stroke_width=style.median_width):
        doc.line(cx - half, box.median_y, cx + half, box.median_y)
    for kind, color, ys in (
        ("Mild", style.mild_outlier_color, box.mild_outliers_y),
        ("Extreme", style.extreme_outlier_color, box.extreme_outliers_y),
    ):
        if ys:
            with doc.group(f"box{index}{kind}Outliers", stroke=svg_color(color)[0], fill="none"):
                for y in ys:
                    doc.circle(cx, y, style.outlier_size)


def _limit_marker(point: "LimitPoint", *, size: float) -> list[tuple[float, float]]:
    dx = 0.0
    dy = 0.0
    if point.x_class is LimitClass.PLUS_INFINITY:
        dx = 1.0
    elif point.x_class is LimitClass.MINUS_INFINITY:
        dx = -1.0
    if point.y_class is LimitClass.PLUS_INFINITY:
        dy = -1.0
    elif point.y_class is LimitClass.MINUS_INFINITY:
        dy = 1.0
    if dx == 0.0 and dy == 0.0:
        # NaN has no direction: draw a diamond at the origin.
        x, y = point.x, point.y
        return [(x, y - size), (x + size, y), (x, y + size), (x - size, y)]
    norm = math.hypot(dx, dy)
    dx /= norm
    dy /= norm
    tip = (point.x + dx * size, point.y + dy * size)
    base_x = point.x - dx * size * 0.5
    base_y = point.y - dy * size * 0.5
    return [
        tip,
        (base_x - dy * size * 0.7, base_y + dx * size * 0.7),
        (base_x + dy * size * 0.7, base_y - dx * size * 0.7),
    ]


def _emit_legend(doc: SvgDocument, result: "RenderResult") -> None:
    box = result.layout.legend_box
    legend = result.config.legend
    if box is None or not result.legend_entries:
        return
    style = legend.text
    marker_size = max((entry.style.marker_size for entry in result.legend_entries), default=5.0)
    rows = legend_entry_positions(
        box,
        len(result.legend_entries),
        header=bool(legend.header),
        font_size=style.font_size,
        marker_size=marker_size,
        lines_on=legend.lines_on,
        border_margin=result.config.margins.border_margin,
    )
    with doc.group("legend"):
        doc.rect(box, stroke=legend.border.stroke if legend.border.on else None, fill=legend.border.fill, width=legend.border.width)
        if legend.header:
            doc.text(box.center[0], box.y_min + style.font_size * 1.5, legend.header, style)
        for (marker_x, text_x, y), entry in zip(rows, result.legend_entries):
            stroke = svg_color(entry.style.color)[0]
            fill = svg_color(entry.style.fill if entry.style.fill is not None else entry.style.color)[0]
            with doc.group(f"legendEntry{entry.index}", stroke=stroke, fill=fill):
                if legend.lines_on and entry.style.shows_lines:
                    doc.line(marker_x - style.font_size * 0.5, y - style.font_size * 0.35, text_x - style.font_size * 0.5, y - style.font_size * 0.35)
                if entry.style.shows_markers:
                    _emit_marker(doc, entry.style.marker_shape, marker_x, y - style.font_size * 0.35, entry.style.marker_size / 2.0)
            doc.text(text_x, y, entry.label, style, anchor="start")


def _finite_runs(xs: np.ndarray, ys: np.ndarray) -> list[tuple[int, int]]:
    finite = np.isfinite(xs) & np.isfinite(ys)
    idx = np.flatnonzero(finite)
    if idx.size == 0:
        return []
    runs: list[tuple[int, int]] = []
    start = int(idx[0])
    prev = int(idx[0])
    for v in idx[1:]:
        iv = int(v)
        if iv == prev + 1:
            prev = iv
            continue
        runs.append((start, prev + 1))
        start = iv
        prev = iv
    runs.append((start, prev + 1))
    return runs
