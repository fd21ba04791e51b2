from __future__ import annotations

from svgplot.figure import Figure, FigureKind


def figure(width: float | None = None, height: float | None = None, *, kind: FigureKind = "2d") -> Figure:
    if width is not None and width <= 0:
        raise ValueError("width must be > 0")
    if height is not None and height <= 0:
        raise ValueError("height must be > 0")
    return Figure(width=width, height=height, kind=kind)
