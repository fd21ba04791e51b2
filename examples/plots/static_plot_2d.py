from __future__ import annotations

from pathlib import Path
import sys

import numpy as np

from svgplot import figure


def build(out_path: Path) -> None:
    x = np.linspace(-4.0, 4.0, 17, dtype=np.float64)
    y = 4.45 - 0.18 * x**2
    fig = figure(kind="2d")
    ax = fig.axes(title="Static 2-D Plot", x_label="time (s)", y_label="level")
    ax.plot(y, x=x, label="parabola", mode="lines+markers", color="steelblue", area_fill=(70, 130, 180, 60))
    ax.plot(points={-3.0: 1.0, 0.0: float("nan"), 2.0: float("inf"), 3.0: 2.5}, label="with limits", color="darkorange", marker="diamond")
    ax.set_legend(True, header="series", lines_on=True)
    ax.set_x_grid(major=True).set_y_grid(major=True, minor=True)
    fig.write(out_path)


if __name__ == "__main__":
    build(Path(sys.argv[1]) if len(sys.argv) > 1 else Path("static_plot_2d.svg"))
