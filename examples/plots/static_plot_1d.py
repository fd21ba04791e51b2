from __future__ import annotations

from pathlib import Path
import sys

from svgplot import figure


def build(out_path: Path) -> None:
    fig = figure(kind="1d")
    ax = fig.axes(title="Measurements", x_label="length (cm)")
    ax.plot([0.2, 1.1, 3.3, 4.2, 5.4, 6.5, 6.8, 6.9, 7.2, 7.3, 8.1, 8.5], label="run A", color="navy")
    ax.plot((v * 0.5 for v in range(1, 12)), label="run B", color="crimson", marker="square")
    ax.set_legend(True, place="outside_bottom")
    fig.write(out_path)


if __name__ == "__main__":
    build(Path(sys.argv[1]) if len(sys.argv) > 1 else Path("static_plot_1d.svg"))
