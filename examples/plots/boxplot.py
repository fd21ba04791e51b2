from __future__ import annotations

from pathlib import Path
import sys

import numpy as np

from svgplot import figure
from svgplot.quantile import InterpolationRule


def build(out_path: Path) -> None:
    rng = np.random.default_rng(7)
    fig = figure(kind="boxplot")
    ax = fig.axes(title="Response times", x_label="service", y_label="ms")
    ax.plot(rng.normal(120.0, 15.0, 200), label="api")
    ax.plot(np.append(rng.normal(80.0, 5.0, 200), [140.0, 190.0]), label="cache", rule=InterpolationRule.HAZEN)
    ax.set_y_autoscale(force_include_zero=True)
    fig.write(out_path)


if __name__ == "__main__":
    build(Path(sys.argv[1]) if len(sys.argv) > 1 else Path("boxplot.svg"))
