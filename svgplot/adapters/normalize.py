from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Protocol, runtime_checkable

import numpy as np

from svgplot.errors import PlotDataError
from svgplot.limits import LIMIT_MARGIN, limit_mask
from svgplot.series import SeriesData


try:
    import pandas as pd
except Exception:  # pragma: no cover - optional dependency
    pd = None  # type: ignore[assignment]

try:
    import torch
except Exception:  # pragma: no cover - optional dependency
    torch = None  # type: ignore[assignment]


@runtime_checkable
class Sample(Protocol):
    def __len__(self) -> int:
        ...

    def __iter__(self) -> Iterator[float]:
        ...


@dataclass(frozen=True)
class ArraySample:
    values: np.ndarray

    def __len__(self) -> int:
        return int(self.values.size)

    def __iter__(self) -> Iterator[float]:
        return iter(self.values.tolist())


def as_sample(value: Any, *, label: str = "sample") -> ArraySample:
    if isinstance(value, ArraySample):
        return value
    return ArraySample(values=_coerce_1d_numeric(value, label=label))


def as_array(value: Any, *, label: str = "sample") -> np.ndarray:
    return as_sample(value, label=label).values


def normalize_xy(
    y: Any = None,
    *,
    x: Any = None,
    data: Any = None,
    source_name: str | None = None,
    margin: float = LIMIT_MARGIN,
) -> SeriesData:
    y_values = _resolve_input(y=y, key="y", data=data)
    if y_values is None:
        raise PlotDataError("y input is required")

    y_arr = _coerce_1d_numeric(y_values, label="y")
    if y_arr.size == 0:
        raise PlotDataError("empty series")

    if x is None:
        x_arr = np.arange(y_arr.size, dtype=np.float64)
    else:
        x_values = _resolve_input(y=x, key="x", data=data)
        x_arr = _coerce_1d_numeric(x_values, label="x")

    if x_arr.shape != y_arr.shape:
        raise PlotDataError(f"x and y length mismatch: {x_arr.size} != {y_arr.size}")

    mask = ~(limit_mask(x_arr, margin=margin) | limit_mask(y_arr, margin=margin))
    return SeriesData(x=x_arr, y=y_arr, mask=mask, source_name=source_name)


def normalize_pairs(points: Any, *, source_name: str | None = None, margin: float = LIMIT_MARGIN) -> SeriesData:
    """Accept ``{x: y}`` mappings, (N, 2) arrays or any iterable of pairs."""
    if isinstance(points, Mapping):
        xs = list(points.keys())
        ys = list(points.values())
        return normalize_xy(ys, x=xs, source_name=source_name, margin=margin)
    if pd is not None and isinstance(points, pd.DataFrame):
        if points.shape[1] != 2:
            raise PlotDataError("pair DataFrame input must have exactly two columns")
        return normalize_xy(points.iloc[:, 1], x=points.iloc[:, 0], source_name=source_name, margin=margin)
    if isinstance(points, np.ndarray):
        if points.ndim != 2 or points.shape[1] != 2:
            raise PlotDataError("pair array input must have shape (N, 2)")
        return normalize_xy(points[:, 1], x=points[:, 0], source_name=source_name, margin=margin)
    if not isinstance(points, Iterable) or isinstance(points, (str, bytes, bytearray)):
        raise PlotDataError(f"unsupported pair input type: {type(points)!r}")
    xs = []
    ys = []
    for i, pair in enumerate(points):
        try:
            px, py = pair
        except (TypeError, ValueError) as exc:
            raise PlotDataError(f"point {i} is not an (x, y) pair: {pair!r}") from exc
        xs.append(px)
        ys.append(py)
    return normalize_xy(ys, x=xs, source_name=source_name, margin=margin)


def _resolve_input(y: Any, key: str, data: Any) -> Any:
    if data is not None:
        if pd is None:
            raise PlotDataError("pandas is required when using `data=`")
        if not isinstance(data, pd.DataFrame):
            raise PlotDataError("`data` must be a pandas DataFrame")
        if isinstance(y, str):
            if y not in data.columns:
                raise PlotDataError(f"column not found: {y}")
            return data[y]
        if y is None:
            if key == "y":
                numeric_cols = [c for c in data.columns if _is_numeric_dtype(data[c])]
                if len(numeric_cols) != 1:
                    raise PlotDataError("when y is omitted, data must have exactly one numeric column")
                return data[numeric_cols[0]]
            return None
        return y

    if pd is not None and isinstance(y, pd.DataFrame):
        numeric_cols = [c for c in y.columns if _is_numeric_dtype(y[c])]
        if len(numeric_cols) != 1:
            raise PlotDataError("1-D DataFrame input must contain exactly one numeric column")
        return y[numeric_cols[0]]

    return y


def _is_numeric_dtype(series: Any) -> bool:
    if pd is None:
        return False
    return bool(pd.api.types.is_numeric_dtype(series))


def _coerce_1d_numeric(value: Any, *, label: str) -> np.ndarray:
    if torch is not None and isinstance(value, torch.Tensor):
        tensor = value.detach()
        if tensor.ndim != 1:
            raise PlotDataError(f"{label} must be 1-D")
        if tensor.is_cuda:
            tensor = tensor.cpu()
        return tensor.to(torch.float64).numpy()

    if pd is not None and isinstance(value, pd.Series):
        return _coerce_ndarray(value.to_numpy(), label=label)

    if isinstance(value, np.ndarray):
        if value.ndim != 1:
            raise PlotDataError(f"{label} must be 1-D")
        return _coerce_ndarray(value, label=label)

    if isinstance(value, (str, bytes, bytearray)) or value is None:
        raise PlotDataError(f"unsupported {label} input type: {type(value)!r}")

    if isinstance(value, Sequence):
        return _coerce_ndarray(np.asarray(value, dtype=object), label=label)

    # Generators and other single-pass iterables are drained once.
    if isinstance(value, Iterable):
        return _coerce_ndarray(np.asarray(list(value), dtype=object), label=label)

    raise PlotDataError(f"unsupported {label} input type: {type(value)!r}")


def _coerce_ndarray(arr: np.ndarray, *, label: str) -> np.ndarray:
    if arr.ndim != 1:
        raise PlotDataError(f"{label} must be 1-D")
    if arr.dtype.kind in {"i", "u", "f", "b"}:
        return arr.astype(np.float64, copy=False)

    out = np.empty(arr.shape[0], dtype=np.float64)
    for i, raw in enumerate(arr.tolist()):
        if raw is None:
            out[i] = np.nan
            continue
        if isinstance(raw, Decimal):
            out[i] = float(raw)
            continue
        try:
            out[i] = float(raw)
        except (TypeError, ValueError) as exc:
            raise PlotDataError(f"{label} contains non-numeric value at index {i}: {raw!r}") from exc
    return out
