from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

import numpy as np

from strokeplot.errors import PlotDataError


try:
    import pandas as pd
except Exception:  # pragma: no cover - optional dependency
    pd = None  # type: ignore[assignment]

try:
    import torch
except Exception:  # pragma: no cover - optional dependency
    torch = None  # type: ignore[assignment]


@dataclass(frozen=True)
class SeriesData:
    x: np.ndarray
    y: np.ndarray
    mask: np.ndarray
    source_name: str | None = None

    def finite_points(self) -> tuple[np.ndarray, np.ndarray]:
        return self.x[self.mask], self.y[self.mask]


def normalize_xy(
    y: Any = None,
    *,
    x: Any = None,
    data: Any = None,
    source_name: str | None = None,
) -> SeriesData:
    """Coerce list, numpy, torch or pandas input into float64 x/y arrays.

    Strings name columns of ``data``. ``mask`` marks the indices where both
    coordinates are finite.
    """
    if data is not None:
        _check_frame(data)
        y = _default_column(data) if y is None else _column(data, y)
        x = _column(data, x)
    if y is None:
        raise PlotDataError("y input is required")

    ys = as_float_array(y, label="y")
    if ys.size == 0:
        raise PlotDataError("empty series")
    xs = np.arange(ys.size, dtype=np.float64) if x is None else as_float_array(x, label="x")
    if xs.shape != ys.shape:
        raise PlotDataError(f"x and y length mismatch: {xs.size} != {ys.size}")

    mask = np.isfinite(xs) & np.isfinite(ys)
    if not mask.any():
        raise PlotDataError("series contains no finite points")
    return SeriesData(x=xs, y=ys, mask=mask, source_name=source_name)


def _check_frame(data: Any) -> None:
    if pd is None:
        raise PlotDataError("pandas is required when using `data=`")
    if not isinstance(data, pd.DataFrame):
        raise PlotDataError("`data` must be a pandas DataFrame")


def _column(data: Any, key: Any) -> Any:
    if not isinstance(key, str):
        return key
    if key not in data.columns:
        raise PlotDataError(f"column not found: {key}")
    return data[key]


def _default_column(data: Any) -> Any:
    numeric = [c for c in data.columns if pd.api.types.is_numeric_dtype(data[c])]
    if len(numeric) != 1:
        raise PlotDataError("when y is omitted, data must have exactly one numeric column")
    return data[numeric[0]]


def as_float_array(value: Any, *, label: str) -> np.ndarray:
    """1-D float64 copy of ``value``; ``None`` entries become NaN."""
    if torch is not None and isinstance(value, torch.Tensor):
        value = value.detach().cpu().to(torch.float64).numpy()
    elif pd is not None and isinstance(value, pd.Series):
        value = value.to_numpy()
    elif isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
        value = np.asarray(value, dtype=object)
    elif not isinstance(value, np.ndarray):
        raise PlotDataError(f"unsupported {label} input type: {type(value)!r}")

    if value.ndim != 1:
        raise PlotDataError(f"{label} must be 1-D")
    if value.dtype.kind in "iufb":
        return value.astype(np.float64)

    out = np.full(value.shape[0], np.nan)
    for i, raw in enumerate(value.tolist()):
        if raw is None:
            continue
        try:
            out[i] = float(raw)
        except (TypeError, ValueError) as exc:
            raise PlotDataError(f"{label} contains non-numeric value at index {i}: {raw!r}") from exc
    return out
