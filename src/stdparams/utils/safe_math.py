"""Safe math helpers for finite scale-factor ratios."""

from __future__ import annotations

import numpy as np


def scale_ratio(num: np.ndarray | float, den: np.ndarray | float) -> np.ndarray:
    """Element-wise ``num / den`` with division by zero mapped to NaN."""

    num_arr = np.asarray(num, dtype=float)
    den_arr = np.asarray(den, dtype=float)
    with np.errstate(divide="ignore", invalid="ignore"):
        out = num_arr / den_arr
    return np.where(np.isfinite(out), out, np.nan)


def finite_rows(values: np.ndarray) -> np.ndarray:
    arr = np.asarray(values, dtype=float)
    if arr.ndim == 1:
        return np.isfinite(arr)
    return np.all(np.isfinite(arr), axis=1)
