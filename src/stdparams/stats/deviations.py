"""Location and scale estimators used for scale factors and data standardization."""

from __future__ import annotations

import numpy as np
from scipy.stats import median_abs_deviation


def center(x: np.ndarray, robust: bool = False) -> float:
    arr = _finite(x)
    if arr.size == 0:
        return float("nan")
    return float(np.median(arr)) if robust else float(np.mean(arr))


def deviation(x: np.ndarray, robust: bool = False) -> float:
    """SD (ddof=1), or normal-consistent MAD when ``robust``."""

    arr = _finite(x)
    if arr.size < 2:
        return float("nan")
    if robust:
        return float(median_abs_deviation(arr, scale="normal"))
    return float(np.std(arr, ddof=1))


def group_demean(x: np.ndarray, groups: np.ndarray) -> np.ndarray:
    arr = np.asarray(x, dtype=float)
    labels = np.asarray(groups)
    _, codes = np.unique(labels, return_inverse=True)
    sums = np.bincount(codes, weights=arr)
    counts = np.bincount(codes)
    return arr - (sums / counts)[codes]


def group_means(x: np.ndarray, groups: np.ndarray) -> np.ndarray:
    arr = np.asarray(x, dtype=float)
    _, codes = np.unique(np.asarray(groups), return_inverse=True)
    return np.bincount(codes, weights=arr) / np.bincount(codes)


def varies_within_groups(x: np.ndarray, groups: np.ndarray, tol: float = 1e-12) -> bool:
    return bool(np.any(np.abs(group_demean(x, groups)) > tol))


def is_binary(x: np.ndarray) -> bool:
    arr = _finite(x)
    return arr.size > 0 and set(np.unique(arr).tolist()) <= {0.0, 1.0}


def _finite(x: np.ndarray) -> np.ndarray:
    arr = np.asarray(x, dtype=float).ravel()
    return arr[np.isfinite(arr)]
