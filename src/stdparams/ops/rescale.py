"""Post-hoc coefficient rescaling from a table of scale factors."""

from __future__ import annotations

from typing import Iterable

import numpy as np
import pandas as pd

from stdparams.core.types import RescaleSpec
from stdparams.utils.safe_math import finite_rows, scale_ratio

SCALABLE_COLUMNS: tuple[str, ...] = ("Coefficient", "Median", "Mean", "MAP", "SE", "CI_low", "CI_high")


def align_deviations(parameters: Iterable[str], deviations: pd.DataFrame) -> pd.DataFrame:
    """Reindex the scale-factor table on ``parameters``; unmatched rows become NaN."""

    names = list(parameters)
    dev = deviations.drop_duplicates(subset="Parameter", keep="first").set_index("Parameter")
    return dev.reindex(names)


def rescale_parameters(
    pars: pd.DataFrame,
    deviations: pd.DataFrame,
    spec: RescaleSpec,
    scalable: Iterable[str] = SCALABLE_COLUMNS,
) -> pd.DataFrame:
    """Return a copy of ``pars`` with its estimate columns standardized.

    Rows without a scale factor, or whose scaled values are not all finite, keep
    their unstandardized values.
    """

    out = pars.copy()
    cols = [c for c in pars.columns if c in set(scalable)]
    if not cols or pars.empty:
        return out

    dev = align_deviations(pars["Parameter"], deviations)
    ratio = scale_ratio(_column(dev, spec.predictor_column), _column(dev, spec.response_column))

    raw = pars[cols].to_numpy(dtype=float)
    with np.errstate(invalid="ignore", over="ignore", divide="ignore"):
        if spec.use_exponent:
            scaled = np.power(raw, ratio[:, None])
        else:
            scaled = raw * ratio[:, None]

    keep = finite_rows(scaled) & np.isfinite(ratio)
    scaled[~keep] = raw[~keep]
    out[cols] = scaled
    return out


def rescale_posteriors(
    draws: pd.DataFrame,
    deviations: pd.DataFrame,
    spec: RescaleSpec,
) -> pd.DataFrame:
    """Multiply every draw of a parameter column by that parameter's ratio.

    Posterior draws are always rescaled multiplicatively.  Columns without a scale
    factor, or with a non-finite ratio, are returned unchanged.
    """

    dev = align_deviations(draws.columns, deviations)
    ratio = scale_ratio(_column(dev, spec.predictor_column), _column(dev, spec.response_column))
    ratio = np.where(np.isfinite(ratio), ratio, 1.0)
    values = draws.to_numpy(dtype=float) * ratio[None, :]
    return pd.DataFrame(values, index=draws.index, columns=draws.columns)


def _column(dev: pd.DataFrame, name: str) -> np.ndarray:
    if name not in dev.columns:
        return np.full(dev.shape[0], np.nan)
    return pd.to_numeric(dev[name], errors="coerce").to_numpy(dtype=float)
