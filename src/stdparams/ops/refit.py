"""Refit a model on standardized data (the ``refit`` method)."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Iterable

import numpy as np
import pandas as pd

from stdparams.stats.deviations import center, deviation, is_binary

if TYPE_CHECKING:
    from stdparams.adapters.base import ModelAdapter

logger = logging.getLogger(__name__)


def standardize_frame(
    data: pd.DataFrame,
    columns: Iterable[str],
    robust: bool = False,
    two_sd: bool = False,
    response: str | None = None,
) -> pd.DataFrame:
    """Return a copy of ``data`` with ``columns`` centred and scaled.

    Binary 0/1 and non-numeric columns are left as they are.  ``response`` is always
    scaled by one deviation, never by two.
    """

    out = data.copy()
    for col in columns:
        if col not in out.columns or not pd.api.types.is_numeric_dtype(out[col]):
            continue
        if pd.api.types.is_bool_dtype(out[col]):
            continue
        values = out[col].to_numpy(dtype=float)
        if col != response and is_binary(values):
            continue
        scale = deviation(values, robust)
        if not np.isfinite(scale) or scale == 0:
            logger.debug("Skipping '%s': zero or undefined deviation", col)
            continue
        f = 2.0 if two_sd and col != response else 1.0
        out[col] = (values - center(values, robust)) / (f * scale)
    return out


def standardize(
    model: Any,
    robust: bool = False,
    two_sd: bool = False,
    verbose: bool = True,
    adapter: "ModelAdapter | None" = None,
) -> Any:
    """Refit ``model`` on data whose numeric variables have been standardized.

    The response is standardized only for linear (gaussian/identity) models; for
    other families only the predictors are, so coefficients keep their link scale.
    """

    if adapter is None:
        from stdparams.core.registry import get_adapter

        adapter = get_adapter(model)

    data = adapter.model_data(model)
    columns = list(adapter.numeric_variables(model))
    response = None
    if adapter.model_info(model).is_linear:
        response = adapter.find_response(model)
        if response in data.columns and response not in columns:
            columns.append(response)
    for group in adapter.find_random(model):
        if group in columns:
            columns.remove(group)

    if verbose:
        logger.info("Refitting %s on standardized data (%s)", type(model).__name__, ", ".join(columns) or "none")
    new_data = standardize_frame(data, columns, robust=robust, two_sd=two_sd, response=response)
    return adapter.refit(model, new_data)
