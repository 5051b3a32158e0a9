"""Per-parameter scale factors (deviations) for post-hoc standardization."""

from __future__ import annotations

import logging
import warnings
from typing import TYPE_CHECKING, Any

import numpy as np
import pandas as pd
from statsmodels.regression.mixed_linear_model import MixedLM

from stdparams.core.types import TermInfo
from stdparams.ops.applicability import StandardizationWarning
from stdparams.stats.deviations import deviation, group_demean, group_means, varies_within_groups
from stdparams.utils.stack import find_stack_level

if TYPE_CHECKING:
    from stdparams.adapters.base import ModelAdapter

logger = logging.getLogger(__name__)

BETWEEN_VARIANCE_MAX = 0.01


def standardize_info(
    model: Any,
    robust: bool = False,
    include_pseudo: bool = False,
    two_sd: bool = False,
    adapter: "ModelAdapter | None" = None,
) -> pd.DataFrame:
    """Return one row of scale factors per model-matrix column of ``model``."""

    if adapter is None:
        from stdparams.core.registry import get_adapter

        adapter = get_adapter(model)

    info = adapter.model_info(model)
    terms = adapter.term_infos(model)
    matrix = adapter.model_matrix(model)
    data = adapter.model_data(model)
    y = adapter.response(model)
    f = 2.0 if two_sd else 1.0

    out = pd.DataFrame(
        {
            "Parameter": [t.parameter for t in terms],
            "Type": [t.type for t in terms],
            "Link": [t.link for t in terms],
        }
    )
    out["Deviation_Basic"] = [
        0.0 if t.type == "intercept" else f * deviation(matrix[t.parameter].to_numpy(), robust)
        for t in terms
    ]
    out["Deviation_Smart"] = [_smart_predictor(t, matrix, data, robust, f) for t in terms]

    if info.is_linear:
        sd_y = deviation(y, robust)
        out["Deviation_Response_Basic"] = sd_y
        out["Deviation_Response_Smart"] = [_smart_response(t, data, y, robust, sd_y) for t in terms]
    else:
        out["Deviation_Response_Basic"] = 1.0
        out["Deviation_Response_Smart"] = 1.0

    if include_pseudo:
        groups = adapter.random_groups(model)
        if groups is None:
            out["Deviation_Pseudo"] = np.nan
            out["Deviation_Response_Pseudo"] = np.nan
        else:
            pred, resp = _pseudo(terms, matrix, y, groups, f, info.is_linear)
            out["Deviation_Pseudo"] = pred
            out["Deviation_Response_Pseudo"] = resp

    logger.debug("Computed scale factors for %d parameters (robust=%s, two_sd=%s)", len(out), robust, two_sd)
    return out


def _smart_predictor(
    term: TermInfo,
    matrix: pd.DataFrame,
    data: pd.DataFrame,
    robust: bool,
    f: float,
) -> float:
    if term.type == "intercept":
        return 0.0
    if not term.numeric_vars:
        return 1.0
    out = 1.0
    for code in term.numeric_vars:
        if code in data.columns:
            out *= f * deviation(pd.to_numeric(data[code], errors="coerce").to_numpy(), robust)
        else:
            # transformed term; only "basic" is reliable here
            out *= f * deviation(matrix[term.parameter].to_numpy(), robust)
            break
    return out


def _smart_response(
    term: TermInfo,
    data: pd.DataFrame,
    y: np.ndarray,
    robust: bool,
    sd_y: float,
) -> float:
    if not term.factor_vars:
        return sd_y
    mask = np.ones(len(y), dtype=bool)
    for var in term.factor_vars:
        ref = term.reference_levels.get(var)
        if var not in data.columns or ref is None:
            return sd_y
        mask &= (data[var] == ref).to_numpy()
    if mask.sum() < 2:
        return sd_y
    return deviation(y[mask], robust)


def _pseudo(
    terms: list[TermInfo],
    matrix: pd.DataFrame,
    y: np.ndarray,
    groups: np.ndarray,
    f: float,
    is_linear: bool,
) -> tuple[list[float], list[float]]:
    is_within = [
        t.type != "intercept" and varies_within_groups(matrix[t.parameter].to_numpy(), groups)
        for t in terms
    ]

    also_between = []
    for t, within in zip(terms, is_within):
        if not within or t.type != "numeric":
            continue
        x = matrix[t.parameter].to_numpy(dtype=float)
        total = np.var(x, ddof=1)
        between = np.var(x - group_demean(x, groups), ddof=1)
        if total > 0 and between / total > BETWEEN_VARIANCE_MAX:
            also_between.append(t.parameter)
    if also_between:
        warnings.warn(
            "The following within-group terms have between-group variance: "
            + ", ".join(also_between)
            + ". This can inflate standardized within-group parameters associated with these terms.",
            StandardizationWarning,
            stacklevel=find_stack_level(),
        )

    pred = []
    for t, within in zip(terms, is_within):
        x = matrix[t.parameter].to_numpy(dtype=float)
        if t.type == "intercept":
            pred.append(0.0)
        elif within:
            pred.append(f * float(np.std(group_demean(x, groups), ddof=1)))
        else:
            pred.append(f * float(np.std(group_means(x, groups), ddof=1)))

    if is_linear:
        sd_within, sd_between = _null_model_sds(y, groups)
    else:
        sd_within = sd_between = 1.0
    resp = [sd_within if within else sd_between for within in is_within]
    return pred, resp


def _null_model_sds(y: np.ndarray, groups: np.ndarray) -> tuple[float, float]:
    """Residual and random-intercept SDs of ``y ~ 1 + (1 | groups)``."""

    endog = np.asarray(y, dtype=float)
    exog = np.ones((endog.size, 1))
    with warnings.catch_warnings():
        warnings.simplefilter("ignore")
        fit = MixedLM(endog, exog, groups=np.asarray(groups)).fit(reml=True)
    var_intercept = float(np.asarray(fit.cov_re)[0, 0])
    return float(np.sqrt(fit.scale)), float(np.sqrt(max(var_intercept, 0.0)))
