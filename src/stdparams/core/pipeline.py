"""Orchestration of parameter and posterior standardization."""

from __future__ import annotations

import logging
import warnings
from typing import Any

import numpy as np
import pandas as pd

from stdparams.core.registry import get_adapter
from stdparams.core.types import ModelParameters, StandardizedParameters, StandardizedPosteriors, StdMetadata
from stdparams.ops.applicability import StandardizationWarning, check_method
from stdparams.ops.methods import InvalidArgumentError, normalize_method, resolve_method
from stdparams.ops.refit import standardize
from stdparams.ops.rescale import SCALABLE_COLUMNS, rescale_parameters, rescale_posteriors
from stdparams.ops.standardize_info import standardize_info
from stdparams.utils.stack import find_stack_level

logger = logging.getLogger(__name__)

_COLUMN_ORDER = ("Component", "Response", "Group", "Parameter") + SCALABLE_COLUMNS[:-2] + ("CI", "CI_low", "CI_high")
_RATIO_NAMES = {"Odds Ratio": "Odds_ratio", "Risk Ratio": "Risk_ratio", "IRR": "IRR"}
_STD_PREFIXED = {"Coefficient", "Median", "Mean", "MAP", "Odds_ratio", "Risk_ratio", "IRR"}


def model_parameters(model: Any, ci: float | None = 0.95, exponentiate: bool = False) -> ModelParameters:
    """Unstandardized fixed-effect parameters of ``model``."""

    return get_adapter(model).get_parameters(model, ci=ci, exponentiate=exponentiate)


def standardize_parameters(
    model: Any,
    method: str = "refit",
    ci: float | None = 0.95,
    robust: bool = False,
    two_sd: bool = False,
    verbose: bool = True,
    exponentiate: bool = False,
    object_name: str | None = None,
) -> StandardizedParameters:
    """Compute standardized model parameters (coefficients).

    ``model`` is either a fitted model or a ``ModelParameters`` table. With
    ``method="refit"`` the model is refitted on standardized data; every other
    method rescales the existing coefficients by the ratio of predictor and
    response deviations (see ``standardize_info``).
    """

    method = normalize_method(method)
    if isinstance(model, ModelParameters):
        return _standardize_model_parameters(model, method, ci, robust, two_sd, verbose, object_name)

    if object_name is None:
        object_name = type(model).__name__

    if method == "refit":
        model = standardize(model, robust=robust, two_sd=two_sd, verbose=verbose)
    pars = model_parameters(model, ci=ci, exponentiate=exponentiate)
    table = pars.table

    if method != "refit":
        table, method, robust = _posthoc(table, method, pars.model, robust, two_sd, pars.exponentiate)

    return _finalize(table, pars.ci, pars.coefficient_name, method, robust, two_sd, object_name)


def standardize_posteriors(
    model: Any,
    method: str = "refit",
    robust: bool = False,
    two_sd: bool = False,
    verbose: bool = True,
    object_name: str | None = None,
) -> StandardizedPosteriors:
    """Standardize every posterior draw of a Bayesian model."""

    method = normalize_method(method)
    if object_name is None:
        object_name = type(model).__name__

    adapter = get_adapter(model)
    if not adapter.model_info(model).is_bayesian:
        raise InvalidArgumentError(f"'{object_name}' is not a Bayesian model and has no posterior draws")

    if method == "refit":
        model = standardize(model, robust=robust, two_sd=two_sd, verbose=verbose, adapter=adapter)
    draws = adapter.get_posterior(model)

    if method != "refit":
        method, robust = check_method(method, model, [str(c) for c in draws.columns], robust, adapter)
        deviations = standardize_info(
            model, robust=robust, include_pseudo=method == "pseudo", two_sd=two_sd, adapter=adapter
        )
        draws = rescale_posteriors(draws, deviations, resolve_method(method))

    return StandardizedPosteriors(
        draws=draws,
        metadata=StdMetadata(std_method=method, robust=robust, two_sd=two_sd, object_name=object_name),
    )


def _standardize_model_parameters(
    pars: ModelParameters,
    method: str,
    ci: float | None,
    robust: bool,
    two_sd: bool,
    verbose: bool,
    object_name: str | None,
) -> StandardizedParameters:
    if method == "refit":
        raise InvalidArgumentError(
            "Method 'refit' is not supported for a parameter table; pass the fitted model instead"
        )
    if ci is not None and ci != pars.ci and verbose:
        warnings.warn(
            "Argument 'ci' is not supported for a parameter table and is ignored.",
            StandardizationWarning,
            stacklevel=find_stack_level(),
        )
    if object_name is None:
        object_name = type(pars.model).__name__

    table, method, robust = _posthoc(pars.table, method, pars.model, robust, two_sd, pars.exponentiate)
    return _finalize(table, pars.ci, pars.coefficient_name, method, robust, two_sd, object_name)


def _posthoc(
    table: pd.DataFrame,
    method: str,
    model: Any,
    robust: bool,
    two_sd: bool,
    exponentiate: bool,
) -> tuple[pd.DataFrame, str, bool]:
    adapter = get_adapter(model)
    method, robust = check_method(method, model, table["Parameter"].astype(str).tolist(), robust, adapter)
    deviations = standardize_info(
        model, robust=robust, include_pseudo=method == "pseudo", two_sd=two_sd, adapter=adapter
    )
    spec = resolve_method(method, exponentiate=exponentiate)
    logger.debug("Rescaling with %s / %s", spec.predictor_column, spec.response_column)
    return rescale_parameters(table, deviations, spec), method, robust


def _finalize(
    table: pd.DataFrame,
    ci: float | None,
    coefficient_name: str,
    method: str,
    robust: bool,
    two_sd: bool,
    object_name: str | None,
) -> StandardizedParameters:
    table = table.copy()
    if ci is not None:
        table["CI"] = ci
    table = table[[c for c in _COLUMN_ORDER if c in table.columns]]

    if coefficient_name in _RATIO_NAMES:
        table = table.rename(columns={"Coefficient": _RATIO_NAMES[coefficient_name]})
    table = table.rename(columns={c: f"Std_{c}" for c in table.columns if c in _STD_PREFIXED})

    standard_error = None
    if "SE" in table.columns:
        standard_error = tuple(np.asarray(table["SE"], dtype=float).tolist())
        table = table.drop(columns="SE")

    return StandardizedParameters(
        table=table.reset_index(drop=True),
        metadata=StdMetadata(
            std_method=method,
            robust=robust,
            two_sd=two_sd,
            object_name=object_name,
            standard_error=standard_error,
        ),
    )
