"""Adapter for Bayesian fits supplied as posterior draws plus their formula."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Callable

import numpy as np
import pandas as pd
import patsy

from stdparams.adapters.base import FormulaAdapterBase, coefficient_label
from stdparams.core.types import ModelInfo, ModelParameters

Sampler = Callable[[str, pd.DataFrame], pd.DataFrame]


class RefitError(RuntimeError):
    """Raised when a model cannot be refitted on standardized data."""


@dataclass(frozen=True)
class PosteriorFit:
    """Posterior draws of a formula model.

    ``draws`` has one row per draw and one column per parameter, named like the
    patsy design columns (``Intercept``, ``x``, ``C(g)[T.b]``); extra columns such as
    ``sigma`` are carried along unscaled.  ``sampler(formula, data)`` must return new
    draws for the same formula and is only needed for ``method="refit"``.
    Functions named in ``formula`` resolve in ``eval_env``, by default the namespace
    of the code that created the fit.
    """

    draws: pd.DataFrame
    data: pd.DataFrame
    formula: str
    family: str = "gaussian"
    link: str = "identity"
    groups: str | None = None
    sampler: Sampler | None = None
    eval_env: patsy.EvalEnvironment | None = None

    def __post_init__(self) -> None:
        # frames: __post_init__, __init__, then whoever built the fit
        if self.eval_env is None:
            object.__setattr__(self, "eval_env", patsy.EvalEnvironment.capture(2))


@dataclass
class PosteriorAdapter(FormulaAdapterBase):
    name: str = "posterior"

    def supports(self, model: Any) -> bool:
        return isinstance(model, PosteriorFit)

    def model_info(self, model: PosteriorFit) -> ModelInfo:
        family = model.family.lower()
        link = model.link.lower()
        return ModelInfo(
            family=family,
            link=link,
            is_linear=family == "gaussian" and link == "identity",
            is_mixed=model.groups is not None,
            is_bayesian=True,
        )

    def _design(self, model: PosteriorFit) -> tuple[pd.DataFrame, pd.DataFrame]:
        y, X = patsy.dmatrices(model.formula, model.data, return_type="dataframe", eval_env=model.eval_env)
        return y, X

    def design_info(self, model: PosteriorFit):
        return self._design(model)[1].design_info

    def model_matrix(self, model: PosteriorFit) -> pd.DataFrame:
        return self._design(model)[1]

    def model_data(self, model: PosteriorFit) -> pd.DataFrame:
        return model.data.loc[self.model_matrix(model).index]

    def response_term(self, model: PosteriorFit) -> str:
        return str(self._design(model)[0].columns[0])

    def response(self, model: PosteriorFit) -> np.ndarray:
        return self._design(model)[0].iloc[:, 0].to_numpy(dtype=float)

    def find_random(self, model: PosteriorFit) -> list[str]:
        return [model.groups] if model.groups else []

    def random_groups(self, model: PosteriorFit) -> np.ndarray | None:
        if not model.groups:
            return None
        return self.model_data(model)[model.groups].to_numpy()

    def get_posterior(self, model: PosteriorFit) -> pd.DataFrame:
        return model.draws.copy()

    def get_parameters(self, model: PosteriorFit, ci: float | None = 0.95, exponentiate: bool = False) -> ModelParameters:
        draws = model.draws.astype(float)
        if exponentiate:
            draws = np.exp(draws)
        table = pd.DataFrame({"Parameter": [str(c) for c in draws.columns]})
        table["Median"] = draws.median(axis=0).to_numpy()
        if ci is not None:
            tail = (1.0 - ci) / 2.0
            table["CI_low"] = draws.quantile(tail, axis=0).to_numpy()
            table["CI_high"] = draws.quantile(1.0 - tail, axis=0).to_numpy()
        return ModelParameters(
            table=table,
            model=model,
            ci=ci,
            exponentiate=exponentiate,
            coefficient_name=coefficient_label(self.model_info(model), exponentiate),
        )

    def refit(self, model: PosteriorFit, data: pd.DataFrame) -> PosteriorFit:
        if model.sampler is None:
            raise RefitError("PosteriorFit has no sampler; cannot refit on standardized data")
        draws = model.sampler(model.formula, data)
        return replace(model, draws=draws, data=data)
