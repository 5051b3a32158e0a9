"""Adapters for formula-fitted statsmodels results."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np
import pandas as pd
from statsmodels.discrete.discrete_model import DiscreteModel, Logit, NegativeBinomial, Poisson, Probit
from statsmodels.genmod.generalized_linear_model import GLM
from statsmodels.regression.linear_model import WLS, RegressionModel
from statsmodels.regression.mixed_linear_model import MixedLM

from stdparams.adapters.base import FormulaAdapterBase, coefficient_label, parameter_table
from stdparams.core.types import ModelInfo, ModelParameters
from stdparams.ops.methods import InvalidArgumentError

_DISCRETE_FAMILIES: dict[type, tuple[str, str]] = {
    Logit: ("binomial", "logit"),
    Probit: ("binomial", "probit"),
    Poisson: ("poisson", "log"),
    NegativeBinomial: ("negativebinomial", "log"),
}


class _StatsmodelsFormulaBase(FormulaAdapterBase):
    def _has_design(self, model: Any) -> bool:
        # patsy-built formula models only; other formula backends carry no design_info
        m = model.model
        return getattr(m, "formula", None) is not None and getattr(m.data, "design_info", None) is not None

    def design_info(self, model: Any):
        return model.model.data.design_info

    def model_matrix(self, model: Any) -> pd.DataFrame:
        m = model.model
        exog = m.data.orig_exog
        if isinstance(exog, pd.DataFrame):
            return exog.astype(float)
        return pd.DataFrame(np.asarray(m.exog, dtype=float), columns=list(m.exog_names))

    def model_data(self, model: Any) -> pd.DataFrame:
        frame = model.model.data.frame
        return frame.loc[self.model_matrix(model).index]

    def response_term(self, model: Any) -> str:
        return str(model.model.endog_names)

    def response(self, model: Any) -> np.ndarray:
        return np.asarray(model.model.endog, dtype=float).ravel()

    def get_posterior(self, model: Any) -> pd.DataFrame:
        raise InvalidArgumentError(
            f"'{type(model.model).__name__}' is not a Bayesian model and has no posterior draws"
        )


@dataclass
class StatsmodelsAdapter(_StatsmodelsFormulaBase):
    """OLS/WLS/GLM and discrete-choice models fitted with ``from_formula``."""

    name: str = "statsmodels"

    def supports(self, model: Any) -> bool:
        m = getattr(model, "model", None)
        return isinstance(m, (RegressionModel, GLM, DiscreteModel)) and self._has_design(model)

    def model_info(self, model: Any) -> ModelInfo:
        family, link = _family_link(model.model)
        return ModelInfo(
            family=family,
            link=link,
            is_linear=family == "gaussian" and link == "identity",
        )

    def get_parameters(self, model: Any, ci: float | None = 0.95, exponentiate: bool = False) -> ModelParameters:
        names = [str(n) for n in model.params.index]
        conf = None
        if ci is not None:
            conf = np.asarray(model.conf_int(alpha=1.0 - ci), dtype=float)
        table = parameter_table(
            names,
            coef=np.asarray(model.params, dtype=float),
            se=np.asarray(model.bse, dtype=float),
            conf=conf,
            p=np.asarray(model.pvalues, dtype=float),
            exponentiate=exponentiate,
        )
        return ModelParameters(
            table=table,
            model=model,
            ci=ci,
            exponentiate=exponentiate,
            coefficient_name=coefficient_label(self.model_info(model), exponentiate),
        )

    def refit(self, model: Any, data: pd.DataFrame) -> Any:
        m = model.model
        kwargs: dict[str, Any] = {}
        if isinstance(m, GLM):
            kwargs["family"] = m.family
        if type(m) is WLS:
            kwargs["weights"] = m.weights
        new = type(m).from_formula(m.formula, data=data, **kwargs)
        if isinstance(m, DiscreteModel):
            return new.fit(disp=0)
        return new.fit()


@dataclass
class MixedLMAdapter(_StatsmodelsFormulaBase):
    """Linear mixed models fitted with ``MixedLM.from_formula``."""

    name: str = "mixedlm"

    def supports(self, model: Any) -> bool:
        m = getattr(model, "model", None)
        return isinstance(m, MixedLM) and self._has_design(model)

    def model_info(self, model: Any) -> ModelInfo:
        return ModelInfo(family="gaussian", link="identity", is_linear=True, is_mixed=True)

    def parameter_names(self, model: Any) -> list[str]:
        return [str(n) for n in model.fe_params.index]

    def find_random(self, model: Any) -> list[str]:
        m = model.model
        vc_names = list(getattr(getattr(m, "exog_vc", None), "names", None) or [])
        return [self._group_column(model)] + [str(n) for n in vc_names]

    def random_groups(self, model: Any) -> np.ndarray | None:
        return np.asarray(model.model.groups)

    def get_parameters(self, model: Any, ci: float | None = 0.95, exponentiate: bool = False) -> ModelParameters:
        names = self.parameter_names(model)
        conf = None
        if ci is not None:
            conf = np.asarray(model.conf_int(alpha=1.0 - ci).loc[names], dtype=float)
        table = parameter_table(
            names,
            coef=np.asarray(model.fe_params, dtype=float),
            se=np.asarray(model.bse_fe, dtype=float),
            conf=conf,
            p=np.asarray(model.pvalues.loc[names], dtype=float),
            exponentiate=exponentiate,
        )
        return ModelParameters(
            table=table,
            model=model,
            ci=ci,
            exponentiate=exponentiate,
            coefficient_name=coefficient_label(self.model_info(model), exponentiate),
        )

    def refit(self, model: Any, data: pd.DataFrame) -> Any:
        m = model.model
        kwargs: dict[str, Any] = {"groups": np.asarray(m.groups)}
        re_formula = _re_formula(_re_names(m), self._group_column(model))
        if re_formula is not None:
            kwargs["re_formula"] = re_formula
        new = MixedLM.from_formula(m.formula, data=data.reset_index(drop=True), **kwargs)
        return new.fit(reml=bool(getattr(m, "reml", True)))

    def _group_column(self, model: Any) -> str:
        m = model.model
        data = self.model_data(model)
        groups = np.asarray(m.groups)
        candidates = _re_names(m) + [str(c) for c in data.columns]
        for col in candidates:
            if col not in data.columns:
                continue
            values = data[col].to_numpy()
            if values.shape == groups.shape and np.array_equal(values, groups):
                return col
        return "Group"


def _family_link(m: Any) -> tuple[str, str]:
    if isinstance(m, GLM):
        return type(m.family).__name__.lower(), type(m.family.link).__name__.lower()
    for cls, pair in _DISCRETE_FAMILIES.items():
        if isinstance(m, cls):
            return pair
    return "gaussian", "identity"


def _re_names(m: MixedLM) -> list[str]:
    # set by MixedLM.from_formula on the model data, not the model
    return [str(n) for n in (getattr(m.data, "exog_re_names", None) or [])]


def _re_formula(re_names: list[str], group_name: str) -> str | None:
    """Rebuild the random-effects formula; the random intercept is named after the group."""

    intercepts = {group_name, "Group", "Intercept"}
    terms = [n for n in re_names if n not in intercepts]
    if not terms:
        return None
    prefix = "" if any(n in intercepts for n in re_names) else "0 + "
    return prefix + " + ".join(terms)
