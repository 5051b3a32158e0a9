"""Model-introspection adapter protocol and reusable formula-based implementation."""

from __future__ import annotations

import re
from typing import Any, Protocol

import numpy as np
import pandas as pd

from stdparams.core.types import ModelInfo, ModelParameters, TermInfo
from stdparams.ops.applicability import clean_parameter_name

_IDENT_RE = re.compile(r"[A-Za-z_]\w*")


class ModelAdapter(Protocol):
    name: str

    def supports(self, model: Any) -> bool:
        """Return True when this adapter can introspect ``model``."""

    def model_info(self, model: Any) -> ModelInfo:
        """Family/link classification, mixed and Bayesian flags."""

    def find_response(self, model: Any) -> str:
        """Bare name of the response variable (``y`` for ``np.log(y) ~ x``)."""

    def response_term(self, model: Any) -> str:
        """First column of the design frame, i.e. the response as entered."""

    def find_random(self, model: Any) -> list[str]:
        """Names of random grouping factors; empty for single-level models."""

    def random_groups(self, model: Any) -> np.ndarray | None:
        """Group labels aligned to model-matrix rows for 2-level models."""

    def parameter_names(self, model: Any) -> list[str]:
        """Fixed-effect parameter names in model order."""

    def get_parameters(self, model: Any, ci: float | None = 0.95, exponentiate: bool = False) -> ModelParameters:
        """Point estimates, SEs and intervals of the fixed effects."""

    def get_posterior(self, model: Any) -> pd.DataFrame:
        """Posterior draws, one column per parameter."""

    def model_matrix(self, model: Any) -> pd.DataFrame:
        """Fixed-effect design matrix with parameter names as columns."""

    def model_data(self, model: Any) -> pd.DataFrame:
        """Raw data rows used by the fit."""

    def response(self, model: Any) -> np.ndarray:
        """Response values as fitted (after any formula transformation)."""

    def term_infos(self, model: Any) -> list[TermInfo]:
        """Per-column term structure of the model matrix."""

    def refit(self, model: Any, data: pd.DataFrame) -> Any:
        """Refit a model of the same specification on ``data``."""


class FormulaAdapterBase:
    """Shared behaviour for models fitted from a patsy formula."""

    name: str = "formula"

    def design_info(self, model: Any):
        raise NotImplementedError

    def model_matrix(self, model: Any) -> pd.DataFrame:
        raise NotImplementedError

    def response_term(self, model: Any) -> str:
        raise NotImplementedError

    def find_response(self, model: Any) -> str:
        return clean_parameter_name(self.response_term(model))

    def parameter_names(self, model: Any) -> list[str]:
        return [str(c) for c in self.model_matrix(model).columns]

    def find_random(self, model: Any) -> list[str]:
        return []

    def random_groups(self, model: Any) -> np.ndarray | None:
        return None

    def term_infos(self, model: Any) -> list[TermInfo]:
        design = self.design_info(model)
        out: list[TermInfo] = []
        for term, columns in design.term_slices.items():
            numeric: list[str] = []
            factors: list[str] = []
            refs: dict[str, Any] = {}
            for factor in term.factors:
                finfo = design.factor_infos[factor]
                code = factor.name()
                if finfo.type == "categorical":
                    var = clean_parameter_name(code)
                    factors.append(var)
                    refs[var] = _reference_level(design, term, factor)
                else:
                    numeric.append(code)

            if not term.factors:
                kind = "intercept"
            elif len(term.factors) > 1:
                kind = "interaction"
            elif factors:
                kind = "factor"
            else:
                kind = "numeric"

            for name in design.column_names[columns]:
                out.append(
                    TermInfo(
                        parameter=name,
                        type=kind,
                        numeric_vars=tuple(numeric),
                        factor_vars=tuple(factors),
                        reference_levels=dict(refs),
                    )
                )
        return out

    def numeric_variables(self, model: Any) -> list[str]:
        """Raw data columns entering numeric terms of the fixed-effect formula."""

        data = self.model_data(model)
        seen: list[str] = []
        for info in self.term_infos(model):
            for code in info.numeric_vars:
                for ident in _identifiers(code):
                    if ident in data.columns and ident not in seen:
                        seen.append(ident)
        return seen


def coefficient_label(info: ModelInfo, exponentiate: bool) -> str:
    if not exponentiate:
        return "Coefficient"
    if info.is_binomial and info.link == "logit":
        return "Odds Ratio"
    if info.is_binomial and info.link == "log":
        return "Risk Ratio"
    if info.is_count and info.link == "log":
        return "IRR"
    return "exp(Coefficient)"


def parameter_table(
    names: list[str],
    coef: np.ndarray,
    se: np.ndarray | None,
    conf: np.ndarray | None,
    p: np.ndarray | None,
    exponentiate: bool = False,
) -> pd.DataFrame:
    """Assemble a parameter table; exponentiation uses the delta method for SEs."""

    coef = np.asarray(coef, dtype=float)
    table = pd.DataFrame({"Parameter": list(names)})
    table["Coefficient"] = np.exp(coef) if exponentiate else coef
    if se is not None:
        se = np.asarray(se, dtype=float)
        table["SE"] = np.exp(coef) * se if exponentiate else se
    if conf is not None:
        conf = np.asarray(conf, dtype=float)
        table["CI_low"] = np.exp(conf[:, 0]) if exponentiate else conf[:, 0]
        table["CI_high"] = np.exp(conf[:, 1]) if exponentiate else conf[:, 1]
    if p is not None:
        table["p"] = np.asarray(p, dtype=float)
    return table


def _reference_level(design: Any, term: Any, factor: Any) -> Any:
    """Level coded as all zeros by the factor's contrast, or None when no level is.

    Treatment coding (including ``Treatment(reference=...)``) has exactly one such
    level; sum, Helmert and full-rank codings have none.
    """

    categories = design.factor_infos[factor].categories or ()
    for subterm in design.term_codings.get(term, []):
        contrast = subterm.contrast_matrices.get(factor)
        if contrast is None:
            continue
        zero_rows = np.flatnonzero(~np.asarray(contrast.matrix).any(axis=1))
        if zero_rows.size == 1 and zero_rows[0] < len(categories):
            return categories[zero_rows[0]]
        return None
    return None


def _identifiers(code: str) -> list[str]:
    return _IDENT_RE.findall(code)
