from pathlib import Path
import sys

import numpy as np
import pandas as pd
import pytest
import statsmodels.api as sm

MODELS_PATH = Path(__file__).resolve().parent / "models"
if str(MODELS_PATH) not in sys.path:
    sys.path.insert(0, str(MODELS_PATH))

from generate_models import fit_mixed, fit_ols, make_linear_data, make_multilevel_data

from stdparams import PosteriorFit, standardize_posteriors
from stdparams.adapters import MixedLMAdapter, PosteriorAdapter, StatsmodelsAdapter
from stdparams.adapters.base import coefficient_label
from stdparams.core.registry import RegistryError, get_adapter
from stdparams.core.types import ModelInfo
from stdparams.ops.refit import standardize
from stdparams.ops.standardize_info import standardize_info


def _row(info, name):
    return info.set_index("Parameter").loc[name]


def test_formula_models_expose_patsy_design():
    model = fit_ols(make_linear_data(), "y ~ x + C(g)")
    adapter = get_adapter(model)
    assert isinstance(adapter, StatsmodelsAdapter)

    design = adapter.design_info(model)
    assert list(design.column_names) == list(model.params.index)
    kinds = {t.parameter: t.type for t in adapter.term_infos(model)}
    assert kinds == {"Intercept": "intercept", "x": "numeric", "C(g)[T.b]": "factor", "C(g)[T.c]": "factor"}


def test_array_fitted_model_is_not_supported():
    data = make_linear_data()
    model = sm.OLS(data["y"], sm.add_constant(data[["x"]])).fit()
    with pytest.raises(RegistryError, match="No adapter"):
        get_adapter(model)


def test_mixed_model_random_terms():
    data = make_multilevel_data()
    adapter = MixedLMAdapter()

    model = fit_mixed(data)
    assert adapter.find_random(model) == ["id"]
    assert np.array_equal(adapter.random_groups(model), data["id"].to_numpy())

    nested = fit_mixed(data, vc_formula={"sub": "0 + C(sub)"})
    assert adapter.find_random(nested) == ["id", "sub"]


def test_refit_mixed_model_keeps_random_slope():
    model = fit_mixed(make_multilevel_data(), re_formula="~w")
    refit = standardize(model, verbose=False)
    assert refit.model.k_re == 2
    assert list(refit.fe_params.index) == ["Intercept", "w", "b"]


def test_smart_response_uses_treatment_reference_level():
    data = make_linear_data()
    model = fit_ols(data, "y ~ x + C(g, Treatment('b'))")
    info = standardize_info(model)

    sd_ref = np.std(data.loc[data["g"] == "b", "y"], ddof=1)
    for level in ("a", "c"):
        row = _row(info, f"C(g, Treatment('b'))[T.{level}]")
        assert row["Deviation_Response_Smart"] == pytest.approx(sd_ref)
    assert _row(info, "x")["Deviation_Response_Smart"] == pytest.approx(np.std(data["y"], ddof=1))


def test_smart_response_without_reference_level_uses_overall_sd():
    data = make_linear_data()
    model = fit_ols(data, "y ~ x + C(g, Sum)")
    info = standardize_info(model)

    factor_rows = info[info["Type"] == "factor"]
    assert len(factor_rows) == 2
    assert np.allclose(factor_rows["Deviation_Response_Smart"], np.std(data["y"], ddof=1))


def test_posterior_formula_resolves_caller_functions():
    def shift(v):
        return v + 1.0

    data = make_linear_data()
    rng = np.random.default_rng(5)
    draws = pd.DataFrame(rng.normal(size=(200, 3)), columns=["Intercept", "shift(x)", "z"])
    fit = PosteriorFit(draws=draws, data=data, formula="y ~ shift(x) + z")

    assert list(PosteriorAdapter().model_matrix(fit).columns) == ["Intercept", "shift(x)", "z"]
    out = standardize_posteriors(fit, method="basic")
    ratio = np.std(data["x"], ddof=1) / np.std(data["y"], ddof=1)
    assert np.allclose(out.draws["shift(x)"], draws["shift(x)"] * ratio)


def test_coefficient_labels():
    assert coefficient_label(ModelInfo("binomial", "logit", False), True) == "Odds Ratio"
    assert coefficient_label(ModelInfo("binomial", "log", False), True) == "Risk Ratio"
    assert coefficient_label(ModelInfo("poisson", "log", False), True) == "IRR"
    assert coefficient_label(ModelInfo("gaussian", "log", False), True) == "exp(Coefficient)"
    assert coefficient_label(ModelInfo("poisson", "log", False), False) == "Coefficient"
