from pathlib import Path
import sys

import numpy as np
import pytest
from scipy.stats import median_abs_deviation

MODELS_PATH = Path(__file__).resolve().parent / "models"
if str(MODELS_PATH) not in sys.path:
    sys.path.insert(0, str(MODELS_PATH))

from generate_models import (
    fit_logistic,
    fit_mixed,
    fit_ols,
    make_binary_data,
    make_linear_data,
    make_multilevel_data,
)

from stdparams.ops.standardize_info import standardize_info


def _row(info, name):
    return info.set_index("Parameter").loc[name]


def test_basic_and_smart_deviations_for_linear_model():
    data = make_linear_data()
    model = fit_ols(data, "y ~ x + z + g")
    info = standardize_info(model)

    assert list(info["Parameter"]) == list(model.params.index)
    sd_y = np.std(data["y"], ddof=1)
    assert np.allclose(info["Deviation_Response_Basic"], sd_y)

    x = _row(info, "x")
    assert x["Type"] == "numeric"
    assert x["Link"] == "Association"
    assert np.isclose(x["Deviation_Basic"], np.std(data["x"], ddof=1))
    assert np.isclose(x["Deviation_Smart"], np.std(data["x"], ddof=1))
    assert np.isclose(x["Deviation_Response_Smart"], sd_y)

    level = _row(info, "g[T.b]")
    assert level["Type"] == "factor"
    assert level["Link"] == "Difference"
    assert level["Deviation_Smart"] == 1.0
    indicator = (data["g"] == "b").astype(float)
    assert np.isclose(level["Deviation_Basic"], np.std(indicator, ddof=1))
    assert np.isclose(level["Deviation_Response_Smart"], np.std(data.loc[data["g"] == "a", "y"], ddof=1))

    intercept = _row(info, "Intercept")
    assert intercept["Deviation_Basic"] == 0.0
    assert intercept["Deviation_Smart"] == 0.0
    assert "Deviation_Pseudo" not in info.columns


def test_two_sd_doubles_predictor_deviations_only():
    data = make_linear_data()
    model = fit_ols(data, "y ~ x + z")
    one = standardize_info(model)
    two = standardize_info(model, two_sd=True)
    assert np.allclose(two["Deviation_Basic"], 2.0 * one["Deviation_Basic"])
    assert np.allclose(two["Deviation_Smart"], 2.0 * one["Deviation_Smart"])
    assert np.allclose(two["Deviation_Response_Basic"], one["Deviation_Response_Basic"])


def test_robust_uses_mad():
    data = make_linear_data()
    model = fit_ols(data, "y ~ x + z")
    info = standardize_info(model, robust=True)
    expected = median_abs_deviation(data["x"], scale="normal")
    assert np.isclose(_row(info, "x")["Deviation_Basic"], expected)
    assert np.isclose(info["Deviation_Response_Basic"].iloc[0], median_abs_deviation(data["y"], scale="normal"))


def test_interaction_smart_deviation_is_product():
    data = make_linear_data()
    model = fit_ols(data, "y ~ x * z")
    info = standardize_info(model)
    row = _row(info, "x:z")
    assert row["Type"] == "interaction"
    expected = np.std(data["x"], ddof=1) * np.std(data["z"], ddof=1)
    assert np.isclose(row["Deviation_Smart"], expected)


def test_response_deviation_is_one_for_glm():
    model = fit_logistic(make_binary_data())
    info = standardize_info(model)
    assert (info["Deviation_Response_Basic"] == 1.0).all()
    assert (info["Deviation_Response_Smart"] == 1.0).all()


def test_pseudo_deviations_for_two_level_model():
    data = make_multilevel_data()
    model = fit_mixed(data)
    info = standardize_info(model, include_pseudo=True)

    w = _row(info, "w")
    b = _row(info, "b")
    assert np.isclose(w["Deviation_Pseudo"], np.std(data["w"], ddof=1))
    group_b = data.groupby("id")["b"].mean()
    assert np.isclose(b["Deviation_Pseudo"], np.std(group_b, ddof=1))
    assert _row(info, "Intercept")["Deviation_Pseudo"] == 0.0

    # within terms use the residual SD, between terms the random-intercept SD
    assert w["Deviation_Response_Pseudo"] > 0
    assert b["Deviation_Response_Pseudo"] > 0
    assert w["Deviation_Response_Pseudo"] != pytest.approx(b["Deviation_Response_Pseudo"])
