from __future__ import annotations

import numpy as np
import pandas as pd
import statsmodels.api as sm
import statsmodels.formula.api as smf

from stdparams.adapters.posterior import PosteriorFit


def make_linear_data(n: int = 200, seed: int = 0) -> pd.DataFrame:
    rng = np.random.default_rng(seed)
    x = rng.normal(10.0, 3.0, n)
    z = rng.normal(0.0, 2.0, n)
    g = rng.choice(["a", "b", "c"], size=n)
    y = (
        2.0
        + 0.5 * x
        - 1.2 * z
        + np.where(g == "b", 1.5, 0.0)
        + np.where(g == "c", -0.8, 0.0)
        + rng.normal(0.0, 1.0 + 0.5 * (g == "a"), n)
    )
    return pd.DataFrame({"y": y, "x": x, "z": z, "g": g})


def make_binary_data(n: int = 400, seed: int = 1) -> pd.DataFrame:
    rng = np.random.default_rng(seed)
    x = rng.normal(5.0, 2.0, n)
    z = rng.normal(0.0, 1.0, n)
    eta = -2.0 + 0.4 * x + 0.6 * z
    y = rng.binomial(1, 1.0 / (1.0 + np.exp(-eta)))
    return pd.DataFrame({"y": y, "x": x, "z": z})


def make_multilevel_data(n_groups: int = 25, per_group: int = 12, seed: int = 2) -> pd.DataFrame:
    rng = np.random.default_rng(seed)
    ids = np.repeat(np.arange(n_groups), per_group)
    raw = rng.normal(0.0, 1.5, ids.size)
    means = np.bincount(ids, weights=raw) / np.bincount(ids)
    w = raw - means[ids]
    b = rng.normal(3.0, 2.0, n_groups)[ids]
    u = rng.normal(0.0, 1.0, n_groups)[ids]
    y = 1.0 + 0.7 * w + 0.4 * b + u + rng.normal(0.0, 0.8, ids.size)
    sub = np.tile(np.arange(per_group) % 3, n_groups)
    return pd.DataFrame(
        {"y": y, "w": w, "b": b, "id": [f"g{i:02d}" for i in ids], "sub": [f"s{s}" for s in sub]}
    )


def make_count_data(n: int = 300, seed: int = 4) -> pd.DataFrame:
    rng = np.random.default_rng(seed)
    x = rng.normal(2.0, 1.0, n)
    z = rng.normal(0.0, 1.0, n)
    y = rng.poisson(np.exp(0.3 + 0.4 * x - 0.2 * z))
    return pd.DataFrame({"y": y, "x": x, "z": z})


def fit_ols(data: pd.DataFrame, formula: str):
    return smf.ols(formula, data).fit()


def fit_logistic(data: pd.DataFrame, formula: str = "y ~ x + z"):
    return smf.glm(formula, data, family=sm.families.Binomial()).fit()


def fit_poisson(data: pd.DataFrame, formula: str = "y ~ x + z"):
    return smf.glm(formula, data, family=sm.families.Poisson()).fit()


def fit_mixed(data: pd.DataFrame, formula: str = "y ~ w + b", groups: str = "id", **kwargs):
    return smf.mixedlm(formula, data, groups=groups, **kwargs).fit()


def ols_sampler(n_draws: int = 1000, seed: int = 3):
    """Approximate posterior sampler: normal draws around the OLS solution."""

    def sample(formula: str, data: pd.DataFrame) -> pd.DataFrame:
        rng = np.random.default_rng(seed)
        fit = smf.ols(formula, data).fit()
        draws = rng.multivariate_normal(fit.params.to_numpy(), fit.cov_params().to_numpy(), size=n_draws)
        out = pd.DataFrame(draws, columns=[str(c) for c in fit.params.index])
        out["sigma"] = np.sqrt(fit.scale) * np.exp(rng.normal(0.0, 0.02, n_draws))
        return out

    return sample


def make_posterior_fit(data: pd.DataFrame, formula: str = "y ~ x + z", with_sampler: bool = True) -> PosteriorFit:
    sampler = ols_sampler()
    return PosteriorFit(
        draws=sampler(formula, data),
        data=data,
        formula=formula,
        sampler=sampler if with_sampler else None,
    )
