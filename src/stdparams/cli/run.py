"""Implementation of `stdparams run`."""

from __future__ import annotations

import argparse
import logging
from typing import Any

import pandas as pd
import statsmodels.api as sm
import statsmodels.formula.api as smf

from stdparams.core.config import ConfigError, resolve_config
from stdparams.core.pipeline import standardize_parameters
from stdparams.data.io import load_table, write_table
from stdparams.ops.methods import InvalidArgumentError

logger = logging.getLogger(__name__)

FAMILIES = {
    "gaussian": sm.families.Gaussian,
    "binomial": sm.families.Binomial,
    "poisson": sm.families.Poisson,
}


def register(subparsers: argparse._SubParsersAction) -> None:
    parser = subparsers.add_parser("run", help="Fit a formula model and standardize its parameters")
    parser.add_argument("data", help="CSV or parquet data table")
    parser.add_argument("--formula", required=True, help="Model formula, e.g. 'y ~ x + C(g)'")
    parser.add_argument("--family", default="gaussian", choices=sorted(FAMILIES), help="GLM family")
    parser.add_argument("--groups", default=None, help="Grouping column for a random-intercept model")
    parser.add_argument("--method", default=None, help="refit|posthoc|smart|basic|pseudo")
    parser.add_argument("--ci", type=float, default=None, help="Confidence level")
    parser.add_argument("--robust", action="store_true", default=None, help="Use median/MAD")
    parser.add_argument("--two-sd", action="store_true", default=None, help="Scale predictors by 2 SD")
    parser.add_argument("--exponentiate", action="store_true", default=None, help="Exponentiate coefficients")
    parser.add_argument("--config", default=None, help="Config YAML")
    parser.add_argument("--out", default=None, help="Write the standardized table to this CSV/parquet path")
    parser.set_defaults(func=cmd_run)


def cmd_run(args: argparse.Namespace) -> int:
    overrides: dict[str, Any] = {"standardize": {}}
    for key in ("method", "ci", "robust", "two_sd", "exponentiate"):
        value = getattr(args, key)
        if value is not None:
            overrides["standardize"][key] = value
    try:
        cfg = resolve_config(config_path=args.config, overrides=overrides)
    except ConfigError as exc:
        print(f"Invalid configuration: {exc}")
        return 2

    data = load_table(args.data)
    model = fit_formula_model(data, args.formula, family=args.family, groups=args.groups)
    std = cfg["standardize"]
    try:
        result = standardize_parameters(
            model,
            method=std["method"],
            ci=std["ci"],
            robust=std["robust"],
            two_sd=std["two_sd"],
            exponentiate=std["exponentiate"],
            verbose=bool(cfg.get("verbose", True)),
            object_name=args.formula,
        )
    except InvalidArgumentError as exc:
        print(f"Invalid argument: {exc}")
        return 2

    with pd.option_context("display.width", 160):
        print(result.table.to_string(index=False))
    print(f"Method: {result.metadata.std_method} (robust={result.metadata.robust}, two_sd={result.metadata.two_sd})")
    if args.out:
        write_table(result.table, args.out)
        print(f"Wrote {len(result.table)} rows to {args.out}")
    return 0


def fit_formula_model(data: pd.DataFrame, formula: str, family: str = "gaussian", groups: str | None = None):
    if groups is not None:
        if family != "gaussian":
            raise ValueError("Random-intercept models are only supported for the gaussian family")
        return smf.mixedlm(formula, data, groups=groups).fit()
    if family == "gaussian":
        return smf.ols(formula, data).fit()
    return smf.glm(formula, data, family=FAMILIES[family]()).fit()
