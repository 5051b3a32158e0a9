"""Implementation of `stdparams methods`."""

from __future__ import annotations

import argparse

from stdparams.ops.methods import METHOD_ALIASES, METHODS

_DESCRIPTIONS = {
    "refit": "refit the model on standardized data (most accurate, most costly)",
    "posthoc": "rescale by predictor SD and overall response SD; factors keep level units",
    "smart": "like posthoc, response SD taken at the reference level of factors",
    "basic": "rescale by model-matrix column SD and response SD",
    "pseudo": "level-specific SDs for 2-level mixed models",
}


def register(subparsers: argparse._SubParsersAction) -> None:
    parser = subparsers.add_parser("methods", help="List standardization methods")
    parser.set_defaults(func=cmd_methods)


def cmd_methods(args: argparse.Namespace) -> int:
    for name in METHODS:
        print(f"{name:8s} {_DESCRIPTIONS[name]}")
    for alias, target in METHOD_ALIASES.items():
        print(f"{alias:8s} alias of '{target}'")
    return 0
