"""Model-introspection adapters and registration helpers."""

from stdparams.adapters.base import FormulaAdapterBase, ModelAdapter
from stdparams.adapters.posterior import PosteriorAdapter, PosteriorFit, RefitError
from stdparams.adapters.statsmodels_results import MixedLMAdapter, StatsmodelsAdapter

__all__ = [
    "register_builtin_adapters",
    "FormulaAdapterBase",
    "ModelAdapter",
    "MixedLMAdapter",
    "PosteriorAdapter",
    "PosteriorFit",
    "RefitError",
    "StatsmodelsAdapter",
]


def register_builtin_adapters() -> None:
    from stdparams.core.registry import register_adapter

    register_adapter(MixedLMAdapter())
    register_adapter(StatsmodelsAdapter())
    register_adapter(PosteriorAdapter())
