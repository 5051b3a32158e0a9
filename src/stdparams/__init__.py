"""Standardized regression coefficients by refitting or post-hoc rescaling."""

from stdparams.adapters.posterior import PosteriorFit
from stdparams.core.pipeline import model_parameters, standardize_parameters, standardize_posteriors
from stdparams.core.types import (
    ModelParameters,
    RescaleSpec,
    StandardizedParameters,
    StandardizedPosteriors,
    StdMetadata,
)
from stdparams.ops.applicability import StandardizationWarning, can_use
from stdparams.ops.methods import METHODS, InvalidArgumentError, resolve_method
from stdparams.ops.refit import standardize
from stdparams.ops.standardize_info import standardize_info

__all__ = [
    "METHODS",
    "InvalidArgumentError",
    "ModelParameters",
    "PosteriorFit",
    "RescaleSpec",
    "StandardizationWarning",
    "StandardizedParameters",
    "StandardizedPosteriors",
    "StdMetadata",
    "can_use",
    "model_parameters",
    "resolve_method",
    "standardize",
    "standardize_info",
    "standardize_parameters",
    "standardize_posteriors",
]
