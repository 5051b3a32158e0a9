"""Core package types shared by the rescaling stages."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import pandas as pd


@dataclass(frozen=True)
class ModelInfo:
    """Family/link classification of a fitted model."""

    family: str
    link: str
    is_linear: bool
    is_mixed: bool = False
    is_bayesian: bool = False

    @property
    def is_binomial(self) -> bool:
        return self.family in {"binomial", "bernoulli"}

    @property
    def is_count(self) -> bool:
        return self.family in {"poisson", "negativebinomial"}


@dataclass(frozen=True)
class ModelParameters:
    """Summarized (point-estimate) parameter table of a fitted model."""

    table: pd.DataFrame
    model: Any
    ci: float | None = 0.95
    exponentiate: bool = False
    coefficient_name: str = "Coefficient"


@dataclass(frozen=True)
class RescaleSpec:
    """Deviation columns applied to the coefficients for one method."""

    method: str
    predictor_column: str
    response_column: str
    use_exponent: bool = False


@dataclass(frozen=True)
class StdMetadata:
    std_method: str
    robust: bool
    two_sd: bool
    object_name: str | None = None
    standard_error: tuple[float, ...] | None = None


@dataclass(frozen=True)
class StandardizedParameters:
    """Standardized parameter table with its provenance."""

    table: pd.DataFrame
    metadata: StdMetadata

    @property
    def std_method(self) -> str:
        return self.metadata.std_method


@dataclass(frozen=True)
class StandardizedPosteriors:
    """Standardized posterior draws (draws as rows, parameters as columns)."""

    draws: pd.DataFrame
    metadata: StdMetadata

    @property
    def std_method(self) -> str:
        return self.metadata.std_method


@dataclass(frozen=True)
class TermInfo:
    """Structure of one model-matrix column."""

    parameter: str
    type: str
    numeric_vars: tuple[str, ...] = ()
    factor_vars: tuple[str, ...] = ()
    reference_levels: dict[str, Any] = field(default_factory=dict)

    @property
    def link(self) -> str:
        return "Difference" if self.factor_vars else "Association"
