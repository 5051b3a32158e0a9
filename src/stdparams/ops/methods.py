"""Standardization method names and their deviation-column mapping."""

from __future__ import annotations

from stdparams.core.types import RescaleSpec

METHODS: tuple[str, ...] = ("refit", "posthoc", "smart", "basic", "pseudo")
METHOD_ALIASES: dict[str, str] = {"classic": "basic"}
POSTHOC_METHODS: frozenset[str] = frozenset({"posthoc", "smart", "basic", "pseudo"})

# method -> (predictor column, response column)
_DEVIATION_COLUMNS: dict[str, tuple[str, str]] = {
    "basic": ("Deviation_Basic", "Deviation_Response_Basic"),
    "posthoc": ("Deviation_Smart", "Deviation_Response_Basic"),
    "smart": ("Deviation_Smart", "Deviation_Response_Smart"),
    "pseudo": ("Deviation_Pseudo", "Deviation_Response_Pseudo"),
}


class InvalidArgumentError(ValueError):
    """Raised for arguments that cannot be honoured (unknown method, refit on a table)."""


def normalize_method(method: str) -> str:
    """Return the canonical method name, resolving legacy aliases."""

    key = str(method).strip().lower()
    key = METHOD_ALIASES.get(key, key)
    if key not in METHODS:
        raise InvalidArgumentError(
            f"Unknown standardization method '{method}'. "
            f"'method' must be one of: {', '.join(METHODS)}"
        )
    return key


def resolve_method(method: str, exponentiate: bool = False) -> RescaleSpec:
    key = normalize_method(method)
    if key not in _DEVIATION_COLUMNS:
        raise InvalidArgumentError(
            f"Method '{key}' refits the model and has no post-hoc rescaling. "
            f"Post-hoc methods: {', '.join(sorted(POSTHOC_METHODS))}"
        )
    predictor, response = _DEVIATION_COLUMNS[key]
    return RescaleSpec(
        method=key,
        predictor_column=predictor,
        response_column=response,
        use_exponent=bool(exponentiate),
    )
