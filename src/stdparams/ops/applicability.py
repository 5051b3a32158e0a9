"""Checks deciding whether a post-hoc method is valid for a model's structure.

``smart`` and ``posthoc`` need scale factors on the original variable scale, which
is undefined once a predictor or the response enters the formula transformed
(``np.log(y) ~ x``, ``I(x ** 2)``, ``bs(x, 3)``).  ``basic`` scales the model matrix
directly and tolerates any transformation.  ``pseudo`` needs a variance
decomposition and so only works for 2-level mixed models.

Incompatibilities never raise: the method is downgraded to ``basic`` with a single
``StandardizationWarning`` so that batch runs over many models keep going.
"""

from __future__ import annotations

import logging
import re
import warnings
from typing import TYPE_CHECKING, Any, Sequence

from stdparams.utils.stack import find_stack_level

if TYPE_CHECKING:
    from stdparams.adapters.base import ModelAdapter

logger = logging.getLogger(__name__)

_CALL_RE = re.compile(r"^[A-Za-z_][\w\.]*\((.*)\)$", re.S)
_LEVEL_RE = re.compile(r"\[[^\]]*\]$")
_IDENT_RE = re.compile(r"[A-Za-z_][\w\.]*")
_FACTOR_CALL_RE = re.compile(r"^(?:C|factor|as_factor|as\.factor)\(.+\)\[.+\]$", re.S)
_FACTOR_LEVEL_RE = re.compile(r"^[A-Za-z_]\w*\[.+\]$", re.S)


class StandardizationWarning(UserWarning):
    """Issued when a requested method or flag is replaced by a compatible one."""


def clean_parameter_name(name: str) -> str:
    """Strip function wrappers and level suffixes, keeping the bare variable names.

    ``np.log(x)`` -> ``x``, ``C(g)[T.b]`` -> ``g``, ``x:I(z ** 2)`` -> ``x:z``.
    """

    parts = []
    for part in str(name).split(":"):
        part = _LEVEL_RE.sub("", part.strip())
        match = _CALL_RE.match(part)
        while match:
            part = _split_first_arg(match.group(1))
            match = _CALL_RE.match(part)
        ident = _IDENT_RE.search(part)
        parts.append(ident.group(0) if ident else part)
    return ":".join(parts)


def is_factor_encoding(part: str) -> bool:
    part = part.strip()
    return bool(_FACTOR_CALL_RE.match(part) or _FACTOR_LEVEL_RE.match(part))


def has_transformed_parameters(parameter_names: Sequence[str]) -> bool:
    for name in parameter_names:
        for part in str(name).split(":"):
            part = part.strip()
            if is_factor_encoding(part):
                continue
            if part != clean_parameter_name(part):
                return True
    return False


def has_transformed_response(model: Any, adapter: "ModelAdapter") -> bool:
    return adapter.response_term(model) != adapter.find_response(model)


def can_use_pseudo(model: Any, adapter: "ModelAdapter") -> bool:
    info = adapter.model_info(model)
    return bool(info.is_mixed) and len(adapter.find_random(model)) == 1


def cant_smart_or_posthoc(
    model: Any,
    parameter_names: Sequence[str],
    adapter: "ModelAdapter",
) -> bool:
    if has_transformed_response(model, adapter):
        return True
    return has_transformed_parameters(parameter_names)


def can_use(
    method: str,
    model: Any,
    parameter_names: Sequence[str],
    adapter: "ModelAdapter | None" = None,
) -> bool:
    """Return whether ``method`` is valid for ``model`` without any fallback."""

    from stdparams.core.registry import get_adapter
    from stdparams.ops.methods import normalize_method

    key = normalize_method(method)
    adapter = adapter or get_adapter(model)
    if key == "pseudo":
        return can_use_pseudo(model, adapter)
    if key in {"smart", "posthoc"}:
        return not cant_smart_or_posthoc(model, parameter_names, adapter)
    return True


def check_method(
    method: str,
    model: Any,
    parameter_names: Sequence[str],
    robust: bool,
    adapter: "ModelAdapter",
) -> tuple[str, bool]:
    """Apply the fallback rules and return the (method, robust) actually used."""

    if method == "pseudo" and not can_use_pseudo(model, adapter):
        warnings.warn(
            "'pseudo' method only available for 2-level (G)LMMs. Setting method to 'basic'.",
            StandardizationWarning,
            stacklevel=find_stack_level(),
        )
        logger.debug("pseudo -> basic for %s", type(model).__name__)
        method = "basic"

    if method in {"smart", "posthoc"} and cant_smart_or_posthoc(model, parameter_names, adapter):
        warnings.warn(
            f"Method '{method}' does not currently support models with transformed "
            "parameters. Reverting to 'basic' method. Consider using the 'refit' method directly.",
            StandardizationWarning,
            stacklevel=find_stack_level(),
        )
        logger.debug("%s -> basic for %s", method, type(model).__name__)
        method = "basic"

    if robust and method == "pseudo":
        warnings.warn(
            "'robust' standardization not available for 'pseudo' method.",
            StandardizationWarning,
            stacklevel=find_stack_level(),
        )
        robust = False

    return method, robust


def _split_first_arg(args: str) -> str:
    depth = 0
    for i, ch in enumerate(args):
        if ch in "([":
            depth += 1
        elif ch in ")]":
            depth -= 1
        elif ch == "," and depth == 0:
            return args[:i].strip()
    return args.strip()
