"""Configuration loading and resolution."""

from __future__ import annotations

from copy import deepcopy
from pathlib import Path
from typing import Any

import yaml

from stdparams.ops.methods import METHODS, METHOD_ALIASES


class ConfigError(ValueError):
    """Raised when configuration is invalid."""


DEFAULT_CONFIG: dict[str, Any] = {
    "standardize": {
        "method": "refit",
        "ci": 0.95,
        "robust": False,
        "two_sd": False,
        "exponentiate": False,
    },
    "verbose": True,
}


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries and return a new dictionary."""

    out = deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(out.get(key), dict):
            out[key] = deep_merge(out[key], value)
        else:
            out[key] = value
    return out


def load_yaml(path: str | Path) -> dict[str, Any]:
    p = Path(path)
    if not p.exists():
        raise ConfigError(f"Config file not found: {p}")
    with p.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config must be a mapping at root: {p}")
    return data


def resolve_config(
    config_path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Resolve run configuration from defaults, an optional user file and overrides."""

    resolved = deepcopy(DEFAULT_CONFIG)
    if config_path is not None:
        resolved = deep_merge(resolved, load_yaml(config_path))
    if overrides:
        resolved = deep_merge(resolved, overrides)
    _validate(resolved)
    return resolved


def dump_yaml(data: dict[str, Any], out_path: str | Path) -> None:
    p = Path(out_path)
    p.parent.mkdir(parents=True, exist_ok=True)
    with p.open("w", encoding="utf-8") as f:
        yaml.safe_dump(data, f, sort_keys=False)


def _validate(cfg: dict[str, Any]) -> None:
    std = cfg.get("standardize", {})
    method = std.get("method")
    if method not in METHODS and method not in METHOD_ALIASES:
        raise ConfigError(
            f"Unsupported standardize.method '{method}'. Supported: {'|'.join(METHODS)}"
        )

    ci = std.get("ci")
    if ci is not None:
        try:
            level = float(ci)
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"standardize.ci must be a number, got {ci!r}") from exc
        if not 0.0 < level < 1.0:
            raise ConfigError(f"standardize.ci must lie in (0, 1), got {level}")

    for flag in ("robust", "two_sd", "exponentiate"):
        if not isinstance(std.get(flag, False), bool):
            raise ConfigError(f"standardize.{flag} must be true or false")
