"""Adapter registry resolving model-introspection adapters for fitted models."""

from __future__ import annotations

from importlib import import_module
from importlib.metadata import EntryPoint, entry_points
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from stdparams.adapters.base import ModelAdapter


_ADAPTERS: dict[str, "ModelAdapter"] = {}


class RegistryError(KeyError):
    """Raised when an adapter cannot be resolved."""


def register_adapter(adapter: "ModelAdapter") -> None:
    name = adapter.name.strip().lower()
    if not name:
        raise RegistryError("Adapter name cannot be empty")
    _ADAPTERS[name] = adapter


def get_adapter(model: Any) -> "ModelAdapter":
    """Return the first registered adapter that supports ``model``."""

    if not _ADAPTERS:
        _load_builtin_adapters()
    adapter = _find(model)
    if adapter is None:
        _load_entrypoint_adapters()
        adapter = _find(model)
    if adapter is None:
        available = ", ".join(sorted(_ADAPTERS)) or "none"
        raise RegistryError(
            f"No adapter supports model of type '{type(model).__name__}'. "
            f"Available adapters: {available}"
        )
    return adapter


def get_adapter_by_name(name: str) -> "ModelAdapter":
    key = name.strip().lower()
    if not _ADAPTERS:
        _load_builtin_adapters()
    if key not in _ADAPTERS:
        _load_entrypoint_adapters()
    if key not in _ADAPTERS:
        available = ", ".join(sorted(_ADAPTERS)) or "none"
        raise RegistryError(f"Unknown adapter '{name}'. Available adapters: {available}")
    return _ADAPTERS[key]


def available_adapters() -> list[str]:
    if not _ADAPTERS:
        _load_builtin_adapters()
    _load_entrypoint_adapters()
    return sorted(_ADAPTERS)


def clear_registry() -> None:
    _ADAPTERS.clear()


def _find(model: Any) -> "ModelAdapter | None":
    for adapter in _ADAPTERS.values():
        if adapter.supports(model):
            return adapter
    return None


def _load_builtin_adapters() -> None:
    import_and_register("stdparams.adapters", "register_builtin_adapters")


def _load_entrypoint_adapters() -> None:
    eps = entry_points()
    group = (
        eps.select(group="stdparams.adapters")
        if hasattr(eps, "select")
        else eps.get("stdparams.adapters", [])
    )
    for ep in group:
        _load_entrypoint(ep)


def _load_entrypoint(ep: EntryPoint | Any) -> None:
    try:
        obj = ep.load()
    except Exception:
        return
    if callable(obj):
        inst = obj()
    else:
        inst = obj
    if hasattr(inst, "name") and hasattr(inst, "supports"):
        register_adapter(inst)


def import_and_register(module_path: str, factory_name: str = "register") -> None:
    """Import a module and invoke its registration function."""

    module = import_module(module_path)
    factory = getattr(module, factory_name)
    factory()
