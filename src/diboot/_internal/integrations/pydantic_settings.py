from __future__ import annotations

import importlib
from typing import Any

from diboot._internal.constructibility import is_runtime_class


def _load_base_settings(module_name: str) -> type[Any] | None:
    try:
        module = importlib.import_module(module_name)
    except ImportError:
        return None
    base_settings = getattr(module, "BaseSettings", None)
    if isinstance(base_settings, type):
        return base_settings
    return None


SETTINGS_BASE: type[Any] | None = _load_base_settings("pydantic_settings")


def is_pydantic_settings_subclass(candidate: object) -> bool:
    """Return whether a class is a ``pydantic_settings.BaseSettings`` model.

    Settings models read their fields from the environment, so automatic
    construction builds them with no arguments instead of consulting a
    capability record. When ``pydantic-settings`` is not installed this
    function returns ``False`` for every candidate.

    Args:
        candidate: Object to test.

    """
    if SETTINGS_BASE is None or not is_runtime_class(candidate):
        return False
    return candidate is not SETTINGS_BASE and issubclass(candidate, SETTINGS_BASE)


__all__ = [
    "SETTINGS_BASE",
    "is_pydantic_settings_subclass",
]
