from __future__ import annotations

import importlib
from types import ModuleType
from typing import Any

import diboot._internal.integrations.pydantic_settings as pydantic_settings_integration


def test_load_base_settings_returns_none_for_missing_module(monkeypatch: Any) -> None:
    def _raise_import_error(_module_name: str) -> ModuleType:
        raise ImportError

    monkeypatch.setattr(importlib, "import_module", _raise_import_error)

    assert pydantic_settings_integration._load_base_settings("missing.module") is None


def test_load_base_settings_returns_none_when_base_settings_is_not_a_type(
    monkeypatch: Any,
) -> None:
    module = ModuleType("test_module")
    module.BaseSettings = "not-a-type"  # type: ignore[attr-defined]

    def _import_module(_module_name: str) -> ModuleType:
        return module

    monkeypatch.setattr(importlib, "import_module", _import_module)

    assert pydantic_settings_integration._load_base_settings("fake.module") is None


def test_is_pydantic_settings_subclass_returns_false_for_non_type() -> None:
    assert pydantic_settings_integration.is_pydantic_settings_subclass("not-a-class") is False


def test_is_pydantic_settings_subclass_without_pydantic_settings(monkeypatch: Any) -> None:
    class Settings:
        pass

    monkeypatch.setattr(pydantic_settings_integration, "SETTINGS_BASE", None)

    assert pydantic_settings_integration.is_pydantic_settings_subclass(Settings) is False
