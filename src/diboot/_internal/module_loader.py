from __future__ import annotations

import importlib.util
import sys
from pathlib import Path
from types import ModuleType


def load_module_from_path(path: Path, module_name: str) -> ModuleType:
    """Import a Python file by path under ``module_name``.

    The module is placed in ``sys.modules`` while it executes so that
    dataclasses and postponed annotations inside it resolve normally. A
    module that fails to execute is removed again and the error propagates.

    Args:
        path: Python source file to load.
        module_name: Name the module is registered under.

    """
    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        msg = f"Cannot load module from {path}."
        raise ImportError(msg)

    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except BaseException:
        sys.modules.pop(module_name, None)
        raise
    return module


__all__ = ["load_module_from_path"]
