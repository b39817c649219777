"""
Helpers imported by generated interceptor modules.

Generated code reaches the original target file through ``load_module``,
which executes it under a name derived from its path. Whatever substitutes
interceptor modules for original files keys on the regular import, so this
reference always reaches the untouched original.
"""
from __future__ import annotations

import importlib.util
import sys
from pathlib import Path
from types import ModuleType
from typing import Union

from .loader import MODULE_PREFIX, load_file_module, module_name_for


def load_module(path: Union[str, Path]) -> ModuleType:
    return load_file_module(path, module_name_for(path, MODULE_PREFIX))


def load_generated(source: str, module_name: str) -> ModuleType:
    """Execute generated interceptor source as a fresh module registered under ``module_name``."""
    spec = importlib.util.spec_from_loader(module_name, loader=None, origin=f"<interceptor {module_name}>")
    if spec is None:
        raise ImportError(f"Cannot create module spec for {module_name}")
    mod = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = mod
    try:
        exec(compile(source, spec.origin or module_name, "exec"), mod.__dict__)
    except Exception:
        sys.modules.pop(module_name, None)
        raise
    return mod
