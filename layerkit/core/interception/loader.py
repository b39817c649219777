from __future__ import annotations

import hashlib
import importlib.machinery
import importlib.util
import inspect
import sys
from dataclasses import dataclass, field
from pathlib import Path
from types import ModuleType
from typing import Any, Dict, List, Protocol, Union

from layerkit.core.errors import ModuleLoadError

MODULE_PREFIX = "layerkit_file"


@dataclass
class LoadedModule:
    path: str
    exports: Dict[str, Any] = field(default_factory=dict)
    # The runtime object behind the exports (a Python module for the default loader).
    module: Any = None

    @property
    def export_names(self) -> List[str]:
        return list(self.exports.keys())


class ModuleLoader(Protocol):
    """
    Given a path, return its exported names and callable handles.

    Supplied by whatever hosts the build; the builder never imports files itself.
    """

    def load(self, path: str) -> LoadedModule:
        ...


def module_name_for(path: Union[str, Path], prefix: str) -> str:
    # IMPORTANT: module name must be deterministic across interpreter restarts
    p = Path(path).resolve()
    path_key = str(p).replace("\\", "/").lower().encode("utf-8")
    path_hash = hashlib.sha1(path_key).hexdigest()[:16]
    return f"{prefix}_{p.stem}_{path_hash}"


def load_file_module(path: Union[str, Path], module_name: str) -> ModuleType:
    """Execute a source file as ``module_name``, reusing it when already loaded."""
    existing = sys.modules.get(module_name)
    if existing is not None:
        return existing

    file_path = str(Path(path).resolve())
    loader = importlib.machinery.SourceFileLoader(module_name, file_path)
    spec = importlib.util.spec_from_file_location(module_name, file_path, loader=loader)
    if spec is None or spec.loader is None:
        raise ModuleLoadError(f"Cannot create module spec for {file_path}")

    mod = importlib.util.module_from_spec(spec)

    # register before exec so dataclasses and self-imports resolve
    sys.modules[module_name] = mod
    try:
        spec.loader.exec_module(mod)
    except Exception as exc:
        sys.modules.pop(module_name, None)
        raise ModuleLoadError(f"Failed to execute {file_path}: {exc}") from exc
    return mod


def export_surface(mod: ModuleType) -> Dict[str, Any]:
    """
    Public names of a module, in definition order.

    ``__all__`` wins when present. Otherwise every name without a leading
    underscore, minus submodules and callables imported from elsewhere.
    """
    declared = getattr(mod, "__all__", None)
    if declared is not None:
        return {name: getattr(mod, name) for name in declared if hasattr(mod, name)}

    out: Dict[str, Any] = {}
    for name, value in vars(mod).items():
        if name.startswith("_") or isinstance(value, ModuleType):
            continue
        owner = getattr(value, "__module__", None)
        if (inspect.isfunction(value) or inspect.isclass(value)) and owner != mod.__name__:
            continue
        out[name] = value
    return out


class PythonModuleLoader:
    """Loads Python source files under a stable, path-derived module name."""

    def __init__(self, prefix: str = MODULE_PREFIX):
        self.prefix = prefix

    def load(self, path: str) -> LoadedModule:
        mod = load_file_module(path, module_name_for(path, self.prefix))
        return LoadedModule(path=str(path), exports=export_surface(mod), module=mod)
