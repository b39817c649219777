from __future__ import annotations

import copy
import json
import logging
import os
import time
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, Optional

from layerkit.core.errors import ConfigLoadError, IndexArtifactMissing
from layerkit.core.merge import deep_merge
from layerkit.core.observability.metrics import COMPONENT_INDEX_BUILD_SECONDS
from layerkit.core.settings import THEME_ROOT_MODULE

from .scanner import ComponentIndex, scan_many
from .theme_resolver import read_config_file

if TYPE_CHECKING:
    from layerkit.core.session import BuildSession

_log = logging.getLogger("layerkit.modules")


# ------------------------------------------------------------
# Component index
# ------------------------------------------------------------

async def _module_base_layer(session: "BuildSession") -> ComponentIndex:
    catalog = session.catalog
    jobs = [
        (name, Path(module.src) / session.settings.module_web_path)
        for name, module in catalog.modules.items()
    ]
    result: ComponentIndex = {}
    for layer in await scan_many(jobs, catalog.folders()):
        result.update(layer)
    return result


async def _theme_layer(session: "BuildSession", theme_name: str) -> ComponentIndex:
    catalog = session.catalog
    theme = catalog.get_theme(theme_name)
    if theme is None:
        return {}

    result: ComponentIndex = {}
    if theme.parent:
        result = await _theme_layer(session, theme.parent)

    web = session.settings.theme_web_path
    jobs = [(name, Path(theme.src) / name / web) for name in catalog.enabled_modules()]
    # theme root goes last so it overrides every module-scoped file of this theme
    jobs.append((THEME_ROOT_MODULE, Path(theme.src) / web))

    for layer in await scan_many(jobs, catalog.folders()):
        result.update(layer)
    return result


async def get_component_index(session: "BuildSession", theme_name: Optional[str] = None) -> ComponentIndex:
    """
    Map of "<Module>/<folder>/<path>" to the file that wins for ``theme_name``.

    Precedence, highest first: theme root files, nearest theme module
    overrides, ancestor theme overrides, the module's own files.
    """
    name = session.theme_or_default(theme_name)
    return await session.once("component_index", name, lambda: _compute_component_index(session, name))


async def _compute_component_index(session: "BuildSession", theme_name: str) -> ComponentIndex:
    t0 = time.perf_counter()
    base = await _module_base_layer(session)
    themed = await _theme_layer(session, theme_name)
    index = {**base, **themed}
    COMPONENT_INDEX_BUILD_SECONDS.observe(time.perf_counter() - t0)
    _log.debug("component_index theme=%s entries=%s", theme_name, len(index))
    return index


def get_component_index_cached(session: "BuildSession", theme_name: Optional[str] = None) -> ComponentIndex:
    """Read the index serialized by write_component_index_artifact; never rescans."""
    name = session.theme_or_default(theme_name)
    if session.has("component_index", name):
        return session.get("component_index", name)

    path = session.settings.index_artifact_path(name)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise IndexArtifactMissing(f"Component index artifact not found for theme {name!r}: {path}") from exc
    if not isinstance(data, dict):
        raise IndexArtifactMissing(f"Component index artifact {path} is not a JSON object")
    return session.store("component_index", name, {str(k): str(v) for k, v in data.items()})


# ------------------------------------------------------------
# Per-theme file overrides and module config
# ------------------------------------------------------------

def resolve_file_by_theme(
    session: "BuildSession",
    theme_name: str,
    module_name: str,
    file_name: str,
    allow_parent_fallback: bool,
) -> Optional[str]:
    """Find ``<theme>/<module>/web/<file_name>``, walking up the parents if allowed."""
    theme = session.catalog.get_theme(theme_name)
    if theme is None:
        return None

    candidate = os.path.join(theme.src, module_name, session.settings.theme_web_path, file_name)
    if os.path.exists(candidate):
        return candidate

    if allow_parent_fallback and theme.parent:
        return resolve_file_by_theme(session, theme.parent, module_name, file_name, allow_parent_fallback)
    return None


def _module_web_root(session: "BuildSession", module_name: str) -> Optional[str]:
    module = session.catalog.get_module(module_name)
    if module is None:
        return None
    return os.path.join(module.src, session.settings.module_web_path)


def _load_module_config(session: "BuildSession", module_name: str, theme_name: str, from_parents: bool) -> Optional[Dict[str, Any]]:
    module = session.catalog.get_module(module_name)
    config_file = session.catalog.module_config_file
    path = resolve_file_by_theme(session, theme_name, module_name, config_file, from_parents)

    if path is None:
        if module is None:
            return None
        path = os.path.join(_module_web_root(session, module_name) or "", config_file)
    if not os.path.exists(path):
        return copy.deepcopy(module.config) if module is not None and module.config is not None else None

    try:
        return read_config_file(Path(path))
    except ConfigLoadError as exc:
        _log.error("Failed to load configuration for module %r: %s", module_name, exc)
        return None


def _is_ignored(theme_config: Dict[str, Any], module_name: str) -> bool:
    ignored = theme_config.get("ignored_tailwind_config_from_modules") or []
    return ignored == "all" or module_name in ignored


async def get_merged_module_config(
    session: "BuildSession",
    theme_name: str,
    theme_config: Optional[Dict[str, Any]],
) -> Optional[Dict[str, Any]]:
    """
    Deep-merge the configs of every enabled module as seen from ``theme_name``.

    Each module's config comes from the nearest theme override, else from the
    module itself. Declared interceptors are stamped with their module.
    Each call returns its own copy of the cached result.
    """
    if session.has("module_config", theme_name):
        return copy.deepcopy(session.get("module_config", theme_name))
    if theme_config is None:
        return None
    merged = await session.once("module_config", theme_name, lambda: _compute_module_config(session, theme_name, theme_config))
    return copy.deepcopy(merged)


async def _compute_module_config(session: "BuildSession", theme_name: str, theme_config: Dict[str, Any]) -> Dict[str, Any]:
    from_parents = bool(theme_config.get("include_tailwind_config_from_parent_themes", True))
    merged: Dict[str, Any] = {}

    for module_name in session.catalog.enabled_modules():
        config = _load_module_config(session, module_name, theme_name, from_parents)
        if config is None:
            continue

        tailwind = config.get("tailwind")
        if _is_ignored(theme_config, module_name):
            config["tailwind"] = {}
        elif isinstance(tailwind, dict) and tailwind.get("content"):
            root = _module_web_root(session, module_name)
            if root is not None:
                tailwind["content"] = [os.path.join(root, pattern) for pattern in tailwind["content"]]

        interceptors = config.get("interceptors")
        if isinstance(interceptors, list):
            config["interceptors"] = [
                {**entry, "module": entry.get("module") or module_name}
                for entry in interceptors
                if isinstance(entry, dict)
            ]

        merged = deep_merge(merged, config)

    return merged
