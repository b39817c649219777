from __future__ import annotations

import copy
import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, Optional

import yaml

from layerkit.core.catalog import ThemeDefinition
from layerkit.core.errors import ConfigLoadError
from layerkit.core.merge import deep_merge

if TYPE_CHECKING:
    from layerkit.core.session import BuildSession

_log = logging.getLogger("layerkit.themes")

THEME_DEFAULTS: Dict[str, Any] = {
    "include_tailwind_config_from_parent_themes": True,
    "include_css_source_from_parent_themes": True,
    "ignored_css_from_modules": [],
    "ignored_tailwind_config_from_modules": [],
    "expose_packages": [],
    "tailwind": {},
}


def read_config_file(path: Path) -> Dict[str, Any]:
    """Parse a YAML config document; an empty file is an empty mapping."""
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigLoadError(f"Cannot load config {path}: {exc}") from exc
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigLoadError(f"Config {path} must be a mapping, got {type(raw).__name__}")
    return raw


def theme_config_path(session: "BuildSession", theme: ThemeDefinition) -> Path:
    return Path(theme.src) / session.settings.theme_web_path / session.catalog.theme_config_file


def _load_plain_theme_config(session: "BuildSession", theme: ThemeDefinition) -> Optional[Dict[str, Any]]:
    if session.has("theme_config_plain", theme.name):
        plain = session.get("theme_config_plain", theme.name)
    else:
        path = theme_config_path(session, theme)
        try:
            if path.exists() or theme.config is None:
                plain = read_config_file(path)
            else:
                plain = dict(theme.config)
        except ConfigLoadError as exc:
            _log.error("Failed to load configuration for theme %r: %s", theme.name, exc)
            return None
        session.store("theme_config_plain", theme.name, plain)
    return copy.deepcopy(plain)


async def get_theme_config(session: "BuildSession", theme_name: str) -> Optional[Dict[str, Any]]:
    """
    Effective config of a theme: its own file with defaults applied, merged on
    top of its parent's effective config when inheritance is enabled.

    Returns None for an unknown theme or an unreadable config file. Each call
    returns its own copy of the cached config.
    """
    theme = session.catalog.get_theme(theme_name)
    if theme is None:
        return None
    config = await session.once("theme_config", theme_name, lambda: _compute_theme_config(session, theme))
    return copy.deepcopy(config)


async def _compute_theme_config(session: "BuildSession", theme: ThemeDefinition) -> Optional[Dict[str, Any]]:
    config = _load_plain_theme_config(session, theme)
    if config is None:
        return None

    for key, default in THEME_DEFAULTS.items():
        if config.get(key) is None:
            config[key] = copy.deepcopy(default)

    tailwind = config["tailwind"]
    if isinstance(tailwind, dict) and tailwind.get("content"):
        root = os.path.join(theme.src, session.settings.theme_web_path)
        tailwind["content"] = [os.path.join(root, pattern) for pattern in tailwind["content"]]

    if config["include_tailwind_config_from_parent_themes"] and theme.parent:
        parent_config = await get_theme_config(session, theme.parent)
        config = deep_merge(parent_config or {}, config)

    return config


async def get_tailwind_theme_config(session: "BuildSession", theme_name: str) -> Dict[str, Any]:
    config = await get_theme_config(session, theme_name)
    return (config or {}).get("tailwind") or {}
