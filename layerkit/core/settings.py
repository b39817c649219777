"""
Filesystem layout and environment overrides.

Environment variables:
    LAYERKIT_CATALOG_FILE      path to the module/theme catalog (JSON).
    LAYERKIT_CURRENT_THEME     theme used when a caller passes no theme name.
    LAYERKIT_PRECOMPILED_DIR   root of serialized per-theme artifacts.
    LAYERKIT_MODULE_WEB_PATH   frontend folder inside a module source root.
    LAYERKIT_THEME_WEB_PATH    frontend folder inside a theme (and per-module theme override).
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

MODULE_WEB_PATH = "view/frontend/web"
THEME_WEB_PATH = "web"
THEME_ROOT_MODULE = "Theme"
PRECOMPILED_FOLDER = ".precompiled"
INDEX_ARTIFACT_NAME = "components_with_inheritance.json"


def _env(name: str) -> Optional[str]:
    v = (os.getenv(name) or "").strip()
    return v or None


@dataclass(frozen=True)
class Settings:
    catalog_file: Optional[Path] = None
    current_theme: Optional[str] = None
    precompiled_dir: Path = Path(PRECOMPILED_FOLDER)
    module_web_path: str = MODULE_WEB_PATH
    theme_web_path: str = THEME_WEB_PATH
    index_artifact_name: str = INDEX_ARTIFACT_NAME

    @classmethod
    def from_env(cls) -> "Settings":
        catalog = _env("LAYERKIT_CATALOG_FILE")
        return cls(
            catalog_file=Path(catalog) if catalog else None,
            current_theme=_env("LAYERKIT_CURRENT_THEME"),
            precompiled_dir=Path(_env("LAYERKIT_PRECOMPILED_DIR") or PRECOMPILED_FOLDER),
            module_web_path=_env("LAYERKIT_MODULE_WEB_PATH") or MODULE_WEB_PATH,
            theme_web_path=_env("LAYERKIT_THEME_WEB_PATH") or THEME_WEB_PATH,
        )

    def index_artifact_path(self, theme_name: str) -> Path:
        return self.precompiled_dir / theme_name / self.index_artifact_name
