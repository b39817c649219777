from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, model_validator


class ModuleDefinition(BaseModel):
    name: str = ""
    src: str
    # Used when the module ships no config file on disk.
    config: Optional[Dict[str, Any]] = None


class ThemeDefinition(BaseModel):
    name: str = ""
    src: str
    parent: Optional[str] = None
    config: Optional[Dict[str, Any]] = None


class FolderSpec(BaseModel):
    src: str
    ext: List[str]


class FrontendCatalog(BaseModel):
    """Static description of every module and theme of a frontend build."""

    modules: Dict[str, ModuleDefinition] = Field(default_factory=dict)
    themes: Dict[str, ThemeDefinition] = Field(default_factory=dict)
    # Enabled modules, in merge order. Defaults to every declared module.
    all_modules: Optional[List[str]] = None

    theme_config_file: str = "theme.config.yaml"
    module_config_file: str = "module.config.yaml"
    allowed_extensions: List[str] = Field(default_factory=lambda: [".py", ".pyw"])
    components_path: str = "components"
    scripts_path: str = "lib"

    @model_validator(mode="after")
    def _fill_and_check(self) -> "FrontendCatalog":
        for name, module in self.modules.items():
            module.name = module.name or name
        for name, theme in self.themes.items():
            theme.name = theme.name or name
        if self.all_modules is None:
            self.all_modules = list(self.modules.keys())

        for name in self.themes:
            seen = [name]
            parent = self.themes[name].parent
            while parent and parent in self.themes:
                if parent in seen:
                    raise ValueError(f"Theme inheritance loop: {' -> '.join(seen + [parent])}")
                seen.append(parent)
                parent = self.themes[parent].parent
        return self

    def enabled_modules(self) -> List[str]:
        return list(self.all_modules or [])

    def get_module(self, name: str) -> Optional[ModuleDefinition]:
        return self.modules.get(name)

    def get_theme(self, name: str) -> Optional[ThemeDefinition]:
        return self.themes.get(name)

    def theme_chain(self, name: str) -> List[str]:
        """Theme followed by its ancestors, nearest first."""
        chain: List[str] = []
        current = self.themes.get(name)
        while current is not None:
            chain.append(current.name)
            current = self.themes.get(current.parent) if current.parent else None
        return chain

    def folders(self) -> List[FolderSpec]:
        return [
            FolderSpec(src=self.components_path, ext=list(self.allowed_extensions)),
            FolderSpec(src=self.scripts_path, ext=[".py"]),
        ]
