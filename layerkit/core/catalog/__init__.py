from .loader import catalog_from_dict, load_catalog
from .models import FolderSpec, FrontendCatalog, ModuleDefinition, ThemeDefinition

__all__ = [
    "FolderSpec",
    "FrontendCatalog",
    "ModuleDefinition",
    "ThemeDefinition",
    "catalog_from_dict",
    "load_catalog",
]
