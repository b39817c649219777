from .identifier import IdentifierResolver, index_key, parse_identifier, require_identifier, resolve_identifier
from .module_resolver import (
    get_component_index,
    get_component_index_cached,
    get_merged_module_config,
    resolve_file_by_theme,
)
from .precompile import write_component_index_artifact
from .theme_resolver import get_tailwind_theme_config, get_theme_config

__all__ = [
    "IdentifierResolver",
    "get_component_index",
    "get_component_index_cached",
    "get_merged_module_config",
    "get_tailwind_theme_config",
    "get_theme_config",
    "index_key",
    "parse_identifier",
    "require_identifier",
    "resolve_file_by_theme",
    "resolve_identifier",
    "write_component_index_artifact",
]
