from __future__ import annotations

import posixpath
from typing import Iterable, Mapping, Optional, Tuple

from layerkit.core.errors import ResolutionMiss

SEPARATOR = "::"


def parse_identifier(identifier: str) -> Optional[Tuple[str, str]]:
    """Split "Module::path/to/file.py" into ("Module", "path/to/file")."""
    if not identifier or SEPARATOR not in identifier:
        return None
    module_name, _, rel = identifier.partition(SEPARATOR)
    if not module_name or not rel:
        return None
    rel = rel.replace("\\", "/")
    stem, _ext = posixpath.splitext(rel)
    return module_name, posixpath.normpath(stem)


def index_key(identifier: str) -> Optional[str]:
    parsed = parse_identifier(identifier)
    if parsed is None:
        return None
    return f"{parsed[0]}/{parsed[1]}"


def resolve_identifier(identifier: str, index: Mapping[str, str]) -> Optional[str]:
    key = index_key(identifier)
    if key is None:
        return None
    return index.get(key)


def require_identifier(identifier: str, index: Mapping[str, str]) -> str:
    path = resolve_identifier(identifier, index)
    if path is None:
        raise ResolutionMiss(identifier)
    return path


class IdentifierResolver:
    """
    Import-style resolution against a component index.

    Unlike resolve_identifier, a path that names neither a known folder gets
    the components folder prepended, and an explicit extension outside the
    allowed set never resolves.
    """

    def __init__(
        self,
        index: Mapping[str, str],
        *,
        allowed_extensions: Iterable[str],
        components_path: str = "components",
        scripts_path: str = "lib",
    ):
        self.index = index
        self.allowed_extensions = tuple(allowed_extensions)
        self.components_path = components_path
        self.scripts_path = scripts_path

    def resolve(self, identifier: str) -> Optional[str]:
        return resolve_identifier(identifier, self.index)

    def resolve_import(self, import_id: str) -> Optional[str]:
        if not import_id or SEPARATOR not in import_id:
            return None
        module_name, _, rel = import_id.partition(SEPARATOR)
        if not module_name or not rel:
            return None

        ext = posixpath.splitext(rel)[1]
        if ext and ext not in self.allowed_extensions:
            return None

        if not rel.startswith((f"{self.components_path}/", f"{self.scripts_path}/")):
            rel = f"{self.components_path}/{rel}"
        return self.resolve(f"{module_name}{SEPARATOR}{rel}")
