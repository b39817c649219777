from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING, Dict, Mapping, Optional

from layerkit.core.errors import LayerkitError

from .builder import InterceptorArtifact, build_interceptors

if TYPE_CHECKING:
    from layerkit.core.session import BuildSession

_log = logging.getLogger("layerkit.interceptors")

VIRTUAL_PREFIX = "\0interceptor:"


def _normalize(path: str) -> str:
    # drop query strings the host may append, compare real paths
    return os.path.realpath(path.split("?", 1)[0])


class InterceptorSourceProvider:
    """
    Serves generated interceptor source in place of original target files.

    Hosts call ``resolve_id`` with an already resolved file path. Intercepted
    files map to a virtual id, except when the importer is that virtual
    module itself: the generated code must still reach the original file.
    """

    def __init__(self, artifacts: Mapping[str, InterceptorArtifact]):
        self._by_path: Dict[str, InterceptorArtifact] = {
            _normalize(a.target_path): a for a in artifacts.values() if a.target_path
        }

    @classmethod
    async def for_theme(cls, session: "BuildSession", theme_name: str) -> "InterceptorSourceProvider":
        try:
            artifacts = await build_interceptors(session, theme_name)
        except LayerkitError as exc:
            _log.error("Failed to generate interceptors for theme %s: %s", theme_name, exc)
            artifacts = {}
        return cls(artifacts)

    def __len__(self) -> int:
        return len(self._by_path)

    def resolve_id(self, resolved_path: str, importer: Optional[str] = None) -> Optional[str]:
        if not self._by_path or not resolved_path or resolved_path.startswith("\0"):
            return None
        path = _normalize(resolved_path)
        if path not in self._by_path:
            return None
        virtual_id = f"{VIRTUAL_PREFIX}{path}"
        if importer == virtual_id:
            return None
        return virtual_id

    def load(self, virtual_id: str) -> Optional[str]:
        if not virtual_id.startswith(VIRTUAL_PREFIX):
            return None
        artifact = self._by_path.get(virtual_id[len(VIRTUAL_PREFIX):])
        return artifact.source if artifact is not None else None
