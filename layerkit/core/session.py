from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, Optional, TypeVar

from layerkit.core.catalog import FrontendCatalog, load_catalog
from layerkit.core.interception.loader import ModuleLoader, PythonModuleLoader
from layerkit.core.settings import Settings

if TYPE_CHECKING:
    from layerkit.core.interception.registry import InterceptionRegistry

T = TypeVar("T")

_log = logging.getLogger("layerkit.session")


class BuildSession:
    """
    Everything one build shares: the catalog, the export-introspection
    capability and the per-theme caches, including one interception table
    per theme.

    Cache buckets used by the resolvers:
      theme_config_plain, theme_config, component_index, module_config,
      declared_advice, interceptors, registry
    """

    def __init__(
        self,
        catalog: FrontendCatalog,
        *,
        settings: Optional[Settings] = None,
        loader: Optional[ModuleLoader] = None,
    ):
        self.catalog = catalog
        self.settings = settings or Settings()
        self.loader: ModuleLoader = loader or PythonModuleLoader()
        self._results: Dict[str, Dict[str, Any]] = {}
        self._pending: Dict[str, Dict[str, "asyncio.Future[Any]"]] = {}

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None, **kwargs: Any) -> "BuildSession":
        settings = settings or Settings.from_env()
        if settings.catalog_file is None:
            raise ValueError("LAYERKIT_CATALOG_FILE is not set")
        return cls(load_catalog(settings.catalog_file), settings=settings, **kwargs)

    def theme_or_default(self, theme_name: Optional[str]) -> str:
        name = theme_name or self.settings.current_theme
        if not name:
            raise ValueError("No theme name given and LAYERKIT_CURRENT_THEME is not set")
        return name

    def registry_for(self, theme_name: str) -> Optional["InterceptionRegistry"]:
        """Interception table of a successfully built theme, else None."""
        return self.get("registry", theme_name)

    # --- cache ---

    def has(self, bucket: str, key: str) -> bool:
        return key in self._results.get(bucket, {})

    def get(self, bucket: str, key: str, default: Any = None) -> Any:
        return self._results.get(bucket, {}).get(key, default)

    def store(self, bucket: str, key: str, value: Any) -> Any:
        self._results.setdefault(bucket, {})[key] = value
        return value

    async def once(self, bucket: str, key: str, factory: Callable[[], Awaitable[T]]) -> T:
        """
        Run ``factory`` at most once per (bucket, key).

        Concurrent callers await the same in-flight task. A failed computation
        is forgotten so a later call can retry it.
        """
        results = self._results.setdefault(bucket, {})
        if key in results:
            return results[key]

        pending = self._pending.setdefault(bucket, {})
        task = pending.get(key)
        if task is None:
            task = asyncio.ensure_future(factory())
            pending[key] = task
            _log.debug("session.compute bucket=%s key=%s", bucket, key)

        try:
            value = await task
        finally:
            if pending.get(key) is task and task.done():
                pending.pop(key, None)

        results.setdefault(key, value)
        return results[key]
