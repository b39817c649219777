from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple

from layerkit.core.errors import ExportMismatch, IndexArtifactMissing, ModuleLoadError
from layerkit.core.observability.metrics import (
    ADVICE_REGISTERED_TOTAL,
    ADVICE_SKIPPED_TOTAL,
    RESOLUTION_MISSES_TOTAL,
)
from layerkit.core.resolution import get_component_index, get_component_index_cached, resolve_identifier

from .codegen import AdviceMethod, AppliedAdvice, render_interceptor_source
from .declarations import AdviceDeclaration, collect_declared_advice
from .loader import LoadedModule
from .registry import ADVICE_KINDS, InterceptedModule, InterceptionRegistry, is_interceptable

if TYPE_CHECKING:
    from layerkit.core.session import BuildSession

_log = logging.getLogger("layerkit.interceptors")


@dataclass
class InterceptorArtifact:
    target: str
    wrapper: InterceptedModule
    target_path: str
    raw_module: Any
    advice: List[AppliedAdvice] = field(default_factory=list)
    source: str = ""
    export_names: List[str] = field(default_factory=list)


def classify_export(export_name: str) -> Optional[Tuple[str, str]]:
    """
    "before_render" -> ("before", "render"), "afterRender" -> ("after", "Render").

    Returns None for exports that are not advice.
    """
    for kind in ADVICE_KINDS:
        if export_name.startswith(kind):
            method = export_name[len(kind):]
            if method.startswith("_"):
                method = method[1:]
            return kind, method
    return None


def match_target_method(method: str, target_exports: List[str]) -> Optional[str]:
    if method in target_exports:
        return method
    lower_first = method[:1].lower() + method[1:]
    if lower_first in target_exports:
        return lower_first
    return None


async def _load_index(session: "BuildSession", theme_name: str) -> Dict[str, str]:
    try:
        return get_component_index_cached(session, theme_name)
    except IndexArtifactMissing:
        _log.warning("Component index artifact not found for theme %s, falling back to a filesystem scan.", theme_name)
        return await get_component_index(session, theme_name)


def _load(session: "BuildSession", path: str, role: str, identifier: str) -> Optional[LoadedModule]:
    try:
        return session.loader.load(path)
    except ModuleLoadError as exc:
        _log.error("Failed to import %s module %s: %s", role, identifier, exc)
        return None


def _apply_declaration(
    session: "BuildSession",
    registry: InterceptionRegistry,
    target: str,
    target_module: LoadedModule,
    declaration: AdviceDeclaration,
    index: Dict[str, str],
) -> Optional[AppliedAdvice]:
    source_path = resolve_identifier(declaration.source or "", index)
    if source_path is None:
        _log.warning("Advice source module not found: %s (advice %s on %s)", declaration.source, declaration.name, target)
        RESOLUTION_MISSES_TOTAL.labels(kind="source").inc()
        ADVICE_SKIPPED_TOTAL.labels(reason="source_not_found").inc()
        return None

    source_module = _load(session, source_path, "advice", declaration.source or "")
    if source_module is None:
        ADVICE_SKIPPED_TOTAL.labels(reason="source_load_failed").inc()
        return None

    target_exports = target_module.export_names
    applied = AppliedAdvice(
        name=declaration.name,
        source=declaration.source or "",
        path=source_path,
        module=declaration.module,
    )

    for export_name, handler in source_module.exports.items():
        classified = classify_export(export_name)
        if classified is None:
            continue
        kind, method = classified

        resolved = match_target_method(method, target_exports)
        if resolved is None:
            raise ExportMismatch(
                f"Advice {declaration.name} ({declaration.source}) exports '{export_name}' "
                f"but target {target} does not export '{method}'"
            )

        if not is_interceptable(target_module.exports[resolved]):
            _log.warning(
                "Advice %s (%s) exports '%s' but '%s' exported by %s is not a function; skipped",
                declaration.name, declaration.source, export_name, resolved, target,
            )
            ADVICE_SKIPPED_TOTAL.labels(reason="target_not_callable").inc()
            continue
        if not callable(handler):
            _log.warning(
                "Advice %s (%s) export '%s' is not a function; skipped",
                declaration.name, declaration.source, export_name,
            )
            ADVICE_SKIPPED_TOTAL.labels(reason="handler_not_callable").inc()
            continue

        registry.add_advice(f"{target}::{resolved}", declaration.name, kind, handler, declaration.sort_order)
        ADVICE_REGISTERED_TOTAL.labels(kind=kind).inc()
        applied.methods.append(
            AdviceMethod(export_name=export_name, kind=kind, target_method=resolved, sort_order=declaration.sort_order)
        )

    return applied if applied.methods else None


async def build_interceptors(session: "BuildSession", theme_name: str) -> Dict[str, InterceptorArtifact]:
    """
    Register every declared advice of ``theme_name`` and synthesize one
    interceptor module per advised target.

    Missing target or advice files are skipped with a warning. An advice that
    names a method its target does not export raises ExportMismatch and fails
    the whole build for the theme.

    Advice goes into a registry private to the theme, published through
    ``session.registry_for`` once the build succeeds.
    """
    return await session.once("interceptors", theme_name, lambda: _build(session, theme_name))


async def _build(session: "BuildSession", theme_name: str) -> Dict[str, InterceptorArtifact]:
    declared = await collect_declared_advice(session, theme_name)
    index = await _load_index(session, theme_name)
    # committed to the session only once the whole theme built
    registry = InterceptionRegistry()

    artifacts: Dict[str, InterceptorArtifact] = {}
    for target, declarations in declared.items():
        target_path = resolve_identifier(target, index)
        if target_path is None:
            _log.warning("Target module not found for identifier: %s", target)
            RESOLUTION_MISSES_TOTAL.labels(kind="target").inc()
            continue

        target_module = _load(session, target_path, "target", target)
        if target_module is None:
            continue

        applied_advice: List[AppliedAdvice] = []
        intercepted: set[str] = set()
        for declaration in declarations:
            applied = _apply_declaration(session, registry, target, target_module, declaration, index)
            if applied is None:
                continue
            applied_advice.append(applied)
            intercepted.update(m.target_method for m in applied.methods)

        if not intercepted:
            continue

        export_names = target_module.export_names
        wrapper = registry.wrap(dict(target_module.exports), target)
        artifacts[target] = InterceptorArtifact(
            target=target,
            wrapper=wrapper,
            target_path=target_path,
            raw_module=target_module.module,
            advice=applied_advice,
            source=render_interceptor_source(target, target_path, applied_advice, export_names),
            export_names=export_names,
        )
        _log.info("Intercepted %s (%s) methods=%s", target, target_path, sorted(intercepted))

    session.store("registry", theme_name, registry)
    return artifacts
