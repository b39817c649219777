from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from pydantic import BaseModel, ValidationError

from layerkit.core.resolution import get_merged_module_config, get_theme_config

if TYPE_CHECKING:
    from layerkit.core.session import BuildSession

_log = logging.getLogger("layerkit.interceptors")

DEFAULT_SORT_ORDER = 10


class AdviceDeclaration(BaseModel):
    name: str
    target: str
    source: Optional[str] = None
    sort_order: int = DEFAULT_SORT_ORDER
    active: bool = True
    module: Optional[str] = None


def merge_declarations(entries: List[Dict[str, Any]]) -> Dict[str, List[AdviceDeclaration]]:
    """
    Group raw declarations by target and resolve same-name overrides.

    A later entry with an already-seen name is laid over the earlier one key
    by key, so a theme or module can retune sort_order or switch an advice off
    without restating it. The declaring module of the first entry is kept.
    """
    by_target: Dict[str, Dict[str, Dict[str, Any]]] = {}
    for entry in entries:
        name, target = entry.get("name"), entry.get("target")
        if not name or not target:
            continue
        named = by_target.setdefault(target, {})
        if name in named:
            existing = named[name]
            named[name] = {**existing, **entry, "module": existing.get("module") or entry.get("module")}
        else:
            named[name] = dict(entry)

    result: Dict[str, List[AdviceDeclaration]] = {}
    for target, named in by_target.items():
        declarations: List[AdviceDeclaration] = []
        for raw in named.values():
            if raw.get("active") is False:
                continue
            if raw.get("sort_order") is None:
                raw = {**raw, "sort_order": DEFAULT_SORT_ORDER}
            try:
                declarations.append(AdviceDeclaration.model_validate(raw))
            except ValidationError as exc:
                _log.warning("Ignoring invalid advice declaration %r for %s: %s", raw.get("name"), target, exc)
        declarations.sort(key=lambda d: d.sort_order)
        if declarations:
            result[target] = declarations
    return result


async def collect_declared_advice(session: "BuildSession", theme_name: str) -> Dict[str, List[AdviceDeclaration]]:
    """Active advice declarations of every enabled module, per target, in sort order."""
    return await session.once("declared_advice", theme_name, lambda: _collect(session, theme_name))


async def _collect(session: "BuildSession", theme_name: str) -> Dict[str, List[AdviceDeclaration]]:
    theme_config = await get_theme_config(session, theme_name)
    modules_config = await get_merged_module_config(session, theme_name, theme_config) or {}

    entries = modules_config.get("interceptors") or []
    if not isinstance(entries, list):
        _log.warning("Ignoring interceptors of theme %r: expected a list, got %s", theme_name, type(entries).__name__)
        return {}
    return merge_declarations([e for e in entries if isinstance(e, dict)])
