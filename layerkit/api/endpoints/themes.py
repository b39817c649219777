from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import PlainTextResponse

from layerkit.api.deps import get_session, require_theme
from layerkit.core.interception.builder import build_interceptors
from layerkit.core.resolution import (
    get_component_index,
    get_theme_config,
    require_identifier,
)
from layerkit.core.session import BuildSession

router = APIRouter(prefix="/api/v1", tags=["themes"])


@router.get("/themes")
def list_themes(session: BuildSession = Depends(get_session)) -> Dict[str, Any]:
    themes = session.catalog.themes
    return {
        "count": len(themes),
        "themes": [
            {"name": t.name, "parent": t.parent, "chain": session.catalog.theme_chain(t.name)}
            for t in themes.values()
        ],
    }


@router.get("/themes/config")
async def theme_config(theme: str = Query(...), session: BuildSession = Depends(get_session)) -> Dict[str, Any]:
    require_theme(session, theme)
    config = await get_theme_config(session, theme)
    if config is None:
        raise HTTPException(status_code=404, detail=f"Theme {theme} has no readable configuration")
    return {"theme": theme, "config": config}


@router.get("/components")
async def components(theme: str = Query(...), session: BuildSession = Depends(get_session)) -> Dict[str, Any]:
    require_theme(session, theme)
    index = await get_component_index(session, theme)
    return {"theme": theme, "count": len(index), "components": dict(sorted(index.items()))}


@router.get("/resolve")
async def resolve(
    theme: str = Query(...),
    identifier: str = Query(..., description="Module::relative/path[.ext]"),
    session: BuildSession = Depends(get_session),
) -> Dict[str, Any]:
    require_theme(session, theme)
    index = await get_component_index(session, theme)
    return {"theme": theme, "identifier": identifier, "path": require_identifier(identifier, index)}


@router.get("/interceptors")
async def interceptors(theme: str = Query(...), session: BuildSession = Depends(get_session)) -> Dict[str, Any]:
    require_theme(session, theme)
    artifacts = await build_interceptors(session, theme)
    return {
        "theme": theme,
        "count": len(artifacts),
        "targets": [
            {
                "target": a.target,
                "target_path": a.target_path,
                "exports": a.export_names,
                "advice": [
                    {
                        "name": applied.name,
                        "source": applied.source,
                        "path": applied.path,
                        "module": applied.module,
                        "methods": [asdict(m) for m in applied.methods],
                    }
                    for applied in a.advice
                ],
            }
            for a in artifacts.values()
        ],
    }


@router.get("/interceptors/source", response_class=PlainTextResponse)
async def interceptor_source(
    theme: str = Query(...),
    target: str = Query(...),
    session: BuildSession = Depends(get_session),
) -> PlainTextResponse:
    require_theme(session, theme)
    artifacts = await build_interceptors(session, theme)
    artifact = artifacts.get(target)
    if artifact is None:
        raise HTTPException(status_code=404, detail=f"No interceptor generated for {target}")
    return PlainTextResponse(artifact.source, media_type="text/x-python")
