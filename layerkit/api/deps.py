from __future__ import annotations

from fastapi import HTTPException, Request

from layerkit.core.catalog import ThemeDefinition
from layerkit.core.session import BuildSession


def get_session(request: Request) -> BuildSession:
    """
    One BuildSession per application, created on first use from
    LAYERKIT_CATALOG_FILE. Tests assign ``app.state.session`` directly.
    """
    session = getattr(request.app.state, "session", None)
    if session is None:
        session = BuildSession.from_settings()
        request.app.state.session = session
    return session


def require_theme(session: BuildSession, theme: str) -> ThemeDefinition:
    definition = session.catalog.get_theme(theme)
    if definition is None:
        raise HTTPException(status_code=404, detail=f"Unknown theme: {theme}")
    return definition
