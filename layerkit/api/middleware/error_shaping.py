from __future__ import annotations

import logging
import traceback
from typing import Callable, Dict, Type

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse, Response

from layerkit.core.errors import (
    CatalogLoadError,
    DuplicateComponentKey,
    ExportMismatch,
    IndexArtifactMissing,
    InvalidAdviceKind,
    LayerkitError,
    ResolutionMiss,
)

log = logging.getLogger("layerkit.errors")

# Most specific first; anything else deriving from LayerkitError is a 500.
STATUS_BY_ERROR: Dict[Type[LayerkitError], int] = {
    ResolutionMiss: 404,
    IndexArtifactMissing: 404,
    ExportMismatch: 422,
    InvalidAdviceKind: 422,
    DuplicateComponentKey: 409,
    CatalogLoadError: 503,
}


def _request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None) or request.headers.get("x-request-id")


def status_for(exc: LayerkitError) -> int:
    for error_type, status in STATUS_BY_ERROR.items():
        if isinstance(exc, error_type):
            return status
    return 500


async def layerkit_error_handler(request: Request, exc: LayerkitError) -> JSONResponse:
    """
    Build and resolution errors name the offending advice, module or file;
    that message is the useful part for a caller, so it is returned as-is.
    """
    status = status_for(exc)
    rid = _request_id(request)
    log.warning("%s on %s rid=%s: %s", type(exc).__name__, request.url.path, rid, exc)
    payload = {"detail": str(exc), "error": type(exc).__name__}
    if rid:
        payload["request_id"] = rid
    return JSONResponse(status_code=status, content=payload)


class SafeErrorMiddleware(BaseHTTPMiddleware):
    """
    - Never return stack traces to clients
    - Preserve request_id if present
    - Log traceback server-side
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            rid = _request_id(request)
            log.error(
                "Unhandled error: %s rid=%s path=%s\n%s",
                str(e),
                rid,
                request.url.path,
                traceback.format_exc(),
            )
            payload = {"detail": "Internal Server Error"}
            if rid:
                payload["request_id"] = rid
            return JSONResponse(status_code=500, content=payload)
