from __future__ import annotations

from fastapi import FastAPI

from layerkit.api.endpoints import metrics_export
from layerkit.api.endpoints.themes import router as themes_router
from layerkit.api.middleware.error_shaping import SafeErrorMiddleware, layerkit_error_handler
from layerkit.api.middleware.request_context import RequestContextMiddleware
from layerkit.core.errors import LayerkitError

app = FastAPI(
    title="layerkit",
    version="0.1.0",
)

# Starlette reverses add_middleware order: the LAST call is the OUTERMOST wrapper.
#   SafeErrorMiddleware -> RequestContextMiddleware -> handler
app.add_middleware(RequestContextMiddleware)
app.add_middleware(SafeErrorMiddleware)

app.add_exception_handler(LayerkitError, layerkit_error_handler)

app.include_router(themes_router)
app.include_router(metrics_export.router)
