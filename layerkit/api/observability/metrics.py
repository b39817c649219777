from __future__ import annotations

import re

from prometheus_client import Counter, Histogram


def normalize_path(path: str) -> str:
    """Reduce high-cardinality paths for metrics labels."""
    p = path or "/"
    p = re.sub(r"/[0-9a-fA-F]{16,}", "/:hex", p)
    p = re.sub(r"/\d+", "/:id", p)
    return p


HTTP_REQUESTS_TOTAL = Counter(
    "layerkit_http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"],
)

HTTP_REQUEST_DURATION_SECONDS = Histogram(
    "layerkit_http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "path"],
)
