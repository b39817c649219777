from __future__ import annotations

from prometheus_client import Counter, Histogram

RESOLUTION_MISSES_TOTAL = Counter(
    "layerkit_resolution_misses_total",
    "Identifiers that did not resolve to a component file",
    ["kind"],
)

ADVICE_REGISTERED_TOTAL = Counter(
    "layerkit_advice_registered_total",
    "Advice handlers registered into the interception table",
    ["kind"],
)

ADVICE_SKIPPED_TOTAL = Counter(
    "layerkit_advice_skipped_total",
    "Declared advice dropped during an interceptor build",
    ["reason"],
)

COMPONENT_INDEX_BUILD_SECONDS = Histogram(
    "layerkit_component_index_build_seconds",
    "Time spent scanning and merging a theme's component index",
)
