from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Union

from pydantic import ValidationError

from layerkit.core.errors import CatalogLoadError

from .models import FrontendCatalog

_log = logging.getLogger("layerkit.catalog")


def catalog_from_dict(data: Dict[str, Any]) -> FrontendCatalog:
    try:
        return FrontendCatalog.model_validate(data)
    except ValidationError as exc:
        raise CatalogLoadError(f"Invalid catalog: {exc}") from exc


def load_catalog(path: Union[str, Path]) -> FrontendCatalog:
    """
    Read the catalog JSON document.

    Any read, parse or validation failure raises CatalogLoadError; a build
    cannot proceed without a catalog.
    """
    p = Path(path)
    try:
        raw = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        _log.error("Error reading or parsing catalog file at %s: %s", p, exc)
        raise CatalogLoadError(f"Cannot load catalog {p}: {exc}") from exc

    if not isinstance(raw, dict):
        raise CatalogLoadError(f"Catalog {p} must be a JSON object, got {type(raw).__name__}")
    return catalog_from_dict(raw)
