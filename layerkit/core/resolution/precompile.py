from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING

from .module_resolver import get_component_index

if TYPE_CHECKING:
    from layerkit.core.session import BuildSession

_log = logging.getLogger("layerkit.modules")


def _write(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


async def write_component_index_artifact(session: "BuildSession", theme_name: str) -> Path:
    """Serialize the theme's component index where get_component_index_cached reads it."""
    index = await get_component_index(session, theme_name)
    path = session.settings.index_artifact_path(theme_name)
    _write(path, json.dumps(index, indent=2, sort_keys=True))
    _log.info("Wrote component index for theme %r (%d entries) to %s", theme_name, len(index), path)
    return path
