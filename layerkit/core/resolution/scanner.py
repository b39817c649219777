from __future__ import annotations

import asyncio
import os
from pathlib import Path
from typing import Dict, Iterable, List, Tuple

from layerkit.core.catalog import FolderSpec
from layerkit.core.errors import DuplicateComponentKey

ComponentIndex = Dict[str, str]


def _scan_folder(module_name: str, folder_path: Path, folder: FolderSpec) -> ComponentIndex:
    """
    Walk one component folder.

    Keys are "<module>/<folder>/<relative path without extension>" and values
    absolute paths. Two files collapsing to the same key (Button.py and
    Button.pyw) are rejected.
    """
    found: ComponentIndex = {}
    if not folder_path.is_dir():
        return found

    extensions = tuple(folder.ext)
    for dirpath, dirnames, filenames in os.walk(folder_path):
        dirnames.sort()
        for filename in sorted(filenames):
            if not filename.endswith(extensions):
                continue
            full = Path(dirpath) / filename
            rel = full.relative_to(folder_path).with_suffix("").as_posix()
            key = f"{module_name}/{folder.src}/{rel}"
            if key in found:
                raise DuplicateComponentKey(
                    f"Error while processing component folders of module \"{module_name}\": "
                    f"duplicate file names detected: the file \"{full}\" collides with \"{found[key]}\""
                )
            found[key] = str(full.resolve())
    return found


def scan_module_folders(module_name: str, root: Path, folders: Iterable[FolderSpec]) -> ComponentIndex:
    result: ComponentIndex = {}
    for folder in folders:
        result.update(_scan_folder(module_name, Path(root) / folder.src, folder))
    return result


async def scan_many(jobs: List[Tuple[str, Path]], folders: List[FolderSpec]) -> List[ComponentIndex]:
    """Scan independent (module, root) pairs concurrently; results keep job order."""
    return list(
        await asyncio.gather(
            *(asyncio.to_thread(scan_module_folders, name, root, folders) for name, root in jobs)
        )
    )
