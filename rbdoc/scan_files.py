"""Discovering Ruby files under a directory and scanning them into one store."""

from __future__ import annotations

import fnmatch
import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any

from rbdoc.scan_file import scan_file
from rbdoc.store import Store

logger = logging.getLogger(__name__)


def discover_files(root: Path, patterns: list[str], exclude: list[str]) -> list[Path]:
    """Return the files under ``root`` matching ``patterns``, minus ``exclude``.

    Exclusions are glob patterns matched against the path relative to ``root``.
    """
    if root.is_file():
        return [root]
    found: dict[Path, None] = {}
    for pattern in patterns:
        for path in root.rglob(pattern):
            if not path.is_file():
                continue
            relative = path.relative_to(root).as_posix()
            if any(fnmatch.fnmatch(relative, skip) for skip in exclude):
                logger.debug("Excluded %s", relative)
                continue
            found[path] = None
    return sorted(found, key=lambda p: p.as_posix())


def _file_name(path: Path, root: Path) -> str:
    if root.is_file():
        return path.name
    return path.relative_to(root).as_posix()


def scan_files(root: Path, config: dict[str, Any], store: Store | None = None) -> Store:
    """Scan every Ruby file under ``root`` and return the populated store."""
    scan = config["scan"]
    store = store if store is not None else Store()
    paths = discover_files(root, scan["file_patterns"], scan["exclude"])
    logger.info("Found %d Ruby file(s) under %s", len(paths), root)

    def scan_one(path: Path) -> None:
        source = path.read_text(encoding=scan["encoding"], errors="replace")
        scan_file(store, _file_name(path, root), source, config)

    workers = max(1, int(scan.get("workers", 1)))
    if workers == 1:
        for path in paths:
            scan_one(path)
    else:
        with ThreadPoolExecutor(max_workers=workers) as executor:
            list(executor.map(scan_one, paths))
    return store
