"""
Module: exporter.file_locking

Purpose:
    Cross-platform file locking for export runs that share output files
    (timing logs, export manifests). Uses portalocker so the same code
    locks on Mac, Windows and Linux.

Key Functions:
    - locked_file: Context manager for locked file access
    - locked_append_jsonl: Append one record to a JSONL manifest
    - locked_read_modify_write_json: Read-modify-write a JSON document

Dependencies:
    - portalocker: Cross-platform file locking

Used By:
    - exporter.timing: Timing log merging
    - scripts/export_gui.py: Export manifest
"""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Dict, Generator

import portalocker

logger = logging.getLogger(__name__)


@contextmanager
def locked_file(
    path: Path,
    mode: str = "r",
    lock_type: int = portalocker.LOCK_EX,
) -> Generator:
    """
    Open ``path`` and hold a lock on it for the duration of the block.

    Args:
        path: Path to file
        mode: File open mode
        lock_type: LOCK_EX for exclusive, LOCK_SH for shared

    Yields:
        Open file handle with lock held
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    if "r" in mode and not path.exists():
        path.touch()

    with open(path, mode, encoding="utf-8") as f:
        portalocker.lock(f, lock_type)
        try:
            yield f
        finally:
            portalocker.unlock(f)


def locked_append_jsonl(path: Path, record: Dict[str, Any]) -> None:
    """
    Append ``record`` as one JSON line under an exclusive lock.

    Example:
        >>> locked_append_jsonl(out_dir / "exports.jsonl", {"name": "menu", "nodes": 12})
    """
    with locked_file(path, "a", portalocker.LOCK_EX) as f:
        f.write(json.dumps(record, ensure_ascii=False) + "\n")
    logger.debug(f"Appended record to {path.name}")


def locked_read_modify_write_json(
    path: Path,
    modifier: Callable[[Dict[str, Any]], Dict[str, Any]],
    default: Callable[[], Dict[str, Any]] = dict,
) -> Dict[str, Any]:
    """
    Read JSON, apply ``modifier``, write the result back, all under one
    exclusive lock.

    Args:
        path: Path to JSON file
        modifier: Takes the existing data, returns the data to write
        default: Factory used when the file is missing or empty

    Returns:
        The data that was written
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    if not path.exists():
        path.write_text(json.dumps(default(), indent=2), encoding="utf-8")

    with open(path, "r+", encoding="utf-8") as f:
        portalocker.lock(f, portalocker.LOCK_EX)
        try:
            f.seek(0)
            content = f.read()
            existing = json.loads(content) if content.strip() else default()

            modified = modifier(existing)

            f.seek(0)
            f.truncate()
            json.dump(modified, f, indent=2, ensure_ascii=False)
            return modified
        finally:
            portalocker.unlock(f)
