"""File IO helpers: bounded reads and all-or-nothing writes."""

from __future__ import annotations
import os
from pathlib import Path

from ..packing.constants import MAX_RESOURCE_SIZE
from ..packing.errors import IoError

__all__ = ["safe_read_file", "atomic_write_bytes"]


def safe_read_file(path: Path, max_size: int = MAX_RESOURCE_SIZE) -> bytes:
    try:
        size = path.stat().st_size
    except FileNotFoundError as exc:
        raise IoError(f"File not found: {path}", {"path": str(path)}) from exc
    except OSError as exc:
        raise IoError(f"Cannot stat {path}: {exc}", {"path": str(path)}) from exc
    if size > max_size:
        raise IoError(
            f"File too large: {size}>{max_size}",
            {"path": str(path), "size": size},
        )
    try:
        return path.read_bytes()
    except OSError as exc:
        raise IoError(f"Cannot read {path}: {exc}", {"path": str(path)}) from exc


def atomic_write_bytes(path: Path, data: bytes) -> int:
    """Write ``data`` to ``path`` through a sibling temp file.

    The destination either holds the complete payload or is left untouched.
    """
    tmp_path = path.with_name(path.name + ".tmp")
    try:
        with tmp_path.open("wb") as f:
            f.write(data)
        os.replace(tmp_path, path)
    except OSError as exc:
        tmp_path.unlink(missing_ok=True)
        raise IoError(f"Cannot write {path}: {exc}", {"path": str(path)}) from exc
    return len(data)
