"""Path helpers for resource and output locations."""

from __future__ import annotations
from pathlib import Path

from ..packing.constants import INPUT_SUFFIX, OUTPUT_SUFFIX
from ..packing.errors import InputExtensionError

__all__ = ["resource_path", "output_path_for"]


def resource_path(base_dir: Path, uri: str) -> Path:
    """Resolve a scene-relative resource URI against the scene directory.

    A rooted URI (``/tex.png``) is still nested under ``base_dir``.
    """
    rel = Path(uri)
    if rel.anchor:
        rel = rel.relative_to(rel.anchor)
    return Path(base_dir) / rel


def output_path_for(input_path: str | Path) -> Path:
    p = Path(input_path)
    if p.suffix != INPUT_SUFFIX:
        raise InputExtensionError(
            f"File specified does not have the {INPUT_SUFFIX} extension.",
            {"path": str(p)},
        )
    return p.with_suffix(OUTPUT_SUFFIX)
