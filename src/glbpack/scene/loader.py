"""Scene loading for glbpack."""

from __future__ import annotations
from pathlib import Path
from typing import Any
import json

from ..packing.errors import IoError, JsonError
from .models import SceneDocument


def parse_scene(text: str) -> SceneDocument:
    try:
        data: Any = json.loads(text)
    except json.JSONDecodeError as exc:
        raise JsonError(
            f"malformed scene JSON: {exc.msg} (line {exc.lineno} column {exc.colno})",
            {"line": exc.lineno, "column": exc.colno},
        ) from exc
    if not isinstance(data, dict):
        raise JsonError("Root of the scene must be an object")
    return SceneDocument(data)


def load_scene(path: str | Path) -> SceneDocument:
    p = Path(path)
    try:
        text = p.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise IoError(f"File not found: {p}", {"path": str(p)}) from exc
    except UnicodeDecodeError as exc:
        raise JsonError(f"scene is not UTF-8 text: {p}", {"path": str(p)}) from exc
    except OSError as exc:
        raise IoError(f"Cannot read {p}: {exc}", {"path": str(p)}) from exc
    return parse_scene(text)


__all__ = ["load_scene", "parse_scene"]
