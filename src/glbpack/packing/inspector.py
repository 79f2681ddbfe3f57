"""Binary glTF container inspection.

Public functions:
- parse_header(data) -> dict
- inspect_glb(path) -> dict
- validate_glb(info) -> list[str]
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List
import json
import struct

from ..utils.io import safe_read_file
from .constants import (
    CONTAINER_VERSION,
    EXTENSION_NAME,
    HEADER_SIZE,
    MAGIC,
    SCENE_ALIGNMENT,
    SCENE_FORMAT_JSON,
)
from .errors import ContainerFormatError

__all__ = [
    "parse_header",
    "parse_container",
    "inspect_glb",
    "validate_glb",
    "extract_view_bytes",
]


def parse_header(data: bytes) -> Dict[str, int]:
    if len(data) < HEADER_SIZE:
        raise ContainerFormatError(
            f"file too short for header: {len(data)}<{HEADER_SIZE}",
            {"size": len(data)},
        )
    (magic,) = struct.unpack_from(">I", data, 0)
    version, file_length, scene_length, scene_format = struct.unpack_from(
        "<IIII", data, 4
    )
    return {
        "magic": magic,
        "version": version,
        "file_length": file_length,
        "scene_length": scene_length,
        "scene_format": scene_format,
    }


def parse_container(data: bytes) -> Dict[str, Any]:
    header = parse_header(data)
    scene_end = HEADER_SIZE + header["scene_length"]
    if scene_end > len(data):
        raise ContainerFormatError(
            f"scene chunk runs past end of file: {scene_end}>{len(data)}",
            {"scene_end": scene_end, "size": len(data)},
        )
    try:
        scene = json.loads(data[HEADER_SIZE:scene_end].decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ContainerFormatError(f"scene chunk is not JSON: {exc}") from exc
    return {
        "header": header,
        "scene": scene,
        "size": len(data),
        "body_offset": scene_end,
        "body_length": len(data) - scene_end,
        "data": data,
    }


def inspect_glb(path: str | Path) -> Dict[str, Any]:
    return parse_container(safe_read_file(Path(path)))


def extract_view_bytes(info: Dict[str, Any], view_id: str) -> bytes:
    view = info["scene"]["bufferViews"][view_id]
    start = info["body_offset"] + view.get("byteOffset", 0)
    return info["data"][start : start + view["byteLength"]]


def _is_count(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def validate_glb(info: Dict[str, Any]) -> List[str]:
    """Return human readable problems; an empty list means the file is sound."""
    problems: List[str] = []
    header = info["header"]
    if header["magic"] != MAGIC:
        problems.append(f"bad magic 0x{header['magic']:08x}")
    if header["version"] != CONTAINER_VERSION:
        problems.append(f"unsupported version {header['version']}")
    if header["scene_format"] != SCENE_FORMAT_JSON:
        problems.append(f"unsupported scene format {header['scene_format']}")
    if header["file_length"] != info["size"]:
        problems.append(
            f"file length field {header['file_length']} != actual {info['size']}"
        )
    if header["scene_length"] % SCENE_ALIGNMENT:
        problems.append(
            f"scene length {header['scene_length']} not a multiple of {SCENE_ALIGNMENT}"
        )
    scene = info["scene"]
    if not isinstance(scene, dict):
        problems.append(f"scene root is {type(scene).__name__}, not an object")
        return problems
    buffers = scene.get("buffers", {})
    views = scene.get("bufferViews", {})
    for key, value in (("buffers", buffers), ("bufferViews", views)):
        if not isinstance(value, dict):
            problems.append(f"scene '{key}' is {type(value).__name__}, not an object")
    if not (isinstance(buffers, dict) and isinstance(views, dict)):
        return problems
    if len(buffers) != 1:
        problems.append(f"expected one body buffer, found {len(buffers)}")
        return problems
    ((buffer_name, buffer),) = buffers.items()
    byte_length = buffer.get("byteLength") if isinstance(buffer, dict) else None
    if byte_length != info["body_length"]:
        problems.append(
            f"body buffer byteLength {byte_length} != body size {info['body_length']}"
        )
    for view_id, view in views.items():
        if not isinstance(view, dict):
            problems.append(f"bufferView {view_id} is not an object")
            continue
        if view.get("buffer") != buffer_name:
            problems.append(
                f"bufferView {view_id} references {view.get('buffer')!r}"
            )
            continue
        offset = view.get("byteOffset", 0)
        length = view.get("byteLength", 0)
        if not (_is_count(offset) and _is_count(length)):
            problems.append(
                f"bufferView {view_id} has non-integer range {offset!r}+{length!r}"
            )
            continue
        end = offset + length
        if end > info["body_length"]:
            problems.append(
                f"bufferView {view_id} ends at {end} past body size {info['body_length']}"
            )
    used = scene.get("extensionsUsed")
    if not isinstance(used, list) or EXTENSION_NAME not in used:
        problems.append(f"{EXTENSION_NAME} missing from extensionsUsed")
    return problems
