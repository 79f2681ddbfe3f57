"""Binary glTF container emission.

Layout (all integers little-endian except the magic)::

    0   u32 magic 'glTF' (big-endian)
    4   u32 container version (1)
    8   u32 total file length
    12  u32 padded scene length
    16  u32 scene format (0 = JSON)
    20  scene JSON, right-padded with spaces to a multiple of 4
    ..  body blocks, each at 20 + padded_scene_length + block.offset

The whole file is assembled in memory; nothing touches the filesystem until
:func:`write_container` is handed the finished bytes.
"""

from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
import struct

from ..logging import get_logger
from ..reporting import get_reporter, task
from ..scene.models import SceneDocument
from ..utils.io import atomic_write_bytes
from .body import BodyAccumulator
from .constants import (
    BODY_BUFFER_URI,
    BUFFER_NAME,
    CONTAINER_VERSION,
    HEADER_SIZE,
    MAGIC,
    SCENE_ALIGNMENT,
    SCENE_FORMAT_JSON,
    SCENE_PADDING_BYTE,
    UINT32_MAX,
)
from .errors import ContainerFormatError

__all__ = [
    "ContainerLayout",
    "padded_length",
    "compute_layout",
    "pack_header",
    "emit_container",
    "write_container",
]

_MAGIC_STRUCT = struct.Struct(">I")
_FIELDS_STRUCT = struct.Struct("<IIII")


@dataclass(slots=True, frozen=True)
class ContainerLayout:
    scene_length: int
    padded_scene_length: int
    body_offset: int
    body_length: int
    file_length: int

    @property
    def padding(self) -> int:
        return self.padded_scene_length - self.scene_length


def padded_length(length: int, alignment: int = SCENE_ALIGNMENT) -> int:
    return (length + alignment - 1) & ~(alignment - 1)


def compute_layout(scene_length: int, body_length: int) -> ContainerLayout:
    padded = padded_length(scene_length)
    body_offset = HEADER_SIZE + padded
    file_length = body_offset + body_length
    if file_length > UINT32_MAX:
        raise ContainerFormatError(
            f"container too large for 32-bit length fields: {file_length}",
            {"file_length": file_length},
        )
    return ContainerLayout(
        scene_length=scene_length,
        padded_scene_length=padded,
        body_offset=body_offset,
        body_length=body_length,
        file_length=file_length,
    )


def pack_header(layout: ContainerLayout) -> bytes:
    header = _MAGIC_STRUCT.pack(MAGIC) + _FIELDS_STRUCT.pack(
        CONTAINER_VERSION,
        layout.file_length,
        layout.padded_scene_length,
        SCENE_FORMAT_JSON,
    )
    if len(header) != HEADER_SIZE:  # pragma: no cover - struct sizes are fixed
        raise RuntimeError("Container header size mismatch")
    return header


def emit_container(
    scene: SceneDocument,
    body: BodyAccumulator,
    buffer_name: str = BUFFER_NAME,
) -> bytes:
    """Collapse ``buffers`` to the unified body buffer and build the file."""
    logger = get_logger()
    with task("emit.container", "Assemble container"):
        scene.buffers = {
            buffer_name: {"uri": BODY_BUFFER_URI, "byteLength": body.length}
        }
        scene_bytes = scene.to_json_bytes()
        layout = compute_layout(len(scene_bytes), body.length)

        out = bytearray(layout.file_length)
        out[0:HEADER_SIZE] = pack_header(layout)
        scene_end = HEADER_SIZE + layout.scene_length
        out[HEADER_SIZE:scene_end] = scene_bytes
        out[scene_end : layout.body_offset] = SCENE_PADDING_BYTE * layout.padding
        body.write_into(out, layout.body_offset)

    logger.debug(
        "layout: scene=%d padded=%d body_offset=%d body=%d file=%d",
        layout.scene_length,
        layout.padded_scene_length,
        layout.body_offset,
        layout.body_length,
        layout.file_length,
    )
    get_reporter().status(
        "Body summary: "
        + f"blocks={len(body)} body_bytes={body.length} "
        + f"scene_bytes={layout.scene_length} padding={layout.padding}"
    )
    return bytes(out)


def write_container(data: bytes, output_path: Path) -> int:
    with task("write.container", f"Write {output_path.name}", bytes=len(data)):
        written = atomic_write_bytes(output_path, data)
    get_reporter().status(
        f"Write summary: file={output_path.name} bytes={written}"
    )
    return written
