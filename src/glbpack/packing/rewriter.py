"""Reference rewriting: fold external resources into the unified body buffer.

The rewriter runs three passes over a :class:`SceneDocument`, each finishing
before the next starts:

1. buffers: validate, fetch and append every buffer; the offset each one got
   is parked in the buffer's ``byteOffset`` field;
2. bufferViews: point every view at the unified buffer and make its
   ``byteOffset`` absolute within the body;
3. embedding: shaders (when enabled) and images are fetched, appended and
   exposed through a new bufferView referenced by a ``KHR_binary_glTF``
   extension object.

Body offsets are assigned in document order, so the same input always yields
the same layout.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..logging import get_logger
from ..reporting import get_reporter, task
from ..scene.models import Descriptor, SceneDocument
from ..shaders import KNOWN_SHADER_IDS, builtin_shader_source
from .body import BodyAccumulator, BodyBlock
from .constants import (
    BUFFER_NAME,
    EXTENSION_NAME,
    IMAGE_VIEW_PREFIX,
    MAX_RESOURCE_SIZE,
    PLACEHOLDER_IMAGE_MIME_TYPE,
    PLACEHOLDER_IMAGE_SIZE,
    SHADER_VIEW_PREFIX,
)
from .errors import DanglingBufferReference, JsonError, UnsupportedBufferType
from .fetcher import FetchJob, encode_data_uri, fetch_ordered

__all__ = [
    "RewriteOptions",
    "RewriteResult",
    "rewrite_references",
    "rewrite_buffers",
    "rewrite_buffer_views",
    "embed_shaders",
    "embed_images",
]

SUPPORTED_BUFFER_TYPE = "arraybuffer"


@dataclass(slots=True)
class RewriteOptions:
    buffer_name: str = BUFFER_NAME
    embed_shaders: bool = False
    use_builtin_shaders: bool = False
    workers: int = 1
    max_resource_size: int = MAX_RESOURCE_SIZE


@dataclass(slots=True)
class RewriteResult:
    buffers: int = 0
    buffer_views: int = 0
    shaders: int = 0
    images: int = 0


def _require_uri(kind: str, item_id: str, item: Descriptor) -> str:
    uri = item.get("uri")
    if not isinstance(uri, str):
        raise JsonError(
            f"{kind} '{item_id}' has no uri", {"section": kind, "id": item_id}
        )
    return uri


def _is_offset(value: Any) -> bool:
    # bool is an int subclass; JSON true/false is not an offset
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def _fetch_section(
    task_id: str,
    name: str,
    jobs: List[FetchJob],
    base_dir: Path,
    body: BodyAccumulator,
    options: RewriteOptions,
) -> List[BodyBlock]:
    rep = get_reporter()
    with task(task_id, name, total=len(jobs)):
        blocks = fetch_ordered(
            jobs,
            base_dir,
            body,
            workers=options.workers,
            max_size=options.max_resource_size,
            on_append=lambda job, _block: rep.advance(
                task_id, current_item=job.label
            ),
        )
    return blocks


def rewrite_buffers(
    scene: SceneDocument,
    body: BodyAccumulator,
    base_dir: Path,
    options: RewriteOptions,
) -> int:
    """Append every buffer to the body, recording its offset in ``byteOffset``."""
    buffers = scene.buffers
    # Reject unsupported buffers before any resource is read.
    for buffer_id, buffer in buffers.items():
        buffer_type = buffer.get("type")
        if buffer_type and buffer_type != SUPPORTED_BUFFER_TYPE:
            raise UnsupportedBufferType(
                f'buffer type "{buffer_type}" not supported: {buffer_id}',
                {"buffer": buffer_id, "type": buffer_type},
            )
    jobs = [
        FetchJob(buffer_id, _require_uri("buffers", buffer_id, buffer))
        for buffer_id, buffer in buffers.items()
    ]
    blocks = _fetch_section(
        "fetch.buffers", "Fetch buffers", jobs, base_dir, body, options
    )
    for job, block in zip(jobs, blocks):
        buffers[job.label]["byteOffset"] = block.offset
    return len(blocks)


def rewrite_buffer_views(scene: SceneDocument, buffer_name: str) -> int:
    """Retarget every bufferView at the unified buffer with absolute offsets."""
    buffers = scene.buffers
    views = scene.buffer_views
    with task("rewrite.bufferViews", "Rewrite bufferViews", total=len(views)):
        rep = get_reporter()
        for view_id, view in views.items():
            buffer_id = view.get("buffer")
            referenced: Optional[Descriptor] = (
                buffers.get(buffer_id) if isinstance(buffer_id, str) else None
            )
            if referenced is None:
                raise DanglingBufferReference(
                    f"buffer ID reference not found: {buffer_id}",
                    {"bufferView": view_id, "buffer": buffer_id},
                )
            view_offset = view.get("byteOffset", 0)
            if not _is_offset(view_offset):
                raise JsonError(
                    f"bufferView '{view_id}' byteOffset must be a non-negative "
                    f"integer, got {view_offset!r}",
                    {"bufferView": view_id, "byteOffset": view_offset},
                )
            view["buffer"] = buffer_name
            view["byteOffset"] = view_offset + referenced.get("byteOffset", 0)
            rep.advance("rewrite.bufferViews", current_item=view_id)
    return len(views)


def _attach_binary_extension(
    item: Descriptor, view_id: str, **extra: Any
) -> None:
    extensions = item.get("extensions")
    if not isinstance(extensions, dict):
        extensions = {}
        item["extensions"] = extensions
    extensions[EXTENSION_NAME] = {"bufferView": view_id, **extra}


def _embedded_view(buffer_name: str, block: BodyBlock) -> Dict[str, Any]:
    return {
        "buffer": buffer_name,
        "byteLength": block.length,
        "byteOffset": block.offset,
    }


def _shader_uri(shader_id: str, uri: str, use_builtin: bool) -> str:
    if not use_builtin:
        return uri
    logger = get_logger()
    if shader_id not in KNOWN_SHADER_IDS:
        logger.warning("ShaderId: %s is not well known", shader_id)
    source = builtin_shader_source(shader_id)
    if source is None:
        return uri
    logger.debug("overriding shader %s with built-in source", shader_id)
    return encode_data_uri(source.encode("utf-8"))


def embed_shaders(
    scene: SceneDocument,
    body: BodyAccumulator,
    base_dir: Path,
    options: RewriteOptions,
) -> int:
    shaders = scene.shaders
    if not shaders:
        return 0
    if options.use_builtin_shaders:
        get_logger().info("Overriding provided shaders with built-in sources")
    jobs = [
        FetchJob(
            shader_id,
            _shader_uri(
                shader_id,
                _require_uri("shaders", shader_id, shader),
                options.use_builtin_shaders,
            ),
        )
        for shader_id, shader in shaders.items()
    ]
    blocks = _fetch_section(
        "embed.shaders", "Embed shaders", jobs, base_dir, body, options
    )
    views = scene.buffer_views
    for job, block in zip(jobs, blocks):
        view_id = SHADER_VIEW_PREFIX + job.label
        shader = shaders[job.label]
        shader["uri"] = ""
        _attach_binary_extension(shader, view_id)
        views[view_id] = _embedded_view(options.buffer_name, block)
    return len(blocks)


def embed_images(
    scene: SceneDocument,
    body: BodyAccumulator,
    base_dir: Path,
    options: RewriteOptions,
) -> int:
    images = scene.images
    if not images:
        return 0
    jobs = [
        FetchJob(image_id, _require_uri("images", image_id, image))
        for image_id, image in images.items()
    ]
    blocks = _fetch_section(
        "embed.images", "Embed images", jobs, base_dir, body, options
    )
    views = scene.buffer_views
    for job, block in zip(jobs, blocks):
        view_id = IMAGE_VIEW_PREFIX + job.label
        image = images[job.label]
        image["uri"] = ""
        # TODO: read mimeType/width/height from the image header once an
        # image decoding dependency is accepted.
        _attach_binary_extension(
            image,
            view_id,
            mimeType=PLACEHOLDER_IMAGE_MIME_TYPE,
            height=PLACEHOLDER_IMAGE_SIZE,
            width=PLACEHOLDER_IMAGE_SIZE,
        )
        views[view_id] = _embedded_view(options.buffer_name, block)
    return len(blocks)


def rewrite_references(
    scene: SceneDocument,
    body: BodyAccumulator,
    base_dir: Path,
    options: RewriteOptions | None = None,
) -> RewriteResult:
    options = options or RewriteOptions()
    scene.mark_extension_used(EXTENSION_NAME)
    result = RewriteResult()
    result.buffers = rewrite_buffers(scene, body, base_dir, options)
    result.buffer_views = rewrite_buffer_views(scene, options.buffer_name)
    if options.embed_shaders:
        result.shaders = embed_shaders(scene, body, base_dir, options)
    result.images = embed_images(scene, body, base_dir, options)
    return result
