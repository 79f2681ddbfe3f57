"""High-level API for glbpack.

``build_glb`` runs the whole conversion as an ordered pipeline: load the
scene, rewrite references while filling the body, assemble the container in
memory, then write it in one step. Any failure before the write leaves the
filesystem untouched.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, FrozenSet, Iterable, List, Optional

from .logging import get_logger, section
from .reporting import get_reporter
from .scene import load_scene
from .packing.body import BodyAccumulator
from .packing.constants import BUFFER_NAME, COMPAT_BUFFER_NAME, MAX_RESOURCE_SIZE
from .packing.emitter import emit_container, write_container
from .packing.inspector import (
    inspect_glb as _inspect_glb_impl,
    parse_header,
    validate_glb as _validate_glb_impl,
)
from .packing.rewriter import RewriteOptions, rewrite_references
from .utils.paths import output_path_for

__all__ = [
    "EMBED_CHOICES",
    "EmbedOptions",
    "BuildOptions",
    "BuildResult",
    "unified_buffer_name",
    "output_path_for",
    "build_glb",
    "inspect_glb",
    "validate_glb",
]

EMBED_CHOICES = ("textures", "shaders")


@dataclass(slots=True, frozen=True)
class EmbedOptions:
    """Resource categories to embed in the body.

    Images are embedded whatever ``textures`` says.
    """

    textures: bool = False
    shaders: bool = False

    @classmethod
    def all(cls) -> "EmbedOptions":
        return cls(textures=True, shaders=True)

    @classmethod
    def from_values(cls, values: bool | Iterable[str] | None) -> "EmbedOptions":
        """Build from a CLI value: None, True (all) or a subset of names.

        An empty list means the flag was given bare and selects everything.
        """
        if values is None or values is False:
            return cls()
        if values is True:
            return cls.all()
        selected: FrozenSet[str] = frozenset(values)
        if not selected:
            return cls.all()
        unknown = selected - set(EMBED_CHOICES)
        if unknown:
            raise ValueError(
                f"Unknown embed type(s): {', '.join(sorted(unknown))}; "
                f"expected {', '.join(EMBED_CHOICES)}"
            )
        return cls(
            textures="textures" in selected, shaders="shaders" in selected
        )


@dataclass(slots=True)
class BuildOptions:
    input_path: Path
    # Derived from input_path (.gltf -> .glb) when omitted
    output_path: Optional[Path] = None
    embed: EmbedOptions = field(default_factory=EmbedOptions)
    # Legacy consumers expect the body buffer under its extension name
    compat_mode: bool = False
    use_builtin_shaders: bool = False
    # Concurrent resource reads; 1 keeps every fetch on the calling thread
    workers: int = 1
    max_resource_size: int = MAX_RESOURCE_SIZE


@dataclass(slots=True)
class BuildResult:
    output_file: Path
    bytes_written: int
    padded_scene_length: int
    body_length: int
    counts: Dict[str, int] = field(default_factory=dict)


def unified_buffer_name(compat_mode: bool) -> str:
    return COMPAT_BUFFER_NAME if compat_mode else BUFFER_NAME


def build_glb(options: BuildOptions) -> BuildResult:
    logger = get_logger()
    rep = get_reporter()
    input_path = Path(options.input_path)
    # Checked before anything is read so a bad suffix fails fast.
    derived_output = output_path_for(input_path)
    output_path = (
        Path(options.output_path) if options.output_path else derived_output
    )
    buffer_name = unified_buffer_name(options.compat_mode)

    with section(f"Pack {input_path.name}"):
        scene = load_scene(input_path)
        rep.status(
            "Scene summary: "
            + f"buffers={len(scene.buffers)} bufferViews={len(scene.buffer_views)} "
            + f"shaders={len(scene.shaders)} images={len(scene.images)}"
        )
        if options.embed.textures:
            logger.debug("texture embedding requested; images are always embedded")
        body = BodyAccumulator()
        counts = rewrite_references(
            scene,
            body,
            input_path.parent,
            RewriteOptions(
                buffer_name=buffer_name,
                embed_shaders=options.embed.shaders,
                use_builtin_shaders=options.use_builtin_shaders,
                workers=options.workers,
                max_resource_size=options.max_resource_size,
            ),
        )
        data = emit_container(scene, body, buffer_name)
        bytes_written = write_container(data, output_path)

    header = parse_header(data)
    logger.info(
        "Built GLB: %s (%d bytes, scene=%d body=%d)",
        output_path.name,
        bytes_written,
        header["scene_length"],
        body.length,
    )
    rep.status(
        "Build summary: "
        + f"file={output_path.name} bytes={bytes_written} buffers={counts.buffers} "
        + f"bufferViews={counts.buffer_views} shaders={counts.shaders} images={counts.images}"
    )
    return BuildResult(
        output_file=output_path,
        bytes_written=bytes_written,
        padded_scene_length=header["scene_length"],
        body_length=body.length,
        counts={
            "buffers": counts.buffers,
            "bufferViews": counts.buffer_views,
            "shaders": counts.shaders,
            "images": counts.images,
        },
    )


def inspect_glb(path: str | Path) -> Dict[str, Any]:
    return _inspect_glb_impl(path)


def validate_glb(path: str | Path) -> List[str]:
    return _validate_glb_impl(_inspect_glb_impl(path))
