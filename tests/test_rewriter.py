"""Reference rewriting tests: buffer offsets, bufferViews and embedding."""

from __future__ import annotations

import base64
from pathlib import Path

import pytest

from glbpack.packing.body import BodyAccumulator
from glbpack.packing.errors import (
    DanglingBufferReference,
    JsonError,
    UnsupportedBufferType,
)
from glbpack.packing.rewriter import RewriteOptions, rewrite_references
from glbpack.scene.models import SceneDocument
from glbpack.shaders import FRAGMENT_SHADER, VERTEX_SHADER


def _b64(data: bytes) -> str:
    return "data:application/octet-stream;base64," + base64.b64encode(
        data
    ).decode("ascii")


def _two_buffer_scene(tmp_path: Path) -> SceneDocument:
    (tmp_path / "a.bin").write_bytes(bytes(range(10)))
    return SceneDocument(
        {
            "asset": {"version": "1.0"},
            "buffers": {
                "a": {"uri": "a.bin", "type": "arraybuffer"},
                "b": {"uri": _b64(b"ABCDEFG")},
            },
            "bufferViews": {
                "v_b": {"buffer": "b", "byteOffset": 2, "byteLength": 3},
                "v_a": {"buffer": "a", "byteOffset": 4, "byteLength": 6},
            },
        }
    )


def test_buffers_get_offsets_in_document_order(tmp_path: Path):
    scene = _two_buffer_scene(tmp_path)
    body = BodyAccumulator()
    result = rewrite_references(scene, body, tmp_path)
    assert result.buffers == 2
    assert scene.buffers["a"]["byteOffset"] == 0
    assert scene.buffers["b"]["byteOffset"] == 10
    assert body.length == 17


def test_buffer_views_become_absolute(tmp_path: Path):
    scene = _two_buffer_scene(tmp_path)
    body = BodyAccumulator()
    rewrite_references(scene, body, tmp_path)
    views = scene.buffer_views
    assert views["v_b"] == {"buffer": "binary_glTF", "byteOffset": 12, "byteLength": 3}
    assert views["v_a"]["byteOffset"] == 4
    blob = body.to_bytes()
    assert blob[12:15] == b"CDE"
    assert blob[4:10] == bytes(range(4, 10))


def test_custom_buffer_name_is_used(tmp_path: Path):
    scene = _two_buffer_scene(tmp_path)
    rewrite_references(
        scene,
        BodyAccumulator(),
        tmp_path,
        RewriteOptions(buffer_name="KHR_binary_glTF"),
    )
    assert {v["buffer"] for v in scene.buffer_views.values()} == {
        "KHR_binary_glTF"
    }


def test_missing_view_offset_counts_as_zero(tmp_path: Path):
    scene = SceneDocument(
        {
            "buffers": {"x": {"uri": _b64(b"12"),}, "y": {"uri": _b64(b"345")}},
            "bufferViews": {"v": {"buffer": "y", "byteLength": 3}},
        }
    )
    rewrite_references(scene, BodyAccumulator(), tmp_path)
    assert scene.buffer_views["v"]["byteOffset"] == 2


def test_dangling_buffer_reference(tmp_path: Path):
    scene = SceneDocument(
        {
            "buffers": {"b0": {"uri": _b64(b"x")}},
            "bufferViews": {"v0": {"buffer": "nope", "byteOffset": 0, "byteLength": 1}},
        }
    )
    with pytest.raises(DanglingBufferReference) as info:
        rewrite_references(scene, BodyAccumulator(), tmp_path)
    assert "nope" in str(info.value)
    assert info.value.context == {"bufferView": "v0", "buffer": "nope"}


def test_unsupported_buffer_type_checked_before_fetching(tmp_path: Path):
    scene = SceneDocument(
        {
            "buffers": {
                "missing": {"uri": "not-there.bin"},
                "t": {"uri": _b64(b"x"), "type": "text"},
            },
            "bufferViews": {},
        }
    )
    body = BodyAccumulator()
    with pytest.raises(UnsupportedBufferType):
        rewrite_references(scene, body, tmp_path)
    assert body.length == 0


def test_missing_buffers_section_is_a_json_error(tmp_path: Path):
    with pytest.raises(JsonError):
        rewrite_references(
            SceneDocument({"bufferViews": {}}), BodyAccumulator(), tmp_path
        )


def test_extension_marked_used_once(tmp_path: Path):
    scene = _two_buffer_scene(tmp_path)
    scene.data["extensionsUsed"] = ["KHR_materials_common"]
    rewrite_references(scene, BodyAccumulator(), tmp_path)
    assert scene.data["extensionsUsed"] == [
        "KHR_materials_common",
        "KHR_binary_glTF",
    ]
    scene2 = SceneDocument(
        {"buffers": {}, "bufferViews": {}, "extensionsUsed": ["KHR_binary_glTF"]}
    )
    rewrite_references(scene2, BodyAccumulator(), tmp_path)
    assert scene2.data["extensionsUsed"] == ["KHR_binary_glTF"]


def _scene_with_resources(tmp_path: Path) -> SceneDocument:
    (tmp_path / "tex.png").write_bytes(b"\x89PNG-not-really")
    (tmp_path / "s.glsl").write_bytes(b"void main() {}\n")
    return SceneDocument(
        {
            "buffers": {"b0": {"uri": _b64(b"0123")}},
            "bufferViews": {"v0": {"buffer": "b0", "byteOffset": 0, "byteLength": 4}},
            "shaders": {"s0": {"uri": "s.glsl", "type": 35632}},
            "images": {
                "img0": {
                    "uri": "tex.png",
                    "name": "diffuse",
                    "extensions": {"OTHER_ext": {"keep": True}},
                }
            },
        }
    )


def test_images_embedded_exactly_once(tmp_path: Path):
    scene = _scene_with_resources(tmp_path)
    body = BodyAccumulator()
    result = rewrite_references(scene, body, tmp_path)
    assert result.images == 1
    image_len = len(b"\x89PNG-not-really")
    assert body.length == 4 + image_len
    image = scene.images["img0"]
    assert image["uri"] == ""
    assert image["name"] == "diffuse"
    assert image["extensions"]["OTHER_ext"] == {"keep": True}
    assert image["extensions"]["KHR_binary_glTF"] == {
        "bufferView": "binary_images_img0",
        "mimeType": "image/i-dont-know",
        "height": 9999,
        "width": 9999,
    }
    assert scene.buffer_views["binary_images_img0"] == {
        "buffer": "binary_glTF",
        "byteLength": image_len,
        "byteOffset": 4,
    }


def test_shaders_left_alone_without_embedding(tmp_path: Path):
    scene = _scene_with_resources(tmp_path)
    result = rewrite_references(scene, BodyAccumulator(), tmp_path)
    assert result.shaders == 0
    assert scene.shaders["s0"]["uri"] == "s.glsl"
    assert "binary_shader_s0" not in scene.buffer_views


def test_shaders_embedded_before_images(tmp_path: Path):
    scene = _scene_with_resources(tmp_path)
    body = BodyAccumulator()
    rewrite_references(
        scene, body, tmp_path, RewriteOptions(embed_shaders=True)
    )
    shader = scene.shaders["s0"]
    assert shader["uri"] == ""
    assert shader["type"] == 35632
    assert shader["extensions"] == {
        "KHR_binary_glTF": {"bufferView": "binary_shader_s0"}
    }
    shader_view = scene.buffer_views["binary_shader_s0"]
    assert shader_view["byteOffset"] == 4
    assert shader_view["byteLength"] == len(b"void main() {}\n")
    image_view = scene.buffer_views["binary_images_img0"]
    assert image_view["byteOffset"] == 4 + shader_view["byteLength"]


def test_builtin_shaders_replace_sources(tmp_path: Path):
    (tmp_path / "odd.glsl").write_bytes(b"// untouched")
    scene = SceneDocument(
        {
            "buffers": {},
            "bufferViews": {},
            "shaders": {
                "d0VS": {"uri": "missing_vs.glsl"},
                "litFS": {"uri": "missing_fs.glsl"},
                "odd": {"uri": "odd.glsl"},
            },
        }
    )
    body = BodyAccumulator()
    rewrite_references(
        scene,
        body,
        tmp_path,
        RewriteOptions(embed_shaders=True, use_builtin_shaders=True),
    )
    blob = body.to_bytes()

    def view_bytes(view_id: str) -> bytes:
        view = scene.buffer_views[view_id]
        return blob[view["byteOffset"] : view["byteOffset"] + view["byteLength"]]

    assert view_bytes("binary_shader_d0VS") == VERTEX_SHADER.encode("utf-8")
    assert view_bytes("binary_shader_litFS") == FRAGMENT_SHADER.encode("utf-8")
    assert view_bytes("binary_shader_odd") == b"// untouched"


def test_resource_without_uri_rejected(tmp_path: Path):
    scene = SceneDocument(
        {"buffers": {"b": {"byteLength": 4}}, "bufferViews": {}}
    )
    with pytest.raises(JsonError):
        rewrite_references(scene, BodyAccumulator(), tmp_path)


@pytest.mark.parametrize("offset", ["0", None, True, -1, 1.5])
def test_non_integer_view_offset_is_a_json_error(tmp_path: Path, offset):
    scene = SceneDocument(
        {
            "buffers": {"b0": {"uri": _b64(b"abcd")}},
            "bufferViews": {"v0": {"buffer": "b0", "byteOffset": offset, "byteLength": 1}},
        }
    )
    with pytest.raises(JsonError) as info:
        rewrite_references(scene, BodyAccumulator(), tmp_path)
    assert info.value.context["bufferView"] == "v0"
