"""Container emission tests: header fields, padding and body placement."""

from __future__ import annotations

import json
import struct

import pytest

from glbpack.packing.body import BodyAccumulator
from glbpack.packing.constants import HEADER_SIZE, MAGIC
from glbpack.packing.emitter import compute_layout, emit_container, padded_length
from glbpack.scene.models import SceneDocument


@pytest.mark.parametrize(
    "length,expected", [(0, 0), (1, 4), (3, 4), (4, 4), (5, 8), (1023, 1024)]
)
def test_padded_length_rounds_up_to_four(length: int, expected: int):
    assert padded_length(length) == expected


def test_layout_decomposition():
    layout = compute_layout(scene_length=41, body_length=13)
    assert layout.padded_scene_length == 44
    assert layout.padding == 3
    assert layout.body_offset == HEADER_SIZE + 44
    assert layout.file_length == HEADER_SIZE + 44 + 13


def _unpack_header(data: bytes):
    (magic,) = struct.unpack_from(">I", data, 0)
    return (magic,) + struct.unpack_from("<IIII", data, 4)


def test_emit_replaces_buffers_and_lays_out_file():
    scene = SceneDocument(
        {
            "asset": {"generator": "tests"},
            "buffers": {"old": {"uri": "old.bin", "byteOffset": 0}},
            "bufferViews": {
                "v0": {"buffer": "binary_glTF", "byteOffset": 0, "byteLength": 5}
            },
        }
    )
    body = BodyAccumulator()
    body.append(b"hello")
    body.append(b"\x00\xff")
    data = emit_container(scene, body)

    magic, version, file_length, scene_length, scene_format = _unpack_header(data)
    assert data[:4] == b"glTF"
    assert magic == MAGIC
    assert version == 1
    assert scene_format == 0
    assert file_length == len(data)
    assert scene_length % 4 == 0
    assert file_length == HEADER_SIZE + scene_length + body.length

    scene_bytes = scene.to_json_bytes()
    assert 0 <= scene_length - len(scene_bytes) <= 3
    chunk = data[HEADER_SIZE : HEADER_SIZE + scene_length]
    assert chunk == scene_bytes + b" " * (scene_length - len(scene_bytes))
    parsed = json.loads(chunk)
    assert parsed["buffers"] == {"binary_glTF": {"uri": "data", "byteLength": 7}}
    assert parsed["asset"] == {"generator": "tests"}
    assert data[HEADER_SIZE + scene_length :] == b"hello\x00\xff"


def test_emit_with_empty_body():
    scene = SceneDocument({"buffers": {}, "bufferViews": {}})
    data = emit_container(scene, BodyAccumulator(), "KHR_binary_glTF")
    _, _, file_length, scene_length, _ = _unpack_header(data)
    assert file_length == len(data) == HEADER_SIZE + scene_length
    parsed = json.loads(data[HEADER_SIZE:])
    assert parsed["buffers"] == {"KHR_binary_glTF": {"uri": "data", "byteLength": 0}}


def test_scene_text_is_compact_utf8():
    scene = SceneDocument(
        {"buffers": {}, "bufferViews": {}, "nodes": {"n": {"name": "Überraum"}}}
    )
    text = scene.to_json_bytes()
    assert b" " not in text
    assert "Überraum".encode("utf-8") in text


def test_lone_surrogate_written_as_replacement_character():
    scene = SceneDocument(
        json.loads('{"asset": {"generator": "\\ud800x"}, "buffers": {}, "bufferViews": {}}')
    )
    data = emit_container(scene, BodyAccumulator())
    _, _, _, scene_length, _ = _unpack_header(data)
    parsed = json.loads(data[HEADER_SIZE : HEADER_SIZE + scene_length].decode("utf-8"))
    assert parsed["asset"]["generator"] == "\ufffdx"
