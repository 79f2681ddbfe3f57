"""CLI tests: exit codes, diagnostics and option wiring."""

from __future__ import annotations

import json
from pathlib import Path

from glbpack.cli import FAILURE_BANNER, build_parser, main


def _write_scene(tmp_path: Path, scene: dict, name: str = "model.gltf") -> Path:
    path = tmp_path / name
    path.write_text(json.dumps(scene), encoding="utf-8")
    return path


SCENE = {
    "buffers": {"b0": {"uri": "data:text/plain;base64,aGVsbG8="}},
    "bufferViews": {"v0": {"buffer": "b0", "byteOffset": 0, "byteLength": 5}},
    "shaders": {"d0FS": {"uri": "data:text/plain;base64,aGVsbG8="}},
}


def test_build_success(tmp_path: Path):
    src = _write_scene(tmp_path, SCENE)
    assert main(["-r", "silent", "build", str(src)]) == 0
    assert (tmp_path / "model.glb").exists()


def test_build_wrong_extension_reports_banner(tmp_path: Path, capsys):
    src = _write_scene(tmp_path, SCENE, name="model.txt")
    assert main(["-r", "plain", "build", str(src)]) == 1
    err = capsys.readouterr().err
    assert FAILURE_BANNER in err
    assert ".gltf extension" in err
    assert not list(tmp_path.glob("*.glb"))


def test_build_dangling_reference_exit_code(tmp_path: Path, capsys):
    scene = dict(SCENE, bufferViews={"v0": {"buffer": "zz", "byteOffset": 0, "byteLength": 1}})
    src = _write_scene(tmp_path, scene)
    assert main(["build", str(src)]) == 1
    err = capsys.readouterr().err
    assert "buffer ID reference not found: zz" in err
    assert not (tmp_path / "model.glb").exists()


def test_silent_build_still_prints_failure(tmp_path: Path, capsys):
    src = _write_scene(tmp_path, SCENE, name="model.txt")
    assert main(["-r", "silent", "build", str(src)]) == 1
    captured = capsys.readouterr()
    assert captured.err.splitlines() == [
        f"ERROR: {FAILURE_BANNER}",
        "ERROR: File specified does not have the .gltf extension.",
    ]
    assert captured.out == ""


def test_embed_flag_parsing():
    parser = build_parser()
    args = parser.parse_args(["build", "a.gltf"])
    assert args.embed is None
    args = parser.parse_args(["build", "a.gltf", "-e"])
    assert args.embed == []
    args = parser.parse_args(["build", "a.gltf", "--embed", "shaders", "textures"])
    assert args.embed == ["shaders", "textures"]


def test_builtin_shaders_and_compat_flags(tmp_path: Path):
    src = _write_scene(tmp_path, SCENE)
    rc = main(
        ["-r", "silent", "build", str(src), "-e", "shaders", "--shaders", "--cesium"]
    )
    assert rc == 0
    data = (tmp_path / "model.glb").read_bytes()
    padded = int.from_bytes(data[12:16], "little")
    scene = json.loads(data[20 : 20 + padded])
    assert list(scene["buffers"]) == ["KHR_binary_glTF"]
    view = scene["bufferViews"]["binary_shader_d0FS"]
    start = 20 + padded + view["byteOffset"]
    shader = data[start : start + view["byteLength"]].decode("utf-8")
    assert shader.startswith("// Create FS")


def test_json_reporter_emits_build_summary(tmp_path: Path, capsys):
    src = _write_scene(tmp_path, SCENE)
    assert main(["-r", "json", "build", str(src)]) == 0
    events = [json.loads(line) for line in capsys.readouterr().out.splitlines()]
    summaries = [e for e in events if e["event"] == "summary"]
    build = [e for e in summaries if e["summary_type"] == "build"]
    assert build and build[0]["file"] == "model.glb"


def test_inspect_command(tmp_path: Path, capsys):
    src = _write_scene(tmp_path, SCENE)
    assert main(["-r", "silent", "build", str(src)]) == 0
    capsys.readouterr()
    glb = tmp_path / "model.glb"
    assert main(["-r", "silent", "inspect", str(glb), "--json"]) == 0
    out = json.loads(capsys.readouterr().out)
    assert out["problems"] == []
    assert out["header"]["version"] == 1
    assert out["body_length"] == 5


def test_inspect_flags_truncated_file(tmp_path: Path):
    src = _write_scene(tmp_path, SCENE)
    assert main(["-r", "silent", "build", str(src)]) == 0
    glb = tmp_path / "model.glb"
    glb.write_bytes(glb.read_bytes()[:-2])
    assert main(["-r", "silent", "inspect", str(glb)]) == 1
