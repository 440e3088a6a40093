import json
from pathlib import Path

from gltfkun.cli import main
from gltfkun.graph import Graph
from gltfkun.api import write_file

from gltf_helpers import to_bytes, triangle_document, triangle_gltf


def _write_triangle(tmp_path: Path) -> Path:
    g = Graph()
    return write_file(g, triangle_document(g), tmp_path / "tri.gltf")


def test_inspect_json_summary(tmp_path: Path, capsys):
    path = _write_triangle(tmp_path)
    assert main(["-r", "silent", "inspect", str(path), "--json"]) == 0
    summary = json.loads(capsys.readouterr().out)
    assert summary["counts"]["meshes"] == 1
    assert summary["counts"]["accessors"] == 2
    assert summary["extensionsUsed"] == []


def test_convert_gltf_to_glb(tmp_path: Path):
    src = _write_triangle(tmp_path)
    out = tmp_path / "out" / "tri.glb"
    assert main(["-r", "silent", "convert", str(src), str(out)]) == 0
    assert out.read_bytes()[:4] == b"glTF"
    assert sorted(p.name for p in out.parent.iterdir()) == ["tri.glb"]


def test_convert_failure_exit_code(tmp_path: Path):
    bad = tmp_path / "bad.gltf"
    bad.write_bytes(b"{oops")
    assert main(["-r", "silent", "convert", str(bad), str(tmp_path / "x.glb")]) == 1
    assert not (tmp_path / "x.glb").exists()


def test_roundtrip_command(tmp_path: Path):
    path = tmp_path / "tri.gltf"
    path.write_bytes(to_bytes(triangle_gltf()))
    assert main(["-r", "silent", "roundtrip", str(path)]) == 0


def test_config_flag(tmp_path: Path):
    cfg = tmp_path / "io.yaml"
    cfg.write_text("buffer_name_template: 'data_{index}.bin'\n", encoding="utf-8")
    g = Graph()
    src = write_file(g, triangle_document(g), tmp_path / "tri.glb")
    out = tmp_path / "out" / "tri.gltf"
    args = ["-r", "silent", "--config", str(cfg), "convert", str(src), str(out)]
    assert main(args) == 0
    assert (out.parent / "data_0.bin").exists()
    assert json.loads(out.read_text())["buffers"][0]["uri"] == "data_0.bin"
