import asyncio
import json
from pathlib import Path

import pytest
from pygltflib import GLTF2

from gltfkun.api import export, import_slice, write_file
from gltfkun.config import IoConfig
from gltfkun.errors import E_ACCESSOR_RANGE, GltfExportError
from gltfkun.graph import Document, Graph

from gltf_helpers import (
    reimport,
    to_bytes,
    triangle_bytes,
    triangle_document,
    triangle_gltf,
)


def test_minimal_document_json():
    g = Graph()
    out = export(g, triangle_document(g))
    root = out.json
    assert root["asset"] == {"version": "2.0", "generator": "gltfkun"}
    assert root["scene"] == 0
    assert root["scenes"] == [{"nodes": [0]}]
    assert root["nodes"] == [{"mesh": 0}]
    assert root["meshes"] == [
        {"primitives": [{"attributes": {"POSITION": 0}, "indices": 1}]}
    ]
    assert root["accessors"][0] == {
        "bufferView": 0,
        "componentType": 5126,
        "count": 3,
        "type": "VEC3",
        "max": [1.0, 1.0, 0.0],
        "min": [0.0, 0.0, 0.0],
    }
    assert root["buffers"] == [{"byteLength": 42, "uri": "buffer_0.bin"}]
    assert out.resources["buffer_0.bin"][:36] == triangle_bytes()
    assert list(root)[:2] == ["asset", "scene"]


def test_indices_recomputed_after_removal():
    g = Graph()
    doc = Document.new(g)
    nodes = [doc.create_node(g) for _ in range(3)]
    nodes[0].add_child(g, nodes[2])
    nodes[1].remove(g)
    out = export(g, doc)
    assert out.json["nodes"] == [{"children": [1]}, {}]


def test_data_uri_buffer_stays_embedded():
    g = Graph()
    doc = asyncio.run(import_slice(g, to_bytes(triangle_gltf())))
    out = export(g, doc)
    assert out.json["buffers"][0]["uri"].startswith(
        "data:application/octet-stream;base64,"
    )
    assert out.resources == {}


def test_generated_names_follow_config():
    g = Graph()
    doc = triangle_document(g)
    config = IoConfig(buffer_name_template="mesh-{index}.data", generator="me")
    out = export(g, doc, config=config)
    assert out.json["buffers"][0]["uri"] == "mesh-0.data"
    assert out.json["asset"]["generator"] == "me"


def test_generated_image_name_skips_taken_uri():
    g = Graph()
    doc = triangle_document(g)
    named, unnamed = doc.create_image(g), doc.create_image(g)
    for image, data in ((named, b"AAAA"), (unnamed, b"BBBB")):
        image.get(g).mime_type = "image/png"
        image.get(g).data = data
    named.get(g).uri = "image_1.png"
    out = export(g, doc)
    assert [i["uri"] for i in out.json["images"]] == ["image_1.png", "image_2.png"]
    g2, doc2 = reimport(out)
    assert [i.get(g2).data for i in doc2.images(g2)] == [b"AAAA", b"BBBB"]


def test_short_accessor_fails_export():
    g = Graph()
    doc = triangle_document(g)
    doc.accessors(g)[0].get(g).count = 10
    with pytest.raises(GltfExportError) as exc:
        export(g, doc)
    assert exc.value.code == E_ACCESSOR_RANGE


def test_defaults_are_omitted():
    g = Graph()
    doc = Document.new(g)
    node = doc.create_node(g)
    node.get(g).translation = (1.0, 2.0, 3.0)
    doc.create_material(g)
    doc.create_sampler(g)
    out = export(g, doc)
    assert out.json["nodes"] == [{"translation": [1.0, 2.0, 3.0]}]
    assert out.json["materials"] == [{}]
    assert out.json["samplers"] == [{}]
    assert "buffers" not in out.json


def test_animation_export_dedupes_samplers():
    g = Graph()
    doc = triangle_document(g)
    node = doc.nodes(g)[0]
    buffer = doc.buffers(g)[0]
    times = doc.create_accessor_from(g, buffer, [0.0, 1.0], 5126, "SCALAR")
    moves = doc.create_accessor_from(
        g, buffer, [[0, 0, 0], [0, 1, 0]], 5126, "VEC3"
    )
    anim = doc.create_animation(g)
    sampler = anim.create_sampler(g)
    sampler.set_input(g, times)
    sampler.set_output(g, moves)
    sampler.get(g).interpolation = "STEP"
    for path in ("translation", "scale"):
        channel = anim.create_channel(g)
        channel.set_sampler(g, sampler)
        channel.set_target(g, node)
        channel.get(g).path = path
    (entry,) = export(g, doc).json["animations"]
    assert entry["samplers"] == [{"input": 2, "output": 3, "interpolation": "STEP"}]
    assert [c["sampler"] for c in entry["channels"]] == [0, 0]
    assert entry["channels"][1]["target"] == {"node": 0, "path": "scale"}


def test_write_file_readable_by_pygltflib(tmp_path: Path):
    g = Graph()
    path = write_file(g, triangle_document(g), tmp_path / "tri.gltf")
    assert (tmp_path / "buffer_0.bin").exists()
    gltf = GLTF2().load(str(path))
    assert len(gltf.meshes) == 1
    assert gltf.accessors[0].count == 3
    assert gltf.buffers[0].uri == "buffer_0.bin"
    assert json.loads(path.read_text())["asset"]["version"] == "2.0"


def test_write_file_refuses_escaping_resource(tmp_path: Path):
    g = Graph()
    doc = triangle_document(g)
    doc.buffers(g)[0].get(g).uri = "../outside.bin"
    with pytest.raises(GltfExportError):
        write_file(g, doc, tmp_path / "sub" / "tri.gltf")
    assert not (tmp_path / "outside.bin").exists()
    assert not (tmp_path / "sub" / "tri.gltf").exists()
