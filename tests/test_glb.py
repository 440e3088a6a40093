import asyncio
import struct
from pathlib import Path

import pytest
from pygltflib import GLTF2

from gltfkun.api import export, import_slice, write_file
from gltfkun.config import IoConfig
from gltfkun.errors import (
    E_GLB_CHUNK,
    E_GLB_HEADER,
    E_MULTIPLE_BUFFERS,
    GlbFormatError,
    GltfExportError,
)
from gltfkun.graph import Graph
from gltfkun.io import CallbackResolver, GlbFormat, GltfFormat

from gltf_helpers import make_glb, triangle_bytes, triangle_document, triangle_gltf


def test_minimal_glb_is_bit_exact(tmp_path: Path):
    g = Graph()
    path = write_file(g, triangle_document(g), tmp_path / "tri.glb")
    assert list(tmp_path.iterdir()) == [path]

    gltf = GLTF2().load(str(path))
    assert len(gltf.scenes) == 1
    assert len(gltf.nodes) == 1
    assert len(gltf.meshes) == 1
    assert len(gltf.meshes[0].primitives) == 1
    assert gltf.buffers[0].uri is None

    accessor = gltf.accessors[gltf.meshes[0].primitives[0].attributes.POSITION]
    view = gltf.bufferViews[accessor.bufferView]
    blob = gltf.binary_blob()
    start = (view.byteOffset or 0) + (accessor.byteOffset or 0)
    assert blob[start : start + 36] == triangle_bytes()


def test_glb_layout_is_aligned():
    g = Graph()
    out = export(g, triangle_document(g), glb=True)
    data = out.data
    magic, version, length = struct.unpack_from("<III", data, 0)
    assert (magic, version, length) == (0x46546C67, 2, len(data))
    json_len, json_type = struct.unpack_from("<II", data, 12)
    assert json_type == 0x4E4F534A and json_len % 4 == 0
    bin_len, bin_type = struct.unpack_from("<II", data, 20 + json_len)
    assert bin_type == 0x004E4942 and bin_len % 4 == 0
    assert len(data) == 28 + json_len + bin_len


def test_multiple_buffers_fail_before_writing(tmp_path: Path):
    g = Graph()
    doc = triangle_document(g)
    doc.create_buffer(g).get(g).data = b"\x00" * 4
    with pytest.raises(GltfExportError) as exc:
        write_file(g, doc, tmp_path / "two.glb")
    assert exc.value.code == E_MULTIPLE_BUFFERS
    assert not (tmp_path / "two.glb").exists()


def test_external_image_is_embedded():
    root = triangle_gltf()
    png = b"\x89PNG\r\n\x1a\n-fake"
    root["images"] = [{"uri": "tex.png"}]
    g = Graph()
    resolver = CallbackResolver(lambda u: png)
    doc = asyncio.run(
        import_slice(g, GltfFormat(json=root).to_json_bytes(), resolver=resolver)
    )
    out = export(g, doc, glb=True)
    assert out.resources == {}
    back = GlbFormat(data=out.data).unpack()
    image = back.json["images"][0]
    assert "uri" not in image and image["mimeType"] == "image/png"
    view = back.json["bufferViews"][image["bufferView"]]
    assert view["byteOffset"] % 4 == 0
    blob = back.resources["bin"]
    assert blob[view["byteOffset"] : view["byteOffset"] + len(png)] == png
    assert back.json["buffers"][0]["byteLength"] == view["byteOffset"] + len(png)


def test_embedding_can_be_disabled():
    root = triangle_gltf()
    root["images"] = [{"uri": "tex.png"}]
    g = Graph()
    resolver = CallbackResolver(lambda u: b"png")
    doc = asyncio.run(
        import_slice(g, GltfFormat(json=root).to_json_bytes(), resolver=resolver)
    )
    out = export(g, doc, glb=True, config=IoConfig(embed_images=False))
    assert out.resources == {"tex.png": b"png"}


def test_glb_reimport_matches_json_export():
    g = Graph()
    doc = triangle_document(g)
    glb = export(g, doc, glb=True)
    g2 = Graph()
    doc2 = asyncio.run(import_slice(g2, glb.data))
    assert export(g2, doc2).json == export(g, doc).json


def test_bad_magic_rejected():
    data = bytearray(make_glb({"asset": {"version": "2.0"}}, None))
    data[0:4] = b"glTX"
    with pytest.raises(GlbFormatError) as exc:
        GlbFormat(data=bytes(data)).unpack()
    assert exc.value.code == E_GLB_HEADER


def test_truncated_container_rejected():
    data = make_glb({"asset": {"version": "2.0"}}, triangle_bytes())
    with pytest.raises(GlbFormatError) as exc:
        GlbFormat(data=data[:-8]).unpack()
    assert exc.value.code == E_GLB_HEADER
    with pytest.raises(GlbFormatError):
        GlbFormat(data=data[:10]).unpack()


def test_bin_before_json_rejected():
    body = struct.pack("<II", 4, 0x004E4942) + b"\x00" * 4
    data = struct.pack("<III", 0x46546C67, 2, 12 + len(body)) + body
    with pytest.raises(GlbFormatError) as exc:
        GlbFormat(data=data).unpack()
    assert exc.value.code == E_GLB_CHUNK


def test_unknown_chunks_are_ignored():
    root = {"asset": {"version": "2.0"}}
    data = make_glb(root, None)
    extra = struct.pack("<II", 4, 0x12345678) + b"abcd"
    header = struct.pack("<III", 0x46546C67, 2, len(data) + len(extra))
    data = header + data[12:] + extra
    fmt = GlbFormat(data=data).unpack()
    assert fmt.json == root
    assert fmt.resources == {}
