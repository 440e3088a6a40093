import asyncio
import struct
from pathlib import Path

import numpy as np
import pytest

from gltfkun.api import import_file, import_slice
from gltfkun.errors import (
    E_ACCESSOR_RANGE,
    E_BUFFER_LENGTH,
    E_BUFFER_VIEW_RANGE,
    E_INVALID_REFERENCE,
    E_JSON,
    E_NO_RESOLVER,
    E_RESOLVE,
    GltfError,
    GltfImportError,
)
from gltfkun.graph import Graph
from gltfkun.io import CallbackResolver

from gltf_helpers import (
    TRIANGLE,
    data_uri,
    make_glb,
    to_bytes,
    triangle_bytes,
    triangle_gltf,
)


def _import(root, resolver=None, graph=None):
    graph = graph if graph is not None else Graph()
    doc = asyncio.run(import_slice(graph, to_bytes(root), resolver=resolver))
    return graph, doc


def test_minimal_triangle_with_data_uri():
    g, doc = _import(triangle_gltf())
    (scene,) = doc.scenes(g)
    assert doc.default_scene(g) == scene
    (node,) = scene.nodes(g)
    assert node.get(g).name == "tri"
    (primitive,) = node.mesh(g).primitives(g)
    positions = primitive.attribute(g, "POSITION")
    assert [list(v) for v in positions.iter(g)] == TRIANGLE


def test_resolver_called_once_per_uri():
    calls = []

    async def fetch(uri):
        calls.append(uri)
        return triangle_bytes()

    root = triangle_gltf(uri="shared.bin")
    root["buffers"].append(dict(root["buffers"][0]))
    root["bufferViews"].append({"buffer": 1, "byteLength": 36})
    g, doc = _import(root, resolver=CallbackResolver(fetch))
    assert calls == ["shared.bin"]
    assert len(doc.buffers(g)) == 2


def test_external_uri_without_resolver_fails():
    with pytest.raises(GltfError) as exc:
        _import(triangle_gltf(uri="tri.bin"))
    assert exc.value.code == E_NO_RESOLVER


def test_resolver_failure_rolls_back_graph():
    g = Graph()
    g.add_vertex("existing")
    before = (len(g), g.edge_count)

    def fail(uri):
        raise OSError("offline")

    with pytest.raises(GltfError) as exc:
        _import(triangle_gltf(uri="tri.bin"), CallbackResolver(fail), graph=g)
    assert exc.value.code == E_RESOLVE
    assert (len(g), g.edge_count) == before


def test_bad_reference_rolls_back_graph():
    root = triangle_gltf()
    root["scenes"][0]["nodes"] = [5]
    g = Graph()
    with pytest.raises(GltfImportError) as exc:
        _import(root, graph=g)
    assert exc.value.code == E_INVALID_REFERENCE
    assert len(g) == 0 and g.edge_count == 0


def test_malformed_json_rejected():
    with pytest.raises(GltfImportError) as exc:
        asyncio.run(import_slice(Graph(), b"{not json"))
    assert exc.value.code == E_JSON


def test_missing_required_field_is_import_error():
    root = triangle_gltf()
    del root["accessors"][0]["count"]
    with pytest.raises(GltfImportError) as exc:
        _import(root)
    assert exc.value.code == E_JSON


def test_short_buffer_rejected():
    root = triangle_gltf()
    root["buffers"][0]["byteLength"] = 64
    with pytest.raises(GltfImportError) as exc:
        _import(root)
    assert exc.value.code == E_BUFFER_LENGTH


def test_view_past_buffer_end_rejected():
    root = triangle_gltf()
    root["bufferViews"][0]["byteOffset"] = 4
    with pytest.raises(GltfImportError) as exc:
        _import(root)
    assert exc.value.code == E_BUFFER_VIEW_RANGE


def test_accessor_past_view_end_rejected():
    root = triangle_gltf()
    root["accessors"][0]["count"] = 4
    with pytest.raises(GltfError) as exc:
        _import(root)
    assert exc.value.code == E_ACCESSOR_RANGE


def test_sparse_accessor_is_densified():
    base = np.zeros((4, 1), dtype="<f4").tobytes()
    indices = struct.pack("<HH", 1, 3)
    values = struct.pack("<ff", 5.0, 7.0)
    data = base + indices + values
    root = {
        "asset": {"version": "2.0"},
        "buffers": [
            {
                "byteLength": len(data),
                "uri": data_uri(data),
            }
        ],
        "bufferViews": [
            {"buffer": 0, "byteLength": 16},
            {"buffer": 0, "byteOffset": 16, "byteLength": 4},
            {"buffer": 0, "byteOffset": 20, "byteLength": 8},
        ],
        "accessors": [
            {
                "bufferView": 0,
                "componentType": 5126,
                "count": 4,
                "type": "SCALAR",
                "sparse": {
                    "count": 2,
                    "indices": {"bufferView": 1, "componentType": 5123},
                    "values": {"bufferView": 2},
                },
            }
        ],
    }
    g, doc = _import(root)
    (accessor,) = doc.accessors(g)
    assert list(accessor.iter(g)) == [0.0, 5.0, 0.0, 7.0]
    assert len(doc.buffer_views(g)) == 4


def test_glb_slice_binds_bin_chunk():
    root = triangle_gltf()
    del root["buffers"][0]["uri"]
    g = Graph()
    doc = asyncio.run(import_slice(g, make_glb(root, triangle_bytes())))
    (buffer,) = doc.buffers(g)
    assert buffer.get(g).data == triangle_bytes()
    assert buffer.get(g).uri is None


def test_import_file_resolves_beside_document(tmp_path: Path):
    (tmp_path / "tri.bin").write_bytes(triangle_bytes())
    path = tmp_path / "tri.gltf"
    path.write_bytes(to_bytes(triangle_gltf(uri="tri.bin")))
    g = Graph()
    doc = asyncio.run(import_file(g, path))
    assert doc.buffers(g)[0].get(g).uri == "tri.bin"


def test_texture_and_material_links():
    root = triangle_gltf()
    png = b"\x89PNG fake"
    root["images"] = [{"uri": "tex.png"}]
    root["samplers"] = [{"magFilter": 9729, "wrapS": 33071}]
    root["textures"] = [{"source": 0, "sampler": 0}]
    root["materials"] = [
        {
            "pbrMetallicRoughness": {
                "baseColorTexture": {"index": 0, "texCoord": 1},
                "metallicFactor": 0.0,
            },
            "doubleSided": True,
        }
    ]
    root["meshes"][0]["primitives"][0]["material"] = 0
    g, doc = _import(root, resolver=CallbackResolver(lambda u: png))
    (image,) = doc.images(g)
    assert image.read(g) == png
    assert image.get(g).mime_type == "image/png"
    (material,) = doc.materials(g)
    weight = material.get(g)
    assert weight.metallic_factor == 0.0
    assert weight.base_color_tex_coord == 1
    assert weight.double_sided is True
    primitive = doc.meshes(g)[0].primitives(g)[0]
    assert primitive.material(g) == material


def test_failed_resolve_cancels_pending_fetches():
    root = triangle_gltf()
    root["images"] = [{"uri": "slow.png"}, {"uri": "bad.png"}]
    events = []

    async def host(uri):
        if uri == "bad.png":
            raise OSError("missing")
        try:
            await asyncio.sleep(0.05)
        except asyncio.CancelledError:
            events.append(f"cancelled:{uri}")
            raise
        events.append(f"done:{uri}")
        return b"png"

    async def scenario():
        with pytest.raises(GltfError) as exc:
            await import_slice(
                Graph(), to_bytes(root), resolver=CallbackResolver(host)
            )
        assert exc.value.code == E_RESOLVE
        await asyncio.sleep(0.1)

    asyncio.run(scenario())
    assert events == ["cancelled:slow.png"]
