from __future__ import annotations

"""Shared builders for gltfkun tests.

Usage:
    from gltf_helpers import triangle_document, triangle_gltf
"""
import asyncio
import base64
import json
import struct

import numpy as np

from gltfkun.accessor import ComponentType, ElementType
from gltfkun.api import import_slice
from gltfkun.graph import Document, Graph
from gltfkun.io import CallbackResolver

TRIANGLE = [[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.0, 1.0, 0.0]]
TRIANGLE_INDICES = [0, 1, 2]


def triangle_document(graph: Graph) -> Document:
    """One scene, one node, one mesh with a single indexed triangle."""
    doc = Document.new(graph)
    buffer = doc.create_buffer(graph)
    positions = doc.create_accessor_from(
        graph, buffer, TRIANGLE, ComponentType.F32, ElementType.VEC3, target=34962
    )
    indices = doc.create_accessor_from(
        graph,
        buffer,
        TRIANGLE_INDICES,
        ComponentType.U16,
        ElementType.SCALAR,
        target=34963,
    )
    mesh = doc.create_mesh(graph)
    primitive = mesh.create_primitive(graph)
    primitive.set_attribute(graph, "POSITION", positions)
    primitive.set_indices(graph, indices)
    node = doc.create_node(graph)
    node.set_mesh(graph, mesh)
    scene = doc.create_scene(graph)
    scene.add_node(graph, node)
    doc.set_default_scene(graph, scene)
    return doc


def triangle_bytes() -> bytes:
    return np.asarray(TRIANGLE, dtype="<f4").tobytes()


def data_uri(data: bytes) -> str:
    return "data:application/octet-stream;base64," + base64.b64encode(
        data
    ).decode("ascii")


def triangle_gltf(uri: str | None = None) -> dict:
    """glTF JSON for a non-indexed triangle; the buffer is a data URI
    unless ``uri`` names an external resource."""
    data = triangle_bytes()
    return {
        "asset": {"version": "2.0"},
        "scene": 0,
        "scenes": [{"nodes": [0]}],
        "nodes": [{"mesh": 0, "name": "tri"}],
        "meshes": [{"primitives": [{"attributes": {"POSITION": 0}}]}],
        "accessors": [
            {
                "bufferView": 0,
                "componentType": 5126,
                "count": 3,
                "type": "VEC3",
                "min": [0.0, 0.0, 0.0],
                "max": [1.0, 1.0, 0.0],
            }
        ],
        "bufferViews": [{"buffer": 0, "byteLength": len(data)}],
        "buffers": [
            {"byteLength": len(data), "uri": uri if uri else data_uri(data)}
        ],
    }


def to_bytes(root: dict) -> bytes:
    return json.dumps(root).encode("utf-8")


def make_glb(root: dict, binary: bytes | None) -> bytes:
    """Hand-assemble a GLB container, independent of the library packer."""
    json_chunk = json.dumps(root).encode("utf-8")
    json_chunk += b" " * ((-len(json_chunk)) % 4)
    body = struct.pack("<II", len(json_chunk), 0x4E4F534A) + json_chunk
    if binary is not None:
        binary += b"\x00" * ((-len(binary)) % 4)
        body += struct.pack("<II", len(binary), 0x004E4942) + binary
    return struct.pack("<III", 0x46546C67, 2, 12 + len(body)) + body


def reimport(out, registry=None):
    """Import an exported ``GltfFormat`` back into a fresh graph."""
    graph = Graph()
    resolver = CallbackResolver(dict(out.resources).__getitem__)
    doc = asyncio.run(
        import_slice(
            graph, out.to_json_bytes(), resolver=resolver, registry=registry
        )
    )
    return graph, doc
