import asyncio

import pytest

from gltfkun.api import export, import_slice
from gltfkun.errors import E_EXTENSION, ExtensionError
from gltfkun.extensions import (
    ExtensionDescriptor,
    ExtensionRegistry,
    OmiPhysicsBody,
    OmiPhysicsShape,
    PhysicsBodyWeight,
    PhysicsShapeWeight,
    default_registry,
)
from gltfkun.graph import Graph

from gltf_helpers import reimport, to_bytes, triangle_document, triangle_gltf


def _physics_document(g: Graph):
    doc = triangle_document(g)
    shapes = doc.create_extension(g, OmiPhysicsShape)
    sphere = shapes.create_shape(g, PhysicsShapeWeight(type="sphere", radius=0.25))
    box = shapes.create_shape(g, PhysicsShapeWeight(type="box"))
    node = doc.nodes(g)[0]
    body = node.create_extension(g, OmiPhysicsBody)
    body.write(g, PhysicsBodyWeight(motion_type="dynamic", mass=2.0))
    body.set_collider(g, sphere)
    body.set_trigger(g, box)
    return doc


def test_absent_extension_is_not_listed():
    g = Graph()
    out = export(g, triangle_document(g))
    assert "extensionsUsed" not in out.json
    assert "extensions" not in out.json


def test_create_extension_returns_existing_payload():
    g = Graph()
    doc = triangle_document(g)
    first = doc.create_extension(g, OmiPhysicsShape)
    assert doc.create_extension(g, OmiPhysicsShape) == first
    assert doc.extension_names(g) == ["OMI_physics_shape"]
    doc.remove_extension(g, OmiPhysicsShape)
    assert doc.get_extension(g, OmiPhysicsShape) is None


def test_physics_extensions_export():
    g = Graph()
    out = export(g, _physics_document(g))
    assert out.json["extensionsUsed"] == ["OMI_physics_shape", "OMI_physics_body"]
    assert out.json["extensions"]["OMI_physics_shape"] == {
        "shapes": [
            {"type": "sphere", "sphere": {"radius": 0.25}},
            {"type": "box", "box": {}},
        ]
    }
    assert out.json["nodes"][0]["extensions"]["OMI_physics_body"] == {
        "motion": {"type": "dynamic", "mass": 2.0},
        "collider": {"shape": 0},
        "trigger": {"shape": 1},
    }


def test_physics_extensions_survive_reimport():
    g = Graph()
    first = export(g, _physics_document(g))
    g2, doc = reimport(first)
    shapes = doc.get_extension(g2, OmiPhysicsShape).shapes(g2)
    assert [s.read(g2).type for s in shapes] == ["sphere", "box"]
    body = doc.nodes(g2)[0].get_extension(g2, OmiPhysicsBody)
    assert body.read(g2).mass == 2.0
    assert body.collider(g2) == shapes[0]
    assert export(g2, doc).json == first.json


def test_disabled_extension_is_dropped():
    g = Graph()
    first = export(g, _physics_document(g))
    registry = default_registry().subset(["OMI_physics_shape"])
    g2, doc = reimport(first, registry=registry)
    assert doc.nodes(g2)[0].get_extension(g2, OmiPhysicsBody) is None
    out = export(g2, doc, registry=registry)
    assert out.json["extensionsUsed"] == ["OMI_physics_shape"]


def test_failing_import_hook_is_skipped():
    root = triangle_gltf()
    root["extensionsUsed"] = ["OMI_physics_shape"]
    root["extensions"] = {"OMI_physics_shape": {"shapes": [{"type": "pyramid"}]}}
    g = Graph()
    doc = asyncio.run(import_slice(g, to_bytes(root)))
    assert doc.get_extension(g, OmiPhysicsShape) is None
    assert len(doc.nodes(g)) == 1


def test_body_with_missing_shape_is_skipped():
    root = triangle_gltf()
    root["nodes"][0]["extensions"] = {
        "OMI_physics_body": {"collider": {"shape": 3}}
    }
    g = Graph()
    doc = asyncio.run(import_slice(g, to_bytes(root)))
    assert doc.nodes(g)[0].get_extension(g, OmiPhysicsBody) is None


def test_failing_export_hook_leaves_json_untouched():
    def _boom(ctx):
        ctx.json["asset"]["broken"] = True
        ctx.mark_used("X_broken")
        raise RuntimeError("boom")

    registry = ExtensionRegistry(
        [
            ExtensionDescriptor(
                name="X_broken",
                property_type=OmiPhysicsShape,
                import_hook=lambda ctx: None,
                export_hook=_boom,
            )
        ]
    )
    g = Graph()
    out = export(g, triangle_document(g), registry=registry)
    assert "broken" not in out.json["asset"]
    assert "extensionsUsed" not in out.json


def test_registry_rejects_duplicates():
    registry = default_registry()
    with pytest.raises(ExtensionError) as exc:
        registry.register(registry.get("OMI_physics_body"))
    assert exc.value.code == E_EXTENSION


def test_unknown_extension_does_not_fail_import():
    root = triangle_gltf()
    root["extensionsUsed"] = ["VENDOR_unknown"]
    root["extensionsRequired"] = ["VENDOR_unknown"]
    g = Graph()
    doc = asyncio.run(import_slice(g, to_bytes(root)))
    out = export(g, doc)
    assert "extensionsUsed" not in out.json
    assert "extensionsRequired" not in out.json


def test_empty_payload_reads_as_default():
    g = Graph()
    doc = triangle_document(g)
    body = doc.nodes(g)[0].create_extension(g, OmiPhysicsBody)
    assert body.read(g) == PhysicsBodyWeight()
    assert PhysicsShapeWeight.from_bytes(b"") == PhysicsShapeWeight()


def test_shape_index_follows_current_list():
    g = Graph()
    doc = _physics_document(g)
    shapes = doc.get_extension(g, OmiPhysicsShape)
    sphere = shapes.shapes(g)[0]
    shapes.remove_shape(g, sphere)
    out = export(g, doc)
    shapes_json = out.json["extensions"]["OMI_physics_shape"]["shapes"]
    assert shapes_json == [{"type": "box", "box": {}}]
    body = out.json["nodes"][0]["extensions"]["OMI_physics_body"]
    assert body["trigger"] == {"shape": 0}
    assert "collider" not in body
