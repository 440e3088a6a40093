"""Export -> import -> export must reproduce the same JSON and resources."""

from gltfkun.api import export
from gltfkun.graph import Document, Graph, MaterialEdge

from gltf_helpers import reimport, triangle_document


def _rich_document(g: Graph) -> Document:
    doc = triangle_document(g)
    buffer = doc.buffers(g)[0]
    mesh = doc.meshes(g)[0]
    primitive = mesh.primitives(g)[0]

    normals = doc.create_accessor_from(
        g, buffer, [[0, 0, 1]] * 3, 5126, "VEC3", target=34962
    )
    primitive.set_attribute(g, "NORMAL", normals)
    joints = doc.create_accessor_from(
        g, buffer, [[0, 1, 0, 0]] * 3, 5121, "VEC4"
    )
    weights = doc.create_accessor_from(
        g, buffer, [[255, 0, 0, 0]] * 3, 5121, "VEC4", normalized=True
    )
    primitive.set_attribute(g, "JOINTS_0", joints)
    primitive.set_attribute(g, "WEIGHTS_0", weights)
    target = primitive.create_morph_target(g)
    target.set_attribute(g, "POSITION", normals)
    mesh.get(g).weights = [0.5]

    image = doc.create_image(g)
    image.get(g).mime_type = "image/png"
    image.get(g).data = b"\x89PNG-data"
    sampler = doc.create_sampler(g)
    sampler.get(g).mag_filter = 9728
    texture = doc.create_texture(g)
    texture.set_image(g, image)
    texture.set_sampler(g, sampler)
    material = doc.create_material(g)
    material.get(g).base_color_factor = (0.5, 0.5, 0.5, 1.0)
    material.get(g).alpha_mode = "MASK"
    material.set_texture(g, MaterialEdge.BASE_COLOR_TEXTURE, texture)
    material.set_texture(g, MaterialEdge.NORMAL_TEXTURE, texture)
    material.get(g).normal_scale = 0.25
    primitive.set_material(g, material)

    root, child = doc.nodes(g)[0], doc.create_node(g)
    root.add_child(g, child)
    child.get(g).rotation = (0.0, 0.0, 0.70710677, 0.70710677)
    child.get(g).name = "child"
    child.get(g).extras = {"tag": [1, 2]}
    skin = doc.create_skin(g)
    skin.add_joint(g, child)
    skin.set_skeleton(g, root)
    skin.set_inverse_bind_matrices(
        g,
        doc.create_accessor_from(
            g,
            buffer,
            [[1, 0, 0, 0, 0, 1, 0, 0, 0, 0, 1, 0, 0, 0, 0, 1]],
            5126,
            "MAT4",
        ),
    )
    root.set_skin(g, skin)

    times = doc.create_accessor_from(g, buffer, [0.0, 1.0], 5126, "SCALAR")
    anim = doc.create_animation(g)
    anim_sampler = anim.create_sampler(g)
    anim_sampler.set_input(g, times)
    anim_sampler.set_output(g, times)
    channel = anim.create_channel(g)
    channel.set_sampler(g, anim_sampler)
    channel.set_target(g, child)
    channel.get(g).path = "weights"

    doc.get(g).copyright = "test"
    return doc


def test_rich_document_is_stable():
    g = Graph()
    first = export(g, _rich_document(g))
    g2, doc2 = reimport(first)
    second = export(g2, doc2)
    assert second.json == first.json
    assert second.resources == first.resources
    assert first.json["images"][0]["uri"] == "image_0.png"
    assert first.json["asset"]["copyright"] == "test"


def test_second_cycle_is_identical():
    g = Graph()
    first = export(g, _rich_document(g))
    g2, doc2 = reimport(first)
    g3, doc3 = reimport(export(g2, doc2))
    assert export(g3, doc3).to_json_bytes() == first.to_json_bytes()
