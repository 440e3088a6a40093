"""Document graph -> glTF JSON + resources.

Array indices are recomputed from the current graph on every export.
Only fields that differ from the format defaults are written.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Set

from ..config import IoConfig
from ..errors import (
    E_INVALID_REFERENCE,
    AccessorIterCreateError,
    GltfExportError,
)
from ..extensions import ExportContext, ExtensionRegistry, run_export_hooks
from ..graph import (
    Document,
    Graph,
    MaterialEdge,
    Property,
    extension_for_mime,
)
from ..logging import get_logger
from ..reporting import task
from .format import GltfFormat
from .resolver import encode_data_uri, is_data_uri

__all__ = ["export_gltf", "GENERATOR"]

GENERATOR = "gltfkun"

_TOP_LEVEL_ORDER = (
    "asset",
    "extensionsUsed",
    "extensionsRequired",
    "extensions",
    "extras",
    "scene",
    "scenes",
    "nodes",
    "meshes",
    "skins",
    "animations",
    "materials",
    "textures",
    "images",
    "samplers",
    "accessors",
    "bufferViews",
    "buffers",
)

_log = get_logger("export")


def _named(entry: Dict[str, Any], weight: Any) -> Dict[str, Any]:
    if weight.name is not None:
        entry["name"] = weight.name
    if weight.extras is not None:
        entry["extras"] = weight.extras
    return entry


def _floats(values) -> List[float]:
    return [float(v) for v in values]


class _Exporter:
    def __init__(self, graph: Graph, doc: Document, config: IoConfig) -> None:
        self.graph = graph
        self.doc = doc
        self.config = config
        self.indices: Dict[int, int] = {}
        self.resources: Dict[str, bytes] = {}
        self.taken: Set[str] = set()
        self.root: Dict[str, Any] = {}

    def index(self, handle: Optional[Property], owner: str) -> int:
        if handle is None or handle.index not in self.indices:
            raise GltfExportError(
                code=E_INVALID_REFERENCE,
                message=(
                    f"{owner} references vertex "
                    f"{None if handle is None else handle.index}, which the "
                    "document does not own"
                ),
                context={"owner": owner},
            )
        return self.indices[handle.index]

    def _register(self, handles: List[Property]) -> None:
        for i, handle in enumerate(handles):
            self.indices[handle.index] = i

    def run(self) -> Dict[str, Any]:
        g, doc = self.graph, self.doc
        for handles in (
            doc.buffers(g),
            doc.buffer_views(g),
            doc.accessors(g),
            doc.images(g),
            doc.samplers(g),
            doc.textures(g),
            doc.materials(g),
            doc.meshes(g),
            doc.nodes(g),
            doc.scenes(g),
            doc.skins(g),
            doc.animations(g),
        ):
            self._register(handles)

        self._asset()
        self.taken = self._explicit_uris()
        arrays = {
            "buffers": self._buffers(),
            "bufferViews": self._buffer_views(),
            "accessors": self._accessors(),
            "images": self._images(),
            "samplers": self._samplers(),
            "textures": self._textures(),
            "materials": self._materials(),
            "meshes": self._meshes(),
            "nodes": self._nodes(),
            "scenes": self._scenes(),
            "skins": self._skins(),
            "animations": self._animations(),
        }
        for key, values in arrays.items():
            if values:
                self.root[key] = values
        default_scene = doc.default_scene(g)
        if default_scene is not None:
            self.root["scene"] = self.index(default_scene, "scene")
        return self.root

    def _asset(self) -> None:
        weight = self.doc.get(self.graph)
        asset: Dict[str, Any] = {"version": "2.0"}
        generator = weight.generator or self.config.generator or GENERATOR
        asset["generator"] = generator
        if weight.copyright is not None:
            asset["copyright"] = weight.copyright
        if weight.min_version is not None:
            asset["minVersion"] = weight.min_version
        if weight.extras is not None:
            asset["extras"] = weight.extras
        self.root["asset"] = asset

    def _explicit_uris(self) -> Set[str]:
        """Resource URIs already set on buffers and external images."""
        g = self.graph
        uris = {b.get(g).uri for b in self.doc.buffers(g)}
        uris.update(
            image.get(g).uri
            for image in self.doc.images(g)
            if image.buffer_view(g) is None
        )
        return {u for u in uris if u is not None and not is_data_uri(u)}

    def _fresh_uri(self, template: str, start: int, **fields: Any) -> str:
        n = start
        uri = template.format(index=n, **fields)
        while uri in self.taken:
            n += 1
            uri = template.format(index=n, **fields)
        self.taken.add(uri)
        return uri

    def _buffers(self) -> List[Dict[str, Any]]:
        out = []
        for i, buffer in enumerate(self.doc.buffers(self.graph)):
            weight = buffer.get(self.graph)
            entry: Dict[str, Any] = {"byteLength": weight.byte_length}
            if weight.uri is not None and is_data_uri(weight.uri):
                entry["uri"] = encode_data_uri(
                    weight.data, "application/octet-stream"
                )
            else:
                uri = weight.uri
                if uri is None:
                    uri = self._fresh_uri(self.config.buffer_name_template, i)
                entry["uri"] = uri
                self.resources[uri] = weight.data
            out.append(_named(entry, weight))
        return out

    def _buffer_views(self) -> List[Dict[str, Any]]:
        out = []
        for i, view in enumerate(self.doc.buffer_views(self.graph)):
            weight = view.get(self.graph)
            entry: Dict[str, Any] = {
                "buffer": self.index(view.buffer(self.graph), f"bufferViews[{i}]"),
                "byteLength": weight.byte_length,
            }
            if weight.byte_offset:
                entry["byteOffset"] = weight.byte_offset
            if weight.byte_stride is not None:
                entry["byteStride"] = weight.byte_stride
            if weight.target is not None:
                entry["target"] = weight.target
            out.append(_named(entry, weight))
        return out

    def _accessors(self) -> List[Dict[str, Any]]:
        out = []
        for i, accessor in enumerate(self.doc.accessors(self.graph)):
            weight = accessor.get(self.graph)
            entry: Dict[str, Any] = {}
            view = accessor.buffer_view(self.graph)
            if view is not None:
                entry["bufferView"] = self.index(view, f"accessors[{i}]")
            if weight.byte_offset:
                entry["byteOffset"] = weight.byte_offset
            entry["componentType"] = int(weight.component_type)
            if weight.normalized:
                entry["normalized"] = True
            entry["count"] = weight.count
            entry["type"] = weight.element_type.value
            if weight.count > 0:
                try:
                    values = accessor.iter(self.graph)
                except AccessorIterCreateError as exc:
                    raise GltfExportError(
                        code=exc.code,
                        message=f"accessors[{i}]: {exc.message}",
                        context={"accessor": i, **(exc.context or {})},
                    ) from exc
                entry["max"] = values.max()
                entry["min"] = values.min()
            out.append(_named(entry, weight))
        return out

    def _images(self) -> List[Dict[str, Any]]:
        out = []
        for i, image in enumerate(self.doc.images(self.graph)):
            weight = image.get(self.graph)
            entry: Dict[str, Any] = {}
            view = image.buffer_view(self.graph)
            if view is not None:
                entry["bufferView"] = self.index(view, f"images[{i}]")
            elif weight.uri is not None and is_data_uri(weight.uri):
                entry["uri"] = encode_data_uri(
                    weight.data, weight.mime_type or "application/octet-stream"
                )
            else:
                uri = weight.uri
                if uri is None:
                    ext = extension_for_mime(weight.mime_type)
                    if not ext:
                        _log.warning(
                            "images[%d] has no known file extension for mime "
                            "type %s",
                            i,
                            weight.mime_type,
                        )
                    uri = self._fresh_uri(
                        self.config.image_name_template, i, ext=ext
                    )
                entry["uri"] = uri
                self.resources[uri] = weight.data
            if weight.mime_type is not None:
                entry["mimeType"] = weight.mime_type
            out.append(_named(entry, weight))
        return out

    def _samplers(self) -> List[Dict[str, Any]]:
        out = []
        for sampler in self.doc.samplers(self.graph):
            weight = sampler.get(self.graph)
            entry: Dict[str, Any] = {}
            if weight.mag_filter is not None:
                entry["magFilter"] = weight.mag_filter
            if weight.min_filter is not None:
                entry["minFilter"] = weight.min_filter
            if weight.wrap_s != 10497:
                entry["wrapS"] = weight.wrap_s
            if weight.wrap_t != 10497:
                entry["wrapT"] = weight.wrap_t
            out.append(_named(entry, weight))
        return out

    def _textures(self) -> List[Dict[str, Any]]:
        out = []
        for i, texture in enumerate(self.doc.textures(self.graph)):
            entry: Dict[str, Any] = {}
            owner = f"textures[{i}]"
            image = texture.image(self.graph)
            if image is not None:
                entry["source"] = self.index(image, owner)
            sampler = texture.sampler(self.graph)
            if sampler is not None:
                entry["sampler"] = self.index(sampler, owner)
            out.append(_named(entry, texture.get(self.graph)))
        return out

    def _texture_info(
        self, material, slot: MaterialEdge, tex_coord: int, owner: str
    ) -> Optional[Dict[str, Any]]:
        texture = material.texture(self.graph, slot)
        if texture is None:
            return None
        info: Dict[str, Any] = {"index": self.index(texture, owner)}
        if tex_coord:
            info["texCoord"] = tex_coord
        return info

    def _materials(self) -> List[Dict[str, Any]]:
        out = []
        for i, material in enumerate(self.doc.materials(self.graph)):
            w = material.get(self.graph)
            owner = f"materials[{i}]"
            entry: Dict[str, Any] = {}
            pbr: Dict[str, Any] = {}
            if tuple(w.base_color_factor) != (1.0, 1.0, 1.0, 1.0):
                pbr["baseColorFactor"] = _floats(w.base_color_factor)
            info = self._texture_info(
                material,
                MaterialEdge.BASE_COLOR_TEXTURE,
                w.base_color_tex_coord,
                owner,
            )
            if info is not None:
                pbr["baseColorTexture"] = info
            if w.metallic_factor != 1.0:
                pbr["metallicFactor"] = float(w.metallic_factor)
            if w.roughness_factor != 1.0:
                pbr["roughnessFactor"] = float(w.roughness_factor)
            info = self._texture_info(
                material,
                MaterialEdge.METALLIC_ROUGHNESS_TEXTURE,
                w.metallic_roughness_tex_coord,
                owner,
            )
            if info is not None:
                pbr["metallicRoughnessTexture"] = info
            if pbr:
                entry["pbrMetallicRoughness"] = pbr

            info = self._texture_info(
                material, MaterialEdge.NORMAL_TEXTURE, w.normal_tex_coord, owner
            )
            if info is not None:
                if w.normal_scale != 1.0:
                    info["scale"] = float(w.normal_scale)
                entry["normalTexture"] = info
            info = self._texture_info(
                material,
                MaterialEdge.OCCLUSION_TEXTURE,
                w.occlusion_tex_coord,
                owner,
            )
            if info is not None:
                if w.occlusion_strength != 1.0:
                    info["strength"] = float(w.occlusion_strength)
                entry["occlusionTexture"] = info
            info = self._texture_info(
                material, MaterialEdge.EMISSIVE_TEXTURE, w.emissive_tex_coord, owner
            )
            if info is not None:
                entry["emissiveTexture"] = info
            if tuple(w.emissive_factor) != (0.0, 0.0, 0.0):
                entry["emissiveFactor"] = _floats(w.emissive_factor)
            if w.alpha_mode != "OPAQUE":
                entry["alphaMode"] = w.alpha_mode
            if w.alpha_cutoff != 0.5:
                entry["alphaCutoff"] = float(w.alpha_cutoff)
            if w.double_sided:
                entry["doubleSided"] = True
            out.append(_named(entry, w))
        return out

    def _meshes(self) -> List[Dict[str, Any]]:
        out = []
        for i, mesh in enumerate(self.doc.meshes(self.graph)):
            weight = mesh.get(self.graph)
            primitives = []
            for j, primitive in enumerate(mesh.primitives(self.graph)):
                owner = f"meshes[{i}].primitives[{j}]"
                prim_weight = primitive.get(self.graph)
                prim: Dict[str, Any] = {
                    "attributes": {
                        semantic: self.index(accessor, owner)
                        for semantic, accessor in primitive.attributes(
                            self.graph
                        ).items()
                    }
                }
                indices = primitive.indices(self.graph)
                if indices is not None:
                    prim["indices"] = self.index(indices, owner)
                material = primitive.material(self.graph)
                if material is not None:
                    prim["material"] = self.index(material, owner)
                if prim_weight.mode != 4:
                    prim["mode"] = prim_weight.mode
                targets = [
                    {
                        semantic: self.index(accessor, owner)
                        for semantic, accessor in target.attributes(
                            self.graph
                        ).items()
                    }
                    for target in primitive.morph_targets(self.graph)
                ]
                if targets:
                    prim["targets"] = targets
                primitives.append(_named(prim, prim_weight))
            entry: Dict[str, Any] = {"primitives": primitives}
            if weight.weights:
                entry["weights"] = _floats(weight.weights)
            out.append(_named(entry, weight))
        return out

    def _nodes(self) -> List[Dict[str, Any]]:
        out = []
        for i, node in enumerate(self.doc.nodes(self.graph)):
            w = node.get(self.graph)
            owner = f"nodes[{i}]"
            entry: Dict[str, Any] = {}
            children = [
                self.index(child, owner) for child in node.children(self.graph)
            ]
            if children:
                entry["children"] = children
            mesh = node.mesh(self.graph)
            if mesh is not None:
                entry["mesh"] = self.index(mesh, owner)
            skin = node.skin(self.graph)
            if skin is not None:
                entry["skin"] = self.index(skin, owner)
            if w.matrix is not None:
                entry["matrix"] = _floats(w.matrix)
            if tuple(w.translation) != (0.0, 0.0, 0.0):
                entry["translation"] = _floats(w.translation)
            if tuple(w.rotation) != (0.0, 0.0, 0.0, 1.0):
                entry["rotation"] = _floats(w.rotation)
            if tuple(w.scale) != (1.0, 1.0, 1.0):
                entry["scale"] = _floats(w.scale)
            if w.weights:
                entry["weights"] = _floats(w.weights)
            out.append(_named(entry, w))
        return out

    def _scenes(self) -> List[Dict[str, Any]]:
        out = []
        for i, scene in enumerate(self.doc.scenes(self.graph)):
            entry: Dict[str, Any] = {}
            nodes = [
                self.index(node, f"scenes[{i}]") for node in scene.nodes(self.graph)
            ]
            if nodes:
                entry["nodes"] = nodes
            out.append(_named(entry, scene.get(self.graph)))
        return out

    def _skins(self) -> List[Dict[str, Any]]:
        out = []
        for i, skin in enumerate(self.doc.skins(self.graph)):
            owner = f"skins[{i}]"
            entry: Dict[str, Any] = {}
            ibm = skin.inverse_bind_matrices(self.graph)
            if ibm is not None:
                entry["inverseBindMatrices"] = self.index(ibm, owner)
            skeleton = skin.skeleton(self.graph)
            if skeleton is not None:
                entry["skeleton"] = self.index(skeleton, owner)
            entry["joints"] = [
                self.index(joint, owner) for joint in skin.joints(self.graph)
            ]
            out.append(_named(entry, skin.get(self.graph)))
        return out

    def _animations(self) -> List[Dict[str, Any]]:
        out = []
        for i, animation in enumerate(self.doc.animations(self.graph)):
            owner = f"animations[{i}]"
            samplers = animation.samplers(self.graph)
            channels = []
            for channel in animation.channels(self.graph):
                weight = channel.get(self.graph)
                sampler = channel.sampler(self.graph)
                if sampler is None:
                    _log.warning("%s has a channel without a sampler; dropped", owner)
                    continue
                target: Dict[str, Any] = {}
                node = channel.target(self.graph)
                if node is not None:
                    target["node"] = self.index(node, owner)
                target["path"] = weight.path
                channels.append(
                    _named(
                        {"sampler": samplers.index(sampler), "target": target},
                        weight,
                    )
                )
            sampler_entries = []
            for sampler in samplers:
                weight = sampler.get(self.graph)
                entry: Dict[str, Any] = {
                    "input": self.index(sampler.input(self.graph), owner),
                    "output": self.index(sampler.output(self.graph), owner),
                }
                if weight.interpolation != "LINEAR":
                    entry["interpolation"] = weight.interpolation
                sampler_entries.append(_named(entry, weight))
            out.append(
                _named(
                    {"channels": channels, "samplers": sampler_entries},
                    animation.get(self.graph),
                )
            )
        return out


def _ordered(root: Dict[str, Any]) -> Dict[str, Any]:
    ordered = {key: root[key] for key in _TOP_LEVEL_ORDER if key in root}
    ordered.update((k, v) for k, v in root.items() if k not in ordered)
    return ordered


def export_gltf(
    graph: Graph,
    doc: Document,
    registry: ExtensionRegistry,
    config: Optional[IoConfig] = None,
) -> GltfFormat:
    config = config or IoConfig()
    with task("export.json", "Export glTF JSON") as stats:
        exporter = _Exporter(graph, doc, config)
        root = exporter.run()
        ctx = ExportContext(
            graph=graph, doc=doc, json=root, indices=dict(exporter.indices)
        )
        run_export_hooks(registry, ctx)
        root = ctx.json
        used = root.get("extensionsUsed", [])
        required = [
            name for name in doc.get(graph).extensions_required if name in used
        ]
        if required:
            root["extensionsRequired"] = required
        stats["buffers"] = len(root.get("buffers", []))
        stats["accessors"] = len(root.get("accessors", []))
        stats["nodes"] = len(root.get("nodes", []))
        stats["extensions"] = len(used)
        stats["bytes"] = sum(len(v) for v in exporter.resources.values())
    return GltfFormat(json=_ordered(root), resources=exporter.resources)
