"""glTF JSON + resources -> document graph.

Array entries become vertices in array order, so creation order mirrors
the source document and a later export reproduces the same ordering.
Every URI is resolved before the graph is touched; a failure at any stage
rolls the graph back to its state before the import.
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional, Sequence, TypeVar

import numpy as np

from ..accessor.iter import to_iter
from ..accessor.types import (
    DTYPES,
    ComponentType,
    ElementType,
    element_size,
    is_valid_combination,
)
from ..errors import (
    E_ACCESSOR_RANGE,
    E_ACCESSOR_TYPE,
    E_BUFFER_LENGTH,
    E_BUFFER_VIEW_RANGE,
    E_INVALID_REFERENCE,
    E_JSON,
    E_MISSING_BUFFER,
    E_NO_RESOLVER,
    E_RESOLVE,
    GltfError,
    ResolverError,
    import_error,
)
from ..extensions import ExtensionRegistry, ImportContext, run_import_hooks
from ..graph import (
    Accessor,
    Animation,
    AnimationSampler,
    Buffer,
    BufferView,
    Document,
    Graph,
    Image,
    Material,
    MaterialEdge,
    Mesh,
    Node,
    Sampler,
    Scene,
    Skin,
    Texture,
    mime_type_for,
)
from ..logging import get_logger
from ..reporting import get_reporter, task
from .format import GLB_RESOURCE_KEY, GltfFormat
from .resolver import DataUriResolver, Resolver, is_data_uri

__all__ = ["import_gltf", "resolve_resources"]

T = TypeVar("T")

_log = get_logger("import")

_TEXTURE_SLOTS = (
    ("pbrMetallicRoughness", "baseColorTexture", MaterialEdge.BASE_COLOR_TEXTURE),
    (
        "pbrMetallicRoughness",
        "metallicRoughnessTexture",
        MaterialEdge.METALLIC_ROUGHNESS_TEXTURE,
    ),
    (None, "normalTexture", MaterialEdge.NORMAL_TEXTURE),
    (None, "occlusionTexture", MaterialEdge.OCCLUSION_TEXTURE),
    (None, "emissiveTexture", MaterialEdge.EMISSIVE_TEXTURE),
)


def _ref(items: Sequence[T], index: Any, array: str, owner: str) -> T:
    if not isinstance(index, int) or not 0 <= index < len(items):
        raise import_error(
            E_INVALID_REFERENCE,
            f"{owner} references missing {array}[{index}]",
            {"array": array, "index": index, "owner": owner},
        )
    return items[index]


def _referenced_uris(root: Dict[str, Any]) -> List[str]:
    uris: List[str] = []
    for array in ("buffers", "images"):
        for entry in root.get(array, []):
            uri = entry.get("uri")
            if uri is not None and uri not in uris:
                uris.append(uri)
    return uris


async def resolve_resources(
    fmt: GltfFormat, resolver: Optional[Resolver]
) -> Dict[str, bytes]:
    """Fetch every distinct URI not already present in ``fmt.resources``.

    Data URIs are decoded locally; anything else goes to ``resolver``,
    exactly once per URI.
    """
    pending = [u for u in _referenced_uris(fmt.json) if u not in fmt.resources]
    resolved: Dict[str, bytes] = dict(fmt.resources)
    data_resolver = DataUriResolver()
    rep = get_reporter()

    async def fetch(uri: str) -> bytes:
        if is_data_uri(uri):
            data = await data_resolver.resolve(uri)
        elif resolver is None:
            raise ResolverError(
                code=E_NO_RESOLVER,
                message=f"no resolver available for {uri}",
                context={"uri": uri},
            )
        else:
            try:
                data = await resolver.resolve(uri)
            except GltfError:
                raise
            except Exception as exc:
                raise ResolverError(
                    code=E_RESOLVE,
                    message=f"failed to resolve {uri}: {exc}",
                    context={"uri": uri},
                ) from exc
        rep.advance("import.resolve", uri[:64])
        return bytes(data)

    with task(
        "import.resolve", "Resolve resources", total=len(pending)
    ) as stats:
        fetches = [asyncio.ensure_future(fetch(uri)) for uri in pending]
        try:
            results = await asyncio.gather(*fetches)
        except BaseException:
            for fut in fetches:
                fut.cancel()
            await asyncio.gather(*fetches, return_exceptions=True)
            raise
        resolved.update(zip(pending, results))
        stats["uris"] = len(pending)
        stats["bytes"] = sum(len(r) for r in results)
    return resolved


async def import_gltf(
    graph: Graph,
    fmt: GltfFormat,
    resolver: Optional[Resolver],
    registry: ExtensionRegistry,
) -> Document:
    mark = graph.checkpoint()
    try:
        resources = await resolve_resources(fmt, resolver)
        with task("import.graph", "Build document graph") as stats:
            doc = _Importer(graph, fmt.json, resources, registry).run()
            stats["buffers"] = len(doc.buffers(graph))
            stats["accessors"] = len(doc.accessors(graph))
            stats["nodes"] = len(doc.nodes(graph))
            _log.info(
                "imported %d nodes, %d meshes, %d accessors",
                stats["nodes"],
                len(doc.meshes(graph)),
                stats["accessors"],
            )
    except GltfError:
        graph.rollback(mark)
        raise
    except (KeyError, TypeError, ValueError, IndexError, AttributeError) as exc:
        graph.rollback(mark)
        raise import_error(E_JSON, f"malformed document: {exc!r}") from exc
    except BaseException:
        graph.rollback(mark)
        raise
    return doc


class _Importer:
    def __init__(
        self,
        graph: Graph,
        root: Dict[str, Any],
        resources: Dict[str, bytes],
        registry: ExtensionRegistry,
    ) -> None:
        self.graph = graph
        self.root = root
        self.resources = resources
        self.registry = registry
        self.doc = Document.new(graph)

        self.buffers: List[Buffer] = []
        self.views: List[BufferView] = []
        self.accessors: List[Accessor] = []
        self.images: List[Image] = []
        self.samplers: List[Sampler] = []
        self.textures: List[Texture] = []
        self.materials: List[Material] = []
        self.meshes: List[Mesh] = []
        self.nodes: List[Node] = []
        self.scenes: List[Scene] = []
        self.skins: List[Skin] = []
        self.animations: List[Animation] = []

    def run(self) -> Document:
        self._asset()
        self._buffers()
        self._buffer_views()
        self._accessors()
        self._images()
        self._samplers()
        self._textures()
        self._materials()
        self._meshes()
        self._nodes()
        self._scenes()
        self._skins()
        self._animations()
        ctx = ImportContext(
            graph=self.graph,
            doc=self.doc,
            json=self.root,
            handles={
                "buffers": list(self.buffers),
                "bufferViews": list(self.views),
                "accessors": list(self.accessors),
                "images": list(self.images),
                "samplers": list(self.samplers),
                "textures": list(self.textures),
                "materials": list(self.materials),
                "meshes": list(self.meshes),
                "nodes": list(self.nodes),
                "scenes": list(self.scenes),
                "skins": list(self.skins),
                "animations": list(self.animations),
            },
        )
        run_import_hooks(self.registry, ctx)
        return self.doc

    @staticmethod
    def _named(weight: Any, entry: Dict[str, Any]) -> None:
        weight.name = entry.get("name")
        weight.extras = entry.get("extras")

    def _asset(self) -> None:
        asset = self.root.get("asset", {})
        weight = self.doc.get(self.graph)
        weight.generator = asset.get("generator")
        weight.copyright = asset.get("copyright")
        weight.min_version = asset.get("minVersion")
        weight.extras = asset.get("extras")
        weight.extensions_required = list(
            self.root.get("extensionsRequired", [])
        )

    def _buffers(self) -> None:
        bin_bound = False
        for i, entry in enumerate(self.root.get("buffers", [])):
            buffer = self.doc.create_buffer(self.graph)
            weight = buffer.get(self.graph)
            self._named(weight, entry)
            uri = entry.get("uri")
            if uri is None:
                if bin_bound or GLB_RESOURCE_KEY not in self.resources:
                    raise import_error(
                        E_MISSING_BUFFER,
                        f"buffer {i} has no uri and no binary chunk",
                        {"buffer": i},
                    )
                data = self.resources[GLB_RESOURCE_KEY]
                bin_bound = True
            else:
                data = self.resources[uri]
                weight.uri = uri
            length = int(entry["byteLength"])
            if len(data) < length:
                raise import_error(
                    E_BUFFER_LENGTH,
                    f"buffer {i} declares {length} bytes, resource has "
                    f"{len(data)}",
                    {"buffer": i, "byteLength": length, "actual": len(data)},
                )
            weight.data = bytes(data[:length])
            self.buffers.append(buffer)

    def _buffer_views(self) -> None:
        for i, entry in enumerate(self.root.get("bufferViews", [])):
            view = self.doc.create_buffer_view(self.graph)
            weight = view.get(self.graph)
            self._named(weight, entry)
            weight.byte_offset = int(entry.get("byteOffset", 0))
            weight.byte_length = int(entry["byteLength"])
            weight.byte_stride = entry.get("byteStride")
            weight.target = entry.get("target")
            buffer = _ref(self.buffers, entry["buffer"], "buffers", f"bufferViews[{i}]")
            view.set_buffer(self.graph, buffer)
            end = weight.byte_offset + weight.byte_length
            available = buffer.get(self.graph).byte_length
            if end > available:
                raise import_error(
                    E_BUFFER_VIEW_RANGE,
                    f"bufferViews[{i}] ends at {end}, buffer holds "
                    f"{available} bytes",
                    {"bufferView": i, "end": end, "buffer_length": available},
                )
            self.views.append(view)

    def _accessors(self) -> None:
        for i, entry in enumerate(self.root.get("accessors", [])):
            accessor = self.doc.create_accessor(self.graph)
            weight = accessor.get(self.graph)
            self._named(weight, entry)
            weight.component_type = ComponentType(entry["componentType"])
            weight.element_type = ElementType(entry["type"])
            weight.normalized = bool(entry.get("normalized", False))
            weight.count = int(entry["count"])
            weight.byte_offset = int(entry.get("byteOffset", 0))
            if not is_valid_combination(weight.component_type, weight.element_type):
                raise import_error(
                    E_ACCESSOR_TYPE,
                    f"accessors[{i}] pairs {weight.element_type.value} with "
                    f"{weight.component_type.name}",
                    {"accessor": i},
                )
            if "bufferView" in entry:
                view = _ref(
                    self.views, entry["bufferView"], "bufferViews", f"accessors[{i}]"
                )
                accessor.set_buffer_view(self.graph, view)
            if "sparse" in entry:
                self._densify(i, accessor, entry["sparse"])
            elif "bufferView" in entry:
                to_iter(self.graph, accessor)
            self.accessors.append(accessor)

    def _densify(self, i: int, accessor: Accessor, sparse: Dict[str, Any]) -> None:
        """Apply sparse substitutions and store the result as a dense view."""
        weight = accessor.get(self.graph)
        size = element_size(weight.component_type, weight.element_type)
        dense = bytearray(to_iter(self.graph, accessor).slice())
        count = int(sparse["count"])
        owner = f"accessors[{i}].sparse"

        indices_json = sparse["indices"]
        indices_view = _ref(
            self.views, indices_json["bufferView"], "bufferViews", owner
        )
        index_type = ComponentType(indices_json["componentType"])
        index_data = indices_view.read(self.graph) or b""
        index_offset = int(indices_json.get("byteOffset", 0))
        if index_offset + count * index_type.size > len(index_data):
            raise import_error(
                E_ACCESSOR_RANGE,
                f"{owner} indices exceed their buffer view",
                {"accessor": i},
            )
        indices = np.frombuffer(
            index_data, dtype=DTYPES[index_type], count=count, offset=index_offset
        )

        values_json = sparse["values"]
        values_view = _ref(
            self.views, values_json["bufferView"], "bufferViews", owner
        )
        values = values_view.read(self.graph) or b""
        values_offset = int(values_json.get("byteOffset", 0))
        if values_offset + count * size > len(values):
            raise import_error(
                E_ACCESSOR_RANGE,
                f"{owner} values exceed their buffer view",
                {"accessor": i},
            )

        for k, target in enumerate(indices.tolist()):
            if target >= weight.count:
                raise import_error(
                    E_ACCESSOR_RANGE,
                    f"{owner} index {target} >= count {weight.count}",
                    {"accessor": i, "index": target},
                )
            src = values_offset + k * size
            dense[target * size : (target + 1) * size] = values[src : src + size]

        buffer = values_view.buffer(self.graph)
        view = self.doc.create_buffer_view(self.graph)
        view_weight = view.get(self.graph)
        view_weight.byte_offset = buffer.append(self.graph, bytes(dense))
        view_weight.byte_length = len(dense)
        view.set_buffer(self.graph, buffer)
        accessor.set_buffer_view(self.graph, view)
        weight.byte_offset = 0

    def _images(self) -> None:
        for i, entry in enumerate(self.root.get("images", [])):
            image = self.doc.create_image(self.graph)
            weight = image.get(self.graph)
            self._named(weight, entry)
            weight.mime_type = entry.get("mimeType")
            if "bufferView" in entry:
                view = _ref(
                    self.views, entry["bufferView"], "bufferViews", f"images[{i}]"
                )
                image.set_buffer_view(self.graph, view)
            elif "uri" in entry:
                uri = entry["uri"]
                weight.uri = uri
                weight.data = self.resources[uri]
                if weight.mime_type is None and not is_data_uri(uri):
                    weight.mime_type = mime_type_for(uri)
            self.images.append(image)

    def _samplers(self) -> None:
        for entry in self.root.get("samplers", []):
            sampler = self.doc.create_sampler(self.graph)
            weight = sampler.get(self.graph)
            self._named(weight, entry)
            weight.mag_filter = entry.get("magFilter")
            weight.min_filter = entry.get("minFilter")
            weight.wrap_s = entry.get("wrapS", 10497)
            weight.wrap_t = entry.get("wrapT", 10497)
            self.samplers.append(sampler)

    def _textures(self) -> None:
        for i, entry in enumerate(self.root.get("textures", [])):
            texture = self.doc.create_texture(self.graph)
            self._named(texture.get(self.graph), entry)
            owner = f"textures[{i}]"
            if "source" in entry:
                texture.set_image(
                    self.graph, _ref(self.images, entry["source"], "images", owner)
                )
            if "sampler" in entry:
                texture.set_sampler(
                    self.graph,
                    _ref(self.samplers, entry["sampler"], "samplers", owner),
                )
            self.textures.append(texture)

    def _materials(self) -> None:
        for i, entry in enumerate(self.root.get("materials", [])):
            material = self.doc.create_material(self.graph)
            weight = material.get(self.graph)
            self._named(weight, entry)
            pbr = entry.get("pbrMetallicRoughness", {})
            weight.base_color_factor = tuple(
                float(v) for v in pbr.get("baseColorFactor", (1.0, 1.0, 1.0, 1.0))
            )
            weight.metallic_factor = float(pbr.get("metallicFactor", 1.0))
            weight.roughness_factor = float(pbr.get("roughnessFactor", 1.0))
            weight.emissive_factor = tuple(
                float(v) for v in entry.get("emissiveFactor", (0.0, 0.0, 0.0))
            )
            weight.alpha_mode = entry.get("alphaMode", "OPAQUE")
            weight.alpha_cutoff = float(entry.get("alphaCutoff", 0.5))
            weight.double_sided = bool(entry.get("doubleSided", False))

            owner = f"materials[{i}]"
            for parent, key, slot in _TEXTURE_SLOTS:
                info = (pbr if parent else entry).get(key)
                if info is None:
                    continue
                material.set_texture(
                    self.graph,
                    slot,
                    _ref(self.textures, info["index"], "textures", owner),
                )
                tex_coord = int(info.get("texCoord", 0))
                if slot is MaterialEdge.BASE_COLOR_TEXTURE:
                    weight.base_color_tex_coord = tex_coord
                elif slot is MaterialEdge.METALLIC_ROUGHNESS_TEXTURE:
                    weight.metallic_roughness_tex_coord = tex_coord
                elif slot is MaterialEdge.NORMAL_TEXTURE:
                    weight.normal_tex_coord = tex_coord
                    weight.normal_scale = float(info.get("scale", 1.0))
                elif slot is MaterialEdge.OCCLUSION_TEXTURE:
                    weight.occlusion_tex_coord = tex_coord
                    weight.occlusion_strength = float(info.get("strength", 1.0))
                else:
                    weight.emissive_tex_coord = tex_coord
            self.materials.append(material)

    def _meshes(self) -> None:
        for i, entry in enumerate(self.root.get("meshes", [])):
            mesh = self.doc.create_mesh(self.graph)
            weight = mesh.get(self.graph)
            self._named(weight, entry)
            weight.weights = [float(v) for v in entry.get("weights", [])]
            for j, prim_json in enumerate(entry.get("primitives", [])):
                owner = f"meshes[{i}].primitives[{j}]"
                primitive = mesh.create_primitive(self.graph)
                prim_weight = primitive.get(self.graph)
                self._named(prim_weight, prim_json)
                prim_weight.mode = int(prim_json.get("mode", 4))
                for semantic, index in prim_json.get("attributes", {}).items():
                    primitive.set_attribute(
                        self.graph,
                        semantic,
                        _ref(self.accessors, index, "accessors", owner),
                    )
                if "indices" in prim_json:
                    primitive.set_indices(
                        self.graph,
                        _ref(self.accessors, prim_json["indices"], "accessors", owner),
                    )
                if "material" in prim_json:
                    primitive.set_material(
                        self.graph,
                        _ref(
                            self.materials, prim_json["material"], "materials", owner
                        ),
                    )
                for target_json in prim_json.get("targets", []):
                    target = primitive.create_morph_target(self.graph)
                    for semantic, index in target_json.items():
                        target.set_attribute(
                            self.graph,
                            semantic,
                            _ref(self.accessors, index, "accessors", owner),
                        )
            self.meshes.append(mesh)

    def _nodes(self) -> None:
        entries = self.root.get("nodes", [])
        for entry in entries:
            node = self.doc.create_node(self.graph)
            weight = node.get(self.graph)
            self._named(weight, entry)
            if "matrix" in entry:
                weight.matrix = tuple(float(v) for v in entry["matrix"])
            weight.translation = tuple(
                float(v) for v in entry.get("translation", (0.0, 0.0, 0.0))
            )
            weight.rotation = tuple(
                float(v) for v in entry.get("rotation", (0.0, 0.0, 0.0, 1.0))
            )
            weight.scale = tuple(float(v) for v in entry.get("scale", (1.0, 1.0, 1.0)))
            weight.weights = [float(v) for v in entry.get("weights", [])]
            self.nodes.append(node)
        for i, (node, entry) in enumerate(zip(self.nodes, entries)):
            owner = f"nodes[{i}]"
            for child in entry.get("children", []):
                node.add_child(self.graph, _ref(self.nodes, child, "nodes", owner))
            if "mesh" in entry:
                node.set_mesh(
                    self.graph, _ref(self.meshes, entry["mesh"], "meshes", owner)
                )

    def _scenes(self) -> None:
        for i, entry in enumerate(self.root.get("scenes", [])):
            scene = self.doc.create_scene(self.graph)
            self._named(scene.get(self.graph), entry)
            for index in entry.get("nodes", []):
                scene.add_node(
                    self.graph, _ref(self.nodes, index, "nodes", f"scenes[{i}]")
                )
            self.scenes.append(scene)
        if "scene" in self.root:
            self.doc.set_default_scene(
                self.graph, _ref(self.scenes, self.root["scene"], "scenes", "scene")
            )

    def _skins(self) -> None:
        for i, entry in enumerate(self.root.get("skins", [])):
            owner = f"skins[{i}]"
            skin = self.doc.create_skin(self.graph)
            self._named(skin.get(self.graph), entry)
            if "inverseBindMatrices" in entry:
                skin.set_inverse_bind_matrices(
                    self.graph,
                    _ref(
                        self.accessors,
                        entry["inverseBindMatrices"],
                        "accessors",
                        owner,
                    ),
                )
            if "skeleton" in entry:
                skin.set_skeleton(
                    self.graph, _ref(self.nodes, entry["skeleton"], "nodes", owner)
                )
            for joint in entry.get("joints", []):
                skin.add_joint(self.graph, _ref(self.nodes, joint, "nodes", owner))
            self.skins.append(skin)
        for i, entry in enumerate(self.root.get("nodes", [])):
            if "skin" in entry:
                self.nodes[i].set_skin(
                    self.graph,
                    _ref(self.skins, entry["skin"], "skins", f"nodes[{i}]"),
                )

    def _animations(self) -> None:
        for i, entry in enumerate(self.root.get("animations", [])):
            owner = f"animations[{i}]"
            animation = self.doc.create_animation(self.graph)
            self._named(animation.get(self.graph), entry)
            samplers: List[AnimationSampler] = []
            for sampler_json in entry.get("samplers", []):
                sampler = animation.create_sampler(self.graph)
                weight = sampler.get(self.graph)
                self._named(weight, sampler_json)
                weight.interpolation = sampler_json.get("interpolation", "LINEAR")
                sampler.set_input(
                    self.graph,
                    _ref(self.accessors, sampler_json["input"], "accessors", owner),
                )
                sampler.set_output(
                    self.graph,
                    _ref(self.accessors, sampler_json["output"], "accessors", owner),
                )
                samplers.append(sampler)
            for channel_json in entry.get("channels", []):
                channel = animation.create_channel(self.graph)
                weight = channel.get(self.graph)
                self._named(weight, channel_json)
                target = channel_json["target"]
                weight.path = target["path"]
                channel.set_sampler(
                    self.graph,
                    _ref(samplers, channel_json["sampler"], "samplers", owner),
                )
                if "node" in target:
                    channel.set_target(
                        self.graph, _ref(self.nodes, target["node"], "nodes", owner)
                    )
            self.animations.append(animation)
