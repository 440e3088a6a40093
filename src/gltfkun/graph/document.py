"""Document root: owns every top-level entity through typed edges.

Only entities reachable from the document (directly, or through the mesh,
primitive and animation containers) are exported. Creation through the
document records ownership, so ``doc.nodes(graph)`` lists nodes in
creation order.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Type, TypeVar

from ..accessor.iter import pack_elements
from ..accessor.types import ComponentType, ElementType
from .animation import Animation
from .buffer import Accessor, Buffer, BufferView
from .mesh import Mesh
from .property import Property
from .scene import Node, Scene, Skin
from .store import Graph
from .texture import Image, Material, Sampler, Texture
from .weights import NamedWeight

__all__ = ["DocumentEdge", "DocumentWeight", "Document"]

P = TypeVar("P", bound=Property)


class DocumentEdge(Enum):
    ACCESSOR = "document/accessor"
    ANIMATION = "document/animation"
    BUFFER = "document/buffer"
    BUFFER_VIEW = "document/bufferView"
    IMAGE = "document/image"
    MATERIAL = "document/material"
    MESH = "document/mesh"
    NODE = "document/node"
    SAMPLER = "document/sampler"
    SCENE = "document/scene"
    SKIN = "document/skin"
    TEXTURE = "document/texture"
    DEFAULT_SCENE = "document/defaultScene"


@dataclass(slots=True)
class DocumentWeight(NamedWeight):
    generator: Optional[str] = None
    copyright: Optional[str] = None
    min_version: Optional[str] = None
    # Extension names the source document listed as required
    extensions_required: List[str] = field(default_factory=list)


class Document(Property):
    weight_type = DocumentWeight

    def _create(self, graph: Graph, kind: Type[P], role: DocumentEdge) -> P:
        handle = kind.new(graph)
        self.add_edge_target(graph, role, handle)
        return handle

    # Scenes
    def create_scene(self, graph: Graph) -> Scene:
        return self._create(graph, Scene, DocumentEdge.SCENE)

    def scenes(self, graph: Graph) -> List[Scene]:
        return self.edge_targets(graph, DocumentEdge.SCENE, Scene)

    def default_scene(self, graph: Graph) -> Optional[Scene]:
        return self.find_edge_target(graph, DocumentEdge.DEFAULT_SCENE, Scene)

    def set_default_scene(self, graph: Graph, scene: Optional[Scene]) -> None:
        self.set_edge_target(graph, DocumentEdge.DEFAULT_SCENE, scene)

    # Nodes and meshes
    def create_node(self, graph: Graph) -> Node:
        return self._create(graph, Node, DocumentEdge.NODE)

    def nodes(self, graph: Graph) -> List[Node]:
        return self.edge_targets(graph, DocumentEdge.NODE, Node)

    def create_mesh(self, graph: Graph) -> Mesh:
        return self._create(graph, Mesh, DocumentEdge.MESH)

    def meshes(self, graph: Graph) -> List[Mesh]:
        return self.edge_targets(graph, DocumentEdge.MESH, Mesh)

    def create_skin(self, graph: Graph) -> Skin:
        return self._create(graph, Skin, DocumentEdge.SKIN)

    def skins(self, graph: Graph) -> List[Skin]:
        return self.edge_targets(graph, DocumentEdge.SKIN, Skin)

    # Binary data
    def create_buffer(self, graph: Graph) -> Buffer:
        return self._create(graph, Buffer, DocumentEdge.BUFFER)

    def buffers(self, graph: Graph) -> List[Buffer]:
        return self.edge_targets(graph, DocumentEdge.BUFFER, Buffer)

    def create_buffer_view(self, graph: Graph) -> BufferView:
        return self._create(graph, BufferView, DocumentEdge.BUFFER_VIEW)

    def buffer_views(self, graph: Graph) -> List[BufferView]:
        return self.edge_targets(graph, DocumentEdge.BUFFER_VIEW, BufferView)

    def create_accessor(self, graph: Graph) -> Accessor:
        return self._create(graph, Accessor, DocumentEdge.ACCESSOR)

    def accessors(self, graph: Graph) -> List[Accessor]:
        return self.edge_targets(graph, DocumentEdge.ACCESSOR, Accessor)

    # Materials
    def create_image(self, graph: Graph) -> Image:
        return self._create(graph, Image, DocumentEdge.IMAGE)

    def images(self, graph: Graph) -> List[Image]:
        return self.edge_targets(graph, DocumentEdge.IMAGE, Image)

    def create_sampler(self, graph: Graph) -> Sampler:
        return self._create(graph, Sampler, DocumentEdge.SAMPLER)

    def samplers(self, graph: Graph) -> List[Sampler]:
        return self.edge_targets(graph, DocumentEdge.SAMPLER, Sampler)

    def create_texture(self, graph: Graph) -> Texture:
        return self._create(graph, Texture, DocumentEdge.TEXTURE)

    def textures(self, graph: Graph) -> List[Texture]:
        return self.edge_targets(graph, DocumentEdge.TEXTURE, Texture)

    def create_material(self, graph: Graph) -> Material:
        return self._create(graph, Material, DocumentEdge.MATERIAL)

    def materials(self, graph: Graph) -> List[Material]:
        return self.edge_targets(graph, DocumentEdge.MATERIAL, Material)

    # Animation
    def create_animation(self, graph: Graph) -> Animation:
        return self._create(graph, Animation, DocumentEdge.ANIMATION)

    def animations(self, graph: Graph) -> List[Animation]:
        return self.edge_targets(graph, DocumentEdge.ANIMATION, Animation)

    # Convenience
    def create_accessor_from(
        self,
        graph: Graph,
        buffer: Buffer,
        values,
        component_type,
        element_type,
        *,
        normalized: bool = False,
        target: Optional[int] = None,
    ) -> Accessor:
        """Pack ``values`` into ``buffer`` behind a new view and accessor."""
        data = pack_elements(values, component_type, element_type)
        view = self.create_buffer_view(graph)
        view_weight = view.get(graph)
        view_weight.byte_offset = buffer.append(graph, data)
        view_weight.byte_length = len(data)
        view_weight.target = target
        view.set_buffer(graph, buffer)

        accessor = self.create_accessor(graph)
        weight = accessor.get(graph)
        weight.component_type = ComponentType(component_type)
        weight.element_type = ElementType(element_type)
        weight.normalized = normalized
        weight.count = len(data) // weight.element_size
        accessor.set_buffer_view(graph, view)
        return accessor
