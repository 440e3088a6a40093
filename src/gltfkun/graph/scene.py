"""Scenes, the node hierarchy and skins."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from .buffer import Accessor
from .mesh import Mesh
from .property import Property
from .store import Graph
from .weights import NamedWeight

__all__ = [
    "SceneEdge",
    "SceneWeight",
    "Scene",
    "NodeEdge",
    "NodeWeight",
    "Node",
    "JointEdge",
    "SkinEdge",
    "SkinWeight",
    "Skin",
]


class SceneEdge(Enum):
    NODE = "scene/node"


@dataclass(slots=True)
class SceneWeight(NamedWeight):
    pass


class Scene(Property):
    weight_type = SceneWeight

    def nodes(self, graph: Graph) -> List["Node"]:
        return self.edge_targets(graph, SceneEdge.NODE, Node)

    def add_node(self, graph: Graph, node: "Node") -> None:
        self.add_edge_target(graph, SceneEdge.NODE, node)

    def remove_node(self, graph: Graph, node: "Node") -> None:
        self.remove_edge_target(graph, SceneEdge.NODE, node)


class NodeEdge(Enum):
    CHILD = "node/child"
    MESH = "node/mesh"
    SKIN = "node/skin"


@dataclass(slots=True)
class NodeWeight(NamedWeight):
    translation: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    rotation: Tuple[float, float, float, float] = (0.0, 0.0, 0.0, 1.0)
    scale: Tuple[float, float, float] = (1.0, 1.0, 1.0)
    # Column-major 4x4; kept verbatim, never decomposed
    matrix: Optional[Tuple[float, ...]] = None
    weights: List[float] = field(default_factory=list)


class Node(Property):
    weight_type = NodeWeight

    def children(self, graph: Graph) -> List["Node"]:
        return self.edge_targets(graph, NodeEdge.CHILD, Node)

    def add_child(self, graph: Graph, child: "Node") -> None:
        """Attach ``child``, detaching it from any previous parent first."""
        for edge in graph.edges_in(child.index):
            if edge.weight == NodeEdge.CHILD:
                graph.remove_edge(edge.id)
        self.add_edge_target(graph, NodeEdge.CHILD, child)

    def remove_child(self, graph: Graph, child: "Node") -> None:
        self.remove_edge_target(graph, NodeEdge.CHILD, child)

    def parent(self, graph: Graph) -> Optional["Node"]:
        parents = self.edge_sources(graph, NodeEdge.CHILD, Node)
        return parents[0] if parents else None

    def mesh(self, graph: Graph) -> Optional[Mesh]:
        return self.find_edge_target(graph, NodeEdge.MESH, Mesh)

    def set_mesh(self, graph: Graph, mesh: Optional[Mesh]) -> None:
        self.set_edge_target(graph, NodeEdge.MESH, mesh)

    def skin(self, graph: Graph) -> Optional["Skin"]:
        return self.find_edge_target(graph, NodeEdge.SKIN, Skin)

    def set_skin(self, graph: Graph, skin: Optional["Skin"]) -> None:
        self.set_edge_target(graph, NodeEdge.SKIN, skin)


@dataclass(frozen=True)
class JointEdge:
    index: int


class SkinEdge(Enum):
    INVERSE_BIND_MATRICES = "skin/inverseBindMatrices"
    SKELETON = "skin/skeleton"


@dataclass(slots=True)
class SkinWeight(NamedWeight):
    pass


class Skin(Property):
    weight_type = SkinWeight

    def inverse_bind_matrices(self, graph: Graph) -> Optional[Accessor]:
        return self.find_edge_target(
            graph, SkinEdge.INVERSE_BIND_MATRICES, Accessor
        )

    def set_inverse_bind_matrices(
        self, graph: Graph, accessor: Optional[Accessor]
    ) -> None:
        self.set_edge_target(graph, SkinEdge.INVERSE_BIND_MATRICES, accessor)

    def skeleton(self, graph: Graph) -> Optional[Node]:
        return self.find_edge_target(graph, SkinEdge.SKELETON, Node)

    def set_skeleton(self, graph: Graph, node: Optional[Node]) -> None:
        self.set_edge_target(graph, SkinEdge.SKELETON, node)

    def joints(self, graph: Graph) -> List[Node]:
        edges = [
            edge
            for edge in graph.edges_out(self.index)
            if isinstance(edge.weight, JointEdge)
        ]
        edges.sort(key=lambda e: e.weight.index)
        return [Node(edge.target) for edge in edges]

    def add_joint(self, graph: Graph, node: Node) -> None:
        index = len(self.joints(graph))
        self.add_edge_target(graph, JointEdge(index), node)
