"""Meshes, primitives and morph targets."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from .buffer import Accessor
from .property import Property
from .store import Graph
from .texture import Material
from .weights import NamedWeight

__all__ = [
    "AttributeEdge",
    "MorphTargetEdge",
    "MeshEdge",
    "MeshWeight",
    "Mesh",
    "PrimitiveEdge",
    "PrimitiveWeight",
    "Primitive",
    "MorphTargetWeight",
    "MorphTarget",
]


@dataclass(frozen=True)
class AttributeEdge:
    semantic: str


@dataclass(frozen=True)
class MorphTargetEdge:
    index: int


class _Attributes:
    """Semantic-keyed accessor edges shared by primitives and morph targets."""

    def attributes(self, graph: Graph) -> Dict[str, Accessor]:
        return {
            edge.weight.semantic: Accessor(edge.target)
            for edge in graph.edges_out(self.index)  # type: ignore[attr-defined]
            if isinstance(edge.weight, AttributeEdge)
        }

    def attribute(self, graph: Graph, semantic: str) -> Optional[Accessor]:
        return self.find_edge_target(  # type: ignore[attr-defined]
            graph, AttributeEdge(semantic), Accessor
        )

    def set_attribute(
        self, graph: Graph, semantic: str, accessor: Optional[Accessor]
    ) -> None:
        self.set_edge_target(  # type: ignore[attr-defined]
            graph, AttributeEdge(semantic), accessor
        )


@dataclass(slots=True)
class MorphTargetWeight:
    pass


class MorphTarget(_Attributes, Property):
    weight_type = MorphTargetWeight


class PrimitiveEdge(Enum):
    INDICES = "primitive/indices"
    MATERIAL = "primitive/material"


@dataclass(slots=True)
class PrimitiveWeight(NamedWeight):
    mode: int = 4


class Primitive(_Attributes, Property):
    weight_type = PrimitiveWeight

    def indices(self, graph: Graph) -> Optional[Accessor]:
        return self.find_edge_target(graph, PrimitiveEdge.INDICES, Accessor)

    def set_indices(self, graph: Graph, accessor: Optional[Accessor]) -> None:
        self.set_edge_target(graph, PrimitiveEdge.INDICES, accessor)

    def material(self, graph: Graph) -> Optional[Material]:
        return self.find_edge_target(graph, PrimitiveEdge.MATERIAL, Material)

    def set_material(self, graph: Graph, material: Optional[Material]) -> None:
        self.set_edge_target(graph, PrimitiveEdge.MATERIAL, material)

    def morph_targets(self, graph: Graph) -> List[MorphTarget]:
        edges = [
            edge
            for edge in graph.edges_out(self.index)
            if isinstance(edge.weight, MorphTargetEdge)
        ]
        edges.sort(key=lambda e: e.weight.index)
        return [MorphTarget(edge.target) for edge in edges]

    def create_morph_target(self, graph: Graph) -> MorphTarget:
        index = len(self.morph_targets(graph))
        target = MorphTarget.new(graph)
        self.add_edge_target(graph, MorphTargetEdge(index), target)
        return target


class MeshEdge(Enum):
    PRIMITIVE = "mesh/primitive"


@dataclass(slots=True)
class MeshWeight(NamedWeight):
    weights: List[float] = field(default_factory=list)


class Mesh(Property):
    weight_type = MeshWeight

    def primitives(self, graph: Graph) -> List[Primitive]:
        return self.edge_targets(graph, MeshEdge.PRIMITIVE, Primitive)

    def create_primitive(self, graph: Graph) -> Primitive:
        primitive = Primitive.new(graph)
        self.add_edge_target(graph, MeshEdge.PRIMITIVE, primitive)
        return primitive

    def add_primitive(self, graph: Graph, primitive: Primitive) -> None:
        self.add_edge_target(graph, MeshEdge.PRIMITIVE, primitive)

    def remove_primitive(self, graph: Graph, primitive: Primitive) -> None:
        self.remove_edge_target(graph, MeshEdge.PRIMITIVE, primitive)
