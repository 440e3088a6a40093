"""Typed handles over graph vertices.

A handle is a frozen dataclass wrapping a vertex id. Subclasses bind a
payload type via ``weight_type``; dereferencing a handle whose vertex holds
a different payload raises :class:`HandleError`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, List, Optional, Type, TypeVar

from ..errors import E_HANDLE_KIND, HandleError
from .store import Graph

__all__ = ["Property", "ExtensionEdge", "OtherEdge"]

P = TypeVar("P", bound="Property")


@dataclass(frozen=True)
class ExtensionEdge:
    """Attachment of an extension payload, keyed by extension name."""

    name: str


@dataclass(frozen=True)
class OtherEdge:
    name: str


@dataclass(frozen=True)
class Property:
    index: int

    weight_type: ClassVar[type] = object

    @classmethod
    def new(cls: Type[P], graph: Graph, weight: Any = None) -> P:
        if weight is None:
            weight = cls.weight_type()
        return cls(graph.add_vertex(weight))

    @classmethod
    def try_from(cls: Type[P], graph: Graph, index: int) -> Optional[P]:
        if index in graph and isinstance(graph.vertex(index), cls.weight_type):
            return cls(index)
        return None

    def get(self, graph: Graph) -> Any:
        weight = graph.vertex(self.index)
        if not isinstance(weight, self.weight_type):
            raise HandleError(
                code=E_HANDLE_KIND,
                message=(
                    f"{type(self).__name__} handle points at "
                    f"{type(weight).__name__}"
                ),
                context={"vertex": self.index},
            )
        return weight

    def try_get(self, graph: Graph) -> Optional[Any]:
        if self.index not in graph:
            return None
        weight = graph.vertex(self.index)
        return weight if isinstance(weight, self.weight_type) else None

    def set(self, graph: Graph, weight: Any) -> None:
        self.get(graph)
        graph.replace_vertex(self.index, weight)

    def remove(self, graph: Graph) -> None:
        self.get(graph)
        graph.remove_vertex(self.index)

    # Edge helpers -------------------------------------------------------------
    def find_edge_target(
        self, graph: Graph, role: Any, kind: Type[P]
    ) -> Optional[P]:
        for edge in graph.edges_out(self.index):
            if edge.weight == role:
                return kind(edge.target)
        return None

    def set_edge_target(
        self, graph: Graph, role: Any, target: Optional[Property]
    ) -> None:
        for edge in graph.edges_out(self.index):
            if edge.weight == role:
                graph.remove_edge(edge.id)
        if target is not None:
            graph.add_edge(self.index, target.index, role)

    def edge_targets(self, graph: Graph, role: Any, kind: Type[P]) -> List[P]:
        """All targets of ``role``, ordered by vertex id (creation order)."""
        targets = sorted(
            edge.target
            for edge in graph.edges_out(self.index)
            if edge.weight == role
        )
        return [kind(index) for index in targets]

    def add_edge_target(self, graph: Graph, role: Any, target: Property) -> None:
        graph.add_edge(self.index, target.index, role)

    def remove_edge_target(
        self, graph: Graph, role: Any, target: Property
    ) -> None:
        for edge in graph.edges_out(self.index):
            if edge.weight == role and edge.target == target.index:
                graph.remove_edge(edge.id)

    def edge_sources(self, graph: Graph, role: Any, kind: Type[P]) -> List[P]:
        return [
            kind(edge.source)
            for edge in graph.edges_in(self.index)
            if edge.weight == role
        ]

    # Extensions ---------------------------------------------------------------
    def get_extension(self, graph: Graph, ext: Type[P]) -> Optional[P]:
        return self.find_edge_target(graph, ExtensionEdge(ext.name), ext)

    def create_extension(self, graph: Graph, ext: Type[P]) -> P:
        """Return the attached ``ext`` payload, creating it if absent."""
        existing = self.get_extension(graph, ext)
        if existing is not None:
            return existing
        created = ext.new(graph)
        self.add_edge_target(graph, ExtensionEdge(ext.name), created)
        return created

    def remove_extension(self, graph: Graph, ext: Type[P]) -> None:
        existing = self.get_extension(graph, ext)
        if existing is not None:
            existing.remove(graph)

    def extension_names(self, graph: Graph) -> List[str]:
        return [
            edge.weight.name
            for edge in graph.edges_out(self.index)
            if isinstance(edge.weight, ExtensionEdge)
        ]
