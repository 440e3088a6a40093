"""Directed multigraph holding every document entity and relationship.

Vertices and edges are stored in insertion-ordered tables keyed by
monotonically increasing integer ids. Ids are never reused, so id order is
creation order. Each vertex keeps its outgoing and incoming edge ids in
insertion order; parent lookups scan incoming edges instead of storing
back-references.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Tuple

from ..errors import E_STALE_HANDLE, HandleError, internal_error

__all__ = ["Graph", "EdgeRef", "GraphMark"]


@dataclass(slots=True, frozen=True)
class EdgeRef:
    id: int
    source: int
    target: int
    weight: Any


@dataclass(slots=True, frozen=True)
class GraphMark:
    next_vertex: int
    next_edge: int


class Graph:
    def __init__(self) -> None:
        self._vertices: Dict[int, Any] = {}
        self._edges: Dict[int, EdgeRef] = {}
        self._outgoing: Dict[int, List[int]] = {}
        self._incoming: Dict[int, List[int]] = {}
        self._next_vertex = 0
        self._next_edge = 0

    def __len__(self) -> int:
        return len(self._vertices)

    def __contains__(self, index: int) -> bool:
        return index in self._vertices

    @property
    def edge_count(self) -> int:
        return len(self._edges)

    # Vertices -----------------------------------------------------------------
    def add_vertex(self, weight: Any) -> int:
        index = self._next_vertex
        self._next_vertex += 1
        self._vertices[index] = weight
        self._outgoing[index] = []
        self._incoming[index] = []
        return index

    def vertex(self, index: int) -> Any:
        try:
            return self._vertices[index]
        except KeyError:
            raise HandleError(
                code=E_STALE_HANDLE,
                message=f"vertex {index} does not exist",
                context={"vertex": index},
            ) from None

    def replace_vertex(self, index: int, weight: Any) -> Any:
        old = self.vertex(index)
        self._vertices[index] = weight
        return old

    def vertices(self) -> Iterator[Tuple[int, Any]]:
        return iter(list(self._vertices.items()))

    def remove_vertex(self, index: int) -> Any:
        weight = self.vertex(index)
        for eid in list(self._outgoing[index]) + list(self._incoming[index]):
            if eid in self._edges:
                self.remove_edge(eid)
        del self._outgoing[index]
        del self._incoming[index]
        del self._vertices[index]
        return weight

    # Edges --------------------------------------------------------------------
    def add_edge(self, source: int, target: int, weight: Any) -> int:
        self.vertex(source)
        self.vertex(target)
        eid = self._next_edge
        self._next_edge += 1
        self._edges[eid] = EdgeRef(eid, source, target, weight)
        self._outgoing[source].append(eid)
        self._incoming[target].append(eid)
        return eid

    def remove_edge(self, eid: int) -> None:
        edge = self._edges.pop(eid)
        self._outgoing[edge.source].remove(eid)
        self._incoming[edge.target].remove(eid)

    def edges_out(self, index: int) -> List[EdgeRef]:
        self.vertex(index)
        return [self._edges[eid] for eid in self._outgoing[index]]

    def edges_in(self, index: int) -> List[EdgeRef]:
        self.vertex(index)
        return [self._edges[eid] for eid in self._incoming[index]]

    # Transactions -------------------------------------------------------------
    def checkpoint(self) -> GraphMark:
        return GraphMark(self._next_vertex, self._next_edge)

    def rollback(self, mark: GraphMark) -> None:
        """Drop every vertex and edge created after ``mark``.

        Edges created before the mark that touch newer vertices go with
        them. Payload mutations of older vertices are not undone.
        """
        if mark.next_vertex > self._next_vertex or mark.next_edge > self._next_edge:
            raise internal_error(
                "rollback mark is newer than the graph",
                {"vertex": mark.next_vertex, "edge": mark.next_edge},
            )
        for eid in [e for e in self._edges if e >= mark.next_edge]:
            self.remove_edge(eid)
        for index in [v for v in self._vertices if v >= mark.next_vertex]:
            self.remove_vertex(index)
