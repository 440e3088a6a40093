"""Binary storage entities: buffers, buffer views and accessors."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..accessor.types import ComponentType, ElementType, element_size
from ..errors import E_BUFFER_VIEW_RANGE, GltfError
from .property import Property
from .store import Graph
from .weights import NamedWeight

__all__ = [
    "BufferWeight",
    "Buffer",
    "BufferViewEdge",
    "BufferViewWeight",
    "BufferView",
    "AccessorEdge",
    "AccessorWeight",
    "Accessor",
]


@dataclass(slots=True)
class BufferWeight(NamedWeight):
    uri: Optional[str] = None
    data: bytes = b""

    @property
    def byte_length(self) -> int:
        return len(self.data)


class Buffer(Property):
    weight_type = BufferWeight

    def append(self, graph: Graph, data: bytes, alignment: int = 4) -> int:
        """Append ``data`` after padding to ``alignment``; return its offset."""
        weight = self.get(graph)
        pad = (-len(weight.data)) % alignment
        offset = len(weight.data) + pad
        weight.data = weight.data + b"\x00" * pad + bytes(data)
        return offset


class BufferViewEdge(Enum):
    BUFFER = "bufferView/buffer"


@dataclass(slots=True)
class BufferViewWeight(NamedWeight):
    byte_offset: int = 0
    byte_length: int = 0
    byte_stride: Optional[int] = None
    target: Optional[int] = None


class BufferView(Property):
    weight_type = BufferViewWeight

    def buffer(self, graph: Graph) -> Optional[Buffer]:
        return self.find_edge_target(graph, BufferViewEdge.BUFFER, Buffer)

    def set_buffer(self, graph: Graph, buffer: Optional[Buffer]) -> None:
        self.set_edge_target(graph, BufferViewEdge.BUFFER, buffer)

    def read(self, graph: Graph) -> Optional[bytes]:
        """Return the viewed bytes, or None when no buffer is attached."""
        buffer = self.buffer(graph)
        if buffer is None:
            return None
        weight = self.get(graph)
        data = buffer.get(graph).data
        end = weight.byte_offset + weight.byte_length
        if end > len(data):
            raise GltfError(
                code=E_BUFFER_VIEW_RANGE,
                message=(
                    f"buffer view range {weight.byte_offset}..{end} exceeds "
                    f"buffer length {len(data)}"
                ),
                context={"vertex": self.index},
            )
        return data[weight.byte_offset : end]


class AccessorEdge(Enum):
    BUFFER_VIEW = "accessor/bufferView"


@dataclass(slots=True)
class AccessorWeight(NamedWeight):
    component_type: ComponentType = ComponentType.F32
    element_type: ElementType = ElementType.SCALAR
    normalized: bool = False
    count: int = 0
    byte_offset: int = 0

    @property
    def element_size(self) -> int:
        return element_size(self.component_type, self.element_type)


class Accessor(Property):
    weight_type = AccessorWeight

    def buffer_view(self, graph: Graph) -> Optional[BufferView]:
        return self.find_edge_target(graph, AccessorEdge.BUFFER_VIEW, BufferView)

    def set_buffer_view(
        self, graph: Graph, view: Optional[BufferView]
    ) -> None:
        self.set_edge_target(graph, AccessorEdge.BUFFER_VIEW, view)

    def buffer(self, graph: Graph) -> Optional[Buffer]:
        view = self.buffer_view(graph)
        return view.buffer(graph) if view is not None else None

    def count(self, graph: Graph) -> int:
        return self.get(graph).count

    def iter(self, graph: Graph):
        from ..accessor.iter import to_iter

        return to_iter(graph, self)

    def calc_min(self, graph: Graph) -> list:
        return self.iter(graph).min()

    def calc_max(self, graph: Graph) -> list:
        return self.iter(graph).max()
