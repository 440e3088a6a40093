"""Decoding of accessor bytes into typed element streams."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Iterator, List, Union

import numpy as np

from ..errors import (
    AccessorIterCreateError,
    E_ACCESSOR_RANGE,
    E_ACCESSOR_TYPE,
    E_MISSING_BUFFER,
)
from .types import (
    DTYPES,
    ComponentType,
    ElementType,
    element_layout,
    element_size,
    is_valid_combination,
)

if TYPE_CHECKING:
    from ..graph.buffer import Accessor
    from ..graph.store import Graph

__all__ = ["AccessorIter", "to_iter", "pack_elements"]

Element = Union[int, float, tuple]


class AccessorIter:
    """Typed view over tightly packed accessor bytes.

    ``data`` holds ``count`` consecutive elements laid out as the format
    stores them (matrix columns padded to 4 bytes). Iterating yields a
    Python scalar for SCALAR accessors and a tuple otherwise; matrices are
    flattened column-major. Values are the stored components: ``normalized``
    is recorded but not applied, so ``min``/``max`` stay in stored units.
    :class:`~gltfkun.accessor.casts.WeightsIter` applies normalization.
    """

    def __init__(
        self,
        data: bytes,
        component_type: ComponentType,
        element_type: ElementType,
        normalized: bool = False,
    ) -> None:
        component_type = ComponentType(component_type)
        element_type = ElementType(element_type)
        if not is_valid_combination(component_type, element_type):
            raise AccessorIterCreateError(
                code=E_ACCESSOR_TYPE,
                message=(
                    f"{element_type.value} accessors cannot use "
                    f"{component_type.name} components"
                ),
                context={
                    "component_type": int(component_type),
                    "element_type": element_type.value,
                },
            )
        size = element_size(component_type, element_type)
        if len(data) % size:
            raise AccessorIterCreateError(
                code=E_ACCESSOR_RANGE,
                message=(
                    f"{len(data)} bytes is not a whole number of "
                    f"{size}-byte elements"
                ),
                context={"length": len(data), "element_size": size},
            )
        self.component_type = component_type
        self.element_type = element_type
        self.normalized = normalized
        self._data = bytes(data)
        self._array = _decode(self._data, component_type, element_type)

    @property
    def count(self) -> int:
        return int(self._array.shape[0])

    @property
    def array(self) -> np.ndarray:
        """Decoded components, shape ``(count, multiplicity)``."""
        return self._array

    def slice(self) -> bytes:
        return self._data

    def __len__(self) -> int:
        return self.count

    def __iter__(self) -> Iterator[Element]:
        scalar = self.element_type is ElementType.SCALAR
        for row in self._array.tolist():
            yield row[0] if scalar else tuple(row)

    def min(self) -> List[Any]:
        if self.count == 0:
            return []
        return self._array.min(axis=0).tolist()

    def max(self) -> List[Any]:
        if self.count == 0:
            return []
        return self._array.max(axis=0).tolist()


def _decode(
    data: bytes, component_type: ComponentType, element_type: ElementType
) -> np.ndarray:
    dtype = DTYPES[component_type]
    columns, rows, column_bytes = element_layout(component_type, element_type)
    per_column = column_bytes // dtype.itemsize
    count = len(data) // (columns * column_bytes)
    raw = np.frombuffer(data, dtype=dtype).reshape((count, columns, per_column))
    return raw[:, :, :rows].reshape((count, columns * rows))


def pack_elements(
    values: Any, component_type: ComponentType, element_type: ElementType
) -> bytes:
    """Encode ``values`` (one row per element) into accessor byte layout."""
    component_type = ComponentType(component_type)
    element_type = ElementType(element_type)
    if not is_valid_combination(component_type, element_type):
        raise AccessorIterCreateError(
            code=E_ACCESSOR_TYPE,
            message=(
                f"{element_type.value} accessors cannot use "
                f"{component_type.name} components"
            ),
        )
    dtype = DTYPES[component_type]
    columns, rows, column_bytes = element_layout(component_type, element_type)
    arr = np.asarray(values, dtype=dtype).reshape((-1, columns, rows))
    per_column = column_bytes // dtype.itemsize
    out = np.zeros((arr.shape[0], columns, per_column), dtype=dtype)
    out[:, :, :rows] = arr
    return out.tobytes()


def to_iter(graph: "Graph", accessor: "Accessor") -> AccessorIter:
    """Decode the bytes an accessor references.

    Honors the accessor's byte offset, the view's stride and the declared
    count. An accessor without a buffer view decodes as zeros.
    """
    weight = accessor.get(graph)
    component_type = ComponentType(weight.component_type)
    element_type = ElementType(weight.element_type)
    if not is_valid_combination(component_type, element_type):
        raise AccessorIterCreateError(
            code=E_ACCESSOR_TYPE,
            message=(
                f"{element_type.value} accessors cannot use "
                f"{component_type.name} components"
            ),
            context={"vertex": accessor.index},
        )
    size = element_size(component_type, element_type)
    count = weight.count
    view = accessor.buffer_view(graph)
    if view is None:
        return AccessorIter(
            bytes(size * count), component_type, element_type, weight.normalized
        )
    buffer = view.buffer(graph)
    if buffer is None:
        raise AccessorIterCreateError(
            code=E_MISSING_BUFFER,
            message="accessor buffer view has no buffer",
            context={"vertex": accessor.index, "view": view.index},
        )
    view_weight = view.get(graph)
    data = buffer.get(graph).data
    stride = view_weight.byte_stride or size
    required = stride * (count - 1) + size if count else 0
    view_end = view_weight.byte_offset + view_weight.byte_length
    start = view_weight.byte_offset + weight.byte_offset
    if start + required > view_end or view_end > len(data):
        raise AccessorIterCreateError(
            code=E_ACCESSOR_RANGE,
            message=(
                f"accessor needs {required} bytes at offset {start}, "
                f"which exceeds its view ({view_end}) or buffer ({len(data)})"
            ),
            context={
                "vertex": accessor.index,
                "count": count,
                "stride": stride,
            },
        )
    if stride == size:
        packed = data[start : start + size * count]
    else:
        packed = b"".join(
            data[start + i * stride : start + i * stride + size]
            for i in range(count)
        )
    return AccessorIter(packed, component_type, element_type, weight.normalized)
