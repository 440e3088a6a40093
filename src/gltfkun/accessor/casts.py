"""Widening iterators for index, joint and weight streams.

Each iterator consumes an :class:`AccessorIter` lazily, one element per
``next()``. They cannot be rewound; build a fresh one to start over.
"""

from __future__ import annotations

from typing import Callable, Generic, Tuple, TypeVar

import numpy as np

from ..errors import AccessorIterCreateError, E_ACCESSOR_TYPE
from .iter import AccessorIter
from .types import ComponentType, ElementType

__all__ = ["IndicesIter", "JointsIter", "WeightsIter"]

T = TypeVar("T")


class _CastIter(Generic[T]):
    accepted: Tuple[ComponentType, ...] = ()
    element_type: ElementType = ElementType.SCALAR

    def __init__(self, source: AccessorIter) -> None:
        if (
            source.component_type not in self.accepted
            or source.element_type is not self.element_type
        ):
            raise AccessorIterCreateError(
                code=E_ACCESSOR_TYPE,
                message=(
                    f"{type(self).__name__} cannot read "
                    f"{source.element_type.value}/"
                    f"{source.component_type.name}"
                ),
                context={
                    "component_type": int(source.component_type),
                    "element_type": source.element_type.value,
                },
            )
        self._rows = source.array
        self._pos = 0
        self._convert = self._converter(source.component_type)

    def _converter(self, component_type: ComponentType) -> Callable[[np.ndarray], T]:
        raise NotImplementedError

    def __iter__(self) -> "_CastIter[T]":
        return self

    def __next__(self) -> T:
        if self._pos >= len(self._rows):
            raise StopIteration
        row = self._rows[self._pos]
        self._pos += 1
        return self._convert(row)

    def __len__(self) -> int:
        return len(self._rows) - self._pos

    def __length_hint__(self) -> int:
        return len(self)


class IndicesIter(_CastIter[int]):
    """Vertex indices widened to u32 Python ints."""

    accepted = (ComponentType.U8, ComponentType.U16, ComponentType.U32)
    element_type = ElementType.SCALAR

    def _converter(self, component_type):
        return lambda row: int(row[0])


class JointsIter(_CastIter[Tuple[int, int, int, int]]):
    """Joint indices widened from u8x4 or u16x4 to u16x4."""

    accepted = (ComponentType.U8, ComponentType.U16)
    element_type = ElementType.VEC4

    def _converter(self, component_type):
        return lambda row: tuple(int(v) for v in row.astype(np.uint16))


class WeightsIter(_CastIter[Tuple[float, float, float, float]]):
    """Skin weights as f32x4; integer weights are normalized."""

    accepted = (ComponentType.U8, ComponentType.U16, ComponentType.F32)
    element_type = ElementType.VEC4

    def _converter(self, component_type):
        scale = {
            ComponentType.U8: 255.0,
            ComponentType.U16: 65535.0,
            ComponentType.F32: 1.0,
        }[component_type]
        return lambda row: tuple(
            float(v) for v in (row.astype(np.float32) / np.float32(scale))
        )
