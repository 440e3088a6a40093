"""Component and element descriptors for accessor data."""

from __future__ import annotations

from enum import Enum, IntEnum
from typing import Dict, Tuple

import numpy as np

__all__ = [
    "ComponentType",
    "ElementType",
    "DTYPES",
    "is_valid_combination",
    "element_layout",
    "element_size",
]


class ComponentType(IntEnum):
    I8 = 5120
    U8 = 5121
    I16 = 5122
    U16 = 5123
    I32 = 5124
    U32 = 5125
    F32 = 5126

    @property
    def size(self) -> int:
        return DTYPES[self].itemsize


class ElementType(str, Enum):
    SCALAR = "SCALAR"
    VEC2 = "VEC2"
    VEC3 = "VEC3"
    VEC4 = "VEC4"
    MAT2 = "MAT2"
    MAT3 = "MAT3"
    MAT4 = "MAT4"

    @property
    def multiplicity(self) -> int:
        columns, rows = _SHAPES[self]
        return columns * rows

    @property
    def is_matrix(self) -> bool:
        return self.value.startswith("MAT")


# Little-endian numpy dtypes per component type
DTYPES: Dict[ComponentType, np.dtype] = {
    ComponentType.I8: np.dtype("<i1"),
    ComponentType.U8: np.dtype("<u1"),
    ComponentType.I16: np.dtype("<i2"),
    ComponentType.U16: np.dtype("<u2"),
    ComponentType.I32: np.dtype("<i4"),
    ComponentType.U32: np.dtype("<u4"),
    ComponentType.F32: np.dtype("<f4"),
}

# (columns, rows); vectors are a single column
_SHAPES: Dict[ElementType, Tuple[int, int]] = {
    ElementType.SCALAR: (1, 1),
    ElementType.VEC2: (1, 2),
    ElementType.VEC3: (1, 3),
    ElementType.VEC4: (1, 4),
    ElementType.MAT2: (2, 2),
    ElementType.MAT3: (3, 3),
    ElementType.MAT4: (4, 4),
}

_MATRIX_COMPONENTS = (ComponentType.F32, ComponentType.I16, ComponentType.U16)


def is_valid_combination(
    component_type: ComponentType, element_type: ElementType
) -> bool:
    if element_type.is_matrix:
        return component_type in _MATRIX_COMPONENTS
    return True


def element_layout(
    component_type: ComponentType, element_type: ElementType
) -> Tuple[int, int, int]:
    """Return ``(columns, rows, column_stride)`` in bytes for one element.

    Matrix columns start on 4-byte boundaries, so a 16-bit MAT3 column
    occupies 8 bytes rather than 6.
    """
    columns, rows = _SHAPES[element_type]
    column_bytes = rows * component_type.size
    if element_type.is_matrix:
        column_bytes = (column_bytes + 3) & ~3
    return columns, rows, column_bytes


def element_size(
    component_type: ComponentType, element_type: ElementType
) -> int:
    columns, _, column_bytes = element_layout(component_type, element_type)
    return columns * column_bytes
